"""
Command handler descriptors.

A CommandHandlerMethod describes one discovered handler method: which class
declares it, which message type it accepts, how it must be invoked, and where
instances of the declaring class come from. Descriptors are immutable and
are created once, at discovery time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from commandstack.exceptions import HandlerShapeError
from commandstack.handlers.shape import HandlerShape, classify_handler, is_reference_type

InstanceFactory = Callable[[], Any]


def _name_of(value: Any) -> str:
    return str(getattr(value, "__name__", value))


def _unwrap_shape_error(exc: ValidationError) -> Exception:
    # pydantic wraps ValueErrors raised by validators; surface ours unchanged
    for error in exc.errors():
        cause = error.get("ctx", {}).get("error")
        if isinstance(cause, HandlerShapeError):
            return cause
    return exc


class CommandHandlerMethod(BaseModel):
    """
    Immutable description of a method marked with @command_handler.

    The instance factory is held by reference. The descriptor never owns the
    instances it produces: every adapter invocation calls the factory again,
    so instance lifetime (fresh per call, shared singleton, scoped) is
    entirely up to the factory.

    Attributes:
        declaring_type: Class that declares the handler method
        message_type: Message class accepted by the method
        method: The plain function taken from the declaring class
        is_async: Whether the method completes through an awaitable
        supports_cancellation: Whether the method accepts a CancellationToken
        instance_factory: Zero-argument callable producing a declaring_type instance

    Example:
        >>> descriptor = CommandHandlerMethod.from_function(
        ...     OrderHandlers,
        ...     OrderHandlers.create,
        ...     lambda: OrderHandlers(repository),
        ... )
        >>> descriptor.shape
        <HandlerShape.SYNC: 'sync'>
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    declaring_type: type[Any] = Field(..., description="Class that declares the handler")
    message_type: type[Any] = Field(..., description="Message class the handler accepts")
    method: Callable[..., Any] = Field(..., description="Underlying handler function")
    is_async: bool = Field(default=False, description="Handler completes through an awaitable")
    supports_cancellation: bool = Field(
        default=False,
        description="Handler accepts a CancellationToken as its last parameter",
    )
    instance_factory: Callable[[], Any] = Field(
        ...,
        description="Zero-argument factory producing an instance of declaring_type",
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise _unwrap_shape_error(exc) from None

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any) -> CommandHandlerMethod:  # type: ignore[override]
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as exc:
            raise _unwrap_shape_error(exc) from None

    def model_copy(
        self,
        *,
        update: Mapping[str, Any] | None = None,
        deep: bool = False,
    ) -> CommandHandlerMethod:
        """Copy the descriptor. Updated copies are validated like new ones."""
        if not update:
            return super().model_copy(deep=deep)
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        return type(self)(**{**fields, **update})

    @model_validator(mode="before")
    @classmethod
    def _require_message_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("message_type") is None:
            raise HandlerShapeError(
                _name_of(data.get("method")),
                _name_of(data.get("declaring_type")),
                "handler must accept a message parameter",
            )
        return data

    @model_validator(mode="after")
    def _check_shape(self) -> CommandHandlerMethod:
        if not is_reference_type(self.message_type):
            raise HandlerShapeError(
                self.method_name,
                self.declaring_type.__name__,
                f"message parameter must be a reference type, not {_name_of(self.message_type)}",
            )
        if self.supports_cancellation and not self.is_async:
            raise HandlerShapeError(
                self.method_name,
                self.declaring_type.__name__,
                "cancellation is only supported on asynchronous handlers",
            )
        return self

    @classmethod
    def from_function(
        cls,
        declaring_type: type,
        function: Callable[..., Any],
        instance_factory: InstanceFactory,
        name: str | None = None,
    ) -> CommandHandlerMethod:
        """
        Validate a marked function and build its descriptor.

        Args:
            declaring_type: Class that declares the function
            function: The marked function (or raw class attribute)
            instance_factory: Zero-argument factory for declaring_type instances
            name: Attribute name on the class (defaults to the function name)

        Returns:
            The descriptor for the handler

        Raises:
            HandlerShapeError: If the function is not a legal handler
        """
        attr_name = name or getattr(function, "__name__", repr(function))
        signature = classify_handler(declaring_type, attr_name, function)
        return cls(
            declaring_type=declaring_type,
            message_type=signature.message_type,
            method=signature.function,
            is_async=signature.shape.is_async,
            supports_cancellation=signature.shape.supports_cancellation,
            instance_factory=instance_factory,
        )

    @property
    def shape(self) -> HandlerShape:
        """The handler shape implied by the classification flags."""
        return HandlerShape.from_flags(self.is_async, self.supports_cancellation)

    @property
    def method_name(self) -> str:
        return str(getattr(self.method, "__name__", repr(self.method)))

    @property
    def name(self) -> str:
        """Qualified handler name for logging, e.g. ``OrderHandlers.create``."""
        return f"{self.declaring_type.__name__}.{self.method_name}"

    def __str__(self) -> str:
        return f"{self.name}({self.message_type.__name__}) [{self.shape.value}]"


__all__ = [
    "CommandHandlerMethod",
    "InstanceFactory",
]
