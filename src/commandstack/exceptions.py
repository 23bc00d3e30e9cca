"""Library exceptions for the commandstack package."""

from typing import Any


class CommandStackError(Exception):
    """Base exception for commandstack library."""

    pass


class HandlerDiscoveryError(CommandStackError, ValueError):
    """
    Raised when handler discovery or registration cannot proceed.

    Discovery errors are always raised synchronously, at scan or
    registration time, and never while a message is being dispatched.
    Missing scan targets and missing instance factories are reported
    with this class directly; invalid handler signatures use the
    HandlerShapeError subclass.
    """

    pass


class HandlerShapeError(HandlerDiscoveryError):
    """
    Raised when a method marked with @command_handler has an unsupported shape.

    Supported shapes (method names are free):
        def handle(self, command: TCommand) -> None
        async def handle(self, command: TCommand) -> None
        async def handle(self, command: TCommand, cancellation: CancellationToken) -> None

    Attributes:
        handler_name: Name of the offending method
        owner_name: Name of the class declaring the method
        reason: Short description of the violated rule
    """

    def __init__(self, handler_name: str, owner_name: str, reason: str, signature: str = "") -> None:
        self.handler_name = handler_name
        self.owner_name = owner_name
        self.reason = reason
        check = f"{owner_name}.{handler_name}{signature}"
        super().__init__(f"Invalid command handler: {reason}. Check {check}.")


class InstanceResolutionError(CommandStackError):
    """
    Raised when a handler's instance factory cannot provide a usable instance.

    This error is only ever delivered through an awaited adapter, never
    synchronously from the adapter call itself. The original factory
    failure, if any, is available as ``__cause__``.

    Attributes:
        expected_type: The declaring type of the handler method
        actual_type: Type of the object the factory returned (None if it
            raised or returned nothing)
    """

    def __init__(
        self,
        expected_type: type,
        actual_type: type | None = None,
        message: str | None = None,
    ) -> None:
        self.expected_type = expected_type
        self.actual_type = actual_type
        if message is None:
            if actual_type is None:
                message = (
                    f"Failed to retrieve an instance of {expected_type.__name__} "
                    f"from the instance factory. Please check registration configuration."
                )
            else:
                message = (
                    f"Invalid instance provided by instance factory. "
                    f"Expected an instance of {expected_type.__name__} "
                    f"but was given {actual_type.__name__}."
                )
        super().__init__(message)


class DuplicateHandlerError(CommandStackError, ValueError):
    """Raised when a second handler is registered for the same message type."""

    def __init__(self, message_type: type, existing: Any, new: Any) -> None:
        self.message_type = message_type
        self.existing = existing
        self.new = new
        super().__init__(
            f"A handler for message type '{message_type.__name__}' is already registered "
            f"({existing!r}). Cannot register {new!r} for the same message type."
        )


class HandlerNotFoundError(CommandStackError, KeyError):
    """
    Raised when no handler is registered for a message type.

    Provides a list of the message types that do have handlers.
    """

    def __init__(self, message_type: type, available_types: list[str]) -> None:
        self.message_type = message_type
        self.available_types = available_types
        available = ", ".join(sorted(available_types)) if available_types else "none"
        super().__init__(
            f"No handler registered for message type '{message_type.__name__}'. "
            f"Available types: {available}."
        )

    def __str__(self) -> str:
        # KeyError quotes its argument by default
        return str(self.args[0])
