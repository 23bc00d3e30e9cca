"""
Handler adapter for uniform command handler invocation.

This module turns a CommandHandlerMethod into a single callable contract:

    await adapter(message, cancellation)

regardless of whether the underlying method is synchronous, asynchronous,
or asynchronous with cancellation support. Callers never need to know which
shape they are talking to.

Invocation failures (instance factory errors, wrong instance types, and
exceptions raised by the handler body) are raised when the adapter is
awaited, never when it is called. A dispatch layer can therefore apply one
failure policy to every handler.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from commandstack.cancellation import CancellationToken
from commandstack.exceptions import HandlerDiscoveryError, InstanceResolutionError
from commandstack.handlers.descriptor import CommandHandlerMethod
from commandstack.handlers.shape import HandlerShape
from commandstack.observability.attributes import (
    ATTR_CANCELLATION_REQUESTED,
    ATTR_DECLARING_TYPE,
    ATTR_ERROR_TYPE,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SHAPE,
    ATTR_HANDLER_SUCCESS,
    ATTR_MESSAGE_TYPE,
)
from commandstack.observability.tracer import Tracer, create_tracer

logger = logging.getLogger(__name__)

# Uniform handler contract: (message, cancellation) -> awaitable completion
MessageHandlerDelegate = Callable[[Any, CancellationToken | None], Awaitable[None]]

# Internal strategy signature: (method, instance, message, token)
_Strategy = Callable[[Callable[..., Any], Any, Any, CancellationToken], Awaitable[None]]


def resolve_instance(descriptor: CommandHandlerMethod) -> Any:
    """
    Obtain an instance of the descriptor's declaring type from its factory.

    Args:
        descriptor: The handler descriptor

    Returns:
        The instance to invoke the handler method on

    Raises:
        InstanceResolutionError: If the factory raises, returns None, or
            returns an object that is not an instance of declaring_type
    """
    expected = descriptor.declaring_type
    try:
        instance = descriptor.instance_factory()
    except Exception as exc:
        raise InstanceResolutionError(
            expected,
            message=(
                f"Failed to retrieve an instance of {expected.__name__} from the "
                f"instance factory: {exc!r}. Please check registration configuration."
            ),
        ) from exc

    if instance is None:
        raise InstanceResolutionError(expected)
    if not isinstance(instance, expected):
        raise InstanceResolutionError(expected, type(instance))
    return instance


async def _await_completion(result: Any, descriptor: CommandHandlerMethod) -> None:
    if not inspect.isawaitable(result):
        raise TypeError(
            f"Handler {descriptor.name} is declared asynchronous but returned "
            f"{type(result).__name__} instead of an awaitable"
        )
    await result


def _build_strategy(descriptor: CommandHandlerMethod) -> _Strategy:
    shape = descriptor.shape

    if shape is HandlerShape.SYNC:

        async def invoke_sync(
            method: Callable[..., Any], instance: Any, message: Any, token: CancellationToken
        ) -> None:
            method(instance, message)

        return invoke_sync

    if shape is HandlerShape.ASYNC:

        async def invoke_async(
            method: Callable[..., Any], instance: Any, message: Any, token: CancellationToken
        ) -> None:
            # token is not forwarded: the handler did not declare one
            await _await_completion(method(instance, message), descriptor)

        return invoke_async

    async def invoke_cancellable(
        method: Callable[..., Any], instance: Any, message: Any, token: CancellationToken
    ) -> None:
        await _await_completion(method(instance, message, token), descriptor)

    return invoke_cancellable


class CommandHandlerAdapter:
    """
    Uniform asynchronous adapter around one discovered handler method.

    The strategy for the handler's shape is selected once, at construction:

    - SYNC: the method is called with the message; its exceptions are
      raised from the awaited adapter.
    - ASYNC: the method is called with the message only. The caller's
      cancellation token is accepted but not forwarded, so cancelling has
      no effect on such handlers.
    - ASYNC_CANCELLABLE: the method is called with the message and the
      token. When the caller passes no token a fresh, never-cancelled one
      is forwarded.

    Each call resolves a new instance through the descriptor's instance
    factory. The adapter keeps no mutable state and can be awaited
    concurrently.

    Example:
        >>> adapter = CommandHandlerAdapter(descriptor)
        >>> await adapter(CreateOrder(order_id=order_id))
        >>>
        >>> token = CancellationToken()
        >>> await adapter(BuildReport(), token)

    Attributes:
        descriptor: The CommandHandlerMethod this adapter invokes
        name: Qualified handler name for logging
    """

    def __init__(
        self,
        descriptor: CommandHandlerMethod,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the adapter for a descriptor.

        Args:
            descriptor: Descriptor produced by discovery
            tracer: Optional tracer; defaults to create_tracer(__name__, enable_tracing)
            enable_tracing: Whether to trace invocations when no tracer is given
        """
        self._descriptor = descriptor
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._strategy = _build_strategy(descriptor)

    @property
    def descriptor(self) -> CommandHandlerMethod:
        """Get the descriptor this adapter was built from."""
        return self._descriptor

    @property
    def name(self) -> str:
        """Get the qualified handler name."""
        return self._descriptor.name

    @property
    def message_type(self) -> type:
        """Get the message type the handler accepts."""
        return self._descriptor.message_type

    async def __call__(self, message: Any, cancellation: CancellationToken | None = None) -> None:
        """
        Handle a message through the underlying handler method.

        Args:
            message: The message instance to handle
            cancellation: Optional cancellation token; only delivered to
                handlers that declare one

        Raises:
            InstanceResolutionError: If the instance factory fails
            Exception: Whatever the handler body raises
        """
        descriptor = self._descriptor
        token = cancellation if cancellation is not None else CancellationToken()

        attributes = None
        if self._tracer.enabled:
            attributes = {
                ATTR_HANDLER_NAME: descriptor.name,
                ATTR_HANDLER_SHAPE: descriptor.shape.value,
                ATTR_DECLARING_TYPE: descriptor.declaring_type.__name__,
                ATTR_MESSAGE_TYPE: type(message).__name__,
                ATTR_CANCELLATION_REQUESTED: token.is_cancelled,
            }

        with self._tracer.span("commandstack.handler.invoke", attributes) as span:
            try:
                instance = resolve_instance(descriptor)
                await self._strategy(descriptor.method, instance, message, token)
            except Exception as exc:
                logger.debug(
                    "Handler %s failed for %s: %s",
                    descriptor.name,
                    type(message).__name__,
                    type(exc).__name__,
                    extra={
                        "handler": descriptor.name,
                        "message_type": type(message).__name__,
                        "shape": descriptor.shape.value,
                        "error_type": type(exc).__name__,
                    },
                )
                if span is not None:
                    span.set_attribute(ATTR_HANDLER_SUCCESS, False)
                    span.set_attribute(ATTR_ERROR_TYPE, type(exc).__name__)
                raise

            if span is not None:
                span.set_attribute(ATTR_HANDLER_SUCCESS, True)

    def __repr__(self) -> str:
        return f"CommandHandlerAdapter({self._descriptor})"


def build_adapter(
    descriptor: CommandHandlerMethod,
    *,
    tracer: Tracer | None = None,
    enable_tracing: bool = True,
) -> CommandHandlerAdapter:
    """
    Build the uniform invocation adapter for a descriptor.

    Args:
        descriptor: Descriptor produced by discovery
        tracer: Optional tracer for invocation spans
        enable_tracing: Whether to trace invocations when no tracer is given

    Returns:
        An async callable ``(message, cancellation=None) -> None``

    Raises:
        HandlerDiscoveryError: If descriptor is None
    """
    if descriptor is None:
        raise HandlerDiscoveryError("Cannot build a handler adapter: descriptor is None")
    return CommandHandlerAdapter(descriptor, tracer=tracer, enable_tracing=enable_tracing)


__all__ = [
    "CommandHandlerAdapter",
    "MessageHandlerDelegate",
    "build_adapter",
    "resolve_instance",
]
