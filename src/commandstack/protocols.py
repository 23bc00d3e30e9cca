"""
Canonical protocol definitions for the commandstack library.

Protocols:
- MessageHandler: The uniform handler contract produced by adapters
- MessageHandlerRegistration: A single-handler-per-message-type map that
  adapters are registered into

Any object with a matching ``register`` method can receive discovered
handlers; the library ships SingleMessageHandlerRegistration as an
in-memory implementation.

Example:
    >>> class ContainerRegistration:
    ...     def register(self, message_type: type, handler: MessageHandler) -> None:
    ...         self._routes[message_type] = handler
"""

from typing import Any, Protocol, runtime_checkable

from commandstack.cancellation import CancellationToken


@runtime_checkable
class MessageHandler(Protocol):
    """
    Protocol for uniform asynchronous message handlers.

    Example:
        >>> async def handler(message: Any, cancellation: CancellationToken | None = None) -> None:
        ...     await process(message)
    """

    async def __call__(self, message: Any, cancellation: CancellationToken | None = None) -> None:
        """
        Handle a message.

        Args:
            message: The message to handle
            cancellation: Optional cancellation token

        Raises:
            Exception: If handling fails
        """
        ...


@runtime_checkable
class MessageHandlerRegistration(Protocol):
    """
    Protocol for maps that hold one handler per message type.

    Whether a second registration for the same type overwrites, fails, or
    merges is decided by the implementation.
    """

    def register(self, message_type: type, handler: MessageHandler) -> None:
        """
        Register a handler for a message type.

        Args:
            message_type: The message class the handler accepts
            handler: The uniform handler callable
        """
        ...


__all__ = [
    "MessageHandler",
    "MessageHandlerRegistration",
]
