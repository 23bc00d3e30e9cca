"""
Registration of discovered command handlers.

This module bridges discovery output to a single-handler-per-message-type
map:

- register_all: Build an adapter for each descriptor and register it under
  the descriptor's message type
- register_command_handlers: Discover handlers in a target, then register_all
- SingleMessageHandlerRegistration: Thread-safe in-memory map that rejects a
  second handler for the same message type

The bridge itself performs no deduplication; conflict handling belongs to
the registration target.

Example:
    >>> registration = SingleMessageHandlerRegistration()
    >>> register_command_handlers(registration, OrderHandlers, lambda: handlers)
    >>>
    >>> handler = registration.resolve(CreateOrder)
    >>> await handler(CreateOrder())
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from types import ModuleType

from commandstack.config import DiscoveryConfig
from commandstack.exceptions import (
    DuplicateHandlerError,
    HandlerDiscoveryError,
    HandlerNotFoundError,
)
from commandstack.handlers.adapter import CommandHandlerAdapter, build_adapter
from commandstack.handlers.descriptor import CommandHandlerMethod, InstanceFactory
from commandstack.handlers.discovery import TypeFactory, discover
from commandstack.observability.tracer import Tracer
from commandstack.protocols import MessageHandler, MessageHandlerRegistration

logger = logging.getLogger(__name__)


class SingleMessageHandlerRegistration:
    """
    Registry mapping each message type to exactly one handler.

    Thread-Safety:
        All operations are thread-safe and use internal locking.

    Example:
        >>> registration = SingleMessageHandlerRegistration()
        >>> registration.register(CreateOrder, adapter)
        >>> registration.resolve(CreateOrder) is adapter
        True
        >>> registration.register(CreateOrder, other)  # DuplicateHandlerError
    """

    def __init__(self) -> None:
        """Initialize an empty registration."""
        self._handlers: dict[type, MessageHandler] = {}
        self._lock = threading.RLock()

    def register(self, message_type: type, handler: MessageHandler) -> None:
        """
        Register the handler for a message type.

        Args:
            message_type: The message class
            handler: The uniform handler callable

        Raises:
            DuplicateHandlerError: If a different handler is already registered
                for message_type
        """
        with self._lock:
            existing = self._handlers.get(message_type)
            if existing is not None:
                if existing is handler:
                    return
                raise DuplicateHandlerError(message_type, existing, handler)

            self._handlers[message_type] = handler
            logger.debug(
                "Registered handler for message type %s",
                message_type.__name__,
                extra={
                    "message_type": message_type.__name__,
                    "handler": repr(handler),
                },
            )

    def resolve(self, message_type: type) -> MessageHandler:
        """
        Get the handler registered for a message type.

        Args:
            message_type: The message class

        Returns:
            The registered handler

        Raises:
            HandlerNotFoundError: If no handler is registered for message_type
        """
        with self._lock:
            handler = self._handlers.get(message_type)
            if handler is None:
                raise HandlerNotFoundError(
                    message_type, [t.__name__ for t in self._handlers]
                )
            return handler

    def get_or_none(self, message_type: type) -> MessageHandler | None:
        """Get the handler for a message type, or None if there is none."""
        with self._lock:
            return self._handlers.get(message_type)

    def has_handler(self, message_type: type) -> bool:
        """Check if a handler is registered for a message type."""
        with self._lock:
            return message_type in self._handlers

    def registered_types(self) -> list[type]:
        """List the message types that have a handler, in registration order."""
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __bool__(self) -> bool:
        """Registration is always truthy, even when empty."""
        return True

    def __contains__(self, message_type: object) -> bool:
        with self._lock:
            return message_type in self._handlers

    def __iter__(self) -> Iterator[type]:
        with self._lock:
            return iter(list(self._handlers))

    def __repr__(self) -> str:
        return f"SingleMessageHandlerRegistration(handlers={len(self)})"


def register_all(
    registration: MessageHandlerRegistration,
    descriptors: Iterable[CommandHandlerMethod],
    *,
    tracer: Tracer | None = None,
    enable_tracing: bool = True,
) -> list[CommandHandlerAdapter]:
    """
    Build an adapter for each descriptor and register it by message type.

    Args:
        registration: Target map with a ``register(message_type, handler)`` method
        descriptors: Descriptors produced by discovery
        tracer: Optional tracer passed to every adapter
        enable_tracing: Whether adapters trace when no tracer is given

    Returns:
        The adapters, in registration order

    Raises:
        HandlerDiscoveryError: If registration or descriptors is None
        Exception: Whatever the registration target raises on conflicts
    """
    if registration is None:
        raise HandlerDiscoveryError("Cannot register command handlers: registration is None")
    if descriptors is None:
        raise HandlerDiscoveryError("Cannot register command handlers: descriptors is None")

    adapters: list[CommandHandlerAdapter] = []
    for descriptor in descriptors:
        adapter = build_adapter(descriptor, tracer=tracer, enable_tracing=enable_tracing)
        registration.register(descriptor.message_type, adapter)
        adapters.append(adapter)
        logger.debug(
            "Registered command handler %s for %s",
            descriptor.name,
            descriptor.message_type.__name__,
            extra={
                "handler": descriptor.name,
                "message_type": descriptor.message_type.__name__,
                "shape": descriptor.shape.value,
            },
        )
    return adapters


def register_command_handlers(
    registration: MessageHandlerRegistration,
    target: type | ModuleType | Iterable[type | ModuleType | str],
    factory: InstanceFactory | TypeFactory,
    *,
    config: DiscoveryConfig | None = None,
    tracer: Tracer | None = None,
    enable_tracing: bool = True,
) -> list[CommandHandlerAdapter]:
    """
    Discover handlers in a target and register them.

    Args:
        registration: Target map with a ``register(message_type, handler)`` method
        target: Class, module, or iterable of classes and modules (see discover)
        factory: Instance factory for a single class, type factory otherwise
        config: Discovery options
        tracer: Optional tracer passed to every adapter
        enable_tracing: Whether adapters trace when no tracer is given

    Returns:
        The adapters, in registration order

    Raises:
        HandlerDiscoveryError: If an argument is missing or invalid
        HandlerShapeError: If a marked method has an unsupported shape
    """
    if registration is None:
        raise HandlerDiscoveryError("Cannot register command handlers: registration is None")
    descriptors = discover(target, factory, config=config)
    return register_all(
        registration,
        descriptors,
        tracer=tracer,
        enable_tracing=enable_tracing,
    )


__all__ = [
    "SingleMessageHandlerRegistration",
    "register_all",
    "register_command_handlers",
]
