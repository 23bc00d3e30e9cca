"""
Command handler marker.

This module contains the @command_handler decorator that opts a method in to
convention-based discovery. The marker carries no data: the handled message
type is read from the method's first parameter annotation when the declaring
class is scanned.

Example:
    >>> from commandstack.handlers import command_handler
    >>>
    >>> class OrderHandlers:
    ...     @command_handler
    ...     def create(self, command: CreateOrder) -> None:
    ...         ...
    ...
    ...     @command_handler()
    ...     async def ship(self, command: ShipOrder) -> None:
    ...         ...
"""

from collections.abc import Callable
from typing import Any, TypeVar, overload

# Type variable for handler functions - preserves the exact type of the decorated function
F = TypeVar("F", bound=Callable[..., Any])

_MARKER_ATTRIBUTE = "_is_command_handler"


@overload
def command_handler(func: F) -> F: ...


@overload
def command_handler(func: None = None) -> Callable[[F], F]: ...


def command_handler(func: F | None = None) -> F | Callable[[F], F]:
    """
    Mark a method as a command handler for discovery.

    Can be used with or without parentheses. The decorated function is
    returned unchanged apart from the marker attribute.

    Supported handler signatures (names are free):
        def handle(self, command: TCommand) -> None
        async def handle(self, command: TCommand) -> None
        async def handle(self, command: TCommand, cancellation: CancellationToken) -> None

    Signatures are validated when the declaring class is scanned, not here,
    so decorating never fails.

    Args:
        func: The function (when used without parentheses)

    Returns:
        The marked function, or a decorator
    """

    def decorator(target: F) -> F:
        # staticmethod/classmethod wrappers: mark the wrapped function too so
        # discovery can report them instead of silently skipping
        inner = getattr(target, "__func__", None)
        if inner is not None:
            setattr(inner, _MARKER_ATTRIBUTE, True)
        else:
            setattr(target, _MARKER_ATTRIBUTE, True)
        return target

    if func is not None:
        return decorator(func)
    return decorator


def is_command_handler(obj: Any) -> bool:
    """
    Check if an object is marked with @command_handler.

    staticmethod and classmethod wrappers are unwrapped before checking.

    Args:
        obj: Any attribute value, usually taken from a class __dict__

    Returns:
        True if the object carries the marker, False otherwise
    """
    target = getattr(obj, "__func__", obj)
    return getattr(target, _MARKER_ATTRIBUTE, False) is True


__all__ = [
    "command_handler",
    "is_command_handler",
]
