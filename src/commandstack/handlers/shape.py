"""
Handler shape validation.

This module decides whether a method marked with @command_handler has one of
the three supported handler shapes, and which one:

- SYNC:               def handle(self, command: TCommand) -> None
- ASYNC:              async def handle(self, command: TCommand) -> None
- ASYNC_CANCELLABLE:  async def handle(self, command: TCommand, cancellation: CancellationToken) -> None

Plain functions annotated as returning Awaitable[None], Coroutine[Any, Any, None]
or asyncio.Future[None] count as asynchronous as well.

Validation happens once, at discovery time. Every rejection raises
HandlerShapeError naming the method and its declaring class.
"""

import asyncio
import collections.abc
import datetime
import decimal
import enum
import inspect
import logging
import types
import typing
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from commandstack.cancellation import CancellationToken
from commandstack.exceptions import HandlerShapeError
from commandstack.handlers.decorators import is_command_handler

logger = logging.getLogger(__name__)

# Types treated as values rather than message objects. Subclasses count too.
VALUE_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    type(None),
    decimal.Decimal,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)

_NO_ANNOTATION = object()
_AWAITABLE_ORIGINS = (collections.abc.Awaitable, collections.abc.Coroutine, asyncio.Future)
_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class HandlerShape(Enum):
    """
    The closed set of supported handler shapes.

    Resolved once per handler at discovery time so that invocation is a
    plain branch over these three cases.
    """

    SYNC = "sync"
    ASYNC = "async"
    ASYNC_CANCELLABLE = "async_cancellable"

    @property
    def is_async(self) -> bool:
        return self is not HandlerShape.SYNC

    @property
    def supports_cancellation(self) -> bool:
        return self is HandlerShape.ASYNC_CANCELLABLE

    @classmethod
    def from_flags(cls, is_async: bool, supports_cancellation: bool) -> "HandlerShape":
        if not is_async:
            return cls.SYNC
        return cls.ASYNC_CANCELLABLE if supports_cancellation else cls.ASYNC


@dataclass(frozen=True)
class HandlerSignature:
    """
    Result of classifying one marked method.

    Attributes:
        function: The plain function found on the declaring class
        message_type: The message class taken from the first parameter
        shape: Which of the supported shapes the method has
    """

    function: Callable[..., Any]
    message_type: type
    shape: HandlerShape


def is_reference_type(annotation: Any) -> bool:
    """
    Check whether an annotation names a message (object) type.

    Only real classes qualify. Value types (numbers, strings, bytes, dates,
    UUIDs, enums, None) and non-class annotations such as ``list[int]``,
    ``Any`` or unions are rejected.

    Args:
        annotation: A resolved type annotation

    Returns:
        True if the annotation is a class usable as a message type
    """
    if annotation is Any or typing.get_origin(annotation) is not None:
        return False
    if not isinstance(annotation, type):
        return False
    if issubclass(annotation, CancellationToken):
        return False
    return not issubclass(annotation, VALUE_TYPES)


def is_cancellation_annotation(annotation: Any) -> bool:
    """
    Check whether an annotation is cancellation-token shaped.

    ``CancellationToken``, its subclasses, and optional variants such as
    ``CancellationToken | None`` are cancellation shaped.
    """
    if isinstance(annotation, type) and typing.get_origin(annotation) is None:
        return issubclass(annotation, CancellationToken)
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        return any(is_cancellation_annotation(arg) for arg in typing.get_args(annotation))
    return False


def _returns_awaitable_of_none(annotation: Any) -> bool:
    if annotation in _AWAITABLE_ORIGINS:
        return True
    origin = typing.get_origin(annotation)
    if origin not in _AWAITABLE_ORIGINS:
        return False
    args = typing.get_args(annotation)
    # Awaitable[T] / Future[T] carry T last, Coroutine[Y, S, T] too
    return not args or args[-1] in (None, type(None))


def _is_async_return(function: Callable[..., Any], returns: Any, fail: Callable[[str], Exception]) -> bool:
    if inspect.isasyncgenfunction(function) or inspect.isgeneratorfunction(function):
        raise fail("unsupported return type (generators cannot be command handlers)")

    no_result = returns is _NO_ANNOTATION or returns is None or returns is type(None)
    if inspect.iscoroutinefunction(function):
        if no_result:
            return True
        raise fail("unsupported return type (asynchronous handlers must not return a value)")
    if no_result:
        return False
    if _returns_awaitable_of_none(returns):
        return True
    raise fail("unsupported return type (expected None or an awaitable of None)")


def classify_handler(declaring_type: type, name: str, attribute: Any) -> HandlerSignature:
    """
    Validate a marked class attribute and classify its handler shape.

    Rules, applied in order:

    1. The attribute must carry the @command_handler marker and be a plain
       instance method.
    2. It must declare a message parameter after ``self``, annotated with
       the message type.
    3. The message type must be a reference (object) type.
    4. The return must be "no result" or "an awaitable of no result".
    5. A cancellation token parameter must come last and is only allowed on
       asynchronous handlers.
    6. No parameters besides the message and the optional token.

    Args:
        declaring_type: Class that declares the attribute
        name: Attribute name on the class
        attribute: The raw attribute value from the class ``__dict__``

    Returns:
        HandlerSignature with the function, message type and shape

    Raises:
        HandlerShapeError: If the attribute is not a legal handler
    """
    owner_name = declaring_type.__name__

    if not is_command_handler(attribute):
        raise HandlerShapeError(name, owner_name, "method is not marked with @command_handler")
    if isinstance(attribute, (staticmethod, classmethod)):
        raise HandlerShapeError(name, owner_name, "handler must be an instance method")
    if not callable(attribute):
        raise HandlerShapeError(name, owner_name, "handler must be a function")

    function: Callable[..., Any] = attribute
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as exc:
        raise HandlerShapeError(name, owner_name, f"signature cannot be inspected ({exc})") from exc

    def fail(reason: str) -> HandlerShapeError:
        return HandlerShapeError(name, owner_name, reason, str(signature))

    try:
        hints = typing.get_type_hints(function)
    except (NameError, TypeError, AttributeError, SyntaxError) as exc:
        raise fail(f"type annotations cannot be resolved ({exc})") from exc

    # Drop self; the function is looked up on the class, not bound
    parameters = list(signature.parameters.values())[1:]

    # Rule 2: message parameter
    if not parameters:
        raise fail("handler must accept a message parameter")
    message_param = parameters[0]
    if message_param.kind not in _POSITIONAL_KINDS:
        raise fail("handler must accept only a message and an optional cancellation token")
    message_type = hints.get(message_param.name, _NO_ANNOTATION)
    if message_type is _NO_ANNOTATION:
        raise fail("message parameter must be annotated with the message type")
    if is_cancellation_annotation(message_type):
        raise fail("handler must accept a message parameter")

    # Rule 3: reference type
    if not is_reference_type(message_type):
        raise fail("message parameter must be a reference type")

    # Rule 4: return behavior
    is_async = _is_async_return(function, hints.get("return", _NO_ANNOTATION), fail)

    # Rule 5: cancellation
    cancellation_positions = [
        index
        for index, param in enumerate(parameters)
        if is_cancellation_annotation(hints.get(param.name, _NO_ANNOTATION))
    ]
    supports_cancellation = bool(cancellation_positions)
    if supports_cancellation:
        if cancellation_positions != [len(parameters) - 1]:
            raise fail("cancellation token must be the last parameter")
        if not is_async:
            raise fail("cancellation is only supported on asynchronous handlers")

    # Rule 6: nothing else
    expected_count = 2 if supports_cancellation else 1
    if len(parameters) != expected_count or any(p.kind not in _POSITIONAL_KINDS for p in parameters):
        raise fail("handler must accept only a message and an optional cancellation token")

    shape = HandlerShape.from_flags(is_async, supports_cancellation)
    logger.debug(
        "Classified handler %s.%s as %s for %s",
        owner_name,
        name,
        shape.value,
        message_type.__name__,
        extra={
            "owner": owner_name,
            "handler": name,
            "message_type": message_type.__name__,
            "shape": shape.value,
        },
    )
    return HandlerSignature(function=function, message_type=message_type, shape=shape)


__all__ = [
    "HandlerShape",
    "HandlerSignature",
    "VALUE_TYPES",
    "classify_handler",
    "is_cancellation_annotation",
    "is_reference_type",
]
