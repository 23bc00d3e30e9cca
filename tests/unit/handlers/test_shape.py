"""Unit tests for handler shape validation."""

import asyncio
import enum
from collections.abc import Awaitable, Coroutine
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import pytest

from commandstack import CancellationToken, HandlerShapeError, command_handler
from commandstack.handlers.shape import (
    HandlerShape,
    classify_handler,
    is_cancellation_annotation,
    is_reference_type,
)
from tests.fixtures import TestCommand


@dataclass
class DataclassCommand:
    value: int = 0


class Color(enum.Enum):
    RED = "red"


class SpecialToken(CancellationToken):
    pass


def classify(owner: type, name: str = "handle"):
    return classify_handler(owner, name, owner.__dict__[name])


class TestHandlerShape:
    """Tests for the HandlerShape variant."""

    def test_flags(self):
        assert HandlerShape.SYNC.is_async is False
        assert HandlerShape.SYNC.supports_cancellation is False
        assert HandlerShape.ASYNC.is_async is True
        assert HandlerShape.ASYNC.supports_cancellation is False
        assert HandlerShape.ASYNC_CANCELLABLE.is_async is True
        assert HandlerShape.ASYNC_CANCELLABLE.supports_cancellation is True

    @pytest.mark.parametrize("shape", list(HandlerShape))
    def test_from_flags_inverts_flags(self, shape):
        assert HandlerShape.from_flags(shape.is_async, shape.supports_cancellation) is shape

    def test_from_flags_ignores_cancellation_for_sync(self):
        assert HandlerShape.from_flags(False, True) is HandlerShape.SYNC


class TestIsReferenceType:
    """Tests for message type classification."""

    @pytest.mark.parametrize("annotation", [TestCommand, DataclassCommand, object, Exception])
    def test_classes_are_reference_types(self, annotation):
        assert is_reference_type(annotation) is True

    @pytest.mark.parametrize(
        "annotation",
        [int, bool, float, str, bytes, UUID, Color, type(None), CancellationToken],
    )
    def test_value_types_are_rejected(self, annotation):
        assert is_reference_type(annotation) is False

    @pytest.mark.parametrize("annotation", [list[int], Any, TestCommand | None, "TestCommand"])
    def test_non_class_annotations_are_rejected(self, annotation):
        assert is_reference_type(annotation) is False


class TestIsCancellationAnnotation:
    def test_token_and_subclass(self):
        assert is_cancellation_annotation(CancellationToken) is True
        assert is_cancellation_annotation(SpecialToken) is True

    def test_optional_token(self):
        assert is_cancellation_annotation(CancellationToken | None) is True

    def test_other_annotations(self):
        assert is_cancellation_annotation(TestCommand) is False
        assert is_cancellation_annotation(int | None) is False
        assert is_cancellation_annotation(list[CancellationToken]) is False


class TestValidShapes:
    """The three supported shapes are accepted and classified."""

    def test_sync_handler(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand) -> None:
                pass

        signature = classify(Handlers)

        assert signature.shape is HandlerShape.SYNC
        assert signature.message_type is TestCommand
        assert signature.function is Handlers.__dict__["handle"]

    def test_sync_handler_without_return_annotation(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand):
                pass

        assert classify(Handlers).shape is HandlerShape.SYNC

    def test_async_handler(self):
        class Handlers:
            @command_handler
            async def handle(self, command: TestCommand) -> None:
                pass

        assert classify(Handlers).shape is HandlerShape.ASYNC

    def test_async_cancellable_handler(self):
        class Handlers:
            @command_handler
            async def handle(self, command: TestCommand, cancellation: CancellationToken) -> None:
                pass

        signature = classify(Handlers)

        assert signature.shape is HandlerShape.ASYNC_CANCELLABLE
        assert signature.message_type is TestCommand

    def test_token_subclass_counts_as_cancellation(self):
        class Handlers:
            @command_handler
            async def handle(self, command: TestCommand, token: SpecialToken) -> None:
                pass

        assert classify(Handlers).shape is HandlerShape.ASYNC_CANCELLABLE

    @pytest.mark.parametrize(
        "returns",
        [Awaitable[None], Coroutine[Any, Any, None], asyncio.Future[None], Awaitable],
    )
    def test_plain_function_returning_awaitable_is_async(self, returns):
        def handle(self, command: TestCommand):
            return asyncio.sleep(0)

        handle.__annotations__["return"] = returns
        command_handler(handle)

        class Handlers:
            pass

        signature = classify_handler(Handlers, "handle", handle)

        assert signature.shape is HandlerShape.ASYNC

    def test_dataclass_message(self):
        class Handlers:
            @command_handler
            def handle(self, command: DataclassCommand) -> None:
                pass

        assert classify(Handlers).message_type is DataclassCommand

    def test_string_annotation_is_resolved(self):
        class Handlers:
            @command_handler
            def handle(self, command: "TestCommand") -> None:
                pass

        assert classify(Handlers).message_type is TestCommand


class TestInvalidShapes:
    """Every unsupported shape raises HandlerShapeError."""

    def test_no_message_parameter(self):
        class Handlers:
            @command_handler
            def handle(self) -> None:
                pass

        with pytest.raises(HandlerShapeError) as exc_info:
            classify(Handlers)

        error = exc_info.value
        assert error.handler_name == "handle"
        assert error.owner_name == "Handlers"
        assert "handler must accept a message parameter" in str(error)
        assert "Handlers.handle" in str(error)

    def test_async_handler_without_message_parameter(self):
        class Handlers:
            @command_handler
            async def handle(self) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="message parameter"):
            classify(Handlers)

    def test_token_only(self):
        class Handlers:
            @command_handler
            async def handle(self, cancellation: CancellationToken) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="handler must accept a message parameter"):
            classify(Handlers)

    def test_unannotated_message_parameter(self):
        class Handlers:
            @command_handler
            def handle(self, command) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="must be annotated"):
            classify(Handlers)

    @pytest.mark.parametrize("annotation", [int, str, UUID, Color, list[TestCommand], Any])
    def test_value_type_message(self, annotation):
        def handle(self, command) -> None:
            pass

        handle.__annotations__["command"] = annotation
        command_handler(handle)

        class Handlers:
            pass

        with pytest.raises(HandlerShapeError, match="message parameter must be a reference type"):
            classify_handler(Handlers, "handle", handle)

    def test_sync_handler_returning_value(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand) -> int:
                return 1

        with pytest.raises(HandlerShapeError, match="unsupported return type"):
            classify(Handlers)

    def test_async_handler_returning_value(self):
        class Handlers:
            @command_handler
            async def handle(self, command: TestCommand) -> int:
                return 1

        with pytest.raises(HandlerShapeError, match="unsupported return type"):
            classify(Handlers)

    def test_awaitable_of_value(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand) -> Awaitable[int]:
                return asyncio.sleep(0, 1)

        with pytest.raises(HandlerShapeError, match="unsupported return type"):
            classify(Handlers)

    def test_generator_handler(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand):
                yield

        with pytest.raises(HandlerShapeError, match="unsupported return type"):
            classify(Handlers)

    def test_sync_handler_with_cancellation(self):
        class Handlers:
            @command_handler
            def handle(self, command: TestCommand, cancellation: CancellationToken) -> None:
                pass

        with pytest.raises(
            HandlerShapeError,
            match="cancellation is only supported on asynchronous handlers",
        ):
            classify(Handlers)

    def test_cancellation_not_last(self):
        class Handlers:
            @command_handler
            async def handle(
                self, command: TestCommand, cancellation: CancellationToken, extra: TestCommand
            ) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="must be the last parameter"):
            classify(Handlers)

    def test_two_cancellation_tokens(self):
        class Handlers:
            @command_handler
            async def handle(
                self, command: TestCommand, first: CancellationToken, second: CancellationToken
            ) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="must be the last parameter"):
            classify(Handlers)

    def test_extra_parameter(self):
        class Handlers:
            @command_handler
            async def handle(self, command: TestCommand, context: TestCommand) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="only a message and an optional cancellation"):
            classify(Handlers)

    def test_extra_parameter_before_token(self):
        class Handlers:
            @command_handler
            async def handle(
                self, command: TestCommand, context: TestCommand, cancellation: CancellationToken
            ) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="only a message and an optional cancellation"):
            classify(Handlers)

    @pytest.mark.parametrize("kind", ["varargs", "kwargs", "kwonly"])
    def test_non_positional_parameters(self, kind):
        class Handlers:
            @command_handler
            def varargs(self, command: TestCommand, *args: TestCommand) -> None:
                pass

            @command_handler
            def kwargs(self, command: TestCommand, **kwargs: TestCommand) -> None:
                pass

            @command_handler
            def kwonly(self, *, command: TestCommand) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="only a message and an optional cancellation"):
            classify(Handlers, kind)

    def test_staticmethod_rejected(self):
        class Handlers:
            @command_handler
            @staticmethod
            def handle(command: TestCommand) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="instance method"):
            classify(Handlers)

    def test_classmethod_rejected(self):
        class Handlers:
            @classmethod
            @command_handler
            def handle(cls, command: TestCommand) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="instance method"):
            classify(Handlers)

    def test_unmarked_method_rejected(self):
        class Handlers:
            def handle(self, command: TestCommand) -> None:
                pass

        with pytest.raises(HandlerShapeError, match="not marked"):
            classify(Handlers)

    def test_unresolvable_annotation(self):
        class Handlers:
            @command_handler
            def handle(self, command: "MissingCommand") -> None:  # noqa: F821
                pass

        with pytest.raises(HandlerShapeError, match="cannot be resolved"):
            classify(Handlers)

    def test_malformed_string_annotation(self):
        class Handlers:
            @command_handler
            def handle(self, command: "list[") -> None:  # noqa: F722
                pass

        with pytest.raises(HandlerShapeError, match="cannot be resolved"):
            classify(Handlers)

    def test_shape_error_is_value_error(self):
        class Handlers:
            @command_handler
            def handle(self) -> None:
                pass

        with pytest.raises(ValueError):
            classify(Handlers)
