"""
Shared test handler classes.

TestCommandHandler records every command it handles, so tests can assert on
what reached the handler body. Classes named ``Invalid*`` have deliberately
unsupported shapes and live in tests that expect discovery to fail.

This module is also scanned as a whole in module discovery tests; it must
only contain valid handler classes.
"""

import asyncio
from typing import Any

from commandstack import CancellationToken, command_handler
from tests.fixtures.commands import (
    CancellableTestCommand,
    DelayCommand,
    NonCancellableDelayCommand,
    NonCancellableTestCommand,
    TestCommand,
    ThrowExceptionCommand,
)


class TestCommandHandlerError(Exception):
    """Raised on purpose by test handlers."""

    __test__ = False


class TestCommandHandler:
    """Base class recording handled commands."""

    __test__ = False

    def __init__(self) -> None:
        self.handled_commands: list[Any] = []
        self.received_tokens: list[CancellationToken] = []

    def has_handled(self, command_type: type) -> bool:
        return any(isinstance(c, command_type) for c in self.handled_commands)

    def _record(self, command: Any) -> None:
        if command is None:
            raise ValueError("command is None")
        self.handled_commands.append(command)


class TestAttributedCommandHandler(TestCommandHandler):
    """One handler of every supported shape."""

    __test__ = False

    @command_handler
    def handle_test_command(self, command: TestCommand) -> None:
        self._record(command)

    @command_handler
    def handle_throw_exception_command(self, command: ThrowExceptionCommand) -> None:
        self._record(command)
        raise TestCommandHandlerError("This is a triggered exception.")

    @command_handler()
    async def handle_cancellable_test_command(
        self, command: CancellableTestCommand, cancellation: CancellationToken
    ) -> None:
        if cancellation is None:
            raise TestCommandHandlerError("Cancellation token is None. Check registration.")
        self.received_tokens.append(cancellation)
        self._record(command)

    @command_handler
    async def handle_non_cancellable_test_command(self, command: NonCancellableTestCommand) -> None:
        self._record(command)

    @command_handler
    async def handle_delay_command(self, command: DelayCommand, cancellation: CancellationToken) -> None:
        await cancellation.sleep(command.delay_seconds)
        self._record(command)

    @command_handler
    async def handle_non_cancellable_delay_command(self, command: NonCancellableDelayCommand) -> None:
        await asyncio.sleep(command.delay_seconds)
        self._record(command)

    def not_a_handler(self, command: TestCommand) -> None:
        self._record(command)


class PlainClass:
    """Class without handlers; module scans must skip it."""

    def handle(self, command: TestCommand) -> None:
        pass
