"""
Shared test fixtures for the commandstack library.

This module provides reusable test fixtures including:
- Test command types (TestCommand, DelayCommand, ...)
- Test handler classes recording what they handled

Usage:
    from tests.fixtures import (
        TestCommand,
        TestAttributedCommandHandler,
    )
"""

from tests.fixtures.commands import (
    CancellableTestCommand,
    Command,
    DelayCommand,
    NonCancellableDelayCommand,
    NonCancellableTestCommand,
    TestCommand,
    ThrowExceptionCommand,
    UnhandledCommand,
)
from tests.fixtures.handlers import (
    PlainClass,
    TestAttributedCommandHandler,
    TestCommandHandler,
    TestCommandHandlerError,
)

__all__ = [
    # Commands
    "CancellableTestCommand",
    "Command",
    "DelayCommand",
    "NonCancellableDelayCommand",
    "NonCancellableTestCommand",
    "TestCommand",
    "ThrowExceptionCommand",
    "UnhandledCommand",
    # Handlers
    "PlainClass",
    "TestAttributedCommandHandler",
    "TestCommandHandler",
    "TestCommandHandlerError",
]
