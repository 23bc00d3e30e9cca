"""
Shared pytest fixtures for the commandstack library tests.

This module provides:
- Handler fixtures (command_handler_instance, handler_descriptors)
- Registration fixtures (registration)
- Tracing fixtures (mock_tracer)

All fixtures are function scoped so that recorded state never leaks between
tests.
"""

import pytest

from commandstack import (
    CommandHandlerMethod,
    SingleMessageHandlerRegistration,
    discover_type,
)
from commandstack.observability import MockTracer
from tests.fixtures import TestAttributedCommandHandler


@pytest.fixture
def command_handler_instance() -> TestAttributedCommandHandler:
    """A fresh handler instance that records handled commands."""
    return TestAttributedCommandHandler()


@pytest.fixture
def handler_descriptors(
    command_handler_instance: TestAttributedCommandHandler,
) -> dict[type, CommandHandlerMethod]:
    """Descriptors of TestAttributedCommandHandler keyed by message type."""
    descriptors = discover_type(TestAttributedCommandHandler, lambda: command_handler_instance)
    return {d.message_type: d for d in descriptors}


@pytest.fixture
def registration() -> SingleMessageHandlerRegistration:
    """An empty single-handler registration."""
    return SingleMessageHandlerRegistration()


@pytest.fixture
def mock_tracer() -> MockTracer:
    """A tracer recording span names and attributes."""
    return MockTracer()
