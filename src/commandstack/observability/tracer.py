"""
Tracers used by handler adapters.

Adapters take a tracer as a constructor dependency rather than calling
OpenTelemetry themselves. Three implementations ship with the library:

- NullTracer: tracing disabled, spans are None
- OpenTelemetryTracer: real spans from the global tracer provider
- MockTracer: in-memory RecordedSpan objects for assertions in tests

Example:
    >>> from commandstack.observability import MockTracer
    >>>
    >>> tracer = MockTracer()
    >>> adapter = build_adapter(descriptor, tracer=tracer)
    >>> await adapter(CreateOrder())
    >>> tracer.spans[0].attributes[ATTR_HANDLER_SUCCESS]
    True
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from commandstack.observability.tracing import OTEL_AVAILABLE


@runtime_checkable
class Tracer(Protocol):
    """
    What an adapter needs from a tracer.

    ``span`` returns a context manager yielding an object with
    ``set_attribute(key, value)``, or None when nothing is recorded.
    ``enabled`` lets callers skip building attribute dictionaries.
    """

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]: ...

    @property
    def enabled(self) -> bool: ...


class NullTracer:
    """Tracer that records nothing. Its spans are None."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by ``opentelemetry.trace.get_tracer``.

    Args:
        tracer_name: Instrumentation scope name (typically __name__)

    Raises:
        ImportError: If the ``telemetry`` extra is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        from opentelemetry import trace

        self._tracer = trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


@dataclass
class RecordedSpan:
    """A span captured by MockTracer."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    ended: bool = False

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class MockTracer:
    """
    Tracer that keeps every span in memory.

    Spans are appended when they start, so a span whose body raised is
    still recorded (with ``ended`` set once the context exits).
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[RecordedSpan]:
        recorded = RecordedSpan(name, dict(attributes or {}))
        self.spans.append(recorded)
        try:
            yield recorded
        finally:
            recorded.ended = True

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [s.name for s in self.spans]

    def find(self, name: str) -> list[RecordedSpan]:
        """Return the recorded spans called ``name``, oldest first."""
        return [s for s in self.spans if s.name == name]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Pick a tracer for a component.

    Args:
        name: Instrumentation scope name (typically __name__)
        enable_tracing: The component's tracing switch

    Returns:
        OpenTelemetryTracer when tracing is enabled and OpenTelemetry is
        importable, NullTracer otherwise
    """
    if enable_tracing and OTEL_AVAILABLE:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "MockTracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "Tracer",
    "create_tracer",
]
