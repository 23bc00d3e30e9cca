"""
Observability utilities for commandstack.

Tracing for handler invocations and the standard span attribute names.
OpenTelemetry is optional: without it every tracer created here is a
NullTracer.

Example:
    >>> from commandstack.observability import OTEL_AVAILABLE, create_tracer
    >>>
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> tracer.enabled == OTEL_AVAILABLE
    True
"""

from commandstack.observability.attributes import (
    ATTR_CANCELLATION_REQUESTED,
    ATTR_DECLARING_TYPE,
    ATTR_ERROR_TYPE,
    ATTR_HANDLER_NAME,
    ATTR_HANDLER_SHAPE,
    ATTR_HANDLER_SUCCESS,
    ATTR_MESSAGE_TYPE,
)
from commandstack.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)
from commandstack.observability.tracing import OTEL_AVAILABLE, should_trace

__all__ = [
    # Availability
    "OTEL_AVAILABLE",
    "should_trace",
    # Tracers
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "create_tracer",
    # Attributes
    "ATTR_CANCELLATION_REQUESTED",
    "ATTR_DECLARING_TYPE",
    "ATTR_ERROR_TYPE",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_SHAPE",
    "ATTR_HANDLER_SUCCESS",
    "ATTR_MESSAGE_TYPE",
]
