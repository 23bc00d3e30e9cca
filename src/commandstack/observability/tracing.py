"""
Detection of the optional OpenTelemetry dependency.

Installed through the ``telemetry`` extra. Everything else in
commandstack.observability reads OTEL_AVAILABLE from here.
"""

try:
    from opentelemetry import trace

    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False
    trace = None  # type: ignore[assignment]


def should_trace(enable_tracing: bool) -> bool:
    """True when a component asked for tracing and OpenTelemetry is importable."""
    return enable_tracing and OTEL_AVAILABLE


__all__ = [
    "OTEL_AVAILABLE",
    "should_trace",
]
