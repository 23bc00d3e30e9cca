"""
Standard span attributes for commandstack.

Attribute names used on handler invocation spans. They follow OpenTelemetry
naming conventions (dot-separated, library-prefixed).

Example:
    >>> from commandstack.observability.attributes import ATTR_HANDLER_NAME
    >>>
    >>> with tracer.span(
    ...     "commandstack.handler.invoke",
    ...     {ATTR_HANDLER_NAME: "OrderHandlers.create"},
    ... ):
    ...     pass
"""

# =============================================================================
# Handler Attributes
# =============================================================================

ATTR_HANDLER_NAME = "commandstack.handler.name"
"""Qualified handler name (e.g., 'OrderHandlers.create')."""

ATTR_HANDLER_SHAPE = "commandstack.handler.shape"
"""Handler shape: 'sync', 'async' or 'async_cancellable'."""

ATTR_DECLARING_TYPE = "commandstack.handler.declaring_type"
"""Name of the class declaring the handler method."""

ATTR_HANDLER_SUCCESS = "commandstack.handler.success"
"""Whether the handler completed without raising (boolean)."""

# =============================================================================
# Message Attributes
# =============================================================================

ATTR_MESSAGE_TYPE = "commandstack.message.type"
"""Name of the message class being handled."""

ATTR_CANCELLATION_REQUESTED = "commandstack.cancellation.requested"
"""Whether the caller's token was already cancelled at invocation (boolean)."""

# =============================================================================
# Error Attributes
# =============================================================================

ATTR_ERROR_TYPE = "error.type"
"""Exception class name when the invocation failed (OTEL semantic)."""


__all__ = [
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_SHAPE",
    "ATTR_DECLARING_TYPE",
    "ATTR_HANDLER_SUCCESS",
    "ATTR_MESSAGE_TYPE",
    "ATTR_CANCELLATION_REQUESTED",
    "ATTR_ERROR_TYPE",
]
