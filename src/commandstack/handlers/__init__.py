"""
Handler infrastructure for command handling.

This module provides the discovery and adaptation pipeline:
- command_handler: Decorator marking handler methods for discovery
- HandlerShape: The supported handler shapes (sync / async / async + cancellation)
- CommandHandlerMethod: Immutable descriptor of a discovered handler
- CommandHandlerAdapter: Uniform async invocation of a descriptor
- discover*: Scans over classes and modules producing descriptors

Example:
    >>> from commandstack.handlers import command_handler, discover_type, build_adapter
    >>>
    >>> class OrderHandlers:
    ...     @command_handler
    ...     async def create(self, command: CreateOrder) -> None: ...
    >>>
    >>> [descriptor] = discover_type(OrderHandlers, OrderHandlers)
    >>> adapter = build_adapter(descriptor)
    >>> await adapter(CreateOrder())
"""

from commandstack.handlers.adapter import (
    CommandHandlerAdapter,
    MessageHandlerDelegate,
    build_adapter,
    resolve_instance,
)
from commandstack.handlers.decorators import command_handler, is_command_handler
from commandstack.handlers.descriptor import CommandHandlerMethod, InstanceFactory
from commandstack.handlers.discovery import (
    TypeFactory,
    discover,
    discover_module,
    discover_modules,
    discover_type,
    discover_types,
    find_handler_functions,
    has_command_handlers,
    module_classes,
)
from commandstack.handlers.shape import (
    HandlerShape,
    HandlerSignature,
    classify_handler,
    is_cancellation_annotation,
    is_reference_type,
)

__all__ = [
    # Marker
    "command_handler",
    "is_command_handler",
    # Shape validation
    "HandlerShape",
    "HandlerSignature",
    "classify_handler",
    "is_cancellation_annotation",
    "is_reference_type",
    # Descriptors
    "CommandHandlerMethod",
    "InstanceFactory",
    # Adapters
    "CommandHandlerAdapter",
    "MessageHandlerDelegate",
    "build_adapter",
    "resolve_instance",
    # Discovery
    "TypeFactory",
    "discover",
    "discover_module",
    "discover_modules",
    "discover_type",
    "discover_types",
    "find_handler_functions",
    "has_command_handlers",
    "module_classes",
]
