"""
commandstack - Convention-based command handler discovery for Python.

This library provides:
- @command_handler marker for handler methods
- Shape validation of marked methods (sync, async, async with cancellation)
- Immutable handler descriptors produced by scanning classes and modules
- Uniform async adapters: ``await adapter(message, cancellation)``
- Registration of adapters into a single-handler-per-message-type map
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("commandstack")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from commandstack.cancellation import CancellationToken
from commandstack.config import DiscoveryConfig

# Exceptions
from commandstack.exceptions import (
    CommandStackError,
    DuplicateHandlerError,
    HandlerDiscoveryError,
    HandlerNotFoundError,
    HandlerShapeError,
    InstanceResolutionError,
)

# Handlers
from commandstack.handlers import (
    CommandHandlerAdapter,
    CommandHandlerMethod,
    HandlerShape,
    build_adapter,
    command_handler,
    discover,
    discover_module,
    discover_modules,
    discover_type,
    discover_types,
    is_command_handler,
)

# Protocols
from commandstack.protocols import MessageHandler, MessageHandlerRegistration

# Registration
from commandstack.registration import (
    SingleMessageHandlerRegistration,
    register_all,
    register_command_handlers,
)

__all__ = [
    "__version__",
    # Marker
    "command_handler",
    "is_command_handler",
    # Cancellation
    "CancellationToken",
    # Configuration
    "DiscoveryConfig",
    # Descriptors and adapters
    "CommandHandlerMethod",
    "CommandHandlerAdapter",
    "HandlerShape",
    "build_adapter",
    # Discovery
    "discover",
    "discover_type",
    "discover_types",
    "discover_module",
    "discover_modules",
    # Registration
    "MessageHandler",
    "MessageHandlerRegistration",
    "SingleMessageHandlerRegistration",
    "register_all",
    "register_command_handlers",
    # Exceptions
    "CommandStackError",
    "DuplicateHandlerError",
    "HandlerDiscoveryError",
    "HandlerNotFoundError",
    "HandlerShapeError",
    "InstanceResolutionError",
]
