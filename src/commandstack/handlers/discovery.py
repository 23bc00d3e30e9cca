"""
Handler discovery for classes and modules.

This module scans classes for methods marked with @command_handler and turns
each into a validated CommandHandlerMethod descriptor. Scans come in four
flavors, all ending in the same validation pipeline:

- discover_type: one class, one zero-argument instance factory
- discover_types: several classes, one ``type -> instance`` factory
- discover_module: every class defined in a module (or package)
- discover_modules: several modules

``discover`` picks the right one from the kind of target it is given.

Example:
    >>> from commandstack.handlers import discover_type, discover_module
    >>>
    >>> descriptors = discover_type(OrderHandlers, lambda: OrderHandlers(repo))
    >>>
    >>> import myapp.handlers
    >>> descriptors = discover_module(myapp.handlers, container.resolve)
"""

import functools
import importlib
import inspect
import logging
import pkgutil
from collections.abc import Callable, Iterable, Iterator
from types import ModuleType
from typing import Any

from commandstack.config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig
from commandstack.exceptions import HandlerDiscoveryError
from commandstack.handlers.decorators import is_command_handler
from commandstack.handlers.descriptor import CommandHandlerMethod, InstanceFactory

logger = logging.getLogger(__name__)

# Maps a handler class to an instance of it
TypeFactory = Callable[[type], Any]


def _require(value: Any, name: str) -> None:
    if value is None:
        raise HandlerDiscoveryError(f"Cannot discover command handlers: {name} is None")


def _require_callable(value: Any, name: str) -> None:
    _require(value, name)
    if not callable(value):
        raise HandlerDiscoveryError(
            f"Cannot discover command handlers: {name} must be callable, "
            f"got {type(value).__name__}"
        )


def find_handler_functions(
    cls: type,
    config: DiscoveryConfig | None = None,
) -> list[tuple[str, Any]]:
    """
    Find the attributes of a class that are marked with @command_handler.

    Only attributes declared on the class itself are returned unless
    ``config.include_inherited`` is set, in which case the MRO is walked and
    the most-derived attribute of each name wins (an unmarked override hides
    a marked base method).

    Marked attributes that are not functions (for example marked callable
    objects assigned as class attributes) are skipped with a warning.
    staticmethod and classmethod objects are returned so that validation can
    reject them.

    Args:
        cls: Class to inspect
        config: Discovery options

    Returns:
        List of ``(attribute name, raw attribute)`` pairs in definition order
    """
    config = config or DEFAULT_DISCOVERY_CONFIG
    owners = [k for k in cls.__mro__ if k is not object] if config.include_inherited else [cls]

    seen: set[str] = set()
    found: list[tuple[str, Any]] = []
    for owner in owners:
        for attr_name, attr in vars(owner).items():
            if attr_name in seen:
                continue
            seen.add(attr_name)

            if attr_name.startswith("__"):
                continue
            if not config.include_private and attr_name.startswith("_"):
                continue
            if not is_command_handler(attr):
                continue
            if not (inspect.isfunction(attr) or isinstance(attr, (staticmethod, classmethod))):
                logger.warning(
                    "Ignoring %s.%s: marked with @command_handler but is not a function",
                    cls.__name__,
                    attr_name,
                    extra={
                        "owner": cls.__name__,
                        "handler": attr_name,
                        "attribute_type": type(attr).__name__,
                    },
                )
                continue
            found.append((attr_name, attr))
    return found


def has_command_handlers(cls: type, config: DiscoveryConfig | None = None) -> bool:
    """
    Check if a class declares at least one method marked with @command_handler.

    Args:
        cls: Class to inspect
        config: Discovery options

    Returns:
        True if at least one marked method is found

    Raises:
        HandlerDiscoveryError: If cls is None
    """
    _require(cls, "type")
    return bool(find_handler_functions(cls, config))


def discover_type(
    cls: type,
    instance_factory: InstanceFactory,
    *,
    config: DiscoveryConfig | None = None,
) -> list[CommandHandlerMethod]:
    """
    Discover the command handlers declared on one class.

    Args:
        cls: Class to scan
        instance_factory: Zero-argument factory providing instances of cls
        config: Discovery options

    Returns:
        One descriptor per marked method; empty if there are none

    Raises:
        HandlerDiscoveryError: If cls or instance_factory is missing or invalid
        HandlerShapeError: If a marked method has an unsupported shape
    """
    _require(cls, "type")
    _require_callable(instance_factory, "instance_factory")
    if not isinstance(cls, type):
        raise HandlerDiscoveryError(
            f"Cannot discover command handlers: expected a class, got {type(cls).__name__}"
        )

    descriptors = [
        CommandHandlerMethod.from_function(cls, attr, instance_factory, name=attr_name)
        for attr_name, attr in find_handler_functions(cls, config)
    ]

    for descriptor in descriptors:
        logger.debug(
            "Discovered command handler %s for %s",
            descriptor.name,
            descriptor.message_type.__name__,
            extra={
                "owner": cls.__name__,
                "handler": descriptor.method_name,
                "message_type": descriptor.message_type.__name__,
                "is_async": descriptor.is_async,
                "supports_cancellation": descriptor.supports_cancellation,
            },
        )
    return descriptors


def discover_types(
    classes: Iterable[type],
    type_factory: TypeFactory,
    *,
    config: DiscoveryConfig | None = None,
) -> list[CommandHandlerMethod]:
    """
    Discover the command handlers declared on several classes.

    Each class gets its own zero-argument instance factory that calls
    ``type_factory(cls)`` at invocation time.

    Args:
        classes: Classes to scan
        type_factory: Callable mapping a class to an instance of it
        config: Discovery options

    Returns:
        Concatenated descriptors, in the order of ``classes``

    Raises:
        HandlerDiscoveryError: If classes or type_factory is missing
        HandlerShapeError: If a marked method has an unsupported shape
    """
    _require(classes, "types")
    _require_callable(type_factory, "type_factory")

    descriptors: list[CommandHandlerMethod] = []
    for cls in classes:
        descriptors.extend(discover_type(cls, functools.partial(type_factory, cls), config=config))
    return descriptors


def _walk_modules(module: ModuleType, include_submodules: bool) -> Iterator[ModuleType]:
    yield module
    if not include_submodules or not hasattr(module, "__path__"):
        return
    for info in pkgutil.walk_packages(module.__path__, prefix=f"{module.__name__}."):
        yield importlib.import_module(info.name)


def _nested_classes(cls: type) -> Iterator[type]:
    for value in vars(cls).values():
        if isinstance(value, type) and value.__qualname__.startswith(f"{cls.__qualname__}."):
            yield value
            yield from _nested_classes(value)


def module_classes(module: ModuleType) -> list[type]:
    """
    List the classes defined by a module, including nested classes.

    Classes imported into the module from elsewhere are excluded. A class
    bound to several names (aliases) is listed once, at its first position.

    Args:
        module: Module to inspect

    Returns:
        Classes whose ``__module__`` is the module's name
    """
    classes: list[type] = []
    for _, value in inspect.getmembers(module, inspect.isclass):
        if value.__module__ != module.__name__:
            continue
        classes.append(value)
        classes.extend(_nested_classes(value))
    return list(dict.fromkeys(classes))


def discover_module(
    module: ModuleType | str,
    type_factory: TypeFactory,
    *,
    config: DiscoveryConfig | None = None,
) -> list[CommandHandlerMethod]:
    """
    Discover the command handlers of every class defined in a module.

    Classes without marked methods contribute nothing and their factory is
    never called. With ``config.include_submodules`` the submodules of a
    package are imported and scanned too.

    Args:
        module: Module object, or its dotted name to import
        type_factory: Callable mapping a class to an instance of it
        config: Discovery options

    Returns:
        Descriptors for all marked methods found

    Raises:
        HandlerDiscoveryError: If module or type_factory is missing or invalid
        HandlerShapeError: If a marked method has an unsupported shape
    """
    _require(module, "module")
    _require_callable(type_factory, "type_factory")
    config = config or DEFAULT_DISCOVERY_CONFIG

    if isinstance(module, str):
        module = importlib.import_module(module)
    if not isinstance(module, ModuleType):
        raise HandlerDiscoveryError(
            f"Cannot discover command handlers: expected a module, got {type(module).__name__}"
        )

    descriptors: list[CommandHandlerMethod] = []
    for scanned in _walk_modules(module, config.include_submodules):
        handler_classes = [cls for cls in module_classes(scanned) if has_command_handlers(cls, config)]
        descriptors.extend(discover_types(handler_classes, type_factory, config=config))

    logger.debug(
        "Discovered %d command handler(s) in module %s",
        len(descriptors),
        module.__name__,
        extra={
            "module_name": module.__name__,
            "handler_count": len(descriptors),
        },
    )
    return descriptors


def discover_modules(
    modules: Iterable[ModuleType | str],
    type_factory: TypeFactory,
    *,
    config: DiscoveryConfig | None = None,
) -> list[CommandHandlerMethod]:
    """
    Discover the command handlers of every class defined in several modules.

    Args:
        modules: Modules (or dotted module names) to scan
        type_factory: Callable mapping a class to an instance of it
        config: Discovery options

    Returns:
        Concatenated descriptors, in the order of ``modules``

    Raises:
        HandlerDiscoveryError: If modules or type_factory is missing
        HandlerShapeError: If a marked method has an unsupported shape
    """
    _require(modules, "modules")
    _require_callable(type_factory, "type_factory")

    descriptors: list[CommandHandlerMethod] = []
    for module in modules:
        descriptors.extend(discover_module(module, type_factory, config=config))
    return descriptors


def discover(
    target: type | ModuleType | Iterable[type | ModuleType | str],
    factory: InstanceFactory | TypeFactory,
    *,
    config: DiscoveryConfig | None = None,
) -> list[CommandHandlerMethod]:
    """
    Discover command handlers in a class, a module, or a collection of them.

    For a single class, ``factory`` is a zero-argument instance factory.
    For modules and collections it maps a class to an instance of it.
    Collections may mix classes, modules and dotted module names.

    Args:
        target: Class, module, or iterable of classes and modules
        factory: Instance factory (single class) or type factory (otherwise)
        config: Discovery options

    Returns:
        Descriptors for all marked methods found

    Raises:
        HandlerDiscoveryError: If target or factory is missing or unsupported
        HandlerShapeError: If a marked method has an unsupported shape
    """
    _require(target, "target")
    _require_callable(factory, "factory")

    if isinstance(target, type):
        return discover_type(target, factory, config=config)  # type: ignore[arg-type]
    if isinstance(target, ModuleType):
        return discover_module(target, factory, config=config)  # type: ignore[arg-type]
    if isinstance(target, (str, bytes)) or not isinstance(target, Iterable):
        raise HandlerDiscoveryError(
            f"Cannot discover command handlers in {type(target).__name__}; "
            f"expected a class, a module, or an iterable of them"
        )

    descriptors: list[CommandHandlerMethod] = []
    for item in target:
        if isinstance(item, (ModuleType, str)):
            descriptors.extend(discover_module(item, factory, config=config))  # type: ignore[arg-type]
        else:
            descriptors.extend(discover_types([item], factory, config=config))  # type: ignore[arg-type, list-item]
    return descriptors


__all__ = [
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
