"""
Configuration for handler discovery.

This module provides:
- DiscoveryConfig: Options controlling which methods and modules are scanned
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DiscoveryConfig:
    """
    Configuration for handler discovery.

    Attributes:
        include_inherited: Also scan marked methods inherited from base
            classes. By default only methods declared on the scanned class
            itself are considered; with inheritance enabled the most-derived
            definition of each method name wins.
        include_submodules: When scanning a package, import and scan its
            submodules recursively as well.
        include_private: Scan methods whose names start with a single
            underscore. Dunder methods are never scanned.

    Example:
        >>> config = DiscoveryConfig(include_inherited=True)
        >>> descriptors = discover_type(OrderHandlers, factory, config=config)
    """

    include_inherited: bool = False
    include_submodules: bool = False
    include_private: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in ("include_inherited", "include_submodules", "include_private"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool, got {type(getattr(self, name)).__name__}")


DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()


__all__ = [
    "DiscoveryConfig",
    "DEFAULT_DISCOVERY_CONFIG",
]
