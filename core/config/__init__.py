"""
Runtime Configuration Module

Provides configuration loading and management for the sealed message registry.
"""

from .runtime import (
    ClientConfig,
    RegistryConfig,
    RuntimeConfig,
    StoreConfig,
    TreeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "ClientConfig",
    "RegistryConfig",
    "RuntimeConfig",
    "StoreConfig",
    "TreeConfig",
    "get_default_config",
    "set_default_config",
]
