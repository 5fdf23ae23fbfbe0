"""
Runtime Configuration

Central configuration for tree geometry, registry limits, record store
location and caller-side retry behaviour.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


ENV_PREFIX = "SEALREG_"


@dataclass
class TreeConfig:
    """Geometry of the record tree."""
    height: int = 10

    @property
    def capacity(self) -> int:
        return 1 << self.height


@dataclass
class RegistryConfig:
    """Limits enforced by the registry state machine."""
    max_addresses: int = 100


@dataclass
class StoreConfig:
    """Where the record store persists its leaves (None keeps it in memory)."""
    location: Optional[str] = None


@dataclass
class ClientConfig:
    """Caller-side behaviour around registry operations."""
    # Refresh the witness and retry this many times on a stale root
    max_retries: int = 0


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the sealed message registry.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    debug: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> "RuntimeConfig":
        """
        Check cross-field constraints.

        Raises:
            ValueError: If any limit is out of range
        """
        if not 1 <= self.tree.height <= 64:
            raise ValueError(f"tree.height must be between 1 and 64, got {self.tree.height}")
        if self.registry.max_addresses < 1:
            raise ValueError("registry.max_addresses must be positive")
        if self.registry.max_addresses > self.tree.capacity:
            raise ValueError(
                f"registry.max_addresses ({self.registry.max_addresses}) exceeds "
                f"tree capacity ({self.tree.capacity})"
            )
        if self.client.max_retries < 0:
            raise ValueError("client.max_retries cannot be negative")
        return self

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - SEALREG_TREE_HEIGHT: Record tree height
        - SEALREG_MAX_ADDRESSES: Enrollment limit
        - SEALREG_STORE_LOCATION: Directory for the record store
        - SEALREG_MAX_RETRIES: Client retries on stale witnesses
        - SEALREG_DEBUG: Enable debug mode (true/false)
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}TREE_HEIGHT"):
            overrides.setdefault("tree", {})["height"] = int(os.getenv(f"{ENV_PREFIX}TREE_HEIGHT"))
        if os.getenv(f"{ENV_PREFIX}MAX_ADDRESSES"):
            overrides.setdefault("registry", {})["max_addresses"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_ADDRESSES")
            )
        if os.getenv(f"{ENV_PREFIX}STORE_LOCATION"):
            overrides.setdefault("store", {})["location"] = os.getenv(f"{ENV_PREFIX}STORE_LOCATION")
        if os.getenv(f"{ENV_PREFIX}MAX_RETRIES"):
            overrides.setdefault("client", {})["max_retries"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_RETRIES")
            )
        if os.getenv(f"{ENV_PREFIX}DEBUG"):
            overrides["debug"] = os.getenv(f"{ENV_PREFIX}DEBUG", "false").lower() == "true"

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Create configuration from a dictionary."""
        tree_data = data.get("tree", {})
        registry_data = data.get("registry", {})
        store_data = data.get("store", {})
        client_data = data.get("client", {})

        config = cls(
            tree=TreeConfig(**tree_data) if tree_data else TreeConfig(),
            registry=RegistryConfig(**registry_data) if registry_data else RegistryConfig(),
            store=StoreConfig(**store_data) if store_data else StoreConfig(),
            client=ClientConfig(**client_data) if client_data else ClientConfig(),
            debug=bool(data.get("debug", False)),
            extra=data.get("extra", {}),
        )
        return config.validate()

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        for section in ("tree", "registry", "store", "client"):
            if section in overrides:
                target = getattr(new_config, section)
                for key, value in overrides[section].items():
                    setattr(target, key, value)

        if "debug" in overrides:
            new_config.debug = overrides["debug"]

        return new_config.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "tree": {"height": self.tree.height},
            "registry": {"max_addresses": self.registry.max_addresses},
            "store": {"location": self.store.location},
            "client": {"max_retries": self.client.max_retries},
            "debug": self.debug,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
