"""
Registry - Directory Persistence
Save and load a registry together with its record store.

Directory layout:
    manifest.json   schema version, committed root, sha256 + size per file
    registry.json   committed RegistryState and the events emitted so far
    store.json      record store leaves (see core.merkle.record_store)

Loading verifies file hashes against the manifest and refuses a store whose
root differs from the committed root.
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from core.config.runtime import RuntimeConfig, get_default_config
from core.crypto.hashing import to_hex
from core.merkle.record_store import STORE_FILE, RecordStore
from core.schemas.canonical import dumps_canonical
from core.schemas.errors import StateIOException
from core.schemas.records import RegistryEvent, RegistryState
from core.schemas.versioning import SCHEMA_VERSION, is_compatible_schema_version

from .registry import Registry


logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
REGISTRY_FILE = "registry.json"

REQUIRED_FILES = frozenset({REGISTRY_FILE, STORE_FILE})


@dataclass
class ManifestFileEntry:
    """Entry describing a single persisted file."""
    path: str
    sha256: str
    size: int  # bytes

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "sha256": self.sha256, "bytes": self.size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManifestFileEntry":
        return cls(path=data["path"], sha256=data["sha256"], size=data.get("bytes", 0))


@dataclass
class StateManifest:
    """Manifest describing a persisted registry directory."""
    schema_version: str = SCHEMA_VERSION
    storage_root: str = ""
    files: dict[str, ManifestFileEntry] = field(default_factory=dict)
    saved_at: str | None = None

    def __post_init__(self) -> None:
        if self.saved_at is None:
            self.saved_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "storage_root": self.storage_root,
            "files": {k: v.to_dict() for k, v in self.files.items()},
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StateManifest":
        return cls(
            schema_version=data["schema_version"],
            storage_root=data.get("storage_root", ""),
            files={k: ManifestFileEntry.from_dict(v) for k, v in data.get("files", {}).items()},
            saved_at=data.get("saved_at"),
        )


def compute_sha256(data: bytes) -> str:
    """Compute SHA-256 hex digest of data."""
    return hashlib.sha256(data).hexdigest()


def _write_file(path: Path, content: str) -> ManifestFileEntry:
    data = content.encode("utf-8")
    path.write_bytes(data)
    return ManifestFileEntry(path=path.name, sha256=compute_sha256(data), size=len(data))


def _read_json(path: Path, expected: ManifestFileEntry | None) -> Any:
    if not path.exists():
        raise StateIOException(f"Required file missing: {path.name}", path=str(path))
    data = path.read_bytes()
    if expected is not None:
        actual = compute_sha256(data)
        if actual != expected.sha256:
            raise StateIOException(
                f"Hash mismatch for {path.name}: expected {expected.sha256}, got {actual}",
                path=str(path),
            )
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StateIOException(f"Invalid JSON in {path.name}: {e}", path=str(path)) from e


def save_registry_dir(
    registry: Registry,
    store: RecordStore,
    out_dir: str | Path,
) -> Path:
    """
    Persist `registry` and `store` into `out_dir`.

    Returns:
        Path of the written manifest
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    manifest = StateManifest(storage_root=to_hex(registry.storage_root))

    registry_payload = {
        "state": registry.state,
        "events": registry.events,
    }
    manifest.files[REGISTRY_FILE] = _write_file(out / REGISTRY_FILE, dumps_canonical(registry_payload))
    manifest.files[STORE_FILE] = _write_file(out / STORE_FILE, dumps_canonical(store.to_dict()))

    manifest_path = out / MANIFEST_FILE
    manifest_path.write_text(json.dumps(manifest.to_dict(), indent=2), encoding="utf-8")
    logger.info(f"Saved registry state to {out}")
    return manifest_path


def load_registry_dir(
    in_dir: str | Path,
    config: Optional[RuntimeConfig] = None,
    *,
    verify_hashes: bool = True,
) -> tuple[Registry, RecordStore]:
    """
    Load a registry and its record store from `in_dir`.

    Raises:
        StateIOException: If files are missing, altered, malformed, or the
            store does not match the committed root
    """
    path = Path(in_dir)
    if not path.is_dir():
        raise StateIOException(f"Not a directory: {path}", path=str(path))

    manifest_data = _read_json(path / MANIFEST_FILE, None)
    try:
        manifest = StateManifest.from_dict(manifest_data)
    except (KeyError, TypeError) as e:
        raise StateIOException(f"Malformed manifest: {e}", path=str(path)) from e
    if not is_compatible_schema_version(manifest.schema_version):
        raise StateIOException(f"Incompatible schema version: {manifest.schema_version}")

    missing = REQUIRED_FILES - set(manifest.files)
    if missing:
        raise StateIOException(f"Manifest does not list: {sorted(missing)}", path=str(path))

    registry_data = _read_json(
        path / REGISTRY_FILE, manifest.files[REGISTRY_FILE] if verify_hashes else None
    )
    store_data = _read_json(
        path / STORE_FILE, manifest.files[STORE_FILE] if verify_hashes else None
    )

    try:
        state = RegistryState.model_validate(registry_data["state"])
        events = [RegistryEvent.model_validate(e) for e in registry_data.get("events", [])]
    except (KeyError, TypeError, ValueError) as e:
        raise StateIOException(f"Malformed registry state: {e}", path=str(path)) from e

    store = RecordStore.from_dict(store_data)

    config = config or get_default_config()
    if store.height != config.tree.height:
        raise StateIOException(
            f"Stored tree height {store.height} does not match configured height "
            f"{config.tree.height}",
            path=str(path),
        )
    if state.initiated and store.get_root() != state.storage_root:
        raise StateIOException(
            "Record store is out of sync with the committed root",
            path=str(path),
            details={
                "store_root": to_hex(store.get_root()),
                "storage_root": to_hex(state.storage_root),
            },
        )

    registry = Registry(config=config, state=state, events=events)
    logger.debug(f"Loaded registry from {path}: {state.num_of_addresses} addresses")
    return registry, store


__all__ = [
    "MANIFEST_FILE",
    "REGISTRY_FILE",
    "ManifestFileEntry",
    "StateManifest",
    "compute_sha256",
    "save_registry_dir",
    "load_registry_dir",
]
