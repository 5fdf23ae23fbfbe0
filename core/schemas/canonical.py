"""
Schemas - Canonical JSON
File: canonical.py

Purpose: Byte-stable JSON for the files a registry directory persists.

manifest.json pins registry.json and store.json by SHA-256, so saving the
same registry twice has to yield identical bytes:
- object keys are sorted, separators carry no whitespace
- None-valued entries are dropped (absent and null mean the same thing)
- bytes (roots, digests) become 0x-prefixed lowercase hex
- ints are written exactly, however wide (field elements need 255 bits)
- NaN and infinities are refused
"""

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import CanonicalizationException

CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")

_SCALARS = (bool, int, str)


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Reduce a value to plain JSON data in canonical form.

    Args:
        value: Scalar, bytes, enum, pydantic model, or a dict/list/tuple of those
        path: Location inside the top-level object, used in error details

    Raises:
        CanonicalizationException: On non-finite floats or unsupported types
    """
    if value is None or isinstance(value, _SCALARS):
        return value

    if isinstance(value, bytes):
        return "0x" + value.hex()

    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationException(
                message=f"Non-finite float value at {path or '<root>'}: {value}",
                details={"path": path, "value": str(value)},
            )
        return value

    if isinstance(value, Enum):
        return canonicalize_value(value.value, path)

    if isinstance(value, BaseModel):
        # Field serializers (e.g. storage_root -> hex) apply in json mode
        return canonicalize_value(value.model_dump(mode="json", exclude_none=True), path)

    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if item is None:
                continue
            key = str(key)
            out[key] = canonicalize_value(item, f"{path}.{key}" if path else key)
        return out

    if isinstance(value, (list, tuple)):
        return [canonicalize_value(item, f"{path}[{i}]") for i, item in enumerate(value)]

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any) -> str:
    """
    Serialize `obj` as canonical JSON text.

    Example:
        >>> dumps_canonical({"b": 2, "a": b"\\x01"})
        '{"a":"0x01","b":2}'
    """
    data = canonicalize_value(obj)
    try:
        return json.dumps(data, sort_keys=True, separators=CANONICAL_JSON_SEPARATORS, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            message=f"JSON encoding failed: {e}",
            details={"type": type(obj).__name__},
        ) from e


def loads_canonical(text: str) -> Any:
    return json.loads(text)


def canonical_equals(left: Any, right: Any) -> bool:
    """True when both values serialize to the same canonical text."""
    try:
        return dumps_canonical(left) == dumps_canonical(right)
    except CanonicalizationException:
        return False
