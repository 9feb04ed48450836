"""Shared JSON serialization utilities for type-safe JSON encoding."""

import base64
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, Enum):
        return True, obj.value
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, Path):
        return True, str(obj)
    if isinstance(obj, (bytes, bytearray)):
        return True, base64.b64encode(bytes(obj)).decode("ascii")
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Type-safe JSON serializer for use as ``json.dumps(default=...)``.

    Keeps proper types instead of converting everything to strings:
    - datetime/date -> ISO 8601 string
    - Enum -> value
    - Decimal -> float
    - Path -> string
    - bytes -> base64 string
    - Objects exposing ``model_dump`` (pydantic) -> their dict form
    - Everything else -> string (fallback)

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation with proper types
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    return str(obj)


def strict_json_serializer(obj: Any) -> Any:
    """
    Like :func:`json_serializer`, but without the string fallback.

    Used for request bodies, where sending the repr of an unknown object
    would silently corrupt the payload.

    Raises:
        TypeError: If the object has no JSON representation
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


__all__ = ["json_serializer", "strict_json_serializer"]
