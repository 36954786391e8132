"""Tolerant coercion helpers for loosely-typed YAML payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def as_str_list(value: Any) -> List[str]:
    """Coerce a scalar or sequence into a list of strings, dropping non-scalars."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [as_str(item) for item in value if as_str(item) is not None]  # type: ignore[misc]
    return []


def as_dict_list(value: Any) -> List[Dict[str, Any]]:
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [item for item in value if isinstance(item, dict)]
    return []


def split_csv(value: str | None) -> List[str]:
    """Split a comma-separated option into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


__all__ = [
    "as_bool",
    "as_dict",
    "as_dict_list",
    "as_int",
    "as_str",
    "as_str_list",
    "split_csv",
]
