"""Dotted-path access to staged character data.

Wizard steps address staged values with strings such as
``"progression.classes[0].levels"``. This module is a thin adapter over the
typed staged model:

- reads walk the live models, mappings and lists;
- writes on a model rebuild the addressed top-level field from plain data
  and assign it back, so pydantic validates the whole field and a rejected
  write leaves the model untouched.

Missing intermediate mappings and list slots are created on write.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dnd_progression.core.exceptions import SessionError


_SEGMENT = re.compile(r"^([^.\[\]]+)(?:\[(\d+)\])?$")

Segment = tuple[str, int | None]


def parse_path(path: str) -> list[Segment]:
    """Split a path into ``(key, index)`` segments.

    Raises:
        SessionError: If the path is empty or a segment is malformed.
    """
    if not path or not path.strip():
        raise SessionError("Path must not be empty", path=path)

    segments: list[Segment] = []
    for part in path.split("."):
        match = _SEGMENT.match(part)
        if match is None:
            raise SessionError("Malformed path segment", path=path, details={"segment": part})
        key, index = match.groups()
        segments.append((key, int(index) if index is not None else None))
    return segments


# =============================================================================
# Read
# =============================================================================


def get_path(root: Any, path: str) -> Any:
    """Read the value at ``path``, or None when any step is missing."""
    current = root
    for key, index in parse_path(path):
        if current is None:
            return None
        current = _lookup(current, key)
        if index is not None:
            current = _item(current, index)
    return current


def _lookup(obj: Any, key: str) -> Any:
    if isinstance(obj, BaseModel):
        model = type(obj)
        if key in model.model_fields or key in model.model_computed_fields:
            return getattr(obj, key)
        return None
    if isinstance(obj, Mapping):
        if key in obj:
            return obj[key]
        if key.isdigit() and int(key) in obj:
            return obj[int(key)]
        return None
    if isinstance(obj, list) and key.isdigit():
        return _item(obj, int(key))
    return None


def _item(obj: Any, index: int) -> Any:
    if isinstance(obj, list) and index < len(obj):
        return obj[index]
    return None


# =============================================================================
# Write
# =============================================================================


def set_path(root: Any, path: str, value: Any) -> None:
    """Write ``value`` at ``path``, creating missing intermediates.

    Raises:
        SessionError: If the path is malformed, crosses a non-container
            value, or the result fails model validation.
    """
    segments = parse_path(path)

    if not isinstance(root, BaseModel):
        _set_plain(root, segments, value, path)
        return

    field, index = segments[0]
    if field not in type(root).model_fields:
        raise SessionError("Unknown staged field", path=path, details={"field": field})

    if len(segments) == 1 and index is None:
        _assign(root, field, value, path)
        return

    current = getattr(root, field)
    plain = current.model_dump() if isinstance(current, BaseModel) else copy.deepcopy(current)
    holder: dict[str, Any] = {field: plain}
    _set_plain(holder, segments, value, path)
    _assign(root, field, holder[field], path)


def _assign(model: BaseModel, field: str, value: Any, path: str) -> None:
    try:
        setattr(model, field, value)
    except PydanticValidationError as exc:
        raise SessionError(
            f"Invalid value for staged path: {exc.errors()[0]['msg']}",
            path=path,
            details={"error_count": exc.error_count()},
        ) from exc


def _set_plain(container: Any, segments: list[Segment], value: Any, path: str) -> None:
    current = container
    for key, index in segments[:-1]:
        current = _vivify(current, key, index, path)

    key, index = segments[-1]
    if index is None:
        _put(current, key, value, path)
    else:
        items = _ensure_list(current, key, path)
        _grow(items, index)
        items[index] = value


def _vivify(current: Any, key: str, index: int | None, path: str) -> Any:
    if index is None:
        child = _lookup(current, key)
        if child is None:
            child = {}
            _put(current, key, child, path)
        return child

    items = _ensure_list(current, key, path)
    _grow(items, index)
    if items[index] is None:
        items[index] = {}
    return items[index]


def _ensure_list(current: Any, key: str, path: str) -> list[Any]:
    items = _lookup(current, key)
    if not isinstance(items, list):
        items = []
        _put(current, key, items, path)
    return items


def _grow(items: list[Any], index: int) -> None:
    if index >= len(items):
        items.extend([None] * (index + 1 - len(items)))


def _put(current: Any, key: str, value: Any, path: str) -> None:
    if isinstance(current, dict):
        if key not in current and key.isdigit() and int(key) in current:
            current[int(key)] = value
        else:
            current[key] = value
        return
    if isinstance(current, list) and key.isdigit():
        _grow(current, int(key))
        current[int(key)] = value
        return
    raise SessionError(
        "Cannot traverse a non-container value",
        path=path,
        details={"segment": key, "found": type(current).__name__},
    )


__all__ = [
    "parse_path",
    "get_path",
    "set_path",
]
