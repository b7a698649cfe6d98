"""
Dot-Path Field Access

Reads and writes nested document values addressed by paths such as
``profile.address.city``. Reads never fail on missing segments; they
return None instead.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, MutableMapping
from typing import Any

from .normalize import normalize


def get_field(doc: Any, path: str) -> Any:
    """
    Return the value at `path`, or None if any segment is absent.

    Digit segments index into lists, so ``tags.0`` reads the first tag.
    """
    current = doc
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None

        if current is None:
            return None

    return current


def set_field(doc: MutableMapping, path: str, value: Any) -> None:
    """
    Assign `value` at `path`, creating intermediate mappings as needed.

    A non-mapping intermediate value is replaced by an empty mapping.
    """
    *parents, leaf = path.split(".")

    target = doc
    for key in parents:
        child = target.get(key)
        if not isinstance(child, MutableMapping):
            child = {}
            target[key] = child
        target = child

    target[leaf] = value


def to_search_text(value: Any) -> str:
    """
    String projection of a raw value, used for matching and mixed-type sorting.

    Timestamps and references are normalized first so that a search for
    ``2025-02-09`` finds a timestamp field.
    """
    value = normalize(value)

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join("" if item is None else to_search_text(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)
