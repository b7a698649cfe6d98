"""
Output Normalization

Converts store-specific value shapes into plain JSON values:

- timestamp-like values (seconds + nanoseconds) and datetimes become
  ISO-8601 UTC strings with millisecond precision, e.g.
  ``2025-02-09T14:48:13.753Z``
- reference-like values (a path made of segments) become ``a/b/c``
- lists and mappings are walked recursively
- everything else passes through unchanged

Detection order matters because adversarial input can satisfy more than one
shape: timestamp first, then reference, then generic containers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_KEYS = (("seconds", "nanoseconds"), ("_seconds", "_nanoseconds"))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)


def _timestamp_parts(value: Any) -> Optional[tuple]:
    if isinstance(value, Mapping):
        for seconds_key, nanos_key in _TIMESTAMP_KEYS:
            if seconds_key in value and nanos_key in value:
                seconds, nanos = value[seconds_key], value[nanos_key]
                if _is_finite_number(seconds) and _is_finite_number(nanos):
                    return seconds, nanos
        return None

    for seconds_key, nanos_key in _TIMESTAMP_KEYS:
        seconds = getattr(value, seconds_key, None)
        nanos = getattr(value, nanos_key, None)
        if _is_finite_number(seconds) and _is_finite_number(nanos):
            return seconds, nanos
    return None


def _path_segments(value: Any) -> Optional[Sequence[str]]:
    path = value.get("_path") if isinstance(value, Mapping) else getattr(value, "_path", None)
    if path is None:
        return None

    segments = path.get("segments") if isinstance(path, Mapping) else getattr(path, "segments", None)
    if isinstance(segments, (list, tuple)) and all(isinstance(s, str) for s in segments):
        return segments
    return None


def has_seconds_and_nanos(value: Any) -> bool:
    """True for timestamp-like values carrying seconds and nanoseconds."""
    return _timestamp_parts(value) is not None


def has_path_segments(value: Any) -> bool:
    """True for reference-like values carrying an ordered list of path segments."""
    return _path_segments(value) is not None


def is_instant(value: Any) -> bool:
    return isinstance(value, datetime) or has_seconds_and_nanos(value)


def instant_to_millis(value: Any) -> int:
    """
    Epoch milliseconds of a datetime or timestamp-like value.

    Sub-millisecond precision is truncated toward zero.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - EPOCH
        return math.trunc(delta / timedelta(milliseconds=1))

    seconds, nanos = _timestamp_parts(value)
    return math.trunc(seconds * 1000 + nanos / 1_000_000)


def format_iso_millis(millis: int) -> str:
    """Render epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    dt = EPOCH + timedelta(milliseconds=millis)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        f".{dt.microsecond // 1000:03d}Z"
    )


def normalize(value: Any) -> Any:
    """
    Recursively convert a raw stored value into clean JSON output.

    Pure and idempotent: outputs only contain strings, numbers, booleans,
    None, lists and dicts. Never raises; timestamps that cannot be
    represented as a calendar date come back as plain mappings.
    """
    if value is None:
        return None

    if is_instant(value):
        try:
            return format_iso_millis(instant_to_millis(value))
        except OverflowError:
            # Outside the datetime range: keep the raw shape
            pass

    segments = _path_segments(value)
    if segments is not None:
        return "/".join(segments)

    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]

    if isinstance(value, Mapping):
        return {key: normalize(item) for key, item in value.items()}

    return value
