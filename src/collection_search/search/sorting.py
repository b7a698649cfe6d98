"""
Result Sorting

Type-aware ordering of matched documents on their raw (pre-normalization)
field values. Missing and null values always sort last, whatever the
direction.
"""

from __future__ import annotations

import math
from functools import cmp_to_key
from typing import Any, List, Sequence

from .fields import get_field, to_search_text
from .models import DESCENDING, MatchCandidate
from .normalize import instant_to_millis, is_instant


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _three_way(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def compare_values(a: Any, b: Any, direction: str = "asc") -> int:
    """
    Compare two raw values, returning -1, 0 or 1.

    Strings compare trimmed and case-insensitively, numbers numerically,
    instants chronologically, and anything else by its lowercased string
    projection. NaN sorts with the nulls. `direction` only flips non-null
    comparisons.
    """
    if _is_nan(a):
        a = None
    if _is_nan(b):
        b = None

    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1

    if isinstance(a, str) and isinstance(b, str):
        result = _three_way(a.strip().lower(), b.strip().lower())
    elif _is_number(a) and _is_number(b):
        result = _three_way(a, b)
    elif is_instant(a) and is_instant(b):
        result = _three_way(instant_to_millis(a), instant_to_millis(b))
    else:
        result = _three_way(
            to_search_text(a).strip().lower(),
            to_search_text(b).strip().lower(),
        )

    if direction.lower() in (DESCENDING, "descending"):
        return -result
    return result


def sort_candidates(
    candidates: Sequence[MatchCandidate],
    sort_by: str,
    direction: str = "asc",
) -> List[MatchCandidate]:
    """Stable sort of candidates by the raw value at `sort_by`."""

    def _compare(left: MatchCandidate, right: MatchCandidate) -> int:
        return compare_values(
            get_field(left.raw_fields, sort_by),
            get_field(right.raw_fields, sort_by),
            direction,
        )

    return sorted(candidates, key=cmp_to_key(_compare))
