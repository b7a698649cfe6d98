"""
Request Validation

Turns loosely typed transport parameters into an immutable `SearchRequest`.
Checks run in a fixed order: configuration, search value, sort field,
direction. The first failure wins.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from ..core.errors import ConfigurationError, InvalidCollectionError, SearchValidationError
from .models import ASCENDING, DIRECTION_ALIASES, SearchConfig, SearchRequest

COLLECTION_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SORT_FIELD_PATTERN = re.compile(r"^[a-zA-Z0-9_.]+$")
LEADING_INTEGER_PATTERN = re.compile(r"^\s*([+-]?\d+)")

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def validate_collection(collection: Optional[str], config: SearchConfig) -> str:
    """
    Check the collection name format and the configured allow-list.

    Raises
    ------
    InvalidCollectionError
    """
    if not collection or not isinstance(collection, str):
        raise InvalidCollectionError("Collection name is required in URL path (e.g., /search/products)")

    if not COLLECTION_NAME_PATTERN.match(collection):
        raise InvalidCollectionError(
            "Collection name must contain only alphanumeric characters, hyphens, and underscores"
        )

    allowed = config.searchable_collections
    if allowed and collection not in allowed:
        raise InvalidCollectionError(
            f"Collection '{collection}' is not allowed. Allowed collections: {', '.join(allowed)}"
        )

    return collection


def _leading_integer(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    match = LEADING_INTEGER_PATTERN.match(str(raw))
    return int(match.group(1)) if match else None


def parse_limit(raw: Any, config: SearchConfig) -> int:
    """
    Parse a limit, falling back to the default, clamped to [1, max_limit].

    Only the leading integer counts: ``"10.5"`` and ``"10 items"`` give 10.
    """
    value = _leading_integer(raw)
    if not value:
        value = config.default_limit
    return min(max(value, 1), config.max_limit)


def parse_bool(raw: Any, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise SearchValidationError("caseSensitive must be a boolean")


def parse_direction(raw: Any) -> str:
    if raw is None or raw == "":
        return ASCENDING
    if not isinstance(raw, str):
        raise SearchValidationError("direction must be a string")
    direction = DIRECTION_ALIASES.get(raw.lower())
    if direction is None:
        raise SearchValidationError("direction must be one of: asc, desc, ascending, descending")
    return direction


def build_search_request(
    collection: str,
    config: SearchConfig,
    search_value: Any = None,
    limit: Any = None,
    case_sensitive: Any = None,
    sort_by: Any = None,
    direction: Any = None,
) -> SearchRequest:
    """
    Validate raw request parameters against `config`.

    Raises
    ------
    ConfigurationError
        If no searchable fields are configured, regardless of the input.
    SearchValidationError
        For a missing or blank search value, a malformed sort field or an
        unknown direction.
    """
    if not config.searchable_fields:
        raise ConfigurationError(
            "Extension configuration error: SEARCHABLE_FIELDS is required and must contain at least one field"
        )

    if not search_value or not isinstance(search_value, str):
        raise SearchValidationError("searchValue is required and must be a string")

    if not search_value.strip():
        raise SearchValidationError("searchValue cannot be empty")

    if sort_by is not None and sort_by != "":
        if not isinstance(sort_by, str):
            raise SearchValidationError("sortBy must be a string")
        if not SORT_FIELD_PATTERN.match(sort_by):
            raise SearchValidationError(
                "sortBy field name must contain only alphanumeric characters, dots, and underscores"
            )
    else:
        sort_by = None

    direction = parse_direction(direction)

    return SearchRequest(
        collection=collection,
        search_value=search_value,
        limit=parse_limit(limit, config),
        case_sensitive=parse_bool(case_sensitive, config.case_sensitive_default),
        sort_by=sort_by,
        direction=direction,
    )
