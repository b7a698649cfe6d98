"""
Search Domain Models

Plain data carried through one search call. None of these objects hold
references to the store or to request-scoped resources.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import Settings


ASCENDING = "asc"
DESCENDING = "desc"

DIRECTION_ALIASES = {
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}


@dataclass(frozen=True)
class Document:
    """A snapshot of one stored document."""
    id: str
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SortHint:
    """Ordering requested from the store."""
    field: str
    descending: bool = False


@dataclass(frozen=True)
class SearchConfig:
    """
    Process-wide search configuration, built once at startup.
    """
    searchable_fields: Tuple[str, ...]
    return_fields: Tuple[str, ...] = ()
    fuzzy_enabled: bool = False
    typo_tolerance: int = 4
    default_limit: int = 50
    max_limit: int = 1000
    case_sensitive_default: bool = False
    searchable_collections: Tuple[str, ...] = ()
    slow_search_ms: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchConfig":
        return cls(
            searchable_fields=tuple(settings.searchable_field_list),
            return_fields=tuple(settings.return_field_list),
            fuzzy_enabled=settings.enable_fuzzy_search,
            typo_tolerance=settings.fuzzy_search_typo_tolerance,
            default_limit=settings.default_search_limit,
            max_limit=settings.max_search_limit,
            case_sensitive_default=settings.enable_case_sensitive_search,
            searchable_collections=tuple(settings.searchable_collection_list),
            slow_search_ms=settings.slow_search_ms,
        )


@dataclass(frozen=True)
class SearchRequest:
    """A validated search request. Build through `build_search_request`."""
    collection: str
    search_value: str
    limit: int
    case_sensitive: bool = False
    sort_by: Optional[str] = None
    direction: str = ASCENDING

    @property
    def descending(self) -> bool:
        return self.direction == DESCENDING

    @property
    def sort_hint(self) -> Optional[SortHint]:
        if not self.sort_by:
            return None
        return SortHint(field=self.sort_by, descending=self.descending)


@dataclass
class MatchCandidate:
    """
    A matched document paired with its output projection.

    `raw_fields` keeps the pre-normalization values so that sorting sees
    original types rather than their display strings.
    """
    document: Document
    output: Dict[str, Any]

    @property
    def raw_fields(self) -> Mapping[str, Any]:
        return self.document.fields


@dataclass
class SearchOutcome:
    """Result of one search call."""
    matches: List[Dict[str, Any]]
    strategy: str
    scanned: int
    elapsed_ms: float = 0.0

    @property
    def total_results(self) -> int:
        return len(self.matches)
