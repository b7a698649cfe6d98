"""
Search Planner

Runs one search request against a document store.

Pipeline
--------
1. Select a retrieval strategy
   - optimized: a prefix range scan on the first searchable field, only for
     exact, case-sensitive searches of 3+ characters
   - bounded: a capped scan of the collection in store order
2. Match candidates until `limit` matches are found
3. Sort matches on raw field values when `sort_by` is set
4. If the optimized scan matched nothing, run one bounded fallback scan
5. Project configured return fields
6. Normalize output values

A failed range scan downgrades to the bounded scan. Failures of the bounded
or fallback scans propagate as `StoreError`.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from ..core.errors import ConfigurationError, StoreError
from .fields import get_field, set_field, to_search_text
from .matcher import matches
from .models import Document, MatchCandidate, SearchConfig, SearchOutcome, SearchRequest
from .normalize import normalize
from .sorting import sort_candidates
from .store import DocumentStore

logger = logging.getLogger("search.planner")

OPTIMIZED_MIN_LENGTH = 3
OPTIMIZED_FETCH_FACTOR = 2
BOUNDED_FETCH_FACTOR = 5
BOUNDED_FETCH_CAP = 500
FALLBACK_FETCH_FACTOR = 3
FALLBACK_FETCH_CAP = 100

STRATEGY_OPTIMIZED = "optimized"
STRATEGY_BOUNDED = "bounded"
STRATEGY_FALLBACK = "fallback"


# ---------------------------------------------------------------------
# Range Scan Result
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class ScanOk:
    documents: List[Document]


@dataclass(frozen=True)
class ScanFailed:
    error: Exception


ScanResult = Union[ScanOk, ScanFailed]


def prefix_upper_bound(value: str) -> str:
    """Exclusive upper bound of all strings starting with `value`."""
    return value[:-1] + chr(ord(value[-1]) + 1)


def uses_optimized_scan(request: SearchRequest, config: SearchConfig) -> bool:
    """
    Range bounds are byte-exact, so they cannot express case-insensitive or
    typo-tolerant prefixes.
    """
    return (
        not config.fuzzy_enabled
        and request.case_sensitive
        and len(request.search_value) >= OPTIMIZED_MIN_LENGTH
    )


# ---------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------

class SearchPlanner:
    """
    Stateless search executor bound to one store and one configuration.
    Safe to share across concurrent requests.
    """

    def __init__(self, store: DocumentStore, config: SearchConfig) -> None:
        self._store = store
        self._config = config

    @property
    def config(self) -> SearchConfig:
        return self._config

    async def search(self, request: SearchRequest) -> SearchOutcome:
        """
        Execute `request` and return normalized matches.

        Raises
        ------
        ConfigurationError
            If no searchable fields are configured.
        StoreError
            If the bounded or fallback scan fails.
        """
        if not self._config.searchable_fields:
            raise ConfigurationError(
                "SEARCHABLE_FIELDS is required and must contain at least one field"
            )

        started = time.monotonic()
        logger.info(
            "Searching %s for %r (case_sensitive=%s, fuzzy=%s, fields=%s)",
            request.collection,
            request.search_value,
            request.case_sensitive,
            self._config.fuzzy_enabled,
            ", ".join(self._config.searchable_fields),
        )

        strategy = STRATEGY_BOUNDED
        documents: Optional[List[Document]] = None

        if uses_optimized_scan(request, self._config):
            result = await self._range_scan(request)
            if isinstance(result, ScanOk):
                strategy = STRATEGY_OPTIMIZED
                documents = result.documents
            else:
                logger.warning(
                    "Range query failed (%s), falling back to collection scan",
                    result.error,
                )

        if documents is None:
            documents = await self._scan(
                request,
                min(request.limit * BOUNDED_FETCH_FACTOR, BOUNDED_FETCH_CAP),
                sorted_by_store=True,
            )

        scanned = len(documents)
        candidates = self._filter(documents, request)

        if not candidates and strategy == STRATEGY_OPTIMIZED:
            logger.info("No results from optimized query, running fallback scan")
            documents = await self._scan(
                request,
                min(request.limit * FALLBACK_FETCH_FACTOR, FALLBACK_FETCH_CAP),
                sorted_by_store=False,
            )
            scanned += len(documents)
            candidates = self._filter(documents, request)
            strategy = STRATEGY_FALLBACK

        if request.sort_by:
            candidates = sort_candidates(candidates, request.sort_by, request.direction)

        results = [normalize(candidate.output) for candidate in candidates]

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Search completed in %.1fms: %d results from %d documents scanned (%s)",
            elapsed_ms,
            len(results),
            scanned,
            strategy,
        )
        if elapsed_ms > self._config.slow_search_ms:
            logger.warning(
                "Slow search detected (%.0fms). Recommended: composite index on [%s, %s]",
                elapsed_ms,
                self._config.searchable_fields[0],
                request.sort_by or "__name__",
            )

        return SearchOutcome(
            matches=results,
            strategy=strategy,
            scanned=scanned,
            elapsed_ms=elapsed_ms,
        )

    # -----------------------------------------------------------------
    # Retrieval
    # -----------------------------------------------------------------

    async def _range_scan(self, request: SearchRequest) -> ScanResult:
        field = self._config.searchable_fields[0]
        try:
            documents = await self._store.range_scan(
                request.collection,
                field,
                request.search_value,
                prefix_upper_bound(request.search_value),
                request.limit * OPTIMIZED_FETCH_FACTOR,
                request.sort_hint,
            )
        except Exception as exc:
            return ScanFailed(error=exc)

        logger.debug("Range query on %s returned %d documents", field, len(documents))
        return ScanOk(documents=list(documents))

    async def _scan(
        self,
        request: SearchRequest,
        limit: int,
        sorted_by_store: bool,
    ) -> List[Document]:
        sort = request.sort_hint if sorted_by_store else None
        try:
            documents = await self._store.scan(request.collection, limit, sort)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Failed to search collection: {exc}") from exc
        return list(documents)

    # -----------------------------------------------------------------
    # Matching and Projection
    # -----------------------------------------------------------------

    def _filter(
        self,
        documents: Sequence[Document],
        request: SearchRequest,
    ) -> List[MatchCandidate]:
        candidates: List[MatchCandidate] = []
        for doc in documents:
            if len(candidates) >= request.limit:
                break
            if self._is_match(doc, request):
                candidates.append(
                    MatchCandidate(document=doc, output=self._project(doc))
                )
        return candidates

    def _is_match(self, doc: Document, request: SearchRequest) -> bool:
        for field in self._config.searchable_fields:
            value = get_field(doc.fields, field)
            if value is None:
                continue
            if matches(
                request.search_value,
                to_search_text(value),
                case_sensitive=request.case_sensitive,
                fuzzy_enabled=self._config.fuzzy_enabled,
                typo_tolerance=self._config.typo_tolerance,
            ):
                return True
        return False

    def _project(self, doc: Document) -> Dict[str, Any]:
        if not self._config.return_fields:
            output: Dict[str, Any] = {"id": doc.id}
            output.update((k, v) for k, v in doc.fields.items() if k != "id")
            return output

        output = {"id": doc.id}
        for path in self._config.return_fields:
            if path == "id":
                continue
            set_field(output, path, copy.deepcopy(get_field(doc.fields, path)))
        return output
