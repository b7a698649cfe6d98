"""
Search Routes

Collection search over the configured searchable fields. The same search is
exposed as GET (query parameters) and POST (JSON body); both share one
handler after parameter extraction.
"""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, status

from .models import SearchBody, SearchMeta, SearchResponse
from .dependencies import enforce_rate_limit, get_search_planner
from ..core.rate_limiter import RateLimitDecision
from ..search.planner import SearchPlanner
from ..search.validation import build_search_request, validate_collection

router = APIRouter(prefix="/search", tags=["search"])


async def _run_search(
    collection: str,
    planner: SearchPlanner,
    search_value: Any,
    limit: Any,
    case_sensitive: Any,
    sort_by: Any,
    direction: Any,
) -> SearchResponse:
    config = planner.config
    validate_collection(collection, config)

    request = build_search_request(
        collection,
        config,
        search_value=search_value,
        limit=limit,
        case_sensitive=case_sensitive,
        sort_by=sort_by,
        direction=direction,
    )

    # The global handlers map SearchError subclasses to their responses.
    outcome = await planner.search(request)

    return SearchResponse(
        data=outcome.matches,
        meta=SearchMeta(
            total_results=outcome.total_results,
            search_collection=collection,
            search_value=request.search_value,
            search_fields=list(config.searchable_fields),
            return_fields=list(config.return_fields) or None,
            sort_by=request.sort_by,
            direction=request.direction,
            strategy=outcome.strategy,
        ),
    )


@router.get(
    "/{collection}",
    response_model=SearchResponse,
    response_model_by_alias=True,
    summary="Search a collection (query parameters)",
    status_code=status.HTTP_200_OK,
)
async def search_get(
    collection: str,
    _rate_limit: Annotated[RateLimitDecision, Depends(enforce_rate_limit)],
    planner: Annotated[SearchPlanner, Depends(get_search_planner)],
    search_value: Annotated[Optional[str], Query(alias="searchValue")] = None,
    limit: Annotated[Optional[str], Query()] = None,
    case_sensitive: Annotated[Optional[str], Query(alias="caseSensitive")] = None,
    sort_by: Annotated[Optional[str], Query(alias="sortBy")] = None,
    direction: Annotated[Optional[str], Query()] = None,
) -> SearchResponse:
    """
    Search `collection` for `searchValue`.

    Parameters
    ----------
    searchValue : str
        Text to look for in the configured searchable fields.
    limit : int
        Maximum number of results; clamped to [1, MAX_SEARCH_LIMIT].
    caseSensitive : bool
        Defaults to ENABLE_CASE_SENSITIVE_SEARCH.
    sortBy : str
        Dot-path of the field to sort results by.
    direction : str
        asc, desc, ascending or descending.
    """
    return await _run_search(
        collection, planner, search_value, limit, case_sensitive, sort_by, direction
    )


@router.post(
    "/{collection}",
    response_model=SearchResponse,
    response_model_by_alias=True,
    summary="Search a collection (JSON body)",
    status_code=status.HTTP_200_OK,
)
async def search_post(
    collection: str,
    body: SearchBody,
    _rate_limit: Annotated[RateLimitDecision, Depends(enforce_rate_limit)],
    planner: Annotated[SearchPlanner, Depends(get_search_planner)],
) -> SearchResponse:
    """
    Same as the GET search, with parameters taken from the JSON body.
    """
    return await _run_search(
        collection,
        planner,
        body.search_value,
        body.limit,
        body.case_sensitive,
        body.sort_by,
        body.direction,
    )
