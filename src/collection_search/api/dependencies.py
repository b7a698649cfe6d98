from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..core.errors import RateLimitExceeded, rate_limit_headers
from ..core.rate_limiter import RateLimitDecision, RateLimiter
from ..db import SqlDocumentStore, get_async_session
from ..search.models import SearchConfig
from ..search.planner import SearchPlanner
from ..search.store import DocumentStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_search_config(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SearchConfig:
    return SearchConfig.from_settings(settings)


def get_document_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DocumentStore:
    return SqlDocumentStore(session)


def get_search_planner(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    config: Annotated[SearchConfig, Depends(get_search_config)],
) -> SearchPlanner:
    return SearchPlanner(store, config)


def get_rate_limiter(request: Request) -> RateLimiter:
    # Built once in create_app()
    return request.app.state.rate_limiter


def get_client_ip(request: Request) -> str:
    """
    Best-effort client address: proxy headers first, then the peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip") or request.headers.get("cf-connecting-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> RateLimitDecision:
    """
    Admit the caller or raise RateLimitExceeded.

    The decision is kept on request.state so error responses raised later
    in the request still carry the rate limit headers.
    """
    decision = limiter.admit(get_client_ip(request))
    request.state.rate_limit = decision

    if not decision.allowed:
        raise RateLimitExceeded(decision)

    response.headers.update(rate_limit_headers(decision))
    return decision
