"""
Error Kinds and Global Error Handling

This module defines the exception hierarchy raised by the search engine and
the FastAPI exception handlers that turn those exceptions into JSON responses.

Design Goals
------------
- A search call either fully succeeds or fails with exactly one error kind
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TYPE_CHECKING

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from .rate_limiter import RateLimitDecision

logger = logging.getLogger("search.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class SearchError(Exception):
    """Base class for all errors surfaced by a search call."""

    code = "INTERNAL_ERROR"
    status_code = 500


class ConfigurationError(SearchError):
    """Raised when the service configuration cannot serve searches."""

    code = "CONFIGURATION_ERROR"
    status_code = 500


class SearchValidationError(SearchError):
    """Raised when request parameters are missing or malformed."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidCollectionError(SearchError):
    """Raised when the requested collection name is malformed or not allowed."""

    code = "INVALID_COLLECTION"
    status_code = 400


class StoreError(SearchError):
    """Raised when the backing document store fails."""

    code = "STORE_ERROR"
    status_code = 500


class RateLimitExceeded(SearchError):
    """
    Raised when the sliding window for a client key is full.

    Carries the limiter decision so callers can surface reset information.
    """

    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, decision: "RateLimitDecision") -> None:
        super().__init__("Rate limit reached. Please wait before making more requests.")
        self.decision = decision

    @property
    def reset_at(self) -> Optional[float]:
        return self.decision.reset_at


# ---------------------------------------------------------------------
# Response Helpers
# ---------------------------------------------------------------------

def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def error_payload(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the standard error envelope."""
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "timestamp": _utc_now_iso(),
    }
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def rate_limit_headers(decision: "RateLimitDecision") -> Dict[str, str]:
    """
    Render a limiter decision as response headers.

    The limiter itself never formats headers; this is the transport's job.
    """
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": (
            "unlimited" if decision.remaining is None else str(decision.remaining)
        ),
        "X-RateLimit-Window": f"{decision.window_ms // 60000}min",
    }
    if decision.reset_at is not None:
        headers["X-RateLimit-Reset"] = str(math.ceil(decision.reset_at / 1000))
    if decision.current_count is not None:
        headers["X-RateLimit-Current"] = str(decision.current_count)
    return headers


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def search_error_handler(
    request: Request,
    exc: SearchError,
) -> JSONResponse:
    """
    Convert a known search error kind into its JSON response.

    Store errors keep their message out of the response body; the cause is
    logged instead.
    """
    headers: Dict[str, str] = {}
    details: Optional[Dict[str, Any]] = None
    message = str(exc)

    admitted = getattr(request.state, "rate_limit", None)
    if admitted is not None:
        headers = rate_limit_headers(admitted)

    if isinstance(exc, RateLimitExceeded):
        decision = exc.decision
        headers = rate_limit_headers(decision)
        retry_after = 0
        if decision.reset_at is not None:
            retry_after = max(0, math.ceil((decision.reset_at - time.time() * 1000) / 1000))
        details = {
            "limit": f"{decision.limit} requests per {decision.window_ms // 60000} minute(s)",
            "retryAfter": f"{retry_after} seconds",
        }
    elif isinstance(exc, StoreError):
        logger.error(
            "Store failure during request: %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        message = "Failed to search collection"
    elif isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc)
    else:
        logger.info("Rejected request %s %s: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc.code, message, details),
        headers=headers,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=error_payload("INTERNAL_ERROR", "Internal server error"),
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Map framework-level body parsing failures to VALIDATION_ERROR.

    Unknown body keys and malformed JSON end up here instead of in a 422.
    """
    problems = [
        ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        + f": {err.get('msg')}"
        for err in exc.errors()
    ]
    logger.info("Rejected request %s %s: %s", request.method, request.url.path, problems)

    return JSONResponse(
        status_code=400,
        content=error_payload(
            SearchValidationError.code,
            "Invalid request body",
            {"errors": problems},
        ),
    )
