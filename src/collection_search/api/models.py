"""
API Models

Pydantic models for the search endpoint's request body and response
envelope. JSON keys are camelCase on the wire.

Request fields are deliberately loose (`Any`): type and format checks
happen in `search.validation` so that every bad input maps to the same
VALIDATION_ERROR envelope instead of a framework 422.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------

class SearchBody(BaseModel):
    """
    POST body for a collection search.
    """
    search_value: Any = None
    limit: Any = None
    case_sensitive: Any = None
    sort_by: Any = None
    direction: Any = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------

class SearchMeta(BaseModel):
    """
    Echo of the request and the configuration that served it.
    """
    total_results: int = Field(..., ge=0)
    search_collection: str
    search_value: str
    search_fields: List[str]
    return_fields: Optional[List[str]] = None
    sort_by: Optional[str] = None
    direction: Optional[str] = None
    strategy: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class SearchResponse(BaseModel):
    """
    Successful search envelope.
    """
    success: bool = True
    data: List[Dict[str, Any]] = Field(default_factory=list)
    meta: SearchMeta

    model_config = ConfigDict(extra="forbid")
