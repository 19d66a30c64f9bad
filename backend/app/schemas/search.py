from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.schemas.property import PropertyRecord


class SearchCriteria(BaseModel):
    location: str = ""
    max_price: int | None = None
    min_price: int | None = None
    min_equity: int | None = None
    property_type: str | None = None
    distressed_only: bool = False
    min_bedrooms: int | None = None
    quick_lists: list[str] = []
    limit: int = Field(default=1, ge=1, le=25)


class SearchRequest(SearchCriteria):
    excluded_property_ids: list[str] = []
    session_state: dict[str, Any] | None = None


class FoundProperty(BaseModel):
    property_id: str
    record: PropertyRecord
    foreclosure: dict[str, Any] | None = None


class SearchResponse(BaseModel):
    properties: list[FoundProperty]
    message: str
    session_state: dict[str, Any]
    has_more: bool
    source: str = "batchdata"
