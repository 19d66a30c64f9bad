"""BatchData client for skip-traced property search."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Iterable
from types import TracebackType
from typing import Any

import httpx

from app.config import settings
from app.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/api/v1/property/search"

# Default maximum number of concurrent API requests
DEFAULT_MAX_CONCURRENCY = 5

# Aliases accepted from callers and the canonical quick-list names BatchData expects.
QUICK_LIST_ALIASES: dict[str, str] = {
    "out-of-state-absentee-owner": "absenteeOwner",
    "absentee-owner": "absenteeOwner",
    "absentee": "absenteeOwner",
    "absenteeOwner": "absenteeOwner",
    "high-equity": "highEquity",
    "highEquity": "highEquity",
    "not-active-listing": "not-active-listing",
    "not-pending-listing": "not-pending-listing",
    "preforeclosure": "preforeclosure",
    "vacant": "vacant",
    "cash-buyer": "cash-buyer",
    "cashbuyer": "cash-buyer",
    "free-and-clear": "freeAndClear",
    "freeAndClear": "freeAndClear",
    "inherited": "inherited",
    "corporate-owned": "corporate-owned",
    "corporateOwned": "corporate-owned",
}

CASH_BUYER_QUICK_LIST = "cash-buyer"
# Most cash-buyer records fail qualification, so fetch well past the limit.
CASH_BUYER_OVERFETCH = 10
CASH_BUYER_MIN_TAKE = 50

PROPERTY_TYPE_LABELS: dict[str, str] = {
    "single_family": "Single Family",
    "condominium": "Condominium Unit",
    "townhouse": "Townhouse",
    "multi_family": "Multi Family",
}


class BatchDataAPIError(Exception):
    """Raised when the BatchData API returns an error or is unreachable."""
    pass


def normalize_quick_lists(quick_lists: Iterable[Any]) -> list[str]:
    """Map quick-list aliases to canonical names, dropping blanks and duplicates.

    Unknown names pass through unchanged. Order of first appearance is kept.
    """
    normalized: list[str] = []
    for item in quick_lists:
        if not isinstance(item, str) or not item.strip():
            continue
        name = item.strip()
        canonical = QUICK_LIST_ALIASES.get(name, name)
        if canonical not in normalized:
            normalized.append(canonical)
    return normalized


def build_search_body(
    criteria: SearchCriteria,
    *,
    page: int = 1,
    per_page: int = 50,
) -> dict[str, Any]:
    """Build the JSON body for a BatchData property search."""
    quick_lists = list(criteria.quick_lists)
    if criteria.distressed_only:
        quick_lists.append("preforeclosure")

    search_criteria: dict[str, Any] = {
        "query": criteria.location or settings.default_search_location,
    }

    normalized = normalize_quick_lists(quick_lists)
    if normalized:
        search_criteria["quickLists"] = normalized

    if criteria.min_bedrooms is not None:
        search_criteria["building"] = {"bedroomCount": {"min": criteria.min_bedrooms}}

    valuation: dict[str, Any] = {}
    if criteria.min_price is not None or criteria.max_price is not None:
        estimated: dict[str, int] = {}
        if criteria.min_price is not None:
            estimated["min"] = criteria.min_price
        if criteria.max_price is not None:
            estimated["max"] = criteria.max_price
        valuation["estimatedValue"] = estimated
    if criteria.min_equity is not None:
        valuation["equityPercent"] = {"min": criteria.min_equity}
    if valuation:
        search_criteria["valuation"] = valuation

    if criteria.property_type:
        label = PROPERTY_TYPE_LABELS.get(criteria.property_type, criteria.property_type)
        search_criteria["general"] = {"propertyTypeDetail": {"inList": [label]}}

    return {
        "searchCriteria": search_criteria,
        "options": {
            "skip": (page - 1) * per_page,
            "take": per_page,
            "skipTrace": True,
            "includeBuilding": True,
            "includeTaxAssessor": True,
            "includePropertyDetails": True,
            "includeAssessment": True,
        },
    }


def build_cash_buyer_body(location: str, *, limit: int = 5) -> dict[str, Any]:
    """Build the JSON body for a cash-buyer quick-list search."""
    return {
        "searchCriteria": {
            "query": location or settings.default_search_location,
            "quickLists": [CASH_BUYER_QUICK_LIST],
        },
        "options": {
            "skip": 0,
            "take": max(limit * CASH_BUYER_OVERFETCH, CASH_BUYER_MIN_TAKE),
            "skipTrace": True,
            "includeBuilding": True,
            "includePropertyDetails": True,
            "includeAssessment": True,
            "images": False,
        },
    }

class BatchDataClient:
    """HTTP client for the BatchData property search API.

    Supports use as an async context manager to share a single
    ``httpx.AsyncClient`` across several page requests::

        async with BatchDataClient() as client:
            first = await client.search_properties(criteria, page=1)
            second = await client.search_properties(criteria, page=2)

    Without the context manager a fresh ``httpx.AsyncClient`` is created
    per request.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        key = api_key or settings.batchdata_api_key
        if not key:
            raise BatchDataAPIError("BATCHDATA_API_KEY is not configured")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._base_url = (base_url or settings.batchdata_base_url).rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._semaphore = asyncio.Semaphore(max_concurrency)
        # Set only while used as an async context manager
        self._shared_http: httpx.AsyncClient | None = None

    # -- async context manager -------------------------------------------------

    async def __aenter__(self) -> BatchDataClient:
        if self._shared_http is not None:
            raise RuntimeError("BatchDataClient context manager is not reentrant")
        self._shared_http = httpx.AsyncClient(timeout=30.0)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._shared_http is not None:
            await self._shared_http.aclose()
            self._shared_http = None

    # -- public API ------------------------------------------------------------

    async def search_properties(
        self,
        criteria: SearchCriteria,
        *,
        page: int = 1,
        per_page: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """Run one page of a property search.

        Returns the raw property dicts and the total result count reported
        by the API.
        """
        per_page = per_page or settings.batchdata_page_size
        body = build_search_body(criteria, page=page, per_page=per_page)
        async with self._semaphore, self._http_client() as http:
            return await self._do_search(http, body, page)

    async def search_cash_buyers(
        self,
        location: str,
        *,
        limit: int = 5,
    ) -> tuple[list[dict[str, Any]], int]:
        """Fetch properties on the cash-buyer quick list for ``location``.

        Qualification happens in the caller; this returns the raw records.
        """
        body = build_cash_buyer_body(location, limit=limit)
        async with self._semaphore, self._http_client() as http:
            return await self._do_search(http, body, 1)

    # -- internals -------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the shared HTTP client, or a temporary one-off client."""
        if self._shared_http is not None:
            yield self._shared_http
        else:
            async with httpx.AsyncClient(timeout=30.0) as http:
                yield http

    async def _do_search(
        self,
        http: httpx.AsyncClient,
        body: dict[str, Any],
        page: int,
    ) -> tuple[list[dict[str, Any]], int]:
        api_url = f"{self._base_url}{SEARCH_ENDPOINT}"
        logger.info(
            "BatchData request: query=%s quickLists=%s page=%d",
            body["searchCriteria"].get("query"),
            body["searchCriteria"].get("quickLists", []),
            page,
        )

        try:
            response = await http.post(api_url, headers=self._headers, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "BatchData HTTP error: %s (body: %s)",
                e,
                e.response.text[:500],
            )
            raise BatchDataAPIError(
                f"BatchData API returned {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error("BatchData request error: %s", e)
            raise BatchDataAPIError(f"BatchData API request failed: {e}") from e

        properties = (data.get("results") or {}).get("properties") or []
        total = (data.get("meta") or {}).get("totalResults") or 0
        logger.info(
            "BatchData returned %d properties (totalResults=%s) on page %d",
            len(properties),
            total,
            page,
        )
        return properties, total
