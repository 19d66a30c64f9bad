"""Tests for the BatchData client (request body, context manager, semaphore, errors).

These tests use mocked HTTP responses so they never hit the real API.
Run with:  pytest tests/test_batchdata_client.py -v
"""

from __future__ import annotations

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.schemas.search import SearchCriteria
from app.services.batchdata_client import (
    DEFAULT_MAX_CONCURRENCY,
    BatchDataAPIError,
    BatchDataClient,
    build_cash_buyer_body,
    build_search_body,
    normalize_quick_lists,
)


# ---------------------------------------------------------------------------
# Helpers / fixtures
# ---------------------------------------------------------------------------

FAKE_SEARCH_RESPONSE = {
    "results": {
        "properties": [
            {
                "_id": "bd-1",
                "address": {"street": "1 Main St", "city": "Hershey", "state": "PA", "zip": "17033"},
                "valuation": {"estimatedValue": 250000, "equityPercent": 60},
            }
        ]
    },
    "meta": {"totalResults": 1},
}


def _make_mock_response(json_data, status_code=200):
    """Create a mock httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.raise_for_status = MagicMock()
    return resp


def _mock_http(response) -> AsyncMock:
    http = AsyncMock()
    http.post = AsyncMock(return_value=response)
    return http


@pytest.fixture()
def _mock_settings():
    """Patch batchdata_client.settings with fake API credentials."""
    with patch("app.services.batchdata_client.settings") as mock_settings:
        mock_settings.batchdata_api_key = "fake-key"
        mock_settings.batchdata_base_url = "https://api.example.test/"
        mock_settings.batchdata_page_size = 50
        mock_settings.default_search_location = "17112"
        yield mock_settings


# ---------------------------------------------------------------------------
# Request body
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_mock_settings")
class TestBuildSearchBody:
    def test_minimal_body(self):
        body = build_search_body(SearchCriteria(location="Hershey, PA"))
        assert body["searchCriteria"] == {"query": "Hershey, PA"}
        assert body["options"]["skip"] == 0
        assert body["options"]["take"] == 50
        assert body["options"]["skipTrace"] is True

    def test_empty_location_uses_default(self):
        body = build_search_body(SearchCriteria())
        assert body["searchCriteria"]["query"] == "17112"

    def test_paging(self):
        body = build_search_body(SearchCriteria(location="Erie, PA"), page=3, per_page=25)
        assert body["options"]["skip"] == 50
        assert body["options"]["take"] == 25

    def test_distressed_only_adds_preforeclosure(self):
        criteria = SearchCriteria(location="Erie, PA", distressed_only=True, quick_lists=["absentee"])
        body = build_search_body(criteria)
        assert body["searchCriteria"]["quickLists"] == ["absenteeOwner", "preforeclosure"]

    def test_filters(self):
        criteria = SearchCriteria(
            location="Erie, PA",
            min_price=50000,
            max_price=200000,
            min_equity=40,
            min_bedrooms=3,
            property_type="single_family",
        )
        sc = build_search_body(criteria)["searchCriteria"]
        assert sc["valuation"] == {
            "estimatedValue": {"min": 50000, "max": 200000},
            "equityPercent": {"min": 40},
        }
        assert sc["building"] == {"bedroomCount": {"min": 3}}
        assert sc["general"] == {"propertyTypeDetail": {"inList": ["Single Family"]}}


@pytest.mark.usefixtures("_mock_settings")
class TestBuildCashBuyerBody:
    def test_cash_buyer_quick_list(self):
        body = build_cash_buyer_body("Hershey, PA")
        assert body["searchCriteria"] == {"query": "Hershey, PA", "quickLists": ["cash-buyer"]}
        assert body["options"]["skipTrace"] is True
        assert body["options"]["images"] is False

    def test_overfetches_for_qualification(self):
        assert build_cash_buyer_body("Erie, PA", limit=2)["options"]["take"] == 50
        assert build_cash_buyer_body("Erie, PA", limit=8)["options"]["take"] == 80

    def test_empty_location_uses_default(self):
        assert build_cash_buyer_body("")["searchCriteria"]["query"] == "17112"


class TestNormalizeQuickLists:
    def test_aliases_map_to_canonical_names(self):
        assert normalize_quick_lists(["absentee-owner", "high-equity", "free-and-clear"]) == [
            "absenteeOwner",
            "highEquity",
            "freeAndClear",
        ]

    def test_duplicates_and_blanks_dropped(self):
        assert normalize_quick_lists(["absentee", "absenteeOwner", "", "  ", None]) == ["absenteeOwner"]

    def test_unknown_names_pass_through(self):
        assert normalize_quick_lists(["tired-landlord"]) == ["tired-landlord"]


# ---------------------------------------------------------------------------
# BatchDataClient async context manager tests
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_mock_settings")
class TestBatchDataClientContextManager:
    """Verify the async context manager lifecycle."""

    @pytest.mark.asyncio
    async def test_context_manager_creates_shared_client(self):
        client = BatchDataClient()
        assert client._shared_http is None

        async with client as ctx:
            assert ctx is client
            assert client._shared_http is not None

        assert client._shared_http is None

    @pytest.mark.asyncio
    async def test_context_manager_closes_on_exception(self):
        client = BatchDataClient()
        with pytest.raises(RuntimeError):
            async with client:
                raise RuntimeError("boom")

        assert client._shared_http is None

    @pytest.mark.asyncio
    async def test_reentrant_aenter_raises(self):
        client = BatchDataClient()
        async with client:
            with pytest.raises(RuntimeError, match="not reentrant"):
                await client.__aenter__()

    @pytest.mark.asyncio
    async def test_search_without_context_manager(self):
        client = BatchDataClient()

        with patch("httpx.AsyncClient") as MockAsyncClient:
            mock_http = _mock_http(_make_mock_response(FAKE_SEARCH_RESPONSE))
            MockAsyncClient.return_value.__aenter__ = AsyncMock(return_value=mock_http)
            MockAsyncClient.return_value.__aexit__ = AsyncMock(return_value=None)

            properties, total = await client.search_properties(SearchCriteria(location="Hershey, PA"))

        assert total == 1
        assert properties[0]["_id"] == "bd-1"
        url = mock_http.post.call_args.args[0]
        assert url == "https://api.example.test/api/v1/property/search"
        assert mock_http.post.call_args.kwargs["headers"]["Authorization"] == "Bearer fake-key"

    @pytest.mark.asyncio
    async def test_cash_buyer_search_posts_quick_list(self):
        client = BatchDataClient()

        with patch("httpx.AsyncClient") as MockAsyncClient:
            mock_http = _mock_http(_make_mock_response(FAKE_SEARCH_RESPONSE))
            MockAsyncClient.return_value.__aenter__ = AsyncMock(return_value=mock_http)
            MockAsyncClient.return_value.__aexit__ = AsyncMock(return_value=None)

            buyers, total = await client.search_cash_buyers("Hershey, PA", limit=3)

        assert total == 1
        assert buyers[0]["_id"] == "bd-1"
        body = mock_http.post.call_args.kwargs["json"]
        assert body["searchCriteria"]["quickLists"] == ["cash-buyer"]
        assert body["options"]["take"] == 50


# ---------------------------------------------------------------------------
# Semaphore / concurrency control tests
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_mock_settings")
class TestConcurrencyControl:
    """Verify the semaphore limits concurrent requests."""

    def test_default_max_concurrency(self):
        client = BatchDataClient()
        assert client._semaphore._value == DEFAULT_MAX_CONCURRENCY

    def test_custom_max_concurrency(self):
        client = BatchDataClient(max_concurrency=2)
        assert client._semaphore._value == 2

    @pytest.mark.asyncio
    async def test_semaphore_limits_concurrency(self):
        max_concurrent = 0
        current_concurrent = 0
        lock = asyncio.Lock()

        client = BatchDataClient(max_concurrency=2)

        async def slow_search(http, body, page):
            nonlocal max_concurrent, current_concurrent
            async with lock:
                current_concurrent += 1
                max_concurrent = max(max_concurrent, current_concurrent)

            await asyncio.sleep(0.05)  # simulate network delay

            async with lock:
                current_concurrent -= 1

            return [{"_id": str(page)}], 5

        client._do_search = slow_search

        criteria = SearchCriteria(location="Hershey, PA")
        async with client:
            results = await asyncio.gather(
                *(client.search_properties(criteria, page=p) for p in range(1, 6))
            )

        assert len(results) == 5
        assert max_concurrent <= 2


# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_mock_settings")
class TestDoSearch:
    @pytest.mark.asyncio
    async def test_reads_properties_and_total(self):
        client = BatchDataClient()
        http = _mock_http(_make_mock_response(FAKE_SEARCH_RESPONSE))
        body = build_search_body(SearchCriteria(location="Hershey, PA"))

        properties, total = await client._do_search(http, body, 1)

        assert len(properties) == 1
        assert total == 1
        assert http.post.call_args.kwargs["json"] == body

    @pytest.mark.asyncio
    async def test_empty_payload(self):
        client = BatchDataClient()
        http = _mock_http(_make_mock_response({"results": None}))
        body = build_search_body(SearchCriteria(location="Hershey, PA"))

        assert await client._do_search(http, body, 1) == ([], 0)

    @pytest.mark.asyncio
    async def test_http_error_raises_api_error(self):
        client = BatchDataClient()
        request = httpx.Request("POST", "https://api.example.test/api/v1/property/search")
        error_response = httpx.Response(503, text="service unavailable", request=request)
        resp = _make_mock_response({}, status_code=503)
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503", request=request, response=error_response
        )

        with pytest.raises(BatchDataAPIError, match="returned 503"):
            await client._do_search(_mock_http(resp), build_search_body(SearchCriteria()), 1)

    @pytest.mark.asyncio
    async def test_request_error_raises_api_error(self):
        client = BatchDataClient()
        http = AsyncMock()
        http.post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(BatchDataAPIError, match="request failed"):
            await client._do_search(http, build_search_body(SearchCriteria()), 1)


# ---------------------------------------------------------------------------
# BatchDataClient init validation
# ---------------------------------------------------------------------------


class TestBatchDataClientInit:
    def test_raises_without_api_key(self):
        with patch("app.services.batchdata_client.settings") as mock_settings:
            mock_settings.batchdata_api_key = ""
            with pytest.raises(BatchDataAPIError, match="BATCHDATA_API_KEY is not configured"):
                BatchDataClient()

    def test_accepts_explicit_api_key(self):
        with patch("app.services.batchdata_client.settings") as mock_settings:
            mock_settings.batchdata_api_key = ""
            mock_settings.batchdata_base_url = "https://api.example.test"
            client = BatchDataClient(api_key="explicit-key")
            assert client._headers["Authorization"] == "Bearer explicit-key"

    @pytest.mark.usefixtures("_mock_settings")
    def test_raises_on_invalid_max_concurrency(self):
        with pytest.raises(ValueError, match="max_concurrency must be >= 1"):
            BatchDataClient(max_concurrency=0)
