from __future__ import annotations

from fastapi import APIRouter, HTTPException

from app.schemas.buyer import CashBuyerRequest, CashBuyerResponse
from app.schemas.search import SearchCriteria, SearchRequest, SearchResponse
from app.services import buyer_service, search_service
from app.services.batchdata_client import BatchDataAPIError

router = APIRouter(prefix="/search")


@router.post("", response_model=SearchResponse)
async def search_properties(body: SearchRequest) -> SearchResponse:
    """Structured property search; pass ``session_state`` back to page on."""
    criteria = SearchCriteria(**body.model_dump(include=set(SearchCriteria.model_fields)))
    try:
        return await search_service.get_next_valid_properties(
            criteria,
            session_state=body.session_state,
            excluded_property_ids=body.excluded_property_ids,
        )
    except BatchDataAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.post("/cash-buyers", response_model=CashBuyerResponse)
async def search_cash_buyers(body: CashBuyerRequest) -> CashBuyerResponse:
    try:
        return await buyer_service.find_cash_buyers(body.location, limit=body.limit)
    except BatchDataAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
