from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.llm.base import LLMProvider
from app.llm.factory import get_llm_provider
from app.schemas.property import (
    PropertyCreate,
    PropertyRecord,
    PropertyResponse,
    PropertyUpdate,
    SaveLeadResponse,
)
from app.services import analysis_service, property_service
from app.utils.exceptions import (
    AnalysisError,
    PropertyNotFoundError,
    PropertyValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/properties")


@router.get("", response_model=list[PropertyResponse])
def list_properties(
    skip: int = 0,
    limit: int = 50,
    status: str | None = None,
    db: Session = Depends(get_db),
) -> list[PropertyResponse]:
    properties = property_service.list_properties(db, skip, limit, status)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.post("", response_model=PropertyResponse, status_code=201)
def create_property(
    body: PropertyCreate, db: Session = Depends(get_db)
) -> PropertyResponse:
    try:
        prop = property_service.create_property(db, body)
    except PropertyValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return PropertyResponse.model_validate(prop)


@router.get("/search", response_model=list[PropertyResponse])
def search_properties(
    q: str, db: Session = Depends(get_db)
) -> list[PropertyResponse]:
    properties = property_service.search_properties(db, q)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.post("/leads", response_model=SaveLeadResponse)
def save_lead(
    body: PropertyRecord, db: Session = Depends(get_db)
) -> SaveLeadResponse:
    """Save a parsed lead card. Incomplete leads are reported, not rejected."""
    try:
        prop = property_service.save_lead(db, body)
    except PropertyValidationError as e:
        logger.warning("Lead not saved (%s): %s", body.address or "no address", e)
        return SaveLeadResponse(saved=False, detail=str(e))
    return SaveLeadResponse(saved=True, property=PropertyResponse.model_validate(prop))


@router.get("/{property_id}", response_model=PropertyResponse)
def get_property(
    property_id: int, db: Session = Depends(get_db)
) -> PropertyResponse:
    try:
        prop = property_service.get_property(db, property_id)
        return PropertyResponse.model_validate(prop)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.patch("/{property_id}", response_model=PropertyResponse)
def update_property(
    property_id: int,
    body: PropertyUpdate,
    db: Session = Depends(get_db),
) -> PropertyResponse:
    try:
        prop = property_service.update_property(
            db, property_id, body.model_dump(exclude_unset=True)
        )
        return PropertyResponse.model_validate(prop)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/{property_id}/analyze", response_model=PropertyResponse)
async def analyze_property(
    property_id: int,
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
) -> PropertyResponse:
    try:
        prop = await analysis_service.analyze_property(db, property_id, llm)
        return PropertyResponse.model_validate(prop)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AnalysisError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
