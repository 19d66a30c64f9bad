from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.deal import DealCreate, DealResponse, DealUpdate
from app.services import deal_service
from app.utils.exceptions import DealNotFoundError, PropertyNotFoundError

router = APIRouter(prefix="/deals")


@router.get("", response_model=list[DealResponse])
def list_deals(
    stage: str | None = None, db: Session = Depends(get_db)
) -> list[DealResponse]:
    return [DealResponse.model_validate(d) for d in deal_service.list_deals(db, stage)]


@router.post("", response_model=DealResponse, status_code=201)
def create_deal(body: DealCreate, db: Session = Depends(get_db)) -> DealResponse:
    try:
        deal = deal_service.create_deal(db, body)
        return DealResponse.model_validate(deal)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.patch("/{deal_id}", response_model=DealResponse)
def update_deal(
    deal_id: int,
    body: DealUpdate,
    db: Session = Depends(get_db),
) -> DealResponse:
    try:
        deal = deal_service.update_deal(db, deal_id, body.model_dump(exclude_unset=True))
        return DealResponse.model_validate(deal)
    except DealNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
