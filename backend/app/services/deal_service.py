from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.models.deal import Deal
from app.schemas.deal import DealCreate
from app.services.property_service import get_property
from app.utils.exceptions import DealNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def create_deal(db: Session, data: DealCreate) -> Deal:
    if data.property_id is not None:
        get_property(db, data.property_id)
    deal = Deal(**data.model_dump())
    db.add(deal)
    db.commit()
    db.refresh(deal)
    return deal


def get_deal(db: Session, deal_id: int) -> Deal:
    deal = db.query(Deal).filter(Deal.id == deal_id).first()
    if not deal:
        raise DealNotFoundError(f"Deal {deal_id} not found")
    return deal


def list_deals(db: Session, stage: str | None = None) -> list[Deal]:
    query = db.query(Deal)
    if stage:
        query = query.filter(Deal.stage == stage)
    return query.order_by(Deal.id.desc()).all()


def update_deal(db: Session, deal_id: int, updates: dict[str, Any]) -> Deal:
    deal = get_deal(db, deal_id)
    for key, value in updates.items():
        if value is not None:
            setattr(deal, key, value)
    db.commit()
    db.refresh(deal)
    return deal
