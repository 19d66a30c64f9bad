from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_

from app.models.property import Property
from app.schemas.property import PropertyCreate, PropertyRecord
from app.utils.exceptions import PropertyNotFoundError, PropertyValidationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("address", "city", "state")


def validate_record(record: PropertyRecord) -> None:
    """Raise PropertyValidationError if the record can't be stored as a lead."""
    missing = [name for name in REQUIRED_FIELDS if not getattr(record, name).strip()]
    if missing:
        raise PropertyValidationError(missing)


def create_property(db: Session, data: PropertyCreate) -> Property:
    validate_record(data)
    prop = Property(**data.model_dump())
    db.add(prop)
    db.commit()
    db.refresh(prop)
    logger.info("Created property %s (%s, %s)", prop.id, prop.address, prop.city)
    return prop


def save_lead(db: Session, record: PropertyRecord) -> Property:
    """Store a parsed lead, reusing the existing row for the same address and owner."""
    validate_record(record)
    existing = (
        db.query(Property)
        .filter(
            Property.address == record.address,
            Property.city == record.city,
            Property.owner_name == record.owner_name,
        )
        .first()
    )
    if existing:
        logger.info("Lead %s already saved as property %s", record.address, existing.id)
        return existing
    return create_property(db, PropertyCreate(**record.model_dump()))


def get_property(db: Session, property_id: int) -> Property:
    prop = db.query(Property).filter(Property.id == property_id).first()
    if not prop:
        raise PropertyNotFoundError(f"Property {property_id} not found")
    return prop


def list_properties(
    db: Session, skip: int = 0, limit: int = 50, status: str | None = None
) -> list[Property]:
    query = db.query(Property)
    if status:
        query = query.filter(Property.status == status)
    return query.order_by(Property.created_at.desc(), Property.id.desc()).offset(skip).limit(limit).all()


def search_properties(db: Session, query: str, limit: int = 50) -> list[Property]:
    pattern = f"%{query.strip()}%"
    return (
        db.query(Property)
        .filter(
            or_(
                Property.address.ilike(pattern),
                Property.city.ilike(pattern),
                Property.state.ilike(pattern),
                Property.zip_code.ilike(pattern),
                Property.owner_name.ilike(pattern),
            )
        )
        .order_by(Property.id.desc())
        .limit(limit)
        .all()
    )


def update_property(db: Session, property_id: int, updates: dict[str, Any]) -> Property:
    prop = get_property(db, property_id)
    for key, value in updates.items():
        if value is not None:
            setattr(prop, key, value)
    db.commit()
    db.refresh(prop)
    return prop
