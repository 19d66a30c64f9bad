from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.contact import Contact
from app.schemas.contact import ContactCreate
from app.services.property_service import get_property
from app.utils.exceptions import ContactNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def create_contact(db: Session, data: ContactCreate) -> Contact:
    if data.property_id is not None:
        get_property(db, data.property_id)
    contact = Contact(**data.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise ContactNotFoundError(f"Contact {contact_id} not found")
    return contact


def list_contacts(db: Session, skip: int = 0, limit: int = 50) -> list[Contact]:
    return db.query(Contact).order_by(Contact.id.desc()).offset(skip).limit(limit).all()
