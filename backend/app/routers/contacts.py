from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.contact import ContactCreate, ContactResponse
from app.services import contact_service
from app.utils.exceptions import ContactNotFoundError, PropertyNotFoundError

router = APIRouter(prefix="/contacts")


@router.get("", response_model=list[ContactResponse])
def list_contacts(
    skip: int = 0, limit: int = 50, db: Session = Depends(get_db)
) -> list[ContactResponse]:
    contacts = contact_service.list_contacts(db, skip, limit)
    return [ContactResponse.model_validate(c) for c in contacts]


@router.post("", response_model=ContactResponse, status_code=201)
def create_contact(
    body: ContactCreate, db: Session = Depends(get_db)
) -> ContactResponse:
    try:
        contact = contact_service.create_contact(db, body)
        return ContactResponse.model_validate(contact)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(contact_id: int, db: Session = Depends(get_db)) -> ContactResponse:
    try:
        return ContactResponse.model_validate(contact_service.get_contact(db, contact_id))
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
