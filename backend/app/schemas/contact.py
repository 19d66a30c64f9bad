from datetime import datetime

from pydantic import BaseModel, Field


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = None
    email: str | None = None
    property_id: int | None = None


class ContactResponse(BaseModel):
    id: int
    name: str
    phone: str | None
    email: str | None
    property_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
