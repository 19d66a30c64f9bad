from datetime import datetime

from pydantic import BaseModel

from app.models.deal import DealStage


class DealCreate(BaseModel):
    property_id: int | None = None
    stage: DealStage = DealStage.LEAD_GENERATION
    deal_value: float | None = None
    profit: float | None = None
    close_date: datetime | None = None
    notes: str | None = None


class DealUpdate(BaseModel):
    stage: DealStage | None = None
    deal_value: float | None = None
    profit: float | None = None
    close_date: datetime | None = None
    notes: str | None = None


class DealResponse(BaseModel):
    id: int
    property_id: int | None
    stage: str
    deal_value: float | None
    profit: float | None
    close_date: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
