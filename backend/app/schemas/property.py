from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from app.models.property import PropertyStatus

OWNER_NAME_PLACEHOLDER = "Property Owner"
SKIP_TRACE_PLACEHOLDER = "Available via skip trace"
MAILING_PLACEHOLDER = "Same as property address"
OWNER_STATUS_PLACEHOLDER = "Contact for details"


class PropertyRecord(BaseModel):
    """A property lead as parsed from chat text or converted from BatchData."""

    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    bedrooms: int | None = None
    bathrooms: int | None = None
    square_feet: int | None = None
    year_built: int | None = None
    property_type: str = "single_family"
    arv: str = "0"
    max_offer: str = "0"
    last_sale_price: str | None = None
    equity_percentage: int = 0
    confidence_score: int = 50
    owner_name: str = OWNER_NAME_PLACEHOLDER
    owner_phone: str = SKIP_TRACE_PLACEHOLDER
    owner_email: str = SKIP_TRACE_PLACEHOLDER
    owner_mailing_address: str = MAILING_PLACEHOLDER
    owner_status: str = OWNER_STATUS_PLACEHOLDER
    lead_type: str = "standard"
    distressed_indicator: str = "standard"


class ParsedProperty(BaseModel):
    ordinal: int
    property_id: str
    record: PropertyRecord


class PropertyCreate(PropertyRecord):
    status: PropertyStatus = PropertyStatus.NEW
    last_sale_date: str | None = None
    equity_balance: str | None = None
    owner_dnc_phone: str | None = None


class PropertyUpdate(BaseModel):
    status: PropertyStatus | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    arv: str | None = None
    max_offer: str | None = None
    owner_name: str | None = None
    owner_phone: str | None = None
    owner_email: str | None = None
    owner_mailing_address: str | None = None
    lead_type: str | None = None


class PropertyResponse(BaseModel):
    id: int
    status: str
    address: str
    city: str
    state: str
    zip_code: str
    bedrooms: int | None
    bathrooms: int | None
    square_feet: int | None
    year_built: int | None
    property_type: str | None
    arv: str | None
    max_offer: str | None
    last_sale_price: str | None
    last_sale_date: str | None
    equity_percentage: int | None
    equity_balance: str | None
    confidence_score: int | None
    owner_name: str | None
    owner_phone: str | None
    owner_email: str | None
    owner_mailing_address: str | None
    owner_status: str | None
    lead_type: str | None
    distressed_indicator: str | None
    strategy: str | None = None
    is_deal: bool | None = None
    analysis_arv: int | None = None
    rehab_cost: int | None = None
    analysis_max_offer_price: int | None = None
    profit_margin_pct: float | None = None
    risk_level: str | None = None
    analysis_confidence: float | None = None
    analysis_summary: str | None = None
    key_assumptions: list[str] = []
    next_actions: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("key_assumptions", "next_actions", mode="before")
    @classmethod
    def parse_json_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return json.loads(value) if value else []
        return value


class SaveLeadResponse(BaseModel):
    saved: bool
    property: PropertyResponse | None = None
    detail: str | None = None


class DealAnalysisResult(BaseModel):
    """Structured deal-analyzer output. Mirrors the JSON the LLM is asked for."""

    summary: str = ""
    strategy: str = "wholesale"
    arv_estimate: float = 0
    rehab_cost: float = 0
    max_offer_estimate: float = 0
    profit_margin_pct: float = 0
    is_deal: bool = False
    risk_level: str = "medium"
    confidence: float = 0.0
    key_assumptions: list[str] = []
    next_actions: list[str] = []
    notes: str = ""

    def as_columns(self) -> dict[str, Any]:
        return {
            "analysis_summary": self.summary,
            "strategy": self.strategy,
            "analysis_arv": int(self.arv_estimate),
            "rehab_cost": int(self.rehab_cost),
            "analysis_max_offer_price": int(self.max_offer_estimate),
            "profit_margin_pct": self.profit_margin_pct,
            "is_deal": self.is_deal,
            "risk_level": self.risk_level,
            "analysis_confidence": self.confidence,
        }
