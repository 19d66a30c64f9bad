from __future__ import annotations

from pydantic import BaseModel, Field


class CashBuyerRequest(BaseModel):
    location: str = ""
    limit: int = Field(default=5, ge=1, le=25)


class CashBuyer(BaseModel):
    """An investor who recently bought with cash, built from a BatchData record."""

    buyer_id: str
    name: str
    address: str
    city: str
    state: str
    zip_code: str = ""
    phones: list[str] = []
    dnc_phones: list[str] = []
    emails: list[str] = []
    mailing_address: str
    estimated_value: int = 0
    property_count: int = 1
    total_portfolio_value: int = 0
    average_purchase_price: int | None = None
    property_type: str = "Single Family"
    bedrooms: int | None = None
    bathrooms: int | None = None
    square_feet: int | None = None
    year_built: int | None = None
    equity_percentage: float = 0
    buyer_score: int
    investment_type: str
    last_sale_date: str | None = None
    last_sale_price: int | None = None
    active_investor: bool = False
    out_of_state_owner: bool = False
    portfolio_investor: bool = False


class CashBuyerResponse(BaseModel):
    buyers: list[CashBuyer]
    message: str
    total_checked: int
    qualified: int
    has_more: bool
    source: str = "batchdata"


class BuyerCard(BaseModel):
    """What the chat UI can read back out of one rendered buyer card."""

    ordinal: int
    investor_name: str = "Cash Investor"
    location: str = ""
    portfolio_value: str | None = None
    properties_count: int | None = None
    average_purchase_price: str | None = None
    last_activity: str | None = None
    recent_address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    property_type: str | None = None
    square_feet: int | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    last_sale_price: str | None = None
    email: str | None = None
