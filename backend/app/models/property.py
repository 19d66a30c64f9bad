from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.contact import Contact
    from app.models.deal import Deal


class PropertyStatus(StrEnum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    UNDER_CONTRACT = "under_contract"
    CLOSED = "closed"


class Property(Base):
    """A saved seller lead. Money amounts are kept as text to avoid float rounding."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(String(30), default=PropertyStatus.NEW.value)

    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), default="")
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    property_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    arv: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    max_offer: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_sale_price: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_sale_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    equity_percentage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    equity_balance: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    confidence_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_phone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    owner_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_mailing_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    owner_status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    owner_dnc_phone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lead_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    distressed_indicator: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Deal analyzer results
    strategy: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_deal: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    analysis_arv: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rehab_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    analysis_max_offer_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    profit_margin_pct: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    analysis_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    analysis_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_assumptions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_actions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    raw_analysis_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now()
    )

    contacts: Mapped[list["Contact"]] = relationship(back_populates="property")
    deals: Mapped[list["Deal"]] = relationship(back_populates="property")
