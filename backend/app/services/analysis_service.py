"""Deal analyzer: ask the LLM for a structured wholesale analysis of a saved property."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from app.llm.prompts.deal_analysis import (
    DEAL_ANALYSIS_SYSTEM_PROMPT,
    build_deal_analysis_user_prompt,
)
from app.schemas.property import DealAnalysisResult
from app.services.property_service import get_property
from app.utils.exceptions import AnalysisError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.llm.base import LLMProvider
    from app.models.property import Property

logger = logging.getLogger(__name__)


def describe_property(prop: Property) -> str:
    lines = [
        f"Address: {prop.address}, {prop.city}, {prop.state} {prop.zip_code}".rstrip(),
        f"Property Type: {prop.property_type or 'unknown'}",
        f"Bedrooms: {prop.bedrooms if prop.bedrooms is not None else 'unknown'}",
        f"Bathrooms: {prop.bathrooms if prop.bathrooms is not None else 'unknown'}",
        f"Square Feet: {prop.square_feet if prop.square_feet is not None else 'unknown'}",
        f"Year Built: {prop.year_built if prop.year_built is not None else 'unknown'}",
        f"ARV: ${prop.arv or '0'}",
        f"Max Offer (70% Rule): ${prop.max_offer or '0'}",
        f"Last Sale Price: {('$' + prop.last_sale_price) if prop.last_sale_price else 'unknown'}",
        f"Equity: {prop.equity_percentage if prop.equity_percentage is not None else 'unknown'}%",
        f"Lead Type: {prop.lead_type or 'standard'}",
        f"Distressed Indicator: {prop.distressed_indicator or 'standard'}",
        f"Owner Status: {prop.owner_status or 'unknown'}",
    ]
    return "\n".join(lines)


async def analyze_property(db: Session, property_id: int, llm: LLMProvider) -> Property:
    prop = get_property(db, property_id)

    try:
        raw_result = await llm.complete_json(
            DEAL_ANALYSIS_SYSTEM_PROMPT,
            build_deal_analysis_user_prompt(describe_property(prop)),
        )
        result = DealAnalysisResult(**raw_result)
    except Exception as e:
        logger.exception("Deal analysis returned unusable output for property %s", property_id)
        raise AnalysisError(f"Deal analysis failed: {e}") from e

    for key, value in result.as_columns().items():
        setattr(prop, key, value)
    prop.key_assumptions = json.dumps(result.key_assumptions)
    prop.next_actions = json.dumps(result.next_actions)
    prop.raw_analysis_response = json.dumps(raw_result)

    db.commit()
    db.refresh(prop)
    logger.info(
        "Analyzed property %s with %s: is_deal=%s strategy=%s",
        property_id,
        llm.provider_name,
        prop.is_deal,
        prop.strategy,
    )
    return prop
