from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.buyer import BuyerCard
from app.schemas.property import ParsedProperty


class AgentType(StrEnum):
    LEAD_FINDER = "lead_finder"
    DEAL_ANALYZER = "deal_analyzer"
    NEGOTIATION = "negotiation"
    CLOSING = "closing"


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    agent_type: AgentType = AgentType.LEAD_FINDER
    session_id: str | None = None
    conversation_id: int | None = None
    session_state: dict[str, Any] | None = None


class ChatResponse(BaseModel):
    response: str
    properties: list[ParsedProperty] = []
    is_property_message: bool = False
    buyers: list[BuyerCard] = []
    session_id: str
    conversation_id: int | None = None
    session_state: dict[str, Any] | None = None
    has_more: bool = False


class ParseRequest(BaseModel):
    text: str
    session_id: str | None = None
    conversation_id: int | None = None


class ParseResponse(BaseModel):
    session_id: str
    properties: list[ParsedProperty]
    is_property_message: bool
    buyers: list[BuyerCard] = []


class ShownPropertiesResponse(BaseModel):
    session_id: str
    policy: str
    property_ids: list[str]
