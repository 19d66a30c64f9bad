from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.chat import AgentType


class ConversationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    agent_type: AgentType = AgentType.LEAD_FINDER
    property_id: int | None = None
    contact_id: int | None = None


class MessageCreate(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    is_ai_generated: bool = False


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    role: str
    content: str
    is_ai_generated: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    id: int
    title: str
    agent_type: str
    property_id: int | None
    contact_id: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
