from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.llm.base import LLMProvider
from app.llm.factory import get_llm_provider
from app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ParseRequest,
    ParseResponse,
    ShownPropertiesResponse,
)
from app.services import chat_service
from app.services.lead_parser import parse_buyer_cards, parse_message
from app.services.session_service import SessionStore, get_session_store
from app.utils.exceptions import ChatSessionNotFoundError, ConversationNotFoundError

router = APIRouter(prefix="/chat")


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    db: Session = Depends(get_db),
    llm: LLMProvider = Depends(get_llm_provider),
    store: SessionStore = Depends(get_session_store),
) -> ChatResponse:
    try:
        return await chat_service.handle_chat(db, body, llm, store)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/parse", response_model=ParseResponse)
def parse_chat_text(
    body: ParseRequest,
    store: SessionStore = Depends(get_session_store),
) -> ParseResponse:
    """Parse assistant text into property leads or buyer cards without calling the LLM."""
    session = store.get_or_create(body.session_id, body.conversation_id)
    buyers = parse_buyer_cards(body.text)
    properties = [] if buyers else parse_message(body.text, session)
    return ParseResponse(
        session_id=session.session_id,
        properties=properties,
        is_property_message=bool(properties),
        buyers=buyers,
    )


@router.get("/sessions/{session_id}/shown", response_model=ShownPropertiesResponse)
def shown_properties(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> ShownPropertiesResponse:
    try:
        session = store.get(session_id)
    except ChatSessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return ShownPropertiesResponse(
        session_id=session.session_id,
        policy=session.policy,
        property_ids=session.excluded_property_ids,
    )
