from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from app.services import conversation_service
from app.utils.exceptions import ConversationNotFoundError

router = APIRouter(prefix="/conversations")


@router.get("", response_model=list[ConversationResponse])
def list_conversations(
    skip: int = 0, limit: int = 20, db: Session = Depends(get_db)
) -> list[ConversationResponse]:
    conversations = conversation_service.list_conversations(db, skip, limit)
    return [ConversationResponse.model_validate(c) for c in conversations]


@router.post("", response_model=ConversationResponse, status_code=201)
def create_conversation(
    body: ConversationCreate, db: Session = Depends(get_db)
) -> ConversationResponse:
    conversation = conversation_service.create_conversation(db, body)
    return ConversationResponse.model_validate(conversation)


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
def list_messages(
    conversation_id: int, db: Session = Depends(get_db)
) -> list[MessageResponse]:
    try:
        messages = conversation_service.list_messages(db, conversation_id)
        return [MessageResponse.model_validate(m) for m in messages]
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post(
    "/{conversation_id}/messages", response_model=MessageResponse, status_code=201
)
def add_message(
    conversation_id: int,
    body: MessageCreate,
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        message = conversation_service.add_message(db, conversation_id, body)
        return MessageResponse.model_validate(message)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
