from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.conversation import Conversation, Message
from app.schemas.conversation import ConversationCreate, MessageCreate
from app.utils.exceptions import ConversationNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

TITLE_MAX_CHARS = 60


def create_conversation(db: Session, data: ConversationCreate) -> Conversation:
    conversation = Conversation(**data.model_dump())
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def start_conversation(db: Session, first_message: str, agent_type: str) -> Conversation:
    """Open a conversation titled after the user's first message."""
    title = first_message.strip().splitlines()[0] if first_message.strip() else "New conversation"
    if len(title) > TITLE_MAX_CHARS:
        title = title[: TITLE_MAX_CHARS - 3].rstrip() + "..."
    return create_conversation(db, ConversationCreate(title=title, agent_type=agent_type))


def get_conversation(db: Session, conversation_id: int) -> Conversation:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
    return conversation


def list_conversations(db: Session, skip: int = 0, limit: int = 20) -> list[Conversation]:
    return (
        db.query(Conversation)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def add_message(db: Session, conversation_id: int, data: MessageCreate) -> Message:
    get_conversation(db, conversation_id)
    message = Message(conversation_id=conversation_id, **data.model_dump())
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: Session, conversation_id: int) -> list[Message]:
    get_conversation(db, conversation_id)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.id)
        .all()
    )
