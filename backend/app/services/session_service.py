"""In-process chat sessions: shown properties and the last property search."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from app.config import settings
from app.services.lead_parser.tracker import DiscriminatorPolicy, ShownPropertyTracker
from app.utils.exceptions import ChatSessionNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class ChatSession:
    session_id: str
    policy: DiscriminatorPolicy
    conversation_id: int | None = None
    tracker: ShownPropertyTracker = field(default_factory=ShownPropertyTracker)
    last_search_criteria: dict[str, Any] | None = None
    # Opaque to everything except the search service.
    search_state: dict[str, Any] | None = None

    @property
    def excluded_property_ids(self) -> list[str]:
        return sorted(self.tracker.all_shown())


class SessionStore:
    """Keeps chat sessions for the lifetime of the process. Sessions are never
    evicted, matching the grow-only shown-property set they carry."""

    def __init__(self, policy: DiscriminatorPolicy | None = None) -> None:
        self._policy = policy or DiscriminatorPolicy(settings.dedup_discriminator)
        self._sessions: dict[str, ChatSession] = {}

    @property
    def policy(self) -> DiscriminatorPolicy:
        return self._policy

    def create(self, conversation_id: int | None = None) -> ChatSession:
        session = ChatSession(
            session_id=uuid.uuid4().hex,
            policy=self._policy,
            conversation_id=conversation_id,
        )
        self._sessions[session.session_id] = session
        logger.info("Chat session %s started (policy=%s)", session.session_id, self._policy)
        return session

    def get(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise ChatSessionNotFoundError(f"Chat session {session_id} not found")
        return session

    def get_or_create(
        self, session_id: str | None, conversation_id: int | None = None
    ) -> ChatSession:
        if session_id and session_id in self._sessions:
            session = self._sessions[session_id]
            if conversation_id is not None and session.conversation_id != conversation_id:
                if session.conversation_id is not None:
                    logger.info(
                        "Chat session %s moved from conversation %s to %s",
                        session_id,
                        session.conversation_id,
                        conversation_id,
                    )
                session.conversation_id = conversation_id
            return session
        return self.create(conversation_id)

    def __len__(self) -> int:
        return len(self._sessions)


_store_instance: SessionStore | None = None


def get_session_store() -> SessionStore:
    global _store_instance
    if _store_instance is None:
        _store_instance = SessionStore()
    return _store_instance
