"""Session-scoped record of which properties a user has already been shown."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.property import PropertyRecord


class DiscriminatorPolicy(StrEnum):
    """What gets appended to the address to build a shown-property id."""

    OWNER = "owner"
    CONVERSATION = "conversation"


def property_key(
    record: PropertyRecord,
    policy: DiscriminatorPolicy,
    conversation_id: str | int | None = None,
) -> str:
    """Build the identifier used for de-duplication.

    With the owner policy the same house listed under two owners counts as
    two leads; with the conversation policy the same address is only shown
    once per conversation.
    """
    if policy is DiscriminatorPolicy.CONVERSATION:
        discriminator = "" if conversation_id is None else str(conversation_id)
    else:
        discriminator = record.owner_name
    return f"{record.address}_{discriminator}"


class ShownPropertyTracker:
    """Grow-only set of shown property ids. There is no eviction; a tracker
    lives exactly as long as its chat session."""

    def __init__(self) -> None:
        self._shown: set[str] = set()

    def has_shown(self, property_id: str) -> bool:
        return property_id in self._shown

    def mark_shown(self, property_id: str) -> None:
        self._shown.add(property_id)

    def all_shown(self) -> frozenset[str]:
        return frozenset(self._shown)

    def __len__(self) -> int:
        return len(self._shown)

    def __contains__(self, property_id: object) -> bool:
        return property_id in self._shown
