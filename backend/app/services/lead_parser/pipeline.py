"""Run one assistant message through segmentation, splitting and normalization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.schemas.property import ParsedProperty
from app.services.lead_parser.normalizer import normalize
from app.services.lead_parser.section_splitter import split_sections
from app.services.lead_parser.segmenter import segment
from app.services.lead_parser.tracker import property_key

if TYPE_CHECKING:
    from app.services.session_service import ChatSession

logger = logging.getLogger(__name__)


def parse_message(text: str, session: ChatSession) -> list[ParsedProperty]:
    """Extract every property in ``text`` and mark each one as shown.

    An empty list means the message is ordinary chat and should be rendered
    as plain text.
    """
    parsed: list[ParsedProperty] = []
    for ordinal, block in segment(text):
        record = normalize(split_sections(block), block)
        key = property_key(record, session.policy, session.conversation_id)
        session.tracker.mark_shown(key)
        parsed.append(ParsedProperty(ordinal=ordinal, property_id=key, record=record))

    if parsed:
        logger.info(
            "Parsed %d properties for session %s (%d shown so far)",
            len(parsed),
            session.session_id,
            len(session.tracker),
        )
    return parsed
