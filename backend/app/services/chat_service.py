"""Chat turn handling for the four assistant personas."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import anthropic
import openai

from app.config import settings
from app.llm.prompts.agents import get_agent_prompt, with_record_context
from app.schemas.chat import AgentType, ChatRequest, ChatResponse
from app.schemas.conversation import MessageCreate
from app.schemas.search import SearchCriteria
from app.services import (
    buyer_service,
    contact_service,
    conversation_service,
    property_service,
    search_service,
)
from app.services.analysis_service import describe_property
from app.services.batchdata_client import BatchDataAPIError
from app.services.lead_parser import parse_buyer_cards, parse_message
from app.utils.exceptions import ContactNotFoundError, PropertyNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.llm.base import ChatTurn, LLMProvider
    from app.models.conversation import Conversation
    from app.schemas.buyer import BuyerCard
    from app.schemas.property import ParsedProperty
    from app.services.session_service import ChatSession, SessionStore

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
MAX_RESULTS_PER_MESSAGE = 25
DEFAULT_BUYER_COUNT = 5

SEARCH_APOLOGY = (
    "Sorry, I couldn't reach the property data service just now. "
    "Please try your search again in a moment."
)
LLM_APOLOGY = "I'm having trouble processing your request right now. Please try again in a moment."

LLM_ERRORS = (anthropic.APIError, openai.APIError)

_NEXT_RE = re.compile(r"\b(?:next|another|more)\b", re.IGNORECASE)
_SEARCH_RE = re.compile(
    r"\b(?:find|search|show|get)\s+(?:me\s+)?(?:\d+\s+)?(?:\w+\s+)?(?:properties|distressed|leads)\b"
    r"|\bproperties\s+in\b"
    r"|\b\d+\s+properties\b",
    re.IGNORECASE,
)
_CASH_BUYER_RE = re.compile(r"\bcash[\s-]*(?:buyers?|investors?)\b", re.IGNORECASE)
_BUYER_COUNT_RE = re.compile(r"\b(\d+)\s+(?:\w+\s+)?(?:buyers|investors)\b", re.IGNORECASE)
_CITY_STATE_RE = re.compile(r"\b[Ii]n\s+([A-Za-z][A-Za-z .'-]*?),?\s+([A-Z]{2})\b")
_CITY_RE = re.compile(r"\b[Ii]n\s+([A-Za-z][A-Za-z.'-]*(?:\s+[A-Z][A-Za-z.'-]*)*)")
_ZIP_RE = re.compile(r"\b(\d{5})\b")
_BEDROOMS_RE = re.compile(r"(\d+)\+?\s*(?:bedrooms?|beds?|br)\b", re.IGNORECASE)
_COUNT_RE = re.compile(
    r"\b(\d+)\s+(?:(?:distressed|motivated|new|more|absentee|vacant)\s+)*(?:properties|leads|homes|houses)\b",
    re.IGNORECASE,
)
_MAX_PRICE_RE = re.compile(r"\b(?:under|below|max(?:imum)?(?: price)?(?: of)?)\s+\$?(\d[\d,]*)(k)?\b", re.IGNORECASE)

# Cities searched often enough that a bare name should mean Pennsylvania.
PA_CITIES = {"hershey", "philadelphia", "pittsburgh", "allentown", "erie"}

_QUICK_LIST_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("absentee", "absentee-owner"),
    ("vacant", "vacant"),
    ("high equity", "high-equity"),
    ("free and clear", "free-and-clear"),
    ("foreclosure", "preforeclosure"),
)


# ── Intent detection ───────────────────────────────────────────────────────


def is_next_request(message: str) -> bool:
    return bool(_NEXT_RE.search(message))


def is_search_request(message: str) -> bool:
    return bool(_SEARCH_RE.search(message))


def is_cash_buyer_request(message: str) -> bool:
    return bool(_CASH_BUYER_RE.search(message))


def extract_location(message: str) -> str:
    """Pull "City, ST", a city name or a ZIP code out of a search request."""
    match = _CITY_STATE_RE.search(message)
    if match:
        return f"{match.group(1).strip()}, {match.group(2)}"

    match = _CITY_RE.search(message)
    if match and len(match.group(1)) > 2:
        city = match.group(1).strip()
        if city.lower() in PA_CITIES:
            return f"{city}, PA"
        return city

    match = _ZIP_RE.search(message)
    if match:
        return match.group(1)
    return settings.default_search_location


def extract_search_criteria(message: str) -> SearchCriteria:
    lowered = message.lower()
    criteria: dict[str, Any] = {"location": extract_location(message)}

    if "distressed" in lowered or "motivated" in lowered:
        criteria["distressed_only"] = True

    bedrooms = _BEDROOMS_RE.search(message)
    if bedrooms:
        criteria["min_bedrooms"] = int(bedrooms.group(1))

    count = _COUNT_RE.search(message)
    if count:
        criteria["limit"] = max(1, min(int(count.group(1)), MAX_RESULTS_PER_MESSAGE))

    max_price = _MAX_PRICE_RE.search(message)
    if max_price:
        amount = int(max_price.group(1).replace(",", ""))
        criteria["max_price"] = amount * 1000 if max_price.group(2) else amount

    criteria["quick_lists"] = [name for keyword, name in _QUICK_LIST_KEYWORDS if keyword in lowered]
    return SearchCriteria(**criteria)


def extract_buyer_count(message: str) -> int:
    match = _BUYER_COUNT_RE.search(message)
    if not match:
        return DEFAULT_BUYER_COUNT
    return max(1, min(int(match.group(1)), MAX_RESULTS_PER_MESSAGE))


# ── Turn handling ──────────────────────────────────────────────────────────


def _history(db: Session, conversation_id: int) -> list[ChatTurn]:
    messages = conversation_service.list_messages(db, conversation_id)
    turns = [
        {"role": m.role, "content": m.content}
        for m in messages
        if m.role in ("user", "assistant")
    ]
    return turns[-HISTORY_LIMIT:]


async def _search_reply(
    session: ChatSession,
    criteria: SearchCriteria,
    session_state: dict[str, Any] | None,
) -> tuple[str, bool]:
    try:
        result = await search_service.get_next_valid_properties(
            criteria,
            session_state=session_state,
            excluded_property_ids=session.excluded_property_ids,
            policy=session.policy,
            conversation_id=session.conversation_id,
        )
    except BatchDataAPIError as e:
        logger.error("Property search failed for session %s: %s", session.session_id, e)
        return SEARCH_APOLOGY, False

    session.last_search_criteria = criteria.model_dump()
    session.search_state = result.session_state
    return result.message, result.has_more


async def _cash_buyer_reply(session: ChatSession, message: str) -> str:
    location = extract_location(message)
    try:
        result = await buyer_service.find_cash_buyers(location, limit=extract_buyer_count(message))
    except BatchDataAPIError as e:
        logger.error("Cash buyer search failed for session %s: %s", session.session_id, e)
        return SEARCH_APOLOGY
    return result.message


def _record_context(db: Session, conversation: Conversation) -> str:
    """The conversation's linked property and contact, written out for the persona."""
    parts = []
    if conversation.property_id is not None:
        try:
            prop = property_service.get_property(db, conversation.property_id)
        except PropertyNotFoundError:
            logger.warning(
                "Conversation %s links missing property %s", conversation.id, conversation.property_id
            )
        else:
            owner_lines = [
                f"Owner Name: {prop.owner_name or 'unknown'}",
                f"Owner Phone: {prop.owner_phone or 'unknown'}",
                f"Owner Email: {prop.owner_email or 'unknown'}",
                f"Mailing Address: {prop.owner_mailing_address or 'unknown'}",
                f"Status: {prop.status}",
            ]
            parts.append("PROPERTY:\n" + describe_property(prop) + "\n" + "\n".join(owner_lines))

    if conversation.contact_id is not None:
        try:
            contact = contact_service.get_contact(db, conversation.contact_id)
        except ContactNotFoundError:
            logger.warning(
                "Conversation %s links missing contact %s", conversation.id, conversation.contact_id
            )
        else:
            parts.append(
                "CONTACT:\n"
                f"Name: {contact.name}\n"
                f"Phone: {contact.phone or 'unknown'}\n"
                f"Email: {contact.email or 'unknown'}"
            )
    return "\n\n".join(parts)


async def _llm_reply(
    db: Session,
    conversation: Conversation,
    agent_type: AgentType,
    llm: LLMProvider,
) -> str:
    system_prompt = with_record_context(get_agent_prompt(agent_type), _record_context(db, conversation))
    try:
        return await llm.chat(system_prompt, _history(db, conversation.id))
    except LLM_ERRORS as e:
        logger.error("%s reply failed for conversation %s: %s", llm.provider_name, conversation.id, e)
        return LLM_APOLOGY


def _resume_criteria(session: ChatSession, session_state: dict[str, Any] | None) -> SearchCriteria | None:
    state = session_state or session.search_state or {}
    saved = state.get("search_criteria") or session.last_search_criteria
    return SearchCriteria(**saved) if saved else None


async def handle_chat(
    db: Session,
    request: ChatRequest,
    llm: LLMProvider,
    store: SessionStore,
) -> ChatResponse:
    """
    Run one chat turn.

    1. Resolves (or opens) the conversation and the in-memory chat session
    2. Stores the user message
    3. Lead finder: a cash-buyer request searches for buyers, "next"/"more"
       continues the last property search, a search request starts a new
       one; everything else goes to the persona's LLM
    4. Lead finder replies are parsed for buyer cards or property leads,
       and parsed properties are marked as shown
    5. Stores the assistant message
    """
    if request.conversation_id is not None:
        conversation = conversation_service.get_conversation(db, request.conversation_id)
    else:
        conversation = conversation_service.start_conversation(db, request.message, request.agent_type)
    session = store.get_or_create(request.session_id, conversation.id)

    conversation_service.add_message(
        db, conversation.id, MessageCreate(role="user", content=request.message)
    )

    has_more = False
    ai_generated = False
    reply: str | None = None
    is_lead_finder = request.agent_type == AgentType.LEAD_FINDER
    buyer_search = False

    if is_lead_finder:
        resume = _resume_criteria(session, request.session_state)
        if is_cash_buyer_request(request.message):
            logger.info("Session %s: cash buyer search", session.session_id)
            reply = await _cash_buyer_reply(session, request.message)
            buyer_search = True
        elif resume is not None and is_next_request(request.message) and not is_search_request(request.message):
            logger.info("Session %s: continuing search in %s", session.session_id, resume.location)
            reply, has_more = await _search_reply(
                session, resume, request.session_state or session.search_state
            )
        elif is_search_request(request.message):
            criteria = extract_search_criteria(request.message)
            logger.info(
                "Session %s: new search in %s (limit=%d)",
                session.session_id,
                criteria.location,
                criteria.limit,
            )
            reply, has_more = await _search_reply(session, criteria, None)

    if reply is None:
        reply = await _llm_reply(db, conversation, request.agent_type, llm)
        ai_generated = True

    buyers: list[BuyerCard] = []
    properties: list[ParsedProperty] = []
    if is_lead_finder:
        buyers = parse_buyer_cards(reply)
        if not buyers and not buyer_search:
            properties = parse_message(reply, session)

    conversation_service.add_message(
        db,
        conversation.id,
        MessageCreate(role="assistant", content=reply, is_ai_generated=ai_generated),
    )

    return ChatResponse(
        response=reply,
        properties=properties,
        is_property_message=bool(properties),
        buyers=buyers,
        session_id=session.session_id,
        conversation_id=conversation.id,
        session_state=session.search_state,
        has_more=has_more,
    )
