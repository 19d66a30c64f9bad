"""Tests for chat intent detection and turn handling."""

from __future__ import annotations

import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.llm.prompts.agents import LEAD_FINDER_SYSTEM_PROMPT
from app.schemas.chat import AgentType, ChatRequest
from app.schemas.contact import ContactCreate
from app.schemas.conversation import ConversationCreate
from app.schemas.property import PropertyCreate
from app.services import (
    chat_service,
    contact_service,
    conversation_service,
    property_service,
)
from app.services.batchdata_client import BatchDataAPIError
from app.utils.exceptions import ConversationNotFoundError


@pytest.fixture()
def _mock_property_data():
    """Force the search service onto its built-in mock properties."""
    with patch("app.services.batchdata_client.settings") as mock_settings:
        mock_settings.batchdata_api_key = ""
        yield mock_settings


# ── Intent detection ───────────────────────────────────────────────────────


class TestIntent:
    @pytest.mark.parametrize("message", ["next", "Show me another one", "more please"])
    def test_next_requests(self, message):
        assert chat_service.is_next_request(message)

    @pytest.mark.parametrize(
        "message",
        [
            "Find me 3 properties in Hershey",
            "search distressed properties near Erie",
            "show me absentee leads",
            "any properties in 17112?",
        ],
    )
    def test_search_requests(self, message):
        assert chat_service.is_search_request(message)

    @pytest.mark.parametrize("message", ["How do I pitch a seller?", "What is the 70% rule?"])
    def test_ordinary_chat(self, message):
        assert not chat_service.is_search_request(message)
        assert not chat_service.is_next_request(message)


class TestCashBuyerIntent:
    @pytest.mark.parametrize(
        "message",
        ["Find cash buyers in Hershey, PA", "who are the cash-buyers near Erie?", "any cash investors in 17112"],
    )
    def test_cash_buyer_requests(self, message):
        assert chat_service.is_cash_buyer_request(message)

    def test_ordinary_chat(self):
        assert not chat_service.is_cash_buyer_request("Should I pay cash for this one?")

    @pytest.mark.parametrize(
        "message, expected",
        [("find 3 cash buyers in Erie", 3), ("find cash buyers", 5), ("get me 60 active investors", 25)],
    )
    def test_buyer_count(self, message, expected):
        assert chat_service.extract_buyer_count(message) == expected


class TestExtractLocation:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Find properties in Hershey, PA", "Hershey, PA"),
            ("Find 3 properties in Erie PA under 200k", "Erie, PA"),
            ("Show me leads in Hershey", "Hershey, PA"),
            ("Find properties in Camp Hill", "Camp Hill"),
            ("find distressed properties in 17102", "17102"),
        ],
    )
    def test_locations(self, message, expected):
        assert chat_service.extract_location(message) == expected

    def test_default_location(self):
        with patch("app.services.chat_service.settings") as mock_settings:
            mock_settings.default_search_location = "17112"
            assert chat_service.extract_location("find me some properties") == "17112"


class TestExtractSearchCriteria:
    def test_full_request(self):
        criteria = chat_service.extract_search_criteria(
            "Find 5 distressed properties in Erie, PA with 3 bedrooms under 200k"
        )
        assert criteria.location == "Erie, PA"
        assert criteria.distressed_only is True
        assert criteria.min_bedrooms == 3
        assert criteria.limit == 5
        assert criteria.max_price == 200_000

    def test_quick_lists_from_keywords(self):
        criteria = chat_service.extract_search_criteria("Find absentee vacant properties in Hershey")
        assert criteria.quick_lists == ["absentee-owner", "vacant"]

    def test_plain_max_price(self):
        criteria = chat_service.extract_search_criteria("find properties in Hershey below $150,000")
        assert criteria.max_price == 150_000

    def test_limit_is_capped(self):
        criteria = chat_service.extract_search_criteria("Find 40 properties in Hershey")
        assert criteria.limit == chat_service.MAX_RESULTS_PER_MESSAGE

    def test_defaults(self):
        criteria = chat_service.extract_search_criteria("find properties in Hershey")
        assert criteria.limit == 1
        assert criteria.distressed_only is False
        assert criteria.quick_lists == []


# ── Turn handling ──────────────────────────────────────────────────────────


class TestHandleChat:
    @pytest.mark.asyncio
    async def test_ordinary_message_goes_to_llm(self, db, llm, store):
        response = await chat_service.handle_chat(db, ChatRequest(message="hello"), llm, store)

        assert response.response == "Happy to help you find motivated sellers!"
        assert response.is_property_message is False
        assert response.properties == []

        system_prompt, history = llm.chat.call_args.args
        assert system_prompt == LEAD_FINDER_SYSTEM_PROMPT
        assert history == [{"role": "user", "content": "hello"}]

        messages = conversation_service.list_messages(db, response.conversation_id)
        assert [(m.role, m.is_ai_generated) for m in messages] == [("user", False), ("assistant", True)]

    @pytest.mark.asyncio
    async def test_history_includes_earlier_turns(self, db, llm, store):
        first = await chat_service.handle_chat(db, ChatRequest(message="hello"), llm, store)
        await chat_service.handle_chat(
            db,
            ChatRequest(message="what next?", session_id=first.session_id, conversation_id=first.conversation_id),
            llm,
            store,
        )

        _, history = llm.chat.call_args.args
        assert [turn["role"] for turn in history] == ["user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_llm_reply_with_listings_is_parsed(self, db, llm, store):
        llm.chat.return_value = (
            "1. 123 Oak St\n   - Price: $200,000\n   - Owner: Jane Doe\n"
            "2. 456 Pine Ave\n   - Price: $150,000\n   - Owner: John Roe"
        )

        response = await chat_service.handle_chat(db, ChatRequest(message="Any ideas?"), llm, store)

        assert response.is_property_message is True
        assert [p.property_id for p in response.properties] == ["123 Oak St_Jane Doe", "456 Pine Ave_John Roe"]
        assert len(store.get(response.session_id).tracker) == 2

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("_mock_property_data")
    async def test_search_request_returns_leads(self, db, llm, store):
        response = await chat_service.handle_chat(
            db, ChatRequest(message="Find me properties in Hershey, PA"), llm, store
        )

        llm.chat.assert_not_called()
        assert response.is_property_message is True
        assert response.properties[0].record.address == "412 Cocoa Ave"
        assert response.properties[0].property_id == "412 Cocoa Ave_Margaret Ellis"
        assert response.has_more is True
        assert response.session_state["current_page"] == 1

        messages = conversation_service.list_messages(db, response.conversation_id)
        assert messages[-1].is_ai_generated is False

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("_mock_property_data")
    async def test_next_continues_search(self, db, llm, store):
        first = await chat_service.handle_chat(
            db, ChatRequest(message="Find me properties in Hershey, PA"), llm, store
        )
        second = await chat_service.handle_chat(
            db,
            ChatRequest(message="next", session_id=first.session_id, conversation_id=first.conversation_id),
            llm,
            store,
        )

        llm.chat.assert_not_called()
        assert second.properties[0].record.address == "1907 N 3rd St"
        assert store.get(first.session_id).excluded_property_ids == [
            "1907 N 3rd St_Darnell Hughes",
            "412 Cocoa Ave_Margaret Ellis",
        ]

    @pytest.mark.asyncio
    async def test_next_without_search_goes_to_llm(self, db, llm, store):
        await chat_service.handle_chat(db, ChatRequest(message="next"), llm, store)
        llm.chat.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_personas_never_search(self, db, llm, store):
        with patch.object(chat_service.search_service, "get_next_valid_properties", AsyncMock()) as search:
            await chat_service.handle_chat(
                db,
                ChatRequest(message="Find me properties in Hershey", agent_type=AgentType.NEGOTIATION),
                llm,
                store,
            )
        search.assert_not_called()
        llm.chat.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_failure_apologizes(self, db, llm, store):
        failing = AsyncMock(side_effect=BatchDataAPIError("BatchData API returned 503"))
        with patch.object(chat_service.search_service, "get_next_valid_properties", failing):
            response = await chat_service.handle_chat(
                db, ChatRequest(message="Find me properties in Hershey"), llm, store
            )

        assert response.response == chat_service.SEARCH_APOLOGY
        assert response.properties == []
        assert response.has_more is False

    @pytest.mark.asyncio
    async def test_llm_failure_apologizes(self, db, llm, store):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        llm.chat.side_effect = anthropic.APIConnectionError(request=request)

        response = await chat_service.handle_chat(db, ChatRequest(message="hello"), llm, store)

        assert response.response == chat_service.LLM_APOLOGY

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, db, llm, store):
        with pytest.raises(ConversationNotFoundError):
            await chat_service.handle_chat(db, ChatRequest(message="hi", conversation_id=77), llm, store)


CLOSING_CHECKLIST = (
    "Here's what to line up before closing:\n"
    "1. Open escrow with the title company and send over the signed contract\n"
    "2. Order the title search and review any liens that come back\n"
    "3. Confirm the end buyer's proof of funds before scheduling closing"
)


class TestReplyParsing:
    @pytest.mark.asyncio
    async def test_checklist_is_not_a_property_message(self, db, llm, store):
        llm.chat.return_value = CLOSING_CHECKLIST

        response = await chat_service.handle_chat(
            db, ChatRequest(message="What's next for closing?", agent_type=AgentType.CLOSING), llm, store
        )

        assert response.properties == []
        assert response.is_property_message is False
        assert len(store.get(response.session_id).tracker) == 0

    @pytest.mark.asyncio
    async def test_lead_finder_checklist_is_not_parsed_either(self, db, llm, store):
        llm.chat.return_value = CLOSING_CHECKLIST

        response = await chat_service.handle_chat(db, ChatRequest(message="How do I close?"), llm, store)

        assert response.properties == []
        assert len(store.get(response.session_id).tracker) == 0

    @pytest.mark.asyncio
    async def test_other_personas_listing_properties_are_not_tracked(self, db, llm, store):
        llm.chat.return_value = "Address: 123 Oak St\nOwner: Jane Doe\nARV: $200,000"

        response = await chat_service.handle_chat(
            db, ChatRequest(message="Run the numbers", agent_type=AgentType.DEAL_ANALYZER), llm, store
        )

        assert response.properties == []
        assert len(store.get(response.session_id).tracker) == 0


class TestLinkedRecords:
    def _linked_conversation(self, db, agent_type=AgentType.NEGOTIATION):
        prop = property_service.create_property(
            db,
            PropertyCreate(
                address="123 Oak St",
                city="Hershey",
                state="PA",
                zip_code="17033",
                arv="350000",
                max_offer="245000",
                equity_percentage=72,
                owner_name="Jane Doe",
            ),
        )
        contact = contact_service.create_contact(
            db, ContactCreate(name="Jane Doe", phone="717-555-0100", property_id=prop.id)
        )
        return conversation_service.create_conversation(
            db,
            ConversationCreate(
                title="Oak St offer",
                agent_type=agent_type,
                property_id=prop.id,
                contact_id=contact.id,
            ),
        )

    @pytest.mark.asyncio
    async def test_persona_sees_linked_property_and_contact(self, db, llm, store):
        conversation = self._linked_conversation(db)

        await chat_service.handle_chat(
            db,
            ChatRequest(
                message="How should I open the call?",
                agent_type=AgentType.NEGOTIATION,
                conversation_id=conversation.id,
            ),
            llm,
            store,
        )

        system_prompt, _ = llm.chat.call_args.args
        assert system_prompt.startswith(chat_service.get_agent_prompt(AgentType.NEGOTIATION))
        assert "Address: 123 Oak St, Hershey, PA 17033" in system_prompt
        assert "ARV: $350000" in system_prompt
        assert "Equity: 72%" in system_prompt
        assert "Owner Name: Jane Doe" in system_prompt
        assert "CONTACT:\nName: Jane Doe\nPhone: 717-555-0100\nEmail: unknown" in system_prompt

    @pytest.mark.asyncio
    async def test_unlinked_conversation_uses_plain_prompt(self, db, llm, store):
        await chat_service.handle_chat(
            db, ChatRequest(message="How do I pitch?", agent_type=AgentType.NEGOTIATION), llm, store
        )

        system_prompt, _ = llm.chat.call_args.args
        assert system_prompt == chat_service.get_agent_prompt(AgentType.NEGOTIATION)

    @pytest.mark.asyncio
    async def test_missing_linked_property_is_skipped(self, db, llm, store):
        conversation = conversation_service.create_conversation(
            db, ConversationCreate(title="Lost deal", agent_type=AgentType.CLOSING, property_id=999)
        )

        await chat_service.handle_chat(
            db,
            ChatRequest(message="hi", agent_type=AgentType.CLOSING, conversation_id=conversation.id),
            llm,
            store,
        )

        system_prompt, _ = llm.chat.call_args.args
        assert system_prompt == chat_service.get_agent_prompt(AgentType.CLOSING)


class TestCashBuyerTurns:
    @pytest.mark.asyncio
    @pytest.mark.usefixtures("_mock_property_data")
    async def test_cash_buyer_request_returns_buyer_cards(self, db, llm, store):
        response = await chat_service.handle_chat(
            db, ChatRequest(message="Find cash buyers in Hershey, PA"), llm, store
        )

        llm.chat.assert_not_called()
        assert "QUALIFIED CASH BUYER #1" in response.response
        assert response.buyers[0].investor_name == "Keystone Home Buyers LLC"
        assert "Tom Becker" not in [card.investor_name for card in response.buyers]
        assert response.properties == []
        assert len(store.get(response.session_id).tracker) == 0

        messages = conversation_service.list_messages(db, response.conversation_id)
        assert messages[-1].content == response.response

    @pytest.mark.asyncio
    async def test_cash_buyer_search_failure_apologizes(self, db, llm, store):
        failing = AsyncMock(side_effect=BatchDataAPIError("BatchData API returned 503"))
        with patch.object(chat_service.buyer_service, "find_cash_buyers", failing):
            response = await chat_service.handle_chat(
                db, ChatRequest(message="find cash buyers in Erie"), llm, store
            )

        assert response.response == chat_service.SEARCH_APOLOGY
        assert response.buyers == []

    @pytest.mark.asyncio
    async def test_location_and_count_reach_the_search(self, db, llm, store):
        found = AsyncMock(return_value=MagicMock(message="No active cash buyers found in Erie, PA."))
        with patch.object(chat_service.buyer_service, "find_cash_buyers", found):
            response = await chat_service.handle_chat(
                db, ChatRequest(message="find 3 cash buyers in Erie, PA"), llm, store
            )

        found.assert_awaited_once_with("Erie, PA", limit=3)
        # The reply names a known city but is not a listing.
        assert response.properties == []
        assert len(store.get(response.session_id).tracker) == 0
