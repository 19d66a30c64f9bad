"""Tests for shown-property identifiers and the per-session tracker."""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.schemas.property import PropertyRecord
from app.services.lead_parser.tracker import (
    DiscriminatorPolicy,
    ShownPropertyTracker,
    property_key,
)


def _record(**overrides) -> PropertyRecord:
    defaults = dict(address="123 Oak St", city="Hershey", state="PA", owner_name="Jane Doe")
    defaults.update(overrides)
    return PropertyRecord(**defaults)


class TestPropertyKey:
    def test_owner_policy(self):
        assert property_key(_record(), DiscriminatorPolicy.OWNER) == "123 Oak St_Jane Doe"

    def test_owner_policy_ignores_conversation(self):
        key = property_key(_record(), DiscriminatorPolicy.OWNER, conversation_id=7)
        assert key == "123 Oak St_Jane Doe"

    def test_conversation_policy(self):
        key = property_key(_record(), DiscriminatorPolicy.CONVERSATION, conversation_id=7)
        assert key == "123 Oak St_7"

    def test_conversation_policy_without_conversation(self):
        assert property_key(_record(), DiscriminatorPolicy.CONVERSATION) == "123 Oak St_"

    def test_same_house_two_owners_under_owner_policy(self):
        a = property_key(_record(owner_name="Jane Doe"), DiscriminatorPolicy.OWNER)
        b = property_key(_record(owner_name="John Roe"), DiscriminatorPolicy.OWNER)
        assert a != b

    def test_same_house_two_owners_under_conversation_policy(self):
        a = property_key(_record(owner_name="Jane Doe"), DiscriminatorPolicy.CONVERSATION, 3)
        b = property_key(_record(owner_name="John Roe"), DiscriminatorPolicy.CONVERSATION, 3)
        assert a == b


class TestShownPropertyTracker:
    def test_mark_then_has_shown(self):
        tracker = ShownPropertyTracker()
        assert not tracker.has_shown("123 Oak St_Jane Doe")
        tracker.mark_shown("123 Oak St_Jane Doe")
        assert tracker.has_shown("123 Oak St_Jane Doe")
        assert "123 Oak St_Jane Doe" in tracker

    def test_size_only_grows(self):
        tracker = ShownPropertyTracker()
        sizes = []
        for key in ["a_1", "b_1", "a_1", "c_1", "b_1"]:
            tracker.mark_shown(key)
            sizes.append(len(tracker))
        assert sizes == [1, 2, 2, 3, 3]
        assert sizes == sorted(sizes)

    def test_all_shown_is_a_snapshot(self):
        tracker = ShownPropertyTracker()
        tracker.mark_shown("a_1")
        snapshot = tracker.all_shown()
        tracker.mark_shown("b_1")
        assert snapshot == frozenset({"a_1"})
        assert tracker.all_shown() == frozenset({"a_1", "b_1"})
