"""Tests for the property store: validation, lead saving, search and updates."""

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.schemas.property import PropertyCreate, PropertyRecord
from app.services import property_service
from app.utils.exceptions import PropertyNotFoundError, PropertyValidationError


def _record(**overrides) -> PropertyRecord:
    defaults = dict(
        address="123 Oak St",
        city="Hershey",
        state="PA",
        zip_code="17033",
        arv="350000",
        max_offer="245000",
        owner_name="Jane Doe",
    )
    defaults.update(overrides)
    return PropertyRecord(**defaults)


class TestValidateRecord:
    def test_complete_record(self):
        property_service.validate_record(_record())

    def test_reports_every_missing_field(self):
        with pytest.raises(PropertyValidationError) as exc_info:
            property_service.validate_record(_record(address="", state="  "))
        assert exc_info.value.missing == ["address", "state"]


class TestSaveLead:
    def test_saves_new_lead(self, db):
        prop = property_service.save_lead(db, _record())
        assert prop.id is not None
        assert prop.status == "new"
        assert prop.arv == "350000"

    def test_same_address_and_owner_reuses_row(self, db):
        first = property_service.save_lead(db, _record())
        second = property_service.save_lead(db, _record(arv="360000"))
        assert second.id == first.id
        assert len(property_service.list_properties(db)) == 1

    def test_same_address_new_owner_is_new_lead(self, db):
        first = property_service.save_lead(db, _record())
        second = property_service.save_lead(db, _record(owner_name="John Roe"))
        assert second.id != first.id

    def test_owner_only_lead_rejected(self, db):
        with pytest.raises(PropertyValidationError):
            property_service.save_lead(db, _record(address="", city="", state=""))
        assert property_service.list_properties(db) == []


class TestQueries:
    def test_get_missing_property(self, db):
        with pytest.raises(PropertyNotFoundError):
            property_service.get_property(db, 999)

    def test_list_filters_by_status(self, db):
        property_service.create_property(db, PropertyCreate(**_record().model_dump()))
        property_service.create_property(
            db, PropertyCreate(**_record(address="9 Elm Rd").model_dump(), status="contacted")
        )
        contacted = property_service.list_properties(db, status="contacted")
        assert [p.address for p in contacted] == ["9 Elm Rd"]

    def test_search_matches_owner_and_city(self, db):
        property_service.save_lead(db, _record())
        property_service.save_lead(db, _record(address="9 Elm Rd", city="Erie", owner_name="Sam Lee"))

        assert [p.address for p in property_service.search_properties(db, "sam")] == ["9 Elm Rd"]
        assert [p.address for p in property_service.search_properties(db, "hershey")] == ["123 Oak St"]

    def test_update_skips_none_values(self, db):
        prop = property_service.save_lead(db, _record())
        updated = property_service.update_property(
            db, prop.id, {"status": "contacted", "owner_phone": None}
        )
        assert updated.status == "contacted"
        assert updated.owner_phone == "Available via skip trace"
