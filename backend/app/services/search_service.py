"""Property search service using the BatchData API."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from app.config import settings
from app.schemas.property import (
    MAILING_PLACEHOLDER,
    OWNER_NAME_PLACEHOLDER,
    OWNER_STATUS_PLACEHOLDER,
    SKIP_TRACE_PLACEHOLDER,
    PropertyRecord,
)
from app.schemas.search import FoundProperty, SearchCriteria, SearchResponse
from app.services.batchdata_client import BatchDataAPIError, BatchDataClient
from app.services.lead_parser.normalizer import label_key
from app.services.lead_parser.tracker import DiscriminatorPolicy, property_key

logger = logging.getLogger(__name__)

# Anything valued at or below this is treated as bad data.
MIN_ESTIMATED_VALUE = 25_000
# 70% rule, kept as a fraction so whole-dollar values floor exactly.
MAX_OFFER_NUMERATOR, MAX_OFFER_DENOMINATOR = 7, 10
DEFAULT_EQUITY_PERCENT = 50

MOCK_PROPERTIES: list[dict[str, Any]] = [
    {
        "_id": "mock-hershey-1",
        "address": {"street": "412 Cocoa Ave", "city": "Hershey", "state": "PA", "zip": "17033"},
        "building": {"bedroomCount": 3, "bathroomCount": 2, "totalBuildingAreaSquareFeet": 1640, "yearBuilt": 1962},
        "valuation": {"estimatedValue": 289000, "equityPercent": 78, "equityBalance": 225420},
        "sale": {"lastSale": {"salePrice": 98000, "saleDate": "2004-06-18"}},
        "owner": {
            "fullName": "Margaret Ellis",
            "mailingAddress": {"street": "88 Harbor Rd", "city": "Naples", "state": "FL", "zip": "34102"},
        },
        "quickLists": {"absenteeOwner": True, "highEquity": True},
    },
    {
        "_id": "mock-harrisburg-1",
        "address": {"street": "1907 N 3rd St", "city": "Harrisburg", "state": "PA", "zip": "17102"},
        "building": {"bedroomCount": 4, "bathroomCount": 1, "totalBuildingAreaSquareFeet": 2110, "yearBuilt": 1925},
        "valuation": {"estimatedValue": 174000, "equityPercent": 55},
        "owner": {"fullName": "Darnell Hughes", "phone": "7175550143"},
        "quickLists": {"preforeclosure": True, "vacant": True},
        "foreclosure": {
            "status": "Notice of Default",
            "unpaidBalance": 81250,
            "auctionDate": "2026-12-03",
            "caseNumber": "2026-CV-04417",
            "trusteeName": "Keystone Trustee Services",
        },
    },
    {
        "_id": "mock-camp-hill-1",
        "address": {"street": "25 Walnut Ln", "city": "Camp Hill", "state": "PA", "zip": "17011"},
        "building": {"bedroomCount": 3, "bathroomCount": 2, "totalBuildingAreaSquareFeet": 1480, "yearBuilt": 1988},
        "valuation": {"estimatedValue": 236000, "equityPercent": 100},
        "owner": {"fullName": "Priya Raman", "email": "praman@example.net"},
        "quickLists": {"freeAndClear": True},
    },
]


# ── BatchData record helpers ───────────────────────────────────────────────


def raw_property_id(raw: dict[str, Any]) -> str:
    """BatchData's own id, or street + owner when the API omits it."""
    if raw.get("_id"):
        return str(raw["_id"])
    street = (raw.get("address") or {}).get("street")
    owner = (raw.get("owner") or {}).get("fullName")
    return f"{street}_{owner}"


def _quick_lists(raw: dict[str, Any]) -> dict[str, Any]:
    return raw.get("quickLists") or {}


def _equity_percent(raw: dict[str, Any]) -> float:
    return (raw.get("valuation") or {}).get("equityPercent") or 0


def get_lead_type(raw: dict[str, Any]) -> str:
    quick_lists = _quick_lists(raw)
    equity = _equity_percent(raw)

    if quick_lists.get("preforeclosure"):
        return "preforeclosure"
    if equity >= 70:
        return "high_equity"
    if quick_lists.get("absenteeOwner"):
        return "absentee_owner"
    if quick_lists.get("vacant"):
        return "vacant"
    if equity >= 50:
        return "motivated_seller"
    return "standard"


def get_distressed_indicator(raw: dict[str, Any]) -> str:
    quick_lists = _quick_lists(raw)

    if quick_lists.get("preforeclosure"):
        return "preforeclosure"
    if quick_lists.get("vacant"):
        return "vacant"
    if quick_lists.get("highEquity") and quick_lists.get("absenteeOwner"):
        return "high_equity_absentee"
    if quick_lists.get("highEquity"):
        return "high_equity"
    if quick_lists.get("absenteeOwner"):
        return "absentee_owner"
    if quick_lists.get("freeAndClear"):
        return "free_and_clear"
    return "standard"


def calculate_confidence_score(raw: dict[str, Any], *, today: date | None = None) -> int:
    """Score 0-100 for how complete and how motivated a lead looks."""
    score = 30
    owner = raw.get("owner") or {}
    building = raw.get("building") or {}
    valuation = raw.get("valuation") or {}
    quick_lists = _quick_lists(raw)
    equity = _equity_percent(raw)

    email = owner.get("email") or ""
    if "@" in email and "skip trace" not in email:
        score += 20
    else:
        score += 5

    phone = owner.get("phone") or ""
    score += 20 if len(str(phone)) >= 10 else 5

    if owner.get("mailingAddress") or owner.get("ownerOccupied") is False:
        score += 15

    if building.get("bedroomCount") or building.get("bedrooms"):
        score += 10
    if building.get("bathroomCount") or building.get("bathrooms"):
        score += 10
    if (valuation.get("estimatedValue") or 0) > 100_000:
        score += 5

    if equity >= 70:
        score += 30
    elif equity >= 50:
        score += 20

    if quick_lists.get("absenteeOwner"):
        score += 20
    if quick_lists.get("vacant"):
        score += 25
    if quick_lists.get("preforeclosure"):
        score += 35
    if quick_lists.get("freeAndClear"):
        score += 15
    if quick_lists.get("highEquity"):
        score += 25

    current_year = (today or date.today()).year
    age = current_year - (building.get("yearBuilt") or current_year)
    if age >= 40:
        score += 15
    elif age >= 20:
        score += 10

    return min(100, max(0, score))


def _format_mailing(mailing: dict[str, Any] | None) -> str | None:
    if not mailing:
        return None
    street, city, state = mailing.get("street"), mailing.get("city"), mailing.get("state")
    if not (street and city and state):
        return None
    return f"{street}, {city}, {state} {mailing.get('zip') or ''}".strip()


def convert_to_property(
    raw: dict[str, Any],
    criteria: SearchCriteria | None = None,
) -> PropertyRecord | None:
    """Convert a BatchData property into a PropertyRecord.

    Returns None for properties without a street, city or state, and for
    those valued at or below MIN_ESTIMATED_VALUE.
    """
    address = raw.get("address") or {}
    building = raw.get("building") or {}
    valuation = raw.get("valuation") or {}
    owner = raw.get("owner") or {}

    street = (address.get("street") or "").strip()
    city = (address.get("city") or "").strip()
    state = (address.get("state") or "").strip()
    estimated_value = valuation.get("estimatedValue") or 0

    if not (street and city and state) or estimated_value <= MIN_ESTIMATED_VALUE:
        logger.debug("Skipping incomplete BatchData property %s", raw_property_id(raw))
        return None

    if criteria and criteria.min_bedrooms and (building.get("bedroomCount") or 0) < criteria.min_bedrooms:
        # BatchData applies the filter server side; a mismatch means patchy building data.
        logger.debug("Property %s reports fewer bedrooms than requested", raw_property_id(raw))

    equity = valuation.get("equityPercent")
    last_sale = ((raw.get("sale") or {}).get("lastSale") or {}).get("salePrice")
    property_type = building.get("propertyType")

    return PropertyRecord(
        address=street,
        city=city,
        state=state,
        zip_code=str(address.get("zip") or ""),
        bedrooms=_int_or_none(building.get("bedroomCount") or building.get("bedrooms")),
        bathrooms=_int_or_none(building.get("bathroomCount") or building.get("bathrooms")),
        square_feet=_int_or_none(building.get("totalBuildingAreaSquareFeet") or building.get("livingArea")),
        year_built=_int_or_none(building.get("yearBuilt")),
        property_type=label_key(property_type) if property_type else "single_family",
        arv=str(int(estimated_value)),
        max_offer=str(math.floor(estimated_value * MAX_OFFER_NUMERATOR / MAX_OFFER_DENOMINATOR)),
        last_sale_price=str(int(last_sale)) if last_sale else None,
        equity_percentage=round(equity if equity is not None else DEFAULT_EQUITY_PERCENT),
        confidence_score=calculate_confidence_score(raw),
        owner_name=owner.get("fullName") or OWNER_NAME_PLACEHOLDER,
        owner_phone=owner.get("phone") or SKIP_TRACE_PLACEHOLDER,
        owner_email=owner.get("email") or SKIP_TRACE_PLACEHOLDER,
        owner_mailing_address=_format_mailing(owner.get("mailingAddress")) or MAILING_PLACEHOLDER,
        owner_status=_owner_status(raw),
        lead_type=get_lead_type(raw),
        distressed_indicator=get_distressed_indicator(raw),
    )


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _owner_status(raw: dict[str, Any]) -> str:
    address = raw.get("address") or {}
    mailing = _format_mailing((raw.get("owner") or {}).get("mailingAddress"))
    if mailing is None:
        return OWNER_STATUS_PLACEHOLDER
    property_address = f"{address.get('street')}, {address.get('city')}, {address.get('state')} {address.get('zip') or ''}".strip()
    if mailing.lower() != property_address.lower():
        return "Absentee Owner (Lives elsewhere)"
    return "Owner Occupied"


# ── Chat formatting ────────────────────────────────────────────────────────


def _money(value: str | float | int | None) -> str:
    try:
        return f"${int(float(value)):,}"
    except (TypeError, ValueError, OverflowError):
        return "N/A"


def _building_line(record: PropertyRecord) -> str:
    parts = []
    if record.bedrooms:
        parts.append(f"{record.bedrooms}bd")
    if record.bathrooms:
        parts.append(f"{record.bathrooms}ba")
    if record.square_feet:
        parts.append(f"{record.square_feet:,} sq ft")
    if record.year_built:
        parts.append(f"Built {record.year_built}")
    return " • ".join(parts) if parts else "Building details not available"


def _motivation_factors(raw: dict[str, Any]) -> list[str]:
    quick_lists = _quick_lists(raw)
    factors = []
    if quick_lists.get("preforeclosure"):
        factors.append("⚠️ Pre-foreclosure")
    if quick_lists.get("vacant"):
        factors.append("🏚️ Vacant")
    if quick_lists.get("absenteeOwner"):
        factors.append("🏃 Absentee Owner")
    if quick_lists.get("highEquity"):
        factors.append("💰 High Equity")
    if quick_lists.get("freeAndClear"):
        factors.append("🔓 Free and Clear")
    return factors


def _format_date(value: str | None, default: str) -> str:
    if not value:
        return default
    try:
        return datetime.fromisoformat(value).strftime("%m/%d/%Y")
    except ValueError:
        return value


def format_property_text(record: PropertyRecord, raw: dict[str, Any] | None = None) -> str:
    """Render one lead the way the lead finder presents it in chat.

    The layout is the one the chat parser reads back, so every value the
    record carries survives a format/parse cycle.
    """
    raw = raw or {}
    owner_status = record.owner_status
    if owner_status.startswith("Absentee"):
        owner_status = f"🏃 {owner_status}"
    elif owner_status == "Owner Occupied":
        owner_status = f"🏠 {owner_status}"

    lines = [
        "**PROPERTY DETAILS:**",
        record.address,
        f"{record.city}, {record.state} {record.zip_code}".strip(),
        _building_line(record),
        f"Property Type: {record.property_type}",
        "",
        "**FINANCIAL ANALYSIS:**",
        f"ARV: {_money(record.arv)}",
        f"Max Offer (70% Rule): {_money(record.max_offer)}",
    ]
    if record.last_sale_price:
        lines.append(f"Last Sale Price: {_money(record.last_sale_price)}")
    lines += [
        f"Equity: {record.equity_percentage}%",
        f"Motivation Score: {record.confidence_score}/100",
        f"Lead Type: {record.lead_type}",
        f"Distressed Indicator: {record.distressed_indicator}",
    ]

    factors = _motivation_factors(raw)
    if factors:
        lines += ["", "**MOTIVATION FACTORS:**", *factors]

    lines += [
        "",
        "**CONTACT INFORMATION:**",
        f"Owner Name: {record.owner_name}",
        f"Property Address: {record.address}, {record.city}, {record.state} {record.zip_code}".rstrip(),
        f"Mailing Address: {record.owner_mailing_address}",
        f"Owner Status: {owner_status}",
        f"📞 Phone: {record.owner_phone}",
        f"📧 Email: {record.owner_email}",
    ]

    foreclosure = raw.get("foreclosure")
    if foreclosure:
        lines += [
            "",
            "**FORECLOSURE DETAILS:**",
            f"Status: {foreclosure.get('status') or 'Unknown'}",
            f"Unpaid Balance: {_money(foreclosure.get('unpaidBalance'))}",
            f"Auction Date: {_format_date(foreclosure.get('auctionDate'), 'TBD')}",
            f"Case Number: {foreclosure.get('caseNumber') or 'N/A'}",
            f"Trustee: {foreclosure.get('trusteeName') or 'N/A'}",
        ]
    return "\n".join(lines)


def format_properties_message(
    leads: list[tuple[PropertyRecord, dict[str, Any]]],
    location: str,
    has_more: bool,
) -> str:
    """Assistant reply for a batch of leads; several leads become a numbered list."""
    if not leads:
        return "No more properties found in your current search. Try a new search with different criteria!"

    if len(leads) == 1:
        body = format_property_text(*leads[0])
        intro = f"🎯 Found a high-priority property lead in {location}:"
    else:
        blocks = [
            f"{number}. {format_property_text(record, raw)}"
            for number, (record, raw) in enumerate(leads, start=1)
        ]
        body = "\n\n".join(blocks)
        intro = f"🎯 Found {len(leads)} property leads in {location}:"

    outro = "Say 'next' to see more properties." if has_more else "That's every matching property for this search."
    return f"{intro}\n\n{body}\n\n{outro}"


# ── Search ─────────────────────────────────────────────────────────────────


class _MockClient:
    """Stands in for BatchDataClient when no API key is configured."""

    async def __aenter__(self) -> _MockClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def search_properties(
        self, criteria: SearchCriteria, *, page: int = 1, per_page: int | None = None
    ) -> tuple[list[dict[str, Any]], int]:
        if page > 1:
            return [], len(MOCK_PROPERTIES)
        return list(MOCK_PROPERTIES), len(MOCK_PROPERTIES)


async def get_next_valid_properties(
    criteria: SearchCriteria,
    *,
    session_state: dict[str, Any] | None = None,
    excluded_property_ids: Iterable[str] = (),
    policy: DiscriminatorPolicy = DiscriminatorPolicy.OWNER,
    conversation_id: int | None = None,
    client: BatchDataClient | None = None,
) -> SearchResponse:
    """
    Page through BatchData until ``criteria.limit`` new, usable properties
    are found.

    1. Resumes at ``session_state["current_page"]`` (page 1 for a new search)
    2. Skips properties whose BatchData id or chat identifier was excluded
    3. Drops properties that fail conversion (missing address, low value)
    4. Stops after ``settings.batchdata_max_pages`` pages
    5. Falls back to mock data if no API key is configured

    The returned session state is opaque to callers and should be passed
    back unchanged to fetch the next batch.
    """
    state = dict(session_state or {})
    page = int(state.get("current_page") or 1)
    seen_ids: list[str] = list(state.get("exclude_property_ids") or [])
    excluded = set(excluded_property_ids) | set(seen_ids)

    source = "batchdata"
    if client is None:
        try:
            client = BatchDataClient()
        except BatchDataAPIError as e:
            logger.warning("BatchData client init failed (%s); falling back to mock data", e)
            client = _MockClient()
            source = "mock"

    found: list[FoundProperty] = []
    leads: list[tuple[PropertyRecord, dict[str, Any]]] = []
    checked = filtered = 0
    exhausted = False

    async with client:
        while len(found) < criteria.limit:
            if page > settings.batchdata_max_pages:
                exhausted = True
                break
            raws, _total = await client.search_properties(criteria, page=page)
            if not raws:
                logger.info("Page %d: no more properties available", page)
                exhausted = True
                break

            for raw in raws:
                if len(found) >= criteria.limit:
                    break
                checked += 1
                raw_id = raw_property_id(raw)
                if raw_id in excluded:
                    filtered += 1
                    continue
                excluded.add(raw_id)
                seen_ids.append(raw_id)

                record = convert_to_property(raw, criteria)
                if record is None:
                    filtered += 1
                    continue
                key = property_key(record, policy, conversation_id)
                if key in excluded:
                    filtered += 1
                    continue
                excluded.add(key)
                found.append(
                    FoundProperty(
                        property_id=key,
                        record=record,
                        foreclosure=raw.get("foreclosure"),
                    )
                )
                leads.append((record, raw))

            # Stay on a page that may still hold unseen properties.
            if len(found) < criteria.limit:
                page += 1

    logger.info(
        "Search '%s': %d found, %d checked, %d filtered (source=%s)",
        criteria.location,
        len(found),
        checked,
        filtered,
        source,
    )

    new_state = {
        **state,
        "current_page": page,
        "search_criteria": criteria.model_dump(),
        "exclude_property_ids": seen_ids,
    }
    has_more = bool(found) and not exhausted
    location = criteria.location or settings.default_search_location
    return SearchResponse(
        properties=found,
        message=format_properties_message(leads, location, has_more),
        session_state=new_state,
        has_more=has_more,
        source=source,
    )
