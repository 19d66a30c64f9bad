"""Cash-buyer search: find active investors to assign wholesale contracts to."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from app.config import settings
from app.schemas.buyer import CashBuyer, CashBuyerResponse
from app.services.batchdata_client import BatchDataAPIError, BatchDataClient

logger = logging.getLogger(__name__)

MIN_PORTFOLIO_SIZE = 3
# Without a sale date a larger portfolio stands in for recent activity.
UNDATED_PORTFOLIO_SIZE = 5
RECENT_SALE_DAYS = 365
SAME_AS_PROPERTY = "Same as property address"
CONTACT_FOR_DETAILS = "Contact for details"

MOCK_CASH_BUYERS: list[dict[str, Any]] = [
    {
        "_id": "mock-buyer-keystone",
        "address": {"street": "730 Chocolate Ave", "city": "Hershey", "state": "PA", "zip": "17033"},
        "building": {"propertyType": "Single Family", "bedroomCount": 3, "bathroomCount": 2, "totalBuildingAreaSquareFeet": 1820},
        "valuation": {"estimatedValue": 241000, "equityPercent": 100},
        "owner": {
            "fullName": "Keystone Home Buyers LLC",
            "emails": ["offers@keystonehomebuyers.example"],
            "phoneNumbers": [{"number": "7175550188", "type": "Mobile", "dnc": False}],
            "mailingAddress": {"street": "100 Market St", "city": "Harrisburg", "state": "PA", "zip": "17101"},
        },
        "propertyOwnerProfile": {
            "propertiesCount": 8,
            "propertiesTotalEstimatedValue": 1715000,
            "averagePurchasePrice": 164000,
        },
        "quickLists": {"cashBuyer": True},
    },
    {
        "_id": "mock-buyer-moreno",
        "address": {"street": "19 Linden Rd", "city": "Hummelstown", "state": "PA", "zip": "17036"},
        "building": {"propertyType": "Townhouse", "bedroomCount": 2, "bathroomCount": 1, "totalBuildingAreaSquareFeet": 1180},
        "valuation": {"estimatedValue": 168000, "equityPercent": 100},
        "owner": {
            "fullName": "Lisa Moreno",
            "phoneNumbers": [{"number": "7175550121", "type": "Landline", "dnc": True}],
            "mailingAddress": {"street": "4 Ocean Blvd", "city": "Cape May", "state": "NJ", "zip": "08204"},
        },
        "propertyOwnerProfile": {"propertiesCount": 3, "averagePurchasePrice": 139000},
        "sale": {"lastSaleDate": "2026-09-02", "lastSalePrice": 151000},
        "quickLists": {"cashBuyer": True},
    },
    {
        "_id": "mock-buyer-becker",
        "address": {"street": "5 Orchard Ct", "city": "Palmyra", "state": "PA", "zip": "17078"},
        "valuation": {"estimatedValue": 205000},
        "owner": {"fullName": "Tom Becker"},
        "propertyOwnerProfile": {"propertiesCount": 1},
        "quickLists": {"cashBuyer": True},
    },
]


# ── BatchData record helpers ───────────────────────────────────────────────


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value)[:10]).date()
    except ValueError:
        return None


def portfolio_size(raw: dict[str, Any]) -> int:
    profile = raw.get("propertyOwnerProfile") or {}
    return int(profile.get("propertiesCount") or raw.get("propertyCount") or 1)


def last_sale(raw: dict[str, Any]) -> tuple[str | None, int | None]:
    """Most recent sale date and price, wherever the record keeps them."""
    sale = raw.get("sale") or {}
    nested = sale.get("lastSale") or {}
    sale_date = sale.get("lastSaleDate") or nested.get("saleDate") or raw.get("lastSaleDate")
    price = sale.get("lastSalePrice") or nested.get("salePrice")
    return (str(sale_date) if sale_date else None), (int(price) if price else None)


def is_qualified_buyer(raw: dict[str, Any], *, today: date | None = None) -> bool:
    """Owns at least MIN_PORTFOLIO_SIZE properties and bought within the last year.

    Records with no usable sale date qualify on portfolio size alone.
    """
    count = portfolio_size(raw)
    if count < MIN_PORTFOLIO_SIZE:
        return False
    sold_on = _parse_date(last_sale(raw)[0])
    if sold_on is None:
        return count >= UNDATED_PORTFOLIO_SIZE
    return ((today or date.today()) - sold_on).days <= RECENT_SALE_DAYS


def _is_cash_buyer(raw: dict[str, Any]) -> bool:
    quick_lists = raw.get("quickLists") or {}
    return bool(quick_lists.get("cashBuyer") or quick_lists.get("cashbuyer"))


def calculate_buyer_score(raw: dict[str, Any], *, today: date | None = None) -> int:
    score = 50
    if _is_cash_buyer(raw):
        score += 30

    count = portfolio_size(raw)
    if count > 1:
        score += min(20, count * 5)

    sold_on = _parse_date(last_sale(raw)[0])
    if sold_on is not None and (today or date.today()).year - sold_on.year <= 2:
        score += 15

    estimated_value = (raw.get("valuation") or {}).get("estimatedValue") or 0
    if estimated_value > 500_000:
        score += 10
    if estimated_value > 1_000_000:
        score += 10

    return min(100, max(0, score))


def determine_buyer_type(raw: dict[str, Any]) -> str:
    count = portfolio_size(raw)
    estimated_value = (raw.get("valuation") or {}).get("estimatedValue") or 0

    if count > 5:
        return "Portfolio Investor"
    if count > 1:
        return "Small Investor"
    if estimated_value > 1_000_000:
        return "High-End Investor"
    if _is_cash_buyer(raw):
        return "Cash Buyer"
    return "Individual Investor"


def is_out_of_state_owner(raw: dict[str, Any]) -> bool:
    state = (raw.get("address") or {}).get("state")
    mailing_state = (((raw.get("owner") or {}).get("mailingAddress")) or {}).get("state")
    if not state or not mailing_state:
        return False
    return state != mailing_state


def _mailing_address(raw: dict[str, Any]) -> str:
    mailing = (raw.get("owner") or {}).get("mailingAddress")
    if not mailing or not mailing.get("street"):
        return SAME_AS_PROPERTY
    parts = [mailing.get("street"), mailing.get("city"), f"{mailing.get('state') or ''} {mailing.get('zip') or ''}".strip()]
    return ", ".join(part for part in parts if part)


def _phones(owner: dict[str, Any]) -> tuple[list[str], list[str]]:
    regular, dnc = [], []
    for phone in owner.get("phoneNumbers") or []:
        number = phone.get("number")
        if not number:
            continue
        label = f"{number} ({phone['type']})" if phone.get("type") else str(number)
        (dnc if phone.get("dnc") else regular).append(label)
    if not regular and not dnc and owner.get("phone"):
        regular.append(str(owner["phone"]))
    return regular, dnc


def convert_to_cash_buyer(raw: dict[str, Any], index: int, *, today: date | None = None) -> CashBuyer:
    address = raw.get("address") or {}
    owner = raw.get("owner") or {}
    building = raw.get("building") or {}
    valuation = raw.get("valuation") or {}
    profile = raw.get("propertyOwnerProfile") or {}

    estimated_value = int(valuation.get("estimatedValue") or valuation.get("value") or 0)
    count = portfolio_size(raw)
    score = calculate_buyer_score(raw, today=today)
    sale_date, sale_price = last_sale(raw)
    phones, dnc_phones = _phones(owner)
    emails = list(owner.get("emails") or ([owner["email"]] if owner.get("email") else []))
    average = profile.get("averagePurchasePrice")

    return CashBuyer(
        buyer_id=str(raw.get("_id") or f"buyer-{index}"),
        name=owner.get("fullName") or owner.get("name") or "Unknown Owner",
        address=(address.get("street") or "").strip(),
        city=address.get("city") or "N/A",
        state=address.get("state") or "N/A",
        zip_code=str(address.get("zip") or address.get("zipCode") or ""),
        phones=phones,
        dnc_phones=dnc_phones,
        emails=emails,
        mailing_address=_mailing_address(raw),
        estimated_value=estimated_value,
        property_count=count,
        total_portfolio_value=int(profile.get("propertiesTotalEstimatedValue") or estimated_value),
        average_purchase_price=int(average) if average else None,
        property_type=building.get("propertyType") or "Single Family",
        bedrooms=building.get("bedroomCount") or building.get("bedrooms"),
        bathrooms=building.get("bathroomCount") or building.get("bathrooms"),
        square_feet=building.get("totalBuildingAreaSquareFeet") or building.get("livingArea"),
        year_built=building.get("yearBuilt"),
        equity_percentage=round(float(valuation.get("equityPercent") or 0), 2),
        buyer_score=score,
        investment_type=determine_buyer_type(raw),
        last_sale_date=sale_date,
        last_sale_price=sale_price,
        active_investor=score > 70,
        out_of_state_owner=is_out_of_state_owner(raw),
        portfolio_investor=count > 1,
    )


# ── Chat formatting ────────────────────────────────────────────────────────


def _dollars(value: int | None) -> str:
    return f"${value:,}" if value else "N/A"


def format_buyer_card(buyer: CashBuyer, number: int) -> str:
    """One buyer rendered for chat; the layout is the one parse_buyer_cards reads."""
    sold_on = _parse_date(buyer.last_sale_date)
    building = [buyer.property_type]
    building.append(f"{buyer.square_feet:,} sqft" if buyer.square_feet else "N/A")

    lines = [
        f"🎯 QUALIFIED CASH BUYER #{number}",
        "",
        "👤 **INVESTOR PROFILE**",
        buyer.name,
        f"📍 Based in {buyer.city}, {buyer.state}",
        "",
        "💰 **PORTFOLIO OVERVIEW**",
        f"• Total Portfolio Value: {_dollars(buyer.total_portfolio_value)}",
        f"• Properties Owned: {buyer.property_count} properties",
        f"• Avg Purchase Price: {_dollars(buyer.average_purchase_price)}",
        f"• Last Activity: {sold_on.strftime('%m/%d/%Y') if sold_on else 'N/A'}",
        f"• Buyer Score: {buyer.buyer_score}/100",
        f"• Investor Type: {buyer.investment_type}",
        "",
        "🏠 **RECENT PURCHASE**",
        f"📍 {buyer.address}",
        f"    {buyer.city}, {buyer.state} {buyer.zip_code}".rstrip(),
        f"🏘️ {' • '.join(building)}",
        f"🛏️ {buyer.bedrooms or 'N/A'} bed • 🛁 {buyer.bathrooms or 'N/A'} bath",
        f"💵 Last Sale: {_dollars(buyer.last_sale_price or buyer.estimated_value)}",
        "",
        "📞 **CONTACT DETAILS**",
        f"📧 {', '.join(buyer.emails) if buyer.emails else CONTACT_FOR_DETAILS}",
        f"📮 {buyer.mailing_address}",
    ]
    if buyer.phones:
        lines.append(f"📱 {', '.join(buyer.phones)}")
    if buyer.dnc_phones:
        lines.append(f"🚫 DNC: {', '.join(buyer.dnc_phones)}")
    if not buyer.phones and not buyer.dnc_phones:
        lines.append(f"📱 {CONTACT_FOR_DETAILS}")
    return "\n".join(lines)


def format_buyers_message(buyers: list[CashBuyer], location: str) -> str:
    if not buyers:
        return f"No active cash buyers found in {location}. Try expanding your search area."
    intro = (
        f"💰 Found {len(buyers)} qualified cash buyers with {MIN_PORTFOLIO_SIZE}+ properties "
        f"in **{location}**. Here are your leads:"
    )
    cards = [format_buyer_card(buyer, number) for number, buyer in enumerate(buyers, start=1)]
    return "\n\n".join([intro, *cards])


# ── Search ─────────────────────────────────────────────────────────────────


class _MockBuyerClient:
    """Stands in for BatchDataClient when no API key is configured."""

    async def __aenter__(self) -> _MockBuyerClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def search_cash_buyers(self, location: str, *, limit: int = 5) -> tuple[list[dict[str, Any]], int]:
        return list(MOCK_CASH_BUYERS), len(MOCK_CASH_BUYERS)


async def find_cash_buyers(
    location: str,
    *,
    limit: int = 5,
    client: BatchDataClient | None = None,
    today: date | None = None,
) -> CashBuyerResponse:
    """Search the cash-buyer quick list and keep the first ``limit`` qualified buyers."""
    location = location or settings.default_search_location
    source = "batchdata"
    if client is None:
        try:
            client = BatchDataClient()
        except BatchDataAPIError as e:
            logger.warning("BatchData client init failed (%s); using mock cash buyers", e)
            client = _MockBuyerClient()
            source = "mock"

    async with client:
        raws, _total = await client.search_cash_buyers(location, limit=limit)

    qualified = [raw for raw in raws if is_qualified_buyer(raw, today=today)]
    buyers = [
        convert_to_cash_buyer(raw, index, today=today)
        for index, raw in enumerate(qualified[:limit], start=1)
    ]
    logger.info(
        "Cash buyers '%s': %d qualified of %d checked, returning %d (source=%s)",
        location,
        len(qualified),
        len(raws),
        len(buyers),
        source,
    )
    return CashBuyerResponse(
        buyers=buyers,
        message=format_buyers_message(buyers, location),
        total_checked=len(raws),
        qualified=len(qualified),
        has_more=len(qualified) > limit,
        source=source,
    )
