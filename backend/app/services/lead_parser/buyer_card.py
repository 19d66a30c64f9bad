"""Read cash-buyer cards back out of an assistant message."""

from __future__ import annotations

import re

from app.schemas.buyer import BuyerCard
from app.services.lead_parser.normalizer import clean_amount, is_placeholder, to_int

BUYER_CARD_MARKER = "QUALIFIED CASH BUYER #"

_CARD_START_RE = re.compile(r"^.*QUALIFIED CASH BUYER #(\d+).*$", re.MULTILINE)
_NAME_RE = re.compile(r"INVESTOR PROFILE\W*\n\s*(?P<value>[^\n]+)")
_LOCATION_RE = re.compile(r"📍\s*Based in\s+(?P<value>[^\n]+)")
_PORTFOLIO_RE = re.compile(r"Total Portfolio Value:\s*(?P<value>[^\n]+)")
_COUNT_RE = re.compile(r"Properties Owned:\s*(?P<value>\d+)")
_AVERAGE_RE = re.compile(r"Avg Purchase Price:\s*(?P<value>[^\n]+)")
_ACTIVITY_RE = re.compile(r"Last Activity:\s*(?P<value>[^\n]+)")
_PURCHASE_RE = re.compile(
    r"📍[ \t]*(?!Based in)(?P<street>[^\s][^\n]*)\n\s*(?P<city>[^,\n]+),\s*(?P<state>[A-Z]{2})\s*(?P<zip>\d{5})?"
)
_BUILDING_RE = re.compile(r"🏘️?\s*(?P<type>[^•\n]+?)\s*•\s*(?P<sqft>[\d,]+)\s*sqft")
_BEDS_RE = re.compile(r"🛏️?\s*(?P<value>\d+)\s*bed")
_BATHS_RE = re.compile(r"🛁️?\s*(?P<value>\d+)\s*bath")
_LAST_SALE_RE = re.compile(r"💵\s*Last Sale:\s*(?P<value>[^\n]+)")
_EMAIL_RE = re.compile(r"📧\s*(?P<value>[^\n]+)")


def _value(pattern: re.Pattern[str], card: str) -> str | None:
    match = pattern.search(card)
    if not match:
        return None
    value = match.group("value").strip().strip("*").strip()
    return None if not value or is_placeholder(value) else value


def _parse_card(ordinal: int, card: str) -> BuyerCard:
    fields: dict[str, object] = {
        "ordinal": ordinal,
        "location": _value(_LOCATION_RE, card) or "",
        "portfolio_value": clean_amount(_value(_PORTFOLIO_RE, card)),
        "properties_count": to_int(_value(_COUNT_RE, card), None, minimum=0),
        "average_purchase_price": clean_amount(_value(_AVERAGE_RE, card)),
        "last_activity": _value(_ACTIVITY_RE, card),
        "bedrooms": to_int(_value(_BEDS_RE, card), None, minimum=1),
        "bathrooms": to_int(_value(_BATHS_RE, card), None, minimum=1),
        "last_sale_price": clean_amount(_value(_LAST_SALE_RE, card)),
        "email": _value(_EMAIL_RE, card),
    }
    name = _value(_NAME_RE, card)
    if name:
        fields["investor_name"] = name

    purchase = _PURCHASE_RE.search(card)
    if purchase:
        fields["recent_address"] = purchase.group("street").strip()
        fields["city"] = purchase.group("city").strip()
        fields["state"] = purchase.group("state")
        fields["zip_code"] = purchase.group("zip") or ""

    building = _BUILDING_RE.search(card)
    if building:
        fields["property_type"] = building.group("type").strip()
        fields["square_feet"] = to_int(building.group("sqft"), None, minimum=1)

    return BuyerCard(**fields)


def parse_buyer_cards(text: str) -> list[BuyerCard]:
    """Every buyer card in ``text``, in order. Plain chat gives an empty list."""
    if not text or BUYER_CARD_MARKER not in text:
        return []

    starts = list(_CARD_START_RE.finditer(text))
    cards = []
    for index, match in enumerate(starts):
        end = starts[index + 1].start() if index + 1 < len(starts) else len(text)
        cards.append(_parse_card(int(match.group(1)), text[match.end():end]))
    return cards
