"""Turn a split property message into a canonical PropertyRecord."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from app.schemas.property import (
    MAILING_PLACEHOLDER,
    OWNER_NAME_PLACEHOLDER,
    OWNER_STATUS_PLACEHOLDER,
    SKIP_TRACE_PLACEHOLDER,
    PropertyRecord,
)
from app.services.lead_parser.field_extractor import extract_field
from app.services.lead_parser.section_splitter import Section, SectionMap, match_header

ADDRESS_LABELS = ("Property Address", "Street Address", "Address")
CITY_LABELS = ("City",)
STATE_LABELS = ("State",)
ZIP_LABELS = ("Zip Code", "ZIP", "Postal Code")
BEDROOM_LABELS = ("Bedrooms", "Beds", "Bed")
BATHROOM_LABELS = ("Bathrooms", "Baths", "Bath")
SQFT_LABELS = ("Square Feet", "Sq Ft", "Sqft", "Living Area", "Total Area")
YEAR_BUILT_LABELS = ("Year Built", "Built")
PROPERTY_TYPE_LABELS = ("Property Type",)
ARV_LABELS = ("ARV", "After Repair Value", "Estimated Value", "Market Value", "Price")
MAX_OFFER_LABELS = ("Max Offer (70% Rule)", "Max Offer", "Maximum Offer")
LAST_SALE_LABELS = ("Last Sale Price", "Last Sale")
EQUITY_LABELS = ("Equity Percentage", "Equity Percent", "Equity")
SCORE_LABELS = ("Motivation Score", "Confidence Score")
OWNER_NAME_LABELS = ("Owner Name", "Owner")
OWNER_PHONE_LABELS = ("Phone(s)", "Phone", "Mobile", "Cell")
OWNER_EMAIL_LABELS = ("Email(s)", "Email", "E-mail")
MAILING_LABELS = ("Mailing Address", "Mailing")
OWNER_STATUS_LABELS = ("Owner Status", "Occupancy")
LEAD_TYPE_LABELS = ("Lead Type",)
DISTRESS_LABELS = ("Distressed Indicator", "Distress")

_PLACEHOLDER_MARKERS = (
    "not available",
    "n/a",
    "skip trace",
    "unknown",
    "contact for details",
    "not provided",
)

_INT_LIMIT = 2**31 - 1
_AMOUNT_RE = re.compile(r"-?\d+(?:\.\d+)?")
_LIST_PREFIX_RE = re.compile(r"^(?:[-•*📍🏠\s]+|\d{1,3}[.)]\s+)+")
_STREET_RE = re.compile(r"^\d+[A-Za-z]?(?:-\d+)?\s+[A-Za-z0-9]")
_NOT_A_STREET_RE = re.compile(
    r"\b(?:bd|beds?|bedrooms?|ba|baths?|bathrooms?|sq\.?\s*ft|sqft|properties|years?|days?)\b",
    re.IGNORECASE,
)
_FULL_ADDRESS_RE = re.compile(
    r"^(?P<street>[^,]+),\s*(?P<city>[^,]+),\s*(?P<state>[A-Za-z]{2})\.?"
    r"(?:\s+(?P<zip>\d{5}(?:-\d{4})?))?$"
)
_MAILING_LINE_RE = re.compile(r"^.*\bmailing\b.*$", re.IGNORECASE | re.MULTILINE)
_LAST_SALE_RE = re.compile(r"\blast sale\b.*", re.IGNORECASE)
_CITY_LINE_RE = re.compile(
    r"^(?P<city>[A-Za-z][A-Za-z .'-]+),\s*(?P<state>[A-Z]{2})\.?(?:\s+(?P<zip>\d{5}(?:-\d{4})?))?$"
)
_BEDROOMS_RE = re.compile(r"(\d+)[ \t]*(?:bd|beds?|bedrooms?)\b", re.IGNORECASE)
_BATHROOMS_RE = re.compile(r"(\d+)(?:\.\d+)?[ \t]*(?:ba|baths?|bathrooms?)\b", re.IGNORECASE)
_SQFT_RE = re.compile(r"([\d,]+)[ \t]*(?:sq\.?\s*ft|sqft|square feet)", re.IGNORECASE)

# Checked top to bottom; first hit wins.
_DISTRESS_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("foreclosure",), "preforeclosure"),
    (("vacant",), "vacant"),
    (("high equity", "absentee"), "high_equity_absentee"),
    (("high equity",), "high_equity"),
    (("absentee",), "absentee_owner"),
    (("free and clear",), "free_and_clear"),
)


# ── Value cleanup ──────────────────────────────────────────────────────────


def clean_amount(value: str | None) -> str | None:
    """Strip currency/percent noise and return the leading number as a string.

    "$350,000" -> "350000", "72%" -> "72", "85/100" -> "85", "N/A" -> None
    """
    if not value:
        return None
    cleaned = value.replace("$", "").replace(",", "").replace("%", "")
    cleaned = re.sub(r"/\s*100\b", "", cleaned).strip()
    match = _AMOUNT_RE.match(cleaned)
    return match.group() if match else None


def to_int(
    value: str | None,
    default: int | None,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    amount = clean_amount(value)
    if amount is None:
        return default
    try:
        number = int(Decimal(amount))
    except (InvalidOperation, OverflowError, ValueError):
        return default
    # Wider values cannot be real listing figures.
    if abs(number) > _INT_LIMIT:
        return default
    if minimum is not None and number < minimum:
        return default
    if maximum is not None and number > maximum:
        return default
    return number


def is_placeholder(value: str) -> bool:
    lowered = value.lower()
    return not value.strip("-— ") or any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


def label_key(value: str) -> str:
    """"Pre-Foreclosure" -> "preforeclosure", "High Equity" -> "high_equity"."""
    key = re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_")
    if "foreclos" in key:
        return "preforeclosure"
    return key


def _strip_list_prefix(line: str) -> str:
    return _LIST_PREFIX_RE.sub("", line.strip()).strip().strip("*").strip()


# ── Section lookups ────────────────────────────────────────────────────────


def _lookup(
    sections: SectionMap,
    raw_text: str,
    chain: Sequence[Section],
    labels: Sequence[str],
) -> str:
    """Try each section in ``chain``, then the raw text, and return the first hit."""
    for section in chain:
        value = extract_field(sections.get(section), labels)
        if value:
            return value
    return extract_field(raw_text, labels)


def _scrubbed(
    sections: SectionMap, raw_text: str, pattern: re.Pattern[str]
) -> tuple[SectionMap, str]:
    return {section: pattern.sub("", text) for section, text in sections.items()}, pattern.sub("", raw_text)


def _search(sections: SectionMap, raw_text: str, chain: Sequence[Section], pattern: re.Pattern[str]) -> str | None:
    for text in [sections.get(section) for section in chain] + [raw_text]:
        if not text:
            continue
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _headline_address(sections: SectionMap, raw_text: str) -> str:
    """First line that reads like a street address ("123 Oak St")."""
    for text in (sections.get(Section.PROPERTY), raw_text):
        if not text:
            continue
        for line in text.splitlines():
            if match_header(line) is not None:
                continue
            candidate = _strip_list_prefix(line)
            if ":" in candidate:
                continue
            if _STREET_RE.match(candidate) and not _NOT_A_STREET_RE.search(candidate):
                return candidate
    return ""


def _city_line(sections: SectionMap, raw_text: str) -> re.Match[str] | None:
    for text in (sections.get(Section.PROPERTY), raw_text):
        if not text:
            continue
        for line in text.splitlines():
            match = _CITY_LINE_RE.match(_strip_list_prefix(line))
            if match:
                return match
    return None


def _owner_field(sections: SectionMap, raw_text: str, chain: Sequence[Section], labels: Sequence[str], default: str) -> str:
    value = _lookup(sections, raw_text, chain, labels)
    if not value or is_placeholder(value):
        return default
    return value


def _confidence_score(sections: SectionMap, raw_text: str) -> int:
    value = _lookup(sections, raw_text, (Section.MOTIVATION, Section.FINANCIAL), SCORE_LABELS)
    if not value:
        # **MOTIVATION SCORE:** followed by a bare "85/100" line.
        motivation = sections.get(Section.MOTIVATION, "")
        value = motivation.splitlines()[0] if motivation else ""
    score = to_int(value, 50, minimum=0, maximum=100)
    return 50 if score is None else score


def _distressed_indicator(sections: SectionMap, raw_text: str) -> str:
    explicit = _lookup(sections, raw_text, (Section.MOTIVATION, Section.FINANCIAL), DISTRESS_LABELS)
    if explicit:
        return label_key(explicit)
    lowered = raw_text.lower()
    for keywords, indicator in _DISTRESS_KEYWORDS:
        if all(keyword in lowered for keyword in keywords):
            return indicator
    return "standard"


def _lead_type(sections: SectionMap, raw_text: str) -> str:
    explicit = _lookup(sections, raw_text, (Section.FINANCIAL, Section.PROPERTY), LEAD_TYPE_LABELS)
    if explicit:
        return label_key(explicit)
    if "foreclosure" in raw_text.lower():
        return "preforeclosure"
    return "standard"


# ── Public API ─────────────────────────────────────────────────────────────


def normalize(sections: SectionMap, raw_text: str) -> PropertyRecord:
    """Build a PropertyRecord from a section map and the block it came from.

    Every field has a fixed lookup chain that starts at its most relevant
    section and ends at ``raw_text``. Nothing here raises on bad input;
    missing or unparsable values fall back to the record defaults.
    """
    raw_text = raw_text or ""
    prop = (Section.PROPERTY,)
    money = (Section.FINANCIAL, Section.PROPERTY)

    # "Mailing Address:" belongs to the owner, not the property.
    address_text = _MAILING_LINE_RE.sub("", raw_text)
    address = _lookup(sections, address_text, prop, ADDRESS_LABELS) or _headline_address(sections, raw_text)
    city = _lookup(sections, raw_text, prop, CITY_LABELS)
    state = _lookup(sections, raw_text, prop, STATE_LABELS)
    zip_code = _lookup(sections, raw_text, prop, ZIP_LABELS)

    full = _FULL_ADDRESS_RE.match(address)
    if full:
        address = full.group("street").strip()
        city = city or full.group("city").strip()
        state = state or full.group("state").upper()
        zip_code = zip_code or (full.group("zip") or "")
    if not (city and state):
        city_line = _city_line(sections, raw_text)
        if city_line:
            city = city or city_line.group("city").strip()
            state = state or city_line.group("state")
            zip_code = zip_code or (city_line.group("zip") or "")

    bedrooms = to_int(_lookup(sections, raw_text, prop, BEDROOM_LABELS), None, minimum=1)
    if bedrooms is None:
        bedrooms = to_int(_search(sections, raw_text, prop, _BEDROOMS_RE), None, minimum=1)
    bathrooms = to_int(_lookup(sections, raw_text, prop, BATHROOM_LABELS), None, minimum=1)
    if bathrooms is None:
        bathrooms = to_int(_search(sections, raw_text, prop, _BATHROOMS_RE), None, minimum=1)
    square_feet = to_int(_lookup(sections, raw_text, prop, SQFT_LABELS), None, minimum=1)
    if square_feet is None:
        square_feet = to_int(_search(sections, raw_text, prop, _SQFT_RE), None, minimum=1)
    year_built = to_int(
        _lookup(sections, raw_text, prop, YEAR_BUILT_LABELS),
        None,
        minimum=1800,
        maximum=datetime.now(timezone.utc).year + 5,
    )

    property_type = _lookup(sections, raw_text, prop, PROPERTY_TYPE_LABELS)
    equity = to_int(_lookup(sections, raw_text, money, EQUITY_LABELS), 0, minimum=0, maximum=100)
    # A bare "Price" label must not pick up "Last Sale Price".
    arv_sections, arv_text = _scrubbed(sections, raw_text, _LAST_SALE_RE)

    return PropertyRecord(
        address=address,
        city=city,
        state=state,
        zip_code=zip_code,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        square_feet=square_feet,
        year_built=year_built,
        property_type=label_key(property_type) if property_type else "single_family",
        arv=clean_amount(_lookup(arv_sections, arv_text, money, ARV_LABELS)) or "0",
        max_offer=clean_amount(_lookup(sections, raw_text, money, MAX_OFFER_LABELS)) or "0",
        last_sale_price=clean_amount(_lookup(sections, raw_text, money, LAST_SALE_LABELS)),
        equity_percentage=0 if equity is None else equity,
        confidence_score=_confidence_score(sections, raw_text),
        owner_name=_owner_field(
            sections, raw_text, (Section.OWNER, Section.CONTACT), OWNER_NAME_LABELS, OWNER_NAME_PLACEHOLDER
        ),
        owner_phone=_owner_field(
            sections, raw_text, (Section.CONTACT, Section.OWNER), OWNER_PHONE_LABELS, SKIP_TRACE_PLACEHOLDER
        ),
        owner_email=_owner_field(
            sections, raw_text, (Section.CONTACT, Section.OWNER), OWNER_EMAIL_LABELS, SKIP_TRACE_PLACEHOLDER
        ),
        owner_mailing_address=_owner_field(
            sections, raw_text, (Section.OWNER, Section.CONTACT), MAILING_LABELS, MAILING_PLACEHOLDER
        ),
        owner_status=re.sub(
            r"^\W+",
            "",
            _owner_field(
                sections, raw_text, (Section.CONTACT, Section.OWNER), OWNER_STATUS_LABELS, OWNER_STATUS_PLACEHOLDER
            ),
        ),
        lead_type=_lead_type(sections, raw_text),
        distressed_indicator=_distressed_indicator(sections, raw_text),
    )
