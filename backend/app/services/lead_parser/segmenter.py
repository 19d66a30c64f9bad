"""Decide whether a chat message holds zero, one or several properties."""

from __future__ import annotations

import re
from collections.abc import Iterator

from app.config import settings

# "1. 123 Oak St", "2) 456 Pine Ave", "**3. 789 Elm Rd**"
_NUMBERED_LINE_RE = re.compile(r"^(?:\*\*)?\s*(?P<number>\d{1,3})[.)]\s+(?P<rest>\S.*)$")

# A headline that opens with a house number and ends in a street suffix.
_STREET_HEADLINE_RE = re.compile(
    r"^\W*\d+[A-Za-z]?(?:-\d+)?\s+(?:[\w.'-]+\s+){0,4}?"
    r"(?:st|street|ave|avenue|rd|road|ln|lane|dr|drive|blvd|boulevard|ct|court|way|pl|place|"
    r"cir|circle|ter|terrace|pkwy|parkway|hwy|highway|pike)\b",
    re.IGNORECASE,
)

PROPERTY_INDICATORS = (
    "address:",
    "owner:",
    "owner name:",
    "arv:",
    "equity:",
    "absentee",
)

KNOWN_CITIES = (
    "philadelphia",
    "pittsburgh",
    "harrisburg",
    "hershey",
    "allentown",
    "erie",
    "valley forge",
    "phoenix",
)


def _numbered_blocks(text: str) -> list[list[str]]:
    blocks: list[list[str]] = []
    for line in text.splitlines():
        match = _NUMBERED_LINE_RE.match(line)
        if match:
            blocks.append([match.group("rest")])
        elif blocks:
            blocks[-1].append(line)
    return blocks


def has_property_indicators(text: str) -> bool:
    lowered = text.lower()
    if any(indicator in lowered for indicator in PROPERTY_INDICATORS):
        return True
    return any(re.search(rf"\b{re.escape(city)}\b", lowered) for city in KNOWN_CITIES)


def is_property_block(block: str) -> bool:
    """A numbered item counts only if it names a street or carries a property label."""
    headline = block.splitlines()[0] if block else ""
    return bool(_STREET_HEADLINE_RE.match(headline)) or has_property_indicators(block)


def segment(text: str, min_block_chars: int | None = None) -> Iterator[tuple[int, str]]:
    """Yield ``(ordinal, block)`` pairs, one per property found in ``text``.

    A numbered list wins: every ``N.`` line opens a block that runs until
    the next numbered line, with the number itself stripped. Blocks shorter
    than ``min_block_chars``, and blocks that neither open with a street
    address nor carry a property indicator, are treated as prose and
    skipped. Without a usable list the whole message is a single block
    when it carries a property indicator, and nothing is yielded otherwise.

    Ordinals count accepted blocks from 1 in source order.
    """
    if not text:
        return
    threshold = settings.segment_min_block_chars if min_block_chars is None else min_block_chars

    ordinal = 0
    for lines in _numbered_blocks(text):
        block = "\n".join(lines).strip()
        if len(block) < threshold or not is_property_block(block):
            continue
        ordinal += 1
        yield ordinal, block

    if ordinal == 0 and has_property_indicators(text):
        yield 1, text.strip()
