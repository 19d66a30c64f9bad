"""Split a property message into its bold-headed sections."""

from __future__ import annotations

import re
from enum import StrEnum


class Section(StrEnum):
    PROPERTY = "property"
    FINANCIAL = "financial"
    OWNER = "owner"
    CONTACT = "contact"
    PORTFOLIO = "portfolio"
    MOTIVATION = "motivation"
    FORECLOSURE = "foreclosure"


SectionMap = dict[Section, str]

HEADER_TITLES: dict[str, Section] = {
    "PROPERTY DETAILS": Section.PROPERTY,
    "FINANCIAL ANALYSIS": Section.FINANCIAL,
    "OWNER INFORMATION": Section.OWNER,
    "CONTACT INFORMATION": Section.CONTACT,
    "OWNER PORTFOLIO": Section.PORTFOLIO,
    "PORTFOLIO": Section.PORTFOLIO,
    "MOTIVATION SCORE": Section.MOTIVATION,
    "MOTIVATION FACTORS": Section.MOTIVATION,
    "FORECLOSURE ALERT": Section.FORECLOSURE,
    "FORECLOSURE DETAILS": Section.FORECLOSURE,
}

# **TITLE:**, **TITLE**: and **TITLE** all count as headers.
_BOLD_HEADER_RE = re.compile(r"^\*\*\s*(?P<title>[^*]+?)\s*:?\s*\*\*\s*:?$")
_ALERT_HEADER_RE = re.compile(r"^🚨.*\bFORECLOSURE\b", re.IGNORECASE)


def match_header(line: str) -> Section | None:
    """Return the section a header line opens, or None for ordinary lines."""
    stripped = line.strip()
    if _ALERT_HEADER_RE.match(stripped):
        return Section.FORECLOSURE
    match = _BOLD_HEADER_RE.match(stripped)
    if not match:
        return None
    title = re.sub(r"[^A-Z ]", "", match.group("title").upper()).strip()
    title = re.sub(r"\s+", " ", title)
    return HEADER_TITLES.get(title)


def split_sections(text: str) -> SectionMap:
    """Scan ``text`` line by line and group lines under the last header seen.

    The scanner has a single piece of state, the current section. A header
    line moves it and is not kept. Content before the first header is
    dropped, and blank lines are skipped. A section that appears twice
    accumulates both bodies in source order.

    Returns an empty map when the text has no recognised headers.
    """
    collected: dict[Section, list[str]] = {}
    current: Section | None = None

    for line in text.splitlines():
        header = match_header(line)
        if header is not None:
            current = header
            collected.setdefault(current, [])
            continue

        stripped = line.strip()
        if not stripped or current is None:
            continue
        collected[current].append(stripped)

    return {section: "\n".join(lines) for section, lines in collected.items()}
