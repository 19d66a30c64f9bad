"""Label/value lookup in semi-structured assistant text."""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache

NOT_FOUND = ""


@lru_cache(maxsize=256)
def _label_pattern(label: str) -> re.Pattern[str]:
    # The label must not run into a longer word ("State" vs "Statement"), and
    # without a colon it must be followed by a space and a value, so that
    # "Jersey City, NJ" does not read as a "City" label.
    return re.compile(
        rf"(?<!\w){re.escape(label)}(?!\w)\**"
        r"(?:[ \t]*:|[ \t]+(?=[^\s:,;.]))[ \t]*\**[ \t]*(?P<value>[^\n]*)",
        re.IGNORECASE,
    )


def _clean_value(value: str) -> str:
    return value.strip().strip("*").strip()


def extract_field(text: str | None, labels: Sequence[str]) -> str:
    """Return the value that follows the first matching label in ``text``.

    Labels are tried in the order given, so callers list the most specific
    label first ("Owner Name" before "Owner"). Within a label, occurrences
    are scanned top to bottom and the first non-empty value wins.

    Returns ``NOT_FOUND`` (an empty string) when nothing matches.

    Examples:
        extract_field("ARV: $350,000", ["ARV"]) -> "$350,000"
        extract_field("Owner Name: Sam Lee", ["Owner"]) -> "Name: Sam Lee"
    """
    if not text:
        return NOT_FOUND

    for label in labels:
        for match in _label_pattern(label).finditer(text):
            value = _clean_value(match.group("value"))
            if value:
                return value
    return NOT_FOUND
