"""Parsing of property listings out of assistant chat messages."""

from app.services.lead_parser.buyer_card import parse_buyer_cards
from app.services.lead_parser.field_extractor import NOT_FOUND, extract_field
from app.services.lead_parser.normalizer import normalize
from app.services.lead_parser.pipeline import parse_message
from app.services.lead_parser.section_splitter import Section, SectionMap, split_sections
from app.services.lead_parser.segmenter import segment
from app.services.lead_parser.tracker import (
    DiscriminatorPolicy,
    ShownPropertyTracker,
    property_key,
)

__all__ = [
    "NOT_FOUND",
    "extract_field",
    "split_sections",
    "Section",
    "SectionMap",
    "normalize",
    "segment",
    "parse_message",
    "parse_buyer_cards",
    "DiscriminatorPolicy",
    "ShownPropertyTracker",
    "property_key",
]
