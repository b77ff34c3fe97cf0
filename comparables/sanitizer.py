"""
Record Sanitizer

Cleans records before they reach target detection and ranking:
- Strips HTML from text fields and rejects scraped script text
- Coerces Price, FloorAreaSqFt and Bedrooms to numbers, clearing
  out-of-range values and flagging them in NeedsReview
- Moves a postcode embedded in Address into an empty Postcode
- Converts a floor area entered in square metres in the sq ft column
- Derives the missing one of FloorAreaSqFt / FloorAreaSqm, and PricePerSqFt
"""

import logging
import re
from dataclasses import dataclass
from typing import Final, List, Optional, Tuple

from utils.formatting import format_currency, format_value

from .address import extract_postcode
from .records import (
    ADDRESS,
    BEDROOMS,
    FLOOR_AREA_SQFT,
    FLOOR_AREA_SQM,
    POSTCODE,
    PRICE,
    PRICE_PER_SQFT,
    SQM_TO_SQFT,
    PropertyRecord,
    add_review_reason,
    is_blank,
    text_value,
    to_float,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

PRICE_RANGE: Final = (10_000, 10_000_000)
FLOOR_AREA_SQFT_RANGE: Final = (50, 10_000)
BEDROOMS_RANGE: Final = (0, 15)

# A sq ft value this small with a price per sq ft this high was almost
# certainly entered in square metres
SQM_SUSPECT_MAX_SQFT: Final = 300
MAX_PLAUSIBLE_PRICE_PER_SQFT: Final = 1_500

TEXT_FIELDS: Final = (ADDRESS, "Type", "Tenure")

SQFT_TO_SQM: Final = 0.092903

_HTML_TAG = re.compile(r"<[^>]*>")
_HTML_ENTITY = re.compile(r"&[a-z]+;", re.IGNORECASE)

_SCRIPT_PATTERNS: Final = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"function\s*\(",
    r"=>\s*\{",
    r"window\.",
    r"document\.",
    r"console\.",
    r"\bvar\s+\w+\s*=",
    r"\blet\s+\w+\s*=",
    r"\bconst\s+\w+\s*=",
    r"sessionStorage",
    r"localStorage",
    r"addEventListener",
    r"\breturn\s+",
    r"\bif\s*\(",
    r"\.innerHTML",
    r"\.querySelector",
))


@dataclass(frozen=True)
class SanitizerConfig:
    """Valid ranges for numeric fields, inclusive."""
    price_range: Tuple[float, float] = PRICE_RANGE
    floor_area_sqft_range: Tuple[float, float] = FLOOR_AREA_SQFT_RANGE
    bedrooms_range: Tuple[int, int] = BEDROOMS_RANGE


def contains_script(text: str) -> bool:
    """True if text looks like scraped JavaScript."""
    return any(pattern.search(text) for pattern in _SCRIPT_PATTERNS)


def strip_html(text: str) -> str:
    """
    Remove HTML tags and entities, collapsing whitespace.

    Returns an empty string when what remains is script code.
    """
    cleaned = _HTML_ENTITY.sub("", _HTML_TAG.sub("", text))
    if contains_script(cleaned):
        logger.warning("Rejected text containing script code: %.100s", cleaned)
        return ""
    return " ".join(cleaned.split())


def _whole(number: float):
    return int(number) if number.is_integer() else number


class RecordSanitizer:
    """Validates and normalises raw property records."""

    def __init__(self, config: Optional[SanitizerConfig] = None):
        self._config = config or SanitizerConfig()

    def sanitize(self, record: PropertyRecord) -> PropertyRecord:
        """
        Sanitize one record.

        Args:
            record: Raw record (not modified)

        Returns:
            Cleaned copy
        """
        sanitized = dict(record)

        self._clean_text_fields(sanitized)
        self._split_postcode(sanitized)
        self._detect_sqm_in_sqft(sanitized)

        self._validate_number(sanitized, PRICE, self._config.price_range, integer=False)
        self._validate_number(
            sanitized, FLOOR_AREA_SQFT, self._config.floor_area_sqft_range, integer=False
        )
        self._validate_number(sanitized, BEDROOMS, self._config.bedrooms_range, integer=True)

        self._derive_floor_area(sanitized)
        self._derive_price_per_sqft(sanitized)

        return sanitized

    def sanitize_all(self, records: List[PropertyRecord]) -> List[PropertyRecord]:
        """Sanitize a batch of records."""
        logger.info("Sanitizing %d properties", len(records))
        sanitized = [self.sanitize(record) for record in records]
        logger.info("Data sanitization complete")
        return sanitized

    def _clean_text_fields(self, record: PropertyRecord) -> None:
        for key in TEXT_FIELDS:
            value = record.get(key)
            if is_blank(value) or not isinstance(value, str):
                continue
            cleaned = strip_html(value)
            if cleaned == value:
                continue
            logger.warning("Sanitized %s: %.50r -> %r", key, value, cleaned)
            record[key] = cleaned
            if not cleaned:
                add_review_reason(record, f"{key} rejected: script content")

    def _split_postcode(self, record: PropertyRecord) -> None:
        address = text_value(record, ADDRESS)
        if not address or text_value(record, POSTCODE):
            return
        extraction = extract_postcode(address)
        if extraction.postcode:
            record[POSTCODE] = extraction.postcode
            record[ADDRESS] = extraction.address
            logger.info("Moved postcode %s out of Address %r", extraction.postcode, address)

    def _detect_sqm_in_sqft(self, record: PropertyRecord) -> None:
        sqft = to_float(record.get(FLOOR_AREA_SQFT))
        price = to_float(record.get(PRICE))
        if sqft is None or price is None or sqft <= 0:
            return
        if sqft > SQM_SUSPECT_MAX_SQFT or price / sqft <= MAX_PLAUSIBLE_PRICE_PER_SQFT:
            return

        converted = round(sqft * SQM_TO_SQFT)
        logger.warning(
            "%s: %s sq ft at %s/sq ft looks like square metres, converted to %d sq ft",
            text_value(record, ADDRESS) or "property",
            format_value(sqft),
            format_currency(price / sqft),
            converted,
        )
        if is_blank(record.get(FLOOR_AREA_SQM)):
            record[FLOOR_AREA_SQM] = _whole(sqft)
        record[FLOOR_AREA_SQFT] = converted
        add_review_reason(record, f"Floor area {format_value(sqft)} treated as sqm")

    def _validate_number(
        self,
        record: PropertyRecord,
        key: str,
        valid_range: Tuple[float, float],
        integer: bool,
    ) -> None:
        value = record.get(key)
        if is_blank(value):
            return

        number = to_float(value)
        low, high = valid_range
        if number is None or not low <= number <= high:
            logger.warning(
                "%s validation failed for %s: %s",
                key, text_value(record, ADDRESS) or "property", value,
            )
            record[key] = None
            add_review_reason(record, f"Invalid {key}: {format_value(value)}")
            return

        record[key] = int(number) if integer else _whole(number)

    def _derive_floor_area(self, record: PropertyRecord) -> None:
        sqft = to_float(record.get(FLOOR_AREA_SQFT))
        sqm = to_float(record.get(FLOOR_AREA_SQM))

        if sqft is not None and sqm is None:
            record[FLOOR_AREA_SQM] = round(sqft * SQFT_TO_SQM)
        elif sqm is not None and sqft is None:
            record[FLOOR_AREA_SQFT] = round(sqm * SQM_TO_SQFT)

    def _derive_price_per_sqft(self, record: PropertyRecord) -> None:
        if not is_blank(record.get(PRICE_PER_SQFT)):
            return
        price = to_float(record.get(PRICE))
        sqft = to_float(record.get(FLOOR_AREA_SQFT))
        if price is None or not sqft:
            return
        record[PRICE_PER_SQFT] = round(price / sqft)


def sanitize_record(record: PropertyRecord, config: Optional[SanitizerConfig] = None) -> PropertyRecord:
    """Convenience wrapper around RecordSanitizer.sanitize."""
    return RecordSanitizer(config).sanitize(record)


def sanitize_records(
    records: List[PropertyRecord],
    config: Optional[SanitizerConfig] = None,
) -> List[PropertyRecord]:
    """Convenience wrapper around RecordSanitizer.sanitize_all."""
    return RecordSanitizer(config).sanitize_all(records)
