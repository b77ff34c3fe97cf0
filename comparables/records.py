"""
Property records and value coercion.

A PropertyRecord is a plain dict keyed by the canonical attribute names
below. Ingestion hands records over with loosely formatted values
("£250,000", "1,000 sq ft", "02 Jul 2025"), so everything in the core
reads numbers and dates through the helpers in this module.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Final, Optional


PropertyRecord = Dict[str, Any]


# =============================================================================
# Canonical Attributes
# =============================================================================

ADDRESS: Final = "Address"
POSTCODE: Final = "Postcode"
PRICE: Final = "Price"
FLOOR_AREA_SQFT: Final = "FloorAreaSqFt"
FLOOR_AREA_SQM: Final = "FloorAreaSqm"
PRICE_PER_SQFT: Final = "PricePerSqFt"
BEDROOMS: Final = "Bedrooms"
SALE_DATE: Final = "SaleDate"
DISTANCE_MILES: Final = "DistanceMiles"
IS_TARGET: Final = "IsTarget"
RANKING: Final = "Ranking"
NEEDS_REVIEW: Final = "NeedsReview"
URL: Final = "URL"

# Internal bookkeeping keys start with an underscore
MERGE_CONFLICTS_KEY: Final = "_merge_conflicts"
MERGED_FROM_KEY: Final = "_merged_from"
SOURCE_KEY: Final = "_source"
ADDRESS_VARIANTS_KEY: Final = "_address_variants"

SQM_TO_SQFT: Final = 10.7639

# Placeholder strings spreadsheets use for "nothing here"
_BLANK_STRINGS: Final = frozenset({"", "-", "nan", "none", "null", "n/a", "na"})

_TRUE_STRINGS: Final = frozenset({"1", "true", "yes", "y", "x"})

_NUMBER_NOISE = re.compile(
    r"[£$€,\s]|-?bed(?:room)?s?|sq\.?\s*ft|sqft|sq\.?\s*m|sqm|miles?|mi\b", re.IGNORECASE
)

_MONTHS: Final = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DMY_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DMY_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})[\s-]([A-Za-z]{3})[A-Za-z]*[\s-](\d{2,4})$")


def is_blank(value: Any) -> bool:
    """True for None, empty strings and spreadsheet placeholders."""
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    if isinstance(value, str):
        return value.strip().lower() in _BLANK_STRINGS
    return False


def to_float(value: Any) -> Optional[float]:
    """Coerce a loosely formatted number to float, or None."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NUMBER_NOISE.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def to_int(value: Any) -> Optional[int]:
    """Coerce to int, truncating any fractional part."""
    number = to_float(value)
    if number is None:
        return None
    return int(number)


def is_truthy(value: Any) -> bool:
    """Interpret a spreadsheet flag cell."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def parse_sale_date(value: Any) -> Optional[date]:
    """
    Parse a sale date in any of the formats seen in input spreadsheets.

    Supported:
        date / datetime objects
        DD/MM/YYYY, DD-MM-YYYY, YYYY-MM-DD
        DD Mon YY, DD Mon YYYY, DD-Mon-YY, DD-Mon-YYYY

    Returns None when the value is blank or unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_blank(value) or not isinstance(value, str):
        return None

    text = value.strip()
    try:
        match = _DMY_SLASH.match(text) or _DMY_DASH.match(text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            return date(year, month, day)

        match = _ISO.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)

        match = _DAY_MONTH_NAME.match(text)
        if match:
            month = _MONTHS.get(match.group(2).lower())
            if month is None:
                return None
            year = int(match.group(3))
            if year < 100:
                year = 2000 + year if year < 50 else 1900 + year
            return date(year, month, int(match.group(1)))
    except ValueError:
        # Matched the shape but not a real calendar date (e.g. 31/02/2024)
        return None

    return None


def format_sale_date(value: Any) -> Optional[str]:
    """Render a sale date as DD/MM/YYYY."""
    parsed = parse_sale_date(value)
    if parsed is None:
        return None
    return parsed.strftime("%d/%m/%Y")


def floor_area_sqft(record: PropertyRecord) -> Optional[float]:
    """Floor area in square feet, converting from square metres if needed."""
    sqft = to_float(record.get(FLOOR_AREA_SQFT))
    if sqft is not None:
        return sqft
    sqm = to_float(record.get(FLOOR_AREA_SQM))
    if sqm is not None:
        return sqm * SQM_TO_SQFT
    return None


def text_value(record: PropertyRecord, key: str) -> str:
    """Stripped string value of a field, empty for blanks."""
    value = record.get(key)
    if is_blank(value):
        return ""
    return str(value).strip()


def add_review_reason(record: PropertyRecord, reason: str) -> None:
    """Append a reason to NeedsReview without duplicating it."""
    existing = text_value(record, NEEDS_REVIEW)
    reasons = [r for r in existing.split("; ") if r] if existing else []
    if reason not in reasons:
        reasons.append(reason)
    record[NEEDS_REVIEW] = "; ".join(reasons)
