"""
Source URL classification.

Records reach the core from several providers. Each provider's link is
kept under its own key so a merge never drops one source in favour of
another.
"""

from enum import Enum
from typing import Final, Optional
from urllib.parse import urlparse

from .records import ADDRESS, POSTCODE, PRICE, SOURCE_KEY, URL, PropertyRecord, is_blank


class URLType(Enum):
    """Kinds of URL found in input spreadsheets."""
    RIGHTMOVE_POSTCODE_SEARCH = "rightmove_postcode_search"
    RIGHTMOVE_SOLD_LISTING = "rightmove_sold_listing"
    RIGHTMOVE_FORSALE_LISTING = "rightmove_forsale_listing"
    PROPERTYDATA = "propertydata"
    EPC_CERTIFICATE = "epc_certificate"
    UNKNOWN = "unknown"


class Provider(Enum):
    """Data provider behind a URL, with the record key its link is kept under."""
    RIGHTMOVE = "URL_Rightmove"
    PROPERTYDATA = "URL_PropertyData"
    EPC = "URL_EPC"
    OTHER = "URL_Other"

    @property
    def record_key(self) -> str:
        return self.value


_PROVIDER_BY_TYPE: Final = {
    URLType.RIGHTMOVE_POSTCODE_SEARCH: Provider.RIGHTMOVE,
    URLType.RIGHTMOVE_SOLD_LISTING: Provider.RIGHTMOVE,
    URLType.RIGHTMOVE_FORSALE_LISTING: Provider.RIGHTMOVE,
    URLType.PROPERTYDATA: Provider.PROPERTYDATA,
    URLType.EPC_CERTIFICATE: Provider.EPC,
    URLType.UNKNOWN: Provider.OTHER,
}

# Fields that must hold real data for a row not to count as URL-only
ESSENTIAL_FIELDS: Final = (ADDRESS, POSTCODE, PRICE, "Type", "Tenure")


def is_valid_url(value) -> bool:
    """True for absolute http(s) URLs."""
    if not isinstance(value, str) or not value.strip():
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def classify_url(url: str) -> URLType:
    """
    Classify a single URL by provider and page kind.

    Rightmove house-prices pages with a radius or soldIn parameter are
    postcode searches; those with /details/ are individual sold listings.
    """
    lower = url.lower()

    if "rightmove.co.uk" in lower:
        if "house-prices" in lower:
            if "/details/" in lower:
                return URLType.RIGHTMOVE_SOLD_LISTING
            if "radius" in lower or "soldin" in lower:
                return URLType.RIGHTMOVE_POSTCODE_SEARCH
        if "properties/" in lower:
            if "sold" in lower:
                return URLType.RIGHTMOVE_SOLD_LISTING
            return URLType.RIGHTMOVE_FORSALE_LISTING

    if "propertydata.co.uk" in lower:
        return URLType.PROPERTYDATA

    if "find-energy-certificate" in lower or "epcregister" in lower:
        return URLType.EPC_CERTIFICATE

    return URLType.UNKNOWN


def provider_for_url(url: str) -> Provider:
    """Provider owning a URL."""
    return _PROVIDER_BY_TYPE[classify_url(url)]


def normalize_url(url: Optional[str]) -> str:
    """Lowercase, drop the scheme and any trailing slash for identity checks."""
    if not url:
        return ""
    normalized = url.strip().lower()
    for scheme in ("https://", "http://"):
        if normalized.startswith(scheme):
            normalized = normalized[len(scheme):]
            break
    return normalized.rstrip("/")


def is_url_only_row(record: PropertyRecord) -> bool:
    """
    A row with a URL but fewer than two essential fields of real data.

    An Address cell holding a URL does not count as an address.
    """
    filled = 0
    for key in ESSENTIAL_FIELDS:
        value = record.get(key)
        if is_blank(value):
            continue
        if key == ADDRESS and is_valid_url(str(value)):
            continue
        filled += 1
    return filled < 2


def tag_url_only_rows(records) -> int:
    """
    Tag URL-only rows with the URL type they came from.

    Untagged rows that carry a valid URL but little else get
    ``_source`` set to the URL type value. Returns the number tagged.
    """
    tagged = 0
    for record in records:
        if not is_blank(record.get(SOURCE_KEY)):
            continue
        url = record.get(URL)
        if not is_valid_url(url) or not is_url_only_row(record):
            continue
        record[SOURCE_KEY] = classify_url(url).value
        tagged += 1
    return tagged
