"""
Address Normaliser

Turns free-form UK addresses into comparable pieces: a structured house
number token, a lowercase word bag for fuzzy street comparison, and the
postcode.
"""

from .models import HouseNumberToken, NO_HOUSE_NUMBER
from .house_number import (
    HOUSE_NUMBER_RULES,
    UNIT_WORDS,
    extract_house_number,
    is_exact_house_number_match,
)
from .normalizer import (
    UK_POSTCODE_REGEX,
    PostcodeExtraction,
    address_signature,
    extract_postcode,
    normalise_postcode,
    normalize_for_comparison,
    street_similarity,
)

__all__ = [
    # Models
    "HouseNumberToken",
    "NO_HOUSE_NUMBER",
    "PostcodeExtraction",
    # House numbers
    "HOUSE_NUMBER_RULES",
    "UNIT_WORDS",
    "extract_house_number",
    "is_exact_house_number_match",
    # Normalisation
    "UK_POSTCODE_REGEX",
    "address_signature",
    "extract_postcode",
    "normalise_postcode",
    "normalize_for_comparison",
    "street_similarity",
]
