"""
Address normalisation for comparison.

Provides the word bag used for street similarity, the UK postcode
sub-extractor used by target identification and record cleanup, and the
grouping signature used by duplicate detection.
"""

import re
from dataclasses import dataclass
from typing import Final, Iterable, List, Optional

from .house_number import extract_house_number


# Matches formats: SW1A 1AA, EC1A 1BB, N1 9GU, DN15 7LQ, DN157LQ
UK_POSTCODE_REGEX: Final = re.compile(
    r"\b([A-Z]{1,2}[0-9][A-Z0-9]?\s?[0-9][A-Z]{2})\b", re.IGNORECASE
)

MIN_TOKEN_LENGTH: Final = 3

_PUNCTUATION = re.compile(r"[^a-z0-9\s]")
_HOUSE_NUMBER_TOKEN = re.compile(r"\d+[a-z]?")
_TRAILING_SEPARATORS = re.compile(r"[,;:.\s]+$")
_LEADING_SEPARATORS = re.compile(r"^[,;:.\s]+")
_DOUBLE_COMMA = re.compile(r"\s*,(\s*,)+")


@dataclass(frozen=True)
class PostcodeExtraction:
    """Result of pulling a postcode out of an address string."""
    postcode: Optional[str]
    address: str


def normalise_postcode(postcode: Optional[str]) -> str:
    """
    Normalise a UK postcode to upper case with one space before the
    inward code ("dn157lq" -> "DN15 7LQ").
    """
    if not postcode:
        return ""
    clean = str(postcode).upper().replace(" ", "")
    if len(clean) >= 5:
        return f"{clean[:-3]} {clean[-3:]}"
    return clean


def extract_postcode(address: Optional[str]) -> PostcodeExtraction:
    """
    Find a UK postcode anywhere in the string and strip it out.

    "54 Smith Street, Scunthorpe DN15 7LQ"
        -> postcode "DN15 7LQ", address "54 Smith Street, Scunthorpe"

    The remaining address is trimmed of trailing punctuation and repeated
    whitespace. When no postcode is present the address is returned as is.
    """
    if not address:
        return PostcodeExtraction(postcode=None, address=address or "")

    match = UK_POSTCODE_REGEX.search(address)
    if not match:
        return PostcodeExtraction(postcode=None, address=address)

    remainder = address[:match.start()] + address[match.end():]
    remainder = _DOUBLE_COMMA.sub(",", remainder)
    remainder = " ".join(remainder.split())
    remainder = _TRAILING_SEPARATORS.sub("", remainder)
    remainder = _LEADING_SEPARATORS.sub("", remainder)

    return PostcodeExtraction(postcode=normalise_postcode(match.group(1)), address=remainder)


def normalize_for_comparison(address: Optional[str]) -> List[str]:
    """
    Lowercase word tokens longer than two characters, punctuation removed.

    House number tokens ("317", "32a") are not words and never count
    towards street similarity. Order follows the address.

    "Flat 5, 317 High St." -> ["flat", "high"]
    """
    if not address:
        return []
    cleaned = _PUNCTUATION.sub(" ", str(address).lower())
    return [
        token for token in cleaned.split()
        if len(token) >= MIN_TOKEN_LENGTH and not _HOUSE_NUMBER_TOKEN.fullmatch(token)
    ]


def street_similarity(target_tokens: List[str], candidate_tokens: Iterable[str]) -> float:
    """
    Share of target tokens that also appear in the candidate.

    Returns 0.0 when the target has no comparable tokens.
    """
    if not target_tokens:
        return 0.0
    candidate_set = set(candidate_tokens)
    shared = sum(1 for token in target_tokens if token in candidate_set)
    return shared / len(target_tokens)


def address_signature(
    address: Optional[str],
    postcode: Optional[str] = None,
    ignore_words: Iterable[str] = (),
) -> Optional[str]:
    """
    Grouping signature for duplicate detection.

    Combines the house number token, the sorted word bag (postcode
    removed, trailing locality words removed) and the normalised
    postcode. "1 Oak St" and "1, Oak St" share a signature, as do
    "45 Smith Street" and "45 Smith Street, Scunthorpe". Locality words
    inside the street name are kept, so "45 York Road" and "45 Hull Road"
    stay apart.

    Returns None when there is no address to sign.
    """
    if not address or not str(address).strip():
        return None

    extraction = extract_postcode(str(address))
    postcode_part = normalise_postcode(postcode) or normalise_postcode(extraction.postcode)

    ignored = set(ignore_words)
    tokens = normalize_for_comparison(extraction.address)
    while tokens and tokens[-1] in ignored:
        tokens.pop()
    words = sorted(set(tokens))
    house_number = extract_house_number(extraction.address)

    return f"{house_number}|{' '.join(words)}|{postcode_part.replace(' ', '')}"
