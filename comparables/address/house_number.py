"""
House number extraction.

Free-text addresses are ambiguous, so parsing is an ordered cascade of
small named rules. The first rule that recognises the address wins and
the order below is part of the behaviour:

1. unit_prefixed   "Flat 5, 42 High Street"      -> 42, unit 5
2. name_prefixed   "Spen Lea, 317 Wharf Road"    -> 317
3. letter_suffix   "32a The Street"              -> 32, unit a
4. number_range    "12-14 Market Place"          -> 12, range to 14
5. plain_number    "71 Westgate Road"            -> 71
6. after_comma     "The Barn, Low Lane, 5 Hill"  -> 5 (last resort)

Anything else yields a token with no primary number.

UK addresses often put a house name before the number. Rule 2 must run
before the plain-number rules or the number is read as absent.
"""

import re
from typing import Callable, List, Optional, Tuple

from .models import HouseNumberToken, NO_HOUSE_NUMBER


HouseNumberRule = Callable[[str], Optional[HouseNumberToken]]

UNIT_WORDS = ("flat", "apartment", "apt", "unit", "suite", "room", "maisonette")

_UNIT_PREFIXED = re.compile(
    r"^(?:" + "|".join(UNIT_WORDS) + r")\.?\s*([a-z0-9]+)\s*,\s*(\d+)[a-z]?\b[\s,]+\S"
)
_NAME_PREFIXED = re.compile(r"^([a-z][a-z'.\- ]*?)\s*,\s*(\d+)([a-z])?\b[\s,]+\S")
_LETTER_SUFFIX = re.compile(r"^(\d+)([a-z])\b\s*,?\s*\S")
_NUMBER_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)[a-z]?\b[\s,]+\S")
_PLAIN_NUMBER = re.compile(r"^(\d+)\b\s*,?\s*\S")
_AFTER_COMMA = re.compile(r",\s*(\d+)([a-z])?\b\s+\S")


def _prepare(address: str) -> str:
    return " ".join(address.lower().split())


def parse_unit_prefixed(address: str) -> Optional[HouseNumberToken]:
    """'Flat 5, 42 High Street' -> primary 42, unit 5."""
    match = _UNIT_PREFIXED.match(address)
    if not match:
        return None
    return HouseNumberToken(primary=match.group(2), unit=match.group(1), rule="unit_prefixed")


def parse_name_prefixed(address: str) -> Optional[HouseNumberToken]:
    """'Spen Lea, 317 Wharf Road' -> primary 317, ignoring the house name."""
    match = _NAME_PREFIXED.match(address)
    if not match:
        return None
    return HouseNumberToken(primary=match.group(2), unit=match.group(3), rule="name_prefixed")


def parse_letter_suffix(address: str) -> Optional[HouseNumberToken]:
    """'32a The Street' -> primary 32, unit a."""
    match = _LETTER_SUFFIX.match(address)
    if not match:
        return None
    return HouseNumberToken(primary=match.group(1), unit=match.group(2), rule="letter_suffix")


def parse_number_range(address: str) -> Optional[HouseNumberToken]:
    """'12-14 Market Place' -> primary 12, range end 14."""
    match = _NUMBER_RANGE.match(address)
    if not match:
        return None
    return HouseNumberToken(
        primary=match.group(1),
        is_range=True,
        range_end=match.group(2),
        rule="number_range",
    )


def parse_plain_number(address: str) -> Optional[HouseNumberToken]:
    """'71 Westgate Road' or '9, Westbourne Drive' -> primary only."""
    match = _PLAIN_NUMBER.match(address)
    if not match:
        return None
    return HouseNumberToken(primary=match.group(1), rule="plain_number")


def parse_after_comma(address: str) -> Optional[HouseNumberToken]:
    """First number that follows any comma."""
    match = _AFTER_COMMA.search(address)
    if not match:
        return None
    return HouseNumberToken(primary=match.group(1), unit=match.group(2), rule="after_comma")


HOUSE_NUMBER_RULES: Tuple[Tuple[str, HouseNumberRule], ...] = (
    ("unit_prefixed", parse_unit_prefixed),
    ("name_prefixed", parse_name_prefixed),
    ("letter_suffix", parse_letter_suffix),
    ("number_range", parse_number_range),
    ("plain_number", parse_plain_number),
    ("after_comma", parse_after_comma),
)


def extract_house_number(
    address: Optional[str],
    rules: Optional[List[Tuple[str, HouseNumberRule]]] = None,
) -> HouseNumberToken:
    """
    Extract the house number token from a free-form address.

    Args:
        address: Raw address string (case and spacing are ignored)
        rules: Override the rule cascade (tests only)

    Returns:
        HouseNumberToken; primary is None when no rule matched
    """
    if not address or not isinstance(address, str):
        return NO_HOUSE_NUMBER

    prepared = _prepare(address)
    for _name, rule in (rules or HOUSE_NUMBER_RULES):
        token = rule(prepared)
        if token is not None:
            return token

    return NO_HOUSE_NUMBER


def is_exact_house_number_match(target: HouseNumberToken, candidate: HouseNumberToken) -> bool:
    """
    Unit-aware exact house number equality.

    - primary numbers must be equal (307 never matches 303)
    - target and candidate both have units: units must be equal
    - target has no unit: any candidate unit matches (whole building)
    - target has a unit, candidate has none: no match

    Not symmetric when exactly one side has a unit.
    """
    if not target.is_comparable or not candidate.is_comparable:
        return False

    if int(target.primary) != int(candidate.primary):
        return False

    if target.unit is None:
        return True

    return candidate.unit == target.unit
