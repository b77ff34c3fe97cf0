"""
Data models for address parsing.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class HouseNumberToken:
    """
    Structured house number extracted from a free-form address.

    primary is the street number ("42"), unit is a letter suffix or a
    flat/apartment identifier co-located with it ("a", "5"). A range
    address ("12-14 High Street") sets is_range and range_end.

    Two tokens are only comparable when both have a primary number.
    """
    primary: Optional[str] = None
    unit: Optional[str] = None
    is_range: bool = False
    range_end: Optional[str] = None

    # Name of the parsing rule that produced this token (diagnostics only)
    rule: Optional[str] = field(default=None, compare=False)

    @property
    def is_comparable(self) -> bool:
        """Whether this token can take part in house number matching."""
        return self.primary is not None

    @property
    def has_property_name(self) -> bool:
        """Whether the address prefixed a house name before the number."""
        return self.rule == "name_prefixed"

    def __str__(self) -> str:
        if self.primary is None:
            return "?"
        if self.is_range:
            return f"{self.primary}-{self.range_end}"
        return f"{self.primary}{self.unit or ''}"


NO_HOUSE_NUMBER = HouseNumberToken()
