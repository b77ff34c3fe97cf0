"""
Data models for candidate selection.

Candidates arrive from the external certificate-lookup step as loose
address/attribute tuples and are validated into CandidateInput before
matching. Results are a tagged union: ExactMatch or AmbiguousMatch, with
None meaning "confidently no match".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from comparables.address import HouseNumberToken
from comparables.records import to_float


class CandidateInput(BaseModel):
    """
    One candidate scraped from an external register.

    Only the address is required; floor_area feeds the tie-breaker.
    Any other attributes (certificate number, rating, href) are carried
    through untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    address: str = Field(validation_alias=AliasChoices("address", "Address"))
    floor_area: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("floor_area", "floorArea", "FloorAreaSqm", "total-floor-area"),
    )

    @field_validator("address", mode="before")
    @classmethod
    def _address_to_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return " ".join(str(value).split())

    @field_validator("floor_area", mode="before")
    @classmethod
    def _coerce_floor_area(cls, value: Any) -> Optional[float]:
        return to_float(value)


class MatchStatus(Enum):
    """How a match was arrived at."""
    EXACT = "Exact Match"
    AMBIGUOUS = "Ambiguous Match"


@dataclass
class MatchCandidate:
    """A candidate that passed house-number filtering, being evaluated."""
    record: Union[Mapping[str, Any], BaseModel]
    house_number: HouseNumberToken
    street_similarity: float
    floor_area: Optional[float] = None
    address: str = ""

    # Position in the caller's list, the final deterministic tie-break
    position: int = 0


@dataclass
class MatchResult:
    """Base for selection outcomes."""
    record: Union[Mapping[str, Any], BaseModel]
    candidate: MatchCandidate

    status = None

    @property
    def is_ambiguous(self) -> bool:
        return self.status is MatchStatus.AMBIGUOUS


@dataclass
class ExactMatch(MatchResult):
    """Exactly one candidate passed every filter."""
    status = MatchStatus.EXACT


@dataclass
class AmbiguousMatch(MatchResult):
    """
    Several candidates passed every filter; a tie-break chose one.

    candidates holds every tied candidate, best first, so the caller can
    flag the record for manual review.
    """
    candidates: List[MatchCandidate] = field(default_factory=list)
    tie_break: str = ""

    status = MatchStatus.AMBIGUOUS
