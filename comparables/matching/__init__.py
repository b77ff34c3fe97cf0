"""
Candidate Matching

Resolves a property address against an unordered pool of external
records, refusing to guess when no candidate is an exact house-number
match on the same street.
"""

from comparables.address import is_exact_house_number_match

from .models import (
    AmbiguousMatch,
    CandidateInput,
    ExactMatch,
    MatchCandidate,
    MatchResult,
    MatchStatus,
)
from .selector import CandidateSelector, MatchingConfig, select_best_match

__all__ = [
    # Models
    "AmbiguousMatch",
    "CandidateInput",
    "ExactMatch",
    "MatchCandidate",
    "MatchResult",
    "MatchStatus",
    # Engine
    "CandidateSelector",
    "MatchingConfig",
    "is_exact_house_number_match",
    "select_best_match",
]
