"""
Candidate Selector

Picks the single record in a pool of external candidates (for example
energy certificates listed under a postcode) that describes the target
address. Never guesses: when no candidate clears the exactness bar the
result is None. No data is better than wrong data.

Pipeline order:
1. HOUSE NUMBER - exact, unit-aware equality (307 never matches 303)
2. STREET - share of target words present in the candidate >= floor
3. TIE-BREAK - known floor area, street similarity, plain address,
   input order
"""

import logging
from dataclasses import dataclass
from typing import Any, Final, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from utils.formatting import format_percent

from comparables.address import (
    extract_house_number,
    extract_postcode,
    is_exact_house_number_match,
    normalize_for_comparison,
    street_similarity,
)

from .models import AmbiguousMatch, CandidateInput, ExactMatch, MatchCandidate, MatchResult


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Minimum share of target street words a candidate must contain
MIN_STREET_SIMILARITY: Final = 0.30

# Relative floor-area tolerance bands for the tie-break, tightest first.
# Band 0 is an exact match.
FLOOR_AREA_BANDS: Final = (0.0, 0.02, 0.05, 0.10, 0.20)

_EXACT_EPSILON: Final = 1e-9

_TIE_BREAK_NAMES: Final = (
    "floor_area_band",
    "street_similarity",
    "plain_address",
    "floor_area_difference",
    "input_order",
)


@dataclass(frozen=True)
class MatchingConfig:
    """Configuration for candidate selection."""
    min_street_similarity: float = MIN_STREET_SIMILARITY
    floor_area_bands: Tuple[float, ...] = FLOOR_AREA_BANDS

    def __post_init__(self):
        if not 0 <= self.min_street_similarity <= 1:
            raise ValueError(
                f"min_street_similarity must be within 0-1, got {self.min_street_similarity}"
            )
        if list(self.floor_area_bands) != sorted(self.floor_area_bands):
            raise ValueError("floor_area_bands must be in ascending order")


class CandidateSelector:
    """
    Selects the best external candidate for a target address.

    Stateless apart from its configuration; calls for different target
    addresses are independent.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        self._config = config or MatchingConfig()

    def select_best_match(
        self,
        target_address: str,
        candidates: Sequence[Any],
        known_floor_area: Optional[float] = None,
    ) -> Optional[MatchResult]:
        """
        Select the candidate describing target_address.

        Args:
            target_address: Free-form address of the property
            candidates: Mappings (or CandidateInput models) with at least
                an address; floor_area is used for tie-breaking
            known_floor_area: Floor area already known for the property,
                in the same unit as the candidates' floor_area

        Returns:
            ExactMatch, AmbiguousMatch, or None when nothing matches
        """
        target_number = extract_house_number(target_address)
        if not target_number.is_comparable:
            logger.info("No house number in %r, cannot match candidates", target_address)
            return None

        target_tokens = normalize_for_comparison(extract_postcode(target_address).address)

        matches = self._filter_candidates(target_number, target_tokens, candidates)

        if not matches:
            logger.info(
                "No exact match for %r (house number %s) among %d candidates",
                target_address, target_number, len(candidates),
            )
            return None

        if len(matches) == 1:
            logger.info("Exact match for %r: %r", target_address, matches[0].address)
            return ExactMatch(record=matches[0].record, candidate=matches[0])

        ranked = sorted(matches, key=lambda m: self._tie_break_key(m, known_floor_area))
        best = ranked[0]
        tie_break = self._deciding_criterion(ranked[0], ranked[1], known_floor_area)

        logger.warning(
            "Ambiguous match for %r: %d candidates share house number %s; chose %r by %s",
            target_address, len(ranked), target_number, best.address, tie_break,
        )
        return AmbiguousMatch(
            record=best.record,
            candidate=best,
            candidates=ranked,
            tie_break=tie_break,
        )

    def _filter_candidates(
        self,
        target_number,
        target_tokens: List[str],
        candidates: Sequence[Any],
    ) -> List[MatchCandidate]:
        matches = []

        for position, raw in enumerate(candidates):
            try:
                candidate = (
                    raw if isinstance(raw, CandidateInput) else CandidateInput.model_validate(raw)
                )
            except ValidationError as e:
                logger.warning("Skipping malformed candidate %d: %s", position, e)
                continue

            address = extract_postcode(candidate.address).address
            house_number = extract_house_number(address)
            if not is_exact_house_number_match(target_number, house_number):
                continue

            similarity = street_similarity(target_tokens, normalize_for_comparison(address))
            if similarity < self._config.min_street_similarity:
                logger.info(
                    "Rejected %r: house number matches but street similarity %s is below %s",
                    candidate.address,
                    format_percent(similarity, 0),
                    format_percent(self._config.min_street_similarity, 0),
                )
                continue

            matches.append(MatchCandidate(
                record=raw,
                house_number=house_number,
                street_similarity=similarity,
                floor_area=candidate.floor_area,
                address=candidate.address,
                position=position,
            ))

        return matches

    def floor_area_band(self, floor_area: Optional[float], known_floor_area: Optional[float]) -> int:
        """
        Tolerance band of a candidate's floor area around the known one.

        0 is exact; higher is looser. Missing data sorts after every band.
        """
        bands = self._config.floor_area_bands
        if known_floor_area is None:
            return 0
        if floor_area is None or known_floor_area <= 0:
            return len(bands) + 1

        difference = abs(floor_area - known_floor_area)
        if difference <= _EXACT_EPSILON:
            return 0
        relative = difference / known_floor_area
        for index, tolerance in enumerate(bands):
            if index and relative <= tolerance:
                return index
        return len(bands)

    def _tie_break_key(self, match: MatchCandidate, known_floor_area: Optional[float]) -> tuple:
        if known_floor_area is not None and match.floor_area is not None:
            difference = abs(match.floor_area - known_floor_area)
        else:
            difference = 0.0
        return (
            self.floor_area_band(match.floor_area, known_floor_area),
            -match.street_similarity,
            match.house_number.has_property_name,
            difference,
            match.position,
        )

    def _deciding_criterion(
        self,
        best: MatchCandidate,
        runner_up: MatchCandidate,
        known_floor_area: Optional[float],
    ) -> str:
        best_key = self._tie_break_key(best, known_floor_area)
        runner_key = self._tie_break_key(runner_up, known_floor_area)
        for name, first, second in zip(_TIE_BREAK_NAMES, best_key, runner_key):
            if first != second:
                return name
        return "input_order"


def select_best_match(
    target_address: str,
    candidates: Sequence[Any],
    known_floor_area: Optional[float] = None,
    config: Optional[MatchingConfig] = None,
) -> Optional[MatchResult]:
    """Convenience wrapper around CandidateSelector.select_best_match."""
    return CandidateSelector(config).select_best_match(target_address, candidates, known_floor_area)
