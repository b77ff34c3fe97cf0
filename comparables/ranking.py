"""
Ranking Engine

Scores each comparable against the target and sorts best first.

Scoring methodology:
- Floor Area (40%): relative difference from the target's floor area
- Proximity (30%): distance, normalised to the furthest comparable
- Bedrooms (20%): exact count 100, one off 50, otherwise 0
- Recency (10%): days since sale, normalised to the oldest sale

Distance and age are normalised per batch, so a comparable's score
depends on which other comparables are being ranked with it.
Missing data scores 0 for that factor; ranking never raises.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Final, List, Optional

from .records import (
    ADDRESS,
    BEDROOMS,
    DISTANCE_MILES,
    RANKING,
    SALE_DATE,
    PropertyRecord,
    floor_area_sqft,
    parse_sale_date,
    to_float,
    to_int,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

WEIGHT_FLOOR_AREA: Final = 0.40
WEIGHT_PROXIMITY: Final = 0.30
WEIGHT_BEDROOMS: Final = 0.20
WEIGHT_RECENCY: Final = 0.10

BEDROOMS_EXACT_SCORE: Final = 100.0
BEDROOMS_ONE_OFF_SCORE: Final = 50.0

MAX_SCORE: Final = 100.0


@dataclass(frozen=True)
class RankingConfig:
    """Weights and bedroom scores for ranking. Weights must sum to 1."""
    weight_floor_area: float = WEIGHT_FLOOR_AREA
    weight_proximity: float = WEIGHT_PROXIMITY
    weight_bedrooms: float = WEIGHT_BEDROOMS
    weight_recency: float = WEIGHT_RECENCY
    bedrooms_exact_score: float = BEDROOMS_EXACT_SCORE
    bedrooms_one_off_score: float = BEDROOMS_ONE_OFF_SCORE

    def __post_init__(self):
        weights = (
            self.weight_floor_area,
            self.weight_proximity,
            self.weight_bedrooms,
            self.weight_recency,
        )
        if any(w < 0 for w in weights):
            raise ValueError("Ranking weights cannot be negative")
        if not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
            raise ValueError(f"Ranking weights must sum to 1.0, got {sum(weights)}")


@dataclass
class ScoreBreakdown:
    """Sub-scores (0-100) behind one comparable's Ranking."""
    floor_area: float
    proximity: float
    bedrooms: float
    recency: float
    total: int


class RankingEngine:
    """
    Deterministic weighted similarity ranking of comparables.

    The only input beyond the records is the reference date used to age
    sales; pass one explicitly for reproducible results.
    """

    def __init__(self, config: Optional[RankingConfig] = None, reference_date: date = None):
        """
        Initialize ranking engine.

        Args:
            config: Weights and scores (default: standard weights)
            reference_date: Date sales are aged from (default: today)
        """
        self._config = config or RankingConfig()
        self._reference_date = reference_date or date.today()

    def rank(self, comparables: List[PropertyRecord], target: PropertyRecord) -> List[PropertyRecord]:
        """
        Score and sort comparables against the target.

        Writes an integer 0-100 Ranking on every comparable.

        Args:
            comparables: Records to rank (mutated in place)
            target: The target property

        Returns:
            New list sorted by Ranking, highest first; equal rankings keep
            their input order
        """
        logger.info("Ranking %d comparable properties", len(comparables))

        max_distance = self.max_distance(comparables)
        max_days = self.max_days_since_sale(comparables)
        logger.info("Max distance for normalisation: %s miles", max_distance)
        logger.info("Max days for normalisation: %s days", max_days)

        for record in comparables:
            breakdown = self.score(record, target, max_distance, max_days)
            record[RANKING] = breakdown.total
            logger.debug(
                "%s: score %d (area %.0f, proximity %.0f, beds %.0f, recency %.0f)",
                record.get(ADDRESS) or "Unknown",
                breakdown.total,
                breakdown.floor_area,
                breakdown.proximity,
                breakdown.bedrooms,
                breakdown.recency,
            )

        ranked = sorted(comparables, key=lambda r: -r[RANKING])
        logger.info("Ranking complete")
        return ranked

    def score(
        self,
        comparable: PropertyRecord,
        target: PropertyRecord,
        max_distance: float,
        max_days: int,
    ) -> ScoreBreakdown:
        """Score a single comparable given the batch maxima."""
        floor_area = self.floor_area_score(comparable, target)
        proximity = self.proximity_score(comparable, max_distance)
        bedrooms = self.bedroom_score(comparable, target)
        recency = self.recency_score(comparable, max_days)

        weighted = (
            floor_area * self._config.weight_floor_area
            + proximity * self._config.weight_proximity
            + bedrooms * self._config.weight_bedrooms
            + recency * self._config.weight_recency
        )
        # Round half up, once, at the end
        total = int(math.floor(weighted + 0.5))

        return ScoreBreakdown(
            floor_area=floor_area,
            proximity=proximity,
            bedrooms=bedrooms,
            recency=recency,
            total=max(0, min(int(MAX_SCORE), total)),
        )

    def floor_area_score(self, comparable: PropertyRecord, target: PropertyRecord) -> float:
        """
        100 minus the percentage difference from the target's floor area.

        0 if either floor area is missing or the target's is zero.
        """
        comparable_area = floor_area_sqft(comparable)
        target_area = floor_area_sqft(target)

        if comparable_area is None or target_area is None or target_area == 0:
            return 0.0

        percent_difference = abs(comparable_area - target_area) / target_area * 100
        return max(0.0, MAX_SCORE - percent_difference)

    def proximity_score(self, comparable: PropertyRecord, max_distance: float) -> float:
        """Closer is better; the furthest comparable in the batch scores 0."""
        distance = to_float(comparable.get(DISTANCE_MILES))
        if distance is None:
            return 0.0
        if max_distance == 0:
            return MAX_SCORE
        return max(0.0, MAX_SCORE - distance / max_distance * 100)

    def bedroom_score(self, comparable: PropertyRecord, target: PropertyRecord) -> float:
        """Exact bedroom count, one off, or anything else (including missing)."""
        comparable_beds = to_int(comparable.get(BEDROOMS))
        target_beds = to_int(target.get(BEDROOMS))

        if comparable_beds is None or target_beds is None:
            return 0.0

        difference = abs(comparable_beds - target_beds)
        if difference == 0:
            return self._config.bedrooms_exact_score
        if difference == 1:
            return self._config.bedrooms_one_off_score
        return 0.0

    def recency_score(self, comparable: PropertyRecord, max_days: int) -> float:
        """More recent is better; the oldest sale in the batch scores 0."""
        days = self.days_since_sale(comparable)
        if days is None:
            return 0.0
        if max_days == 0:
            return MAX_SCORE
        return max(0.0, MAX_SCORE - days / max_days * 100)

    def days_since_sale(self, record: PropertyRecord) -> Optional[int]:
        """Whole days between the sale date and the reference date."""
        sale_date = parse_sale_date(record.get(SALE_DATE))
        if sale_date is None:
            return None
        return abs((self._reference_date - sale_date).days)

    def max_distance(self, comparables: List[PropertyRecord]) -> float:
        """Largest distance present in the batch (0 if none)."""
        distances = [to_float(r.get(DISTANCE_MILES)) for r in comparables]
        return max((d for d in distances if d is not None), default=0.0)

    def max_days_since_sale(self, comparables: List[PropertyRecord]) -> int:
        """Oldest sale age present in the batch (0 if none)."""
        ages = [self.days_since_sale(r) for r in comparables]
        return max((a for a in ages if a is not None), default=0)


def rank_comparables(
    comparables: List[PropertyRecord],
    target: PropertyRecord,
    config: Optional[RankingConfig] = None,
    reference_date: date = None,
) -> List[PropertyRecord]:
    """Convenience wrapper around RankingEngine.rank."""
    return RankingEngine(config, reference_date).rank(comparables, target)
