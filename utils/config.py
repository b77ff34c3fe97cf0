"""
Configuration management.
"""

import logging
import os
from dataclasses import dataclass, field


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults and builds
    the configuration objects each comparables component takes.
    """

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("COMPARABLES_LOG_LEVEL", "INFO").upper()
    )

    # Target detection
    target_match_threshold: float = field(
        default_factory=lambda: _env_float("TARGET_MATCH_THRESHOLD", "80")
    )

    # Candidate matching
    min_street_similarity: float = field(
        default_factory=lambda: _env_float("MIN_STREET_SIMILARITY", "0.30")
    )

    # Duplicate merging
    floor_area_tolerance: float = field(
        default_factory=lambda: _env_float("FLOOR_AREA_TOLERANCE", "0.02")
    )

    # Ranking
    rank_weight_floor_area: float = field(
        default_factory=lambda: _env_float("RANK_WEIGHT_FLOOR_AREA", "0.40")
    )
    rank_weight_proximity: float = field(
        default_factory=lambda: _env_float("RANK_WEIGHT_PROXIMITY", "0.30")
    )
    rank_weight_bedrooms: float = field(
        default_factory=lambda: _env_float("RANK_WEIGHT_BEDROOMS", "0.20")
    )
    rank_weight_recency: float = field(
        default_factory=lambda: _env_float("RANK_WEIGHT_RECENCY", "0.10")
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "log_level": self.log_level,
            "target_match_threshold": self.target_match_threshold,
            "min_street_similarity": self.min_street_similarity,
            "floor_area_tolerance": self.floor_area_tolerance,
            "rank_weight_floor_area": self.rank_weight_floor_area,
            "rank_weight_proximity": self.rank_weight_proximity,
            "rank_weight_bedrooms": self.rank_weight_bedrooms,
            "rank_weight_recency": self.rank_weight_recency,
        }

    # comparables imports utils, so component configs import lazily

    def target_config(self):
        """TargetConfig for the target identifier."""
        from comparables.target import TargetConfig
        return TargetConfig(match_threshold=self.target_match_threshold)

    def merge_config(self):
        """MergeConfig for the duplicate resolver."""
        from comparables.duplicates import MergeConfig
        return MergeConfig(floor_area_tolerance=self.floor_area_tolerance)

    def matching_config(self):
        """MatchingConfig for the candidate selector."""
        from comparables.matching import MatchingConfig
        return MatchingConfig(min_street_similarity=self.min_street_similarity)

    def ranking_config(self):
        """RankingConfig for the ranking engine."""
        from comparables.ranking import RankingConfig
        return RankingConfig(
            weight_floor_area=self.rank_weight_floor_area,
            weight_proximity=self.rank_weight_proximity,
            weight_bedrooms=self.rank_weight_bedrooms,
            weight_recency=self.rank_weight_recency,
        )


def configure_logging(config: Config = None) -> None:
    """Install a default log handler at the configured level."""
    config = config or Config.load()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
