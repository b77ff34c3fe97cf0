"""
Tests for environment configuration.
"""

import logging
import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config import Config, configure_logging
from utils.formatting import format_currency, format_percent, format_value


ENV_VARS = (
    "COMPARABLES_LOG_LEVEL",
    "TARGET_MATCH_THRESHOLD",
    "MIN_STREET_SIMILARITY",
    "FLOOR_AREA_TOLERANCE",
    "RANK_WEIGHT_FLOOR_AREA",
    "RANK_WEIGHT_PROXIMITY",
    "RANK_WEIGHT_BEDROOMS",
    "RANK_WEIGHT_RECENCY",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any configuration from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:

    def test_defaults(self, clean_env):
        config = Config.load()

        assert config.log_level == "INFO"
        assert config.target_match_threshold == 80
        assert config.min_street_similarity == 0.30
        assert config.floor_area_tolerance == 0.02
        assert config.ranking_config().weight_floor_area == 0.40

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("COMPARABLES_LOG_LEVEL", "debug")
        clean_env.setenv("MIN_STREET_SIMILARITY", "0.5")
        clean_env.setenv("TARGET_MATCH_THRESHOLD", "90")
        clean_env.setenv("FLOOR_AREA_TOLERANCE", "0.05")

        config = Config.load()

        assert config.log_level == "DEBUG"
        assert config.matching_config().min_street_similarity == 0.5
        assert config.target_config().match_threshold == 90
        assert config.merge_config().floor_area_tolerance == 0.05

    def test_custom_weights(self, clean_env):
        clean_env.setenv("RANK_WEIGHT_FLOOR_AREA", "0.7")
        clean_env.setenv("RANK_WEIGHT_PROXIMITY", "0.1")
        clean_env.setenv("RANK_WEIGHT_BEDROOMS", "0.1")
        clean_env.setenv("RANK_WEIGHT_RECENCY", "0.1")

        assert Config.load().ranking_config().weight_floor_area == 0.7

    def test_weights_not_summing_to_one_rejected(self, clean_env):
        clean_env.setenv("RANK_WEIGHT_RECENCY", "0.5")

        with pytest.raises(ValueError):
            Config.load().ranking_config()

    def test_to_dict(self, clean_env):
        data = Config.load().to_dict()

        assert data["min_street_similarity"] == 0.30
        assert set(data) == {
            "log_level",
            "target_match_threshold",
            "min_street_similarity",
            "floor_area_tolerance",
            "rank_weight_floor_area",
            "rank_weight_proximity",
            "rank_weight_bedrooms",
            "rank_weight_recency",
        }

    def test_configure_logging(self, clean_env):
        configure_logging(Config(log_level="WARNING"))

        assert logging.getLogger().handlers


class TestFormatting:

    def test_format_value_drops_trailing_zero(self):
        assert format_value(2390.0) == "2390"
        assert format_value(2390.5) == "2390.5"
        assert format_value(" 797 ") == "797"

    def test_format_currency(self):
        assert format_currency(250000) == "£250,000"
        assert format_currency(1499.6) == "£1,500"

    def test_format_percent(self):
        assert format_percent(0.25) == "25.0%"
