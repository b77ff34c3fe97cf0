"""
Tests for Target Identifier

Verifies:
- Exactly one target is accepted; zero or several raise
- Address and postcode are pulled out of marker text
- Markers in other columns are cleared from output
- Pre-header rows can hold the target
- A target without Address + Postcode or URL is rejected
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from comparables.errors import (
    MultipleTargetsFound,
    NoTargetFound,
    TargetMissingData,
    TargetResolutionError,
)
from comparables.target import TargetConfig, TargetIdentifier, identify_target


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def identifier():
    return TargetIdentifier()


@pytest.fixture
def comparables():
    return [
        {"Address": "1 Oak Street", "Postcode": "DN15 8AA", "Price": 150000, "Type": "Terraced"},
        {"Address": "3 Oak Street", "Postcode": "DN15 8AA", "Price": 155000, "Type": "Semi-detached"},
    ]


# =============================================================================
# Test: Marker Detection
# =============================================================================

class TestMarkerDetection:

    def test_marker_in_address(self, identifier, comparables):
        records = [{"Address": "TARGET is 54 Smith Street, Scunthorpe DN15 7LQ"}] + comparables

        result = identifier.identify_target(records)

        assert result.target["Address"] == "54 Smith Street, Scunthorpe"
        assert result.target["Postcode"] == "DN15 7LQ"
        assert result.target["IsTarget"] is True
        assert result.marker_field == "Address"
        assert result.comparables == comparables

    def test_marker_in_other_column_cleared(self, identifier, comparables):
        records = comparables + [
            {"Address": "54 Smith Street", "Postcode": "DN15 7LQ", "Notes": "Target"}
        ]

        result = identifier.identify_target(records)

        assert result.target["Address"] == "54 Smith Street"
        assert result.target["Notes"] == ""
        assert result.marker_field == "Notes"

    def test_is_target_flag(self, identifier, comparables):
        records = comparables + [
            {"Address": "54 Smith Street", "Postcode": "DN15 7LQ", "IsTarget": "yes"}
        ]

        result = identifier.identify_target(records)

        assert result.target["Address"] == "54 Smith Street"
        assert result.marker_field is None

    def test_comparables_flagged_false(self, identifier, comparables):
        records = [{"Address": "Target: 54 Smith Street DN15 7LQ"}] + comparables

        result = identifier.identify_target(records)

        assert all(r["IsTarget"] is False for r in result.comparables)

    @pytest.mark.parametrize("cell", ["target", "TARGET", "Target:", "tgt", "Subject property", "targt"])
    def test_marker_vocabulary(self, identifier, cell):
        assert identifier.match_marker(cell) is not None

    @pytest.mark.parametrize("cell", [
        "Terraced",
        "Freehold",
        "54 Smith Street",
        "https://www.rightmove.co.uk/target",
        "",
        None,
        150000,
    ])
    def test_non_markers(self, identifier, cell):
        assert identifier.match_marker(cell) is None

    def test_marker_inside_word_ignored(self, identifier):
        assert identifier.match_marker("Targeted renovation") is None

    def test_threshold_configurable(self):
        strict = TargetIdentifier(TargetConfig(match_threshold=99))

        assert strict.match_marker("targt") is None


# =============================================================================
# Test: Prefix Cleanup
# =============================================================================

class TestPrefixCleanup:

    @pytest.mark.parametrize("text", [
        "Target is 54 Smith Street",
        "TARGET = 54 Smith Street",
        "target: 54 Smith Street",
        "Target property: 54 Smith Street",
        "TGT: 54 Smith Street",
        "Subject property: 54 Smith Street",
        "Subject: 54 Smith Street",
        "Target - 54 Smith Street",
    ])
    def test_prefixes_removed(self, identifier, text):
        assert identifier.clean_target_text(text) == "54 Smith Street"

    def test_plain_address_unchanged(self, identifier):
        assert identifier.clean_target_text("54 Smith Street") == "54 Smith Street"


# =============================================================================
# Test: Failures
# =============================================================================

class TestTargetFailures:

    def test_no_target(self, identifier, comparables):
        with pytest.raises(NoTargetFound):
            identifier.identify_target(comparables)

    def test_multiple_targets(self, identifier, comparables):
        records = [
            {"Address": "Target is 54 Smith Street DN15 7LQ"},
            {"Address": "Target is 56 Smith Street DN15 7LQ"},
        ] + comparables

        with pytest.raises(MultipleTargetsFound) as exc_info:
            identifier.identify_target(records)

        assert len(exc_info.value.candidates) == 2

    def test_missing_data(self, identifier, comparables):
        records = [{"Notes": "target", "Price": 200000}] + comparables

        with pytest.raises(TargetMissingData) as exc_info:
            identifier.identify_target(records)

        assert exc_info.value.record["Price"] == 200000

    def test_address_without_postcode_rejected(self, identifier, comparables):
        records = [{"Address": "Target is 54 Smith Street"}] + comparables

        with pytest.raises(TargetMissingData):
            identifier.identify_target(records)

    def test_url_alone_is_enough(self, identifier, comparables):
        url = "https://www.rightmove.co.uk/properties/123456"
        records = [{"Notes": "target", "URL": url}] + comparables

        result = identifier.identify_target(records)

        assert result.target["URL"] == url

    def test_errors_share_base_class(self, identifier):
        with pytest.raises(TargetResolutionError):
            identifier.identify_target([])


# =============================================================================
# Test: Pre-Header Rows
# =============================================================================

class TestPreHeaderTarget:

    def test_target_above_header(self, comparables):
        result = identify_target(
            comparables,
            pre_header_rows=[["TARGET is 54 Smith Street, Scunthorpe DN15 7LQ", "", ""]],
            headers=["Address", "Postcode", "Price"],
        )

        assert result.from_pre_header
        assert result.target["Address"] == "54 Smith Street, Scunthorpe"
        assert result.target["Postcode"] == "DN15 7LQ"
        assert len(result.comparables) == 2

    def test_pre_header_and_row_marker_conflict(self, comparables):
        records = comparables + [{"Address": "Target: 54 Smith Street DN15 7LQ"}]

        with pytest.raises(MultipleTargetsFound):
            identify_target(records, pre_header_rows=[["Target", "56 Smith Street"]])
