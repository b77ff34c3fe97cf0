"""
Tests for Record Sanitizer

Verifies:
- HTML is stripped and scraped script text rejected
- Out-of-range numbers are cleared and flagged for review
- Embedded postcodes move into Postcode
- Square metres in the sq ft column are detected
- Missing floor area units and price per sq ft are derived
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from comparables.sanitizer import (
    RecordSanitizer,
    SanitizerConfig,
    contains_script,
    sanitize_record,
    sanitize_records,
    strip_html,
)


@pytest.fixture
def sanitizer():
    return RecordSanitizer()


# =============================================================================
# Test: Text Fields
# =============================================================================

class TestTextCleanup:

    def test_html_tags_removed(self):
        assert strip_html("<b>54 Smith</b>   Street&nbsp;") == "54 Smith Street"

    def test_script_rejected(self):
        assert strip_html("var x = 1; document.write(x)") == ""

    @pytest.mark.parametrize("text,expected", [
        ("function() { return 1 }", True),
        ("window.location", True),
        ("Semi-detached", False),
        ("54 Smith Street", False),
    ])
    def test_contains_script(self, text, expected):
        assert contains_script(text) is expected

    def test_script_in_type_flagged(self, sanitizer):
        record = sanitizer.sanitize({"Address": "1 Oak Street", "Type": "<script>if (a) { b() }</script>"})

        assert record["Type"] == ""
        assert "Type rejected" in record["NeedsReview"]

    def test_clean_text_untouched(self, sanitizer):
        record = sanitizer.sanitize({"Address": "1 Oak Street", "Tenure": "Freehold"})

        assert record["Tenure"] == "Freehold"
        assert "NeedsReview" not in record


# =============================================================================
# Test: Numeric Validation
# =============================================================================

class TestNumericValidation:

    def test_price_coerced(self, sanitizer):
        assert sanitizer.sanitize({"Price": "£250,000"})["Price"] == 250000

    @pytest.mark.parametrize("price", ["5000", 25_000_000, "call agent"])
    def test_invalid_price_cleared(self, sanitizer, price):
        record = sanitizer.sanitize({"Address": "1 Oak Street", "Price": price})

        assert record["Price"] is None
        assert "Invalid Price" in record["NeedsReview"]

    def test_bedrooms(self, sanitizer):
        assert sanitizer.sanitize({"Bedrooms": "3"})["Bedrooms"] == 3
        assert sanitizer.sanitize({"Bedrooms": 0})["Bedrooms"] == 0

    @pytest.mark.parametrize("raw,expected", [
        ("3 bed", 3),
        ("4 beds", 4),
        ("2 Bedrooms", 2),
        ("3-bed", 3),
    ])
    def test_bedrooms_with_unit(self, sanitizer, raw, expected):
        record = sanitizer.sanitize({"Bedrooms": raw})

        assert record["Bedrooms"] == expected
        assert "NeedsReview" not in record

    def test_too_many_bedrooms(self, sanitizer):
        record = sanitizer.sanitize({"Bedrooms": 40})

        assert record["Bedrooms"] is None
        assert record["NeedsReview"] == "Invalid Bedrooms: 40"

    def test_floor_area_out_of_range(self, sanitizer):
        record = sanitizer.sanitize({"FloorAreaSqFt": 20000})

        assert record["FloorAreaSqFt"] is None
        assert "Invalid FloorAreaSqFt" in record["NeedsReview"]

    def test_blank_values_left_alone(self, sanitizer):
        record = sanitizer.sanitize({"Price": "", "Bedrooms": None})

        assert record["Price"] == ""
        assert record["Bedrooms"] is None
        assert "NeedsReview" not in record

    def test_custom_ranges(self):
        sanitizer = RecordSanitizer(SanitizerConfig(bedrooms_range=(1, 5)))

        assert sanitizer.sanitize({"Bedrooms": 0})["Bedrooms"] is None


# =============================================================================
# Test: Postcodes and Floor Areas
# =============================================================================

class TestDerivedFields:

    def test_postcode_moved_out_of_address(self, sanitizer):
        record = sanitizer.sanitize({"Address": "54 Smith Street, Scunthorpe DN15 7LQ", "Postcode": ""})

        assert record["Address"] == "54 Smith Street, Scunthorpe"
        assert record["Postcode"] == "DN15 7LQ"

    def test_existing_postcode_kept(self, sanitizer):
        record = sanitizer.sanitize({"Address": "54 Smith Street DN15 7LQ", "Postcode": "DN15 7LQ"})

        assert record["Address"] == "54 Smith Street DN15 7LQ"

    def test_square_metres_in_sqft_column(self, sanitizer):
        record = sanitizer.sanitize({"Price": 200000, "FloorAreaSqFt": 75})

        assert record["FloorAreaSqFt"] == 807
        assert record["FloorAreaSqm"] == 75
        assert "treated as sqm" in record["NeedsReview"]

    def test_small_cheap_property_not_converted(self, sanitizer):
        record = sanitizer.sanitize({"Price": 60000, "FloorAreaSqFt": 280})

        assert record["FloorAreaSqFt"] == 280

    def test_sqm_derived(self, sanitizer):
        record = sanitizer.sanitize({"Price": 250000, "FloorAreaSqFt": "1,000 sq ft"})

        assert record["FloorAreaSqFt"] == 1000
        assert record["FloorAreaSqm"] == 93
        assert record["PricePerSqFt"] == 250

    def test_sqft_derived(self, sanitizer):
        record = sanitizer.sanitize({"FloorAreaSqm": 100})

        assert record["FloorAreaSqFt"] == 1076

    def test_existing_price_per_sqft_kept(self, sanitizer):
        record = sanitizer.sanitize({"Price": 250000, "FloorAreaSqFt": 1000, "PricePerSqFt": 240})

        assert record["PricePerSqFt"] == 240


# =============================================================================
# Test: Batches
# =============================================================================

class TestBatch:

    def test_input_not_mutated(self):
        original = {"Address": "<i>1 Oak Street</i>", "Price": "£150,000"}

        cleaned = sanitize_record(original)

        assert original["Price"] == "£150,000"
        assert cleaned["Address"] == "1 Oak Street"

    def test_sanitize_records(self):
        records = sanitize_records([{"Bedrooms": "2"}, {"Bedrooms": "3"}])

        assert [r["Bedrooms"] for r in records] == [2, 3]
