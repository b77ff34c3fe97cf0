"""
Tests for source URL classification.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from comparables.sources import (
    Provider,
    URLType,
    classify_url,
    is_url_only_row,
    is_valid_url,
    normalize_url,
    provider_for_url,
    tag_url_only_rows,
)


@pytest.mark.parametrize("url,expected", [
    ("https://www.rightmove.co.uk/house-prices/dn15.html?radius=0.5", URLType.RIGHTMOVE_POSTCODE_SEARCH),
    ("https://www.rightmove.co.uk/house-prices/details/abc-123", URLType.RIGHTMOVE_SOLD_LISTING),
    ("https://www.rightmove.co.uk/properties/123456#/?channel=RES_BUY", URLType.RIGHTMOVE_FORSALE_LISTING),
    ("https://propertydata.co.uk/transaction/ABC", URLType.PROPERTYDATA),
    ("https://find-energy-certificate.service.gov.uk/energy-certificate/0310-2222", URLType.EPC_CERTIFICATE),
    ("https://www.zoopla.co.uk/property/1", URLType.UNKNOWN),
])
def test_classify_url(url, expected):
    assert classify_url(url) == expected


@pytest.mark.parametrize("url,key", [
    ("https://www.rightmove.co.uk/properties/123456", "URL_Rightmove"),
    ("https://propertydata.co.uk/transaction/ABC", "URL_PropertyData"),
    ("https://find-energy-certificate.service.gov.uk/energy-certificate/1", "URL_EPC"),
    ("https://example.com/listing", "URL_Other"),
])
def test_provider_record_keys(url, key):
    assert provider_for_url(url).record_key == key


def test_provider_for_sold_listing():
    assert provider_for_url("https://www.rightmove.co.uk/house-prices/details/x") is Provider.RIGHTMOVE


@pytest.mark.parametrize("value,expected", [
    ("https://example.com/a", True),
    ("http://example.com", True),
    ("example.com/a", False),
    ("ftp://example.com", False),
    ("", False),
    (None, False),
])
def test_is_valid_url(value, expected):
    assert is_valid_url(value) is expected


def test_normalize_url():
    assert normalize_url("HTTPS://Example.com/a/") == "example.com/a"
    assert normalize_url("http://example.com/a") == normalize_url("https://example.com/a/")
    assert normalize_url(None) == ""


class TestUrlOnlyRows:

    def test_url_with_little_else(self):
        assert is_url_only_row({"URL": "https://propertydata.co.uk/t/1", "Price": 150000})

    def test_url_in_address_does_not_count(self):
        row = {"Address": "https://propertydata.co.uk/t/1", "Price": 150000}

        assert is_url_only_row(row)

    def test_full_row(self):
        row = {"Address": "1 Oak Street", "Postcode": "DN15 8AA", "Price": 150000}

        assert not is_url_only_row(row)

    def test_tagging(self):
        rows = [
            {"URL": "https://find-energy-certificate.service.gov.uk/energy-certificate/1"},
            {"Address": "1 Oak Street", "Postcode": "DN15 8AA", "URL": "https://propertydata.co.uk/t/1"},
            {"URL": "not a url"},
            {"URL": "https://propertydata.co.uk/t/2", "_source": "manual"},
        ]

        assert tag_url_only_rows(rows) == 1
        assert rows[0]["_source"] == "epc_certificate"
        assert "_source" not in rows[1]
        assert rows[3]["_source"] == "manual"
