"""
Duplicate Resolver

Groups records describing the same physical property and folds each
group into a single record.

Grouping:
- Records with an address group on their address signature (house
  number + word bag + postcode)
- Records without an address, and URL-only rows, group on an identical
  listing URL

Merging never loses data. When records disagree on a field, the first
value is kept, the disagreement is recorded as a MergeConflict and
summarised in NeedsReview. Distinct URLs from different providers are
kept side by side under provider-specific keys, and every address
spelling seen in a group is kept alongside the first.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Final, List, Optional, Tuple

from utils.formatting import format_value

from .address import address_signature, normalise_postcode
from .records import (
    ADDRESS,
    ADDRESS_VARIANTS_KEY,
    FLOOR_AREA_SQFT,
    FLOOR_AREA_SQM,
    IS_TARGET,
    MERGE_CONFLICTS_KEY,
    MERGED_FROM_KEY,
    NEEDS_REVIEW,
    POSTCODE,
    PRICE_PER_SQFT,
    RANKING,
    SALE_DATE,
    SOURCE_KEY,
    URL,
    PropertyRecord,
    add_review_reason,
    is_blank,
    is_truthy,
    parse_sale_date,
    to_float,
)
from .sources import is_valid_url, normalize_url, provider_for_url


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Relative difference tolerated before two floor areas conflict
FLOOR_AREA_TOLERANCE: Final = 0.02

# Town and county words dropped from address signatures, so
# "45 Smith Street" and "45 Smith Street, Scunthorpe" group together
LOCALITY_WORDS: Final = (
    "scunthorpe",
    "lincolnshire",
    "lincs",
    "england",
    "blaxton",
    "doncaster",
    "hull",
    "grimsby",
    "leeds",
    "sheffield",
    "york",
)

# Recomputed after merging, so disagreement is not a conflict
DERIVED_FIELDS: Final = (RANKING, PRICE_PER_SQFT)

# Address formatting differs between duplicates by construction
IDENTITY_FIELDS: Final = (ADDRESS,)


@dataclass(frozen=True)
class MergeConfig:
    """Configuration for duplicate grouping and merging."""
    floor_area_tolerance: float = FLOOR_AREA_TOLERANCE
    locality_words: Tuple[str, ...] = LOCALITY_WORDS

    def __post_init__(self):
        if self.floor_area_tolerance < 0:
            raise ValueError("floor_area_tolerance cannot be negative")

    def tolerance_for(self, key: str) -> float:
        """Relative numeric tolerance for a field."""
        if key in (FLOOR_AREA_SQFT, FLOOR_AREA_SQM):
            return self.floor_area_tolerance
        return 0.0


@dataclass
class MergeConflict:
    """Two or more duplicates disagreeing on one field."""
    field: str
    values: List[Any] = field(default_factory=list)

    def summary(self) -> str:
        """Human-readable form, e.g. 'FloorAreaSqFt conflict: 2390 vs 797'."""
        return f"{self.field} conflict: {' vs '.join(format_value(v) for v in self.values)}"


class DuplicateResolver:
    """
    Detects and merges duplicate property records.

    Deterministic: output order follows the first member of each group,
    and inputs are never mutated.
    """

    def __init__(self, config: Optional[MergeConfig] = None):
        self._config = config or MergeConfig()

    def signature(self, record: PropertyRecord) -> Optional[str]:
        """
        Address signature, or None for records without an address.

        URL-only rows tagged with a source carry no real address, even when
        the link was pasted into the Address column, so they group on URL.
        """
        address = record.get(ADDRESS)
        if is_blank(address):
            return None
        if not is_blank(record.get(SOURCE_KEY)) and is_valid_url(str(address)):
            return None
        return address_signature(
            str(address),
            None if is_blank(record.get(POSTCODE)) else str(record.get(POSTCODE)),
            ignore_words=self._config.locality_words,
        )

    def group(self, records: List[PropertyRecord]) -> List[List[int]]:
        """
        Group record indices into duplicate clusters.

        Returns clusters in order of their first member.
        """
        groups: List[List[int]] = []
        by_signature: Dict[str, int] = {}
        by_url: Dict[str, int] = {}

        for index, record in enumerate(records):
            signature = self.signature(record)
            if signature is not None:
                key, seen = signature, by_signature
            else:
                url = normalize_url(self._source_url(record))
                if not url:
                    groups.append([index])
                    continue
                key, seen = url, by_url

            if key in seen:
                groups[seen[key]].append(index)
            else:
                seen[key] = len(groups)
                groups.append([index])

        return groups

    @staticmethod
    def _source_url(record: PropertyRecord) -> Optional[str]:
        url = record.get(URL)
        if not is_blank(url):
            return str(url)
        address = record.get(ADDRESS)
        if not is_blank(record.get(SOURCE_KEY)) and is_valid_url(address):
            return str(address)
        return None

    def resolve(self, records: List[PropertyRecord]) -> List[PropertyRecord]:
        """
        Merge duplicates.

        Args:
            records: Records to deduplicate

        Returns:
            New list with one record per physical property
        """
        logger.info("Detecting duplicates among %d records", len(records))

        resolved = []
        for members in self.group(records):
            if len(members) == 1:
                resolved.append(dict(records[members[0]]))
                continue
            group = [records[i] for i in members]
            logger.info(
                "Found %d duplicates of %s, %s",
                len(group),
                group[0].get(ADDRESS) or group[0].get(URL) or "unknown",
                group[0].get(POSTCODE) or "no postcode",
            )
            resolved.append(self.merge(group))

        removed = len(records) - len(resolved)
        logger.info("Removed %d duplicates. %d unique records remaining.", removed, len(resolved))
        return resolved

    def merge(self, group: List[PropertyRecord]) -> PropertyRecord:
        """Fold a group of duplicates into one record."""
        merged: PropertyRecord = {}
        conflicts: List[MergeConflict] = []
        reasons: List[str] = []

        for record in group:
            conflicts.extend(record.get(MERGE_CONFLICTS_KEY) or [])
            existing = record.get(NEEDS_REVIEW)
            if not is_blank(existing):
                reasons.extend(r for r in str(existing).split("; ") if r)

        for key in self._ordered_keys(group):
            if key in (MERGE_CONFLICTS_KEY, NEEDS_REVIEW, URL, ADDRESS_VARIANTS_KEY):
                continue
            if key == IS_TARGET:
                merged[key] = any(is_truthy(r.get(IS_TARGET)) for r in group)
                continue
            if key == MERGED_FROM_KEY:
                continue

            values = [r[key] for r in group if key in r and not is_blank(r[key])]
            if not values:
                merged[key] = next(r[key] for r in group if key in r)
                continue

            merged[key] = values[0]
            if key.startswith("_") or key in IDENTITY_FIELDS or key in DERIVED_FIELDS:
                continue

            distinct = self._distinct_values(key, values)
            if len(distinct) > 1:
                conflicts.append(MergeConflict(field=key, values=distinct))

        conflicts.extend(self._merge_urls(group, merged))

        variants = self._address_variants(group)
        if len(variants) > 1:
            merged[ADDRESS_VARIANTS_KEY] = variants

        merged[MERGED_FROM_KEY] = sum(r.get(MERGED_FROM_KEY) or 1 for r in group)

        if conflicts:
            merged[MERGE_CONFLICTS_KEY] = conflicts
        for reason in reasons:
            add_review_reason(merged, reason)
        for conflict in conflicts:
            add_review_reason(merged, conflict.summary())
            logger.warning(
                "Merge conflict for %s: %s",
                merged.get(ADDRESS) or merged.get(URL) or "unknown",
                conflict.summary(),
            )

        return merged

    def values_agree(self, key: str, first: Any, second: Any) -> bool:
        """Whether two non-empty values of a field count as the same."""
        if key == POSTCODE:
            return normalise_postcode(str(first)) == normalise_postcode(str(second))

        if key == SALE_DATE:
            first_date, second_date = parse_sale_date(first), parse_sale_date(second)
            if first_date is not None and second_date is not None:
                return first_date == second_date

        first_number, second_number = to_float(first), to_float(second)
        if first_number is not None and second_number is not None:
            tolerance = self._config.tolerance_for(key)
            if tolerance:
                scale = max(abs(first_number), abs(second_number))
                return abs(first_number - second_number) <= tolerance * scale
            return first_number == second_number

        return " ".join(str(first).lower().split()) == " ".join(str(second).lower().split())

    def _distinct_values(self, key: str, values: List[Any]) -> List[Any]:
        distinct = [values[0]]
        for value in values[1:]:
            if not any(self.values_agree(key, value, seen) for seen in distinct):
                distinct.append(value)
        return distinct

    @staticmethod
    def _address_variants(group: List[PropertyRecord]) -> List[str]:
        """Distinct address spellings in group order, whitespace collapsed."""
        variants: List[str] = []
        for record in group:
            for address in [record.get(ADDRESS)] + list(record.get(ADDRESS_VARIANTS_KEY) or []):
                if is_blank(address):
                    continue
                spelling = " ".join(str(address).split())
                if spelling not in variants:
                    variants.append(spelling)
        return variants

    def _merge_urls(self, group: List[PropertyRecord], merged: PropertyRecord) -> List[MergeConflict]:
        """
        Keep every distinct source URL.

        The first URL stays in URL. When several distinct URLs exist, each
        is also stored under its provider key; two different URLs from the
        same provider are a conflict.
        """
        urls: List[str] = []
        seen = set()
        for record in group:
            url = record.get(URL)
            if is_blank(url):
                continue
            normalized = normalize_url(str(url))
            if normalized not in seen:
                seen.add(normalized)
                urls.append(str(url).strip())

        if not urls:
            if any(URL in r for r in group):
                merged[URL] = ""
            return []

        merged[URL] = urls[0]
        if len(urls) == 1:
            return []

        by_provider: Dict[str, List[str]] = {}
        for url in urls:
            by_provider.setdefault(provider_for_url(url).record_key, []).append(url)

        conflicts = []
        for key, provider_urls in by_provider.items():
            if is_blank(merged.get(key)):
                merged[key] = provider_urls[0]
            if len(provider_urls) > 1:
                conflicts.append(MergeConflict(field=key, values=provider_urls))

        logger.info("Kept %d source URLs side by side: %s", len(urls), ", ".join(sorted(by_provider)))
        return conflicts

    @staticmethod
    def _ordered_keys(group: List[PropertyRecord]) -> List[str]:
        keys: List[str] = []
        seen = set()
        for record in group:
            for key in record:
                if key not in seen:
                    seen.add(key)
                    keys.append(key)
        return keys


def resolve_duplicates(
    records: List[PropertyRecord],
    config: Optional[MergeConfig] = None,
) -> List[PropertyRecord]:
    """Convenience wrapper around DuplicateResolver.resolve."""
    return DuplicateResolver(config).resolve(records)
