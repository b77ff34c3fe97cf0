"""
Target Identifier

Finds the single row marked as the target property, pulls any address
and postcode embedded in the marker text ("TARGET is 54 Smith Street,
Scunthorpe DN15 7LQ"), and splits the dataset into target and
comparables.

The marker can sit in any column of any row, including the rows above
the detected header line.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Final, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from .address import extract_postcode
from .errors import MultipleTargetsFound, NoTargetFound, TargetMissingData
from .records import (
    ADDRESS,
    IS_TARGET,
    POSTCODE,
    URL,
    PropertyRecord,
    is_blank,
    is_truthy,
    text_value,
)
from .sources import is_valid_url


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

TARGET_MARKERS: Final = (
    "target",
    "target property",
    "target:",
    "target is",
    "tgt",
    "subject property",
    "subject",
)

# Fuzzy ratio (0-100) above which a cell counts as a marker
MARKER_MATCH_THRESHOLD: Final = 80

# Prefixes stripped from marker text, most specific first
TARGET_PREFIX_PATTERNS: Final = (
    r"^target\s+is\s*",
    r"^target\s*=\s*",
    r"^target\s*:\s*",
    r"^target\s+property\s*:?\s*",
    r"^tgt\s*[:=]?\s*",
    r"^subject\s+property\s*:?\s*",
    r"^subject\s*[:=]?\s*",
    r"^target\b\s*",
)

# Columns whose marker text is rewritten in place rather than cleared
_KEPT_FIELDS: Final = (ADDRESS, POSTCODE, URL)

_LEADING_NOISE = re.compile(r"^[,:;=\s-]+")


@dataclass(frozen=True)
class TargetConfig:
    """Configuration for target detection."""
    markers: Tuple[str, ...] = TARGET_MARKERS
    match_threshold: float = MARKER_MATCH_THRESHOLD
    prefix_patterns: Tuple[str, ...] = TARGET_PREFIX_PATTERNS

    def __post_init__(self):
        if not 0 <= self.match_threshold <= 100:
            raise ValueError(f"match_threshold must be within 0-100, got {self.match_threshold}")
        if not self.markers:
            raise ValueError("At least one target marker is required")


@dataclass
class TargetResolution:
    """Result of target identification."""
    target: PropertyRecord
    comparables: List[PropertyRecord]

    # Column that held the marker (None for an IsTarget flag)
    marker_field: Optional[str] = None
    from_pre_header: bool = False


@dataclass
class _MarkerHit:
    """A cell recognised as a target marker."""
    field: Optional[str]
    value: str
    reason: str


@dataclass
class _TargetCandidate:
    hit: _MarkerHit
    record_index: Optional[int] = None
    pre_header_index: Optional[int] = None
    cell_index: int = 0
    row: List[str] = field(default_factory=list)

    @property
    def description(self) -> str:
        if self.pre_header_index is not None:
            return f"pre-header row {self.pre_header_index}: {self.hit.reason}"
        return f"row {self.record_index}: {self.hit.reason}"


class TargetIdentifier:
    """
    Locates and validates the target property.

    Exactly one marker must be found across records and pre-header rows.
    The target must end up with Address and Postcode, or a URL.
    """

    def __init__(self, config: Optional[TargetConfig] = None):
        self._config = config or TargetConfig()
        self._prefixes = [re.compile(p, re.IGNORECASE) for p in self._config.prefix_patterns]
        self._marker_patterns = [
            (marker, re.compile(r"(?<![a-z])" + re.escape(marker) + r"(?![a-z])"))
            for marker in self._config.markers
        ]

    def identify_target(
        self,
        records: List[PropertyRecord],
        pre_header_rows: Optional[Sequence[Sequence[str]]] = None,
        headers: Optional[Sequence[str]] = None,
    ) -> TargetResolution:
        """
        Partition records into the target and its comparables.

        Args:
            records: Records parsed below the header line
            pre_header_rows: Raw rows that preceded the header line
            headers: Column names, used to turn a pre-header target row
                into a record

        Returns:
            TargetResolution with the target tagged IsTarget=True

        Raises:
            NoTargetFound: No marker anywhere
            MultipleTargetsFound: More than one marked row
            TargetMissingData: Target lacks Address + Postcode and URL
        """
        logger.info("Searching for target property in %d rows", len(records))

        candidates = self._find_candidates(records, pre_header_rows or [])

        if not candidates:
            logger.error("No target property found")
            raise NoTargetFound()

        if len(candidates) > 1:
            descriptions = [c.description for c in candidates]
            logger.error("Multiple target properties found: %s", "; ".join(descriptions))
            raise MultipleTargetsFound(descriptions)

        candidate = candidates[0]
        logger.info("Target candidate at %s", candidate.description)

        if candidate.pre_header_index is not None:
            target = self._record_from_row(candidate.row, headers)
            candidate.hit.field = self._row_key(candidate.cell_index, headers)
        else:
            target = records[candidate.record_index]

        self._apply_marker_text(target, candidate.hit)
        self._clean_address(target)
        self._validate(target)

        target[IS_TARGET] = True
        comparables = [r for i, r in enumerate(records) if i != candidate.record_index]
        for comparable in comparables:
            comparable[IS_TARGET] = False

        if text_value(target, ADDRESS) and text_value(target, POSTCODE):
            logger.info("Target: %s, %s", target[ADDRESS], target[POSTCODE])
        else:
            logger.info("Target URL: %s (address to be looked up)", target.get(URL))

        return TargetResolution(
            target=target,
            comparables=comparables,
            marker_field=candidate.hit.field,
            from_pre_header=candidate.pre_header_index is not None,
        )

    # -------------------------------------------------------------------------
    # Marker detection
    # -------------------------------------------------------------------------

    def _find_candidates(
        self,
        records: List[PropertyRecord],
        pre_header_rows: Sequence[Sequence[str]],
    ) -> List[_TargetCandidate]:
        candidates = []

        for index, record in enumerate(records):
            hit = self._find_marker_in_record(record)
            if hit:
                candidates.append(_TargetCandidate(hit=hit, record_index=index))

        for index, row in enumerate(pre_header_rows):
            for cell_index, cell in enumerate(row):
                reason = self.match_marker(cell)
                if reason:
                    hit = _MarkerHit(field=None, value=str(cell), reason=reason)
                    candidates.append(
                        _TargetCandidate(
                            hit=hit,
                            pre_header_index=index,
                            cell_index=cell_index,
                            row=list(row),
                        )
                    )
                    break

        return candidates

    def _find_marker_in_record(self, record: PropertyRecord) -> Optional[_MarkerHit]:
        if is_truthy(record.get(IS_TARGET)):
            return _MarkerHit(field=None, value="", reason="IsTarget flag")

        for key, value in record.items():
            if key == IS_TARGET or key.startswith("_"):
                continue
            reason = self.match_marker(value)
            if reason:
                return _MarkerHit(field=key, value=str(value), reason=reason)

        return None

    def match_marker(self, value) -> Optional[str]:
        """
        Check a single cell against the marker vocabulary.

        Returns a human-readable reason when the cell is a marker.
        """
        if not isinstance(value, str) or is_blank(value) or is_valid_url(value):
            return None

        text = value.lower().strip()
        for marker, pattern in self._marker_patterns:
            score = fuzz.ratio(text, marker)
            if score > self._config.match_threshold:
                return f'"{value}" matched "{marker}" (score: {score:.0f})'
            if pattern.search(text):
                return f'"{value}" contains "{marker}"'

        return None

    # -------------------------------------------------------------------------
    # Address extraction
    # -------------------------------------------------------------------------

    def clean_target_text(self, text: str) -> str:
        """
        Strip one target prefix and leftover separators.

        "Target is 54, Smith Street, Scunthorpe" -> "54, Smith Street, Scunthorpe"
        """
        cleaned = text.strip()
        for prefix in self._prefixes:
            if prefix.search(cleaned):
                cleaned = prefix.sub("", cleaned, count=1)
                break
        cleaned = _LEADING_NOISE.sub("", cleaned)
        return " ".join(cleaned.split())

    def _apply_marker_text(self, target: PropertyRecord, hit: _MarkerHit) -> None:
        if hit.field is None:
            return

        cleaned = self.clean_target_text(hit.value)
        if cleaned.lower() in self._config.markers:
            cleaned = ""

        if cleaned:
            extraction = extract_postcode(cleaned)
            if extraction.address:
                target[ADDRESS] = extraction.address
                logger.info("Target address taken from marker text: %r", extraction.address)
            if extraction.postcode and not text_value(target, POSTCODE):
                target[POSTCODE] = extraction.postcode
                logger.info("Target postcode taken from marker text: %s", extraction.postcode)
        elif hit.field == ADDRESS:
            target[ADDRESS] = ""

        if hit.field not in _KEPT_FIELDS and hit.field in target:
            # The marker must not leak into output
            target[hit.field] = ""

    def _clean_address(self, target: PropertyRecord) -> None:
        address = text_value(target, ADDRESS)
        if not address:
            return

        cleaned = self.clean_target_text(address)
        if cleaned != address:
            logger.info("Removed target prefix from Address: %r -> %r", address, cleaned)

        if not text_value(target, POSTCODE):
            extraction = extract_postcode(cleaned)
            if extraction.postcode:
                logger.info("Postcode extracted from target Address: %s", extraction.postcode)
                target[POSTCODE] = extraction.postcode
                cleaned = extraction.address

        target[ADDRESS] = cleaned

    def _record_from_row(
        self,
        row: Sequence[str],
        headers: Optional[Sequence[str]],
    ) -> PropertyRecord:
        """Turn a raw pre-header row into a record."""
        record: PropertyRecord = {}
        for index, cell in enumerate(row):
            if is_blank(cell):
                continue
            key = self._row_key(index, headers)
            if key == str(index) and is_valid_url(cell) and URL not in record:
                record[URL] = cell
            else:
                record[key] = cell
        return record

    @staticmethod
    def _row_key(index: int, headers: Optional[Sequence[str]]) -> str:
        """Header name for a raw cell; unlabelled cells are keyed by position."""
        if headers and index < len(headers) and not is_blank(headers[index]):
            return str(headers[index])
        return str(index)

    def _validate(self, target: PropertyRecord) -> None:
        has_address = bool(text_value(target, ADDRESS))
        has_postcode = bool(text_value(target, POSTCODE))
        has_url = bool(text_value(target, URL))

        if has_address and has_postcode:
            return
        if has_url:
            return

        logger.error(
            "Target validation failed: Address=%s, Postcode=%s, URL=%s",
            target.get(ADDRESS) or "MISSING",
            target.get(POSTCODE) or "MISSING",
            target.get(URL) or "MISSING",
        )
        raise TargetMissingData(target)


def identify_target(
    records: List[PropertyRecord],
    pre_header_rows: Optional[Sequence[Sequence[str]]] = None,
    headers: Optional[Sequence[str]] = None,
    config: Optional[TargetConfig] = None,
) -> TargetResolution:
    """Convenience wrapper around TargetIdentifier.identify_target."""
    return TargetIdentifier(config).identify_target(records, pre_header_rows, headers)
