"""
Comparables Pipeline

Runs the core stages in dependency order over in-memory records:

    sanitise -> identify target -> resolve duplicates -> rank

Reading and writing spreadsheets, scraping and lookups live outside
this package; the pipeline only sees parsed records.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from utils.config import Config

from .duplicates import DuplicateResolver
from .records import NEEDS_REVIEW, PropertyRecord, is_blank
from .ranking import RankingEngine
from .sanitizer import RecordSanitizer
from .sources import tag_url_only_rows
from .target import TargetIdentifier


logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output of one pipeline run."""
    target: PropertyRecord
    comparables: List[PropertyRecord]

    # Input comparables folded away by duplicate merging
    duplicates_merged: int = 0

    # Target or comparables with a NeedsReview reason
    needs_review: List[PropertyRecord] = field(default_factory=list)

    @property
    def comparable_count(self) -> int:
        return len(self.comparables)


class ComparablesPipeline:
    """
    End-to-end processing of a comparables dataset.

    Usage:
        pipeline = ComparablesPipeline(reference_date=date(2024, 6, 1))
        result = pipeline.run(records)
        best = result.comparables[0]
    """

    def __init__(self, config: Optional[Config] = None, reference_date: date = None):
        """
        Initialize pipeline.

        Args:
            config: Application config (default: loaded from environment)
            reference_date: Date sales are aged from (default: today)
        """
        config = config or Config.load()
        self.sanitizer = RecordSanitizer()
        self.target_identifier = TargetIdentifier(config.target_config())
        self.duplicate_resolver = DuplicateResolver(config.merge_config())
        self.ranking_engine = RankingEngine(config.ranking_config(), reference_date)

    def run(
        self,
        records: List[PropertyRecord],
        pre_header_rows: Optional[Sequence[Sequence[str]]] = None,
        headers: Optional[Sequence[str]] = None,
    ) -> PipelineResult:
        """
        Process a dataset.

        Args:
            records: Parsed rows (not modified)
            pre_header_rows: Raw rows above the header line, if any
            headers: Column names for turning a pre-header row into a record

        Returns:
            PipelineResult with comparables ranked best first

        Raises:
            TargetResolutionError: No usable target, or more than one
        """
        logger.info("Processing %d records", len(records))

        sanitized = self.sanitizer.sanitize_all(records)
        tagged = tag_url_only_rows(sanitized)
        if tagged:
            logger.info("Tagged %d URL-only rows", tagged)

        resolution = self.target_identifier.identify_target(sanitized, pre_header_rows, headers)
        target = resolution.target
        if resolution.from_pre_header:
            target = self.sanitizer.sanitize(target)

        deduplicated = self.duplicate_resolver.resolve(resolution.comparables)
        merged = len(resolution.comparables) - len(deduplicated)

        ranked = self.ranking_engine.rank(deduplicated, target)

        needs_review = [
            r for r in [target] + ranked if not is_blank(r.get(NEEDS_REVIEW))
        ]
        if needs_review:
            logger.warning("%d records need manual review", len(needs_review))

        logger.info(
            "Pipeline complete: %d comparables, %d duplicates merged",
            len(ranked), merged,
        )
        return PipelineResult(
            target=target,
            comparables=ranked,
            duplicates_merged=merged,
            needs_review=needs_review,
        )
