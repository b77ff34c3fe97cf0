"""
Exceptions raised by the comparables core.

Only target resolution is fatal. Merge conflicts, ambiguous matches and
missing ranking data are returned as values, never raised.
"""

from typing import List, Optional

from .records import PropertyRecord


class ComparablesError(Exception):
    """Base class for all comparables errors."""


class TargetResolutionError(ComparablesError):
    """The dataset does not contain exactly one usable target."""


class NoTargetFound(TargetResolutionError):
    """No row carries a target marker."""

    def __init__(self):
        super().__init__(
            "No target property found. Mark exactly one row as \"target\" "
            "in the input spreadsheet."
        )


class MultipleTargetsFound(TargetResolutionError):
    """More than one row carries a target marker."""

    def __init__(self, candidates: List[str]):
        self.candidates = candidates
        super().__init__(
            f"Multiple target properties found ({len(candidates)}): "
            f"{'; '.join(candidates)}. Only one row should be marked as target."
        )


class TargetMissingData(TargetResolutionError):
    """The target has neither Address + Postcode nor a URL to look up."""

    def __init__(self, record: Optional[PropertyRecord] = None):
        self.record = record
        super().__init__(
            "Target property does not have sufficient data. The target must "
            "have either Address and Postcode, or a URL to look up."
        )
