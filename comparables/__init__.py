"""
Comparables Engine

Decision core for property comparables analysis: given a set of recent
sales around one target property, find the target, merge records that
describe the same property, resolve external certificate candidates to
an exact address, and rank comparables by similarity to the target.

Components:
- address: house-number extraction, street word bags, postcodes
- target: TargetIdentifier
- duplicates: DuplicateResolver
- matching: CandidateSelector
- ranking: RankingEngine
- sanitizer: RecordSanitizer
- pipeline: ComparablesPipeline (all of the above, in order)
"""

from .errors import (
    ComparablesError,
    MultipleTargetsFound,
    NoTargetFound,
    TargetMissingData,
    TargetResolutionError,
)
from .records import PropertyRecord, format_sale_date, parse_sale_date
from .address import (
    HouseNumberToken,
    address_signature,
    extract_house_number,
    extract_postcode,
    normalize_for_comparison,
)
from .target import TargetConfig, TargetIdentifier, TargetResolution, identify_target
from .duplicates import DuplicateResolver, MergeConfig, MergeConflict, resolve_duplicates
from .matching import (
    AmbiguousMatch,
    CandidateSelector,
    ExactMatch,
    MatchingConfig,
    MatchResult,
    is_exact_house_number_match,
    select_best_match,
)
from .ranking import RankingConfig, RankingEngine, rank_comparables
from .sanitizer import RecordSanitizer, sanitize_record, sanitize_records
from .sources import Provider, URLType, classify_url
from .pipeline import ComparablesPipeline, PipelineResult

__all__ = [
    # Errors
    "ComparablesError",
    "MultipleTargetsFound",
    "NoTargetFound",
    "TargetMissingData",
    "TargetResolutionError",
    # Records
    "PropertyRecord",
    "format_sale_date",
    "parse_sale_date",
    # Address
    "HouseNumberToken",
    "address_signature",
    "extract_house_number",
    "extract_postcode",
    "normalize_for_comparison",
    # Target
    "TargetConfig",
    "TargetIdentifier",
    "TargetResolution",
    "identify_target",
    # Duplicates
    "DuplicateResolver",
    "MergeConfig",
    "MergeConflict",
    "resolve_duplicates",
    # Matching
    "AmbiguousMatch",
    "CandidateSelector",
    "ExactMatch",
    "MatchingConfig",
    "MatchResult",
    "is_exact_house_number_match",
    "select_best_match",
    # Ranking
    "RankingConfig",
    "RankingEngine",
    "rank_comparables",
    # Sanitizer
    "RecordSanitizer",
    "sanitize_record",
    "sanitize_records",
    # Sources
    "Provider",
    "URLType",
    "classify_url",
    # Pipeline
    "ComparablesPipeline",
    "PipelineResult",
]
