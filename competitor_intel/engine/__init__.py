"""Comparison engine: payload normalization, per-category comparators and scoring."""

from competitor_intel.engine.comparison import ComparisonEngine, build_summary
from competitor_intel.engine.normalize import normalize_payload
from competitor_intel.engine.scoring import calculate_market_share, calculate_seo_score

__all__ = [
    "ComparisonEngine",
    "build_summary",
    "normalize_payload",
    "calculate_market_share",
    "calculate_seo_score",
]
