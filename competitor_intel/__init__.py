"""
Competitor Intel
================

Compares a business website against a competitor's across performance,
SEO, content, technology, security, traffic, backlinks and social reach,
using many independent third-party metric providers.
"""

__version__ = "1.0.0"
__author__ = "Common Notary"

from competitor_intel.core.analyzer import SingleSiteAnalyzer
from competitor_intel.core.cache import CacheGateway, MemoryCacheStore
from competitor_intel.core.orchestrator import CompetitiveOrchestrator
from competitor_intel.engine.comparison import ComparisonEngine
from competitor_intel.service import CompetitorAnalysisService

__all__ = [
    "SingleSiteAnalyzer",
    "CacheGateway",
    "MemoryCacheStore",
    "CompetitiveOrchestrator",
    "ComparisonEngine",
    "CompetitorAnalysisService",
]
