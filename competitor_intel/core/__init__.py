"""Core types, errors, caching and orchestration."""

from competitor_intel.core.errors import (
    CacheUnavailable, CompetitorIntelError, InvalidDomain, ProfileNotFound, ProviderError
)
from competitor_intel.core.models import (
    ComparisonResult, CompositeKey, Failure, SiteAnalysis, SocialHandle, SubjectType, Success, Winner
)

__all__ = [
    "CacheUnavailable",
    "CompetitorIntelError",
    "InvalidDomain",
    "ProfileNotFound",
    "ProviderError",
    "ComparisonResult",
    "CompositeKey",
    "Failure",
    "SiteAnalysis",
    "SocialHandle",
    "SubjectType",
    "Success",
    "Winner",
]
