"""
Core Data Model
===============

Result types shared by the analyzer, the comparison engine and the cache:
provider results, per-site analyses, cache entries, comparisons and social handles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class SubjectType(Enum):
    """Whose site a cached metric belongs to."""
    USER = "user"
    COMPETITOR = "competitor"


class ErrorKind(Enum):
    """Why a provider slot ended up as a Failure."""
    TIMEOUT = "ProviderTimeout"
    HTTP = "ProviderHTTPError"
    PARSE = "ProviderParseError"
    RATE_LIMITED = "UpstreamRateLimited"
    CACHE_UNAVAILABLE = "CacheUnavailable"
    INVALID_DOMAIN = "InvalidDomain"
    NOT_CONFIGURED = "ProviderNotConfigured"
    MISSING_SUBJECT = "MissingSubject"
    UNKNOWN = "Unknown"


class Winner(Enum):
    YOURS = "yours"
    COMPETITOR = "competitor"
    TIE = "tie"
    UNAVAILABLE = "unavailable"


class HandleSource(Enum):
    OAUTH = "oauth"
    DECLARED = "declared"


@dataclass(frozen=True)
class CompositeKey:
    """Identity of one cached provider payload."""
    subject_type: SubjectType
    owner_id: str
    domain: str
    metric_kind: str

    def as_tuple(self) -> tuple[str, str, str, str]:
        return (self.subject_type.value, self.owner_id, self.domain, self.metric_kind)


@dataclass
class Success:
    """A provider produced a payload, live or from cache."""
    provider_name: str
    payload: dict
    fetched_at: datetime
    cached: bool = False
    cache_age_minutes: Optional[int] = None

    ok: ClassVar[bool] = True

    def to_dict(self) -> dict:
        return {
            "status": "success",
            "provider": self.provider_name,
            "payload": self.payload,
            "fetched_at": self.fetched_at.isoformat(),
            "cached": self.cached,
            "cache_age_minutes": self.cache_age_minutes,
        }


@dataclass
class Failure:
    """A provider failed; the slot is kept so nothing disappears from the result set."""
    provider_name: str
    error_kind: ErrorKind
    message: str

    ok: ClassVar[bool] = False

    def to_dict(self) -> dict:
        return {
            "status": "failure",
            "provider": self.provider_name,
            "error_kind": self.error_kind.value,
            "message": self.message,
        }


MetricResult = Union[Success, Failure]


@dataclass
class SiteAnalysis:
    """Every configured provider's outcome for one domain."""
    domain: str
    metrics: dict[str, MetricResult] = field(default_factory=dict)
    failed_metrics: list[dict] = field(default_factory=list)
    elapsed_ms: int = 0

    def payload(self, provider_name: str) -> Optional[dict]:
        """Return the payload of a successful provider, or None."""
        result = self.metrics.get(provider_name)
        if result is not None and result.ok:
            return result.payload
        return None

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.metrics.values() if r.ok)

    @property
    def fully_failed(self) -> bool:
        return self.success_count == 0

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "metrics": {name: r.to_dict() for name, r in self.metrics.items()},
            "failed_metrics": list(self.failed_metrics),
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass
class CacheEntry:
    key: CompositeKey
    payload: Any
    created_at: datetime
    expires_at: datetime
    source: str = ""

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    def age_minutes(self, now: datetime) -> int:
        return int((now - self.created_at).total_seconds() // 60)


@dataclass
class CategoryComparison:
    """One comparison row: both values, who wins, and by how much."""
    your_value: Any = None
    competitor_value: Any = None
    winner: Winner = Winner.UNAVAILABLE
    gap: Optional[float] = None
    details: dict = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.winner is not Winner.UNAVAILABLE

    def to_dict(self) -> dict:
        return {
            "your_value": self.your_value,
            "competitor_value": self.competitor_value,
            "winner": self.winner.value,
            "gap": self.gap,
            "details": self.details,
        }


@dataclass
class MarketShareScore:
    yours: int = 0
    competitor: int = 0

    def to_dict(self) -> dict:
        return {"yours": self.yours, "competitor": self.competitor}


@dataclass
class ComparisonResult:
    categories: dict[str, CategoryComparison] = field(default_factory=dict)
    market_share: MarketShareScore = field(default_factory=MarketShareScore)
    summary: dict = field(default_factory=dict)

    def __getitem__(self, category: str) -> CategoryComparison:
        return self.categories[category]

    def to_dict(self) -> dict:
        data = {name: c.to_dict() for name, c in self.categories.items()}
        data["market_share"] = self.market_share.to_dict()
        data["summary"] = self.summary
        return data


@dataclass(frozen=True)
class SocialHandle:
    platform: str
    username: str
    source: HandleSource
    connected: bool = False

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "username": self.username,
            "source": self.source.value,
            "connected": self.connected,
        }


@dataclass
class CompetitorProfile:
    """A competitor the owner declared, with its public social handles."""
    domain: str
    name: str = ""
    handles: dict[str, str] = field(default_factory=dict)


@dataclass
class BusinessProfile:
    owner_id: str
    domain: Optional[str]
    name: str = ""
    declared_handles: dict[str, str] = field(default_factory=dict)
    competitors: list[CompetitorProfile] = field(default_factory=list)

    def find_competitor(self, domain: str) -> Optional[CompetitorProfile]:
        """Match a declared competitor loosely by domain (either contains the other)."""
        target = domain.lower()
        for competitor in self.competitors:
            declared = competitor.domain.lower()
            if declared and (declared in target or target in declared):
                return competitor
        return None
