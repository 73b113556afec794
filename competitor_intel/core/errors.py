"""Error taxonomy for provider fetches, cache access and subject resolution."""

from typing import Optional

from competitor_intel.core.models import ErrorKind


class CompetitorIntelError(Exception):
    """Base class for all errors raised by this package."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ProviderError(CompetitorIntelError):
    """A single provider could not produce a payload."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider
        self.message = message


class ProviderTimeout(ProviderError):
    kind = ErrorKind.TIMEOUT


class ProviderHTTPError(ProviderError):
    kind = ErrorKind.HTTP

    def __init__(self, provider: str, message: str, status: Optional[int] = None):
        super().__init__(provider, message)
        self.status = status

    @property
    def retryable(self) -> bool:
        # Connection-level errors carry no status
        return self.status is None or self.status >= 500


class ProviderParseError(ProviderError):
    kind = ErrorKind.PARSE


class UpstreamRateLimited(ProviderError):
    kind = ErrorKind.RATE_LIMITED


class ProviderNotConfigured(ProviderError):
    kind = ErrorKind.NOT_CONFIGURED


class MissingSubject(ProviderError):
    kind = ErrorKind.MISSING_SUBJECT


class CacheUnavailable(CompetitorIntelError):
    kind = ErrorKind.CACHE_UNAVAILABLE


class InvalidDomain(CompetitorIntelError, ValueError):
    kind = ErrorKind.INVALID_DOMAIN


class ProfileNotFound(InvalidDomain):
    """No business profile (and therefore no domain) exists for an owner."""
