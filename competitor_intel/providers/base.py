"""
Provider Adapter base
=====================

A provider turns one subject (a domain, or a social handle) into a raw
metrics payload, or raises a typed ProviderError. Everything else
(caching, retries, the Success/Failure envelope) lives in the analyzer.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

import aiohttp

from competitor_intel.config import PROVIDER_TTLS, Settings, get_settings
from competitor_intel.core.errors import (
    ProviderError, ProviderHTTPError, ProviderNotConfigured, ProviderParseError,
    ProviderTimeout, UpstreamRateLimited
)
from competitor_intel.core.models import SocialHandle, SubjectType
from competitor_intel.core.retry import RetryPolicy


@dataclass
class HTTPResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    text: str
    elapsed_ms: int


def error_for_status(provider: str, status: int, url: str) -> Optional[ProviderError]:
    """Map an HTTP status to the matching provider error, or None if it is a success."""
    if status == 429:
        return UpstreamRateLimited(provider, f"Rate limited by {url}")
    if status >= 400:
        return ProviderHTTPError(provider, f"HTTP {status} from {url}", status=status)
    return None


class ProviderAdapter(ABC):
    """Base class for every metric source."""

    name: str = ""
    metric_kind: str = ""
    ttl_kind: str = ""
    platform: Optional[str] = None
    cache_subjects: frozenset = frozenset({SubjectType.USER, SubjectType.COMPETITOR})

    def __init__(
        self,
        settings: Optional[Settings] = None,
        retry_policy: Optional[RetryPolicy] = None,
        ttl: Optional[timedelta] = None,
    ):
        self.settings = settings or get_settings()
        self.retry_policy = retry_policy or self.default_retry_policy()
        self.ttl = ttl or PROVIDER_TTLS[self.ttl_kind or self.metric_kind]

    def default_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(timeout_seconds=self.settings.request_timeout_seconds)

    def caches(self, subject_type: SubjectType) -> bool:
        return subject_type in self.cache_subjects

    def subject_for(self, domain: str, handles: Mapping[str, SocialHandle]) -> str:
        """Domain providers analyze the domain itself."""
        return domain

    @abstractmethod
    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        """Return the raw payload for ``subject`` or raise a ProviderError."""

    def _parse(self, parser, *args) -> dict:
        """Run a payload parser; a malformed field is a parse error, not a bug."""
        try:
            return parser(*args)
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            raise ProviderParseError(self.name, f"Malformed payload: {type(e).__name__}: {e}")

    def _require(self, value: Optional[str], env_name: str) -> str:
        if not value:
            raise ProviderNotConfigured(self.name, f"{env_name} is not set")
        return value

    async def _request(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        params=None,
        headers: Optional[dict] = None,
    ) -> HTTPResponse:
        start = time.monotonic()
        try:
            async with session.get(url, params=params, headers=headers) as response:
                text = await response.text(errors="replace")
                result = HTTPResponse(
                    url=str(response.url),
                    status=response.status,
                    headers=dict(response.headers),
                    text=text,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                )
        except asyncio.TimeoutError:
            raise ProviderTimeout(self.name, f"Request to {url} timed out")
        except aiohttp.ClientError as e:
            raise ProviderHTTPError(self.name, f"Request to {url} failed: {e}")

        error = error_for_status(self.name, result.status, url)
        if error is not None:
            raise error
        return result

    async def _get_text(self, session: aiohttp.ClientSession, url: str, **kwargs) -> HTTPResponse:
        return await self._request(session, url, **kwargs)

    async def _get_json(self, session: aiohttp.ClientSession, url: str, **kwargs) -> dict:
        response = await self._request(session, url, **kwargs)
        try:
            data = json.loads(response.text)
        except ValueError as e:
            raise ProviderParseError(self.name, f"Invalid JSON from {url}: {e}")
        if not isinstance(data, dict):
            raise ProviderParseError(self.name, f"Unexpected JSON document from {url}")
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def create_http_session(settings: Optional[Settings] = None) -> aiohttp.ClientSession:
    """One shared session per comparison; per-provider deadlines come from RetryPolicy."""
    settings = settings or get_settings()
    return aiohttp.ClientSession(
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        },
        timeout=aiohttp.ClientTimeout(total=settings.audit_timeout_seconds),
    )
