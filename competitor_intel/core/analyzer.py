"""
Single-Site Analyzer
====================

Fans out to every configured provider for one domain. Each provider runs
as an isolated task: cache read-through first, then a live fetch under
the provider's retry policy. Any exception becomes a Failure for that
provider only; the analysis itself fails only for an invalid domain.
"""

import asyncio
import time
from typing import Mapping, Optional, Sequence

import aiohttp
from loguru import logger

from competitor_intel.core.cache import CacheGateway
from competitor_intel.core.errors import ProviderError, ProviderParseError
from competitor_intel.core.models import (
    CompositeKey, ErrorKind, Failure, MetricResult, SiteAnalysis, SocialHandle,
    SubjectType, Success
)
from competitor_intel.engine.normalize import normalize_payload
from competitor_intel.providers.base import ProviderAdapter, create_http_session
from competitor_intel.utils.helpers import normalize_domain, utcnow


def failed_metric(result: Failure) -> dict:
    return {
        "metric": result.provider_name,
        "error": result.message,
        "error_kind": result.error_kind.value,
    }


class SingleSiteAnalyzer:
    """Runs all providers for one domain concurrently."""

    def __init__(self, providers: Sequence[ProviderAdapter], cache: Optional[CacheGateway] = None):
        self.providers = list(providers)
        self.cache = cache

    async def analyze(
        self,
        domain: str,
        *,
        owner_id: str,
        subject_type: SubjectType,
        force_refresh: bool = False,
        handles: Optional[Mapping[str, SocialHandle]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> SiteAnalysis:
        """
        Analyze one domain with every provider.

        Args:
            domain: Domain or URL to analyze
            owner_id: Owner the cached data belongs to
            subject_type: Whether this is the owner's site or a competitor's
            force_refresh: Skip cache reads (fresh results are still written)
            handles: Social handles by platform, for handle-based providers
            session: Shared HTTP session; one is opened if not given

        Raises:
            InvalidDomain: If the domain is empty or malformed
        """
        domain = normalize_domain(domain)
        handles = handles or {}
        start = time.monotonic()

        if session is None:
            async with create_http_session() as own_session:
                results = await self._run_all(domain, owner_id, subject_type, force_refresh, handles, own_session)
        else:
            results = await self._run_all(domain, owner_id, subject_type, force_refresh, handles, session)

        analysis = SiteAnalysis(domain=domain)
        for provider, result in zip(self.providers, results):
            analysis.metrics[provider.name] = result
            if not result.ok:
                analysis.failed_metrics.append(failed_metric(result))
        analysis.elapsed_ms = int((time.monotonic() - start) * 1000)

        logger.info(
            "Analyzed {} ({}) in {}ms: {}/{} providers succeeded",
            domain,
            subject_type.value,
            analysis.elapsed_ms,
            analysis.success_count,
            len(self.providers),
        )
        return analysis

    async def _run_all(self, domain, owner_id, subject_type, force_refresh, handles, session) -> list[MetricResult]:
        return await asyncio.gather(*[
            self._run_provider(provider, domain, owner_id, subject_type, force_refresh, handles, session)
            for provider in self.providers
        ])

    async def _run_provider(
        self,
        provider: ProviderAdapter,
        domain: str,
        owner_id: str,
        subject_type: SubjectType,
        force_refresh: bool,
        handles: Mapping[str, SocialHandle],
        session: aiohttp.ClientSession,
    ) -> MetricResult:
        try:
            return await self._fetch_with_cache(
                provider, domain, owner_id, subject_type, force_refresh, handles, session
            )
        except ProviderError as e:
            logger.warning("{} failed for {}: [{}] {}", provider.name, domain, e.kind.value, e.message)
            return Failure(provider_name=provider.name, error_kind=e.kind, message=e.message)
        except Exception as e:
            # Isolation boundary: a buggy provider must not take down its siblings
            logger.exception("{} raised unexpectedly for {}", provider.name, domain)
            return Failure(
                provider_name=provider.name,
                error_kind=ErrorKind.UNKNOWN,
                message=f"{type(e).__name__}: {e}",
            )

    async def _fetch_with_cache(
        self,
        provider: ProviderAdapter,
        domain: str,
        owner_id: str,
        subject_type: SubjectType,
        force_refresh: bool,
        handles: Mapping[str, SocialHandle],
        session: aiohttp.ClientSession,
    ) -> Success:
        subject = provider.subject_for(domain, handles)
        use_cache = self.cache is not None and provider.caches(subject_type)
        key = CompositeKey(
            subject_type=subject_type,
            owner_id=owner_id,
            domain=subject,
            metric_kind=provider.metric_kind,
        )

        if use_cache and not force_refresh:
            entry = await self.cache.get(key)
            if entry is not None:
                logger.debug("Cache hit for {} on {}", provider.name, subject)
                return Success(
                    provider_name=provider.name,
                    payload=entry.payload,
                    fetched_at=entry.created_at,
                    cached=True,
                    cache_age_minutes=entry.age_minutes(self.cache.now()),
                )
        elif use_cache:
            await self.cache.invalidate(key)

        raw = await provider.retry_policy.run(provider.name, lambda: provider.fetch(subject, session))
        try:
            payload = normalize_payload(provider.metric_kind, raw)
        except TypeError as e:
            raise ProviderParseError(provider.name, str(e))

        if use_cache:
            await self.cache.set(key, payload, provider.ttl, source=provider.name)

        return Success(
            provider_name=provider.name,
            payload=payload,
            fetched_at=self.cache.now() if self.cache is not None else utcnow(),
        )
