"""
Competitor Intelligence Service
===============================

Entry point for a full competitor analysis on behalf of an owner: profile
lookup, OAuth-first social handle resolution, a whole-report cache, then
orchestration and assembly.
"""

import asyncio
import copy
from datetime import timedelta
from typing import Optional, Protocol

from loguru import logger

from competitor_intel.config import Settings, get_settings
from competitor_intel.core.analyzer import SingleSiteAnalyzer
from competitor_intel.core.assembler import ResultAssembler
from competitor_intel.core.cache import CacheGateway
from competitor_intel.core.errors import InvalidDomain, ProfileNotFound
from competitor_intel.core.handles import declared_handles, resolve_handles
from competitor_intel.core.models import (
    BusinessProfile, CompositeKey, ErrorKind, SocialHandle, SubjectType
)
from competitor_intel.core.orchestrator import CompetitiveOrchestrator
from competitor_intel.engine.comparison import ComparisonEngine
from competitor_intel.providers import default_providers
from competitor_intel.utils.helpers import normalize_domain


class ProfileSource(Protocol):
    def get_profile(self, owner_id: str) -> Optional[BusinessProfile]: ...

    def get_connections(self, owner_id: str) -> list[SocialHandle]: ...


def report_key(owner_id: str, your_domain: str, competitor_domain: str) -> CompositeKey:
    return CompositeKey(
        subject_type=SubjectType.COMPETITOR,
        owner_id=owner_id,
        domain=competitor_domain,
        metric_kind=f"comparison:{your_domain}",
    )


class CompetitorAnalysisService:
    def __init__(
        self,
        orchestrator: CompetitiveOrchestrator,
        profiles: ProfileSource,
        cache: Optional[CacheGateway] = None,
        report_ttl: timedelta = timedelta(hours=24),
    ):
        self.orchestrator = orchestrator
        self.profiles = profiles
        self.cache = cache
        self.assembler = ResultAssembler(cache=cache, report_ttl=report_ttl)

    @classmethod
    def create(
        cls,
        profiles: ProfileSource,
        cache: Optional[CacheGateway] = None,
        settings: Optional[Settings] = None,
    ) -> "CompetitorAnalysisService":
        """Wire the default providers and engine from settings."""
        settings = settings or get_settings()
        analyzer = SingleSiteAnalyzer(default_providers(settings), cache=cache)
        orchestrator = CompetitiveOrchestrator(
            analyzer,
            engine=ComparisonEngine(weights=settings.market_share_weights),
            settings=settings,
        )
        return cls(orchestrator, profiles, cache=cache, report_ttl=settings.report_cache_ttl)

    async def analyze(
        self,
        owner_id: str,
        competitor_domain: str,
        your_domain: Optional[str] = None,
        force_refresh: bool = False,
    ) -> dict:
        """
        Compare the owner's site against ``competitor_domain``.

        Returns the assembled response; ``success`` is False only when a
        domain could not be resolved or the profile lookup itself failed.
        """
        try:
            competitor_domain = normalize_domain(competitor_domain)
        except InvalidDomain as e:
            logger.warning("Cannot analyze for {}: {}", owner_id, e)
            return ResultAssembler.failure(e)

        try:
            profile = await asyncio.to_thread(self.profiles.get_profile, owner_id)
        except Exception as e:
            logger.error("Profile lookup failed for {}: {}", owner_id, e)
            return ResultAssembler.failure(e, [{
                "metric": "business_profile",
                "error": str(e),
                "error_kind": ErrorKind.UNKNOWN.value,
                "site": "yours",
            }])

        try:
            your_domain = your_domain or (profile.domain if profile else None)
            if not your_domain:
                raise ProfileNotFound(f"No business profile with a domain for {owner_id}")
            your_domain = normalize_domain(your_domain)
        except InvalidDomain as e:
            logger.warning("Cannot analyze for {}: {}", owner_id, e)
            return ResultAssembler.failure(e)

        failures: list[dict] = []
        your_handles = await self._resolve_your_handles(owner_id, profile, failures)
        competitor = profile.find_competitor(competitor_domain) if profile else None
        competitor_handles = declared_handles(competitor.handles) if competitor else {}

        key = report_key(owner_id, your_domain, competitor_domain)
        if self.cache is not None and not force_refresh:
            entry = await self.cache.get(key)
            if entry is not None:
                logger.info("Serving cached report for {} vs {}", your_domain, competitor_domain)
                response = copy.deepcopy(entry.payload)
                response["cached"] = True
                response["cache_age_minutes"] = entry.age_minutes(self.cache.now())
                return response

        run = await self.orchestrator.compare(
            your_domain,
            competitor_domain,
            owner_id=owner_id,
            force_refresh=force_refresh,
            your_handles=your_handles,
            competitor_handles=competitor_handles,
        )
        response = self.assembler.assemble(run, extra_failures=failures)
        await self.assembler.store(key, response, run)
        return response

    async def _resolve_your_handles(
        self,
        owner_id: str,
        profile: Optional[BusinessProfile],
        failures: list[dict],
    ) -> dict[str, SocialHandle]:
        declared = profile.declared_handles if profile else {}
        try:
            connections = await asyncio.to_thread(self.profiles.get_connections, owner_id)
        except Exception as e:
            logger.warning("Social connection lookup failed for {}: {}", owner_id, e)
            failures.append({
                "metric": "social_handles",
                "error": str(e),
                "error_kind": ErrorKind.UNKNOWN.value,
                "site": "yours",
            })
            connections = []
        return resolve_handles(connections, declared)

    async def invalidate_report(self, owner_id: str, your_domain: str, competitor_domain: str) -> bool:
        if self.cache is None:
            return False
        key = report_key(owner_id, normalize_domain(your_domain), normalize_domain(competitor_domain))
        return await self.cache.invalidate(key)
