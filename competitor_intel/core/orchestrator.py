"""
Competitive Orchestrator
========================

Runs the single-site analyzer for both sides at once over one shared HTTP
session, then compares them. A side that blows up entirely still yields a
SiteAnalysis (all providers failed), so a comparison is always produced.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Mapping, Optional

import aiohttp
from loguru import logger

from competitor_intel.config import Settings
from competitor_intel.core.analyzer import SingleSiteAnalyzer, failed_metric
from competitor_intel.core.errors import CompetitorIntelError
from competitor_intel.core.models import (
    ComparisonResult, ErrorKind, Failure, SiteAnalysis, SocialHandle, SubjectType
)
from competitor_intel.engine.comparison import ComparisonEngine
from competitor_intel.providers.base import create_http_session


@dataclass
class ComparisonRun:
    your_site: SiteAnalysis
    competitor_site: SiteAnalysis
    comparison: ComparisonResult
    elapsed_ms: int = 0

    @property
    def both_sides_succeeded(self) -> bool:
        """At least one provider succeeded on each side."""
        return not self.your_site.fully_failed and not self.competitor_site.fully_failed


class CompetitiveOrchestrator:
    def __init__(
        self,
        analyzer: SingleSiteAnalyzer,
        engine: Optional[ComparisonEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.analyzer = analyzer
        self.engine = engine or ComparisonEngine()
        self.settings = settings

    async def compare(
        self,
        your_domain: str,
        competitor_domain: str,
        *,
        owner_id: str,
        force_refresh: bool = False,
        your_handles: Optional[Mapping[str, SocialHandle]] = None,
        competitor_handles: Optional[Mapping[str, SocialHandle]] = None,
    ) -> ComparisonRun:
        start = time.monotonic()
        logger.info("Comparing {} against {} for {}", your_domain, competitor_domain, owner_id)

        async with create_http_session(self.settings) as session:
            yours, theirs = await asyncio.gather(
                self._run_side(
                    your_domain, SubjectType.USER, owner_id, force_refresh, your_handles, session
                ),
                self._run_side(
                    competitor_domain, SubjectType.COMPETITOR, owner_id, force_refresh,
                    competitor_handles, session
                ),
            )

        comparison = self.engine.compare(yours, theirs)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Comparison finished in {}ms (yours {}ms, competitor {}ms)",
            elapsed_ms, yours.elapsed_ms, theirs.elapsed_ms,
        )
        return ComparisonRun(
            your_site=yours,
            competitor_site=theirs,
            comparison=comparison,
            elapsed_ms=elapsed_ms,
        )

    async def _run_side(
        self,
        domain: str,
        subject_type: SubjectType,
        owner_id: str,
        force_refresh: bool,
        handles: Optional[Mapping[str, SocialHandle]],
        session: aiohttp.ClientSession,
    ) -> SiteAnalysis:
        try:
            return await self.analyzer.analyze(
                domain,
                owner_id=owner_id,
                subject_type=subject_type,
                force_refresh=force_refresh,
                handles=handles,
                session=session,
            )
        except Exception as e:
            logger.error("{} analysis of {} failed entirely: {}", subject_type.value, domain, e)
            kind = e.kind if isinstance(e, CompetitorIntelError) else ErrorKind.UNKNOWN
            return self._failed_side(domain, kind, str(e))

    def _failed_side(self, domain: str, kind: ErrorKind, message: str) -> SiteAnalysis:
        analysis = SiteAnalysis(domain=domain or "")
        for provider in self.analyzer.providers:
            failure = Failure(provider_name=provider.name, error_kind=kind, message=message)
            analysis.metrics[provider.name] = failure
            analysis.failed_metrics.append(failed_metric(failure))
        if not analysis.failed_metrics:
            analysis.failed_metrics.append({"metric": "analysis", "error": message, "error_kind": kind.value})
        return analysis
