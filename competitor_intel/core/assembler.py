"""Builds the response payload from a comparison run and caches whole reports."""

from datetime import datetime, timedelta
from typing import Callable, Optional

from loguru import logger

from competitor_intel.core.cache import CacheGateway
from competitor_intel.core.errors import CompetitorIntelError
from competitor_intel.core.models import CompositeKey, ErrorKind
from competitor_intel.core.orchestrator import ComparisonRun
from competitor_intel.engine.comparison import build_summary
from competitor_intel.utils.helpers import utcnow


def tag_failures(failed_metrics: list[dict], site: str) -> list[dict]:
    return [dict(failure, site=site) for failure in failed_metrics]


class ResultAssembler:
    """Merges both sides, the comparison and the failure bookkeeping into one response."""

    def __init__(
        self,
        cache: Optional[CacheGateway] = None,
        report_ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.cache = cache
        self.report_ttl = report_ttl
        self.clock = clock

    def assemble(self, run: ComparisonRun, extra_failures: Optional[list[dict]] = None) -> dict:
        failed = (
            tag_failures(run.your_site.failed_metrics, "yours")
            + tag_failures(run.competitor_site.failed_metrics, "competitor")
            + list(extra_failures or [])
        )
        run.comparison.summary = build_summary(run.comparison)

        return {
            "success": True,
            "partial_failure": bool(failed),
            "failed_metrics": failed,
            "your_site": run.your_site.to_dict(),
            "competitor_site": run.competitor_site.to_dict(),
            "comparison": run.comparison.to_dict(),
            "cached": False,
            "elapsed_ms": run.elapsed_ms,
            "timestamp": self.clock().isoformat(),
        }

    @staticmethod
    def failure(error: Exception, failed_metrics: Optional[list[dict]] = None) -> dict:
        """Top-level response for an analysis that could not start."""
        kind = error.kind if isinstance(error, CompetitorIntelError) else ErrorKind.UNKNOWN
        return {
            "success": False,
            "error": str(error),
            "error_kind": kind.value,
            "failed_metrics": list(failed_metrics or []),
        }

    async def store(self, key: CompositeKey, response: dict, run: ComparisonRun) -> bool:
        """Cache the report only when each side produced at least one result."""
        if self.cache is None:
            return False
        if not run.both_sides_succeeded:
            logger.info("Not caching report for {}: a side has no successful metrics", key.domain)
            return False
        entry = await self.cache.set(key, response, self.report_ttl, source="report")
        return entry is not None
