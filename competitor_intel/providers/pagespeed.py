"""Google PageSpeed Insights (Lighthouse) provider."""

import aiohttp

from competitor_intel.core.errors import ProviderParseError
from competitor_intel.core.retry import RetryPolicy
from competitor_intel.providers.base import ProviderAdapter
from competitor_intel.utils.helpers import site_url

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
LIGHTHOUSE_CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]


def parse_lighthouse(data: dict, strategy: str = "mobile") -> dict:
    """Convert a PSI v5 response into 0-100 category scores plus load time."""
    lighthouse = data.get("lighthouseResult")
    if not isinstance(lighthouse, dict) or "categories" not in lighthouse:
        raise ProviderParseError("pagespeed", "Response has no lighthouseResult.categories")

    categories = lighthouse["categories"]

    def score(name: str) -> int:
        value = (categories.get(name) or {}).get("score")
        return round(value * 100) if isinstance(value, (int, float)) else 0

    interactive = (lighthouse.get("audits") or {}).get("interactive") or {}
    return {
        "strategy": strategy,
        "performance": score("performance"),
        "accessibility": score("accessibility"),
        "best_practices": score("best-practices"),
        "seo": score("seo"),
        "load_time_ms": int(interactive.get("numericValue") or 0),
    }


class PageSpeedProvider(ProviderAdapter):
    name = "pagespeed"
    metric_kind = "pagespeed"
    strategy = "mobile"

    def default_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.audit_max_attempts,
            backoff_seconds=self.settings.audit_backoff_seconds,
            timeout_seconds=self.settings.audit_timeout_seconds,
        )

    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        params = [("url", site_url(subject)), ("strategy", self.strategy)]
        params += [("category", c) for c in LIGHTHOUSE_CATEGORIES]
        # PSI works unauthenticated at a lower quota
        if self.settings.pagespeed_api_key:
            params.append(("key", self.settings.pagespeed_api_key))

        data = await self._get_json(session, PAGESPEED_URL, params=params)
        return self._parse(parse_lighthouse, data, self.strategy)
