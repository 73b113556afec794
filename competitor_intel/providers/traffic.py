"""Website traffic estimates from a SimilarWeb-style RapidAPI endpoint."""

from typing import Optional

import aiohttp

from competitor_intel.core.errors import ProviderParseError
from competitor_intel.providers.base import ProviderAdapter


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_traffic(data: dict) -> dict:
    engagement = data.get("Engagments") or data.get("Engagements") or {}
    if not engagement and "Visits" not in data:
        raise ProviderParseError("traffic", "Response has no engagement data")

    visits = _to_float(engagement.get("Visits", data.get("Visits")))
    global_rank = data.get("GlobalRank")
    if isinstance(global_rank, dict):
        global_rank = global_rank.get("Rank")
    sources = data.get("TrafficSources") or {}

    return {
        "monthly_visits": int(visits) if visits is not None else 0,
        "bounce_rate": _to_float(engagement.get("BounceRate")),
        "pages_per_visit": _to_float(engagement.get("PagePerVisit")),
        "avg_visit_duration": _to_float(engagement.get("TimeOnSite")),
        "global_rank": global_rank,
        "traffic_sources": {
            "direct": _to_float(sources.get("Direct")),
            "search": _to_float(sources.get("Search")),
            "social": _to_float(sources.get("Social")),
            "referral": _to_float(sources.get("Referrals")),
            "mail": _to_float(sources.get("Mail")),
            "paid": _to_float(sources.get("Paid Referrals")),
        },
    }


class TrafficProvider(ProviderAdapter):
    name = "traffic"
    metric_kind = "traffic"

    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        key = self._require(self.settings.rapidapi_key, "RAPIDAPI_KEY")
        host = self.settings.traffic_api_host
        data = await self._get_json(
            session,
            f"https://{host}/traffic",
            params={"domain": subject},
            headers={"X-RapidAPI-Key": key, "X-RapidAPI-Host": host},
        )
        return self._parse(parse_traffic, data)
