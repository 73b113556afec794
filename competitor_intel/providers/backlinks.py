"""Backlink summary from the SE Ranking API."""

import aiohttp

from competitor_intel.core.errors import ProviderParseError
from competitor_intel.providers.base import ProviderAdapter


def parse_backlinks_summary(data: dict) -> dict:
    summary = data.get("summary")
    if isinstance(summary, list):
        summary = summary[0] if summary else None
    if not isinstance(summary, dict):
        summary = data if "backlinks" in data else None
    if summary is None:
        raise ProviderParseError("backlinks", "Response has no backlink summary")

    return {
        "total_backlinks": int(summary.get("backlinks") or 0),
        "referring_domains": int(summary.get("refdomains") or 0),
        "domain_rank": summary.get("domain_inlink_rank"),
    }


class BacklinksProvider(ProviderAdapter):
    name = "backlinks"
    metric_kind = "backlinks"

    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        key = self._require(self.settings.seranking_api_key, "SERANKING_API_KEY")
        data = await self._get_json(
            session,
            f"{self.settings.seranking_api_url.rstrip('/')}/v1/backlinks/summary",
            params={"target": subject, "mode": "domain", "output": "json"},
            headers={"Authorization": f"Token {key}"},
        )
        return self._parse(parse_backlinks_summary, data)
