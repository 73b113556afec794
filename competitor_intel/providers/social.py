"""Public social profile metrics (followers and engagement) per platform."""

from typing import Mapping

import aiohttp

from competitor_intel.core.errors import MissingSubject, ProviderParseError
from competitor_intel.core.models import SocialHandle, SubjectType
from competitor_intel.providers.base import ProviderAdapter


def parse_social_profile(platform: str, username: str, data: dict) -> dict:
    profile = data.get("data") if isinstance(data.get("data"), dict) else data
    followers = profile.get("followers", profile.get("follower_count"))
    if followers is None:
        raise ProviderParseError(platform, f"No follower count for @{username}")

    followers = int(followers)
    avg_interactions = float(profile.get("avg_interactions") or profile.get("avg_engagement") or 0)
    engagement = profile.get("engagement_rate")
    if engagement is None:
        engagement = round(avg_interactions / followers * 100, 2) if followers else 0.0

    return {
        "platform": platform,
        "username": username,
        "followers": followers,
        "engagement_rate": float(engagement),
        "avg_interactions": avg_interactions,
        "posts": int(profile.get("posts") or profile.get("media_count") or 0),
    }


class SocialProvider(ProviderAdapter):
    """
    One instance per platform. Competitor social data is always fetched
    live; only the owner's own accounts are cached.
    """

    ttl_kind = "social"
    cache_subjects = frozenset({SubjectType.USER})

    def __init__(self, platform: str, **kwargs):
        self.platform = platform
        self.name = platform
        self.metric_kind = f"social_{platform}"
        super().__init__(**kwargs)

    def subject_for(self, domain: str, handles: Mapping[str, SocialHandle]) -> str:
        handle = handles.get(self.platform)
        if handle is None or not handle.username:
            raise MissingSubject(self.name, f"No {self.platform} handle for {domain}")
        return handle.username

    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        key = self._require(self.settings.rapidapi_key, "RAPIDAPI_KEY")
        host = self.settings.social_api_host
        data = await self._get_json(
            session,
            f"https://{host}/{self.platform}/profile",
            params={"username": subject},
            headers={"X-RapidAPI-Key": key, "X-RapidAPI-Host": host},
        )
        return self._parse(parse_social_profile, self.platform, subject, data)
