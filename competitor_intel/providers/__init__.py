"""Metric providers and the default provider set."""

from typing import Optional

from competitor_intel.config import SOCIAL_PLATFORMS, Settings, get_settings
from competitor_intel.providers.backlinks import BacklinksProvider
from competitor_intel.providers.base import ProviderAdapter
from competitor_intel.providers.pagespeed import PageSpeedProvider
from competitor_intel.providers.site_audit import SiteAuditProvider
from competitor_intel.providers.social import SocialProvider
from competitor_intel.providers.traffic import TrafficProvider


def default_providers(settings: Optional[Settings] = None, include_social: bool = True) -> list[ProviderAdapter]:
    """Build every provider with the given settings."""
    settings = settings or get_settings()
    providers: list[ProviderAdapter] = [
        SiteAuditProvider(settings=settings),
        PageSpeedProvider(settings=settings),
        TrafficProvider(settings=settings),
        BacklinksProvider(settings=settings),
    ]
    if include_social:
        providers += [SocialProvider(platform, settings=settings) for platform in SOCIAL_PLATFORMS]
    return providers


__all__ = [
    "ProviderAdapter",
    "SiteAuditProvider",
    "PageSpeedProvider",
    "TrafficProvider",
    "BacklinksProvider",
    "SocialProvider",
    "default_providers",
]
