"""Configuration management using environment variables."""

from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = Field(
        default="sqlite:///data/competitor_intel.db",
        alias="DATABASE_URL"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="logs/competitor_intel.log", alias="LOG_FILE")

    # HTTP
    user_agent: str = Field(
        default="CompetitorIntelBot/1.0 (+site comparison)",
        alias="USER_AGENT"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        alias="REQUEST_TIMEOUT_SECONDS"
    )

    # Retry policy for slow audit-style providers
    audit_max_attempts: int = Field(default=2, alias="AUDIT_MAX_ATTEMPTS")
    audit_backoff_seconds: float = Field(default=2.0, alias="AUDIT_BACKOFF_SECONDS")
    audit_timeout_seconds: float = Field(default=90.0, alias="AUDIT_TIMEOUT_SECONDS")

    # Provider credentials
    pagespeed_api_key: Optional[str] = Field(default=None, alias="PAGESPEED_API_KEY")
    rapidapi_key: Optional[str] = Field(default=None, alias="RAPIDAPI_KEY")
    traffic_api_host: str = Field(
        default="similarweb-traffic.p.rapidapi.com",
        alias="TRAFFIC_API_HOST"
    )
    social_api_host: str = Field(
        default="social-media-metrics.p.rapidapi.com",
        alias="SOCIAL_API_HOST"
    )
    seranking_api_key: Optional[str] = Field(default=None, alias="SERANKING_API_KEY")
    seranking_api_url: str = Field(
        default="https://api.seranking.com",
        alias="SERANKING_API_URL"
    )

    # Whole-report cache
    report_cache_ttl_hours: int = Field(default=24, alias="REPORT_CACHE_TTL_HOURS")

    # Market-share category weights
    weight_seo: int = Field(default=30, alias="WEIGHT_SEO")
    weight_traffic: int = Field(default=40, alias="WEIGHT_TRAFFIC")
    weight_backlinks: int = Field(default=30, alias="WEIGHT_BACKLINKS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    @property
    def market_share_weights(self) -> dict[str, int]:
        return {
            "seo": self.weight_seo,
            "traffic": self.weight_traffic,
            "backlinks": self.weight_backlinks,
        }

    @property
    def report_cache_ttl(self) -> timedelta:
        return timedelta(hours=self.report_cache_ttl_hours)


# Project paths
PROJECT_ROOT = Path(__file__).parent.parent


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Cache lifetime per metric kind. Scrape-based audits are expensive, API lookups cheap.
PROVIDER_TTLS = {
    "site_audit": timedelta(days=7),
    "pagespeed": timedelta(hours=24),
    "traffic": timedelta(hours=12),
    "backlinks": timedelta(days=3),
    "social": timedelta(minutes=180),
}

DEFAULT_MARKET_SHARE_WEIGHTS = {"seo": 30, "traffic": 40, "backlinks": 30}

SOCIAL_PLATFORMS = ["facebook", "instagram", "linkedin"]
