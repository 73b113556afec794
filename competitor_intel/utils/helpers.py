"""
Utility helpers shared across the engine.
"""

import re
from datetime import datetime, timezone
from urllib.parse import urlparse

from competitor_intel.core.errors import InvalidDomain

_DOMAIN_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_domain(value: str) -> str:
    """Reduce a URL or hostname to a bare lowercase domain.

    Raises InvalidDomain for empty or malformed input.
    """
    if not value or not value.strip():
        raise InvalidDomain("Domain is required")

    raw = value.strip().lower()
    if "://" not in raw:
        raw = f"http://{raw}"

    host = urlparse(raw).hostname or ""
    if host.startswith("www."):
        host = host[4:]

    if not _DOMAIN_RE.match(host):
        raise InvalidDomain(f"Invalid domain: {value!r}")
    return host


def site_url(domain: str, path: str = "") -> str:
    """Build an https URL for a normalized domain."""
    return f"https://{domain}{path}"


def strip_handle(username: str) -> str:
    """Social handles are compared without the leading '@'."""
    return username.strip().lstrip("@")


def to_naive_utc(value: datetime) -> datetime:
    """Normalize to naive UTC for storage in DateTime columns."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
