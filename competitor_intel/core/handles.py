"""Social handle resolution: OAuth-connected accounts beat declared handles."""

from typing import Iterable, Mapping

from competitor_intel.core.models import HandleSource, SocialHandle
from competitor_intel.utils.helpers import strip_handle


def declared_handles(declared: Mapping[str, str]) -> dict[str, SocialHandle]:
    """Wrap a ``{platform: username}`` mapping as declared, unconnected handles."""
    handles = {}
    for platform, username in (declared or {}).items():
        username = strip_handle(username or "")
        if username:
            handles[platform] = SocialHandle(
                platform=platform,
                username=username,
                source=HandleSource.DECLARED,
                connected=False,
            )
    return handles


def resolve_handles(
    connections: Iterable[SocialHandle],
    declared: Mapping[str, str],
) -> dict[str, SocialHandle]:
    """
    Merge declared handles with OAuth connections, one handle per platform.

    A connected OAuth account always supersedes the declared handle for the
    same platform, whatever order the inputs arrive in. Usernames are stored
    without a leading "@", so "@acme" and "acme" name the same account.
    """
    handles = declared_handles(declared)
    for connection in connections:
        if connection.source is HandleSource.OAUTH and connection.username:
            handles[connection.platform] = connection
    return handles
