"""Tests for social handle resolution."""

from competitor_intel.core.handles import declared_handles, resolve_handles
from competitor_intel.core.models import HandleSource, SocialHandle


def oauth(platform, username):
    return SocialHandle(platform=platform, username=username, source=HandleSource.OAUTH, connected=True)


class TestResolveHandles:

    def test_oauth_beats_declared(self):
        handles = resolve_handles([oauth("instagram", "real")], {"instagram": "@stale"})

        assert handles["instagram"].username == "real"
        assert handles["instagram"].source is HandleSource.OAUTH
        assert handles["instagram"].connected is True

    def test_declared_used_when_not_connected(self):
        handles = resolve_handles([oauth("facebook", "commonnotary")], {"linkedin": "@common-notary"})

        assert handles["linkedin"].username == "common-notary"
        assert handles["linkedin"].source is HandleSource.DECLARED
        assert handles["linkedin"].connected is False
        assert handles["facebook"].source is HandleSource.OAUTH

    def test_one_handle_per_platform(self):
        handles = resolve_handles(
            [oauth("instagram", "real")],
            {"instagram": "stale", "facebook": "page"},
        )
        assert sorted(handles) == ["facebook", "instagram"]

    def test_empty_inputs(self):
        assert resolve_handles([], {}) == {}

    def test_blank_declared_handles_dropped(self):
        assert declared_handles({"instagram": "", "facebook": "@", "linkedin": None}) == {}

    def test_declared_connection_does_not_override(self):
        """Only OAuth-sourced connections supersede declared handles."""
        declared_conn = SocialHandle("instagram", "other", HandleSource.DECLARED)
        handles = resolve_handles([declared_conn], {"instagram": "mine"})

        assert handles["instagram"].username == "mine"
