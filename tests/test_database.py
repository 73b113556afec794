"""Tests for the profile repository."""

import pytest

from competitor_intel.core.errors import InvalidDomain
from competitor_intel.core.models import HandleSource
from competitor_intel.database import get_session_factory, init_db
from competitor_intel.database.repository import ProfileRepository


@pytest.fixture
def repo(tmp_path):
    url = f"sqlite:///{tmp_path / 'profiles.db'}"
    init_db(url)
    return ProfileRepository(get_session_factory(url))


class TestProfileRepository:

    def test_unknown_owner(self, repo):
        assert repo.get_profile("nobody") is None
        assert repo.get_connections("nobody") == []

    def test_save_and_load_profile(self, repo):
        repo.save_profile(
            "owner-1",
            "https://www.CommonNotary.com",
            name="Common Notary",
            declared_handles={"instagram": "@commonnotary"},
        )
        profile = repo.get_profile("owner-1")

        assert profile.domain == "commonnotary.com"
        assert profile.name == "Common Notary"
        assert profile.declared_handles == {"instagram": "commonnotary"}
        assert profile.competitors == []

    def test_save_profile_updates_in_place(self, repo):
        repo.save_profile("owner-1", "old.com", name="Common Notary")
        repo.save_profile("owner-1", "new.com")

        profile = repo.get_profile("owner-1")
        assert profile.domain == "new.com"
        assert profile.name == "Common Notary"

    def test_invalid_domain_rejected(self, repo):
        with pytest.raises(InvalidDomain):
            repo.save_profile("owner-1", "not a domain")

    def test_competitors(self, repo):
        repo.save_profile("owner-1", "example.com")
        repo.add_competitor("owner-1", "rival.com", name="Rival", handles={"facebook": "rivalpage"})
        repo.add_competitor("owner-1", "rival.com", handles={"facebook": "rivalpage2"})

        profile = repo.get_profile("owner-1")
        assert len(profile.competitors) == 1
        assert profile.competitors[0].name == "Rival"
        assert profile.competitors[0].handles == {"facebook": "rivalpage2"}
        assert profile.find_competitor("www.rival.com").domain == "rival.com"
        assert profile.find_competitor("stranger.com") is None

    def test_competitor_requires_profile(self, repo):
        with pytest.raises(LookupError):
            repo.add_competitor("nobody", "rival.com")

    def test_connections(self, repo):
        repo.connect_account("owner-1", "instagram", "@real")
        repo.connect_account("owner-1", "linkedin", "common-notary")
        repo.connect_account("owner-1", "instagram", "real2")

        connections = {c.platform: c for c in repo.get_connections("owner-1")}
        assert connections["instagram"].username == "real2"
        assert connections["instagram"].source is HandleSource.OAUTH
        assert connections["instagram"].connected is True
        assert len(connections) == 2

    def test_disconnect(self, repo):
        repo.connect_account("owner-1", "facebook", "page")

        assert repo.disconnect_account("owner-1", "facebook") is True
        assert repo.get_connections("owner-1") == []
        assert repo.disconnect_account("owner-1", "facebook") is False
