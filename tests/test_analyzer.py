"""Tests for the single-site analyzer."""

import time
from datetime import timedelta

import pytest

from competitor_intel.core.analyzer import SingleSiteAnalyzer
from competitor_intel.core.cache import CacheGateway
from competitor_intel.core.errors import InvalidDomain, ProviderHTTPError, ProviderParseError
from competitor_intel.core.handles import declared_handles
from competitor_intel.core.models import ErrorKind, SubjectType
from competitor_intel.core.retry import RetryPolicy
from competitor_intel.providers.backlinks import parse_backlinks_summary
from competitor_intel.providers.social import parse_social_profile
from competitor_intel.providers.traffic import parse_traffic

from fakes import FailingStore, FakeProvider, FakeSocialProvider, FrozenClock


async def run(analyzer, domain="example.com", subject_type=SubjectType.USER, **kwargs):
    return await analyzer.analyze(domain, owner_id="owner-1", subject_type=subject_type, **kwargs)


class TestCompletenessAndIsolation:
    """Every provider gets exactly one result, whatever its siblings do."""

    @pytest.mark.asyncio
    async def test_one_result_per_provider(self):
        providers = [
            FakeProvider("pagespeed", {"performance": 90}),
            FakeProvider("traffic", error=ProviderHTTPError("traffic", "HTTP 502", status=502)),
            FakeProvider("backlinks", error=RuntimeError("bug in adapter")),
        ]
        analysis = await run(SingleSiteAnalyzer(providers))

        assert set(analysis.metrics) == {"pagespeed", "traffic", "backlinks"}
        assert analysis.metrics["pagespeed"].ok
        assert analysis.metrics["traffic"].error_kind is ErrorKind.HTTP
        assert analysis.metrics["backlinks"].error_kind is ErrorKind.UNKNOWN
        assert analysis.success_count == 1
        assert {f["metric"] for f in analysis.failed_metrics} == {"traffic", "backlinks"}

    @pytest.mark.asyncio
    async def test_fast_failure_does_not_cancel_slow_sibling(self):
        slow = FakeProvider("pagespeed", {"performance": 70}, delay=0.1)
        providers = [slow, FakeProvider("traffic", error=ProviderParseError("traffic", "bad"))]

        analysis = await run(SingleSiteAnalyzer(providers))

        assert analysis.metrics["pagespeed"].ok
        assert analysis.metrics["pagespeed"].payload["performance"] == 70
        assert slow.calls == 1

    @pytest.mark.asyncio
    async def test_failed_metrics_carry_error_kind(self):
        providers = [FakeProvider("traffic", error=ProviderParseError("traffic", "Invalid JSON"))]
        analysis = await run(SingleSiteAnalyzer(providers))

        assert analysis.failed_metrics == [
            {"metric": "traffic", "error": "Invalid JSON", "error_kind": "ProviderParseError"}
        ]


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_wall_time_bounded_by_slowest_provider(self):
        """Test three 0.2s providers finish together, not back to back."""
        providers = [FakeProvider(name, {}, delay=0.2) for name in ("pagespeed", "traffic", "backlinks")]

        start = time.monotonic()
        analysis = await run(SingleSiteAnalyzer(providers))
        elapsed = time.monotonic() - start

        assert analysis.success_count == 3
        assert elapsed < 0.45

    @pytest.mark.asyncio
    async def test_timeout_becomes_failure(self):
        slow = FakeProvider("site_audit", {}, delay=0.5, retry_policy=RetryPolicy(timeout_seconds=0.05))
        analysis = await run(SingleSiteAnalyzer([slow]))

        assert analysis.metrics["site_audit"].error_kind is ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_retry_recovers_transient_failure(self):
        flaky = FakeProvider(
            "pagespeed",
            {"performance": 55},
            error=ProviderHTTPError("pagespeed", "HTTP 503", status=503),
            fail_times=1,
            retry_policy=RetryPolicy(max_attempts=2, backoff_seconds=0.01, timeout_seconds=1),
        )
        analysis = await run(SingleSiteAnalyzer([flaky]))

        assert analysis.metrics["pagespeed"].ok
        assert flaky.calls == 2


class TestCaching:
    """Read-through cache behaviour."""

    @pytest.mark.asyncio
    async def test_second_run_is_served_from_cache(self, gateway):
        provider = FakeProvider("traffic", {"monthly_visits": 1200})
        analyzer = SingleSiteAnalyzer([provider], cache=gateway)

        first = await run(analyzer)
        second = await run(analyzer)

        assert provider.calls == 1
        assert first.metrics["traffic"].cached is False
        assert second.metrics["traffic"].cached is True
        assert second.metrics["traffic"].cache_age_minutes == 0
        assert second.metrics["traffic"].payload == first.metrics["traffic"].payload

    @pytest.mark.asyncio
    async def test_cache_hits_do_not_share_payloads(self, gateway):
        analyzer = SingleSiteAnalyzer([FakeProvider("traffic", {"monthly_visits": 10})], cache=gateway)

        await run(analyzer)
        first_hit = await run(analyzer)
        first_hit.metrics["traffic"].payload["monthly_visits"] = 999
        second_hit = await run(analyzer)

        assert second_hit.metrics["traffic"].cached is True
        assert second_hit.metrics["traffic"].payload["monthly_visits"] == 10
        assert second_hit.metrics["traffic"].payload is not first_hit.metrics["traffic"].payload

    @pytest.mark.asyncio
    async def test_idempotent_within_ttl(self, gateway, clock):
        provider = FakeProvider("traffic", {"monthly_visits": 1200}, ttl=timedelta(hours=12))
        analyzer = SingleSiteAnalyzer([provider], cache=gateway)

        await run(analyzer)
        clock.advance(minutes=30)
        again = await run(analyzer)

        assert provider.calls == 1
        assert again.metrics["traffic"].cache_age_minutes == 30

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, gateway, clock):
        provider = FakeProvider("traffic", {"monthly_visits": 1200}, ttl=timedelta(hours=12))
        analyzer = SingleSiteAnalyzer([provider], cache=gateway)

        await run(analyzer)
        clock.advance(hours=12, seconds=1)
        again = await run(analyzer)

        assert provider.calls == 2
        assert again.metrics["traffic"].cached is False

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, gateway):
        provider = FakeProvider("traffic", {"monthly_visits": 1200})
        analyzer = SingleSiteAnalyzer([provider], cache=gateway)

        await run(analyzer)
        refreshed = await run(analyzer, force_refresh=True)

        assert provider.calls == 2
        assert refreshed.metrics["traffic"].cached is False

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, gateway):
        provider = FakeProvider(
            "traffic", {"monthly_visits": 5},
            error=ProviderHTTPError("traffic", "HTTP 500", status=500), fail_times=1,
        )
        analyzer = SingleSiteAnalyzer([provider], cache=gateway)

        first = await run(analyzer)
        second = await run(analyzer)

        assert not first.metrics["traffic"].ok
        assert second.metrics["traffic"].ok
        assert second.metrics["traffic"].cached is False

    @pytest.mark.asyncio
    async def test_store_outage_falls_back_to_live_fetch(self):
        provider = FakeProvider("traffic", {"monthly_visits": 1200})
        analyzer = SingleSiteAnalyzer([provider], cache=CacheGateway(FailingStore(), clock=FrozenClock()))

        analysis = await run(analyzer)

        assert analysis.metrics["traffic"].ok
        assert analysis.metrics["traffic"].payload["monthly_visits"] == 1200

    @pytest.mark.asyncio
    async def test_competitor_social_is_never_cached(self, gateway):
        social = FakeSocialProvider("instagram")
        analyzer = SingleSiteAnalyzer([social], cache=gateway)
        handles = declared_handles({"instagram": "rival"})

        await run(analyzer, "rival.com", SubjectType.COMPETITOR, handles=handles)
        await run(analyzer, "rival.com", SubjectType.COMPETITOR, handles=handles)
        assert social.calls == 2

        await run(analyzer, "example.com", SubjectType.USER, handles=handles)
        await run(analyzer, "example.com", SubjectType.USER, handles=handles)
        assert social.calls == 3


class TestSubjects:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain", ["", "   ", "not a domain", "http://"])
    async def test_invalid_domain_fails_the_analysis(self, domain):
        with pytest.raises(InvalidDomain):
            await run(SingleSiteAnalyzer([FakeProvider("traffic")]), domain)

    @pytest.mark.asyncio
    async def test_domain_is_normalized(self):
        provider = FakeProvider("traffic", {})
        analysis = await run(SingleSiteAnalyzer([provider]), "https://www.Example.com/about")

        assert analysis.domain == "example.com"
        assert provider.subjects == ["example.com"]

    @pytest.mark.asyncio
    async def test_missing_handle_is_a_failure(self):
        analysis = await run(SingleSiteAnalyzer([FakeSocialProvider("linkedin")]))

        assert analysis.metrics["linkedin"].error_kind is ErrorKind.MISSING_SUBJECT

    @pytest.mark.asyncio
    async def test_social_provider_uses_handle(self):
        social = FakeSocialProvider("facebook", followers={"commonnotary": 3400})
        analysis = await run(
            SingleSiteAnalyzer([social]),
            handles=declared_handles({"facebook": "@commonnotary"}),
        )

        assert social.subjects == ["commonnotary"]
        assert analysis.payload("facebook")["followers"] == 3400

    @pytest.mark.asyncio
    async def test_payload_is_normalized(self):
        analysis = await run(SingleSiteAnalyzer([FakeProvider("traffic", {"monthly_visits": 10})]))
        payload = analysis.payload("traffic")

        assert payload["monthly_visits"] == 10
        assert payload["bounce_rate"] is None
        assert payload["traffic_sources"] == {}

    @pytest.mark.asyncio
    async def test_non_mapping_payload_is_parse_failure(self):
        analysis = await run(SingleSiteAnalyzer([FakeProvider("traffic", ["not", "a", "dict"])]))
        assert analysis.metrics["traffic"].error_kind is ErrorKind.PARSE


class ParsingProvider(FakeProvider):
    """Fake provider that runs its canned response through a real parser."""

    def __init__(self, name, parser, payload):
        super().__init__(name, payload)
        self.parser = parser

    async def fetch(self, subject, session):
        raw = await super().fetch(subject, session)
        return self._parse(self.parser, raw)


class TestMalformedPayloads:
    """Bad field types from upstream are parse failures."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,parser,payload", [
        ("social_facebook", lambda d: parse_social_profile("facebook", "acme", d), {"followers": "1.2K"}),
        ("backlinks", parse_backlinks_summary, {"backlinks": "lots"}),
        ("traffic", parse_traffic, {"Visits": 10, "TrafficSources": 5}),
    ])
    async def test_bad_field_type_is_parse_failure(self, name, parser, payload):
        analysis = await run(SingleSiteAnalyzer([ParsingProvider(name, parser, payload)]))
        result = analysis.metrics[name]

        assert result.ok is False
        assert result.error_kind is ErrorKind.PARSE
        assert "Malformed payload" in result.message
