"""Tests for the comparison engine and scoring."""

import pytest

from competitor_intel.core.models import (
    CategoryComparison, ComparisonResult, ErrorKind, Failure, SiteAnalysis, Success, Winner
)
from competitor_intel.engine.comparison import ComparisonEngine, build_summary, compare_values
from competitor_intel.engine.normalize import normalize_payload
from competitor_intel.engine.scoring import (
    calculate_market_share, calculate_security_score, calculate_seo_score
)

from fakes import T0, site_audit_payload


def analysis(domain: str, **payloads) -> SiteAnalysis:
    """Build a SiteAnalysis; a payload of None becomes a Failure."""
    site = SiteAnalysis(domain=domain)
    for name, payload in payloads.items():
        if payload is None:
            site.metrics[name] = Failure(name, ErrorKind.HTTP, "HTTP 500")
            site.failed_metrics.append({"metric": name, "error": "HTTP 500", "error_kind": "ProviderHTTPError"})
        else:
            kind = "social" if name in ("facebook", "instagram", "linkedin") else name
            site.metrics[name] = Success(name, normalize_payload(kind, payload), fetched_at=T0)
    return site


def row(yours, theirs) -> CategoryComparison:
    return compare_values(yours, theirs)


class TestCompareValues:

    def test_higher_value_wins(self):
        result = compare_values(80, 60)
        assert result.winner is Winner.YOURS
        assert result.gap == 20

    def test_competitor_wins(self):
        assert compare_values(10, 25).winner is Winner.COMPETITOR

    def test_equal_values_tie(self):
        result = compare_values(42, 42)
        assert result.winner is Winner.TIE
        assert result.gap == 0

    @pytest.mark.parametrize("yours,theirs", [(None, 5), (5, None), (None, None)])
    def test_missing_side_is_unavailable(self, yours, theirs):
        result = compare_values(yours, theirs)
        assert result.winner is Winner.UNAVAILABLE
        assert not result.available
        assert result.gap is None

    def test_gap_rounded_to_one_decimal(self):
        assert compare_values(0.4567, 0.1234).gap == 0.3


class TestMarketShare:
    """Weighted, renormalized market share."""

    def test_renormalizes_over_used_weight(self):
        """Test SEO 80/20 plus traffic 1000/3000 without backlinks gives 49/51."""
        categories = {
            "seo": row(80, 20),
            "traffic": row(1000, 3000),
            "backlinks": row(None, None),
        }
        share = calculate_market_share(categories)

        assert share.yours == 49
        assert share.competitor == 51

    def test_no_weight_used_gives_zero(self):
        categories = {"seo": row(None, 50), "traffic": row(0, 0)}
        share = calculate_market_share(categories)

        assert (share.yours, share.competitor) == (0, 0)

    def test_unweighted_categories_ignored(self):
        categories = {"performance": row(100, 0), "seo": row(50, 50)}
        share = calculate_market_share(categories)

        assert (share.yours, share.competitor) == (50, 50)

    @pytest.mark.parametrize("seo,traffic,backlinks", [
        ((1, 2), (1, 2), (1, 2)),
        ((7, 3), (123, 877), (0, 1)),
        ((60, 40), (5, 5), (333, 667)),
        ((1, 0), (0, 1), (1, 1)),
    ])
    def test_pair_always_sums_to_100(self, seo, traffic, backlinks):
        categories = {
            "seo": row(*seo),
            "traffic": row(*traffic),
            "backlinks": row(*backlinks),
        }
        share = calculate_market_share(categories)
        assert share.yours + share.competitor == 100

    def test_custom_weights(self):
        categories = {"seo": row(100, 0), "traffic": row(0, 100)}
        share = calculate_market_share(categories, {"seo": 10, "traffic": 90})

        assert (share.yours, share.competitor) == (10, 90)


class TestSEOScore:

    def test_fully_optimized_page(self):
        seo = {
            "title": "Apostille Services in Alexandria VA | Common Notary",
            "meta_description": "x" * 140,
            "canonical": "https://example.com/",
            "headings": {"h1": 1, "h2": 3, "h3": 2},
            "open_graph": {"og:title": "Apostille Services"},
            "twitter_card": "summary",
            "schema_markup": 1,
        }
        assert calculate_seo_score(seo) == 100

    def test_empty_page(self):
        assert calculate_seo_score(normalize_payload("site_audit", {})["seo"]) == 0

    def test_multiple_h1_loses_points(self):
        one = calculate_seo_score({"headings": {"h1": 1}})
        many = calculate_seo_score({"headings": {"h1": 3}})
        assert one - many == 10

    def test_security_score(self):
        audit = normalize_payload("site_audit", {
            "security": {"https": True, "cdn": "Cloudflare"},
            "robots_txt": {"exists": True},
            "sitemap": {"exists": True},
        })
        assert calculate_security_score(audit) == 100


class TestComparisonEngine:

    def test_performance_scenario(self):
        """Test performance 80 vs 60 is won by your site with a gap of 20."""
        result = ComparisonEngine().compare(
            analysis("example.com", pagespeed={"performance": 80}),
            analysis("rival.com", pagespeed={"performance": 60}),
        )
        assert result["performance"].winner is Winner.YOURS
        assert result["performance"].gap == 20

    def test_failed_category_is_unavailable_and_unscored(self):
        """Test traffic failing on both sides drops it from scoring."""
        yours = analysis(
            "example.com",
            site_audit=site_audit_payload(),
            traffic=None,
            backlinks={"total_backlinks": 300},
        )
        theirs = analysis(
            "rival.com",
            site_audit=site_audit_payload(title=""),
            traffic=None,
            backlinks={"total_backlinks": 100},
        )
        result = ComparisonEngine().compare(yours, theirs)

        assert result["traffic"].winner is Winner.UNAVAILABLE
        assert result["seo"].winner is Winner.YOURS
        assert result.market_share.yours + result.market_share.competitor == 100

    def test_all_categories_present(self):
        result = ComparisonEngine().compare(analysis("example.com"), analysis("rival.com"))

        assert set(result.categories) == {
            "performance", "seo", "content", "technology", "security", "traffic", "backlinks"
        }
        assert all(c.winner is Winner.UNAVAILABLE for c in result.categories.values())
        assert (result.market_share.yours, result.market_share.competitor) == (0, 0)

    def test_content_and_technology(self):
        result = ComparisonEngine().compare(
            analysis("example.com", site_audit=site_audit_payload(word_count=300, frameworks=["React"])),
            analysis("rival.com", site_audit=site_audit_payload(word_count=900)),
        )
        assert result["content"].winner is Winner.COMPETITOR
        assert result["content"].gap == 600
        assert result["technology"].winner is Winner.YOURS
        assert result["technology"].details["your"]["frameworks"] == ["React"]

    def test_social_categories(self):
        result = ComparisonEngine().compare(
            analysis("example.com", instagram={"followers": 500}, facebook=None),
            analysis("rival.com", instagram={"followers": 1500}),
        )
        assert result["social_instagram"].winner is Winner.COMPETITOR
        assert result["social_instagram"].gap == 1000
        assert result["social_facebook"].winner is Winner.UNAVAILABLE
        assert "social_linkedin" not in result.categories

    def test_social_does_not_affect_market_share(self):
        base = dict(backlinks={"total_backlinks": 50})
        without = ComparisonEngine().compare(analysis("a.com", **base), analysis("b.com", **base))
        with_social = ComparisonEngine().compare(
            analysis("a.com", instagram={"followers": 10_000}, **base),
            analysis("b.com", instagram={"followers": 1}, **base),
        )
        assert with_social.market_share == without.market_share

    def test_to_dict_uses_plain_values(self):
        result = ComparisonEngine().compare(
            analysis("example.com", pagespeed={"performance": 80}),
            analysis("rival.com", pagespeed={"performance": 60}),
        )
        data = result.to_dict()

        assert data["performance"]["winner"] == "yours"
        assert data["traffic"]["winner"] == "unavailable"
        assert data["market_share"] == {"yours": 0, "competitor": 0}


class TestSummary:

    def test_strengths_and_weaknesses_follow_winners(self):
        result = ComparisonResult(categories={
            "performance": compare_values(90, 50),
            "seo": compare_values(20, 80),
            "content": compare_values(100, 900),
            "traffic": compare_values(None, None),
        })
        summary = build_summary(result)

        assert "Better overall performance scores" in summary["strengths"]
        assert "SEO implementation needs improvement" in summary["weaknesses"]
        assert "Create more in-depth content to match competitor" in summary["opportunities"]
        assert not any("traffic" in s for s in summary["strengths"] + summary["weaknesses"])

    def test_security_findings(self):
        result = ComparisonEngine().compare(
            analysis("example.com", site_audit=site_audit_payload(https=False)),
            analysis("rival.com", site_audit=site_audit_payload(cdn="Cloudflare")),
        )
        summary = build_summary(result)

        assert "Not using HTTPS" in summary["weaknesses"]
        assert "Implement CDN for better performance" in summary["opportunities"]
