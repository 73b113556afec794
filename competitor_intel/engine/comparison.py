"""
Comparison Engine
=================

Turns two SiteAnalysis objects into per-category comparisons and a
weighted market-share score. Categories missing data on either side are
``unavailable`` and take no part in scoring.
"""

from typing import Callable, Mapping, Optional

from loguru import logger

from competitor_intel.config import DEFAULT_MARKET_SHARE_WEIGHTS, SOCIAL_PLATFORMS
from competitor_intel.core.models import (
    CategoryComparison, ComparisonResult, SiteAnalysis, Winner
)
from competitor_intel.engine.scoring import (
    calculate_market_share, calculate_security_score, calculate_seo_score
)

def compare_values(your_value, competitor_value, details: Optional[dict] = None) -> CategoryComparison:
    """Higher value wins; equal values tie; a missing side makes the row unavailable."""
    details = details or {}
    if your_value is None or competitor_value is None:
        return CategoryComparison(
            your_value=your_value,
            competitor_value=competitor_value,
            winner=Winner.UNAVAILABLE,
            details=details,
        )

    if your_value > competitor_value:
        winner = Winner.YOURS
    elif competitor_value > your_value:
        winner = Winner.COMPETITOR
    else:
        winner = Winner.TIE

    return CategoryComparison(
        your_value=your_value,
        competitor_value=competitor_value,
        winner=winner,
        gap=round(abs(your_value - competitor_value), 1),
        details=details,
    )


def _pick(payload: Optional[dict], extract: Callable[[dict], object]):
    return extract(payload) if payload is not None else None


def _side_details(yours: Optional[dict], theirs: Optional[dict], extract: Callable[[dict], dict]) -> dict:
    return {"your": _pick(yours, extract), "competitor": _pick(theirs, extract)}


def compare_performance(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("pagespeed"), competitor.payload("pagespeed")
    return compare_values(
        _pick(ys, lambda p: p["performance"]),
        _pick(cs, lambda p: p["performance"]),
        _side_details(ys, cs, lambda p: {
            "accessibility": p["accessibility"],
            "best_practices": p["best_practices"],
            "seo": p["seo"],
            "load_time_ms": p["load_time_ms"],
        }),
    )


def compare_seo(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("site_audit"), competitor.payload("site_audit")
    return compare_values(
        _pick(ys, lambda p: calculate_seo_score(p["seo"])),
        _pick(cs, lambda p: calculate_seo_score(p["seo"])),
        _side_details(ys, cs, lambda p: {
            "has_title": bool(p["seo"]["title"]),
            "has_description": bool(p["seo"]["meta_description"]),
            "has_canonical": bool(p["seo"]["canonical"]),
            "headings": p["seo"]["headings"],
            "schema_markup": p["seo"]["schema_markup"],
        }),
    )


def compare_content(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("site_audit"), competitor.payload("site_audit")
    return compare_values(
        _pick(ys, lambda p: p["content"]["word_count"]),
        _pick(cs, lambda p: p["content"]["word_count"]),
        _side_details(ys, cs, lambda p: {
            "paragraph_count": p["content"]["paragraph_count"],
            "image_count": p["content"]["images"]["total"],
            "image_alt_coverage": p["content"]["images"]["alt_coverage"],
            "internal_links": p["content"]["links"]["internal"],
            "external_links": p["content"]["links"]["external"],
        }),
    )


def compare_technology(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    def stack_depth(p: dict) -> int:
        tech = p["technology"]
        return len(tech["frameworks"]) + len(tech["analytics"])

    ys, cs = yours.payload("site_audit"), competitor.payload("site_audit")
    return compare_values(
        _pick(ys, stack_depth),
        _pick(cs, stack_depth),
        _side_details(ys, cs, lambda p: {
            "cms": p["technology"]["cms"] or "Unknown",
            "frameworks": p["technology"]["frameworks"],
            "analytics": p["technology"]["analytics"],
            "third_party_scripts": p["technology"]["third_party_scripts"],
        }),
    )


def compare_security(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("site_audit"), competitor.payload("site_audit")
    return compare_values(
        _pick(ys, calculate_security_score),
        _pick(cs, calculate_security_score),
        _side_details(ys, cs, lambda p: {
            "https": p["security"]["https"],
            "cdn": p["security"]["cdn"],
            "mixed_content": p["security"]["mixed_content"],
            "robots_txt": p["robots_txt"]["exists"],
            "sitemap": p["sitemap"]["exists"],
            "sitemap_urls": p["sitemap"]["url_count"],
        }),
    )


def compare_traffic(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("traffic"), competitor.payload("traffic")
    return compare_values(
        _pick(ys, lambda p: p["monthly_visits"]),
        _pick(cs, lambda p: p["monthly_visits"]),
        _side_details(ys, cs, lambda p: {
            "bounce_rate": p["bounce_rate"],
            "pages_per_visit": p["pages_per_visit"],
            "avg_visit_duration": p["avg_visit_duration"],
            "global_rank": p["global_rank"],
        }),
    )


def compare_backlinks(yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload("backlinks"), competitor.payload("backlinks")
    return compare_values(
        _pick(ys, lambda p: p["total_backlinks"]),
        _pick(cs, lambda p: p["total_backlinks"]),
        _side_details(ys, cs, lambda p: {
            "referring_domains": p["referring_domains"],
            "domain_rank": p["domain_rank"],
        }),
    )


def compare_social(platform: str, yours: SiteAnalysis, competitor: SiteAnalysis) -> CategoryComparison:
    ys, cs = yours.payload(platform), competitor.payload(platform)
    return compare_values(
        _pick(ys, lambda p: p["followers"]),
        _pick(cs, lambda p: p["followers"]),
        _side_details(ys, cs, lambda p: {
            "username": p["username"],
            "engagement_rate": p["engagement_rate"],
            "avg_interactions": p["avg_interactions"],
        }),
    )


COMPARATORS = {
    "performance": compare_performance,
    "seo": compare_seo,
    "content": compare_content,
    "technology": compare_technology,
    "security": compare_security,
    "traffic": compare_traffic,
    "backlinks": compare_backlinks,
}


SUMMARY_RULES = {
    "performance": (
        "Better overall performance scores",
        "Lower performance scores than competitor",
        "Optimize images, reduce JavaScript, and improve server response times",
    ),
    "seo": (
        "Better SEO optimization",
        "SEO implementation needs improvement",
        "Improve meta tags, add structured data, and optimize heading structure",
    ),
    "traffic": (
        "Higher website traffic than competitor",
        "Lower website traffic than competitor",
        "Invest in content marketing and search visibility to grow traffic",
    ),
    "backlinks": (
        "Stronger backlink profile",
        "Fewer backlinks than competitor",
        "Earn links from local directories and industry publications",
    ),
}


def build_summary(result: ComparisonResult) -> dict:
    """Strengths, weaknesses, opportunities and recommendations derived from the winners."""
    summary = {
        "strengths": [],
        "weaknesses": [],
        "opportunities": [],
        "recommendations": [],
    }

    for category, (strength, weakness, recommendation) in SUMMARY_RULES.items():
        row = result.categories.get(category)
        if row is None:
            continue
        if row.winner is Winner.YOURS:
            summary["strengths"].append(strength)
        elif row.winner is Winner.COMPETITOR:
            summary["weaknesses"].append(weakness)
            summary["recommendations"].append(recommendation)

    content = result.categories.get("content")
    if content is not None:
        if content.winner is Winner.YOURS:
            summary["strengths"].append("More comprehensive content")
        elif content.winner is Winner.COMPETITOR:
            summary["opportunities"].append("Create more in-depth content to match competitor")

    security = result.categories.get("security")
    if security is not None and security.details.get("your"):
        yours = security.details["your"]
        theirs = security.details.get("competitor") or {}
        if not yours["https"]:
            summary["weaknesses"].append("Not using HTTPS")
            summary["recommendations"].append("Implement SSL certificate for security")
        if not yours["cdn"] and theirs.get("cdn"):
            summary["opportunities"].append("Implement CDN for better performance")

    for name, row in result.categories.items():
        if name.startswith("social_") and row.winner is Winner.COMPETITOR:
            platform = name[len("social_"):]
            summary["opportunities"].append(
                f"Grow your {platform.capitalize()} audience to match competitor"
            )

    return summary


class ComparisonEngine:
    """Compares two site analyses category by category."""

    def __init__(
        self,
        weights: Optional[Mapping[str, int]] = None,
        social_platforms: Optional[list[str]] = None,
    ):
        self.weights = dict(weights or DEFAULT_MARKET_SHARE_WEIGHTS)
        self.social_platforms = social_platforms if social_platforms is not None else SOCIAL_PLATFORMS

    def compare(self, yours: SiteAnalysis, competitor: SiteAnalysis) -> ComparisonResult:
        categories = {
            name: comparator(yours, competitor)
            for name, comparator in COMPARATORS.items()
        }

        for platform in self.social_platforms:
            if platform in yours.metrics or platform in competitor.metrics:
                categories[f"social_{platform}"] = compare_social(platform, yours, competitor)

        market_share = calculate_market_share(categories, self.weights)
        unavailable = [name for name, c in categories.items() if not c.available]
        if unavailable:
            logger.info("Comparison categories unavailable: {}", ", ".join(unavailable))

        return ComparisonResult(categories=categories, market_share=market_share)
