"""SEO point scoring and the weighted market-share score."""

import math
from typing import Mapping, Optional

from competitor_intel.config import DEFAULT_MARKET_SHARE_WEIGHTS
from competitor_intel.core.models import CategoryComparison, MarketShareScore


def calculate_seo_score(seo: dict) -> int:
    """
    Score on-page SEO out of 100.

    Meta tags 40, headings 20, social cards 20, structured data 20.
    """
    score = 0
    title = seo.get("title") or ""
    description = seo.get("meta_description") or ""
    headings = seo.get("headings") or {}
    open_graph = seo.get("open_graph") or {}

    if title:
        score += 10
    if description:
        score += 10
    if seo.get("canonical"):
        score += 10
    if 30 <= len(title) <= 60:
        score += 5
    if 120 <= len(description) <= 160:
        score += 5

    if headings.get("h1", 0) == 1:
        score += 10
    if headings.get("h2", 0) > 0:
        score += 5
    if headings.get("h3", 0) > 0:
        score += 5

    if open_graph.get("og:title") or open_graph.get("og:description"):
        score += 10
    if seo.get("twitter_card"):
        score += 10

    if (seo.get("schema_markup") or 0) > 0:
        score += 20

    return score


def calculate_security_score(audit: dict) -> int:
    security = audit.get("security") or {}
    score = 0
    if security.get("https"):
        score += 40
    if not security.get("mixed_content"):
        score += 20
    if (audit.get("robots_txt") or {}).get("exists"):
        score += 10
    if (audit.get("sitemap") or {}).get("exists"):
        score += 10
    if security.get("cdn"):
        score += 20
    return score


def _as_number(value) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def calculate_market_share(
    categories: Mapping[str, CategoryComparison],
    weights: Optional[Mapping[str, int]] = None,
) -> MarketShareScore:
    """
    Weighted share of the market between the two sites.

    Each weighted category that is available and has a non-zero total
    contributes ``share * weight``; the result is renormalized over the
    weight actually used. ``yours + competitor == 100`` whenever any weight
    was used, otherwise both are 0.
    """
    weights = weights or DEFAULT_MARKET_SHARE_WEIGHTS

    your_score = 0.0
    weight_used = 0

    for name, weight in weights.items():
        category = categories.get(name)
        if category is None or not category.available or weight <= 0:
            continue

        yours = _as_number(category.your_value)
        theirs = _as_number(category.competitor_value)
        total = yours + theirs
        if total <= 0:
            continue

        your_score += (yours / total) * weight
        weight_used += weight

    if weight_used == 0:
        return MarketShareScore(yours=0, competitor=0)

    # Round half up, derive the competitor side so the pair sums to 100
    yours_pct = int(math.floor(your_score / weight_used * 100 + 0.5))
    return MarketShareScore(yours=yours_pct, competitor=100 - yours_pct)
