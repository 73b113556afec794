"""
Payload normalization.

Every provider payload passes through ``normalize_payload`` exactly once,
right after a live fetch, so comparators can index fields without
defensive lookups.
"""

import copy
from typing import Any

SITE_AUDIT_TEMPLATE = {
    "url": "",
    "status_code": 0,
    "load_time_ms": 0,
    "seo": {
        "title": "",
        "meta_description": "",
        "canonical": "",
        "headings": {"h1": 0, "h2": 0, "h3": 0},
        "open_graph": {},
        "twitter_card": None,
        "schema_markup": 0,
    },
    "content": {
        "word_count": 0,
        "paragraph_count": 0,
        "images": {"total": 0, "with_alt": 0, "alt_coverage": 0.0},
        "links": {"total": 0, "internal": 0, "external": 0},
    },
    "technology": {
        "cms": None,
        "frameworks": [],
        "analytics": [],
        "third_party_scripts": 0,
    },
    "security": {"https": False, "mixed_content": False, "cdn": None},
    "robots_txt": {"exists": False},
    "sitemap": {"exists": False, "url_count": 0},
}

PAGESPEED_TEMPLATE = {
    "strategy": "mobile",
    "performance": 0,
    "accessibility": 0,
    "best_practices": 0,
    "seo": 0,
    "load_time_ms": 0,
}

TRAFFIC_TEMPLATE = {
    "monthly_visits": 0,
    "bounce_rate": None,
    "pages_per_visit": None,
    "avg_visit_duration": None,
    "global_rank": None,
    "traffic_sources": {},
}

BACKLINKS_TEMPLATE = {
    "total_backlinks": 0,
    "referring_domains": 0,
    "domain_rank": None,
}

SOCIAL_TEMPLATE = {
    "platform": "",
    "username": "",
    "followers": 0,
    "engagement_rate": 0.0,
    "avg_interactions": 0,
    "posts": 0,
}

TEMPLATES = {
    "site_audit": SITE_AUDIT_TEMPLATE,
    "pagespeed": PAGESPEED_TEMPLATE,
    "traffic": TRAFFIC_TEMPLATE,
    "backlinks": BACKLINKS_TEMPLATE,
    "social": SOCIAL_TEMPLATE,
}


def template_for(metric_kind: str) -> dict:
    if metric_kind.startswith("social"):
        return SOCIAL_TEMPLATE
    return TEMPLATES.get(metric_kind, {})


def _merge(template: dict, raw: dict) -> dict:
    merged = copy.deepcopy(template)
    for key, value in raw.items():
        if value is None and key in merged:
            continue
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def normalize_payload(metric_kind: str, raw: Any) -> dict:
    """Fill missing or null fields of ``raw`` from the template for ``metric_kind``.

    Unknown keys in ``raw`` are kept as-is.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise TypeError(f"{metric_kind} payload must be a mapping, got {type(raw).__name__}")
    return _merge(template_for(metric_kind), raw)
