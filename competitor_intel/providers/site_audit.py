"""
Site Audit Provider
===================

Scrapes a homepage plus robots.txt and sitemap.xml and extracts SEO,
content, technology and security signals with BeautifulSoup.
"""

import asyncio
import re
from typing import Mapping, Optional
from urllib.parse import urljoin, urlparse

import aiohttp
from bs4 import BeautifulSoup

from competitor_intel.core.errors import ProviderError
from competitor_intel.core.retry import RetryPolicy
from competitor_intel.providers.base import ProviderAdapter
from competitor_intel.utils.helpers import site_url

CMS_SIGNATURES = {
    "WordPress": ["wp-content", "wp-includes"],
    "Shopify": ["cdn.shopify.com"],
    "Wix": ["static.wixstatic.com", "wix.com"],
    "Squarespace": ["squarespace.com"],
    "Webflow": ["webflow.com", "data-wf-page"],
    "Drupal": ["drupal.js", "/sites/default/files"],
    "Joomla": ["/media/jui/", "joomla"],
}

FRAMEWORK_SIGNATURES = {
    "React": ["data-reactroot", "react-dom", "react.production"],
    "Next.js": ["__NEXT_DATA__", "/_next/"],
    "Vue": ["data-v-", "vue.runtime", "vue.min.js"],
    "Nuxt": ["__NUXT__", "/_nuxt/"],
    "Angular": ["ng-version", "angular.min.js"],
    "Gatsby": ["___gatsby"],
    "jQuery": ["jquery"],
    "Bootstrap": ["bootstrap.min.css", "bootstrap.min.js"],
}

ANALYTICS_SIGNATURES = {
    "Google Analytics": ["google-analytics.com", "gtag/js"],
    "Google Tag Manager": ["googletagmanager.com/gtm.js"],
    "Facebook Pixel": ["connect.facebook.net", "fbq("],
    "Hotjar": ["static.hotjar.com"],
    "Segment": ["cdn.segment.com"],
    "Mixpanel": ["cdn.mxpnl.com", "mixpanel"],
}

CDN_HEADERS = {
    "cf-ray": "Cloudflare",
    "x-amz-cf-id": "CloudFront",
    "x-fastly-request-id": "Fastly",
    "x-akamai-transformed": "Akamai",
    "x-vercel-id": "Vercel",
    "x-nf-request-id": "Netlify",
}


def detect_signatures(html: str, signatures: Mapping[str, list[str]]) -> list[str]:
    lowered = html.lower()
    return [
        name for name, needles in signatures.items()
        if any(needle.lower() in lowered for needle in needles)
    ]


def detect_cdn(headers: Mapping[str, str]) -> Optional[str]:
    lowered = {k.lower(): v for k, v in headers.items()}
    for header, provider in CDN_HEADERS.items():
        if header in lowered:
            return provider
    server = lowered.get("server", "").lower()
    if "cloudflare" in server:
        return "Cloudflare"
    if "akamai" in server:
        return "Akamai"
    return None


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower().replace("www.", "")


def parse_homepage(html: str, url: str, headers: Optional[Mapping[str, str]] = None) -> dict:
    """Extract the seo, content, technology and security sections from homepage HTML."""
    headers = headers or {}
    soup = BeautifulSoup(html, "html.parser")
    site_host = _host(url)

    # SEO
    title_tag = soup.find("title")
    meta_desc = soup.find("meta", attrs={"name": "description"})
    canonical = soup.find("link", attrs={"rel": "canonical"})
    twitter_card = soup.find("meta", attrs={"name": "twitter:card"})
    og_tags = soup.find_all("meta", attrs={"property": re.compile(r"^og:")})

    seo = {
        "title": title_tag.text.strip() if title_tag else "",
        "meta_description": meta_desc.get("content", "") if meta_desc else "",
        "canonical": canonical.get("href", "") if canonical else "",
        "headings": {f"h{i}": len(soup.find_all(f"h{i}")) for i in range(1, 4)},
        "open_graph": {tag.get("property"): tag.get("content") for tag in og_tags},
        "twitter_card": twitter_card.get("content") if twitter_card else None,
        "schema_markup": len(soup.find_all("script", attrs={"type": "application/ld+json"})),
    }

    # Content
    images = soup.find_all("img")
    with_alt = sum(1 for img in images if (img.get("alt") or "").strip())
    internal = external = 0
    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href", "")
        if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
            continue
        link_host = _host(urljoin(url, href))
        if link_host == site_host:
            internal += 1
        else:
            external += 1

    scripts = [s.get("src", "") for s in soup.find_all("script", src=True)]
    third_party = [src for src in scripts if _host(urljoin(url, src)) not in ("", site_host)]

    # Word count over visible text only
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    words = soup.get_text(separator=" ").split()

    content = {
        "word_count": len(words),
        "paragraph_count": len(soup.find_all("p")),
        "images": {
            "total": len(images),
            "with_alt": with_alt,
            "alt_coverage": round(with_alt / len(images) * 100, 1) if images else 0.0,
        },
        "links": {"total": internal + external, "internal": internal, "external": external},
    }

    generator = soup.find("meta", attrs={"name": "generator"})
    cms_hits = detect_signatures(html, CMS_SIGNATURES)
    technology = {
        "cms": cms_hits[0] if cms_hits else (generator.get("content") if generator else None),
        "frameworks": detect_signatures(html, FRAMEWORK_SIGNATURES),
        "analytics": detect_signatures(html, ANALYTICS_SIGNATURES),
        "third_party_scripts": len(third_party),
    }

    is_https = url.startswith("https://")
    security = {
        "https": is_https,
        "mixed_content": is_https and bool(re.search(r'(?:src|href)=["\']http://', html, re.I)),
        "cdn": detect_cdn(headers),
    }

    return {
        "url": url,
        "seo": seo,
        "content": content,
        "technology": technology,
        "security": security,
    }


def count_sitemap_urls(xml: str) -> int:
    return len(BeautifulSoup(xml, "html.parser").find_all("loc"))


class SiteAuditProvider(ProviderAdapter):
    """Homepage scrape; the slowest provider, so it gets the audit retry policy."""

    name = "site_audit"
    metric_kind = "site_audit"

    def default_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.audit_max_attempts,
            backoff_seconds=self.settings.audit_backoff_seconds,
            timeout_seconds=self.settings.audit_timeout_seconds,
        )

    async def fetch(self, subject: str, session: aiohttp.ClientSession) -> dict:
        base = site_url(subject)
        headers = {"User-Agent": self.settings.user_agent}

        homepage, robots, sitemap = await asyncio.gather(
            self._get_text(session, base + "/", headers=headers),
            self._probe_robots(session, base, headers),
            self._probe_sitemap(session, base, headers),
            return_exceptions=True,
        )
        for outcome in (homepage, robots, sitemap):
            if isinstance(outcome, BaseException):
                raise outcome

        payload = parse_homepage(homepage.text, homepage.url, homepage.headers)
        payload["status_code"] = homepage.status
        payload["load_time_ms"] = homepage.elapsed_ms
        payload["robots_txt"] = robots
        payload["sitemap"] = sitemap
        return payload

    async def _probe_robots(self, session, base: str, headers: dict) -> dict:
        try:
            response = await self._get_text(session, base + "/robots.txt", headers=headers)
        except ProviderError:
            return {"exists": False}
        return {"exists": True, "has_sitemap": "sitemap:" in response.text.lower()}

    async def _probe_sitemap(self, session, base: str, headers: dict) -> dict:
        try:
            response = await self._get_text(session, base + "/sitemap.xml", headers=headers)
        except ProviderError:
            return {"exists": False, "url_count": 0}
        return {"exists": True, "url_count": count_sitemap_urls(response.text)}
