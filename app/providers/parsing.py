"""
BeautifulSoup-based parsing layer for homepages, feeds and sitemaps.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from bs4 import BeautifulSoup, Tag

from app.domain.comparison import parse_datetime

CMS_MARKERS: list[tuple[str, str]] = [
    ("wp-content", "WordPress"),
    ("cdn.shopify.com", "Shopify"),
    ("static.wixstatic.com", "Wix"),
    ("squarespace.com", "Squarespace"),
    ("/sites/default/files", "Drupal"),
    ("webflow.com", "Webflow"),
    ("ghost.io", "Ghost"),
]
FRAMEWORK_MARKERS: list[tuple[str, str]] = [
    ("__next_data__", "Next.js"),
    ("__nuxt", "Nuxt"),
    ("ng-version", "Angular"),
    ("data-reactroot", "React"),
    ("data-v-app", "Vue"),
    ("gatsby", "Gatsby"),
    ("jquery", "jQuery"),
]
ANALYTICS_MARKERS: list[tuple[str, str]] = [
    ("googletagmanager.com", "Google Tag Manager"),
    ("google-analytics.com", "Google Analytics"),
    ("gtag(", "Google Analytics"),
    ("connect.facebook.net", "Meta Pixel"),
    ("static.hotjar.com", "Hotjar"),
    ("cdn.segment.com", "Segment"),
    ("plausible.io", "Plausible"),
]
CDN_HEADERS: list[tuple[str, str]] = [
    ("cf-ray", "Cloudflare"),
    ("x-amz-cf-id", "CloudFront"),
    ("x-fastly-request-id", "Fastly"),
    ("x-akamai-transformed", "Akamai"),
    ("x-vercel-id", "Vercel"),
    ("x-nf-request-id", "Netlify"),
    ("x-azure-ref", "Azure Front Door"),
]


class HomepageParsingLayer:
    """
    Deterministic extractors for one fetched homepage.
    """

    @classmethod
    def inspect(
        cls,
        *,
        html: str,
        final_url: str,
        headers: Mapping[str, str],
    ) -> dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        lowered = html.lower()
        return {
            "headings": cls.extract_headings(soup),
            "technology": cls.detect_technology(soup=soup, lowered_html=lowered),
            "security": cls.inspect_security(soup=soup, final_url=final_url, headers=headers),
        }

    @staticmethod
    def extract_headings(soup: BeautifulSoup) -> dict[str, int]:
        return {
            "h1_count": len(soup.find_all("h1")),
            "h2_count": len(soup.find_all("h2")),
            "h3_count": len(soup.find_all("h3")),
        }

    @classmethod
    def detect_technology(cls, *, soup: BeautifulSoup, lowered_html: str) -> dict[str, Any]:
        cms: str | None = None
        generator = soup.find("meta", attrs={"name": re.compile("^generator$", re.IGNORECASE)})
        if isinstance(generator, Tag):
            content = str(generator.get("content") or "").strip()
            if content:
                cms = content.split(" ", 1)[0]
        if cms is None:
            cms = next((name for marker, name in CMS_MARKERS if marker in lowered_html), None)

        return {
            "cms": cms,
            "frameworks": cls._matches(FRAMEWORK_MARKERS, lowered_html),
            "analytics": cls._matches(ANALYTICS_MARKERS, lowered_html),
        }

    @staticmethod
    def inspect_security(
        *,
        soup: BeautifulSoup,
        final_url: str,
        headers: Mapping[str, str],
    ) -> dict[str, Any]:
        is_https = final_url.lower().startswith("https://")
        lowered_headers = {key.lower(): str(value) for key, value in headers.items()}
        cdn_provider = next((name for header, name in CDN_HEADERS if header in lowered_headers), None)
        if cdn_provider is None and "akamaighost" in lowered_headers.get("server", "").lower():
            cdn_provider = "Akamai"

        has_mixed_content = False
        if is_https:
            for node in soup.find_all(["img", "script", "iframe", "link", "source"]):
                source = str(node.get("src") or node.get("href") or "")
                if source.lower().startswith("http://"):
                    has_mixed_content = True
                    break

        return {
            "is_https": is_https,
            "has_cdn": cdn_provider is not None,
            "cdn_provider": cdn_provider,
            "has_mixed_content": has_mixed_content,
        }

    @staticmethod
    def _matches(markers: list[tuple[str, str]], lowered_html: str) -> list[str]:
        found: list[str] = []
        for marker, name in markers:
            if marker in lowered_html and name not in found:
                found.append(name)
        return found


class FeedParsingLayer:
    """
    RSS/Atom feed and XML sitemap extractors.
    """

    @classmethod
    def parse_feed(cls, xml: str) -> list[dict[str, Any]]:
        """
        Return feed items newest first as ``{title, url, published}`` dicts.
        """

        soup = BeautifulSoup(xml, "xml")
        items: list[dict[str, Any]] = []
        for node in soup.find_all(["item", "entry"]):
            title_node = node.find("title")
            published = cls._first_date(node, ["pubDate", "published", "updated", "date"])
            items.append(
                {
                    "title": title_node.get_text(" ", strip=True)[:180] if title_node else "untitled",
                    "url": cls._item_link(node),
                    "published": published.isoformat() if published else None,
                }
            )
        items.sort(key=lambda item: item["published"] or "", reverse=True)
        return items[:100]

    @classmethod
    def parse_sitemap_lastmods(cls, xml: str) -> list[datetime]:
        soup = BeautifulSoup(xml, "xml")
        dates: list[datetime] = []
        for node in soup.find_all("lastmod"):
            parsed = parse_datetime(node.get_text(strip=True))
            if parsed is not None:
                dates.append(parsed)
        return sorted(dates, reverse=True)

    @staticmethod
    def looks_like_feed(xml: str) -> bool:
        head = xml[:2000].lower()
        return "<rss" in head or "<feed" in head or "<rdf:rdf" in head

    @staticmethod
    def _item_link(node: Tag) -> str | None:
        link = node.find("link")
        if link is None:
            guid = node.find("guid")
            return guid.get_text(strip=True) if guid else None
        href = link.get("href")
        if href:
            return str(href)
        text = link.get_text(strip=True)
        return text or None

    @staticmethod
    def _first_date(node: Tag, names: list[str]) -> datetime | None:
        for name in names:
            found = node.find(name)
            if found is None:
                continue
            raw = found.get_text(strip=True)
            parsed = parse_datetime(raw)
            if parsed is None:
                try:
                    parsed = parsedate_to_datetime(raw)
                except (TypeError, ValueError):
                    continue
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        return None
