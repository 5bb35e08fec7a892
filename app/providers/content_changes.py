"""
app/providers/content_changes.py

Content-change monitor based on RSS/Atom feeds and XML sitemaps.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from app.domain.comparison import normalize_domain, parse_datetime
from app.providers.base import BaseProviderClient, ProviderRequestError
from app.providers.parsing import FeedParsingLayer

logger = logging.getLogger(__name__)

FEED_PATHS = [
    "/feed",
    "/rss",
    "/feed.xml",
    "/rss.xml",
    "/atom.xml",
    "/blog/feed",
    "/blog/rss",
    "/feeds/posts/default",
]
SITEMAP_PATHS = [
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
]
_ACTIVITY_WINDOW = timedelta(days=30)
_HISTORY_LIMIT = 20


def classify_update_frequency(posts_last_30_days: int, *, has_dates: bool, has_feed: bool = False) -> str:
    """
    Bucket 30-day post counts; a feed whose items carry no dates counts as inactive.
    """

    if not has_dates:
        return "inactive" if has_feed else "unknown"
    if posts_last_30_days >= 20:
        return "daily"
    if posts_last_30_days >= 4:
        return "weekly"
    if posts_last_30_days >= 1:
        return "monthly"
    return "inactive"


class ContentChangeClient(BaseProviderClient):
    """
    ``changes(domain) -> {activity, monitoring, history}``.

    No API key: the monitor reads the site's public feeds and sitemaps directly.
    """

    requires_api_key = False

    def __init__(self, *args: Any, clock: Callable[[], datetime] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def fetch(self, target: str) -> dict[str, Any]:
        domain = normalize_domain(target)
        base_url = f"https://{domain}"

        feed_url, history = self._discover_feed(base_url)
        sitemap_url, lastmods = self._discover_sitemap(base_url)

        now = self._clock()
        feed_dates = [parse_datetime(item["published"]) for item in history if item["published"]]
        # Sitemap lastmod dates only stand in when the feed carries no dates.
        known_dates = [value for value in feed_dates if value is not None] or lastmods
        recent = [value for value in known_dates if now - value <= _ACTIVITY_WINDOW]
        last_content_date = max(known_dates) if known_dates else None

        return {
            "activity": {
                "update_frequency": classify_update_frequency(
                    len(recent),
                    has_dates=bool(known_dates),
                    has_feed=feed_url is not None,
                ),
                "last_content_date": last_content_date.isoformat() if last_content_date else None,
                "posts_last_30_days": len(recent),
                "is_active": bool(recent),
            },
            "monitoring": {
                "feed_url": feed_url,
                "sitemap_url": sitemap_url,
            },
            "history": history[:_HISTORY_LIMIT],
        }

    def _discover_feed(self, base_url: str) -> tuple[str | None, list[dict[str, Any]]]:
        for path in FEED_PATHS:
            url = f"{base_url}{path}"
            text = self._try_fetch(url)
            if text and FeedParsingLayer.looks_like_feed(text):
                return url, FeedParsingLayer.parse_feed(text)
        return None, []

    def _discover_sitemap(self, base_url: str) -> tuple[str | None, list[datetime]]:
        for path in SITEMAP_PATHS:
            url = f"{base_url}{path}"
            text = self._try_fetch(url)
            if text and ("<urlset" in text[:2000] or "<sitemapindex" in text[:2000]):
                return url, FeedParsingLayer.parse_sitemap_lastmods(text)
        return None, []

    def _try_fetch(self, url: str) -> str | None:
        try:
            return self._request_text(method="GET", url=url)
        except ProviderRequestError as exc:
            logger.debug("Content path unavailable url=%s error=%s", url, exc)
            return None
