"""
tests/fakes.py

Scripted providers, a controllable clock and snapshot helpers.
Nothing here touches the network or a database.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

from app.domain.comparison import Ok, SiteSnapshot, SnapshotSection, SocialHandles
from app.providers.gateway import ProviderGateway

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def site_payloads(scale: int) -> dict[str, dict[str, Any]]:
    """Successful provider payloads for one site; ``scale`` keeps sites distinguishable."""
    return {
        "audit": {
            "category_scores": {
                "performance": 60 + scale,
                "accessibility": 80,
                "seo": 70 + scale,
                "best_practices": 90,
            },
            "opportunities": [],
            "headings": {"h1_count": 1, "h2_count": 3 * scale, "h3_count": 0},
            "technology": {"cms": "WordPress", "frameworks": ["jQuery"], "analytics": []},
            "security": {
                "is_https": True,
                "has_cdn": scale > 1,
                "cdn_provider": "Cloudflare" if scale > 1 else None,
                "has_mixed_content": False,
                "has_robots_txt": True,
                "has_sitemap": True,
            },
        },
        "backlinks": {"total_backlinks": 1000 * scale, "total_ref_domains": 50 * scale, "source": "fixture"},
        "traffic": {"source": "fixture", "metrics": {"monthly_visits": 5000 * scale, "bounce_rate": 40.0 + scale}},
        "content_changes": {
            "activity": {
                "update_frequency": "weekly",
                "last_content_date": None,
                "posts_last_30_days": 4 * scale,
                "is_active": True,
            },
            "monitoring": {"feed_url": None, "sitemap_url": None},
            "history": [],
        },
        "instagram": {
            "profile": {"handle": "ig", "name": "ig", "followers": 1200 * scale, "posts_count": 30},
            "engagement": {"summary": {"posts_analyzed": 12, "average_interactions": 40.0, "engagement_rate": 3.3}},
        },
        "facebook": {
            "profile": {"handle": "fb", "name": "fb", "followers": 800 * scale, "posts_count": 20},
            "engagement": {"summary": {"posts_analyzed": 10, "average_interactions": 12.0, "engagement_rate": 1.5}},
        },
        "google_ads": {"query": "", "total_ads": 3 * scale, "formats_or_keywords": ["text"], "estimated_spend": None},
        "meta_ads": {"query": "", "total_ads": 2 * scale, "formats_or_keywords": [], "estimated_spend": 150.0 * scale},
    }


class FakeProviders:
    """
    Scripted provider fetchers keyed by provider name and target.

    ``calls`` records every ``(provider, target)`` pair in call order.
    """

    def __init__(self) -> None:
        self.payloads: dict[tuple[str, str], dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def load_site(self, targets: dict[str, str], scale: int) -> None:
        for name, payload in site_payloads(scale).items():
            self.payloads[(name, targets[name])] = payload

    def fetcher(self, name: str):
        def _fetch(target: str) -> dict[str, Any]:
            self.calls.append((name, target))
            if name in self.failures:
                raise self.failures[name]
            return copy.deepcopy(self.payloads[(name, target)])

        return _fetch

    def gateway(self) -> ProviderGateway:
        names = {name for name, _ in self.payloads}
        return ProviderGateway({name: self.fetcher(name) for name in names}, max_workers=4)

    def calls_for(self, target: str) -> list[str]:
        return sorted(name for name, called_target in self.calls if called_target == target)


SUBJECT_HANDLES = SocialHandles(instagram="acme", facebook="acmehq")
COMPETITOR_HANDLES = SocialHandles(facebook="rivalhq", google_ads="Rival Inc")

SUBJECT_TARGETS = {
    "audit": "acme.com",
    "backlinks": "acme.com",
    "traffic": "acme.com",
    "content_changes": "acme.com",
    "instagram": "acme",
    "facebook": "acmehq",
    "google_ads": "acme.com",
    "meta_ads": "acmehq",
}
COMPETITOR_TARGETS = {
    "audit": "rival.com",
    "backlinks": "rival.com",
    "traffic": "rival.com",
    "content_changes": "rival.com",
    "instagram": "rival_ig",
    "facebook": "rivalhq",
    "google_ads": "Rival Inc",
    "meta_ads": "rivalhq",
}


def snapshot(site: str, **sections: dict[str, Any]) -> SiteSnapshot:
    """Build a snapshot whose sections are all successful with the given data."""
    return SiteSnapshot(
        site=site,
        sections={name: SnapshotSection(result=Ok(data), fetched_at=T0) for name, data in sections.items()},
    )
