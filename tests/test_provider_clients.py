"""
tests/test_provider_clients.py

Provider client normalization tests over a scripted HTTP session.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import pytest
import requests

from app.config import ProviderEndpointSettings, ProviderHTTPSettings
from app.providers.ads import MetaAdLibraryClient
from app.providers.backlinks import BacklinkIndexClient
from app.providers.base import MissingCredentialError, ProviderRequestError, ProviderTimeoutError
from app.providers.content_changes import ContentChangeClient, classify_update_frequency
from app.providers.gateway import ProviderGateway
from app.providers.parsing import FeedParsingLayer, HomepageParsingLayer
from app.providers.site_audit import SiteAuditClient
from app.providers.social import InstagramEngagementClient
from app.providers.traffic import TrafficEstimateClient

NOW = datetime(2026, 3, 2, tzinfo=timezone.utc)

HTTP = ProviderHTTPSettings(max_retries=1, backoff_initial_seconds=0.0, backoff_multiplier=1.0)


class _FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)
        self.headers: dict[str, str] = {}
        self.url = ""

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no json")
        return self._body

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class _FakeSession:
    """Responds by URL; unknown URLs return 404. Exceptions in ``routes`` are raised."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[tuple[str, Any]] = []

    def request(self, *, method: str, url: str, params: Any = None, headers: Any = None, timeout: float) -> _FakeResponse:
        self.requests.append((url, params))
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return _FakeResponse(404, text="not found")
        return route

    def get(self, url: str, *, timeout: float, allow_redirects: bool = True) -> _FakeResponse:
        return self.request(method="GET", url=url, timeout=timeout)


def _endpoint(name: str, *, base_url: str = "https://provider.test/api", api_key: str | None = "k") -> ProviderEndpointSettings:
    return ProviderEndpointSettings(name=name, enabled=True, base_url=base_url, api_key=api_key)


class TestBaseClient:
    def test_missing_credential_raises_before_request(self) -> None:
        session = _FakeSession({})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks", api_key=None), http_settings=HTTP, session=session)

        with pytest.raises(MissingCredentialError):
            client("acme.com")
        assert session.requests == []

    def test_disabled_provider_raises(self) -> None:
        endpoint = ProviderEndpointSettings(name="backlinks", enabled=False, base_url="https://x", api_key="k")
        client = BacklinkIndexClient(endpoint=endpoint, http_settings=HTTP, session=_FakeSession({}))

        with pytest.raises(ProviderRequestError, match="provider disabled"):
            client("acme.com")

    def test_repeated_timeouts_raise_timeout_error(self) -> None:
        url = "https://provider.test/api"
        session = _FakeSession({url: requests.Timeout("slow")})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        with pytest.raises(ProviderTimeoutError):
            client("acme.com")
        assert len(session.requests) == 2

    def test_non_retryable_status_fails_fast(self) -> None:
        url = "https://provider.test/api"
        session = _FakeSession({url: _FakeResponse(403, text="forbidden")})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        with pytest.raises(ProviderRequestError, match="HTTP 403"):
            client("acme.com")
        assert len(session.requests) == 1

    def test_other_request_exceptions_are_wrapped(self) -> None:
        url = "https://provider.test/api"
        session = _FakeSession({url: requests.exceptions.ChunkedEncodingError("truncated")})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        with pytest.raises(ProviderRequestError, match="truncated"):
            client("acme.com")
        assert len(session.requests) == 1

    def test_not_found_is_not_logged_as_error(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _FakeSession({})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        with caplog.at_level(logging.DEBUG, logger="app.providers.base"):
            with pytest.raises(ProviderRequestError, match="HTTP 404"):
                client("acme.com")

        assert not [record for record in caplog.records if record.levelno >= logging.WARNING]


class TestBacklinkIndexClient:
    def test_summary_is_normalized(self) -> None:
        session = _FakeSession(
            {"https://provider.test/api": _FakeResponse(body={"summary": {"backlinks": "1200", "referring_domains": 80}})}
        )
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        assert client("https://www.acme.com") == {
            "total_backlinks": 1200,
            "total_ref_domains": 80,
            "source": "backlink_index",
        }
        assert session.requests[0][1]["target"] == "acme.com"

    def test_missing_totals_are_malformed(self) -> None:
        session = _FakeSession({"https://provider.test/api": _FakeResponse(body={"summary": {}})})
        client = BacklinkIndexClient(endpoint=_endpoint("backlinks"), http_settings=HTTP, session=session)

        with pytest.raises(ProviderRequestError, match="malformed"):
            client("acme.com")


class TestTrafficEstimateClient:
    def test_latest_month_and_percentage_bounce_rate(self) -> None:
        url = "https://provider.test/api/acme.com/total-traffic-and-engagement/visits"
        body = {
            "visits": [{"date": "2026-01-01", "visits": 900}, {"date": "2026-02-01", "visits": 1100}],
            "bounce_rate": 45,
        }
        client = TrafficEstimateClient(
            endpoint=_endpoint("traffic"),
            http_settings=HTTP,
            session=_FakeSession({url: _FakeResponse(body=body)}),
        )

        result = client("acme.com")

        assert result["metrics"] == {"monthly_visits": 1100, "bounce_rate": 0.45}


class TestSocialAndAdsClients:
    def test_instagram_engagement_summary(self) -> None:
        body = {
            "profile": {"name": "Acme", "followers_count": 1000, "media_count": 42},
            "posts": [
                {"likes": 30, "comments": 10, "timestamp": "2026-02-23T10:00:00Z"},
                {"likes": 50, "comments": 10, "timestamp": "2026-02-24T10:00:00Z"},
            ],
        }
        client = InstagramEngagementClient(
            endpoint=_endpoint("instagram"),
            http_settings=HTTP,
            session=_FakeSession({"https://provider.test/api/acme": _FakeResponse(body=body)}),
        )

        result = client("@acme")

        assert result["profile"]["followers"] == 1000
        assert result["engagement"]["summary"] == {
            "posts_analyzed": 2,
            "average_interactions": 50.0,
            "engagement_rate": 5.0,
        }
        assert result["engagement"]["posting_pattern"]["busiest_day"] == "monday"

    def test_meta_ads_spend_midpoints(self) -> None:
        body = {
            "data": [
                {"spend": {"lower_bound": "100", "upper_bound": "200"}, "publisher_platforms": ["facebook"]},
                {"spend": {"lower_bound": "0", "upper_bound": "100"}, "publisher_platforms": ["instagram"]},
            ]
        }
        client = MetaAdLibraryClient(
            endpoint=_endpoint("meta_ads"),
            http_settings=HTTP,
            session=_FakeSession({"https://provider.test/api": _FakeResponse(body=body)}),
        )

        result = client("acmehq")

        assert result["total_ads"] == 2
        assert result["estimated_spend"] == 200.0


RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item><title>Older</title><link>https://acme.com/a</link><pubDate>Mon, 05 Jan 2026 10:00:00 GMT</pubDate></item>
  <item><title>Newest</title><link>https://acme.com/c</link><pubDate>Fri, 27 Feb 2026 10:00:00 GMT</pubDate></item>
  <item><title>Recent</title><link>https://acme.com/b</link><pubDate>Tue, 10 Feb 2026 10:00:00 GMT</pubDate></item>
</channel></rss>"""

UNDATED_RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item><title>Welcome</title><link>https://acme.com/welcome</link></item>
</channel></rss>"""

SITEMAP = """<?xml version="1.0"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://rival.com/</loc><lastmod>2026-02-20</lastmod></url>
  <url><loc>https://rival.com/x</loc><lastmod>2025-11-01</lastmod></url>
</urlset>"""


class TestContentChanges:
    @pytest.mark.parametrize(
        ("posts", "has_dates", "expected"),
        [
            (25, True, "daily"),
            (4, True, "weekly"),
            (1, True, "monthly"),
            (0, True, "inactive"),
            (0, False, "unknown"),
        ],
    )
    def test_classify_update_frequency(self, posts: int, has_dates: bool, expected: str) -> None:
        assert classify_update_frequency(posts, has_dates=has_dates) == expected

    def test_parse_feed_orders_newest_first(self) -> None:
        items = FeedParsingLayer.parse_feed(RSS)

        assert [item["title"] for item in items] == ["Newest", "Recent", "Older"]
        assert items[0]["url"] == "https://acme.com/c"

    def test_feed_activity(self) -> None:
        session = _FakeSession({"https://acme.com/feed": _FakeResponse(text=RSS)})
        client = ContentChangeClient(
            endpoint=_endpoint("content_changes", api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
            clock=lambda: NOW,
        )

        result = client("acme.com")

        assert result["activity"]["posts_last_30_days"] == 2
        assert result["activity"]["update_frequency"] == "monthly"
        assert result["activity"]["is_active"] is True
        assert result["monitoring"] == {"feed_url": "https://acme.com/feed", "sitemap_url": None}

    def test_sitemap_dates_used_without_feed(self) -> None:
        session = _FakeSession({"https://rival.com/sitemap.xml": _FakeResponse(text=SITEMAP)})
        client = ContentChangeClient(
            endpoint=_endpoint("content_changes", api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
            clock=lambda: NOW,
        )

        result = client("rival.com")

        assert result["activity"]["posts_last_30_days"] == 1
        assert result["activity"]["last_content_date"].startswith("2026-02-20")
        assert result["history"] == []

    def test_undated_feed_is_inactive(self) -> None:
        assert classify_update_frequency(0, has_dates=False, has_feed=True) == "inactive"

        session = _FakeSession({"https://acme.com/feed": _FakeResponse(text=UNDATED_RSS)})
        client = ContentChangeClient(
            endpoint=_endpoint("content_changes", api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
            clock=lambda: NOW,
        )

        result = client("acme.com")

        assert result["monitoring"]["feed_url"] == "https://acme.com/feed"
        assert result["activity"]["update_frequency"] == "inactive"
        assert result["activity"]["posts_last_30_days"] == 0

    def test_broken_feed_path_moves_to_next_candidate(self) -> None:
        session = _FakeSession(
            {
                "https://acme.com/feed": requests.exceptions.InvalidURL("bad"),
                "https://acme.com/rss": _FakeResponse(text=RSS),
            }
        )
        client = ContentChangeClient(
            endpoint=_endpoint("content_changes", api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
            clock=lambda: NOW,
        )

        result = client("acme.com")

        assert result["monitoring"]["feed_url"] == "https://acme.com/rss"
        assert result["activity"]["posts_last_30_days"] == 2

    def test_nothing_discoverable_is_unknown(self) -> None:
        client = ContentChangeClient(
            endpoint=_endpoint("content_changes", api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=_FakeSession({}),
            clock=lambda: NOW,
        )

        activity = client("quiet.example")["activity"]

        assert activity["update_frequency"] == "unknown"
        assert activity["is_active"] is False


class TestHomepageParsing:
    def test_headings_technology_and_security(self) -> None:
        html = """
        <html><head><meta name="generator" content="WordPress 6.4">
        <script src="https://www.googletagmanager.com/gtag/js"></script></head>
        <body><h1>Acme</h1><h2>A</h2><h2>B</h2><img src="http://cdn.acme.com/x.png"></body></html>
        """

        result = HomepageParsingLayer.inspect(
            html=html,
            final_url="https://acme.com/",
            headers={"CF-RAY": "abc"},
        )

        assert result["headings"] == {"h1_count": 1, "h2_count": 2, "h3_count": 0}
        assert result["technology"]["cms"] == "WordPress"
        assert "Google Tag Manager" in result["technology"]["analytics"]
        assert result["security"]["cdn_provider"] == "Cloudflare"
        assert result["security"]["has_mixed_content"] is True


class TestSiteAuditClient:
    PAGESPEED_URL = "https://pagespeed.test/run"

    def _lighthouse(self) -> dict:
        return {
            "lighthouseResult": {
                "categories": {
                    "performance": {"score": 0.52},
                    "accessibility": {"score": 0.9},
                    "best-practices": {"score": 1},
                    "seo": {"score": None},
                },
                "audits": {
                    "render-blocking-resources": {
                        "title": "Eliminate render-blocking resources",
                        "score": 0.3,
                        "details": {"type": "opportunity", "overallSavingsMs": 900},
                    },
                    "uses-webp-images": {
                        "title": "Serve images in next-gen formats",
                        "score": 0.95,
                        "details": {"type": "opportunity", "overallSavingsMs": 100},
                    },
                },
            }
        }

    def test_scores_opportunities_and_homepage(self) -> None:
        homepage = _FakeResponse(text="<html><body><h1>Acme</h1></body></html>")
        homepage.url = "https://acme.com/"
        session = _FakeSession(
            {
                self.PAGESPEED_URL: _FakeResponse(body=self._lighthouse()),
                "https://acme.com": homepage,
                "https://acme.com/robots.txt": _FakeResponse(text="User-agent: *"),
            }
        )
        client = SiteAuditClient(
            endpoint=_endpoint("audit", base_url=self.PAGESPEED_URL, api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
        )

        result = client("acme.com")

        assert result["category_scores"] == {
            "performance": 52.0,
            "accessibility": 90.0,
            "best_practices": 100.0,
            "seo": None,
        }
        assert [item["id"] for item in result["opportunities"]] == ["render-blocking-resources"]
        assert result["headings"]["h1_count"] == 1
        assert result["security"]["has_robots_txt"] is True
        assert result["security"]["has_sitemap"] is False

    def test_unreachable_homepage_keeps_scores(self) -> None:
        session = _FakeSession({self.PAGESPEED_URL: _FakeResponse(body=self._lighthouse())})
        client = SiteAuditClient(
            endpoint=_endpoint("audit", base_url=self.PAGESPEED_URL, api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
        )

        result = client("acme.com")

        assert "headings" not in result
        assert result["category_scores"]["performance"] == 52.0

    def test_homepage_redirect_loop_keeps_scores(self) -> None:
        session = _FakeSession(
            {
                self.PAGESPEED_URL: _FakeResponse(body=self._lighthouse()),
                "https://acme.com": requests.TooManyRedirects("loop"),
            }
        )
        client = SiteAuditClient(
            endpoint=_endpoint("audit", base_url=self.PAGESPEED_URL, api_key=None),
            http_settings=ProviderHTTPSettings(max_retries=0),
            session=session,
        )

        result = ProviderGateway({"audit": client}).fetch("audit", "acme.com")

        assert result.ok
        assert "headings" not in result.data
        assert result.data["category_scores"]["performance"] == 52.0
