"""
app/providers/site_audit.py

Site-audit/performance prober backed by PageSpeed Insights plus a homepage inspection.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from app.domain.comparison import normalize_domain
from app.providers.base import BaseProviderClient, ProviderRequestError
from app.providers.parsing import HomepageParsingLayer

logger = logging.getLogger(__name__)

PAGESPEED_CATEGORIES: dict[str, str] = {
    "performance": "performance",
    "accessibility": "accessibility",
    "best-practices": "best_practices",
    "seo": "seo",
}
_OPPORTUNITY_SCORE_THRESHOLD = 0.9
_MAX_OPPORTUNITIES = 10


class SiteAuditClient(BaseProviderClient):
    """
    ``probe(domain) -> {category_scores, opportunities, headings?, technology?, security?}``.

    Category scores are 0-100. The homepage-derived keys are omitted when the
    homepage itself cannot be fetched; the PageSpeed part is required.
    """

    requires_api_key = False

    def fetch(self, target: str) -> dict[str, Any]:
        domain = normalize_domain(target)
        page_url = f"https://{domain}"

        params: list[tuple[str, str]] = [("url", page_url), ("strategy", "mobile")]
        params.extend(("category", category.upper().replace("-", "_")) for category in PAGESPEED_CATEGORIES)
        if self.endpoint.api_key:
            params.append(("key", self.endpoint.api_key))

        payload = self._request_json(method="GET", url=self.endpoint.base_url, params=params)
        lighthouse = self._require_mapping(payload, key="lighthouseResult")

        report: dict[str, Any] = {
            "category_scores": self._category_scores(lighthouse),
            "opportunities": self._opportunities(lighthouse),
        }
        report.update(self._inspect_homepage(page_url, domain))
        return report

    @staticmethod
    def _category_scores(lighthouse: dict[str, Any]) -> dict[str, float | None]:
        categories = lighthouse.get("categories")
        if not isinstance(categories, dict):
            categories = {}
        scores: dict[str, float | None] = {}
        for source_name, target_name in PAGESPEED_CATEGORIES.items():
            category = categories.get(source_name)
            raw_score = category.get("score") if isinstance(category, dict) else None
            scores[target_name] = (
                round(float(raw_score) * 100, 1) if isinstance(raw_score, (int, float)) else None
            )
        return scores

    @staticmethod
    def _opportunities(lighthouse: dict[str, Any]) -> list[dict[str, Any]]:
        audits = lighthouse.get("audits")
        if not isinstance(audits, dict):
            return []

        found: list[dict[str, Any]] = []
        for audit_id, audit in audits.items():
            if not isinstance(audit, dict):
                continue
            details = audit.get("details")
            score = audit.get("score")
            if not isinstance(details, dict) or details.get("type") != "opportunity":
                continue
            if not isinstance(score, (int, float)) or score >= _OPPORTUNITY_SCORE_THRESHOLD:
                continue
            found.append(
                {
                    "id": audit_id,
                    "title": audit.get("title") or audit_id,
                    "savings_ms": details.get("overallSavingsMs"),
                }
            )
        found.sort(key=lambda item: (-(item["savings_ms"] or 0), item["id"]))
        return found[:_MAX_OPPORTUNITIES]

    def _inspect_homepage(self, page_url: str, domain: str) -> dict[str, Any]:
        try:
            response = self._request(method="GET", url=page_url)
        except ProviderRequestError as exc:
            logger.warning("Homepage inspection skipped domain=%s error=%s", domain, exc)
            return {}

        inspected = HomepageParsingLayer.inspect(
            html=response.text,
            final_url=response.url or page_url,
            headers=response.headers,
        )
        inspected["security"]["has_robots_txt"] = self._exists(f"https://{domain}/robots.txt")
        inspected["security"]["has_sitemap"] = self._exists(f"https://{domain}/sitemap.xml")
        return inspected

    def _exists(self, url: str) -> bool:
        try:
            response = self._session.get(url, timeout=self._timeout_seconds, allow_redirects=True)
        except requests.RequestException:
            return False
        return response.status_code == 200
