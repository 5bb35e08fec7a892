"""
app/providers/ads.py

Ad-monitoring provider clients (Google ads transparency, Meta ad library).
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from app.providers.base import BaseProviderClient


class AdMonitoringClient(BaseProviderClient):
    """
    ``ads(handle_or_domain) -> {total_ads, formats_or_keywords, estimated_spend}``.
    """

    _MAX_TERMS = 10

    def fetch(self, target: str) -> dict[str, Any]:
        query = target.strip().lstrip("@")
        payload = self._request_json(
            method="GET",
            url=self.endpoint.base_url,
            params=self.query_params(query),
        )
        body = self._require_mapping(payload)
        ads = [ad for ad in body.get("data", body.get("ads", [])) if isinstance(ad, dict)]

        total_ads = self._as_int(body.get("total_ads"))
        return {
            "query": query,
            "total_ads": total_ads if total_ads is not None else len(ads),
            "formats_or_keywords": self._top_terms(ads),
            "estimated_spend": self._estimated_spend(body, ads),
        }

    def query_params(self, query: str) -> dict[str, Any]:
        return {"q": query, "key": self.endpoint.api_key}

    def _top_terms(self, ads: list[dict[str, Any]]) -> list[str]:
        counter: Counter[str] = Counter()
        for ad in ads:
            for term in self.terms_for(ad):
                counter[term] += 1
        # Sort by frequency, then name, so equal counts order deterministically.
        return [term for term, _ in sorted(counter.items(), key=lambda item: (-item[1], item[0]))][
            : self._MAX_TERMS
        ]

    def terms_for(self, ad: dict[str, Any]) -> list[str]:
        value = ad.get("format") or ad.get("ad_format")
        return [str(value).lower()] if value else []

    def _estimated_spend(self, body: dict[str, Any], ads: list[dict[str, Any]]) -> float | None:
        direct = self._as_float(body.get("estimated_spend"))
        if direct is not None:
            return direct
        spends = [self._spend_midpoint(ad.get("spend")) for ad in ads]
        known = [value for value in spends if value is not None]
        return round(sum(known), 2) if known else None

    def _spend_midpoint(self, spend: Any) -> float | None:
        if isinstance(spend, dict):
            lower = self._as_float(spend.get("lower_bound"))
            upper = self._as_float(spend.get("upper_bound"))
            if lower is not None and upper is not None:
                return (lower + upper) / 2
            return lower if lower is not None else upper
        return self._as_float(spend)


class GoogleAdsTransparencyClient(AdMonitoringClient):
    """Searches advertisers by name or domain; reports ad formats."""

    def query_params(self, query: str) -> dict[str, Any]:
        return {"query": query, "region": "anywhere", "key": self.endpoint.api_key}


class MetaAdLibraryClient(AdMonitoringClient):
    """Searches the ad library by page handle; reports frequent creative keywords."""

    def query_params(self, query: str) -> dict[str, Any]:
        return {
            "search_page_ids": query,
            "ad_reached_countries": "ALL",
            "ad_active_status": "ACTIVE",
            "fields": "ad_creative_bodies,spend,publisher_platforms",
            "access_token": self.endpoint.api_key,
        }

    def terms_for(self, ad: dict[str, Any]) -> list[str]:
        bodies = ad.get("ad_creative_bodies") or []
        terms: list[str] = []
        for body in bodies if isinstance(bodies, list) else []:
            for word in str(body).lower().split():
                cleaned = word.strip(".,!?:;\"'()")
                if len(cleaned) > 4 and cleaned not in terms:
                    terms.append(cleaned)
        return terms
