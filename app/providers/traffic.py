"""
app/providers/traffic.py

Traffic estimate provider client.
"""

from __future__ import annotations

from typing import Any

from app.domain.comparison import normalize_domain
from app.providers.base import BaseProviderClient, ProviderRequestError


class TrafficEstimateClient(BaseProviderClient):
    """
    ``traffic(domain) -> {source, metrics: {monthly_visits, bounce_rate}}``.

    Bounce rate is a 0-1 fraction; providers reporting percentages are rescaled.
    """

    def fetch(self, target: str) -> dict[str, Any]:
        domain = normalize_domain(target)
        url = f"{self.endpoint.base_url.rstrip('/')}/{domain}/total-traffic-and-engagement/visits"
        payload = self._request_json(
            method="GET",
            url=url,
            params={"api_key": self.endpoint.api_key, "granularity": "monthly", "main_domain_only": "false"},
        )
        body = self._require_mapping(payload)

        monthly_visits = self._monthly_visits(body)
        bounce_rate = self._as_float(body.get("bounce_rate"))
        if bounce_rate is not None and bounce_rate > 1:
            bounce_rate = round(bounce_rate / 100, 4)
        if monthly_visits is None and bounce_rate is None:
            raise ProviderRequestError(f"{self.name}: malformed response, no traffic metrics.")

        return {
            "source": str(body.get("source") or "similarweb_estimate"),
            "metrics": {
                "monthly_visits": monthly_visits,
                "bounce_rate": bounce_rate,
            },
        }

    def _monthly_visits(self, body: dict[str, Any]) -> int | None:
        direct = self._as_int(body.get("monthly_visits"))
        if direct is not None:
            return direct

        visits = body.get("visits")
        if not isinstance(visits, list) or not visits:
            return None
        # Most recent complete month.
        latest = max(
            (item for item in visits if isinstance(item, dict) and item.get("date")),
            key=lambda item: str(item["date"]),
            default=None,
        )
        return self._as_int(latest.get("visits")) if latest else None
