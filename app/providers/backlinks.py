"""
app/providers/backlinks.py

Backlink index provider client.
"""

from __future__ import annotations

from typing import Any

from app.domain.comparison import normalize_domain
from app.providers.base import BaseProviderClient, ProviderRequestError


class BacklinkIndexClient(BaseProviderClient):
    """
    ``backlinks(domain) -> {total_backlinks, total_ref_domains, source}``.
    """

    def fetch(self, target: str) -> dict[str, Any]:
        domain = normalize_domain(target)
        payload = self._request_json(
            method="GET",
            url=self.endpoint.base_url,
            params={"target": domain, "mode": "domain"},
            headers={"Authorization": f"Bearer {self.endpoint.api_key}"},
        )
        body = self._require_mapping(payload)
        summary = body.get("summary") if isinstance(body.get("summary"), dict) else body

        total_backlinks = self._as_int(summary.get("backlinks", summary.get("total_backlinks")))
        total_ref_domains = self._as_int(
            summary.get("referring_domains", summary.get("total_ref_domains"))
        )
        if total_backlinks is None and total_ref_domains is None:
            raise ProviderRequestError(f"{self.name}: malformed response, no backlink totals.")

        return {
            "total_backlinks": total_backlinks,
            "total_ref_domains": total_ref_domains,
            "source": str(body.get("source") or "backlink_index"),
        }
