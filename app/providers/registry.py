"""
Provider client registry and factory.
"""

from __future__ import annotations

from collections.abc import Mapping

import requests

from app.config import ProviderHTTPSettings, get_provider_endpoint_settings
from app.providers.ads import GoogleAdsTransparencyClient, MetaAdLibraryClient
from app.providers.backlinks import BacklinkIndexClient
from app.providers.base import BaseProviderClient
from app.providers.content_changes import ContentChangeClient
from app.providers.site_audit import SiteAuditClient
from app.providers.social import FacebookEngagementClient, InstagramEngagementClient
from app.providers.traffic import TrafficEstimateClient

BUILTIN_PROVIDERS: dict[str, type[BaseProviderClient]] = {
    "audit": SiteAuditClient,
    "backlinks": BacklinkIndexClient,
    "traffic": TrafficEstimateClient,
    "content_changes": ContentChangeClient,
    "instagram": InstagramEngagementClient,
    "facebook": FacebookEngagementClient,
    "google_ads": GoogleAdsTransparencyClient,
    "meta_ads": MetaAdLibraryClient,
}


def build_provider_clients(
    *,
    http_settings: ProviderHTTPSettings,
    session: requests.Session | None = None,
    overrides: Mapping[str, type[BaseProviderClient]] | None = None,
) -> dict[str, BaseProviderClient]:
    """
    Instantiate one client per provider, sharing a single HTTP session.
    """

    classes = dict(BUILTIN_PROVIDERS)
    if overrides:
        classes.update(overrides)

    shared_session = session or requests.Session()
    return {
        name: client_class(
            endpoint=get_provider_endpoint_settings(name),
            http_settings=http_settings,
            session=shared_session,
        )
        for name, client_class in classes.items()
    }
