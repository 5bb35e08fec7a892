"""
Subject ("your site") snapshot assembly.
"""

from __future__ import annotations

import logging

from app.comparison.cache.base import CacheStoreError
from app.comparison.sections import (
    SECTION_POLICIES,
    SUBJECT_SOURCE_SITE_CACHE,
    SectionPolicy,
    plan_calls,
)
from app.comparison.site_cache import SiteSectionSource
from app.domain.comparison import RequestContext, SiteSnapshot, SnapshotSection, SocialHandles
from app.logging_utils import log_event
from app.providers.gateway import ProviderGateway

logger = logging.getLogger(__name__)


class SubjectSnapshotBuilder:
    """
    Builds the subject snapshot from its per-site caches plus live calls.

    Sections whose policy names the site cache are read from it first and
    fall back to a live fetch when the cache has nothing; the cache is never
    written here. Volatile sections always go to the provider.
    """

    def __init__(
        self,
        *,
        gateway: ProviderGateway,
        site_cache: SiteSectionSource,
        policies: dict[str, SectionPolicy] | None = None,
    ) -> None:
        self._gateway = gateway
        self._site_cache = site_cache
        self._policies = policies or SECTION_POLICIES

    def build(
        self,
        *,
        context: RequestContext,
        site: str,
        handles: SocialHandles,
    ) -> SiteSnapshot:
        calls = plan_calls(self._policies, domain=site, handles=handles)
        cacheable = [
            name
            for name in calls
            if self._policies[name].subject_source == SUBJECT_SOURCE_SITE_CACHE
            and not self._policies[name].volatile
        ]
        cached = self._read_site_cache(context=context, site=site, sections=cacheable)

        live_calls = {name: target for name, target in calls.items() if name not in cached}
        results = self._gateway.fetch_many(live_calls, context=context)

        sections: dict[str, SnapshotSection] = dict(cached)
        for name, result in results.items():
            sections[name] = SnapshotSection(result=result, from_cache=False, fetched_at=context.now)

        snapshot = SiteSnapshot(site=site, sections=sections)
        log_event(
            logger,
            logging.INFO,
            "subject_snapshot_built",
            request_id=context.request_id,
            site=site,
            cached_sections=sorted(cached),
            live_sections=sorted(live_calls),
            failed_sections=snapshot.failed_sections(),
        )
        return snapshot

    def _read_site_cache(
        self,
        *,
        context: RequestContext,
        site: str,
        sections: list[str],
    ) -> dict[str, SnapshotSection]:
        if not sections:
            return {}
        try:
            found = self._site_cache.read_sections(
                subject_identity=context.key.subject_identity,
                domain=site,
                sections=sections,
            )
        except CacheStoreError as exc:
            log_event(
                logger,
                logging.WARNING,
                "site_cache_read_failed",
                request_id=context.request_id,
                site=site,
                error=str(exc),
            )
            return {}
        return {name: section for name, section in found.items() if name in sections}
