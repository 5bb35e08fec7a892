"""
Competitor snapshot assembly for the cache-hit and cache-miss paths.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from app.comparison.sections import SECTION_POLICIES, SectionPolicy, plan_calls
from app.domain.comparison import RequestContext, SiteSnapshot, SnapshotSection, SocialHandles
from app.logging_utils import log_event
from app.providers.gateway import ProviderGateway

logger = logging.getLogger(__name__)


class CompetitorSnapshotBuilder:
    """
    Builds the competitor snapshot either from scratch or by refreshing the
    volatile sections of a cached snapshot.
    """

    def __init__(
        self,
        *,
        gateway: ProviderGateway,
        policies: dict[str, SectionPolicy] | None = None,
    ) -> None:
        self._gateway = gateway
        self._policies = policies or SECTION_POLICIES

    @property
    def volatile_sections(self) -> frozenset[str]:
        return frozenset(name for name, policy in self._policies.items() if policy.volatile)

    def build_fresh(
        self,
        *,
        context: RequestContext,
        site: str,
        handles: SocialHandles,
    ) -> SiteSnapshot:
        """
        Cache-miss path: fetch every section that has a target.
        """

        calls = plan_calls(self._policies, domain=site, handles=handles)
        results = self._gateway.fetch_many(calls, context=context)
        snapshot = SiteSnapshot(
            site=site,
            sections={
                name: SnapshotSection(result=result, from_cache=False, fetched_at=context.now)
                for name, result in results.items()
            },
        )
        log_event(
            logger,
            logging.INFO,
            "competitor_snapshot_built",
            request_id=context.request_id,
            site=site,
            path="miss",
            sections=sorted(snapshot.sections),
            failed_sections=snapshot.failed_sections(),
        )
        return snapshot

    def build_from_cache(
        self,
        *,
        context: RequestContext,
        cached: SiteSnapshot,
        site: str,
        handles: SocialHandles,
    ) -> SiteSnapshot:
        """
        Cache-hit path: keep cached non-volatile sections, refetch volatile ones.

        Stored volatile sections are dropped before the overlay so ad data is
        never replayed, even when its fresh fetch is skipped for lack of a handle.
        """

        volatile = self.volatile_sections
        kept = {
            name: replace(section, from_cache=True)
            for name, section in cached.sections.items()
            if name not in volatile and name in self._policies
        }

        calls = {
            name: target
            for name, target in plan_calls(self._policies, domain=site, handles=handles).items()
            if name in volatile
        }
        results = self._gateway.fetch_many(calls, context=context)
        fresh = {
            name: SnapshotSection(result=result, from_cache=False, fetched_at=context.now)
            for name, result in results.items()
        }

        snapshot = SiteSnapshot(site=site, sections=kept).overlay(fresh)
        log_event(
            logger,
            logging.INFO,
            "competitor_snapshot_built",
            request_id=context.request_id,
            site=site,
            path="hit",
            refreshed_sections=sorted(fresh),
            failed_sections=snapshot.failed_sections(),
        )
        return snapshot
