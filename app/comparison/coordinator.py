"""
Request orchestration for subject/competitor comparisons.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from app.comparison.cache.base import CacheStore, CacheStoreError, Clock, utc_now
from app.comparison.competitor_builder import CompetitorSnapshotBuilder
from app.comparison.engine import ComparisonEngine
from app.comparison.subject_builder import SubjectSnapshotBuilder
from app.domain.comparison import (
    CacheEntry,
    ComparisonRequest,
    ComparisonResult,
    RequestContext,
    SiteSnapshot,
)
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


class ComparisonCoordinator:
    """
    Decides between the cache-hit and cache-miss paths for one request.

    Hit: subject rebuilt, competitor restored from cache with volatile
    sections refetched, comparison recomputed, nothing written.
    Miss (or forced refresh): both snapshots fetched, comparison computed,
    competitor snapshot and comparison persisted with the configured TTL.
    """

    def __init__(
        self,
        *,
        cache_store: CacheStore,
        subject_builder: SubjectSnapshotBuilder,
        competitor_builder: CompetitorSnapshotBuilder,
        engine: ComparisonEngine | None = None,
        ttl_days: int = 7,
        cache_enabled: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self._cache_store = cache_store
        self._subject_builder = subject_builder
        self._competitor_builder = competitor_builder
        self._engine = engine or ComparisonEngine()
        self._ttl_days = ttl_days
        self._cache_enabled = cache_enabled
        self._clock = clock or utc_now

    def run(self, request: ComparisonRequest) -> ComparisonResult:
        """
        Produce a comparison; raises ComparisonInputError before any I/O on bad input.
        """

        key = request.validate()
        context = RequestContext(key=key, now=self._clock(), force_refresh=request.force_refresh)

        entry = self._lookup(context)
        subject, competitor = self._build_snapshots(context=context, request=request, entry=entry)
        comparison = self._engine.compare(subject, competitor).to_dict()

        if entry is None:
            self._persist(context=context, competitor=competitor, comparison=comparison)

        return ComparisonResult(
            subject_snapshot=subject,
            competitor_snapshot=competitor,
            comparison=comparison,
            timestamp=context.now,
            cached=entry is not None,
            cache_age=entry.age(context.now) if entry is not None else None,
        )

    def _lookup(self, context: RequestContext) -> CacheEntry | None:
        if context.force_refresh or not self._cache_enabled:
            log_event(
                logger,
                logging.INFO,
                "cache_bypassed",
                request_id=context.request_id,
                force_refresh=context.force_refresh,
                cache_enabled=self._cache_enabled,
            )
            return None

        try:
            entry = self._cache_store.get(context.key, now=context.now)
        except CacheStoreError as exc:
            log_event(
                logger,
                logging.WARNING,
                "cache_read_failed",
                request_id=context.request_id,
                error=str(exc),
            )
            return None

        log_event(
            logger,
            logging.INFO,
            "cache_hit" if entry is not None else "cache_miss",
            request_id=context.request_id,
            subject_site=context.key.subject_site,
            competitor_site=context.key.competitor_site,
        )
        return entry

    def _build_snapshots(
        self,
        *,
        context: RequestContext,
        request: ComparisonRequest,
        entry: CacheEntry | None,
    ) -> tuple[SiteSnapshot, SiteSnapshot]:
        # The two snapshots are independent; the comparison waits for both.
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="snapshot") as executor:
            subject_future = executor.submit(
                self._subject_builder.build,
                context=context,
                site=context.key.subject_site,
                handles=request.subject_handles,
            )
            if entry is not None:
                competitor_future = executor.submit(
                    self._competitor_builder.build_from_cache,
                    context=context,
                    cached=entry.competitor_snapshot,
                    site=context.key.competitor_site,
                    handles=request.competitor_handles,
                )
            else:
                competitor_future = executor.submit(
                    self._competitor_builder.build_fresh,
                    context=context,
                    site=context.key.competitor_site,
                    handles=request.competitor_handles,
                )
            return subject_future.result(), competitor_future.result()

    def _persist(self, *, context: RequestContext, competitor: SiteSnapshot, comparison: dict) -> None:
        if not self._cache_enabled:
            return
        try:
            self._cache_store.put(
                context.key,
                competitor_snapshot=competitor,
                comparison=comparison,
                ttl_days=self._ttl_days,
            )
        except CacheStoreError as exc:
            log_event(
                logger,
                logging.ERROR,
                "cache_write_failed",
                request_id=context.request_id,
                error=str(exc),
            )
            return
        log_event(
            logger,
            logging.INFO,
            "cache_written",
            request_id=context.request_id,
            ttl_days=self._ttl_days,
        )
