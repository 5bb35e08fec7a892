"""
app/services/comparison_service.py

Service orchestration for subject/competitor comparisons.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.orm import Session

from app.comparison.cache import SQLAlchemyCacheStore
from app.comparison.competitor_builder import CompetitorSnapshotBuilder
from app.comparison.coordinator import ComparisonCoordinator
from app.comparison.site_cache import SQLAlchemySiteSectionSource
from app.comparison.subject_builder import SubjectSnapshotBuilder
from app.config import get_comparison_cache_settings, get_provider_http_settings
from app.domain.comparison import (
    ComparisonInputError,
    ComparisonKey,
    ComparisonRequest,
    ComparisonResult,
    RequestContext,
    SiteSnapshot,
    SocialHandles,
    normalize_domain,
)
from app.providers import ProviderGateway, build_provider_clients


class ComparisonService:
    """
    Wires provider clients, caches and the coordinator for one DB session.
    """

    def __init__(self, *, gateway: ProviderGateway | None = None) -> None:
        self._cache_settings = get_comparison_cache_settings()
        if gateway is None:
            http_settings = get_provider_http_settings()
            gateway = ProviderGateway(
                build_provider_clients(http_settings=http_settings),
                max_workers=http_settings.max_workers,
            )
        self._gateway = gateway

    def compare(self, *, db: Session, request: ComparisonRequest) -> ComparisonResult:
        coordinator = ComparisonCoordinator(
            cache_store=SQLAlchemyCacheStore(session=db),
            subject_builder=SubjectSnapshotBuilder(
                gateway=self._gateway,
                site_cache=SQLAlchemySiteSectionSource(session=db),
            ),
            competitor_builder=CompetitorSnapshotBuilder(gateway=self._gateway),
            ttl_days=self._cache_settings.ttl_days,
            cache_enabled=self._cache_settings.enabled,
        )
        return coordinator.run(request)

    def analyze_single(self, *, domain: str | None, handles: SocialHandles) -> SiteSnapshot:
        """
        Fetch every section for one site without touching any cache.
        """

        site = normalize_domain(domain or "")
        if not site:
            raise ComparisonInputError("Missing required fields: domain.")
        context = RequestContext(
            key=ComparisonKey(subject_identity="", subject_site="", competitor_site=site),
            now=datetime.now(timezone.utc),
            force_refresh=True,
        )
        builder = CompetitorSnapshotBuilder(gateway=self._gateway)
        return builder.build_fresh(context=context, site=site, handles=handles)


@lru_cache(maxsize=1)
def get_comparison_service() -> ComparisonService:
    """
    Build and cache the comparison service.
    """

    return ComparisonService()
