"""
SQLAlchemy-backed comparison cache store.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.comparison.cache.base import CacheStore, CacheStoreError, Clock
from app.comparison.sections import SECTION_NAMES
from app.domain.comparison import CacheEntry, ComparisonKey, SiteSnapshot
from app.repositories.comparison_cache_repository import ComparisonCacheRepository


class SQLAlchemyCacheStore(CacheStore):
    """
    Persist cache entries through the repository and DB session.
    """

    def __init__(self, *, session: Session, clock: Clock | None = None) -> None:
        super().__init__(clock=clock)
        self._session = session
        self._repository = ComparisonCacheRepository(session)

    def _load(self, key: ComparisonKey) -> CacheEntry | None:
        try:
            row = self._repository.get(key)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise CacheStoreError(f"comparison cache read failed: {exc}") from exc
        if row is None:
            return None

        return CacheEntry(
            key=key,
            competitor_snapshot=SiteSnapshot.from_dict(
                row.competitor_snapshot or {},
                known_sections=SECTION_NAMES,
            ),
            comparison=dict(row.comparison or {}),
            stored_at=row.stored_at,
            ttl_days=row.ttl_days,
        )

    def _save(self, entry: CacheEntry) -> None:
        try:
            self._repository.upsert(
                key=entry.key,
                competitor_snapshot=entry.competitor_snapshot.to_dict(),
                comparison=entry.comparison,
                stored_at=entry.stored_at,
                ttl_days=entry.ttl_days,
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise CacheStoreError(f"comparison cache write failed: {exc}") from exc
