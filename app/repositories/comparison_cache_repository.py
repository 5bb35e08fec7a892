"""
app/repositories/comparison_cache_repository.py

Persistence layer for comparison cache entries.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.comparison import ComparisonKey
from db.models.comparison_cache_entry import COMPARISON_CACHE_KEY_CONSTRAINT, ComparisonCacheEntry


class ComparisonCacheRepository:
    """
    Repository for reading and upserting ComparisonCacheEntry rows.

    Upsert semantics: writing a key that already exists replaces the
    snapshot, comparison, ``stored_at`` and ``ttl_days`` in place.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, key: ComparisonKey) -> ComparisonCacheEntry | None:
        stmt = select(ComparisonCacheEntry).where(
            ComparisonCacheEntry.subject_identity == key.subject_identity,
            ComparisonCacheEntry.subject_site == key.subject_site,
            ComparisonCacheEntry.competitor_site == key.competitor_site,
        )
        return self._session.scalars(stmt).one_or_none()

    def upsert(
        self,
        *,
        key: ComparisonKey,
        competitor_snapshot: dict[str, Any],
        comparison: dict[str, Any],
        stored_at: datetime,
        ttl_days: int,
    ) -> None:
        """
        Insert or overwrite the row for ``key``.

        Parameters
        ----------
        key:
            Subject identity, subject site and competitor site of the slot.
        competitor_snapshot:
            Serialized competitor ``SiteSnapshot``.
        comparison:
            Serialized comparison computed alongside the snapshot.
        stored_at:
            Timezone-aware write time; expiry is measured from here.
        ttl_days:
            Lifetime of the entry in days.
        """
        stmt = (
            insert(ComparisonCacheEntry)
            .values(
                id=uuid.uuid4(),
                subject_identity=key.subject_identity,
                subject_site=key.subject_site,
                competitor_site=key.competitor_site,
                competitor_snapshot=competitor_snapshot,
                comparison=comparison,
                stored_at=stored_at,
                ttl_days=ttl_days,
            )
            .on_conflict_do_update(
                constraint=COMPARISON_CACHE_KEY_CONSTRAINT,
                set_={
                    "competitor_snapshot": competitor_snapshot,
                    "comparison": comparison,
                    "stored_at": stored_at,
                    "ttl_days": ttl_days,
                },
            )
        )
        self._session.execute(stmt)
