"""
Comparison cache store interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from app.domain.comparison import CacheEntry, ComparisonKey, SiteSnapshot

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheStoreError(RuntimeError):
    """
    Raised when the backing store cannot be read or written.
    """


class CacheStore(ABC):
    """
    Keyed TTL store of competitor snapshots and their comparisons.

    Expiry is lazy: ``get`` hides entries older than their TTL, nothing is
    ever swept. Concurrent ``put`` calls for one key are last-write-wins.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now

    def get(self, key: ComparisonKey, *, now: datetime | None = None) -> CacheEntry | None:
        """
        Return the live entry for ``key``; expired entries read as absent.
        """

        entry = self._load(key)
        if entry is None:
            return None
        if entry.is_expired(now or self._clock()):
            return None
        return entry

    def put(
        self,
        key: ComparisonKey,
        *,
        competitor_snapshot: SiteSnapshot,
        comparison: dict[str, Any],
        ttl_days: int,
    ) -> CacheEntry:
        """
        Upsert the entry for ``key``, stamping it with the current wall-clock time.
        """

        entry = CacheEntry(
            key=key,
            competitor_snapshot=competitor_snapshot,
            comparison=comparison,
            stored_at=self._clock(),
            ttl_days=ttl_days,
        )
        self._save(entry)
        return entry

    @abstractmethod
    def _load(self, key: ComparisonKey) -> CacheEntry | None:
        """
        Return the stored entry for ``key`` regardless of age.
        """

    @abstractmethod
    def _save(self, entry: CacheEntry) -> None:
        """
        Persist ``entry``, replacing any prior entry for the same key.
        """
