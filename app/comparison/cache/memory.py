"""
Process-local comparison cache store.
"""

from __future__ import annotations

import threading

from app.comparison.cache.base import CacheStore, Clock
from app.domain.comparison import CacheEntry, ComparisonKey


class InMemoryCacheStore(CacheStore):
    """
    Dict-backed store for single-process runs and tests.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        super().__init__(clock=clock)
        self._entries: dict[ComparisonKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def _load(self, key: ComparisonKey) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def _save(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def __len__(self) -> int:
        return len(self._entries)
