"""
Comparison cache store exports.
"""

from app.comparison.cache.base import CacheStore, CacheStoreError, utc_now
from app.comparison.cache.memory import InMemoryCacheStore
from app.comparison.cache.sqlalchemy_store import SQLAlchemyCacheStore

__all__ = [
    "CacheStore",
    "CacheStoreError",
    "InMemoryCacheStore",
    "SQLAlchemyCacheStore",
    "utc_now",
]
