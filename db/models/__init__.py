"""
Model package exports.

Import all SQLAlchemy models here so metadata registration works without extra imports.
"""

from db.models.comparison_cache_entry import ComparisonCacheEntry
from db.models.site_section_cache import SiteSectionCache

__all__ = [
    "ComparisonCacheEntry",
    "SiteSectionCache",
]
