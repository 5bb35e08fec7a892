"""
app/repositories package marker.
"""

from app.repositories.comparison_cache_repository import ComparisonCacheRepository
from app.repositories.site_section_cache_repository import SiteSectionCacheRepository

__all__ = [
    "ComparisonCacheRepository",
    "SiteSectionCacheRepository",
]
