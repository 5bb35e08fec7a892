"""
Comparative snapshot aggregation and caching engine.
"""

from app.comparison.cache import CacheStore, CacheStoreError, InMemoryCacheStore, SQLAlchemyCacheStore
from app.comparison.competitor_builder import CompetitorSnapshotBuilder
from app.comparison.coordinator import ComparisonCoordinator
from app.comparison.engine import Comparison, ComparisonEngine, MetricComparison, compare_metric
from app.comparison.sections import SECTION_NAMES, SECTION_POLICIES, VOLATILE_SECTIONS, SectionPolicy
from app.comparison.site_cache import SiteSectionSource, SQLAlchemySiteSectionSource, StaticSiteSectionSource
from app.comparison.subject_builder import SubjectSnapshotBuilder

__all__ = [
    "CacheStore",
    "CacheStoreError",
    "Comparison",
    "ComparisonCoordinator",
    "ComparisonEngine",
    "CompetitorSnapshotBuilder",
    "InMemoryCacheStore",
    "MetricComparison",
    "SECTION_NAMES",
    "SECTION_POLICIES",
    "SQLAlchemyCacheStore",
    "SQLAlchemySiteSectionSource",
    "SectionPolicy",
    "SiteSectionSource",
    "StaticSiteSectionSource",
    "SubjectSnapshotBuilder",
    "VOLATILE_SECTIONS",
    "compare_metric",
]
