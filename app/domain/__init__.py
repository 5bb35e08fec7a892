"""
app/domain package marker.
"""

from app.domain.comparison import (
    CacheEntry,
    ComparisonInputError,
    ComparisonKey,
    ComparisonRequest,
    ComparisonResult,
    Failed,
    Ok,
    ProviderResult,
    RequestContext,
    SiteSnapshot,
    SnapshotSection,
    SocialHandles,
    normalize_domain,
)

__all__ = [
    "CacheEntry",
    "ComparisonInputError",
    "ComparisonKey",
    "ComparisonRequest",
    "ComparisonResult",
    "Failed",
    "Ok",
    "ProviderResult",
    "RequestContext",
    "SiteSnapshot",
    "SnapshotSection",
    "SocialHandles",
    "normalize_domain",
]
