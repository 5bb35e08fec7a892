"""
app/schemas package marker.
"""

from app.schemas.comparison import (
    ComparisonRequestBody,
    ComparisonResponse,
    ErrorResponse,
    HealthResponse,
    SectionResponse,
    SingleSiteRequestBody,
    SingleSiteResponse,
    SnapshotResponse,
    SocialHandlesBody,
)

__all__ = [
    "ComparisonRequestBody",
    "ComparisonResponse",
    "ErrorResponse",
    "HealthResponse",
    "SectionResponse",
    "SingleSiteRequestBody",
    "SingleSiteResponse",
    "SnapshotResponse",
    "SocialHandlesBody",
]
