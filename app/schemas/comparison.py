"""
app/schemas/comparison.py

Request and response schemas for competitor comparison operations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SocialHandlesBody(BaseModel):
    """
    Optional per-network handles for one site.
    """

    instagram: str | None = None
    facebook: str | None = None
    google_ads: str | None = None


class ComparisonRequestBody(BaseModel):
    """
    API request model for a subject/competitor comparison.

    Required identifiers are checked by the engine so that a missing field
    produces the same ``{"error": ...}`` shape as any other input error.
    """

    subject_identity: str | None = Field(default=None, description="Account email or id owning the subject site")
    subject_site: str | None = None
    competitor_site: str | None = None
    subject_handles: SocialHandlesBody | None = None
    competitor_handles: SocialHandlesBody | None = None
    force_refresh: bool = False


class SectionResponse(BaseModel):
    """
    One snapshot section: either ``ok`` with data or ``failed`` with a reason.
    """

    model_config = ConfigDict(extra="ignore")

    status: Literal["ok", "failed"]
    data: dict[str, Any] | None = None
    reason: str | None = None
    from_cache: bool = False
    fetched_at: datetime | None = None


class SnapshotResponse(BaseModel):
    site: str
    sections: dict[str, SectionResponse] = Field(default_factory=dict)


class ComparisonResponse(BaseModel):
    """
    API response model for one comparison.
    """

    subject_snapshot: SnapshotResponse
    competitor_snapshot: SnapshotResponse
    comparison: dict[str, Any]
    timestamp: datetime
    cached: bool
    cache_age_seconds: float | None = Field(default=None, ge=0)


class ErrorResponse(BaseModel):
    error: str


class SingleSiteRequestBody(BaseModel):
    domain: str | None = None
    handles: SocialHandlesBody | None = None


class SingleSiteResponse(BaseModel):
    domain: str
    timestamp: datetime
    snapshot: SnapshotResponse


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: datetime
