"""
db/models/comparison_cache_entry.py

Persisted competitor-side comparison results.
One row per (subject identity, subject site, competitor site).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

COMPARISON_CACHE_KEY_CONSTRAINT = "uq_comparison_cache_entries_key"


class ComparisonCacheEntry(Base):
    """
    Competitor snapshot and comparison stored after a cache-miss request.

    Only the competitor side is kept; the subject side is rebuilt from its
    own per-site caches on every request. ``competitor_snapshot`` holds the
    serialized snapshot, e.g.::

        {
            "site": "rival.com",
            "sections": {
                "backlinks": {"status": "ok", "data": {...}, "from_cache": false},
                "instagram": {"status": "failed", "reason": "timeout"}
            }
        }

    Expiry is evaluated lazily on read from ``stored_at`` and ``ttl_days``;
    rows are never swept.
    """

    __tablename__ = "comparison_cache_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    subject_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    subject_site: Mapped[str] = mapped_column(String(512), nullable=False)
    competitor_site: Mapped[str] = mapped_column(String(512), nullable=False)
    competitor_snapshot: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    comparison: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Wall-clock time captured when the entry was written (UTC)",
    )
    ttl_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)

    __table_args__ = (
        UniqueConstraint(
            "subject_identity",
            "subject_site",
            "competitor_site",
            name=COMPARISON_CACHE_KEY_CONSTRAINT,
        ),
        Index("ix_comparison_cache_entries_competitor_site", "competitor_site"),
    )
