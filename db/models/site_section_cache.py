"""
db/models/site_section_cache.py

Per-site section cache written by the dashboard's own data sync jobs.
The comparison engine only reads from this table.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class SiteSectionCache(TimestampMixin, Base):
    """
    Last known payload of one section (``audit``, ``backlinks``, ``traffic``,
    ``instagram``, ...) for a subject's own site.
    """

    __tablename__ = "site_section_cache"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    subject_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(512), nullable=False)
    section: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    last_fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "subject_identity",
            "domain",
            "section",
            name="uq_site_section_cache_subject_domain_section",
        ),
        Index("ix_site_section_cache_subject_identity", "subject_identity"),
    )
