"""
app/repositories/site_section_cache_repository.py

Read-only access to the dashboard's per-site section cache.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.site_section_cache import SiteSectionCache


class SiteSectionCacheRepository:
    """
    Query helper for SiteSectionCache rows owned by other subsystems.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_sections(
        self,
        *,
        subject_identity: str,
        domain: str,
        sections: Sequence[str],
    ) -> list[SiteSectionCache]:
        if not sections:
            return []
        stmt = select(SiteSectionCache).where(
            SiteSectionCache.subject_identity == subject_identity,
            SiteSectionCache.domain == domain,
            SiteSectionCache.section.in_(list(sections)),
        )
        return list(self._session.scalars(stmt).all())
