"""
Read-only sources for the subject site's own per-section caches.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.comparison.cache.base import CacheStoreError
from app.domain.comparison import Ok, SnapshotSection, parse_datetime
from app.repositories.site_section_cache_repository import SiteSectionCacheRepository


class SiteSectionSource(ABC):
    """
    Collaborator owning the subject's audit, backlink and traffic caches.

    Implementations return whatever they hold, fresh or stale; sections
    they do not hold are simply absent from the result.
    """

    @abstractmethod
    def read_sections(
        self,
        *,
        subject_identity: str,
        domain: str,
        sections: Sequence[str],
    ) -> dict[str, SnapshotSection]:
        """
        Return cached sections keyed by name; raise CacheStoreError on backend failure.
        """


class StaticSiteSectionSource(SiteSectionSource):
    """
    Source over a fixed ``{(subject_identity, domain): {section: payload}}`` mapping.
    """

    def __init__(self, payloads: Mapping[tuple[str, str], Mapping[str, SnapshotSection]] | None = None) -> None:
        self._payloads = {key: dict(value) for key, value in (payloads or {}).items()}

    def read_sections(
        self,
        *,
        subject_identity: str,
        domain: str,
        sections: Sequence[str],
    ) -> dict[str, SnapshotSection]:
        stored = self._payloads.get((subject_identity, domain), {})
        return {name: stored[name] for name in sections if name in stored}


class SQLAlchemySiteSectionSource(SiteSectionSource):
    """
    Reads ``site_section_cache`` rows; never writes them.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._repository = SiteSectionCacheRepository(session)

    def read_sections(
        self,
        *,
        subject_identity: str,
        domain: str,
        sections: Sequence[str],
    ) -> dict[str, SnapshotSection]:
        try:
            rows = self._repository.list_sections(
                subject_identity=subject_identity,
                domain=domain,
                sections=sections,
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise CacheStoreError(f"site section cache read failed: {exc}") from exc

        found: dict[str, SnapshotSection] = {}
        for row in rows:
            if not isinstance(row.payload, dict):
                continue
            found[row.section] = SnapshotSection(
                result=Ok(dict(row.payload)),
                from_cache=True,
                fetched_at=parse_datetime(row.last_fetched_at),
            )
        return found
