"""
app/domain/comparison.py

Domain models for comparative site snapshots and their cache entries.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Union

logger = logging.getLogger(__name__)

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*://", flags=re.IGNORECASE)


class ComparisonInputError(ValueError):
    """
    Raised when a comparison request lacks a required identifier.
    """


def normalize_domain(value: str) -> str:
    """
    Reduce a URL or host to a bare lowercase domain, e.g.
    ``"https://www.Acme.com/pricing"`` -> ``"acme.com"``.
    """

    cleaned = _SCHEME_PATTERN.sub("", value.strip()).lower()
    cleaned = cleaned.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    if cleaned.startswith("www."):
        cleaned = cleaned[len("www.") :]
    return cleaned.rstrip(".")


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO datetime (or pass through a datetime) as timezone-aware UTC.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ComparisonKey:
    """
    Identifies one comparison cache slot.
    """

    subject_identity: str
    subject_site: str
    competitor_site: str

    @classmethod
    def build(cls, *, subject_identity: str, subject_site: str, competitor_site: str) -> "ComparisonKey":
        return cls(
            subject_identity=subject_identity.strip().lower(),
            subject_site=normalize_domain(subject_site),
            competitor_site=normalize_domain(competitor_site),
        )


@dataclass(frozen=True)
class Ok:
    """
    Successful provider outcome.
    """

    data: dict[str, Any]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    """
    Contained provider failure with a short human-readable reason.
    """

    reason: str

    @property
    def ok(self) -> bool:
        return False


ProviderResult = Union[Ok, Failed]


@dataclass(frozen=True)
class SocialHandles:
    """
    Optional per-network handles for one site.

    ``google_ads`` is the advertiser name or id used by the Google ads
    provider; the Meta ads provider keys off ``facebook``.
    """

    instagram: str | None = None
    facebook: str | None = None
    google_ads: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "SocialHandles":
        if not raw:
            return cls()

        def _clean(key: str) -> str | None:
            value = raw.get(key)
            if not isinstance(value, str):
                return None
            stripped = value.strip().lstrip("@")
            return stripped or None

        return cls(
            instagram=_clean("instagram"),
            facebook=_clean("facebook"),
            google_ads=_clean("google_ads"),
        )


@dataclass(frozen=True)
class SnapshotSection:
    """
    Last provider result for one section plus its provenance.
    """

    result: ProviderResult
    from_cache: bool = False
    fetched_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from_cache": self.from_cache,
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
        }
        if isinstance(self.result, Ok):
            payload["status"] = "ok"
            payload["data"] = self.result.data
        else:
            payload["status"] = "failed"
            payload["reason"] = self.result.reason
        return payload

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SnapshotSection":
        result: ProviderResult
        if raw.get("status") == "ok" and isinstance(raw.get("data"), Mapping):
            result = Ok(dict(raw["data"]))
        else:
            result = Failed(str(raw.get("reason") or "unavailable"))
        return cls(
            result=result,
            from_cache=bool(raw.get("from_cache", False)),
            fetched_at=parse_datetime(raw.get("fetched_at")),
        )


@dataclass(frozen=True)
class SiteSnapshot:
    """
    All sections gathered for one site.

    A section missing from ``sections`` was intentionally not fetched (for
    example no social handle was supplied); a ``Failed`` section was attempted.
    """

    site: str
    sections: Mapping[str, SnapshotSection] = field(default_factory=dict)

    def data(self, section: str) -> dict[str, Any] | None:
        entry = self.sections.get(section)
        if entry is None or not isinstance(entry.result, Ok):
            return None
        return entry.result.data

    def failed_sections(self) -> list[str]:
        return sorted(name for name, entry in self.sections.items() if not entry.result.ok)

    def overlay(self, sections: Mapping[str, SnapshotSection]) -> "SiteSnapshot":
        """
        Return a copy with ``sections`` replacing same-named entries.
        """

        merged = dict(self.sections)
        merged.update(sections)
        return replace(self, sections=merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "site": self.site,
            "sections": {name: self.sections[name].to_dict() for name in sorted(self.sections)},
        }

    @classmethod
    def from_dict(
        cls,
        raw: Mapping[str, Any],
        *,
        known_sections: Iterable[str] | None = None,
    ) -> "SiteSnapshot":
        """
        Rebuild a snapshot from its stored form.

        Sections outside ``known_sections`` and malformed entries are skipped
        so stored rows survive the addition or removal of providers.
        """

        allowed = set(known_sections) if known_sections is not None else None
        raw_sections = raw.get("sections")
        sections: dict[str, SnapshotSection] = {}
        if isinstance(raw_sections, Mapping):
            for name, entry in raw_sections.items():
                if allowed is not None and name not in allowed:
                    logger.debug("Skipping unknown stored section=%s", name)
                    continue
                if not isinstance(entry, Mapping):
                    continue
                sections[str(name)] = SnapshotSection.from_dict(entry)
        return cls(site=str(raw.get("site") or ""), sections=sections)


@dataclass(frozen=True)
class ComparisonRequest:
    """
    Engine-facing request for one subject/competitor comparison.
    """

    subject_identity: str | None
    subject_site: str | None
    competitor_site: str | None
    subject_handles: SocialHandles = field(default_factory=SocialHandles)
    competitor_handles: SocialHandles = field(default_factory=SocialHandles)
    force_refresh: bool = False

    def validate(self) -> ComparisonKey:
        """
        Return the cache key, or raise ComparisonInputError naming every missing field.
        """

        missing = [
            name
            for name, value in (
                ("subject_identity", self.subject_identity),
                ("subject_site", self.subject_site),
                ("competitor_site", self.competitor_site),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ComparisonInputError(f"Missing required fields: {', '.join(missing)}.")

        key = ComparisonKey.build(
            subject_identity=self.subject_identity or "",
            subject_site=self.subject_site or "",
            competitor_site=self.competitor_site or "",
        )
        if not key.subject_site or not key.competitor_site:
            raise ComparisonInputError("subject_site and competitor_site must be valid domains.")
        return key


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request state threaded through the snapshot builders.
    """

    key: ComparisonKey
    now: datetime
    force_refresh: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class CacheEntry:
    """
    Stored competitor snapshot and comparison for one key.
    """

    key: ComparisonKey
    competitor_snapshot: SiteSnapshot
    comparison: dict[str, Any]
    stored_at: datetime
    ttl_days: int = 7

    def is_expired(self, now: datetime) -> bool:
        return now - self.stored_at > timedelta(days=self.ttl_days)

    def age(self, now: datetime) -> timedelta:
        return max(now - self.stored_at, timedelta(0))


@dataclass(frozen=True)
class ComparisonResult:
    """
    Outcome returned to callers for one comparison request.
    """

    subject_snapshot: SiteSnapshot
    competitor_snapshot: SiteSnapshot
    comparison: dict[str, Any]
    timestamp: datetime
    cached: bool
    cache_age: timedelta | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_snapshot": self.subject_snapshot.to_dict(),
            "competitor_snapshot": self.competitor_snapshot.to_dict(),
            "comparison": self.comparison,
            "timestamp": self.timestamp.isoformat(),
            "cached": self.cached,
            "cache_age_seconds": self.cache_age.total_seconds() if self.cache_age is not None else None,
        }
