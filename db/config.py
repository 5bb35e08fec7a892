"""
db/config.py

Locates the Postgres database that backs the comparison cache.

Two tables live there: ``comparison_cache_entries``, which this service reads
and upserts, and ``site_section_cache``, which an external crawler fills and
the subject snapshot builder only reads. Both store section payloads as JSONB,
so the resolved URL must point at Postgres.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_ENV_FILENAMES = (".env", ".env.local")
_CLOUD_LIKE_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
_DRIVER_PREFIX = "postgresql+psycopg://"


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, value = line.split("=", 1)
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export ") :].strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files() -> None:
    """
    Populate ``os.environ`` from ``.env`` then ``.env.local`` at the project root.

    Only missing keys are set, so the real process environment and the first
    file to mention a key take precedence. Provider keys, cache TTL settings
    and database URLs all come through here.
    """

    for filename in _ENV_FILENAMES:
        env_path = _PROJECT_ROOT / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """Pin bare ``postgres://`` / ``postgresql://`` URLs to the psycopg 3 driver."""

    scheme, sep, rest = url.partition("://")
    if sep and scheme in {"postgres", "postgresql"}:
        return _DRIVER_PREFIX + rest
    return url


def _candidate_urls() -> Iterator[str | None]:
    yield os.getenv("DATABASE_URL")

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    if environment in _CLOUD_LIKE_ENVIRONMENTS:
        yield os.getenv("CLOUD_DATABASE_URL")

    yield os.getenv("LOCAL_DATABASE_URL")


def resolve_database_url() -> str:
    """
    Return the comparison cache database URL in SQLAlchemy driver form.

    ``DATABASE_URL`` wins outright. ``CLOUD_DATABASE_URL`` is consulted only
    when ``ENVIRONMENT`` names a deployed tier, and ``LOCAL_DATABASE_URL`` is
    the fallback for development.
    """

    load_env_files()

    for url in _candidate_urls():
        if url:
            return normalize_postgres_url(url)

    raise RuntimeError(
        "No comparison cache database configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )
