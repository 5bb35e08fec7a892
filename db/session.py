"""
db/session.py

Engine and sessions for the comparison cache database.

The engine is built on first use so that importing the API, or running the
tests on in-memory stores, never needs a reachable database. Only Postgres is
accepted: cache rows are JSONB and ``put`` is an ``INSERT ... ON CONFLICT``
upsert on the comparison key.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EnginePoolSettings:
    echo: bool = False
    pool_recycle: int = 1800
    pool_size: int = 5
    max_overflow: int = 10

    @classmethod
    def from_env(cls) -> EnginePoolSettings:
        defaults = cls()
        return cls(
            echo=os.getenv("SQL_ECHO", "").strip().lower() in _TRUE_VALUES,
            pool_recycle=_int_env("DB_POOL_RECYCLE", defaults.pool_recycle),
            pool_size=_int_env("DB_POOL_SIZE", defaults.pool_size),
            max_overflow=_int_env("DB_MAX_OVERFLOW", defaults.max_overflow),
        )


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def create_db_engine(pool: EnginePoolSettings | None = None) -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError(
            "The comparison cache needs PostgreSQL (JSONB columns, ON CONFLICT upserts); "
            f"got {database_url.split('://', 1)[0]!r}."
        )

    pool = pool or EnginePoolSettings.from_env()
    # Long-lived API workers hold pooled connections across idle periods.
    return create_engine(
        database_url,
        echo=pool.echo,
        pool_pre_ping=True,
        pool_recycle=pool.pool_recycle,
        pool_size=pool.pool_size,
        max_overflow=pool.max_overflow,
    )


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    """Shared engine; also used at startup for ``SELECT 1`` and the table check."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def _get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        # Repositories never commit; the SQLAlchemy cache store commits its own upsert.
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


def SessionLocal() -> Session:
    return _get_session_factory()()


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped session for the ``/competitor`` routes.

    The comparison service builds its cache store and per-site section source
    over this session, so one request reads and writes through one connection.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
