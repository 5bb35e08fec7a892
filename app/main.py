from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import FastAPI

from app.schemas.comparison import HealthResponse


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A Postgres database URL must be configured.
    - COMPARISON_CACHE_TTL_DAYS, when set, must be a positive integer.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    url_names = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    if not any(os.getenv(name, "").strip() for name in url_names):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL or LOCAL_DATABASE_URL. "
            "SQLite URLs are not permitted."
        )

    ttl_raw = os.getenv("COMPARISON_CACHE_TTL_DAYS")
    if ttl_raw is not None:
        try:
            ttl_days = int(ttl_raw)
        except ValueError:
            ttl_days = 0
        if ttl_days < 1:
            errors.append(
                f"COMPARISON_CACHE_TTL_DAYS='{ttl_raw}' is not valid. It must be a positive integer."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Require every cache table registered on Base.metadata to exist.

    Does NOT auto-create tables.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))})."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema before serving traffic."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Competitor Comparison API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import competitor_comparison_router

    application.include_router(competitor_comparison_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(
            status="ok",
            service="Competitor Comparison API",
            timestamp=datetime.now(timezone.utc),
        )

    return application


app = create_app()
