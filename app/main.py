from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - A database URL must be configured and must not be empty.
    - Numeric scheduler and rate-limit overrides must parse when present.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if not database_url and not local_database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL."
        )

    # --- Numeric overrides ----------------------------------------------
    for name in (
        "DISCOVERY_CRON_HOUR",
        "DISCOVERY_CRON_MINUTE",
        "EDHREC_RATE_LIMIT_MAX_REQUESTS",
        "SCRYFALL_RATE_LIMIT_MAX_REQUESTS",
        "JOB_MAX_ATTEMPTS",
    ):
        raw = os.getenv(name)
        if raw is not None and not raw.strip().isdigit():
            errors.append(f"{name}='{raw}' is not a non-negative integer.")

    for name in (
        "DECKLIST_SCRAPE_INTERVAL_HOURS",
        "EDHREC_RATE_LIMIT_WINDOW_SECONDS",
        "SCRYFALL_RATE_LIMIT_WINDOW_SECONDS",
        "JOB_BACKOFF_INITIAL_SECONDS",
    ):
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            float(raw)
        except ValueError:
            errors.append(f"{name}='{raw}' is not a number.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
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
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, start the scheduler on boot; shut it down on exit."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")

    from app.config import get_scheduler_settings

    application.state.scheduler = None
    if not get_scheduler_settings().enabled:
        logging.getLogger(__name__).info("Scheduler disabled by SCHEDULER_ENABLED")
        yield
        return

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    application.state.scheduler = scheduler
    logging.getLogger(__name__).info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logging.getLogger(__name__).info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Commander Scraper API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import commanders_router, scraper_executions_router

    application.include_router(commanders_router)
    application.include_router(scraper_executions_router)

    @application.get("/health")
    def healthcheck(request: Request) -> dict[str, object]:
        scheduler = getattr(request.app.state, "scheduler", None)
        scheduled_jobs = len(scheduler.get_jobs()) if scheduler is not None else 0
        return {"status": "ok", "scheduled_jobs": scheduled_jobs}

    return application


app = create_app()
