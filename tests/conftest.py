"""
Shared fixtures: in-memory SQLite database, fake source client, recording
job queue and an API client bound to the test database.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers all ORM models on Base.metadata
from app.api.routers import commanders_router, scraper_executions_router
from app.scraping.base import SourceClient
from app.scraping.types import CommanderListing, DecklistCard
from db.base import Base
from db.session import build_session_factory, get_db


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite manages transactions itself unless told not to; SAVEPOINT needs
    # SQLAlchemy to emit BEGIN.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def make_listing(rank: int, name: str | None = None) -> CommanderListing:
    name = name or f"Commander {rank}"
    slug = name.lower().replace(" ", "-")
    return CommanderListing(name=name, rank=rank, url=f"https://edhrec.com/commanders/{slug}")


def make_decklist(commander_name: str, size: int = 100) -> list[DecklistCard]:
    cards = [DecklistCard(card_name=commander_name, category="Commanders", is_commander=True)]
    cards.extend(
        DecklistCard(card_name=f"Card {index}", category="Creatures", is_commander=False)
        for index in range(1, size)
    )
    return cards


class FakeSourceClient(SourceClient):
    """
    In-memory source. Decklists and errors are keyed by commander url.
    """

    def __init__(
        self,
        listings: Sequence[CommanderListing] = (),
        *,
        listing_error: Exception | None = None,
    ) -> None:
        self.listings = list(listings)
        self.listing_error = listing_error
        self.decklists: dict[str, list[DecklistCard]] = {}
        self.decklist_errors: dict[str, Exception] = {}
        self.decklist_requests: list[str] = []
        self.cache_cleared = 0

    def fetch_top_commanders(self) -> list[CommanderListing]:
        if self.listing_error is not None:
            raise self.listing_error
        return list(self.listings)

    def fetch_commander_decklist(self, url: str) -> list[DecklistCard]:
        self.decklist_requests.append(url)
        if url in self.decklist_errors:
            raise self.decklist_errors[url]
        return list(self.decklists.get(url, []))

    def clear_cache(self) -> None:
        self.cache_cleared += 1


@dataclass
class EnqueuedJob:
    job_id: str
    job: Callable[..., Any]
    args: tuple[Any, ...]
    delay: timedelta
    name: str | None


class RecordingJobQueue:
    def __init__(self, *, fail_after: int | None = None) -> None:
        self.jobs: list[EnqueuedJob] = []
        self.fail_after = fail_after

    def enqueue(
        self,
        job: Callable[..., Any],
        args: Sequence[Any] = (),
        *,
        delay: timedelta = timedelta(0),
        name: str | None = None,
    ) -> str:
        if self.fail_after is not None and len(self.jobs) >= self.fail_after:
            raise RuntimeError("queue unavailable")
        job_id = f"{name}:{len(self.jobs) + 1}"
        self.jobs.append(EnqueuedJob(job_id=job_id, job=job, args=tuple(args), delay=delay, name=name))
        return job_id


@pytest.fixture()
def fake_client() -> FakeSourceClient:
    return FakeSourceClient()


@pytest.fixture()
def job_queue() -> RecordingJobQueue:
    return RecordingJobQueue()


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client(session_factory: sessionmaker) -> Iterator[TestClient]:
    application = FastAPI()
    application.include_router(commanders_router)
    application.include_router(scraper_executions_router)

    def _override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = _override_get_db
    with TestClient(application) as client:
        yield client
