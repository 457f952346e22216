"""
app/services/commander_discovery.py

Commander discovery: fetch the ranked list, upsert commanders, and stagger one
decklist scrape per commander. Every run leaves exactly one finalized
execution record behind, including runs that end in an exception.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.domain.commander_scraping import DiscoveryRunSummary
from app.scheduler.queue import JobQueue
from app.scraping.base import SourceClient
from app.scraping.errors import describe_error
from app.scraping.logging_utils import log_error, log_event
from app.scraping.types import CommanderListing
from db.models.scraper_execution import ScraperExecution, ScraperExecutionStatus
from db.repositories.commander_repository import CommanderRepository
from db.repositories.scraper_execution_repository import ScraperExecutionRepository
from db.session import SessionFactory, session_scope

logger = logging.getLogger(__name__)

COMPONENT = "CommanderDiscoveryJob"


@dataclass
class _RunTally:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def resolve_execution_status(*, attempted: int, succeeded: int, failed: int) -> str:
    """
    success when nothing failed, failure when nothing succeeded, else partial.
    """

    if failed == 0:
        return ScraperExecutionStatus.SUCCESS
    if succeeded == 0:
        return ScraperExecutionStatus.FAILURE
    return ScraperExecutionStatus.PARTIAL_SUCCESS


class CommanderDiscoveryJob:
    """
    Discovery phase of the two-phase scrape pipeline.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        client: SourceClient,
        queue: JobQueue,
        decklist_job: Callable[[int], Any],
        decklist_interval: timedelta = timedelta(hours=1),
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self._queue = queue
        self._decklist_job = decklist_job
        self._decklist_interval = decklist_interval

    def run(self) -> DiscoveryRunSummary:
        started = time.monotonic()
        tally = _RunTally()
        scheduled = 0

        with session_scope(self._session_factory) as db:
            executions = ScraperExecutionRepository(db)
            execution = executions.create_execution()
            db.commit()
            execution_id = execution.id
            log_event(
                logger,
                logging.INFO,
                "scrape_started",
                component=COMPONENT,
                execution_id=execution_id,
            )

            try:
                listings = self._client.fetch_top_commanders()
                commander_ids = self._upsert_commanders(db, listings, tally)
                db.commit()
                scheduled = self._schedule_decklist_jobs(commander_ids)
            except Exception as exc:
                db.rollback()
                log_error(logger, exc, component=COMPONENT, execution_id=execution_id)
                self._finalize(
                    db,
                    executions,
                    execution,
                    tally,
                    execution_id=execution_id,
                    status=ScraperExecutionStatus.FAILURE,
                    error_summary=describe_error(exc),
                )
                raise

            status = resolve_execution_status(
                attempted=tally.attempted,
                succeeded=tally.succeeded,
                failed=tally.failed,
            )
            error_summary = "; ".join(tally.errors) if tally.errors else None
            self._finalize(
                db,
                executions,
                execution,
                tally,
                execution_id=execution_id,
                status=status,
                error_summary=error_summary,
            )

            log_event(
                logger,
                logging.INFO,
                "scrape_completed",
                component=COMPONENT,
                execution_id=execution_id,
                status=status,
                commanders_attempted=tally.attempted,
                commanders_succeeded=tally.succeeded,
                commanders_failed=tally.failed,
                decklist_jobs_scheduled=scheduled,
                duration_seconds=round(time.monotonic() - started, 3),
            )
            return DiscoveryRunSummary(
                execution_id=execution_id,
                status=status,
                commanders_attempted=tally.attempted,
                commanders_succeeded=tally.succeeded,
                commanders_failed=tally.failed,
                decklist_jobs_scheduled=scheduled,
                execution_time_seconds=execution.execution_time_seconds,
                error_summary=error_summary,
            )

    def _upsert_commanders(
        self,
        db: Session,
        listings: Sequence[CommanderListing],
        tally: _RunTally,
    ) -> list[int]:
        repository = CommanderRepository(db)
        commander_ids: list[int] = []

        for listing in listings:
            tally.attempted += 1
            try:
                with db.begin_nested():
                    commander = repository.upsert_commander(
                        name=listing.name,
                        rank=listing.rank,
                        source_url=listing.url,
                    )
            except Exception as exc:
                tally.failed += 1
                tally.errors.append(describe_error(exc))
                log_event(
                    logger,
                    logging.WARNING,
                    "commander_upsert_failed",
                    component=COMPONENT,
                    commander_name=listing.name,
                    rank=listing.rank,
                    error_class=type(exc).__name__,
                    error_message=str(exc),
                )
                continue

            tally.succeeded += 1
            commander_ids.append(commander.id)
            log_event(
                logger,
                logging.INFO,
                "commander_processed",
                component=COMPONENT,
                commander_id=commander.id,
                commander_name=commander.name,
                rank=commander.rank,
            )

        return commander_ids

    def _schedule_decklist_jobs(self, commander_ids: Sequence[int]) -> int:
        for index, commander_id in enumerate(commander_ids):
            delay = self._decklist_interval * index
            job_id = self._queue.enqueue(
                self._decklist_job,
                (commander_id,),
                delay=delay,
                name="decklist_scrape",
            )
            log_event(
                logger,
                logging.INFO,
                "decklist_job_scheduled",
                component=COMPONENT,
                commander_id=commander_id,
                job_id=job_id,
                delay_seconds=delay.total_seconds(),
            )
        return len(commander_ids)

    @staticmethod
    def _finalize(
        db: Session,
        executions: ScraperExecutionRepository,
        execution: ScraperExecution,
        tally: _RunTally,
        *,
        execution_id: int,
        status: str,
        error_summary: str | None,
    ) -> None:
        try:
            executions.finalize_execution(
                execution,
                status=status,
                commanders_attempted=tally.attempted,
                commanders_succeeded=tally.succeeded,
                commanders_failed=tally.failed,
                error_summary=error_summary,
            )
            db.commit()
        except Exception as exc:
            # On the failure path the original error is the one to propagate.
            db.rollback()
            log_error(
                logger,
                exc,
                component=COMPONENT,
                execution_id=execution_id,
                stage="finalize_execution",
            )
            if status != ScraperExecutionStatus.FAILURE:
                raise
