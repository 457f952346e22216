"""
Repository for discovery run audit records and their statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.scraper_execution import ScraperExecution, ScraperExecutionStatus

MAX_LIST_LIMIT = 50


@dataclass(frozen=True)
class ScraperExecutionStats:
    total_executions: int
    successful_executions: int
    failed_executions: int
    partial_success_executions: int
    success_rate: float


class ScraperExecutionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_execution(self, *, started_at: datetime | None = None) -> ScraperExecution:
        execution = ScraperExecution(
            started_at=started_at or utcnow(),
            status=ScraperExecutionStatus.PENDING,
            commanders_attempted=0,
            commanders_succeeded=0,
            commanders_failed=0,
        )
        self._session.add(execution)
        self._session.flush()
        return execution

    def get_execution(self, execution_id: int) -> ScraperExecution | None:
        return self._session.get(ScraperExecution, execution_id)

    def finalize_execution(
        self,
        execution: ScraperExecution,
        *,
        status: str,
        commanders_attempted: int,
        commanders_succeeded: int,
        commanders_failed: int,
        error_summary: str | None = None,
        finished_at: datetime | None = None,
    ) -> ScraperExecution:
        if status not in ScraperExecutionStatus.FINAL:
            raise ValueError(f"Cannot finalize execution with status '{status}'.")
        if commanders_attempted != commanders_succeeded + commanders_failed:
            raise ValueError(
                "commanders_attempted must equal commanders_succeeded + commanders_failed "
                f"({commanders_attempted} != {commanders_succeeded} + {commanders_failed})."
            )

        execution.status = status
        execution.commanders_attempted = commanders_attempted
        execution.commanders_succeeded = commanders_succeeded
        execution.commanders_failed = commanders_failed
        execution.error_summary = error_summary
        execution.finished_at = finished_at or utcnow()
        self._session.flush()
        return execution

    def list_executions(
        self,
        *,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = MAX_LIST_LIMIT,
    ) -> list[ScraperExecution]:
        stmt: Select[tuple[ScraperExecution]] = select(ScraperExecution)

        if status:
            stmt = stmt.where(ScraperExecution.status == status)
        if start_date is not None:
            stmt = stmt.where(ScraperExecution.started_at >= _start_of_day(start_date))
        if end_date is not None:
            stmt = stmt.where(ScraperExecution.started_at < _start_of_day(end_date + timedelta(days=1)))

        bounded_limit = min(MAX_LIST_LIMIT, max(1, limit))
        stmt = stmt.order_by(ScraperExecution.started_at.desc(), ScraperExecution.id.desc()).limit(
            bounded_limit
        )
        return list(self._session.scalars(stmt).all())

    def get_stats(self) -> ScraperExecutionStats:
        rows = self._session.execute(
            select(ScraperExecution.status, func.count()).group_by(ScraperExecution.status)
        ).all()
        counts = {row[0]: int(row[1]) for row in rows}

        # In-flight runs have no outcome yet.
        total = sum(counts.get(status, 0) for status in ScraperExecutionStatus.FINAL)
        successful = counts.get(ScraperExecutionStatus.SUCCESS, 0)
        success_rate = 0.0 if total == 0 else round(successful / total * 100, 1)
        return ScraperExecutionStats(
            total_executions=total,
            successful_executions=successful,
            failed_executions=counts.get(ScraperExecutionStatus.FAILURE, 0),
            partial_success_executions=counts.get(ScraperExecutionStatus.PARTIAL_SUCCESS, 0),
            success_rate=success_rate,
        )


def _start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)
