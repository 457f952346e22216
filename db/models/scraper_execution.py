"""
db/models/scraper_execution.py

Audit record for one commander discovery run.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ScraperExecutionStatus:
    PENDING = "pending"
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"

    FINAL = (SUCCESS, PARTIAL_SUCCESS, FAILURE)


class ScraperExecution(Base, TimestampMixin):
    __tablename__ = "scraper_executions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ScraperExecutionStatus.PENDING,
        comment="pending, success, partial_success, failure",
    )
    commanders_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    commanders_succeeded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    commanders_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_scraper_executions_started_at", "started_at"),
        Index("ix_scraper_executions_status", "status"),
    )

    @property
    def execution_time_seconds(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def success_rate(self) -> float:
        attempted = self.commanders_attempted or 0
        if attempted == 0:
            return 0.0
        return round((self.commanders_succeeded or 0) / attempted * 100, 1)
