"""
app/scheduler/queue.py

Delayed job execution on top of APScheduler with per-job retry.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from apscheduler.schedulers.base import BaseScheduler

from app.scraping.errors import RateLimitError
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)


class JobQueue(Protocol):
    def enqueue(
        self,
        job: Callable[..., Any],
        args: Sequence[Any] = (),
        *,
        delay: timedelta = timedelta(0),
        name: str | None = None,
    ) -> str:
        """
        Schedule ``job(*args)`` to run once after ``delay``; return the job id.
        """


@dataclass(frozen=True)
class JobRunStats:
    succeeded: int
    failed: int
    retried: int


class APSchedulerJobQueue:
    """
    One-shot ``date`` jobs with exponential-backoff retry.

    A failed attempt is rescheduled until ``max_attempts`` is reached; a
    ``RateLimitError`` carrying ``retry_after_seconds`` is retried no sooner
    than that hint. The final failure is re-raised so APScheduler reports it.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        *,
        max_attempts: int = 3,
        backoff_initial_seconds: float = 300.0,
        backoff_multiplier: float = 2.0,
        misfire_grace_time: int = 3600,
    ) -> None:
        self._scheduler = scheduler
        self._max_attempts = max(1, max_attempts)
        self._backoff_initial_seconds = backoff_initial_seconds
        self._backoff_multiplier = backoff_multiplier
        self._misfire_grace_time = misfire_grace_time
        self._lock = threading.Lock()
        self._succeeded = 0
        self._failed = 0
        self._retried = 0

    def enqueue(
        self,
        job: Callable[..., Any],
        args: Sequence[Any] = (),
        *,
        delay: timedelta = timedelta(0),
        name: str | None = None,
    ) -> str:
        job_name = name or getattr(job, "__qualname__", repr(job))
        job_id = f"{job_name}:{uuid.uuid4().hex}"
        self._schedule(job, tuple(args), job_id=job_id, name=job_name, delay=delay, attempt=1)
        return job_id

    def stats(self) -> JobRunStats:
        with self._lock:
            return JobRunStats(succeeded=self._succeeded, failed=self._failed, retried=self._retried)

    def backoff_for(self, attempt: int, error: BaseException) -> timedelta:
        seconds = self._backoff_initial_seconds * (self._backoff_multiplier ** (attempt - 1))
        if isinstance(error, RateLimitError) and error.retry_after_seconds is not None:
            seconds = max(seconds, error.retry_after_seconds)
        return timedelta(seconds=seconds)

    def _schedule(
        self,
        job: Callable[..., Any],
        args: tuple[Any, ...],
        *,
        job_id: str,
        name: str,
        delay: timedelta,
        attempt: int,
    ) -> None:
        run_date = datetime.now(timezone.utc) + delay
        self._scheduler.add_job(
            self._execute,
            trigger="date",
            run_date=run_date,
            args=(job, args, job_id, name, attempt),
            id=f"{job_id}:{attempt}",
            name=name,
            misfire_grace_time=self._misfire_grace_time,
        )

    def _execute(
        self,
        job: Callable[..., Any],
        args: tuple[Any, ...],
        job_id: str,
        name: str,
        attempt: int,
    ) -> Any:
        try:
            result = job(*args)
        except Exception as exc:
            if attempt < self._max_attempts:
                retry_in = self.backoff_for(attempt, exc)
                with self._lock:
                    self._retried += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "job_retry_scheduled",
                    job_id=job_id,
                    job_name=name,
                    attempt=attempt,
                    retry_in_seconds=retry_in.total_seconds(),
                    error_class=type(exc).__name__,
                    error_message=str(exc),
                )
                self._schedule(job, args, job_id=job_id, name=name, delay=retry_in, attempt=attempt + 1)
            else:
                with self._lock:
                    self._failed += 1
                log_event(
                    logger,
                    logging.ERROR,
                    "job_retries_exhausted",
                    job_id=job_id,
                    job_name=name,
                    attempts=attempt,
                    error_class=type(exc).__name__,
                    error_message=str(exc),
                )
            raise

        with self._lock:
            self._succeeded += 1
        return result
