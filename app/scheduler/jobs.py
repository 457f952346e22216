"""
app/scheduler/jobs.py

APScheduler wiring for the two-phase commander scrape.

Schedule (all times UTC)
--------------------------
  commander_discovery: weekly, ``DISCOVERY_CRON_*`` (default Monday 04:00)
  decklist_scrape    : one-shot jobs enqueued by each discovery run, spaced
                        ``DECKLIST_SCRAPE_INTERVAL_HOURS`` apart

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import requests
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from app.config import (
    RateLimitSettings,
    SchedulerSettings,
    get_edhrec_settings,
    get_rate_limit_settings,
    get_scheduler_settings,
    get_scryfall_settings,
)
from app.scheduler.queue import APSchedulerJobQueue
from app.scraping.card_resolver import SCRYFALL_SOURCE_KEY, CardResolver, NullCardResolver, ScryfallCardResolver
from app.scraping.edhrec_client import EDHREC_SOURCE_KEY, EdhrecClient
from app.scraping.rate_limiter import RateLimitPolicy, SourceRateLimiter
from app.services.commander_discovery import CommanderDiscoveryJob
from app.services.decklist_scrape import DecklistScrapeJob
from db.session import SessionFactory, SessionLocal

logger = logging.getLogger(__name__)

DISCOVERY_JOB_ID = "commander_discovery"


@dataclass
class ScrapingRuntime:
    """
    Process-wide collaborators shared by every scheduled job.
    """

    scheduler: BaseScheduler
    queue: APSchedulerJobQueue
    rate_limiter: SourceRateLimiter
    client: EdhrecClient
    discovery_job: CommanderDiscoveryJob
    decklist_job: DecklistScrapeJob


def build_rate_limiter(settings: RateLimitSettings | None = None) -> SourceRateLimiter:
    settings = settings or get_rate_limit_settings()
    return SourceRateLimiter(
        policies={
            EDHREC_SOURCE_KEY: RateLimitPolicy(
                max_requests=settings.edhrec_max_requests,
                window_seconds=settings.edhrec_window_seconds,
            ),
            SCRYFALL_SOURCE_KEY: RateLimitPolicy(
                max_requests=settings.scryfall_max_requests,
                window_seconds=settings.scryfall_window_seconds,
            ),
        }
    )


def _build_card_resolver(http: requests.Session, rate_limiter: SourceRateLimiter) -> CardResolver:
    scryfall = get_scryfall_settings()
    if not scryfall.enabled:
        logger.info("Scheduler: Scryfall card resolution disabled")
        return NullCardResolver()
    return ScryfallCardResolver(
        session=http,
        rate_limiter=rate_limiter,
        base_url=scryfall.base_url,
        user_agent=get_edhrec_settings().user_agent,
        timeout_seconds=scryfall.timeout_seconds,
        max_retries=scryfall.max_retries,
        backoff_initial_seconds=scryfall.backoff_initial_seconds,
    )


def build_runtime(
    *,
    scheduler: BaseScheduler | None = None,
    session_factory: SessionFactory = SessionLocal,
) -> ScrapingRuntime:
    """
    Assemble the rate limiter, source client, job queue and both jobs.
    """

    scheduler_settings = get_scheduler_settings()
    scheduler = scheduler or BackgroundScheduler(timezone="UTC")
    rate_limiter = build_rate_limiter()
    http = requests.Session()
    client = EdhrecClient(
        settings=get_edhrec_settings(),
        rate_limiter=rate_limiter,
        session=http,
        card_resolver=_build_card_resolver(http, rate_limiter),
    )
    queue = APSchedulerJobQueue(
        scheduler,
        max_attempts=scheduler_settings.job_max_attempts,
        backoff_initial_seconds=scheduler_settings.job_backoff_initial_seconds,
        backoff_multiplier=scheduler_settings.job_backoff_multiplier,
    )
    decklist_job = DecklistScrapeJob(session_factory=session_factory, client=client)
    discovery_job = CommanderDiscoveryJob(
        session_factory=session_factory,
        client=client,
        queue=queue,
        decklist_job=decklist_job.run,
        decklist_interval=timedelta(hours=scheduler_settings.decklist_interval_hours),
    )
    return ScrapingRuntime(
        scheduler=scheduler,
        queue=queue,
        rate_limiter=rate_limiter,
        client=client,
        discovery_job=discovery_job,
        decklist_job=decklist_job,
    )


def register_discovery_job(
    runtime: ScrapingRuntime,
    settings: SchedulerSettings | None = None,
) -> None:
    """
    Add the weekly discovery cron job. Overlapping runs are skipped.
    """

    settings = settings or get_scheduler_settings()
    runtime.scheduler.add_job(
        runtime.discovery_job.run,
        trigger="cron",
        day_of_week=settings.discovery_cron_day_of_week,
        hour=settings.discovery_cron_hour,
        minute=settings.discovery_cron_minute,
        id=DISCOVERY_JOB_ID,
        name="Weekly commander discovery",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        misfire_grace_time=7200,
    )


def build_scheduler(session_factory: SessionFactory = SessionLocal) -> BackgroundScheduler:
    """
    Build the scheduler with the discovery job registered.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    runtime = build_runtime(scheduler=scheduler, session_factory=session_factory)
    register_discovery_job(runtime)
    return scheduler
