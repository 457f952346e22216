"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class EdhrecSettings:
    """
    EDHREC source client settings.
    """

    base_url: str = "https://edhrec.com"
    json_base_url: str = "https://json.edhrec.com"
    user_agent: str = "MTG-Inventory-Bot/1.0 (+https://github.com/cobaltroad/mtg-inventory)"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    expected_commander_count: int = 20
    expected_decklist_size: int = 100
    cache_ttl_seconds: float = 300.0

    @property
    def top_commanders_url(self) -> str:
        return f"{self.json_base_url.rstrip('/')}/pages/commanders/week.json"

    def decklist_url(self, slug: str) -> str:
        return f"{self.json_base_url.rstrip('/')}/pages/commanders/{slug}.json"


@dataclass(frozen=True)
class RateLimitSettings:
    """
    Per-source request budgets for the shared rate limiter.
    """

    edhrec_max_requests: int = 1
    edhrec_window_seconds: float = 2.0
    scryfall_max_requests: int = 10
    scryfall_window_seconds: float = 1.0


@dataclass(frozen=True)
class ScryfallSettings:
    """
    Scryfall card resolver settings.
    """

    enabled: bool = True
    base_url: str = "https://api.scryfall.com"
    timeout_seconds: float = 10.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Discovery schedule and job runner retry behavior.
    """

    enabled: bool = True
    discovery_cron_day_of_week: str = "mon"
    discovery_cron_hour: int = 4
    discovery_cron_minute: int = 0
    decklist_interval_hours: float = 1.0
    job_max_attempts: int = 3
    job_backoff_initial_seconds: float = 300.0
    job_backoff_multiplier: float = 2.0


@lru_cache(maxsize=1)
def get_edhrec_settings() -> EdhrecSettings:
    """
    Return cached EDHREC client settings from environment variables.
    """

    return EdhrecSettings(
        base_url=_get_str_env("EDHREC_BASE_URL", "https://edhrec.com"),
        json_base_url=_get_str_env("EDHREC_JSON_BASE_URL", "https://json.edhrec.com"),
        user_agent=_get_str_env(
            "EDHREC_USER_AGENT",
            "MTG-Inventory-Bot/1.0 (+https://github.com/cobaltroad/mtg-inventory)",
        ),
        timeout_seconds=max(1.0, _get_float_env("EDHREC_TIMEOUT_SECONDS", 10.0)),
        max_retries=max(0, _get_int_env("EDHREC_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("EDHREC_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("EDHREC_BACKOFF_MULTIPLIER", 2.0)),
        expected_commander_count=max(1, _get_int_env("EDHREC_EXPECTED_COMMANDER_COUNT", 20)),
        expected_decklist_size=max(0, _get_int_env("EDHREC_EXPECTED_DECKLIST_SIZE", 100)),
        cache_ttl_seconds=max(0.0, _get_float_env("EDHREC_CACHE_TTL_SECONDS", 300.0)),
    )


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    """
    Return cached rate-limit budgets from environment variables.
    """

    return RateLimitSettings(
        edhrec_max_requests=max(1, _get_int_env("EDHREC_RATE_LIMIT_MAX_REQUESTS", 1)),
        edhrec_window_seconds=max(0.1, _get_float_env("EDHREC_RATE_LIMIT_WINDOW_SECONDS", 2.0)),
        scryfall_max_requests=max(1, _get_int_env("SCRYFALL_RATE_LIMIT_MAX_REQUESTS", 10)),
        scryfall_window_seconds=max(0.1, _get_float_env("SCRYFALL_RATE_LIMIT_WINDOW_SECONDS", 1.0)),
    )


@lru_cache(maxsize=1)
def get_scryfall_settings() -> ScryfallSettings:
    """
    Return cached Scryfall resolver settings from environment variables.
    """

    return ScryfallSettings(
        enabled=_get_bool_env("SCRYFALL_ENABLED", True),
        base_url=_get_str_env("SCRYFALL_BASE_URL", "https://api.scryfall.com"),
        timeout_seconds=max(1.0, _get_float_env("SCRYFALL_TIMEOUT_SECONDS", 10.0)),
        max_retries=max(0, _get_int_env("SCRYFALL_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("SCRYFALL_BACKOFF_INITIAL_SECONDS", 0.5)),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return cached scheduler settings from environment variables.
    """

    return SchedulerSettings(
        enabled=_get_bool_env("SCHEDULER_ENABLED", True),
        discovery_cron_day_of_week=_get_str_env("DISCOVERY_CRON_DAY_OF_WEEK", "mon"),
        discovery_cron_hour=min(23, max(0, _get_int_env("DISCOVERY_CRON_HOUR", 4))),
        discovery_cron_minute=min(59, max(0, _get_int_env("DISCOVERY_CRON_MINUTE", 0))),
        decklist_interval_hours=max(0.0, _get_float_env("DECKLIST_SCRAPE_INTERVAL_HOURS", 1.0)),
        job_max_attempts=max(1, _get_int_env("JOB_MAX_ATTEMPTS", 3)),
        job_backoff_initial_seconds=max(1.0, _get_float_env("JOB_BACKOFF_INITIAL_SECONDS", 300.0)),
        job_backoff_multiplier=max(1.0, _get_float_env("JOB_BACKOFF_MULTIPLIER", 2.0)),
    )
