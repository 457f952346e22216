"""
Card identity resolution against Scryfall.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

import requests

from app.scraping.errors import RateLimitError
from app.scraping.logging_utils import log_event
from app.scraping.rate_limiter import SourceRateLimiter

logger = logging.getLogger(__name__)

SCRYFALL_SOURCE_KEY = "scryfall"


class CardResolver(Protocol):
    def resolve(self, card_name: str) -> str | None:
        """
        Return the canonical card id for ``card_name``, or None when unknown.
        """


class NullCardResolver:
    """
    Resolver used when card identity lookup is disabled.
    """

    def resolve(self, card_name: str) -> str | None:
        return None


class ScryfallCardResolver:
    """
    Fuzzy name lookup with an in-process cache.

    Lookup failures never raise; an unresolved card simply has no id.
    """

    def __init__(
        self,
        *,
        session: requests.Session,
        rate_limiter: SourceRateLimiter,
        base_url: str,
        user_agent: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        backoff_initial_seconds: float = 0.5,
        rate_limit_wait_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session
        self._rate_limiter = rate_limiter
        self._named_url = f"{base_url.rstrip('/')}/cards/named"
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._backoff_initial_seconds = backoff_initial_seconds
        self._rate_limit_wait_seconds = rate_limit_wait_seconds
        self._sleep = sleep
        self._cache: dict[str, str | None] = {}
        self._lock = threading.Lock()

    def resolve(self, card_name: str) -> str | None:
        with self._lock:
            if card_name in self._cache:
                return self._cache[card_name]

        card_id = self._lookup(card_name)
        with self._lock:
            self._cache[card_name] = card_id
        return card_id

    def clear_cache(self) -> None:
        with self._lock:
            self._cache = {}

    def _lookup(self, card_name: str) -> str | None:
        for attempt in range(self._max_retries + 1):
            try:
                self._rate_limiter.wait(SCRYFALL_SOURCE_KEY, timeout=self._rate_limit_wait_seconds)
                response = self._session.get(
                    self._named_url,
                    params={"fuzzy": card_name},
                    headers=self._headers,
                    timeout=self._timeout_seconds,
                )
            except RateLimitError as exc:
                logger.warning("ScryfallCardResolver: local rate limit for %r: %s", card_name, exc)
                return None
            except requests.RequestException as exc:
                logger.error("ScryfallCardResolver: network error for %r - %s", card_name, exc)
                return None

            if response.status_code == 200:
                try:
                    return response.json().get("id")
                except ValueError as exc:
                    logger.error("ScryfallCardResolver: JSON parse error for %r - %s", card_name, exc)
                    return None
            if response.status_code == 404:
                logger.warning("ScryfallCardResolver: could not resolve card %r", card_name)
                return None
            if response.status_code == 429 and attempt < self._max_retries:
                backoff_seconds = self._backoff_initial_seconds * (2**attempt)
                log_event(
                    logger,
                    logging.WARNING,
                    "rate_limit_encountered",
                    service=SCRYFALL_SOURCE_KEY,
                    retry_after_seconds=backoff_seconds,
                    card_name=card_name,
                )
                self._sleep(backoff_seconds)
                continue

            logger.error(
                "ScryfallCardResolver: HTTP error %s for %r",
                response.status_code,
                card_name,
            )
            return None

        return None
