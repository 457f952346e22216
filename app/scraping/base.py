"""
Base source client abstraction for commander scraping.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import requests

from app.scraping.errors import FetchError, ParseError, RateLimitError
from app.scraping.logging_utils import log_event, log_rate_limit
from app.scraping.rate_limiter import SourceRateLimiter
from app.scraping.types import CommanderListing, DecklistCard

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {500, 502, 503, 504}
TOO_MANY_REQUESTS = 429


class SourceClient(ABC):
    """
    Contract every commander source implements.
    """

    @abstractmethod
    def fetch_top_commanders(self) -> list[CommanderListing]:
        """
        Ranked commanders, rank 1-based and contiguous in source order.
        """

    @abstractmethod
    def fetch_commander_decklist(self, url: str) -> list[DecklistCard]:
        """
        Card entries for one commander, the commander itself first.
        """

    @abstractmethod
    def clear_cache(self) -> None:
        """
        Drop any cached responses. Rate limiter state is left alone.
        """


class JSONSourceClient(SourceClient):
    """
    Source client implementing rate-limited, cached JSON fetch mechanics.
    """

    source_key: str = "source"

    def __init__(
        self,
        *,
        session: requests.Session,
        rate_limiter: SourceRateLimiter,
        user_agent: str,
        timeout_seconds: float,
        max_retries: int,
        backoff_initial_seconds: float,
        backoff_multiplier: float,
        cache_ttl_seconds: float = 0.0,
        retry_rate_limit_wait_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.rate_limiter = rate_limiter
        self.request_headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.backoff_initial_seconds = backoff_initial_seconds
        self.backoff_multiplier = backoff_multiplier
        self.cache_ttl_seconds = cache_ttl_seconds
        self.retry_rate_limit_wait_seconds = retry_rate_limit_wait_seconds
        self._sleep = sleep
        self._cache: dict[str, tuple[float, Any]] = {}
        self._cache_lock = threading.Lock()

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache = {}

    def fetch_json(self, url: str) -> Any:
        """
        Return the decoded JSON document at ``url``, from cache when fresh.
        """

        cached = self._cache_get(url)
        if cached is not None:
            return cached

        response = self._request_with_retry(url)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError(f"Failed to parse JSON response from {url}: {exc}") from exc

        self._cache_put(url, payload)
        return payload

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            self._acquire_request_slot(url, first_attempt=attempt == 0)
            try:
                response = self.session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.timeout_seconds,
                    allow_redirects=True,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            else:
                if response.status_code == TOO_MANY_REQUESTS:
                    retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                    log_rate_limit(logger, service=self.source_key, retry_after=retry_after, url=url)
                    raise RateLimitError(
                        f"Source '{self.source_key}' responded 429 for {url}",
                        source=self.source_key,
                        retry_after_seconds=retry_after,
                    )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    last_error = FetchError(f"HTTP error {response.status_code} for {url}")
                elif response.status_code >= 400:
                    raise FetchError(f"HTTP error {response.status_code}: {response.reason} for {url}")
                else:
                    return response

            if attempt >= self.max_retries:
                break

            backoff_seconds = self.backoff_initial_seconds * (self.backoff_multiplier**attempt)
            log_event(
                logger,
                logging.WARNING,
                "source_request_retry",
                source=self.source_key,
                url=url,
                attempt=attempt + 1,
                backoff_seconds=backoff_seconds,
                error=str(last_error),
            )
            self._sleep(backoff_seconds)

        raise FetchError(f"Network error while fetching {url}: {last_error}")

    def _acquire_request_slot(self, url: str, *, first_attempt: bool) -> None:
        """
        Record one limiter slot per HTTP request.

        The first attempt fails fast so the caller can reschedule; retries
        wait for a slot, up to ``retry_rate_limit_wait_seconds``.
        """

        try:
            if first_attempt:
                self.rate_limiter.check(self.source_key)
            else:
                self.rate_limiter.wait(self.source_key, timeout=self.retry_rate_limit_wait_seconds)
        except RateLimitError as exc:
            log_rate_limit(
                logger,
                service=self.source_key,
                retry_after=exc.retry_after_seconds,
                url=url,
            )
            raise

    def _cache_get(self, url: str) -> Any | None:
        if self.cache_ttl_seconds <= 0:
            return None
        with self._cache_lock:
            entry = self._cache.get(url)
            if entry is None:
                return None
            stored_at, payload = entry
            if time.monotonic() - stored_at > self.cache_ttl_seconds:
                self._cache.pop(url, None)
                return None
            return payload

    def _cache_put(self, url: str, payload: Any) -> None:
        if self.cache_ttl_seconds <= 0:
            return
        with self._cache_lock:
            self._cache[url] = (time.monotonic(), payload)


def _parse_retry_after(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return max(0.0, float(raw.strip()))
    except ValueError:
        return None
