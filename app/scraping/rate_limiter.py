"""
Source-aware request rate limiter.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from app.scraping.errors import RateLimitError


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    Allow at most ``max_requests`` per sliding ``window_seconds``.
    """

    max_requests: int
    window_seconds: float

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1.")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive.")


class SourceRateLimiter:
    """
    Sliding-window request budget per source.

    One instance is meant to be shared by every client in the process. All
    state lives behind a single lock that is never held while sleeping or
    while a request is in flight.
    """

    def __init__(
        self,
        *,
        policies: Mapping[str, RateLimitPolicy] | None = None,
        default_policy: RateLimitPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._policies = {key.strip().lower(): value for key, value in (policies or {}).items()}
        self._default_policy = default_policy or RateLimitPolicy(max_requests=1, window_seconds=1.0)
        self._clock = clock
        self._sleep = sleep
        self._requests_by_source: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def policy_for(self, source_key: str) -> RateLimitPolicy:
        return self._policies.get(_normalize_key(source_key), self._default_policy)

    def check(self, source_key: str) -> None:
        """
        Record one request for ``source_key`` or raise ``RateLimitError``.

        Never blocks; the caller decides whether to abort or reschedule.
        """

        key = _normalize_key(source_key)
        retry_after = self._try_acquire(key)
        if retry_after > 0:
            raise RateLimitError(
                f"Rate limit exceeded for source '{key}'",
                source=key,
                retry_after_seconds=retry_after,
            )

    def wait(self, source_key: str, *, timeout: float | None = None) -> None:
        """
        Block until a request for ``source_key`` is allowed, then record it.

        Raises ``RateLimitError`` when the required wait would exceed ``timeout``.
        """

        key = _normalize_key(source_key)
        deadline = None if timeout is None else self._clock() + max(0.0, timeout)
        while True:
            retry_after = self._try_acquire(key)
            if retry_after <= 0:
                return
            if deadline is not None and self._clock() + retry_after > deadline:
                raise RateLimitError(
                    f"Rate limit wait for source '{key}' exceeds timeout",
                    source=key,
                    retry_after_seconds=retry_after,
                )
            self._sleep(retry_after)

    def remaining(self, source_key: str) -> int:
        """
        Requests still allowed for ``source_key`` in the current window.
        """

        key = _normalize_key(source_key)
        policy = self.policy_for(key)
        with self._lock:
            window = self._requests_by_source.get(key)
            if window is None:
                return policy.max_requests
            self._evict_expired(window, policy, self._clock())
            return max(0, policy.max_requests - len(window))

    def reset(self, source_key: str | None = None) -> None:
        """
        Drop recorded requests for one source, or for every source.
        """

        with self._lock:
            if source_key is None:
                self._requests_by_source = {}
            else:
                self._requests_by_source.pop(_normalize_key(source_key), None)

    def clear_all_state(self) -> None:
        self.reset()

    def _try_acquire(self, key: str) -> float:
        """
        Return 0 when the request was recorded, else seconds until a slot frees.
        """

        policy = self.policy_for(key)
        with self._lock:
            now = self._clock()
            window = self._requests_by_source.setdefault(key, deque())
            self._evict_expired(window, policy, now)
            if len(window) < policy.max_requests:
                window.append(now)
                return 0.0
            return max(1e-3, window[0] + policy.window_seconds - now)

    @staticmethod
    def _evict_expired(window: deque[float], policy: RateLimitPolicy, now: float) -> None:
        while window and now - window[0] >= policy.window_seconds:
            window.popleft()


def _normalize_key(source_key: str) -> str:
    key = (source_key or "").strip().lower()
    if not key:
        raise ValueError("source_key must be a non-empty string.")
    return key
