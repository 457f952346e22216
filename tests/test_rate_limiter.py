"""
tests/test_rate_limiter.py

Sliding-window budgets with a controllable clock, and concurrent callers
against the real one. No real sleeping.
"""

from __future__ import annotations

import threading

import pytest

from app.scraping.errors import RateLimitError
from app.scraping.rate_limiter import RateLimitPolicy, SourceRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def limiter(clock: FakeClock) -> SourceRateLimiter:
    return SourceRateLimiter(
        policies={
            "edhrec": RateLimitPolicy(max_requests=1, window_seconds=2.0),
            "scryfall": RateLimitPolicy(max_requests=3, window_seconds=1.0),
        },
        clock=clock,
        sleep=clock.sleep,
    )


class TestRateLimitPolicy:
    def test_rejects_empty_budget(self) -> None:
        with pytest.raises(ValueError):
            RateLimitPolicy(max_requests=0, window_seconds=1.0)

    def test_rejects_non_positive_window(self) -> None:
        with pytest.raises(ValueError):
            RateLimitPolicy(max_requests=1, window_seconds=0)


class TestCheck:
    def test_raises_once_budget_is_spent(self, limiter: SourceRateLimiter) -> None:
        limiter.check("edhrec")

        with pytest.raises(RateLimitError) as excinfo:
            limiter.check("edhrec")

        assert excinfo.value.source == "edhrec"
        assert excinfo.value.retry_after_seconds == pytest.approx(2.0)

    def test_allows_again_after_the_window(self, limiter: SourceRateLimiter, clock: FakeClock) -> None:
        limiter.check("edhrec")
        clock.now += 2.0

        limiter.check("edhrec")

    def test_retry_after_shrinks_as_time_passes(self, limiter: SourceRateLimiter, clock: FakeClock) -> None:
        limiter.check("edhrec")
        clock.now += 1.5

        with pytest.raises(RateLimitError) as excinfo:
            limiter.check("edhrec")

        assert excinfo.value.retry_after_seconds == pytest.approx(0.5)

    def test_sources_are_independent(self, limiter: SourceRateLimiter) -> None:
        limiter.check("edhrec")

        for _ in range(3):
            limiter.check("scryfall")

    def test_keys_are_case_insensitive(self, limiter: SourceRateLimiter) -> None:
        limiter.check("EDHREC")

        with pytest.raises(RateLimitError):
            limiter.check(" edhrec ")

    def test_unknown_source_uses_default_policy(self, clock: FakeClock) -> None:
        limiter = SourceRateLimiter(
            default_policy=RateLimitPolicy(max_requests=2, window_seconds=1.0),
            clock=clock,
        )

        limiter.check("other")
        limiter.check("other")
        with pytest.raises(RateLimitError):
            limiter.check("other")

    def test_blank_key_is_rejected(self, limiter: SourceRateLimiter) -> None:
        with pytest.raises(ValueError):
            limiter.check("  ")


class TestWait:
    def test_sleeps_until_a_slot_frees(self, limiter: SourceRateLimiter, clock: FakeClock) -> None:
        limiter.wait("edhrec")
        limiter.wait("edhrec")

        assert clock.sleeps == [pytest.approx(2.0)]

    def test_raises_when_wait_exceeds_timeout(self, limiter: SourceRateLimiter, clock: FakeClock) -> None:
        limiter.wait("edhrec")

        with pytest.raises(RateLimitError):
            limiter.wait("edhrec", timeout=0.5)
        assert clock.sleeps == []


class TestResetAndRemaining:
    def test_remaining_counts_down(self, limiter: SourceRateLimiter) -> None:
        assert limiter.remaining("scryfall") == 3
        limiter.check("scryfall")
        assert limiter.remaining("scryfall") == 2

    def test_reset_one_source(self, limiter: SourceRateLimiter) -> None:
        limiter.check("edhrec")
        limiter.check("scryfall")

        limiter.reset("edhrec")

        assert limiter.remaining("edhrec") == 1
        assert limiter.remaining("scryfall") == 2

    def test_clear_all_state_restores_every_budget(self, limiter: SourceRateLimiter) -> None:
        limiter.check("edhrec")
        for _ in range(3):
            limiter.check("scryfall")

        limiter.clear_all_state()

        limiter.check("edhrec")
        limiter.check("scryfall")


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def _run_together(count: int, target) -> None:
    barrier = threading.Barrier(count)

    def start(index: int) -> None:
        barrier.wait()
        target(index)

    threads = [threading.Thread(target=start, args=(index,)) for index in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)


class TestConcurrentCallers:
    def test_budget_is_never_oversubscribed(self) -> None:
        limiter = SourceRateLimiter(policies={"edhrec": RateLimitPolicy(max_requests=5, window_seconds=60.0)})
        allowed: list[int] = []
        rejected: list[int] = []

        def call(index: int) -> None:
            try:
                limiter.check("edhrec")
            except RateLimitError:
                rejected.append(index)
            else:
                allowed.append(index)

        _run_together(32, call)

        assert len(allowed) == 5
        assert len(rejected) == 27
        assert limiter.remaining("edhrec") == 0

    def test_clear_all_state_during_checks(self) -> None:
        limiter = SourceRateLimiter(policies={"edhrec": RateLimitPolicy(max_requests=3, window_seconds=60.0)})
        unexpected: list[BaseException] = []

        def call(index: int) -> None:
            try:
                for _ in range(50):
                    if index % 4 == 0:
                        limiter.clear_all_state()
                    else:
                        try:
                            limiter.check("edhrec")
                        except RateLimitError:
                            pass
                    limiter.remaining("edhrec")
            except Exception as exc:  # noqa: BLE001
                unexpected.append(exc)

        _run_together(16, call)

        assert unexpected == []
        assert 0 <= limiter.remaining("edhrec") <= 3
