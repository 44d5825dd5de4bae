"""Tests for the login throttle."""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from maktaba.app.middleware import rate_limit
from maktaba.app.middleware.rate_limit import InMemoryRateLimiter


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch) -> _Clock:
    fake = _Clock()
    monkeypatch.setattr(rate_limit.time, "monotonic", fake)
    return fake


class TestInMemoryRateLimiter:
    def test_blocks_once_the_window_is_full(self, clock: _Clock) -> None:
        limiter = InMemoryRateLimiter(window_seconds=60, max_attempts=2)
        limiter.check("10.0.0.1")
        limiter.check("10.0.0.1")
        with pytest.raises(HTTPException) as exc:
            limiter.check("10.0.0.1")
        assert exc.value.status_code == 429
        assert exc.value.headers["Retry-After"] == "61"

        clock.now += 60
        limiter.check("10.0.0.1")

    def test_addresses_are_counted_separately(self, clock: _Clock) -> None:
        limiter = InMemoryRateLimiter(window_seconds=60, max_attempts=1)
        limiter.check("10.0.0.1")
        limiter.check("10.0.0.2")
        with pytest.raises(HTTPException):
            limiter.check("10.0.0.1")

    def test_idle_addresses_are_forgotten(self, clock: _Clock) -> None:
        limiter = InMemoryRateLimiter(window_seconds=60, max_attempts=5)
        for n in range(100):
            limiter.check(f"10.0.1.{n}")
        assert len(limiter._hits) == 100

        clock.now += 61
        limiter.check("10.0.2.1")
        assert list(limiter._hits) == ["10.0.2.1"]

    def test_reset_single_address(self, clock: _Clock) -> None:
        limiter = InMemoryRateLimiter(window_seconds=60, max_attempts=1)
        limiter.check("10.0.0.1")
        limiter.reset("10.0.0.1")
        limiter.check("10.0.0.1")
