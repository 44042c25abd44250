"""
Unit tests for fetch_with_retry.
"""

import pytest

import mediaq.core.retry as retry_module
from mediaq.core.retry import backoff_delay, fetch_with_retry


class Flaky:
    def __init__(self, failures, exc_factory=lambda n: ConnectionError(f"failure {n}")):
        self.failures = failures
        self.exc_factory = exc_factory
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_factory(self.calls)
        return "ok"


@pytest.fixture
def recorded_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return delays


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_sleep(recorded_sleeps):
    op = Flaky(failures=0)

    assert await fetch_with_retry(op) == "ok"
    assert op.calls == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_recovers_after_transient_failures(recorded_sleeps):
    op = Flaky(failures=2)

    assert await fetch_with_retry(op, retries=3, delay=1) == "ok"
    assert op.calls == 3
    assert recorded_sleeps == [1, 2]


@pytest.mark.asyncio
async def test_exhausted_retries_reraise_last_error_unchanged(recorded_sleeps):
    errors = []

    def make_error(n):
        error = ConnectionError(f"failure {n}")
        errors.append(error)
        return error

    op = Flaky(failures=10, exc_factory=make_error)

    with pytest.raises(ConnectionError) as exc_info:
        await fetch_with_retry(op, retries=3, delay=1)

    assert op.calls == 4
    assert exc_info.value is errors[-1]
    assert recorded_sleeps == [1, 2, 4]


@pytest.mark.asyncio
async def test_zero_retries_runs_once(recorded_sleeps):
    op = Flaky(failures=1)

    with pytest.raises(ConnectionError):
        await fetch_with_retry(op, retries=0)

    assert op.calls == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_delay_scales_with_base(recorded_sleeps):
    op = Flaky(failures=3)

    await fetch_with_retry(op, retries=3, delay=0.5)

    assert recorded_sleeps == [0.5, 1.0, 2.0]


@pytest.mark.parametrize(
    "attempt, base, expected",
    [(1, 1, 1), (2, 1, 2), (3, 1, 4), (2, 0.25, 0.5), (3, 0, 0)],
)
def test_backoff_delay_doubles_from_base(attempt, base, expected):
    assert backoff_delay(attempt, base) == expected
