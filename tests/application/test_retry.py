"""Tests for the bounded retry helper."""

import asyncio
from unittest.mock import MagicMock

import pytest

from src.application.use_cases.retry import retry_delay, with_retry


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _flaky(failures: int):
    calls = {"count": 0}

    async def action():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise RuntimeError(f"boom {calls['count']}")
        return "ok"

    return action, calls


def test_retry_delay_schedule() -> None:
    """The first retry waits the base delay, later ones three times it."""
    assert retry_delay(1, 1.0) == 1.0
    assert retry_delay(2, 1.0) == 3.0
    assert retry_delay(5, 0.5) == 1.5


def test_two_failures_then_success_waits_one_then_three_seconds() -> None:
    """Two failures should be followed by waits of 1s and 3s."""
    action, calls = _flaky(failures=2)
    sleep = RecordingSleep()

    result = asyncio.run(
        with_retry(action, max_attempts=2, sleep=sleep, logger=MagicMock())
    )

    assert result == "ok"
    assert calls["count"] == 3
    assert sleep.delays == [1.0, 3.0]


def test_exhausted_retries_raise_last_error() -> None:
    """The action should run at most max_attempts + 1 times."""
    action, calls = _flaky(failures=10)
    sleep = RecordingSleep()
    logger = MagicMock()

    with pytest.raises(RuntimeError, match="boom 3"):
        asyncio.run(
            with_retry(action, max_attempts=2, sleep=sleep, logger=logger)
        )

    assert calls["count"] == 3
    assert sleep.delays == [1.0, 3.0]
    assert logger.warning.call_count == 2
    logger.error.assert_called_once()


def test_success_does_not_sleep() -> None:
    """A first-attempt success should return immediately."""
    action, calls = _flaky(failures=0)
    sleep = RecordingSleep()

    assert asyncio.run(
        with_retry(action, sleep=sleep, logger=MagicMock())
    ) == "ok"
    assert calls["count"] == 1
    assert sleep.delays == []
