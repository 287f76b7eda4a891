"""Bounded retry for non-critical external calls."""

import asyncio
from typing import Awaitable, Callable, TypeVar

from src.infrastructure.logging.logger import get_app_logger


T = TypeVar("T")

# Later failures wait this many times the base delay.
LATER_DELAY_FACTOR = 3


def retry_delay(failure_number: int, base_delay: float) -> float:
    """Return the wait after the given failure (1-based).

    Args:
        failure_number: How many attempts have failed so far.
        base_delay: Delay after the first failure, in seconds.

    Returns:
        float: ``base_delay`` after the first failure, three times that
        after every later one.
    """
    if failure_number <= 1:
        return base_delay
    return base_delay * LATER_DELAY_FACTOR


async def with_retry(
    action: Callable[[], Awaitable[T]],
    max_attempts: int = 2,
    base_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    logger=None,
    label: str = "external call",
) -> T:
    """Run an async action, retrying on failure.

    The action runs at most ``max_attempts + 1`` times. Only use this for
    enrichment fetches whose failure must not abort a load; calls that
    post to the ledger are never retried.

    Args:
        action: Zero-argument coroutine factory.
        max_attempts: Number of retries after the first attempt.
        base_delay: Delay after the first failure, in seconds.
        sleep: Awaitable sleep used between attempts.
        logger: Optional logger compatible with logging.Logger-like API.
        label: Name used in log messages.

    Returns:
        T: Result of the first successful attempt.

    Raises:
        Exception: The error of the final attempt, unchanged.
    """
    resolved_logger = logger or get_app_logger()
    failures = 0
    while True:
        try:
            return await action()
        except Exception as exc:
            failures += 1
            if failures > max_attempts:
                resolved_logger.error(
                    f"{label} failed after {failures} attempts: {exc}"
                )
                raise
            delay = retry_delay(failures, base_delay)
            resolved_logger.warning(
                f"{label} failed (attempt {failures}), "
                f"retrying in {delay:.1f}s: {exc}"
            )
            await sleep(delay)


__all__ = ["with_retry", "retry_delay", "LATER_DELAY_FACTOR"]
