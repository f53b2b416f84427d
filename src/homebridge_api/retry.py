"""
Retry eligibility, exponential backoff, and the retry wrapper.

Schedule with the default config: attempt 0 → wait 1 s, attempt 1 → 2 s,
attempt 2 → 4 s; at most 3 retries (4 attempts in total).  There is no
jitter and no memory across calls: every top-level call starts at attempt 0.
"""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from .config import DEFAULT_CONFIG, ClientConfig
from .errors import is_network_error, resolve_status

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Backoff helpers
# ---------------------------------------------------------------------------

def exponential_backoff(attempt: int, config: ClientConfig = DEFAULT_CONFIG) -> int:
    """
    Return the wait in milliseconds before retrying after ``attempt``.

    Args:
        attempt: 0-based count of retries already made.
        config: Supplies the base delay.

    Returns:
        ``retry_delay_ms * 2**attempt``.
    """
    return config.retry_delay_ms * (2 ** attempt)


def wait_with_progress(
    delay_ms: int,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "Retrying in",
) -> None:
    """Sleep for ``delay_ms`` with a printed progress note."""
    print(f"  {label} {delay_ms / 1000:g}s...")
    sleep(delay_ms / 1000)


def should_retry(
    error: Exception,
    attempt: int,
    config: ClientConfig = DEFAULT_CONFIG,
) -> bool:
    """
    Decide whether a failed call should be retried.

    Args:
        error: Exception raised by the attempt that just failed.
        attempt: 0-based count of retries already made.
        config: Retry ceiling, transient statuses, network-error flag.

    Returns:
        ``True`` if the call should be retried.
    """
    if attempt >= config.max_retries:
        return False

    status = resolve_status(error)
    if status is not None:
        return status in config.retry_status_codes

    return config.retry_network_errors and is_network_error(error)


# ---------------------------------------------------------------------------
# Main retry wrapper
# ---------------------------------------------------------------------------

def call_with_retry(
    func: Callable[[], T],
    config: ClientConfig = DEFAULT_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` and retry it on transient failures.

    The same zero-argument callable is invoked on every attempt, so the
    identical request is re-sent.  Non-retryable failures, and the last
    failure once retries are exhausted, are re-raised unchanged.

    Args:
        func: Performs exactly one attempt.
        config: Retry settings.
        sleep: Sleep function taking seconds (injectable for tests).

    Returns:
        Whatever ``func`` returns on the first successful attempt.
    """
    attempt = 0
    while True:
        try:
            return func()
        except Exception as exc:
            if not should_retry(exc, attempt, config):
                raise

            status = resolve_status(exc)
            print(
                f"  Attempt {attempt + 1}/{config.max_retries + 1} failed "
                f"[{status if status is not None else 'network'}]: {str(exc)[:120]}"
            )
            wait_with_progress(exponential_backoff(attempt, config), sleep)
            attempt += 1
