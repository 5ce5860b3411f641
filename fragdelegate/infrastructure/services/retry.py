"""
Name: Retry Helper with Linear Backoff

Responsibilities:
  - Build tenacity retry controllers for backend calls
  - Apply linear backoff: wait attempt * backoff between attempts
  - Log retry attempts for observability

Collaborators:
  - tenacity: Retry library with configurable strategies
  - crosscutting.config.Settings: default attempts and backoff
  - logger: Structured logging with run correlation

Constraints:
  - Every Exception is retried (errors and timeouts alike); cancellation is not
  - max_attempts counts backend calls, not retries: 3 means at most 3 calls
  - The last exception is re-raised once attempts are exhausted

Notes:
  - Backoff 1s gives waits of 1s, 2s, ... (wait_incrementing)
  - Tests pass backoff 0 to run without real delays
"""

from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger


def _log_retry(retry_state: RetryCallState) -> None:
    """
    R: Log retry attempts with context for observability.

    Called before each backoff sleep to record:
      - Attempt number that just failed
      - Wait time before next attempt
      - Last exception
    """
    attempt = retry_state.attempt_number
    wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None

    logger.warning(
        f"Backend attempt {attempt} failed, retrying",
        extra={
            "attempt": attempt,
            "wait_seconds": round(wait_time, 2),
            "error": str(exc) if exc else None,
            "error_type": type(exc).__name__ if exc else None,
        },
    )


def create_async_retrying(
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> AsyncRetrying:
    """
    R: Create an async retry controller with linear backoff.

    Uses settings from config unless overridden.

    Args:
        max_attempts: Maximum backend calls (default from settings)
        backoff_seconds: Backoff unit (default from settings)
        sleep: Custom awaitable sleep (tests)

    Returns:
        Configured tenacity AsyncRetrying, used as:
            async for attempt in retrying:
                with attempt:
                    await call()
    """
    if max_attempts is None or backoff_seconds is None:
        settings = get_settings()
        if max_attempts is None:
            max_attempts = settings.max_retries
        if backoff_seconds is None:
            backoff_seconds = settings.retry_backoff_ms / 1000

    _max_attempts = max_attempts
    _backoff = backoff_seconds

    kwargs = {}
    if sleep is not None:
        kwargs["sleep"] = sleep

    return AsyncRetrying(
        stop=stop_after_attempt(_max_attempts),
        wait=wait_incrementing(start=_backoff, increment=_backoff),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry,
        reraise=True,  # R: Re-raise last exception after all attempts exhausted
        **kwargs,
    )
