"""useradmin.infrastructure.services.retry

Name: Backoff policy for outbound HTTP calls

Wraps `tenacity` so every outbound call (today only the Pwned Passwords range
lookup) retries the same way: exponential backoff with jitter, bounded by
Settings, and only for failures that can plausibly go away on their own.

CRC (Component Card)
--------------------
Component: retry policy
Responsibilities:
  - Classify an exception as transient or permanent
  - Build the tenacity decorator from Settings (or explicit overrides)
  - Log each retry before sleeping
Collaborators:
  - tenacity, httpx
  - crosscutting.config.get_settings / crosscutting.logger
"""

from __future__ import annotations

from typing import Callable, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger

T = TypeVar("T")

# R: 408 timeout, 429 rate limit y 5xx de gateway; el resto de 4xx es definitivo.
RETRYABLE_STATUSES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def is_transient_error(exc: BaseException) -> bool:
    """True when retrying `exc` could succeed (network trouble or retryable status)."""
    status = _status_of(exc)
    if status is not None:
        return status in RETRYABLE_STATUSES
    return isinstance(exc, (httpx.TransportError, TimeoutError, ConnectionError))


def _before_sleep(state: RetryCallState) -> None:
    failure = state.outcome.exception() if state.outcome else None
    pause = state.next_action.sleep if state.next_action else 0.0
    logger.warning(
        "Reintentando llamada externa",
        extra={
            "target": getattr(state.fn, "__name__", "?"),
            "attempt": state.attempt_number,
            "sleep_seconds": round(float(pause), 2),
            "error_type": type(failure).__name__ if failure else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Explicit arguments override Settings. The last exception is re-raised so
    the caller decides how to fail (the breach checker fails closed).
    """
    settings = get_settings()
    attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    initial = float(
        settings.retry_base_delay_seconds if base_delay is None else base_delay
    )
    ceiling = float(
        settings.retry_max_delay_seconds if max_delay is None else max_delay
    )

    if attempts < 1 or initial < 0 or ceiling <= 0:
        raise ValueError(
            f"invalid retry policy: attempts={attempts} "
            f"base_delay={initial} max_delay={ceiling}"
        )

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=initial, max=ceiling, jitter=initial),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_before_sleep,
        reraise=True,
    )
