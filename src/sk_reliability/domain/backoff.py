"""Retry classification and backoff computation.

Pure functions shared by the retry executor and the CLI schedule preview:

* :func:`is_retryable_status` / :func:`is_transport_fault` classify an attempt.
* :func:`compute_delay` maps (strategy, attempt number, last response) to a delay.
* :func:`decide` combines both with the attempt limit into a :class:`RetryDecision`.
"""

from __future__ import annotations

import asyncio
import math
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import httpx

from sk_reliability.domain.config.retry import BackoffStrategy, RetryConfig
from sk_reliability.domain.models.attempt import AttemptOutcome, RetryDecision

RETRY_AFTER_HEADER = "Retry-After"

# Faults that may clear on another attempt; client-side protocol errors do not
_TRANSPORT_FAULTS: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    TimeoutError,
)


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Parse a Retry-After header value into seconds.

    Accepts delta-seconds ("5") or an HTTP-date, in which case the result is the
    date minus ``now`` floored at zero. Returns None for missing or unparseable
    values.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            return None
        return max(seconds, 0.0)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    return max((retry_at - now).total_seconds(), 0.0)


def retry_after_from_response(response: Any, now: Optional[datetime] = None) -> Optional[float]:
    """Read the Retry-After hint from a response object, if any."""
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    return parse_retry_after(headers.get(RETRY_AFTER_HEADER), now)


def is_retryable_status(config: RetryConfig, status_code: Optional[int]) -> bool:
    """Check if a response status code should be retried."""
    return status_code is not None and status_code in config.retryable_status_codes


def is_transport_fault(config: RetryConfig, exc: BaseException) -> bool:
    """Check if an exception raised by the operation should be retried."""
    if isinstance(exc, asyncio.CancelledError):
        return False
    return config.retry_on_transport_errors and isinstance(exc, _TRANSPORT_FAULTS)


def compute_delay(
    config: RetryConfig,
    attempt_number: int,
    response: Any = None,
    now: Optional[datetime] = None,
) -> float:
    """Compute the delay in seconds before the attempt following ``attempt_number``.

    Args:
        config: Retry configuration
        attempt_number: 1-based number of the attempt that just failed
        response: Last response, consulted by the Retry-After strategy
        now: Current time, used to resolve HTTP-date Retry-After values

    Returns:
        Delay in seconds, capped at ``config.max_delay``
    """
    strategy = config.backoff_strategy
    if strategy == BackoffStrategy.NONE:
        return 0.0

    if strategy == BackoffStrategy.RETRY_AFTER_HEADER:
        hinted = retry_after_from_response(response, now)
        delay = config.base_delay if hinted is None else hinted
        return min(delay, config.max_delay)

    if strategy == BackoffStrategy.EXPONENTIAL:
        # Exponent is bounded; max_delay caps the result anyway
        exponent = min(max(attempt_number, 1) - 1, 64)
        delay = config.base_delay * (2**exponent)
    else:
        delay = config.base_delay

    if config.jitter > 0:
        jitter_amount = delay * config.jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, min(delay, config.max_delay))


def decide(
    config: RetryConfig,
    outcome: AttemptOutcome,
    response: Any = None,
    now: Optional[datetime] = None,
) -> RetryDecision:
    """Decide whether to retry after ``outcome``.

    An outcome without a status code but with an ``error_reason`` stands for a
    transport fault.
    """
    if outcome.succeeded or outcome.attempt_number >= config.max_attempts:
        return RetryDecision(should_retry=False)

    if outcome.status_code is not None:
        retryable = is_retryable_status(config, outcome.status_code)
    else:
        retryable = outcome.error_reason is not None and config.retry_on_transport_errors

    if not retryable:
        return RetryDecision(should_retry=False)
    return RetryDecision(
        should_retry=True,
        delay=compute_delay(config, outcome.attempt_number, response, now),
    )
