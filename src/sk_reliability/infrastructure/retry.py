"""Async retry executor using tenacity.

This module wraps a single HTTP-issuing coroutine with retry logic: each
attempt is classified (retryable status or transport fault), delayed according
to the configured backoff strategy and re-invoked until it succeeds, fails
terminally or runs out of attempts or time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
)
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from sk_reliability.domain.backoff import compute_delay, is_retryable_status, is_transport_fault
from sk_reliability.domain.config.retry import RetryConfig
from sk_reliability.domain.models.attempt import AttemptOutcome

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT")
Operation = Callable[[], Awaitable[ResponseT]]

RETRY_EVENT = "retry"
RETRY_EXHAUSTED_EVENT = "retry_exhausted"


class RetryEventSink(Protocol):
    """Receives structured retry events."""

    def warn(self, event: str, **fields: Any) -> None:
        ...


class LoggingRetrySink:
    """Retry event sink writing WARNING records to a stdlib logger.

    The raw fields are attached to each record as ``record.retry``.
    """

    MESSAGES: Dict[str, str] = {
        RETRY_EVENT: (
            "Error executing request [attempt {attempt} of {max_attempts}]. "
            "Reason: {reason}. Will retry after {delay_ms:.0f}ms"
        ),
        RETRY_EXHAUSTED_EVENT: "Error executing request, {limit}. Reason: {reason}",
    }

    def __init__(self, target: Optional[logging.Logger] = None):
        self._logger = target or logger

    def warn(self, event: str, **fields: Any) -> None:
        template = self.MESSAGES.get(event)
        message = template.format(**fields) if template else f"{event}: {fields}"
        self._logger.warning(message, extra={"retry": {"event": event, **fields}})


class wait_for_policy(wait_base):
    """Wait strategy delegating to :func:`compute_delay`."""

    def __init__(self, config: RetryConfig, utcnow: Callable[[], datetime]):
        self.config = config
        self.utcnow = utcnow

    def __call__(self, retry_state: RetryCallState) -> float:
        response = None
        if retry_state.outcome is not None and not retry_state.outcome.failed:
            response = retry_state.outcome.result()
        return compute_delay(self.config, retry_state.attempt_number, response, self.utcnow())


class stop_after_total_time(stop_base):
    """Stop when the upcoming sleep would overrun the total retry time budget."""

    def __init__(self, max_total: float, started_at: float, clock: Callable[[], float]):
        self.max_total = max_total
        self.started_at = started_at
        self.clock = clock

    def __call__(self, retry_state: RetryCallState) -> bool:
        elapsed = self.clock() - self.started_at
        return elapsed + retry_state.upcoming_sleep >= self.max_total


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def attempt_outcome(retry_state: RetryCallState, delay: Optional[float] = None) -> AttemptOutcome:
    """Build the outcome record for the attempt tenacity just finished."""
    outcome = retry_state.outcome
    if outcome is None:
        raise ValueError("attempt has not completed yet")

    if outcome.failed:
        exc = outcome.exception()
        reason = type(exc).__name__
        if str(exc):
            reason = f"{reason}: {exc}"
        return AttemptOutcome(
            attempt_number=retry_state.attempt_number,
            succeeded=False,
            error_reason=reason,
            delay_before_next_attempt=delay,
        )

    status_code = getattr(outcome.result(), "status_code", None)
    return AttemptOutcome(
        attempt_number=retry_state.attempt_number,
        succeeded=False,
        status_code=status_code,
        delay_before_next_attempt=delay,
    )


class RetryExecutor:
    """Executes an async HTTP operation with retry logic.

    The operation is retried when it raises a transport fault or returns a
    response whose status code is in ``retryable_status_codes``. Anything else
    is handed back on the first attempt. Once attempts or the total time budget
    run out, the last response is returned (or the last exception re-raised)
    unchanged, after a single terminal warning.

    Cancelling the calling task aborts both a running attempt and an
    inter-attempt sleep with ``asyncio.CancelledError``.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sink: Optional[RetryEventSink] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        utcnow: Callable[[], datetime] = _utcnow,
    ):
        """Initialize retry executor

        Args:
            config: Default retry configuration (overridable per call)
            sink: Receiver of retry events (defaults to logging)
            sleep: Awaitable used between attempts
            clock: Monotonic clock for the total retry time budget
            utcnow: Wall clock used to resolve HTTP-date Retry-After values
        """
        self.config = config or RetryConfig()
        self.sink: RetryEventSink = sink or LoggingRetrySink()
        self._sleep = sleep
        self._clock = clock
        self._utcnow = utcnow

    async def execute_with_retry(
        self, operation: Operation[ResponseT], policy: Optional[RetryConfig] = None
    ) -> ResponseT:
        """Run ``operation`` until it succeeds or retrying stops.

        Args:
            operation: Zero-argument coroutine function issuing one request
            policy: Retry configuration for this call (executor default if None)

        Returns:
            The response of the last attempt
        """
        retrying = self._build_retrying(policy or self.config)
        return await retrying(operation)

    def _build_retrying(self, config: RetryConfig) -> AsyncRetrying:
        # Fresh controller per call: attempt counter and time budget are never shared
        stop = stop_after_attempt(config.max_attempts)
        if config.max_total_retry_time is not None:
            stop = stop | stop_after_total_time(
                config.max_total_retry_time, self._clock(), self._clock
            )

        retry = retry_if_exception(lambda exc: is_transport_fault(config, exc)) | retry_if_result(
            lambda response: is_retryable_status(config, getattr(response, "status_code", None))
        )

        def _before_sleep(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            outcome = attempt_outcome(retry_state, delay)
            self.sink.warn(
                RETRY_EVENT,
                attempt=outcome.attempt_number,
                max_attempts=config.max_attempts,
                delay_ms=delay * 1000,
                reason=outcome.reason,
                status_code=outcome.status_code,
            )

        def _on_exhausted(retry_state: RetryCallState) -> Any:
            outcome = attempt_outcome(retry_state)
            if retry_state.attempt_number >= config.max_attempts:
                limit = "max retry count reached"
            else:
                limit = "max total retry time reached"
            self.sink.warn(
                RETRY_EXHAUSTED_EVENT,
                attempt=outcome.attempt_number,
                max_attempts=config.max_attempts,
                limit=limit,
                reason=outcome.reason,
                status_code=outcome.status_code,
            )
            # Returns the last response or re-raises the last exception
            return retry_state.outcome.result()

        return AsyncRetrying(
            stop=stop,
            wait=wait_for_policy(config, self._utcnow),
            retry=retry,
            sleep=self._sleep,
            before_sleep=_before_sleep,
            retry_error_callback=_on_exhausted,
            reraise=True,
        )


class NullRetryExecutor:
    """A retry executor that does not retry."""

    async def execute_with_retry(
        self, operation: Operation[ResponseT], policy: Optional[RetryConfig] = None
    ) -> ResponseT:
        return await operation()
