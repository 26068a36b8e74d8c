"""Attempt models - what happened on one attempt and what to do next"""

from dataclasses import dataclass
from http import HTTPStatus
from typing import Optional


def describe_status(status_code: int) -> str:
    """Render a status code with its reason phrase, e.g. "429 Too Many Requests"."""
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)


@dataclass(frozen=True)
class AttemptOutcome:
    """Outcome of a single attempt"""

    attempt_number: int  # 1-based
    succeeded: bool
    status_code: Optional[int] = None
    error_reason: Optional[str] = None  # Fault description when no response came back
    delay_before_next_attempt: Optional[float] = None  # Seconds, None when not retrying

    @property
    def reason(self) -> str:
        """Human readable reason for the outcome"""
        if self.error_reason is not None:
            return self.error_reason
        if self.status_code is not None:
            return describe_status(self.status_code)
        return "unknown"


@dataclass(frozen=True)
class RetryDecision:
    """Whether to retry after an attempt and how long to wait first"""

    should_retry: bool
    delay: float = 0.0
