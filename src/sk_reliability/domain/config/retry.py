"""Retry configuration model."""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BackoffStrategy(str, Enum):
    """How the delay between two attempts is computed."""

    NONE = "none"  # retry immediately
    CONSTANT = "constant"  # delay = base_delay
    EXPONENTIAL = "exponential"  # delay = base_delay * 2 ** (attempt - 1)
    RETRY_AFTER_HEADER = "retry_after_header"  # server hint, else base_delay


DEFAULT_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({408, 429, 503, 504})


class RetryConfig(BaseModel):
    """Configuration for HTTP retry logic.

    Attributes:
        max_attempts: Total number of invocations, the first one included
        backoff_strategy: Delay strategy between attempts
        base_delay: Constant delay, exponential base and Retry-After fallback (seconds)
        max_delay: Upper bound for any single delay (seconds)
        max_total_retry_time: Time budget for the whole call, None disables it (seconds)
        jitter: Random +/- fraction applied to constant and exponential delays
        retryable_status_codes: Response status codes that trigger a retry
        retry_on_transport_errors: Retry on timeouts and network errors
    """

    max_attempts: int = Field(3, ge=1)
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    base_delay: float = Field(2.0, ge=0.0)  # Allow 0 for tests
    max_delay: float = Field(60.0, ge=0.0)
    max_total_retry_time: Optional[float] = Field(120.0, gt=0.0)
    jitter: float = Field(0.0, ge=0.0, le=1.0)
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retry_on_transport_errors: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("retryable_status_codes")
    @classmethod
    def _check_status_codes(cls, codes: FrozenSet[int]) -> FrozenSet[int]:
        for code in codes:
            if not 100 <= code <= 599:
                raise ValueError(f"invalid HTTP status code: {code}")
        return codes

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryConfig":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        return self


def retry_config_from_dict(config: Dict[str, Any]) -> RetryConfig:
    """Parse retry config from a connector config dict, supporting legacy aliases.

    Unknown keys are ignored so the whole connector config can be passed in.

    Raises:
        ValueError: If a retry value is invalid
    """
    values: Dict[str, Any] = {}
    for key in RetryConfig.model_fields:
        if key in config:
            values[key] = config[key]

    # Legacy keys, counted as retries rather than attempts
    if "max_attempts" not in values and config.get("max_retry_count") is not None:
        retry_count = int(config["max_retry_count"])
        if retry_count < 0:
            raise ValueError("max_retry_count cannot be negative")
        values["max_attempts"] = retry_count + 1
    if "base_delay" not in values and config.get("min_retry_delay") is not None:
        values["base_delay"] = config["min_retry_delay"]
    if "max_delay" not in values and config.get("max_retry_delay") is not None:
        values["max_delay"] = config["max_retry_delay"]
    if "backoff_strategy" not in values and "use_exponential_backoff" in config:
        values["backoff_strategy"] = (
            BackoffStrategy.EXPONENTIAL
            if config["use_exponential_backoff"]
            else BackoffStrategy.CONSTANT
        )

    return RetryConfig(**values)
