"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from sk_reliability.domain.config.connector import ConnectorConfig
from sk_reliability.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        connector: AI backend connector configuration
        retry: HTTP retry configuration
    """

    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "connector": {
                    "provider": "openai",
                    "model": "gpt-4o-mini",
                    "temperature": 0.7,
                    "max_tokens": 2000,
                    "top_p": 0.9,
                    "timeout": 60,
                },
                "retry": {
                    "max_attempts": 3,
                    "backoff_strategy": "exponential",
                    "base_delay": 2.0,
                    "max_delay": 60.0,
                    "max_total_retry_time": 120.0,
                    "retryable_status_codes": [408, 429, 503, 504],
                },
            }
        },
    )
