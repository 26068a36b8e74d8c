"""Configuration models with Pydantic validation."""

from sk_reliability.domain.config.app import AppConfig
from sk_reliability.domain.config.connector import ConnectorConfig
from sk_reliability.domain.config.retry import (
    BackoffStrategy,
    RetryConfig,
    retry_config_from_dict,
)

__all__ = [
    "AppConfig",
    "ConnectorConfig",
    "RetryConfig",
    "BackoffStrategy",
    "retry_config_from_dict",
]
