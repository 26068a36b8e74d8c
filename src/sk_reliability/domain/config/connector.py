"""AI connector configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ConnectorConfig(BaseModel):
    """Configuration for the AI backend connector.

    Attributes:
        provider: Connector name
        model: Model identifier (connector default when None)
        endpoint: Base URL override (provider default when None)
        temperature: Sampling temperature (0.0-2.0)
        max_tokens: Maximum tokens in response
        top_p: Nucleus sampling parameter (0.0-1.0)
        timeout: Per-attempt HTTP timeout in seconds
    """

    provider: Literal["mock", "openai", "vllm", "huggingface"] = "mock"
    model: Optional[str] = None
    endpoint: Optional[str] = None
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(2000, gt=0, le=100000)
    top_p: float = Field(0.9, ge=0.0, le=1.0)
    timeout: float = Field(60.0, gt=0.0)
