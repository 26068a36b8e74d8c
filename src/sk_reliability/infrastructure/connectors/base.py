"""Base AI connector interfaces"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from sk_reliability.domain.config.retry import RetryConfig, retry_config_from_dict
from sk_reliability.domain.models.attempt import describe_status
from sk_reliability.infrastructure.http_client import post_json_with_retries
from sk_reliability.infrastructure.retry import RetryEventSink


class AIServiceError(Exception):
    """Error raised by an AI backend connector"""

    class ErrorCode(str, Enum):
        SERVICE_ERROR = "service_error"
        INVALID_RESPONSE = "invalid_response"
        UNKNOWN_ERROR = "unknown_error"

    def __init__(self, code: "AIServiceError.ErrorCode", message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class AIConnector(ABC):
    """Abstract base class for AI backend connectors"""

    def __init__(
        self,
        config: Dict[str, Any],
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ):
        """Initialize connector with configuration

        Args:
            config: Connector configuration dictionary (retry keys included)
            transport: Inner HTTP transport (real network when None)
            sink: Receiver of retry events

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config
        self._validate_config(config)
        self.timeout = float(config.get("timeout", 60))
        self.retry: Optional[RetryConfig] = (
            retry_config_from_dict(config) if config.get("retry_enabled", True) else None
        )
        self._transport = transport
        self._sink = sink

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate connector configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    async def _post_json(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        """POST through the retrying transport and fail on a non-2xx final response"""
        try:
            response = await post_json_with_retries(
                url,
                payload=payload,
                headers=headers,
                timeout=self.timeout,
                retry=self.retry,
                transport=self._transport,
                sink=self._sink,
            )
        except httpx.HTTPError as e:
            raise AIServiceError(
                AIServiceError.ErrorCode.UNKNOWN_ERROR, f"Something went wrong: {e}"
            ) from e

        if not response.is_success:
            raise AIServiceError(
                AIServiceError.ErrorCode.SERVICE_ERROR,
                f"{self.__class__.__name__} request failed: {describe_status(response.status_code)}",
                status_code=response.status_code,
            )
        return response


class TextCompletionConnector(AIConnector):
    """Connector that completes text prompts"""

    @abstractmethod
    async def complete(self, prompt: str, **kwargs) -> str:
        """Generate a completion for ``prompt``

        Args:
            prompt: Input prompt
            **kwargs: Additional parameters (temperature, max_tokens, etc.)

        Raises:
            AIServiceError: If the backend call fails
        """


class EmbeddingConnector(AIConnector):
    """Connector that turns texts into embedding vectors"""

    @abstractmethod
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed each text, preserving order"""


class ImageGenerationConnector(AIConnector):
    """Connector that generates images from a description"""

    @abstractmethod
    async def generate_image(self, description: str, width: int, height: int) -> str:
        """Generate an image and return it as a data URI (or URL)"""
