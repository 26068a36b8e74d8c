"""HuggingFace text-to-image connector"""

import base64
import logging
import os
from typing import Any, Dict, Optional

import httpx

from sk_reliability.infrastructure.connectors.base import AIServiceError, ImageGenerationConnector
from sk_reliability.infrastructure.retry import RetryEventSink

logger = logging.getLogger(__name__)


class HuggingFaceTextToImage(ImageGenerationConnector):
    """HuggingFace Inference API image generation.

    See https://huggingface.co/docs/api-inference/index
    """

    ENDPOINT = "https://api-inference.huggingface.co/models"
    USER_AGENT = "sk-reliability"

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ):
        """Initialize HuggingFace connector

        Args:
            config: Configuration dictionary with:
                - model: Model name (required)
                - api_key: HuggingFace API key (or from HUGGINGFACE_API_KEY env)
                - endpoint: Inference endpoint (default: public Inference API)
        """
        if config is None:
            config = {}
        super().__init__(config, transport=transport, sink=sink)

        self.model = config["model"]
        self.endpoint = (config.get("endpoint") or self.ENDPOINT).rstrip("/")
        self.api_key = config.get("api_key") or os.getenv("HUGGINGFACE_API_KEY")

    def _validate_config(self, config: Dict[str, Any]) -> None:
        model = config.get("model")
        if not isinstance(model, str) or not model.strip():
            raise ValueError("model must be a non-empty string")

    async def generate_image(self, description: str, width: int = 512, height: int = 512) -> str:
        # The Inference API ignores width/height for most models
        headers = {"User-Agent": self.USER_AGENT, "Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = await self._post_json(
                f"{self.endpoint}/{self.model}", {"inputs": description}, headers
            )
        except AIServiceError as e:
            if e.status_code is None:
                raise
            raise AIServiceError(
                AIServiceError.ErrorCode.SERVICE_ERROR,
                f"Failed to call {self.model} model. {e.status_code}.",
                status_code=e.status_code,
            ) from e

        logger.debug(f"Image received from {self.model} ({len(response.content)} bytes)")
        return f"data:image/png;base64,{base64.b64encode(response.content).decode('ascii')}"
