"""Mock connector for testing and prototyping"""

import asyncio
import base64
import hashlib
from typing import Any, Dict, List

from sk_reliability.infrastructure.connectors.base import (
    EmbeddingConnector,
    ImageGenerationConnector,
    TextCompletionConnector,
)

# 1x1 transparent PNG
_PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class MockConnector(TextCompletionConnector, EmbeddingConnector, ImageGenerationConnector):
    """Mock connector that returns predefined responses without network calls"""

    def __init__(self, config: Dict[str, Any] = None, **kwargs):
        """Initialize mock connector

        Args:
            config: Optional configuration with:
                - delay: Simulated API delay in seconds (default: 0.0)
                - responses: Dict mapping prompts to responses
                - dimensions: Embedding vector size (default: 8)
        """
        if config is None:
            config = {}
        super().__init__(config, **kwargs)
        self.delay = config.get("delay", 0.0)
        self.responses = config.get("responses", {})
        self.dimensions = config.get("dimensions", 8)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate mock connector configuration"""
        if "delay" in config and not isinstance(config["delay"], (int, float)):
            raise ValueError("delay must be a number")
        if "delay" in config and config["delay"] < 0:
            raise ValueError("delay must be non-negative")
        if "dimensions" in config and (not isinstance(config["dimensions"], int) or config["dimensions"] < 1):
            raise ValueError("dimensions must be a positive integer")

    async def complete(self, prompt: str, **kwargs) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if prompt in self.responses:
            return self.responses[prompt]
        return "Mock completion response"

    async def embed(self, texts: List[str]) -> List[List[float]]:
        # Deterministic vectors derived from the text digest
        vectors = []
        for text in texts:
            digest = hashlib.sha256(text.encode("utf-8")).digest()
            vectors.append([digest[i % len(digest)] / 255.0 for i in range(self.dimensions)])
        return vectors

    async def generate_image(self, description: str, width: int = 1, height: int = 1) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        return f"data:image/png;base64,{base64.b64encode(_PIXEL_PNG).decode('ascii')}"
