"""OpenAI-compatible completion and embedding connector base.

This module is used to implement multiple connectors (OpenAI, vLLM) that expose
an OpenAI-compatible /v1/chat/completions and /v1/embeddings API.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from sk_reliability.infrastructure.connectors.base import (
    AIServiceError,
    EmbeddingConnector,
    TextCompletionConnector,
)
from sk_reliability.infrastructure.retry import RetryEventSink

logger = logging.getLogger(__name__)


class OpenAICompatibleConnector(TextCompletionConnector, EmbeddingConnector):
    """OpenAI-compatible connector using chat completions and embeddings endpoints."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        base_url: str,
        api_key_env: Optional[str],
        default_model: str,
        default_embedding_model: str = "text-embedding-3-small",
        require_api_key: bool = True,
        extra_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ):
        if config is None:
            config = {}
        self._api_key_env = api_key_env
        self._require_api_key = require_api_key
        self._extra_headers = extra_headers or {}
        super().__init__(config, transport=transport, sink=sink)

        self.base_url = (config.get("endpoint") or base_url).rstrip("/")
        self.api_key = config.get("api_key") or (os.getenv(api_key_env) if api_key_env else None)
        self.model = config.get("model", default_model)
        self.embedding_model = config.get("embedding_model", default_embedding_model)
        self.temperature = config.get("temperature", 0.7)
        self.max_tokens = config.get("max_tokens", 2000)
        self.top_p = config.get("top_p", 0.9)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        api_key = config.get("api_key") or (os.getenv(self._api_key_env) if self._api_key_env else None)
        if self._require_api_key and not api_key:
            env_name = self._api_key_env or "<unset>"
            raise ValueError(
                "API key is required. "
                f"Set {env_name} environment variable or provide api_key in config."
            )

        if "model" in config and not isinstance(config["model"], str):
            raise ValueError("model must be a string")

        if "temperature" in config:
            temp = config["temperature"]
            if not isinstance(temp, (int, float)) or not (0.0 <= temp <= 2.0):
                raise ValueError("temperature must be between 0.0 and 2.0")

        if "top_p" in config:
            top_p = config["top_p"]
            if not isinstance(top_p, (int, float)) or not (0.0 <= top_p <= 1.0):
                raise ValueError("top_p must be between 0.0 and 1.0")

        if "max_tokens" in config:
            max_tok = config["max_tokens"]
            if not isinstance(max_tok, int) or max_tok < 1:
                raise ValueError("max_tokens must be a positive integer")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        headers.update(self._extra_headers)
        return headers

    async def complete(self, prompt: str, **kwargs) -> str:
        payload = {
            "model": kwargs.get("model", self.model),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
            "top_p": kwargs.get("top_p", self.top_p),
        }

        response = await self._post_json(f"{self.base_url}/chat/completions", payload, self._headers())

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except Exception as e:
            raise AIServiceError(
                AIServiceError.ErrorCode.INVALID_RESPONSE, f"Failed to parse completion response JSON: {e}"
            ) from e
        logger.debug(f"Completion received ({len(content)} chars)")
        return content

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        payload = {"model": self.embedding_model, "input": texts}
        response = await self._post_json(f"{self.base_url}/embeddings", payload, self._headers())

        try:
            data = response.json()["data"]
            ordered = sorted(data, key=lambda item: item.get("index", 0))
            return [list(map(float, item["embedding"])) for item in ordered]
        except Exception as e:
            raise AIServiceError(
                AIServiceError.ErrorCode.INVALID_RESPONSE, f"Failed to parse embedding response JSON: {e}"
            ) from e
