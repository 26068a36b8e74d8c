"""OpenAI and vLLM connectors (OpenAI-compatible API)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from sk_reliability.infrastructure.connectors.openai_compatible import OpenAICompatibleConnector
from sk_reliability.infrastructure.retry import RetryEventSink


class OpenAIConnector(OpenAICompatibleConnector):
    """OpenAI API connector."""

    BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ):
        super().__init__(
            config,
            base_url=self.BASE_URL,
            api_key_env="OPENAI_API_KEY",
            default_model="gpt-4o-mini",
            require_api_key=True,
            transport=transport,
            sink=sink,
        )


class VLLMConnector(OpenAICompatibleConnector):
    """Self-hosted vLLM server; the API key is optional."""

    BASE_URL = "http://localhost:8000/v1"

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ):
        super().__init__(
            config,
            base_url=self.BASE_URL,
            api_key_env="VLLM_API_KEY",
            default_model="local-model",
            require_api_key=False,
            transport=transport,
            sink=sink,
        )
