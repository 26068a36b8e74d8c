"""Factory for creating AI connectors"""

import logging
from typing import Any, Dict, Optional

import httpx

from sk_reliability.infrastructure.connectors.base import AIConnector
from sk_reliability.infrastructure.connectors.huggingface import HuggingFaceTextToImage
from sk_reliability.infrastructure.connectors.mock import MockConnector
from sk_reliability.infrastructure.connectors.openai import OpenAIConnector, VLLMConnector
from sk_reliability.infrastructure.retry import RetryEventSink

logger = logging.getLogger(__name__)


class ConnectorFactory:
    """Factory for creating connector instances"""

    CONNECTORS = {
        "mock": MockConnector,
        "openai": OpenAIConnector,
        "vllm": VLLMConnector,
        "huggingface": HuggingFaceTextToImage,
    }

    @classmethod
    def create(
        cls,
        provider: str,
        config: Dict[str, Any] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[RetryEventSink] = None,
    ) -> AIConnector:
        """Create connector instance

        Args:
            provider: Connector name (mock, openai, vllm, huggingface)
            config: Connector configuration, retry keys included
            transport: Inner HTTP transport (real network when None)
            sink: Receiver of retry events

        Returns:
            AIConnector instance

        Raises:
            ValueError: If provider is not supported or config is invalid
        """
        if config is None:
            config = {}

        provider_lower = provider.lower()

        if provider_lower not in cls.CONNECTORS:
            available = ", ".join(cls.CONNECTORS.keys())
            raise ValueError(
                f"Unknown connector: {provider}. "
                f"Available connectors: {available}"
            )

        connector_class = cls.CONNECTORS[provider_lower]
        logger.info(f"Creating {provider_lower} connector")
        return connector_class(config, transport=transport, sink=sink)
