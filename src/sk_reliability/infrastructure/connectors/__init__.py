"""AI backend connectors"""

from sk_reliability.infrastructure.connectors.base import (
    AIConnector,
    AIServiceError,
    EmbeddingConnector,
    ImageGenerationConnector,
    TextCompletionConnector,
)
from sk_reliability.infrastructure.connectors.factory import ConnectorFactory
from sk_reliability.infrastructure.connectors.huggingface import HuggingFaceTextToImage
from sk_reliability.infrastructure.connectors.mock import MockConnector
from sk_reliability.infrastructure.connectors.openai import OpenAIConnector, VLLMConnector

__all__ = [
    "AIConnector",
    "AIServiceError",
    "TextCompletionConnector",
    "EmbeddingConnector",
    "ImageGenerationConnector",
    "ConnectorFactory",
    "HuggingFaceTextToImage",
    "MockConnector",
    "OpenAIConnector",
    "VLLMConnector",
]
