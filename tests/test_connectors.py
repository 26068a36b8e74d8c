"""Tests for AI connectors over a mocked HTTP backend"""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from sk_reliability.infrastructure.connectors import (
    AIServiceError,
    HuggingFaceTextToImage,
    MockConnector,
    OpenAIConnector,
    VLLMConnector,
)

# Retry immediately so tests never wait
FAST_RETRY = {"backoff_strategy": "none"}


def _chat_response(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class _Backend:
    """Scripted backend: returns queued responses, repeating the last one"""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class TestOpenAIConnector:
    """Tests for the OpenAI-compatible connector"""

    @pytest.mark.asyncio
    async def test_complete(self):
        backend = _Backend(httpx.Response(200, json=_chat_response("Hello!")))
        connector = OpenAIConnector({"api_key": "test", "model": "gpt-4o"}, transport=backend.transport)

        result = await connector.complete("Say hello")

        assert result == "Hello!"
        request = backend.requests[0]
        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o"
        assert body["messages"] == [{"role": "user", "content": "Say hello"}]

    @pytest.mark.asyncio
    async def test_complete_retries_rate_limit(self):
        backend = _Backend(
            httpx.Response(429, headers={"Retry-After": "0"}),
            httpx.Response(200, json=_chat_response("ok")),
        )
        connector = OpenAIConnector({"api_key": "test", **FAST_RETRY}, transport=backend.transport)

        assert await connector.complete("hi") == "ok"
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted_raises_service_error(self):
        backend = _Backend(httpx.Response(429))
        connector = OpenAIConnector(
            {"api_key": "test", "max_attempts": 3, **FAST_RETRY}, transport=backend.transport
        )

        with pytest.raises(AIServiceError, match="429 Too Many Requests") as exc_info:
            await connector.complete("hi")

        assert exc_info.value.code == AIServiceError.ErrorCode.SERVICE_ERROR
        assert exc_info.value.status_code == 429
        assert len(backend.requests) == 3

    @pytest.mark.asyncio
    async def test_not_found_fails_fast(self):
        backend = _Backend(httpx.Response(404))
        connector = OpenAIConnector({"api_key": "test", **FAST_RETRY}, transport=backend.transport)

        with pytest.raises(AIServiceError) as exc_info:
            await connector.complete("hi")

        assert exc_info.value.status_code == 404
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_retry_disabled(self):
        backend = _Backend(httpx.Response(503))
        connector = OpenAIConnector(
            {"api_key": "test", "retry_enabled": False}, transport=backend.transport
        )

        with pytest.raises(AIServiceError):
            await connector.complete("hi")

        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_legacy_retry_count(self):
        backend = _Backend(httpx.Response(503))
        connector = OpenAIConnector(
            {"api_key": "test", "max_retry_count": 1, **FAST_RETRY}, transport=backend.transport
        )

        with pytest.raises(AIServiceError):
            await connector.complete("hi")

        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_network_errors_exhausted(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            raise httpx.ConnectError("connection refused", request=request)

        connector = OpenAIConnector(
            {"api_key": "test", "max_attempts": 2, **FAST_RETRY}, transport=httpx.MockTransport(handler)
        )

        with pytest.raises(AIServiceError) as exc_info:
            await connector.complete("hi")

        assert exc_info.value.code == AIServiceError.ErrorCode.UNKNOWN_ERROR
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_invalid_response_json(self):
        backend = _Backend(httpx.Response(200, json={"unexpected": True}))
        connector = OpenAIConnector({"api_key": "test"}, transport=backend.transport)

        with pytest.raises(AIServiceError) as exc_info:
            await connector.complete("hi")

        assert exc_info.value.code == AIServiceError.ErrorCode.INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_embed_orders_by_index(self):
        backend = _Backend(
            httpx.Response(
                200,
                json={
                    "data": [
                        {"index": 1, "embedding": [0.3, 0.4]},
                        {"index": 0, "embedding": [0.1, 0.2]},
                    ]
                },
            )
        )
        connector = OpenAIConnector({"api_key": "test"}, transport=backend.transport)

        vectors = await connector.embed(["first", "second"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        assert backend.requests[0].url.path == "/v1/embeddings"
        assert json.loads(backend.requests[0].content)["input"] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_embed_empty_input_makes_no_call(self):
        backend = _Backend(httpx.Response(500))
        connector = OpenAIConnector({"api_key": "test"}, transport=backend.transport)

        assert await connector.embed([]) == []
        assert backend.requests == []

    def test_api_key_required(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            OpenAIConnector({})

    def test_invalid_temperature(self):
        with pytest.raises(ValueError, match="temperature"):
            OpenAIConnector({"api_key": "test", "temperature": 3.0})

    def test_invalid_retry_config(self):
        with pytest.raises(ValueError, match="max_attempts"):
            OpenAIConnector({"api_key": "test", "max_attempts": 0})


class TestVLLMConnector:
    """Tests for the vLLM connector"""

    @pytest.mark.asyncio
    async def test_endpoint_override_without_api_key(self, monkeypatch):
        monkeypatch.delenv("VLLM_API_KEY", raising=False)
        backend = _Backend(httpx.Response(200, json=_chat_response("local")))
        connector = VLLMConnector({"endpoint": "http://gpu-box:9000/v1/"}, transport=backend.transport)

        assert await connector.complete("hi") == "local"
        request = backend.requests[0]
        assert request.url == "http://gpu-box:9000/v1/chat/completions"
        assert "Authorization" not in request.headers


class TestHuggingFaceTextToImage:
    """Tests for the HuggingFace image connector"""

    @pytest.mark.asyncio
    async def test_generate_image(self):
        backend = _Backend(httpx.Response(200, content=b"\x89PNG-bytes"))
        connector = HuggingFaceTextToImage(
            {"model": "stabilityai/sd", "api_key": "hf"}, transport=backend.transport
        )

        result = await connector.generate_image("a red bicycle", 256, 256)

        assert result == "data:image/png;base64," + base64.b64encode(b"\x89PNG-bytes").decode("ascii")
        request = backend.requests[0]
        assert request.url == "https://api-inference.huggingface.co/models/stabilityai/sd"
        assert json.loads(request.content) == {"inputs": "a red bicycle"}
        assert request.headers["Authorization"] == "Bearer hf"

    @pytest.mark.asyncio
    async def test_service_unavailable_after_retries(self):
        backend = _Backend(httpx.Response(503))
        connector = HuggingFaceTextToImage(
            {"model": "stabilityai/sd", "max_attempts": 2, **FAST_RETRY}, transport=backend.transport
        )

        with pytest.raises(AIServiceError, match=r"Failed to call stabilityai/sd model\. 503\."):
            await connector.generate_image("a red bicycle")

        assert len(backend.requests) == 2

    def test_model_required(self):
        with pytest.raises(ValueError, match="model"):
            HuggingFaceTextToImage({})


class TestMockConnector:
    """Tests for the mock connector"""

    @pytest.mark.asyncio
    async def test_predefined_response(self):
        connector = MockConnector({"responses": {"ping": "pong"}})
        assert await connector.complete("ping") == "pong"
        assert await connector.complete("other") == "Mock completion response"

    @pytest.mark.asyncio
    async def test_embeddings_are_deterministic(self):
        connector = MockConnector({"dimensions": 4})
        first = await connector.embed(["a", "b"])
        second = await connector.embed(["a", "b"])
        assert first == second
        assert len(first[0]) == 4
        assert first[0] != first[1]

    @pytest.mark.asyncio
    async def test_image(self):
        result = await MockConnector().generate_image("anything")
        assert result.startswith("data:image/png;base64,")

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError, match="delay"):
            MockConnector({"delay": -1})
