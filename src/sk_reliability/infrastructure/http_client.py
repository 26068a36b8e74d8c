"""Shared HTTP client utilities (httpx + retry/backoff).

We keep HTTP logic centralized to avoid divergence across connectors: every
request an ``httpx.AsyncClient`` sends goes through a :class:`RetryTransport`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from sk_reliability.domain.config.retry import RetryConfig
from sk_reliability.infrastructure.retry import RetryEventSink, RetryExecutor

logger = logging.getLogger(__name__)


class RetryTransport(httpx.AsyncBaseTransport):
    """Transport that sends each request through a :class:`RetryExecutor`.

    Every attempt's body is read and its stream closed before the executor
    looks at it, so discarded attempts release their connection.
    """

    def __init__(
        self,
        executor: Optional[RetryExecutor] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.executor = executor or RetryExecutor()
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # Buffer the body so every attempt can resend it
        await request.aread()

        async def _send() -> httpx.Response:
            logger.debug(f"HTTP {request.method} {request.url}")
            response = await self._transport.handle_async_request(request)
            try:
                await response.aread()
            finally:
                await response.aclose()
            return response

        return await self.executor.execute_with_retry(_send)

    async def aclose(self) -> None:
        await self._transport.aclose()


class RetryTransportFactory(Protocol):
    """Creates the transport an HTTP client sends through."""

    def create(self, inner: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncBaseTransport:
        ...


class DefaultRetryTransportFactory:
    """Creates retrying transports sharing one executor."""

    def __init__(self, config: Optional[RetryConfig] = None, sink: Optional[RetryEventSink] = None):
        self.executor = RetryExecutor(config, sink)

    def create(self, inner: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncBaseTransport:
        return RetryTransport(self.executor, inner)


class NullRetryTransportFactory:
    """Creates transports that do not retry."""

    def create(self, inner: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncBaseTransport:
        return inner or httpx.AsyncHTTPTransport()


def create_async_client(
    factory: Optional[RetryTransportFactory] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create an AsyncClient whose requests go through ``factory``'s transport.

    Args:
        factory: Transport factory (retrying with default config if None)
        transport: Inner transport doing the actual I/O
        **kwargs: Passed to ``httpx.AsyncClient``
    """
    factory = factory or DefaultRetryTransportFactory()
    return httpx.AsyncClient(transport=factory.create(transport), **kwargs)


async def post_json_with_retries(
    url: str,
    *,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    retry: Optional[RetryConfig],
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sink: Optional[RetryEventSink] = None,
) -> httpx.Response:
    """POST JSON, retrying per ``retry`` (no retries when None).

    The final response is returned whatever its status; callers decide how to
    treat errors.
    """
    if retry is None:
        factory: RetryTransportFactory = NullRetryTransportFactory()
    else:
        factory = DefaultRetryTransportFactory(retry, sink)

    async with create_async_client(factory, transport=transport, timeout=timeout) as client:
        logger.debug(f"HTTP POST {url}")
        return await client.post(url, json=payload, headers=headers)
