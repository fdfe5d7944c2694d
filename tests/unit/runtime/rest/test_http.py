"""Precise unit tests for HTTPClient.

Tests focus on session management, throttling, response hooks, rate limiting
and decoding per data format.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from chunkatron.core import DataFormat, TransportError
from chunkatron.runtime.rest import HTTPClient


def make_response(status: int = 200, payload=None, headers=None, text: str = "") -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    response.raise_for_status = MagicMock()
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def install_session(client: HTTPClient, **methods) -> MagicMock:
    session = MagicMock()
    session.closed = False
    for name, side_effect in methods.items():
        setattr(session, name, MagicMock(side_effect=side_effect))
    client._session = session
    return session


class TestHTTPClientSessionManagement:
    """Test HTTPClient session management."""

    def test_init(self):
        client = HTTPClient(timeout=10.0)
        assert client.timeout.total == 10.0
        assert client._session is None
        assert client._response_hooks == []
        assert client._throttle_until is None

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self):
        client = HTTPClient()
        session = client.session
        assert isinstance(session, aiohttp.ClientSession)
        assert client._session is session
        await client.close()

    @pytest.mark.asyncio
    async def test_session_property_recreates_closed_session(self):
        client = HTTPClient()
        session1 = client.session
        await session1.close()

        session2 = client.session
        assert session1 is not session2
        assert not session2.closed
        await client.close()

    @pytest.mark.asyncio
    async def test_close_idempotent(self):
        client = HTTPClient()
        await client.close()
        await client.close()

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with HTTPClient() as client:
            assert client.session is not None

        assert client._session is None or client._session.closed


class TestHTTPClientRequests:
    """Test request building and decoding."""

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        client = HTTPClient()
        session = install_session(client, get=[make_response(payload=[1, 2])])

        result = await client.get("https://api.example.com/rows")

        assert result == [1, 2]
        session.get.assert_called_once_with(
            "https://api.example.com/rows", params=None, headers=None
        )

    @pytest.mark.asyncio
    async def test_post_decodes_text(self):
        client = HTTPClient()
        session = install_session(client, post=[make_response(text="plain")])

        result = await client.post(
            "https://api.example.com/rows", json={"chunk": [1]}, data_format=DataFormat.TEXT
        )

        assert result == "plain"
        assert session.post.call_args.kwargs["json"] == {"chunk": [1]}

    @pytest.mark.asyncio
    async def test_get_with_base_url(self):
        client = HTTPClient(base_url="https://api.example.com")
        session = install_session(client, get=[make_response(payload={})])

        await client.get("/test")

        assert "https://api.example.com/test" in str(session.get.call_args)

    @pytest.mark.asyncio
    async def test_error_status_raises_transport_error(self):
        client = HTTPClient()
        response = make_response(status=500)
        response.raise_for_status = MagicMock(
            side_effect=aiohttp.ClientResponseError(
                request_info=MagicMock(), history=(), status=500, message="Server Error"
            )
        )
        install_session(client, get=[response])

        with pytest.raises(TransportError) as exc_info:
            await client.get("https://api.example.com/test")

        assert exc_info.value.status_code == 500


class TestHTTPClientThrottling:
    """Test throttle windows and response hooks."""

    def test_set_throttle_zero_does_nothing(self):
        client = HTTPClient()
        client.set_throttle(0.0)
        assert client._throttle_until is None

    def test_set_throttle_extends_existing(self):
        client = HTTPClient()
        client.set_throttle(5.0)
        first_end = client._throttle_until

        client.set_throttle(10.0)
        assert client._throttle_until > first_end

        client.set_throttle(1.0)
        assert client._throttle_until > first_end

    @pytest.mark.asyncio
    async def test_get_respects_throttle(self):
        client = HTTPClient()
        client.set_throttle(0.05)
        install_session(client, get=[make_response(payload={})])

        loop = asyncio.get_running_loop()
        start = loop.time()
        await client.get("https://api.example.com/test")

        assert loop.time() - start >= 0.04
        assert client._throttle_until is None

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_throttle_window(self):
        client = HTTPClient()
        client.set_throttle(0.05)
        install_session(client, get=[make_response(payload={}) for _ in range(3)])
        loop = asyncio.get_running_loop()

        async def timed_get() -> float:
            start = loop.time()
            await client.get("https://api.example.com/test")
            return loop.time() - start

        elapsed = await asyncio.gather(timed_get(), timed_get(), timed_get())

        assert all(waited >= 0.04 for waited in elapsed)
        assert client._throttle_until is None

    @pytest.mark.asyncio
    async def test_response_hook_returns_delay(self):
        client = HTTPClient()
        client.add_response_hook(lambda response: 2.0)
        install_session(client, get=[make_response(payload={})])

        await client.get("https://api.example.com/test")

        assert client._throttle_until is not None

    @pytest.mark.asyncio
    async def test_async_response_hook(self):
        client = HTTPClient()

        async def hook(response):
            return 1.0

        client.add_response_hook(hook)
        install_session(client, get=[make_response(payload={})])

        await client.get("https://api.example.com/test")

        assert client._throttle_until is not None

    @pytest.mark.asyncio
    async def test_response_hook_exception_handled(self):
        client = HTTPClient()

        def failing_hook(response):
            raise Exception("Hook error")

        client.add_response_hook(failing_hook)
        install_session(client, get=[make_response(payload={"data": "test"})])

        result = await client.get("https://api.example.com/test")
        assert result == {"data": "test"}


class TestHTTPClientRateLimiting:
    """Test 429/418 handling."""

    @pytest.mark.asyncio
    async def test_429_with_retry_after_is_retried(self):
        client = HTTPClient()
        session = install_session(
            client,
            get=[
                make_response(status=429, headers={"Retry-After": "0.01"}),
                make_response(payload={"data": "test"}),
            ],
        )

        result = await client.get("https://api.example.com/test")

        assert result == {"data": "test"}
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_418_without_retry_after_uses_fallback(self):
        client = HTTPClient(rate_limit_fallback=0.01)
        install_session(
            client,
            post=[make_response(status=418), make_response(payload={"data": "test"})],
        )

        result = await client.post("https://api.example.com/test", json={})

        assert result == {"data": "test"}

    @pytest.mark.asyncio
    async def test_rate_limit_retries_exhausted(self):
        client = HTTPClient(max_rate_limit_retries=1, rate_limit_fallback=0.0)
        install_session(client, get=[make_response(status=429), make_response(status=429)])

        with pytest.raises(TransportError, match="still rate limited") as exc_info:
            await client.get("https://api.example.com/test")

        assert exc_info.value.status_code == 429
