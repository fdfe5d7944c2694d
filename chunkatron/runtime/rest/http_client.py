"""Async HTTP client used by the chunk fetch and chunk list ports."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from ...core.enums import DataFormat
from ...core.exceptions import TransportError

logger = logging.getLogger(__name__)

# Statuses that mean "slow down" rather than "failed".
_RATE_LIMIT_STATUSES = frozenset({418, 429})

ResponseHook = Callable[[aiohttp.ClientResponse], float | None | Awaitable[float | None]]


class HTTPClient:
    """Async HTTP client wrapper.

    Owns a lazily created aiohttp session. Rate limited responses (429/418)
    are retried after the server's Retry-After delay; every other non-2xx
    status raises TransportError. Response hooks may return a delay in seconds
    that throttles every request sent before the window expires.

    The chunk fetch and chunk list ports share one client. ``base_url`` comes
    from the settings; response hooks are registered by callers that pass
    their own client to the facade with ``http_client=``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        *,
        max_rate_limit_retries: int = 3,
        rate_limit_fallback: float = 1.0,
    ) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_rate_limit_retries = max_rate_limit_retries
        self._rate_limit_fallback = rate_limit_fallback
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every response before it is decoded."""
        self._response_hooks.append(hook)

    def set_throttle(self, delay: float) -> None:
        """Hold the next request back for ``delay`` seconds.

        An existing throttle window is only ever extended.
        """
        if delay <= 0:
            return
        until = time.time() + delay
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def get(
        self,
        url: str,
        params: Any = None,
        headers: dict[str, str] | None = None,
        *,
        data_format: DataFormat = DataFormat.JSON,
    ) -> Any:
        """GET request."""
        return await self._request(
            "GET", url, data_format=data_format, params=params, headers=headers
        )

    async def post(
        self,
        url: str,
        json: Any = None,
        data: Any = None,
        params: Any = None,
        headers: dict[str, str] | None = None,
        *,
        data_format: DataFormat = DataFormat.JSON,
    ) -> Any:
        """POST request with a JSON (``json``) or form encoded (``data``) body."""
        return await self._request(
            "POST",
            url,
            data_format=data_format,
            json=json,
            data=data,
            params=params,
            headers=headers,
        )

    async def _request(
        self, method: str, url: str, *, data_format: DataFormat, **kwargs: Any
    ) -> Any:
        if self.base_url and not url.startswith("http"):
            url = f"{self.base_url}{url}"

        for attempt in range(self._max_rate_limit_retries + 1):
            await self._wait_for_throttle()
            send = self.session.get if method == "GET" else self.session.post
            async with send(url, **kwargs) as response:
                await self._run_hooks(response)

                if response.status in _RATE_LIMIT_STATUSES:
                    if attempt >= self._max_rate_limit_retries:
                        raise TransportError(
                            f"{method} {url} still rate limited after {attempt + 1} attempt(s)",
                            status_code=response.status,
                        )
                    delay = self._retry_after(response)
                    logger.warning(
                        f"{method} {url} rate limited ({response.status}), retrying in {delay:.2f}s"
                    )
                    self.set_throttle(delay)
                    continue

                try:
                    response.raise_for_status()
                except aiohttp.ClientResponseError as e:
                    raise TransportError(
                        f"{method} {url} failed: {e.status} {e.message}", status_code=e.status
                    ) from e

                if data_format is DataFormat.TEXT:
                    return await response.text()
                return await response.json(content_type=None)

    async def _wait_for_throttle(self) -> None:
        # The window stays in place for every concurrent request until it expires.
        while self._throttle_until is not None:
            delay = self._throttle_until - time.time()
            if delay <= 0:
                self._throttle_until = None
                return
            await asyncio.sleep(delay)

    async def _run_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
            except Exception as e:
                logger.error(f"Response hook {hook!r} failed: {e}")
                continue
            if delay:
                self.set_throttle(float(delay))

    def _retry_after(self, response: aiohttp.ClientResponse) -> float:
        value = response.headers.get("Retry-After")
        if value is None:
            return self._rate_limit_fallback
        try:
            return max(float(value), 0.0)
        except ValueError:
            return self._rate_limit_fallback

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
