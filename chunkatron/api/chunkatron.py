"""High-level entry point for chunked downloads.

Architecture:
    Chunkatron merges caller overrides onto default settings, validates them
    eagerly, wires the HTTP fetch and chunk list ports (unless the caller
    supplies its own) and hands everything to an AdmissionScheduler.

    Construction fails before any request is sent if the settings, the chunk
    source or the listeners are invalid.

Example:
    >>> async with Chunkatron(
    ...     url="https://example.com/report/rows",
    ...     chunks=[[1, 2, 3], [4, 5, 6]],
    ...     on_item_downloaded=rows.append,
    ... ) as chunkatron:
    ...     stats = await chunkatron.run()
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any

from ..core.exceptions import ConfigurationError
from ..models.listeners import Handler, ListenerSet
from ..models.settings import ChunkatronSettings
from ..runtime.chunking import AdmissionScheduler, ChunksSource, FetchPort, SchedulerStats
from ..runtime.rest import HTTPChunkFetcher, HTTPChunkListSource, HTTPClient

_LISTENER_SLOTS = frozenset(slot.name for slot in fields(ListenerSet))


class Chunkatron:
    """Downloads chunks of records through bounded concurrent requests."""

    def __init__(
        self,
        settings: ChunkatronSettings | None = None,
        *,
        listeners: ListenerSet | None = None,
        fetch: FetchPort | None = None,
        chunks_source: ChunksSource | None = None,
        http_client: HTTPClient | None = None,
        **overrides: Any,
    ) -> None:
        """Initialize and validate.

        Args:
            settings: Base settings (defaults used when omitted)
            listeners: Lifecycle handlers; individual ``on_*`` keyword
                overrides are merged on top
            fetch: Custom fetch port replacing the HTTP fetcher
            chunks_source: Custom chunk list source replacing ``chunks_url``
            http_client: Client shared by the HTTP ports (created when needed)
            **overrides: Setting fields and ``on_*`` listener handlers

        Raises:
            ConfigurationError: If settings are invalid or incomplete
            ListenerContractViolation: If a listener is not callable
        """
        handlers: dict[str, Handler | None] = {
            name: overrides.pop(name) for name in list(overrides) if name in _LISTENER_SLOTS
        }
        base = settings or ChunkatronSettings()
        self.settings = base.merged(**overrides)
        self.listeners = self._merge_listeners(listeners, handlers)

        self._owns_client = http_client is None
        self._client = http_client

        self._scheduler = AdmissionScheduler(
            fetch=fetch or self._default_fetch(),
            listeners=self.listeners,
            concurrency_ceiling=self.settings.concurrent_downloads_max,
            max_retries=self.settings.max_download_retries,
            chunks=self.settings.chunks,
            chunks_source=chunks_source or self._default_source(),
            fetch_timeout=self.settings.fetch_timeout,
            verbose=self.settings.verbose,
        )

    @property
    def scheduler(self) -> AdmissionScheduler:
        return self._scheduler

    @property
    def client(self) -> HTTPClient:
        """HTTP client shared by the built-in ports."""
        if self._client is None:
            self._client = HTTPClient(
                base_url=self.settings.base_url, timeout=self.settings.request_timeout
            )
        return self._client

    async def run(self) -> SchedulerStats:
        """Download every chunk; see AdmissionScheduler.run."""
        return await self._scheduler.run()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None:
            await self._client.close()

    async def __aenter__(self) -> Chunkatron:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @staticmethod
    def _merge_listeners(
        listeners: ListenerSet | None, handlers: dict[str, Handler | None]
    ) -> ListenerSet:
        if listeners is None:
            return ListenerSet.from_mapping(handlers)
        if not handlers:
            return listeners
        merged = {slot: getattr(listeners, slot) for slot in _LISTENER_SLOTS}
        merged.update(handlers)
        return ListenerSet.from_mapping(merged)

    def _default_source(self) -> ChunksSource | None:
        if self.settings.chunks_url is None:
            return None
        if self.settings.chunks is not None:
            raise ConfigurationError("Either chunks or chunks_url must be provided, not both")
        return HTTPChunkListSource(self.client, self.settings.chunks_url)

    def _default_fetch(self) -> FetchPort:
        if self.settings.url is None:
            raise ConfigurationError("A url is required unless a fetch port is supplied")
        return HTTPChunkFetcher(
            self.client,
            self.settings.url,
            method=self.settings.method,
            data_format=self.settings.data_format,
            encoding=self.settings.request_encoding,
        )
