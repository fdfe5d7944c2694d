"""Chunk type definitions, ports and run statistics.

This module defines the data structures shared by the queue, the failure
tracker and the admission scheduler, plus the two ports the host supplies:
the per-chunk fetch and the optional chunk list source.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from ...core.exceptions import ChunkAbandoned

Chunk = Sequence[Any]


class FetchPort(Protocol):
    """Performs one asynchronous fetch for a chunk.

    Returns the payload on success and raises on failure. Any exception is
    treated as a retryable fetch error by the scheduler.
    """

    async def __call__(self, chunk: Chunk) -> Any: ...


class ChunksSource(Protocol):
    """Retrieves the initial ordered list of chunks."""

    async def __call__(self) -> Sequence[Chunk]: ...


def chunk_identity(chunk: Chunk) -> Hashable:
    """Return the identity used to correlate retries of a chunk.

    Identity is the chunk's first identifier, so two chunks sharing a first
    identifier share one failure count.
    """
    identity = chunk[0]
    try:
        hash(identity)
    except TypeError:
        return repr(identity)
    return identity


def payload_items(payload: Any) -> list[Any]:
    """Split a successful payload into the items it carries.

    Args:
        payload: Decoded response (list, mapping, or anything else)

    Returns:
        Items in payload order; mapping values; otherwise the payload itself
    """
    if payload is None:
        return []
    if isinstance(payload, list | tuple):
        return list(payload)
    if isinstance(payload, Mapping):
        return list(payload.values())
    return [payload]


@dataclass
class SchedulerStats:
    """Statistics for one scheduler run.

    Attributes:
        fetches_dispatched: Number of fetches sent to the fetch port
        chunks_succeeded: Number of fetches that returned a payload
        fetch_errors: Number of failed fetch attempts
        abandoned: Chunks given up on after exceeding the retry budget
        max_in_flight: Highest in-flight count observed
        elapsed_ms: Wall time of the run in milliseconds
    """

    fetches_dispatched: int = 0
    chunks_succeeded: int = 0
    fetch_errors: int = 0
    abandoned: list[ChunkAbandoned] = field(default_factory=list)
    max_in_flight: int = 0
    elapsed_ms: float = 0.0

    @property
    def chunks_abandoned(self) -> int:
        return len(self.abandoned)
