"""FIFO queue of pending chunks."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .definitions import Chunk


class ChunkQueue:
    """Ordered pending work.

    Chunks are taken from the front and retries are appended at the back, so a
    failing chunk waits behind every other pending chunk before it runs again.
    """

    def __init__(self, chunks: Iterable[Chunk] = ()) -> None:
        self._chunks: deque[Chunk] = deque(chunks)

    def take_next(self) -> Chunk | None:
        """Remove and return the front chunk, or None when empty."""
        if not self._chunks:
            return None
        return self._chunks.popleft()

    def requeue(self, chunk: Chunk) -> None:
        """Append a chunk to the back for another attempt."""
        self._chunks.append(chunk)

    def __len__(self) -> int:
        return len(self._chunks)

    def __bool__(self) -> bool:
        return bool(self._chunks)

    def __repr__(self) -> str:
        return f"ChunkQueue(pending={len(self._chunks)})"
