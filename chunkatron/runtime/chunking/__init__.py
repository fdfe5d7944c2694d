"""Chunk scheduling layer.

Architecture:
    The chunking layer consists of:
    - definitions.py: Chunk type, fetch/source ports, run statistics
    - queue.py: FIFO queue of pending chunks (take from front, requeue at back)
    - tracker.py: Failure counts keyed by chunk identity
    - scheduler.py: Admission scheduler enforcing the concurrency ceiling
    - telemetry.py: Structured logging

Usage:
    The scheduler is transport agnostic. Supply any async callable that
    fetches one chunk, or use the HTTP ports in ``chunkatron.runtime.rest``.
"""

from __future__ import annotations

from .definitions import (
    Chunk,
    ChunksSource,
    FetchPort,
    SchedulerStats,
    chunk_identity,
    payload_items,
)
from .queue import ChunkQueue
from .scheduler import AdmissionScheduler
from .tracker import FailureTracker

__all__ = [
    "Chunk",
    "ChunksSource",
    "FetchPort",
    "SchedulerStats",
    "ChunkQueue",
    "FailureTracker",
    "AdmissionScheduler",
    "chunk_identity",
    "payload_items",
]
