"""Runtime orchestration components."""

from .chunking import AdmissionScheduler, ChunkQueue, FailureTracker, SchedulerStats
from .rest import HTTPChunkFetcher, HTTPChunkListSource, HTTPClient

__all__ = [
    "AdmissionScheduler",
    "ChunkQueue",
    "FailureTracker",
    "SchedulerStats",
    "HTTPClient",
    "HTTPChunkFetcher",
    "HTTPChunkListSource",
]
