"""Chunkatron - bounded-concurrency chunked downloads with retries."""

from .api import Chunkatron
from .core import (
    AttemptOutcome,
    ChunkAbandoned,
    ChunkatronError,
    ConfigurationError,
    DataFormat,
    FetchError,
    HTTPMethod,
    InitialRetrievalError,
    ListenerContractViolation,
    RequestEncoding,
    SchedulerState,
    SchedulerStateError,
    TransportError,
)
from .models import ChunkatronSettings, ListenerSet
from .runtime import (
    AdmissionScheduler,
    ChunkQueue,
    FailureTracker,
    HTTPChunkFetcher,
    HTTPChunkListSource,
    HTTPClient,
    SchedulerStats,
)

__version__ = "0.1.0"

__all__ = [
    # API
    "Chunkatron",
    "ChunkatronSettings",
    "ListenerSet",
    # Scheduling
    "AdmissionScheduler",
    "ChunkQueue",
    "FailureTracker",
    "SchedulerStats",
    # Transport
    "HTTPClient",
    "HTTPChunkFetcher",
    "HTTPChunkListSource",
    # Enums
    "AttemptOutcome",
    "DataFormat",
    "HTTPMethod",
    "RequestEncoding",
    "SchedulerState",
    # Exceptions
    "ChunkatronError",
    "ConfigurationError",
    "ListenerContractViolation",
    "InitialRetrievalError",
    "TransportError",
    "FetchError",
    "ChunkAbandoned",
    "SchedulerStateError",
]
