"""Core components."""

from .enums import AttemptOutcome, DataFormat, HTTPMethod, RequestEncoding, SchedulerState
from .exceptions import (
    ChunkAbandoned,
    ChunkatronError,
    ConfigurationError,
    FetchError,
    InitialRetrievalError,
    ListenerContractViolation,
    SchedulerStateError,
    TransportError,
)

__all__ = [
    "AttemptOutcome",
    "DataFormat",
    "HTTPMethod",
    "RequestEncoding",
    "SchedulerState",
    "ChunkatronError",
    "ConfigurationError",
    "ListenerContractViolation",
    "InitialRetrievalError",
    "TransportError",
    "FetchError",
    "ChunkAbandoned",
    "SchedulerStateError",
]
