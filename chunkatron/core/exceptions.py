"""Custom exception hierarchy."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ChunkatronError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(ChunkatronError):
    """Required settings are missing or invalid.

    Raised at construction time, before any fetch is dispatched.
    """

    pass


class ListenerContractViolation(ConfigurationError):
    """A registered listener is not callable."""

    def __init__(self, message: str, slot: str | None = None) -> None:
        super().__init__(message)
        self.slot = slot


class InitialRetrievalError(ChunkatronError):
    """The chunk list could not be retrieved from its source."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class TransportError(ChunkatronError):
    """Error from the remote endpoint or the HTTP layer."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchError(ChunkatronError):
    """A single fetch attempt for a chunk failed.

    The chunk has already been requeued when listeners receive this error.
    """

    def __init__(
        self,
        message: str,
        chunk: Sequence[Any],
        attempt: int,
        error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.chunk = chunk
        self.attempt = attempt
        self.error = error


class ChunkAbandoned(ChunkatronError):
    """A chunk exceeded its retry budget and was given up on.

    Recorded in the run statistics; never raised to the caller.
    """

    def __init__(self, chunk: Sequence[Any], failures: int) -> None:
        super().__init__(f"Gave up on chunk {chunk[0]!r} after {failures} failed attempt(s)")
        self.chunk = chunk
        self.failures = failures


class SchedulerStateError(ChunkatronError):
    """Scheduler was used outside its single-run lifecycle."""

    pass
