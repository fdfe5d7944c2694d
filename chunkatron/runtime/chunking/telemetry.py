"""Structured logging for scheduler runs.

Every helper logs an event name as the message and carries its fields in
``extra`` so handlers can format them as they see fit. Progress events log at
DEBUG unless the run is verbose, in which case they log at INFO.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable

from ...core.enums import AttemptOutcome
from .definitions import SchedulerStats

logger = logging.getLogger(__name__)


def _progress_level(verbose: bool) -> int:
    return logging.INFO if verbose else logging.DEBUG


def log_chunks_retrieved(*, source: str, total_chunks: int, verbose: bool = False) -> None:
    """Log retrieval of the initial chunk list.

    Args:
        source: Description of the chunk source (URL or callable name)
        total_chunks: Number of chunks retrieved
        verbose: Log at INFO instead of DEBUG
    """
    logger.log(
        _progress_level(verbose),
        "chunks_retrieved",
        extra={"source": source, "total_chunks": total_chunks},
    )


def log_chunk_dispatched(
    *,
    identity: Hashable,
    in_flight: int,
    pending: int,
    verbose: bool = False,
) -> None:
    """Log a chunk fetch being dispatched.

    Args:
        identity: Chunk identity (first identifier)
        in_flight: In-flight count including this fetch
        pending: Chunks still waiting in the queue
        verbose: Log at INFO instead of DEBUG
    """
    logger.log(
        _progress_level(verbose),
        "chunk_dispatched",
        extra={"chunk_identity": identity, "in_flight": in_flight, "pending": pending},
    )


def log_chunk_completed(
    *,
    identity: Hashable,
    outcome: AttemptOutcome,
    items: int,
    latency_ms: float,
    verbose: bool = False,
) -> None:
    """Log completion of a single fetch attempt.

    Args:
        identity: Chunk identity (first identifier)
        outcome: Outcome of the attempt
        items: Number of items surfaced to listeners
        latency_ms: Fetch latency in milliseconds
        verbose: Log at INFO instead of DEBUG
    """
    logger.log(
        _progress_level(verbose),
        "chunk_completed",
        extra={
            "chunk_identity": identity,
            "outcome": outcome.value,
            "items": items,
            "latency_ms": latency_ms,
        },
    )


def log_chunk_error(
    *,
    identity: Hashable,
    attempt: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a failed fetch attempt.

    Args:
        identity: Chunk identity (first identifier)
        attempt: Failure count for this identity after this failure
        error_type: Exception class name
        error_message: Exception message
    """
    logger.warning(
        "chunk_error",
        extra={
            "chunk_identity": identity,
            "attempt": attempt,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_chunk_gave_up(*, identity: Hashable, failures: int, max_retries: int) -> None:
    """Log a chunk being abandoned after exceeding its retry budget."""
    logger.warning(
        "chunk_gave_up",
        extra={
            "chunk_identity": identity,
            "outcome": AttemptOutcome.GAVE_UP.value,
            "failures": failures,
            "max_retries": max_retries,
        },
    )


def log_scheduler_finished(*, stats: SchedulerStats) -> None:
    """Log the end of a scheduler run.

    Args:
        stats: Statistics of the finished run
    """
    logger.info(
        "scheduler_finished",
        extra={
            "fetches_dispatched": stats.fetches_dispatched,
            "chunks_succeeded": stats.chunks_succeeded,
            "fetch_errors": stats.fetch_errors,
            "chunks_abandoned": stats.chunks_abandoned,
            "max_in_flight": stats.max_in_flight,
            "elapsed_ms": stats.elapsed_ms,
        },
    )
