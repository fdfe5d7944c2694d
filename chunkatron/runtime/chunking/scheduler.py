"""Bounded-concurrency admission scheduler.

Architecture:
    The AdmissionScheduler owns the pending ChunkQueue, the FailureTracker
    and the in-flight counter. All three are mutated only from synchronous
    sections running on the event loop (between awaits), so a single event
    loop gives a single-writer discipline without locks.

    Admission happens once per free slot at start and exactly once after each
    completed fetch. Each admission step either dispatches one fetch, gives up
    on chunks whose failure count exceeds the retry budget (looping to the
    next chunk without taking a slot), or detects that no work remains.

Lifecycle:
    NOT_STARTED -> (RETRIEVING) -> RUNNING -> FINISHED
    Any fatal error (initial retrieval, a raising listener, cancellation)
    moves the scheduler to FAILED. A scheduler runs once.

Ordering per attempt:
    on_fetch_start -> dispatch -> on_chunk_success / on_chunk_error
    -> on_chunk_complete -> next admission step
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable, Sequence
from time import perf_counter
from typing import Any

from ...core.enums import AttemptOutcome, SchedulerState
from ...core.exceptions import (
    ChunkAbandoned,
    ConfigurationError,
    FetchError,
    InitialRetrievalError,
    SchedulerStateError,
)
from ...models.listeners import ListenerSet
from .definitions import (
    Chunk,
    ChunksSource,
    FetchPort,
    SchedulerStats,
    chunk_identity,
    payload_items,
)
from .queue import ChunkQueue
from .telemetry import (
    log_chunk_completed,
    log_chunk_dispatched,
    log_chunk_error,
    log_chunk_gave_up,
    log_chunks_retrieved,
    log_scheduler_finished,
)
from .tracker import FailureTracker

logger = logging.getLogger(__name__)


def _chunk_problem(chunks: Any) -> str | None:
    """Describe why ``chunks`` is not a list of non-empty chunks, or None."""
    if isinstance(chunks, str | bytes) or not isinstance(chunks, Sequence):
        return f"expected a sequence of chunks, got {type(chunks).__name__}"
    for index, chunk in enumerate(chunks):
        if isinstance(chunk, str | bytes) or not isinstance(chunk, Sequence):
            return f"chunk {index} is not a sequence of identifiers"
        if not chunk:
            return f"chunk {index} is empty"
    return None


def describe_source(source: Any) -> str:
    """Human readable name of a chunk source for logs and errors."""
    url = getattr(source, "url", None)
    if isinstance(url, str):
        return url
    return getattr(source, "__qualname__", type(source).__name__)


class AdmissionScheduler:
    """Fetches chunks with a concurrency ceiling and a per-chunk retry budget.

    The scheduler gives up on a chunk only when its failure count is strictly
    greater than ``max_retries``, so a chunk is fetched at most
    ``max_retries + 1`` times.
    """

    def __init__(
        self,
        *,
        fetch: FetchPort,
        listeners: ListenerSet,
        concurrency_ceiling: int = 10,
        max_retries: int = 3,
        chunks: Sequence[Chunk] | None = None,
        chunks_source: ChunksSource | None = None,
        fetch_timeout: float | None = None,
        verbose: bool = False,
    ) -> None:
        """Initialize the scheduler.

        Args:
            fetch: Async callable that fetches one chunk and returns its payload
            listeners: Lifecycle handlers
            concurrency_ceiling: Maximum simultaneous fetches
            max_retries: Failures tolerated per chunk identity before giving up
            chunks: Pre-supplied chunks (exclusive with ``chunks_source``)
            chunks_source: Async callable returning the chunks
            fetch_timeout: Optional deadline in seconds for each fetch
            verbose: Log progress at INFO instead of DEBUG

        Raises:
            ConfigurationError: If the chunk source, result listener or limits are invalid
        """
        if chunks is None and chunks_source is None:
            raise ConfigurationError("Either chunks or a chunks source must be provided")
        if chunks is not None and chunks_source is not None:
            raise ConfigurationError("Provide either chunks or a chunks source, not both")
        if not listeners.has_result_listener:
            raise ConfigurationError(
                "A listener for 'on_chunk_success' or 'on_item_downloaded' must be provided"
            )
        if not callable(fetch):
            raise ConfigurationError("fetch must be an async callable")
        if concurrency_ceiling < 1:
            raise ConfigurationError("concurrency_ceiling must be a positive integer")
        if max_retries < 0:
            raise ConfigurationError("max_retries must be a non-negative integer")
        if fetch_timeout is not None and fetch_timeout <= 0:
            raise ConfigurationError("fetch_timeout must be positive")
        if chunks is not None:
            problem = _chunk_problem(chunks)
            if problem:
                raise ConfigurationError(f"Invalid chunks: {problem}")

        self._fetch = fetch
        self._listeners = listeners
        self._ceiling = concurrency_ceiling
        self._max_retries = max_retries
        self._chunks_source = chunks_source
        self._fetch_timeout = fetch_timeout
        self._verbose = verbose

        self._queue = ChunkQueue(chunks or ())
        self._tracker = FailureTracker()
        self._in_flight = 0
        self._state = SchedulerState.NOT_STARTED
        self._stats = SchedulerStats()
        self._tasks: set[asyncio.Task[None]] = set()
        self._done: asyncio.Event | None = None
        self._fatal: BaseException | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def in_flight(self) -> int:
        """Number of fetches currently dispatched and not yet completed."""
        return self._in_flight

    @property
    def pending(self) -> int:
        """Number of chunks waiting in the queue."""
        return len(self._queue)

    @property
    def failures(self) -> FailureTracker:
        return self._tracker

    @property
    def stats(self) -> SchedulerStats:
        return self._stats

    async def run(self) -> SchedulerStats:
        """Run until every chunk has succeeded or been given up on.

        Returns:
            Statistics for the run

        Raises:
            SchedulerStateError: If the scheduler was already run
            InitialRetrievalError: If the chunks source failed
            Exception: Whatever a listener raised; the run is aborted
        """
        if self._state is not SchedulerState.NOT_STARTED:
            raise SchedulerStateError("A scheduler can only be run once")

        started = perf_counter()
        self._done = asyncio.Event()
        try:
            if self._chunks_source is not None:
                await self._retrieve_chunks()
            self._state = SchedulerState.RUNNING
            for _ in range(self._ceiling):
                self._try_admit()
            await self._done.wait()
            if self._fatal is not None:
                raise self._fatal
        except BaseException:
            self._state = SchedulerState.FAILED
            await self._cancel_in_flight()
            raise

        self._stats.elapsed_ms = (perf_counter() - started) * 1000.0
        log_scheduler_finished(stats=self._stats)
        return self._stats

    async def _retrieve_chunks(self) -> None:
        """Resolve the chunks source and seed the queue."""
        self._state = SchedulerState.RETRIEVING
        source = describe_source(self._chunks_source)
        try:
            chunks = await self._chunks_source()
        except InitialRetrievalError:
            raise
        except Exception as e:
            raise InitialRetrievalError(
                f"Unable to retrieve chunks from {source}: {e}", source=source
            ) from e

        problem = _chunk_problem(chunks)
        if problem:
            raise InitialRetrievalError(
                f"Invalid chunk list from {source}: {problem}", source=source
            )

        self._queue = ChunkQueue(chunks)
        log_chunks_retrieved(source=source, total_chunks=len(chunks), verbose=self._verbose)
        self._listeners.emit("on_initial_retrieval_complete", len(chunks))

    def _try_admit(self) -> None:
        """Admit the next chunk if a slot is free.

        Chunks over the retry budget are given up on without taking a slot,
        and the step moves on to the following chunk.
        """
        while self._fatal is None and self._state is SchedulerState.RUNNING:
            if self._in_flight >= self._ceiling:
                return

            chunk = self._queue.take_next()
            if chunk is None:
                # Fetches still in flight may fail and requeue work.
                if self._in_flight == 0:
                    self._finish()
                return

            identity = chunk_identity(chunk)
            failures = self._tracker.failure_count(identity)
            if failures > self._max_retries:
                self._give_up(chunk, identity, failures)
                continue

            self._dispatch(chunk, identity)
            return

    def _dispatch(self, chunk: Chunk, identity: Hashable) -> None:
        self._listeners.emit("on_fetch_start")
        self._in_flight += 1
        self._stats.fetches_dispatched += 1
        self._stats.max_in_flight = max(self._stats.max_in_flight, self._in_flight)
        log_chunk_dispatched(
            identity=identity,
            in_flight=self._in_flight,
            pending=len(self._queue),
            verbose=self._verbose,
        )
        task = asyncio.create_task(self._attempt(chunk, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _give_up(self, chunk: Chunk, identity: Hashable, failures: int) -> None:
        self._stats.abandoned.append(ChunkAbandoned(chunk, failures))
        log_chunk_gave_up(identity=identity, failures=failures, max_retries=self._max_retries)
        self._listeners.emit("on_chunk_give_up", chunk)

    def _finish(self) -> None:
        self._state = SchedulerState.FINISHED
        self._listeners.emit("on_all_finished")
        self._done.set()

    async def _attempt(self, chunk: Chunk, identity: Hashable) -> None:
        """Fetch one chunk, then report the outcome and admit more work."""
        started = perf_counter()
        error: Exception | None = None
        payload: Any = None
        try:
            if self._fetch_timeout is not None:
                payload = await asyncio.wait_for(self._fetch(chunk), timeout=self._fetch_timeout)
            else:
                payload = await self._fetch(chunk)
        except Exception as e:
            error = e
        latency_ms = (perf_counter() - started) * 1000.0

        try:
            self._complete(chunk, identity, payload, error, latency_ms)
        except Exception as e:
            self._abort(e)

    def _complete(
        self,
        chunk: Chunk,
        identity: Hashable,
        payload: Any,
        error: Exception | None,
        latency_ms: float,
    ) -> None:
        items = 0
        try:
            if error is None:
                outcome = AttemptOutcome.SUCCEEDED
                self._stats.chunks_succeeded += 1
                self._listeners.emit("on_chunk_success", payload)
                if self._listeners.on_item_downloaded is not None:
                    for item in payload_items(payload):
                        self._listeners.emit("on_item_downloaded", item)
                        items += 1
            else:
                outcome = AttemptOutcome.FAILED_RETRYABLE
                attempt = self._tracker.record_failure(identity)
                self._queue.requeue(chunk)
                self._stats.fetch_errors += 1
                log_chunk_error(
                    identity=identity,
                    attempt=attempt,
                    error_type=type(error).__name__,
                    error_message=str(error),
                )
                fetch_error = FetchError(
                    f"Fetch failed for chunk {identity!r} (attempt {attempt}): {error}",
                    chunk=chunk,
                    attempt=attempt,
                    error=error,
                )
                fetch_error.__cause__ = error
                self._listeners.emit("on_chunk_error", fetch_error)
        finally:
            self._in_flight -= 1

        log_chunk_completed(
            identity=identity,
            outcome=outcome,
            items=items,
            latency_ms=latency_ms,
            verbose=self._verbose,
        )
        self._listeners.emit("on_chunk_complete")
        self._try_admit()

    def _abort(self, error: BaseException) -> None:
        """Stop the run because a listener raised."""
        if self._fatal is None:
            logger.error(f"Listener raised, aborting run: {error!r}")
            self._fatal = error
        if self._done is not None:
            self._done.set()

    async def _cancel_in_flight(self) -> None:
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
