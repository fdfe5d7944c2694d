"""Lifecycle listener slots.

Architecture:
    Listeners are a fixed set of optional handler slots rather than a dynamic
    subscription registry. The set is frozen at construction, validated once,
    and every slot is invoked synchronously at its lifecycle point by the
    scheduler.

Lifecycle points:
    - on_fetch_start(): immediately before a fetch is dispatched
    - on_chunk_success(payload): a fetch returned a payload
    - on_item_downloaded(item): once per item of a successful payload
    - on_chunk_complete(): after success or error of an attempt
    - on_chunk_error(error): a fetch attempt failed (error is a FetchError)
    - on_chunk_give_up(chunk): a chunk exceeded its retry budget
    - on_all_finished(): no work remains
    - on_initial_retrieval_complete(count): the chunk list was retrieved
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any

from ..core.exceptions import ListenerContractViolation

Handler = Callable[..., Any]


@dataclass(frozen=True)
class ListenerSet:
    """Optional handlers notified by the scheduler."""

    on_fetch_start: Handler | None = None
    on_chunk_success: Handler | None = None
    on_item_downloaded: Handler | None = None
    on_chunk_complete: Handler | None = None
    on_chunk_error: Handler | None = None
    on_chunk_give_up: Handler | None = None
    on_all_finished: Handler | None = None
    on_initial_retrieval_complete: Handler | None = None

    def __post_init__(self) -> None:
        """Reject slots holding anything but a callable or None."""
        for slot in fields(self):
            handler = getattr(self, slot.name)
            if handler is not None and not callable(handler):
                raise ListenerContractViolation(
                    f"Listener '{slot.name}' must be callable (or None), "
                    f"got {type(handler).__name__}",
                    slot=slot.name,
                )

    @classmethod
    def from_mapping(cls, handlers: dict[str, Any]) -> ListenerSet:
        """Build a listener set from a name -> handler mapping.

        Raises:
            ListenerContractViolation: If a name is not a known slot
        """
        known = {slot.name for slot in fields(cls)}
        unknown = sorted(set(handlers) - known)
        if unknown:
            raise ListenerContractViolation(
                f"Unknown listener slot(s): {', '.join(unknown)}", slot=unknown[0]
            )
        return cls(**handlers)

    @property
    def has_result_listener(self) -> bool:
        """Whether results can be surfaced at all."""
        return self.on_chunk_success is not None or self.on_item_downloaded is not None

    def emit(self, slot: str, *args: Any) -> None:
        """Invoke the handler in ``slot`` if one is registered."""
        handler = getattr(self, slot)
        if handler is not None:
            handler(*args)
