"""Per-chunk failure counting."""

from __future__ import annotations

from collections.abc import Hashable


class FailureTracker:
    """Maps chunk identity to the number of failed fetch attempts.

    Counts only ever grow. Entries are never cleared, including after a chunk
    eventually succeeds.
    """

    def __init__(self) -> None:
        self._failures: dict[Hashable, int] = {}

    def record_failure(self, identity: Hashable) -> int:
        """Increment the failure count for ``identity`` and return it."""
        count = self._failures.get(identity, 0) + 1
        self._failures[identity] = count
        return count

    def failure_count(self, identity: Hashable) -> int:
        """Return the failure count for ``identity``, 0 if it never failed."""
        return self._failures.get(identity, 0)

    def snapshot(self) -> dict[Hashable, int]:
        return dict(self._failures)

    def __len__(self) -> int:
        return len(self._failures)
