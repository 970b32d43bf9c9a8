"""Per-entity delta tracking for cumulative counters."""

from __future__ import annotations

from collections.abc import Hashable


class DeltaTracker:
    """Remembers the last cumulative counters seen for each entity key.

    ``update`` returns how much each counter grew since the previous call
    with the same key. Subtraction saturates at zero, so a counter that goes
    backwards (device re-enumerated, counter reset) yields 0 rather than a
    negative rate.

    Keys that stop appearing are left in storage. If the same key shows up
    again later (replugged device, recycled pid) the delta is computed
    against the stale value and can be one large spike.
    """

    def __init__(self) -> None:
        self._previous: dict[Hashable, tuple[int, ...]] = {}

    def update(self, key: Hashable, *counters: int) -> tuple[int, ...]:
        current = tuple(int(c) for c in counters)
        prev = self._previous.get(key)
        self._previous[key] = current
        if prev is None or len(prev) != len(current):
            return (0,) * len(current)
        return tuple(max(0, c - p) for c, p in zip(current, prev))

    def previous(self, key: Hashable) -> tuple[int, ...] | None:
        return self._previous.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._previous

    def __len__(self) -> int:
        return len(self._previous)
