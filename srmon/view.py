"""Process table view: filtering, sorting, tree ordering, selection and scroll."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable

from srmon.model import ALL_COLUMNS, COMPACT_COLUMNS, ProcessInfo, Snapshot, SortKey


@dataclass
class ViewState:
    sort_key: SortKey = SortKey.CPU
    descending: bool = True
    filter_text: str = ""
    selected: int = 0  # index into the filtered, sorted list
    window_start: int = 0  # first row shown in the table
    columns: tuple[str, ...] = ALL_COLUMNS
    tree_view: bool = False


@dataclass(frozen=True)
class Row:
    process: ProcessInfo
    depth: int = 0  # indentation level in tree view


@dataclass(frozen=True)
class VisibleRows:
    rows: tuple[Row, ...] = ()  # only the rows inside the window
    selected: int = 0
    window_start: int = 0
    total: int = 0  # rows after filtering

    @property
    def selected_offset(self) -> int | None:
        """Position of the selection inside ``rows``, or None if it is off-window."""
        offset = self.selected - self.window_start
        return offset if 0 <= offset < len(self.rows) else None


# ── Filtering and sorting ──────────────────────────────────────────────────


def matches(process: ProcessInfo, needle: str) -> bool:
    """Case-insensitive substring match on name, command line, user or pid."""
    needle = needle.lower()
    return (
        needle in process.name.lower()
        or needle in " ".join(process.cmd).lower()
        or needle in process.user.lower()
        or needle in str(process.pid)
    )


def filter_processes(processes: list[ProcessInfo], text: str) -> list[ProcessInfo]:
    if not text:
        return list(processes)
    return [p for p in processes if matches(p, text)]


_SORT_VALUES: dict[SortKey, Callable[[ProcessInfo], Any]] = {
    SortKey.CPU: lambda p: p.cpu_percent,
    SortKey.MEMORY: lambda p: p.memory_percent,
    SortKey.PID: lambda p: p.pid,
    SortKey.NAME: lambda p: p.name.lower(),
}


def _compare(a: Any, b: Any) -> int:
    # Unordered pairs (NaN) compare equal so they never move
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def sort_processes(processes: list[ProcessInfo], key: SortKey, descending: bool) -> list[ProcessInfo]:
    """Stable sort; equal keys keep their enumeration order in both directions.

    NaN values compare equal to everything, so a NaN row splits the list into
    runs that are each sorted but not ordered relative to one another.
    """
    value = _SORT_VALUES[key]
    if descending:
        cmp = lambda x, y: _compare(value(y), value(x))  # noqa: E731
    else:
        cmp = lambda x, y: _compare(value(x), value(y))  # noqa: E731
    return sorted(processes, key=functools.cmp_to_key(cmp))


def build_tree(processes: list[ProcessInfo]) -> list[Row]:
    """Depth-first parent/child ordering that keeps sibling order.

    A process whose parent is not in the list is a root. Parent cycles are
    broken by emitting each pid once.
    """
    pids = {p.pid for p in processes}
    children: dict[int, list[ProcessInfo]] = {}
    roots: list[ProcessInfo] = []
    for p in processes:
        if p.parent_pid is None or p.parent_pid == p.pid or p.parent_pid not in pids:
            roots.append(p)
        else:
            children.setdefault(p.parent_pid, []).append(p)

    rows: list[Row] = []
    seen: set[int] = set()

    def walk(start: ProcessInfo) -> None:
        stack = [(start, 0)]
        while stack:
            proc, depth = stack.pop()
            if proc.pid in seen:
                continue
            seen.add(proc.pid)
            rows.append(Row(proc, depth))
            for child in reversed(children.get(proc.pid, [])):
                stack.append((child, depth + 1))

    for root in roots:
        walk(root)
    # Anything left sits on a parent cycle with no way in from a root
    for p in processes:
        if p.pid not in seen:
            walk(p)
    return rows


# ── Controller ─────────────────────────────────────────────────────────────


class ProcessViewController:
    """Owns the ``ViewState`` and derives the visible table rows from it."""

    def __init__(self, state: ViewState | None = None) -> None:
        self.state = state or ViewState()
        self._column_sets = _unique([self.state.columns, ALL_COLUMNS, COMPACT_COLUMNS])
        self._rows: list[Row] = []

    # ── Derivation ─────────────────────────────────────────────────────────

    def arrange(self, processes: tuple[ProcessInfo, ...] | list[ProcessInfo]) -> list[Row]:
        s = self.state
        ordered = sort_processes(filter_processes(list(processes), s.filter_text), s.sort_key, s.descending)
        if s.tree_view:
            return build_tree(ordered)
        return [Row(p) for p in ordered]

    def visible_rows(self, snapshot: Snapshot | None, viewport_height: int) -> VisibleRows:
        self._rows = self.arrange(snapshot.processes) if snapshot is not None else []
        self.clamp(viewport_height)
        s = self.state
        window = self._rows[s.window_start : s.window_start + max(0, viewport_height)]
        return VisibleRows(
            rows=tuple(window),
            selected=s.selected,
            window_start=s.window_start,
            total=len(self._rows),
        )

    def clamp(self, viewport_height: int) -> None:
        s = self.state
        count = len(self._rows)
        if count == 0:
            s.selected = 0
            s.window_start = 0
            return
        s.selected = max(0, min(s.selected, count - 1))
        viewport = max(1, viewport_height)
        if s.selected < s.window_start:
            s.window_start = s.selected
        elif s.selected >= s.window_start + viewport:
            s.window_start = s.selected - viewport + 1

    def selected_process(self) -> ProcessInfo | None:
        if 0 <= self.state.selected < len(self._rows):
            return self._rows[self.state.selected].process
        return None

    # ── Navigation ─────────────────────────────────────────────────────────

    def move(self, delta: int) -> None:
        last = max(0, len(self._rows) - 1)
        self.state.selected = max(0, min(self.state.selected + delta, last))

    def page(self, direction: int, viewport_height: int) -> None:
        self.move(direction * max(1, viewport_height))

    def home(self) -> None:
        self.state.selected = 0

    def end(self) -> None:
        self.state.selected = max(0, len(self._rows) - 1)

    # ── Sorting, filtering, display ────────────────────────────────────────

    def cycle_sort(self) -> SortKey:
        key = self.state.sort_key.next()
        self.state.sort_key = key
        self.state.descending = key.descending_by_default
        return key

    def set_filter(self, text: str) -> None:
        # Selection and window are clamped on the next visible_rows()
        self.state.filter_text = text

    def append_filter_char(self, ch: str) -> None:
        self.set_filter(self.state.filter_text + ch)

    def pop_filter_char(self) -> None:
        self.set_filter(self.state.filter_text[:-1])

    def clear_filter(self) -> None:
        self.set_filter("")

    def toggle_tree(self) -> bool:
        self.state.tree_view = not self.state.tree_view
        return self.state.tree_view

    def cycle_columns(self) -> tuple[str, ...]:
        sets = self._column_sets
        try:
            i = sets.index(self.state.columns)
        except ValueError:
            i = -1
        self.state.columns = sets[(i + 1) % len(sets)]
        return self.state.columns


def _unique(items: list[tuple[str, ...]]) -> list[tuple[str, ...]]:
    out: list[tuple[str, ...]] = []
    for item in items:
        if item and item not in out:
            out.append(item)
    return out
