"""Interactive terminal dashboard: the curses session and the event loop.

The loop waits for a key with a timeout equal to the time left until the
next refresh, collects a snapshot whenever the refresh interval has elapsed,
and redraws after every key and every tick. Drawing goes through ``render``,
which returns plain instructions; ``CursesSink`` is the only code that
touches the screen.

Usage:
    srmon
    srmon --refresh 1000 --theme light --json-config path/to/config.json
"""

from __future__ import annotations

import argparse
import curses
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Callable

from srmon.collector import SnapshotAggregator
from srmon.colors import Color, ColorScheme
from srmon.config import CliOverrides, Config, dump_default_config, load_config
from srmon.errors import ConfigError, SrmonError
from srmon.events import Action, InputEvent, Mode, decode_key, transition
from srmon.layout import LayoutEngine
from srmon.model import ALL_COLUMNS, Snapshot
from srmon.platforms import PlatformProvider, get_platform_provider
from srmon.readers import PsutilReaders
from srmon.render import Instruction, MoveTo, Print, SetColor, render
from srmon.view import ProcessViewController, ViewState

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────

REFRESH_PRESETS = (500, 1000, 2000, 5000)
MIN_WAIT_MS = 10
PRIME_DELAY = 0.25  # seconds between the baseline sample and the first shown one

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DEFAULT_LOG_FILE = Path.home() / ".cache" / "srmon" / "srmon.log"

_CURSES_COLORS: dict[Color, int] = {
    Color.DEFAULT: -1,
    Color.BLACK: curses.COLOR_BLACK,
    Color.RED: curses.COLOR_RED,
    Color.GREEN: curses.COLOR_GREEN,
    Color.YELLOW: curses.COLOR_YELLOW,
    Color.BLUE: curses.COLOR_BLUE,
    Color.MAGENTA: curses.COLOR_MAGENTA,
    Color.CYAN: curses.COLOR_CYAN,
    Color.WHITE: curses.COLOR_WHITE,
}


def next_refresh(current_ms: int) -> int:
    """The preset after ``current_ms``, wrapping back to the fastest."""
    for preset in REFRESH_PRESETS:
        if preset > current_ms:
            return preset
    return REFRESH_PRESETS[0]


# ── Curses sink ────────────────────────────────────────────────────────────


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


class CursesSink:
    """Applies draw instructions to a curses window."""

    def __init__(self, win: curses.window, use_color: bool = True) -> None:
        self.win = win
        self.use_color = use_color and curses.has_colors()
        self._pairs: dict[tuple[Color, Color], int] = {}
        if self.use_color:
            curses.start_color()
            curses.use_default_colors()

    def _pair(self, fg: Color, bg: Color) -> int:
        key = (fg, bg)
        if key not in self._pairs:
            pair_id = len(self._pairs) + 1
            if pair_id >= curses.COLOR_PAIRS:
                return 0
            curses.init_pair(pair_id, _CURSES_COLORS[fg], _CURSES_COLORS[bg])
            self._pairs[key] = pair_id
        return curses.color_pair(self._pairs[key])

    def attr_for(self, sc: SetColor) -> int:
        attr = self._pair(sc.fg, sc.bg) if self.use_color else 0
        if sc.bold:
            attr |= curses.A_BOLD
        if sc.reverse:
            attr |= curses.A_REVERSE
        return attr

    def apply(self, instructions: list[Instruction]) -> None:
        x = y = 0
        attr = 0
        for ins in instructions:
            if isinstance(ins, MoveTo):
                x, y = ins.x, ins.y
            elif isinstance(ins, SetColor):
                attr = self.attr_for(ins)
            elif isinstance(ins, Print):
                _safe(self.win, y, x, ins.text, attr)
                x += len(ins.text)


# ── Event loop ─────────────────────────────────────────────────────────────


class Dashboard:
    """Owns the view, the collector and the mode; ``run`` drives the loop."""

    def __init__(
        self,
        config: Config,
        aggregator: SnapshotAggregator | None = None,
        provider: PlatformProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.provider = provider or get_platform_provider(use_procfs=config.use_procfs)
        self.aggregator = aggregator or SnapshotAggregator(PsutilReaders(self.provider))
        self.view = ProcessViewController(
            ViewState(
                sort_key=config.initial_sort,
                descending=config.initial_sort.descending_by_default,
                columns=config.columns or ALL_COLUMNS,
                tree_view=config.tree_view,
            )
        )
        self.colors = ColorScheme.for_theme(config.theme, config.no_color)
        self.layout = LayoutEngine()
        self.mode = Mode.RUNNING
        self.refresh_ms = config.refresh_ms
        self.snapshot: Snapshot | None = None
        self.status: str | None = None
        self._clock = clock
        self._last_collect: float | None = None

    @property
    def quitting(self) -> bool:
        return self.mode is Mode.QUITTING

    # ── Timing ─────────────────────────────────────────────────────────────

    def elapsed_ms(self) -> float:
        if self._last_collect is None:
            return float("inf")
        return (self._clock() - self._last_collect) * 1000.0

    def refresh_due(self) -> bool:
        return self.elapsed_ms() >= self.refresh_ms

    def wait_ms(self) -> int:
        """Input timeout: time left until the next refresh, never below 10 ms."""
        remaining = self.refresh_ms - self.elapsed_ms()
        if remaining <= MIN_WAIT_MS:
            return MIN_WAIT_MS
        return int(remaining)

    def tick(self) -> Snapshot:
        self.snapshot = self.aggregator.collect()
        self._last_collect = self._clock()
        return self.snapshot

    # ── Input ──────────────────────────────────────────────────────────────

    def handle_key(self, key: str | int, viewport: int) -> InputEvent:
        event = decode_key(key, self.mode)
        self.apply(event, viewport)
        self.mode = transition(self.mode, event)
        return event

    def apply(self, event: InputEvent, viewport: int) -> None:
        """Side effects of an event on the view, provider and refresh rate."""
        action = event.action
        if action in (Action.UNKNOWN, Action.RESIZE):
            return
        self.status = None
        view = self.view

        if action is Action.MOVE_UP:
            view.move(-1)
        elif action is Action.MOVE_DOWN:
            view.move(1)
        elif action is Action.PAGE_UP:
            view.page(-1, viewport)
        elif action is Action.PAGE_DOWN:
            view.page(1, viewport)
        elif action is Action.HOME:
            view.home()
        elif action is Action.END:
            view.end()
        elif action is Action.CYCLE_SORT:
            key = view.cycle_sort()
            self.status = f"Sorting by {key.label}"
        elif action is Action.CLEAR_FILTER:
            view.clear_filter()
        elif action is Action.FILTER_CHAR:
            view.append_filter_char(event.char)
        elif action is Action.FILTER_BACKSPACE:
            view.pop_filter_char()
        elif action is Action.TOGGLE_COLUMNS:
            view.cycle_columns()
        elif action is Action.CHANGE_REFRESH:
            self.refresh_ms = next_refresh(self.refresh_ms)
            self.status = f"Refresh interval: {self.refresh_ms} ms"
        elif action is Action.TOGGLE_TREE:
            on = view.toggle_tree()
            self.status = "Tree view on" if on else "Tree view off"
        elif action is Action.KILL_PROCESS:
            self._kill_selected()
        elif action is Action.SHOW_DETAILS:
            self._show_details()

    def _kill_selected(self) -> None:
        proc = self.view.selected_process()
        if proc is None:
            self.status = "No process selected"
            return
        result = self.provider.terminate_process(proc.pid)
        self.status = result.message

    def _show_details(self) -> None:
        proc = self.view.selected_process()
        if proc is None:
            self.status = "No process selected"
            return
        try:
            details = self.provider.process_details(proc.pid)
        except SrmonError as e:
            self.status = str(e)
            return
        parts = [f"PID {proc.pid}", f"cwd: {details.cwd or '?'}"]
        if details.container_id:
            parts.append(f"container: {details.container_id}")
        elif details.cgroup:
            parts.append(f"cgroup: {details.cgroup}")
        if details.open_files is not None:
            parts.append(f"{len(details.open_files)} open files")
        self.status = " | ".join(parts)

    # ── Drawing ────────────────────────────────────────────────────────────

    def frame(self, width: int, height: int) -> list[Instruction]:
        regions = self.layout.regions(width, height)
        rows = self.view.visible_rows(self.snapshot, regions.table_viewport)
        return render(
            self.snapshot,
            self.view.state,
            rows,
            regions,
            self.colors,
            mode=self.mode,
            status=self.status,
        )

    def run(self, stdscr: curses.window) -> None:
        curses.raw()
        try:
            curses.curs_set(0)
        except curses.error:
            pass  # terminal cannot hide the cursor
        stdscr.keypad(True)
        sink = CursesSink(stdscr, use_color=not self.config.no_color)

        self.aggregator.prime()
        time.sleep(PRIME_DELAY)
        self.tick()
        logger.info("dashboard started, refresh %d ms", self.refresh_ms)

        while not self.quitting:
            if self.refresh_due():
                self.tick()

            max_y, max_x = stdscr.getmaxyx()
            stdscr.erase()
            sink.apply(self.frame(max_x, max_y))
            stdscr.refresh()

            stdscr.timeout(self.wait_ms())
            try:
                key = stdscr.get_wch()
            except curses.error:
                continue  # timed out
            self.handle_key(key, self.layout.regions(max_x, max_y).table_viewport)
        logger.info("dashboard stopped")


# ── CLI entry point ────────────────────────────────────────────────────────


def setup_logging(log_file: Path | None, level: str = "INFO") -> None:
    """Send srmon's logs to ``log_file``; curses owns the terminal."""
    pkg_logger = logging.getLogger("srmon")
    pkg_logger.setLevel(level.upper())
    handler: logging.Handler
    if log_file is None:
        handler = logging.NullHandler()
    else:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    pkg_logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srmon",
        description="Interactive terminal system resource monitor.",
    )
    parser.add_argument(
        "--refresh",
        type=int,
        default=None,
        metavar="MS",
        help="Milliseconds between refreshes (50-10000, default: 2000)",
    )
    parser.add_argument(
        "--theme",
        choices=("dark", "light"),
        default=None,
        help="Colour theme (default: dark)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colours",
    )
    parser.add_argument(
        "--json-config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to JSON config file",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        metavar="PATH",
        help=f"Where to write logs (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Log verbosity (default: INFO)",
    )
    parser.add_argument(
        "--print-default-config",
        action="store_true",
        help="Print the default JSON config and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.print_default_config:
        sys.stdout.write(dump_default_config())
        return 0

    setup_logging(args.log_file, args.log_level)
    cli = CliOverrides(refresh_ms=args.refresh, theme=args.theme, no_color=args.no_color or None)
    try:
        config = load_config(args.json_config, cli)
    except ConfigError as e:
        print(f"srmon: {e}", file=sys.stderr)
        return 1

    os.environ.setdefault("ESCDELAY", "25")
    dashboard = Dashboard(config)
    try:
        curses.wrapper(dashboard.run)
    except KeyboardInterrupt:
        pass
    except curses.error as e:
        print(f"srmon: terminal error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
