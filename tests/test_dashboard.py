"""Tests for the dashboard loop, the curses sink and the CLI entry point."""

from __future__ import annotations

import curses
import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from srmon.colors import Color
from srmon.config import Config
from srmon.dashboard import CursesSink, Dashboard, _safe, main, next_refresh, setup_logging
from srmon.errors import UnsupportedPlatformError
from srmon.events import Mode
from srmon.model import ProcessInfo, Snapshot
from srmon.platforms import KillOutcome, KillResult, ProcessDetails
from srmon.render import MoveTo, Print, SetColor


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _snapshot(*pids: int) -> Snapshot:
    return Snapshot(
        timestamp=0.0,
        processes=tuple(ProcessInfo(pid=p, name=f"p{p}", cpu_percent=float(p)) for p in pids),
    )


def _dashboard(config: Config | None = None, clock: FakeClock | None = None) -> Dashboard:
    aggregator = MagicMock()
    aggregator.collect.return_value = _snapshot(5, 3, 1)
    return Dashboard(config or Config(), aggregator=aggregator, provider=MagicMock(), clock=clock or FakeClock())


def _press(d: Dashboard, *keys: str | int) -> None:
    for key in keys:
        d.handle_key(key, viewport=10)


# ── Refresh presets ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("current", "expected"),
    [(2000, 5000), (5000, 500), (500, 1000), (50, 500), (3000, 5000), (10000, 500)],
)
def test_next_refresh(current: int, expected: int) -> None:
    assert next_refresh(current) == expected


# ── Timing ─────────────────────────────────────────────────────────────────


class TestTiming:
    def test_due_before_first_tick(self) -> None:
        d = _dashboard()
        assert d.refresh_due()
        assert d.wait_ms() == 10

    def test_wait_is_time_left(self) -> None:
        clock = FakeClock()
        d = _dashboard(clock=clock)
        d.tick()
        clock.now = 0.5
        assert d.wait_ms() == 1500
        assert not d.refresh_due()

    def test_wait_never_below_minimum(self) -> None:
        clock = FakeClock()
        d = _dashboard(clock=clock)
        d.tick()
        clock.now = 1.995
        assert d.wait_ms() == 10
        clock.now = 2.0
        assert d.refresh_due()


# ── Key handling ───────────────────────────────────────────────────────────


class TestKeys:
    def test_q_quits(self) -> None:
        d = _dashboard()
        _press(d, "q")
        assert d.quitting

    def test_ctrl_c_quits_from_filter(self) -> None:
        d = _dashboard()
        _press(d, "/", "\x03")
        assert d.mode is Mode.QUITTING

    def test_filter_typed_and_kept(self) -> None:
        d = _dashboard()
        _press(d, "/", "q", "s", "x", curses.KEY_BACKSPACE, "\n")
        assert d.view.state.filter_text == "qs"
        assert d.mode is Mode.RUNNING

    def test_filter_escape_clears(self) -> None:
        d = _dashboard()
        _press(d, "/", "a", "\x1b")
        assert d.view.state.filter_text == ""
        assert d.mode is Mode.RUNNING

    def test_help_swallows_navigation(self) -> None:
        d = _dashboard()
        d.tick()
        d.frame(80, 24)
        _press(d, "?", "j")
        assert d.mode is Mode.HELP_SHOWN
        assert d.view.state.selected == 0
        _press(d, "?")
        assert d.mode is Mode.RUNNING

    def test_refresh_cycle(self) -> None:
        d = _dashboard()
        _press(d, "r")
        assert d.refresh_ms == 5000
        _press(d, "r")
        assert d.refresh_ms == 500
        assert d.status == "Refresh interval: 500 ms"

    def test_sort_status(self) -> None:
        d = _dashboard()
        _press(d, "s")
        assert d.status == "Sorting by MEM%"

    def test_status_cleared_by_next_key(self) -> None:
        d = _dashboard()
        _press(d, "s", "j")
        assert d.status is None


class TestKill:
    def test_kill_selected(self) -> None:
        d = _dashboard()
        d.tick()
        d.frame(80, 24)
        d.provider.terminate_process.return_value = KillResult(KillOutcome.SENT, 5, "Sent SIGTERM to PID 5")
        before = (d.view.state.selected, d.view.state.filter_text, d.view.state.sort_key)
        _press(d, "K")
        d.provider.terminate_process.assert_called_once_with(5)
        assert d.status == "Sent SIGTERM to PID 5"
        assert (d.view.state.selected, d.view.state.filter_text, d.view.state.sort_key) == before

    def test_kill_failure_reported(self) -> None:
        d = _dashboard()
        d.tick()
        d.frame(80, 24)
        d.provider.terminate_process.return_value = KillResult(
            KillOutcome.PERMISSION_DENIED, 5, "PID 5: permission denied"
        )
        _press(d, "K")
        assert d.status == "PID 5: permission denied"
        assert d.mode is Mode.RUNNING

    def test_kill_without_selection(self) -> None:
        d = _dashboard()
        _press(d, "K")
        d.provider.terminate_process.assert_not_called()
        assert d.status == "No process selected"


class TestDetails:
    def test_details_in_status(self) -> None:
        d = _dashboard()
        d.tick()
        d.frame(80, 24)
        d.provider.process_details.return_value = ProcessDetails(
            cwd="/srv", container_id="abcdef012345", open_files=("a", "b")
        )
        _press(d, "\n")
        assert d.status == "PID 5 | cwd: /srv | container: abcdef012345 | 2 open files"

    def test_unsupported_details(self) -> None:
        d = _dashboard()
        d.tick()
        d.frame(80, 24)
        d.provider.process_details.side_effect = UnsupportedPlatformError("not on generic")
        _press(d, "\n")
        assert d.status == "not on generic"


# ── Curses sink ────────────────────────────────────────────────────────────


class TestCursesSink:
    def test_apply_without_color(self) -> None:
        win = MagicMock()
        sink = CursesSink(win, use_color=False)
        sink.apply([MoveTo(2, 3), SetColor(Color.RED, bold=True), Print("hi"), Print("!")])
        assert win.addstr.call_args_list == [
            call(3, 2, "hi", curses.A_BOLD),
            call(3, 4, "!", curses.A_BOLD),
        ]

    def test_safe_swallows_curses_error(self) -> None:
        win = MagicMock()
        win.addstr.side_effect = curses.error
        _safe(win, 0, 0, "x")

    @patch("srmon.dashboard.curses.init_pair")
    @patch("srmon.dashboard.curses.color_pair", side_effect=lambda n: n << 8)
    @patch("srmon.dashboard.curses.use_default_colors")
    @patch("srmon.dashboard.curses.start_color")
    @patch("srmon.dashboard.curses.has_colors", return_value=True)
    def test_color_pairs_reused(
        self,
        mock_has: MagicMock,
        mock_start: MagicMock,
        mock_default: MagicMock,
        mock_pair: MagicMock,
        mock_init: MagicMock,
    ) -> None:
        with patch("srmon.dashboard.curses.COLOR_PAIRS", 256, create=True):
            sink = CursesSink(MagicMock())
            a = sink.attr_for(SetColor(Color.GREEN))
            b = sink.attr_for(SetColor(Color.GREEN))
            c = sink.attr_for(SetColor(Color.RED))
        assert a == b
        assert a != c
        assert mock_init.call_count == 2
        mock_init.assert_any_call(1, curses.COLOR_GREEN, -1)


# ── Event loop ─────────────────────────────────────────────────────────────


@patch("srmon.dashboard.time.sleep")
@patch("srmon.dashboard.curses")
def test_run_until_quit(mock_curses: MagicMock, mock_sleep: MagicMock) -> None:
    mock_curses.error = curses.error
    mock_curses.A_BOLD = curses.A_BOLD
    mock_curses.A_REVERSE = curses.A_REVERSE
    d = _dashboard(Config(no_color=True))
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (24, 80)
    stdscr.get_wch.side_effect = [curses.error(), "j", "q"]
    d.run(stdscr)
    assert d.quitting
    d.aggregator.prime.assert_called_once()
    mock_curses.raw.assert_called_once()
    assert stdscr.refresh.call_count == 3
    assert d.view.state.selected == 1


@pytest.mark.parametrize(
    ("enter_key", "mode"),
    [("?", Mode.HELP_SHOWN), ("/", Mode.FILTER_EDITING)],
)
@patch("srmon.dashboard.time.sleep")
@patch("srmon.dashboard.curses")
def test_timer_refreshes_in_modal_states(
    mock_curses: MagicMock, mock_sleep: MagicMock, enter_key: str, mode: Mode
) -> None:
    mock_curses.error = curses.error
    mock_curses.A_BOLD = curses.A_BOLD
    mock_curses.A_REVERSE = curses.A_REVERSE
    clock = FakeClock()
    d = _dashboard(Config(no_color=True), clock=clock)
    seen: list[tuple[Mode, int]] = []

    def timeout() -> str:
        clock.now += 2.5
        raise curses.error()

    def observe() -> str:
        seen.append((d.mode, d.aggregator.collect.call_count))
        return "\x03"

    script = iter([lambda: enter_key, timeout, observe])
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (24, 80)
    stdscr.get_wch.side_effect = lambda: next(script)()
    d.run(stdscr)

    # One tick at startup, one when the timer expired while modal
    assert seen == [(mode, 2)]
    assert d.quitting
    assert stdscr.refresh.call_count == 3


# ── CLI ────────────────────────────────────────────────────────────────────


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_log_handlers(self):
        with patch("srmon.dashboard.setup_logging"):
            yield

    def test_print_default_config(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--print-default-config"]) == 0
        assert json.loads(capsys.readouterr().out)["refresh_ms"] == 2000

    @patch("srmon.config.default_config_paths", return_value=[])
    @patch("srmon.dashboard.curses.wrapper")
    def test_bad_refresh_exits_1(
        self, mock_wrapper: MagicMock, mock_paths: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--refresh", "10", "--log-file", str(tmp_path / "srmon.log")]) == 1
        assert "refresh" in capsys.readouterr().err
        mock_wrapper.assert_not_called()

    @patch("srmon.config.default_config_paths", return_value=[])
    @patch("srmon.dashboard.curses.wrapper")
    def test_missing_json_config_exits_1(self, mock_wrapper: MagicMock, mock_paths: MagicMock, tmp_path: Path) -> None:
        args = ["--json-config", str(tmp_path / "nope.json"), "--log-file", str(tmp_path / "srmon.log")]
        assert main(args) == 1
        mock_wrapper.assert_not_called()

    @patch("srmon.config.default_config_paths", return_value=[])
    @patch("srmon.dashboard.curses.wrapper")
    def test_clean_run_exits_0(self, mock_wrapper: MagicMock, mock_paths: MagicMock, tmp_path: Path) -> None:
        assert main(["--refresh", "500", "--log-file", str(tmp_path / "srmon.log")]) == 0
        dashboard_run = mock_wrapper.call_args[0][0]
        assert dashboard_run.__self__.refresh_ms == 500

    @patch("srmon.config.default_config_paths", return_value=[])
    @patch("srmon.dashboard.curses.wrapper", side_effect=KeyboardInterrupt)
    def test_keyboard_interrupt_is_clean(self, mock_wrapper: MagicMock, mock_paths: MagicMock, tmp_path: Path) -> None:
        assert main(["--log-file", str(tmp_path / "srmon.log")]) == 0


# ── Logging setup ──────────────────────────────────────────────────────────


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "nested" / "srmon.log"
    pkg_logger = logging.getLogger("srmon")
    before = list(pkg_logger.handlers)
    try:
        setup_logging(log_file, "DEBUG")
        logging.getLogger("srmon.test").info("hello")
        for h in pkg_logger.handlers:
            h.flush()
        assert "INFO - srmon.test - hello" in log_file.read_text()
    finally:
        for h in pkg_logger.handlers[len(before):]:
            h.close()
            pkg_logger.removeHandler(h)
