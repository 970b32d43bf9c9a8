"""Tests for srmon.render and the widgets behind it."""

from __future__ import annotations

import pytest

from srmon.colors import Color, ColorScheme
from srmon.events import Mode
from srmon.layout import Rect, compute_layout
from srmon.model import (
    CpuCore,
    MemoryInfo,
    NetworkInfo,
    ProcessInfo,
    ProcessState,
    Snapshot,
    SystemInfo,
    TemperatureInfo,
    Theme,
)
from srmon.render import MoveTo, Print, SetColor, render
from srmon.view import ProcessViewController, ViewState
from srmon.widgets import FOOTER_HINT, Canvas, draw_network

DARK = ColorScheme.for_theme(Theme.DARK)


def _snapshot(n_procs: int = 5, **kw) -> Snapshot:
    defaults = dict(
        timestamp=1_700_000_000.0,
        interval=2.0,
        system=SystemInfo(hostname="box", os_name="Linux", os_version="6.1", uptime=3700.0, load_avg=(0.5, 0.25, 0.1)),
        cpu_cores=(CpuCore(0, "cpu0", 12.0, 2400.0), CpuCore(1, "cpu1", 95.0, 2400.0)),
        memory=MemoryInfo(total=16 * 1024**3, used=8 * 1024**3, available=8 * 1024**3, swap_total=0),
        networks=(
            NetworkInfo("eth0", 1000, 2000, 1, 1, rx_bytes_delta=2048, tx_bytes_delta=0),
            NetworkInfo("wlan0", 1000, 2000, 1, 1),
        ),
        temperatures=(TemperatureInfo("Package", 70.0, critical=100.0), TemperatureInfo("Core 0", 50.0)),
        processes=tuple(
            ProcessInfo(
                pid=100 + i,
                name=f"proc{i}",
                user="alice",
                cpu_percent=float(i),
                memory_percent=1.0,
                state=ProcessState.RUNNING if i % 2 else ProcessState.SLEEPING,
            )
            for i in range(n_procs)
        ),
    )
    defaults.update(kw)
    return Snapshot(**defaults)


def _render(width: int = 100, height: int = 30, snapshot: Snapshot | None = None, view: ViewState | None = None, **kw):
    snapshot = snapshot if snapshot is not None else _snapshot()
    regions = compute_layout(width, height)
    ctl = ProcessViewController(view)
    rows = ctl.visible_rows(snapshot, regions.table_viewport)
    return render(snapshot, ctl.state, rows, regions, kw.pop("colors", DARK), **kw)


def _texts(out) -> list[str]:
    return [i.text for i in out if isinstance(i, Print)]


def _joined(out) -> str:
    return "\n".join(_texts(out))


def _placed(out) -> list[tuple[int, int, str]]:
    placed = []
    pos = (0, 0)
    for ins in out:
        if isinstance(ins, MoveTo):
            pos = (ins.x, ins.y)
        elif isinstance(ins, Print):
            placed.append((pos[0], pos[1], ins.text))
    return placed


# ── Bounds ─────────────────────────────────────────────────────────────────


class TestBounds:
    @pytest.mark.parametrize(("w", "h"), [(100, 30), (80, 24), (40, 12), (20, 6), (5, 2), (1, 1), (0, 0)])
    def test_everything_inside_screen(self, w: int, h: int) -> None:
        out = _render(w, h, mode=Mode.HELP_SHOWN)
        for x, y, text in _placed(out):
            assert 0 <= y < h
            assert 0 <= x and x + len(text) <= w

    def test_instructions_come_in_triples(self) -> None:
        out = _render()
        for i in range(0, len(out), 3):
            assert isinstance(out[i], MoveTo)
            assert isinstance(out[i + 1], SetColor)
            assert isinstance(out[i + 2], Print)

    def test_canvas_clips_to_region(self) -> None:
        out: list = []
        c = Canvas(Rect(10, 5, 8, 2), out)
        c.text(0, 4, "abcdefgh", Color.WHITE)
        c.text(2, 0, "below", Color.WHITE)
        assert out[0] == MoveTo(14, 5)
        assert out[2] == Print("abc…")
        assert len(out) == 3

    def test_empty_region_emits_nothing(self) -> None:
        out: list = []
        Canvas(Rect(0, 0, 0, 5), out).text(0, 0, "x", Color.WHITE)
        assert out == []


# ── Header and gauges ──────────────────────────────────────────────────────


class TestHeader:
    def test_host_and_load(self) -> None:
        text = _joined(_render())
        assert "box" in text
        assert "Linux 6.1" in text
        assert "Load: 0.50 0.25 0.10" in text
        assert "Up: 0d 1h 1m" in text

    def test_load_not_available(self) -> None:
        snap = _snapshot(system=SystemInfo(hostname="box"))
        assert "Load: n/a" in _joined(_render(snapshot=snap))

    def test_swap_absent(self) -> None:
        assert "Swap  n/a" in _texts(_render())


# ── Process table ──────────────────────────────────────────────────────────


class TestProcessTable:
    def test_header_marks_sort_column(self) -> None:
        texts = _texts(_render())
        assert any(t.startswith("CPU%↓") for t in texts)

    def test_selected_row_highlighted(self) -> None:
        out = _render()
        # Highest cpu first; the first row is selected
        for i, ins in enumerate(out):
            if isinstance(ins, Print) and "proc4" in ins.text:
                assert out[i - 1].reverse is True
                break
        else:
            pytest.fail("selected row not drawn")

    def test_empty_filter_result_message(self) -> None:
        view = ViewState(filter_text="nomatch")
        assert "No processes match 'nomatch'" in _texts(_render(view=view))

    def test_scroll_hint_when_rows_hidden(self) -> None:
        snap = _snapshot(n_procs=50)
        assert any(t.strip() == "1/50" for t in _texts(_render(80, 24, snapshot=snap)))

    def test_tree_view_indents(self) -> None:
        procs = (
            ProcessInfo(pid=1, name="init", cpu_percent=1.0),
            ProcessInfo(pid=2, name="child", parent_pid=1),
        )
        view = ViewState(tree_view=True, columns=("PID", "NAME"))
        text = _joined(_render(snapshot=_snapshot(processes=procs), view=view))
        assert "└ child" in text


# ── Bottom panels ──────────────────────────────────────────────────────────


class TestNetworkPanel:
    def test_aggregate_and_active_first(self) -> None:
        out = _render()
        texts = _texts(out)
        assert "↓ 1.0 KiB/s" in texts
        rows = [t for t in texts if t.startswith(("eth0", "wlan0"))]
        assert rows[0].startswith("eth0")

    def test_overflow_summary(self) -> None:
        nets = tuple(NetworkInfo(f"eth{i}", 1, 1, 1, 1) for i in range(10))
        out: list = []
        draw_network(Canvas(Rect(0, 0, 50, 5), out), _snapshot(networks=nets), DARK)
        assert "... and 8 more" in _texts(out)


class TestTemperaturePanel:
    def test_hottest_in_title(self) -> None:
        assert "TEMPERATURE (70°C)" in _texts(_render())

    def test_no_sensors(self) -> None:
        texts = _texts(_render(snapshot=_snapshot(temperatures=())))
        assert "TEMPERATURE (No sensors)" in texts


# ── Footer, modes and overlays ─────────────────────────────────────────────


class TestFooterAndModes:
    def test_key_hints(self) -> None:
        assert FOOTER_HINT in _texts(_render(200, 30))

    def test_filter_prompt(self) -> None:
        view = ViewState(filter_text="ssh")
        texts = _texts(_render(view=view, mode=Mode.FILTER_EDITING))
        assert "Filter: " in texts
        assert "ssh_" in texts

    def test_status_replaces_hints(self) -> None:
        texts = _texts(_render(status="Sent SIGTERM to PID 7"))
        assert any(t.startswith("Sent SIGTERM to PID 7") for t in texts)
        assert FOOTER_HINT not in texts

    def test_help_overlay(self) -> None:
        assert "SRMON HELP" in _joined(_render(mode=Mode.HELP_SHOWN))
        assert "SRMON HELP" not in _joined(_render())

    def test_no_snapshot_yet(self) -> None:
        regions = compute_layout(80, 24)
        ctl = ProcessViewController()
        out = render(None, ctl.state, ctl.visible_rows(None, 10), regions, DARK)
        assert "collecting" in _joined(out)


class TestNoColor:
    def test_all_colors_default(self) -> None:
        plain = ColorScheme.for_theme(Theme.DARK, no_color=True)
        out = _render(colors=plain)
        for ins in out:
            if isinstance(ins, SetColor):
                assert ins.fg is Color.DEFAULT and ins.bg is Color.DEFAULT
