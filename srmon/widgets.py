"""Panel widgets: each one turns part of a snapshot into draw instructions.

Widgets never touch the terminal. They write through a ``Canvas`` bound to
their region, which clips every string to the region so nothing a widget
emits can spill into a neighbour.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Union

from srmon.colors import Color, ColorScheme
from srmon.fmt import fit, fmt_bytes, fmt_elapsed, fmt_rate, fmt_uptime, truncate
from srmon.layout import Rect, column_widths
from srmon.model import NetworkInfo, ProcessInfo, Snapshot
from srmon.view import ViewState, VisibleRows

BAR_FILL = "█"
BAR_EMPTY = "░"

FOOTER_HINT = "q:quit ↑↓:navigate s:sort /:filter c:columns r:refresh ?:help K:kill"

HELP_LINES = (
    "SRMON HELP",
    "",
    "Navigation:",
    "  ↑/k, ↓/j         Move up/down in process list",
    "  Page Up/Down     Page up/down in process list",
    "  Home/End         Go to top/bottom of list",
    "",
    "Sorting:",
    "  s                Cycle sort (CPU% → MEM% → PID → NAME)",
    "",
    "Filtering:",
    "  /                Filter by name, command, user or PID",
    "  Esc              Clear current filter",
    "",
    "Display:",
    "  c                Cycle visible columns",
    "  r                Change refresh rate",
    "  t                Toggle tree view",
    "",
    "Process Control:",
    "  K                Send SIGTERM to selected process",
    "  Enter            Show details of selected process",
    "",
    "Other:",
    "  ?                Show/close this help",
    "  q, Ctrl+C        Quit",
)


# ── Draw instructions ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class MoveTo:
    x: int
    y: int


@dataclass(frozen=True)
class SetColor:
    fg: Color
    bg: Color = Color.DEFAULT
    bold: bool = False
    reverse: bool = False


@dataclass(frozen=True)
class Print:
    text: str


Instruction = Union[MoveTo, SetColor, Print]


class Canvas:
    """Region-relative drawing that clips to the region bounds."""

    def __init__(self, region: Rect, out: list[Instruction]) -> None:
        self.region = region
        self.out = out

    @property
    def width(self) -> int:
        return max(0, self.region.width)

    @property
    def height(self) -> int:
        return max(0, self.region.height)

    def text(
        self,
        row: int,
        col: int,
        text: str,
        fg: Color,
        bg: Color = Color.DEFAULT,
        *,
        bold: bool = False,
        reverse: bool = False,
        pad: bool = False,
    ) -> int:
        """Emit ``text`` at (col, row); returns the column after the last cell written."""
        if self.region.is_empty or not 0 <= row < self.height or not 0 <= col < self.width:
            return col
        room = self.width - col
        text = fit(text, room) if pad else truncate(text, room)
        if not text:
            return col
        self.out.append(MoveTo(self.region.x + col, self.region.y + row))
        self.out.append(SetColor(fg, bg, bold, reverse))
        self.out.append(Print(text))
        return col + len(text)


def _bar(
    c: Canvas,
    row: int,
    label: str,
    pct: float,
    color: Color,
    colors: ColorScheme,
    suffix: str | None = None,
) -> None:
    """Render ``label ████░░░░ suffix`` on one line."""
    if suffix is None:
        suffix = f" {pct:5.1f}%"
    col = c.text(row, 0, f"{label:<5s} ", colors.foreground)
    bar_w = c.width - col - len(suffix)
    if bar_w >= 3:
        filled = int(bar_w * min(max(pct, 0.0), 100.0) / 100.0)
        col = c.text(row, col, BAR_FILL * filled, color, bold=True)
        col = c.text(row, col, BAR_EMPTY * (bar_w - filled), colors.gauge_bg)
    c.text(row, col, suffix, color, bold=True)


# ── Top bar ────────────────────────────────────────────────────────────────


def draw_header(c: Canvas, snapshot: Snapshot | None, colors: ColorScheme) -> None:
    if snapshot is None:
        c.text(0, 0, " srmon | collecting…", colors.foreground, bold=True, reverse=True, pad=True)
        return
    s = snapshot.system
    load = "Load: " + (" ".join(f"{v:.2f}" for v in s.load_avg) if s.load_avg else "n/a")
    clock = time.strftime("%H:%M:%S", time.localtime(snapshot.timestamp))
    parts = [s.hostname, f"{s.os_name} {s.os_version}", f"Up: {fmt_uptime(s.uptime)}", load, clock]
    pm = snapshot.platform_metrics
    if pm.processes_running is not None:
        parts.append(f"Run: {pm.processes_running} Blk: {pm.processes_blocked or 0}")
    c.text(0, 0, " " + " | ".join(parts), colors.foreground, bold=True, reverse=True, pad=True)


# ── Gauges ─────────────────────────────────────────────────────────────────


def draw_cpu(c: Canvas, snapshot: Snapshot, colors: ColorScheme) -> None:
    cores = snapshot.cpu_cores
    col = c.text(0, 0, "CPU", colors.accent, bold=True)
    c.text(0, col, f"  {len(cores)} cores", colors.muted)

    total = snapshot.cpu_total
    _bar(c, 1, "Total", total, colors.cpu_color(total), colors)

    col = 0
    for core in cores:
        col = c.text(2, col, f"C{core.id}:{core.usage_percent:3.0f}% ", colors.cpu_color(core.usage_percent))

    extras = []
    freqs = [core.frequency for core in cores if core.frequency > 0]
    if freqs:
        extras.append(f"avg {sum(freqs) / len(freqs):.0f} MHz")
    pm = snapshot.platform_metrics
    if pm.context_switches is not None:
        extras.append(f"ctx {snapshot.rate(pm.context_switches_delta):.0f}/s")
    if extras:
        c.text(3, 0, "  ".join(extras), colors.muted)


def draw_memory(c: Canvas, snapshot: Snapshot, colors: ColorScheme) -> None:
    m = snapshot.memory
    col = c.text(0, 0, "MEMORY", colors.accent, bold=True)
    c.text(0, col, f"  {fmt_bytes(m.used)} / {fmt_bytes(m.total)}", colors.muted)

    _bar(c, 1, "Mem", m.percent, colors.memory_color(m.percent), colors)
    if m.swap_total:
        _bar(c, 2, "Swap", m.swap_percent, colors.memory_color(m.swap_percent), colors)
    else:
        c.text(2, 0, "Swap  n/a", colors.muted)
    c.text(
        3,
        0,
        f"avail {fmt_bytes(m.available)}  cached {fmt_bytes(m.cached)}  buffers {fmt_bytes(m.buffers)}",
        colors.muted,
    )


# ── Process table ──────────────────────────────────────────────────────────


def _cell(column: str, p: ProcessInfo, depth: int, now: float) -> str:
    if column == "PID":
        return str(p.pid)
    if column == "NAME":
        return ("  " * (depth - 1) + "└ " if depth else "") + p.name
    if column == "USER":
        return p.user
    if column == "CPU%":
        return f"{p.cpu_percent:5.1f}"
    if column == "MEM%":
        return f"{p.memory_percent:5.1f}"
    if column == "RSS":
        return fmt_bytes(p.memory_rss)
    if column == "VSZ":
        return fmt_bytes(p.memory_vsz)
    if column == "THR":
        return str(p.threads)
    if column == "STATE":
        return p.state.value
    if column == "TIME":
        return fmt_elapsed(now - p.start_time) if p.start_time else "-"
    return ""


def _cell_color(column: str, p: ProcessInfo, base: Color, colors: ColorScheme) -> Color:
    if column == "CPU%":
        return colors.cpu_color(p.cpu_percent)
    if column == "MEM%":
        return colors.memory_color(p.memory_percent)
    if column == "STATE":
        return colors.state_color(p.state)
    return base


def draw_process_table(
    c: Canvas,
    snapshot: Snapshot,
    rows: VisibleRows,
    view: ViewState,
    colors: ColorScheme,
) -> None:
    columns = view.columns
    widths = column_widths(c.width, columns)
    arrow = "↓" if view.descending else "↑"

    col = 0
    for name, w in zip(columns, widths):
        title = name + arrow if name == view.sort_key.label else name
        c.text(0, col, fit(title, max(0, w - 1)) + " ", colors.table_header, bold=True)
        col += w

    if rows.total > len(rows.rows):
        hint = f" {rows.selected + 1}/{rows.total} "
        c.text(0, max(0, c.width - len(hint)), hint, colors.muted)

    if rows.total == 0:
        msg = f"No processes match '{view.filter_text}'" if view.filter_text else "No processes"
        c.text(1, 0, msg, colors.muted)
        return

    for i, row in enumerate(rows.rows):
        p = row.process
        cells = [
            fit(_cell(name, p, row.depth, snapshot.timestamp), max(0, w - 1)) + " "
            for name, w in zip(columns, widths)
        ]
        if i == rows.selected_offset:
            c.text(i + 1, 0, "".join(cells), colors.table_selected, bold=True, reverse=True, pad=True)
            continue
        base = colors.table_row_alt if (rows.window_start + i) % 2 else colors.foreground
        col = 0
        for name, cell in zip(columns, cells):
            col = c.text(i + 1, col, cell, _cell_color(name, p, base, colors))


# ── Bottom panels ──────────────────────────────────────────────────────────


def _network_order(networks: tuple[NetworkInfo, ...]) -> list[NetworkInfo]:
    return sorted(networks, key=lambda n: (not n.is_active, n.interface_name))


def draw_network(c: Canvas, snapshot: Snapshot, colors: ColorScheme) -> None:
    nets = snapshot.networks
    c.text(0, 0, f"NETWORK ({len(nets)} interfaces)", colors.accent, bold=True)
    if not nets:
        c.text(1, 0, "No active interfaces", colors.muted)
        return

    rx = snapshot.rate(sum(n.rx_bytes_delta for n in nets))
    tx = snapshot.rate(sum(n.tx_bytes_delta for n in nets))
    col = c.text(1, 0, f"↓ {fmt_rate(rx)}", colors.success, bold=True)
    c.text(1, col, f"  ↑ {fmt_rate(tx)}", colors.highlight, bold=True)

    room = c.height - 2
    ordered = _network_order(nets)
    shown = ordered if len(ordered) <= room else ordered[: max(0, room - 1)]
    for i, n in enumerate(shown):
        color = colors.foreground if n.is_active else colors.muted
        text = (
            f"{n.interface_name:<8} ↓ {fmt_rate(snapshot.rate(n.rx_bytes_delta))}"
            f"  ↑ {fmt_rate(snapshot.rate(n.tx_bytes_delta))}"
        )
        c.text(i + 2, 0, text, color)
    if len(shown) < len(ordered) and room > 0:
        c.text(2 + len(shown), 0, f"... and {len(ordered) - len(shown)} more", colors.muted)


def draw_temperature(c: Canvas, snapshot: Snapshot, colors: ColorScheme) -> None:
    temps = sorted(snapshot.temperatures, key=lambda t: t.temperature, reverse=True)
    if not temps:
        c.text(0, 0, "TEMPERATURE (No sensors)", colors.muted, bold=True)
        c.text(2, 0, "No temperature sensors detected", colors.muted)
        return

    hottest = temps[0]
    color = colors.temperature_color(hottest.temperature)
    c.text(0, 0, f"TEMPERATURE ({hottest.temperature:.0f}°C)", color, bold=True)
    _bar(c, 1, hottest.label[:5], hottest.percentage, color, colors, suffix=f" {hottest.temperature:.0f}°C")
    for i, t in enumerate(temps[1:], start=2):
        c.text(i, 0, f"{t.label}: {t.temperature:.0f}°C", colors.temperature_color(t.temperature))


# ── Footer and overlays ────────────────────────────────────────────────────


def draw_footer(
    c: Canvas,
    view: ViewState,
    colors: ColorScheme,
    *,
    editing_filter: bool = False,
    status: str | None = None,
) -> None:
    if editing_filter:
        col = c.text(0, 0, "Filter: ", colors.accent, bold=True)
        col = c.text(0, col, view.filter_text + "_", colors.highlight)
        c.text(0, col, "  (Enter: keep, Esc: clear)", colors.muted)
        return
    if status:
        c.text(0, 0, status, colors.highlight, bold=True, pad=True)
        return
    col = 0
    if view.filter_text:
        col = c.text(0, 0, f"[{view.filter_text}] ", colors.highlight)
    c.text(0, col, FOOTER_HINT, colors.muted)


def draw_help(c: Canvas, colors: ColorScheme) -> None:
    """Centered help popup over the full screen region."""
    pw = min(60, max(0, c.width - 4))
    ph = min(len(HELP_LINES) + 2, max(0, c.height - 4))
    if pw < 4 or ph < 3:
        return
    px = (c.width - pw) // 2
    py = (c.height - ph) // 2

    c.text(py, px, "┌" + "─" * (pw - 2) + "┐", colors.border)
    for r in range(1, ph - 1):
        c.text(py + r, px, "│" + " " * (pw - 2) + "│", colors.border)
    c.text(py + ph - 1, px, "└" + "─" * (pw - 2) + "┘", colors.border)

    inner = pw - 4
    for i, line in enumerate(HELP_LINES[: ph - 2]):
        if i == 0:
            c.text(py + 1, px + 2, fit(line.center(inner), inner), colors.accent, bold=True)
        elif line.endswith(":"):
            c.text(py + 1 + i, px + 2, fit(line, inner), colors.highlight, bold=True)
        else:
            c.text(py + 1 + i, px + 2, fit(line, inner), colors.foreground)
