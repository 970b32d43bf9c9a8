"""Render coordinator: a pure mapping from state to draw instructions.

``render`` reads the snapshot, the view and the regions and returns a flat
list of ``MoveTo`` / ``SetColor`` / ``Print`` instructions. It performs no
I/O, so the whole screen can be asserted on in tests.
"""

from __future__ import annotations

from srmon.colors import ColorScheme
from srmon.events import Mode
from srmon.layout import Regions
from srmon.model import Snapshot
from srmon.view import ViewState, VisibleRows
from srmon.widgets import (
    Canvas,
    Instruction,
    MoveTo,
    Print,
    SetColor,
    draw_cpu,
    draw_footer,
    draw_header,
    draw_help,
    draw_memory,
    draw_network,
    draw_process_table,
    draw_temperature,
)

__all__ = ["Instruction", "MoveTo", "Print", "SetColor", "render"]


def render(
    snapshot: Snapshot | None,
    view: ViewState,
    rows: VisibleRows,
    regions: Regions,
    colors: ColorScheme,
    *,
    mode: Mode = Mode.RUNNING,
    status: str | None = None,
) -> list[Instruction]:
    out: list[Instruction] = []

    def canvas(region) -> Canvas:
        return Canvas(region, out)

    draw_header(canvas(regions.header), snapshot, colors)
    if snapshot is not None:
        panels = (
            (regions.cpu, lambda c: draw_cpu(c, snapshot, colors)),
            (regions.memory, lambda c: draw_memory(c, snapshot, colors)),
            (regions.table, lambda c: draw_process_table(c, snapshot, rows, view, colors)),
            (regions.network, lambda c: draw_network(c, snapshot, colors)),
            (regions.temperature, lambda c: draw_temperature(c, snapshot, colors)),
        )
        for region, draw in panels:
            if not region.is_empty:
                draw(canvas(region))

    if not regions.footer.is_empty:
        draw_footer(
            canvas(regions.footer),
            view,
            colors,
            editing_filter=mode is Mode.FILTER_EDITING,
            status=status,
        )
    if mode is Mode.HELP_SHOWN:
        draw_help(canvas(regions.screen), colors)
    return out
