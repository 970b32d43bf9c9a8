"""Semantic colour palette, resolved once from the theme and no-colour flag."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from srmon.model import ProcessState, TemperatureStatus, Theme


class Color(Enum):
    """Terminal colours; the sink maps them onto curses colour numbers."""

    DEFAULT = "default"
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    MAGENTA = "magenta"
    CYAN = "cyan"
    WHITE = "white"


@dataclass(frozen=True)
class ColorScheme:
    background: Color
    foreground: Color
    accent: Color
    border: Color
    highlight: Color
    warning: Color
    error: Color
    success: Color
    muted: Color
    gauge_bg: Color
    gauge_fill: Color
    table_header: Color
    table_row_alt: Color
    table_selected: Color

    @classmethod
    def for_theme(cls, theme: Theme, no_color: bool = False) -> ColorScheme:
        if no_color:
            return cls.plain()
        return DARK if theme is Theme.DARK else LIGHT

    @classmethod
    def plain(cls) -> ColorScheme:
        return cls(*([Color.DEFAULT] * len(cls.__dataclass_fields__)))

    # ── Value -> colour rules ──────────────────────────────────────────────

    def cpu_color(self, usage: float) -> Color:
        if usage > 90.0:
            return self.error
        if usage > 70.0:
            return self.warning
        return self.success

    def memory_color(self, usage: float) -> Color:
        if usage > 90.0:
            return self.error
        if usage > 80.0:
            return self.warning
        return self.success

    def state_color(self, state: ProcessState) -> Color:
        if state is ProcessState.RUNNING:
            return self.success
        if state in (ProcessState.WAITING, ProcessState.PAGING):
            return self.warning
        if state in (ProcessState.ZOMBIE, ProcessState.STOPPED, ProcessState.DEAD):
            return self.error
        return self.muted

    def temperature_color(self, celsius: float) -> Color:
        if celsius >= 80.0:
            return self.error
        if celsius >= 65.0:
            return self.warning
        if celsius >= 45.0:
            return self.accent
        return self.success

    def temperature_status_color(self, status: TemperatureStatus) -> Color:
        return {
            TemperatureStatus.CRITICAL: self.error,
            TemperatureStatus.WARNING: self.warning,
            TemperatureStatus.WARM: self.accent,
            TemperatureStatus.COOL: self.success,
        }[status]


# Backgrounds stay DEFAULT so the terminal's own background shows through.
DARK = ColorScheme(
    background=Color.DEFAULT,
    foreground=Color.WHITE,
    accent=Color.CYAN,
    border=Color.BLUE,
    highlight=Color.YELLOW,
    warning=Color.YELLOW,
    error=Color.RED,
    success=Color.GREEN,
    muted=Color.BLUE,
    gauge_bg=Color.BLUE,
    gauge_fill=Color.CYAN,
    table_header=Color.CYAN,
    table_row_alt=Color.WHITE,
    table_selected=Color.YELLOW,
)

LIGHT = ColorScheme(
    background=Color.DEFAULT,
    foreground=Color.BLACK,
    accent=Color.BLUE,
    border=Color.BLACK,
    highlight=Color.BLUE,
    warning=Color.YELLOW,
    error=Color.RED,
    success=Color.GREEN,
    muted=Color.MAGENTA,
    gauge_bg=Color.BLACK,
    gauge_fill=Color.BLUE,
    table_header=Color.BLUE,
    table_row_alt=Color.BLACK,
    table_selected=Color.BLUE,
)
