"""Screen layout: named regions for each panel and process table columns.

All arithmetic saturates at zero so a tiny terminal collapses regions to an
empty area instead of producing negative sizes.
"""

from __future__ import annotations

from dataclasses import dataclass

GAUGES_HEIGHT = 4
MIN_BOTTOM_HEIGHT = 4

PREFERRED_WIDTHS: dict[str, int] = {
    "PID": 8,
    "USER": 12,
    "CPU%": 6,
    "MEM%": 6,
    "RSS": 8,
    "VSZ": 8,
    "THR": 4,
    "STATE": 6,
    "TIME": 8,
    "NAME": 20,
}
DEFAULT_WIDTH = 10


def _sub(a: int, b: int) -> int:
    return max(0, a - b)


@dataclass(frozen=True)
class Rect:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def inner(self, margin: int) -> Rect:
        return Rect(
            self.x + margin,
            self.y + margin,
            _sub(self.width, margin * 2),
            _sub(self.height, margin * 2),
        )

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom


@dataclass(frozen=True)
class Regions:
    screen: Rect
    header: Rect
    gauges: Rect
    cpu: Rect
    memory: Rect
    table: Rect
    network: Rect
    temperature: Rect
    footer: Rect

    @property
    def table_viewport(self) -> int:
        """Rows available for processes (the table header takes one)."""
        return _sub(self.table.height, 1)


def compute_layout(width: int, height: int) -> Regions:
    width = max(0, width)
    height = max(0, height)
    screen = Rect(0, 0, width, height)

    header = Rect(0, 0, width, min(1, height))
    gauges = Rect(0, header.bottom, width, min(GAUGES_HEIGHT, _sub(height, 2)))
    footer = Rect(0, _sub(height, 1), width, 1 if height >= 2 else 0)

    # Network/temperature band along the bottom, a third of what is left
    available = _sub(footer.y, gauges.bottom)
    bottom_height = max(available // 3, MIN_BOTTOM_HEIGHT)
    # Short terminals: the band gives way rather than overlap the gauges
    bottom_y = max(gauges.bottom, _sub(footer.y, bottom_height))
    bottom_height = _sub(footer.y, bottom_y)
    half = width // 2
    network = Rect(0, bottom_y, half, bottom_height)
    temperature = Rect(half, bottom_y, width - half, bottom_height)

    table = Rect(0, gauges.bottom, width, _sub(bottom_y, gauges.bottom))

    gauge_half = gauges.width // 2
    cpu = Rect(gauges.x, gauges.y, gauge_half, gauges.height)
    memory = Rect(gauges.x + gauge_half, gauges.y, gauges.width - gauge_half, gauges.height)

    return Regions(
        screen=screen,
        header=header,
        gauges=gauges,
        cpu=cpu,
        memory=memory,
        table=table,
        network=network,
        temperature=temperature,
        footer=footer,
    )


class LayoutEngine:
    """Caches the regions for the current terminal size."""

    def __init__(self) -> None:
        self._size: tuple[int, int] | None = None
        self._regions: Regions | None = None

    def regions(self, width: int, height: int) -> Regions:
        if self._regions is None or self._size != (width, height):
            self._size = (width, height)
            self._regions = compute_layout(width, height)
        return self._regions


def column_widths(width: int, columns: tuple[str, ...] | list[str]) -> list[int]:
    """Cell width for each table column.

    When the preferred widths fit, NAME takes all the slack. Otherwise every
    column is scaled down proportionally (never below 1) and the widest are
    trimmed until the total fits.
    """
    if not columns or width <= 0:
        return []
    preferred = [PREFERRED_WIDTHS.get(c, DEFAULT_WIDTH) for c in columns]
    total = sum(preferred)

    if total <= width:
        widths = list(preferred)
        if "NAME" in columns:
            i = list(columns).index("NAME")
            widths[i] = width - (total - preferred[i])
        return widths

    widths = [max(1, w * width // total) for w in preferred]
    while sum(widths) > width and max(widths) > 1:
        widths[widths.index(max(widths))] -= 1
    return widths
