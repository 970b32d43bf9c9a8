"""Text formatting helpers for the widgets."""

from __future__ import annotations

import math

ELLIPSIS = "…"


def fmt_bytes(n: int | float) -> str:
    """Human-readable byte count (binary prefixes)."""
    v = float(n)
    if not math.isfinite(v):
        return "? B"
    if abs(v) < 1024:
        return f"{int(v)} B"
    for unit in ("KiB", "MiB", "GiB"):
        v /= 1024
        if abs(v) < 1024:
            return f"{v:.1f} {unit}"
    return f"{v / 1024:.1f} TiB"


def fmt_rate(bps: float) -> str:
    """Human-readable transfer rate."""
    return f"{fmt_bytes(bps)}/s"


def fmt_uptime(seconds: float) -> str:
    s = int(max(0.0, seconds))
    return f"{s // 86400}d {s % 86400 // 3600}h {s % 3600 // 60}m"


def fmt_elapsed(seconds: float) -> str:
    """Process run time as ``MM:SS``, or ``H:MM:SS`` past an hour."""
    s = int(max(0.0, seconds))
    if s < 3600:
        return f"{s // 60:02d}:{s % 60:02d}"
    return f"{s // 3600}:{s % 3600 // 60:02d}:{s % 60:02d}"


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` cells, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[: width - 1] + ELLIPSIS


def fit(text: str, width: int) -> str:
    """Truncate, then pad with spaces to exactly ``width`` cells."""
    return truncate(text, width).ljust(max(0, width))
