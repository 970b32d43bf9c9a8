"""Tests for srmon.fmt."""

from __future__ import annotations

import pytest

from srmon.fmt import fit, fmt_bytes, fmt_elapsed, fmt_rate, fmt_uptime, truncate

# ── fmt_bytes ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0 B"),
        (512, "512 B"),
        (1023, "1023 B"),
        (1024, "1.0 KiB"),
        (1536, "1.5 KiB"),
        (1024 * 1024, "1.0 MiB"),
        (2.5 * 1024**2, "2.5 MiB"),
        (1024**3, "1.0 GiB"),
        (1024**4, "1.0 TiB"),
    ],
)
def test_fmt_bytes(value: int | float, expected: str) -> None:
    assert fmt_bytes(value) == expected


def test_fmt_bytes_nan() -> None:
    assert fmt_bytes(float("nan")) == "? B"


# ── fmt_rate ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("bps", "expected"),
    [
        (0, "0 B/s"),
        (500, "500 B/s"),
        (1024, "1.0 KiB/s"),
        (1024 * 1024, "1.0 MiB/s"),
    ],
)
def test_fmt_rate(bps: float, expected: str) -> None:
    assert fmt_rate(bps) == expected


# ── Durations ──────────────────────────────────────────────────────────────


def test_fmt_uptime() -> None:
    assert fmt_uptime(0) == "0d 0h 0m"
    assert fmt_uptime(2 * 86400 + 3 * 3600 + 4 * 60 + 59) == "2d 3h 4m"


def test_fmt_elapsed() -> None:
    assert fmt_elapsed(65) == "01:05"
    assert fmt_elapsed(3600 + 62) == "1:01:02"
    assert fmt_elapsed(-5) == "00:00"


# ── truncate / fit ─────────────────────────────────────────────────────────


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("abc", 5) == "abc"

    def test_exact_fit_unchanged(self) -> None:
        assert truncate("abcde", 5) == "abcde"

    def test_long_text_gets_ellipsis(self) -> None:
        assert truncate("abcdefgh", 5) == "abcd…"

    def test_zero_width(self) -> None:
        assert truncate("abc", 0) == ""

    def test_width_one(self) -> None:
        assert truncate("abc", 1) == "…"

    def test_fit_pads(self) -> None:
        assert fit("ab", 4) == "ab  "
        assert fit("abcdef", 4) == "abc…"
