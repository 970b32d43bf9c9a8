"""Configuration loading for srmon.

Settings are layered: built-in defaults, then the first JSON file found in
the default locations, then an explicit --json-config file, then CLI flags.
A file layer only overrides the fields it sets to a non-default value;
``process_columns`` is merged field by field.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from srmon.errors import ConfigError
from srmon.model import COLUMN_KEYS, SortKey, Theme, columns_from_flags

logger = logging.getLogger(__name__)

MIN_REFRESH_MS = 50
MAX_REFRESH_MS = 10000

DEFAULT_COLUMNS: dict[str, bool] = {
    "pid": True,
    "name": True,
    "user": True,
    "cpu_percent": True,
    "memory_percent": True,
    "memory_rss": True,
    "memory_vsz": False,
    "threads": False,
    "state": True,
    "start_time": False,
}

DEFAULT_CONFIG: dict[str, Any] = {
    "refresh_ms": 2000,
    "theme": "dark",
    "no_color": False,
    "initial_sort": "cpu",
    "process_columns": DEFAULT_COLUMNS,
    "tree_view": False,
    "use_procfs": sys.platform.startswith("linux"),
}


def default_config_paths() -> list[Path]:
    home = Path.home()
    return [
        home / ".config" / "srmon" / "config.json",
        home / ".srmon.json",
        Path("srmon.json"),
    ]


@dataclass(frozen=True)
class CliOverrides:
    """Values given on the command line; None means the flag was not passed."""

    refresh_ms: int | None = None
    theme: str | None = None
    no_color: bool | None = None


@dataclass(frozen=True)
class Config:
    refresh_ms: int = 2000
    theme: Theme = Theme.DARK
    no_color: bool = False
    initial_sort: SortKey = SortKey.CPU
    process_columns: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_COLUMNS))
    tree_view: bool = False
    use_procfs: bool = True

    @property
    def columns(self) -> tuple[str, ...]:
        return columns_from_flags(self.process_columns)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Config:
        return cls(
            refresh_ms=raw["refresh_ms"],
            theme=Theme(raw["theme"]),
            no_color=raw["no_color"],
            initial_sort=SortKey(raw["initial_sort"]),
            process_columns=dict(raw["process_columns"]),
            tree_view=raw["tree_view"],
            use_procfs=raw["use_procfs"],
        )


# ── Validation ─────────────────────────────────────────────────────────────


def _check_type(key: str, value: Any, expected: type) -> None:
    # bool is an int subclass; do not let true/false pass as a number
    if expected is int and isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if not isinstance(value, expected):
        raise ConfigError(f"{key} must be {expected.__name__}, got {type(value).__name__}")


def validate_layer(layer: dict[str, Any], source: str) -> dict[str, Any]:
    """Check types and enum values of one file layer; unknown keys are dropped."""
    if not isinstance(layer, dict):
        raise ConfigError(f"{source}: top level must be a JSON object")
    clean: dict[str, Any] = {}
    for key, value in layer.items():
        if key not in DEFAULT_CONFIG:
            logger.warning("%s: ignoring unknown config key %r", source, key)
            continue
        if key == "process_columns":
            _check_type(key, value, dict)
            cols = {}
            for col, flag in value.items():
                if col not in COLUMN_KEYS:
                    logger.warning("%s: ignoring unknown column %r", source, col)
                    continue
                _check_type(f"process_columns.{col}", flag, bool)
                cols[col] = flag
            value = cols
        elif key == "refresh_ms":
            _check_type(key, value, int)
        elif key == "theme":
            _check_type(key, value, str)
            if value not in {t.value for t in Theme}:
                raise ConfigError(f"{source}: theme must be 'dark' or 'light', got {value!r}")
        elif key == "initial_sort":
            _check_type(key, value, str)
            if value not in {k.value for k in SortKey}:
                raise ConfigError(f"{source}: unknown initial_sort {value!r}")
        else:
            _check_type(key, value, bool)
        clean[key] = value
    return clean


def validate(config: dict[str, Any]) -> None:
    refresh = config["refresh_ms"]
    if not MIN_REFRESH_MS <= refresh <= MAX_REFRESH_MS:
        raise ConfigError(
            f"refresh interval must be between {MIN_REFRESH_MS} and {MAX_REFRESH_MS} ms, got {refresh}"
        )


# ── Layering ───────────────────────────────────────────────────────────────


def merge_layer(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``layer`` on ``base``, skipping values equal to the built-in default."""
    merged = dict(base)
    for key, value in layer.items():
        if key == "process_columns":
            cols = dict(merged[key])
            for col, flag in value.items():
                if flag != DEFAULT_COLUMNS[col]:
                    cols[col] = flag
            merged[key] = cols
        elif value != DEFAULT_CONFIG[key]:
            merged[key] = value
    return merged


def load_file(path: Path) -> dict[str, Any]:
    """Read and validate one JSON config file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e
    return validate_layer(raw, str(path))


def apply_cli_overrides(config: dict[str, Any], cli: CliOverrides) -> dict[str, Any]:
    merged = dict(config)
    if cli.refresh_ms is not None:
        merged["refresh_ms"] = cli.refresh_ms
    if cli.theme is not None:
        merged["theme"] = cli.theme
    if cli.no_color:
        merged["no_color"] = True
    return merged


def load_config(
    json_path: Path | None = None,
    cli: CliOverrides | None = None,
    search_paths: list[Path] | None = None,
) -> Config:
    """Build the effective configuration.

    Args:
        json_path: Explicit config file (from --json-config). It must exist
            and parse.
        cli: Command-line overrides, applied last.
        search_paths: Default locations to probe; the first existing file
            that loads is used. Defaults to ``default_config_paths()``.

    Raises:
        ConfigError: If the explicit file is missing or malformed, or the
            final values fail validation.
    """
    merged: dict[str, Any] = {**DEFAULT_CONFIG, "process_columns": dict(DEFAULT_COLUMNS)}

    for candidate in default_config_paths() if search_paths is None else search_paths:
        if not candidate.is_file():
            continue
        try:
            merged = merge_layer(merged, load_file(candidate))
            logger.info("loaded config from %s", candidate)
            break
        except ConfigError as e:
            print(f"srmon: warning: ignoring {candidate}: {e}", file=sys.stderr)
            logger.warning("ignoring %s: %s", candidate, e)

    if json_path is not None:
        if not json_path.is_file():
            raise ConfigError(f"config file not found: {json_path}")
        merged = merge_layer(merged, load_file(json_path))

    if cli is not None:
        merged = apply_cli_overrides(merged, cli)
    validate(merged)
    return Config.from_dict(merged)


def dump_default_config() -> str:
    """Return the default configuration as a JSON string."""
    return json.dumps(DEFAULT_CONFIG, indent=2) + "\n"
