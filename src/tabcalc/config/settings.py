"""Settings — load and check tabcalc.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from tabcalc.contracts.common import ConfigError
from tabcalc.engine.grid import MAX_COLS
from tabcalc.io.fileops import read_text_safe

CONFIG_FILENAME = "tabcalc.yaml"

DEFAULTS: dict[str, Any] = {
    "separator": "\t",
    "trailing_separator": True,
    "max_rows": 1000,
    "max_cols": MAX_COLS,
    "events": False,
}


class Settings:
    """Represents a loaded configuration."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        data = data or {}
        unknown = sorted(set(data) - set(DEFAULTS))
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")
        merged = {**DEFAULTS, **data}

        self.separator: str = merged["separator"]
        self.trailing_separator: bool = merged["trailing_separator"]
        self.max_rows: int = merged["max_rows"]
        self.max_cols: int = merged["max_cols"]
        self.events: bool = merged["events"]

        if not isinstance(self.separator, str) or not self.separator:
            raise ConfigError("separator must be a non-empty string")
        for key in ("trailing_separator", "events"):
            if not isinstance(merged[key], bool):
                raise ConfigError(f"{key} must be true or false")
        for key in ("max_rows", "max_cols"):
            value = merged[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"{key} must be a non-negative integer")
        if self.max_cols == 0 or self.max_cols > MAX_COLS:
            raise ConfigError(f"max_cols must be between 1 and {MAX_COLS}")

    @classmethod
    def load(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        try:
            data = yaml.safe_load(read_text_safe(path)) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
        return cls(data)

    @classmethod
    def load_from_dir(cls, directory: str | Path) -> "Settings | None":
        """Try to load tabcalc.yaml from a directory. Returns None if not found."""
        path = Path(directory) / CONFIG_FILENAME
        if path.exists():
            return cls.load(path)
        return None

    def check_size(self, rows: list[list[Any]]) -> list[str]:
        """Return violations of the configured size limits."""
        violations: list[str] = []
        height = len(rows)
        width = max((len(r) for r in rows), default=0)
        if self.max_rows and height > self.max_rows:
            violations.append(f"Grid has {height} rows, exceeding max_rows of {self.max_rows}")
        if width > self.max_cols:
            violations.append(f"Grid has {width} columns, exceeding max_cols of {self.max_cols}")
        return violations
