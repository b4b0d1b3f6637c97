"""Reading raw grids from arguments and text files, rendering results."""

from __future__ import annotations

import re
from pathlib import Path

from tabcalc.contracts.common import GridShapeError
from tabcalc.io.fileops import atomic_write, read_text_safe

_NEWLINE_RE = re.compile(r"\r?\n")


def grid_from_args(args: list[str]) -> list[list[str]]:
    """Build raw rows from ``ROWS COLS CELL...`` arguments.

    A shell-quoted multi-line argument carries the last cell of one row and
    the first cell of the next, so every argument is split on newlines first.
    """
    values = [part for arg in args for part in _NEWLINE_RE.split(arg)]
    if len(values) < 2:
        raise GridShapeError("Expected ROWS and COLS followed by the cells")
    try:
        rows, cols = int(values[0]), int(values[1])
    except ValueError as e:
        raise GridShapeError(f"ROWS and COLS must be integers: {values[0]!r} {values[1]!r}") from e
    if rows < 1 or cols < 1:
        raise GridShapeError(f"Grid size must be positive, got {rows}x{cols}")

    cells = values[2:]
    expected = rows * cols
    if len(cells) != expected:
        raise GridShapeError(f"A {rows}x{cols} grid needs {expected} cells, got {len(cells)}")
    return [cells[r * cols:(r + 1) * cols] for r in range(rows)]


def parse_tsv(text: str) -> list[list[str]]:
    """Parse tab-separated rows. Short rows are padded with empty cells.

    A trailing tab is an empty last cell, so rendered output read back in
    gains one empty column.
    """
    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise GridShapeError("Input contains no rows")

    rows = [line.split("\t") for line in lines]
    width = max(len(row) for row in rows)
    return [row + [""] * (width - len(row)) for row in rows]


def read_grid_file(path: str | Path) -> list[list[str]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Grid file not found: {path}")
    return parse_tsv(read_text_safe(path))


def render_rows(rows: list[list[str]], *, separator: str = "\t", trailing: bool = True) -> str:
    """Render display values, one line per row."""
    tail = separator if trailing else ""
    return "".join(separator.join(row) + tail + "\n" for row in rows)


def write_grid_file(path: str | Path, rows: list[list[str]], **render_opts) -> str:
    atomic_write(path, render_rows(rows, **render_opts).encode("utf-8"))
    return str(path)
