"""Grid: a fixed-size, row-major collection of cells."""

from __future__ import annotations

import re
from typing import Iterator

from openpyxl.utils import column_index_from_string, get_column_letter

from tabcalc.contracts.common import GridShapeError
from tabcalc.engine.cells import CellContent, classify

# References are a single column letter.
MAX_COLS = 26

_ADDRESS_RE = re.compile(r"^([A-Za-z])([0-9]+)$")


def format_address(row: int, col: int) -> str:
    """Zero-based (row, col) to ``B3`` notation."""
    return f"{get_column_letter(col + 1)}{row + 1}"


def parse_address(ref: str) -> tuple[int, int]:
    """``B3`` notation to zero-based (row, col). Row 0 maps to -1."""
    m = _ADDRESS_RE.match(ref.strip())
    if not m:
        raise ValueError(f"Invalid cell address: {ref}")
    return int(m.group(2)) - 1, column_index_from_string(m.group(1).upper()) - 1


class Cell:
    """A grid slot. Its content changes over an evaluation; the slot does not."""

    __slots__ = ("row", "col", "raw", "content")

    def __init__(self, row: int, col: int, raw: str | None) -> None:
        self.row = row
        self.col = col
        self.raw = raw
        self.content: CellContent = classify(raw)

    @property
    def address(self) -> str:
        return format_address(self.row, self.col)

    def __repr__(self) -> str:
        return f"Cell({self.address}, {self.content!r})"


class Grid:
    """Rectangular grid of cells, classified on construction."""

    def __init__(self, cells: list[list[Cell]]) -> None:
        self._cells = cells
        self.rows = len(cells)
        self.cols = len(cells[0]) if cells else 0

    @classmethod
    def from_rows(cls, rows: list[list[str | None]]) -> "Grid":
        if not rows or not rows[0]:
            raise GridShapeError("Grid must have at least one row and one column")
        width = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != width:
                raise GridShapeError(
                    f"Row {i + 1} has {len(row)} cells, expected {width}"
                )
        if width > MAX_COLS:
            raise GridShapeError(f"Grid has {width} columns; at most {MAX_COLS} are addressable")
        return cls([
            [Cell(r, c, raw) for c, raw in enumerate(row)]
            for r, row in enumerate(rows)
        ])

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell(self, row: int, col: int) -> Cell:
        if not self.contains(row, col):
            raise IndexError(f"Cell ({row}, {col}) is outside a {self.rows}x{self.cols} grid")
        return self._cells[row][col]

    def __iter__(self) -> Iterator[Cell]:
        """Row-major iteration."""
        for row in self._cells:
            yield from row

    def display_rows(self) -> list[list[str]]:
        return [[cell.content.display() for cell in row] for row in self._cells]
