"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook

REFERENCE_ROWS = [
    ["12", "=C2", "3", "'Sample"],
    ["=A1+B1*C1/5", "=A2*B1", "=B3-C3", "'Spread"],
    ["'Test", "=4-3", "5", "'Sheet"],
]

REFERENCE_RESULT = [
    ["12", "-4", "3", "Sample"],
    ["4", "-16", "-4", "Spread"],
    ["Test", "1", "5", "Sheet"],
]


@pytest.fixture()
def reference_rows() -> list[list[str]]:
    return [list(row) for row in REFERENCE_ROWS]


@pytest.fixture()
def grid_file(tmp_path: Path) -> Path:
    """The reference grid as a tab-separated text file."""
    path = tmp_path / "grid.tsv"
    path.write_text("\n".join("\t".join(row) for row in REFERENCE_ROWS) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def loop_grid_file(tmp_path: Path) -> Path:
    path = tmp_path / "loop.tsv"
    rows = [
        ["12", "=C2", "=A2*7"],
        ["=A1+B1*C1/5", "=A2*B1", "=B3-C3"],
        ["'Test", "=4-3", "5"],
    ]
    path.write_text("\n".join("\t".join(row) for row in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def grid_workbook(tmp_path: Path) -> Path:
    """A workbook whose Input sheet holds the reference grid as Excel would store it."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Input"
    ws.append([12, "=C2", 3, "Sample"])
    ws.append(["=A1+B1*C1/5", "=A2*B1", "=B3-C3", "Spread"])
    ws.append(["Test", "=4-3", 5, "Sheet"])

    notes = wb.create_sheet("Notes")
    notes["A1"] = "not a grid"

    path = tmp_path / "grid.xlsx"
    wb.save(str(path))
    wb.close()
    return path


@pytest.fixture()
def reference_result() -> list[list[str]]:
    return [list(row) for row in REFERENCE_RESULT]
