"""openpyxl adapter: read a raw grid from a worksheet, write results back."""

from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from tabcalc.contracts.common import WorkbookCorruptError
from tabcalc.engine.cells import ERROR_PREFIX, FORMULA_PREFIX, TEXT_PREFIX
from tabcalc.io.fileops import FileLock, atomic_write, backup as make_backup

_INTEGER_DISPLAY_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")


def _open(path: str | Path) -> Workbook:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Workbook not found: {p}")
    try:
        return openpyxl.load_workbook(str(p))
    except Exception as e:
        raise WorkbookCorruptError(f"Cannot open workbook {p}: {e}") from e


def _get_sheet(wb: Workbook, name: str | None) -> Worksheet:
    if name is None:
        return wb.active
    if name not in wb.sheetnames:
        raise KeyError(f"Sheet not found: {name}")
    return wb[name]


def raw_cell_text(value: Any) -> str | None:
    """Map a stored cell value onto the grid's input grammar.

    Excel keeps text and numbers apart, so a plain string is read as a text
    literal unless it already carries one of the grammar's prefixes. Integral
    numbers become integer literals; anything else (fractions, booleans,
    dates) has no counterpart and ends up malformed.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        if value.startswith((FORMULA_PREFIX, TEXT_PREFIX, ERROR_PREFIX)):
            return value
        return TEXT_PREFIX + value
    return str(value)


def load_grid_from_sheet(path: str | Path, sheet: str | None = None) -> list[list[str | None]]:
    """Read the block from A1 to the sheet's last used cell."""
    wb = _open(path)
    try:
        ws = _get_sheet(wb, sheet)
        rows: list[list[str | None]] = []
        for row in ws.iter_rows(
            min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column, values_only=True
        ):
            rows.append([raw_cell_text(v) for v in row])
        return rows
    finally:
        wb.close()


def _excel_value(display: str) -> Any:
    if not display:
        return None
    if _INTEGER_DISPLAY_RE.match(display):
        return int(display)
    return display


def write_grid_to_sheet(
    path: str | Path,
    rows: list[list[str]],
    sheet: str,
    *,
    backup: bool = False,
    lock_timeout: float = 0,
) -> dict[str, Any]:
    """Write display values into ``sheet`` (replacing its contents).

    The whole read-modify-write cycle runs under the sidecar lock and the
    workbook is saved atomically. Returns ``{"sheet", "cells", "backup_path"}``.
    """
    with FileLock(path, timeout=lock_timeout):
        wb = _open(path)
        try:
            backup_path = make_backup(path) if backup else None
            if sheet in wb.sheetnames:
                ws = wb[sheet]
                if ws.max_row:
                    ws.delete_rows(1, ws.max_row)
            else:
                ws = wb.create_sheet(sheet)

            written = 0
            for r, row in enumerate(rows, start=1):
                for c, display in enumerate(row, start=1):
                    value = _excel_value(display)
                    if value is None:
                        continue
                    cell = ws.cell(row=r, column=c, value=value)
                    if isinstance(value, str):
                        # Displayed text like "=x" must not turn into a formula.
                        cell.data_type = "s"
                    written += 1

            buf = BytesIO()
            wb.save(buf)
            atomic_write(path, buf.getvalue())
        finally:
            wb.close()
    return {"sheet": sheet, "cells": written, "backup_path": backup_path}
