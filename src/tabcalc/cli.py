"""Typer CLI application for evaluating formula grids."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import portalocker
import typer

import tabcalc
from tabcalc.config.settings import Settings
from tabcalc.contracts.common import (
    ConfigError,
    GridShapeError,
    Target,
    WorkbookCorruptError,
)
from tabcalc.contracts.responses import CellInfo, EvaluationResult, InspectResult
from tabcalc.engine.cells import ErrorValue, Formula
from tabcalc.engine.dispatcher import (
    cell_warnings,
    error_envelope,
    exit_code_for,
    print_response,
    success_envelope,
)
from tabcalc.engine.evaluator import Evaluator
from tabcalc.engine.grid import Grid
from tabcalc.engine.references import references_in
from tabcalc.io.gridio import grid_from_args, read_grid_file, render_rows, write_grid_file
from tabcalc.observe.events import EventEmitter, Timer, TraceRecorder

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

_MAIN_HELP = """\
Batch evaluator for small spreadsheet grids of numbers, text and formulas.

**Cell grammar:** `12` integer, `'Text` text, `=A1+B1*C1/5` formula, blank = empty.

Formulas are evaluated **strictly left to right** (no precedence, no parentheses)
with integer division truncating toward zero. References are one letter plus one
digit (`A1`..`Z9`).

**Error cells** (reported as data, never as command failures):
- `#The cell data is in incorrect format`
- `#Referenced cell doesn't exist`
- `#Referenced cell cannot be part of expression`
- `#The cell contains loop reference`
- `#Division by zero`
- `#Number out of range` (values are signed 32-bit integers)

**Exit codes:** 0=success, 10=validation, 40=conflict (lock held), 50=io, 90=internal
"""

_CALC_EPILOG = """\
**Examples:**

`tabcalc calc 2 2 3 =A1*2 "'Total" =B1-A1`

`tabcalc calc --json 1 2 12 =A1/5`

Arguments containing newlines are split into separate cells, so a pasted
multi-line grid works as well.
"""

_EVAL_EPILOG = """\
**Examples:**

`tabcalc eval -f grid.tsv`  — tab-separated rows, JSON result

`tabcalc eval -f grid.tsv --out result.tsv`  — also write the rendered grid

`tabcalc eval -f book.xlsx --sheet Input --write-sheet Results --backup`
"""


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(tabcalc.__version__)
        raise typer.Exit()


app = typer.Typer(
    name="tabcalc",
    help=_MAIN_HELP,
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


@app.callback(invoke_without_command=True)
def main(
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Print version and exit.", is_eager=True)
    ] = False,
) -> None:
    if version:
        _version_callback(True)


FilePath = Annotated[str, typer.Option("--file", "-f", help="Grid file: .tsv/.txt (tab-separated) or .xlsx/.xlsm")]
SheetOpt = Annotated[Optional[str], typer.Option("--sheet", "-s", help="Worksheet to read (workbooks only; default: active sheet)")]
ConfigOpt = Annotated[Optional[str], typer.Option("--config", help="Path to tabcalc.yaml (default: ./tabcalc.yaml if present)")]
EventsFlag = Annotated[bool, typer.Option("--events", help="Emit NDJSON lifecycle events to stderr")]

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _emit(envelope, code=None):
    print_response(envelope)
    raise typer.Exit(code if code is not None else exit_code_for(envelope))


def _load_settings_or_emit(config: str | None, cmd: str) -> Settings:
    try:
        if config:
            if not Path(config).exists():
                _emit(error_envelope(cmd, "ERR_CONFIG_NOT_FOUND", f"Config not found: {config}"))
            return Settings.load(config)
        return Settings.load_from_dir(Path.cwd()) or Settings()
    except ConfigError as e:
        _emit(error_envelope(cmd, "ERR_CONFIG_INVALID", str(e)))


def _is_workbook(file: str) -> bool:
    return Path(file).suffix.lower() in WORKBOOK_SUFFIXES


def _read_rows_or_emit(file: str, sheet: str | None, cmd: str) -> list[list[str | None]]:
    """Read raw rows from a text grid or a worksheet, or emit an error envelope."""
    target = Target(file=file, sheet=sheet)
    try:
        if _is_workbook(file):
            from tabcalc.adapters.openpyxl_engine import load_grid_from_sheet
            return load_grid_from_sheet(file, sheet)
        if sheet:
            _emit(error_envelope(cmd, "ERR_USAGE", "--sheet only applies to workbook files", target=target))
        return read_grid_file(file)
    except FileNotFoundError:
        _emit(error_envelope(cmd, "ERR_FILE_NOT_FOUND", f"File not found: {file}", target=target))
    except WorkbookCorruptError as e:
        _emit(error_envelope(cmd, "ERR_WORKBOOK_CORRUPT", str(e), target=target))
    except KeyError as e:
        _emit(error_envelope(cmd, "ERR_SHEET_NOT_FOUND", str(e.args[0]), target=target))
    except GridShapeError as e:
        _emit(error_envelope(cmd, "ERR_GRID_INVALID", str(e), target=target))
    except (OSError, UnicodeDecodeError) as e:
        _emit(error_envelope(cmd, "ERR_IO", f"Cannot read {file}: {e}", target=target))


def _build_grid_or_emit(
    rows: list[list[str | None]], settings: Settings, cmd: str, target: Target
) -> Grid:
    violations = settings.check_size(rows)
    if violations:
        _emit(error_envelope(
            cmd, "ERR_GRID_LIMIT", violations[0],
            target=target, details={"violations": violations},
        ))
    try:
        return Grid.from_rows(rows)
    except GridShapeError as e:
        _emit(error_envelope(cmd, "ERR_GRID_INVALID", str(e), target=target))


def _evaluate(
    grid: Grid, settings: Settings, *, events: bool, trace_path: str | None
) -> tuple[EvaluationResult, TraceRecorder | None]:
    emitter = EventEmitter(enabled=events or settings.events)
    trace = TraceRecorder(emitter) if (emitter.enabled or trace_path) else None
    emitter.emit("eval.start", {"rows": grid.rows, "cols": grid.cols})
    summary = Evaluator(grid, trace=trace).calculate()
    result = EvaluationResult(
        rows=grid.rows,
        cols=grid.cols,
        values=grid.display_rows(),
        summary=summary,
    )
    return result, trace


# ---------------------------------------------------------------------------
# tabcalc version
# ---------------------------------------------------------------------------
@app.command()
def version():
    """Print the tabcalc version.

    Example: `tabcalc version`
    """
    env = success_envelope("version", {"version": tabcalc.__version__})
    _emit(env)


# ---------------------------------------------------------------------------
# tabcalc calc
# ---------------------------------------------------------------------------
@app.command(
    "calc",
    epilog=_CALC_EPILOG,
    context_settings={"ignore_unknown_options": True},
)
def calc_cmd(
    args: Annotated[list[str], typer.Argument(help="ROWS COLS followed by ROWS*COLS cells, row by row")],
    json_out: Annotated[bool, typer.Option("--json", help="Print a JSON envelope instead of tab-separated rows")] = False,
    config: ConfigOpt = None,
    events: EventsFlag = False,
):
    """Evaluate a grid given on the command line and print it.

    The first two arguments are the row and column counts; the cells follow
    row by row. Output is one line per row with every value followed by the
    configured separator (a tab by default).
    """
    settings = _load_settings_or_emit(config, "calc")
    try:
        rows = grid_from_args(args)
    except GridShapeError as e:
        _emit(error_envelope("calc", "ERR_GRID_INVALID", str(e)))
        return

    with Timer() as t:
        grid = _build_grid_or_emit(rows, settings, "calc", Target())
        result, _ = _evaluate(grid, settings, events=events, trace_path=None)

    if not json_out:
        typer.echo(
            render_rows(result.values, separator=settings.separator, trailing=settings.trailing_separator),
            nl=False,
        )
        raise typer.Exit(0)

    env = success_envelope(
        "calc",
        result.model_dump(mode="json"),
        warnings=cell_warnings(result.summary),
        duration_ms=t.elapsed_ms,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# tabcalc eval
# ---------------------------------------------------------------------------
@app.command("eval", epilog=_EVAL_EPILOG)
def eval_cmd(
    file: FilePath,
    sheet: SheetOpt = None,
    out: Annotated[Optional[str], typer.Option("--out", "-o", help="Also write the rendered grid to this text file")] = None,
    write_sheet: Annotated[Optional[str], typer.Option("--write-sheet", help="Write results into this worksheet of the input workbook")] = None,
    backup: Annotated[bool, typer.Option("--backup", help="Back up the workbook before --write-sheet")] = False,
    lock_timeout: Annotated[float, typer.Option("--lock-timeout", help="Seconds to wait for the workbook lock with --write-sheet (0 = fail at once)")] = 0,
    trace: Annotated[Optional[str], typer.Option("--trace", help="Write a per-pass JSON trace to this path")] = None,
    config: ConfigOpt = None,
    events: EventsFlag = False,
):
    """Evaluate a grid file and return the resolved values as JSON.

    Reads tab-separated text or a worksheet, resolves every formula, and
    returns the display grid plus a summary (passes, resolved formulas,
    error cells). Error cells are listed as `CELL_ERROR` warnings; they do
    not make the command fail.
    """
    cmd = "eval"
    target = Target(file=file, sheet=sheet)
    settings = _load_settings_or_emit(config, cmd)

    if write_sheet and not _is_workbook(file):
        _emit(error_envelope(cmd, "ERR_USAGE", "--write-sheet requires a workbook input", target=target))
        return

    with Timer() as t:
        rows = _read_rows_or_emit(file, sheet, cmd)
        grid = _build_grid_or_emit(rows, settings, cmd, target)
        result, recorder = _evaluate(grid, settings, events=events, trace_path=trace)

        if trace and recorder is not None:
            try:
                result.trace_path = recorder.save(trace)
            except OSError as e:
                _emit(error_envelope(cmd, "ERR_IO", f"Cannot write trace {trace}: {e}", target=target))
                return

        if out:
            try:
                result.output_path = write_grid_file(
                    out, result.values,
                    separator=settings.separator, trailing=settings.trailing_separator,
                )
            except OSError as e:
                _emit(error_envelope(cmd, "ERR_IO", f"Cannot write {out}: {e}", target=target))
                return

        if write_sheet:
            from tabcalc.adapters.openpyxl_engine import write_grid_to_sheet
            try:
                written = write_grid_to_sheet(
                    file, result.values, write_sheet, backup=backup, lock_timeout=lock_timeout,
                )
            except portalocker.LockException:
                _emit(error_envelope(
                    cmd, "ERR_LOCK_HELD", f"Workbook is locked by another process: {file}", target=target,
                ))
                return
            except OSError as e:
                _emit(error_envelope(cmd, "ERR_IO", f"Cannot write {file}: {e}", target=target))
                return
            result.written_sheet = written["sheet"]
            result.backup_path = written["backup_path"]

    env = success_envelope(
        cmd,
        result.model_dump(mode="json"),
        target=target,
        warnings=cell_warnings(result.summary),
        duration_ms=t.elapsed_ms,
    )
    _emit(env)


# ---------------------------------------------------------------------------
# tabcalc inspect
# ---------------------------------------------------------------------------
@app.command("inspect")
def inspect_cmd(
    file: FilePath,
    sheet: SheetOpt = None,
    config: ConfigOpt = None,
):
    """Classify every cell without evaluating anything.

    Reports each cell's kind (number, text, formula, error, empty), the
    references each formula makes, and counts per kind. Cells that are
    malformed on input already show up here as errors.
    """
    cmd = "inspect"
    target = Target(file=file, sheet=sheet)
    settings = _load_settings_or_emit(config, cmd)

    with Timer() as t:
        rows = _read_rows_or_emit(file, sheet, cmd)
        grid = _build_grid_or_emit(rows, settings, cmd, target)

        cells: list[CellInfo] = []
        by_kind: dict[str, int] = {}
        for cell in grid:
            content = cell.content
            info: dict[str, Any] = {"address": cell.address, "raw": cell.raw, "kind": content.kind}
            if isinstance(content, Formula):
                info["references"] = references_in(content)
            elif isinstance(content, ErrorValue):
                info["error"] = content.message
            cells.append(CellInfo(**info))
            by_kind[content.kind] = by_kind.get(content.kind, 0) + 1

    result = InspectResult(rows=grid.rows, cols=grid.cols, cells=cells, by_kind=by_kind)
    env = success_envelope(cmd, result.model_dump(mode="json"), target=target, duration_ms=t.elapsed_ms)
    _emit(env)
