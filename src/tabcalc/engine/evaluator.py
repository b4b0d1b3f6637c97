"""Fixpoint driver: rescan the grid until a full pass changes nothing."""

from __future__ import annotations

from tabcalc.contracts.responses import CellError, EvaluationSummary
from tabcalc.engine.arithmetic import DivisionByZeroError, NumberOutOfRangeError, evaluate
from tabcalc.engine.cells import ErrorKind, ErrorValue, Formula, Number
from tabcalc.engine.grid import Cell, Grid
from tabcalc.engine.references import resolve_references
from tabcalc.observe.events import TraceRecorder


class Evaluator:
    """Resolves every formula in a grid, in place.

    Each pass walks the grid row-major, substituting resolved numbers into
    formulas and evaluating the ones left without references. The loop ends
    on the first pass in which no formula changed state; whatever is still a
    formula at that point is part of (or depends on) a reference cycle.
    """

    def __init__(self, grid: Grid, *, trace: TraceRecorder | None = None) -> None:
        self.grid = grid
        self.trace = trace

    def calculate(self) -> EvaluationSummary:
        formulas = sum(1 for cell in self.grid if isinstance(cell.content, Formula))
        passes = 0
        resolved = 0
        while True:
            passes += 1
            changed, numbers = self._scan()
            resolved += numbers
            if self.trace is not None:
                self.trace.record("pass", {
                    "pass": passes,
                    "changed": changed,
                    "pending": self._pending(),
                })
            if not changed:
                break

        circular = self._mark_circular()
        summary = EvaluationSummary(
            passes=passes,
            cells=self.grid.size,
            formulas=formulas,
            resolved=resolved,
            circular=circular,
            errors=[
                CellError(
                    address=cell.address,
                    kind=cell.content.error.value if cell.content.error else None,
                    message=cell.content.message,
                )
                for cell in self.grid
                if isinstance(cell.content, ErrorValue)
            ],
        )
        if self.trace is not None:
            self.trace.record("done", summary.model_dump(exclude={"errors"}))
        return summary

    def _scan(self) -> tuple[int, int]:
        changed = 0
        numbers = 0
        for cell in self.grid:
            formula = cell.content
            if not isinstance(formula, Formula):
                continue
            if self._process(cell, formula):
                changed += 1
                if isinstance(cell.content, Number):
                    numbers += 1
        return changed, numbers

    def _process(self, cell: Cell, formula: Formula) -> bool:
        """Advance one formula cell. Returns True if it left the formula state."""
        resolution = resolve_references(self.grid, formula)
        if resolution.error is not None:
            cell.content = ErrorValue.of(resolution.error)
            return True
        if not resolution.ready:
            return False
        try:
            cell.content = Number(value=evaluate(formula.tokens))
        except DivisionByZeroError:
            cell.content = ErrorValue.of(ErrorKind.DIVISION_BY_ZERO)
        except NumberOutOfRangeError:
            cell.content = ErrorValue.of(ErrorKind.NUMBER_OUT_OF_RANGE)
        return True

    def _pending(self) -> int:
        return sum(1 for cell in self.grid if isinstance(cell.content, Formula))

    def _mark_circular(self) -> int:
        count = 0
        for cell in self.grid:
            if isinstance(cell.content, Formula):
                cell.content = ErrorValue.of(ErrorKind.CIRCULAR_REFERENCE)
                count += 1
        return count


def calculate(rows: list[list[str | None]]) -> list[list[str]]:
    """Evaluate raw cell text and return the display grid."""
    grid = Grid.from_rows(rows)
    Evaluator(grid).calculate()
    return grid.display_rows()
