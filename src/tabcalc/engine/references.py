"""Reference resolution: substitute resolved numbers into a formula."""

from __future__ import annotations

from pydantic import BaseModel

from tabcalc.engine.arithmetic import Term
from tabcalc.engine.cells import ErrorKind, Formula, Number
from tabcalc.engine.grid import Grid, parse_address


class Resolution(BaseModel):
    """Outcome of one resolution attempt on a formula."""

    ready: bool = False
    error: ErrorKind | None = None


def references_in(formula: Formula) -> list[str]:
    """Addresses still referenced by the formula, left to right."""
    return [t.ref for t in formula.tokens if isinstance(t, Term) and t.ref is not None]


def resolve_references(grid: Grid, formula: Formula) -> Resolution:
    """Replace every reference whose target holds a number, left to right.

    Stops at the first reference pointing outside the grid (dangling) or at a
    cell that can never be a number (text, empty, error). References to a
    formula that has not resolved yet stay in place and leave the formula
    not ready, to be retried on a later pass.
    """
    ready = True
    for i, token in enumerate(formula.tokens):
        if not isinstance(token, Term) or token.resolved:
            continue
        row, col = parse_address(token.ref)  # type: ignore[arg-type]
        if not grid.contains(row, col):
            return Resolution(error=ErrorKind.DANGLING_REFERENCE)

        target = grid.cell(row, col).content
        if isinstance(target, Number):
            formula.tokens[i] = token.substitute(target.value)
        elif isinstance(target, Formula):
            ready = False
        else:
            return Resolution(error=ErrorKind.INVALID_REFERENCE_TARGET)
    return Resolution(ready=ready)
