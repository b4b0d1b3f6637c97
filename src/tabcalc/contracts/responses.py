"""Command-specific result models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CellError(BaseModel):
    """A cell that ended in an error state."""

    address: str
    kind: str | None = None  # ErrorKind value; None for passed-through "#..." input
    message: str


class EvaluationSummary(BaseModel):
    """What a single evaluation did."""

    passes: int = 0
    cells: int = 0
    formulas: int = 0
    resolved: int = 0
    circular: int = 0
    errors: list[CellError] = Field(default_factory=list)


class EvaluationResult(BaseModel):
    """Result of ``tabcalc eval`` / ``tabcalc calc --json``."""

    rows: int
    cols: int
    values: list[list[str]] = Field(default_factory=list)
    summary: EvaluationSummary = Field(default_factory=EvaluationSummary)
    output_path: str | None = None
    written_sheet: str | None = None
    backup_path: str | None = None
    trace_path: str | None = None


class CellInfo(BaseModel):
    """Classification of one cell, as reported by ``tabcalc inspect``."""

    address: str
    raw: str | None = None
    kind: str
    references: list[str] = Field(default_factory=list)
    error: str | None = None


class InspectResult(BaseModel):
    """Result of ``tabcalc inspect``."""

    rows: int
    cols: int
    cells: list[CellInfo] = Field(default_factory=list)
    by_kind: dict[str, int] = Field(default_factory=dict)
