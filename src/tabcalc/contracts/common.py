"""Common Pydantic models: response envelope, errors, warnings, metrics."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WorkbookCorruptError(Exception):
    """Raised when a workbook file cannot be parsed."""


class GridShapeError(ValueError):
    """Raised when input cannot form a rectangular grid of the supported size."""


class ConfigError(ValueError):
    """Raised when a tabcalc.yaml file is invalid."""


class Target(BaseModel):
    """Identifies the input a command worked on."""

    file: str | None = None
    sheet: str | None = None


class WarningDetail(BaseModel):
    """Structured warning."""

    code: str
    message: str
    path: str | None = None


class ErrorDetail(BaseModel):
    """Structured error."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class Metrics(BaseModel):
    """Execution metrics."""

    duration_ms: int = 0


class ResponseEnvelope(BaseModel):
    """Standard response envelope returned by every JSON command."""

    ok: bool = True
    command: str = ""
    target: Target = Field(default_factory=Target)
    result: Any = None
    warnings: list[WarningDetail] = Field(default_factory=list)
    errors: list[ErrorDetail] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=Metrics)
