"""Pydantic models for responses and errors."""

from tabcalc.contracts.common import (
    ConfigError,
    ErrorDetail,
    GridShapeError,
    Metrics,
    ResponseEnvelope,
    Target,
    WarningDetail,
    WorkbookCorruptError,
)
from tabcalc.contracts.responses import (
    CellError,
    CellInfo,
    EvaluationResult,
    EvaluationSummary,
    InspectResult,
)

__all__ = [
    "CellError",
    "CellInfo",
    "ConfigError",
    "ErrorDetail",
    "EvaluationResult",
    "EvaluationSummary",
    "GridShapeError",
    "InspectResult",
    "Metrics",
    "ResponseEnvelope",
    "Target",
    "WarningDetail",
    "WorkbookCorruptError",
]
