"""Tests for Pydantic contract models."""

from tabcalc.contracts.common import Metrics, ResponseEnvelope, Target
from tabcalc.contracts.responses import CellError, EvaluationResult, EvaluationSummary
from tabcalc.engine.dispatcher import cell_warnings, output_json, success_envelope


def test_response_envelope_defaults():
    env = ResponseEnvelope()
    assert env.ok is True
    assert env.command == ""
    assert env.result is None
    assert env.warnings == []
    assert env.errors == []
    assert env.metrics.duration_ms == 0


def test_response_envelope_roundtrip():
    env = ResponseEnvelope(
        ok=True,
        command="eval",
        target=Target(file="grid.tsv"),
        result={"key": "value"},
        metrics=Metrics(duration_ms=42),
    )
    restored = ResponseEnvelope(**env.model_dump())
    assert restored.command == "eval"
    assert restored.result == {"key": "value"}
    assert restored.metrics.duration_ms == 42


def test_evaluation_result_defaults():
    result = EvaluationResult(rows=1, cols=1, values=[["1"]])
    assert result.summary.passes == 0
    assert result.output_path is None


def test_cell_warnings():
    summary = EvaluationSummary(errors=[
        CellError(address="B2", kind="CircularReference", message="#The cell contains loop reference"),
    ])
    warnings = cell_warnings(summary)
    assert len(warnings) == 1
    assert warnings[0].code == "CELL_ERROR"
    assert warnings[0].path == "B2"


def test_output_json_is_indented():
    text = output_json(success_envelope("version", {"version": "0.1.0"}))
    assert text.startswith("{\n")
    assert '"version": "0.1.0"' in text
