"""Cell contents and the prefix-based classifier."""

from __future__ import annotations

import re
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from tabcalc.engine.arithmetic import (
    ExpressionSyntaxError,
    NumberOutOfRangeError,
    Token,
    parse_integer,
    render,
    tokenize,
)

FORMULA_PREFIX = "="
TEXT_PREFIX = "'"
ERROR_PREFIX = "#"

_INTEGER_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")


class ErrorKind(str, Enum):
    """Terminal error states a cell can end in."""

    MALFORMED_CELL = "MalformedCell"
    DANGLING_REFERENCE = "DanglingReference"
    INVALID_REFERENCE_TARGET = "InvalidReferenceTarget"
    CIRCULAR_REFERENCE = "CircularReference"
    DIVISION_BY_ZERO = "DivisionByZero"
    NUMBER_OUT_OF_RANGE = "NumberOutOfRange"

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self]


ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.MALFORMED_CELL: "#The cell data is in incorrect format",
    ErrorKind.DANGLING_REFERENCE: "#Referenced cell doesn't exist",
    ErrorKind.INVALID_REFERENCE_TARGET: "#Referenced cell cannot be part of expression",
    ErrorKind.CIRCULAR_REFERENCE: "#The cell contains loop reference",
    ErrorKind.DIVISION_BY_ZERO: "#Division by zero",
    ErrorKind.NUMBER_OUT_OF_RANGE: "#Number out of range",
}


class Empty(BaseModel):
    kind: Literal["empty"] = "empty"

    def display(self) -> str:
        return ""


class Number(BaseModel):
    kind: Literal["number"] = "number"
    value: int
    literal: str | None = None  # input text of a plain number cell

    def display(self) -> str:
        return self.literal if self.literal is not None else str(self.value)


class Text(BaseModel):
    kind: Literal["text"] = "text"
    text: str  # raw input, quote marker included

    def display(self) -> str:
        return self.text.lstrip(TEXT_PREFIX)


class Formula(BaseModel):
    """A formula whose tokens are rewritten as references resolve."""

    kind: Literal["formula"] = "formula"
    source: str
    tokens: list[Token] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return render(self.tokens)

    def display(self) -> str:
        return self.text


class ErrorValue(BaseModel):
    """Absorbing error state. ``error`` is None for ``#...`` input passed through."""

    kind: Literal["error"] = "error"
    error: ErrorKind | None = None
    message: str

    @classmethod
    def of(cls, error: ErrorKind) -> "ErrorValue":
        return cls(error=error, message=error.message)

    def display(self) -> str:
        return self.message


CellContent = Union[Empty, Number, Text, Formula, ErrorValue]


def is_integer_text(raw: str) -> bool:
    return bool(_INTEGER_RE.match(raw))


def classify(raw: str | None) -> CellContent:
    """Derive a cell's content from its raw text using prefix/shape rules only.

    Priority: integer literal, blank, ``'`` text, ``#`` error, ``=`` formula.
    Anything else, including a formula whose body does not parse or an
    integer outside the 32-bit range, is a malformed cell.
    """
    if raw is None:
        return Empty()
    if is_integer_text(raw):
        try:
            return Number(value=parse_integer(raw), literal=raw)
        except NumberOutOfRangeError:
            return ErrorValue.of(ErrorKind.MALFORMED_CELL)
    if not raw.strip():
        return Empty()
    if raw.startswith(TEXT_PREFIX):
        return Text(text=raw)
    if raw.startswith(ERROR_PREFIX):
        return ErrorValue(message=raw)
    if raw.startswith(FORMULA_PREFIX):
        try:
            tokens = tokenize(raw[len(FORMULA_PREFIX):])
        except ExpressionSyntaxError:
            return ErrorValue.of(ErrorKind.MALFORMED_CELL)
        return Formula(source=raw, tokens=tokens)
    return ErrorValue.of(ErrorKind.MALFORMED_CELL)
