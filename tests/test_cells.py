"""Tests for prefix-based cell classification."""

import pytest

from tabcalc.engine.cells import (
    Empty,
    ErrorKind,
    ErrorValue,
    Formula,
    Number,
    Text,
    classify,
)


@pytest.mark.parametrize("raw, value", [
    ("12", 12),
    ("-4", -4),
    ("+5", 5),
    (" 7 ", 7),
    ("0", 0),
])
def test_integer_literals(raw, value):
    content = classify(raw)
    assert isinstance(content, Number)
    assert content.value == value


@pytest.mark.parametrize("raw", [None, "", "   ", "\t"])
def test_blank_is_empty(raw):
    assert isinstance(classify(raw), Empty)
    assert classify(raw).display() == ""


def test_text_strips_quote_marker():
    content = classify("'Sample")
    assert isinstance(content, Text)
    assert content.display() == "Sample"


def test_text_that_looks_like_a_formula_stays_text():
    assert classify("'=A1").display() == "=A1"


def test_error_prefix_passes_through():
    content = classify("#N/A")
    assert isinstance(content, ErrorValue)
    assert content.error is None
    assert content.display() == "#N/A"


def test_formula_is_tokenized():
    content = classify("=A1+2")
    assert isinstance(content, Formula)
    assert content.source == "=A1+2"
    assert content.text == "=A1+2"


@pytest.mark.parametrize("raw", ["abc", "12abc", "3.5", "=", "=1+", "=A1B1", "@A1"])
def test_malformed(raw):
    content = classify(raw)
    assert isinstance(content, ErrorValue)
    assert content.error is ErrorKind.MALFORMED_CELL
    assert content.display() == "#The cell data is in incorrect format"


def test_error_messages_are_verbatim():
    assert ErrorKind.DANGLING_REFERENCE.message == "#Referenced cell doesn't exist"
    assert ErrorKind.INVALID_REFERENCE_TARGET.message == "#Referenced cell cannot be part of expression"
    assert ErrorKind.CIRCULAR_REFERENCE.message == "#The cell contains loop reference"
    assert ErrorKind.DIVISION_BY_ZERO.message == "#Division by zero"
    assert ErrorKind.NUMBER_OUT_OF_RANGE.message == "#Number out of range"


def test_number_keeps_its_literal_text():
    content = classify(" +7")
    assert isinstance(content, Number)
    assert content.value == 7
    assert content.display() == " +7"
    assert Number(value=-3).display() == "-3"


@pytest.mark.parametrize("raw", ["2147483648", "-2147483649", "9" * 5000, "=1+" + "1" * 20])
def test_out_of_range_literals_are_malformed(raw):
    content = classify(raw)
    assert isinstance(content, ErrorValue)
    assert content.error is ErrorKind.MALFORMED_CELL


def test_leading_zeros_do_not_count_against_the_range():
    assert classify("0" * 40 + "42").value == 42
