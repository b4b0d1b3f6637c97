"""Property-based tests using Hypothesis for the evaluator.

These verify invariants that must hold for *any* grid:
- evaluation is deterministic
- the fixpoint loop needs at most N+1 passes for N cells
- no formula survives evaluation
- formulas fold strictly left to right
- plain numbers and text keep their meaning
- acyclic grids never report loop references
"""

from __future__ import annotations

import operator
import string
from fractions import Fraction
from functools import reduce

from hypothesis import given, settings
from hypothesis import strategies as st

from tabcalc.engine.arithmetic import INT_MAX, INT_MIN, evaluate, tokenize
from tabcalc.engine.cells import ERROR_MESSAGES, ErrorKind
from tabcalc.engine.evaluator import Evaluator, calculate
from tabcalc.engine.grid import Grid

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

small_ints = st.integers(min_value=-50, max_value=50)

references = st.builds(
    lambda col, row: f"{string.ascii_uppercase[col]}{row}",
    st.integers(min_value=0, max_value=5),
    st.integers(min_value=0, max_value=9),
)

operand = st.one_of(small_ints.map(str), references)

formulas = st.builds(
    lambda first, rest: "=" + first + "".join(op + term for op, term in rest),
    operand,
    st.lists(st.tuples(st.sampled_from("+-*/"), operand), max_size=4),
)

safe_text = st.text(alphabet=string.ascii_letters + " ", min_size=1, max_size=10)

raw_cells = st.one_of(
    small_ints.map(str),
    safe_text.map(lambda s: "'" + s),
    st.just(""),
    formulas,
    st.sampled_from(["abc", "#N/A", "=1+", "3.5"]),
)


@st.composite
def raw_grids(draw):
    rows = draw(st.integers(min_value=1, max_value=4))
    cols = draw(st.integers(min_value=1, max_value=4))
    return [[draw(raw_cells) for _ in range(cols)] for _ in range(rows)]


def _truncating_fold(first: int, rest: list[tuple[str, int]]) -> int:
    ops = {
        "+": operator.add,
        "-": operator.sub,
        "*": operator.mul,
        "/": lambda a, b: int(Fraction(a, b)),
    }
    return reduce(lambda acc, item: ops[item[0]](acc, item[1]), rest, first)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@given(rows=raw_grids())
@settings(max_examples=200)
def test_evaluation_is_deterministic(rows):
    assert calculate([list(r) for r in rows]) == calculate([list(r) for r in rows])


@given(rows=raw_grids())
@settings(max_examples=200)
def test_pass_count_is_bounded_by_cell_count(rows):
    grid = Grid.from_rows(rows)
    summary = Evaluator(grid).calculate()
    assert 1 <= summary.passes <= grid.size + 1


@given(rows=raw_grids())
@settings(max_examples=200)
def test_no_formula_survives(rows):
    display = calculate(rows)
    for row in display:
        for value in row:
            assert not value.startswith("=")


@given(
    first=small_ints,
    rest=st.lists(
        st.tuples(st.sampled_from("+-*/"), small_ints.filter(lambda n: n != 0)),
        max_size=4,
    ),
)
def test_left_to_right_fold(first, rest):
    body = str(first) + "".join(op + str(n) for op, n in rest)
    assert evaluate(tokenize(body)) == _truncating_fold(first, rest)


@given(n=st.integers(min_value=INT_MIN, max_value=INT_MAX), text=safe_text)
def test_plain_values_keep_their_meaning(n, text):
    assert calculate([[str(n), "'" + text]]) == [[str(n), text]]


@given(values=st.lists(small_ints, min_size=1, max_size=8), data=st.data())
@settings(max_examples=100)
def test_acyclic_chains_never_loop(values, data):
    # Cell i may only reference cells j > i in the same row.
    width = len(values)
    row: list[str] = []
    for i in range(width):
        if i == width - 1 or data.draw(st.booleans()):
            row.append(str(values[i]))
        else:
            j = data.draw(st.integers(min_value=i + 1, max_value=width - 1))
            row.append(f"={string.ascii_uppercase[j]}1+{values[i]}")
    result = calculate([row])
    assert ERROR_MESSAGES[ErrorKind.CIRCULAR_REFERENCE] not in result[0]
    for value in result[0]:
        int(value)
