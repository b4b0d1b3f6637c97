"""Formula tokenizer and left-to-right integer evaluation."""

from __future__ import annotations

import operator
import re
from typing import Callable, Union

from pydantic import BaseModel

# One letter immediately followed by one digit: A1, b7, Z9.
REFERENCE_PATTERN = r"[A-Za-z][0-9]"

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<ref>" + REFERENCE_PATTERN + r")|(?P<num>[0-9]+)|(?P<op>[-+*/]))"
)


class ExpressionSyntaxError(ValueError):
    """Raised when a formula body is not ``term (op term)*``."""


class DivisionByZeroError(ArithmeticError):
    """Raised when a formula divides by zero."""


class NumberOutOfRangeError(ArithmeticError):
    """Raised when a literal or an intermediate result leaves the 32-bit range."""


INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
_MAX_DIGITS = len(str(INT_MAX))


def check_range(value: int) -> int:
    if not INT_MIN <= value <= INT_MAX:
        raise NumberOutOfRangeError(f"{value} is outside [{INT_MIN}, {INT_MAX}]")
    return value


def parse_integer(text: str) -> int:
    """Parse a signed decimal literal, rejecting values outside the 32-bit range.

    The digit count is checked before conversion so overly long literals never
    reach ``int()``.
    """
    digits = text.strip().lstrip("+-").lstrip("0")
    if len(digits) > _MAX_DIGITS:
        raise NumberOutOfRangeError(f"Literal has {len(digits)} digits")
    return check_range(int(text))


class Term(BaseModel):
    """An operand: either a resolved integer or a cell reference."""

    value: int | None = None
    ref: str | None = None  # upper-case address, e.g. "B3"
    negative: bool = False  # unary minus applied to a reference

    @property
    def resolved(self) -> bool:
        return self.ref is None

    def substitute(self, number: int) -> "Term":
        return Term(value=-number if self.negative else number)

    def render(self) -> str:
        if self.ref is None:
            return str(self.value)
        return f"-{self.ref}" if self.negative else self.ref


Token = Union[Term, str]


def tokenize(body: str) -> list[Token]:
    """Split a formula body (without the leading ``=``) into terms and operators.

    A ``+``/``-`` at the start of the body or right after another operator is a
    unary sign bound to the next term, so ``12+-4`` reads as ``12 + (-4)``.
    """
    tokens: list[Token] = []
    sign: str | None = None
    expect_term = True
    pos = 0
    while pos < len(body):
        m = _TOKEN_RE.match(body, pos)
        if not m:
            if body[pos:].strip():
                raise ExpressionSyntaxError(f"Unexpected input at position {pos}: {body[pos:]!r}")
            break
        pos = m.end()

        op = m.group("op")
        if op is not None:
            if not expect_term:
                tokens.append(op)
                expect_term = True
            elif op in "+-" and sign is None:
                sign = op
            else:
                raise ExpressionSyntaxError(f"Operator '{op}' without a left operand")
            continue

        if not expect_term:
            raise ExpressionSyntaxError(f"Missing operator before {m.group().strip()!r}")
        negative = sign == "-"
        if m.group("ref") is not None:
            tokens.append(Term(ref=m.group("ref").upper(), negative=negative))
        else:
            try:
                number = parse_integer(("-" if negative else "") + m.group("num"))
            except NumberOutOfRangeError as e:
                raise ExpressionSyntaxError(str(e)) from e
            tokens.append(Term(value=number))
        sign = None
        expect_term = False

    if expect_term:
        raise ExpressionSyntaxError("Expression is empty or ends with an operator")
    return tokens


def render(tokens: list[Token]) -> str:
    """Render tokens back to formula text, e.g. ``=12+B1``."""
    return "=" + "".join(t.render() if isinstance(t, Term) else t for t in tokens)


def divide(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    if b == 0:
        raise DivisionByZeroError(f"{a} / 0")
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


_APPLY: dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": divide,
}


def _term_value(term: Token) -> int:
    if not isinstance(term, Term):
        raise ExpressionSyntaxError(f"Expected a term, got operator '{term}'")
    if not term.resolved:
        raise ValueError(f"Unresolved reference: {term.ref}")
    return check_range(term.value)  # type: ignore[arg-type]


def evaluate(tokens: list[Token]) -> int:
    """Fold a fully resolved token list strictly left to right.

    There is no operator precedence: ``12 + -4 * 3 / 5`` is ``((12 + -4) * 3) / 5``.
    Every operand and intermediate result must fit in a signed 32-bit integer.
    """
    if not tokens:
        raise ExpressionSyntaxError("Nothing to evaluate")
    result = _term_value(tokens[0])
    for i in range(1, len(tokens), 2):
        op = tokens[i]
        if not isinstance(op, str) or op not in _APPLY or i + 1 >= len(tokens):
            raise ExpressionSyntaxError(f"Bad operator sequence near '{op}'")
        result = check_range(_APPLY[op](result, _term_value(tokens[i + 1])))  # type: ignore[index]
    return result
