"""
Spreadsheet-style formula evaluator.

Formulas arrive inside student financial records as strings such as
``"=D3/3"`` or ``"=SUM(food:admin_utilities)*10%"`` and must resolve to a
number before the record is stored.

Grammar (whitespace ignored)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | postfix
    postfix := primary "%"*
    primary := NUMBER | CELL | SUM | "(" expr ")"

* ``CELL`` is one of the references in ``CELL_REFERENCES`` and reads the
  mapped field from the record (0 when absent).
* ``N%`` is ``N/100``.
* ``SUM(a:b:...)`` splits its argument on ``:`` and adds up the record
  fields named literally by each part.  There is no range expansion:
  ``SUM(G3:J3)`` looks up fields called ``"G3"`` and ``"J3"``.

Nothing outside that grammar is accepted; no Python code is ever executed.
Any failure (unknown token, syntax error, division by zero, non-finite
result) evaluates to ``0.0`` and is logged as a warning.

Public API
----------
evaluate_formula(formula, data) -> float
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from app.utils.constants import CELL_REFERENCES
from app.utils.money import to_number

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<sum>SUM\((?P<range>[^)]*)\))
      | (?P<number>\d+(?:\.\d*)?|\.\d+)
      | (?P<cell>\$?[A-Z]+\$?\d+)
      | (?P<op>[-+*/()%])
    )
    """,
    re.VERBOSE,
)


class FormulaError(ValueError):
    """Raised internally when a formula cannot be tokenized or evaluated."""


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def _tokenize(body: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    body = body.rstrip()
    while pos < len(body):
        match = _TOKEN_RE.match(body, pos)
        if match is None or match.end() == pos:
            raise FormulaError(f"unexpected character at position {pos}: {body[pos:]!r}")
        pos = match.end()
        kind = match.lastgroup if match.lastgroup != "range" else "sum"
        if kind == "sum":
            tokens.append(("sum", match.group("range")))
        else:
            tokens.append((kind, match.group(kind)))
    return tokens


# ---------------------------------------------------------------------------
# Recursive-descent parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, tokens: list[tuple[str, str]], data: Mapping[str, Any]) -> None:
        self._tokens = tokens
        self._data = data
        self._pos = 0

    def _peek(self) -> tuple[str, str] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise FormulaError("unexpected end of formula")
        self._pos += 1
        return token

    def _accept_op(self, *ops: str) -> str | None:
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in ops:
            self._pos += 1
            return token[1]
        return None

    def parse(self) -> float:
        value = self._expr()
        if self._peek() is not None:
            raise FormulaError(f"unexpected token {self._peek()[1]!r}")
        return value

    def _expr(self) -> float:
        value = self._term()
        while (op := self._accept_op("+", "-")) is not None:
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._unary()
        while (op := self._accept_op("*", "/")) is not None:
            rhs = self._unary()
            if op == "*":
                value *= rhs
            else:
                if rhs == 0:
                    raise FormulaError("division by zero")
                value /= rhs
        return value

    def _unary(self) -> float:
        op = self._accept_op("+", "-")
        if op is not None:
            value = self._unary()
            return -value if op == "-" else value
        return self._postfix()

    def _postfix(self) -> float:
        value = self._primary()
        while self._accept_op("%") is not None:
            value /= 100
        return value

    def _primary(self) -> float:
        kind, text = self._next()
        if kind == "number":
            return float(text)
        if kind == "cell":
            field = CELL_REFERENCES.get(text)
            if field is None:
                raise FormulaError(f"unknown cell reference {text!r}")
            return to_number(self._data.get(field))
        if kind == "sum":
            return sum(to_number(self._data.get(part)) for part in text.split(":"))
        if text == "(":
            value = self._expr()
            if self._accept_op(")") is None:
                raise FormulaError("missing closing parenthesis")
            return value
        raise FormulaError(f"unexpected token {text!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def evaluate_formula(formula: str, data: Mapping[str, Any]) -> float:
    """Evaluate a spreadsheet-style formula against a flat record.

    Args:
        formula: Formula text, normally prefixed with ``=``.
        data: Record whose fields back cell references and ``SUM`` parts.

    Returns:
        The numeric result, or ``0.0`` when the formula cannot be evaluated.
    """
    body = formula[1:] if formula.startswith("=") else formula
    try:
        value = _Parser(_tokenize(body), data).parse()
    except (FormulaError, RecursionError) as exc:
        logger.warning("Formula evaluation error for %r: %s", formula, exc)
        return 0.0
    if not math.isfinite(value):
        logger.warning("Formula %r produced a non-finite result", formula)
        return 0.0
    return value
