"""Constrained arithmetic evaluator.

Evaluates expressions over real numbers with the four basic operators and
parentheses. There is no code generation step: input is tokenized against a
closed token set and evaluated by a recursive-descent parser over the grammar

    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/') factor)*
    factor := ('+' | '-') factor | number | '(' expr ')'

Anything outside that grammar (identifiers, calls, other characters) is
rejected before evaluation.
"""

import math
import re
from dataclasses import dataclass

ALLOWED_CHARS = re.compile(r"^[\d+\-*/().\s]+$")

_TOKEN_RE = re.compile(r"\s*(?:(\d+\.\d*|\.\d+|\d+)|(.))")

# Deeply nested parentheses would exhaust the interpreter stack
MAX_NESTING = 200


class ExpressionError(ArithmeticError):
    """Base class for arithmetic command failures."""


class InvalidExpressionError(ExpressionError):
    """Input is not a well-formed arithmetic expression."""


class EvaluationError(ExpressionError):
    """Expression is well-formed but has no finite value (e.g. division by zero)."""


@dataclass(frozen=True)
class Token:
    kind: str  # "num", "op", "lparen", "rparen", "end"
    value: str
    position: int


def tokenize(expression: str) -> list[Token]:
    """Split an expression into tokens.

    Raises:
        InvalidExpressionError: On any character outside the allowed set
    """
    if not ALLOWED_CHARS.match(expression):
        raise InvalidExpressionError("Invalid math expression")

    tokens: list[Token] = []
    position = 0
    stripped_end = len(expression.rstrip())
    while position < stripped_end:
        match = _TOKEN_RE.match(expression, position)
        if match is None:
            raise InvalidExpressionError("Invalid math expression")
        number, symbol = match.groups()
        start = match.start(1) if number is not None else match.start(2)
        if number is not None:
            tokens.append(Token("num", number, start))
        elif symbol in "+-*/":
            tokens.append(Token("op", symbol, start))
        elif symbol == "(":
            tokens.append(Token("lparen", symbol, start))
        elif symbol == ")":
            tokens.append(Token("rparen", symbol, start))
        else:
            # A lone "." or anything the number pattern could not absorb
            raise InvalidExpressionError("Invalid math expression")
        position = match.end()

    tokens.append(Token("end", "", len(expression)))
    return tokens


class _Parser:
    """Recursive-descent evaluator over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def parse(self) -> float:
        value = self._expr()
        if self._peek().kind != "end":
            raise InvalidExpressionError("Invalid math expression")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek().kind == "op" and self._peek().value in "+-":
            op = self._advance().value
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek().kind == "op" and self._peek().value in "*/":
            op = self._advance().value
            right = self._factor()
            if op == "*":
                value = value * right
            else:
                if right == 0:
                    raise EvaluationError("Division by zero")
                value = value / right
        return value

    def _factor(self) -> float:
        token = self._peek()

        if token.kind == "op" and token.value in "+-":
            self._advance()
            self._enter()
            try:
                operand = self._factor()
            finally:
                self._depth -= 1
            return -operand if token.value == "-" else operand

        if token.kind == "num":
            self._advance()
            return float(token.value)

        if token.kind == "lparen":
            self._advance()
            self._enter()
            try:
                value = self._expr()
            finally:
                self._depth -= 1
            if self._advance().kind != "rparen":
                raise InvalidExpressionError("Unbalanced parentheses")
            return value

        raise InvalidExpressionError("Invalid math expression")

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise InvalidExpressionError("Expression is nested too deeply")


def evaluate(expression: str) -> float:
    """Evaluate an arithmetic expression.

    Args:
        expression: Text made only of digits, '.', '+', '-', '*', '/', parentheses and whitespace

    Returns:
        The finite result

    Raises:
        InvalidExpressionError: If the text is not a well-formed expression
        EvaluationError: On division by zero or a non-finite result
    """
    tokens = tokenize(expression)
    if len(tokens) == 1:
        raise InvalidExpressionError("Empty expression")

    try:
        value = _Parser(tokens).parse()
    except OverflowError as e:
        raise EvaluationError("Result is too large") from e

    if not math.isfinite(value):
        raise EvaluationError("Result is not a finite number")
    # Normalize -0.0 so "0 * -1" reads as 0
    return value + 0.0
