"""Expression tokenizing, parsing and result formatting.

This module handles:
- Tokenizing canonical expression strings
- Recursive-descent parsing into an immutable syntax tree
- Checking identifiers against the bindings of an evaluation context
- Balancing checks for parentheses
- Result formatting for the calculator display

Grammar (lowest to highest precedence)::

    expression := term (('+' | '-') term)*
    term       := unary (('*' | '/') unary)*
    unary      := ('-' | '+') unary | power
    power      := primary (('**' | '^') unary)?
    primary    := NUMBER | NAME | NAME '(' args ')' | '(' expression ')'
    args       := expression (',' expression)*

Exponentiation is right-associative and binds tighter than unary minus, so
``2**3**2`` is ``2**9`` and ``-2**2`` is ``-4``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from .config import (
    CACHE_SIZE_PARSE,
    MAX_EXPRESSION_DEPTH,
    MAX_INPUT_LENGTH,
    NAME_REGEX,
    NUMBER_REGEX,
)
from .types import EvaluationContext, ParseError

NUMBER = "NUMBER"
NAME = "NAME"
OP = "OP"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
COMMA = "COMMA"
END = "END"

_SINGLE_CHAR_TOKENS = {
    "+": OP,
    "-": OP,
    "*": OP,
    "/": OP,
    "^": OP,
    "(": LPAREN,
    ")": RPAREN,
    ",": COMMA,
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Name:
    name: str
    position: int


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: Node


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Node, ...]
    position: int


Node = Union[Number, Name, UnaryOp, BinaryOp, Call]


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def tokenize(expr: str) -> list[Token]:
    """Split a canonical expression into tokens.

    Args:
        expr: Canonical expression string (whitespace is skipped)

    Returns:
        Token list terminated by an END token

    Raises:
        ParseError: On a character that starts no token
    """
    tokens: list[Token] = []
    i = 0
    length = len(expr)
    while i < length:
        char = expr[i]
        if char.isspace():
            i += 1
            continue
        if _is_digit(char) or (char == "." and i + 1 < length and _is_digit(expr[i + 1])):
            match = NUMBER_REGEX.match(expr, i)
            tokens.append(Token(NUMBER, match.group(0), i))
            i = match.end()
            continue
        if char.isascii() and (char.isalpha() or char == "_"):
            match = NAME_REGEX.match(expr, i)
            tokens.append(Token(NAME, match.group(0), i))
            i = match.end()
            continue
        if expr.startswith("**", i):
            tokens.append(Token(OP, "**", i))
            i += 2
            continue
        kind = _SINGLE_CHAR_TOKENS.get(char)
        if kind is None:
            raise ParseError(
                f"Unexpected character '{char}' at position {i}", "INVALID_TOKEN", i
            )
        # '^' is accepted as an alias so un-normalized input still parses
        tokens.append(Token(kind, "**" if char == "^" else char, i))
        i += 1
    tokens.append(Token(END, "", length))
    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _at_op(self, *ops: str) -> bool:
        return self.current.kind == OP and self.current.text in ops

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_EXPRESSION_DEPTH:
            raise ParseError(
                f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)",
                "TOO_DEEP",
                self.current.position,
            )

    def _unexpected(self) -> ParseError:
        token = self.current
        if token.kind == END:
            return ParseError(
                "Incomplete expression: unexpected end of input",
                "INCOMPLETE_EXPRESSION",
                token.position,
            )
        return ParseError(
            f"Unexpected '{token.text}' at position {token.position}",
            "SYNTAX_ERROR",
            token.position,
        )

    def parse(self) -> Node:
        if self.current.kind == END:
            raise ParseError("Empty expression", "EMPTY_INPUT", 0)
        node = self.expression()
        if self.current.kind != END:
            raise self._unexpected()
        return node

    def expression(self) -> Node:
        node = self.term()
        while self._at_op("+", "-"):
            op = self._advance().text
            node = BinaryOp(op, node, self.term())
        return node

    def term(self) -> Node:
        node = self.unary()
        while self._at_op("*", "/"):
            op = self._advance().text
            node = BinaryOp(op, node, self.unary())
        return node

    def unary(self) -> Node:
        if self._at_op("-", "+"):
            op = self._advance().text
            self._enter()
            operand = self.unary()
            self.depth -= 1
            return UnaryOp(op, operand)
        return self.power()

    def power(self) -> Node:
        base = self.primary()
        if self._at_op("**"):
            self._advance()
            self._enter()
            exponent = self.unary()
            self.depth -= 1
            return BinaryOp("**", base, exponent)
        return base

    def primary(self) -> Node:
        token = self.current
        if token.kind == NUMBER:
            self._advance()
            return Number(float(token.text))
        if token.kind == NAME:
            self._advance()
            if self.current.kind == LPAREN:
                return Call(token.text, self._call_args(), token.position)
            return Name(token.text, token.position)
        if token.kind == LPAREN:
            self._advance()
            self._enter()
            node = self.expression()
            self.depth -= 1
            self._expect_rparen()
            return node
        raise self._unexpected()

    def _call_args(self) -> tuple[Node, ...]:
        self._advance()
        self._enter()
        if self.current.kind == RPAREN:
            raise ParseError(
                f"Missing argument at position {self.current.position}",
                "SYNTAX_ERROR",
                self.current.position,
            )
        args = [self.expression()]
        while self.current.kind == COMMA:
            self._advance()
            args.append(self.expression())
        self.depth -= 1
        self._expect_rparen()
        return tuple(args)

    def _expect_rparen(self) -> None:
        # parentheses are balanced by the time the parser runs
        if self.current.kind != RPAREN:
            raise self._unexpected()
        self._advance()


@lru_cache(maxsize=CACHE_SIZE_PARSE)
def parse_canonical(expr: str) -> Node:
    """Parse a canonical expression string into a syntax tree.

    Trees are immutable, so they are cached by expression text. Names are
    not resolved here; see ``check_bindings``.

    Raises:
        ParseError: If the text is empty, too long or not in the grammar
    """
    if len(expr) > MAX_INPUT_LENGTH:
        raise ParseError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    tokens = tokenize(expr)
    balanced, position = is_balanced(expr)
    if not balanced:
        raise ParseError(
            f"Unmatched '{expr[position]}' at position {position}",
            "UNBALANCED_PARENTHESES",
            position,
        )
    return _Parser(tokens).parse()


def check_bindings(node: Node, context: EvaluationContext) -> None:
    """Verify every identifier in ``node`` is bound and used as its kind.

    Constants (and ``x``) must appear bare, functions must be called with
    exactly one argument.

    Raises:
        ParseError: On the first offending identifier
    """
    names = context.names
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Name):
            if current.name not in names:
                raise ParseError(
                    f"Unknown identifier '{current.name}'",
                    "UNBOUND_IDENTIFIER",
                    current.position,
                )
            if callable(names[current.name]):
                raise ParseError(
                    f"Function '{current.name}' must be called with an argument",
                    "NOT_A_VALUE",
                    current.position,
                )
        elif isinstance(current, Call):
            if current.name not in names:
                raise ParseError(
                    f"Unknown function '{current.name}'",
                    "UNBOUND_IDENTIFIER",
                    current.position,
                )
            if not callable(names[current.name]):
                raise ParseError(
                    f"'{current.name}' is not a function",
                    "NOT_CALLABLE",
                    current.position,
                )
            if len(current.args) != 1:
                raise ParseError(
                    f"Function '{current.name}' takes exactly one argument "
                    f"({len(current.args)} given)",
                    "ARITY",
                    current.position,
                )
            stack.extend(current.args)
        elif isinstance(current, UnaryOp):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.append(current.right)
            stack.append(current.left)


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses are balanced. Returns (is_balanced, error_position)."""
    stack: list[int] = []
    for i, char in enumerate(input_str):
        if char == "(":
            stack.append(i)
        elif char == ")":
            if not stack:
                return False, i
            stack.pop()
    if stack:
        return False, stack[0]  # Return position of first unmatched
    return True, None


def format_result(value: float) -> str:
    """Format an evaluation result for the input buffer.

    Integral values drop the fractional part, other finite values use the
    shortest text that reads back as the same double, and non-finite values
    print as ``Infinity``, ``-Infinity`` or ``NaN``.

    Args:
        value: Numeric value to format

    Returns:
        Display string (e.g., "4", "0.1", "1e+21", "Infinity")
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)
