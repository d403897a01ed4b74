"""Arithmetic evaluation for $(( )), (( )) and C-style for loops.

Expressions are tokenized, parsed by precedence climbing into a small AST
and evaluated with 64-bit signed wraparound, C division semantics and
short-circuit logical operators. Variables are read and written through
callbacks so the evaluator does not depend on interpreter state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Union


class ArithmeticEvalError(ValueError):
    """Raised for arithmetic errors (division by zero, bad operands)."""


class ArithmeticSyntaxError(ArithmeticEvalError):
    """Raised when an arithmetic expression cannot be parsed."""


MAX_RECURSION_DEPTH = 32

_INT64_MIN = -(1 << 63)
_UINT64 = 1 << 64


def _wrap64(value: int) -> int:
    return ((value - _INT64_MIN) % _UINT64) + _INT64_MIN


# =============================================================================
# AST
# =============================================================================


@dataclass(frozen=True)
class ArithNumber:
    value: int


@dataclass(frozen=True)
class ArithVariable:
    name: str


@dataclass(frozen=True)
class ArithUnary:
    op: str
    operand: "ArithNode"


@dataclass(frozen=True)
class ArithBinary:
    op: str
    left: "ArithNode"
    right: "ArithNode"


@dataclass(frozen=True)
class ArithTernary:
    condition: "ArithNode"
    if_true: "ArithNode"
    if_false: "ArithNode"


@dataclass(frozen=True)
class ArithAssignment:
    op: str
    """'=' or a compound operator such as '+='."""
    name: str
    value: "ArithNode"


@dataclass(frozen=True)
class ArithIncrement:
    op: str
    """'++' or '--'."""
    name: str
    prefix: bool


ArithNode = Union[
    ArithNumber,
    ArithVariable,
    ArithUnary,
    ArithBinary,
    ArithTernary,
    ArithAssignment,
    ArithIncrement,
]


# =============================================================================
# Tokenizer
# =============================================================================

_OPERATORS = [
    "<<=", ">>=",
    "**", "++", "--", "<<", ">>", "<=", ">=", "==", "!=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "^=", "|=",
    "+", "-", "*", "/", "%", "<", ">", "=", "!", "~", "&", "^", "|",
    "?", ":", "(", ")", ",",
]

_ASSIGNMENT_OPS = frozenset({"=", "+=", "-=", "*=", "/=", "%=", "<<=", ">>=", "&=", "^=", "|="})

_NUMBER_RE = re.compile(r"[0-9]+#[0-9A-Za-z@_]+|0[xX][0-9A-Fa-f]+|[0-9]+")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_BINARY_PRECEDENCE: list[tuple[str, ...]] = [
    ("||",),
    ("&&",),
    ("|",),
    ("^",),
    ("&",),
    ("==", "!="),
    ("<", "<=", ">", ">="),
    ("<<", ">>"),
    ("+", "-"),
    ("*", "/", "%"),
]

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ@_"


def parse_number(text: str) -> int:
    """Parse an integer literal: decimal, 0x hex, 0 octal or base#digits."""
    if "#" in text:
        base_text, _, digits = text.partition("#")
        base = int(base_text)
        if not 2 <= base <= 64:
            raise ArithmeticSyntaxError(f'invalid arithmetic base (error token is "{text}")')
        if base <= 36:
            digits = digits.lower()
        value = 0
        for ch in digits:
            digit = _DIGITS.find(ch)
            if digit < 0 or digit >= base:
                raise ArithmeticSyntaxError(f'value too great for base (error token is "{text}")')
            value = value * base + digit
        return value
    if text[:2] in ("0x", "0X"):
        return int(text[2:], 16)
    if len(text) > 1 and text.startswith("0"):
        try:
            return int(text, 8)
        except ValueError:
            raise ArithmeticSyntaxError(f'value too great for base (error token is "{text}")') from None
    return int(text)


def _tokenize(text: str) -> list[tuple[str, str]]:
    """Split an expression into (kind, value) pairs; kind is num, name or op."""
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in " \t\n":
            i += 1
            continue
        if c.isdigit():
            m = _NUMBER_RE.match(text, i)
            assert m is not None
            end = m.end()
            if end < n and (text[end].isalnum() or text[end] == "_"):
                raise ArithmeticSyntaxError(
                    f'value too great for base (error token is "{text[i:].split()[0]}")'
                )
            tokens.append(("num", m.group(0)))
            i = end
            continue
        m = _NAME_RE.match(text, i)
        if m:
            tokens.append(("name", m.group(0)))
            i = m.end()
            continue
        for op in _OPERATORS:
            if text.startswith(op, i):
                tokens.append(("op", op))
                i += len(op)
                break
        else:
            raise ArithmeticSyntaxError(
                f'syntax error: invalid arithmetic operator (error token is "{text[i:]}")'
            )
    return tokens


# =============================================================================
# Parser
# =============================================================================


class _ArithParser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def _peek(self) -> Optional[tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _peek_op(self) -> Optional[str]:
        tok = self._peek()
        return tok[1] if tok and tok[0] == "op" else None

    def _error(self) -> ArithmeticSyntaxError:
        tok = self._peek()
        if tok is None:
            return ArithmeticSyntaxError("syntax error: operand expected")
        rest = " ".join(value for _, value in self.tokens[self.pos:])
        return ArithmeticSyntaxError(f'syntax error in expression (error token is "{rest}")')

    def parse(self) -> ArithNode:
        if not self.tokens:
            return ArithNumber(0)
        node = self._parse_comma()
        if self._peek() is not None:
            raise self._error()
        return node

    def _parse_comma(self) -> ArithNode:
        node = self._parse_assignment()
        while self._peek_op() == ",":
            self.pos += 1
            node = ArithBinary(",", node, self._parse_assignment())
        return node

    def _parse_assignment(self) -> ArithNode:
        tok = self._peek()
        if (
            tok is not None
            and tok[0] == "name"
            and self.pos + 1 < len(self.tokens)
            and self.tokens[self.pos + 1][0] == "op"
            and self.tokens[self.pos + 1][1] in _ASSIGNMENT_OPS
        ):
            op = self.tokens[self.pos + 1][1]
            self.pos += 2
            return ArithAssignment(op, tok[1], self._parse_assignment())
        return self._parse_ternary()

    def _parse_ternary(self) -> ArithNode:
        condition = self._parse_binary(0)
        if self._peek_op() != "?":
            return condition
        self.pos += 1
        if_true = self._parse_assignment()
        if self._peek_op() != ":":
            raise self._error()
        self.pos += 1
        if_false = self._parse_assignment()
        return ArithTernary(condition, if_true, if_false)

    def _parse_binary(self, level: int) -> ArithNode:
        if level == len(_BINARY_PRECEDENCE):
            return self._parse_power()
        node = self._parse_binary(level + 1)
        ops = _BINARY_PRECEDENCE[level]
        while self._peek_op() in ops:
            op = self._peek_op()
            self.pos += 1
            node = ArithBinary(op, node, self._parse_binary(level + 1))
        return node

    def _parse_power(self) -> ArithNode:
        base = self._parse_unary()
        if self._peek_op() == "**":
            self.pos += 1
            return ArithBinary("**", base, self._parse_power())
        return base

    def _parse_unary(self) -> ArithNode:
        op = self._peek_op()
        if op in ("++", "--"):
            self.pos += 1
            tok = self._peek()
            if tok is None or tok[0] != "name":
                raise self._error()
            self.pos += 1
            return ArithIncrement(op, tok[1], prefix=True)
        if op in ("+", "-", "!", "~"):
            self.pos += 1
            return ArithUnary(op, self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> ArithNode:
        node = self._parse_primary()
        op = self._peek_op()
        if op in ("++", "--") and isinstance(node, ArithVariable):
            self.pos += 1
            return ArithIncrement(op, node.name, prefix=False)
        return node

    def _parse_primary(self) -> ArithNode:
        tok = self._peek()
        if tok is None:
            raise self._error()
        kind, value = tok
        if kind == "num":
            self.pos += 1
            return ArithNumber(parse_number(value))
        if kind == "name":
            self.pos += 1
            return ArithVariable(value)
        if value == "(":
            self.pos += 1
            node = self._parse_comma()
            if self._peek_op() != ")":
                raise self._error()
            self.pos += 1
            return node
        raise self._error()


def parse_arithmetic(text: str) -> ArithNode:
    """Parse an arithmetic expression. Raises ArithmeticSyntaxError."""
    return _ArithParser(text).parse()


# =============================================================================
# Evaluator
# =============================================================================


def _c_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _c_mod(a: int, b: int) -> int:
    return a - b * _c_div(a, b)


class ArithmeticEvaluator:
    """Evaluates arithmetic ASTs against variable callbacks.

    lookup(name) returns the variable's string value or None when unset;
    assign(name, value) stores a new value.
    """

    def __init__(
        self,
        lookup: Callable[[str], Optional[str]],
        assign: Callable[[str, str], None],
    ):
        self._lookup = lookup
        self._assign = assign
        self._depth = 0

    def evaluate(self, node: ArithNode) -> int:
        if isinstance(node, ArithNumber):
            return _wrap64(node.value)
        if isinstance(node, ArithVariable):
            return self._variable_value(node.name)
        if isinstance(node, ArithUnary):
            value = self.evaluate(node.operand)
            if node.op == "-":
                return _wrap64(-value)
            if node.op == "+":
                return value
            if node.op == "!":
                return int(value == 0)
            return ~value
        if isinstance(node, ArithBinary):
            return self._binary(node)
        if isinstance(node, ArithTernary):
            if self.evaluate(node.condition) != 0:
                return self.evaluate(node.if_true)
            return self.evaluate(node.if_false)
        if isinstance(node, ArithAssignment):
            value = self.evaluate(node.value)
            if node.op != "=":
                value = self._apply(node.op[:-1], self._variable_value(node.name), value)
            self._assign(node.name, str(value))
            return value
        if isinstance(node, ArithIncrement):
            old = self._variable_value(node.name)
            new = _wrap64(old + 1 if node.op == "++" else old - 1)
            self._assign(node.name, str(new))
            return new if node.prefix else old
        raise ArithmeticEvalError(f"unknown arithmetic node {node!r}")

    def _variable_value(self, name: str) -> int:
        raw = self._lookup(name)
        if raw is None:
            return 0
        raw = raw.strip()
        if not raw:
            return 0
        try:
            return _wrap64(parse_number(raw)) if raw.isdigit() or raw[:2] in ("0x", "0X") else self._nested(raw)
        except ArithmeticSyntaxError:
            return 0

    def _nested(self, text: str) -> int:
        """Evaluate a variable whose value is itself an expression."""
        self._depth += 1
        try:
            if self._depth > MAX_RECURSION_DEPTH:
                raise ArithmeticEvalError("expression recursion level exceeded")
            return self.evaluate(parse_arithmetic(text))
        finally:
            self._depth -= 1

    def _binary(self, node: ArithBinary) -> int:
        op = node.op
        if op == "&&":
            return int(self.evaluate(node.left) != 0 and self.evaluate(node.right) != 0)
        if op == "||":
            return int(self.evaluate(node.left) != 0 or self.evaluate(node.right) != 0)
        if op == ",":
            self.evaluate(node.left)
            return self.evaluate(node.right)
        return self._apply(op, self.evaluate(node.left), self.evaluate(node.right))

    def _apply(self, op: str, a: int, b: int) -> int:
        if op == "+":
            return _wrap64(a + b)
        if op == "-":
            return _wrap64(a - b)
        if op == "*":
            return _wrap64(a * b)
        if op in ("/", "%"):
            if b == 0:
                raise ArithmeticEvalError("division by 0")
            return _wrap64(_c_div(a, b) if op == "/" else _c_mod(a, b))
        if op == "**":
            if b < 0:
                raise ArithmeticEvalError("exponent less than 0")
            return _wrap64(pow(a, b, _UINT64))
        if op == "<<":
            return _wrap64(a << (b & 63))
        if op == ">>":
            return a >> (b & 63)
        if op == "&":
            return a & b
        if op == "|":
            return a | b
        if op == "^":
            return a ^ b
        if op == "==":
            return int(a == b)
        if op == "!=":
            return int(a != b)
        if op == "<":
            return int(a < b)
        if op == "<=":
            return int(a <= b)
        if op == ">":
            return int(a > b)
        if op == ">=":
            return int(a >= b)
        raise ArithmeticSyntaxError(f"syntax error: invalid arithmetic operator `{op}'")


def evaluate_arithmetic(
    text: str,
    lookup: Callable[[str], Optional[str]],
    assign: Callable[[str, str], None],
) -> int:
    """Parse and evaluate an arithmetic expression."""
    return ArithmeticEvaluator(lookup, assign).evaluate(parse_arithmetic(text))
