"""Test-expression evaluation for test, [ and [[ ]].

Arguments are parsed into a small AST (UnaryTest, BinaryTest, NotTest,
AndTest, OrTest, GroupTest) and evaluated against the filesystem.
evaluate_top_level_test() maps the outcome to the 0/1/2 exit status
convention: true, false, malformed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from .arithmetic import ArithmeticEvalError
from .patterns import pattern_matches

if TYPE_CHECKING:
    from .types import InterpreterContext


class TestSyntaxError(ValueError):
    """Raised for a malformed test expression (exit status 2)."""

    __test__ = False


FILE_OPS = frozenset({"-e", "-a", "-f", "-d", "-s", "-r", "-w", "-x", "-h", "-L"})
STRING_OPS = frozenset({"-z", "-n"})
UNARY_OPS = FILE_OPS | STRING_OPS
NUMERIC_OPS = frozenset({"-eq", "-ne", "-lt", "-le", "-gt", "-ge"})
STRING_BINARY_OPS = frozenset({"=", "==", "!=", "<", ">"})
FILE_BINARY_OPS = frozenset({"-nt", "-ot", "-ef"})
BINARY_OPS = NUMERIC_OPS | STRING_BINARY_OPS | FILE_BINARY_OPS | {"=~"}


@dataclass(frozen=True)
class UnaryTest:
    op: str
    operand: str


@dataclass(frozen=True)
class BinaryTest:
    op: str
    left: str
    right: str
    right_pattern: Optional[str] = None
    """Glob form of the right operand inside [[ ]]; None means compare literally."""


@dataclass(frozen=True)
class StringTest:
    """A lone operand: true if non-empty."""

    value: str


@dataclass(frozen=True)
class NotTest:
    operand: "TestNode"


@dataclass(frozen=True)
class AndTest:
    left: "TestNode"
    right: "TestNode"


@dataclass(frozen=True)
class OrTest:
    left: "TestNode"
    right: "TestNode"


@dataclass(frozen=True)
class GroupTest:
    inner: "TestNode"


TestNode = Union[UnaryTest, BinaryTest, StringTest, NotTest, AndTest, OrTest, GroupTest]


class _TestParser:
    """Recursive descent over already-expanded arguments.

    extended=True selects [[ ]] syntax: && and || combine, the right side of
    ==/!= is a glob and =~ is a regex. Otherwise -a and -o combine.
    """

    def __init__(self, tokens: list[str], patterns: Optional[list[str]], extended: bool):
        self.tokens = tokens
        self.patterns = patterns
        self.extended = extended
        self.pos = 0
        self.and_op = "&&" if extended else "-a"
        self.or_op = "||" if extended else "-o"

    def _peek(self, offset: int = 0) -> Optional[str]:
        idx = self.pos + offset
        return self.tokens[idx] if idx < len(self.tokens) else None

    def _remaining(self) -> int:
        return len(self.tokens) - self.pos

    def parse(self) -> TestNode:
        if not self.tokens:
            raise TestSyntaxError("expression expected")
        node = self._parse_or()
        if self.pos < len(self.tokens):
            if self.extended:
                raise TestSyntaxError(f"syntax error near `{self.tokens[self.pos]}'")
            raise TestSyntaxError("too many arguments")
        return node

    def _parse_or(self) -> TestNode:
        node = self._parse_and()
        while self._peek() == self.or_op and self._remaining() > 1:
            self.pos += 1
            node = OrTest(node, self._parse_and())
        return node

    def _parse_and(self) -> TestNode:
        node = self._parse_not()
        while self._peek() == self.and_op and self._remaining() > 1:
            self.pos += 1
            node = AndTest(node, self._parse_not())
        return node

    def _parse_not(self) -> TestNode:
        if self._peek() == "!" and self._remaining() > 1:
            # "! = x" compares the string "!"
            if not (self._remaining() == 3 and self._peek(1) in BINARY_OPS):
                self.pos += 1
                return NotTest(self._parse_not())
        return self._parse_primary()

    def _parse_primary(self) -> TestNode:
        tok = self._peek()
        if tok is None:
            raise TestSyntaxError("argument expected")

        # Binary first so that "-f = -f" compares strings.
        op = self._peek(1)
        if op in BINARY_OPS and self._peek(2) is not None:
            if op == "=~" and not self.extended:
                raise TestSyntaxError(f"{op}: binary operator expected")
            right_pattern = None
            if self.extended and self.patterns is not None and op in ("=", "==", "!="):
                right_pattern = self.patterns[self.pos + 2]
            node = BinaryTest(op, tok, self.tokens[self.pos + 2], right_pattern)
            self.pos += 3
            return node

        # "[ 1 -eq ]": a binary operator with nothing to its right.
        if op in BINARY_OPS and tok not in UNARY_OPS and tok not in ("(", "!"):
            if self.extended:
                raise TestSyntaxError("unexpected argument `]]' to conditional binary operator")
            raise TestSyntaxError(f"{tok}: unary operator expected")

        if tok == "(" and self._remaining() > 1:
            self.pos += 1
            inner = self._parse_or()
            if self._peek() != ")":
                raise TestSyntaxError("`)' expected")
            self.pos += 1
            return GroupTest(inner)

        if tok in UNARY_OPS and self._peek(1) is not None:
            self.pos += 2
            return UnaryTest(tok, self.tokens[self.pos - 1])

        if self.extended and tok.startswith("-") and tok in UNARY_OPS:
            raise TestSyntaxError(f"unexpected argument to conditional unary operator `{tok}'")

        self.pos += 1
        return StringTest(tok)


def parse_test_expression(
    tokens: list[str],
    patterns: Optional[list[str]] = None,
    extended: bool = False,
) -> TestNode:
    """Parse expanded test arguments into a TestNode. Raises TestSyntaxError."""
    return _TestParser(tokens, patterns, extended).parse()


async def _file_test(ctx: "InterpreterContext", op: str, operand: str) -> bool:
    path = ctx.fs.resolve_path(ctx.state.cwd, operand)
    try:
        if op in ("-h", "-L"):
            return (await ctx.fs.lstat(path)).is_symbolic_link
        st = await ctx.fs.stat(path)
    except OSError:
        return False
    if op in ("-e", "-a"):
        return True
    if op == "-f":
        return st.is_file
    if op == "-d":
        return st.is_directory
    if op == "-s":
        return st.size > 0
    if op == "-r":
        return bool(st.mode & 0o444)
    if op == "-w":
        return bool(st.mode & 0o222)
    if op == "-x":
        return bool(st.mode & 0o111)
    return False


def _to_int(ctx: "InterpreterContext", value: str, extended: bool) -> int:
    if extended:
        from .expansion import evaluate_arithmetic_text

        try:
            return evaluate_arithmetic_text(ctx, value)
        except ArithmeticEvalError as e:
            raise TestSyntaxError(f"{value}: {e}") from None
    try:
        return int(value.strip())
    except ValueError:
        raise TestSyntaxError(f"{value}: integer expression expected") from None


async def _mtime(ctx: "InterpreterContext", operand: str) -> Optional[float]:
    try:
        return (await ctx.fs.stat(ctx.fs.resolve_path(ctx.state.cwd, operand))).mtime
    except OSError:
        return None


async def _binary_test(ctx: "InterpreterContext", node: BinaryTest, extended: bool) -> bool:
    op, left, right = node.op, node.left, node.right
    if op in ("=", "=="):
        if node.right_pattern is not None:
            return pattern_matches(left, node.right_pattern)
        return left == right
    if op == "!=":
        if node.right_pattern is not None:
            return not pattern_matches(left, node.right_pattern)
        return left != right
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "=~":
        try:
            match = re.search(right, left)
        except re.error as e:
            raise TestSyntaxError(f"invalid regular expression `{right}': {e}") from None
        if match:
            ctx.state.env["BASH_REMATCH"] = match.group(0)
        return match is not None
    if op in NUMERIC_OPS:
        a = _to_int(ctx, left, extended)
        b = _to_int(ctx, right, extended)
        return {
            "-eq": a == b,
            "-ne": a != b,
            "-lt": a < b,
            "-le": a <= b,
            "-gt": a > b,
            "-ge": a >= b,
        }[op]
    left_mtime = await _mtime(ctx, left)
    right_mtime = await _mtime(ctx, right)
    if op == "-nt":
        return left_mtime is not None and (right_mtime is None or left_mtime > right_mtime)
    if op == "-ot":
        return right_mtime is not None and (left_mtime is None or left_mtime < right_mtime)
    # -ef
    if left_mtime is None or right_mtime is None:
        return False
    return await ctx.fs.realpath(ctx.fs.resolve_path(ctx.state.cwd, left)) == await ctx.fs.realpath(
        ctx.fs.resolve_path(ctx.state.cwd, right)
    )


async def evaluate_test_expression(
    ctx: "InterpreterContext", node: TestNode, extended: bool = False
) -> bool:
    """Evaluate a parsed test expression. Raises TestSyntaxError."""
    if isinstance(node, StringTest):
        return node.value != ""
    if isinstance(node, UnaryTest):
        if node.op == "-z":
            return node.operand == ""
        if node.op == "-n":
            return node.operand != ""
        return await _file_test(ctx, node.op, node.operand)
    if isinstance(node, BinaryTest):
        return await _binary_test(ctx, node, extended)
    if isinstance(node, NotTest):
        return not await evaluate_test_expression(ctx, node.operand, extended)
    if isinstance(node, AndTest):
        return await evaluate_test_expression(ctx, node.left, extended) and await evaluate_test_expression(
            ctx, node.right, extended
        )
    if isinstance(node, OrTest):
        return await evaluate_test_expression(ctx, node.left, extended) or await evaluate_test_expression(
            ctx, node.right, extended
        )
    if isinstance(node, GroupTest):
        return await evaluate_test_expression(ctx, node.inner, extended)
    raise TestSyntaxError(f"unknown test node {node!r}")


async def evaluate_top_level_test(
    ctx: "InterpreterContext",
    tokens: list[str],
    patterns: Optional[list[str]] = None,
    extended: bool = False,
) -> tuple[int, str]:
    """Evaluate test arguments; return (exit_code, error message).

    0 = true, 1 = false, 2 = malformed expression.
    """
    if not tokens and not extended:
        return 1, ""
    try:
        node = parse_test_expression(tokens, patterns, extended)
        result = await evaluate_test_expression(ctx, node, extended)
    except TestSyntaxError as e:
        return 2, str(e)
    return (0 if result else 1), ""
