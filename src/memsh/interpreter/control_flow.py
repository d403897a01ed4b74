"""Control Flow Execution.

Handles control flow constructs:
- if/elif/else
- for loops (word lists and C-style)
- while and until loops
- case statements

break and continue arrive here as BreakError/ContinueError. A loop consumes
one level and re-raises when more levels remain and it is nested inside
another loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..ast.types import CaseNode, CStyleForNode, ForNode, IfNode, StatementNode, UntilNode, WhileNode
from ..parser.lexer import is_valid_name
from ..types import ExecResult
from .errors import BreakError, ContinueError, ExecutionLimitError, ExitError, ReturnError
from .expansion import evaluate_arithmetic_word, expand_word, expand_word_pattern, expand_words
from .patterns import pattern_matches

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

_BREAK = "break"
_CONTINUE = "continue"


def _result(stdout: str, stderr: str, exit_code: int) -> ExecResult:
    """Create an ExecResult."""
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


def _failure(stderr: str) -> ExecResult:
    """Create a failed result."""
    return ExecResult(stdout="", stderr=stderr, exit_code=1)


class _LoopOutput:
    """Output accumulated by a loop across iterations."""

    def __init__(self) -> None:
        self.stdout = ""
        self.stderr = ""
        self.exit_code = 0

    def result(self) -> ExecResult:
        return _result(self.stdout, self.stderr, self.exit_code)


def _check_iterations(ctx: "InterpreterContext", kind: str, iterations: int) -> None:
    limit = ctx.limits.max_loop_iterations
    if iterations > limit:
        logger.warning("%s loop exceeded %d iterations", kind, limit)
        raise ExecutionLimitError(f"{kind} loop: too many iterations ({limit})", "iterations")


async def _run_loop_statements(
    ctx: "InterpreterContext", statements: list[StatementNode], out: _LoopOutput
) -> tuple[Optional[str], int]:
    """Run statements of a loop, collecting their output into out.

    Returns (signal, exit_code) where signal is _BREAK or _CONTINUE when
    break/continue targeted this loop. Signals aimed at an enclosing loop
    propagate carrying everything this loop printed so far.
    """
    exit_code = 0
    try:
        for stmt in statements:
            result = await ctx.execute_statement(stmt)
            out.stdout += result.stdout
            out.stderr += result.stderr
            exit_code = result.exit_code
    except (BreakError, ContinueError) as e:
        out.stdout += e.stdout
        out.stderr += e.stderr
        if e.levels > 1 and ctx.state.loop_depth > 1:
            e.levels -= 1
            e.stdout = out.stdout
            e.stderr = out.stderr
            raise
        return (_BREAK if isinstance(e, BreakError) else _CONTINUE), 0
    return None, exit_code


async def _run_body(ctx: "InterpreterContext", body: list[StatementNode], out: _LoopOutput) -> bool:
    """Run one iteration of a loop body. False means the loop should stop."""
    signal, exit_code = await _run_loop_statements(ctx, body, out)
    out.exit_code = exit_code
    return signal != _BREAK


async def execute_if(ctx: "InterpreterContext", node: IfNode) -> ExecResult:
    """Execute an if statement."""
    stdout = ""
    stderr = ""

    for clause in node.clauses:
        cond_result = await execute_condition(ctx, clause.condition)
        stdout += cond_result.stdout
        stderr += cond_result.stderr

        if cond_result.exit_code == 0:
            return await execute_statements(ctx, clause.body, stdout, stderr)

    if node.else_body:
        return await execute_statements(ctx, node.else_body, stdout, stderr)

    return _result(stdout, stderr, 0)


async def execute_for(ctx: "InterpreterContext", node: ForNode) -> ExecResult:
    """Execute `for NAME [in WORDS]; do ...; done`."""
    if not is_valid_name(node.variable):
        return _failure(f"bash: `{node.variable}': not a valid identifier\n")

    if node.words is None:
        values = list(ctx.state.params)
    else:
        values = await expand_words(ctx, node.words)

    out = _LoopOutput()
    iterations = 0
    ctx.state.loop_depth += 1
    try:
        for value in values:
            iterations += 1
            _check_iterations(ctx, "for", iterations)
            ctx.state.env[node.variable] = value
            if not await _run_body(ctx, node.body, out):
                break
    except (ExitError, ReturnError, ExecutionLimitError) as e:
        e.prepend_output(out.stdout, out.stderr)
        raise
    finally:
        ctx.state.loop_depth -= 1

    return out.result()


async def execute_c_style_for(ctx: "InterpreterContext", node: CStyleForNode) -> ExecResult:
    """Execute a C-style for loop: for ((init; cond; update))."""
    if node.init:
        await evaluate_arithmetic_word(ctx, node.init)

    out = _LoopOutput()
    iterations = 0
    ctx.state.loop_depth += 1
    try:
        while True:
            if node.condition and await evaluate_arithmetic_word(ctx, node.condition) == 0:
                break
            iterations += 1
            _check_iterations(ctx, "for", iterations)
            if not await _run_body(ctx, node.body, out):
                break
            # continue still runs the update
            if node.update:
                await evaluate_arithmetic_word(ctx, node.update)
    except (ExitError, ReturnError, ExecutionLimitError) as e:
        e.prepend_output(out.stdout, out.stderr)
        raise
    finally:
        ctx.state.loop_depth -= 1

    return out.result()


async def _execute_conditional_loop(
    ctx: "InterpreterContext",
    kind: str,
    condition: list[StatementNode],
    body: list[StatementNode],
    until: bool,
) -> ExecResult:
    out = _LoopOutput()
    iterations = 0
    ctx.state.loop_depth += 1
    try:
        while True:
            signal, cond_code = await _run_loop_statements(ctx, condition, out)
            if signal == _BREAK:
                break
            if signal == _CONTINUE:
                iterations += 1
                _check_iterations(ctx, kind, iterations)
                continue
            if (cond_code == 0) == until:
                break

            iterations += 1
            _check_iterations(ctx, kind, iterations)
            if not await _run_body(ctx, body, out):
                break
    except (ExitError, ReturnError, ExecutionLimitError) as e:
        e.prepend_output(out.stdout, out.stderr)
        raise
    finally:
        ctx.state.loop_depth -= 1

    return out.result()


async def execute_while(ctx: "InterpreterContext", node: WhileNode) -> ExecResult:
    """Execute a while loop."""
    return await _execute_conditional_loop(ctx, "while", node.condition, node.body, until=False)


async def execute_until(ctx: "InterpreterContext", node: UntilNode) -> ExecResult:
    """Execute an until loop."""
    return await _execute_conditional_loop(ctx, "until", node.condition, node.body, until=True)


async def execute_case(ctx: "InterpreterContext", node: CaseNode) -> ExecResult:
    """Execute a case statement.

    Clauses are tried in order. `;;` ends the statement, `;&` runs the next
    body without testing its patterns, `;;&` goes on testing later clauses.
    """
    stdout = ""
    stderr = ""
    exit_code = 0

    subject = await expand_word(ctx, node.word)

    fall_through = False
    for item in node.items:
        if fall_through:
            matched = True
            fall_through = False
        else:
            matched = False
            for pattern_word in item.patterns:
                if pattern_matches(subject, await expand_word_pattern(ctx, pattern_word)):
                    matched = True
                    break

        if not matched:
            continue

        try:
            for stmt in item.body:
                result = await ctx.execute_statement(stmt)
                stdout += result.stdout
                stderr += result.stderr
                exit_code = result.exit_code
        except (BreakError, ContinueError, ExitError, ReturnError, ExecutionLimitError) as e:
            e.prepend_output(stdout, stderr)
            raise

        if item.terminator == ";&":
            fall_through = True
        elif item.terminator != ";;&":
            break

    return _result(stdout, stderr, exit_code)


async def execute_condition(ctx: "InterpreterContext", condition: list[StatementNode]) -> ExecResult:
    """Execute a condition (list of statements) and return the result."""
    return await execute_statements(ctx, condition)


async def execute_statements(
    ctx: "InterpreterContext",
    statements: list[StatementNode],
    stdout: str = "",
    stderr: str = "",
) -> ExecResult:
    """Execute a list of statements, appending to already collected output."""
    exit_code = 0

    try:
        for stmt in statements:
            result = await ctx.execute_statement(stmt)
            stdout += result.stdout
            stderr += result.stderr
            exit_code = result.exit_code
    except (BreakError, ContinueError, ReturnError, ExitError, ExecutionLimitError) as error:
        error.prepend_output(stdout, stderr)
        raise

    return _result(stdout, stderr, exit_code)
