"""Test builtin implementation.

Usage: test EXPRESSION
       [ EXPRESSION ]

File operators:
  -e FILE   FILE exists
  -f FILE   FILE exists and is a regular file
  -d FILE   FILE exists and is a directory
  -s FILE   FILE exists and has size greater than zero
  -r/-w/-x  FILE exists and its mode grants read/write/execute
  -h/-L     FILE exists and is a symbolic link
  FILE1 -nt FILE2 / FILE1 -ot FILE2   compare modification times

String operators:
  -z STRING, -n STRING, STRING, S1 = S2, S1 != S2, S1 < S2, S1 > S2

Integer operators:
  N1 -eq N2, -ne, -lt, -le, -gt, -ge

Combinators: ! EXPR, EXPR -a EXPR, EXPR -o EXPR, ( EXPR )

Exit status is 0 for true, 1 for false and 2 for a malformed expression.
"""

from typing import TYPE_CHECKING

from ..conditionals import evaluate_top_level_test

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_test(ctx: "InterpreterContext", args: list[str], name: str = "test") -> "ExecResult":
    """Execute the test builtin."""
    from ...types import ExecResult

    exit_code, message = await evaluate_top_level_test(ctx, args)
    stderr = f"bash: {name}: {message}\n" if message else ""
    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)


async def handle_bracket(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the [ builtin (test with a closing ])."""
    from ...types import ExecResult

    if not args or args[-1] != "]":
        return ExecResult(stdout="", stderr="bash: [: missing `]'\n", exit_code=2)
    return await handle_test(ctx, args[:-1], name="[")
