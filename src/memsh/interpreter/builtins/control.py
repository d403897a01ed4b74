"""Control flow builtins: break, continue, return, exit.

Each one unwinds the interpreter by raising the matching signal from
..errors; loops, function calls and the session catch them.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

from ..errors import BreakError, ContinueError, ExitError, ReturnError


def _loop_levels(name: str, args: list[str]) -> int:
    if not args:
        return 1
    try:
        levels = int(args[0])
    except ValueError:
        raise ExitError(128, stderr=f"bash: {name}: {args[0]}: numeric argument required\n") from None
    if levels < 1:
        raise ExitError(1, stderr=f"bash: {name}: {args[0]}: loop count out of range\n")
    return levels


def _outside_loop(name: str) -> "ExecResult":
    from ...types import ExecResult

    return ExecResult(
        stdout="",
        stderr=f"bash: {name}: only meaningful in a `for', `while', or `until' loop\n",
        exit_code=0,
    )


async def handle_break(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the break builtin.

    Usage: break [n]

    Exit from within a for, while or until loop. If n is specified, break
    out of n enclosing loops.
    """
    levels = _loop_levels("break", args)
    if ctx.state.loop_depth == 0:
        return _outside_loop("break")
    raise BreakError(levels=levels)


async def handle_continue(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the continue builtin.

    Usage: continue [n]

    Resume the next iteration of an enclosing for, while or until loop.
    If n is specified, resume at the nth enclosing loop.
    """
    levels = _loop_levels("continue", args)
    if ctx.state.loop_depth == 0:
        return _outside_loop("continue")
    raise ContinueError(levels=levels)


async def handle_return(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the return builtin.

    Usage: return [n]

    Return from a shell function with status n (0-255). Without n the
    status is that of the last command executed.
    """
    from ...types import ExecResult

    if ctx.state.call_depth == 0:
        return ExecResult(
            stdout="",
            stderr="bash: return: can only `return' from a function or sourced script\n",
            exit_code=1,
        )
    exit_code = ctx.state.last_exit_code
    if args:
        try:
            exit_code = int(args[0]) & 255
        except ValueError:
            return ExecResult(
                stdout="",
                stderr=f"bash: return: {args[0]}: numeric argument required\n",
                exit_code=2,
            )
    raise ReturnError(exit_code)


async def handle_exit(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the exit builtin.

    Usage: exit [n]

    Stop the script with status n. If n is omitted, the exit status is
    that of the last command executed.
    """
    exit_code = ctx.state.last_exit_code
    if args:
        try:
            exit_code = int(args[0]) & 255
        except ValueError:
            raise ExitError(2, stderr=f"bash: exit: {args[0]}: numeric argument required\n") from None
    raise ExitError(exit_code)
