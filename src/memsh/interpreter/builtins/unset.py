"""Unset builtin implementation.

Usage: unset [-f] [-v] [name ...]

Remove variables or functions.

Options:
  -v  Treat each name as a variable name (default)
  -f  Treat each name as a function name
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_unset(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the unset builtin."""
    from ...types import ExecResult

    mode = "variable"
    names: list[str] = []
    for arg in args:
        if arg == "-v" and not names:
            mode = "variable"
        elif arg == "-f" and not names:
            mode = "function"
        elif arg.startswith("-") and not names:
            return ExecResult(stdout="", stderr=f"bash: unset: {arg}: invalid option\n", exit_code=2)
        else:
            names.append(arg)

    env = ctx.state.env
    stderr = ""
    exit_code = 0
    for name in names:
        if mode == "function":
            ctx.state.functions.pop(name, None)
            continue
        if not is_valid_name(name):
            stderr += f"bash: unset: `{name}': not a valid identifier\n"
            exit_code = 1
            continue
        if name in env:
            del env[name]
        else:
            # bash falls back to a function of that name
            ctx.state.functions.pop(name, None)

    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)
