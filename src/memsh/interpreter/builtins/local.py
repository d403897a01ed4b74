"""Local builtin implementation.

Usage: local [name[=value] ...]

Create variables in the scope of the running function. They disappear when
the function returns and hide any outer variable of the same name meanwhile.
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_local(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the local builtin."""
    from ...types import ExecResult

    if ctx.state.call_depth == 0:
        return ExecResult(stdout="", stderr="bash: local: can only be used in a function\n", exit_code=1)

    env = ctx.state.env
    stderr = ""
    exit_code = 0
    for arg in args:
        name, eq, value = arg.partition("=")
        if not is_valid_name(name):
            stderr += f"bash: local: `{arg}': not a valid identifier\n"
            exit_code = 1
            continue
        if eq:
            env.set_local(name, value)
        elif not env.is_local(name):
            # `local x` starts out empty
            env.set_local(name, "")

    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)
