"""Export builtin implementation.

Usage: export [name[=value] ...]
       export -p
       export -n name

Mark variables for export to leaf commands. With no names (or -p), list
the exported variables.
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _format_export(name: str, value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'declare -x {name}="{escaped}"'


async def handle_export(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the export builtin."""
    from ...types import ExecResult

    remove_export = False
    print_mode = False
    names: list[str] = []

    for i, arg in enumerate(args):
        if arg == "--":
            names.extend(args[i + 1:])
            break
        if arg.startswith("-") and len(arg) > 1 and not names:
            for ch in arg[1:]:
                if ch == "n":
                    remove_export = True
                elif ch == "p":
                    print_mode = True
                else:
                    return ExecResult(stdout="", stderr=f"bash: export: -{ch}: invalid option\n", exit_code=2)
            continue
        names.append(arg)

    env = ctx.state.env
    if not names or print_mode:
        lines = [_format_export(k, v) for k, v in env.exported_env().items()]
        return ExecResult(stdout="".join(line + "\n" for line in lines), stderr="", exit_code=0)

    stderr = ""
    exit_code = 0
    for arg in names:
        name, eq, value = arg.partition("=")
        append = eq and name.endswith("+")
        if append:
            name = name[:-1]
        if not is_valid_name(name):
            stderr += f"bash: export: `{arg}': not a valid identifier\n"
            exit_code = 1
            continue
        if remove_export:
            env.unexport(name)
            continue
        if eq:
            env[name] = env.get(name, "") + value if append else value
        env.export(name)

    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)
