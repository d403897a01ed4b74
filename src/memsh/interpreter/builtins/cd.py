"""Cd builtin implementation.

Usage: cd [dir]
       cd -

Change the current working directory to dir. If dir is not specified,
change to $HOME. If dir is -, change to the previous directory and print it.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_cd(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the cd builtin."""
    from ...types import ExecResult

    positional: list[str] = []
    for i, a in enumerate(args):
        if a == "--":
            positional.extend(args[i + 1:])
            break
        if a in ("-L", "-P"):
            continue
        if a.startswith("-") and a != "-":
            return ExecResult(stdout="", stderr=f"bash: cd: {a}: invalid option\n", exit_code=2)
        positional.append(a)

    if len(positional) > 1:
        return ExecResult(stdout="", stderr="bash: cd: too many arguments\n", exit_code=1)

    if not positional:
        target = ctx.state.env.get("HOME", "/")
    elif positional[0] == "-":
        target = ctx.state.previous_dir
        if not target:
            return ExecResult(stdout="", stderr="bash: cd: OLDPWD not set\n", exit_code=1)
    else:
        target = positional[0]

    new_dir = ctx.fs.resolve_path(ctx.state.cwd, target)

    # Nothing changes unless the target is an existing directory.
    if not await ctx.fs.exists(new_dir):
        return ExecResult(stdout="", stderr=f"bash: cd: {target}: No such file or directory\n", exit_code=1)
    if not await ctx.fs.is_directory(new_dir):
        return ExecResult(stdout="", stderr=f"bash: cd: {target}: Not a directory\n", exit_code=1)

    old_dir = ctx.state.cwd
    ctx.state.previous_dir = old_dir
    ctx.state.cwd = new_dir
    ctx.state.env["OLDPWD"] = old_dir
    ctx.state.env["PWD"] = new_dir

    stdout = new_dir + "\n" if positional and positional[0] == "-" else ""
    return ExecResult(stdout=stdout, stderr="", exit_code=0)
