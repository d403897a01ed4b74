"""Pwd command implementation.

Usage: pwd [-LP]

Print the name of the current working directory.

Options:
  -L    print the logical directory (default)
  -P    print the directory with symbolic links resolved
"""

from ...types import CommandContext, ExecResult


class PwdCommand:
    """The pwd command."""

    name = "pwd"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the pwd command."""
        physical = False
        for arg in args:
            if not arg.startswith("-"):
                continue
            for c in arg[1:]:
                if c in "LP":
                    physical = c == "P"
                else:
                    return ExecResult(stdout="", stderr=f"pwd: invalid option -- '{c}'\n", exit_code=1)

        cwd = ctx.cwd
        if physical:
            try:
                cwd = await ctx.fs.realpath(cwd)
            except OSError:
                pass
        return ExecResult(stdout=f"{cwd}\n", stderr="", exit_code=0)
