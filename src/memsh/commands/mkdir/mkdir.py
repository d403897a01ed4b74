"""Mkdir command implementation.

Usage: mkdir [-pv] DIRECTORY...

Create the DIRECTORY(ies), if they do not already exist.

Options:
  -p, --parents   no error if existing, make parent directories as needed
  -v, --verbose   print a message for each created directory
"""

from ...types import CommandContext, ExecResult


class MkdirCommand:
    """The mkdir command."""

    name = "mkdir"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the mkdir command."""
        parents = False
        verbose = False
        dirs: list[str] = []

        for arg in args:
            if arg == "--parents":
                parents = True
            elif arg == "--verbose":
                verbose = True
            elif arg.startswith("-") and arg != "-":
                for c in arg[1:]:
                    if c == "p":
                        parents = True
                    elif c == "v":
                        verbose = True
                    else:
                        return ExecResult(stdout="", stderr=f"mkdir: invalid option -- '{c}'\n", exit_code=1)
            else:
                dirs.append(arg)

        if not dirs:
            return ExecResult(stdout="", stderr="mkdir: missing operand\n", exit_code=1)

        stdout = ""
        stderr = ""
        exit_code = 0
        for d in dirs:
            path = ctx.fs.resolve_path(ctx.cwd, d)
            try:
                await ctx.fs.mkdir(path, recursive=parents)
            except FileExistsError:
                stderr += f"mkdir: cannot create directory '{d}': File exists\n"
                exit_code = 1
                continue
            except FileNotFoundError:
                stderr += f"mkdir: cannot create directory '{d}': No such file or directory\n"
                exit_code = 1
                continue
            except NotADirectoryError:
                stderr += f"mkdir: cannot create directory '{d}': Not a directory\n"
                exit_code = 1
                continue
            if verbose:
                stdout += f"mkdir: created directory '{d}'\n"

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
