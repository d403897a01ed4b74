"""Rm command implementation.

Usage: rm [-rfv] FILE...

Remove each FILE. Directories need -r.

Options:
  -f, --force       ignore nonexistent files, never fail on them
  -r, -R, --recursive  remove directories and their contents recursively
  -v, --verbose     explain what is being done
"""

from ...types import CommandContext, ExecResult


class RmCommand:
    """The rm command."""

    name = "rm"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the rm command."""
        force = False
        recursive = False
        verbose = False
        files: list[str] = []

        for i, arg in enumerate(args):
            if arg == "--":
                files.extend(args[i + 1:])
                break
            if arg == "--force":
                force = True
            elif arg == "--recursive":
                recursive = True
            elif arg == "--verbose":
                verbose = True
            elif arg.startswith("-") and arg != "-":
                for c in arg[1:]:
                    if c == "f":
                        force = True
                    elif c in "rR":
                        recursive = True
                    elif c == "v":
                        verbose = True
                    else:
                        return ExecResult(stdout="", stderr=f"rm: invalid option -- '{c}'\n", exit_code=1)
            else:
                files.append(arg)

        if not files:
            if force:
                return ExecResult(stdout="", stderr="", exit_code=0)
            return ExecResult(stdout="", stderr="rm: missing operand\n", exit_code=1)

        stdout = ""
        stderr = ""
        exit_code = 0
        for file in files:
            path = ctx.fs.resolve_path(ctx.cwd, file)
            if path == "/":
                stderr += "rm: it is dangerous to operate recursively on '/'\n"
                exit_code = 1
                continue
            if not await ctx.fs.exists(path):
                if not force:
                    stderr += f"rm: cannot remove '{file}': No such file or directory\n"
                    exit_code = 1
                continue
            if await ctx.fs.is_directory(path) and not recursive:
                stderr += f"rm: cannot remove '{file}': Is a directory\n"
                exit_code = 1
                continue
            try:
                await ctx.fs.rm(path, recursive=recursive, force=force)
            except OSError as e:
                stderr += f"rm: cannot remove '{file}': {e.strerror or e}\n"
                exit_code = 1
                continue
            if verbose:
                stdout += f"removed '{file}'\n"

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
