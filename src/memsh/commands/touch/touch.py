"""Touch command implementation.

Usage: touch [-c] FILE...

Update the modification time of each FILE to the current time. A FILE
argument that does not exist is created empty.

Options:
  -c, --no-create  do not create any files
"""

from ...types import CommandContext, ExecResult


class TouchCommand:
    """The touch command."""

    name = "touch"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the touch command."""
        no_create = False
        files: list[str] = []

        for i, arg in enumerate(args):
            if arg == "--":
                files.extend(args[i + 1:])
                break
            if arg == "--no-create":
                no_create = True
            elif arg.startswith("-") and arg != "-":
                for c in arg[1:]:
                    if c == "c":
                        no_create = True
                    else:
                        return ExecResult(stdout="", stderr=f"touch: invalid option -- '{c}'\n", exit_code=1)
            else:
                files.append(arg)

        if not files:
            return ExecResult(stdout="", stderr="touch: missing file operand\n", exit_code=1)

        stderr = ""
        exit_code = 0
        for file in files:
            path = ctx.fs.resolve_path(ctx.cwd, file)
            try:
                if await ctx.fs.exists(path):
                    if not await ctx.fs.is_directory(path):
                        # Rewriting the content refreshes mtime.
                        await ctx.fs.write_file(path, await ctx.fs.read_file(path))
                elif not no_create:
                    await ctx.fs.write_file(path, "")
            except FileNotFoundError:
                stderr += f"touch: cannot touch '{file}': No such file or directory\n"
                exit_code = 1
            except NotADirectoryError:
                stderr += f"touch: cannot touch '{file}': Not a directory\n"
                exit_code = 1

        return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)
