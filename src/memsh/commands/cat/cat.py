"""Cat command implementation.

Usage: cat [-n] [FILE]...

Concatenate FILE(s) to standard output. With no FILE, or when FILE is -,
read standard input.

Options:
  -n, --number    number all output lines
"""

from ...types import CommandContext, ExecResult


def _number_lines(content: str, start: int) -> tuple[str, int]:
    lines = content.split("\n")
    trailing = lines and lines[-1] == ""
    if trailing:
        lines = lines[:-1]
    numbered = []
    for line in lines:
        numbered.append(f"{start:6d}\t{line}")
        start += 1
    text = "\n".join(numbered)
    if trailing:
        text += "\n"
    return text, start


class CatCommand:
    """The cat command."""

    name = "cat"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the cat command."""
        number = False
        files: list[str] = []

        for i, arg in enumerate(args):
            if arg == "--":
                files.extend(args[i + 1:])
                break
            if arg in ("-n", "--number"):
                number = True
            elif arg.startswith("-") and arg != "-":
                return ExecResult(stdout="", stderr=f"cat: invalid option -- '{arg[1:]}'\n", exit_code=1)
            else:
                files.append(arg)

        if not files:
            files = ["-"]

        stdout = ""
        stderr = ""
        exit_code = 0
        line_no = 1
        for file in files:
            if file == "-":
                content = ctx.stdin
            else:
                try:
                    content = await ctx.fs.read_file(ctx.fs.resolve_path(ctx.cwd, file))
                except FileNotFoundError:
                    stderr += f"cat: {file}: No such file or directory\n"
                    exit_code = 1
                    continue
                except IsADirectoryError:
                    stderr += f"cat: {file}: Is a directory\n"
                    exit_code = 1
                    continue
            if number:
                content, line_no = _number_lines(content, line_no)
            stdout += content

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
