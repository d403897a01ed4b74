"""Tail command implementation.

Usage: tail [-n NUM | -NUM | -n +NUM] [FILE]...

Print the last 10 lines of each FILE. With more than one FILE, precede
each with a header giving the file name.

Options:
  -n, --lines=NUM   print the last NUM lines; with +NUM, start at line NUM
"""

from ..head.head import parse_line_count, split_lines
from ...types import CommandContext, ExecResult


class TailCommand:
    """The tail command."""

    name = "tail"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the tail command."""
        count_text, files, error = parse_line_count(args, "tail")
        if error:
            return ExecResult(stdout="", stderr=error + "\n", exit_code=1)

        count = 10
        from_start = False
        if count_text is not None:
            from_start = count_text.startswith("+")
            try:
                count = abs(int(count_text))
            except ValueError:
                return ExecResult(stdout="", stderr=f"tail: invalid number of lines: '{count_text}'\n", exit_code=1)

        if not files:
            files = ["-"]

        stdout = ""
        stderr = ""
        exit_code = 0
        for index, file in enumerate(files):
            if file == "-":
                content = ctx.stdin
            else:
                try:
                    content = await ctx.fs.read_file(ctx.fs.resolve_path(ctx.cwd, file))
                except FileNotFoundError:
                    stderr += f"tail: cannot open '{file}' for reading: No such file or directory\n"
                    exit_code = 1
                    continue
                except IsADirectoryError:
                    stderr += f"tail: error reading '{file}': Is a directory\n"
                    exit_code = 1
                    continue
            if len(files) > 1:
                stdout += ("\n" if index else "") + f"==> {file} <==\n"
            lines = split_lines(content)
            if from_start:
                selected = lines[max(count - 1, 0):]
            else:
                selected = lines[max(len(lines) - count, 0):] if count else []
            stdout += "".join(selected)

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
