"""Head command implementation.

Usage: head [-n NUM | -NUM] [FILE]...

Print the first 10 lines of each FILE. With more than one FILE, precede
each with a header giving the file name.

Options:
  -n, --lines=NUM   print the first NUM lines; with -NUM, all but the last NUM
"""

from typing import Optional

from ...types import CommandContext, ExecResult


def parse_line_count(args: list[str], command: str) -> tuple[Optional[str], list[str], str]:
    """Pull -n NUM, -nNUM, --lines=NUM or -NUM out of args.

    Returns (count text or None, remaining files, error message).
    """
    count: Optional[str] = None
    files: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "-n" or arg == "--lines":
            if i + 1 >= len(args):
                return None, [], f"{command}: option requires an argument -- 'n'"
            count = args[i + 1]
            i += 2
            continue
        if arg.startswith("--lines="):
            count = arg[len("--lines="):]
        elif arg.startswith("-n"):
            count = arg[2:]
        elif len(arg) > 1 and arg[0] == "-" and arg[1:].isdigit():
            count = arg[1:]
        elif arg.startswith("-") and arg != "-":
            return None, [], f"{command}: invalid option -- '{arg[1:]}'"
        else:
            files.append(arg)
        i += 1
    return count, files, ""


def split_lines(content: str) -> list[str]:
    """Split into lines, each keeping its newline."""
    return content.splitlines(keepends=True)


class HeadCommand:
    """The head command."""

    name = "head"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the head command."""
        count_text, files, error = parse_line_count(args, "head")
        if error:
            return ExecResult(stdout="", stderr=error + "\n", exit_code=1)

        count = 10
        all_but_last = False
        if count_text is not None:
            all_but_last = count_text.startswith("-")
            try:
                count = abs(int(count_text))
            except ValueError:
                return ExecResult(stdout="", stderr=f"head: invalid number of lines: '{count_text}'\n", exit_code=1)

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
                    stderr += f"head: cannot open '{file}' for reading: No such file or directory\n"
                    exit_code = 1
                    continue
                except IsADirectoryError:
                    stderr += f"head: error reading '{file}': Is a directory\n"
                    exit_code = 1
                    continue
            if len(files) > 1:
                stdout += ("\n" if index else "") + f"==> {file} <==\n"
            lines = split_lines(content)
            selected = lines[:max(len(lines) - count, 0)] if all_but_last else lines[:count]
            stdout += "".join(selected)

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
