"""Wc command implementation.

Usage: wc [-clw] [FILE]...

Print newline, word and byte counts for each FILE, and a total line if
more than one FILE is given. With no FILE, or when FILE is -, read
standard input.

Options:
  -c, --bytes   print the byte counts
  -l, --lines   print the newline counts
  -w, --words   print the word counts
"""

from ...types import CommandContext, ExecResult

_LONG = {"--bytes": "c", "--lines": "l", "--words": "w", "--chars": "m"}


def _counts(content: str) -> dict[str, int]:
    return {
        "l": content.count("\n"),
        "w": len(content.split()),
        "c": len(content.encode("utf-8")),
        "m": len(content),
    }


class WcCommand:
    """The wc command."""

    name = "wc"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the wc command."""
        selected: list[str] = []
        files: list[str] = []
        for arg in args:
            if arg in _LONG:
                selected.append(_LONG[arg])
            elif arg.startswith("-") and arg != "-":
                for c in arg[1:]:
                    if c not in "clwm":
                        return ExecResult(stdout="", stderr=f"wc: invalid option -- '{c}'\n", exit_code=1)
                    selected.append(c)
            else:
                files.append(arg)

        # Output order is always lines, words, then bytes/chars.
        columns = [c for c in "lwmc" if c in selected] or ["l", "w", "c"]

        rows: list[tuple[dict[str, int], str]] = []
        stderr = ""
        exit_code = 0
        for file in files or ["-"]:
            if file == "-":
                content = ctx.stdin
            else:
                try:
                    content = await ctx.fs.read_file(ctx.fs.resolve_path(ctx.cwd, file))
                except FileNotFoundError:
                    stderr += f"wc: {file}: No such file or directory\n"
                    exit_code = 1
                    continue
                except IsADirectoryError:
                    stderr += f"wc: {file}: Is a directory\n"
                    exit_code = 1
                    continue
            rows.append((_counts(content), file if files else ""))

        if len(rows) > 1:
            total = {k: sum(r[0][k] for r in rows) for k in "lwcm"}
            rows.append((total, "total"))

        # A single count from stdin is printed bare; otherwise columns are aligned.
        if len(columns) == 1 and not files:
            width = 0
        else:
            width = max([len(str(r[0][c])) for r in rows for c in columns] + [1])
            if not files:
                width = max(width, 7)
        stdout = ""
        for counts, name in rows:
            line = " ".join(str(counts[c]).rjust(width) for c in columns)
            stdout += (f"{line} {name}" if name else line) + "\n"

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
