"""Sort command implementation.

Usage: sort [OPTION]... [FILE]...

Write the sorted concatenation of all FILE(s) to standard output.

Options:
  -f, --ignore-case     fold lower case to upper case characters
  -n, --numeric-sort    compare according to string numerical value
  -r, --reverse         reverse the result of comparisons
  -u, --unique          output only the first of an equal run
  -k, --key=POS1[,POS2] sort via a key starting at field POS1 and ending at
                        POS2 (default end of line)
  -t, --field-separator=SEP
                        use SEP instead of non-blank to blank transition
      --help            display this help and exit
"""

import re
from typing import Optional

from ...types import CommandContext, ExecResult

_NUMBER_RE = re.compile(r"^\s*(-?\d+(?:\.\d*)?|-?\.\d+)")
_FIELD_RE = re.compile(r"(\d+)(?:\.\d+)?")
_LONG = {"--ignore-case": "f", "--numeric-sort": "n", "--reverse": "r", "--unique": "u"}

HELP = """\
Usage: sort [OPTION]... [FILE]...
Write sorted concatenation of all FILE(s) to standard output.

  -f, --ignore-case           fold lower case to upper case characters
  -n, --numeric-sort          compare according to string numerical value
  -r, --reverse               reverse the result of comparisons
  -u, --unique                output only the first of an equal run
  -k, --key=POS1[,POS2]       sort via a key; POS1 and POS2 are field numbers
  -t, --field-separator=SEP   use SEP instead of non-blank to blank transition
      --help                  display this help and exit
"""


class SortError(Exception):
    """Bad command line; the message is printed after 'sort: '."""


def _numeric_value(text: str) -> float:
    m = _NUMBER_RE.match(text)
    return float(m.group(1)) if m else 0.0


def _parse_key(pos: str) -> tuple[int, Optional[int]]:
    """Parse POS1[,POS2] into 1-based field numbers."""
    start_text, comma, end_text = pos.partition(",")
    fields = []
    for part, label in ((start_text, "start"), (end_text, "end")):
        if part == "" and label == "end" and not comma:
            fields.append(None)
            continue
        m = _FIELD_RE.fullmatch(part)
        if not m:
            raise SortError(f"invalid number at field {label}: invalid count at start of '{part}'")
        number = int(m.group(1))
        if number == 0:
            raise SortError(f"field number is zero: invalid field specification '{pos}'")
        fields.append(number)
    return fields[0], fields[1]


def _key_text(line: str, key: tuple[int, Optional[int]], separator: Optional[str]) -> str:
    start, end = key
    fields = line.split(separator) if separator is not None else line.split()
    return (separator if separator is not None else " ").join(fields[start - 1:end])


class SortCommand:
    """The sort command."""

    name = "sort"

    def _parse_args(self, args: list[str]) -> tuple[set[str], Optional[tuple], Optional[str], list[str]]:
        flags: set[str] = set()
        key = None
        separator = None
        files: list[str] = []

        def set_separator(value: str) -> None:
            nonlocal separator
            if value == "":
                raise SortError("empty tab")
            if len(value) > 1:
                raise SortError(f"multi-character tab '{value}'")
            separator = value

        i = 0
        while i < len(args):
            arg = args[i]
            i += 1
            if arg == "--":
                files.extend(args[i:])
                break
            if arg in _LONG:
                flags.add(_LONG[arg])
            elif arg.startswith("--key=") or arg.startswith("--field-separator="):
                name, _, value = arg.partition("=")
                if name == "--key":
                    key = _parse_key(value)
                else:
                    set_separator(value)
            elif arg in ("--key", "--field-separator"):
                if i >= len(args):
                    raise SortError(f"option '{arg}' requires an argument")
                if arg == "--key":
                    key = _parse_key(args[i])
                else:
                    set_separator(args[i])
                i += 1
            elif arg.startswith("--"):
                raise SortError(f"unrecognized option '{arg}'")
            elif arg.startswith("-") and arg != "-":
                j = 1
                while j < len(arg):
                    c = arg[j]
                    j += 1
                    if c in "kt":
                        # The option value is the rest of this word or the next word.
                        value = arg[j:]
                        if not value:
                            if i >= len(args):
                                raise SortError(f"option requires an argument -- '{c}'")
                            value = args[i]
                            i += 1
                        if c == "k":
                            key = _parse_key(value)
                        else:
                            set_separator(value)
                        break
                    if c not in "fnru":
                        raise SortError(f"invalid option -- '{c}'")
                    flags.add(c)
            else:
                files.append(arg)
        return flags, key, separator, files

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the sort command."""
        if "--help" in args:
            return ExecResult(stdout=HELP, stderr="", exit_code=0)
        try:
            flags, key, separator, files = self._parse_args(args)
        except SortError as e:
            return ExecResult(stdout="", stderr=f"sort: {e}\n", exit_code=2)

        content = ""
        for file in files or ["-"]:
            if file == "-":
                text = ctx.stdin
            else:
                try:
                    text = await ctx.fs.read_file(ctx.fs.resolve_path(ctx.cwd, file))
                except FileNotFoundError:
                    return ExecResult(
                        stdout="", stderr=f"sort: cannot read: {file}: No such file or directory\n", exit_code=2
                    )
                except IsADirectoryError:
                    return ExecResult(stdout="", stderr=f"sort: read failed: {file}: Is a directory\n", exit_code=2)
            if text and not text.endswith("\n"):
                text += "\n"
            content += text

        def compare_key(line: str):
            text = _key_text(line, key, separator) if key is not None else line
            if "n" in flags:
                return _numeric_value(text)
            if "f" in flags:
                return text.upper()
            return text

        lines = content.splitlines()
        # Whole-line comparison breaks ties between equal keys.
        lines.sort(key=lambda line: (compare_key(line), line), reverse="r" in flags)

        if "u" in flags:
            unique: list[str] = []
            seen: set = set()
            for line in lines:
                marker = compare_key(line)
                if marker not in seen:
                    seen.add(marker)
                    unique.append(line)
            lines = unique

        return ExecResult(stdout="".join(line + "\n" for line in lines), stderr="", exit_code=0)
