"""Grep command implementation.

Usage: grep [OPTION]... PATTERN [FILE]...

Print lines of each FILE that match PATTERN (a Python regular expression).
With no FILE, or when FILE is -, read standard input.

Options:
  -i, --ignore-case          ignore case distinctions
  -v, --invert-match         select non-matching lines
  -c, --count                print only a count of matching lines per FILE
  -l, --files-with-matches   print only names of FILEs with matches
  -n, --line-number          print line number with output lines
  -H, --with-filename        print the file name for each match
  -h, --no-filename          suppress the file name prefix on output
  -o, --only-matching        show only the part of a line matching PATTERN
  -q, --quiet, --silent      suppress all normal output
  -r, -R, --recursive        search directories recursively
  -E, --extended-regexp      accepted for compatibility
  -F, --fixed-strings        PATTERN is a literal string
  -w, --word-regexp          match only whole words
  -x, --line-regexp          match only whole lines
  -e PATTERN                 use PATTERN for matching

Exit status is 0 if a line is selected, 1 if no lines were selected and
2 if an error occurred.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ...types import CommandContext, ExecResult

_SHORT_FLAGS = {
    "i": "ignore_case",
    "v": "invert",
    "c": "count",
    "l": "files_with_matches",
    "n": "line_numbers",
    "o": "only_matching",
    "q": "quiet",
    "r": "recursive",
    "R": "recursive",
    "E": "extended",
    "F": "fixed",
    "w": "word",
    "x": "line",
}

_LONG_FLAGS = {
    "--ignore-case": "ignore_case",
    "--invert-match": "invert",
    "--count": "count",
    "--files-with-matches": "files_with_matches",
    "--line-number": "line_numbers",
    "--only-matching": "only_matching",
    "--quiet": "quiet",
    "--silent": "quiet",
    "--recursive": "recursive",
    "--extended-regexp": "extended",
    "--fixed-strings": "fixed",
    "--word-regexp": "word",
    "--line-regexp": "line",
}


@dataclass
class _GrepOptions:
    ignore_case: bool = False
    invert: bool = False
    count: bool = False
    files_with_matches: bool = False
    line_numbers: bool = False
    with_filename: Optional[bool] = None
    only_matching: bool = False
    quiet: bool = False
    recursive: bool = False
    extended: bool = False
    fixed: bool = False
    word: bool = False
    line: bool = False


def _usage_error(message: str) -> ExecResult:
    return ExecResult(stdout="", stderr=f"grep: {message}\n", exit_code=2)


class GrepCommand:
    """The grep command."""

    name = "grep"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the grep command."""
        opts = _GrepOptions()
        pattern: Optional[str] = None
        files: list[str] = []

        i = 0
        while i < len(args):
            arg = args[i]
            if arg == "--":
                rest = args[i + 1:]
                if pattern is None and rest:
                    pattern, rest = rest[0], rest[1:]
                files.extend(rest)
                break
            if arg.startswith("--"):
                if arg == "--with-filename":
                    opts.with_filename = True
                elif arg == "--no-filename":
                    opts.with_filename = False
                elif arg in _LONG_FLAGS:
                    setattr(opts, _LONG_FLAGS[arg], True)
                else:
                    return _usage_error(f"unrecognized option '{arg}'")
            elif arg.startswith("-") and arg != "-":
                for j, c in enumerate(arg[1:], 1):
                    if c == "e":
                        value = arg[j + 1:]
                        if not value:
                            i += 1
                            if i >= len(args):
                                return _usage_error("option requires an argument -- 'e'")
                            value = args[i]
                        pattern = value
                        break
                    if c == "H":
                        opts.with_filename = True
                    elif c == "h":
                        opts.with_filename = False
                    elif c in _SHORT_FLAGS:
                        setattr(opts, _SHORT_FLAGS[c], True)
                    else:
                        return _usage_error(f"invalid option -- '{c}'")
            elif pattern is None:
                pattern = arg
            else:
                files.append(arg)
            i += 1

        if pattern is None:
            return _usage_error("pattern not specified")

        if opts.fixed:
            pattern = re.escape(pattern)
        if opts.word:
            pattern = rf"\b(?:{pattern})\b"
        if opts.line:
            pattern = rf"^(?:{pattern})$"
        try:
            regex = re.compile(pattern, re.IGNORECASE if opts.ignore_case else 0)
        except re.error as e:
            return _usage_error(f"invalid pattern '{pattern}': {e}")

        if not files:
            files = ["."] if opts.recursive else ["-"]
        if opts.with_filename is None:
            opts.with_filename = len(files) > 1 or opts.recursive

        stdout = ""
        stderr = ""
        found = False
        for file, content, error in await self._sources(files, opts.recursive, ctx):
            if error:
                stderr += f"grep: {file}: {error}\n"
                continue
            output, matched = self._search(regex, file, content, opts)
            if matched:
                found = True
                if opts.quiet:
                    return ExecResult(stdout="", stderr="", exit_code=0)
            stdout += output

        if stderr and not found:
            return ExecResult(stdout=stdout, stderr=stderr, exit_code=2)
        return ExecResult(stdout="" if opts.quiet else stdout, stderr=stderr, exit_code=0 if found else 1)

    async def _sources(
        self, files: list[str], recursive: bool, ctx: CommandContext
    ) -> list[tuple[str, str, str]]:
        """Collect (display name, content, error message) for every input."""
        sources: list[tuple[str, str, str]] = []
        for file in files:
            if file == "-":
                sources.append(("(standard input)", ctx.stdin, ""))
                continue
            path = ctx.fs.resolve_path(ctx.cwd, file)
            if not await ctx.fs.exists(path):
                sources.append((file, "", "No such file or directory"))
                continue
            if await ctx.fs.is_directory(path):
                if not recursive:
                    sources.append((file, "", "Is a directory"))
                    continue
                prefix = path.rstrip("/") + "/"
                for candidate in ctx.fs.get_all_paths():
                    if candidate.startswith(prefix) and not await ctx.fs.is_directory(candidate):
                        name = file.rstrip("/") + "/" + candidate[len(prefix):]
                        sources.append((name, await ctx.fs.read_file(candidate), ""))
                continue
            sources.append((file, await ctx.fs.read_file(path), ""))
        return sources

    def _search(self, regex: re.Pattern, file: str, content: str, opts: _GrepOptions) -> tuple[str, bool]:
        lines = content.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        prefix = f"{file}:" if opts.with_filename else ""
        out: list[str] = []
        count = 0
        for number, line in enumerate(lines, 1):
            match = regex.search(line)
            if bool(match) == opts.invert:
                continue
            count += 1
            if opts.count or opts.files_with_matches or opts.quiet:
                continue
            head = prefix + (f"{number}:" if opts.line_numbers else "")
            if opts.only_matching and not opts.invert:
                out.extend(head + m.group(0) for m in regex.finditer(line) if m.group(0))
            else:
                out.append(head + line)

        if opts.count:
            out = [f"{prefix}{count}"]
        elif opts.files_with_matches:
            out = [file] if count else []
        text = "".join(line + "\n" for line in out)
        return text, count > 0
