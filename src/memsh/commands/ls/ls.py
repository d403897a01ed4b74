"""Ls command implementation.

Usage: ls [-1aAdlR] [--all] [FILE]...

List directory contents, sorted by name.

Options:
  -a, --all           do not ignore entries starting with .
  -A, --almost-all    same as -a; . and .. are never listed
  -d, --directory     list directories themselves, not their contents
  -l                  use a long listing format
  -1                  list one file per line (the only layout; accepted for compatibility)
  -R, --recursive     list subdirectories recursively
"""

import time

from ...types import CommandContext, ExecResult, FsStat

_LONG_OPTIONS = {
    "--all": "-a",
    "--almost-all": "-A",
    "--directory": "-d",
    "--recursive": "-R",
}


def _mode_string(st: FsStat) -> str:
    kind = "d" if st.is_directory else "l" if st.is_symbolic_link else "-"
    bits = ""
    for shift in (6, 3, 0):
        part = (st.mode >> shift) & 0o7
        bits += ("r" if part & 4 else "-") + ("w" if part & 2 else "-") + ("x" if part & 1 else "-")
    return kind + bits


def _long_line(name: str, st: FsStat) -> str:
    stamp = time.strftime("%b %d %H:%M", time.localtime(st.mtime))
    return f"{_mode_string(st)} 1 user user {st.size:>6} {stamp} {name}"


class LsCommand:
    """The ls command."""

    name = "ls"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the ls command."""
        show_hidden = False
        directory_only = False
        long_format = False
        recursive = False
        paths: list[str] = []

        for arg in args:
            if arg in _LONG_OPTIONS:
                arg = _LONG_OPTIONS[arg]
            elif arg.startswith("--"):
                return ExecResult(stdout="", stderr=f"ls: unrecognized option '{arg}'\n", exit_code=2)
            if arg.startswith("-") and arg != "-":
                for c in arg[1:]:
                    if c in "aA":
                        show_hidden = True
                    elif c == "d":
                        directory_only = True
                    elif c == "l":
                        long_format = True
                    elif c == "R":
                        recursive = True
                    elif c == "1":
                        pass
                    else:
                        return ExecResult(stdout="", stderr=f"ls: invalid option -- '{c}'\n", exit_code=2)
            else:
                paths.append(arg)

        if not paths:
            paths = ["."]

        stdout = ""
        stderr = ""
        exit_code = 0
        files: list[str] = []
        directories: list[str] = []
        for path in sorted(paths):
            full = ctx.fs.resolve_path(ctx.cwd, path)
            if not await ctx.fs.exists(full):
                stderr += f"ls: cannot access '{path}': No such file or directory\n"
                exit_code = 2
            elif await ctx.fs.is_directory(full) and not directory_only:
                directories.append(path)
            else:
                files.append(path)

        for path in files:
            full = ctx.fs.resolve_path(ctx.cwd, path)
            stdout += (_long_line(path, await ctx.fs.lstat(full)) if long_format else path) + "\n"

        show_headers = len(paths) > 1 or recursive
        queue = list(directories)
        first = not files
        while queue:
            path = queue.pop(0)
            full = ctx.fs.resolve_path(ctx.cwd, path)
            names = await ctx.fs.readdir(full)
            if not show_hidden:
                names = [n for n in names if not n.startswith(".")]

            if show_headers:
                stdout += ("" if first else "\n") + f"{path}:\n"
            first = False
            for name in names:
                entry = ctx.fs.resolve_path(full, name)
                stdout += (_long_line(name, await ctx.fs.lstat(entry)) if long_format else name) + "\n"

            if recursive:
                subdirs = []
                for name in names:
                    if await ctx.fs.is_directory(ctx.fs.resolve_path(full, name)):
                        subdirs.append(f"{path.rstrip('/')}/{name}")
                queue[0:0] = subdirs

        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
