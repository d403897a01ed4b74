"""Redirection handling.

Redirections are applied in two steps around the command they belong to:

1. prepare_redirections() walks them left to right before the command runs.
   Input redirections (<, <<, <<-, <<<) produce the command's stdin. Output
   redirections open (create or truncate) their files and record where each
   file descriptor now points, so `>f 2>&1` and `2>&1 >f` differ as in bash.
2. RedirectionPlan.apply() routes the captured stdout/stderr of the finished
   command to those destinations.

Failures (missing input file, redirect to a directory, empty target) raise
RedirectionError; the caller reports it without running the command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..ast.types import HereDocNode, RedirectionNode
from ..types import ExecResult
from .expansion import expand_word

if TYPE_CHECKING:
    from .types import InterpreterContext

INPUT_OPERATORS = frozenset({"<", "<<", "<<-", "<<<"})
_DEV_NULL = ("/dev/null", "/dev/zero")


class RedirectionError(Exception):
    """A redirection could not be set up; the message is the stderr line."""


@dataclass(frozen=True)
class _Destination:
    """Where a file descriptor writes: the result's stdout/stderr, a file or nowhere."""

    kind: str
    """"stdout", "stderr", "file" or "null"."""
    path: str = ""


_STDOUT = _Destination("stdout")
_STDERR = _Destination("stderr")
_NULL = _Destination("null")


@dataclass
class RedirectionPlan:
    """Redirections of one command, ready to be applied to its output."""

    stdin: str
    fds: dict[int, _Destination] = field(default_factory=lambda: {1: _STDOUT, 2: _STDERR})

    @property
    def is_identity(self) -> bool:
        return self.fds.get(1) == _STDOUT and self.fds.get(2) == _STDERR

    async def apply(self, ctx: "InterpreterContext", result: ExecResult) -> ExecResult:
        """Route the command's output through the file descriptor table."""
        if self.is_identity:
            return result
        stdout = ""
        stderr = ""
        writes: dict[str, str] = {}
        for fd, content in ((1, result.stdout), (2, result.stderr)):
            dest = self.fds.get(fd, _NULL)
            if dest.kind == "stdout":
                stdout += content
            elif dest.kind == "stderr":
                stderr += content
            elif dest.kind == "file":
                writes[dest.path] = writes.get(dest.path, "") + content
        for path, content in writes.items():
            if content:
                await ctx.fs.append_file(path, content)
        return ExecResult(stdout=stdout, stderr=stderr, exit_code=result.exit_code, env=result.env)


def _os_message(error: OSError) -> str:
    return error.strerror or str(error)


async def _read_input(ctx: "InterpreterContext", redir: RedirectionNode) -> Optional[str]:
    """Content an input redirection supplies, or None when it is not on fd 0."""
    fd = redir.fd if redir.fd is not None else 0
    target = redir.target

    if isinstance(target, HereDocNode):
        content = await expand_word(ctx, target.content)
    elif redir.operator == "<<<":
        content = await expand_word(ctx, target) + "\n"
    else:
        name = await expand_word(ctx, target)
        if not name:
            raise RedirectionError("bash: : ambiguous redirect")
        if name in _DEV_NULL:
            content = ""
        else:
            path = ctx.fs.resolve_path(ctx.state.cwd, name)
            try:
                content = await ctx.fs.read_file(path)
            except OSError as e:
                raise RedirectionError(f"bash: {name}: {_os_message(e)}") from None
    return content if fd == 0 else None


async def _open_output(ctx: "InterpreterContext", name: str, append: bool) -> _Destination:
    if name in _DEV_NULL:
        return _NULL
    if name == "/dev/stdout":
        return _STDOUT
    if name == "/dev/stderr":
        return _STDERR
    path = ctx.fs.resolve_path(ctx.state.cwd, name)
    if await ctx.fs.is_directory(path):
        raise RedirectionError(f"bash: {name}: Is a directory")
    try:
        if not append:
            await ctx.fs.write_file(path, "")
        elif not await ctx.fs.exists(path):
            await ctx.fs.write_file(path, "")
    except OSError as e:
        raise RedirectionError(f"bash: {name}: {_os_message(e)}") from None
    return _Destination("file", path)


async def prepare_redirections(
    ctx: "InterpreterContext", redirections: list[RedirectionNode], stdin: str
) -> RedirectionPlan:
    """Evaluate redirections left to right. Raises RedirectionError."""
    plan = RedirectionPlan(stdin=stdin)
    for redir in redirections:
        op = redir.operator
        if op in INPUT_OPERATORS:
            content = await _read_input(ctx, redir)
            if content is not None:
                plan.stdin = content
            continue

        name = await expand_word(ctx, redir.target)

        if op in (">&", "<&") and (name.isdigit() or name == "-"):
            fd = redir.fd if redir.fd is not None else (1 if op == ">&" else 0)
            if name == "-":
                plan.fds[fd] = _NULL
            elif int(name) in plan.fds:
                plan.fds[fd] = plan.fds[int(name)]
            elif int(name) != 0:
                raise RedirectionError(f"bash: {name}: Bad file descriptor")
            continue

        if not name:
            raise RedirectionError("bash: : ambiguous redirect")

        if op in ("&>", "&>>") or (op == ">&" and redir.fd is None):
            dest = await _open_output(ctx, name, append=op == "&>>")
            plan.fds[1] = dest
            plan.fds[2] = dest
        elif op in (">", ">|", ">>"):
            fd = redir.fd if redir.fd is not None else 1
            plan.fds[fd] = await _open_output(ctx, name, append=op == ">>")
        else:
            raise RedirectionError(f"bash: {name}: ambiguous redirect")
    return plan
