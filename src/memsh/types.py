"""Core types for memsh.

Defines the result type shared by every executable unit, the leaf command
contract, the filesystem contract and the execution limits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ExecResult:
    """Result of executing a command, pipeline or script."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    env: Optional[dict[str, str]] = field(default=None, compare=False)
    """Snapshot of the session variables (only set by top-level exec)."""


@dataclass
class ExecutionLimits:
    """Resource limits protecting the session from runaway scripts."""

    max_loop_iterations: int = 10000
    """Maximum iterations of any single for/while/until loop."""

    max_command_count: int = 10000
    """Maximum statements executed by one exec() call."""

    max_call_depth: int = 50
    """Maximum nesting of user-defined function calls."""

    max_substitution_depth: int = 20
    """Maximum nesting of command substitutions."""


@dataclass
class FsStat:
    """Metadata returned by stat()/lstat()."""

    is_file: bool
    is_directory: bool
    is_symbolic_link: bool
    mode: int
    size: int
    mtime: float


@runtime_checkable
class IFileSystem(Protocol):
    """Filesystem contract consumed by the interpreter and leaf commands."""

    async def read_file(self, path: str) -> str: ...

    async def write_file(self, path: str, content: str) -> None: ...

    async def append_file(self, path: str, content: str) -> None: ...

    async def exists(self, path: str) -> bool: ...

    async def is_directory(self, path: str) -> bool: ...

    async def stat(self, path: str) -> FsStat: ...

    async def lstat(self, path: str) -> FsStat: ...

    async def mkdir(self, path: str, recursive: bool = False) -> None: ...

    async def readdir(self, path: str) -> list[str]: ...

    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None: ...

    def resolve_path(self, base: str, path: str) -> str: ...

    def get_all_paths(self) -> list[str]: ...


@dataclass
class CommandContext:
    """Context handed to a leaf command."""

    fs: IFileSystem
    """Filesystem handle."""

    cwd: str
    """Current working directory."""

    env: dict[str, str]
    """Snapshot of the exported variables."""

    stdin: str = ""
    """Standard input text."""

    limits: ExecutionLimits = field(default_factory=ExecutionLimits)
    """Execution limits of the session."""


@runtime_checkable
class Command(Protocol):
    """Leaf command contract.

    Implementations must never let an exception escape ``execute``; expected
    failures become ``ExecResult(stdout="", stderr=message, exit_code=n)``.
    """

    name: str

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult: ...
