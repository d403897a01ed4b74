"""Interpreter types for memsh."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from ..ast.types import CommandNode, FunctionDefNode, ScriptNode, StatementNode
    from ..types import Command, ExecResult, ExecutionLimits, IFileSystem


class VariableStore(MutableMapping):
    """Shell variables as an explicit stack of frames.

    frames[0] is the global frame. Function calls and prefix assignments
    push a frame; popping it discards every binding made in it. Lookup
    walks innermost to outermost. Assigning to a name updates the
    innermost frame that already binds it, otherwise the global frame.

    A separate set records which names are exported, i.e. visible to
    leaf commands through CommandContext.env.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        exported: Iterable[str] = (),
    ):
        self._frames: list[dict[str, str]] = [dict(initial or {})]
        self._exported: set[str] = set(exported)
        self._scope_exports: list[set[str]] = []

    # Mapping protocol

    def __getitem__(self, name: str) -> str:
        for frame in reversed(self._frames):
            if name in frame:
                return frame[name]
        raise KeyError(name)

    def __setitem__(self, name: str, value: str) -> None:
        for frame in reversed(self._frames):
            if name in frame:
                frame[name] = value
                return
        self._frames[0][name] = value

    def __delitem__(self, name: str) -> None:
        for frame in reversed(self._frames):
            if name in frame:
                del frame[name]
                self._exported.discard(name)
                return
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for frame in reversed(self._frames):
            for name in frame:
                if name not in seen:
                    seen.add(name)
                    yield name

    def __len__(self) -> int:
        return sum(1 for _ in self)

    # Scopes

    @property
    def depth(self) -> int:
        """Number of frames above the global one."""
        return len(self._frames) - 1

    def push_scope(self, values: Optional[dict[str, str]] = None, export: bool = False) -> None:
        """Enter a new scope, optionally seeded with bindings.

        With export=True the seeded names are exported for the lifetime of
        the scope only.
        """
        self._frames.append(dict(values or {}))
        added: set[str] = set()
        if export and values:
            added = set(values) - self._exported
            self._exported |= added
        self._scope_exports.append(added)

    def pop_scope(self) -> dict[str, str]:
        """Leave the innermost scope, discarding its bindings."""
        if len(self._frames) == 1:
            raise RuntimeError("cannot pop the global scope")
        self._exported -= self._scope_exports.pop()
        return self._frames.pop()

    def set_local(self, name: str, value: str) -> None:
        """Bind name in the innermost scope only."""
        self._frames[-1][name] = value

    def is_local(self, name: str) -> bool:
        return len(self._frames) > 1 and name in self._frames[-1]

    # Export

    def export(self, name: str) -> None:
        self._exported.add(name)

    def unexport(self, name: str) -> None:
        self._exported.discard(name)

    def is_exported(self, name: str) -> bool:
        return name in self._exported

    def exported_env(self) -> dict[str, str]:
        """Exported variables that currently have a value."""
        return {name: self[name] for name in sorted(self._exported) if name in self}

    def to_env_dict(self) -> dict[str, str]:
        """Flattened view of every visible variable."""
        return {name: self[name] for name in self}

    def copy(self) -> VariableStore:
        new = VariableStore()
        new._frames = [dict(frame) for frame in self._frames]
        new._exported = set(self._exported)
        new._scope_exports = [set(s) for s in self._scope_exports]
        return new


@dataclass
class InterpreterState:
    """Mutable state maintained by the interpreter."""

    env: VariableStore = field(default_factory=VariableStore)
    """Shell variables."""

    cwd: str = "/home/user"
    """Current working directory."""

    previous_dir: str = ""
    """Previous directory (for cd -)."""

    functions: dict[str, "FunctionDefNode"] = field(default_factory=dict)
    """Defined functions."""

    positional_params: list[list[str]] = field(default_factory=lambda: [[]])
    """Stack of positional parameter lists; the last one is current."""

    script_name: str = "bash"
    """Value of $0."""

    call_depth: int = 0
    """Current function call depth."""

    loop_depth: int = 0
    """Current loop nesting depth (for break/continue)."""

    substitution_depth: int = 0
    """Current command substitution nesting depth."""

    command_count: int = 0
    """Statements executed by the current exec() call."""

    last_exit_code: int = 0
    """Exit code of the last pipeline ($?)."""

    group_stdin: Optional[str] = None
    """Stdin for the commands of a compound command fed by a pipe or redirection."""

    expansion_stderr: str = ""
    """Stderr of command substitutions, attached to the statement that ran them."""

    @property
    def params(self) -> list[str]:
        """Current positional parameters ($1...)."""
        return self.positional_params[-1]


@dataclass
class InterpreterContext:
    """Context provided to interpreter components and builtins."""

    state: InterpreterState
    """Mutable interpreter state."""

    fs: "IFileSystem"
    """Filesystem interface."""

    commands: dict[str, "Command"]
    """Command registry."""

    limits: "ExecutionLimits"
    """Execution limits."""

    execute_script: Callable[["ScriptNode"], Awaitable["ExecResult"]]
    """Function to execute a script AST."""

    execute_statement: Callable[["StatementNode"], Awaitable["ExecResult"]]
    """Function to execute a statement AST."""

    execute_command: Callable[["CommandNode", str], Awaitable["ExecResult"]]
    """Function to execute a command AST with the given stdin."""

    run_substitution: Callable[["ScriptNode"], Awaitable["ExecResult"]]
    """Function running a command substitution body in a child interpreter."""
