"""Session - the primary API for memsh.

Example usage:
    from memsh import Session

    # Synchronous usage (for REPL, scripts)
    session = Session()
    result = session.run("echo hello world")
    print(result.stdout)  # "hello world\\n"

    # Async usage (for async applications)
    session = Session()
    result = await session.exec("echo hello world")

    # With initial files
    session = Session(files={"/data.txt": "hello\\n"})
    result = session.run("cat /data.txt")

    # With execution limits
    session = Session(limits=ExecutionLimits(max_loop_iterations=100))

A session keeps its working directory, variables, functions and
filesystem across exec() calls.
"""

import asyncio
import logging
from typing import Optional, Union

import nest_asyncio  # type: ignore[import-untyped]

from .commands import create_command_registry
from .fs import InMemoryFs
from .interpreter import DEFAULT_ENV, ExecutionLimitError, ExitError, Interpreter, InterpreterState, VariableStore
from .parser import ParseException, parse, unescape_html_entities
from .types import Command, ExecResult, ExecutionLimits, IFileSystem

logger = logging.getLogger(__name__)


class Session:
    """An in-memory shell session.

    Runs shell scripts against a virtual filesystem. Nothing touches the
    host: commands are looked up in the session's command registry and
    every file lives in the session's filesystem.
    """

    def __init__(
        self,
        *,
        fs: Optional[IFileSystem] = None,
        files: Optional[dict[str, Union[str, bytes]]] = None,
        cwd: str = "/home/user",
        env: Optional[dict[str, str]] = None,
        limits: Optional[ExecutionLimits] = None,
        commands: Optional[dict[str, Command]] = None,
        unescape_html: bool = True,
    ):
        """Initialize the session.

        Args:
            fs: Filesystem to use. If not provided, creates an InMemoryFs.
            files: Initial files to create (only used with the default InMemoryFs).
            cwd: Initial working directory; created if missing.
            env: Additional variables, exported to commands.
            limits: Execution limits.
            commands: Custom command registry. If not provided, uses the
                built-in commands.
            unescape_html: Turn &lt; &gt; &amp; outside quotes back into
                operators before parsing (default True).
        """
        if fs is not None:
            self._fs = fs
        else:
            self._fs = InMemoryFs(initial_files=files or {}, directories=[cwd, "/tmp"])

        self._limits = limits or ExecutionLimits()
        self._commands = commands if commands is not None else create_command_registry()
        self._unescape_html = unescape_html

        initial_env = {**DEFAULT_ENV, "PWD": cwd, **(env or {})}
        self._initial_state = InterpreterState(
            env=VariableStore(initial_env, exported=initial_env),
            cwd=cwd,
        )
        self._interpreter = self._new_interpreter()

    def _new_interpreter(self) -> Interpreter:
        initial = self._initial_state
        state = InterpreterState(
            env=initial.env.copy(),
            cwd=initial.cwd,
            previous_dir=initial.previous_dir,
        )
        return Interpreter(fs=self._fs, commands=self._commands, limits=self._limits, state=state)

    @property
    def fs(self) -> IFileSystem:
        """Get the filesystem."""
        return self._fs

    @property
    def cwd(self) -> str:
        """Get the current working directory."""
        return self._interpreter.state.cwd

    @property
    def env(self) -> dict[str, str]:
        """Get a snapshot of the session variables."""
        return self._interpreter.state.env.to_env_dict()

    @property
    def limits(self) -> ExecutionLimits:
        """Get the execution limits."""
        return self._limits

    def _finish(self, stdout: str, stderr: str, exit_code: int) -> ExecResult:
        state = self._interpreter.state
        state.last_exit_code = exit_code
        return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code, env=state.env.to_env_dict())

    async def exec(self, script: str) -> ExecResult:
        """Execute a shell script.

        Expected failures never raise: parse errors give exit code 2,
        exceeded limits give 126 and `exit n` gives n.

        Returns:
            ExecResult with stdout, stderr, exit_code, and the variables
            after execution.
        """
        if self._unescape_html:
            script = unescape_html_entities(script)

        try:
            ast = parse(script)
        except ParseException as e:
            return self._finish("", f"bash: {e}\n", 2)

        logger.debug("executing script with %d statements", len(ast.statements))
        state = self._interpreter.state
        state.command_count = 0
        try:
            result = await self._interpreter.execute_script(ast)
        except ExitError as error:
            return self._finish(error.stdout, error.stderr, error.exit_code)
        except ExecutionLimitError as error:
            return self._finish(error.stdout, error.stderr + f"bash: {error}\n", error.exit_code)
        finally:
            state.loop_depth = 0
            state.call_depth = 0
            state.group_stdin = None
            del state.positional_params[1:]
            while state.env.depth:
                state.env.pop_scope()

        return self._finish(result.stdout, result.stderr, result.exit_code)

    def run(self, script: str) -> ExecResult:
        """Execute a shell script synchronously.

        This is a convenience wrapper around exec() that also works inside
        an already running event loop (Jupyter, async frameworks).

        Example:
            >>> session = Session()
            >>> session.run('echo "Hello, World!"').stdout
            'Hello, World!\\n'
        """
        try:
            asyncio.get_running_loop()
            nest_asyncio.apply()
        except RuntimeError:
            # No running loop: asyncio.run() works as is.
            pass
        return asyncio.run(self.exec(script))

    def reset(self) -> None:
        """Restore the initial variables, working directory and functions.

        The filesystem is kept as it is.
        """
        self._interpreter = self._new_interpreter()
