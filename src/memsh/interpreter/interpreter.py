"""Interpreter - AST Execution Engine.

Main interpreter class that executes shell AST nodes.
Delegates to specialized modules for:
- Word expansion (expansion.py)
- Arithmetic evaluation (arithmetic.py)
- Test expressions (conditionals.py)
- Loops, if and case (control_flow.py)
- Built-in commands (builtins/)
- Redirections (redirections.py)
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from ..ast.types import (
    ArithmeticCommandNode,
    AssignmentNode,
    CaseNode,
    CommandNode,
    ConditionalCommandNode,
    CStyleForNode,
    ForNode,
    FunctionDefNode,
    GroupNode,
    IfNode,
    PipelineNode,
    ScriptNode,
    SimpleCommandNode,
    StatementNode,
    UntilNode,
    WhileNode,
)
from ..types import Command, CommandContext, ExecResult, ExecutionLimits, IFileSystem
from .builtins import BUILTINS
from .conditionals import evaluate_top_level_test
from .control_flow import (
    execute_c_style_for,
    execute_case,
    execute_for,
    execute_if,
    execute_statements,
    execute_until,
    execute_while,
)
from .errors import ExecutionLimitError, ExitError, InterpreterError, ReturnError
from .expansion import (
    evaluate_arithmetic_word,
    expand_word,
    expand_word_segments,
    expand_words,
    has_command_substitution,
    segments_to_pattern,
    segments_to_string,
)
from .redirections import RedirectionError, prepare_redirections
from .types import InterpreterContext, InterpreterState, VariableStore

logger = logging.getLogger(__name__)

DEFAULT_ENV = {
    "HOME": "/home/user",
    "PATH": "/usr/local/bin:/usr/bin:/bin",
    "PWD": "/home/user",
    "USER": "user",
    "SHELL": "/bin/bash",
}


def _ok() -> ExecResult:
    """Create a successful result."""
    return ExecResult(stdout="", stderr="", exit_code=0)


def _result(stdout: str, stderr: str, exit_code: int) -> ExecResult:
    """Create an ExecResult."""
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


def _failure(stderr: str, exit_code: int = 1) -> ExecResult:
    """Create a failed result."""
    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)


def _command_label(node: CommandNode) -> str:
    """Name used in diagnostics for a pipeline stage."""
    if isinstance(node, SimpleCommandNode) and node.name is not None:
        return node.name.raw
    return type(node).__name__.removesuffix("Node").lower()


class Interpreter:
    """AST interpreter for shell scripts."""

    def __init__(
        self,
        fs: IFileSystem,
        commands: dict[str, Command],
        limits: ExecutionLimits,
        state: Optional[InterpreterState] = None,
    ):
        """Initialize the interpreter.

        Args:
            fs: Filesystem interface
            commands: Command registry
            limits: Execution limits
            state: Optional initial state (creates default if not provided)
        """
        self._fs = fs
        self._commands = commands
        self._limits = limits
        self._state = state or InterpreterState(
            env=VariableStore(DEFAULT_ENV, exported=DEFAULT_ENV),
            cwd=DEFAULT_ENV["HOME"],
        )
        self._ctx = InterpreterContext(
            state=self._state,
            fs=fs,
            commands=commands,
            limits=limits,
            execute_script=self.execute_script,
            execute_statement=self.execute_statement,
            execute_command=self.execute_command,
            run_substitution=self.run_substitution,
        )

    @property
    def state(self) -> InterpreterState:
        """Get the interpreter state."""
        return self._state

    @property
    def ctx(self) -> InterpreterContext:
        """Get the context handed to builtins and helper modules."""
        return self._ctx

    # -------------------------------------------------------------------------
    # Scripts, statements and pipelines
    # -------------------------------------------------------------------------

    async def execute_script(self, node: ScriptNode) -> ExecResult:
        """Execute a script AST node."""
        stdout = ""
        stderr = ""
        exit_code = 0

        for statement in node.statements:
            try:
                result = await self.execute_statement(statement)
            except InterpreterError as error:
                error.prepend_output(stdout, stderr)
                raise
            stdout += result.stdout
            stderr += result.stderr
            exit_code = result.exit_code
            self._state.last_exit_code = exit_code

        return _result(stdout, stderr, exit_code)

    async def execute_statement(self, node: StatementNode) -> ExecResult:
        """Execute an and-or list of pipelines."""
        self._state.command_count += 1
        if self._state.command_count > self._limits.max_command_count:
            logger.warning("command limit of %d exceeded", self._limits.max_command_count)
            raise ExecutionLimitError(
                f"too many commands executed (>{self._limits.max_command_count}), "
                "increase limits.max_command_count",
                "commands",
            )

        stdout = ""
        stderr = ""
        exit_code = 0

        for i, pipeline in enumerate(node.pipelines):
            operator = node.operators[i - 1] if i > 0 else None
            if operator == "&&" and exit_code != 0:
                continue
            if operator == "||" and exit_code == 0:
                continue

            try:
                result = await self.execute_pipeline(pipeline)
            except InterpreterError as error:
                error.prepend_output(stdout, stderr)
                raise
            stdout += result.stdout
            stderr += result.stderr
            exit_code = result.exit_code
            self._state.last_exit_code = exit_code

        return _result(stdout, stderr, exit_code)

    async def execute_pipeline(self, node: PipelineNode) -> ExecResult:
        """Execute a pipeline, feeding each stage's stdout to the next stage.

        Stages run one after another. Stderr of every stage is kept; stdout
        and exit code are those of the last stage.
        """
        stdin = self._state.group_stdin or ""
        stderr = ""
        last_result = _ok()
        multi = len(node.commands) > 1

        for i, command in enumerate(node.commands):
            try:
                result = await self.execute_command(command, stdin)
            except ExitError as error:
                # Each stage of a real pipeline behaves like a subshell.
                if not multi:
                    error.prepend_output("", stderr)
                    raise
                result = _result(error.stdout, error.stderr, error.exit_code)
            except InterpreterError as error:
                error.prepend_output("", stderr)
                raise
            except Exception as error:
                label = _command_label(command)
                logger.exception("internal error while running %s", label)
                result = _failure(f"bash: {label}: {error}\n")

            stderr += result.stderr
            if i < len(node.commands) - 1:
                stdin = result.stdout
            last_result = result

        exit_code = last_result.exit_code
        if node.negated:
            exit_code = 1 if exit_code == 0 else 0
        return _result(last_result.stdout, stderr, exit_code)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def execute_command(self, node: CommandNode, stdin: str) -> ExecResult:
        """Execute a single command with the given stdin.

        Stderr produced by command substitutions while expanding this
        command's own words is prepended to the command's stderr.
        """
        saved_expansion_stderr = self._state.expansion_stderr
        self._state.expansion_stderr = ""
        try:
            if isinstance(node, SimpleCommandNode):
                result = await self._execute_simple_command(node, stdin)
            else:
                result = await self._execute_compound(node, stdin)
        except InterpreterError as error:
            error.prepend_output("", self._state.expansion_stderr)
            raise
        finally:
            extra = self._state.expansion_stderr
            self._state.expansion_stderr = saved_expansion_stderr

        if extra:
            result = dataclasses.replace(result, stderr=extra + result.stderr)
        return result

    async def _execute_compound(self, node: CommandNode, stdin: str) -> ExecResult:
        """Run a compound command, applying its trailing redirections."""
        plan = None
        if node.redirections:
            try:
                plan = await prepare_redirections(self._ctx, node.redirections, stdin)
            except RedirectionError as e:
                return _failure(f"{e}\n")
            stdin = plan.stdin

        saved_group_stdin = self._state.group_stdin
        if stdin:
            self._state.group_stdin = stdin
        try:
            result = await self._dispatch_compound(node)
        except InterpreterError as error:
            if plan is not None:
                routed = await plan.apply(self._ctx, _result(error.stdout, error.stderr, 0))
                error.stdout, error.stderr = routed.stdout, routed.stderr
            raise
        finally:
            self._state.group_stdin = saved_group_stdin

        if plan is not None:
            result = await plan.apply(self._ctx, result)
        return result

    async def _dispatch_compound(self, node: CommandNode) -> ExecResult:
        if isinstance(node, IfNode):
            return await execute_if(self._ctx, node)
        if isinstance(node, ForNode):
            return await execute_for(self._ctx, node)
        if isinstance(node, CStyleForNode):
            return await execute_c_style_for(self._ctx, node)
        if isinstance(node, WhileNode):
            return await execute_while(self._ctx, node)
        if isinstance(node, UntilNode):
            return await execute_until(self._ctx, node)
        if isinstance(node, CaseNode):
            return await execute_case(self._ctx, node)
        if isinstance(node, GroupNode):
            return await execute_statements(self._ctx, node.body)
        if isinstance(node, FunctionDefNode):
            self._state.functions[node.name] = node
            return _ok()
        if isinstance(node, ConditionalCommandNode):
            return await self._execute_conditional(node)
        if isinstance(node, ArithmeticCommandNode):
            return await self._execute_arithmetic(node)
        raise TypeError(f"unknown command node {type(node).__name__}")

    async def _execute_conditional(self, node: ConditionalCommandNode) -> ExecResult:
        """Execute a conditional command [[ ... ]]."""
        tokens: list[str] = []
        patterns: list[str] = []
        for word in node.words:
            segments = await expand_word_segments(self._ctx, word)
            tokens.append(segments_to_string(segments))
            patterns.append(segments_to_pattern(segments))

        exit_code, message = await evaluate_top_level_test(self._ctx, tokens, patterns, extended=True)
        stderr = f"bash: [[: {message}\n" if message else ""
        return _result("", stderr, exit_code)

    async def _execute_arithmetic(self, node: ArithmeticCommandNode) -> ExecResult:
        """Execute an arithmetic command (( ... )): status 0 iff the value is non-zero."""
        try:
            value = await evaluate_arithmetic_word(self._ctx, node.expression)
        except ExitError as e:
            return _failure(e.stderr)
        return _result("", "", 0 if value != 0 else 1)

    async def _assignment_value(self, assignment: AssignmentNode) -> str:
        value = await expand_word(self._ctx, assignment.value) if assignment.value else ""
        if assignment.append:
            value = self._state.env.get(assignment.name, "") + value
        return value

    async def _execute_assignments(self, node: SimpleCommandNode) -> ExecResult:
        """NAME=value with no command word: assign in the current scope."""
        exit_code = 0
        for assignment in node.assignments:
            value = await self._assignment_value(assignment)
            self._state.env[assignment.name] = value
            if assignment.value is not None and has_command_substitution(assignment.value):
                # `x=$(false)` reports the substitution's status
                exit_code = self._state.last_exit_code

        if node.redirections:
            try:
                plan = await prepare_redirections(self._ctx, node.redirections, "")
            except RedirectionError as e:
                return _failure(f"{e}\n")
            return await plan.apply(self._ctx, _result("", "", exit_code))
        return _result("", "", exit_code)

    async def _execute_simple_command(self, node: SimpleCommandNode, stdin: str) -> ExecResult:
        """Execute a simple command."""
        if node.name is None:
            return await self._execute_assignments(node)

        words = await expand_words(self._ctx, [node.name, *node.args])
        if not words:
            # The command word expanded to nothing: behave like a bare assignment.
            return await self._execute_assignments(node)
        cmd_name, args = words[0], words[1:]

        try:
            plan = await prepare_redirections(self._ctx, node.redirections, stdin)
        except RedirectionError as e:
            return _failure(f"{e}\n")

        temp_assignments: dict[str, str] = {}
        for assignment in node.assignments:
            temp_assignments[assignment.name] = await self._assignment_value(assignment)

        env = self._state.env
        if temp_assignments:
            env.push_scope(temp_assignments, export=True)
        try:
            result = await self._run_command(cmd_name, args, plan.stdin)
        except InterpreterError as error:
            routed = await plan.apply(self._ctx, _result(error.stdout, error.stderr, 0))
            error.stdout, error.stderr = routed.stdout, routed.stderr
            raise
        finally:
            if temp_assignments:
                env.pop_scope()

        return await plan.apply(self._ctx, result)

    async def _run_command(self, name: str, args: list[str], stdin: str) -> ExecResult:
        """Run a function, builtin or leaf command by name."""
        if name in self._state.functions:
            return await self._call_function(name, args, stdin)

        if name in BUILTINS:
            return await BUILTINS[name](self._ctx, args)

        cmd = self._commands.get(name)
        if cmd is None:
            return _failure(f"bash: {name}: command not found\n", 127)

        logger.debug("dispatching %s %r", name, args)
        cmd_ctx = CommandContext(
            fs=self._fs,
            cwd=self._state.cwd,
            env=self._state.env.exported_env(),
            stdin=stdin,
            limits=self._limits,
        )
        return await cmd.execute(args, cmd_ctx)

    async def _call_function(self, name: str, args: list[str], stdin: str) -> ExecResult:
        """Call a user-defined function.

        The call gets its own variable frame (for `local`) and positional
        parameters; both are discarded on return.
        """
        func_def = self._state.functions[name]

        if self._state.call_depth >= self._limits.max_call_depth:
            logger.warning("function call depth limit of %d exceeded", self._limits.max_call_depth)
            raise ExecutionLimitError(
                f"{name}: maximum function nesting level exceeded ({self._limits.max_call_depth})",
                "call_depth",
            )

        state = self._state
        state.call_depth += 1
        state.positional_params.append(list(args))
        state.env.push_scope()
        saved_loop_depth = state.loop_depth
        state.loop_depth = 0
        try:
            body = func_def.body
            if func_def.redirections:
                body = GroupNode(
                    body=[StatementNode(pipelines=[PipelineNode(commands=[body])])],
                    redirections=func_def.redirections,
                )
            try:
                return await self.execute_command(body, stdin)
            except ReturnError as e:
                return _result(e.stdout, e.stderr, e.exit_code)
        finally:
            state.loop_depth = saved_loop_depth
            state.env.pop_scope()
            state.positional_params.pop()
            state.call_depth -= 1

    # -------------------------------------------------------------------------
    # Command substitution
    # -------------------------------------------------------------------------

    async def run_substitution(self, body: ScriptNode) -> ExecResult:
        """Run a command substitution body in a child interpreter.

        The child works on a copy of the variables, cwd and functions and
        shares the filesystem, so only filesystem changes leak back.
        """
        parent = self._state
        child_state = InterpreterState(
            env=parent.env.copy(),
            cwd=parent.cwd,
            previous_dir=parent.previous_dir,
            functions=dict(parent.functions),
            positional_params=[list(parent.params)],
            script_name=parent.script_name,
            call_depth=parent.call_depth,
            substitution_depth=parent.substitution_depth + 1,
            command_count=parent.command_count,
            last_exit_code=parent.last_exit_code,
        )
        child = Interpreter(self._fs, self._commands, self._limits, state=child_state)
        try:
            result = await child.execute_script(body)
        except (ExitError, ReturnError) as e:
            result = _result(e.stdout, e.stderr, e.exit_code)
        finally:
            parent.command_count = child_state.command_count
        return result
