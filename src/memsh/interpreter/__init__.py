"""Shell interpreter: executes parsed scripts against a virtual filesystem."""

from .errors import (
    BreakError,
    ContinueError,
    ExecutionLimitError,
    ExitError,
    InterpreterError,
    ReturnError,
)
from .interpreter import DEFAULT_ENV, Interpreter
from .types import InterpreterContext, InterpreterState, VariableStore

__all__ = [
    "Interpreter",
    "InterpreterContext",
    "InterpreterState",
    "VariableStore",
    "DEFAULT_ENV",
    "InterpreterError",
    "BreakError",
    "ContinueError",
    "ReturnError",
    "ExitError",
    "ExecutionLimitError",
]
