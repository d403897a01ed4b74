"""Interpreter control-flow and error signals.

Break, continue, return and exit unwind the Python stack as exceptions.
Each carries the stdout/stderr produced so far, and every construct it
passes through prepends its own accumulated output before re-raising, so
nothing printed before the signal is lost.
"""


class InterpreterError(Exception):
    """Base class for interpreter signals that carry partial output."""

    def __init__(self, message: str = "", stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr

    def prepend_output(self, stdout: str, stderr: str) -> None:
        """Prepend output produced before this error was raised."""
        self.stdout = stdout + self.stdout
        self.stderr = stderr + self.stderr


class BreakError(InterpreterError):
    """Raised by `break [n]`."""

    def __init__(self, levels: int = 1, stdout: str = "", stderr: str = ""):
        super().__init__("break", stdout, stderr)
        self.levels = levels


class ContinueError(InterpreterError):
    """Raised by `continue [n]`."""

    def __init__(self, levels: int = 1, stdout: str = "", stderr: str = ""):
        super().__init__("continue", stdout, stderr)
        self.levels = levels


class ReturnError(InterpreterError):
    """Raised by `return [n]` inside a function."""

    def __init__(self, exit_code: int = 0, stdout: str = "", stderr: str = ""):
        super().__init__("return", stdout, stderr)
        self.exit_code = exit_code


class ExitError(InterpreterError):
    """Raised by `exit [n]` and by fatal expansion errors."""

    def __init__(self, exit_code: int = 0, stdout: str = "", stderr: str = ""):
        super().__init__("exit", stdout, stderr)
        self.exit_code = exit_code


class ExecutionLimitError(InterpreterError):
    """Raised when a configured execution limit is exceeded."""

    EXIT_CODE = 126

    def __init__(self, message: str, limit_type: str, stdout: str = "", stderr: str = ""):
        super().__init__(message, stdout, stderr)
        self.limit_type = limit_type
        self.exit_code = self.EXIT_CODE
