"""memsh - an in-memory shell interpreter.

Parses and runs POSIX-style shell scripts against a virtual filesystem,
with a small set of built-in leaf commands.

Example:
    from memsh import Session

    session = Session(files={"/test.txt": "hello world\\nfoo bar\\n"})
    result = session.run("grep hello /test.txt")
    print(result.stdout)  # "hello world\\n"
"""

from .fs import InMemoryFs
from .parser import ParseException, parse
from .session import Session
from .types import Command, CommandContext, ExecResult, ExecutionLimits, FsStat, IFileSystem

__version__ = "0.1.0"

__all__ = [
    "Session",
    "ExecResult",
    "ExecutionLimits",
    "CommandContext",
    "Command",
    "IFileSystem",
    "InMemoryFs",
    "FsStat",
    "parse",
    "ParseException",
]
