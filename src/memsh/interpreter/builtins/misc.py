"""Trivial builtins: `:`, true and false."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _result(exit_code: int) -> "ExecResult":
    from ...types import ExecResult

    return ExecResult(stdout="", stderr="", exit_code=exit_code)


async def handle_colon(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Do nothing, successfully. Arguments are still expanded by the caller."""
    return _result(0)


async def handle_true(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    return _result(0)


async def handle_false(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    return _result(1)
