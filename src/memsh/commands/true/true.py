"""True and false command implementations."""

from ...types import CommandContext, ExecResult


class TrueCommand:
    """The true command - do nothing, successfully."""

    name = "true"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        return ExecResult(stdout="", stderr="", exit_code=0)


class FalseCommand:
    """The false command - do nothing, unsuccessfully."""

    name = "false"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        return ExecResult(stdout="", stderr="", exit_code=1)
