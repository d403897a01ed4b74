"""Env and printenv command implementations."""

from ...types import CommandContext, ExecResult


def _format_env(env: dict[str, str]) -> str:
    return "".join(f"{k}={v}\n" for k, v in sorted(env.items()))


class EnvCommand:
    """The env command - print the exported environment.

    Leading NAME=VALUE arguments are added to the printed environment.
    Running a command is not supported.
    """

    name = "env"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the env command."""
        env = dict(ctx.env)
        for arg in args:
            if arg == "--help":
                return ExecResult(stdout="Usage: env [-i] [NAME=VALUE]...\n", stderr="", exit_code=0)
            if arg in ("-i", "--ignore-environment"):
                env = {}
            elif "=" in arg and not arg.startswith("="):
                name, _, value = arg.partition("=")
                env[name] = value
            else:
                return ExecResult(stdout="", stderr=f"env: '{arg}': No such file or directory\n", exit_code=127)
        return ExecResult(stdout=_format_env(env), stderr="", exit_code=0)


class PrintenvCommand:
    """The printenv command - print all or some exported variables."""

    name = "printenv"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the printenv command."""
        names = [a for a in args if not a.startswith("-")]
        if not names:
            return ExecResult(stdout=_format_env(ctx.env), stderr="", exit_code=0)

        stdout = ""
        exit_code = 0
        for name in names:
            if name in ctx.env:
                stdout += ctx.env[name] + "\n"
            else:
                exit_code = 1
        return ExecResult(stdout=stdout, stderr="", exit_code=exit_code)
