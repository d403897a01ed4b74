"""Leaf commands.

Each command is a class with a `name` attribute and an async
`execute(args, ctx)` method returning an ExecResult. Commands only see the
CommandContext (filesystem, cwd, exported variables, stdin); they never
touch interpreter state.
"""

from typing import Iterable, Optional

from ..types import Command
from .cat import CatCommand
from .echo import EchoCommand
from .env import EnvCommand, PrintenvCommand
from .grep import GrepCommand
from .head import HeadCommand
from .ls import LsCommand
from .mkdir import MkdirCommand
from .pwd import PwdCommand
from .rm import RmCommand
from .sort import SortCommand
from .tail import TailCommand
from .touch import TouchCommand
from .true import FalseCommand, TrueCommand
from .wc import WcCommand

DEFAULT_COMMANDS: tuple[type, ...] = (
    EchoCommand,
    CatCommand,
    GrepCommand,
    LsCommand,
    MkdirCommand,
    PwdCommand,
    TouchCommand,
    RmCommand,
    HeadCommand,
    TailCommand,
    WcCommand,
    SortCommand,
    EnvCommand,
    PrintenvCommand,
    TrueCommand,
    FalseCommand,
)

COMMAND_NAMES = tuple(cls.name for cls in DEFAULT_COMMANDS)


def create_command_registry(
    names: Optional[Iterable[str]] = None,
    extra: Optional[Iterable[Command]] = None,
) -> dict[str, Command]:
    """Build the name -> command mapping used by a session.

    Args:
        names: Restrict the built-in commands to these names (default: all).
        extra: Additional command objects; they override built-ins of the
            same name.
    """
    wanted = set(COMMAND_NAMES if names is None else names)
    unknown = wanted - set(COMMAND_NAMES)
    if unknown:
        raise ValueError(f"unknown commands: {', '.join(sorted(unknown))}")
    registry: dict[str, Command] = {cls.name: cls() for cls in DEFAULT_COMMANDS if cls.name in wanted}
    for cmd in extra or ():
        registry[cmd.name] = cmd
    return registry


__all__ = [
    "COMMAND_NAMES",
    "DEFAULT_COMMANDS",
    "create_command_registry",
    *(cls.__name__ for cls in DEFAULT_COMMANDS),
]
