"""Shell builtins.

Builtins run inside the interpreter and may change session state (cwd,
variables, functions) or unwind it with a control-flow signal. Every handler
has the signature `async def handler(ctx, args) -> ExecResult`.
"""

from .cd import handle_cd
from .control import handle_break, handle_continue, handle_exit, handle_return
from .export import handle_export
from .local import handle_local
from .misc import handle_colon, handle_false, handle_true
from .test import handle_bracket, handle_test
from .unset import handle_unset

BUILTINS = {
    "cd": handle_cd,
    "export": handle_export,
    "unset": handle_unset,
    "local": handle_local,
    "break": handle_break,
    "continue": handle_continue,
    "return": handle_return,
    "exit": handle_exit,
    "test": handle_test,
    "[": handle_bracket,
    ":": handle_colon,
    "true": handle_true,
    "false": handle_false,
}

__all__ = [
    "BUILTINS",
    "handle_cd",
    "handle_export",
    "handle_unset",
    "handle_local",
    "handle_break",
    "handle_continue",
    "handle_return",
    "handle_exit",
    "handle_test",
    "handle_bracket",
    "handle_colon",
    "handle_true",
    "handle_false",
]
