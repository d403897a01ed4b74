"""Echo command implementation.

Usage: echo [-neE] [STRING]...

Write the STRINGs, separated by single spaces, followed by a newline.

Options:
  -n    do not output the trailing newline
  -e    enable interpretation of backslash escapes
  -E    disable interpretation of backslash escapes (default)
"""

from ...types import CommandContext, ExecResult

_ESCAPES = {
    "\\": "\\",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}


def interpret_escapes(text: str) -> tuple[str, bool]:
    """Expand backslash escapes. Returns (text, stop) where stop means \\c was seen."""
    out: list[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c != "\\" or i + 1 >= len(text):
            out.append(c)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "c":
            return "".join(out), True
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            i += 2
        elif nxt == "0":
            digits = ""
            j = i + 2
            while j < len(text) and len(digits) < 3 and text[j] in "01234567":
                digits += text[j]
                j += 1
            out.append(chr(int(digits, 8)) if digits else "\0")
            i = j
        elif nxt == "x":
            digits = ""
            j = i + 2
            while j < len(text) and len(digits) < 2 and text[j] in "0123456789abcdefABCDEF":
                digits += text[j]
                j += 1
            if digits:
                out.append(chr(int(digits, 16)))
            else:
                out.append("\\x")
            i = j
        else:
            out.append("\\" + nxt)
            i += 2
    return "".join(out), False


class EchoCommand:
    """The echo command."""

    name = "echo"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the echo command."""
        newline = True
        escapes = False

        # Leading words made only of n/e/E letters are options; anything else is text.
        i = 0
        while i < len(args):
            arg = args[i]
            if len(arg) < 2 or arg[0] != "-" or any(c not in "neE" for c in arg[1:]):
                break
            for c in arg[1:]:
                if c == "n":
                    newline = False
                elif c == "e":
                    escapes = True
                else:
                    escapes = False
            i += 1

        text = " ".join(args[i:])
        if escapes:
            text, stop = interpret_escapes(text)
            if stop:
                newline = False
        if newline:
            text += "\n"
        return ExecResult(stdout=text, stderr="", exit_code=0)
