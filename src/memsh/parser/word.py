"""Word parsing.

Splits the raw text of a WORD token into word parts: quoted strings,
escapes, parameter expansions, command substitutions, arithmetic expansions
and plain literals. Command substitution bodies are parsed recursively into
full script ASTs.
"""

from __future__ import annotations

import re

from ..ast.types import (
    ArithmeticExpansionPart,
    CommandSubstitutionPart,
    DoubleQuotedPart,
    EscapedPart,
    LiteralPart,
    ParameterExpansionPart,
    ParameterOperation,
    ScriptNode,
    SingleQuotedPart,
    TildeExpansionPart,
    WordNode,
    WordPart,
)
from .lexer import (
    LexerError,
    find_closing_brace,
    find_matching_paren,
    nested_parse,
    skip_backtick,
    skip_double_quoted,
)

_SIMPLE_PARAM_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|[0-9]|[?#@*$!\-]")
_BRACED_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|[0-9]+|[?#@*$!\-]")
_TILDE_RE = re.compile(r"~([A-Za-z0-9_.+-]*)(?=/|$)")

_ANSI_C_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b",
    "f": "\f", "v": "\v", "e": "\x1b", "E": "\x1b",
    "\\": "\\", "'": "'", '"': '"', "?": "?",
}

# Characters a backslash escapes inside double quotes / here-doc bodies.
_DQ_ESCAPABLE = '$`"\\'
_HEREDOC_ESCAPABLE = "$`\\"


def _parse_script(text: str) -> ScriptNode:
    # parser imports this module
    from .parser import Parser

    return Parser().parse(text)


def parse_word(raw: str) -> WordNode:
    """Parse the raw text of a word into a WordNode."""
    return WordNode(parts=tuple(_parse_parts(raw, in_double_quotes=False)), raw=raw)


def parse_heredoc_body(body: str) -> WordNode:
    """Parse an unquoted here-doc body: expansions apply, quotes are literal."""
    parts = _parse_parts(body, in_double_quotes=True, escapable=_HEREDOC_ESCAPABLE)
    return WordNode(parts=(DoubleQuotedPart(tuple(parts)),), raw=body)


def parse_arithmetic_word(text: str) -> WordNode:
    """Parse arithmetic text; only $-expansions are recognized."""
    parts = _parse_parts(text, in_double_quotes=True, escapable=_HEREDOC_ESCAPABLE)
    return WordNode(parts=(DoubleQuotedPart(tuple(parts)),), raw=text)


def _parse_parts(
    text: str,
    in_double_quotes: bool,
    escapable: str = _DQ_ESCAPABLE,
) -> list[WordPart]:
    with nested_parse():
        return _scan_parts(text, in_double_quotes, escapable)


def _scan_parts(text: str, in_double_quotes: bool, escapable: str) -> list[WordPart]:
    parts: list[WordPart] = []
    buf: list[str] = []

    def flush() -> None:
        if buf:
            parts.append(LiteralPart("".join(buf)))
            buf.clear()

    i = 0
    n = len(text)
    while i < n:
        c = text[i]

        if c == "\\":
            if i + 1 >= n:
                buf.append("\\")
                i += 1
                continue
            nxt = text[i + 1]
            if nxt == "\n":
                i += 2
                continue
            if in_double_quotes and nxt not in escapable:
                buf.append("\\")
                i += 1
                continue
            flush()
            parts.append(EscapedPart(nxt))
            i += 2
            continue

        if not in_double_quotes and c == "'":
            end = text.find("'", i + 1)
            if end == -1:
                raise LexerError("unexpected EOF while looking for matching `''")
            flush()
            parts.append(SingleQuotedPart(text[i + 1:end]))
            i = end + 1
            continue

        if not in_double_quotes and c == '"':
            end = skip_double_quoted(text, i)
            flush()
            inner = _parse_parts(text[i + 1:end - 1], in_double_quotes=True)
            parts.append(DoubleQuotedPart(tuple(inner)))
            i = end
            continue

        if c == "`":
            end = skip_backtick(text, i)
            flush()
            body = re.sub(r"\\([$`\\])", r"\1", text[i + 1:end - 1])
            parts.append(CommandSubstitutionPart(body=_parse_script(body), backtick=True))
            i = end
            continue

        if c == "$" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "(":
                close = find_matching_paren(text, i + 1)
                inner = text[i + 2:close]
                if (
                    inner.startswith("(")
                    and inner.endswith(")")
                    and find_matching_paren(inner, 0) == len(inner) - 1
                ):
                    flush()
                    parts.append(ArithmeticExpansionPart(parse_arithmetic_word(inner[1:-1])))
                    i = close + 1
                    continue
                flush()
                parts.append(CommandSubstitutionPart(body=_parse_script(inner)))
                i = close + 1
                continue
            if nxt == "{":
                close = find_closing_brace(text, i + 1)
                flush()
                parts.append(_parse_braced_parameter(text[i + 2:close]))
                i = close + 1
                continue
            if nxt == "'" and not in_double_quotes:
                value, end = _parse_ansi_c(text, i + 2)
                flush()
                parts.append(SingleQuotedPart(value))
                i = end
                continue
            m = _SIMPLE_PARAM_RE.match(text, i + 1)
            if m:
                flush()
                parts.append(ParameterExpansionPart(m.group(0)))
                i = m.end()
                continue

        if c == "~" and i == 0 and not in_double_quotes:
            m = _TILDE_RE.match(text)
            if m:
                parts.append(TildeExpansionPart(m.group(1) or None))
                i = m.end()
                continue

        buf.append(c)
        i += 1

    flush()
    return parts


def _parse_ansi_c(text: str, start: int) -> tuple[str, int]:
    """Decode $'...' starting after the opening quote; return (value, end)."""
    out: list[str] = []
    i = start
    while i < len(text):
        c = text[i]
        if c == "'":
            return "".join(out), i + 1
        if c == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in _ANSI_C_ESCAPES:
                out.append(_ANSI_C_ESCAPES[nxt])
                i += 2
                continue
            out.append(c)
            i += 1
            continue
        out.append(c)
        i += 1
    raise LexerError("unexpected EOF while looking for matching `''")


def _find_unescaped(text: str, char: str) -> int:
    i = 0
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == char:
            return i
        i += 1
    return -1


def _parse_braced_parameter(content: str) -> ParameterExpansionPart:
    """Parse the inside of ${...}."""
    if content.startswith("#") and len(content) > 1:
        m = _BRACED_NAME_RE.fullmatch(content[1:])
        if m:
            return ParameterExpansionPart(m.group(0), ParameterOperation(kind="length"))

    m = _BRACED_NAME_RE.match(content)
    if not m:
        raise LexerError(f"${{{content}}}: bad substitution")
    name = m.group(0)
    rest = content[m.end():]
    if not rest:
        return ParameterExpansionPart(name)

    for prefix, kind in ((":-", "default"), (":=", "assign"), (":+", "alternative"), (":?", "error")):
        if rest.startswith(prefix):
            return ParameterExpansionPart(
                name, ParameterOperation(kind=kind, word=parse_word(rest[2:]), check_empty=True)
            )
    for prefix, kind in (("-", "default"), ("=", "assign"), ("+", "alternative"), ("?", "error")):
        if rest.startswith(prefix):
            return ParameterExpansionPart(name, ParameterOperation(kind=kind, word=parse_word(rest[1:])))

    if rest.startswith("#"):
        greedy = rest.startswith("##")
        pattern = rest[2:] if greedy else rest[1:]
        return ParameterExpansionPart(
            name, ParameterOperation(kind="remove_prefix", word=parse_word(pattern), greedy=greedy)
        )
    if rest.startswith("%"):
        greedy = rest.startswith("%%")
        pattern = rest[2:] if greedy else rest[1:]
        return ParameterExpansionPart(
            name, ParameterOperation(kind="remove_suffix", word=parse_word(pattern), greedy=greedy)
        )
    if rest.startswith("/"):
        greedy = rest.startswith("//")
        body = rest[2:] if greedy else rest[1:]
        sep = _find_unescaped(body, "/")
        pattern, replacement = (body, "") if sep == -1 else (body[:sep], body[sep + 1:])
        return ParameterExpansionPart(
            name,
            ParameterOperation(
                kind="replace",
                word=parse_word(pattern),
                replacement=parse_word(replacement),
                greedy=greedy,
            ),
        )
    if rest.startswith(":"):
        bounds = rest[1:]
        offset, _, length = bounds.partition(":")
        return ParameterExpansionPart(
            name,
            ParameterOperation(
                kind="substring",
                offset=offset,
                length=length if ":" in bounds else None,
            ),
        )
    raise LexerError(f"${{{content}}}: bad substitution")
