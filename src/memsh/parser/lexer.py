"""Lexer for shell scripts.

Turns script text into a flat token stream. Words keep their raw text
(quotes included); the parser splits them into word parts later. The lexer
also owns here-document capture: bodies are read as soon as the line that
introduced them ends, and are attached to the ``<<`` token.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class TokenType(Enum):
    WORD = "WORD"
    NEWLINE = "NEWLINE"
    SEMI = ";"
    AMP = "&"
    PIPE = "|"
    AND_AND = "&&"
    OR_OR = "||"
    LESS = "<"
    GREAT = ">"
    DGREAT = ">>"
    CLOBBER = ">|"
    DLESS = "<<"
    DLESSDASH = "<<-"
    TLESS = "<<<"
    GREATAND = ">&"
    LESSAND = "<&"
    ANDGREAT = "&>"
    ANDDGREAT = "&>>"
    DSEMI = ";;"
    SEMI_AND = ";&"
    DSEMI_AND = ";;&"
    LPAREN = "("
    RPAREN = ")"
    DPAREN = "(("
    EOF = "EOF"


REDIRECTION_TYPES = frozenset({
    TokenType.LESS,
    TokenType.GREAT,
    TokenType.DGREAT,
    TokenType.CLOBBER,
    TokenType.DLESS,
    TokenType.DLESSDASH,
    TokenType.TLESS,
    TokenType.GREATAND,
    TokenType.LESSAND,
    TokenType.ANDGREAT,
    TokenType.ANDDGREAT,
})

# Longest operators first.
_OPERATORS: list[tuple[str, TokenType]] = [
    (";;&", TokenType.DSEMI_AND),
    ("<<<", TokenType.TLESS),
    ("<<-", TokenType.DLESSDASH),
    ("&>>", TokenType.ANDDGREAT),
    (";;", TokenType.DSEMI),
    (";&", TokenType.SEMI_AND),
    ("&&", TokenType.AND_AND),
    ("||", TokenType.OR_OR),
    (">>", TokenType.DGREAT),
    (">|", TokenType.CLOBBER),
    (">&", TokenType.GREATAND),
    ("<&", TokenType.LESSAND),
    ("&>", TokenType.ANDGREAT),
    ("<<", TokenType.DLESS),
    (";", TokenType.SEMI),
    ("&", TokenType.AMP),
    ("|", TokenType.PIPE),
    ("<", TokenType.LESS),
    (">", TokenType.GREAT),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
]

_METACHARS = frozenset(" \t\n;&|<>()")

RESERVED_WORDS = frozenset({
    "if", "then", "else", "elif", "fi",
    "for", "in", "do", "done",
    "while", "until",
    "case", "esac",
    "function", "{", "}", "!", "[[", "]]",
})

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ASSIGNMENT_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)(\+?)=")


def is_valid_name(name: str) -> bool:
    """Check if name is a valid shell variable name."""
    return bool(_NAME_RE.match(name))


def match_assignment(text: str) -> Optional[re.Match]:
    """Match the NAME= / NAME+= prefix of an assignment word."""
    return _ASSIGNMENT_RE.match(text)


class LexerError(Exception):
    """Raised for unterminated quotes and other lexical errors."""

    def __init__(self, message: str, line: int = 1):
        super().__init__(message)
        self.line = line


MAX_PARSE_DEPTH = 64

_parse_depth: ContextVar[int] = ContextVar("parse_depth", default=0)


@contextmanager
def nested_parse(line: int = 1) -> Iterator[None]:
    """Open one level of syntactic nesting: a command, a word or a $(...) body.

    Nested parsers share the count, so $(...) inside { ... } inside $(...)
    all add up. Raises LexerError past MAX_PARSE_DEPTH.
    """
    depth = _parse_depth.get() + 1
    if depth > MAX_PARSE_DEPTH:
        raise LexerError(f"syntax error: nesting too deep (more than {MAX_PARSE_DEPTH} levels)", line)
    token = _parse_depth.set(depth)
    try:
        yield
    finally:
        _parse_depth.reset(token)


@dataclass
class HeredocInfo:
    """A here-document attached to a << or <<- token."""

    delimiter: str
    quoted: bool
    strip_tabs: bool
    body: str = ""


@dataclass
class Token:
    type: TokenType
    value: str
    line: int = 1
    fd: Optional[int] = None
    """IO number prefix of a redirection operator (the 2 in 2>)."""
    heredoc: Optional[HeredocInfo] = None


# =============================================================================
# Delimiter matching
# =============================================================================


def skip_single_quoted(text: str, pos: int) -> int:
    """pos points at the opening quote; return index after the closing one."""
    end = text.find("'", pos + 1)
    if end == -1:
        raise LexerError("unexpected EOF while looking for matching `''")
    return end + 1


def skip_double_quoted(text: str, pos: int) -> int:
    """pos points at the opening quote; return index after the closing one."""
    i = pos + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            return i + 1
        if c == "$" and i + 1 < n and text[i + 1] in "({":
            i = skip_dollar(text, i)
            continue
        if c == "`":
            i = skip_backtick(text, i)
            continue
        i += 1
    raise LexerError("unexpected EOF while looking for matching `\"'")


def skip_backtick(text: str, pos: int) -> int:
    i = pos + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == "`":
            return i + 1
        i += 1
    raise LexerError("unexpected EOF while looking for matching ``'")


def find_matching_paren(text: str, pos: int) -> int:
    """pos points at '('; return the index of the matching ')'.

    Quotes, escapes and nested substitutions inside are skipped so that a
    ')' inside a string does not close the group.
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == "'":
            i = skip_single_quoted(text, i)
            continue
        if c == '"':
            i = skip_double_quoted(text, i)
            continue
        if c == "`":
            i = skip_backtick(text, i)
            continue
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise LexerError("unexpected EOF while looking for matching `)'")


def find_closing_brace(text: str, pos: int) -> int:
    """pos points at '{' of ${; return the index of the matching '}'."""
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == "'":
            i = skip_single_quoted(text, i)
            continue
        if c == '"':
            i = skip_double_quoted(text, i)
            continue
        if c == "$" and i + 1 < n and text[i + 1] == "(":
            i = find_matching_paren(text, i + 1) + 1
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise LexerError("unexpected EOF while looking for matching `}'")


def skip_dollar(text: str, pos: int) -> int:
    """pos points at '$' followed by '(' or '{'; return index after the construct."""
    if text[pos + 1] == "(":
        return find_matching_paren(text, pos + 1) + 1
    return find_closing_brace(text, pos + 1) + 1


# =============================================================================
# Lexer
# =============================================================================


class Lexer:
    """Tokenizer for shell scripts."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.tokens: list[Token] = []
        self._pending_heredocs: list[HeredocInfo] = []

    def tokenize(self) -> list[Token]:
        text = self.text
        n = len(text)
        while self.pos < n:
            c = text[self.pos]
            if c in " \t":
                self.pos += 1
                continue
            if c == "\\" and self.pos + 1 < n and text[self.pos + 1] == "\n":
                self.pos += 2
                self.line += 1
                continue
            if c == "#":
                while self.pos < n and text[self.pos] != "\n":
                    self.pos += 1
                continue
            if c == "\n":
                self._emit(TokenType.NEWLINE, "\n")
                self.pos += 1
                self.line += 1
                if self._pending_heredocs:
                    self._read_heredoc_bodies()
                continue
            if text.startswith("((", self.pos):
                self._read_arithmetic_command()
                continue
            if c.isdigit():
                fd_end = self.pos
                while fd_end < n and text[fd_end].isdigit():
                    fd_end += 1
                if fd_end < n and text[fd_end] in "<>":
                    fd = int(text[self.pos:fd_end])
                    self.pos = fd_end
                    self._read_operator(fd)
                    continue
            if c in ";&|<>()":
                self._read_operator(None)
                continue
            self._read_word()

        if self._pending_heredocs:
            # Here-doc started on the last line with no body.
            self._pending_heredocs.clear()
        self._emit(TokenType.EOF, "")
        return self.tokens

    def _emit(self, token_type: TokenType, value: str, fd: Optional[int] = None) -> Token:
        token = Token(type=token_type, value=value, line=self.line, fd=fd)
        self.tokens.append(token)
        return token

    def _read_operator(self, fd: Optional[int]) -> None:
        for op, token_type in _OPERATORS:
            if self.text.startswith(op, self.pos):
                self.pos += len(op)
                self._emit(token_type, op, fd)
                return
        raise LexerError(f"syntax error near unexpected token `{self.text[self.pos]}'", self.line)

    def _read_arithmetic_command(self) -> None:
        start = self.pos
        try:
            end = find_matching_paren(self.text, self.pos)
        except LexerError as e:
            raise LexerError(str(e), self.line) from None
        inner = self.text[start + 1:end]
        # inner must be a single "(expr)" group for this to be (( ... )).
        if not inner.endswith(")") or find_matching_paren(inner, 0) != len(inner) - 1:
            self.pos += 1
            self._emit(TokenType.LPAREN, "(")
            return
        self.line += self.text.count("\n", start, end)
        self.pos = end + 1
        self._emit(TokenType.DPAREN, inner[1:-1])

    def _read_word(self) -> None:
        text = self.text
        n = len(text)
        start = self.pos
        start_line = self.line
        i = self.pos
        try:
            while i < n:
                c = text[i]
                if c in _METACHARS:
                    break
                if c == "\\":
                    i += 2
                    continue
                if c == "'":
                    i = skip_single_quoted(text, i)
                    continue
                if c == '"':
                    i = skip_double_quoted(text, i)
                    continue
                if c == "`":
                    i = skip_backtick(text, i)
                    continue
                if c == "$" and i + 1 < n and text[i + 1] in "({":
                    i = skip_dollar(text, i)
                    continue
                i += 1
        except LexerError as e:
            raise LexerError(str(e), start_line) from None

        value = text[start:min(i, n)]
        self.line += value.count("\n")
        self.pos = i
        token = Token(type=TokenType.WORD, value=value, line=start_line)
        self.tokens.append(token)

        if len(self.tokens) >= 2:
            prev = self.tokens[-2]
            if prev.type in (TokenType.DLESS, TokenType.DLESSDASH):
                info = HeredocInfo(
                    delimiter=_unquote_delimiter(value),
                    quoted=any(q in value for q in "'\"\\"),
                    strip_tabs=prev.type == TokenType.DLESSDASH,
                )
                prev.heredoc = info
                self._pending_heredocs.append(info)

    def _read_heredoc_bodies(self) -> None:
        """Capture the bodies of pending here-docs, starting at the current line."""
        text = self.text
        n = len(text)
        for info in self._pending_heredocs:
            lines: list[str] = []
            while self.pos < n:
                end = text.find("\n", self.pos)
                if end == -1:
                    end = n
                line = text[self.pos:end]
                self.pos = min(end + 1, n)
                self.line += 1
                if info.strip_tabs:
                    line = line.lstrip("\t")
                if line == info.delimiter:
                    break
                lines.append(line + "\n")
            info.body = "".join(lines)
        self._pending_heredocs.clear()


def _unquote_delimiter(word: str) -> str:
    result = []
    i = 0
    while i < len(word):
        c = word[i]
        if c == "\\" and i + 1 < len(word):
            result.append(word[i + 1])
            i += 2
            continue
        if c in "'\"":
            i += 1
            continue
        result.append(c)
        i += 1
    return "".join(result)


def tokenize(text: str) -> list[Token]:
    """Tokenize script text."""
    return Lexer(text).tokenize()


_HTML_ENTITIES = {"&lt;": "<", "&gt;": ">", "&amp;": "&"}


def unescape_html_entities(script: str) -> str:
    """Turn &lt; &gt; &amp; outside quotes back into shell operators.

    Generated scripts sometimes arrive HTML-escaped; inside quotes the text
    is left alone since it may be intentional.
    """
    if "&" not in script:
        return script
    result = []
    i = 0
    n = len(script)
    quote: Optional[str] = None
    while i < n:
        c = script[i]
        if quote:
            if c == "\\" and quote == '"' and i + 1 < n:
                result.append(script[i:i + 2])
                i += 2
                continue
            if c == quote:
                quote = None
            result.append(c)
            i += 1
            continue
        if c == "\\" and i + 1 < n:
            result.append(script[i:i + 2])
            i += 2
            continue
        if c in "'\"":
            quote = c
            result.append(c)
            i += 1
            continue
        if c == "&":
            for entity, replacement in _HTML_ENTITIES.items():
                if script.startswith(entity, i):
                    result.append(replacement)
                    i += len(entity)
                    break
            else:
                result.append(c)
                i += 1
            continue
        result.append(c)
        i += 1
    return "".join(result)
