"""Shell glob patterns.

Patterns use `*`, `?` and bracket expressions (`[abc]`, `[!a-z]`,
`[[:digit:]]`). A backslash makes the next character literal; the expander
uses that to protect quoted text inside a pattern.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import IFileSystem

_POSIX_CLASSES = {
    "[:alpha:]": "a-zA-Z",
    "[:digit:]": "0-9",
    "[:alnum:]": "a-zA-Z0-9",
    "[:upper:]": "A-Z",
    "[:lower:]": "a-z",
    "[:space:]": " \\t\\n\\r\\f\\v",
    "[:blank:]": " \\t",
    "[:punct:]": r"!\"#$%&'()*+,\-./:;<=>?@\[\\\]^_`{|}~",
    "[:xdigit:]": "0-9a-fA-F",
}

_GLOB_SPECIALS = frozenset("*?[]\\")


def escape_glob(text: str) -> str:
    """Backslash-escape glob metacharacters so text matches literally."""
    return "".join("\\" + c if c in _GLOB_SPECIALS else c for c in text)


def unescape_glob(pattern: str) -> str:
    """Drop the backslashes escape_glob added."""
    return re.sub(r"\\(.)", r"\1", pattern, flags=re.DOTALL)


def has_glob_chars(pattern: str) -> bool:
    """True if pattern contains an unescaped *, ? or [."""
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "\\":
            i += 2
            continue
        if c in "*?[":
            return True
        i += 1
    return False


def _bracket_end(pattern: str, start: int) -> int:
    """Index of the ] closing the bracket expression at start, or -1."""
    j = start + 1
    if j < len(pattern) and pattern[j] in "!^":
        j += 1
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    while j < len(pattern):
        if pattern[j] == "[" and pattern.startswith("[:", j):
            end = pattern.find(":]", j + 2)
            if end != -1:
                j = end + 2
                continue
        if pattern[j] == "\\":
            j += 2
            continue
        if pattern[j] == "]":
            return j
        j += 1
    return -1


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str, greedy: bool = True) -> str:
    """Convert a glob pattern to an (unanchored) regex string."""
    result: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            result.append(".*" if greedy else ".*?")
        elif c == "?":
            result.append(".")
        elif c == "\\":
            if i + 1 < n:
                i += 1
                result.append(re.escape(pattern[i]))
            else:
                result.append("\\\\")
        elif c == "[":
            end = _bracket_end(pattern, i)
            if end == -1:
                result.append("\\[")
            else:
                body = pattern[i + 1:end]
                negate = body[:1] in ("!", "^")
                if negate:
                    body = body[1:]
                converted: list[str] = []
                j = 0
                while j < len(body):
                    matched_class = False
                    for name, chars in _POSIX_CLASSES.items():
                        if body.startswith(name, j):
                            converted.append(chars)
                            j += len(name)
                            matched_class = True
                            break
                    if matched_class:
                        continue
                    ch = body[j]
                    if ch == "\\" and j + 1 < len(body):
                        converted.append(re.escape(body[j + 1]))
                        j += 2
                        continue
                    if ch == "-" and 0 < j < len(body) - 1:
                        converted.append("-")
                    elif ch in "\\]^[":
                        converted.append("\\" + ch)
                    else:
                        converted.append(ch)
                    j += 1
                result.append(("[^" if negate else "[") + "".join(converted) + "]")
                i = end
        else:
            result.append(re.escape(c))
        i += 1
    return "".join(result)


@lru_cache(maxsize=512)
def _compiled(pattern: str, greedy: bool = True) -> re.Pattern:
    return re.compile(glob_to_regex(pattern, greedy), re.DOTALL)


def pattern_matches(value: str, pattern: str) -> bool:
    """True if value matches the whole glob pattern."""
    return _compiled(pattern).fullmatch(value) is not None


def remove_prefix(value: str, pattern: str, greedy: bool) -> str:
    """${var#pattern} / ${var##pattern}."""
    regex = _compiled(pattern)
    indices = range(len(value), -1, -1) if greedy else range(len(value) + 1)
    for i in indices:
        if regex.fullmatch(value, 0, i):
            return value[i:]
    return value


def remove_suffix(value: str, pattern: str, greedy: bool) -> str:
    """${var%pattern} / ${var%%pattern}."""
    regex = _compiled(pattern)
    indices = range(len(value) + 1) if greedy else range(len(value), -1, -1)
    for i in indices:
        if regex.fullmatch(value, i):
            return value[:i]
    return value


def replace_pattern(value: str, pattern: str, replacement: str, replace_all: bool) -> str:
    """${var/pattern/repl} and ${var//pattern/repl}; # and % anchor the pattern."""
    if pattern.startswith("#"):
        regex = _compiled(pattern[1:])
        for i in range(len(value), -1, -1):
            if regex.fullmatch(value, 0, i):
                return replacement + value[i:]
        return value
    if pattern.startswith("%"):
        regex = _compiled(pattern[1:])
        for i in range(len(value) + 1):
            if regex.fullmatch(value, i):
                return value[:i] + replacement
        return value
    if not pattern:
        return value

    regex = _compiled(pattern)
    out: list[str] = []
    i = 0
    replaced = False
    while i <= len(value):
        match_end = -1
        if not replaced or replace_all:
            for end in range(len(value), i, -1):
                if regex.fullmatch(value, i, end):
                    match_end = end
                    break
        if match_end != -1:
            out.append(replacement)
            i = match_end
            replaced = True
            continue
        if i < len(value):
            out.append(value[i])
        i += 1
    return "".join(out)


def _component_matches(name: str, pattern: str) -> bool:
    if name.startswith(".") and not unescape_glob(pattern).startswith("."):
        return False
    return pattern_matches(name, pattern)


def expand_pathname(fs: "IFileSystem", cwd: str, pattern: str) -> list[str]:
    """Expand a glob pattern against every path in the filesystem.

    Returns matching paths, sorted, in the same form as the pattern
    (absolute or relative to cwd). Hidden names only match components that
    start with a literal dot. An empty list means no match.
    """
    absolute = pattern.startswith("/")
    components = [c for c in pattern.split("/") if c]
    if not components:
        return []

    # Leading components without glob characters just move the base.
    base = "/" if absolute else cwd
    prefix: list[str] = []
    while components and not has_glob_chars(components[0]):
        literal = unescape_glob(components[0])
        base = fs.resolve_path(base, literal)
        prefix.append(literal)
        components.pop(0)
    if not components:
        return []

    base_prefix = "/" if base == "/" else base + "/"
    results: list[str] = []
    for path in fs.get_all_paths():
        if not path.startswith(base_prefix) or path == base:
            continue
        parts = path[len(base_prefix):].split("/")
        if len(parts) != len(components):
            continue
        if all(_component_matches(p, c) for p, c in zip(parts, components)):
            relative = "/".join(prefix + parts)
            results.append("/" + relative if absolute else relative)
    return sorted(results)

