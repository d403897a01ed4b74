"""Word Expansion.

Turns WordNodes into strings:
- parameter expansion ($NAME, ${NAME...}, special parameters)
- command substitution ($(...), backticks)
- arithmetic expansion ($((...)))
- tilde expansion
- field splitting on $IFS
- pathname (glob) expansion

Expansion first produces a list of ExpandedSegments that remember whether
their text was quoted (protected from splitting and globbing) and whether it
came from an expansion (subject to splitting). The public entry points then
flatten, split or glob those segments as the context requires.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..ast.types import (
    ArithmeticExpansionPart,
    CommandSubstitutionPart,
    DoubleQuotedPart,
    EscapedPart,
    LiteralPart,
    ParameterExpansionPart,
    SingleQuotedPart,
    TildeExpansionPart,
    WordNode,
    WordPart,
)
from ..parser.word import parse_arithmetic_word
from .arithmetic import ArithmeticEvalError, evaluate_arithmetic
from .errors import ExecutionLimitError, ExitError
from .patterns import (
    escape_glob,
    expand_pathname,
    has_glob_chars,
    remove_prefix,
    remove_suffix,
    replace_pattern,
)

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

DEFAULT_IFS = " \t\n"


@dataclass
class ExpandedSegment:
    """A segment of expanded text with quoting context."""

    text: str
    quoted: bool
    """True = protected from IFS splitting and globbing."""
    split: bool = False
    """True = result of an unquoted expansion, subject to IFS splitting."""
    boundary: bool = False
    """Field break between the words of "$@"."""


# =============================================================================
# Parameters
# =============================================================================


def get_variable(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Value of a variable or special parameter, or None when unset."""
    state = ctx.state
    if name == "?":
        return str(state.last_exit_code)
    if name == "#":
        return str(len(state.params))
    if name in ("@", "*"):
        return " ".join(state.params)
    if name == "$":
        return str(os.getpid())
    if name == "0":
        return state.script_name
    if name == "-":
        return "h"
    if name == "!":
        return None
    if name.isdigit():
        index = int(name)
        params = state.params
        return params[index - 1] if index <= len(params) else None
    return state.env.get(name)


def _arith_lookup(ctx: "InterpreterContext"):
    def lookup(name: str) -> Optional[str]:
        return ctx.state.env.get(name)
    return lookup


def _arith_assign(ctx: "InterpreterContext"):
    def assign(name: str, value: str) -> None:
        ctx.state.env[name] = value
    return assign


def evaluate_arithmetic_text(ctx: "InterpreterContext", text: str) -> int:
    """Evaluate already-expanded arithmetic text against the session variables.

    Raises ArithmeticEvalError.
    """
    return evaluate_arithmetic(text, _arith_lookup(ctx), _arith_assign(ctx))


async def evaluate_arithmetic_word(ctx: "InterpreterContext", word: WordNode) -> int:
    """Expand $-references in an arithmetic word, then evaluate it.

    Arithmetic errors abort the script like bash does: ExitError(1).
    """
    text = await expand_word(ctx, word)
    try:
        return evaluate_arithmetic_text(ctx, text)
    except ArithmeticEvalError as e:
        raise ExitError(1, stderr=f"bash: {text.strip()}: {e}\n") from None


# =============================================================================
# Segment expansion
# =============================================================================


async def expand_word_segments(
    ctx: "InterpreterContext", word: WordNode, in_double_quotes: bool = False
) -> list[ExpandedSegment]:
    """Expand a word into segments preserving quoting context."""
    segments: list[ExpandedSegment] = []
    for part in word.parts:
        segments.extend(await _expand_part_segments(ctx, part, in_double_quotes))
    return segments


def _contains_quoted_at(part: DoubleQuotedPart) -> bool:
    return any(
        isinstance(p, ParameterExpansionPart) and p.parameter == "@" and p.operation is None
        for p in part.parts
    )


async def _expand_part_segments(
    ctx: "InterpreterContext", part: WordPart, in_double_quotes: bool
) -> list[ExpandedSegment]:
    if isinstance(part, LiteralPart):
        return [ExpandedSegment(text=part.value, quoted=in_double_quotes)]

    if isinstance(part, (SingleQuotedPart, EscapedPart)):
        return [ExpandedSegment(text=part.value, quoted=True)]

    if isinstance(part, DoubleQuotedPart):
        segments: list[ExpandedSegment] = []
        if not _contains_quoted_at(part):
            # "" must still produce an (empty) field
            segments.append(ExpandedSegment(text="", quoted=True))
        for p in part.parts:
            segments.extend(await _expand_part_segments(ctx, p, True))
        return segments

    if isinstance(part, ParameterExpansionPart):
        return await _expand_parameter_segments(ctx, part, in_double_quotes)

    if isinstance(part, TildeExpansionPart):
        return [_tilde_segment(ctx, part, in_double_quotes)]

    if isinstance(part, ArithmeticExpansionPart):
        value = await evaluate_arithmetic_word(ctx, part.expression)
        return [ExpandedSegment(text=str(value), quoted=in_double_quotes, split=not in_double_quotes)]

    if isinstance(part, CommandSubstitutionPart):
        text = await run_command_substitution(ctx, part)
        return [ExpandedSegment(text=text, quoted=in_double_quotes, split=not in_double_quotes)]

    return []


def _tilde_segment(ctx: "InterpreterContext", part: TildeExpansionPart, in_double_quotes: bool) -> ExpandedSegment:
    if in_double_quotes:
        return ExpandedSegment(text="~" + (part.user or ""), quoted=True)
    if part.user is None:
        text = ctx.state.env.get("HOME", "/home/user")
    elif part.user == "+":
        text = ctx.state.env.get("PWD", ctx.state.cwd)
    elif part.user == "-":
        text = ctx.state.env.get("OLDPWD", "~-")
    else:
        text = f"~{part.user}"
    return ExpandedSegment(text=text, quoted=True)


async def run_command_substitution(ctx: "InterpreterContext", part: CommandSubstitutionPart) -> str:
    """Run the body of $(...) and return its stdout minus one trailing newline."""
    state = ctx.state
    if state.substitution_depth >= ctx.limits.max_substitution_depth:
        logger.warning("command substitution depth limit of %d exceeded", ctx.limits.max_substitution_depth)
        raise ExecutionLimitError(
            f"command substitution nesting too deep ({ctx.limits.max_substitution_depth})",
            "substitution_depth",
        )
    result = await ctx.run_substitution(part.body)
    state.last_exit_code = result.exit_code
    state.expansion_stderr += result.stderr
    stdout = result.stdout
    if stdout.endswith("\n"):
        stdout = stdout[:-1]
    return stdout


async def _expand_parameter_segments(
    ctx: "InterpreterContext", part: ParameterExpansionPart, in_double_quotes: bool
) -> list[ExpandedSegment]:
    name = part.parameter
    op = part.operation

    if op is None:
        return _plain_parameter_segments(ctx, name, in_double_quotes)

    value = get_variable(ctx, name)
    is_null = value is None or (op.check_empty and value == "")

    if op.kind == "default":
        if is_null:
            return await _operand_segments(ctx, op.word, in_double_quotes)
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "assign":
        if is_null:
            if not _is_assignable(name):
                raise ExitError(1, stderr=f"bash: ${name}: cannot assign in this way\n")
            new_value = await expand_word(ctx, op.word) if op.word else ""
            ctx.state.env[name] = new_value
            return [_value_segment(new_value, in_double_quotes)]
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "alternative":
        if is_null:
            return []
        return await _operand_segments(ctx, op.word, in_double_quotes)

    if op.kind == "error":
        if is_null:
            message = await expand_word(ctx, op.word) if op.word else ""
            if not message:
                message = "parameter null or not set"
            raise ExitError(1, stderr=f"bash: {name}: {message}\n")
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "length":
        return [_value_segment(_length(ctx, name, value), in_double_quotes)]

    text = value or ""
    if op.kind in ("remove_prefix", "remove_suffix"):
        pattern = await expand_word_pattern(ctx, op.word) if op.word else ""
        if op.kind == "remove_prefix":
            text = remove_prefix(text, pattern, op.greedy)
        else:
            text = remove_suffix(text, pattern, op.greedy)
    elif op.kind == "replace":
        pattern = await expand_word_pattern(ctx, op.word) if op.word else ""
        replacement = await expand_word(ctx, op.replacement) if op.replacement else ""
        text = replace_pattern(text, pattern, replacement, op.greedy)
    elif op.kind == "substring":
        text = await _substring(ctx, text, op.offset or "", op.length)
    return [_value_segment(text, in_double_quotes)]


def _plain_parameter_segments(ctx: "InterpreterContext", name: str, in_double_quotes: bool) -> list[ExpandedSegment]:
    if name == "@" and in_double_quotes:
        segments: list[ExpandedSegment] = []
        for i, param in enumerate(ctx.state.params):
            if i:
                segments.append(ExpandedSegment(text=" ", quoted=True, boundary=True))
            segments.append(ExpandedSegment(text=param, quoted=True))
        return segments
    if name == "*" and in_double_quotes:
        ifs = ctx.state.env.get("IFS", DEFAULT_IFS)
        return [ExpandedSegment(text=ifs[:1].join(ctx.state.params), quoted=True)]
    return [_value_segment(get_variable(ctx, name) or "", in_double_quotes)]


def _value_segment(value: str, in_double_quotes: bool) -> ExpandedSegment:
    return ExpandedSegment(text=value, quoted=in_double_quotes, split=not in_double_quotes)


def _length(ctx: "InterpreterContext", name: str, value: Optional[str]) -> str:
    if name in ("@", "*"):
        return str(len(ctx.state.params))
    return str(len(value or ""))


def _mark_split(segments: list[ExpandedSegment], in_double_quotes: bool) -> list[ExpandedSegment]:
    """Unquoted text from an operand word is subject to field splitting."""
    if not in_double_quotes:
        for seg in segments:
            if not seg.quoted:
                seg.split = True
    return segments


async def _operand_segments(
    ctx: "InterpreterContext", word: Optional[WordNode], in_double_quotes: bool
) -> list[ExpandedSegment]:
    if word is None:
        return []
    return _mark_split(await expand_word_segments(ctx, word, in_double_quotes), in_double_quotes)


def _is_assignable(name: str) -> bool:
    return not (name.isdigit() or name in ("?", "#", "@", "*", "$", "0", "-", "!"))


async def _substring(ctx: "InterpreterContext", value: str, offset_text: str, length_text: Optional[str]) -> str:
    offset = await evaluate_arithmetic_word(ctx, parse_arithmetic_word(offset_text))
    length = None
    if length_text is not None:
        length = await evaluate_arithmetic_word(ctx, parse_arithmetic_word(length_text))
    return _slice(value, offset, length, length_text)


def _slice(value: str, offset: int, length: Optional[int], length_text: Optional[str]) -> str:
    if offset < 0:
        offset = max(len(value) + offset, 0)
    if length is None:
        return value[offset:]
    if length < 0:
        end = len(value) + length
        if end < offset:
            raise ExitError(1, stderr=f"bash: {length_text}: substring expression < 0\n")
        return value[offset:end]
    return value[offset:offset + length]


# =============================================================================
# Flattening, splitting and globbing
# =============================================================================


def segments_to_string(segments: list[ExpandedSegment]) -> str:
    """Flatten segments into a single string."""
    return "".join(seg.text for seg in segments)


def segments_to_pattern(segments: list[ExpandedSegment]) -> str:
    """Flatten segments into a glob pattern; quoted text matches literally."""
    return "".join(escape_glob(seg.text) if seg.quoted else seg.text for seg in segments)


def split_segments(segments: list[ExpandedSegment], ifs: str) -> list[tuple[str, str]]:
    """Split segments into fields on IFS characters.

    Only unquoted expansion results are split. Returns (text, pattern) pairs,
    where pattern is the field as a glob with quoted characters escaped.

    IFS whitespace delimits runs and is trimmed at both ends; every other IFS
    character ends a field, so "a::b" with IFS=: has an empty middle field.
    """
    ifs_ws = {c for c in ifs if c in " \t\n"}
    ifs_other = set(ifs) - ifs_ws

    fields: list[tuple[str, str]] = []
    text: list[str] = []
    pattern: list[str] = []
    has_field = False
    after_ws_delimiter = False

    def emit() -> None:
        fields.append(("".join(text), "".join(pattern)))
        text.clear()
        pattern.clear()

    for seg in segments:
        if seg.boundary:
            emit()
            has_field = False
            continue
        if seg.quoted:
            has_field = True
            after_ws_delimiter = False
            text.append(seg.text)
            pattern.append(escape_glob(seg.text))
            continue
        for c in seg.text:
            if seg.split and c in ifs_ws:
                if has_field:
                    emit()
                    has_field = False
                    after_ws_delimiter = True
                continue
            if seg.split and c in ifs_other:
                if has_field or not after_ws_delimiter:
                    emit()
                has_field = False
                after_ws_delimiter = False
                continue
            text.append(c)
            pattern.append(c)
            has_field = True
            after_ws_delimiter = False

    if has_field:
        emit()
    return fields


async def expand_word(ctx: "InterpreterContext", word: WordNode) -> str:
    """Expand a word to a single string: no field splitting, no globbing."""
    if not has_command_substitution(word):
        return expand_word_sync(ctx, word)
    return segments_to_string(await expand_word_segments(ctx, word))


async def expand_word_pattern(ctx: "InterpreterContext", word: WordNode) -> str:
    """Expand a word for use as a glob pattern (case, ${x#p}, [[ == ]])."""
    return segments_to_pattern(await expand_word_segments(ctx, word))


async def expand_word_fields(ctx: "InterpreterContext", word: WordNode) -> list[str]:
    """Expand a word into command arguments: split on IFS, then glob."""
    segments = await expand_word_segments(ctx, word)
    ifs = ctx.state.env.get("IFS", DEFAULT_IFS)
    values: list[str] = []
    for text, pattern in split_segments(segments, ifs):
        if has_glob_chars(pattern):
            matches = expand_pathname(ctx.fs, ctx.state.cwd, pattern)
            if matches:
                values.extend(matches)
                continue
        values.append(text)
    return values


async def expand_words(ctx: "InterpreterContext", words: list[WordNode]) -> list[str]:
    """Expand a list of words into fields."""
    values: list[str] = []
    for word in words:
        values.extend(await expand_word_fields(ctx, word))
    return values


# =============================================================================
# Synchronous fast path
# =============================================================================


def has_command_substitution(word: WordNode) -> bool:
    """True if expanding the word may run a command substitution."""
    return any(_part_has_substitution(part) for part in word.parts)


def _part_has_substitution(part: WordPart) -> bool:
    if isinstance(part, CommandSubstitutionPart):
        return True
    if isinstance(part, DoubleQuotedPart):
        return any(_part_has_substitution(p) for p in part.parts)
    if isinstance(part, ArithmeticExpansionPart):
        return has_command_substitution(part.expression)
    if isinstance(part, ParameterExpansionPart) and part.operation is not None:
        op = part.operation
        return any(
            w is not None and has_command_substitution(w)
            for w in (op.word, op.replacement)
        ) or any(
            t is not None and ("$(" in t or "`" in t)
            for t in (op.offset, op.length)
        )
    return False


def expand_word_sync(ctx: "InterpreterContext", word: WordNode) -> str:
    """Expand a word that contains no command substitution without awaiting."""
    return segments_to_string(expand_word_segments_sync(ctx, word))


def expand_word_segments_sync(
    ctx: "InterpreterContext", word: WordNode, in_double_quotes: bool = False
) -> list[ExpandedSegment]:
    segments: list[ExpandedSegment] = []
    for part in word.parts:
        segments.extend(expand_part_segments_sync(ctx, part, in_double_quotes))
    return segments


def expand_part_segments_sync(
    ctx: "InterpreterContext", part: WordPart, in_double_quotes: bool = False
) -> list[ExpandedSegment]:
    """Expand a word part synchronously. Command substitution is not allowed."""
    if isinstance(part, LiteralPart):
        return [ExpandedSegment(text=part.value, quoted=in_double_quotes)]
    if isinstance(part, (SingleQuotedPart, EscapedPart)):
        return [ExpandedSegment(text=part.value, quoted=True)]
    if isinstance(part, DoubleQuotedPart):
        segments: list[ExpandedSegment] = []
        if not _contains_quoted_at(part):
            segments.append(ExpandedSegment(text="", quoted=True))
        for p in part.parts:
            segments.extend(expand_part_segments_sync(ctx, p, True))
        return segments
    if isinstance(part, ParameterExpansionPart):
        return _expand_parameter_segments_sync(ctx, part, in_double_quotes)
    if isinstance(part, TildeExpansionPart):
        return [_tilde_segment(ctx, part, in_double_quotes)]
    if isinstance(part, ArithmeticExpansionPart):
        value = evaluate_arithmetic_word_sync(ctx, part.expression)
        return [ExpandedSegment(text=str(value), quoted=in_double_quotes, split=not in_double_quotes)]
    if isinstance(part, CommandSubstitutionPart):
        raise RuntimeError("command substitution requires async expansion")
    return []


def evaluate_arithmetic_word_sync(ctx: "InterpreterContext", word: WordNode) -> int:
    text = expand_word_sync(ctx, word)
    try:
        return evaluate_arithmetic_text(ctx, text)
    except ArithmeticEvalError as e:
        raise ExitError(1, stderr=f"bash: {text.strip()}: {e}\n") from None


def _expand_parameter_segments_sync(
    ctx: "InterpreterContext", part: ParameterExpansionPart, in_double_quotes: bool
) -> list[ExpandedSegment]:
    name = part.parameter
    op = part.operation
    if op is None:
        return _plain_parameter_segments(ctx, name, in_double_quotes)

    value = get_variable(ctx, name)
    is_null = value is None or (op.check_empty and value == "")

    if op.kind == "default":
        if is_null:
            if op.word is None:
                return []
            return _mark_split(expand_word_segments_sync(ctx, op.word, in_double_quotes), in_double_quotes)
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "assign":
        if is_null:
            if not _is_assignable(name):
                raise ExitError(1, stderr=f"bash: ${name}: cannot assign in this way\n")
            new_value = expand_word_sync(ctx, op.word) if op.word else ""
            ctx.state.env[name] = new_value
            return [_value_segment(new_value, in_double_quotes)]
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "alternative":
        if is_null or op.word is None:
            return []
        return _mark_split(expand_word_segments_sync(ctx, op.word, in_double_quotes), in_double_quotes)

    if op.kind == "error":
        if is_null:
            message = expand_word_sync(ctx, op.word) if op.word else ""
            raise ExitError(1, stderr=f"bash: {name}: {message or 'parameter null or not set'}\n")
        return [_value_segment(value or "", in_double_quotes)]

    if op.kind == "length":
        return [_value_segment(_length(ctx, name, value), in_double_quotes)]

    text = value or ""
    if op.kind in ("remove_prefix", "remove_suffix"):
        pattern = segments_to_pattern(expand_word_segments_sync(ctx, op.word)) if op.word else ""
        if op.kind == "remove_prefix":
            text = remove_prefix(text, pattern, op.greedy)
        else:
            text = remove_suffix(text, pattern, op.greedy)
    elif op.kind == "replace":
        pattern = segments_to_pattern(expand_word_segments_sync(ctx, op.word)) if op.word else ""
        replacement = expand_word_sync(ctx, op.replacement) if op.replacement else ""
        text = replace_pattern(text, pattern, replacement, op.greedy)
    elif op.kind == "substring":
        offset = evaluate_arithmetic_word_sync(ctx, parse_arithmetic_word(op.offset or ""))
        length = None
        if op.length is not None:
            length = evaluate_arithmetic_word_sync(ctx, parse_arithmetic_word(op.length))
        text = _slice(text, offset, length, op.length)
    return [_value_segment(text, in_double_quotes)]
