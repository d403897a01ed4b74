"""AST node types produced by the parser.

A script is a list of statements; a statement is an and-or list of
pipelines; a pipeline is a list of commands. Compound commands hold nested
statement lists, so execution recurses through the same entry points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


# =============================================================================
# Word parts
# =============================================================================


@dataclass(frozen=True)
class LiteralPart:
    """Unquoted literal text (may contain glob characters)."""

    value: str


@dataclass(frozen=True)
class SingleQuotedPart:
    """'text' - fully literal."""

    value: str


@dataclass(frozen=True)
class EscapedPart:
    """A backslash-escaped character."""

    value: str


@dataclass(frozen=True)
class DoubleQuotedPart:
    """"text" - expansions allowed, no splitting or globbing."""

    parts: tuple["WordPart", ...]


@dataclass(frozen=True)
class ParameterOperation:
    """An operation inside ${...}.

    kind is one of: "default" (:- / -), "assign" (:= / =),
    "alternative" (:+ / +), "error" (:? / ?), "length" (#),
    "remove_prefix" (# / ##), "remove_suffix" (% / %%),
    "replace" (/ and //), "substring" (:offset:length).
    """

    kind: str
    word: Optional["WordNode"] = None
    check_empty: bool = False
    """True for the colon forms (treat empty like unset)."""
    greedy: bool = False
    """## / %% / // variants."""
    replacement: Optional["WordNode"] = None
    offset: Optional[str] = None
    length: Optional[str] = None


@dataclass(frozen=True)
class ParameterExpansionPart:
    """$NAME, ${NAME} or ${NAME<op>...}."""

    parameter: str
    operation: Optional[ParameterOperation] = None


@dataclass(frozen=True)
class CommandSubstitutionPart:
    """$(...) or `...`."""

    body: "ScriptNode"
    backtick: bool = False


@dataclass(frozen=True)
class ArithmeticExpansionPart:
    """$((...)) - expression is expanded as a word, then evaluated."""

    expression: "WordNode"


@dataclass(frozen=True)
class TildeExpansionPart:
    """Leading ~ of a word."""

    user: Optional[str] = None


WordPart = Union[
    LiteralPart,
    SingleQuotedPart,
    EscapedPart,
    DoubleQuotedPart,
    ParameterExpansionPart,
    CommandSubstitutionPart,
    ArithmeticExpansionPart,
    TildeExpansionPart,
]


@dataclass(frozen=True)
class WordNode:
    """A shell word: a sequence of parts concatenated after expansion."""

    parts: tuple[WordPart, ...]
    raw: str = ""


# =============================================================================
# Commands
# =============================================================================


@dataclass
class AssignmentNode:
    """NAME=value or NAME+=value."""

    name: str
    value: Optional[WordNode]
    append: bool = False


@dataclass
class HereDocNode:
    """Body of a here-document."""

    delimiter: str
    content: WordNode
    quoted: bool = False
    strip_tabs: bool = False


@dataclass
class RedirectionNode:
    """A redirection such as >file, 2>>log, <<EOF or 2>&1."""

    operator: str
    target: Union[WordNode, HereDocNode]
    fd: Optional[int] = None


@dataclass
class SimpleCommandNode:
    """Assignments, a command name with arguments, and redirections."""

    assignments: list[AssignmentNode] = field(default_factory=list)
    name: Optional[WordNode] = None
    args: list[WordNode] = field(default_factory=list)
    redirections: list[RedirectionNode] = field(default_factory=list)
    line: Optional[int] = None


@dataclass
class IfClause:
    condition: list["StatementNode"]
    body: list["StatementNode"]


@dataclass
class IfNode:
    clauses: list[IfClause]
    else_body: Optional[list["StatementNode"]] = None
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class ForNode:
    """for NAME [in WORDS]; do BODY; done. words=None iterates "$@"."""

    variable: str
    words: Optional[list[WordNode]]
    body: list["StatementNode"]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class CStyleForNode:
    """for ((init; condition; update)); do BODY; done."""

    init: Optional[WordNode]
    condition: Optional[WordNode]
    update: Optional[WordNode]
    body: list["StatementNode"]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class WhileNode:
    condition: list["StatementNode"]
    body: list["StatementNode"]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class UntilNode:
    condition: list["StatementNode"]
    body: list["StatementNode"]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class CaseItemNode:
    patterns: list[WordNode]
    body: list["StatementNode"]
    terminator: str = ";;"


@dataclass
class CaseNode:
    word: WordNode
    items: list[CaseItemNode]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class GroupNode:
    """{ LIST; } - runs in the current shell."""

    body: list["StatementNode"]
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class FunctionDefNode:
    name: str
    body: "CommandNode"
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class ArithmeticCommandNode:
    """(( expr ))."""

    expression: WordNode
    redirections: list[RedirectionNode] = field(default_factory=list)


@dataclass
class ConditionalCommandNode:
    """[[ expr ]] - operands are kept as words and tokenized after expansion."""

    words: list[WordNode]
    redirections: list[RedirectionNode] = field(default_factory=list)


CompoundCommandNode = Union[
    IfNode,
    ForNode,
    CStyleForNode,
    WhileNode,
    UntilNode,
    CaseNode,
    GroupNode,
    ArithmeticCommandNode,
    ConditionalCommandNode,
]

CommandNode = Union[SimpleCommandNode, CompoundCommandNode, FunctionDefNode]


@dataclass
class PipelineNode:
    commands: list[CommandNode]
    negated: bool = False


@dataclass
class StatementNode:
    """Pipelines joined by && / ||. operators[i] sits between pipelines i and i+1."""

    pipelines: list[PipelineNode]
    operators: list[str] = field(default_factory=list)
    background: bool = False


@dataclass
class ScriptNode:
    statements: list[StatementNode] = field(default_factory=list)
