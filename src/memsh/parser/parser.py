"""Recursive descent parser for shell scripts.

Grammar (informally):

    script     := statement*
    statement  := pipeline (("&&" | "||") pipeline)* [";" | "&" | NEWLINE]
    pipeline   := "!"* command ("|" command)*
    command    := simple | if | for | while | until | case | "{" list "}"
                | function | "((" expr "))" | "[[" words "]]"
"""

from __future__ import annotations

from typing import Optional

from ..ast.types import (
    ArithmeticCommandNode,
    AssignmentNode,
    CaseItemNode,
    CaseNode,
    CommandNode,
    ConditionalCommandNode,
    CStyleForNode,
    ForNode,
    FunctionDefNode,
    GroupNode,
    HereDocNode,
    IfClause,
    IfNode,
    LiteralPart,
    PipelineNode,
    RedirectionNode,
    ScriptNode,
    SimpleCommandNode,
    SingleQuotedPart,
    StatementNode,
    UntilNode,
    WhileNode,
    WordNode,
)
from .lexer import (
    REDIRECTION_TYPES,
    LexerError,
    Lexer,
    Token,
    TokenType,
    is_valid_name,
    match_assignment,
    nested_parse,
)
from .word import parse_arithmetic_word, parse_heredoc_body, parse_word

MAX_INPUT_SIZE = 1_000_000
MAX_TOKENS = 100_000

_CASE_TERMINATORS = (TokenType.DSEMI, TokenType.SEMI_AND, TokenType.DSEMI_AND)

_COMPOUND_NODES = (
    IfNode,
    ForNode,
    CStyleForNode,
    WhileNode,
    UntilNode,
    CaseNode,
    GroupNode,
    ArithmeticCommandNode,
    ConditionalCommandNode,
)


class ParseException(Exception):
    """Raised when a script cannot be parsed."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class Parser:
    """Parser turning script text into a ScriptNode."""

    def __init__(self):
        self.tokens: list[Token] = []
        self.pos = 0

    def parse(self, text: str) -> ScriptNode:
        try:
            return self._parse_script(text)
        except RecursionError:
            # Nesting the depth count does not see, such as quotes inside
            # quotes inside $(...).
            raise ParseException("syntax error: nesting too deep") from None

    def _parse_script(self, text: str) -> ScriptNode:
        if len(text) > MAX_INPUT_SIZE:
            raise ParseException(f"script too large ({len(text)} bytes)")
        try:
            self.tokens = Lexer(text).tokenize()
        except LexerError as e:
            raise ParseException(str(e), e.line) from None
        if len(self.tokens) > MAX_TOKENS:
            raise ParseException(f"too many tokens ({len(self.tokens)})")
        self.pos = 0

        try:
            statements = self._parse_statement_list(frozenset())
        except LexerError as e:
            raise ParseException(str(e), e.line if e.line != 1 else self._peek().line) from None
        tok = self._peek()
        if tok.type != TokenType.EOF:
            raise self._unexpected(tok)
        return ScriptNode(statements=statements)

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TokenType.EOF:
            self.pos += 1
        return tok

    def _at_word(self, value: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.WORD and tok.value == value

    def _expect_word(self, value: str) -> Token:
        if not self._at_word(value):
            tok = self._peek()
            if tok.type == TokenType.EOF:
                raise ParseException(f"syntax error: unexpected end of file, expected `{value}'", tok.line)
            raise self._unexpected(tok)
        return self._advance()

    def _expect(self, token_type: TokenType) -> Token:
        tok = self._peek()
        if tok.type != token_type:
            raise self._unexpected(tok)
        return self._advance()

    def _skip_newlines(self) -> None:
        while self._peek().type == TokenType.NEWLINE:
            self._advance()

    def _skip_separators(self) -> None:
        while self._peek().type in (TokenType.NEWLINE, TokenType.SEMI):
            self._advance()

    def _unexpected(self, tok: Token) -> ParseException:
        if tok.type == TokenType.EOF:
            return ParseException("syntax error: unexpected end of file", tok.line)
        value = "newline" if tok.type == TokenType.NEWLINE else tok.value
        return ParseException(f"syntax error near unexpected token `{value}'", tok.line)

    # -------------------------------------------------------------------------
    # Lists, statements, pipelines
    # -------------------------------------------------------------------------

    def _at_list_end(self, terminators: frozenset[str]) -> bool:
        tok = self._peek()
        if tok.type in (TokenType.EOF, TokenType.RPAREN) or tok.type in _CASE_TERMINATORS:
            return True
        return tok.type == TokenType.WORD and tok.value in terminators

    def _parse_statement_list(self, terminators: frozenset[str]) -> list[StatementNode]:
        statements: list[StatementNode] = []
        while True:
            self._skip_newlines()
            if self._at_list_end(terminators):
                return statements
            stmt = self._parse_statement()
            statements.append(stmt)
            tok = self._peek()
            if tok.type in (TokenType.SEMI, TokenType.NEWLINE):
                self._advance()
            elif tok.type == TokenType.AMP:
                stmt.background = True
                self._advance()
            elif not self._at_list_end(terminators):
                raise self._unexpected(tok)

    def _parse_body(self, terminators: frozenset[str]) -> list[StatementNode]:
        body = self._parse_statement_list(terminators)
        if not body:
            raise self._unexpected(self._peek())
        return body

    def _parse_statement(self) -> StatementNode:
        pipelines = [self._parse_pipeline()]
        operators: list[str] = []
        while self._peek().type in (TokenType.AND_AND, TokenType.OR_OR):
            operators.append(self._advance().value)
            self._skip_newlines()
            pipelines.append(self._parse_pipeline())
        return StatementNode(pipelines=pipelines, operators=operators)

    def _parse_pipeline(self) -> PipelineNode:
        negated = False
        while self._at_word("!"):
            negated = not negated
            self._advance()
        commands = [self._parse_command()]
        while self._peek().type == TokenType.PIPE:
            self._advance()
            self._skip_newlines()
            commands.append(self._parse_command())
        return PipelineNode(commands=commands, negated=negated)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _parse_command(self) -> CommandNode:
        with nested_parse(self._peek().line):
            return self._parse_command_node()

    def _parse_command_node(self) -> CommandNode:
        tok = self._peek()
        if tok.type == TokenType.DPAREN:
            self._advance()
            node: CommandNode = ArithmeticCommandNode(expression=parse_arithmetic_word(tok.value))
        elif tok.type == TokenType.WORD:
            value = tok.value
            if value == "if":
                node = self._parse_if()
            elif value == "for":
                node = self._parse_for()
            elif value == "while":
                node = self._parse_while(until=False)
            elif value == "until":
                node = self._parse_while(until=True)
            elif value == "case":
                node = self._parse_case()
            elif value == "{":
                node = self._parse_group()
            elif value == "[[":
                node = self._parse_conditional()
            elif value == "function":
                node = self._parse_function(keyword=True)
            elif value in ("then", "else", "elif", "fi", "do", "done", "esac", "}", "]]", "in"):
                raise self._unexpected(tok)
            elif (
                self._peek(1).type == TokenType.LPAREN
                and self._peek(2).type == TokenType.RPAREN
            ):
                node = self._parse_function(keyword=False)
            else:
                return self._parse_simple_command()
        elif tok.type in REDIRECTION_TYPES:
            return self._parse_simple_command()
        else:
            raise self._unexpected(tok)

        if isinstance(node, _COMPOUND_NODES):
            node.redirections.extend(self._parse_redirections())
        return node

    def _parse_simple_command(self) -> SimpleCommandNode:
        node = SimpleCommandNode(line=self._peek().line)
        while True:
            tok = self._peek()
            if tok.type in REDIRECTION_TYPES:
                node.redirections.append(self._parse_redirection())
                continue
            if tok.type != TokenType.WORD:
                break
            self._advance()
            if node.name is None:
                m = match_assignment(tok.value)
                if m:
                    value_text = tok.value[m.end():]
                    node.assignments.append(AssignmentNode(
                        name=m.group(1),
                        value=parse_word(value_text) if value_text else None,
                        append=bool(m.group(2)),
                    ))
                    continue
                node.name = parse_word(tok.value)
            else:
                node.args.append(parse_word(tok.value))
        if node.name is None and not node.assignments and not node.redirections:
            raise self._unexpected(self._peek())
        return node

    def _parse_redirections(self) -> list[RedirectionNode]:
        redirections = []
        while self._peek().type in REDIRECTION_TYPES:
            redirections.append(self._parse_redirection())
        return redirections

    def _parse_redirection(self) -> RedirectionNode:
        op_tok = self._advance()
        target_tok = self._peek()
        if target_tok.type != TokenType.WORD:
            raise self._unexpected(target_tok)
        self._advance()

        if op_tok.type in (TokenType.DLESS, TokenType.DLESSDASH):
            info = op_tok.heredoc
            if info is None:
                raise ParseException("here-document without body", op_tok.line)
            if info.quoted:
                content = WordNode(parts=(SingleQuotedPart(info.body),), raw=info.body)
            else:
                content = parse_heredoc_body(info.body)
            return RedirectionNode(
                operator=op_tok.value,
                target=HereDocNode(
                    delimiter=info.delimiter,
                    content=content,
                    quoted=info.quoted,
                    strip_tabs=info.strip_tabs,
                ),
                fd=op_tok.fd,
            )
        return RedirectionNode(operator=op_tok.value, target=parse_word(target_tok.value), fd=op_tok.fd)

    # -------------------------------------------------------------------------
    # Compound commands
    # -------------------------------------------------------------------------

    def _parse_if(self) -> IfNode:
        self._expect_word("if")
        clauses = []
        condition = self._parse_body(frozenset({"then"}))
        self._expect_word("then")
        body = self._parse_body(frozenset({"elif", "else", "fi"}))
        clauses.append(IfClause(condition=condition, body=body))
        while self._at_word("elif"):
            self._advance()
            condition = self._parse_body(frozenset({"then"}))
            self._expect_word("then")
            body = self._parse_body(frozenset({"elif", "else", "fi"}))
            clauses.append(IfClause(condition=condition, body=body))
        else_body = None
        if self._at_word("else"):
            self._advance()
            else_body = self._parse_body(frozenset({"fi"}))
        self._expect_word("fi")
        return IfNode(clauses=clauses, else_body=else_body)

    def _parse_do_group(self) -> list[StatementNode]:
        self._skip_separators()
        self._expect_word("do")
        body = self._parse_body(frozenset({"done"}))
        self._expect_word("done")
        return body

    def _parse_for(self):
        self._expect_word("for")
        if self._peek().type == TokenType.DPAREN:
            tok = self._advance()
            sections = tok.value.split(";")
            if len(sections) != 3:
                raise ParseException("syntax error: invalid arithmetic for loop", tok.line)
            init, condition, update = (
                parse_arithmetic_word(s.strip()) if s.strip() else None for s in sections
            )
            body = self._parse_do_group()
            return CStyleForNode(init=init, condition=condition, update=update, body=body)

        name_tok = self._expect(TokenType.WORD)
        if not is_valid_name(name_tok.value):
            raise ParseException(f"`{name_tok.value}': not a valid identifier", name_tok.line)
        self._skip_newlines()
        words: Optional[list[WordNode]] = None
        if self._at_word("in"):
            self._advance()
            words = []
            while self._peek().type == TokenType.WORD:
                words.append(parse_word(self._advance().value))
        body = self._parse_do_group()
        return ForNode(variable=name_tok.value, words=words, body=body)

    def _parse_while(self, until: bool):
        self._advance()
        condition = self._parse_body(frozenset({"do"}))
        self._expect_word("do")
        body = self._parse_body(frozenset({"done"}))
        self._expect_word("done")
        if until:
            return UntilNode(condition=condition, body=body)
        return WhileNode(condition=condition, body=body)

    def _parse_case(self) -> CaseNode:
        self._expect_word("case")
        word_tok = self._expect(TokenType.WORD)
        self._skip_newlines()
        self._expect_word("in")
        items: list[CaseItemNode] = []
        self._skip_newlines()
        while not self._at_word("esac"):
            if self._peek().type == TokenType.LPAREN:
                self._advance()
            patterns = [parse_word(self._expect(TokenType.WORD).value)]
            while self._peek().type == TokenType.PIPE:
                self._advance()
                patterns.append(parse_word(self._expect(TokenType.WORD).value))
            self._expect(TokenType.RPAREN)
            body = self._parse_statement_list(frozenset({"esac"}))
            terminator = ";;"
            if self._peek().type in _CASE_TERMINATORS:
                terminator = self._advance().value
            items.append(CaseItemNode(patterns=patterns, body=body, terminator=terminator))
            self._skip_newlines()
        self._expect_word("esac")
        return CaseNode(word=parse_word(word_tok.value), items=items)

    def _parse_group(self) -> GroupNode:
        self._expect_word("{")
        body = self._parse_body(frozenset({"}"}))
        self._expect_word("}")
        return GroupNode(body=body)

    def _parse_function(self, keyword: bool) -> FunctionDefNode:
        if keyword:
            self._advance()
        name_tok = self._expect(TokenType.WORD)
        if self._peek().type == TokenType.LPAREN:
            self._advance()
            self._expect(TokenType.RPAREN)
        self._skip_newlines()
        body = self._parse_command()
        if not isinstance(body, _COMPOUND_NODES):
            raise ParseException(
                f"syntax error: function body of `{name_tok.value}' must be a compound command",
                name_tok.line,
            )
        return FunctionDefNode(name=name_tok.value, body=body)

    def _parse_conditional(self) -> ConditionalCommandNode:
        start = self._expect_word("[[")
        words: list[WordNode] = []
        while not self._at_word("]]"):
            tok = self._advance()
            if tok.type == TokenType.EOF:
                raise ParseException("syntax error: unexpected end of file, expected `]]'", start.line)
            if tok.type == TokenType.NEWLINE:
                continue
            if tok.type == TokenType.WORD:
                words.append(parse_word(tok.value))
                if tok.value == "=~":
                    regex = self._read_regex_operand()
                    if regex:
                        words.append(parse_word(regex))
            elif tok.type == TokenType.DPAREN:
                # "((" inside [[ ]] is two grouping parens
                words.append(WordNode(parts=(LiteralPart("("),), raw="("))
                words.append(WordNode(parts=(LiteralPart("("),), raw="("))
                for inner in Lexer(tok.value).tokenize()[:-1]:
                    if inner.type == TokenType.WORD:
                        words.append(parse_word(inner.value))
                    else:
                        words.append(WordNode(parts=(LiteralPart(inner.value),), raw=inner.value))
                words.append(WordNode(parts=(LiteralPart(")"),), raw=")"))
                words.append(WordNode(parts=(LiteralPart(")"),), raw=")"))
            else:
                words.append(WordNode(parts=(LiteralPart(tok.value),), raw=tok.value))
        self._advance()
        if not words:
            raise ParseException("syntax error: empty [[ ]] expression", start.line)
        return ConditionalCommandNode(words=words)

    def _read_regex_operand(self) -> str:
        """Raw text of the operand after =~, up to ]], && or || outside parentheses.

        ( ) and | are regex syntax here, not shell operators.
        """
        raw = ""
        depth = 0
        while True:
            tok = self._peek()
            if tok.type in (TokenType.EOF, TokenType.NEWLINE):
                return raw
            if depth == 0 and (self._at_word("]]") or tok.type in (TokenType.AND_AND, TokenType.OR_OR)):
                return raw
            if tok.type == TokenType.LPAREN:
                depth += 1
            elif tok.type == TokenType.RPAREN:
                if depth == 0:
                    return raw
                depth -= 1
            self._advance()
            if tok.type == TokenType.DPAREN:
                raw += f"(({tok.value}))"
            elif tok.fd is not None:
                raw += f"{tok.fd}{tok.value}"
            else:
                raw += tok.value


def parse(text: str) -> ScriptNode:
    """Parse script text into an AST. Raises ParseException."""
    return Parser().parse(text)
