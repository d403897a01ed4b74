"""Shell script lexer and parser."""

from .lexer import Lexer, LexerError, Token, TokenType, tokenize, unescape_html_entities
from .parser import ParseException, Parser, parse
from .word import parse_word

__all__ = [
    "Lexer",
    "LexerError",
    "ParseException",
    "Parser",
    "Token",
    "TokenType",
    "parse",
    "parse_word",
    "tokenize",
    "unescape_html_entities",
]
