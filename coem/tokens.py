"""Token definitions for Coem lexical analysis."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from coem.source_map import SourceSpan


class TokenType(Enum):
    """Finite token categories used by lexer and parser."""

    COLON = auto()  # :
    COMMA = auto()  # ,
    DOT = auto()  # .
    EMDASH = auto()  # —
    AMPERSAND = auto()  # &
    POUND = auto()  # #
    DAGGER = auto()  # †

    IDENTIFIER = auto()
    STRING = auto()

    AND = auto()
    OR = auto()
    IS = auto()
    AM = auto()
    ARE = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    LET = auto()
    BE = auto()
    TO = auto()
    TRUE = auto()
    FALSE = auto()
    NOTHING = auto()
    NOT = auto()

    NEWLINE = auto()
    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "or": TokenType.OR,
    "is": TokenType.IS,
    "am": TokenType.AM,
    "are": TokenType.ARE,
    "not": TokenType.NOT,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "nothing": TokenType.NOTHING,
    "let": TokenType.LET,
    "be": TokenType.BE,
    "to": TokenType.TO,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
}


@dataclass(frozen=True)
class Token:
    """A single lexical token with original source span.

    ``lexeme`` is the raw source text; ``literal`` is the decoded value for
    string tokens and ``None`` otherwise.
    """

    token_type: TokenType
    lexeme: str
    literal: Any
    span: SourceSpan

    def __str__(self) -> str:
        return f"{self.token_type.name}({self.lexeme!r})@{self.span.line}:{self.span.column}"
