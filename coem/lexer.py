"""Coem lexical analyzer."""

from __future__ import annotations

import string
from typing import Callable, Final

from coem.errors import LexError
from coem.source_map import Position, SourceSpan
from coem.tokens import KEYWORDS, Token, TokenType


STRING_OPEN: Final = "“"
STRING_CLOSE: Final = "”"
COMMENT_MARKER: Final = "†"

# Characters allowed in identifiers besides letters. They let a name spell an
# alternation pattern such as ``her|him`` or ``colou?r``.
PATTERN_CHARS: Final = frozenset("()[]|?*+")
IDENTIFIER_CHARS: Final = frozenset(string.ascii_letters) | PATTERN_CHARS

_SINGLE_CHAR_TOKENS: Final[dict[str, TokenType]] = {
    "—": TokenType.EMDASH,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "&": TokenType.AMPERSAND,
    "#": TokenType.POUND,
}

_WHITESPACE: Final = frozenset(" \t\r")


def is_identifier_char(ch: str) -> bool:
    return ch in IDENTIFIER_CHARS


class Lexer:
    """Converts Coem source text into a token stream."""

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.index = 0
        self.line = 1
        self.column = 0
        self._start = Position(index=0, line=1, column=0)
        self._tokens: list[Token] = []
        self._handlers: dict[str, Callable[[], None]] = {
            "\n": self._lex_newline,
            STRING_OPEN: self._lex_string,
            COMMENT_MARKER: self._lex_comment,
        }

    def tokenize(self) -> list[Token]:
        """Tokenize full source and return the token stream."""
        self._tokens = []

        while not self._is_eof():
            self._start = self._position()
            ch = self._advance()

            if ch in _WHITESPACE:
                continue

            token_type = _SINGLE_CHAR_TOKENS.get(ch)
            if token_type is not None:
                self._add_token(token_type)
                continue

            handler = self._handlers.get(ch)
            if handler is not None:
                handler()
                continue

            if is_identifier_char(ch):
                self._lex_identifier()
                continue

            raise LexError(
                code="LEX001",
                message=f"Unexpected character {ch!r}.",
                span=self._span(),
                hint="Use letters for names and “ ” quotes for text.",
            )

        self._start = self._position()
        self._add_token(TokenType.EOF)
        return self._tokens

    def _lex_newline(self) -> None:
        # The newline belongs to the line it terminates.
        self._add_token(TokenType.NEWLINE)

    def _lex_identifier(self) -> None:
        while not self._is_eof() and is_identifier_char(self._peek()):
            self._advance()
        text = self.source[self._start.index : self.index]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _lex_string(self) -> None:
        while not self._is_eof() and self._peek() != STRING_CLOSE:
            self._advance()

        if self._is_eof():
            raise LexError(
                code="LEX002",
                message="Unfinished string.",
                span=self._span(),
                hint=f"Close the string with {STRING_CLOSE}.",
            )

        self._advance()  # closing quote
        value = self.source[self._start.index + 1 : self.index - 1]
        self._add_token(TokenType.STRING, value)

    def _lex_comment(self) -> None:
        self._add_token(TokenType.DAGGER)

        self._start = self._position()
        while not self._is_eof() and self._peek() != "\n":
            self._advance()
        text = self.source[self._start.index : self.index]
        self._add_token(TokenType.STRING, text)

    def _add_token(self, token_type: TokenType, literal: object = None) -> None:
        lexeme = self.source[self._start.index : self.index]
        self._tokens.append(Token(token_type=token_type, lexeme=lexeme, literal=literal, span=self._span()))

    def _peek(self) -> str:
        if self.index >= len(self.source):
            return "\0"
        return self.source[self.index]

    def _advance(self) -> str:
        ch = self.source[self.index]
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.column = 0
        else:
            self.column += 1
        return ch

    def _is_eof(self) -> bool:
        return self.index >= len(self.source)

    def _position(self) -> Position:
        return Position(index=self.index, line=self.line, column=self.column)

    def _span(self) -> SourceSpan:
        return SourceSpan(file=self.filename, start=self._start, end=self._position())
