"""Structured interpreter diagnostics and exception hierarchy for Coem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from coem.source_map import SourceSpan
from coem.tokens import Token, TokenType


@dataclass(frozen=True)
class Diagnostic:
    """Machine-readable diagnostic emitted by interpreter phases."""

    code: str
    message: str
    span: SourceSpan | None = None
    hint: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize the diagnostic for JSON output."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "hint": self.hint,
        }
        if self.span is not None:
            payload["span"] = self.span.to_dict()
        return payload


class CoemError(Exception):
    """Base interpreter error carrying a code and optional source span."""

    kind = "Parse"

    def __init__(self, code: str, message: str, span: SourceSpan | None = None, hint: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.span = span
        self.hint = hint

    def to_diagnostic(self) -> Diagnostic:
        """Convert exception into serializable diagnostic."""
        return Diagnostic(code=self.code, message=self.message, span=self.span, hint=self.hint)

    def __str__(self) -> str:
        if self.span is None:
            return f"[{self.code}] {self.message}"
        return (
            f"[{self.code}] {self.message} "
            f"({self.span.file}:{self.span.line}:{self.span.column + 1})"
        )


class LexError(CoemError):
    """Raised by lexical analysis failures."""


class ParseError(CoemError):
    """Raised by parser failures."""

    @classmethod
    def at_token(cls, token: Token, message: str, *, code: str = "PAR002", hint: str = "") -> ParseError:
        """Build an error located at ``token``; EOF errors carry no lexeme prefix."""
        if token.token_type == TokenType.EOF:
            return cls(code=code, message=message, span=token.span, hint=hint)
        return cls(code=code, message=f"{_token_prefix(token)}{message}", span=token.span, hint=hint)


class CoemRuntimeError(CoemError):
    """Raised by the evaluator."""

    kind = "Runtime"

    @classmethod
    def at_token(cls, token: Token, message: str, *, code: str = "RUN001", hint: str = "") -> CoemRuntimeError:
        return cls(code=code, message=f"{_token_prefix(token)}{message}", span=token.span, hint=hint)


class CLIError(CoemError):
    """Raised by CLI usage or service orchestration failures."""


def _token_prefix(token: Token) -> str:
    if token.token_type == TokenType.NEWLINE:
        return "at end of line: "
    if not token.lexeme:
        return ""
    return f'at "{token.lexeme}": '


def format_diagnostic(diag: Diagnostic) -> str:
    """Format diagnostic into a stable human-readable line."""
    if diag.span is None:
        suffix = ""
    else:
        suffix = f" {diag.span.file}:{diag.span.line}:{diag.span.column + 1}"
    hint = f" Hint: {diag.hint}" if diag.hint else ""
    return f"{diag.code}{suffix}: {diag.message}{hint}"


def format_coem_error(error: BaseException, source: str) -> dict[str, str]:
    """Split ``source`` around the error location for caret-style rendering.

    The three sections are exact substrings of ``source``: from the newline
    preceding the error start up to the start, the error span itself, and from
    the error end up to the next newline. Errors that are not Coem errors are
    reported as an opaque one-liner.
    """
    if not isinstance(error, CoemError) or error.span is None:
        return {"oneLiner": f"Unexpected internal error: {error}"}

    start = error.span.start.index
    end = error.span.end.index

    front = source.rfind("\n", 0, start + 1)
    pre_start = front if front >= 0 else 0
    back = source.find("\n", end)
    post_end = back if back >= 0 else len(source)

    return {
        "oneLiner": (
            f"{error.kind} Error: {error.message} "
            f"at {error.span.end.line}:{error.span.end.column + 1}"
        ),
        "preErrorSection": source[pre_start:start],
        "errorSection": source[start:end],
        "postErrorSection": source[end:post_end],
    }
