"""AST model for Coem source programs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from coem.source_map import SourceSpan
from coem.tokens import Token


# Builtin names that already write to the echo channel. An expression
# statement calling one of them directly is not wrapped in another print.
PRINT_BUILTINS: tuple[str, ...] = ("print", "know", "say")


@dataclass(frozen=True)
class AstNode:
    """Base class for AST nodes with provenance span."""

    span: SourceSpan


@dataclass(frozen=True)
class Literal(AstNode):
    """Boolean, nothing, or text constant."""

    value: Any


@dataclass(frozen=True)
class Var(AstNode):
    """Variable reference."""

    name: Token


@dataclass(frozen=True)
class Unary(AstNode):
    """Logical negation: ``not x``."""

    operator: Token
    operand: Expr


@dataclass(frozen=True)
class Binary(AstNode):
    """Equality test: ``a is b``, ``a am b``, ``a are b``."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(AstNode):
    """Short-circuiting ``and`` / ``or``."""

    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Call(AstNode):
    """Function invocation ``callee—arg, arg—``; ``marker`` is the closing em-dash."""

    callee: Expr
    marker: Token
    arguments: tuple[Expr, ...]


@dataclass(frozen=True)
class ExpressionStatement(AstNode):
    """Expression run for effect; ``implicit`` marks a parser-inserted print wrap."""

    expression: Expr
    implicit: bool = False


@dataclass(frozen=True)
class VarStatement(AstNode):
    name: Token
    initializer: Expr | None = None


@dataclass(frozen=True)
class Block(AstNode):
    statements: tuple[Stmt, ...]


@dataclass(frozen=True)
class Condition(AstNode):
    test: Expr
    then_branch: Stmt
    else_branch: Stmt | None = None


@dataclass(frozen=True)
class While(AstNode):
    test: Expr
    body: Stmt


@dataclass(frozen=True)
class Return(AstNode):
    keyword: Token
    value: Expr | None = None


@dataclass(frozen=True)
class FunctionDecl(AstNode):
    name: Token
    params: tuple[Token, ...]
    body: tuple[Stmt, ...]


@dataclass(frozen=True)
class Directive(AstNode):
    """Top-level ``#name value`` pragma."""

    name: Token
    value: Token


@dataclass(frozen=True)
class Comment(AstNode):
    """Dagger comment; ``text`` is the string token holding the rest of the line."""

    text: Token


Expr = Union[Literal, Var, Unary, Binary, Logical, Call]
Stmt = Union[
    ExpressionStatement,
    VarStatement,
    Block,
    Condition,
    While,
    Return,
    FunctionDecl,
    Directive,
    Comment,
]
