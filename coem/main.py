"""Top-level interpreter orchestration for Coem."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Callable

from coem.ast import (
    AstNode,
    Binary,
    Block,
    Call,
    Comment,
    Condition,
    Directive,
    Expr,
    ExpressionStatement,
    FunctionDecl,
    Literal,
    Logical,
    Return,
    Stmt,
    Unary,
    Var,
    VarStatement,
    While,
)
from coem.environment import RunSettings, Scope
from coem.interpreter import Interpreter
from coem.lexer import COMMENT_MARKER, STRING_CLOSE, STRING_OPEN, Lexer
from coem.parser import Parser
from coem.source_map import SourceSpan
from coem.tokens import Token


@dataclass
class RunArtifacts:
    """Pipeline output for debugging and downstream tooling."""

    tokens: list[Token]
    statements: list[Stmt]
    scope: Scope
    echo: str


def parse_source(source: str, *, filename: str = "<input>") -> list[Stmt]:
    """Scan and parse source text into top-level statements."""
    tokens = Lexer(source, filename=filename).tokenize()
    return Parser(tokens).parse_program()


def run_source(
    source: str,
    scope: Scope | None = None,
    *,
    filename: str = "<input>",
    debug: bool = False,
    prompt: Callable[[str], str] | None = None,
) -> RunArtifacts:
    """Run source text against ``scope`` (a fresh global scope by default)."""
    tokens = Lexer(source, filename=filename).tokenize()
    statements = Parser(tokens).parse_program()
    if debug:
        print(f"debug: tokens={len(tokens)} statements={len(statements)}", file=sys.stderr)
        print(json.dumps(ast_to_dict(statements, spans=False), indent=2), file=sys.stderr)

    root = scope if scope is not None else Scope()
    interpreter = Interpreter(root, source, settings=RunSettings(prompt=prompt))
    echo = interpreter.interpret(statements)
    return RunArtifacts(tokens=tokens, statements=statements, scope=root, echo=echo)


def run(source: str, scope: Scope | None = None, debug: bool = False) -> str:
    """Run source text and return its echo."""
    return run_source(source, scope, debug=debug).echo


def run_file(
    input_path: str | Path,
    *,
    debug: bool = False,
    prompt: Callable[[str], str] | None = None,
) -> RunArtifacts:
    """Run an input `.coem` file."""
    path = Path(input_path)
    source = path.read_text(encoding="utf-8")
    return run_source(source, filename=str(path), debug=debug, prompt=prompt)


def explain_source(source: str, *, filename: str = "<input>") -> dict[str, Any]:
    """Return a JSON-compatible payload with token count and AST."""
    tokens = Lexer(source, filename=filename).tokenize()
    statements = Parser(tokens).parse_program()
    return {
        "tokens": len(tokens),
        "ast": ast_to_dict(statements),
    }


def format_source(source: str, *, filename: str = "<input>") -> str:
    """Canonical Coem pretty-printer.

    Bare expressions are written back bare; the parser wraps them in print
    again, so formatting a formatted program is a fixed point.
    """
    statements = parse_source(source, filename=filename)
    return "\n".join(_emit_stmt(stmt, 0) for stmt in statements) + "\n"


_INDENT = "  "


def _emit_block(statements: tuple[Stmt, ...], depth: int) -> str:
    inner = "".join(f"{_emit_stmt(stmt, depth + 1)}\n" for stmt in statements)
    return f":\n{inner}{_INDENT * depth}."


def _emit_stmt(stmt: Stmt, depth: int) -> str:
    pad = _INDENT * depth

    if isinstance(stmt, ExpressionStatement):
        if stmt.implicit:
            return pad + _emit_expr(stmt.expression.arguments[0])
        return pad + _emit_expr(stmt.expression)

    if isinstance(stmt, VarStatement):
        if stmt.initializer is None:
            return f"{pad}let {stmt.name.lexeme}"
        return f"{pad}let {stmt.name.lexeme} be {_emit_expr(stmt.initializer)}"

    if isinstance(stmt, Block):
        return pad + _emit_block(stmt.statements, depth)

    if isinstance(stmt, Condition):
        text = f"{pad}if—{_emit_expr(stmt.test)}— {_emit_stmt(stmt.then_branch, depth).lstrip()}"
        if stmt.else_branch is not None:
            text += f" else {_emit_stmt(stmt.else_branch, depth).lstrip()}"
        return text

    if isinstance(stmt, While):
        return f"{pad}while—{_emit_expr(stmt.test)}— {_emit_stmt(stmt.body, depth).lstrip()}"

    if isinstance(stmt, Return):
        if stmt.value is None:
            return f"{pad}&"
        return f"{pad}& {_emit_expr(stmt.value)}"

    if isinstance(stmt, FunctionDecl):
        params = ", ".join(param.lexeme for param in stmt.params)
        return f"{pad}to {stmt.name.lexeme}—{params}—{_emit_block(stmt.body, depth)}"

    if isinstance(stmt, Directive):
        return f"{pad}#{stmt.name.lexeme} {stmt.value.lexeme}"

    if isinstance(stmt, Comment):
        return f"{pad}{COMMENT_MARKER}{stmt.text.literal}"

    raise TypeError(f"Unknown statement node: {type(stmt).__name__}")


def _emit_expr(expr: Expr) -> str:
    if isinstance(expr, Literal):
        if expr.value is True:
            return "true"
        if expr.value is False:
            return "false"
        if expr.value is None:
            return "nothing"
        return f"{STRING_OPEN}{expr.value}{STRING_CLOSE}"

    if isinstance(expr, Var):
        return expr.name.lexeme

    if isinstance(expr, Unary):
        return f"not {_emit_expr(expr.operand)}"

    if isinstance(expr, (Binary, Logical)):
        return f"{_emit_expr(expr.left)} {expr.operator.lexeme} {_emit_expr(expr.right)}"

    if isinstance(expr, Call):
        args = ", ".join(_emit_expr(arg) for arg in expr.arguments)
        return f"{_emit_expr(expr.callee)}—{args}—"

    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def ast_to_dict(node: Any, *, spans: bool = True) -> Any:
    """Serialize AST dataclasses recursively into JSON-compatible dicts."""
    if isinstance(node, (list, tuple)):
        return [ast_to_dict(item, spans=spans) for item in node]
    if isinstance(node, Token):
        payload: dict[str, Any] = {
            "type": node.token_type.name,
            "lexeme": node.lexeme,
            "literal": node.literal,
        }
        if spans:
            payload["span"] = node.span.to_dict()
        return payload
    if isinstance(node, SourceSpan):
        return node.to_dict()
    if isinstance(node, AstNode) and is_dataclass(node):
        payload = {"node_type": type(node).__name__}
        for item in fields(node):
            if item.name == "span" and not spans:
                continue
            payload[item.name] = ast_to_dict(getattr(node, item.name), spans=spans)
        return payload
    return node


if __name__ == "__main__":
    from coem.cli import run as cli_run

    raise SystemExit(cli_run())
