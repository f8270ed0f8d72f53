"""Tree-walking evaluator for Coem.

Program output does not go to a stream. Print calls append their rendered
arguments to the source line that holds the call, and :meth:`Interpreter.echo`
rebuilds the source with those additions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from coem.ast import (
    PRINT_BUILTINS,
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
from coem.errors import CoemRuntimeError
from coem.tokens import Token, TokenType


# A line holding a trailing dagger comment is split here; printed output is
# appended to the comment part.
ECHO_SEPARATOR = " †"


@dataclass(frozen=True)
class Returned:
    """Outcome of a statement that executed ``&``."""

    keyword: Token
    value: Any


Outcome = Optional[Returned]


@dataclass(eq=False)
class NativeFunction:
    """Builtin implemented in Python."""

    name: str
    fn: Callable[[Interpreter, list[Any], Expr], Any]

    def call(self, interpreter: Interpreter, arguments: list[Any], callee: Expr) -> Any:
        return self.fn(interpreter, arguments, callee)

    def __str__(self) -> str:
        return f"<{self.name}()>"


@dataclass(eq=False)
class CoemFunction:
    """User function closing over the scope it was declared in."""

    declaration: FunctionDecl
    closure: Scope

    def call(self, interpreter: Interpreter, arguments: list[Any], callee: Expr) -> Any:
        scope = self.closure.child()
        for index, param in enumerate(self.declaration.params):
            value = arguments[index] if index < len(arguments) else None
            scope.define(param.lexeme, value)
        outcome = interpreter.execute_block(self.declaration.body, scope)
        if isinstance(outcome, Returned):
            return outcome.value
        return None

    def __str__(self) -> str:
        return f"<{self.declaration.name.lexeme}()>"


def is_truthy(value: Any) -> bool:
    return value is not None and value is not False


def render_value(value: Any) -> str:
    if value is None:
        return "nothing"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, list):
        return ", ".join(render_value(item) for item in value)
    return str(value)


def render_arguments(arguments: list[Any]) -> str:
    """Render print arguments: space-joined with a leading space."""
    return " " + " ".join(render_value(arg) for arg in arguments)


def resolve_callable(value: Any) -> Any:
    """Return something with ``call`` or ``None``.

    A palimpsest binding holds every value the name has had; calling it calls
    the most recent layer.
    """
    if isinstance(value, list) and value:
        value = value[-1]
    if isinstance(value, (CoemFunction, NativeFunction)):
        return value
    return None


class Interpreter:
    """Executes statements against one root scope and collects the echo."""

    def __init__(self, scope: Scope | None = None, source: str = "", settings: RunSettings | None = None) -> None:
        self.globals = scope if scope is not None else Scope()
        # Directive state never leaks from one run into the next.
        self.globals.settings = settings if settings is not None else RunSettings()
        self.scope = self.globals
        self.source = source
        self.lines: list[list[str]] = []
        for line in source.split("\n"):
            if ECHO_SEPARATOR in line:
                self.lines.append(line.split(ECHO_SEPARATOR, 1))
            else:
                self.lines.append([line])

        printer = NativeFunction(name="print", fn=_native_print)
        for name in PRINT_BUILTINS:
            self.globals.register_builtin(name, printer)

    def interpret(self, statements: list[Stmt]) -> str:
        """Run top-level statements and return the echo."""
        for stmt in statements:
            outcome = self.execute(stmt)
            if isinstance(outcome, Returned):
                raise CoemRuntimeError.at_token(
                    outcome.keyword,
                    "Can't return from top-level code.",
                    code="RUN002",
                    hint="Use '&' only inside a function body.",
                )
        return self.echo()

    def echo(self) -> str:
        return "\n".join(ECHO_SEPARATOR.join(parts) for parts in self.lines)

    def write(self, line: int, text: str) -> None:
        """Append ``text`` to the output slot of 0-based source ``line``."""
        parts = self.lines[line]
        if len(parts) > 1:
            parts[1] += text
        else:
            parts.append(text)

    def execute(self, stmt: Stmt) -> Outcome:
        if isinstance(stmt, ExpressionStatement):
            self.evaluate(stmt.expression)
            return None
        if isinstance(stmt, VarStatement):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.scope.assign_or_define(stmt.name.lexeme, value)
            return None
        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, self.scope.child())
        if isinstance(stmt, Condition):
            if is_truthy(self.evaluate(stmt.test)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None
        if isinstance(stmt, While):
            while is_truthy(self.evaluate(stmt.test)):
                outcome = self.execute(stmt.body)
                if outcome is not None:
                    return outcome
            return None
        if isinstance(stmt, Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return Returned(keyword=stmt.keyword, value=value)
        if isinstance(stmt, FunctionDecl):
            self.scope.assign_or_define(stmt.name.lexeme, CoemFunction(declaration=stmt, closure=self.scope))
            return None
        if isinstance(stmt, Directive):
            self.scope.apply_directive(stmt.name.lexeme, stmt.value.lexeme)
            return None
        if isinstance(stmt, Comment):
            return None
        raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def execute_block(self, statements: tuple[Stmt, ...], scope: Scope) -> Outcome:
        previous = self.scope
        self.scope = scope
        try:
            for stmt in statements:
                outcome = self.execute(stmt)
                if outcome is not None:
                    return outcome
            return None
        finally:
            self.scope = previous

    def evaluate(self, expr: Expr) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Var):
            return self.scope.lookup(expr.name.lexeme)
        if isinstance(expr, Unary):
            return not is_truthy(self.evaluate(expr.operand))
        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return left == right
        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.token_type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, Call):
            return self._call(expr)
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def _call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(arg) for arg in expr.arguments]
        function = resolve_callable(callee)
        if function is None:
            raise CoemRuntimeError.at_token(
                expr.marker,
                "Can only call functions.",
                code="RUN001",
                hint=f"'{render_value(callee)}' is not a function.",
            )
        return function.call(self, arguments, expr.callee)


def _native_print(interpreter: Interpreter, arguments: list[Any], callee: Expr) -> None:
    line = callee.span.start.line - 1
    interpreter.write(line, render_arguments(arguments))
    return None
