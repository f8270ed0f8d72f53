"""Coem parser producing a typed AST."""

from __future__ import annotations

from dataclasses import dataclass

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
from coem.errors import ParseError
from coem.tokens import Token, TokenType


MAX_ARGUMENTS = 255

_RETURN_TERMINATORS = frozenset({TokenType.NEWLINE, TokenType.DOT, TokenType.DAGGER, TokenType.EOF})


@dataclass
class Parser:
    """Recursive-descent parser for Coem."""

    tokens: list[Token]

    def __post_init__(self) -> None:
        self.pos = 0
        self.block_depth = 0
        # While set, ``call`` leaves em-dashes alone so the dash closing an
        # argument list or condition is not read as a new call.
        self.in_arguments = False

    def parse_program(self) -> list[Stmt]:
        """Parse full token stream into a list of top-level statements."""
        statements: list[Stmt] = []
        while True:
            self._skip_newlines()
            if self._is_at_end():
                break
            statements.append(self._parse_declaration())
        return statements

    def _parse_declaration(self) -> Stmt:
        if self._match(TokenType.DAGGER):
            return self._parse_comment(self._previous())
        if self._match(TokenType.POUND):
            return self._parse_directive(self._previous())
        if self._match(TokenType.TO):
            return self._parse_function(self._previous())
        if self._match(TokenType.LET):
            return self._parse_var_declaration(self._previous())
        return self._parse_statement()

    def _parse_comment(self, dagger: Token) -> Comment:
        text = self._consume(TokenType.STRING, "Expect comment text after '†'.")
        return Comment(span=dagger.span.merge(text.span), text=text)

    def _parse_directive(self, pound: Token) -> Directive:
        if self.block_depth > 0:
            raise ParseError.at_token(pound, "Directives are only allowed at top level.", code="PAR004")
        name = self._consume(TokenType.IDENTIFIER, "Expect directive name after '#'.")
        self._match(TokenType.BE)
        value = self._consume(TokenType.IDENTIFIER, "Expect value after directive name.")
        return Directive(span=pound.span.merge(value.span), name=name, value=value)

    def _parse_function(self, to_token: Token) -> FunctionDecl:
        name = self._consume(TokenType.IDENTIFIER, "Expect function name.")
        self._consume(TokenType.EMDASH, "Expect '—' after function name.")
        params: list[Token] = []
        if not self._check(TokenType.EMDASH):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    raise ParseError.at_token(self._peek(), "Can't have more than 255 arguments.", code="PAR003")
                params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.EMDASH, "Expect '—' after parameters.")
        self._consume(TokenType.COLON, "Expect ':' before function body.")
        body, dot = self._parse_block()
        return FunctionDecl(span=to_token.span.merge(dot.span), name=name, params=tuple(params), body=body)

    def _parse_var_declaration(self, let_token: Token) -> VarStatement:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        if self._match(TokenType.BE):
            value = self._parse_expression()
            return VarStatement(span=let_token.span.merge(value.span), name=name, initializer=value)
        return VarStatement(span=let_token.span.merge(name.span), name=name, initializer=None)

    def _parse_statement(self) -> Stmt:
        if self._match(TokenType.IF):
            return self._parse_if(self._previous())
        if self._match(TokenType.AMPERSAND):
            return self._parse_return(self._previous())
        if self._match(TokenType.WHILE):
            return self._parse_while(self._previous())
        if self._match(TokenType.COLON):
            colon = self._previous()
            statements, dot = self._parse_block()
            return Block(span=colon.span.merge(dot.span), statements=statements)
        return self._parse_expression_statement()

    def _parse_if(self, if_token: Token) -> Condition:
        test = self._parse_condition("if")
        then_branch = self._parse_statement()
        else_branch: Stmt | None = None
        end_span = then_branch.span

        if self._check_past_newlines(TokenType.ELSE):
            self._skip_newlines()
            self._advance()
            else_branch = self._parse_statement()
            end_span = else_branch.span

        return Condition(span=if_token.span.merge(end_span), test=test, then_branch=then_branch, else_branch=else_branch)

    def _parse_while(self, while_token: Token) -> While:
        test = self._parse_condition("while")
        body = self._parse_statement()
        return While(span=while_token.span.merge(body.span), test=test, body=body)

    def _parse_condition(self, keyword: str) -> Expr:
        self._consume(TokenType.EMDASH, f"Expect '—' after '{keyword}'.")
        outer = self.in_arguments
        self.in_arguments = True
        try:
            test = self._parse_expression()
        finally:
            self.in_arguments = outer
        self._consume(TokenType.EMDASH, "Expect '—' after condition.")
        return test

    def _parse_return(self, ampersand: Token) -> Return:
        if self._peek().token_type in _RETURN_TERMINATORS:
            return Return(span=ampersand.span, keyword=ampersand, value=None)
        value = self._parse_expression()
        return Return(span=ampersand.span.merge(value.span), keyword=ampersand, value=value)

    def _parse_block(self) -> tuple[tuple[Stmt, ...], Token]:
        statements: list[Stmt] = []
        self.block_depth += 1
        try:
            while True:
                self._skip_newlines()
                if self._check(TokenType.DOT) or self._is_at_end():
                    break
                statements.append(self._parse_declaration())
        finally:
            self.block_depth -= 1
        dot = self._consume(TokenType.DOT, "Expect '.' after block.")
        return tuple(statements), dot

    def _parse_expression_statement(self) -> ExpressionStatement:
        expr = self._parse_expression()
        if self._is_print_call(expr):
            return ExpressionStatement(span=expr.span, expression=expr)
        return ExpressionStatement(span=expr.span, expression=self._wrap_in_print(expr), implicit=True)

    @staticmethod
    def _is_print_call(expr: Expr) -> bool:
        return (
            isinstance(expr, Call)
            and isinstance(expr.callee, Var)
            and expr.callee.name.lexeme in PRINT_BUILTINS
        )

    @staticmethod
    def _wrap_in_print(expr: Expr) -> Call:
        # Synthetic tokens sit at the start of the wrapped expression so the
        # output lands on the line where the expression begins.
        print_token = Token(token_type=TokenType.IDENTIFIER, lexeme="print", literal=None, span=expr.span)
        dash = Token(token_type=TokenType.EMDASH, lexeme="—", literal=None, span=expr.span)
        callee = Var(span=expr.span, name=print_token)
        return Call(span=expr.span, callee=callee, marker=dash, arguments=(expr,))

    def _parse_expression(self) -> Expr:
        return self._parse_or()

    def _parse_or(self) -> Expr:
        expr = self._parse_and()
        while self._match(TokenType.OR):
            op = self._previous()
            right = self._parse_and()
            expr = Logical(span=expr.span.merge(right.span), left=expr, operator=op, right=right)
        return expr

    def _parse_and(self) -> Expr:
        expr = self._parse_equality()
        while self._match(TokenType.AND):
            op = self._previous()
            right = self._parse_equality()
            expr = Logical(span=expr.span.merge(right.span), left=expr, operator=op, right=right)
        return expr

    def _parse_equality(self) -> Expr:
        expr = self._parse_unary()
        while self._match(TokenType.IS, TokenType.AM, TokenType.ARE):
            op = self._previous()
            right = self._parse_unary()
            expr = Binary(span=expr.span.merge(right.span), left=expr, operator=op, right=right)
        return expr

    def _parse_unary(self) -> Expr:
        if self._match(TokenType.NOT):
            op = self._previous()
            operand = self._parse_unary()
            return Unary(span=op.span.merge(operand.span), operator=op, operand=operand)
        return self._parse_call()

    def _parse_call(self) -> Expr:
        expr = self._parse_primary()
        if self.in_arguments:
            return expr
        while self._match(TokenType.EMDASH):
            expr = self._finish_call(expr)
        return expr

    def _finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self._check(TokenType.EMDASH):
            outer = self.in_arguments
            self.in_arguments = True
            try:
                while True:
                    if len(args) >= MAX_ARGUMENTS:
                        raise ParseError.at_token(self._peek(), "Can't have more than 255 arguments.", code="PAR003")
                    args.append(self._parse_expression())
                    if not self._match(TokenType.COMMA):
                        break
            finally:
                self.in_arguments = outer
        dash = self._consume(TokenType.EMDASH, "Expect '—' after arguments.")
        return Call(span=callee.span.merge(dash.span), callee=callee, marker=dash, arguments=tuple(args))

    def _parse_primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(span=self._previous().span, value=False)
        if self._match(TokenType.TRUE):
            return Literal(span=self._previous().span, value=True)
        if self._match(TokenType.NOTHING):
            return Literal(span=self._previous().span, value=None)
        if self._match(TokenType.STRING):
            tok = self._previous()
            return Literal(span=tok.span, value=tok.literal)
        if self._match(TokenType.IDENTIFIER):
            tok = self._previous()
            return Var(span=tok.span, name=tok)

        raise ParseError.at_token(
            self._peek(),
            "Expect expression.",
            code="PAR001",
            hint="Use a name, “text”, true, false, or nothing.",
        )

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise ParseError.at_token(self._peek(), message, hint="Adjust token order to match grammar.")

    def _match(self, *token_types: TokenType) -> bool:
        for token_type in token_types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().token_type == token_type

    def _check_past_newlines(self, token_type: TokenType) -> bool:
        offset = 0
        while self._peek(offset).token_type == TokenType.NEWLINE:
            offset += 1
        return self._peek(offset).token_type == token_type

    def _skip_newlines(self) -> None:
        while self._match(TokenType.NEWLINE):
            pass

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.pos += 1
        return self._previous()

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[idx]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        return self._peek().token_type == TokenType.EOF
