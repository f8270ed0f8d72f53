from __future__ import annotations

import unittest

from coem.ast import (
    Binary,
    Block,
    Call,
    Comment,
    Condition,
    Directive,
    ExpressionStatement,
    FunctionDecl,
    Literal,
    Logical,
    Return,
    Unary,
    Var,
    VarStatement,
    While,
)
from coem.errors import ParseError
from coem.lexer import Lexer
from coem.parser import Parser
from coem.tokens import TokenType


def parse_source(source: str):
    tokens = Lexer(source).tokenize()
    return Parser(tokens).parse_program()


class ParserTests(unittest.TestCase):
    def test_variable_declaration(self) -> None:
        program = parse_source('let me be true\nlet you')
        self.assertEqual(len(program), 2)
        self.assertIsInstance(program[0], VarStatement)
        self.assertEqual(program[0].name.lexeme, 'me')
        self.assertEqual(program[0].initializer, Literal(span=program[0].initializer.span, value=True))
        self.assertIsNone(program[1].initializer)

    def test_bare_expression_is_wrapped_in_print(self) -> None:
        program = parse_source('me')
        stmt = program[0]
        self.assertIsInstance(stmt, ExpressionStatement)
        self.assertTrue(stmt.implicit)
        self.assertIsInstance(stmt.expression, Call)
        self.assertEqual(stmt.expression.callee.name.lexeme, 'print')
        self.assertIsInstance(stmt.expression.arguments[0], Var)
        self.assertEqual(stmt.expression.arguments[0].name.lexeme, 'me')

    def test_print_builtins_are_not_wrapped_again(self) -> None:
        for name in ('know', 'print', 'say'):
            with self.subTest(name=name):
                stmt = parse_source(f'{name}—me—')[0]
                self.assertFalse(stmt.implicit)
                call = stmt.expression
                self.assertEqual(call.callee.name.lexeme, name)
                self.assertIsInstance(call.arguments[0], Var)

    def test_other_calls_are_wrapped(self) -> None:
        call = parse_source('greet—“moon”—')[0].expression
        self.assertEqual(call.callee.name.lexeme, 'print')
        inner = call.arguments[0]
        self.assertIsInstance(inner, Call)
        self.assertEqual(inner.callee.name.lexeme, 'greet')
        self.assertEqual(inner.arguments[0].value, 'moon')

    def test_precedence_or_and_equality_not(self) -> None:
        expr = parse_source('let x be a or b and c')[0].initializer
        self.assertIsInstance(expr, Logical)
        self.assertEqual(expr.operator.token_type, TokenType.OR)
        self.assertIsInstance(expr.right, Logical)
        self.assertEqual(expr.right.operator.token_type, TokenType.AND)

        expr = parse_source('let x be not a is b')[0].initializer
        self.assertIsInstance(expr, Binary)
        self.assertIsInstance(expr.left, Unary)

    def test_call_arguments_are_comma_separated(self) -> None:
        call = parse_source('know—a, “b”, nothing—')[0].expression
        self.assertEqual(len(call.arguments), 3)
        self.assertIsNone(call.arguments[2].value)
        self.assertEqual(call.marker.token_type, TokenType.EMDASH)

    def test_function_declaration(self) -> None:
        program = parse_source('to greet—who, what—:\n  & who\n.')
        decl = program[0]
        self.assertIsInstance(decl, FunctionDecl)
        self.assertEqual([param.lexeme for param in decl.params], ['who', 'what'])
        self.assertIsInstance(decl.body[0], Return)
        self.assertEqual(decl.body[0].value.name.lexeme, 'who')

    def test_bare_return_has_no_value(self) -> None:
        decl = parse_source('to stop——:\n  &\n.')[0]
        self.assertIsNone(decl.body[0].value)

    def test_condition_with_else_after_newline(self) -> None:
        stmt = parse_source('if—me— know—“yes”—\nelse know—“no”—')[0]
        self.assertIsInstance(stmt, Condition)
        self.assertIsInstance(stmt.test, Var)
        self.assertIsNotNone(stmt.else_branch)
        self.assertEqual(stmt.else_branch.expression.arguments[0].value, 'no')

    def test_while_with_block_body(self) -> None:
        stmt = parse_source('while—me— :\n  let me be false\n.')[0]
        self.assertIsInstance(stmt, While)
        self.assertIsInstance(stmt.body, Block)
        self.assertEqual(len(stmt.body.statements), 1)

    def test_directive_with_optional_be(self) -> None:
        first, second = parse_source('#as palimpsest\n#in be dialogue')
        self.assertIsInstance(first, Directive)
        self.assertEqual((first.name.lexeme, first.value.lexeme), ('as', 'palimpsest'))
        self.assertEqual((second.name.lexeme, second.value.lexeme), ('in', 'dialogue'))

    def test_trailing_comment_is_a_statement(self) -> None:
        program = parse_source('let me be true †a note')
        self.assertIsInstance(program[1], Comment)
        self.assertEqual(program[1].text.literal, 'a note')

    def test_parse_is_deterministic(self) -> None:
        source = 'to f—x—:\n  if—x— & x else & nothing\n.\nf—“a”—'
        self.assertEqual(parse_source(source), parse_source(source))

    def test_directive_inside_block_is_rejected(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_source(':\n  #as palimpsest\n.')
        self.assertEqual(ctx.exception.code, 'PAR004')

    def test_unclosed_block_reports_end_of_input(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_source(':\n  let me be true\n')
        self.assertEqual(ctx.exception.message, "Expect '.' after block.")
        self.assertEqual(ctx.exception.span.start.index, len(':\n  let me be true\n'))

    def test_missing_expression(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_source('let me be .')
        self.assertEqual(ctx.exception.code, 'PAR001')
        self.assertEqual(ctx.exception.message, 'at ".": Expect expression.')

    def test_error_at_newline_mentions_end_of_line(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_source('let\nme')
        self.assertEqual(ctx.exception.message, 'at end of line: Expect variable name.')

    def test_too_many_arguments(self) -> None:
        source = 'know—' + ', '.join(['a'] * 256) + '—'
        with self.assertRaises(ParseError) as ctx:
            parse_source(source)
        self.assertEqual(ctx.exception.code, 'PAR003')


if __name__ == '__main__':
    unittest.main()
