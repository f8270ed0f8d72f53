from __future__ import annotations

import unittest

from coem.environment import Scope
from coem.errors import CoemRuntimeError
from coem.interpreter import Interpreter, render_value
from coem.main import parse_source, run, run_source


class EchoTests(unittest.TestCase):
    def test_program_without_output_echoes_source(self) -> None:
        source = 'let me be true\nlet you be me\n†quiet\nto f——:\n  & me\n.'
        self.assertEqual(run(source), source)

    def test_output_is_appended_to_calling_line(self) -> None:
        self.assertEqual(run('let me be true\nknow—me—'), 'let me be true\nknow—me— † true')

    def test_bare_expression_prints(self) -> None:
        self.assertEqual(run('let me be true\nme'), 'let me be true\nme † true')

    def test_bare_multiline_string_prints_on_its_first_line(self) -> None:
        self.assertEqual(run('“a\nb”'), '“a † a\nb\nb”')

    def test_explicit_print_is_not_doubled(self) -> None:
        self.assertEqual(run('print—“x”—'), 'print—“x”— † x')

    def test_prints_on_one_line_share_the_echo(self) -> None:
        self.assertEqual(run('know—“a”— say—“b”—'), 'know—“a”— say—“b”— † a b')

    def test_output_joins_existing_comment(self) -> None:
        self.assertEqual(run('know—“hi”— †note'), 'know—“hi”— †note hi')

    def test_print_renders_each_argument(self) -> None:
        self.assertEqual(run('know—“a”, nothing, false—'), 'know—“a”, nothing, false— † a nothing false')

    def test_unbound_name_prints_itself(self) -> None:
        self.assertEqual(run('know—stranger—'), 'know—stranger— † stranger')

    def test_function_output_lands_on_its_own_line(self) -> None:
        source = 'to sing——:\n  know—“la”—\n.\nsing——\nsing——'
        lines = run(source).split('\n')
        self.assertEqual(lines[1], '  know—“la”— † la la')
        self.assertEqual(lines[3], 'sing—— † nothing')


class EvaluationTests(unittest.TestCase):
    def test_logical_operators_short_circuit(self) -> None:
        self.assertEqual(run('false and boom——'), 'false and boom—— † false')
        self.assertEqual(run('true or boom——'), 'true or boom—— † true')
        with self.assertRaises(CoemRuntimeError):
            run('true and boom——')

    def test_logical_operators_return_operands(self) -> None:
        self.assertEqual(run('know—nothing or “x”—'), 'know—nothing or “x”— † x')
        self.assertEqual(run('know—“” and “y”—'), 'know—“” and “y”— † y')

    def test_not_and_equality(self) -> None:
        self.assertEqual(run('know—not nothing—'), 'know—not nothing— † true')
        source = 'let a be “x”\nknow—a is “x”, a are “y”—'
        self.assertEqual(run(source).split('\n')[1], 'know—a is “x”, a are “y”— † true false')

    def test_function_returns_value(self) -> None:
        source = 'to greet—who—:\n  & who\n.\ngreet—“moon”—'
        self.assertEqual(run(source).split('\n')[3], 'greet—“moon”— † moon')

    def test_parameters_shadow_outer_names(self) -> None:
        source = 'let who be “sun”\nto greet—who—:\n  & who\n.\ngreet—“moon”—\nknow—who—'
        lines = run(source).split('\n')
        self.assertEqual(lines[4], 'greet—“moon”— † moon')
        self.assertEqual(lines[5], 'know—who— † sun')

    def test_missing_arguments_are_nothing(self) -> None:
        source = 'to pair—a, b—:\n  know—a, b—\n.\npair—“x”—'
        self.assertEqual(run(source).split('\n')[1], '  know—a, b— † x nothing')

    def test_return_from_nested_block(self) -> None:
        source = 'to pick——:\n  :\n    & “inner”\n  .\n  & “outer”\n.\npick——'
        self.assertEqual(run(source).split('\n')[6], 'pick—— † inner')

    def test_block_updates_outer_binding(self) -> None:
        source = 'let me be “old”\n:\n  let me be “new”\n  let fresh be “x”\n.\nknow—me, fresh—'
        self.assertEqual(run(source).split('\n')[5], 'know—me, fresh— † new fresh')

    def test_closure_sees_later_updates(self) -> None:
        source = 'let mood be “calm”\nto feel——:\n  & mood\n.\nlet mood be “wild”\nfeel——'
        self.assertEqual(run(source).split('\n')[5], 'feel—— † wild')

    def test_conditionals(self) -> None:
        source = 'let me be false\nif—me— know—“yes”— else know—“no”—'
        self.assertEqual(run(source).split('\n')[1], 'if—me— know—“yes”— else know—“no”— † no')

    def test_while_loop(self) -> None:
        source = 'let go be true\nwhile—go— :\n  know—“once”—\n  let go be false\n.'
        self.assertEqual(run(source).split('\n')[2], '  know—“once”— † once')

    def test_alternation_names(self) -> None:
        source = 'let her|him be “kind”\nknow—her—\nknow—him—'
        self.assertEqual(run(source), 'let her|him be “kind”\nknow—her— † kind\nknow—him— † kind')

    def test_wide_class_pattern_declares_quickly(self) -> None:
        source = 'let ' + '[ab]' * 22 + ' be true\nknow—' + 'ba' * 11 + '—'
        self.assertEqual(run(source).split('\n')[1], 'know—' + 'ba' * 11 + '— † true')

    def test_render_value(self) -> None:
        self.assertEqual(render_value(None), 'nothing')
        self.assertEqual(render_value(True), 'true')
        self.assertEqual(render_value(['a', False]), 'a, false')


class DirectiveTests(unittest.TestCase):
    PALIMPSEST = '#as palimpsest\nlet x be “A”\nlet x be “B”\nknow—x—'
    PLAIN = 'let x be “A”\nlet x be “B”\nknow—x—'

    def test_palimpsest_prints_every_layer(self) -> None:
        artifacts = run_source(self.PALIMPSEST)
        self.assertEqual(artifacts.echo.split('\n')[3], 'know—x— † A, B')
        self.assertEqual(artifacts.scope.lookup('x'), ['A', 'B'])

    def test_plain_binding_overwrites(self) -> None:
        self.assertEqual(run(self.PLAIN).split('\n')[2], 'know—x— † B')

    def test_palimpsest_does_not_leak_between_runs(self) -> None:
        run(self.PALIMPSEST)
        self.assertEqual(run(self.PLAIN).split('\n')[2], 'know—x— † B')

    def test_palimpsest_functions_stay_callable(self) -> None:
        source = '#as palimpsest\nto f——:\n  & “x”\n.\nf——'
        self.assertEqual(run(source).split('\n')[4], 'f—— † x')

    def test_dialogue_reads_from_prompt(self) -> None:
        questions: list[str] = []

        def prompt(text: str) -> str:
            questions.append(text)
            return 'Ada'

        source = '#in dialogue\nlet answer be listen—“name?”—\nknow—answer—'
        artifacts = run_source(source, prompt=prompt)
        self.assertEqual(artifacts.echo.split('\n')[2], 'know—answer— † Ada')
        self.assertEqual(questions, ['name?'])

    def test_dialogue_without_prompt_leaves_input_unbound(self) -> None:
        with self.assertRaises(CoemRuntimeError):
            run('#in dialogue\nlet answer be listen—“name?”—')


class RuntimeErrorTests(unittest.TestCase):
    def test_calling_a_string_fails(self) -> None:
        with self.assertRaises(CoemRuntimeError) as ctx:
            run('let word be “hi”\nword——')
        self.assertEqual(ctx.exception.code, 'RUN001')
        self.assertIn('Can only call functions.', ctx.exception.message)
        self.assertEqual(ctx.exception.span.line, 2)

    def test_top_level_return_fails(self) -> None:
        with self.assertRaises(CoemRuntimeError) as ctx:
            run('& “nope”')
        self.assertEqual(ctx.exception.code, 'RUN002')

    def test_scope_is_restored_after_error(self) -> None:
        source = ':\n  boom——\n.'
        interpreter = Interpreter(Scope(), source)
        with self.assertRaises(CoemRuntimeError):
            interpreter.interpret(parse_source(source))
        self.assertIs(interpreter.scope, interpreter.globals)


if __name__ == '__main__':
    unittest.main()
