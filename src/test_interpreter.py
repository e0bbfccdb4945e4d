import csv
import io

import pytest

from tiny_basic import errors
from tiny_basic.interpreter import Interpreter, STACK_SIZE
from tiny_basic.main import parse_program


def make_interpreter(code, input_text=''):
    stdout = io.StringIO()
    stderr = io.StringIO()
    interpreter = Interpreter(parse_program(code), stdout=stdout,
                              stdin=io.StringIO(input_text), stderr=stderr, seed=1234)
    return interpreter, stdout, stderr


def run(code, input_text=''):
    """Runs a program to completion and returns its output."""
    interpreter, stdout, _ = make_interpreter(code, input_text)
    interpreter.run()
    return stdout.getvalue()


def run_error(code, input_text=''):
    """Runs a program that must fail and returns the error and the output so far."""
    interpreter, stdout, _ = make_interpreter(code, input_text)
    with pytest.raises(errors.EvaluationError) as excinfo:
        interpreter.run()
    assert interpreter.errors == [excinfo.value]
    return excinfo.value, stdout.getvalue()


def test_print_string_and_variable():
    assert run('10 LET A = 5\n20 PRINT "HI", A\n') == 'HI 5\n'


def test_print_keeps_lowercase_strings():
    assert run('PRINT "Hello, world!"') == 'Hello, world!\n'


def test_counting_loop():
    code = (
        '10 LET I = 1\n'
        '20 PRINT I\n'
        '30 LET I = I + 1\n'
        '40 IF I <= 5 THEN GOTO 20\n'
    )
    assert run(code) == '1\n2\n3\n4\n5\n'


def test_gosub_and_return():
    code = (
        '10 GOSUB 100\n'
        '20 END\n'
        '100 PRINT "X"\n'
        '110 RETURN\n'
    )
    assert run(code) == 'X\n'


def test_return_continues_after_gosub():
    code = (
        '10 GOSUB 100\n'
        '20 PRINT "BACK"\n'
        '30 END\n'
        '100 PRINT "SUB"\n'
        '110 RETURN\n'
    )
    assert run(code) == 'SUB\nBACK\n'


def test_return_without_gosub():
    error, _ = run_error('10 RETURN\n')
    assert error.kind == errors.RETURN_WITHOUT_GOSUB


def nested_gosubs(count):
    lines = [f'{i * 10} GOSUB {(i + 1) * 10}\n' for i in range(1, count + 1)]
    lines.append(f'{(count + 1) * 10} PRINT "DEEP"\n')
    return ''.join(lines)


def test_sixteen_nested_gosubs_fit():
    assert run(nested_gosubs(STACK_SIZE)) == 'DEEP\n'


def test_seventeenth_gosub_overflows_stack():
    interpreter, stdout, _ = make_interpreter(nested_gosubs(STACK_SIZE + 1))
    with pytest.raises(errors.EvaluationError) as excinfo:
        interpreter.run()
    assert excinfo.value.kind == errors.TOO_MANY_GOSUBS
    assert len(interpreter.stack) == STACK_SIZE
    assert interpreter.pc == STACK_SIZE + 1
    assert stdout.getvalue() == ''


def test_goto_missing_line():
    error, _ = run_error('10 GOTO 999\n')
    assert error.kind == errors.MISSING_LINE
    assert error.number == 999
    assert error.token == 1


def test_computed_goto():
    code = (
        '10 LET A = 20\n'
        '15 GOTO A + 10\n'
        '20 PRINT 1\n'
        '30 PRINT 2\n'
    )
    assert run(code) == '2\n'


def test_unnumbered_lines_run_in_sequence():
    assert run('PRINT 1\nPRINT 2\n10 PRINT 3\n') == '1\n2\n3\n'


def test_unnumbered_lines_are_not_jump_targets():
    interpreter, _, _ = make_interpreter('PRINT 1\n20 PRINT 2\n')
    assert interpreter.line_map == {20: 1}


def test_duplicate_line_number_last_occurrence_wins():
    code = (
        '10 GOTO 30\n'
        '30 PRINT "FIRST"\n'
        '40 END\n'
        '30 PRINT "SECOND"\n'
    )
    assert run(code) == 'SECOND\n'


def test_end_stops_the_run():
    assert run('10 PRINT 1\n20 END\n30 PRINT 2\n') == '1\n'


def test_step():
    interpreter, stdout, _ = make_interpreter('PRINT 1\nPRINT 2\n')
    assert interpreter.step() is True
    assert stdout.getvalue() == '1\n'
    assert interpreter.step() is True
    assert interpreter.step() is False
    assert interpreter.step() is False


def test_empty_program_finishes_immediately():
    interpreter, _, _ = make_interpreter('')
    assert interpreter.step() is False


def test_if_without_else():
    code = (
        '10 LET A = 5\n'
        '20 IF A > 3 THEN PRINT "BIG"\n'
        '30 IF A < 3 THEN PRINT "SMALL"\n'
    )
    assert run(code) == 'BIG\n'


def test_nested_if():
    assert run('IF 1 = 1 THEN IF 2 = 2 THEN PRINT "BOTH"') == 'BOTH\n'


@pytest.mark.parametrize('relop,expected', [
    ('=', [0, 1, 0]),
    ('<>', [1, 0, 1]),
    ('><', [1, 0, 1]),
    ('<', [1, 0, 0]),
    ('<=', [1, 1, 0]),
    ('>', [0, 0, 1]),
    ('>=', [0, 1, 1]),
])
def test_relational_operators(relop, expected):
    code = ''.join(
        f'LET R = 0\nIF {lhs} {relop} 3 THEN LET R = 1\nPRINT R\n' for lhs in (2, 3, 4)
    )
    assert [int(v) for v in run(code).split()] == expected


def test_unset_variable_is_zero():
    assert run('PRINT Z') == '0\n'


def test_input_reads_each_variable():
    interpreter, stdout, _ = make_interpreter('INPUT A, B\nPRINT A + B\n', '3\n4\n')
    interpreter.run()
    assert stdout.getvalue() == '? ? 7\n'
    assert interpreter.variables[:2] == [3, 4]


def test_input_reprompts_on_invalid_integer():
    interpreter, stdout, stderr = make_interpreter('INPUT A\n', 'abc\n42\n')
    interpreter.run()
    assert interpreter.variables[0] == 42
    assert stdout.getvalue() == '? ? '
    assert stderr.getvalue() == 'Invalid integer: abc\n'


def test_input_rejects_out_of_range_integer():
    interpreter, _, stderr = make_interpreter('INPUT A\n', '40000\n-5\n')
    interpreter.run()
    assert interpreter.variables[0] == -5
    assert 'Invalid integer: 40000' in stderr.getvalue()


def test_input_at_end_of_stream():
    error, output = run_error('INPUT A\n', '')
    assert error.kind == errors.IO_FAILED
    assert isinstance(error.cause, EOFError)
    assert output == '? '


def test_input_line_too_long():
    error, _ = run_error('INPUT A\n', '1' * 200 + '\n')
    assert error.kind == errors.IO_FAILED
    assert isinstance(error.__cause__, ValueError)


class BrokenStream(io.StringIO):
    def write(self, text):
        raise OSError("disk full")


def test_print_io_failure():
    interpreter = Interpreter(parse_program('PRINT 1'), stdout=BrokenStream(),
                              stdin=io.StringIO(), stderr=io.StringIO(), seed=0)
    with pytest.raises(errors.EvaluationError) as excinfo:
        interpreter.run()
    assert excinfo.value.kind == errors.IO_FAILED
    assert str(excinfo.value.cause) == 'disk full'


def test_overflow_halts_with_no_further_output():
    code = (
        '10 PRINT "A"\n'
        '20 PRINT 30000 + 30000\n'
        '30 PRINT "B"\n'
    )
    error, output = run_error(code)
    assert error.kind == errors.MATH_OVERFLOW
    assert output == 'A\n'


def test_multiplication_overflow():
    error, _ = run_error('PRINT 200 * 200')
    assert error.kind == errors.MATH_OVERFLOW


def test_subtraction_overflow():
    error, _ = run_error('LET A = -32767 - 1\nPRINT A - 1')
    assert error.kind == errors.MATH_OVERFLOW


def test_minimum_value_is_reachable():
    assert run('PRINT -32767 - 1') == '-32768\n'


def test_dividing_minimum_by_minus_one_overflows():
    error, _ = run_error('LET A = -32767 - 1\nPRINT A / (-1)')
    assert error.kind == errors.MATH_OVERFLOW


def test_division_truncates():
    assert run('PRINT 7 / 2, -7 / 2, 7 / (-2), (-7) / (-2)') == '3 -3 -3 3\n'


def test_precedence():
    assert run('PRINT 2 + 3 * 4, (2 + 3) * 4, 10 - 4 - 3, 100 / 10 / 5') == '14 20 3 2\n'


@pytest.mark.parametrize('code', ['PRINT 1 / 0', 'PRINT MOD(1, 0)', 'LET A = 0\nPRINT 5 / A'])
def test_division_by_zero(code):
    error, _ = run_error(code)
    assert error.kind == errors.DIVISION_BY_ZERO


@pytest.mark.parametrize('a,b', [
    (7, 3), (-7, 3), (7, -3), (-7, -3), (0, 5), (32767, 2), (-32768, 7), (100, 100), (5, 9),
])
def test_mod_agrees_with_truncating_division(a, b):
    quotient = abs(a) // abs(b) * (1 if (a < 0) == (b < 0) else -1)
    remainder = a - quotient * b
    code = f'LET A = {a}\nLET B = {b}\nPRINT A / B, MOD(A, B)\n'
    if a == -32768:
        code = f'LET A = -32767 - 1\nLET B = {b}\nPRINT A / B, MOD(A, B)\n'
    assert run(code) == f'{quotient} {remainder}\n'


def test_mod_of_minimum_by_minus_one():
    assert run('LET A = -32767 - 1\nPRINT MOD(A, -1)') == '0\n'


def test_abs():
    assert run('PRINT ABS(-5), ABS(5), ABS(0)') == '5 5 0\n'


def test_abs_of_minimum_overflows():
    error, _ = run_error('LET A = -32767 - 1\nPRINT ABS(A)')
    assert error.kind == errors.MATH_OVERFLOW


def test_rnd_range():
    values = [int(v) for v in run('PRINT ' + ', '.join(['RND(6)'] * 50)).split()]
    assert all(1 <= v <= 6 for v in values)
    assert len(set(values)) > 1


def test_rnd_of_small_bound_is_one():
    assert run('PRINT RND(1), RND(0), RND(-5)') == '1 1 1\n'


def test_rnd_is_seeded_per_interpreter():
    code = 'PRINT ' + ', '.join(['RND(1000)'] * 10)
    assert run(code) == run(code)


@pytest.mark.parametrize('code', ['CLEAR', 'LIST', 'RUN', '10 IF 1 = 1 THEN LIST'])
def test_not_implemented_statements(code):
    error, _ = run_error(code)
    assert error.kind == errors.NOT_IMPLEMENTED


@pytest.mark.parametrize('literal', ['0', '1', '255', '12345', '32767'])
def test_literal_round_trip(literal):
    assert run(f'PRINT {literal}') == f'{literal}\n'


def test_negative_literal_round_trip():
    assert run('PRINT -32767') == '-32767\n'


def test_error_records_failing_statement_token():
    program = parse_program('10 PRINT 1\n20 LET B = 1 / 0\n')
    interpreter = Interpreter(program, stdout=io.StringIO(), stdin=io.StringIO(), seed=0)
    with pytest.raises(errors.EvaluationError) as excinfo:
        interpreter.run()
    assert program.token_text(excinfo.value.token) == 'B'


def test_variables_csv():
    interpreter, _, _ = make_interpreter('LET A = 5\nLET Z = -3\n')
    interpreter.run()
    rows = list(csv.reader(io.StringIO(interpreter.get_variables_csv())))
    assert rows[0] == ['name', 'value']
    assert rows[1] == ['A', '5']
    assert rows[26] == ['Z', '-3']
    assert len(rows) == 27
