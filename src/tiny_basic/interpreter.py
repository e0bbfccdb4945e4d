import random
import re
import sys
import time

import pyarrow as pa

from . import errors
from . import lexer as tok
from .ast import table_to_csv
from .lexer import INT16_MIN, INT16_MAX, fits_int16
from .nodes import ast_nodes as ast_tags

# Capacity of the GOSUB return stack
STACK_SIZE = 16
# Longest accepted INPUT answer, in characters
INPUT_BUFFER_SIZE = 128

INTEGER_PATTERN = re.compile(r'[+-]?[0-9]+')


class Interpreter:
    """Tree-walking executor for a parsed program.

    The program counter indexes the flat list of parsed lines, GOTO and GOSUB
    translate declared line numbers through the line map built here. A fresh
    run needs a fresh interpreter.
    """

    def __init__(self, ast, stdout=None, stdin=None, stderr=None, seed=None):
        self.ast = ast
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stderr = stderr if stderr is not None else sys.stderr
        self.rng = random.Random(seed if seed is not None else int(time.time()))

        self.variables = [0] * 26  # One slot per letter A-Z
        self.stack = []            # Saved program counters for RETURN
        self.errors = []
        self.pc = 0
        self.lines = ast.lines()

        # Later duplicates of a line number win
        self.line_map = {}
        for position, line_index in enumerate(self.lines):
            line = ast.nodes[line_index]
            if line.tag == ast_tags.LINE_MARKED:
                self.line_map[ast.get_number(line.token)] = position

        self._statement_token = None

    def step(self):
        """Executes the line at the program counter.

        Returns:
            bool: False once the program has finished, True otherwise

        Raises:
            EvaluationError: On the first runtime error, which is also kept in `errors`
        """
        if self.pc >= len(self.lines):
            return False
        line_index = self.lines[self.pc]
        # Advance first so a jump made by the statement takes precedence
        self.pc += 1
        self._statement_token = self.ast.nodes[self.ast.nodes[line_index].lhs].token
        self._evaluate(line_index)
        return True

    def run(self):
        while self.step():
            pass

    def get_variables_csv(self):
        """Returns the variable storage in CSV format, one row per letter."""
        table = pa.table({
            'name': pa.array([chr(ord('A') + i) for i in range(26)], type=pa.string()),
            'value': pa.array(self.variables, type=pa.int16()),
        })
        return table_to_csv(table)

    def _evaluate(self, index):
        """Evaluates one node. Expressions return an int, statements return None."""
        node = self.ast.nodes[index]
        tag = node.tag

        if tag in (ast_tags.LINE_NAKED, ast_tags.LINE_MARKED):
            return self._evaluate(node.lhs)

        if tag == ast_tags.NUMBER:
            return self.ast.get_number(node.token)

        if tag == ast_tags.VARIABLE:
            return self.variables[self.ast.get_variable_slot(node.token)]

        if tag in (ast_tags.FACTOR_MUL, ast_tags.FACTOR_DIV):
            return self._evaluate(node.lhs)

        if tag in (ast_tags.TERM_PLUS, ast_tags.TERM_MINUS):
            product = 1
            for factor_index in self.ast.children(index):
                value = self._evaluate(factor_index)
                if self.ast.nodes[factor_index].tag == ast_tags.FACTOR_MUL:
                    product = self._checked(product * value)
                else:
                    product = self._divide(product, value)
            return product

        if tag == ast_tags.EXPRESSION:
            total = 0
            for term_index in self.ast.children(index):
                value = self._evaluate(term_index)
                if self.ast.nodes[term_index].tag == ast_tags.TERM_PLUS:
                    total = self._checked(total + value)
                else:
                    total = self._checked(total - value)
            return total

        if tag == ast_tags.PREDICATE:
            lhs = self._evaluate(node.lhs)
            rhs = self._evaluate(node.rhs)
            return int(self._compare(self.ast.tokens[node.token].tag, lhs, rhs))

        if tag == ast_tags.CALL:
            return self._call(index)

        if tag == ast_tags.STMT_PRINT:
            self._print_statement(index)
        elif tag == ast_tags.STMT_INPUT:
            self._input_statement(index)
        elif tag == ast_tags.STMT_LET:
            self.variables[self.ast.get_variable_slot(node.token)] = self._evaluate(node.rhs)
        elif tag == ast_tags.STMT_IF:
            # There is no ELSE branch
            if self._evaluate(node.lhs) != 0:
                self._evaluate(node.rhs)
        elif tag in (ast_tags.STMT_GOTO, ast_tags.STMT_GOSUB):
            if tag == ast_tags.STMT_GOSUB:
                if len(self.stack) == STACK_SIZE:
                    raise self._error(errors.TOO_MANY_GOSUBS)
                # The program counter already points at the following line
                self.stack.append(self.pc)
            number = self._evaluate(node.lhs)
            if number not in self.line_map:
                raise self._error(errors.MISSING_LINE, number=number)
            self.pc = self.line_map[number]
        elif tag == ast_tags.STMT_RETURN:
            if not self.stack:
                raise self._error(errors.RETURN_WITHOUT_GOSUB)
            self.pc = self.stack.pop()
        elif tag == ast_tags.STMT_END:
            self.pc = sys.maxsize
        else:
            # CLEAR, LIST and RUN are parsed but have no behaviour
            raise self._error(errors.NOT_IMPLEMENTED)
        return None

    def _print_statement(self, index):
        items = []
        for item_index in self.ast.children(index):
            item = self.ast.nodes[item_index]
            if item.tag == ast_tags.STRING:
                items.append(self.ast.get_string(item.token))
            else:
                items.append(str(self._evaluate(item_index)))
        try:
            self.stdout.write(' '.join(items) + '\n')
        except (OSError, ValueError) as e:
            raise self._error(errors.IO_FAILED, cause=e) from e

    def _input_statement(self, index):
        for variable_index in self.ast.children(index):
            slot = self.ast.get_variable_slot(self.ast.nodes[variable_index].token)
            self.variables[slot] = self._read_integer()

    def _read_integer(self):
        """Prompts until a 16-bit integer is entered."""
        while True:
            try:
                self.stdout.write('? ')
                self.stdout.flush()
                line = self.stdin.readline()
                if not line:
                    raise EOFError("end of input")
                text = line.rstrip('\r\n')
                if len(text) > INPUT_BUFFER_SIZE:
                    raise ValueError(f"input longer than {INPUT_BUFFER_SIZE} characters")
            except (OSError, EOFError, ValueError) as e:
                raise self._error(errors.IO_FAILED, cause=e) from e

            if INTEGER_PATTERN.fullmatch(text) and fits_int16(int(text)):
                return int(text)
            print(f"Invalid integer: {text}", file=self.stderr)

    def _call(self, index):
        node = self.ast.nodes[index]
        function = self.ast.tokens[node.token].tag
        arguments = [self._evaluate(argument) for argument in self.ast.children(index)]

        if function == tok.FUNC_ABS and len(arguments) == 1:
            return self._checked(abs(arguments[0]))
        if function == tok.FUNC_RND and len(arguments) == 1:
            return self.rng.randint(1, max(1, arguments[0]))
        if function == tok.FUNC_MOD and len(arguments) == 2:
            a, b = arguments
            if b == 0:
                raise self._error(errors.DIVISION_BY_ZERO)
            # Remainder of truncating division, the sign follows the dividend
            remainder = abs(a) % abs(b)
            return -remainder if a < 0 else remainder
        raise self._error(errors.NOT_IMPLEMENTED)

    @staticmethod
    def _compare(relop, lhs, rhs):
        if relop == tok.OP_EQ:
            return lhs == rhs
        if relop == tok.OP_NE:
            return lhs != rhs
        if relop == tok.OP_LT:
            return lhs < rhs
        if relop == tok.OP_LTE:
            return lhs <= rhs
        if relop == tok.OP_GT:
            return lhs > rhs
        return lhs >= rhs

    # Checked 16-bit arithmetic
    def _checked(self, value):
        if not INT16_MIN <= value <= INT16_MAX:
            raise self._error(errors.MATH_OVERFLOW)
        return value

    def _divide(self, a, b):
        if b == 0:
            raise self._error(errors.DIVISION_BY_ZERO)
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        return self._checked(quotient)

    def _error(self, kind, number=None, cause=None):
        error = errors.EvaluationError(kind, self._statement_token, number=number, cause=cause)
        self.errors.append(error)
        return error
