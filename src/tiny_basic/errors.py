# Structured error records raised by the parser and the interpreter.
# They carry a kind and a minimal payload, the driver turns them into text.

# Parse error kinds
EXPECT_TOKEN = 'expect_token'
EXPECT_STATEMENT = 'expect_statement'
EXPECT_RELOP = 'expect_relop'
EXPECT_EXPRESSION = 'expect_expression'
NESTING_TOO_DEEP = 'nesting_too_deep'

# Evaluation error kinds
NOT_IMPLEMENTED = 'not_implemented'
MATH_OVERFLOW = 'math_overflow'
DIVISION_BY_ZERO = 'division_by_zero'
RETURN_WITHOUT_GOSUB = 'return_without_gosub'
TOO_MANY_GOSUBS = 'too_many_gosubs'
MISSING_LINE = 'missing_line'
IO_FAILED = 'io_failed'


class BasicError(Exception):
    """Base class of every error the language pipeline reports."""

    def __init__(self, kind, token=None):
        super().__init__(kind)
        self.kind = kind
        self.token = token  # Index of the offending token, if known


class ParseError(BasicError):
    """Tree construction stopped at token index `token`.

    `expected` holds the wanted token tag for EXPECT_TOKEN errors.
    """

    def __init__(self, kind, token, expected=None):
        super().__init__(kind, token)
        self.expected = expected

    def __str__(self):
        if self.kind == EXPECT_TOKEN:
            return f"{self.kind} {self.expected} at token {self.token}"
        return f"{self.kind} at token {self.token}"


class EvaluationError(BasicError):
    """Execution stopped while running the statement at token index `token`.

    `number` is the requested line for MISSING_LINE, `cause` the underlying
    exception for IO_FAILED.
    """

    def __init__(self, kind, token=None, number=None, cause=None):
        super().__init__(kind, token)
        self.number = number
        self.cause = cause

    def __str__(self):
        if self.kind == MISSING_LINE:
            return f"missing line {self.number}"
        if self.kind == IO_FAILED:
            return f"{self.kind}: {self.cause}"
        return self.kind
