# Syntax tree node tags
# The meaning of a node's token, lhs and rhs depends on its tag. "range" means
# lhs/rhs is a half-open slice of the extra data array holding child node indices.

ROOT = 'ROOT'                # range = lines in program order
LINE_NAKED = 'LINE_NAKED'    # lhs = statement
LINE_MARKED = 'LINE_MARKED'  # token = line number, lhs = statement
STMT_PRINT = 'STMT_PRINT'    # token = PRINT, range = string | expression items
STMT_INPUT = 'STMT_INPUT'    # token = INPUT, range = variables
STMT_LET = 'STMT_LET'        # token = destination variable, rhs = expression
STMT_IF = 'STMT_IF'          # token = IF, lhs = predicate, rhs = statement
STMT_GOTO = 'STMT_GOTO'      # token = GOTO, lhs = expression
STMT_GOSUB = 'STMT_GOSUB'    # token = GOSUB, lhs = expression
STMT_RETURN = 'STMT_RETURN'
STMT_CLEAR = 'STMT_CLEAR'
STMT_LIST = 'STMT_LIST'
STMT_RUN = 'STMT_RUN'
STMT_END = 'STMT_END'
STRING = 'STRING'            # token = string literal
EXPRESSION = 'EXPRESSION'    # range = term_plus | term_minus
TERM_PLUS = 'TERM_PLUS'      # range = factor_mul | factor_div
TERM_MINUS = 'TERM_MINUS'    # range = factor_mul | factor_div
FACTOR_MUL = 'FACTOR_MUL'    # lhs = variable | number | expression | call
FACTOR_DIV = 'FACTOR_DIV'    # lhs = variable | number | expression | call
PREDICATE = 'PREDICATE'      # token = relational operator, lhs/rhs = expressions
VARIABLE = 'VARIABLE'        # token = variable letter
NUMBER = 'NUMBER'            # token = number literal
CALL = 'CALL'                # token = function, range = argument expressions

# Tags whose lhs/rhs hold an extra data range
RANGE_TAGS = frozenset([
    ROOT, STMT_PRINT, STMT_INPUT, EXPRESSION, TERM_PLUS, TERM_MINUS, CALL,
])


class Node:
    """A fixed-shape record in the node arena.

    Children are never held directly, only as indices into the arena or as a
    range of the extra data array. Fields a tag does not use stay None.
    """

    def __init__(self, tag, token=None, lhs=None, rhs=None):
        self.tag = tag
        self.token = token
        self.lhs = lhs
        self.rhs = rhs

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return (self.tag, self.token, self.lhs, self.rhs) == \
            (other.tag, other.token, other.lhs, other.rhs)

    def __repr__(self):
        return f"Node({self.tag}, token={self.token}, lhs={self.lhs}, rhs={self.rhs})"
