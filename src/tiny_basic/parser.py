from . import errors
from . import lexer as tok
from .nodes import ast_nodes as ast
from .nodes.ast_nodes import Node

# Deepest allowed nesting of parenthesised expressions, call arguments and IF statements
MAX_NESTING = 64

# Number of arguments each built-in function takes
FUNCTION_ARITY = {
    tok.FUNC_ABS: 1,
    tok.FUNC_RND: 1,
    tok.FUNC_MOD: 2,
}

# Statements without operands
SIMPLE_STATEMENTS = {
    tok.KEYWORD_RETURN: ast.STMT_RETURN,
    tok.KEYWORD_CLEAR: ast.STMT_CLEAR,
    tok.KEYWORD_LIST: ast.STMT_LIST,
    tok.KEYWORD_RUN: ast.STMT_RUN,
    tok.KEYWORD_END: ast.STMT_END,
}


class Parser:
    """Recursive-descent parser building the node arena.

    Only the token tags are needed, literal values are recovered later from the
    source text. Nodes are appended to `nodes`, variable-arity child lists to
    `extra_data`. Node 0 is always the root.
    """

    def __init__(self, token_tags):
        self.token_tags = token_tags
        self.pos = 0
        self.depth = 0
        self.nodes = []
        self.extra_data = []
        self.errors = []

    def parse(self):
        """Parses the whole token stream.

        Returns:
            tuple: The node list and the extra data list

        Raises:
            ParseError: On the first syntax error, which is also kept in `errors`
        """
        self.nodes.append(Node(ast.ROOT))

        lines = []
        while self._peek() != tok.EOF:
            line = self._line()
            if line is not None:
                lines.append(line)

        root = self.nodes[0]
        root.lhs, root.rhs = self._add_extra(lines)
        return self.nodes, self.extra_data

    # line := [number] statement? eol
    def _line(self):
        line_number = self._eat(tok.NUMBER)
        statement = self._statement()

        if self._eat(tok.EOL) is None and self._peek() != tok.EOF:
            raise self._error(errors.EXPECT_TOKEN, self.pos, tok.EOL)

        # Empty lines are dropped from the program
        if statement is None:
            return None
        if line_number is not None:
            return self._add_node(ast.LINE_MARKED, token=line_number, lhs=statement)
        return self._add_node(ast.LINE_NAKED, lhs=statement)

    def _statement(self):
        tag = self._peek()
        if tag == tok.EOL:
            return None

        if tag == tok.KEYWORD_PRINT:
            return self._print_statement()
        if tag == tok.KEYWORD_INPUT:
            return self._input_statement()
        if tag == tok.KEYWORD_LET:
            return self._let_statement()
        if tag == tok.KEYWORD_IF:
            return self._if_statement()
        if tag == tok.KEYWORD_GOTO:
            return self._go_statement(ast.STMT_GOTO)
        if tag == tok.KEYWORD_GOSUB:
            return self._go_statement(ast.STMT_GOSUB)

        if tag in SIMPLE_STATEMENTS:
            return self._add_node(SIMPLE_STATEMENTS[tag], token=self._next())

        raise self._error(errors.EXPECT_TOKEN, self.pos, tok.EOL)

    def _expect_statement(self):
        statement = self._statement()
        if statement is None:
            raise self._error(errors.EXPECT_STATEMENT, self.pos)
        return statement

    # PRINT (string | expression) (',' (string | expression))*
    def _print_statement(self):
        print_token = self._expect(tok.KEYWORD_PRINT)

        items = []
        while True:
            string = self._eat(tok.STRING)
            if string is not None:
                items.append(self._add_node(ast.STRING, token=string))
            else:
                items.append(self._expression())

            if self._eat(tok.COMMA) is None:
                break

        lhs, rhs = self._add_extra(items)
        return self._add_node(ast.STMT_PRINT, token=print_token, lhs=lhs, rhs=rhs)

    # INPUT variable (',' variable)*
    def _input_statement(self):
        input_token = self._expect(tok.KEYWORD_INPUT)

        variables = [self._variable()]
        while self._eat(tok.COMMA) is not None:
            variables.append(self._variable())

        lhs, rhs = self._add_extra(variables)
        return self._add_node(ast.STMT_INPUT, token=input_token, lhs=lhs, rhs=rhs)

    # LET variable '=' expression
    def _let_statement(self):
        self._expect(tok.KEYWORD_LET)
        variable = self._expect(tok.VARIABLE)
        self._expect(tok.OP_EQ)
        expression = self._expression()
        return self._add_node(ast.STMT_LET, token=variable, rhs=expression)

    # IF predicate THEN statement
    def _if_statement(self):
        # Nested IF statements share the expression nesting bound
        self.depth += 1
        try:
            if self.depth > MAX_NESTING:
                raise self._error(errors.NESTING_TOO_DEEP, self.pos)

            if_token = self._expect(tok.KEYWORD_IF)
            predicate = self._predicate()
            self._expect(tok.KEYWORD_THEN)
            statement = self._expect_statement()
        finally:
            self.depth -= 1
        return self._add_node(ast.STMT_IF, token=if_token, lhs=predicate, rhs=statement)

    # GOTO expression | GOSUB expression
    def _go_statement(self, tag):
        token = self._next()
        expression = self._expression()
        return self._add_node(tag, token=token, lhs=expression)

    # expression := ['+'|'-'] term (('+'|'-') term)*
    def _expression(self):
        self.depth += 1
        try:
            if self.depth > MAX_NESTING:
                raise self._error(errors.NESTING_TOO_DEEP, self.pos)

            # A leading sign is folded into the first term
            if self._eat(tok.OP_MINUS) is not None:
                terms = [self._term(ast.TERM_MINUS)]
            else:
                self._eat(tok.OP_PLUS)
                terms = [self._term(ast.TERM_PLUS)]

            while True:
                if self._eat(tok.OP_PLUS) is not None:
                    terms.append(self._term(ast.TERM_PLUS))
                elif self._eat(tok.OP_MINUS) is not None:
                    terms.append(self._term(ast.TERM_MINUS))
                else:
                    break
        finally:
            self.depth -= 1

        lhs, rhs = self._add_extra(terms)
        return self._add_node(ast.EXPRESSION, lhs=lhs, rhs=rhs)

    # term := factor (('*'|'/') factor)*
    def _term(self, tag):
        factors = [self._factor(ast.FACTOR_MUL)]
        while True:
            if self._eat(tok.OP_MUL) is not None:
                factors.append(self._factor(ast.FACTOR_MUL))
            elif self._eat(tok.OP_DIV) is not None:
                factors.append(self._factor(ast.FACTOR_DIV))
            else:
                break

        lhs, rhs = self._add_extra(factors)
        return self._add_node(tag, lhs=lhs, rhs=rhs)

    # factor := variable | number | '(' expression ')' | call
    def _factor(self, tag):
        variable = self._eat(tok.VARIABLE)
        if variable is not None:
            operand = self._add_node(ast.VARIABLE, token=variable)
            return self._add_node(tag, lhs=operand)

        number = self._eat(tok.NUMBER)
        if number is not None:
            operand = self._add_node(ast.NUMBER, token=number)
            return self._add_node(tag, lhs=operand)

        if self._eat(tok.LPAREN) is not None:
            expression = self._expression()
            self._expect(tok.RPAREN)
            return self._add_node(tag, lhs=expression)

        if self._peek() in FUNCTION_ARITY:
            return self._add_node(tag, lhs=self._call())

        raise self._error(errors.EXPECT_EXPRESSION, self.pos)

    # call := function '(' expression (',' expression)* ')'
    def _call(self):
        function = self._next()
        arity = FUNCTION_ARITY[self.token_tags[function]]

        self._expect(tok.LPAREN)
        arguments = [self._expression()]
        while len(arguments) < arity:
            self._expect(tok.COMMA)
            arguments.append(self._expression())
        self._expect(tok.RPAREN)

        lhs, rhs = self._add_extra(arguments)
        return self._add_node(ast.CALL, token=function, lhs=lhs, rhs=rhs)

    # predicate := expression relop expression
    def _predicate(self):
        lhs = self._expression()
        if self._peek() not in tok.RELATIONAL_OPERATORS:
            raise self._error(errors.EXPECT_RELOP, self.pos)
        relop = self._next()
        rhs = self._expression()
        return self._add_node(ast.PREDICATE, token=relop, lhs=lhs, rhs=rhs)

    def _variable(self):
        variable = self._expect(tok.VARIABLE)
        return self._add_node(ast.VARIABLE, token=variable)

    # Token helpers
    def _peek(self):
        return self.token_tags[self.pos]

    def _next(self):
        index = self.pos
        self.pos += 1
        return index

    def _eat(self, tag):
        if self._peek() == tag:
            return self._next()
        return None

    def _expect(self, tag):
        if self._peek() != tag:
            raise self._error(errors.EXPECT_TOKEN, self.pos, tag)
        return self._next()

    # Arena helpers
    def _add_node(self, tag, token=None, lhs=None, rhs=None):
        self.nodes.append(Node(tag, token, lhs, rhs))
        return len(self.nodes) - 1

    def _add_extra(self, items):
        """Appends child indices to the extra data array and returns their range."""
        start = len(self.extra_data)
        self.extra_data.extend(items)
        return start, len(self.extra_data)

    def _error(self, kind, token, expected=None):
        error = errors.ParseError(kind, token, expected)
        self.errors.append(error)
        return error
