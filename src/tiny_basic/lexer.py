# Token tags produced by the lexer
# Structural tags
INVALID = 'INVALID'
EOF = 'EOF'
EOL = 'EOL'
COMMA = 'COMMA'
LPAREN = 'LPAREN'
RPAREN = 'RPAREN'
# Literals
NUMBER = 'NUMBER'
STRING = 'STRING'
# Operators
OP_PLUS = 'OP_PLUS'
OP_MINUS = 'OP_MINUS'
OP_MUL = 'OP_MUL'
OP_DIV = 'OP_DIV'
OP_EQ = 'OP_EQ'
OP_NE = 'OP_NE'
OP_LT = 'OP_LT'
OP_LTE = 'OP_LTE'
OP_GT = 'OP_GT'
OP_GTE = 'OP_GTE'
# Single letter variable A-Z
VARIABLE = 'VARIABLE'
# Reserved keywords
KEYWORD_PRINT = 'KEYWORD_PRINT'
KEYWORD_IF = 'KEYWORD_IF'
KEYWORD_THEN = 'KEYWORD_THEN'
KEYWORD_GOTO = 'KEYWORD_GOTO'
KEYWORD_INPUT = 'KEYWORD_INPUT'
KEYWORD_LET = 'KEYWORD_LET'
KEYWORD_GOSUB = 'KEYWORD_GOSUB'
KEYWORD_RETURN = 'KEYWORD_RETURN'
KEYWORD_CLEAR = 'KEYWORD_CLEAR'
KEYWORD_LIST = 'KEYWORD_LIST'
KEYWORD_RUN = 'KEYWORD_RUN'
KEYWORD_END = 'KEYWORD_END'
# Built-in functions
FUNC_ABS = 'FUNC_ABS'
FUNC_RND = 'FUNC_RND'
FUNC_MOD = 'FUNC_MOD'

RELATIONAL_OPERATORS = (OP_EQ, OP_NE, OP_LT, OP_LTE, OP_GT, OP_GTE)

KEYWORDS = {
    'PRINT': KEYWORD_PRINT,
    'IF': KEYWORD_IF,
    'THEN': KEYWORD_THEN,
    'GOTO': KEYWORD_GOTO,
    'INPUT': KEYWORD_INPUT,
    'LET': KEYWORD_LET,
    'GOSUB': KEYWORD_GOSUB,
    'RETURN': KEYWORD_RETURN,
    'CLEAR': KEYWORD_CLEAR,
    'LIST': KEYWORD_LIST,
    'RUN': KEYWORD_RUN,
    'END': KEYWORD_END,
    'ABS': FUNC_ABS,
    'RND': FUNC_RND,
    'MOD': FUNC_MOD,
}

PUNCTUATION = {
    ',': COMMA,
    '(': LPAREN,
    ')': RPAREN,
    '=': OP_EQ,
    '+': OP_PLUS,
    '-': OP_MINUS,
    '*': OP_MUL,
    '/': OP_DIV,
}

# Range of a 16-bit signed integer, the only numeric type of the language
INT16_MIN = -32768
INT16_MAX = 32767


def fits_int16(value):
    return INT16_MIN <= value <= INT16_MAX


# Token class represents a single token in the source code
# start/end are offsets into the source text, the end is exclusive
class Token:
    def __init__(self, tag, start, end):
        self.tag = tag
        self.start = start
        self.end = end

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return (self.tag, self.start, self.end) == (other.tag, other.start, other.end)

    def __repr__(self):
        return f"Token({self.tag}, {self.start}, {self.end})"

    def text(self, source):
        return source[self.start:self.end]


# Lexer class breaks down source code into tokens, one call to next() at a time
class Lexer:
    def __init__(self, text):
        self.text = text  # Source code to tokenize
        self.pos = 0      # Current position in text

    def tokenize(self):
        """Scans the whole source.

        Returns:
            list: Every token in source order, ending with the EOF token
        """
        tokens = []
        while True:
            token = self.next()
            tokens.append(token)
            if token.tag == EOF:
                return tokens

    def next(self):
        """Returns the next token and consumes exactly the characters belonging to it."""
        while True:
            start = self.pos
            char = self._peek()

            # End of input, a NUL character counts as the end sentinel
            if char == '\0':
                return Token(EOF, start, start)

            # Skip whitespace, the newline itself is a token
            if char in ' \t\r':
                self.pos += 1
                continue
            if char == '\n':
                self.pos += 1
                return Token(EOL, start, self.pos)

            if char.isdigit() and char.isascii():
                return self._number()
            if char == '"':
                return self._string()
            if 'A' <= char <= 'Z':
                word = self._read_word()
                if word == 'REM':
                    self._skip_comment()
                    continue
                if word in KEYWORDS:
                    return Token(KEYWORDS[word], start, self.pos)
                if len(word) == 1:
                    return Token(VARIABLE, start, self.pos)
                return Token(INVALID, start, self.pos)

            # Relational operators, both spellings of not-equal are accepted
            if char == '<':
                self.pos += 1
                if self._peek() == '=':
                    self.pos += 1
                    return Token(OP_LTE, start, self.pos)
                if self._peek() == '>':
                    self.pos += 1
                    return Token(OP_NE, start, self.pos)
                return Token(OP_LT, start, self.pos)
            if char == '>':
                self.pos += 1
                if self._peek() == '=':
                    self.pos += 1
                    return Token(OP_GTE, start, self.pos)
                if self._peek() == '<':
                    self.pos += 1
                    return Token(OP_NE, start, self.pos)
                return Token(OP_GT, start, self.pos)

            self.pos += 1
            return Token(PUNCTUATION.get(char, INVALID), start, self.pos)

    # Helper methods for tokenization
    def _peek(self):
        if self.pos < len(self.text):
            return self.text[self.pos]
        return '\0'

    def _read_word(self):
        start = self.pos
        while 'A' <= self._peek() <= 'Z':
            self.pos += 1
        return self.text[start:self.pos]

    def _skip_comment(self):
        # The comment runs through the terminating newline
        while self._peek() not in '\n\0':
            self.pos += 1
        if self._peek() == '\n':
            self.pos += 1

    def _number(self):
        start = self.pos
        while self._peek().isdigit() and self._peek().isascii():
            self.pos += 1
        if fits_int16(int(self.text[start:self.pos])):
            return Token(NUMBER, start, self.pos)
        return Token(INVALID, start, self.pos)

    def _string(self):
        start = self.pos
        self.pos += 1  # Skip opening quote
        while True:
            char = self._peek()
            if char == '"':
                self.pos += 1
                return Token(STRING, start, self.pos)
            # Lowercase letters are allowed as an extension over upper case only strings
            if char == ' ' or char == '!' or '#' <= char <= 'z':
                self.pos += 1
                continue
            # Unterminated string or illegal character, which is not consumed
            return Token(INVALID, start, self.pos)


def mark_token(source, token):
    """Renders the source line holding a token with the token marked beneath it.

    Single character tokens get a caret, longer ones a tilde underline.

    Args:
        source (str): The program source code
        token (Token): The token to mark

    Returns:
        str: The source line and the marker line, each newline terminated
    """
    begin = source.rfind('\n', 0, token.start) + 1
    end = source.find('\n', token.start)
    if end < 0:
        end = len(source)
    line = source[begin:end]

    indent = ' ' * (token.start - begin)
    width = token.end - token.start
    if width > 1:
        return f"{line}\n{indent}{'~' * width}\n"
    return f"{line}\n{indent}^\n"
