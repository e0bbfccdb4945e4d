import sys
from .lexer import Lexer, mark_token
from .lexer import INVALID
from .parser import Parser
from .ast import Ast
from .interpreter import Interpreter
from .errors import ParseError, EvaluationError, EXPECT_TOKEN, MISSING_LINE
from .nodes import ast_nodes


def parse_program(code):
    """Scans and parses source code.

    Args:
        code (str): The BASIC program text

    Returns:
        Ast: The finished program

    Raises:
        ParseError: If the program is not syntactically valid
    """
    tokens = Lexer(code).tokenize()
    parser = Parser([token.tag for token in tokens])
    nodes, extra_data = parser.parse()
    return Ast(code, tokens, nodes, extra_data)


def run_basic(code, debug=False, stdout=None, stdin=None, stderr=None):
    """Run a BASIC program and report any error on stdout.

    Args:
        code (str): The source code to execute
        debug (bool): If True, dumps the tokens and the node arena before running
        stdout: Program output stream, defaults to sys.stdout
        stdin: Program input stream, defaults to sys.stdin
        stderr: Stream for INPUT diagnostics, defaults to sys.stderr

    Returns:
        Interpreter: The interpreter after the run, None if the program did not parse
    """
    out = stdout if stdout is not None else sys.stdout

    tokens = Lexer(code).tokenize()
    if debug:
        out.write(dump_tokens(code, tokens))

    parser = Parser([token.tag for token in tokens])
    try:
        nodes, extra_data = parser.parse()
    except ParseError as e:
        out.write(format_parse_error(code, tokens, e))
        return None
    except MemoryError:
        out.write("Out of memory :(\n")
        return None

    ast = Ast(code, tokens, nodes, extra_data)
    if debug:
        out.write(dump_nodes(ast))

    interpreter = Interpreter(ast, stdout=out, stdin=stdin, stderr=stderr)
    try:
        interpreter.run()
    except EvaluationError as e:
        out.write(format_evaluation_error(ast, e))
    except MemoryError:
        out.write("Out of memory :(\n")
    return interpreter


def format_parse_error(source, tokens, error):
    token = tokens[error.token]
    line = source.count('\n', 0, token.start) + 1

    if token.tag == INVALID:
        message = "invalid token"
    elif error.kind == EXPECT_TOKEN:
        message = f"expect `{error.expected.lower()}` got `{token.tag.lower()}`"
    else:
        message = error.kind
    return f"line {line}: error: {message}\n" + mark_token(source, token)


def format_evaluation_error(ast, error):
    if error.kind == MISSING_LINE:
        text = f"error: missing line {error.number}\n"
    else:
        text = f"error: {error.kind}\n"
    if error.token is not None:
        text += mark_token(ast.source, ast.tokens[error.token])
    return text


def dump_tokens(source, tokens):
    lines = []
    for i, token in enumerate(tokens):
        text = token.text(source)
        if not text.isprintable():
            text = text.encode('utf-8').hex()
        lines.append(f"Token #{i:<3} {token.tag.lower()} {text}".rstrip() + "\n")
    return ''.join(lines)


def dump_nodes(ast):
    """Renders the node arena one node per line, children shown as #index."""
    lines = []
    for i, node in enumerate(ast.nodes):
        prefix = f"Node #{i:<3} {node.tag.lower():<12}"
        if ast.is_range_node(i):
            if node.tag == ast_nodes.CALL:
                prefix += f"{ast.token_text(node.token)} "
            body = ' '.join(f"#{child}" for child in ast.children(i))
        elif node.tag == ast_nodes.LINE_MARKED:
            body = f".line_number = {ast.token_text(node.token)}, #{node.lhs}"
        elif node.tag in (ast_nodes.LINE_NAKED, ast_nodes.FACTOR_MUL, ast_nodes.FACTOR_DIV,
                          ast_nodes.STMT_GOTO, ast_nodes.STMT_GOSUB):
            body = f"#{node.lhs}"
        elif node.tag in (ast_nodes.VARIABLE, ast_nodes.NUMBER, ast_nodes.STRING):
            body = ast.token_text(node.token)
        elif node.tag == ast_nodes.STMT_IF:
            body = f"IF #{node.lhs} THEN #{node.rhs}"
        elif node.tag == ast_nodes.PREDICATE:
            body = f"#{node.lhs} {ast.tokens[node.token].tag.lower()} #{node.rhs}"
        elif node.tag == ast_nodes.STMT_LET:
            body = f"LET {ast.token_text(node.token)} = #{node.rhs}"
        else:
            body = ''
        lines.append((prefix + body).rstrip() + '\n')
    return ''.join(lines)
