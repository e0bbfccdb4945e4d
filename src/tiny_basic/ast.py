# The finished program: source text, token array, node arena and extra data.
# Everything is referenced by index, the executor only reads from it.
import pyarrow as pa
import pyarrow.csv as pa_csv

from . import lexer as tok
from .nodes import ast_nodes


def table_to_csv(table):
    """Serialises a pyarrow Table to CSV text with a header row."""
    sink = pa.BufferOutputStream()
    pa_csv.write_csv(table, sink)
    return sink.getvalue().to_pybytes().decode('utf-8')


class Ast:
    def __init__(self, source, tokens, nodes, extra_data):
        self.source = source          # Program source code
        self.tokens = tokens          # List of Token
        self.nodes = nodes            # List of Node, node 0 is the root
        self.extra_data = extra_data  # Child node indices referenced by ranges

    def children(self, index):
        """Returns the child node indices of a node holding an extra data range."""
        node = self.nodes[index]
        return self.extra_data[node.lhs:node.rhs]

    def lines(self):
        return self.children(0)

    def token_text(self, token_index):
        return self.tokens[token_index].text(self.source)

    def get_number(self, token_index):
        token = self.tokens[token_index]
        if token.tag != tok.NUMBER:
            raise ValueError(f"token {token_index} is not a number")
        return int(token.text(self.source))

    def get_string(self, token_index):
        """Returns a string literal without its quotes."""
        token = self.tokens[token_index]
        if token.tag != tok.STRING:
            raise ValueError(f"token {token_index} is not a string literal")
        return self.source[token.start + 1:token.end - 1]

    def get_variable_slot(self, token_index):
        """Maps a variable token to its storage slot, A is 0 and Z is 25."""
        token = self.tokens[token_index]
        if token.tag != tok.VARIABLE:
            raise ValueError(f"token {token_index} is not a variable")
        return ord(self.source[token.start]) - ord('A')

    def to_table(self):
        """Returns the node arena as a pyarrow Table.

        Returns:
            pyarrow.Table: One row per node with tag, token, lhs and rhs columns,
            unused fields are null
        """
        return pa.table({
            'tag': pa.array([node.tag for node in self.nodes], type=pa.string()),
            'token': pa.array([node.token for node in self.nodes], type=pa.int32()),
            'lhs': pa.array([node.lhs for node in self.nodes], type=pa.int32()),
            'rhs': pa.array([node.rhs for node in self.nodes], type=pa.int32()),
        })

    def token_table(self):
        """Returns the token array as a pyarrow Table with tag, start, end and text columns."""
        return pa.table({
            'tag': pa.array([token.tag for token in self.tokens], type=pa.string()),
            'start': pa.array([token.start for token in self.tokens], type=pa.int32()),
            'end': pa.array([token.end for token in self.tokens], type=pa.int32()),
            'text': pa.array([token.text(self.source) for token in self.tokens], type=pa.string()),
        })

    def is_range_node(self, index):
        return self.nodes[index].tag in ast_nodes.RANGE_TAGS
