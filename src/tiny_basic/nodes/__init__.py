from .ast_nodes import Node, RANGE_TAGS

__all__ = [
    'Node',
    'RANGE_TAGS',
]
