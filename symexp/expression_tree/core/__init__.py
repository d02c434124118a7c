"""Core expression tree components."""

from .node import Node, SymbolNode, ConstantNode, BinaryOpNode, UnaryOpNode
from .operators import (
    NodeType, OpType, BINARY_OP_MAP, UNARY_OP_MAP,
    evaluate_binary_op, evaluate_unary_op, fold_binary, fold_unary
)
from .naming import SymbolCounter, get_global_counter, next_symbol_name

__all__ = [
    'Node', 'SymbolNode', 'ConstantNode', 'BinaryOpNode', 'UnaryOpNode',
    'NodeType', 'OpType', 'BINARY_OP_MAP', 'UNARY_OP_MAP',
    'evaluate_binary_op', 'evaluate_unary_op', 'fold_binary', 'fold_unary',
    'SymbolCounter', 'get_global_counter', 'next_symbol_name'
]
