"""Expression Tree Module

Symbolic expression trees with substitution, differentiation and simplification.
"""

from .expression import Expression, Variable, power, exp, log
from .core.node import (
    Node,
    SymbolNode,
    ConstantNode,
    BinaryOpNode,
    UnaryOpNode
)
from .core.operators import (
    NodeType,
    OpType,
    BINARY_OP_MAP,
    UNARY_OP_MAP,
    evaluate_binary_op,
    evaluate_unary_op
)
from .core.naming import SymbolCounter, get_global_counter
from .utils import SymPyVerifier, sympy_to_node, validate_tree_structure

__all__ = [
    "Expression", "Variable", "power", "exp", "log",
    "Node", "SymbolNode", "ConstantNode", "BinaryOpNode", "UnaryOpNode",
    "NodeType", "OpType",
    "BINARY_OP_MAP", "UNARY_OP_MAP",
    "evaluate_binary_op", "evaluate_unary_op",
    "SymbolCounter", "get_global_counter",
    "SymPyVerifier", "sympy_to_node", "validate_tree_structure"
]
