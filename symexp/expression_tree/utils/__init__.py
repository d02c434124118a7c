"""Utilities for expression trees."""

from .sympy_utils import SymPyVerifier, sympy_to_node, latex_representation
from .tree_utils import (
    get_all_nodes, calculate_tree_depth, get_symbol_names,
    get_constants, validate_tree_structure
)

__all__ = [
    'SymPyVerifier', 'sympy_to_node', 'latex_representation',
    'get_all_nodes', 'calculate_tree_depth', 'get_symbol_names',
    'get_constants', 'validate_tree_structure'
]
