"""
Tree Utility Functions

Traversal and structural queries shared by the expression wrapper and tests.
"""

from typing import List

from ..core.node import Node, ConstantNode, SymbolNode


def get_all_nodes(node: Node, traversal_order: str = 'breadth_first') -> List[Node]:
    """
    Get all nodes in the tree using specified traversal order.

    Args:
        node: Root node of the tree
        traversal_order: 'breadth_first' (default) or 'depth_first'

    Returns:
        List of all nodes in the tree
    """
    if traversal_order == 'breadth_first':
        return _breadth_first_traversal(node)
    elif traversal_order == 'depth_first':
        return _depth_first_traversal(node)
    else:
        raise ValueError(f"Invalid traversal_order: {traversal_order}")


def _breadth_first_traversal(node: Node) -> List[Node]:
    """Breadth-first traversal (iterative, non-recursive)"""
    nodes_to_visit = [node]
    all_nodes = []

    while nodes_to_visit:
        current_node = nodes_to_visit.pop(0)  # FIFO for breadth-first
        all_nodes.append(current_node)
        nodes_to_visit.extend(current_node.children())

    return all_nodes


def _depth_first_traversal(node: Node) -> List[Node]:
    """Depth-first pre-order traversal (recursive)"""
    nodes = [node]
    for child in node.children():
        nodes.extend(_depth_first_traversal(child))
    return nodes


def calculate_tree_depth(node: Node) -> int:
    """
    Calculate the maximum depth of the tree.

    Args:
        node: Root node of the tree

    Returns:
        Maximum depth (leaf nodes have depth 1)
    """
    children = node.children()
    if not children:
        return 1
    return 1 + max(calculate_tree_depth(child) for child in children)


def get_symbol_names(node: Node) -> List[str]:
    """Distinct symbol names in depth-first order of first appearance"""
    names = []
    for current in _depth_first_traversal(node):
        if isinstance(current, SymbolNode) and current.name not in names:
            names.append(current.name)
    return names


def get_constants(node: Node) -> List[float]:
    """Values of all constant leaves, depth-first"""
    return [n.value() for n in _depth_first_traversal(node) if isinstance(n, ConstantNode)]


def validate_tree_structure(node: Node) -> bool:
    """
    Check that every node is reached exactly once from the root.

    A node reachable along two paths would be shared between two parents,
    which breaks exclusive ownership. The walk is iterative and stops at the
    first repeated node, so a cycle cannot make it loop.
    """
    seen = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            return False
        seen.add(id(current))
        stack.extend(current.children())
    return True
