import numpy as np
import sympy as sp
from typing import Union
from ..core.node import Node, ConstantNode, SymbolNode, BinaryOpNode, UnaryOpNode
from ...exceptions import InvalidArgumentError


def sympy_to_node(sympy_expr: sp.Expr) -> Node:
  """Convert a SymPy expression to a node tree.

  n-ary sums and products become left-associative chains, negative terms
  become subtraction and denominators become division. Anything outside
  the supported operator set raises InvalidArgumentError.
  """
  if sympy_expr.is_Symbol:
    return SymbolNode(str(sympy_expr))

  if sympy_expr.is_number:
    try:
      return ConstantNode(float(sympy_expr))
    except TypeError:
      raise InvalidArgumentError(f"Cannot convert non-real number {sympy_expr} to a constant")

  if isinstance(sympy_expr, sp.exp):
    return UnaryOpNode('exp', sympy_to_node(sympy_expr.args[0]))

  if isinstance(sympy_expr, sp.log):
    return UnaryOpNode('log', sympy_to_node(sympy_expr.args[0]))

  if isinstance(sympy_expr, sp.Pow):
    base, exponent = sympy_expr.args
    return BinaryOpNode('^', sympy_to_node(base), sympy_to_node(exponent))

  if isinstance(sympy_expr, sp.Add):
    terms = sympy_expr.as_ordered_terms()
    result = sympy_to_node(terms[0])
    for term in terms[1:]:
      if term.could_extract_minus_sign():
        result = BinaryOpNode('-', result, sympy_to_node(-term))
      else:
        result = BinaryOpNode('+', result, sympy_to_node(term))
    return result

  if isinstance(sympy_expr, sp.Mul):
    numerator, denominator = sp.fraction(sympy_expr)
    if denominator != 1:
      return BinaryOpNode('/', sympy_to_node(numerator), sympy_to_node(denominator))

    coeff, rest = sympy_expr.as_coeff_Mul()
    if coeff == -1:
      return UnaryOpNode('neg', sympy_to_node(rest))

    factors = sympy_expr.as_ordered_factors()
    result = sympy_to_node(factors[0])
    for factor in factors[1:]:
      result = BinaryOpNode('*', result, sympy_to_node(factor))
    return result

  raise InvalidArgumentError(f"Unsupported SymPy expression: {sympy_expr}")


def _as_sympy(expr) -> sp.Expr:
  # Node and Expression both provide to_sympy()
  if isinstance(expr, sp.Basic):
    return expr
  return expr.to_sympy()


CHECK_POINTS = (0.5, 1.25, 2.0, 3.5)
CHECK_TOLERANCE = 1e-9


class SymPyVerifier:
  """Checks node trees against SymPy's own algebra"""

  @staticmethod
  def equivalent(a, b) -> bool:
    """True if a and b agree.

    a and b may be nodes, expressions or SymPy expressions. An exact zero
    difference decides it. A difference that still holds floating-point
    constants (simplify folds log(2.0) to 0.693...) is settled numerically at
    CHECK_POINTS instead.
    """
    left, right = _as_sympy(a), _as_sympy(b)
    difference = sp.simplify(left - right)
    if difference == 0:
      return True
    if not difference.has(sp.Float):
      return False
    return SymPyVerifier.numerically_equal(left, right)

  @staticmethod
  def numerically_equal(left: sp.Expr, right: sp.Expr) -> bool:
    """Compare two SymPy expressions at positive sample points, NaN equal to NaN"""
    symbols = sorted(left.free_symbols | right.free_symbols, key=str)
    n = len(CHECK_POINTS)
    samples = [np.array([CHECK_POINTS[(i + j) % n] for i in range(n)]) for j in range(len(symbols))]
    with np.errstate(all='ignore'):
      left_vals = np.broadcast_to(sp.lambdify(symbols, left, modules='numpy')(*samples), (n,))
      right_vals = np.broadcast_to(sp.lambdify(symbols, right, modules='numpy')(*samples), (n,))
    return bool(np.allclose(left_vals, right_vals, rtol=CHECK_TOLERANCE,
                            atol=CHECK_TOLERANCE, equal_nan=True))

  @staticmethod
  def derivative_matches(expr, symbol_name: str, derivative) -> bool:
    """True if derivative equals SymPy's derivative of expr by symbol_name"""
    expected = sp.diff(_as_sympy(expr), sp.Symbol(symbol_name))
    return SymPyVerifier.equivalent(expected, derivative)


def latex_representation(node: Union[Node, sp.Expr]) -> str:
  """Get LaTeX representation of the expression"""
  return sp.latex(_as_sympy(node))
