import numpy as np
import sympy as sp
from numbers import Real
from typing import Dict, List, Optional, Sequence, Union
from .core.node import Node, ConstantNode, SymbolNode, BinaryOpNode, UnaryOpNode
from .utils.tree_utils import calculate_tree_depth, get_symbol_names
from .utils.sympy_utils import sympy_to_node, latex_representation
from ..exceptions import InvalidArgumentError, ArityMismatchError
from ..logging_system import LogLevel, log_debug, log_enabled, log_info


Operand = Union['Expression', Real]
VariableKey = Union['Expression', str]


class Expression:
  """Value-semantics handle around an expression tree.

  Every operation returns a new Expression over a freshly built tree; the
  wrapped tree is never modified and never shared with another Expression.
  A Node passed to the constructor is cloned, so the caller keeps its own.
  """

  __slots__ = ('_root', '_string_cache')

  def __init__(self, root: Union[Node, Real, str]):
    if isinstance(root, Node):
      self._root = root.clone()
    elif isinstance(root, str):
      self._root = SymbolNode(root)
    elif isinstance(root, (Real, np.number)):
      self._root = ConstantNode(float(root))
    else:
      raise InvalidArgumentError(f"Cannot build an expression from {type(root).__name__}")
    self._string_cache: Optional[str] = None

  @property
  def root(self) -> Node:
    return self._root

  def copy(self) -> 'Expression':
    return _wrap(self._root.clone())

  def __copy__(self) -> 'Expression':
    return self.copy()

  def __deepcopy__(self, memo) -> 'Expression':
    return self.copy()

  def eval(self, variable: Union[VariableKey, Sequence[VariableKey]],
           value: Union[float, Sequence[float]]) -> 'Expression':
    """Substitute value for variable, or each value for its variable in order.

    No folding happens here: call simplify() on the result to reduce it.
    """
    if isinstance(variable, (list, tuple)):
      values = list(value)
      if len(variable) != len(values):
        raise ArityMismatchError(len(variable), len(values))
      node = self._root
      for var, val in zip(variable, values):
        node = node.eval(_as_symbol(var), float(val))
      if log_enabled():
        log_debug(f"eval {self.to_string()} over {len(values)} variables")
      return _wrap(node.clone() if node is self._root else node)

    symbol = _as_symbol(variable)
    if log_enabled():
      log_debug(f"eval {self.to_string()} at {symbol.name}={value}")
    return _wrap(self._root.eval(symbol, float(value)))

  def derive(self, variable: Union[VariableKey, Sequence[VariableKey]]) -> Union['Expression', List['Expression']]:
    """Derivative with respect to variable, or the gradient for a sequence.

    Results are not simplified.
    """
    if isinstance(variable, (list, tuple)):
      gradient = [self.derive(var) for var in variable]
      if log_enabled(LogLevel.DETAILED):
        log_info(f"Computed gradient of {self.to_string()} over {len(gradient)} variables",
                 LogLevel.DETAILED)
      return gradient

    symbol = _as_symbol(variable)
    derivative = _wrap(self._root.derive(symbol))
    if log_enabled():
      log_debug(f"d/d{symbol.name} {self.to_string()} -> {derivative.to_string()}")
    return derivative

  def simplify(self) -> 'Expression':
    simplified = _wrap(self._root.simplify())
    if log_enabled():
      log_debug(f"simplify {self.to_string()} -> {simplified.to_string()}")
    return simplified

  def to_string(self) -> str:
    if self._string_cache is None:
      self._string_cache = self._root.to_string()
    return self._string_cache

  def has_value(self) -> bool:
    return self._root.has_value()

  def value(self) -> float:
    """Scalar of a structural constant; raises InvalidStateError otherwise"""
    return self._root.value()

  def try_value(self) -> Optional[float]:
    return self._root.try_value()

  def size(self) -> int:
    """Node count"""
    return self._root.size()

  def depth(self) -> int:
    return calculate_tree_depth(self._root)

  def free_symbols(self) -> List[str]:
    """Symbol names in order of first appearance"""
    return get_symbol_names(self._root)

  def evaluate(self, bindings: Dict[VariableKey, object]) -> np.ndarray:
    """Numeric evaluation over samples.

    Each binding is a scalar or a 1-D array; they are broadcast together.
    Higher-dimensional or non-broadcastable bindings raise InvalidArgumentError.
    The result is a new array and never aliases a binding.
    """
    names = [_as_symbol(key).name for key in bindings]
    arrays = [np.atleast_1d(np.asarray(val, dtype=np.float64)) for val in bindings.values()]
    for name, arr in zip(names, arrays):
      if arr.ndim > 1:
        raise InvalidArgumentError(f"Binding for '{name}' must be a scalar or 1-D array, got shape {arr.shape}")
    if arrays:
      try:
        arrays = np.broadcast_arrays(*arrays)
      except ValueError as e:
        raise InvalidArgumentError(f"Bindings have incompatible shapes: {e}") from e
      arrays = [np.ascontiguousarray(arr) for arr in arrays]
    n_samples = arrays[0].shape[0] if arrays else 1
    return self._root.evaluate(dict(zip(names, arrays)), n_samples)

  def to_sympy(self) -> sp.Expr:
    return self._root.to_sympy()

  def latex(self) -> str:
    return latex_representation(self._root)

  @classmethod
  def from_sympy(cls, sympy_expr: sp.Expr) -> 'Expression':
    return cls(sympy_to_node(sympy_expr))

  def __str__(self) -> str:
    return self.to_string()

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.to_string()!r})"

  def __float__(self) -> float:
    return self.value()

  def __hash__(self) -> int:
    return hash(self._root)

  def __eq__(self, other) -> bool:
    if not isinstance(other, Expression):
      return NotImplemented
    return self._root == other._root

  def __neg__(self) -> 'Expression':
    return _wrap(UnaryOpNode('neg', self._root.clone()))

  def __add__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('+', self, other)

  def __radd__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('+', other, self)

  def __sub__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('-', self, other)

  def __rsub__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('-', other, self)

  def __mul__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('*', self, other)

  def __rmul__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('*', other, self)

  def __truediv__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('/', self, other)

  def __rtruediv__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('/', other, self)

  def __pow__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('^', self, other)

  def __rpow__(self, other: Operand) -> 'Expression':
    if not _is_operand(other):
      return NotImplemented
    return _binary('^', other, self)


class Variable(Expression):
  """Expression holding a single symbol, used as an eval/derive key.

  Variable() draws a fresh '$<n>' name from the process-wide counter.
  Variable(3.0) holds a constant instead and cannot be used as a key.
  """

  __slots__ = ()

  def __init__(self, name: Union[str, Real, None] = None):
    if name is None:
      super().__init__(SymbolNode())
    else:
      super().__init__(name)

  @property
  def name(self) -> Optional[str]:
    return self._root.name if isinstance(self._root, SymbolNode) else None


def _is_operand(operand) -> bool:
  return isinstance(operand, (Expression, Real, np.number))


def _as_node(operand: Operand) -> Node:
  if isinstance(operand, Expression):
    return operand.root.clone()
  if isinstance(operand, (Real, np.number)):
    return ConstantNode(float(operand))
  raise InvalidArgumentError(f"Cannot use {type(operand).__name__} as an operand")


def _binary(operator: str, left: Operand, right: Operand) -> Expression:
  return _wrap(BinaryOpNode(operator, _as_node(left), _as_node(right)))


def _as_symbol(key: VariableKey) -> SymbolNode:
  if isinstance(key, str):
    return SymbolNode(key)
  if isinstance(key, Expression) and isinstance(key.root, SymbolNode):
    return key.root
  raise InvalidArgumentError(f"{key!r} is not a variable and cannot be used as a key")


def power(base: Operand, exponent: Operand) -> Expression:
  return _binary('^', base, exponent)


def exp(operand: Operand) -> Expression:
  return _wrap(UnaryOpNode('exp', _as_node(operand)))


def log(operand: Operand) -> Expression:
  return _wrap(UnaryOpNode('log', _as_node(operand)))


def _wrap(root: Node) -> Expression:
  # Takes ownership of a freshly built tree without cloning it again
  expr = object.__new__(Expression)
  expr._root = root
  expr._string_cache = None
  return expr
