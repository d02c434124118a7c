import math
import numpy as np
import sympy as sp
from abc import ABC, abstractmethod
from typing import Optional, Dict, Tuple
from .operators import (
  NodeType, BINARY_OP_MAP, UNARY_OP_MAP,
  evaluate_binary_op, evaluate_unary_op, fold_binary, fold_unary
)
from .naming import next_symbol_name
from ...exceptions import InvalidStateError, InvalidArgumentError
from ...logging_system import log_warning


class Node(ABC):
  """Base node class.

  Nodes are never modified after construction. clone, eval, derive and
  simplify all build and return a fresh tree that shares no node with self.
  """

  __slots__ = ('_hash_cache', '_size_cache')

  def __init__(self):
    self._hash_cache: Optional[int] = None
    self._size_cache: Optional[int] = None

  @abstractmethod
  def clone(self) -> 'Node':
    pass

  @abstractmethod
  def eval(self, symbol: 'SymbolNode', value: float) -> 'Node':
    """Replace every occurrence of symbol by a constant, without folding"""
    pass

  @abstractmethod
  def derive(self, symbol: 'SymbolNode') -> 'Node':
    """Derivative with respect to symbol, unsimplified"""
    pass

  @abstractmethod
  def simplify(self) -> 'Node':
    """One bottom-up pass of local rewrite rules"""
    pass

  @abstractmethod
  def to_string(self) -> str:
    pass

  @abstractmethod
  def to_sympy(self) -> sp.Expr:
    pass

  @abstractmethod
  def evaluate(self, bindings: Dict[str, np.ndarray], n_samples: int) -> np.ndarray:
    """Numeric evaluation with one float64 array of length n_samples per symbol"""
    pass

  @abstractmethod
  def children(self) -> Tuple['Node', ...]:
    pass

  @abstractmethod
  def _key(self) -> tuple:
    pass

  def has_value(self) -> bool:
    return False

  def value(self) -> float:
    raise InvalidStateError(f"'{self.to_string()}' is not a constant")

  def try_value(self) -> Optional[float]:
    return self.value() if self.has_value() else None

  def size(self) -> int:
    """Node count"""
    if self._size_cache is None:
      self._size_cache = 1 + sum(child.size() for child in self.children())
    return self._size_cache

  def __eq__(self, other) -> bool:
    if not isinstance(other, Node):
      return NotImplemented
    if self is other:
      return True
    return hash(self) == hash(other) and self._key() == other._key()

  def __hash__(self) -> int:
    if self._hash_cache is None:
      self._hash_cache = hash(self._key())
    return self._hash_cache

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.to_string()!r})"


def _constant(value: float, source: str) -> 'ConstantNode':
  if not math.isfinite(value):
    log_warning(f"Constant folding of {source} produced {value}")
  return ConstantNode(value)


def _is_constant(node: Node, value: float) -> bool:
  return node.has_value() and node.value() == value


class ConstantNode(Node):
  __slots__ = ('_value',)

  def __init__(self, value: float):
    super().__init__()
    self._value = float(value)

  def clone(self) -> 'ConstantNode':
    return ConstantNode(self._value)

  def eval(self, symbol, value):
    return self.clone()

  def derive(self, symbol):
    return ConstantNode(0.0)

  def simplify(self):
    return self.clone()

  def to_string(self) -> str:
    return repr(self._value)

  def to_sympy(self):
    if math.isnan(self._value):
      return sp.nan
    if math.isinf(self._value):
      return sp.oo if self._value > 0 else -sp.oo
    if self._value.is_integer():
      return sp.Integer(int(self._value))
    return sp.Float(self._value)

  def evaluate(self, bindings, n_samples):
    return np.full(n_samples, self._value, dtype=np.float64)

  def children(self):
    return ()

  def has_value(self) -> bool:
    return True

  def value(self) -> float:
    return self._value

  def _key(self):
    return (NodeType.CONSTANT, self._value)


class SymbolNode(Node):
  __slots__ = ('name',)

  def __init__(self, name: Optional[str] = None):
    super().__init__()
    self.name = next_symbol_name() if name is None else str(name)

  def clone(self) -> 'SymbolNode':
    return SymbolNode(self.name)

  def eval(self, symbol, value):
    if symbol.name == self.name:
      return ConstantNode(value)
    return self.clone()

  def derive(self, symbol):
    return ConstantNode(1.0 if symbol.name == self.name else 0.0)

  def simplify(self):
    return self.clone()

  def to_string(self) -> str:
    return self.name

  def to_sympy(self):
    return sp.Symbol(self.name)

  def evaluate(self, bindings, n_samples):
    if self.name not in bindings:
      raise InvalidArgumentError(f"No value bound for symbol '{self.name}'")
    return bindings[self.name].copy()

  def children(self):
    return ()

  def _key(self):
    return (NodeType.SYMBOL, self.name)


class BinaryOpNode(Node):
  __slots__ = ('operator', 'left', 'right')

  def __init__(self, operator: str, left: Node, right: Node):
    super().__init__()
    if operator not in BINARY_OP_MAP:
      raise InvalidArgumentError(f"Unknown binary operator: {operator!r}")
    self.operator = operator
    self.left = left
    self.right = right

  def clone(self) -> 'BinaryOpNode':
    return BinaryOpNode(self.operator, self.left.clone(), self.right.clone())

  def eval(self, symbol, value):
    return BinaryOpNode(self.operator, self.left.eval(symbol, value), self.right.eval(symbol, value))

  def derive(self, symbol):
    l, r = self.left, self.right
    if self.operator in ('+', '-'):
      return BinaryOpNode(self.operator, l.derive(symbol), r.derive(symbol))
    elif self.operator == '*':
      return BinaryOpNode('+',
                          BinaryOpNode('*', l.derive(symbol), r.clone()),
                          BinaryOpNode('*', l.clone(), r.derive(symbol)))
    elif self.operator == '/':
      numerator = BinaryOpNode('-',
                               BinaryOpNode('*', l.derive(symbol), r.clone()),
                               BinaryOpNode('*', l.clone(), r.derive(symbol)))
      return BinaryOpNode('/', numerator, BinaryOpNode('^', r.clone(), ConstantNode(2.0)))
    elif self.operator == '^':
      if r.has_value():
        # r * l^(r-1) * l'
        exponent = r.value()
        scaled = BinaryOpNode('*', ConstantNode(exponent),
                              BinaryOpNode('^', l.clone(), ConstantNode(exponent - 1.0)))
        return BinaryOpNode('*', scaled, l.derive(symbol))
      # l^r * (r' * log(l) + r * l' / l), taken as if l > 0
      log_term = BinaryOpNode('*', r.derive(symbol), UnaryOpNode('log', l.clone()))
      ratio_term = BinaryOpNode('/', BinaryOpNode('*', r.clone(), l.derive(symbol)), l.clone())
      return BinaryOpNode('*', self.clone(), BinaryOpNode('+', log_term, ratio_term))
    raise InvalidStateError(f"derive reached unexpected operator: {self.operator}")

  def simplify(self):
    return BinaryOpNode.reduce(self.operator, self.left.simplify(), self.right.simplify())

  @staticmethod
  def reduce(operator: str, left: Node, right: Node) -> Node:
    """Apply the local rules for operator to already simplified operands"""
    if left.has_value() and right.has_value():
      folded = fold_binary(left.value(), right.value(), operator)
      return _constant(folded, f"({left.to_string()} {operator} {right.to_string()})")

    if operator == '+':
      if _is_constant(left, 0.0):
        return right
      if _is_constant(right, 0.0):
        return left

    elif operator == '-':
      if _is_constant(right, 0.0):
        return left
      if _is_constant(left, 0.0):
        return UnaryOpNode.reduce('neg', right)
      if left == right:
        return ConstantNode(0.0)

    elif operator == '*':
      if _is_constant(left, 0.0) or _is_constant(right, 0.0):
        return ConstantNode(0.0)
      if _is_constant(left, 1.0):
        return right
      if _is_constant(right, 1.0):
        return left

    elif operator == '/':
      if _is_constant(right, 1.0):
        return left
      if _is_constant(left, 0.0):
        return ConstantNode(0.0)

    elif operator == '^':
      if _is_constant(right, 0.0):
        return ConstantNode(1.0)
      if _is_constant(right, 1.0):
        return left
      if _is_constant(left, 0.0):
        return ConstantNode(0.0)
      if _is_constant(left, 1.0):
        return ConstantNode(1.0)

    return BinaryOpNode(operator, left, right)

  def to_string(self) -> str:
    if self.operator == '^':
      return f"pow({self.left.to_string()}, {self.right.to_string()})"
    return f"({self.left.to_string()} {self.operator} {self.right.to_string()})"

  def to_sympy(self):
    left, right = self.left.to_sympy(), self.right.to_sympy()
    if self.operator == '+':
      return sp.Add(left, right)
    elif self.operator == '-':
      return sp.Add(left, sp.Mul(-1, right))
    elif self.operator == '*':
      return sp.Mul(left, right)
    elif self.operator == '/':
      return sp.Mul(left, sp.Pow(right, -1))
    elif self.operator == '^':
      return sp.Pow(left, right)
    raise InvalidStateError(f"to_sympy reached unexpected operator: {self.operator}")

  def evaluate(self, bindings, n_samples):
    left_val = self.left.evaluate(bindings, n_samples)
    right_val = self.right.evaluate(bindings, n_samples)
    return evaluate_binary_op(left_val, right_val, BINARY_OP_MAP[self.operator])

  def children(self):
    return (self.left, self.right)

  def _key(self):
    return (NodeType.BINARY_OP, self.operator, self.left, self.right)


class UnaryOpNode(Node):
  __slots__ = ('operator', 'operand')

  def __init__(self, operator: str, operand: Node):
    super().__init__()
    if operator not in UNARY_OP_MAP:
      raise InvalidArgumentError(f"Unknown unary operator: {operator!r}")
    self.operator = operator
    self.operand = operand

  def clone(self) -> 'UnaryOpNode':
    return UnaryOpNode(self.operator, self.operand.clone())

  def eval(self, symbol, value):
    return UnaryOpNode(self.operator, self.operand.eval(symbol, value))

  def derive(self, symbol):
    u = self.operand
    if self.operator == 'neg':
      return UnaryOpNode('neg', u.derive(symbol))
    elif self.operator == 'exp':
      return BinaryOpNode('*', self.clone(), u.derive(symbol))
    elif self.operator == 'log':
      return BinaryOpNode('/', u.derive(symbol), u.clone())
    raise InvalidStateError(f"derive reached unexpected operator: {self.operator}")

  def simplify(self):
    return UnaryOpNode.reduce(self.operator, self.operand.simplify())

  @staticmethod
  def reduce(operator: str, operand: Node) -> Node:
    """Apply the local rules for operator to an already simplified operand"""
    if operand.has_value():
      folded = fold_unary(operand.value(), operator)
      return _constant(folded, f"{operator}({operand.to_string()})")

    # neg(neg(u)), exp(log(u)) and log(exp(u)) all cancel to u
    inverse = {'neg': 'neg', 'exp': 'log', 'log': 'exp'}[operator]
    if isinstance(operand, UnaryOpNode) and operand.operator == inverse:
      return operand.operand

    return UnaryOpNode(operator, operand)

  def to_string(self) -> str:
    if self.operator == 'neg':
      return f"-({self.operand.to_string()})"
    return f"{self.operator}({self.operand.to_string()})"

  def to_sympy(self):
    operand_sympy = self.operand.to_sympy()
    if self.operator == 'neg':
      return -operand_sympy
    elif self.operator == 'exp':
      return sp.exp(operand_sympy)
    elif self.operator == 'log':
      return sp.log(operand_sympy)
    raise InvalidStateError(f"to_sympy reached unexpected unary operation: {self.operator}")

  def evaluate(self, bindings, n_samples):
    operand_val = self.operand.evaluate(bindings, n_samples)
    return evaluate_unary_op(operand_val, UNARY_OP_MAP[self.operator])

  def children(self):
    return (self.operand,)

  def _key(self):
    return (NodeType.UNARY_OP, self.operator, self.operand)
