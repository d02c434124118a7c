"""symexp

Symbolic arithmetic expressions: build, substitute, differentiate, simplify.
"""

from .expression_tree import (
  Expression, Variable, power, exp, log,
  Node, SymbolNode, ConstantNode, BinaryOpNode, UnaryOpNode,
  SymPyVerifier
)
from .exceptions import SymExpError, InvalidStateError, InvalidArgumentError, ArityMismatchError
from .logging_system import LogLevel, configure_logging, set_log_level, get_logger

__version__ = "0.1.0"
__all__ = [
  "Expression", "Variable", "power", "exp", "log",
  "Node", "SymbolNode", "ConstantNode", "BinaryOpNode", "UnaryOpNode",
  "SymPyVerifier",
  "SymExpError", "InvalidStateError", "InvalidArgumentError", "ArityMismatchError",
  "LogLevel", "configure_logging", "set_log_level", "get_logger"
]
