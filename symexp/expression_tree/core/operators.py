import numpy as np
import numba
from enum import IntEnum

class NodeType(IntEnum):
  SYMBOL = 0
  CONSTANT = 1
  BINARY_OP = 2
  UNARY_OP = 3

class OpType(IntEnum):
  # Binary ops
  ADD = 0
  SUB = 1
  MUL = 2
  DIV = 3
  POW = 4
  # Unary ops
  NEG = 5
  EXP = 6
  LOG = 7

# Mapping dictionaries
BINARY_OP_MAP = {'+': OpType.ADD, '-': OpType.SUB, '*': OpType.MUL, '/': OpType.DIV, '^': OpType.POW}
UNARY_OP_MAP = {'neg': OpType.NEG, 'exp': OpType.EXP, 'log': OpType.LOG}

# Kernels follow numpy semantics: x/0 -> inf, log(-1) -> nan, no clipping.
@numba.njit(cache=True, error_model='numpy')
def evaluate_binary_op(left_val, right_val, op_type):
  if op_type == OpType.ADD:
    return left_val + right_val
  elif op_type == OpType.SUB:
    return left_val - right_val
  elif op_type == OpType.MUL:
    return left_val * right_val
  elif op_type == OpType.DIV:
    return left_val / right_val
  elif op_type == OpType.POW:
    return np.power(left_val, right_val)
  return np.full_like(left_val, np.nan)

@numba.njit(cache=True, error_model='numpy')
def evaluate_unary_op(operand_val, op_type):
  if op_type == OpType.NEG:
    return -operand_val
  elif op_type == OpType.EXP:
    return np.exp(operand_val)
  elif op_type == OpType.LOG:
    return np.log(operand_val)
  return np.full_like(operand_val, np.nan)

def fold_binary(left: float, right: float, operator: str) -> float:
  """Fold two constants with a binary operator, returning a plain float"""
  with np.errstate(all='ignore'):
    result = evaluate_binary_op(np.array([left], dtype=np.float64),
                                np.array([right], dtype=np.float64),
                                BINARY_OP_MAP[operator])
  return float(result[0])

def fold_unary(value: float, operator: str) -> float:
  """Fold a constant with a unary operator, returning a plain float"""
  with np.errstate(all='ignore'):
    result = evaluate_unary_op(np.array([value], dtype=np.float64),
                               UNARY_OP_MAP[operator])
  return float(result[0])
