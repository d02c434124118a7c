"""Exceptions raised by symexp."""


class SymExpError(Exception):
  """Base class for errors raised by symbolic expressions."""


class InvalidStateError(SymExpError, ValueError):
  """The operation is not valid for this node, e.g. value() on a non-constant."""


class InvalidArgumentError(SymExpError, ValueError):
  """An argument cannot be used by the operation it was passed to."""


class ArityMismatchError(InvalidArgumentError):
  """Variable and value sequences passed to eval() differ in length."""

  def __init__(self, n_variables: int, n_values: int):
    self.n_variables = n_variables
    self.n_values = n_values
    super().__init__(
      f"eval() got {n_variables} variables but {n_values} values"
    )
