from typing import Optional
import threading


class SymbolCounter:
  """Thread-safe monotonically increasing source of generated symbol names"""

  def __init__(self, prefix: str = '$'):
    self.prefix = prefix
    self._next = 0
    self._lock = threading.Lock()

  def next_name(self) -> str:
    with self._lock:
      index = self._next
      self._next += 1
    return f"{self.prefix}{index}"

  def peek(self) -> int:
    """Index the next generated name will use"""
    with self._lock:
      return self._next


# Global instance - created once on first use, never reset
_GLOBAL_COUNTER: Optional[SymbolCounter] = None
_COUNTER_LOCK = threading.Lock()


def get_global_counter() -> SymbolCounter:
  """Get the process-wide counter, creating it on first use"""
  global _GLOBAL_COUNTER

  # Fast path - no locking needed once initialized
  if _GLOBAL_COUNTER is not None:
    return _GLOBAL_COUNTER

  with _COUNTER_LOCK:
    if _GLOBAL_COUNTER is None:
      _GLOBAL_COUNTER = SymbolCounter()

  return _GLOBAL_COUNTER


def next_symbol_name() -> str:
  return get_global_counter().next_name()
