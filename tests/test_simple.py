import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from symexp import Variable, exp, log


def test_simple_usage():
    """Build, substitute, differentiate and simplify a small expression"""
    x = Variable('x')
    y = Variable('y')

    e = x * x + 2 * x * y + exp(log(y))
    print(f"Expression: {e}")

    gradient = [g.simplify() for g in e.derive([x, y])]
    print(f"Gradient: {[str(g) for g in gradient]}")

    value = e.eval([x, y], [1.0, 2.0]).simplify().value()
    print(f"Value at x=1, y=2: {value}")

    assert value == pytest.approx(1.0 + 4.0 + 2.0)
    assert gradient[0].eval([x, y], [1.0, 2.0]).simplify().value() == 2.0 + 4.0


if __name__ == "__main__":
    test_simple_usage()
