import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import copy
import math
import threading
import numpy as np
import pytest

from symexp import (
    Expression, Variable, power, exp, log,
    InvalidStateError, InvalidArgumentError, ArityMismatchError
)
from symexp.expression_tree.core.naming import SymbolCounter, get_global_counter
from symexp.expression_tree.utils.tree_utils import get_all_nodes, validate_tree_structure


SAMPLE_POINTS = [-2.0, -0.5, 0.0, 1.0, 5.0]


def value_at(expr, var, point):
    return expr.eval(var, point).simplify().value()


@pytest.fixture
def x():
    return Variable('x')


@pytest.fixture
def y():
    return Variable('y')


def test_leaf_construction():
    assert Expression(2).to_string() == "2.0"
    assert Expression(2.5).has_value()
    assert Expression(np.float64(1.5)).value() == 1.5
    assert Expression('z').to_string() == "z"
    assert not Expression('z').has_value()
    with pytest.raises(InvalidArgumentError):
        Expression([1, 2])


def test_operators_build_structure_without_simplifying(x, y):
    assert (-x).to_string() == "-(x)"
    assert (x + y).to_string() == "(x + y)"
    assert (x - y).to_string() == "(x - y)"
    assert (x * y).to_string() == "(x * y)"
    assert (x / y).to_string() == "(x / y)"
    assert (x ** y).to_string() == "pow(x, y)"
    assert pow(x, 2).to_string() == "pow(x, 2.0)"
    assert power(x, y).to_string() == "pow(x, y)"
    assert exp(x).to_string() == "exp(x)"
    assert log(x).to_string() == "log(x)"
    assert (x * 1).to_string() == "(x * 1.0)"
    assert (x + 0).to_string() == "(x + 0.0)"


def test_scalars_promote_on_either_side(x):
    assert (2 * x).to_string() == "(2.0 * x)"
    assert (1 - x).to_string() == "(1.0 - x)"
    assert (1 / x).to_string() == "(1.0 / x)"
    assert (2 ** x).to_string() == "pow(2.0, x)"
    assert exp(0).to_string() == "exp(0.0)"
    with pytest.raises(TypeError):
        x + "y"
    with pytest.raises(InvalidArgumentError):
        power(x, "y")


def test_operators_on_variables_return_plain_expressions(x):
    assert type(x + 1) is Expression
    assert type(-x) is Expression


def test_builders_never_share_nodes(x):
    e = x * x
    assert validate_tree_structure(e.root)
    assert e.root.left is not e.root.right
    assert e.root.left is not x.root


def test_constant_value_and_invalid_state(x):
    assert Expression(3.0).value() == 3.0
    assert float(Expression(3.0)) == 3.0
    with pytest.raises(InvalidStateError):
        x.value()
    with pytest.raises(ValueError):
        (x + 1).value()
    assert (x + 1).try_value() is None


def test_eval_single_variable(x, y):
    e = x + y
    assert e.eval(x, 1.0).to_string() == "(1.0 + y)"
    assert e.eval('y', 2).to_string() == "(x + 2.0)"
    # no folding
    assert not (x * x).eval(x, 3.0).has_value()


def test_eval_multiple_variables(x, y):
    e = x * y + x
    result = e.eval([x, y], [2.0, 3.0])
    assert result.to_string() == "((2.0 * 3.0) + 2.0)"
    assert result.simplify().value() == 8.0


def test_eval_multiple_applies_left_to_right(x):
    result = (x + 1).eval([x, x], [1.0, 2.0])
    assert result.simplify().value() == 2.0


def test_eval_empty_sequences_copy(x):
    e = x + 1
    result = e.eval([], [])
    assert result == e
    assert result.root is not e.root


def test_eval_arity_mismatch(x, y):
    with pytest.raises(ArityMismatchError) as info:
        (x + y).eval([x, y], [1.0])
    assert info.value.n_variables == 2
    assert info.value.n_values == 1
    with pytest.raises(InvalidArgumentError):
        (x + y).eval([x], [1.0, 2.0])


def test_non_symbol_keys_rejected(x):
    with pytest.raises(InvalidArgumentError):
        x.eval(x + 1, 2.0)
    with pytest.raises(InvalidArgumentError):
        x.derive(Variable(3.0))


def test_derive_is_unsimplified(x):
    assert (x * x).derive(x).to_string() == "((1.0 * x) + (x * 1.0))"


def test_gradient(x, y):
    e = x * y + exp(x)
    gradient = e.derive([x, y])
    assert isinstance(gradient, list)
    assert [g.simplify().to_string() for g in gradient] == ["(y + exp(x))", "x"]
    assert gradient[0].root is not gradient[1].root


def test_constant_derivative_is_zero(x):
    for value in (0.0, 3.5, -7.0):
        assert Expression(value).derive(x).simplify().value() == 0.0


def test_variable_self_derivative(x, y):
    assert x.derive(x).simplify().value() == 1.0
    assert x.derive(y).simplify().value() == 0.0


def test_product_rule_matches_expansion(x):
    f = x ** 2 + 1
    g = exp(x) - x
    lhs = (f * g).derive(x).simplify()
    rhs = (f.derive(x) * g + f * g.derive(x)).simplify()
    for point in SAMPLE_POINTS:
        assert value_at(lhs, x, point) == pytest.approx(value_at(rhs, x, point))


def test_full_substitution_yields_constant(x):
    for e in (x * x + 2 * x + 1, exp(x) / (x + 3), -(x ** 3) - log(x + 10)):
        for point in SAMPLE_POINTS:
            assert e.eval(x, point).simplify().has_value()


@pytest.mark.parametrize("build", [
    lambda x, y: x * x + 2 * x + 1,
    lambda x, y: (x * x).derive(x),
    lambda x, y: (x ** y).derive(x),
    lambda x, y: (x / y).derive(y),
    lambda x, y: exp(log(x)) * log(exp(y)),
    lambda x, y: 0 - (-(x - 0)),
    lambda x, y: (x - x) * (y - y) + 0 * x,
    lambda x, y: power(1, x) + power(x, 0) - power(0, y),
    lambda x, y: -(-(-x)),
])
def test_simplify_is_idempotent(build, x, y):
    e = build(x, y)
    once = e.simplify().to_string()
    assert once == e.simplify().simplify().to_string()


def test_copy_independence(x):
    a = x + 1
    b = a
    b = b + 1
    assert a.to_string() == "(x + 1.0)"
    c = a.copy()
    assert c == a
    assert c.root is not a.root
    shared = {id(n) for n in get_all_nodes(a.root)} & {id(n) for n in get_all_nodes(c.root)}
    assert not shared
    assert copy.copy(a).root is not a.root
    assert copy.deepcopy(a).root is not a.root


def test_quadratic_scenario(x):
    e = x * x + 2 * x + 1
    assert e.eval(x, 3.0).simplify().value() == 16.0


def test_square_derivative_scenario(x):
    d = (x * x).derive(x).simplify()
    assert d.to_string() == "(x + x)"
    for point in (-2.0, 0.0, 5.0):
        assert value_at(d, x, point) == 2 * point


def test_exp_log_cancel_scenario(x):
    assert exp(log(x)).simplify().to_string() == x.to_string()


def test_self_difference_scenario(x):
    e = x - x
    assert not e.has_value()
    assert e.simplify().has_value()
    assert e.simplify().value() == 0.0


def test_degenerate_division_is_not_an_error(x):
    e = (x / 0).eval(x, 1.0).simplify()
    assert e.value() == math.inf


def test_variable_naming():
    a = Variable()
    b = Variable()
    assert a.name.startswith('$')
    assert int(b.name[1:]) > int(a.name[1:])
    assert Variable('speed').name == 'speed'
    assert Variable(2.0).name is None
    assert Variable(2.0).value() == 2.0


def test_user_names_may_collide():
    assert Variable('x') == Variable('x')
    assert Variable('x').derive(Variable('x')).simplify().value() == 1.0


def test_generated_names_unique_across_threads():
    names = []
    lock = threading.Lock()

    def worker():
        local = [Variable().name for _ in range(200)]
        with lock:
            names.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(names) == len(set(names)) == 1600


def test_size_depth_and_symbols(x, y):
    e = y + x * y
    assert e.size() == 5
    assert e.depth() == 3
    assert e.free_symbols() == ['y', 'x']
    assert Expression(1.0).free_symbols() == []


def test_numeric_evaluate(x, y):
    e = x * x + y
    result = e.evaluate({x: [0.0, 1.0, 2.0], 'y': 1.0})
    np.testing.assert_allclose(result, [1.0, 2.0, 5.0])
    assert Expression(4.0).evaluate({})[0] == 4.0
    with np.errstate(divide='ignore'):
        assert (1 / x).evaluate({x: 0.0})[0] == np.inf
    with pytest.raises(InvalidArgumentError):
        e.evaluate({x: 1.0})


def test_numeric_evaluate_matches_substitution(x):
    e = exp(x) / (x + 3) - log(x + 10) * x
    numeric = e.evaluate({x: SAMPLE_POINTS})
    symbolic = [value_at(e, x, p) for p in SAMPLE_POINTS]
    np.testing.assert_allclose(numeric, symbolic)


def test_equality_and_repr(x):
    assert x + 1 == Variable('x') + 1
    assert hash(x + 1) == hash(Variable('x') + 1)
    assert x + 1 != x + 2
    assert repr(x + 1) == "Expression('(x + 1.0)')"
    assert str(x * 2) == "(x * 2.0)"


def test_symbol_counter():
    counter = SymbolCounter(prefix='t')
    assert counter.next_name() == 't0'
    assert counter.next_name() == 't1'
    assert counter.peek() == 2
    assert get_global_counter() is get_global_counter()
    before = get_global_counter().peek()
    Variable()
    assert get_global_counter().peek() == before + 1


def test_numeric_evaluate_does_not_alias_bindings(x):
    xs = np.array([1.0, 2.0, 3.0])
    out = x.evaluate({x: xs})
    out[0] = 99.0
    assert xs[0] == 1.0
    np.testing.assert_allclose((x + 0).evaluate({x: xs}), xs)


def test_numeric_evaluate_rejects_bad_shapes(x, y):
    with pytest.raises(InvalidArgumentError):
        x.evaluate({x: np.ones((2, 3))})
    with pytest.raises(InvalidArgumentError):
        (x + y).evaluate({x: [1.0, 2.0], y: [1.0, 2.0, 3.0]})
    np.testing.assert_allclose((x + y).evaluate({x: [1.0, 2.0], y: [3.0]}), [4.0, 5.0])


class Tagged:
    """Foreign operand that knows how to combine with expressions"""

    def __radd__(self, other):
        return ("tagged", other.to_string())


def test_unsupported_operands_defer_to_reflected_methods(x):
    assert x + Tagged() == ("tagged", "x")
    with pytest.raises(TypeError):
        x * object()


def test_constructor_clones_supplied_node(x):
    node = (x + 1).root
    a = Expression(node)
    b = Expression(node)
    assert a == b
    assert a.root is not node
    assert a.root is not b.root


def test_quiet_logging_skips_rendering(x):
    e = x * x + 1
    e.simplify()
    e.derive(x)
    e.eval(x, 2.0)
    e.derive([x])
    assert e._string_cache is None
