"""
Tests for the STS model and the unroller.
"""
import pytest

from pysmt.shortcuts import Symbol, Int, Bool, And, Equals, Plus, GT, Not, TRUE, BV
from pysmt.typing import INT, BOOL, BVType, FunctionType

from pysts.errors import ModelError
from pysts.sts import STS, Trace, Unroller


def test_accessors(counter_unsafe):
    """The model exposes its parts read-only."""
    x = counter_unsafe.variable('x')
    assert counter_unsafe.variables == (x,)
    assert counter_unsafe.init == Equals(x, Int(0))
    assert counter_unsafe.error == Equals(x, Int(3))
    assert counter_unsafe.invariant == TRUE()
    with pytest.raises(AttributeError):
        counter_unsafe.init = TRUE()


def test_prime(counter_unsafe):
    x = counter_unsafe.variable('x')
    xp = Symbol("x'", INT)
    assert counter_unsafe.next_var(x) == xp
    assert counter_unsafe.prime(GT(x, Int(1))) == GT(xp, Int(1))
    assert counter_unsafe.next_vars() == [xp]


def test_undeclared_variable_in_error():
    """Error predicate over an undeclared variable is rejected."""
    x, z = Symbol('x', INT), Symbol('z', INT)
    with pytest.raises(ModelError, match="undeclared variable 'z'"):
        STS([x], Equals(x, Int(0)), Equals(Symbol("x'", INT), x), Equals(z, Int(1)))


def test_undeclared_variable_in_trans():
    x = Symbol('x', INT)
    with pytest.raises(ModelError, match="undeclared"):
        STS([x], Equals(x, Int(0)), Equals(Symbol("w'", INT), x), Equals(x, Int(1)))


def test_next_state_variable_outside_trans():
    x = Symbol('x', INT)
    xp = Symbol("x'", INT)
    with pytest.raises(ModelError, match="next-state"):
        STS([x], Equals(xp, Int(0)), Equals(xp, x), Equals(x, Int(1)))


def test_sort_mismatch():
    """A primed variable must have the sort of its declaration."""
    x = Symbol('x', INT)
    xp = Symbol("x'", BOOL)
    with pytest.raises(ModelError, match="clashes"):
        STS([x], Equals(x, Int(0)), xp, Equals(x, Int(1)))


def test_non_boolean_formula():
    x = Symbol('x', INT)
    with pytest.raises(ModelError, match="expected Bool"):
        STS([x], Plus(x, Int(1)), TRUE(), Equals(x, Int(1)))


def test_duplicate_and_illegal_names():
    x = Symbol('x', INT)
    with pytest.raises(ModelError, match="declared twice"):
        STS([x, x], TRUE(), TRUE(), TRUE())
    with pytest.raises(ModelError, match="must not contain"):
        STS([Symbol('x#1', INT)], TRUE(), TRUE(), TRUE())


def test_function_sort_rejected():
    f = Symbol('f', FunctionType(INT, [INT]))
    with pytest.raises(ModelError, match="unsupported sort"):
        STS([f], TRUE(), TRUE(), TRUE())


def test_unroll(parallel_counters):
    u = Unroller(parallel_counters)
    x, y = parallel_counters.variable('x'), parallel_counters.variable('y')
    x1, x2, y2 = Symbol('x#1', INT), Symbol('x#2', INT), Symbol('y#2', INT)

    assert u.indexed(x, 1) == x1
    assert u.trans(1) == And(Equals(x2, Plus(x1, Int(1))), Equals(y2, Plus(Symbol('y#1', INT), Int(1))))
    assert u.error(2) == And(Equals(x2, Int(2)), Equals(y2, Int(5)))
    assert u.fold_in(Equals(x2, y2), 2) == Equals(x, y)
    assert u.unindex(Equals(x1, y2)) == Equals(x, y)


def test_path_blocks(counter_unsafe):
    blocks = Unroller(counter_unsafe).path(2)
    # init, two transitions, error
    assert len(blocks) == 4
    assert blocks[-1] == Equals(Symbol('x#2', INT), Int(3))


def test_extract_trace_defaults():
    """Values missing from the model take the default of their sort."""
    x, f, b = Symbol('x', INT), Symbol('f', BOOL), Symbol('b', BVType(8))
    sts = STS([x, f, b], TRUE(), TRUE(), Not(f))
    u = Unroller(sts)
    model = { u.indexed(x, 0): Int(4), u.indexed(f, 1): Bool(True), u.indexed(b, 1): BV(7, 8) }
    trace = u.extract_trace(model, 1)

    assert isinstance(trace, Trace)
    assert trace.length == 1
    assert trace.states[0] == {'x': 4, 'f': False, 'b': 0}
    assert trace.states[1] == {'x': 0, 'f': True, 'b': 7}
    assert trace.values('x') == [4, 0]
