"""
Tests for reading transition systems from Python expressions and YAML.
"""
import pytest

from pysmt.shortcuts import (
    Symbol, Int, BV, And, Or, Not, Implies, Ite, Equals, Plus, Times, LT, LE, BVAdd, ToReal, Real
)
from pysmt.typing import INT, BOOL, REAL, BVType

from pysts.errors import ModelError
from pysts.frontend import parse_sts, parse_sort, load_sts


def test_parse_sort():
    assert parse_sort('bool') == BOOL
    assert parse_sort('Int') == INT
    assert parse_sort('real') == REAL
    assert parse_sort('bv16') == BVType(16)
    for bad in ('bv0', 'string', 'bv'):
        with pytest.raises(ModelError):
            parse_sort(bad)


def test_parse_counter():
    sts = parse_sts({'x': 'int'}, 'x == 0', 'next(x) == x + 1', 'x == 3', name='counter')
    x, xp = Symbol('x', INT), Symbol("x'", INT)
    assert sts.name == 'counter'
    assert sts.variables == (x,)
    assert sts.init == Equals(x, Int(0))
    assert sts.trans == Equals(xp, Plus(x, Int(1)))


def test_parse_operators():
    sts = parse_sts(
        [('x', 'int'), ('y', 'int'), ('f', 'bool')],
        init='0 <= x < y and (f or not f)',
        trans='implies(f, next(x) == 2 * x) and next(y) == ite(f, y, -1) and next(f) == ((x if f else y) < 3)',
        error='x == y',
    )
    x, y, f = Symbol('x', INT), Symbol('y', INT), Symbol('f', BOOL)
    assert sts.init == And(And(LE(Int(0), x), LT(x, y)), Or(f, Not(f)))
    assert sts.trans.args()[0] == Implies(f, Equals(Symbol("x'", INT), Times(Int(2), x)))
    assert sts.trans.args()[1] == Equals(Symbol("y'", INT), Ite(f, y, Int(-1)))


def test_parse_bitvectors():
    sts = parse_sts({'b': 'bv8'}, 'b == 255', 'next(b) == b + 1', 'b == 0')
    b = Symbol('b', BVType(8))
    assert sts.init == Equals(b, BV(255, 8))
    assert sts.trans == Equals(Symbol("b'", BVType(8)), BVAdd(b, BV(1, 8)))
    # negative literals wrap around
    sts = parse_sts({'c': 'bv8'}, 'c == -1', 'next(c) == c', 'c == 0')
    assert sts.init == Equals(Symbol('c', BVType(8)), BV(255, 8))


def test_parse_reals():
    sts = parse_sts({'r': 'real', 'n': 'int'}, 'r == 0.5', 'next(r) == r + n', 'r > 10')
    r, n = Symbol('r', REAL), Symbol('n', INT)
    assert sts.init == Equals(r, Real(0.5))
    assert sts.trans == Equals(Symbol("r'", REAL), Plus(r, ToReal(n)))


def test_undeclared_variable():
    with pytest.raises(ModelError, match="undeclared variable 'z'"):
        parse_sts({'x': 'int'}, 'x == 0', 'next(x) == x + 1', 'z == 1')


@pytest.mark.parametrize('init', [
    'x ==',                 # syntax
    'x + 1',                # not a formula
    'x and 1 == 1',         # int used as bool
    'x @ 2 == 1',           # unsupported operator
    'f(x)',                 # unknown function
    '"text" == x',          # unsupported constant
    'x / 2 == 1',           # integer division
])
def test_malformed_expressions(init):
    with pytest.raises(ModelError):
        parse_sts({'x': 'int'}, init, 'next(x) == x', 'x == 1')


def test_duplicate_declaration():
    with pytest.raises(ModelError, match='declared twice'):
        parse_sts([('x', 'int'), ('x', 'bool')], 'x == 0', 'True', 'False')


def test_load_sts(tmp_path):
    model = tmp_path / 'toggle.yml'
    model.write_text(
        "variables:\n"
        "  f: bool\n"
        "init: not f\n"
        "trans: next(f) == (not f)\n"
        "error: false\n"
        "invariant: true\n"
    )
    sts = load_sts(str(model))
    f = Symbol('f', BOOL)
    assert sts.name == 'toggle'
    assert sts.init == Not(f)
    assert sts.error.is_false()
    assert sts.invariant.is_true()


def test_load_sts_missing_key(tmp_path):
    model = tmp_path / 'broken.yml'
    model.write_text("variables:\n  x: int\ninit: x == 0\n")
    with pytest.raises(ModelError, match="lacks 'trans'"):
        load_sts(str(model))
