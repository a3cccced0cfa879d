"""
Pytest configuration and fixtures for pysts tests.
"""
import pytest

from pysmt.environment import reset_env
from pysmt.shortcuts import Symbol, Int, And, Equals, Plus, LT
from pysmt.typing import INT

from pysts.smt import SmtOracle
from pysts.sts import STS
from pysts import log


@pytest.fixture(autouse=True)
def fresh_env():
    """Symbols are global to a pysmt environment, give every test its own."""
    env = reset_env()
    log.printer = log.LogPrinter(compact=False, log_level=0)
    yield env


@pytest.fixture
def oracle():
    return SmtOracle('z3')


def counter(error):
    """x = 0, x' = x + 1 with the given error predicate over x."""
    x = Symbol('x', INT)
    xp = Symbol("x'", INT)
    return STS([x], Equals(x, Int(0)), Equals(xp, Plus(x, Int(1))), error(x), name='counter')


@pytest.fixture
def counter_unsafe():
    return counter(lambda x: Equals(x, Int(3)))


@pytest.fixture
def counter_safe():
    return counter(lambda x: LT(x, Int(0)))


@pytest.fixture
def parallel_counters():
    x, y = Symbol('x', INT), Symbol('y', INT)
    xp, yp = Symbol("x'", INT), Symbol("y'", INT)
    return STS(
        [x, y],
        And(Equals(x, Int(0)), Equals(y, Int(0))),
        And(Equals(xp, Plus(x, Int(1))), Equals(yp, Plus(y, Int(1)))),
        And(Equals(x, Int(2)), Equals(y, Int(5))),
        name='parallel_counters',
    )
