"""
Tests for path feasibility and predicate extraction.
"""
import pytest

from pysmt.shortcuts import Int, Equals, LE, get_env

from pysts.refinement.cegar_helper import check_path, extract_predicates, RefinementKind


def test_feasible_path(oracle, counter_unsafe):
    feasibility = check_path(counter_unsafe, 3, oracle)
    assert feasibility.feasible
    assert feasibility.trace.values('x') == [0, 1, 2, 3]
    assert feasibility.trace.length == 3
    assert len(feasibility.blocks) == 5


def test_infeasible_path(oracle, counter_unsafe):
    feasibility = check_path(counter_unsafe, 2, oracle)
    assert not feasibility
    assert feasibility.trace is None


def test_unsat_core_finds_equality(oracle, parallel_counters):
    """The spurious path of the parallel counters is ruled out by x = y."""
    x, y = parallel_counters.variable('x'), parallel_counters.variable('y')
    feasibility = check_path(parallel_counters, 2, oracle)
    assert not feasibility.feasible

    predicates = extract_predicates(parallel_counters, feasibility.blocks, 2, oracle)
    assert predicates == {Equals(x, y)}


def test_unsat_core_bounds(oracle, counter_unsafe):
    """A single counter needs one bound per step of the path."""
    x = counter_unsafe.variable('x')
    feasibility = check_path(counter_unsafe, 2, oracle)
    predicates = extract_predicates(counter_unsafe, feasibility.blocks, 2, oracle, RefinementKind.UNSAT_CORE)
    assert predicates == {LE(x, Int(0)), LE(x, Int(1)), LE(x, Int(2))}


def test_predicates_are_unindexed(oracle, parallel_counters):
    feasibility = check_path(parallel_counters, 1, oracle)
    predicates = extract_predicates(parallel_counters, feasibility.blocks, 1, oracle)
    assert predicates
    declared = set(parallel_counters.variables)
    for p in predicates:
        assert p.get_free_variables() <= declared


def test_refinement_kind_from_name():
    assert RefinementKind.from_name('UNSAT_CORE') == RefinementKind.UNSAT_CORE
    assert RefinementKind.from_name(RefinementKind.INTERPOLATION) == RefinementKind.INTERPOLATION
    with pytest.raises(ValueError):
        RefinementKind.from_name('guess')


@pytest.mark.skipif('msat' not in get_env().factory.all_interpolators(), reason='needs MathSAT')
def test_interpolation(parallel_counters):
    from pysts.smt import SmtOracle
    oracle = SmtOracle('z3', interpolator_name='msat')
    feasibility = check_path(parallel_counters, 2, oracle)
    predicates = extract_predicates(parallel_counters, feasibility.blocks, 2, oracle, RefinementKind.INTERPOLATION)
    assert predicates
    declared = set(parallel_counters.variables)
    assert all(p.get_free_variables() <= declared for p in predicates)
