#!/usr/bin/env python
"""CEGAR helper utilities

Two high-level helpers used by the refinement loop
-------------------------------------------------
* check_path(sts, length, oracle)                      → Feasibility
* extract_predicates(sts, blocks, length, oracle, kind) → set(FNode)

Both work on the unrolled path formula of the STS: one block for the
initial states, one per transition and one for the error predicate, with
every variable indexed by its step (x#0, x#1, ...).

Two refinement strategies are available. INTERPOLATION asks an
interpolating solver (e.g. MathSAT) for a sequence interpolant of the
blocks. UNSAT_CORE works with any solver that produces unsat cores (z3):
for every cut of the path it draws candidate atoms over the state at the
cut from a model of the prefix, keeps those the prefix implies and lets
the solver pick the ones that contradict the suffix.
"""

from __future__ import annotations

from enum import Enum
from fractions import Fraction
from itertools import combinations
from typing import Dict, List, Optional, Set

from pysmt.shortcuts import And, Not, Int, Real, BV, Plus, LE, GE, EqualsOrIff
from pysmt.fnode import FNode

from pysts.smt import SmtOracle
from pysts.sts import STS, Trace, Unroller

from pysts import log


class RefinementKind(Enum):
    UNSAT_CORE = 'unsat_core'
    INTERPOLATION = 'interpolation'

    @staticmethod
    def from_name(name) -> RefinementKind:
        if isinstance(name, RefinementKind):
            return name
        return RefinementKind(str(name).lower())

    def __str__(self):
        return self.value


class Feasibility:
    def __init__(self, feasible : bool, blocks : List[FNode], trace : Optional[Trace] = None):
        self.feasible = feasible
        self.blocks = blocks
        self.trace = trace

    def __bool__(self):
        return self.feasible

    def __str__(self):
        return '\n'.join(str(b) for b in self.blocks)


# --------------------------------------------------------------------------- #
# 1.  Feasibility check
# --------------------------------------------------------------------------- #
def check_path(sts : STS, length : int, oracle : SmtOracle,
               unroller : Optional[Unroller] = None) -> Feasibility:
    """
    Bounded check of an abstract path with `length` transitions. A
    satisfiable path formula yields a concrete trace.
    """
    unroller = unroller or Unroller(sts)
    blocks = unroller.path(length)
    values = oracle.get_values(And(blocks), unroller.step_terms(length))
    if values is None:
        return Feasibility(False, blocks)
    return Feasibility(True, blocks, unroller.extract_trace(values, length))


# --------------------------------------------------------------------------- #
# 2.  Candidate atoms
# --------------------------------------------------------------------------- #
def _is_numeric(var : FNode) -> bool:
    return var.symbol_type().is_int_type() or var.symbol_type().is_real_type()


def _constant(var : FNode, value):
    sort = var.symbol_type()
    if sort.is_int_type():
        return Int(value)
    if sort.is_real_type():
        return Real(Fraction(value))
    return BV(value, sort.width)


def _candidate_tiers(step_vars : List[FNode], model : Dict[FNode, FNode]) -> List[List[FNode]]:
    """
    Atoms over the state at one cut that hold in `model`, weakest first:
    equalities between variables (with offsets) and boolean literals,
    orderings, bounds and finally point values.
    """
    numeric = [v for v in step_vars if _is_numeric(v)]
    bitvectors = [v for v in step_vars if v.symbol_type().is_bv_type()]

    equalities = []
    for v in step_vars:
        if v.symbol_type().is_bool_type():
            equalities.append(v if model[v].is_true() else Not(v))
    for u, v in combinations(numeric, 2):
        if u.symbol_type() != v.symbol_type():
            continue
        offset = model[u].constant_value() - model[v].constant_value()
        if offset == 0:
            equalities.append(EqualsOrIff(u, v))
        else:
            equalities.append(EqualsOrIff(u, Plus(v, _constant(v, offset))))
    for u, v in combinations(bitvectors, 2):
        if u.symbol_type() == v.symbol_type() and model[u] == model[v]:
            equalities.append(EqualsOrIff(u, v))

    orderings = []
    for u, v in combinations(numeric, 2):
        if u.symbol_type() != v.symbol_type():
            continue
        if model[u].constant_value() <= model[v].constant_value():
            orderings.append(LE(u, v))
        else:
            orderings.append(LE(v, u))

    bounds = []
    for v in numeric:
        c = _constant(v, model[v].constant_value())
        bounds.append(LE(v, c))
        bounds.append(GE(v, c))

    points = [EqualsOrIff(v, model[v]) for v in numeric + bitvectors]

    return [equalities, orderings, bounds, points]


def _separating_atoms(oracle : SmtOracle, candidates : List[FNode], suffix : FNode) -> Optional[List[FNode]]:
    """ a deletion-minimal subset of `candidates` that contradicts `suffix` """
    named = { 'c%d' % i : c for i, c in enumerate(candidates) }
    core = oracle.unsat_core(named, background=suffix)
    if core is None:
        return None

    kept = [candidates[int(name[1:])] for name in sorted(core, key=lambda n: int(n[1:]))]
    for atom in list(kept):
        rest = [a for a in kept if a is not atom]
        if not oracle.is_sat(And(suffix, And(rest))):
            kept = rest
    return kept


def _atoms_at_cut(unroller : Unroller, oracle : SmtOracle,
                  prefix : FNode, suffix : FNode, k : int) -> Set[FNode]:
    step_vars = unroller.indexed_vars(k)
    model = oracle.get_values(prefix, step_vars)
    if model is None:
        # the prefix alone is infeasible, an earlier cut separates
        return set()

    tiers = [
        [c for c in tier if oracle.implies(prefix, c)]
        for tier in _candidate_tiers(step_vars, model)
    ]
    attempts = [t for t in tiers if t] + [[c for t in tiers for c in t]]
    for candidates in attempts:
        atoms = _separating_atoms(oracle, candidates, suffix)
        if atoms is not None:
            return { unroller.fold_in(a, k) for a in atoms }

    log.printer.log_debug(2, f"[Refinement INFO] no candidate tier separates cut {k}, projecting the prefix")
    projection = oracle.project(prefix, step_vars)
    if projection is None:
        return set()
    return { unroller.fold_in(a, k) for a in projection.get_atoms() if not a.is_bool_constant() }


# --------------------------------------------------------------------------- #
# 3.  Refinement
# --------------------------------------------------------------------------- #
def _unsat_core_predicates(sts, blocks, length, oracle, unroller) -> Set[FNode]:
    predicates: Set[FNode] = set()
    for k in range(length + 1):
        prefix = And(blocks[:k + 1])
        suffix = And(blocks[k + 1:])
        atoms = _atoms_at_cut(unroller, oracle, prefix, suffix, k)
        log.printer.log_debug(5, f"[Refinement DEBUG] cut {k}: {', '.join(str(a) for a in atoms)}")
        predicates.update(atoms)
    return predicates


def _interpolation_predicates(sts, blocks, length, oracle, unroller) -> Set[FNode]:
    interpolants = oracle.sequence_interpolant(blocks)
    if interpolants is None:
        return set()
    predicates: Set[FNode] = set()
    for k, interpolant in enumerate(interpolants):
        log.printer.log_debug(5, f"[Refinement DEBUG] interpolant {k}: {interpolant}")
        for atom in unroller.fold_in(interpolant, k).get_atoms():
            if not atom.is_bool_constant():
                predicates.add(atom)
    return predicates


def extract_predicates(sts : STS, blocks : List[FNode], length : int, oracle : SmtOracle,
                       kind : RefinementKind = RefinementKind.UNSAT_CORE,
                       unroller : Optional[Unroller] = None) -> Set[FNode]:
    """
    Given the blocks of a *spurious* path, return state predicates (over the
    unprimed variables) that rule it out.
    """
    unroller = unroller or Unroller(sts)
    match RefinementKind.from_name(kind):
        case RefinementKind.INTERPOLATION:
            predicates = _interpolation_predicates(sts, blocks, length, oracle, unroller)
        case RefinementKind.UNSAT_CORE:
            predicates = _unsat_core_predicates(sts, blocks, length, oracle, unroller)
    log.printer.log_debug(1, f"[Refinement INFO] {len(predicates)} predicate(s) from a spurious path of length {length}")
    return predicates
