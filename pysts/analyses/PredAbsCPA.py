#!/usr/bin/env python
"""
Predicate abstraction.

An abstract state is a set of literals over the predicates of the current
precision. The transfer relation computes the Boolean abstraction of the
post image: every satisfiable truth assignment of the next-state predicates
becomes one successor (all-SAT enumeration).
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Set, Tuple

from pysmt.shortcuts import And, Not
from pysmt.fnode import FNode

from pysts.cpa import CPA, AbstractState, Precision, TransferRelation, DomainKind
from pysts.errors import RefinementStagnationError
from pysts.smt import SmtOracle
from pysts.sts import STS

from pysts import log


def _atom(predicate: FNode) -> FNode:
    while predicate.is_not():
        predicate = predicate.arg(0)
    return predicate


def _is_trivial(predicate: FNode) -> bool:
    return predicate.is_bool_constant()


# --------------------------------------------------------------------------- #
# Precision
# --------------------------------------------------------------------------- #
class PredAbsPrecision(Precision):
    def __init__(self, predicates: Iterable[FNode] = ()):
        self.predicates: frozenset[FNode] = frozenset(predicates)
        self._ordered = tuple(sorted(self.predicates, key=str))

    def ordered(self) -> Tuple[FNode, ...]:
        """ predicates in a fixed order, used wherever the order is observable """
        return self._ordered

    def __contains__(self, predicate: FNode) -> bool:
        return predicate in self.predicates

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self):
        return len(self.predicates)

    def __eq__(self, other):
        return isinstance(other, PredAbsPrecision) and self.predicates == other.predicates

    def __hash__(self):
        return hash(self.predicates)

    def __str__(self):
        return '{' + ', '.join(str(p) for p in self._ordered) + '}'

    @staticmethod
    def from_sts(sts: STS) -> PredAbsPrecision:
        """ atoms of the initial condition and of the error predicate """
        atoms: Set[FNode] = set()
        for formula in (sts.init, sts.error):
            atoms.update(a for a in formula.get_atoms() if not _is_trivial(a))
        return PredAbsPrecision(atoms)


# --------------------------------------------------------------------------- #
# Abstract State
# --------------------------------------------------------------------------- #
class PredAbsState(AbstractState):
    def __init__(self, literals: Iterable[Tuple[FNode, bool]] = ()):
        self.literals: frozenset[Tuple[FNode, bool]] = frozenset(literals)

    def value(self, predicate: FNode) -> Optional[bool]:
        if (predicate, True) in self.literals:
            return True
        if (predicate, False) in self.literals:
            return False
        return None

    def to_formula(self) -> FNode:
        return And([p if v else Not(p) for p, v in sorted(self.literals, key=lambda l: (str(l[0]), l[1]))])

    def sort_key(self):
        return tuple(sorted((str(p), v) for p, v in self.literals))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PredAbsState) and self.literals == other.literals

    def __hash__(self) -> int:
        return hash(self.literals)

    def __str__(self) -> str:
        return '{' + ', '.join(
            str(p) if v else '!' + str(p)
            for p, v in sorted(self.literals, key=lambda l: str(l[0]))
        ) + '}'


# --------------------------------------------------------------------------- #
# Transfer Relation
# --------------------------------------------------------------------------- #
class PredAbsTransferRelation(TransferRelation):
    """
    Boolean abstraction:
      succ = { v : π' -> B  |  SAT( γ(pre) ∧ inv ∧ T ∧ inv' ∧ ∧_{p ∈ π} (p' = v(p')) ) }
    """
    def __init__(self, oracle: SmtOracle) -> None:
        self.oracle = oracle

    def get_abstract_successors(self, predecessor: PredAbsState, sts: STS,
                                precision: PredAbsPrecision) -> List[PredAbsState]:
        predicates = precision.ordered()
        primed = [sts.prime(p) for p in predicates]

        phi = And(predecessor.to_formula(), sts.invariant, sts.trans, sts.prime(sts.invariant))
        models, _ = self.oracle.all_sat(phi, primed)

        successors = {
            PredAbsState((p, model[pp].is_true()) for p, pp in zip(predicates, primed))
            for model in models
        }
        log.printer.log_debug(5, f"[PredAbsTransferRelation DEBUG] {predecessor} has {len(successors)} successor(s)")
        return sorted(successors, key=PredAbsState.sort_key)


# --------------------------------------------------------------------------- #
# CPA wrapper
# --------------------------------------------------------------------------- #
class PredAbsCPA(CPA):
    kind = DomainKind.PRED

    def __init__(self, oracle: SmtOracle) -> None:
        self.oracle = oracle

    def initial_precision(self, sts: STS) -> PredAbsPrecision:
        return PredAbsPrecision.from_sts(sts)

    def strengthen(self, precision: PredAbsPrecision, new_predicates: Iterable[FNode]) -> PredAbsPrecision:
        added = { _atom(p) for p in new_predicates if not _is_trivial(_atom(p)) }
        result = PredAbsPrecision(precision.predicates | added)
        if result == precision:
            raise RefinementStagnationError(f"no new predicates, precision stays {precision}")
        return result

    def abstract_state_of(self, constraint: FNode, precision: PredAbsPrecision) -> Optional[PredAbsState]:
        """
        Cartesian abstraction of `constraint`: the literals over the precision
        that the constraint implies. None if the constraint is unsatisfiable.
        """
        predicates = precision.ordered()
        values = self.oracle.get_values(constraint, predicates)
        if values is None:
            return None

        literals = []
        for p in predicates:
            holds = values[p].is_true()
            # p keeps its value in every model iff the opposite literal is unsatisfiable
            if not self.oracle.is_sat(And(constraint, Not(p) if holds else p)):
                literals.append((p, holds))
        return PredAbsState(literals)

    def join(self, state1: PredAbsState, state2: PredAbsState) -> PredAbsState:
        return PredAbsState(state1.literals & state2.literals)

    def covers(self, state1: PredAbsState, state2: PredAbsState) -> bool:
        return state1.literals.issubset(state2.literals)

    def to_formula(self, state: PredAbsState) -> FNode:
        return state.to_formula()

    def get_transfer_relation(self) -> PredAbsTransferRelation:
        return PredAbsTransferRelation(self.oracle)
