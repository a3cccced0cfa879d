#!/usr/bin/env python
"""
Explicit-value analysis.

The precision is a set of tracked variables, an abstract state maps tracked
variables to their value. A tracked variable without a unique value is
unknown and left out of the state. Successors are enumerated explicitly up
to a limit; beyond it, a single successor keeps only the values that are
determined uniquely.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple

from pysmt.shortcuts import And, Not, EqualsOrIff
from pysmt.fnode import FNode

from pysts.cpa import CPA, AbstractState, Precision, TransferRelation, DomainKind
from pysts.errors import RefinementStagnationError
from pysts.smt import SmtOracle
from pysts.sts import STS, PRIME

from pysts import log


class ExplPrecision(Precision):
    def __init__(self, variables: Iterable[FNode] = ()):
        self.variables: frozenset[FNode] = frozenset(variables)
        self._ordered = tuple(sorted(self.variables, key=lambda v: v.symbol_name()))

    def ordered(self) -> Tuple[FNode, ...]:
        return self._ordered

    def __contains__(self, var: FNode) -> bool:
        return var in self.variables

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self):
        return len(self.variables)

    def __eq__(self, other):
        return isinstance(other, ExplPrecision) and self.variables == other.variables

    def __hash__(self):
        return hash(self.variables)

    def __str__(self):
        return '{' + ', '.join(v.symbol_name() for v in self._ordered) + '}'

    @staticmethod
    def from_sts(sts: STS) -> ExplPrecision:
        """ variables of the initial condition and of the error predicate """
        return ExplPrecision(sts.init.get_free_variables() | sts.error.get_free_variables())


class ExplState(AbstractState):
    def __init__(self, valuation: Dict[FNode, FNode] | Iterable[Tuple[FNode, FNode]] = ()):
        items = valuation.items() if isinstance(valuation, dict) else valuation
        self.valuation: frozenset[Tuple[FNode, FNode]] = frozenset(items)

    def get_value(self, var: FNode) -> Optional[FNode]:
        return next((value for v, value in self.valuation if v == var), None)

    def as_dict(self) -> Dict[str, object]:
        return { v.symbol_name(): value.constant_value() for v, value in self.valuation }

    def to_formula(self) -> FNode:
        return And([EqualsOrIff(v, value) for v, value in sorted(self.valuation, key=lambda i: i[0].symbol_name())])

    def sort_key(self):
        return tuple(sorted((v.symbol_name(), str(value)) for v, value in self.valuation))

    def __eq__(self, other):
        return isinstance(other, ExplState) and self.valuation == other.valuation

    def __hash__(self):
        return hash(self.valuation)

    def __str__(self):
        return "{%s}" % ",".join(
            ["->".join((k, str(v))) for (k, v) in self.sort_key()]
        )


def _unique_values(oracle: SmtOracle, constraint: FNode, terms: List[FNode],
                   values: Optional[Dict[FNode, FNode]] = None) -> Optional[Dict[FNode, FNode]]:
    """ the terms that take exactly one value under `constraint` """
    if values is None:
        values = oracle.get_values(constraint, terms)
        if values is None:
            return None
    return {
        t: values[t]
        for t in terms
        if not oracle.is_sat(And(constraint, Not(EqualsOrIff(t, values[t]))))
    }


class ExplTransferRelation(TransferRelation):
    def __init__(self, oracle: SmtOracle, max_successors: int) -> None:
        self.oracle = oracle
        self.max_successors = max(1, max_successors)

    def get_abstract_successors(self, predecessor: ExplState, sts: STS,
                                precision: ExplPrecision) -> List[ExplState]:
        tracked = precision.ordered()
        primed = [sts.next_var(v) for v in tracked]

        phi = And(predecessor.to_formula(), sts.invariant, sts.trans, sts.prime(sts.invariant))
        models, exhausted = self.oracle.all_sat(phi, primed, limit=self.max_successors)

        if exhausted:
            successors = {
                ExplState((v, model[pv]) for v, pv in zip(tracked, primed))
                for model in models
            }
        else:
            log.printer.log_debug(5, f"[ExplTransferRelation DEBUG] more than {self.max_successors} successors of {predecessor}, keeping unique values only")
            unique = _unique_values(self.oracle, phi, primed, models[0])
            successors = { ExplState((v, unique[pv]) for v, pv in zip(tracked, primed) if pv in unique) }

        return sorted(successors, key=ExplState.sort_key)


class ExplCPA(CPA):
    kind = DomainKind.EXPL

    def __init__(self, oracle: SmtOracle, max_successors: int = 16) -> None:
        self.oracle = oracle
        self.max_successors = max_successors

    def initial_precision(self, sts: STS) -> ExplPrecision:
        return ExplPrecision.from_sts(sts)

    def strengthen(self, precision: ExplPrecision, new_predicates: Iterable[FNode]) -> ExplPrecision:
        variables = set(precision.variables)
        for p in new_predicates:
            variables.update(v for v in p.get_free_variables() if not v.symbol_name().endswith(PRIME))
        result = ExplPrecision(variables)
        if result == precision:
            raise RefinementStagnationError(f"no new variables to track, precision stays {precision}")
        return result

    def abstract_state_of(self, constraint: FNode, precision: ExplPrecision) -> Optional[ExplState]:
        unique = _unique_values(self.oracle, constraint, list(precision.ordered()))
        if unique is None:
            return None
        return ExplState(unique)

    def join(self, state1: ExplState, state2: ExplState) -> ExplState:
        return ExplState(state1.valuation & state2.valuation)

    def covers(self, state1: ExplState, state2: ExplState) -> bool:
        return state1.valuation.issubset(state2.valuation)

    def to_formula(self, state: ExplState) -> FNode:
        return state.to_formula()

    def get_transfer_relation(self) -> ExplTransferRelation:
        return ExplTransferRelation(self.oracle, self.max_successors)
