#!/usr/bin/env python
"""
Interfaces shared by the abstract domains.

A CPA bundles an abstract domain (states, precision, coverage and join) with
the transfer relation that computes abstract successors. The available
domains form a closed set, selected by DomainKind.
"""

from __future__ import annotations

from enum import Enum
from typing import Collection, Generic, Iterable, Optional, TypeVar

from pysmt.shortcuts import And
from pysmt.fnode import FNode

from pysts.sts import STS


class AbstractState(object):
    def sort_key(self):
        raise NotImplementedError("sort_key not implemented!")


class Precision(object):
    pass


T = TypeVar('T', bound=AbstractState)
P = TypeVar('P', bound=Precision)


class DomainKind(Enum):
    PRED = 'pred'
    EXPL = 'expl'

    @staticmethod
    def from_name(name) -> DomainKind:
        if isinstance(name, DomainKind):
            return name
        return DomainKind(str(name).lower())

    def __str__(self):
        return self.value


class TransferRelation(Generic[T, P]):
    def get_abstract_successors(self, predecessor: T, sts: STS, precision: P) -> Collection[T]:
        raise NotImplementedError("get_abstract_successors not implemented!")


class StopOperator(Generic[T]):
    def stop(self, state: T, reached: Iterable[T]) -> Optional[T]:
        raise NotImplementedError("stop not implemented!")


class StopSepOperator(StopOperator[T]):
    """ returns the first reached state that covers `state` """
    def __init__(self, covers):
        self.covers = covers

    def stop(self, state: T, reached: Iterable[T]) -> Optional[T]:
        return next((r for r in reached if self.covers(r, state)), None)


class CPA(Generic[T, P]):
    kind: DomainKind

    def initial_precision(self, sts: STS) -> P:
        raise NotImplementedError("initial_precision not implemented!")

    def strengthen(self, precision: P, new_predicates: Iterable[FNode]) -> P:
        raise NotImplementedError("strengthen not implemented!")

    def abstract_state_of(self, constraint: FNode, precision: P) -> Optional[T]:
        raise NotImplementedError("abstract_state_of not implemented!")

    def join(self, state1: T, state2: T) -> T:
        raise NotImplementedError("join not implemented!")

    def covers(self, state1: T, state2: T) -> bool:
        """ state1 covers state2 if every concrete state of state2 is one of state1 """
        raise NotImplementedError("covers not implemented!")

    def to_formula(self, state: T) -> FNode:
        raise NotImplementedError("to_formula not implemented!")

    def get_transfer_relation(self) -> TransferRelation[T, P]:
        raise NotImplementedError("get_transfer_relation not implemented!")

    def get_stop_operator(self) -> StopOperator[T]:
        return StopSepOperator(self.covers)

    def get_initial_state(self, sts: STS, precision: P) -> Optional[T]:
        return self.abstract_state_of(And(sts.init, sts.invariant), precision)

    def is_target(self, state: T, sts: STS) -> bool:
        return self.oracle.is_sat(And(self.to_formula(state), sts.invariant, sts.error))
