#!/usr/bin/env python3
"""
SMT oracle.

Thin layer over pysmt that the rest of the checker uses for every solver
query. It gives UNKNOWN a first-class result, retries every UNKNOWN query
once on the simplified formula and raises SolverUnknownError afterwards.

* check(formula, terms)                 -> SatResult
* is_sat / is_valid / get_values        -> bool / bool / dict
* all_sat(formula, projection, limit)   -> (list of projected models, exhausted)
* unsat_core(named, background)         -> set of names or None
* sequence_interpolant(formulas)        -> list of interpolants
* project(formula, keep)                -> formula over `keep` (quantifier elimination)
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pysmt.shortcuts import Solver, Interpolator, And, Not, EqualsOrIff, Exists, TRUE, qelim
from pysmt.fnode import FNode
from pysmt.exceptions import (
    SolverReturnedUnknownResultError, NoSolverAvailableError, PysmtException
)

from pysts.errors import SolverUnknownError, RefinementError

from pysts import log


class SatStatus(Enum):
    SAT = 0,
    UNSAT = 1,
    UNKNOWN = 2

    def __str__(self):
        return Enum.__str__(self).replace('SatStatus.', '')


class SatResult:
    def __init__(self, status : SatStatus, model : Optional[Dict[FNode, FNode]] = None):
        self.status = status
        self.model = model

    def is_sat(self) -> bool:
        return self.status == SatStatus.SAT

    def is_unsat(self) -> bool:
        return self.status == SatStatus.UNSAT

    def is_unknown(self) -> bool:
        return self.status == SatStatus.UNKNOWN

    def __str__(self):
        return str(self.status)


class SmtOracle:
    def __init__(self, solver_name : str = 'z3', logic=None, interpolator_name : str = 'msat',
                 unknown_retries : int = 1):
        self.solver_name = solver_name
        self.logic = logic
        self.interpolator_name = interpolator_name
        self.unknown_retries = unknown_retries
        self.queries = 0

    def _solver(self, **options):
        return Solver(name=self.solver_name, logic=self.logic, **options)

    def check(self, formula : FNode, terms : Iterable[FNode] = ()) -> SatResult:
        """
        Single satisfiability query. If satisfiable, the values of `terms`
        in the model are returned with the result. Never raises on UNKNOWN.
        """
        self.queries += 1
        terms = list(terms)
        with self._solver() as solver:
            solver.add_assertion(formula)
            try:
                sat = solver.solve()
            except SolverReturnedUnknownResultError:
                return SatResult(SatStatus.UNKNOWN)
            if not sat:
                return SatResult(SatStatus.UNSAT)
            model = solver.get_values(terms) if terms else {}
            return SatResult(SatStatus.SAT, model)

    def _check_retrying(self, formula : FNode, terms : Iterable[FNode] = ()) -> SatResult:
        terms = list(terms)
        result = self.check(formula, terms)
        attempt = 0
        while result.is_unknown():
            if attempt >= self.unknown_retries:
                raise SolverUnknownError(formula)
            attempt += 1
            log.printer.log_debug(1, f"[SmtOracle WARN] UNKNOWN, retrying simplified query ({attempt}/{self.unknown_retries})")
            formula = formula.simplify()
            result = self.check(formula, terms)
        return result

    def is_sat(self, formula : FNode) -> bool:
        return self._check_retrying(formula).is_sat()

    def is_valid(self, formula : FNode) -> bool:
        return not self.is_sat(Not(formula))

    def implies(self, premise : FNode, conclusion : FNode) -> bool:
        return not self.is_sat(And(premise, Not(conclusion)))

    def get_values(self, formula : FNode, terms : Iterable[FNode]) -> Optional[Dict[FNode, FNode]]:
        result = self._check_retrying(formula, terms)
        return result.model if result.is_sat() else None

    def _retrying(self, query, formulas : List[FNode]):
        """
        Runs `query` on `formulas`. A query that ends in UNKNOWN is repeated
        on the simplified formulas, at most `unknown_retries` times.
        """
        attempt = 0
        while True:
            try:
                return query(formulas)
            except SolverReturnedUnknownResultError:
                if attempt >= self.unknown_retries:
                    raise SolverUnknownError(And(formulas))
                attempt += 1
                log.printer.log_debug(1, f"[SmtOracle WARN] UNKNOWN, retrying simplified query ({attempt}/{self.unknown_retries})")
                formulas = [f.simplify() for f in formulas]

    def all_sat(self, formula : FNode, projection : List[FNode],
                limit : Optional[int] = None) -> Tuple[List[Dict[FNode, FNode]], bool]:
        """
        Enumerates the distinct valuations of `projection` over all models of
        `formula` by adding blocking clauses. Stops after `limit` valuations;
        the second component tells whether the enumeration was exhaustive.
        """
        return self._retrying(lambda fs: self._all_sat(fs[0], projection, limit), [formula])

    def _all_sat(self, formula, projection, limit):
        models: List[Dict[FNode, FNode]] = []
        with self._solver() as solver:
            solver.add_assertion(formula)
            while True:
                self.queries += 1
                if not solver.solve():
                    return models, True
                if limit is not None and len(models) >= limit:
                    return models, False
                if not projection:
                    models.append({})
                    return models, True
                values = solver.get_values(projection)
                models.append(values)
                solver.add_assertion(Not(And([EqualsOrIff(t, v) for t, v in values.items()])))

    def unsat_core(self, named : Dict[str, FNode], background : Optional[FNode] = None) -> Optional[Set[str]]:
        """
        Names of a subset of `named` that is unsatisfiable together with
        `background`, None if all of them together are satisfiable.
        """
        if background is None:
            background = TRUE()
        names = list(named)
        return self._retrying(
                lambda fs: self._unsat_core(dict(zip(names, fs[1:])), fs[0]),
                [background] + [named[n] for n in names])

    def _unsat_core(self, named, background):
        self.queries += 1
        with self._solver(unsat_cores_mode='named') as solver:
            solver.add_assertion(background)
            for name, formula in named.items():
                solver.add_assertion(formula, named=name)
            if solver.solve():
                return None
            return { name for name in solver.get_named_unsat_core() if name in named }

    def sequence_interpolant(self, formulas : List[FNode]) -> Optional[List[FNode]]:
        """
        Interpolants I_1..I_{n-1} for the formulas A_1..A_n, None if their
        conjunction is satisfiable.
        """
        try:
            return self._retrying(self._sequence_interpolant, list(formulas))
        except NoSolverAvailableError as exc:
            raise RefinementError(f"interpolating solver '{self.interpolator_name}' not available: {exc}") from exc

    def _sequence_interpolant(self, formulas):
        self.queries += 1
        with Interpolator(name=self.interpolator_name, logic=self.logic) as interpolator:
            return interpolator.sequence_interpolant(formulas)

    def project(self, formula : FNode, keep : Iterable[FNode]) -> Optional[FNode]:
        """
        Existentially quantifies all free variables of `formula` except `keep`
        and eliminates the quantifier. None if the solver cannot do it.
        """
        keep = set(keep)
        eliminated = [v for v in formula.get_free_variables() if v not in keep]
        if not eliminated:
            return formula
        self.queries += 1
        try:
            return qelim(Exists(eliminated, formula), solver_name=self.solver_name)
        except PysmtException as exc:
            log.printer.log_debug(1, f"[SmtOracle WARN] quantifier elimination failed: {exc}")
            return None
