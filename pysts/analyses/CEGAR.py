#!/usr/bin/env python3
"""
Counter-Example Guided Abstraction Refinement for symbolic transition systems.

Every iteration explores the abstract state space under the current
precision. No target: the system is safe. A target: its path is checked
concretely and is either reported as a counterexample or refined away by
strengthening the precision, after which the ARG is rebuilt from scratch.
"""

import os
from typing import List, Optional

from pysmt.exceptions import PysmtException

from pysts.analyses import make_cpa
from pysts.analyses.ARGCPA import ARG, ARGNode, GraphableARGNode
from pysts.cpa import CPA, DomainKind, Precision
from pysts.cpaalgorithm import CPAAlgorithm
from pysts.errors import (
    CegarTimeoutError, RefinementError, RefinementStagnationError, SolverUnknownError
)
from pysts.refinement import cegar_helper
from pysts.refinement.cegar_helper import RefinementKind
from pysts.smt import SmtOracle
from pysts.sts import STS, Unroller
from pysts.task import Task, Result
from pysts.utils.visual import arg_to_dot
from pysts.verdict import Verdict

from pysts import log


class CEGARDriver:
    def __init__(self,
                 sts: STS,
                 task: Optional[Task] = None,
                 result: Optional[Result] = None,
                 oracle: Optional[SmtOracle] = None,
                 domain=None):
        self.sts = sts
        self.task: Task = task if task is not None else Task(sts.name)
        self.result: Result = result if result is not None else Result()
        self.oracle: SmtOracle = oracle if oracle is not None else SmtOracle(
                self.task.solver,
                interpolator_name=self.task.interpolator,
                unknown_retries=self.task.unknown_retries
        )
        if domain is not None:
            self._override_domain(DomainKind.from_name(domain))
        self.domain = DomainKind.from_name(self.task.domain or DomainKind.PRED)
        self.refinement = RefinementKind.from_name(self.task.refinement)
        self.cpa: CPA = make_cpa(self.domain, self.oracle, self.task.max_successors)
        self.unroller = Unroller(sts)
        self.precision: Optional[Precision] = None

        log.printer.log_debug(1, f"[CEGAR Driver INFO] Initializing CEGARDriver for '{sts.name}', domain {self.domain}, refinement {self.refinement}.")

    def run(self) -> Result:
        """
        Executes the CEGAR loop. Every outcome, TIMEOUT and ERROR included,
        is reported through the result.
        """
        self.task.start()
        try:
            self._loop()
        except CegarTimeoutError as e:
            self._finish(Verdict.TIMEOUT, str(e))
        except RefinementStagnationError as e:
            self.result.path = e.path
            self._finish(Verdict.ERROR, 'refinement stagnated: %s' % e)
        except SolverUnknownError as e:
            self._finish(Verdict.ERROR, '%s on %s' % (e, e.formula))
        except RefinementError as e:
            self._finish(Verdict.ERROR, str(e))
        except PysmtException as e:
            self._finish(Verdict.ERROR, '%s: %s' % (type(e).__name__, e))
        finally:
            self.result.precision = self.precision

        log.printer.log_intermediate_result(self.sts.name, str(self.result), f" after {self.result.iterations} iteration(s), {self.oracle.queries} solver queries")
        return self.result

    def _override_domain(self, domain: DomainKind):
        requested = self.task.domain
        if requested is not None and str(requested).lower() != str(domain):
            log.printer.log_debug(0, f"[CEGAR Driver WARN] domain '{requested}' of task '{self.task.name}' ignored, this analysis uses '{domain}'.")
        self.task.domain = str(domain)

    def _finish(self, verdict: Verdict, reason: Optional[str] = None):
        self.result.verdict = verdict
        self.result.reason = reason

    def _loop(self):
        self.precision = self.cpa.initial_precision(self.sts)
        log.printer.log_debug(1, f"[CEGAR Driver INFO] Initial precision: {self.precision}")

        iteration = 0
        while True:
            self.task.check_cancelled()
            self.task.check_iterations(iteration)
            log.printer.log_debug(1, f"CEGAR Iteration {iteration + 1}")
            log.printer.log_status(f'CEGAR iteration {iteration + 1}')

            # 1. explore under the current precision
            algo = CPAAlgorithm(self.cpa, self.sts, self.precision, self.task)
            self.result.arg = algo.arg
            target = algo.run()
            self.result.iterations = iteration + 1
            self._dump_arg(iteration, algo.arg)

            if target is None:
                self._finish(Verdict.PROVED)
                return

            # 2. check feasibility of the abstract counterexample
            path = algo.arg.path_to(target)
            length = len(path) - 1
            feasibility = cegar_helper.check_path(self.sts, length, self.oracle, self.unroller)
            log.printer.log_debug(1, f"[CEGAR Driver INFO] {'feasible' if feasibility.feasible else 'infeasible'} abstract counterexample of length {length}.")
            self._dump_path(iteration, path, feasibility)

            if feasibility.feasible:
                self.result.witness = feasibility.trace
                self._finish(Verdict.UNSAFE)
                return

            # 3. refine
            predicates = cegar_helper.extract_predicates(
                    self.sts, feasibility.blocks, length, self.oracle, self.refinement, self.unroller)
            self._dump_predicates(iteration, predicates)
            try:
                self.precision = self.cpa.strengthen(self.precision, predicates)
            except RefinementStagnationError as e:
                e.path = path
                raise
            self.result.refinements += 1
            log.printer.log_debug(1, f"[CEGAR Driver INFO] Precision updated: {self.precision}")

            iteration += 1

    # output -------------------------------------------------------------
    def _output_file(self, name: str) -> Optional[str]:
        if not self.task.output_directory:
            return None
        os.makedirs(self.task.output_directory, exist_ok=True)
        return os.path.join(self.task.output_directory, name)

    def _dump_arg(self, iteration: int, arg: ARG):
        filename = self._output_file('precision_%d.txt' % iteration)
        if filename is None:
            return
        with open(filename, 'w') as f:
            f.write(str(self.precision))

        if arg.get_root() is None:
            return
        dot = arg_to_dot(
                [ GraphableARGNode(arg, arg.get_root()) ],
                nodeattrs={"style": "filled", "shape": "box", "color": "white"},
            )
        dot.save(self._output_file('arg_%d.gv' % iteration))

    def _dump_path(self, iteration: int, path: List[ARGNode], feasibility):
        filename = self._output_file('path_%d.txt' % iteration)
        if filename is None:
            return
        with open(filename, 'w') as f:
            f.write('\n'.join(str(n) for n in path))
            f.write('\n\n')
            f.write(str(feasibility))
            if feasibility.trace is not None:
                f.write('\n\n')
                f.write(str(feasibility.trace))

    def _dump_predicates(self, iteration: int, predicates):
        filename = self._output_file('predicates_%d.txt' % iteration)
        if filename is None:
            return
        with open(filename, 'w') as f:
            f.write('\n'.join(sorted(str(p) for p in predicates)))


def check(sts: STS, oracle: Optional[SmtOracle] = None, **options) -> Result:
    """
    Verifies `sts` and returns its Result. `options` are the settings of
    Task, e.g. max_iterations, waitlist ('bfs' or 'dfs'), domain ('pred' or
    'expl'), refinement, timeout.
    """
    task = Task(sts.name, **options)
    return CEGARDriver(sts, task, oracle=oracle).run()
