#!/usr/bin/env python
"""
Exceptions raised by the checker.

Only genuinely exceptional conditions are signalled this way, the regular
outcomes of a run (PROVED, UNSAFE, TIMEOUT, ERROR) are reported through
pysts.task.Result.
"""


class CegarError(Exception):
    pass


class ModelError(CegarError):
    """ malformed transition system, fatal and never retried """
    pass


class SolverUnknownError(CegarError):
    def __init__(self, formula, msg='solver returned UNKNOWN'):
        CegarError.__init__(self, msg)
        self.formula = formula


class RefinementError(CegarError):
    """ refinement could not be carried out at all, e.g. missing interpolating solver """
    pass


class RefinementStagnationError(CegarError):
    def __init__(self, msg='refinement produced no new predicates', path=None):
        CegarError.__init__(self, msg)
        self.path = path


class CegarTimeoutError(CegarError):
    pass
