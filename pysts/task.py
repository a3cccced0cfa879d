import threading
import time

from typing import Optional

from pysts.errors import CegarTimeoutError
from pysts.verdict import Verdict


class Task:
    """
    Settings of one verification run.

    `max_iterations` bounds the number of CEGAR iterations (abstraction passes),
    `timeout` is a wall-clock limit in seconds. Both, as well as an external
    call to `cancel`, end the run with TIMEOUT.
    """
    def __init__(self, name : str = 'sts',
                 max_iterations : Optional[int] = None,
                 waitlist : str = 'bfs',
                 domain : Optional[str] = None,
                 refinement : str = 'unsat_core',
                 solver : str = 'z3',
                 interpolator : str = 'msat',
                 unknown_retries : int = 1,
                 max_successors : int = 16,
                 timeout : Optional[float] = None,
                 output_directory : Optional[str] = None):
        self.name = name
        self.max_iterations = max_iterations
        self.waitlist = waitlist
        self.domain = domain
        self.refinement = refinement
        self.solver = solver
        self.interpolator = interpolator
        self.unknown_retries = unknown_retries
        self.max_successors = max_successors
        self.timeout = timeout
        self.output_directory = output_directory

        self._cancelled = threading.Event()
        self._deadline = None

    def start(self):
        """ arm the wall-clock deadline, an earlier cancel stays in effect """
        self._deadline = time.monotonic() + self.timeout if self.timeout is not None else None

    def cancel(self):
        self._cancelled.set()

    def check_cancelled(self):
        if self._cancelled.is_set():
            raise CegarTimeoutError('cancelled')
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise CegarTimeoutError('time limit of %ss exceeded' % self.timeout)

    def check_iterations(self, iterations : int):
        if self.max_iterations is not None and iterations >= self.max_iterations:
            raise CegarTimeoutError('maximum number of iterations (%d) reached' % self.max_iterations)

    @staticmethod
    def from_args(name : str, args, output_directory=None):
        return Task(
                name,
                max_iterations=args.max_iterations,
                waitlist=args.waitlist,
                refinement=args.refinement,
                solver=args.solver,
                interpolator=args.interpolator,
                unknown_retries=args.unknown_retries,
                max_successors=args.max_successors,
                timeout=args.timeout,
                output_directory=output_directory
        )

    @staticmethod
    def from_yml(yml, args, output_directory=None, name=None):
        """ task settings of a model file override the command line """
        task = Task.from_args(str(yml.get('name', name or 'sts')), args, output_directory)
        options = yml.get('options', {}) or {}
        for key in ('max_iterations', 'waitlist', 'domain', 'refinement', 'solver',
                    'interpolator', 'unknown_retries', 'max_successors', 'timeout'):
            if key in options:
                setattr(task, key, options[key])
        return task

    def __str__(self):
        return '%s' % self.name


class Result:
    def __init__(self, verdict=Verdict.ERROR, witness=None):
        self.verdict = verdict
        self.witness = witness          # concrete Trace, UNSAFE only
        self.reason = None              # TIMEOUT / ERROR only
        self.path = None                # abstract path that made refinement stagnate
        self.precision = None
        self.arg = None
        self.iterations = 0
        self.refinements = 0

    def __str__(self):
        if self.reason:
            return '%s (%s)' % (self.verdict, self.reason)
        return str(self.verdict)
