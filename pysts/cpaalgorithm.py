#!/usr/bin/env python

from collections import deque
from typing import Optional

from pysts.analyses.ARGCPA import ARG, ARGNode
from pysts.cpa import CPA, Precision
from pysts.sts import STS
from pysts.task import Task

from pysts import log


class Waitlist:
    def add(self, node: ARGNode):
        raise NotImplementedError()

    def pop(self) -> ARGNode:
        raise NotImplementedError()

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)


class FifoWaitlist(Waitlist):
    """ breadth-first, finds shortest counterexamples first """
    def __init__(self):
        self._items = deque()

    def add(self, node):
        self._items.append(node)

    def pop(self):
        return self._items.popleft()


class LifoWaitlist(Waitlist):
    """ depth-first """
    def __init__(self):
        self._items = deque()

    def add(self, node):
        self._items.append(node)

    def pop(self):
        return self._items.pop()


def make_waitlist(order: str) -> Waitlist:
    match order.lower():
        case 'bfs':
            return FifoWaitlist()
        case 'dfs':
            return LifoWaitlist()
        case _:
            raise ValueError(f"unknown waitlist order '{order}' (expected bfs or dfs)")


class CPAAlgorithm:
    """
    Explores the abstract state space of an STS under a fixed precision until
    a target node is found or the waitlist is exhausted.
    """
    def __init__(self, cpa: CPA, sts: STS, precision: Precision, task: Task):
        self.cpa = cpa
        self.sts = sts
        self.precision = precision
        self.task = task
        self.transfer = cpa.get_transfer_relation()
        self.stop_operator = cpa.get_stop_operator()
        self.waitlist: Waitlist = make_waitlist(task.waitlist)
        self.arg = ARG()
        self.iterations = 0

    def run(self) -> Optional[ARGNode]:
        """ returns the first target node, None if no target is reachable """
        init = self.cpa.get_initial_state(self.sts, self.precision)
        if init is None:
            log.printer.log_debug(1, "[CPAAlgorithm INFO] Initial condition is unsatisfiable.")
            return None

        root = self.arg.create_root(init)
        self.waitlist.add(root)

        # expanded nodes in order of expansion, candidates for coverage
        expanded: list[ARGNode] = []

        while len(self.waitlist) > 0:
            self.task.check_cancelled()

            node = self.waitlist.pop()
            self.iterations += 1
            log.printer.log_debug(5, f"[CPAAlgorithm DEBUG] Popped {node}")

            covering_state = self.stop_operator.stop(node.state, (e.state for e in expanded))
            if covering_state is not None:
                coverer = next(e for e in expanded if e.state is covering_state)
                self.arg.cover(node, coverer)
                log.printer.log_debug(5, f"[CPAAlgorithm DEBUG]   N{node.node_id} covered by N{coverer.node_id}")
                continue

            if self.cpa.is_target(node.state, self.sts):
                self.arg.mark_target(node)
                log.printer.log_debug(1, f"[CPAAlgorithm INFO] Target node found: {node}")
                return node

            for successor in self.transfer.get_abstract_successors(node.state, self.sts, self.precision):
                child = self.arg.add_child(node, successor)
                self.waitlist.add(child)
                log.printer.log_debug(5, f"[CPAAlgorithm DEBUG]   Successor {child}")
            self.arg.mark_expanded(node)
            expanded.append(node)

        log.printer.log_debug(1, f"[CPAAlgorithm INFO] Waitlist empty, {len(self.arg)} ARG nodes, no target reachable.")
        return None
