#!/usr/bin/env python
"""
Abstract reachability graph.

Nodes live in an arena indexed by their id. The tree structure (parent and
children) is stored as ids, and so is the covered-by relation, which is kept
apart from the tree and never owns the node it points to. Nodes are only
removed by discarding the whole ARG at the end of a CEGAR iteration.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional

from pysts.cpa import AbstractState
from pysts.utils.visual import Graphable


class ARGNode:
    def __init__(self, node_id: int, state: AbstractState, parent: Optional[int] = None, depth: int = 0):
        self.node_id = node_id
        self.state = state
        self.parent = parent
        self.children: List[int] = []
        self.covered_by: Optional[int] = None
        self.expanded = False
        self.target = False
        self.depth = depth

    def is_covered(self) -> bool:
        return self.covered_by is not None

    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def __str__(self):
        flags = ''
        if self.target:
            flags += ' unsafe'
        if self.covered_by is not None:
            flags += f' covered by N{self.covered_by}'
        return f"N{self.node_id} | {self.state}{flags}"


class ARG:
    def __init__(self):
        self.nodes: Dict[int, ARGNode] = {}
        self.root: Optional[int] = None
        self._next_id = 0
        # insertion and coverage are atomic
        self._lock = threading.RLock()

    def _new_node(self, state, parent=None, depth=0) -> ARGNode:
        node = ARGNode(self._next_id, state, parent, depth)
        self._next_id += 1
        self.nodes[node.node_id] = node
        return node

    def create_root(self, state: AbstractState) -> ARGNode:
        with self._lock:
            assert self.root is None, 'ARG already has a root'
            node = self._new_node(state)
            self.root = node.node_id
            return node

    def add_child(self, parent: ARGNode, state: AbstractState) -> ARGNode:
        with self._lock:
            assert not parent.expanded and not parent.is_covered(), parent
            child = self._new_node(state, parent.node_id, parent.depth + 1)
            parent.children.append(child.node_id)
            return child

    def mark_expanded(self, node: ARGNode):
        with self._lock:
            node.expanded = True

    def mark_target(self, node: ARGNode):
        with self._lock:
            node.target = True

    def cover(self, node: ARGNode, by: ARGNode) -> bool:
        """ records that `by` covers `node`, refused for expanded nodes and self-coverage """
        with self._lock:
            if node.expanded or node.is_covered() or by.node_id == node.node_id:
                return False
            node.covered_by = by.node_id
            return True

    def get(self, node_id: int) -> ARGNode:
        return self.nodes[node_id]

    def get_root(self) -> Optional[ARGNode]:
        return self.nodes[self.root] if self.root is not None else None

    def get_parent(self, node: ARGNode) -> Optional[ARGNode]:
        return self.nodes[node.parent] if node.parent is not None else None

    def get_children(self, node: ARGNode) -> List[ARGNode]:
        return [self.nodes[c] for c in node.children]

    def get_covering_node(self, node: ARGNode) -> Optional[ARGNode]:
        return self.nodes[node.covered_by] if node.covered_by is not None else None

    def expanded_nodes(self) -> List[ARGNode]:
        return [n for n in self.nodes.values() if n.expanded]

    def target_nodes(self) -> List[ARGNode]:
        return [n for n in self.nodes.values() if n.target]

    def path_to(self, node: ARGNode) -> List[ARGNode]:
        """ nodes from the root to `node` """
        path = [node]
        while path[-1].parent is not None:
            path.append(self.nodes[path[-1].parent])
        path.reverse()
        assert path[0].node_id == self.root
        return path

    def is_well_formed(self, waitlist: Iterable[ARGNode] = ()) -> bool:
        """
        Every node that is neither covered nor a target is either waiting
        or expanded, and covering nodes are expanded.
        """
        waiting = { n.node_id for n in waitlist }
        for node in self.nodes.values():
            if node.is_covered():
                if not self.nodes[node.covered_by].expanded:
                    return False
            elif not node.target and not node.expanded and node.node_id not in waiting:
                return False
        return True

    def __len__(self):
        return len(self.nodes)


# For visualization of the resulting ARG
class GraphableARGNode(Graphable):
    def __init__(self, arg: ARG, node: ARGNode):
        self.arg = arg
        self.node = node

    def get_node_id(self) -> int:
        return self.node.node_id

    def get_node_label(self) -> str:
        return str(self.node)

    def get_successors(self) -> List[GraphableARGNode]:
        return [GraphableARGNode(self.arg, c) for c in self.arg.get_children(self.node)]

    def get_edge_labels(self, other: GraphableARGNode) -> List[str]:
        return ['']

    def get_cover_edges(self) -> List[int]:
        return [self.node.covered_by] if self.node.covered_by is not None else []

    def __eq__(self, other):
        return isinstance(other, GraphableARGNode) and self.node.node_id == other.node.node_id

    def __hash__(self):
        return hash(self.node.node_id)
