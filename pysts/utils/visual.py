#!/usr/bin/env python3
"""
pysts.utils.visual
------------------

Helpers for drawing ARGs with Graphviz.

• Graphable     – minimal interface a node must implement
• arg_to_dot()  – generic walk over Graphables → graphviz.Digraph,
                  target nodes red, coverage as dashed edges
"""

from __future__ import annotations
from typing import Iterable
from graphviz import Digraph


# ------------------------------------------------------------------ #
#  very small “interface”                                            #
# ------------------------------------------------------------------ #
class Graphable:
    def get_node_id(self) -> int: ...
    def get_node_label(self) -> str: ...
    def get_successors (self) -> Iterable["Graphable"]: ...
    def get_edge_labels(self, succ: "Graphable") -> Iterable[str]: ...
    def get_cover_edges(self) -> Iterable[int]:
        return []


# ------------------------------------------------------------------ #
#  generic Graphable → graphviz helper                               #
# ------------------------------------------------------------------ #
def arg_to_dot(roots, nodeattrs={"shape": "circle"}):
    assert isinstance(roots, list)
    dot = Digraph()
    for (key, value) in nodeattrs.items():
        dot.attr("node", [(key, value)])
    for root in roots:
        waitlist = [root]
        reached = {root}
        while not len(waitlist) == 0:
            node = waitlist.pop()

            label = node.get_node_label()
            assert label is not None and len(label) > 0
            if 'unsafe' in label:
                dot.node(str(node.get_node_id()), label=label, color='red')
            else:
                dot.node(str(node.get_node_id()), label=label)

            for successor in node.get_successors():
                for edgelabel in node.get_edge_labels(successor):
                    dot.edge(str(node.get_node_id()), str(successor.get_node_id()), label=edgelabel)
                if successor not in reached:
                    reached.add(successor)
                    waitlist.append(successor)

            for covering in node.get_cover_edges():
                dot.edge(str(node.get_node_id()), str(covering), style='dashed', label='covered')
    return dot
