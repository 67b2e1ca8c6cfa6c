"""
Cycle removal for layered layout.

Breaks every directed cycle by reversing the back-edges found during a
depth-first traversal. Reversed edges are flagged so the driver can restore
their logical direction once routing is done.
"""

from __future__ import annotations

from ..graph import Graph
from ..types import Edge
from ..validation import validate_choice

ACYCLICERS = ("greedy",)


def make_acyclic(graph: Graph, acyclicer: str = "greedy") -> list[Edge]:
    """
    Reverse back-edges until the graph has no directed cycle.

    The traversal starts from every unvisited node in insertion order and
    follows out-edges in insertion order, so the set of reversed edges is
    deterministic. Self-loops are reversed too (which leaves them in place)
    so they carry the same flag as other cycle edges.

    Args:
        graph: Graph to modify in place; must be a multigraph with unique
            edge names so that reversed keys never collide
        acyclicer: Cycle removal strategy

    Returns:
        Reversed edges, in discovery order

    Raises:
        InvalidOptionError: If acyclicer is unknown
    """
    validate_choice("acyclicer", acyclicer, ACYCLICERS)

    # DFS states: 0=unvisited, 1=on stack, 2=done
    state = dict.fromkeys(graph.nodes(), 0)
    back_edges: list[Edge] = []

    for start in graph.nodes():
        if state[start] != 0:
            continue
        state[start] = 1
        stack = [(start, iter(graph.out_edges(start)))]
        while stack:
            v, pending = stack[-1]
            for edge in pending:
                if state[edge.w] == 1:
                    back_edges.append(edge)
                elif state[edge.w] == 0:
                    state[edge.w] = 1
                    stack.append((edge.w, iter(graph.out_edges(edge.w))))
                    break
            else:
                state[v] = 2
                stack.pop()

    for edge in back_edges:
        graph._move_edge(edge, edge.w, edge.v)
        edge.reversed = True

    return back_edges


def undo(graph: Graph) -> None:
    """Restore the direction of every reversed edge and flip its route."""
    for edge in graph.edges():
        if not edge.reversed:
            continue
        graph._move_edge(edge, edge.w, edge.v)
        edge.points = list(reversed(edge.points))
        edge.reversed = False


__all__ = ["ACYCLICERS", "make_acyclic", "undo"]
