"""
Rank direction handling.

All layout phases work top-to-bottom. adjust() prepares a graph laid out
in another direction by swapping node and label sizes, and undo() maps the
finished top-to-bottom result back onto the requested direction.
"""

from __future__ import annotations

from ..graph import Graph
from ..types import Point


def _swap_sizes(graph: Graph) -> None:
    for node in graph.node_objects():
        node.width, node.height = node.height, node.width
    for edge in graph.edges():
        edge.width, edge.height = edge.height, edge.width


def adjust(graph: Graph, rank_direction: str) -> None:
    """Swap widths and heights for horizontal rank directions."""
    if rank_direction in ("LR", "RL"):
        _swap_sizes(graph)


def undo(graph: Graph, rank_direction: str) -> None:
    """
    Map top-to-bottom coordinates onto the requested rank direction.

    BT and RL mirror the rank axis; LR and RL then swap the axes and the
    sizes back. Coordinates may become negative; the driver translates
    the graph afterwards.
    """
    if rank_direction in ("BT", "RL"):
        for node in graph.node_objects():
            node.y = -node.y
        for edge in graph.edges():
            edge.points = [Point(p.x, -p.y) for p in edge.points]
            if edge.label_pos is not None:
                edge.label_pos = Point(edge.label_pos.x, -edge.label_pos.y)

    if rank_direction in ("LR", "RL"):
        for node in graph.node_objects():
            node.x, node.y = node.y, node.x
        for edge in graph.edges():
            edge.points = [Point(p.y, p.x) for p in edge.points]
            if edge.label_pos is not None:
                edge.label_pos = Point(edge.label_pos.y, edge.label_pos.x)
        _swap_sizes(graph)


__all__ = ["adjust", "undo"]
