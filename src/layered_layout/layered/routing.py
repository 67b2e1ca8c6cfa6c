"""
Edge routing for layered layout.

Produces a polyline and a label anchor for every edge, in top-to-bottom
space:

- Edges between different ranks leave the source through its boundary
  facing the target, pass each intermediate rank on the straight line
  between the two centres and enter the target the same way.
- Edges within one rank are drawn as an arc above the rank.
- Self-loops are drawn as a small loop on the node's right side.

Edges sharing the same endpoints are fanned out around one shared path.
"""

from __future__ import annotations

import math
from typing import Sequence

from ..graph import Graph
from ..types import Edge, Node, Point

EPSILON = 1e-6


def _between_ranks(src: Node, dst: Node, rank_positions: Sequence[float], low: int) -> list[Point]:
    assert src.rank is not None and dst.rank is not None
    step = 1 if dst.rank > src.rank else -1
    points = [Point(src.x, src.y), Point(src.x, src.y + step * src.height / 2)]

    if abs(src.x - dst.x) > EPSILON:
        span = dst.rank - src.rank
        for rank in range(src.rank + step, dst.rank, step):
            t = (rank - src.rank) / span
            points.append(Point(src.x + (dst.x - src.x) * t, rank_positions[rank - low]))

    points.append(Point(dst.x, dst.y - step * dst.height / 2))
    points.append(Point(dst.x, dst.y))
    return points


def _same_rank_arc(src: Node, dst: Node, rank_separation: float) -> list[Point]:
    top = min(src.top, dst.top)
    arc_y = top - rank_separation / 3
    mid_x = (src.x + dst.x) / 2
    return [
        Point(src.x, src.y),
        Point(src.x, src.top),
        Point(src.x, arc_y),
        Point(mid_x, arc_y),
        Point(dst.x, arc_y),
        Point(dst.x, dst.top),
        Point(dst.x, dst.y),
    ]


def _self_loop(node: Node, reach: float) -> list[Point]:
    right = node.right
    upper = node.y - node.height / 4
    lower = node.y + node.height / 4
    return [
        Point(right, upper),
        Point(right + reach, upper),
        Point(right + reach, lower),
        Point(right, lower),
    ]


def offset_path(path: Sequence[Point], offset: float) -> list[Point]:
    """
    Shift the interior points of a path sideways.

    Each interior point moves by offset along the normal of the central
    difference at that point. Endpoints stay where they are.
    """
    if len(path) < 3 or offset == 0:
        return list(path)
    result = [path[0]]
    for i in range(1, len(path) - 1):
        dx = path[i + 1].x - path[i - 1].x
        dy = path[i + 1].y - path[i - 1].y
        length = math.hypot(dx, dy)
        if length > 0:
            result.append(path[i].translate(-dy / length * offset, dx / length * offset))
        else:
            result.append(path[i])
    result.append(path[-1])
    return result


def label_anchor(points: Sequence[Point]) -> Point:
    """Middle point of a path, or the midpoint of the two middle points."""
    n = len(points)
    if n % 2:
        return points[n // 2]
    a, b = points[n // 2 - 1], points[n // 2]
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def route_edges(
    graph: Graph,
    rank_positions: Sequence[float],
    *,
    rank_separation: float = 50.0,
    edge_separation: float = 20.0,
) -> None:
    """
    Set points and label_pos on every edge.

    Args:
        graph: Positioned graph, in top-to-bottom space
        rank_positions: Centre of each rank, indexed from the minimum rank
        rank_separation: Gap between ranks; arcs rise a third of it
        edge_separation: Spacing between edges sharing their endpoints
    """
    low = graph.min_rank
    groups: dict[tuple[str, str], list[Edge]] = {}
    for edge in graph.edges():
        groups.setdefault((edge.v, edge.w), []).append(edge)

    for (v, w), edges in groups.items():
        src = graph.node(v)
        dst = graph.node(w)
        assert src is not None and dst is not None

        if v == w:
            reach = edge_separation if edge_separation > 0 else rank_separation / 3
            for i, edge in enumerate(edges):
                edge.points = _self_loop(src, reach * (i + 1))
                edge.label_pos = label_anchor(edge.points)
            continue

        if src.rank is None or dst.rank is None:
            base = [Point(src.x, src.y), Point(dst.x, dst.y)]
        elif src.rank == dst.rank:
            base = _same_rank_arc(src, dst, rank_separation)
        else:
            base = _between_ranks(src, dst, rank_positions, low)

        n = len(edges)
        for i, edge in enumerate(edges):
            edge.points = offset_path(base, (i - (n - 1) / 2) * edge_separation)
            edge.label_pos = label_anchor(edge.points)


__all__ = [
    "offset_path",
    "label_anchor",
    "route_edges",
]
