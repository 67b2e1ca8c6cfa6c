"""
Layout quality metrics.

Provides quantitative checks of a laid out graph:
- Edge crossings: Number of intersecting edge routes
- Node overlaps: Pairs of node boxes that intersect
- Rank violations: Edges shorter than their minimum length
- Containment violations: Nodes sticking out of their containers
- Edge length variance: Uniformity of route lengths

All metrics read the final positions and routes written by a layout.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from .graph import Graph
from .types import Edge, Point


def _route(graph: Graph, edge: Edge) -> list[Point]:
    if len(edge.points) >= 2:
        return edge.points
    src = graph.node(edge.v)
    dst = graph.node(edge.w)
    assert src is not None and dst is not None
    return [Point(src.x, src.y), Point(dst.x, dst.y)]


def _segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Check if line segments (p1,p2) and (p3,p4) properly intersect."""

    def ccw(a: Point, b: Point, c: Point) -> bool:
        return (c.y - a.y) * (b.x - a.x) > (b.y - a.y) * (c.x - a.x)

    return ccw(p1, p3, p4) != ccw(p2, p3, p4) and ccw(p1, p2, p3) != ccw(p1, p2, p4)


def _routes_cross(a: Sequence[Point], b: Sequence[Point]) -> bool:
    for i in range(len(a) - 1):
        for j in range(len(b) - 1):
            if _segments_intersect(a[i], a[i + 1], b[j], b[j + 1]):
                return True
    return False


def edge_crossings(graph: Graph) -> int:
    """
    Count pairs of edges whose routes cross.

    Edges sharing an endpoint are never counted. Edges without a route
    are treated as straight lines between node centres.

    Time Complexity: O(m^2 * p^2) where m = edges, p = points per route
    """
    edges = [e for e in graph.edges() if not e.is_self_loop]
    routes = [_route(graph, e) for e in edges]
    crossings = 0
    for i in range(len(edges)):
        for j in range(i + 1, len(edges)):
            if {edges[i].v, edges[i].w} & {edges[j].v, edges[j].w}:
                continue
            if _routes_cross(routes[i], routes[j]):
                crossings += 1
    return crossings


def overlapping_nodes(graph: Graph, tolerance: float = 1e-6) -> list[tuple[str, str]]:
    """
    Find pairs of node boxes that overlap.

    Containers are compared only with nodes outside them, since they are
    meant to enclose their descendants.

    Args:
        graph: Laid out graph
        tolerance: Overlap smaller than this is ignored

    Returns:
        Pairs of node ids, in insertion order
    """
    nodes = graph.node_objects()
    if len(nodes) < 2:
        return []
    left = np.array([n.left for n in nodes])
    right = np.array([n.right for n in nodes])
    top = np.array([n.top for n in nodes])
    bottom = np.array([n.bottom for n in nodes])

    overlap_x = np.minimum.outer(right, right) - np.maximum.outer(left, left)
    overlap_y = np.minimum.outer(bottom, bottom) - np.maximum.outer(top, top)
    hits = np.argwhere(np.triu((overlap_x > tolerance) & (overlap_y > tolerance), k=1))

    result: list[tuple[str, str]] = []
    for i, j in hits:
        u, v = nodes[i].id, nodes[j].id
        if graph.compound and (u in graph.ancestors(v) or v in graph.ancestors(u)):
            continue
        result.append((u, v))
    return result


def rank_violations(graph: Graph) -> list[Edge]:
    """
    Edges whose endpoints are fewer than minlen ranks apart.

    Either direction counts, since edges reversed to break cycles point
    against the rank direction. Self-loops and edges touching unranked
    nodes are skipped.
    """
    result: list[Edge] = []
    for edge in graph.edges():
        if edge.is_self_loop:
            continue
        v_rank = graph._node(edge.v).rank
        w_rank = graph._node(edge.w).rank
        if v_rank is None or w_rank is None:
            continue
        if w_rank - v_rank < edge.minlen and v_rank - w_rank < edge.minlen:
            result.append(edge)
    return result


def containment_violations(
    graph: Graph, padding: float = 0.0, tolerance: float = 1e-6
) -> list[tuple[str, str]]:
    """
    Find descendants whose padded box is not inside their container.

    Returns:
        (container, descendant) pairs
    """
    result: list[tuple[str, str]] = []
    if not graph.compound:
        return result
    for node in graph.node_objects():
        for container_id in graph.ancestors(node.id):
            container = graph._node(container_id)
            if (
                node.left - padding < container.left - tolerance
                or node.right + padding > container.right + tolerance
                or node.top - padding < container.top - tolerance
                or node.bottom + padding > container.bottom + tolerance
            ):
                result.append((container_id, node.id))
    return result


def _route_lengths(graph: Graph) -> np.ndarray:
    lengths = []
    for edge in graph.edges():
        if edge.is_self_loop:
            continue
        route = _route(graph, edge)
        lengths.append(
            sum(math.hypot(b.x - a.x, b.y - a.y) for a, b in zip(route, route[1:]))
        )
    return np.asarray(lengths, dtype=float)


def edge_length_variance(graph: Graph) -> float:
    """
    Compute the variance of route lengths.

    Lower variance indicates more uniform edge lengths.
    """
    lengths = _route_lengths(graph)
    if lengths.size == 0:
        return 0.0
    return float(np.var(lengths))


def layout_quality_summary(graph: Graph) -> dict[str, Any]:
    """
    Compute a summary of layout quality metrics.

    Returns:
        Dictionary with all metrics:
        - edge_crossings: Number of crossing edge pairs
        - overlapping_nodes: Number of overlapping node pairs
        - rank_violations: Number of edges shorter than minlen
        - edge_length_variance: Variance of route lengths
    """
    return {
        "edge_crossings": edge_crossings(graph),
        "overlapping_nodes": len(overlapping_nodes(graph)),
        "rank_violations": len(rank_violations(graph)),
        "edge_length_variance": edge_length_variance(graph),
    }


__all__ = [
    "edge_crossings",
    "overlapping_nodes",
    "rank_violations",
    "containment_violations",
    "edge_length_variance",
    "layout_quality_summary",
]
