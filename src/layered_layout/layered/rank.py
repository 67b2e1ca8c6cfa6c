"""
Rank assignment for layered layout.

Assigns every non-container node an integer rank (layer) such that for
each edge rank[w] - rank[v] >= minlen. Three rankers are available:

- longest-path: Fast, places every node as high as its predecessors allow
- tight-tree: Longest path followed by a tight spanning tree per component
- network-simplex: Optimal ranking minimising weighted edge length (default)

Ranks are normalised so the smallest rank of each weakly connected
component is 0.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional, Sequence

from ..graph import Graph
from ..preprocessing import connected_components
from ..types import Edge
from ..validation import ValidationError, validate_choice
from .network_simplex import NetworkSimplex, RankEdge

RANKERS = ("network-simplex", "tight-tree", "longest-path")


def rankable_nodes(graph: Graph) -> list[str]:
    """Ids of nodes that take part in layering (containers do not)."""
    if not graph.compound:
        return graph.nodes()
    return [v for v in graph.nodes() if not graph.is_container(v)]


def rankable_edges(graph: Graph, nodes: Optional[Iterable[str]] = None) -> list[Edge]:
    """Edges between rankable nodes, self-loops excluded."""
    members = set(rankable_nodes(graph) if nodes is None else nodes)
    return [e for e in graph.edges() if e.v != e.w and e.v in members and e.w in members]


def longest_path_ranks(nodes: Sequence[str], edges: Iterable[RankEdge]) -> dict[str, int]:
    """
    Rank nodes by longest path from the sources.

    Every rank starts at 0 and rank[w] = max(rank[w], rank[v] + minlen) is
    applied along a topological order, which reaches the same fixed point
    as repeated relaxation in a single pass.

    Args:
        nodes: Node ids to rank
        edges: Edges between those nodes (must be acyclic)

    Returns:
        Mapping from node id to rank

    Raises:
        ValidationError: If the edges contain a directed cycle
    """
    ranks = dict.fromkeys(nodes, 0)
    outgoing: dict[str, list[RankEdge]] = {v: [] for v in nodes}
    in_degree = dict.fromkeys(nodes, 0)
    for edge in edges:
        outgoing[edge.v].append(edge)
        in_degree[edge.w] += 1

    queue: deque[str] = deque(v for v in nodes if in_degree[v] == 0)
    visited = 0
    while queue:
        v = queue.popleft()
        visited += 1
        for edge in outgoing[v]:
            ranks[edge.w] = max(ranks[edge.w], ranks[v] + edge.minlen)
            in_degree[edge.w] -= 1
            if in_degree[edge.w] == 0:
                queue.append(edge.w)

    if visited != len(ranks):
        raise ValidationError("Cannot rank a graph with directed cycles; remove cycles first")
    return ranks


def normalize_ranks(ranks: dict[str, int], components: Iterable[Sequence[str]]) -> None:
    """Shift each component so that its smallest rank is 0."""
    for component in components:
        if not component:
            continue
        low = min(ranks[v] for v in component)
        if low:
            for v in component:
                ranks[v] -= low


def assign_ranks(
    graph: Graph,
    ranker: str = "network-simplex",
    max_iterations: Optional[int] = None,
) -> tuple[int, int]:
    """
    Assign a rank to every non-container node of an acyclic graph.

    Container nodes get rank None. Self-loops are ignored.

    Args:
        graph: Graph whose nodes receive ranks
        ranker: One of RANKERS
        max_iterations: Pivot limit per component for network simplex

    Returns:
        (min_rank, max_rank) over the ranked nodes

    Raises:
        InvalidOptionError: If ranker is unknown
    """
    validate_choice("ranker", ranker, RANKERS)

    nodes = rankable_nodes(graph)
    edges = rankable_edges(graph, nodes)
    ranks = longest_path_ranks(nodes, edges)
    components = connected_components(graph, nodes)

    if ranker != "longest-path":
        for component in components:
            if len(component) < 2:
                continue
            members = set(component)
            solver = NetworkSimplex(
                component, (e for e in edges if e.v in members), ranks
            )
            if ranker == "tight-tree":
                solver.feasible_tree()
            else:
                solver.solve(max_iterations)

    normalize_ranks(ranks, components)

    for node in graph.node_objects():
        node.rank = ranks.get(node.id)
    return graph.rank_bounds()


__all__ = [
    "RANKERS",
    "rankable_nodes",
    "rankable_edges",
    "longest_path_ranks",
    "normalize_ranks",
    "assign_ranks",
]
