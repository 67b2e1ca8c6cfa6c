"""
Graph preprocessing utilities.

This module provides reusable functions for analysing a Graph before layout:
- Cycle detection
- Topological sorting
- Weakly connected component detection

These utilities are used internally by the layout phases but can also be
used directly for graph analysis.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional

from .graph import Graph


def _restrict(graph: Graph, nodes: Optional[Iterable[str]]) -> list[str]:
    if nodes is None:
        return graph.nodes()
    return [v for v in nodes if graph.has_node(v)]


# =============================================================================
# Cycle Detection
# =============================================================================


def detect_cycle(graph: Graph, nodes: Optional[Iterable[str]] = None) -> Optional[list[str]]:
    """
    Detect if a directed graph contains a cycle.

    Uses an explicit-stack DFS. Returns the first cycle found, or None if
    the graph is acyclic. A self-loop counts as a cycle.

    Args:
        graph: Graph to inspect
        nodes: Restrict the search to these node ids (default: all)

    Returns:
        List of node ids forming a cycle (first id repeated at the end),
        or None if acyclic.

    Example:
        >>> g = Graph()
        >>> for v in "abc":
        ...     _ = g.set_node(v)
        >>> _ = g.set_edge("a", "b"); _ = g.set_edge("b", "a")
        >>> detect_cycle(g)
        ['a', 'b', 'a']
    """
    members = _restrict(graph, nodes)
    allowed = set(members)

    # DFS states: 0=unvisited, 1=visiting, 2=visited
    state = dict.fromkeys(members, 0)

    for start in members:
        if state[start] != 0:
            continue
        path = [start]
        state[start] = 1
        stack = [iter(graph.successors(start))]
        while stack:
            advanced = False
            for neighbor in stack[-1]:
                if neighbor not in allowed:
                    continue
                if state[neighbor] == 1:
                    # Found cycle - extract it
                    cycle_start = path.index(neighbor)
                    return path[cycle_start:] + [neighbor]
                if state[neighbor] == 0:
                    state[neighbor] = 1
                    path.append(neighbor)
                    stack.append(iter(graph.successors(neighbor)))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                state[path.pop()] = 2

    return None


def has_cycle(graph: Graph, nodes: Optional[Iterable[str]] = None) -> bool:
    """
    Check if a directed graph contains any cycle.

    Args:
        graph: Graph to inspect
        nodes: Restrict the check to these node ids (default: all)

    Returns:
        True if graph contains a cycle, False otherwise.
    """
    return detect_cycle(graph, nodes) is not None


# =============================================================================
# Topological Sort
# =============================================================================


def topological_sort(graph: Graph, nodes: Optional[Iterable[str]] = None) -> Optional[list[str]]:
    """
    Compute a topological ordering of nodes in a directed acyclic graph.

    Uses Kahn's algorithm (BFS-based). Ties are broken by insertion order.

    Args:
        graph: Graph to sort
        nodes: Restrict the sort to these node ids (default: all)

    Returns:
        List of node ids in topological order, or None if graph has cycles.
    """
    members = _restrict(graph, nodes)
    allowed = set(members)

    in_degree = dict.fromkeys(members, 0)
    for v in members:
        for edge in graph.out_edges(v):
            if edge.w in allowed:
                in_degree[edge.w] += 1

    # Start with nodes that have no incoming edges
    queue: deque[str] = deque(v for v in members if in_degree[v] == 0)
    result: list[str] = []

    while queue:
        node = queue.popleft()
        result.append(node)

        for edge in graph.out_edges(node):
            if edge.w not in allowed:
                continue
            in_degree[edge.w] -= 1
            if in_degree[edge.w] == 0:
                queue.append(edge.w)

    # If not all nodes processed, graph has a cycle
    if len(result) != len(members):
        return None

    return result


# =============================================================================
# Connected Components
# =============================================================================


def connected_components(graph: Graph, nodes: Optional[Iterable[str]] = None) -> list[list[str]]:
    """
    Find weakly connected components.

    Edge direction is ignored. Components are listed in order of their
    first member's insertion, and members in BFS order.

    Args:
        graph: Graph to inspect
        nodes: Restrict the search to these node ids (default: all);
            edges leaving the subset are ignored

    Returns:
        List of components, where each component is a list of node ids.
    """
    members = _restrict(graph, nodes)
    allowed = set(members)
    visited: set[str] = set()
    components: list[list[str]] = []

    for start in members:
        if start in visited:
            continue

        # BFS to find all nodes in this component
        component: list[str] = []
        queue: deque[str] = deque([start])
        visited.add(start)

        while queue:
            node = queue.popleft()
            component.append(node)

            for neighbor in graph.neighbors(node):
                if neighbor in allowed and neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        components.append(component)

    return components


def is_connected(graph: Graph, nodes: Optional[Iterable[str]] = None) -> bool:
    """
    Check if a graph is weakly connected.

    Returns:
        True if graph is connected, False otherwise.
    """
    members = _restrict(graph, nodes)
    if len(members) <= 1:
        return True
    return len(connected_components(graph, members)) == 1


__all__ = [
    "detect_cycle",
    "has_cycle",
    "topological_sort",
    "connected_components",
    "is_connected",
]
