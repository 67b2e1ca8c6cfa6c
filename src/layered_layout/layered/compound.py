"""
Compound graph handling for layered layout.

Containers (nodes with children) are not ranked themselves. Before layout,
edges attached to a container are redirected to a leaf inside it. Between
ranking and positioning each container gets a zero-width left and right
border node on every rank it spans, so ordering keeps outside nodes out of
its block and positioning keeps its borders vertical. After layout each
container is fitted between its borders and the redirected edges get
their logical endpoints back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..graph import Graph
from ..types import Edge


@dataclass
class Redirect:
    """An edge moved off a container, with its original endpoints."""

    edge: Edge
    v: str
    w: str


@dataclass
class ContainerBorder:
    """Left and right border nodes of a container, one per rank, top to bottom."""

    container: str
    left: list[str] = field(default_factory=list)
    right: list[str] = field(default_factory=list)


def container_ids(graph: Graph) -> list[str]:
    """Ids of nodes that have children, in insertion order."""
    if not graph.compound:
        return []
    return [v for v in graph.nodes() if graph.is_container(v)]


def nesting_depth(graph: Graph, node_id: str) -> int:
    """Number of containers enclosing a node."""
    return len(graph.ancestors(node_id))


def leaf_descendant(graph: Graph, node_id: str, last: bool = False) -> str:
    """
    Follow the first (or last) child repeatedly down to a leaf.

    Returns node_id itself when it has no children.
    """
    current = node_id
    while graph.is_container(current):
        children = graph.children(current)
        current = children[-1] if last else children[0]
    return current


def _deepest_first(graph: Graph) -> list[str]:
    containers = container_ids(graph)
    depth = {c: nesting_depth(graph, c) for c in containers}
    return sorted(containers, key=lambda c: -depth[c])


def infer_container_sizes(graph: Graph, node_separation: float, padding: float) -> None:
    """
    Grow containers to at least the size their children need side by side.

    A container's minimum width is the sum of its children's widths plus
    node_separation between neighbours plus padding on both sides; its
    minimum height is the tallest child plus padding above and below.
    Nested containers are sized first. The result is a lower bound that
    positioning and fit_containers() keep.
    """
    for container in _deepest_first(graph):
        children = [graph._node(c) for c in graph.children(container)]
        width = sum(c.width for c in children)
        width += (len(children) - 1) * node_separation + 2 * padding
        height = max(c.height for c in children) + 2 * padding
        node = graph._node(container)
        node.width = max(node.width, width)
        node.height = max(node.height, height)


def redirect_container_edges(graph: Graph) -> list[Redirect]:
    """
    Move edge endpoints off containers onto leaf descendants.

    A source container is replaced by its last leaf and a target container
    by its first leaf, so that edges leave from the end of a cluster and
    enter at its start.

    Returns:
        One record per moved edge, for restore_container_edges()
    """
    redirects: list[Redirect] = []
    if not graph.compound:
        return redirects
    for edge in graph.edges():
        v_container = graph.is_container(edge.v)
        w_container = graph.is_container(edge.w)
        if not (v_container or w_container):
            continue
        new_v = leaf_descendant(graph, edge.v, last=True) if v_container else edge.v
        new_w = leaf_descendant(graph, edge.w) if w_container else edge.w
        redirects.append(Redirect(edge, edge.v, edge.w))
        graph._move_edge(edge, new_v, new_w)
    return redirects


def restore_container_edges(graph: Graph, redirects: list[Redirect]) -> None:
    """
    Give redirected edges their container endpoints back.

    Edges reversed since redirection keep their reversed orientation.
    Routed points are left as they are.
    """
    for redirect in redirects:
        edge = redirect.edge
        if edge.reversed:
            graph._move_edge(edge, redirect.w, redirect.v)
        else:
            graph._move_edge(edge, redirect.v, redirect.w)


# =============================================================================
# Border Nodes
# =============================================================================


def _free_id(graph: Graph, prefix: str, counter: list[int]) -> str:
    while True:
        candidate = f"{prefix}{counter[0]}"
        counter[0] += 1
        if not graph.has_node(candidate):
            return candidate


def container_span(graph: Graph, container: str) -> Optional[tuple[int, int]]:
    """Lowest and highest rank among a container's ranked descendants."""
    ranks = [
        node.rank
        for node in graph.node_objects()
        if node.rank is not None and container in graph.ancestors(node.id)
    ]
    if not ranks:
        return None
    return min(ranks), max(ranks)


def add_border_nodes(graph: Graph) -> list[ContainerBorder]:
    """
    Add a left and a right border node to every rank a container spans.

    Border nodes are zero-size dummies parented to their container.
    Consecutive border nodes on the same side are joined by an edge, so
    each side forms one vertical chain. Ranks must already be assigned.

    Returns:
        One record per container, outermost containers first
    """
    borders: list[ContainerBorder] = []
    counter = [0]
    for container in container_ids(graph):
        span = container_span(graph, container)
        if span is None:
            continue
        border = ContainerBorder(container)
        for rank in range(span[0], span[1] + 1):
            for side, prefix in ((border.left, "_bl"), (border.right, "_br")):
                node_id = _free_id(graph, prefix, counter)
                node = graph.set_node(node_id)
                node.dummy = True
                node.rank = rank
                graph.set_parent(node_id, container)
                if side:
                    graph.set_edge(side[-1], node_id)
                side.append(node_id)
        borders.append(border)
    return borders


def border_sides(borders: Sequence[ContainerBorder]) -> dict[str, tuple[str, str]]:
    """Map each border node to (container, "left" or "right")."""
    sides: dict[str, tuple[str, str]] = {}
    for border in borders:
        for node_id in border.left:
            sides[node_id] = (border.container, "left")
        for node_id in border.right:
            sides[node_id] = (border.container, "right")
    return sides


def remove_border_nodes(
    graph: Graph, borders: Sequence[ContainerBorder]
) -> dict[str, tuple[float, float]]:
    """
    Delete border nodes and renumber the order of what remains.

    Returns:
        Left and right x of every container, read off its border nodes
    """
    extents: dict[str, tuple[float, float]] = {}
    for border in borders:
        left = min(graph._node(v).x for v in border.left)
        right = max(graph._node(v).x for v in border.right)
        extents[border.container] = (left, right)
        for node_id in border.left + border.right:
            graph.remove_node(node_id)

    layers: dict[int, list] = {}
    for node in graph.node_objects():
        if node.rank is not None and node.order is not None:
            layers.setdefault(node.rank, []).append(node)
    for layer in layers.values():
        layer.sort(key=lambda n: n.order)
        for pos, node in enumerate(layer):
            node.order = pos
    return extents


def fit_containers(
    graph: Graph,
    padding: float,
    extents: Optional[dict[str, tuple[float, float]]] = None,
) -> None:
    """
    Size and place every container around its children.

    Containers are processed innermost first, so a nested container's box
    is final before its parent is fitted. Each box is the bounding box of
    the children's boxes grown by padding on every side, widened to the
    container's border extent when one is given. A box never shrinks below
    the size the container already has, and grows evenly around its
    children.

    Args:
        graph: Positioned graph
        padding: Space between a container and its children
        extents: Left and right x per container from remove_border_nodes()
    """
    extents = extents or {}
    for container in _deepest_first(graph):
        children = [graph._node(c) for c in graph.children(container)]
        left = min(c.left for c in children) - padding
        right = max(c.right for c in children) + padding
        top = min(c.top for c in children) - padding
        bottom = max(c.bottom for c in children) + padding
        if container in extents:
            border_left, border_right = extents[container]
            left = min(left, border_left)
            right = max(right, border_right)

        node = graph._node(container)
        node.x = (left + right) / 2
        node.y = (top + bottom) / 2
        node.width = max(right - left, node.width)
        node.height = max(bottom - top, node.height)
        node.rank = None
        node.order = None


__all__ = [
    "Redirect",
    "ContainerBorder",
    "container_ids",
    "nesting_depth",
    "leaf_descendant",
    "container_span",
    "infer_container_sizes",
    "redirect_container_edges",
    "restore_container_edges",
    "add_border_nodes",
    "border_sides",
    "remove_border_nodes",
    "fit_containers",
]
