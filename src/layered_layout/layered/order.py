"""
Crossing minimisation for layered layout.

Orders the nodes inside every rank so that edges between adjacent ranks
cross as little as possible:

1. Edges spanning several ranks are split into chains of zero-size dummy
   nodes, so every edge joins adjacent ranks.
2. Each rank is sorted by node id to obtain a deterministic start.
3. Alternating downward and upward sweeps reorder each rank by the
   barycenter (weighted mean position) of its neighbours in the rank just
   processed.
4. The ordering with the fewest weighted crossings is kept and the dummy
   chains are removed again.

In compound graphs the members of each container are kept contiguous
within a rank; a container is sorted as one unit by the mean barycenter of
its members.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import NamedTuple, Optional, Sequence

from ..graph import Graph
from ..types import Edge
from ..validation import validate_iterations
from .compound import ContainerBorder, border_sides
from .rank import rankable_nodes

EPSILON = 1e-6
DEFAULT_ITERATIONS = 24


class OrderResult(NamedTuple):
    """Weighted crossing counts before and after ordering."""

    initial_crossings: float
    crossings: float


@dataclass
class DummyChain:
    """A long edge temporarily replaced by a chain of dummy nodes."""

    edge: Edge
    nodes: list[str] = field(default_factory=list)


# =============================================================================
# Layers
# =============================================================================


def build_layer_matrix(graph: Graph) -> list[list[str]]:
    """
    Group ranked nodes into layers, each sorted by its current order.

    Nodes without an order are placed after ordered ones, by id. Index 0
    of the result is the graph's minimum rank.
    """
    ranked = [(n.rank, n) for n in graph.node_objects() if n.rank is not None]
    if not ranked:
        return []
    low = min(rank for rank, _ in ranked)
    high = max(rank for rank, _ in ranked)
    layers: list[list[str]] = [[] for _ in range(high - low + 1)]
    ranked.sort(key=lambda item: (item[1].order is None, item[1].order or 0, item[1].id))
    for rank, node in ranked:
        layers[rank - low].append(node.id)
    return layers


def _free_dummy_id(graph: Graph, counter: list[int]) -> str:
    while True:
        candidate = f"_d{counter[0]}"
        counter[0] += 1
        if not graph.has_node(candidate):
            return candidate


def _common_container(graph: Graph, v: str, w: str) -> Optional[str]:
    if not graph.compound:
        return None
    w_ancestors = set(graph.ancestors(w))
    for container in graph.ancestors(v):
        if container in w_ancestors:
            return container
    return None


def add_dummy_chains(graph: Graph) -> list[DummyChain]:
    """
    Replace every edge spanning more than one rank with a dummy chain.

    The original edge is detached from the graph and recorded; chain edges
    carry its weight and have minlen 1. In compound graphs the dummies are
    nested in the innermost container enclosing both endpoints.
    """
    members = set(rankable_nodes(graph))
    chains: list[DummyChain] = []
    counter = [0]
    for edge in graph.edges():
        if edge.v not in members or edge.w not in members:
            continue
        v_rank = graph._node(edge.v).rank
        w_rank = graph._node(edge.w).rank
        if v_rank is None or w_rank is None or w_rank - v_rank <= 1:
            continue

        chain = DummyChain(edge)
        graph._detach_edge(edge)
        parent = _common_container(graph, edge.v, edge.w)
        prev = edge.v
        for rank in range(v_rank + 1, w_rank):
            dummy_id = _free_dummy_id(graph, counter)
            dummy = graph.set_node(dummy_id)
            dummy.dummy = True
            dummy.rank = rank
            if parent is not None:
                graph.set_parent(dummy_id, parent)
            graph.set_edge(prev, dummy_id, weight=edge.weight)
            chain.nodes.append(dummy_id)
            prev = dummy_id
        graph.set_edge(prev, edge.w, weight=edge.weight)
        chains.append(chain)
    return chains


def remove_dummy_chains(graph: Graph, chains: Sequence[DummyChain]) -> None:
    """Delete dummy nodes and re-insert the original edges."""
    for chain in chains:
        for dummy_id in chain.nodes:
            graph.remove_node(dummy_id)
        graph._insert_edge(chain.edge)


# =============================================================================
# Crossing Count
# =============================================================================


def _bilayer_crossings(graph: Graph, north: Sequence[str], south: Sequence[str]) -> float:
    """
    Weighted crossings between two adjacent layers.

    Uses the accumulator tree of Barth, Juenger and Mutzel, "Simple and
    Efficient Bilayer Cross Counting" (2002).
    """
    south_pos = {v: i for i, v in enumerate(south)}
    entries: list[tuple[int, float]] = []
    for v in north:
        incident: list[tuple[int, float]] = []
        for edge in graph.node_edges(v):
            other = edge.w if edge.v == v else edge.v
            if other in south_pos:
                incident.append((south_pos[other], edge.weight))
        entries.extend(sorted(incident))

    first_index = 1
    while first_index < len(south):
        first_index <<= 1
    tree = [0.0] * (2 * first_index - 1)
    first_index -= 1

    crossings = 0.0
    for pos, weight in entries:
        index = pos + first_index
        tree[index] += weight
        weight_sum = 0.0
        while index > 0:
            if index % 2:
                weight_sum += tree[index + 1]
            index = (index - 1) >> 1
            tree[index] += weight
        crossings += weight * weight_sum
    return crossings


def count_crossings(graph: Graph, layers: Sequence[Sequence[str]]) -> float:
    """
    Count weighted edge crossings between every pair of adjacent layers.

    Args:
        graph: Graph holding the edges
        layers: Node ids per layer, in order

    Returns:
        Sum over crossing edge pairs of the product of their weights
    """
    total = 0.0
    for i in range(1, len(layers)):
        total += _bilayer_crossings(graph, layers[i - 1], layers[i])
    return total


# =============================================================================
# Barycenter Sorting
# =============================================================================


class _Entry:
    """A node, or a container grouping nodes, within one layer."""

    __slots__ = ("key", "value", "size", "is_group", "children")

    def __init__(self, key: str, value: float = 0.0, is_group: bool = False) -> None:
        self.key = key
        self.value = value
        self.size = 1
        self.is_group = is_group
        self.children: list[_Entry] = []


def _compare(a: _Entry, b: _Entry) -> int:
    if abs(a.value - b.value) > EPSILON:
        return -1 if a.value < b.value else 1
    return (a.key > b.key) - (a.key < b.key)


def _sort_children(
    holder: _Entry,
    sides: dict[str, tuple[str, str]],
    keys: Optional[dict[str, float]],
) -> None:
    entries = holder.children
    entries.sort(key=cmp_to_key(_compare))

    if keys is not None:
        # Sibling containers take the same relative order in every layer
        slots = [i for i, entry in enumerate(entries) if entry.is_group]
        groups = sorted((entries[i] for i in slots), key=lambda e: (keys.get(e.key, 0.0), e.key))
        for i, group in zip(slots, groups):
            entries[i] = group

    if holder.is_group:
        left = [e for e in entries if sides.get(e.key) == (holder.key, "left")]
        right = [e for e in entries if sides.get(e.key) == (holder.key, "right")]
        middle = [e for e in entries if e not in left and e not in right]
        holder.children = left + middle + right


def sort_layer(
    graph: Graph,
    layer: Sequence[str],
    values: dict[str, float],
    sides: Optional[dict[str, tuple[str, str]]] = None,
    keys: Optional[dict[str, float]] = None,
) -> list[str]:
    """
    Sort a layer by value, breaking near-ties by id.

    Members of a container stay contiguous; each container is sorted as a
    unit by the mean value of the layer nodes it contains.

    Args:
        graph: Graph holding the layer's nodes
        layer: Node ids of one rank
        values: Sort value per node (missing values count as 0)
        sides: Border nodes by id, as (container, "left" or "right"); each
            is pinned to its end of the container's block
        keys: Fixed sort key per container; when given, sibling containers
            are ordered by key instead of by value
    """
    sides = sides or {}
    root = _Entry("", is_group=False)
    groups: dict[str, _Entry] = {}
    for v in layer:
        holder = root
        for container in reversed(graph.ancestors(v)) if graph.compound else ():
            group = groups.get(container)
            if group is None:
                group = _Entry(container, is_group=True)
                groups[container] = group
                holder.children.append(group)
            holder = group
        holder.children.append(_Entry(v, values.get(v, 0.0)))

    # Inner groups are created after their enclosing group
    for group in reversed(list(groups.values())):
        group.size = sum(child.size for child in group.children)
        group.value = sum(child.value * child.size for child in group.children) / group.size

    _sort_children(root, sides, keys)
    for group in groups.values():
        _sort_children(group, sides, keys)

    result: list[str] = []
    stack = [iter(root.children)]
    while stack:
        for entry in stack[-1]:
            if entry.is_group:
                stack.append(iter(entry.children))
                break
            result.append(entry.key)
        else:
            stack.pop()
    return result


def container_keys(graph: Graph, layers: Sequence[Sequence[str]]) -> dict[str, float]:
    """Mean position over all layers of the nodes inside each container."""
    totals: dict[str, list[float]] = {}
    for layer in layers:
        for pos, v in enumerate(layer):
            for container in graph.ancestors(v):
                total = totals.setdefault(container, [0.0, 0.0])
                total[0] += pos
                total[1] += 1
    return {c: s / n for c, (s, n) in totals.items()}


def _settle(
    graph: Graph,
    layers: list[list[str]],
    sides: dict[str, tuple[str, str]],
) -> list[list[str]]:
    """Give sibling containers one relative order across all layers."""
    if not graph.compound:
        return layers
    keys = container_keys(graph, layers)
    position = _positions(layers)
    return [
        sort_layer(graph, layer, {v: float(position[v]) for v in layer}, sides, keys)
        for layer in layers
    ]


def _adjacency(graph: Graph, layers: Sequence[Sequence[str]]) -> tuple[dict, dict]:
    """Weighted neighbours of each node in the layer above and below."""
    layer_of = {v: i for i, layer in enumerate(layers) for v in layer}
    above: dict[str, list[tuple[str, float]]] = {v: [] for v in layer_of}
    below: dict[str, list[tuple[str, float]]] = {v: [] for v in layer_of}
    for edge in graph.edges():
        lv = layer_of.get(edge.v)
        lw = layer_of.get(edge.w)
        if lv is None or lw is None:
            continue
        if lw == lv + 1:
            below[edge.v].append((edge.w, edge.weight))
            above[edge.w].append((edge.v, edge.weight))
        elif lv == lw + 1:
            below[edge.w].append((edge.v, edge.weight))
            above[edge.v].append((edge.w, edge.weight))
    return above, below


def barycenters(
    layer: Sequence[str],
    neighbors: dict[str, list[tuple[str, float]]],
    position: dict[str, int],
) -> dict[str, float]:
    """
    Weighted mean position of each node's neighbours.

    A node without neighbours keeps its current position as its value.
    """
    values: dict[str, float] = {}
    for v in layer:
        adjacent = neighbors.get(v)
        if adjacent:
            total = sum(weight for _, weight in adjacent)
            values[v] = sum(position[u] * weight for u, weight in adjacent) / total
        else:
            values[v] = float(position[v])
    return values


# =============================================================================
# Ordering Phase
# =============================================================================


def _positions(layers: Sequence[Sequence[str]]) -> dict[str, int]:
    return {v: i for layer in layers for i, v in enumerate(layer)}


def order(
    graph: Graph,
    iterations: int = DEFAULT_ITERATIONS,
    borders: Sequence[ContainerBorder] = (),
) -> OrderResult:
    """
    Order the nodes of every rank to reduce edge crossings.

    Ranks must already be assigned. On return every ranked node has an
    order in 0..n-1 within its rank and the graph holds no dummy nodes.

    Args:
        graph: Ranked graph
        iterations: Number of barycenter sweeps (even: downward using
            predecessors, odd: upward using successors)
        borders: Container border nodes from add_border_nodes(), kept at
            the ends of their container's block

    Returns:
        OrderResult with the crossing counts of the initial and the
        chosen ordering
    """
    iterations = validate_iterations(iterations)
    sides = border_sides(borders)
    chains = add_dummy_chains(graph)

    layers = [sort_layer(graph, layer, {}, sides) for layer in build_layer_matrix(graph)]
    layers = _settle(graph, layers, sides)
    above, below = _adjacency(graph, layers)

    best = [list(layer) for layer in layers]
    best_crossings = initial = count_crossings(graph, layers)

    for i in range(iterations):
        if best_crossings == 0:
            break
        position = _positions(layers)
        if i % 2 == 0:
            indices: Sequence[int] = range(1, len(layers))
            neighbors = above
        else:
            indices = range(len(layers) - 2, -1, -1)
            neighbors = below
        for index in indices:
            values = barycenters(layers[index], neighbors, position)
            layers[index] = sort_layer(graph, layers[index], values, sides)
            for pos, v in enumerate(layers[index]):
                position[v] = pos
        layers = _settle(graph, layers, sides)

        crossings = count_crossings(graph, layers)
        if crossings < best_crossings:
            best = [list(layer) for layer in layers]
            best_crossings = crossings

    remove_dummy_chains(graph, chains)

    for layer in best:
        real = [v for v in layer if graph.has_node(v)]
        for pos, v in enumerate(real):
            graph._node(v).order = pos

    return OrderResult(initial, best_crossings)


__all__ = [
    "EPSILON",
    "DEFAULT_ITERATIONS",
    "OrderResult",
    "DummyChain",
    "build_layer_matrix",
    "add_dummy_chains",
    "remove_dummy_chains",
    "count_crossings",
    "sort_layer",
    "container_keys",
    "barycenters",
    "order",
]
