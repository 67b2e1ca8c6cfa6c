"""
Coordinate assignment for layered layout.

Computes node centres in top-to-bottom space. The packing (x) axis uses
the four-alignment method of Brandes and Koepf, "Fast and Simple
Horizontal Coordinate Assignment" (2001):

- For each of up/down and left/right, nodes are aligned into vertical
  blocks with a median neighbour in the previously processed layer.
- Blocks are compacted towards the chosen side, respecting the minimum
  separation between neighbours in a layer.
- The four results are shifted onto the narrowest one and averaged.

Container border nodes form fixed vertical blocks: alignments that would
cross a border chain are skipped, and each container's right border is
kept at least the container's width from its left border.

The rank (y) axis stacks the layers, each separated by rank_separation
plus the half heights of the tallest nodes on either side. Ranks around
a container taller than its contents are spread apart.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Callable, Optional, Sequence

import numpy as np

from ..graph import Graph
from ..validation import validate_choice
from .compound import ContainerBorder, border_sides, container_ids, container_span
from .order import build_layer_matrix

ALIGNMENTS = ("UL", "UR", "DL", "DR")

SeparationFn = Callable[[str, str], float]


# =============================================================================
# Vertical Alignment
# =============================================================================


def _layer_neighbors(graph: Graph, layers: Sequence[Sequence[str]]) -> tuple[dict, dict]:
    """Neighbours of each node in the layer above and in the layer below."""
    layer_of = {v: i for i, layer in enumerate(layers) for v in layer}
    above: dict[str, list[str]] = {v: [] for v in layer_of}
    below: dict[str, list[str]] = {v: [] for v in layer_of}
    for v, index in layer_of.items():
        for w in graph.neighbors(v):
            other = layer_of.get(w)
            if other == index - 1:
                above[v].append(w)
            elif other == index + 1:
                below[v].append(w)
    return above, below


def border_conflicts(
    layers: Sequence[Sequence[str]],
    above: dict[str, list[str]],
    sides: dict[str, tuple[str, str]],
) -> set[tuple[str, str]]:
    """
    Edges between adjacent layers that cross a container border chain.

    Returns:
        (upper, lower) node pairs that must not be aligned
    """
    conflicts: set[tuple[str, str]] = set()
    if not sides:
        return conflicts
    pos = {v: i for layer in layers for i, v in enumerate(layer)}
    for layer in layers[1:]:
        chains: list[tuple[str, str]] = []
        others: list[tuple[str, str]] = []
        for v in layer:
            for w in above.get(v, ()):
                if v in sides and w in sides:
                    chains.append((w, v))
                else:
                    others.append((w, v))
        for w, v in others:
            for chain_w, chain_v in chains:
                if (pos[w] < pos[chain_w]) != (pos[v] < pos[chain_v]):
                    conflicts.add((w, v))
                    break
    return conflicts


def vertical_alignment(
    layers: Sequence[Sequence[str]],
    neighbors: dict[str, list[str]],
    conflicts: Optional[set[tuple[str, str]]] = None,
) -> tuple[dict[str, str], dict[str, str]]:
    """
    Align each node with a median neighbour in the preceding layer.

    Layers are processed in the given order and each layer left to right,
    so reversing the layer list or each layer selects the other biases.
    A node is aligned only if its neighbour lies right of the last
    alignment made in the same layer, which keeps blocks from crossing.

    Args:
        layers: Node ids per layer, in processing order
        neighbors: For each node, its neighbours in the preceding layer
        conflicts: Node pairs, in either orientation, never to align

    Returns:
        (root, align): the block root of every node, and the next node
        in its block (cyclic, ending back at the root)
    """
    conflicts = conflicts or set()
    root: dict[str, str] = {}
    align: dict[str, str] = {}
    pos: dict[str, int] = {}
    for layer in layers:
        for i, v in enumerate(layer):
            root[v] = v
            align[v] = v
            pos[v] = i

    for layer in layers:
        prev_idx = -1
        for v in layer:
            ws = [w for w in neighbors.get(v, ()) if w in pos]
            if not ws:
                continue
            ws.sort(key=pos.__getitem__)
            mp = (len(ws) - 1) / 2
            for i in range(math.floor(mp), math.ceil(mp) + 1):
                w = ws[i]
                if (w, v) in conflicts or (v, w) in conflicts:
                    continue
                if align[v] == v and prev_idx < pos[w]:
                    align[w] = v
                    align[v] = root[v] = root[w]
                    prev_idx = pos[w]
    return root, align


# =============================================================================
# Horizontal Compaction
# =============================================================================


def horizontal_compaction(
    layers: Sequence[Sequence[str]],
    root: dict[str, str],
    align: dict[str, str],
    separation: SeparationFn,
    minimums: Sequence[tuple[str, str, float]] = (),
) -> dict[str, float]:
    """
    Place blocks as far left as the separations allow, then pull back.

    Builds a graph of block roots with an edge from each block to the
    block on its right in any layer, weighted by the largest separation
    required. A longest-path pass places every block; a second pass in
    reverse moves blocks right towards their successors where slack allows.

    Args:
        layers: Node ids per layer, in processing order
        root: Block root of every node
        align: Next node in every block
        separation: Minimum distance between neighbours in a layer
        minimums: Extra (left node, right node, distance) requirements
            between blocks that already lie in that order

    Returns:
        Packing coordinate of every node
    """
    block_in: dict[str, dict[str, float]] = {}
    block_out: dict[str, dict[str, float]] = {}

    def require(u_root: str, v_root: str, sep: float) -> None:
        sep = max(sep, block_out[u_root].get(v_root, 0.0))
        block_out[u_root][v_root] = sep
        block_in[v_root][u_root] = sep

    for layer in layers:
        u: Optional[str] = None
        for v in layer:
            v_root = root[v]
            block_in.setdefault(v_root, {})
            block_out.setdefault(v_root, {})
            if u is not None:
                require(root[u], v_root, separation(u, v))
            u = v
    for u, v, sep in minimums:
        require(root[u], root[v], sep)

    # Kahn order over the block graph
    in_degree = {b: len(preds) for b, preds in block_in.items()}
    queue: deque[str] = deque(b for b, d in in_degree.items() if d == 0)
    topo: list[str] = []
    while queue:
        b = queue.popleft()
        topo.append(b)
        for succ in block_out[b]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                queue.append(succ)

    xs: dict[str, float] = {}
    for b in topo:
        xs[b] = max((xs[p] + sep for p, sep in block_in[b].items()), default=0.0)
    for b in reversed(topo):
        limit = min((xs[s] - sep for s, sep in block_out[b].items()), default=math.inf)
        if limit != math.inf:
            xs[b] = max(xs[b], limit)

    return {v: xs[root[v]] for v in align}


# =============================================================================
# Combining Alignments
# =============================================================================


def _extent(xs: np.ndarray, widths: np.ndarray) -> float:
    return float(np.max(xs + widths / 2) - np.min(xs - widths / 2))


def combine_alignments(
    xss: dict[str, dict[str, float]],
    ids: Sequence[str],
    widths: Sequence[float],
    balance: bool = True,
    align: str = "UL",
) -> dict[str, float]:
    """
    Shift the four alignments onto the narrowest one and merge them.

    Left alignments are matched on their minimum and right alignments on
    their maximum. With balance, each node gets the mean of its available
    coordinates; otherwise the alignment named by align is used.
    """
    matrix = np.array([[xss[a].get(v, np.nan) for v in ids] for a in ALIGNMENTS], dtype=float)
    width_arr = np.asarray(widths, dtype=float)

    extents = [_extent(row, width_arr) for row in matrix]
    target = matrix[int(np.argmin(extents))]
    target_min = np.nanmin(target)
    target_max = np.nanmax(target)
    for i, name in enumerate(ALIGNMENTS):
        if name.endswith("L"):
            matrix[i] += target_min - np.nanmin(matrix[i])
        else:
            matrix[i] += target_max - np.nanmax(matrix[i])

    if balance:
        merged = np.nanmean(matrix, axis=0)
    else:
        merged = matrix[ALIGNMENTS.index(align)]
    return {v: float(x) for v, x in zip(ids, merged)}


# =============================================================================
# Rank Axis
# =============================================================================


def _container_gaps(graph: Graph, layer_count: int) -> list[int]:
    """Container borders in the gap above each layer."""
    gaps = [0] * layer_count
    if not graph.compound:
        return gaps
    low = graph.min_rank
    for container in container_ids(graph):
        span = container_span(graph, container)
        if span is None:
            continue
        opens, closes = span[0] - low, span[1] - low
        if 0 < opens < layer_count:
            gaps[opens] += 1
        if closes + 1 < layer_count:
            gaps[closes + 1] += 1
    return gaps


def _stretch_ranks(
    graph: Graph,
    borders: Sequence[ContainerBorder],
    ys: list[float],
    padding: float,
) -> None:
    """
    Spread ranks apart around containers taller than their contents.

    A container whose height exceeds its padded contents gets half the
    difference added above its first rank and half below its last, so
    fit_containers() can grow it evenly without covering other ranks.
    Containers are handled innermost first.
    """
    low = graph.min_rank
    spans: dict[str, tuple[int, int]] = {}
    for border in borders:
        span = container_span(graph, border.container)
        if span is not None:
            spans[border.container] = (span[0] - low, span[1] - low)
    # Box reach above its first rank and below its last rank
    reach: dict[str, tuple[float, float]] = {}
    for container in sorted(spans, key=lambda c: -len(graph.ancestors(c))):
        lo, hi = spans[container]
        top, bottom = math.inf, -math.inf
        for child in graph.children(container):
            if child in reach:
                child_lo, child_hi = spans[child]
                top = min(top, ys[child_lo] - reach[child][0])
                bottom = max(bottom, ys[child_hi] + reach[child][1])
                continue
            node = graph._node(child)
            if node.rank is None:
                continue
            y = ys[node.rank - low]
            top = min(top, y - node.height / 2)
            bottom = max(bottom, y + node.height / 2)

        half = max(0.0, graph._node(container).height - (bottom - top + 2 * padding)) / 2
        if half > 0:
            for i in range(lo, len(ys)):
                ys[i] += half
            for i in range(hi + 1, len(ys)):
                ys[i] += half
        old_lo, old_hi = ys[lo] - half, ys[hi] - half
        reach[container] = (old_lo - top + padding + half, bottom - old_hi + padding + half)


def rank_positions(
    graph: Graph,
    layers: Sequence[Sequence[str]],
    rank_separation: float,
    padding: float = 0.0,
    borders: Sequence[ContainerBorder] = (),
) -> list[float]:
    """
    Set the y of every ranked node and return the centre of each rank.

    Consecutive ranks are spaced by the half height of the tallest node on
    each side plus rank_separation, plus padding for every container border
    in between. With borders, ranks are spread further where a container's
    own height needs more room than its contents.
    """
    gaps = _container_gaps(graph, len(layers))
    result: list[float] = []
    y = 0.0
    prev_half: Optional[float] = None
    for index, layer in enumerate(layers):
        half = max((graph._node(v).height for v in layer), default=0.0) / 2
        if prev_half is None:
            y = half
        else:
            y += prev_half + rank_separation + padding * gaps[index] + half
        result.append(y)
        prev_half = half

    if borders:
        _stretch_ranks(graph, borders, result, padding)
    for layer, y in zip(layers, result):
        for v in layer:
            graph._node(v).y = y
    return result


# =============================================================================
# Position Phase
# =============================================================================


def position(
    graph: Graph,
    *,
    node_separation: float = 50.0,
    rank_separation: float = 50.0,
    padding: float = 0.0,
    align: str = "UL",
    balance: bool = True,
    borders: Sequence[ContainerBorder] = (),
) -> list[float]:
    """
    Assign x and y to every ranked and ordered node.

    Args:
        graph: Graph with rank and order set on its non-container nodes
        node_separation: Minimum gap between neighbours in a layer
        rank_separation: Minimum gap between consecutive layers
        padding: Gap between a container border and what it encloses
        align: Alignment to use when balance is False
        balance: Average the four alignments
        borders: Container border nodes from add_border_nodes()

    Returns:
        Centre coordinate of every rank, indexed from the minimum rank

    Raises:
        InvalidOptionError: If align is not one of ALIGNMENTS
    """
    validate_choice("align", align, ALIGNMENTS)
    layers = build_layer_matrix(graph)
    if not layers:
        return []
    sides = border_sides(borders)

    def separation(u: str, v: str) -> float:
        gap = node_separation
        u_side = sides.get(u)
        v_side = sides.get(v)
        if u_side and v_side and u_side[0] == v_side[0]:
            gap = 0.0
        elif (u_side and u_side[0] in graph.ancestors(v)) or (
            v_side and v_side[0] in graph.ancestors(u)
        ):
            gap = padding
        return graph._node(u).width / 2 + gap + graph._node(v).width / 2

    minimums = [(b.left[0], b.right[0], graph._node(b.container).width) for b in borders]
    mirrored = [(v, u, sep) for u, v, sep in minimums]

    above, below = _layer_neighbors(graph, layers)
    conflicts = border_conflicts(layers, above, sides)
    xss: dict[str, dict[str, float]] = {}
    for vert in ("U", "D"):
        base = list(layers) if vert == "U" else list(reversed(layers))
        neighbors = above if vert == "U" else below
        for horiz in ("L", "R"):
            adjusted = base if horiz == "L" else [list(reversed(layer)) for layer in base]
            root, align_map = vertical_alignment(adjusted, neighbors, conflicts)
            xs = horizontal_compaction(
                adjusted,
                root,
                align_map,
                separation,
                minimums if horiz == "L" else mirrored,
            )
            if horiz == "R":
                xs = {v: -x for v, x in xs.items()}
            xss[vert + horiz] = xs

    ids = [v for layer in layers for v in layer]
    widths = [graph._node(v).width for v in ids]
    merged = combine_alignments(xss, ids, widths, balance=balance, align=align)
    for v, x in merged.items():
        graph._node(v).x = x

    return rank_positions(graph, layers, rank_separation, padding, borders)


__all__ = [
    "ALIGNMENTS",
    "border_conflicts",
    "vertical_alignment",
    "horizontal_compaction",
    "combine_alignments",
    "rank_positions",
    "position",
]
