"""
Network simplex rank assignment.

Finds integer ranks minimising the weighted total edge length
sum(weight * (rank[w] - rank[v])) subject to rank[w] - rank[v] >= minlen
for every edge, following Gansner et al., "A Technique for Drawing Directed
Graphs" (1993):

1. Start from a feasible ranking (longest path).
2. Grow a spanning tree of tight edges, shifting ranks to make it span.
3. Label the tree with low/lim postorder numbers and compute cut values.
4. While some tree edge has a negative cut value, swap it for the
   non-tree edge of minimum slack that crosses the same cut.

The solver works on one weakly connected component at a time. Parallel
edges are merged first: their weights add up and the largest minlen wins.
"""

from __future__ import annotations

import warnings
from typing import Iterable, Optional, Protocol

EPSILON = 1e-6


class RankingWarning(UserWarning):
    """Warning raised when rank optimisation stops before converging."""

    pass


class RankEdge(Protocol):
    """Anything with endpoints, a weight and a minimum length."""

    v: str
    w: str
    weight: float
    minlen: int


class _SimplexEdge:
    __slots__ = ("v", "w", "weight", "minlen")

    def __init__(self, v: str, w: str, weight: float, minlen: int) -> None:
        self.v = v
        self.w = w
        self.weight = weight
        self.minlen = minlen


class _TreeLabel:
    """Postorder labelling of a node in the spanning tree."""

    __slots__ = ("low", "lim", "parent")

    def __init__(self, low: int, parent: Optional[str]) -> None:
        self.low = low
        self.lim = low
        self.parent = parent


def _is_descendant(label: _TreeLabel, root: _TreeLabel) -> bool:
    return root.low <= label.lim <= root.lim


class NetworkSimplex:
    """
    Network simplex solver for one weakly connected component.

    Ranks are read from and written back to the ``ranks`` mapping passed
    in, which must already hold a feasible ranking for every node.

    Example:
        ranks = longest_path_ranks(nodes, edges)
        NetworkSimplex(nodes, edges, ranks).solve()
    """

    def __init__(
        self,
        nodes: Iterable[str],
        edges: Iterable[RankEdge],
        ranks: dict[str, int],
    ) -> None:
        self.nodes = list(nodes)
        self.ranks = ranks

        self._pair: dict[tuple[str, str], _SimplexEdge] = {}
        for edge in edges:
            merged = self._pair.get((edge.v, edge.w))
            if merged is None:
                self._pair[(edge.v, edge.w)] = _SimplexEdge(
                    edge.v, edge.w, float(edge.weight), int(edge.minlen)
                )
            else:
                merged.weight += float(edge.weight)
                merged.minlen = max(merged.minlen, int(edge.minlen))
        self.edges = list(self._pair.values())

        self._incident: dict[str, list[_SimplexEdge]] = {v: [] for v in self.nodes}
        for e in self.edges:
            self._incident[e.v].append(e)
            self._incident[e.w].append(e)

        # Spanning tree adjacency: node -> {neighbor: edge}
        self._tree: dict[str, dict[str, _SimplexEdge]] = {}
        self._labels: dict[str, _TreeLabel] = {}
        self._postorder: list[str] = []
        self._preorder: list[str] = []
        # Cut value of each tree edge, keyed by its child endpoint
        self._cut: dict[str, float] = {}

    # -------------------------------------------------------------------------
    # Slack and feasible tree
    # -------------------------------------------------------------------------

    def slack(self, edge: _SimplexEdge) -> int:
        """Amount by which an edge is longer than its minimum length."""
        return self.ranks[edge.w] - self.ranks[edge.v] - edge.minlen

    def _add_tree_edge(self, edge: _SimplexEdge) -> None:
        self._tree.setdefault(edge.v, {})[edge.w] = edge
        self._tree.setdefault(edge.w, {})[edge.v] = edge

    def _tight_tree(self) -> int:
        """Grow the tree along tight edges; return its node count."""
        stack = list(reversed(list(self._tree)))
        while stack:
            v = stack.pop()
            for edge in self._incident[v]:
                w = edge.w if edge.v == v else edge.v
                if w not in self._tree and self.slack(edge) == 0:
                    self._add_tree_edge(edge)
                    stack.append(w)
        return len(self._tree)

    def feasible_tree(self) -> None:
        """
        Build a spanning tree whose edges are all tight.

        Ranks of the partial tree are shifted by the slack of the cheapest
        edge leaving it until that edge becomes tight, which keeps the
        ranking feasible.
        """
        self._tree = {self.nodes[0]: {}} if self.nodes else {}
        while self._tight_tree() < len(self.nodes):
            best: Optional[_SimplexEdge] = None
            best_slack = 0
            for edge in self.edges:
                if (edge.v in self._tree) != (edge.w in self._tree):
                    slack = self.slack(edge)
                    if best is None or slack < best_slack:
                        best, best_slack = edge, slack
            if best is None:
                raise ValueError("network simplex requires a connected component")
            delta = best_slack if best.v in self._tree else -best_slack
            for v in self._tree:
                self.ranks[v] += delta

    # -------------------------------------------------------------------------
    # Tree labelling and cut values
    # -------------------------------------------------------------------------

    def init_low_lim(self) -> None:
        """Assign low/lim/parent labels by an iterative postorder walk."""
        self._labels = {}
        self._postorder = []
        self._preorder = []
        if not self.nodes:
            return
        root = self.nodes[0]
        next_lim = 1
        self._labels[root] = _TreeLabel(next_lim, None)
        self._preorder.append(root)
        stack = [(root, iter(self._tree.get(root, ())))]
        while stack:
            v, pending = stack[-1]
            parent = self._labels[v].parent
            for w in pending:
                if w != parent:
                    self._labels[w] = _TreeLabel(next_lim, v)
                    self._preorder.append(w)
                    stack.append((w, iter(self._tree[w])))
                    break
            else:
                self._labels[v].lim = next_lim
                next_lim += 1
                self._postorder.append(v)
                stack.pop()

    def _graph_edge(self, a: str, b: str) -> tuple[_SimplexEdge, bool]:
        """Return the edge joining a and b and whether a is its tail."""
        edge = self._pair.get((a, b))
        if edge is not None:
            return edge, True
        return self._pair[(b, a)], False

    def _calc_cut_value(self, child: str) -> float:
        parent = self._labels[child].parent
        assert parent is not None
        tree_edge, child_is_tail = self._graph_edge(child, parent)
        cut_value = tree_edge.weight

        for edge in self._incident[child]:
            is_out = edge.v == child
            other = edge.w if is_out else edge.v
            if other == parent:
                continue
            points_to_head = is_out == child_is_tail
            cut_value += edge.weight if points_to_head else -edge.weight
            if self._labels[other].parent == child and self._tree[child].get(other) is edge:
                other_cut = self._cut[other]
                cut_value += -other_cut if points_to_head else other_cut
        return cut_value

    def init_cut_values(self) -> None:
        """Compute every tree edge's cut value, children before parents."""
        self._cut = {}
        for v in self._postorder[:-1]:
            self._cut[v] = self._calc_cut_value(v)

    def cut_value(self, v: str, w: str) -> float:
        """Cut value of the tree edge joining v and w."""
        if self._labels[v].parent == w:
            return self._cut[v]
        if self._labels[w].parent == v:
            return self._cut[w]
        raise KeyError(f"{v!r} - {w!r} is not a tree edge")

    # -------------------------------------------------------------------------
    # Pivoting
    # -------------------------------------------------------------------------

    def leave_edge(self) -> Optional[str]:
        """Child endpoint of the tree edge with the most negative cut value."""
        best: Optional[str] = None
        best_value = -EPSILON
        for child, value in self._cut.items():
            if value < best_value:
                best, best_value = child, value
        return best

    def enter_edge(self, child: str) -> Optional[_SimplexEdge]:
        """Non-tree edge of least slack that reconnects the cut made by removing child's tree edge."""
        parent = self._labels[child].parent
        assert parent is not None
        _, child_is_tail = self._graph_edge(child, parent)
        v, w = (child, parent) if child_is_tail else (parent, child)

        v_label = self._labels[v]
        w_label = self._labels[w]
        tail_label = v_label
        flip = False
        if v_label.lim > w_label.lim:
            tail_label = w_label
            flip = True

        best: Optional[_SimplexEdge] = None
        best_slack = 0
        for edge in self.edges:
            if flip == _is_descendant(self._labels[edge.v], tail_label) and flip != _is_descendant(
                self._labels[edge.w], tail_label
            ):
                slack = self.slack(edge)
                if best is None or slack < best_slack:
                    best, best_slack = edge, slack
        return best

    def exchange(self, child: str, entering: _SimplexEdge) -> None:
        """Replace child's tree edge with the entering edge and re-rank."""
        parent = self._labels[child].parent
        assert parent is not None
        del self._tree[child][parent]
        del self._tree[parent][child]
        self._add_tree_edge(entering)
        self.init_low_lim()
        self.init_cut_values()
        self.update_ranks()

    def update_ranks(self) -> None:
        """Re-derive ranks from the tree in preorder so tree edges are tight."""
        for v in self._preorder[1:]:
            parent = self._labels[v].parent
            assert parent is not None
            edge, v_is_tail = self._graph_edge(v, parent)
            if v_is_tail:
                self.ranks[v] = self.ranks[parent] - edge.minlen
            else:
                self.ranks[v] = self.ranks[parent] + edge.minlen

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    def solve(self, max_iterations: Optional[int] = None) -> int:
        """
        Run network simplex to optimality.

        Args:
            max_iterations: Pivot limit; defaults to a bound derived from
                the component size

        Returns:
            Number of pivots performed
        """
        if len(self.nodes) < 2:
            return 0
        if max_iterations is None:
            max_iterations = max(100, len(self.nodes) * max(1, len(self.edges)))

        self.feasible_tree()
        self.init_low_lim()
        self.init_cut_values()

        iterations = 0
        while True:
            child = self.leave_edge()
            if child is None:
                break
            entering = self.enter_edge(child) if iterations < max_iterations else None
            if entering is None:
                warnings.warn(
                    f"Network simplex stopped after {iterations} pivots with a negative "
                    f"cut value remaining; ranks are feasible but may not be optimal",
                    RankingWarning,
                    stacklevel=3,
                )
                break
            self.exchange(child, entering)
            iterations += 1
        return iterations


def total_edge_length(ranks: dict[str, int], edges: Iterable[RankEdge]) -> float:
    """Weighted sum of rank spans, the quantity network simplex minimises."""
    return sum(e.weight * (ranks[e.w] - ranks[e.v]) for e in edges)


__all__ = [
    "EPSILON",
    "RankingWarning",
    "NetworkSimplex",
    "total_edge_length",
]
