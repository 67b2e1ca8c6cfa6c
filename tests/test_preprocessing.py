"""Tests for preprocessing utilities."""

from layered_layout import Graph
from layered_layout.preprocessing import (
    connected_components,
    detect_cycle,
    has_cycle,
    is_connected,
    topological_sort,
)


def create_graph(nodes, edges):
    """Create a graph from node ids and (source, target) pairs."""
    g = Graph()
    for v in nodes:
        g.set_node(v)
    for v, w in edges:
        g.set_edge(v, w)
    return g


class TestCycleDetection:
    """Tests for cycle detection functions."""

    def test_detect_cycle_in_cyclic_graph(self):
        """Detect cycle in a simple cycle."""
        g = create_graph("abc", [("a", "b"), ("b", "c"), ("c", "a")])
        cycle = detect_cycle(g)
        assert cycle is not None
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}

    def test_detect_cycle_two_nodes(self):
        g = create_graph("ab", [("a", "b"), ("b", "a")])
        assert detect_cycle(g) == ["a", "b", "a"]

    def test_detect_cycle_in_acyclic_graph(self):
        """No cycle in DAG."""
        g = create_graph("abcd", [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
        assert detect_cycle(g) is None

    def test_has_cycle_true(self):
        g = create_graph("ab", [("a", "b"), ("b", "a")])
        assert has_cycle(g)

    def test_has_cycle_false(self):
        g = create_graph("ab", [("a", "b")])
        assert not has_cycle(g)

    def test_detect_cycle_empty_graph(self):
        """Empty graph has no cycle."""
        assert detect_cycle(Graph()) is None

    def test_detect_cycle_self_loop(self):
        """Self-loop is a cycle."""
        g = create_graph("a", [("a", "a")])
        assert detect_cycle(g) == ["a", "a"]

    def test_detect_cycle_restricted_to_subset(self):
        """Cycles outside the subset are ignored."""
        g = create_graph("abc", [("a", "b"), ("b", "a"), ("b", "c")])
        assert has_cycle(g)
        assert not has_cycle(g, ["b", "c"])


class TestTopologicalSort:
    """Tests for topological sorting."""

    def test_topological_sort_simple(self):
        g = create_graph("abc", [("a", "b"), ("b", "c")])
        assert topological_sort(g) == ["a", "b", "c"]

    def test_topological_sort_diamond(self):
        """Diamond graph respects edge direction."""
        g = create_graph("abcd", [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
        result = topological_sort(g)
        assert result is not None
        position = {v: i for i, v in enumerate(result)}
        for edge in g.edges():
            assert position[edge.v] < position[edge.w]

    def test_topological_sort_insertion_order_ties(self):
        g = create_graph(["z", "y", "x"], [])
        assert topological_sort(g) == ["z", "y", "x"]

    def test_topological_sort_cyclic_returns_none(self):
        g = create_graph("abc", [("a", "b"), ("b", "c"), ("c", "a")])
        assert topological_sort(g) is None

    def test_topological_sort_empty(self):
        assert topological_sort(Graph()) == []

    def test_topological_sort_subset(self):
        g = create_graph("abc", [("c", "a"), ("a", "b")])
        assert topological_sort(g, ["a", "b"]) == ["a", "b"]


class TestConnectedComponents:
    """Tests for connected component detection."""

    def test_connected_components_single(self):
        g = create_graph("abc", [("a", "b"), ("c", "b")])
        assert connected_components(g) == [["a", "b", "c"]]

    def test_connected_components_multiple(self):
        g = create_graph("abcd", [("a", "b"), ("c", "d")])
        assert connected_components(g) == [["a", "b"], ["c", "d"]]

    def test_connected_components_isolated(self):
        g = create_graph("abc", [])
        assert connected_components(g) == [["a"], ["b"], ["c"]]

    def test_connected_components_subset(self):
        """Edges leaving the subset do not join components."""
        g = create_graph("abc", [("a", "b"), ("b", "c")])
        assert connected_components(g, ["a", "c"]) == [["a"], ["c"]]

    def test_is_connected_true(self):
        g = create_graph("abc", [("a", "b"), ("b", "c")])
        assert is_connected(g)

    def test_is_connected_false(self):
        g = create_graph("abc", [("a", "b")])
        assert not is_connected(g)

    def test_is_connected_empty(self):
        assert is_connected(Graph())
