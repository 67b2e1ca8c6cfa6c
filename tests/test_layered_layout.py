"""Tests for the layered layout driver."""

import pytest

from layered_layout import (
    EventType,
    Graph,
    LayeredLayout,
    edge_crossings,
    layout,
    overlapping_nodes,
    rank_violations,
)
from layered_layout.types import Event
from layered_layout.validation import CompoundGraphError, InvalidOptionError


def create_chain(width=100, height=50):
    """Chain a -> b -> c of equally sized nodes."""
    g = Graph()
    for v in "abc":
        g.set_node(v, width=width, height=height)
    g.set_edge("a", "b")
    g.set_edge("b", "c")
    return g


def create_two_cycle():
    g = Graph()
    g.set_node("a", width=40, height=40)
    g.set_node("b", width=40, height=40)
    g.set_edge("a", "b")
    g.set_edge("b", "a")
    return g


def create_dag():
    """A small DAG with long edges and nodes of mixed widths."""
    g = Graph()
    sizes = {"a": 60, "b": 30, "c": 120, "d": 45, "e": 80, "f": 20, "g": 70}
    for v, width in sizes.items():
        g.set_node(v, width=width, height=30)
    for v, w in [
        ("a", "b"),
        ("a", "c"),
        ("a", "d"),
        ("b", "e"),
        ("c", "e"),
        ("d", "f"),
        ("a", "g"),
        ("e", "g"),
        ("f", "g"),
        ("c", "f"),
    ]:
        g.set_edge(v, w)
    return g


def inside(point, node, tolerance=1e-6):
    return (
        node.left - tolerance <= point.x <= node.right + tolerance
        and node.top - tolerance <= point.y <= node.bottom + tolerance
    )


def snapshot(graph):
    nodes = [(n.id, n.x, n.y, n.width, n.height, n.rank, n.order) for n in graph.node_objects()]
    edges = [(e.key, tuple(e.points), e.label_pos) for e in graph.edges()]
    return nodes, edges, graph.width, graph.height


class TestChain:
    """Tests for the simplest layered drawing."""

    def test_ranks(self):
        g = layout(create_chain())
        assert [g.node(v).rank for v in "abc"] == [0, 1, 2]

    def test_rank_spacing(self):
        g = layout(create_chain())
        assert g.node("b").y - g.node("a").y == pytest.approx(100)
        assert g.node("c").y - g.node("b").y == pytest.approx(100)

    def test_vertically_aligned(self):
        g = layout(create_chain())
        assert g.node("a").x == pytest.approx(g.node("b").x)
        assert g.node("b").x == pytest.approx(g.node("c").x)

    def test_translated_to_origin(self):
        g = layout(create_chain())
        assert g.node("a").left == pytest.approx(0)
        assert g.node("a").top == pytest.approx(0)
        assert g.width == pytest.approx(100)
        assert g.height == pytest.approx(250)

    def test_edges_routed_between_boxes(self):
        g = layout(create_chain())
        edge = g.edge("a", "b")
        assert inside(edge.points[0], g.node("a"))
        assert inside(edge.points[-1], g.node("b"))
        assert edge.label_pos is not None


class TestCycles:
    """Tests for graphs with directed cycles."""

    def test_two_cycle_keeps_directions(self):
        g = layout(create_two_cycle())
        forward = g.edge("a", "b")
        backward = g.edge("b", "a")
        assert forward is not None and backward is not None
        assert not forward.reversed
        assert not backward.reversed
        assert g.node("a").rank != g.node("b").rank

    def test_reversed_edge_route_follows_original_direction(self):
        g = layout(create_two_cycle())
        backward = g.edge("b", "a")
        assert inside(backward.points[0], g.node("b"))
        assert inside(backward.points[-1], g.node("a"))

    def test_cycle_routes_differ(self):
        g = layout(create_two_cycle())
        forward = list(g.edge("a", "b").points)
        backward = list(reversed(g.edge("b", "a").points))
        assert forward != backward

    def test_self_loop(self):
        g = Graph()
        g.set_node("a", width=40, height=40)
        g.set_edge("a", "a")
        layout(g)
        loop = g.edge("a", "a")
        assert len(loop.points) == 4
        assert max(p.x for p in loop.points) > g.node("a").right
        assert g.width > g.node("a").width

    def test_long_cycle_feasible(self):
        g = Graph()
        for v in "abcd":
            g.set_node(v, width=30, height=30)
        for v, w in [("a", "b"), ("b", "c"), ("c", "d"), ("d", "a")]:
            g.set_edge(v, w)
        layout(g)
        assert rank_violations(g) == []


class TestParallelEdges:
    """Tests for multigraph edges sharing endpoints."""

    def test_parallel_edges_distinct_routes(self):
        g = Graph(multigraph=True)
        g.set_node("a", width=60, height=30)
        g.set_node("b", width=60, height=30)
        g.set_edge("a", "b", "first")
        g.set_edge("a", "b", "second")
        layout(g)
        first = g.edge("a", "b", "first").points
        second = g.edge("a", "b", "second").points
        assert first != second
        for points in (first, second):
            assert inside(points[0], g.node("a"))
            assert inside(points[-1], g.node("b"))


class TestQuality:
    """Tests for general layout properties."""

    def test_no_overlaps(self):
        g = layout(create_dag())
        assert overlapping_nodes(g) == []

    def test_no_rank_violations(self):
        g = layout(create_dag())
        assert rank_violations(g) == []

    def test_separation_in_ranks(self):
        g = layout(create_dag(), node_separation=40)
        by_rank = {}
        for node in g.node_objects():
            by_rank.setdefault(node.rank, []).append(node)
        for nodes in by_rank.values():
            nodes.sort(key=lambda n: n.x)
            for left, right in zip(nodes, nodes[1:]):
                assert right.left - left.right >= 40 - 1e-6

    def test_tree_has_no_crossings(self):
        g = Graph()
        for i in range(1, 16):
            g.set_node(f"n{i}", width=30, height=20)
        for i in range(1, 8):
            g.set_edge(f"n{i}", f"n{2 * i}")
            g.set_edge(f"n{i}", f"n{2 * i + 1}")
        layout(g)
        assert edge_crossings(g) == 0

    def test_deterministic(self):
        first = layout(create_dag())
        second = layout(create_dag())
        assert snapshot(first) == snapshot(second)

    def test_empty_graph(self):
        g = layout(Graph())
        assert g.width == 0
        assert g.height == 0

    def test_single_node(self):
        g = Graph()
        g.set_node("a", width=30, height=20)
        layout(g)
        node = g.node("a")
        assert (node.x, node.y) == (pytest.approx(15), pytest.approx(10))
        assert (g.width, g.height) == (pytest.approx(30), pytest.approx(20))

    def test_disconnected_components_both_start_at_rank_zero(self):
        g = Graph()
        for v in "abcd":
            g.set_node(v, width=20, height=20)
        g.set_edge("a", "b")
        g.set_edge("c", "d")
        layout(g)
        assert g.node("a").rank == g.node("c").rank == 0
        assert overlapping_nodes(g) == []


class TestRankDirection:
    """Tests for the four rank directions."""

    def test_left_to_right(self):
        g = layout(create_chain(), rank_direction="LR")
        a, b = g.node("a"), g.node("b")
        assert b.x - a.x == pytest.approx(150)
        assert a.y == pytest.approx(b.y)
        assert (a.width, a.height) == (100, 50)

    def test_bottom_to_top(self):
        g = layout(create_chain(), rank_direction="BT")
        assert g.node("a").y - g.node("b").y == pytest.approx(100)
        assert g.node("c").top == pytest.approx(0)

    def test_right_to_left(self):
        g = layout(create_chain(), rank_direction="RL")
        assert g.node("a").x > g.node("b").x > g.node("c").x

    def test_long_form(self):
        g = layout(create_chain(), rank_direction="left-to-right")
        assert g.node("b").x > g.node("a").x

    def test_routes_follow_direction(self):
        g = layout(create_chain(), rank_direction="LR")
        edge = g.edge("a", "b")
        assert inside(edge.points[0], g.node("a"))
        assert inside(edge.points[-1], g.node("b"))


class TestOptions:
    """Tests for option handling."""

    def test_defaults(self):
        engine = LayeredLayout(create_chain())
        assert engine.node_separation == 50
        assert engine.edge_separation == 20
        assert engine.rank_separation == 50
        assert engine.rank_direction == "TB"
        assert engine.align == "UL"
        assert engine.balance is True
        assert engine.ranker == "network-simplex"
        assert engine.crossing_iterations == 24

    def test_graph_attributes_used(self):
        g = create_chain()
        g.set_graph(rankdir="LR", ranksep=10)
        engine = LayeredLayout(g)
        assert engine.rank_direction == "LR"
        assert engine.rank_separation == 10

    def test_keyword_overrides_graph_attribute(self):
        g = create_chain()
        g.set_graph(ranksep=10)
        assert LayeredLayout(g, rank_separation=30).rank_separation == 30

    def test_rank_separation_applied(self):
        g = layout(create_chain(), rank_separation=20)
        assert g.node("b").y - g.node("a").y == pytest.approx(70)

    def test_margins(self):
        g = layout(create_chain(), margin_x=10, margin_y=5)
        assert g.node("a").left == pytest.approx(10)
        assert g.node("a").top == pytest.approx(5)
        assert g.width == pytest.approx(120)
        assert g.height == pytest.approx(260)

    def test_options_recorded_on_graph(self):
        g = layout(create_chain(), rank_direction="lr")
        assert g.get_graph("rankdir") == "LR"
        assert g.get_graph("nodesep") == 50

    def test_align_case_insensitive(self):
        assert LayeredLayout(create_chain(), align="dr").align == "DR"

    @pytest.mark.parametrize("ranker", ["network-simplex", "tight-tree", "longest-path"])
    def test_every_ranker(self, ranker):
        g = layout(create_dag(), ranker=ranker)
        assert rank_violations(g) == []

    @pytest.mark.parametrize(
        "options",
        [
            {"node_separation": -1},
            {"rank_separation": -5},
            {"rank_direction": "diagonal"},
            {"align": "XX"},
            {"ranker": "random"},
            {"acyclicer": "dfs"},
            {"crossing_iterations": 0},
            {"margin_x": -1},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(InvalidOptionError):
            LayeredLayout(create_chain(), **options)

    def test_invalid_graph_attribute(self):
        g = create_chain()
        g.set_graph(rankdir="sideways")
        with pytest.raises(InvalidOptionError):
            LayeredLayout(g)

    def test_setter_validates(self):
        engine = LayeredLayout(create_chain())
        with pytest.raises(InvalidOptionError):
            engine.edge_separation = -3

    def test_rejects_non_graph(self):
        with pytest.raises(TypeError):
            LayeredLayout({"a": ["b"]})


class TestLifecycle:
    """Tests for events, validation and results."""

    def test_events(self):
        seen = []
        engine = LayeredLayout(
            create_chain(),
            on_start=lambda e: seen.append(("start", e["phase"])),
            on_tick=lambda e: seen.append(("tick", e["phase"])),
            on_end=lambda e: seen.append(("end", e["phase"])),
        )
        engine.run()
        assert seen == [
            ("start", None),
            ("tick", "acyclic"),
            ("tick", "rank"),
            ("tick", "order"),
            ("tick", "position"),
            ("tick", "route"),
            ("end", None),
        ]

    def test_event_payload_fields(self):
        seen = []
        LayeredLayout(create_chain(), on_tick=seen.append, on_end=seen.append).run()
        assert seen
        for event in seen:
            assert set(event) <= {"type", "phase"}
        assert set(Event.__annotations__) == {"type", "phase"}

    def test_on_by_name(self):
        seen = []
        engine = LayeredLayout(create_chain()).on("end", lambda e: seen.append(e["type"]))
        engine.run()
        assert seen == [EventType.end]

    def test_run_returns_self(self):
        engine = LayeredLayout(create_chain())
        assert engine.run() is engine

    def test_results_exposed(self):
        engine = LayeredLayout(create_chain()).run()
        assert engine.rank_bounds == (0, 2)
        assert engine.order_result.crossings == 0

    def test_inconsistent_graph_rejected(self):
        g = Graph(compound=True)
        g.set_node("p")
        g.set_node("a")
        g._parent["a"] = "p"
        with pytest.raises(CompoundGraphError):
            LayeredLayout(g).run()

    def test_node_data_untouched(self):
        g = create_chain()
        g.node("a").data = {"label": "A"}
        g.edge("a", "b").data = ["payload"]
        layout(g)
        assert g.node("a").data == {"label": "A"}
        assert g.edge("a", "b").data == ["payload"]

    def test_rerun_is_stable(self):
        g = layout(create_dag())
        before = snapshot(g)
        layout(g)
        assert snapshot(g) == before
