"""Tests for compound graph handling."""

import warnings

import pytest

from layered_layout import (
    Graph,
    GraphStructureWarning,
    containment_violations,
    layout,
    overlapping_nodes,
)
from layered_layout.layered.compound import (
    add_border_nodes,
    border_sides,
    container_ids,
    container_span,
    fit_containers,
    infer_container_sizes,
    leaf_descendant,
    nesting_depth,
    redirect_container_edges,
    remove_border_nodes,
    restore_container_edges,
)


def create_nested_graph():
    """
    Three levels of nesting with edges into and out of the containers.

    outer > middle > inner > {x, y}; middle also holds z and outer holds w.
    """
    g = Graph(compound=True, multigraph=True)
    for v in ["start", "outer", "middle", "inner", "x", "y", "z", "w", "end"]:
        g.set_node(v, width=60, height=40)
    g.set_parent("middle", "outer")
    g.set_parent("inner", "middle")
    g.set_parent("x", "inner")
    g.set_parent("y", "inner")
    g.set_parent("z", "middle")
    g.set_parent("w", "outer")
    g.set_edge("start", "x", "e0")
    g.set_edge("x", "y", "e1")
    g.set_edge("y", "z", "e2")
    g.set_edge("z", "w", "e3")
    g.set_edge("outer", "end", "e4")
    return g


def create_group(*members):
    g = Graph(compound=True, multigraph=True)
    g.set_node("group")
    for v in members:
        g.set_node(v, width=20, height=10)
        g.set_parent(v, "group")
    return g


class TestStructureHelpers:
    """Tests for container queries."""

    def test_container_ids(self):
        g = create_nested_graph()
        assert container_ids(g) == ["outer", "middle", "inner"]

    def test_container_ids_plain_graph(self):
        g = Graph()
        g.set_node("a")
        assert container_ids(g) == []

    def test_nesting_depth(self):
        g = create_nested_graph()
        assert nesting_depth(g, "x") == 3
        assert nesting_depth(g, "outer") == 0

    def test_leaf_descendant(self):
        g = create_nested_graph()
        assert leaf_descendant(g, "outer") == "x"
        assert leaf_descendant(g, "outer", last=True) == "w"
        assert leaf_descendant(g, "start") == "start"

    def test_container_span(self):
        g = create_group("a", "b")
        g.set_node("c")
        g.node("a").rank = 2
        g.node("b").rank = 5
        g.node("c").rank = 9
        assert container_span(g, "group") == (2, 5)

    def test_container_span_unranked(self):
        g = create_group("a")
        assert container_span(g, "group") is None


class TestBorderNodes:
    """Tests for per-rank container borders."""

    def test_one_pair_per_spanned_rank(self):
        g = create_group("a", "b")
        g.node("a").rank = 1
        g.node("b").rank = 3

        borders = add_border_nodes(g)

        assert len(borders) == 1
        border = borders[0]
        assert border.container == "group"
        assert len(border.left) == len(border.right) == 3
        for rank, (left, right) in enumerate(zip(border.left, border.right), start=1):
            for node_id in (left, right):
                node = g.node(node_id)
                assert node.rank == rank
                assert node.dummy
                assert node.width == 0
                assert g.parent(node_id) == "group"
        assert g.has_edge(border.left[0], border.left[1])
        assert g.has_edge(border.right[1], border.right[2])

    def test_nested_containers_get_own_borders(self):
        g = create_nested_graph()
        for rank, v in enumerate(["start", "x", "y", "z", "w", "end"]):
            g.node(v).rank = rank
        borders = {b.container: b for b in add_border_nodes(g)}
        assert [len(borders[c].left) for c in ["outer", "middle", "inner"]] == [4, 3, 2]

    def test_sides(self):
        g = create_group("a")
        g.node("a").rank = 0
        borders = add_border_nodes(g)
        sides = border_sides(borders)
        assert sides[borders[0].left[0]] == ("group", "left")
        assert sides[borders[0].right[0]] == ("group", "right")

    def test_ids_avoid_existing_nodes(self):
        g = create_group("_bl0")
        g.node("_bl0").rank = 0
        borders = add_border_nodes(g)
        assert "_bl0" not in borders[0].left + borders[0].right

    def test_remove_reports_extent_and_compacts_orders(self):
        g = create_group("a")
        g.set_node("x")
        g.node("a").rank = g.node("x").rank = 0
        borders = add_border_nodes(g)
        left, right = borders[0].left[0], borders[0].right[0]
        for order, (v, x) in enumerate([(left, 0), ("a", 40), (right, 80), ("x", 150)]):
            g.node(v).order = order
            g.node(v).x = x

        extents = remove_border_nodes(g, borders)

        assert extents == {"group": (0, 80)}
        assert not g.has_node(left)
        assert not g.has_node(right)
        assert g.children("group") == ["a"]
        assert (g.node("a").order, g.node("x").order) == (0, 1)


class TestSizing:
    """Tests for container sizing and fitting."""

    def test_infer_sizes_grow_only(self):
        g = create_group("a", "b")
        g.node("group").width = 500
        infer_container_sizes(g, node_separation=10, padding=5)
        assert g.node("group").width == 500
        assert g.node("group").height == 20

    def test_infer_sizes_from_children(self):
        g = create_group("a", "b")
        infer_container_sizes(g, node_separation=10, padding=5)
        assert g.node("group").width == 20 + 20 + 10 + 10

    def test_fit_keeps_minimum_size(self):
        g = create_group("a", "b")
        g.node("group").width = 300
        g.node("group").height = 200
        g.node("a").x, g.node("a").y = 0, 0
        g.node("b").x, g.node("b").y = 100, 50
        fit_containers(g, padding=10)
        group = g.node("group")
        assert (group.width, group.height) == (300, 200)
        assert (group.x, group.y) == (pytest.approx(50), pytest.approx(25))

    def test_fit_uses_border_extent(self):
        g = create_group("a")
        g.node("a").x, g.node("a").y = 50, 0
        fit_containers(g, padding=10, extents={"group": (0, 200)})
        group = g.node("group")
        assert group.left == pytest.approx(0)
        assert group.right == pytest.approx(200)
        assert group.top == pytest.approx(-15)

    def test_fit_wraps_children(self):
        g = create_group("a", "b")
        g.node("a").x, g.node("a").y = 0, 0
        g.node("b").x, g.node("b").y = 100, 50
        fit_containers(g, padding=10)
        group = g.node("group")
        assert group.left == pytest.approx(-20)
        assert group.right == pytest.approx(120)
        assert group.top == pytest.approx(-15)
        assert group.bottom == pytest.approx(65)
        assert group.rank is None


class TestRedirect:
    """Tests for moving edges off containers."""

    def test_redirect_and_restore(self):
        g = create_group("a", "b")
        g.set_node("src")
        g.set_node("dst")
        g.set_edge("src", "group", "in")
        g.set_edge("group", "dst", "out")

        redirects = redirect_container_edges(g)

        assert len(redirects) == 2
        assert g.has_edge("src", "a", "in")
        assert g.has_edge("b", "dst", "out")

        restore_container_edges(g, redirects)
        assert g.has_edge("src", "group", "in")
        assert g.has_edge("group", "dst", "out")

    def test_restore_keeps_reversal(self):
        g = create_group("a")
        g.set_node("src")
        edge = g.set_edge("src", "group", "in")
        redirects = redirect_container_edges(g)
        g._move_edge(edge, "a", "src")
        edge.reversed = True
        restore_container_edges(g, redirects)
        assert (edge.v, edge.w) == ("group", "src")


class TestCompoundLayout:
    """End-to-end tests on nested graphs."""

    def test_three_level_containment(self):
        g = create_nested_graph()
        layout(g, container_padding=30)
        assert containment_violations(g, padding=30) == []

    def test_containers_unranked(self):
        g = create_nested_graph()
        layout(g)
        for container in ["outer", "middle", "inner"]:
            assert g.node(container).rank is None
            assert g.node(container).order is None

    def test_leaves_do_not_overlap(self):
        g = create_nested_graph()
        layout(g)
        containers = set(container_ids(g))
        pairs = [
            (u, v) for u, v in overlapping_nodes(g) if u not in containers and v not in containers
        ]
        assert pairs == []

    def test_no_overlaps_at_any_level(self):
        g = create_nested_graph()
        layout(g)
        assert overlapping_nodes(g) == []

    def test_outside_node_kept_out_of_container(self):
        """A node ranked between two members of a container is placed beside it."""
        g = Graph(compound=True, multigraph=True)
        for v in ["G", "a", "x", "c"]:
            g.set_node(v, width=60, height=40)
        g.set_parent("a", "G")
        g.set_parent("c", "G")
        g.set_edge("a", "x", "e0")
        g.set_edge("x", "c", "e1")

        layout(g, container_padding=20)

        assert overlapping_nodes(g) == []
        assert containment_violations(g, padding=20) == []
        container, x = g.node("G"), g.node("x")
        assert x.left >= container.right or x.right <= container.left

    def test_sibling_containers_do_not_overlap(self):
        g = Graph(compound=True, multigraph=True)
        for v in ["left", "right", "a1", "a2", "b1", "b2", "top"]:
            g.set_node(v, width=40, height=30)
        for member, container in [("a1", "left"), ("a2", "left"), ("b1", "right"), ("b2", "right")]:
            g.set_parent(member, container)
        for i, (v, w) in enumerate(
            [("top", "a1"), ("top", "b1"), ("a1", "a2"), ("b1", "b2"), ("a1", "b2"), ("b1", "a2")]
        ):
            g.set_edge(v, w, f"e{i}")

        layout(g, container_padding=15)

        assert overlapping_nodes(g) == []
        assert containment_violations(g, padding=15) == []

    def test_long_edge_inside_container(self):
        g = create_group("a", "b", "c")
        g.set_node("x", width=20, height=10)
        g.set_edge("a", "b", "e0")
        g.set_edge("b", "c", "e1")
        g.set_edge("a", "c", "e2")
        g.set_edge("x", "b", "e3")
        layout(g, container_padding=10)
        assert overlapping_nodes(g) == []
        assert containment_violations(g, padding=10) == []

    def test_caller_size_is_a_minimum(self):
        g = create_group("a", "b")
        g.node("group").width = 900
        g.node("group").height = 700
        g.set_node("x", width=20, height=10)
        g.set_edge("a", "b", "e0")
        g.set_edge("b", "x", "e1")

        layout(g, container_padding=10)

        group = g.node("group")
        assert group.width >= 900 - 1e-6
        assert group.height >= 700 - 1e-6
        assert containment_violations(g, padding=10) == []
        assert overlapping_nodes(g) == []

    def test_caller_size_is_a_minimum_left_to_right(self):
        g = create_group("a", "b")
        g.node("group").width = 400
        g.node("group").height = 300
        g.set_edge("a", "b", "e0")
        layout(g, rank_direction="LR", container_padding=10)
        group = g.node("group")
        assert group.width >= 400 - 1e-6
        assert group.height >= 300 - 1e-6
        assert containment_violations(g, padding=10) == []

    def test_non_negative_coordinates(self):
        g = create_nested_graph()
        layout(g)
        for node in g.node_objects():
            assert node.left >= -1e-6
            assert node.top >= -1e-6
            assert node.right <= g.width + 1e-6
            assert node.bottom <= g.height + 1e-6

    def test_container_edge_keeps_endpoints(self):
        g = create_nested_graph()
        layout(g)
        edge = g.edge("outer", "end", "e4")
        assert edge is not None
        assert len(edge.points) >= 2

    def test_edge_into_own_container_warns(self):
        g = create_group("a")
        g.set_edge("group", "a", "inner")
        with pytest.warns(GraphStructureWarning):
            layout(g)
        assert len(g.edge("group", "a", "inner").points) == 4

    def test_empty_container_is_a_node(self):
        g = Graph(compound=True)
        g.set_node("lonely", width=30, height=30)
        g.set_node("a", width=30, height=30)
        g.set_edge("lonely", "a")
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            layout(g)
        assert g.node("lonely").rank == 0
        assert g.node("a").rank == 1
