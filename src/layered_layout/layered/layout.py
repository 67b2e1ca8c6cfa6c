"""
Layered (Sugiyama-style) layout for directed and compound graphs.

Based on the framework from:
"A Technique for Drawing Directed Graphs"
by Gansner, Koutsofios, North and Vo (1993)

The layout runs these phases on an internal copy of the graph:
1. Compound pre-processing (edge redirection)
2. Rank direction normalisation and container size inference
3. Cycle removal
4. Rank assignment
5. Container border nodes and crossing minimisation
6. Coordinate assignment, after which border nodes are removed
7. Edge routing
8. Compound post-processing, direction undo, cycle restore, translation

Results are written back onto the caller's nodes and edges.
"""

from __future__ import annotations

import warnings
from typing import Any, Callable, Optional

from ..base import StaticLayout
from ..graph import Graph
from ..types import Edge, Event
from ..validation import (
    validate_choice,
    validate_iterations,
    validate_non_negative,
    validate_rank_direction,
)
from . import acyclic, coordinates
from .acyclic import ACYCLICERS
from .compound import (
    ContainerBorder,
    Redirect,
    add_border_nodes,
    fit_containers,
    infer_container_sizes,
    redirect_container_edges,
    remove_border_nodes,
    restore_container_edges,
)
from .order import DEFAULT_ITERATIONS, OrderResult, order
from .position import ALIGNMENTS, position
from .rank import RANKERS, assign_ranks
from .routing import route_edges


class GraphStructureWarning(UserWarning):
    """Warning issued when graph structure doesn't match algorithm assumptions."""

    pass


# Option name -> graph attribute consulted when the option is not given
_GRAPH_ATTRS = {
    "node_separation": "nodesep",
    "edge_separation": "edgesep",
    "rank_separation": "ranksep",
    "rank_direction": "rankdir",
    "align": "align",
    "ranker": "ranker",
    "acyclicer": "acyclicer",
    "margin_x": "marginx",
    "margin_y": "marginy",
}

_DEFAULTS: dict[str, Any] = {
    "node_separation": 50.0,
    "edge_separation": 20.0,
    "rank_separation": 50.0,
    "rank_direction": "TB",
    "align": "UL",
    "balance": True,
    "ranker": "network-simplex",
    "acyclicer": "greedy",
    "container_padding": 30.0,
    "crossing_iterations": DEFAULT_ITERATIONS,
    "margin_x": 0.0,
    "margin_y": 0.0,
}


class LayeredLayout(StaticLayout):
    """
    Layered layout for directed graphs, with support for nested containers.

    Places nodes in ranks so that edges point in the rank direction,
    orders each rank to reduce crossings, assigns compact coordinates and
    routes every edge as a polyline with a label anchor.

    Options not passed to the constructor are read from the graph's
    attributes (nodesep, edgesep, ranksep, rankdir, align, ranker,
    acyclicer, marginx, marginy) before falling back to defaults.

    Example:
        g = Graph()
        for v in "abc":
            g.set_node(v, width=100, height=50)
        g.set_edge("a", "b")
        g.set_edge("b", "c")

        layout = LayeredLayout(g, rank_direction="LR")
        layout.run()
        print(g.node("b").x, g.width)
    """

    def __init__(
        self,
        graph: Graph,
        *,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        # LayeredLayout-specific parameters
        node_separation: Optional[float] = None,
        edge_separation: Optional[float] = None,
        rank_separation: Optional[float] = None,
        rank_direction: Optional[str] = None,
        align: Optional[str] = None,
        balance: Optional[bool] = None,
        ranker: Optional[str] = None,
        acyclicer: Optional[str] = None,
        container_padding: Optional[float] = None,
        crossing_iterations: Optional[int] = None,
        margin_x: Optional[float] = None,
        margin_y: Optional[float] = None,
    ) -> None:
        """
        Initialize layered layout.

        Args:
            graph: Graph to lay out
            on_start: Callback for start event
            on_tick: Callback fired after each phase (event "phase" names it)
            on_end: Callback for end event
            node_separation: Gap between neighbouring nodes in a rank.
            edge_separation: Gap between edges sharing their endpoints.
            rank_separation: Gap between consecutive ranks.
            rank_direction: 'TB', 'BT', 'LR' or 'RL' (or the long forms
                'top-to-bottom', 'bottom-to-top', 'left-to-right', 'right-to-left').
            align: Alignment used when balance is False: 'UL', 'UR', 'DL' or 'DR'.
            balance: Average the four alignments.
            ranker: 'network-simplex', 'tight-tree' or 'longest-path'.
            acyclicer: Cycle removal strategy; only 'greedy' is available.
            container_padding: Space between a container and its children.
            crossing_iterations: Number of barycenter sweeps.
            margin_x: Space left and right of the drawing.
            margin_y: Space above and below the drawing.

        Raises:
            TypeError: If graph is not a Graph
            InvalidOptionError: If any option is out of range
        """
        super().__init__(graph, on_start=on_start, on_tick=on_tick, on_end=on_end)

        given = {
            "node_separation": node_separation,
            "edge_separation": edge_separation,
            "rank_separation": rank_separation,
            "rank_direction": rank_direction,
            "align": align,
            "balance": balance,
            "ranker": ranker,
            "acyclicer": acyclicer,
            "container_padding": container_padding,
            "crossing_iterations": crossing_iterations,
            "margin_x": margin_x,
            "margin_y": margin_y,
        }
        for name, value in given.items():
            if value is None and name in _GRAPH_ATTRS:
                value = graph.get_graph(_GRAPH_ATTRS[name])
            if value is None:
                value = _DEFAULTS[name]
            # Assign through the validating property
            setattr(self, name, value)

        # Results of the last run
        self._order_result: Optional[OrderResult] = None
        self._rank_bounds: tuple[int, int] = (0, 0)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def node_separation(self) -> float:
        """Get gap between neighbouring nodes in a rank."""
        return self._node_separation

    @node_separation.setter
    def node_separation(self, value: float) -> None:
        self._node_separation = validate_non_negative("node_separation", value)

    @property
    def edge_separation(self) -> float:
        """Get gap between edges sharing their endpoints."""
        return self._edge_separation

    @edge_separation.setter
    def edge_separation(self, value: float) -> None:
        self._edge_separation = validate_non_negative("edge_separation", value)

    @property
    def rank_separation(self) -> float:
        """Get gap between consecutive ranks."""
        return self._rank_separation

    @rank_separation.setter
    def rank_separation(self, value: float) -> None:
        self._rank_separation = validate_non_negative("rank_separation", value)

    @property
    def rank_direction(self) -> str:
        """Get rank direction as one of TB, BT, LR, RL."""
        return self._rank_direction

    @rank_direction.setter
    def rank_direction(self, value: str) -> None:
        """Set rank direction; long forms and lowercase are normalized."""
        self._rank_direction = validate_rank_direction(value)

    @property
    def align(self) -> str:
        """Get alignment used when balance is off."""
        return self._align

    @align.setter
    def align(self, value: str) -> None:
        if isinstance(value, str):
            value = value.upper()
        self._align = validate_choice("align", value, ALIGNMENTS)

    @property
    def balance(self) -> bool:
        """Get whether the four alignments are averaged."""
        return self._balance

    @balance.setter
    def balance(self, value: bool) -> None:
        self._balance = bool(value)

    @property
    def ranker(self) -> str:
        """Get rank assignment algorithm."""
        return self._ranker

    @ranker.setter
    def ranker(self, value: str) -> None:
        self._ranker = validate_choice("ranker", value, RANKERS)

    @property
    def acyclicer(self) -> str:
        """Get cycle removal strategy."""
        return self._acyclicer

    @acyclicer.setter
    def acyclicer(self, value: str) -> None:
        self._acyclicer = validate_choice("acyclicer", value, ACYCLICERS)

    @property
    def container_padding(self) -> float:
        """Get space between a container and its children."""
        return self._container_padding

    @container_padding.setter
    def container_padding(self, value: float) -> None:
        self._container_padding = validate_non_negative("container_padding", value)

    @property
    def crossing_iterations(self) -> int:
        """Get number of crossing minimization sweeps."""
        return self._crossing_iterations

    @crossing_iterations.setter
    def crossing_iterations(self, value: int) -> None:
        self._crossing_iterations = validate_iterations(value)

    @property
    def margin_x(self) -> float:
        return self._margin_x

    @margin_x.setter
    def margin_x(self, value: float) -> None:
        self._margin_x = validate_non_negative("margin_x", value)

    @property
    def margin_y(self) -> float:
        return self._margin_y

    @margin_y.setter
    def margin_y(self, value: float) -> None:
        self._margin_y = validate_non_negative("margin_y", value)

    @property
    def order_result(self) -> Optional[OrderResult]:
        """Crossing counts from the last run, or None before run()."""
        return self._order_result

    @property
    def rank_bounds(self) -> tuple[int, int]:
        """(min_rank, max_rank) from the last run."""
        return self._rank_bounds

    # -------------------------------------------------------------------------
    # Layout Graph
    # -------------------------------------------------------------------------

    def _build_layout_graph(self) -> tuple[Graph, list[tuple[Edge, Edge]]]:
        """
        Copy the caller's graph into a multigraph with unique edge names.

        Returns:
            (layout graph, [(layout edge, caller edge), ...])
        """
        source = self._graph
        copy = Graph(multigraph=True, compound=source.compound)
        for node in source.node_objects():
            copy.set_node(node.id, width=node.width, height=node.height)
        if source.compound:
            for v in source.nodes():
                parent = source.parent(v)
                if parent is not None:
                    copy.set_parent(v, parent)

        pairs: list[tuple[Edge, Edge]] = []
        for i, edge in enumerate(source.edges()):
            copied = copy.set_edge(
                edge.v,
                edge.w,
                f"e{i}",
                weight=edge.weight,
                minlen=edge.minlen,
                width=edge.width,
                height=edge.height,
            )
            assert copied is not None
            pairs.append((copied, edge))
        return copy, pairs

    def _write_back(self, layout_graph: Graph, pairs: list[tuple[Edge, Edge]]) -> None:
        for node in self._graph.node_objects():
            laid_out = layout_graph.node(node.id)
            assert laid_out is not None
            node.x = laid_out.x
            node.y = laid_out.y
            node.width = laid_out.width
            node.height = laid_out.height
            node.rank = laid_out.rank
            node.order = laid_out.order

        for laid_out_edge, edge in pairs:
            edge.points = list(laid_out_edge.points)
            edge.label_pos = laid_out_edge.label_pos
            edge.reversed = False

        self._graph.width = layout_graph.width
        self._graph.height = layout_graph.height
        self._graph.set_graph(
            nodesep=self._node_separation,
            edgesep=self._edge_separation,
            ranksep=self._rank_separation,
            rankdir=self._rank_direction,
            align=self._align,
            ranker=self._ranker,
            acyclicer=self._acyclicer,
            marginx=self._margin_x,
            marginy=self._margin_y,
        )

    # -------------------------------------------------------------------------
    # Translation
    # -------------------------------------------------------------------------

    def _translate(self, graph: Graph) -> None:
        """Move the drawing so its top-left corner sits at the margins."""
        xs: list[float] = []
        ys: list[float] = []
        for node in graph.node_objects():
            xs.extend((node.left, node.right))
            ys.extend((node.top, node.bottom))
        for edge in graph.edges():
            for p in edge.points:
                xs.append(p.x)
                ys.append(p.y)
            if edge.label_pos is not None:
                xs.extend((edge.label_pos.x - edge.width / 2, edge.label_pos.x + edge.width / 2))
                ys.extend((edge.label_pos.y - edge.height / 2, edge.label_pos.y + edge.height / 2))

        if not xs:
            graph.width = 0.0
            graph.height = 0.0
            return

        dx = self._margin_x - min(xs)
        dy = self._margin_y - min(ys)
        for node in graph.node_objects():
            node.x += dx
            node.y += dy
        for edge in graph.edges():
            edge.points = [p.translate(dx, dy) for p in edge.points]
            if edge.label_pos is not None:
                edge.label_pos = edge.label_pos.translate(dx, dy)

        graph.width = max(xs) - min(xs) + 2 * self._margin_x
        graph.height = max(ys) - min(ys) + 2 * self._margin_y

    # -------------------------------------------------------------------------
    # Main Algorithm
    # -------------------------------------------------------------------------

    def _compute(self, **kwargs: Any) -> None:
        """Compute layered layout."""
        g, pairs = self._build_layout_graph()

        redirects: list[Redirect] = []
        if g.compound:
            redirects = redirect_container_edges(g)
            collapsed = [r.edge for r in redirects if r.edge.is_self_loop]
            if collapsed:
                warnings.warn(
                    f"{len(collapsed)} edge(s) between a container and its own descendant "
                    "collapse onto a single node and are drawn as self-loops.",
                    GraphStructureWarning,
                    stacklevel=3,
                )
        coordinates.adjust(g, self._rank_direction)
        if g.compound:
            infer_container_sizes(g, self._node_separation, self._container_padding)

        # Phase 1: Cycle removal
        acyclic.make_acyclic(g, self._acyclicer)
        self._phase_done("acyclic")

        # Phase 2: Rank assignment
        self._rank_bounds = assign_ranks(g, self._ranker)
        self._phase_done("rank")

        # Phase 3: Crossing minimization
        borders: list[ContainerBorder] = add_border_nodes(g) if g.compound else []
        self._order_result = order(g, self._crossing_iterations, borders)
        self._phase_done("order")

        # Phase 4: Coordinate assignment
        rank_positions = position(
            g,
            node_separation=self._node_separation,
            rank_separation=self._rank_separation,
            padding=self._container_padding if g.compound else 0.0,
            align=self._align,
            balance=self._balance,
            borders=borders,
        )
        extents = remove_border_nodes(g, borders)
        self._phase_done("position")

        # Phase 5: Edge routing
        route_edges(
            g,
            rank_positions,
            rank_separation=self._rank_separation,
            edge_separation=self._edge_separation,
        )
        self._phase_done("route")

        if g.compound:
            fit_containers(g, self._container_padding, extents)
            restore_container_edges(g, redirects)
        coordinates.undo(g, self._rank_direction)
        acyclic.undo(g)
        self._translate(g)

        self._write_back(g, pairs)


def layout(graph: Graph, **options: Any) -> Graph:
    """
    Lay out a graph in place with LayeredLayout.

    Args:
        graph: Graph to lay out
        **options: Any LayeredLayout keyword argument

    Returns:
        The same graph, with positions, routes and dimensions set
    """
    LayeredLayout(graph, **options).run()
    return graph


__all__ = ["LayeredLayout", "GraphStructureWarning", "layout"]
