"""
Mutable graph model shared by every layout phase.

A Graph owns its nodes and edges and addresses them by identifier. The
in/out adjacency and the compound parent/children tables are derived
indexes that every mutation keeps in step, so queries never scan the
whole edge set.

Example:
    g = Graph(compound=True)
    g.set_node("a", width=100, height=50)
    g.set_node("b", width=100, height=50)
    g.set_node("group")
    g.set_parent("b", "group")
    g.set_edge("a", "b")
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

from .types import Edge, EdgeKey, Node
from .validation import CompoundGraphError, InvalidEdgeError, InvalidNodeError


class Graph:
    """
    Directed, optionally multi- and compound graph.

    Attributes:
        attrs: Graph-level attribute bag (layout parameters, caller data)
        width: Overall width of the laid out graph
        height: Overall height of the laid out graph
    """

    def __init__(
        self,
        *,
        directed: bool = True,
        multigraph: bool = False,
        compound: bool = False,
    ) -> None:
        """
        Create an empty graph.

        Args:
            directed: Whether edge direction is meaningful
            multigraph: Whether several named edges may join the same pair
            compound: Whether nodes may contain other nodes
        """
        self._directed = bool(directed)
        self._multigraph = bool(multigraph)
        self._compound = bool(compound)

        self.attrs: dict[str, Any] = {}
        self.width: float = 0.0
        self.height: float = 0.0

        self._nodes: dict[str, Node] = {}
        self._edges: dict[EdgeKey, Edge] = {}

        # Derived indexes: node id -> {edge key -> edge}
        self._out: dict[str, dict[EdgeKey, Edge]] = {}
        self._in: dict[str, dict[EdgeKey, Edge]] = {}

        # Compound structure
        self._parent: dict[str, str] = {}
        self._children: dict[str, dict[str, None]] = {}

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def directed(self) -> bool:
        return self._directed

    @property
    def multigraph(self) -> bool:
        return self._multigraph

    @property
    def compound(self) -> bool:
        return self._compound

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # -------------------------------------------------------------------------
    # Graph attributes
    # -------------------------------------------------------------------------

    def set_graph(self, **attrs: Any) -> Graph:
        """Merge attributes into the graph-level attribute bag."""
        self.attrs.update(attrs)
        return self

    def get_graph(self, key: str, default: Any = None) -> Any:
        """Read a graph-level attribute."""
        return self.attrs.get(key, default)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def set_node(
        self,
        node_id: str,
        *,
        width: float = 0.0,
        height: float = 0.0,
        data: Any = None,
    ) -> Node:
        """
        Add a node, or update the size and payload of an existing one.

        Raises:
            InvalidNodeError: If width or height is negative
        """
        if width < 0 or height < 0:
            raise InvalidNodeError(
                f"Node {node_id!r}: width and height must be >= 0, got {width}x{height}"
            )
        node = self._nodes.get(node_id)
        if node is None:
            node = Node(node_id, width, height, data)
            self._nodes[node_id] = node
            self._out[node_id] = {}
            self._in[node_id] = {}
        else:
            node.width = float(width)
            node.height = float(height)
            node.data = data
        return node

    def node(self, node_id: str) -> Optional[Node]:
        """Return the node with the given id, or None."""
        return self._nodes.get(node_id)

    get_node = node

    def _node(self, node_id: str) -> Node:
        """Return a node known to exist; raises KeyError otherwise."""
        return self._nodes[node_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def nodes(self) -> list[str]:
        """Node ids in insertion order."""
        return list(self._nodes)

    def node_objects(self) -> list[Node]:
        """Node objects in insertion order."""
        return list(self._nodes.values())

    def remove_node(self, node_id: str) -> None:
        """
        Remove a node, every edge touching it and its compound links.

        Children of a removed container move to the root level.
        """
        if node_id not in self._nodes:
            return
        for key in list(self._out[node_id]) + list(self._in[node_id]):
            edge = self._edges.get(key)
            if edge is not None:
                self._detach_edge(edge)
        if self._compound:
            self._detach_parent(node_id)
            for child in list(self._children.get(node_id, ())):
                del self._parent[child]
            self._children.pop(node_id, None)
        del self._out[node_id]
        del self._in[node_id]
        del self._nodes[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def _key(self, v: str, w: str, name: Optional[str]) -> EdgeKey:
        return EdgeKey(v, w, name if self._multigraph else None)

    def set_edge(
        self,
        v: str,
        w: str,
        name: Optional[str] = None,
        *,
        weight: float = 1.0,
        minlen: int = 1,
        width: float = 0.0,
        height: float = 0.0,
        data: Any = None,
    ) -> Optional[Edge]:
        """
        Add an edge, or update the attributes of an existing one.

        On a plain graph the name is ignored, so repeated calls for the
        same pair update the same edge. Edges naming a missing endpoint
        are ignored and None is returned.

        Raises:
            InvalidEdgeError: If weight <= 0 or minlen < 0
        """
        if weight <= 0:
            raise InvalidEdgeError(f"Edge {v!r} -> {w!r}: weight must be > 0, got {weight}")
        if minlen < 0:
            raise InvalidEdgeError(f"Edge {v!r} -> {w!r}: minlen must be >= 0, got {minlen}")
        if v not in self._nodes or w not in self._nodes:
            return None

        key = self._key(v, w, name)
        edge = self._edges.get(key)
        if edge is None:
            edge = Edge(key.v, key.w, key.name, weight, minlen, width, height, data)
            self._insert_edge(edge)
        else:
            edge.weight = float(weight)
            edge.minlen = int(minlen)
            edge.width = float(width)
            edge.height = float(height)
            edge.data = data
        return edge

    def edge(self, v: str, w: str, name: Optional[str] = None) -> Optional[Edge]:
        """Return the edge v -> w (with the given name), or None."""
        return self._edges.get(self._key(v, w, name))

    get_edge = edge

    def has_edge(self, v: str, w: str, name: Optional[str] = None) -> bool:
        return self._key(v, w, name) in self._edges

    def edges(self) -> list[Edge]:
        """Edges in insertion order."""
        return list(self._edges.values())

    def remove_edge(self, v: str, w: str, name: Optional[str] = None) -> None:
        edge = self._edges.get(self._key(v, w, name))
        if edge is not None:
            self._detach_edge(edge)

    def out_edges(self, v: str, w: Optional[str] = None) -> list[Edge]:
        """Edges leaving v, optionally restricted to those entering w."""
        edges = self._out.get(v)
        if not edges:
            return []
        if w is None:
            return list(edges.values())
        return [e for e in edges.values() if e.w == w]

    def in_edges(self, w: str, v: Optional[str] = None) -> list[Edge]:
        """Edges entering w, optionally restricted to those leaving v."""
        edges = self._in.get(w)
        if not edges:
            return []
        if v is None:
            return list(edges.values())
        return [e for e in edges.values() if e.v == v]

    def node_edges(self, v: str) -> list[Edge]:
        """All edges incident on v; a self-loop is listed once."""
        result = self.in_edges(v)
        result.extend(e for e in self.out_edges(v) if e.w != v)
        return result

    def successors(self, v: str) -> list[str]:
        return list(dict.fromkeys(e.w for e in self.out_edges(v)))

    def predecessors(self, v: str) -> list[str]:
        return list(dict.fromkeys(e.v for e in self.in_edges(v)))

    def neighbors(self, v: str) -> list[str]:
        return list(dict.fromkeys(self.predecessors(v) + self.successors(v)))

    def _insert_edge(self, edge: Edge) -> None:
        """Index an edge object under its current key."""
        key = edge.key
        self._edges[key] = edge
        self._out[edge.v][key] = edge
        self._in[edge.w][key] = edge

    def _detach_edge(self, edge: Edge) -> None:
        key = edge.key
        del self._edges[key]
        self._out[edge.v].pop(key, None)
        self._in[edge.w].pop(key, None)

    def _move_edge(self, edge: Edge, v: str, w: str) -> None:
        """
        Re-point an edge at new endpoints, keeping the same Edge object.

        The caller must make sure the new key is free; layout phases only
        move edges inside multigraphs whose edge names are unique.
        """
        self._detach_edge(edge)
        edge.v = v
        edge.w = w
        self._insert_edge(edge)

    # -------------------------------------------------------------------------
    # Compound structure
    # -------------------------------------------------------------------------

    def set_parent(self, child: str, parent: Optional[str] = None) -> Graph:
        """
        Nest child inside parent, or move it to the root level if parent is None.

        Raises:
            CompoundGraphError: If the graph is not compound, or the move
                would make a node its own ancestor
        """
        if not self._compound:
            raise CompoundGraphError("Cannot set parent in a non-compound graph")
        if child not in self._nodes:
            return self
        if parent is not None:
            if parent not in self._nodes:
                return self
            ancestor: Optional[str] = parent
            while ancestor is not None:
                if ancestor == child:
                    raise CompoundGraphError(
                        f"Setting {parent!r} as parent of {child!r} would create a cycle"
                    )
                ancestor = self._parent.get(ancestor)

        self._detach_parent(child)
        if parent is not None:
            self._parent[child] = parent
            self._children.setdefault(parent, {})[child] = None
        return self

    def _detach_parent(self, child: str) -> None:
        old = self._parent.pop(child, None)
        if old is not None:
            siblings = self._children.get(old)
            if siblings is not None:
                siblings.pop(child, None)
                if not siblings:
                    del self._children[old]

    def parent(self, node_id: str) -> Optional[str]:
        """Return the container of a node, or None at the root level."""
        return self._parent.get(node_id)

    def children(self, node_id: Optional[str] = None) -> list[str]:
        """
        Return the direct children of a node.

        With no argument, returns the root-level nodes.
        """
        if node_id is None:
            return [v for v in self._nodes if v not in self._parent]
        return list(self._children.get(node_id, ()))

    def is_container(self, node_id: str) -> bool:
        return bool(self._children.get(node_id))

    def ancestors(self, node_id: str) -> list[str]:
        """Containers enclosing a node, innermost first."""
        result: list[str] = []
        parent = self._parent.get(node_id)
        while parent is not None:
            result.append(parent)
            parent = self._parent.get(parent)
        return result

    # -------------------------------------------------------------------------
    # Rank bounds
    # -------------------------------------------------------------------------

    def rank_bounds(self) -> tuple[int, int]:
        """Minimum and maximum rank over ranked nodes ((0, 0) if none)."""
        ranks = [n.rank for n in self._nodes.values() if n.rank is not None]
        if not ranks:
            return (0, 0)
        return (min(ranks), max(ranks))

    @property
    def min_rank(self) -> int:
        return self.rank_bounds()[0]

    @property
    def max_rank(self) -> int:
        return self.rank_bounds()[1]

    def __repr__(self) -> str:
        flags = []
        if self._multigraph:
            flags.append("multigraph")
        if self._compound:
            flags.append("compound")
        suffix = f", {', '.join(flags)}" if flags else ""
        return f"Graph(nodes={len(self._nodes)}, edges={len(self._edges)}{suffix})"


__all__ = ["Graph"]
