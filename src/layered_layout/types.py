"""
Common types for the layered layout engine.

This module provides the fundamental types shared by the graph model and
every layout phase:
- Point: Immutable (x, y) coordinate pair
- EdgeKey: Composite edge identity (source, target, name)
- Node: Graph vertex with size, position, rank and order
- Edge: Directed connection with weight, minimum length and route
- EventType: Layout lifecycle events
- Event: Event payload for callbacks
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, NamedTuple, Optional, TypedDict


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Layout computation has begun
    - tick: Fired once after each layout phase completes
    - end: Layout has finished and results are written back
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    phase: Optional[str]


@dataclass(frozen=True)
class Point:
    """An (x, y) coordinate pair."""

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> Point:
        """Return a copy moved by (dx, dy)."""
        return Point(self.x + dx, self.y + dy)


class EdgeKey(NamedTuple):
    """Identity of an edge inside a graph."""

    v: str
    w: str
    name: Optional[str] = None


class Node:
    """
    Graph node with size, position and layering state.

    Attributes:
        id: Identifier, unique within the owning graph
        width: Node width (non-negative)
        height: Node height (non-negative)
        x: X coordinate of the center (set by layout)
        y: Y coordinate of the center (set by layout)
        rank: Layer index, or None for containers and unranked nodes
        order: Position within the rank, or None when unranked
        dummy: True for synthetic nodes created during ordering
        data: Opaque payload carried through layout untouched
    """

    def __init__(
        self,
        id: str,
        width: float = 0.0,
        height: float = 0.0,
        data: Any = None,
    ) -> None:
        self.id = id
        self.width: float = float(width)
        self.height: float = float(height)
        self.x: float = 0.0
        self.y: float = 0.0
        self.rank: Optional[int] = None
        self.order: Optional[int] = None
        self.dummy: bool = False
        self.data = data

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width / 2

    @property
    def top(self) -> float:
        return self.y - self.height / 2

    @property
    def bottom(self) -> float:
        return self.y + self.height / 2

    def __repr__(self) -> str:
        return f"Node(id={self.id!r}, x={self.x:.2f}, y={self.y:.2f}, rank={self.rank})"


class Edge:
    """
    Directed edge between two nodes.

    Attributes:
        v: Source node id
        w: Target node id
        name: Disambiguating name for multigraphs (None otherwise)
        weight: Importance of keeping the edge short and straight (> 0)
        minlen: Minimum rank difference between the endpoints (>= 0)
        width: Label width
        height: Label height
        reversed: True while the edge is flipped to break a cycle
        points: Routed polyline (empty until routed)
        label_pos: Label anchor (None until routed)
        data: Opaque payload carried through layout untouched
    """

    def __init__(
        self,
        v: str,
        w: str,
        name: Optional[str] = None,
        weight: float = 1.0,
        minlen: int = 1,
        width: float = 0.0,
        height: float = 0.0,
        data: Any = None,
    ) -> None:
        self.v = v
        self.w = w
        self.name = name
        self.weight: float = float(weight)
        self.minlen: int = int(minlen)
        self.width: float = float(width)
        self.height: float = float(height)
        self.reversed: bool = False
        self.points: list[Point] = []
        self.label_pos: Optional[Point] = None
        self.data = data

    @property
    def key(self) -> EdgeKey:
        """Composite identity of this edge."""
        return EdgeKey(self.v, self.w, self.name)

    @property
    def is_self_loop(self) -> bool:
        return self.v == self.w

    def __repr__(self) -> str:
        suffix = f"[{self.name}]" if self.name is not None else ""
        return f"Edge({self.v} -> {self.w}{suffix})"


__all__ = [
    "EventType",
    "Event",
    "Point",
    "EdgeKey",
    "Node",
    "Edge",
]
