"""
Base classes for graph layout algorithms.

This module provides abstract base classes that define the common interface
and shared functionality for layout algorithms operating on a Graph:

- BaseLayout: Abstract base with event system and graph management
- StaticLayout: For single-pass layouts run as a sequence of phases
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .graph import Graph
from .types import Event, EventType
from .validation import validate_graph


class BaseLayout(ABC):
    """
    Abstract base class for all layout algorithms.

    Provides shared infrastructure:
    - Event system (start/tick/end events)
    - Graph ownership via a type-checked property
    - Structural validation

    Example:
        layout = SomeLayout(graph)
        layout.run()

        # Results are written onto the graph's nodes and edges
        for node in graph.node_objects():
            print(f"Node {node.id}: ({node.x}, {node.y})")
    """

    def __init__(
        self,
        graph: Graph,
        *,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize layout with a graph and optional callbacks.

        Args:
            graph: Graph to lay out; results are written back onto it
            on_start: Callback for start event
            on_tick: Callback for tick event (fired after each phase)
            on_end: Callback for end event

        Raises:
            TypeError: If graph is not a Graph
        """
        self._graph: Graph
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}

        self.graph = graph

        # Register event callbacks
        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def graph(self) -> Graph:
        """Get the graph being laid out."""
        return self._graph

    @graph.setter
    def graph(self, value: Graph) -> None:
        if not isinstance(value, Graph):
            raise TypeError(f"graph must be a Graph, got {type(value).__name__}")
        self._graph = value

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """
        Trigger an event, calling the registered callback.

        Args:
            event: Event payload with type and optional data
        """
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Validate the graph structure.

        Checks that every edge references existing nodes and that the
        compound tables are consistent. Called automatically by run() but
        can be called early for fail-fast behavior.

        Returns:
            self (for chaining)

        Raises:
            InvalidEdgeError: If an edge references a missing node.
            CompoundGraphError: If parent/children links disagree.
        """
        validate_graph(self._graph, strict=True)
        return self

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout algorithm.

        Returns:
            self (for chaining)
        """
        pass


class StaticLayout(BaseLayout):
    """
    Base class for single-pass layout algorithms.

    These layouts compute positions in one pass without iteration. A tick
    event is fired after each phase via _phase_done().

    Example:
        layout = LayeredLayout(graph, rank_direction="LR")
        layout.run()
    """

    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout algorithm.

        Fires start event, computes layout, fires end event.

        Args:
            **kwargs: Additional arguments passed to _compute()

        Returns:
            self (for chaining)
        """
        self.validate()
        self.trigger({"type": EventType.start, "phase": None})

        # Subclasses implement _compute()
        self._compute(**kwargs)

        self.trigger({"type": EventType.end, "phase": None})
        return self

    def _phase_done(self, phase: str) -> None:
        """Fire a tick event naming the phase that just completed."""
        self.trigger({"type": EventType.tick, "phase": phase})

    @abstractmethod
    def _compute(self, **kwargs: Any) -> None:
        """
        Compute node positions and edge routes.

        Subclasses must implement this to perform the actual layout computation.
        """
        pass


__all__ = [
    "BaseLayout",
    "StaticLayout",
]
