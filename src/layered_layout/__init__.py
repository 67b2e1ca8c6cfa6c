"""
layered-layout: Layered graph layout for directed and compound graphs.

This package turns a directed graph, optionally with nested containers,
into a 2D drawing: node centres and sizes, routed edge polylines with
label anchors, and an overall bounding box.

Modules:
- graph: Mutable graph model (nodes, edges, compound structure)
- layered: The layout phases and the LayeredLayout driver
- preprocessing: Cycle detection, topological sort, connected components
- metrics: Layout quality checks
- validation: Exception hierarchy and validators
"""

__version__ = "0.1.0"

# Base classes for building layouts
from .base import (
    BaseLayout,
    StaticLayout,
)

# Graph model
from .graph import Graph

# Layered layout
from .layered import (
    GraphStructureWarning,
    LayeredLayout,
    OrderResult,
    RankingWarning,
    count_crossings,
    layout,
)

# Metrics for layout quality evaluation
from .metrics import (
    containment_violations,
    edge_crossings,
    edge_length_variance,
    layout_quality_summary,
    overlapping_nodes,
    rank_violations,
)

# Preprocessing utilities
from .preprocessing import (
    connected_components,
    detect_cycle,
    has_cycle,
    is_connected,
    topological_sort,
)

# Shared types for all phases
from .types import (
    Edge,
    EdgeKey,
    Event,
    EventType,
    Node,
    Point,
)

# Validation utilities
from .validation import (
    CompoundGraphError,
    InvalidEdgeError,
    InvalidNodeError,
    InvalidOptionError,
    ValidationError,
    validate_graph,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Node",
    "Edge",
    "EdgeKey",
    "Point",
    "EventType",
    "Event",
    # Graph model
    "Graph",
    # Base classes
    "BaseLayout",
    "StaticLayout",
    # Layered layout
    "LayeredLayout",
    "layout",
    "OrderResult",
    "count_crossings",
    "GraphStructureWarning",
    "RankingWarning",
    # Metrics
    "edge_crossings",
    "overlapping_nodes",
    "rank_violations",
    "containment_violations",
    "edge_length_variance",
    "layout_quality_summary",
    # Validation
    "ValidationError",
    "InvalidOptionError",
    "InvalidNodeError",
    "InvalidEdgeError",
    "CompoundGraphError",
    "validate_graph",
    # Preprocessing
    "detect_cycle",
    "has_cycle",
    "topological_sort",
    "connected_components",
    "is_connected",
]
