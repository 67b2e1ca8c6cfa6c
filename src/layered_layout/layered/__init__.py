"""
Layered graph layout.

This module provides the layered layout driver and its phases:
- acyclic: Cycle removal by DFS back-edge reversal
- rank: Longest path, tight tree and network simplex ranking
- order: Dummy chains and barycenter crossing minimisation
- position: Four-alignment coordinate assignment
- compound: Container sizing, edge redirection and fitting
- routing: Polyline edge routes and label anchors
- LayeredLayout: Runs all phases on a Graph
"""

from .layout import GraphStructureWarning, LayeredLayout, layout
from .network_simplex import NetworkSimplex, RankingWarning
from .order import OrderResult, count_crossings
from .rank import assign_ranks, longest_path_ranks

__all__ = [
    "LayeredLayout",
    "layout",
    "GraphStructureWarning",
    "RankingWarning",
    "NetworkSimplex",
    "OrderResult",
    "assign_ranks",
    "longest_path_ranks",
    "count_crossings",
]
