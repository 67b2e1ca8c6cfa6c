"""
Input validation utilities for the layered layout engine.

Provides centralized validation functions for graphs, edges and layout
options. Raises descriptive exceptions on invalid input.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .graph import Graph


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidOptionError(ValidationError):
    """Raised when a layout option has an invalid value."""

    pass


class InvalidNodeError(ValidationError):
    """Raised when a node is malformed."""

    pass


class InvalidEdgeError(ValidationError):
    """Raised when an edge is malformed or references invalid nodes."""

    pass


class CompoundGraphError(ValidationError):
    """Raised when a compound-only operation is used on a plain graph."""

    pass


RANK_DIRECTIONS = ("TB", "BT", "LR", "RL")

_RANK_DIRECTION_ALIASES = {
    "top-to-bottom": "TB",
    "bottom-to-top": "BT",
    "left-to-right": "LR",
    "right-to-left": "RL",
}


def validate_non_negative(name: str, value: float) -> float:
    """
    Validate that a numeric option is a non-negative number.

    Args:
        name: Option name used in the error message
        value: Value to check

    Returns:
        The value as a float

    Raises:
        InvalidOptionError: If the value is negative or not a number
    """
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidOptionError(f"{name} must be a number, got {value!r}") from exc
    if math.isnan(result) or result < 0:
        raise InvalidOptionError(f"{name} must be >= 0, got {value!r}")
    return result


def validate_choice(name: str, value: str, choices: Iterable[str]) -> str:
    """
    Validate that an option is one of a fixed set of strings.

    Raises:
        InvalidOptionError: If value is not among choices
    """
    allowed = tuple(choices)
    if value not in allowed:
        raise InvalidOptionError(f"{name} must be one of {allowed}, got {value!r}")
    return value


def validate_rank_direction(value: str) -> str:
    """
    Normalize a rank direction to one of TB, BT, LR, RL.

    Accepts the short codes in any case as well as the long forms
    'top-to-bottom', 'bottom-to-top', 'left-to-right' and 'right-to-left'.

    Raises:
        InvalidOptionError: If the direction is not recognized
    """
    if isinstance(value, str):
        if value in _RANK_DIRECTION_ALIASES:
            return _RANK_DIRECTION_ALIASES[value]
        if value.upper() in RANK_DIRECTIONS:
            return value.upper()
    raise InvalidOptionError(
        f"rank_direction must be one of {RANK_DIRECTIONS} "
        f"or {tuple(_RANK_DIRECTION_ALIASES)}, got {value!r}"
    )


def validate_iterations(iterations: int) -> int:
    """
    Validate iteration count is positive.

    Raises:
        InvalidOptionError: If iterations < 1
    """
    if int(iterations) < 1:
        raise InvalidOptionError(f"iterations must be >= 1, got {iterations}")
    return int(iterations)


def validate_graph(graph: Graph, strict: bool = True) -> list[str]:
    """
    Check the structural invariants of a graph.

    Verifies that every edge references existing nodes and that the
    parent/children tables of a compound graph mirror each other.

    Args:
        graph: Graph to check
        strict: If True, raises on the first batch of issues. If False,
            returns the list of issues.

    Returns:
        List of issue descriptions

    Raises:
        InvalidEdgeError: If strict=True and an edge has a missing endpoint
        CompoundGraphError: If strict=True and the compound tables disagree
    """
    edge_issues: list[str] = []
    for edge in graph.edges():
        if not graph.has_node(edge.v):
            edge_issues.append(f"{edge!r}: source {edge.v!r} is not a node")
        if not graph.has_node(edge.w):
            edge_issues.append(f"{edge!r}: target {edge.w!r} is not a node")

    compound_issues: list[str] = []
    if graph.compound:
        for child in graph.nodes():
            parent = graph.parent(child)
            if parent is not None and child not in graph.children(parent):
                compound_issues.append(
                    f"Node {child!r}: parent {parent!r} does not list it as a child"
                )
        for parent in graph.nodes():
            for child in graph.children(parent):
                if graph.parent(child) != parent:
                    compound_issues.append(
                        f"Node {parent!r}: child {child!r} has parent {graph.parent(child)!r}"
                    )

    if strict and edge_issues:
        raise InvalidEdgeError("Invalid edges:\n" + "\n".join(edge_issues))
    if strict and compound_issues:
        raise CompoundGraphError("Inconsistent compound structure:\n" + "\n".join(compound_issues))

    return edge_issues + compound_issues


__all__ = [
    "ValidationError",
    "InvalidOptionError",
    "InvalidNodeError",
    "InvalidEdgeError",
    "CompoundGraphError",
    "RANK_DIRECTIONS",
    "validate_non_negative",
    "validate_choice",
    "validate_rank_direction",
    "validate_iterations",
    "validate_graph",
]
