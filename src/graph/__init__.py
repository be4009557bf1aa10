"""Graph module for the depends-on model and cycle detection.

This module provides the arena-backed dependency graph, Tarjan-based cycle
detection and a non-raising validator with visualization support.
"""

from src.graph.cycles import CycleDetector
from src.graph.dependency_graph import DependencyGraph, Node, NodeHandle, UnknownNodeError
from src.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "CycleDetector",
    "DependencyGraph",
    "GraphValidator",
    "Node",
    "NodeHandle",
    "UnknownNodeError",
    "ValidationReport",
]
