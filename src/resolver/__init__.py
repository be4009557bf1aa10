"""Resolver module for computing component load orders.

This module contains the LoadOrderResolver and the errors it raises when a
graph cannot be ordered.
"""

from src.resolver.errors import (
    CyclicDependencyError,
    GraphTooLargeError,
    ResolutionError,
    format_cycles,
)
from src.resolver.load_order import (
    LoadOrderResolver,
    ResolutionState,
    ResolutionStrategy,
    resolve_load_order,
)

__all__ = [
    "CyclicDependencyError",
    "GraphTooLargeError",
    "LoadOrderResolver",
    "ResolutionError",
    "ResolutionState",
    "ResolutionStrategy",
    "format_cycles",
    "resolve_load_order",
]
