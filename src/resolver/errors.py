"""Resolution errors and cycle report formatting.

A failed resolution raises CyclicDependencyError once, carrying every cycle
in the graph so that all offending relationships can be fixed in one pass,
along with every component that cannot load because it depends on a cycle.
"""

from collections.abc import Sequence
from typing import Any

CYCLE_REPORT_HEADER = "Graph is cyclic! Cycles:"
BLOCKED_REPORT_HEADER = "Blocked by cycles:"


def format_cycles(
    cycles: Sequence[Sequence[Any]],
    blocked: Sequence[tuple[Any, Sequence[Any]]] = (),
) -> str:
    """Render a cycle list, and optionally the blocked components, as a diagnostic.

    Example:
        >>> print(format_cycles([["A", "B", "C"], ["D"]]))
        Graph is cyclic! Cycles:
        [A B C ]
        [D ]
        >>> print(format_cycles([["A", "B"]], [("X", ["A"])]))
        Graph is cyclic! Cycles:
        [A B ]
        Blocked by cycles:
        X <- [A ]
    """
    lines = [CYCLE_REPORT_HEADER]
    lines.extend(_bracketed(cycle) for cycle in cycles)
    if blocked:
        lines.append(BLOCKED_REPORT_HEADER)
        lines.extend(f"{payload} <- {_bracketed(deps)}" for payload, deps in blocked)
    return "\n".join(lines)


def _bracketed(payloads: Sequence[Any]) -> str:
    return "[" + "".join(f"{payload} " for payload in payloads) + "]"


class ResolutionError(Exception):
    """Base exception for load-order resolution failures."""

    def __init__(self, message: str):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the resolution error
        """
        super().__init__(message)
        self.message = message


class CyclicDependencyError(ResolutionError):
    """Exception raised when no load order exists because of cycles.

    Attributes:
        cycles: Every cycle in the graph, each an ordered list of payloads
        blocked: Components on no cycle that still cannot load, each paired
            with its direct dependencies that cannot load, in insertion order
        report: Preformatted diagnostic string
    """

    def __init__(
        self,
        cycles: Sequence[Sequence[Any]],
        blocked: Sequence[tuple[Any, Sequence[Any]]] = (),
    ):
        """Initialize the exception from the detected cycles.

        Args:
            cycles: Every detected cycle as a sequence of payloads
            blocked: (payload, blocking dependency payloads) pairs
        """
        self.cycles = [list(cycle) for cycle in cycles]
        self.blocked = [(payload, list(deps)) for payload, deps in blocked]
        self.report = format_cycles(self.cycles, self.blocked)
        super().__init__(self.report)


class GraphTooLargeError(ResolutionError):
    """Exception raised when a graph exceeds the configured size bound."""

    def __init__(self, node_count: int, max_nodes: int):
        """Initialize the exception.

        Args:
            node_count: Number of nodes in the rejected graph
            max_nodes: Configured upper bound
        """
        self.node_count = node_count
        self.max_nodes = max_nodes
        super().__init__(f"Graph has {node_count} nodes, exceeding the limit of {max_nodes}")
