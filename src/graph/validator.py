"""Graph validation with cycle reporting and visualization.

This module inspects a dependency graph without resolving it: it reports
cycles, the components those cycles block, self-dependent components and
isolated components, and renders the
graph as Mermaid or Graphviz DOT with cycle members highlighted.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from src.graph.cycles import CycleDetector

if TYPE_CHECKING:
    from src.graph.dependency_graph import DependencyGraph, NodeHandle

logger = structlog.get_logger(__name__)

_MERMAID_UNSAFE = re.compile(r"[^0-9A-Za-z_]")


@dataclass
class ValidationReport:
    """Report containing validation results for a dependency graph.

    Attributes:
        is_valid: Whether the graph can be resolved into a load order
        errors: List of error messages (critical issues)
        warnings: List of warning messages (potential issues)
        cycles: Detected cycles, each an ordered list of payloads
        self_dependent: Payloads of components that depend on themselves
        isolated: Payloads of components with no edges in either direction
        blocked: Components on no cycle that cannot load because they depend
            on one, each paired with its direct dependencies that cannot load
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[Any]] = field(default_factory=list)
    self_dependent: list[Any] = field(default_factory=list)
    isolated: list[Any] = field(default_factory=list)
    blocked: list[tuple[Any, list[Any]]] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = []
        lines.append(f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}")
        lines.append(f"Errors: {len(self.errors)}")
        lines.append(f"Warnings: {len(self.warnings)}")
        lines.append(f"Cycles: {len(self.cycles)}")
        lines.append(f"Blocked Components: {len(self.blocked)}")
        lines.append(f"Isolated Components: {len(self.isolated)}")

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                lines.append(f"  {i}. {_cycle_path(cycle)}")

        if self.blocked:
            lines.append("\nBlocked Components:")
            for payload, blocking in self.blocked:
                lines.append(f"  - {payload} <- {', '.join(str(dep) for dep in blocking)}")

        return "\n".join(lines)


def _cycle_path(cycle: list[Any]) -> str:
    # Close the loop so "a -> b -> a" reads as a cycle.
    return " -> ".join(str(payload) for payload in [*cycle, cycle[0]])


class GraphValidator:
    """Validator for dependency graphs with detailed error reporting.

    This class provides:
    - Cycle detection covering every cycle, not just the first one found
    - Components blocked by a cycle they depend on
    - Self-dependency and isolated component reporting
    - Graph visualization generation
    """

    def __init__(self, detector: CycleDetector | None = None):
        """Initialize the graph validator.

        Args:
            detector: Cycle detector to use; a new one is created if omitted
        """
        self._detector = detector or CycleDetector()

    def validate(self, graph: "DependencyGraph") -> ValidationReport:
        """Validate a dependency graph and generate a detailed report.

        Args:
            graph: The DependencyGraph to validate; it is not modified

        Returns:
            ValidationReport containing all validation results
        """
        logger.info("starting_graph_validation", node_count=graph.node_count())

        report = ValidationReport()

        for cycle in self._detector.find_cycles(graph):
            payloads = [graph.payload(handle) for handle in cycle]
            report.cycles.append(payloads)
            if len(cycle) == 1:
                report.self_dependent.append(payloads[0])
                report.add_error(f"Component depends on itself: {payloads[0]}")
            else:
                report.add_error(f"Cycle detected: {_cycle_path(payloads)}")

        for handle, deps in sorted(self._detector.find_blocked(graph).items()):
            payload = graph.payload(handle)
            blocking = [graph.payload(dep) for dep in deps]
            report.blocked.append((payload, blocking))
            blocking_str = ", ".join(str(dep) for dep in blocking)
            report.add_error(f"Component {payload} cannot load: blocked by {blocking_str}")

        report.isolated = [
            graph.payload(handle)
            for handle in graph.nodes()
            if not graph.dependencies(handle) and not graph.dependents(handle)
        ]
        if report.isolated and graph.node_count() > 1:
            isolated_str = ", ".join(str(payload) for payload in report.isolated)
            report.add_warning(f"Components with no dependency relations: {isolated_str}")

        logger.info(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def generate_visualization(
        self,
        graph: "DependencyGraph",
        output_format: str = "mermaid",
    ) -> str:
        """Generate a visual representation of the dependency graph.

        Edges point from a dependency to its dependent, i.e. in load order.
        Nodes that take part in a cycle are highlighted.

        Args:
            graph: The DependencyGraph to visualize
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        cyclic = {handle for cycle in self._detector.find_cycles(graph) for handle in cycle}

        if output_format == "mermaid":
            return self._generate_mermaid(graph, cyclic)
        if output_format == "dot":
            return self._generate_graphviz(graph, cyclic)
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _generate_mermaid(self, graph: "DependencyGraph", cyclic: set["NodeHandle"]) -> str:
        lines = ["graph TD"]

        if not graph.node_count():
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        # Handles keep ids unique even when two payloads sanitize alike.
        def node_id(handle: "NodeHandle") -> str:
            return f"n{handle}_{_MERMAID_UNSAFE.sub('_', str(graph.payload(handle)))}"

        for handle in graph.nodes():
            label = str(graph.payload(handle)).replace('"', "#quot;")
            lines.append(f'    {node_id(handle)}["{label}"]')

        for handle in graph.nodes():
            lines.extend(
                f"    {node_id(dep)} --> {node_id(handle)}"
                for dep in graph.dependencies(handle)
            )

        if cyclic:
            lines.append("    classDef cyclic fill:#f96,stroke:#c00")
            members = ",".join(node_id(handle) for handle in sorted(cyclic))
            lines.append(f"    class {members} cyclic")

        return "\n".join(lines)

    def _generate_graphviz(self, graph: "DependencyGraph", cyclic: set["NodeHandle"]) -> str:
        def escape_dot_string(s: str) -> str:
            """Escape backslashes, double quotes and newlines for DOT format."""
            return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")

        lines = ["digraph DependencyGraph {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box, style=rounded];")

        if not graph.node_count():
            lines.append('    Empty [label="Empty Graph"];')
        else:
            for handle in graph.nodes():
                label = escape_dot_string(str(graph.payload(handle)))
                style = ", color=red" if handle in cyclic else ""
                lines.append(f'    n{handle} [label="{label}"{style}];')

            for handle in graph.nodes():
                lines.extend(f"    n{dep} -> n{handle};" for dep in graph.dependencies(handle))

        lines.append("}")
        return "\n".join(lines)
