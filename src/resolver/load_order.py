"""Load-order resolution over a depends-on graph.

This module implements the LoadOrderResolver, which repeatedly takes the
first ready node (no unresolved dependencies) in insertion order and removes
it from the graph. When nodes remain but none is ready, the resolution fails
and every cycle of the original graph is reported, together with the
components those cycles block.
"""

import heapq
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

from src.graph.cycles import CycleDetector
from src.log_config import get_logger, resolution_context
from src.resolver.errors import CyclicDependencyError, GraphTooLargeError

if TYPE_CHECKING:
    from src.config import ResolverConfig
    from src.graph.dependency_graph import DependencyGraph

# Initialize logger
logger = get_logger(__name__)


class ResolutionStrategy(str, Enum):
    """How the resolver finds the next ready node.

    Attributes:
        SCAN: Linear scan of live nodes on every step, O(V^2 + V*E)
        READY_QUEUE: Min-heap of ready handles fed by node removal, O((V + E) log V)
    """

    SCAN = "scan"
    READY_QUEUE = "ready_queue"


class ResolutionState(Enum):
    """Lifecycle of a single resolution."""

    RUNNING = "running"
    SUCCESS = "success"
    CYCLIC_FAILURE = "cyclic_failure"


class LoadOrderResolver:
    """Computes a load order in which dependencies precede dependents.

    Among nodes that are ready at the same time, the one added to the graph
    first always loads first. Both strategies honor that rule, so they produce
    identical results.

    The resolver keeps no per-resolution state, so one instance may serve
    resolutions of independent graphs from several threads. Each graph,
    however, is consumed by the resolution that receives it.

    Example:
        >>> graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["C"], "C": []})
        >>> LoadOrderResolver().resolve(graph)
        ['C', 'B', 'A']
    """

    def __init__(
        self,
        strategy: ResolutionStrategy | str = ResolutionStrategy.READY_QUEUE,
        max_nodes: int | None = None,
        detector: CycleDetector | None = None,
    ):
        """Initialize the resolver.

        Args:
            strategy: Strategy used to pick the next ready node
            max_nodes: Optional upper bound on graph size
            detector: Cycle detector used on failure; a new one if omitted
        """
        self.strategy = ResolutionStrategy(strategy)
        self.max_nodes = max_nodes
        self._detector = detector or CycleDetector()

    @classmethod
    def from_config(cls, config: "ResolverConfig") -> "LoadOrderResolver":
        """Create a resolver from a ResolverConfig."""
        return cls(strategy=config.strategy, max_nodes=config.max_nodes)

    def resolve(self, graph: "DependencyGraph") -> list[Any]:
        """Resolve the graph into a load order, consuming it.

        Args:
            graph: Graph to resolve; it is empty afterwards on success and
                must not be reused either way

        Returns:
            Payloads in load order

        Raises:
            GraphTooLargeError: If the graph exceeds ``max_nodes``
            CyclicDependencyError: If the graph contains any cycle
        """
        node_count = graph.node_count()

        if self.max_nodes is not None and node_count > self.max_nodes:
            logger.error("graph_exceeds_size_limit", node_count=node_count, max_nodes=self.max_nodes)
            raise GraphTooLargeError(node_count, self.max_nodes)

        with resolution_context(strategy=self.strategy.value):
            logger.info(
                "resolution_started",
                state=ResolutionState.RUNNING.value,
                node_count=node_count,
                edge_count=graph.edge_count(),
            )
            started = time.perf_counter()

            # Cycle detection needs the full graph, not the stuck remainder.
            original = graph.copy()

            if self.strategy is ResolutionStrategy.SCAN:
                order = self._resolve_by_scan(graph)
            else:
                order = self._resolve_by_ready_queue(graph)

            duration_ms = round((time.perf_counter() - started) * 1000, 3)

            if order is None:
                cycles, blocked = self._detector.analyze(original)
                logger.error(
                    "cyclic_dependency_detected",
                    state=ResolutionState.CYCLIC_FAILURE.value,
                    resolved_count=node_count - graph.node_count(),
                    unresolved_count=graph.node_count(),
                    cycle_count=len(cycles),
                    blocked_count=len(blocked),
                    duration_ms=duration_ms,
                )
                raise CyclicDependencyError(cycles, blocked)

            logger.info(
                "resolution_succeeded",
                state=ResolutionState.SUCCESS.value,
                node_count=len(order),
                duration_ms=duration_ms,
            )

        return order

    def _resolve_by_scan(self, graph: "DependencyGraph") -> list[Any] | None:
        order = []

        while graph.node_count():
            ready = next((handle for handle in graph.nodes() if graph.is_ready(handle)), None)
            if ready is None:
                return None

            order.append(graph.payload(ready))
            graph.remove_node(ready)
            logger.debug("node_resolved", handle=ready, position=len(order))

        return order

    def _resolve_by_ready_queue(self, graph: "DependencyGraph") -> list[Any] | None:
        # Handles are assigned in insertion order, so the smallest ready
        # handle is exactly the node a linear scan would pick.
        ready = [handle for handle in graph.nodes() if graph.is_ready(handle)]
        heapq.heapify(ready)
        order = []

        while ready:
            handle = heapq.heappop(ready)
            order.append(graph.payload(handle))
            for released in graph.remove_node(handle):
                heapq.heappush(ready, released)
            logger.debug("node_resolved", handle=handle, position=len(order))

        if graph.node_count():
            return None

        return order


def resolve_load_order(graph: "DependencyGraph", config: "ResolverConfig | None" = None) -> list[Any]:
    """Resolve a graph into a load order.

    Args:
        graph: Graph to resolve; it is consumed
        config: Optional resolver configuration

    Returns:
        Payloads in load order

    Raises:
        GraphTooLargeError: If the graph exceeds the configured size bound
        CyclicDependencyError: If the graph contains any cycle
    """
    resolver = LoadOrderResolver.from_config(config) if config is not None else LoadOrderResolver()
    return resolver.resolve(graph)
