"""Dependency graph model backed by an arena of integer-addressed nodes.

This module provides the DependencyGraph class which stores components and
their "depends-on" relationships. Nodes live in an append-only arena and are
addressed by NodeHandle values, which are assigned in insertion order. That
ordering is what the resolver uses as its deterministic tie-break.
"""

from collections.abc import Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, NewType

import structlog

logger = structlog.get_logger(__name__)

NodeHandle = NewType("NodeHandle", int)


class UnknownNodeError(KeyError):
    """Exception raised when a handle does not refer to a live node.

    Building an edge to a node that was never added is a contract violation
    by whoever built the graph, so it fails immediately instead of being
    tolerated.
    """

    def __init__(self, handle: object, message: str | None = None):
        """Initialize the exception.

        Args:
            handle: The offending handle (or dependency key)
            message: Optional description overriding the default one
        """
        self.handle = handle
        self.message = message or f"Unknown or removed node: {handle!r}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass
class Node:
    """A graph vertex wrapping one caller payload.

    Attributes:
        handle: Arena index of this node
        payload: Opaque caller value, never mutated by the graph
        depends_on: Ordered set of handles this node must load after
    """

    handle: NodeHandle
    payload: Any
    depends_on: dict[NodeHandle, None] = field(default_factory=dict)


class DependencyGraph:
    """Mutable depends-on graph with stable insertion-order iteration.

    An edge ``add_edge(a, b)`` means "a must load after b". Outgoing edges of
    a node are its unresolved dependencies; a node with no outgoing edges is
    ready to load. A reverse index of dependents makes ``remove_node``
    proportional to the node's degree.

    Thread-safety:
        This class is NOT thread-safe. A graph is owned by exactly one
        resolution at a time and is consumed destructively by it.

    Example:
        >>> graph = DependencyGraph()
        >>> a = graph.add_node("A")
        >>> b = graph.add_node("B")
        >>> graph.add_edge(a, b)  # A loads after B
        >>> graph.dependencies(a)
        (1,)
    """

    def __init__(self):
        """Initialize an empty dependency graph."""
        self._nodes: list[Node | None] = []
        self._dependents: list[dict[NodeHandle, None]] = []
        self._live_count = 0

    @classmethod
    def from_dependencies(cls, dependencies: Mapping[Hashable, Iterable[Hashable]]) -> "DependencyGraph":
        """Build a graph from a mapping of key to the keys it depends on.

        Each key becomes one node whose payload is the key itself, added in
        mapping order.

        Args:
            dependencies: Mapping of component key to its dependency keys

        Returns:
            A populated DependencyGraph

        Raises:
            UnknownNodeError: If a dependency key is not itself a mapping key

        Example:
            >>> graph = DependencyGraph.from_dependencies({"A": ["B"], "B": []})
            >>> graph.node_count()
            2
        """
        graph = cls()
        handles = {key: graph.add_node(key) for key in dependencies}

        for key, deps in dependencies.items():
            for dep in deps:
                if dep not in handles:
                    msg = f"{key!r} depends on {dep!r}, which is not in the graph"
                    logger.error("unknown_dependency_key", component=repr(key), dependency=repr(dep))
                    raise UnknownNodeError(dep, msg)
                graph.add_edge(handles[key], handles[dep])

        logger.debug(
            "dependency_graph_built_from_mapping",
            node_count=graph.node_count(),
            edge_count=graph.edge_count(),
        )
        return graph

    def add_node(self, payload: Any) -> NodeHandle:
        """Add a node wrapping ``payload`` and return its handle."""
        handle = NodeHandle(len(self._nodes))
        self._nodes.append(Node(handle, payload))
        self._dependents.append({})
        self._live_count += 1
        return handle

    def add_edge(self, from_handle: NodeHandle, to_handle: NodeHandle) -> None:
        """Record that ``from_handle`` must load after ``to_handle``.

        Duplicate edges collapse into one and self-edges are stored as-is.

        Raises:
            UnknownNodeError: If either handle is not a live node
        """
        source = self._require(from_handle)
        self._require(to_handle)

        source.depends_on[to_handle] = None
        self._dependents[to_handle][from_handle] = None

    def remove_node(self, handle: NodeHandle) -> list[NodeHandle]:
        """Remove a node and purge it from every dependent's outgoing edges.

        Args:
            handle: Handle of the node to remove

        Returns:
            Handles of other live nodes whose outgoing edge set became empty
            because of this removal, in ascending handle order

        Raises:
            UnknownNodeError: If the handle is not a live node
        """
        node = self._require(handle)

        for dep in node.depends_on:
            self._dependents[dep].pop(handle, None)

        released = []
        for dependent in self._dependents[handle]:
            if dependent == handle:
                continue
            dependent_node = self._nodes[dependent]
            del dependent_node.depends_on[handle]
            if not dependent_node.depends_on:
                released.append(dependent)

        self._dependents[handle] = {}
        self._nodes[handle] = None
        self._live_count -= 1

        return sorted(released)

    def node_count(self) -> int:
        """Return the number of live nodes."""
        return self._live_count

    def edge_count(self) -> int:
        """Return the number of distinct live edges, self-edges included."""
        return sum(len(node.depends_on) for node in self._live_nodes())

    def nodes(self) -> Iterator[NodeHandle]:
        """Iterate over live node handles in insertion order."""
        return (node.handle for node in self._live_nodes())

    def payload(self, handle: NodeHandle) -> Any:
        """Return the payload wrapped by ``handle``."""
        return self._require(handle).payload

    def dependencies(self, handle: NodeHandle) -> tuple[NodeHandle, ...]:
        """Return the handles ``handle`` depends on, in edge insertion order."""
        return tuple(self._require(handle).depends_on)

    def dependents(self, handle: NodeHandle) -> tuple[NodeHandle, ...]:
        """Return the handles that depend on ``handle``."""
        self._require(handle)
        return tuple(self._dependents[handle])

    def has_self_edge(self, handle: NodeHandle) -> bool:
        """Return True if the node depends on itself."""
        return handle in self._require(handle).depends_on

    def is_ready(self, handle: NodeHandle) -> bool:
        """Return True if the node has no unresolved dependencies."""
        return not self._require(handle).depends_on

    def copy(self) -> "DependencyGraph":
        """Create a structural copy of the graph.

        Handles stay valid across the copy and payloads are shared, not
        copied. Mutating either graph does not affect the other.
        """
        new_graph = DependencyGraph()
        new_graph._nodes = [
            None if node is None else Node(node.handle, node.payload, dict(node.depends_on))
            for node in self._nodes
        ]
        new_graph._dependents = [dict(dependents) for dependents in self._dependents]
        new_graph._live_count = self._live_count

        logger.debug("dependency_graph_copied", node_count=self._live_count)

        return new_graph

    def get_stats(self) -> dict[str, int]:
        """Get statistics about the current graph state.

        Returns:
            Dictionary with graph statistics including:
                - total_nodes: Number of live nodes
                - total_edges: Number of distinct live edges
                - ready_nodes: Live nodes with no outgoing edges
                - self_edges: Live nodes that depend on themselves
        """
        live = list(self._live_nodes())
        return {
            "total_nodes": len(live),
            "total_edges": sum(len(node.depends_on) for node in live),
            "ready_nodes": sum(1 for node in live if not node.depends_on),
            "self_edges": sum(1 for node in live if node.handle in node.depends_on),
        }

    def __len__(self) -> int:
        return self._live_count

    def __contains__(self, handle: object) -> bool:
        return (
            isinstance(handle, int)
            and 0 <= handle < len(self._nodes)
            and self._nodes[handle] is not None
        )

    def __iter__(self) -> Iterator[NodeHandle]:
        return self.nodes()

    def _live_nodes(self) -> Iterator[Node]:
        return (node for node in self._nodes if node is not None)

    def _require(self, handle: NodeHandle) -> Node:
        if handle not in self:
            raise UnknownNodeError(handle)
        return self._nodes[handle]
