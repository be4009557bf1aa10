"""Cycle detection using Tarjan's strongly connected components algorithm.

The depth-first search runs on an explicit stack, so very deep dependency
chains do not hit Python's recursion limit.
"""

from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from src.graph.dependency_graph import DependencyGraph, NodeHandle

logger = structlog.get_logger(__name__)

UNVISITED = -1


class CycleDetector:
    """Finds every cycle in a dependency graph.

    A cycle is a strongly connected component (SCC) with more than one node,
    or a single node that depends on itself. Acyclic and isolated nodes are
    never reported.

    Roots are visited in insertion order and edge targets in edge insertion
    order, so the same graph always yields the same report. Within a cycle,
    nodes appear in the order the search reached them, starting at the SCC
    root.
    """

    def detect(self, graph: "DependencyGraph") -> list[list[Any]]:
        """Return every cycle in the graph as a list of payloads.

        Args:
            graph: The graph to inspect; it is not modified

        Returns:
            List of cycles, each an ordered list of payloads
        """
        return self.analyze(graph)[0]

    def analyze(
        self,
        graph: "DependencyGraph",
    ) -> tuple[list[list[Any]], list[tuple[Any, list[Any]]]]:
        """Return the cycles and the components they block, as payloads.

        A blocked component is not on any cycle itself but depends, directly
        or through other blocked components, on one.

        Args:
            graph: The graph to inspect; it is not modified

        Returns:
            Tuple of (cycles, blocked). Each blocked entry pairs a payload with
            the payloads of its direct dependencies that cannot load.
        """
        components = self.strongly_connected_components(graph)
        cycle_handles = self._cycles_in(graph, components)
        blocked_handles = self._blocked_in(graph, components, cycle_handles)

        cycles = [[graph.payload(handle) for handle in cycle] for cycle in cycle_handles]
        blocked = [
            (graph.payload(handle), [graph.payload(dep) for dep in deps])
            for handle, deps in sorted(blocked_handles.items())
        ]

        if cycles:
            logger.info(
                "cycles_detected",
                cycle_count=len(cycles),
                node_count=sum(len(cycle) for cycle in cycles),
                blocked_count=len(blocked),
            )

        return cycles, blocked

    def find_cycles(self, graph: "DependencyGraph") -> list[list["NodeHandle"]]:
        """Return every cycle in the graph as a list of handles."""
        return self._cycles_in(graph, self.strongly_connected_components(graph))

    def find_blocked(self, graph: "DependencyGraph") -> dict["NodeHandle", list["NodeHandle"]]:
        """Map each blocked handle to the direct dependencies blocking it."""
        components = self.strongly_connected_components(graph)
        return self._blocked_in(graph, components, self._cycles_in(graph, components))

    def _cycles_in(
        self,
        graph: "DependencyGraph",
        components: list[list["NodeHandle"]],
    ) -> list[list["NodeHandle"]]:
        return [
            component
            for component in components
            if len(component) > 1 or graph.has_self_edge(component[0])
        ]

    def _blocked_in(
        self,
        graph: "DependencyGraph",
        components: list[list["NodeHandle"]],
        cycles: list[list["NodeHandle"]],
    ) -> dict["NodeHandle", list["NodeHandle"]]:
        # Components arrive dependencies first, so a dependency's failure is
        # always known before its dependents are examined.
        failed = {handle for cycle in cycles for handle in cycle}
        blocked: dict[NodeHandle, list[NodeHandle]] = {}

        for component in components:
            handle = component[0]
            if handle in failed:
                continue
            blocking = [dep for dep in graph.dependencies(handle) if dep in failed]
            if blocking:
                blocked[handle] = blocking
                failed.add(handle)

        return blocked

    def strongly_connected_components(self, graph: "DependencyGraph") -> list[list["NodeHandle"]]:
        """Compute all maximal strongly connected components.

        Components are emitted in Tarjan completion order, which is a reverse
        topological order of the condensed graph: a component is emitted
        only after every component it depends on.

        Args:
            graph: The graph to inspect

        Returns:
            List of components, each a list of handles with its root first
        """
        size = max(graph.nodes(), default=UNVISITED) + 1
        index = [UNVISITED] * size
        low_link = [UNVISITED] * size
        on_stack = [False] * size
        stack: list[NodeHandle] = []
        components: list[list[NodeHandle]] = []
        counter = 0

        for root in graph.nodes():
            if index[root] != UNVISITED:
                continue

            index[root] = low_link[root] = counter
            counter += 1
            stack.append(root)
            on_stack[root] = True
            work = [(root, iter(graph.dependencies(root)))]

            while work:
                node, targets = work[-1]
                descended = False

                for target in targets:
                    if index[target] == UNVISITED:
                        index[target] = low_link[target] = counter
                        counter += 1
                        stack.append(target)
                        on_stack[target] = True
                        work.append((target, iter(graph.dependencies(target))))
                        descended = True
                        break
                    if on_stack[target]:
                        low_link[node] = min(low_link[node], index[target])

                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low_link[parent] = min(low_link[parent], low_link[node])

                if low_link[node] == index[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack[member] = False
                        component.append(member)
                        if member == node:
                            break
                    component.reverse()
                    components.append(component)

        logger.debug(
            "strongly_connected_components_computed",
            node_count=graph.node_count(),
            component_count=len(components),
        )

        return components
