"""Unit tests for CycleDetector class.

Tests cover:
- Strongly connected component computation
- Self-loops and multi-node cycles
- Disjoint and chained cycles
- Exclusion of acyclic and isolated nodes
- Deterministic output
- Deep graphs beyond the recursion limit
"""

import sys

from src.graph.cycles import CycleDetector
from src.graph.dependency_graph import DependencyGraph


def as_sets(cycles):
    """Return cycle memberships, ignoring intra-cycle order."""
    return [set(cycle) for cycle in cycles]


class TestStronglyConnectedComponents:
    """Test raw SCC computation."""

    def test_empty_graph(self):
        """Test that an empty graph has no components."""
        assert CycleDetector().strongly_connected_components(DependencyGraph()) == []

    def test_acyclic_chain_yields_singletons(self):
        """Test that every node of a DAG is its own component."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["C"], "C": []})

        components = CycleDetector().strongly_connected_components(graph)

        # Dependencies complete before their dependents.
        assert components == [[2], [1], [0]]

    def test_components_cover_every_node_once(self):
        """Test that components partition the node set."""
        graph = DependencyGraph.from_dependencies(
            {"A": ["B"], "B": ["A", "C"], "C": ["D"], "D": ["C"], "E": []},
        )

        components = CycleDetector().strongly_connected_components(graph)
        members = [handle for component in components for handle in component]

        assert sorted(members) == list(graph.nodes())

    def test_root_listed_first(self):
        """Test that each component starts at the node the search entered it from."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["C"], "C": ["A"]})

        components = CycleDetector().strongly_connected_components(graph)

        assert components == [[0, 1, 2]]

    def test_skips_removed_nodes(self):
        """Test that components only contain live nodes."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["A"], "C": []})
        graph.remove_node(2)

        components = CycleDetector().strongly_connected_components(graph)

        assert components == [[0, 1]]


class TestCycleDetection:
    """Test cycle reporting."""

    def test_no_cycles_in_acyclic_graph(self):
        """Test that a DAG reports nothing."""
        graph = DependencyGraph.from_dependencies({"A": ["B", "C"], "B": ["C"], "C": []})

        assert CycleDetector().detect(graph) == []

    def test_two_node_cycle(self):
        """Test the A <-> B example reports exactly {A, B}."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["A"]})

        cycles = CycleDetector().detect(graph)

        assert len(cycles) == 1
        assert set(cycles[0]) == {"A", "B"}
        assert len(cycles[0]) == 2

    def test_three_node_cycle(self):
        """Test a three-node loop is reported in search order."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["C"], "C": ["A"]})

        assert CycleDetector().detect(graph) == [["A", "B", "C"]]

    def test_self_loop_is_single_cycle(self):
        """Test that a self-dependent node is exactly one one-node cycle."""
        graph = DependencyGraph()
        a = graph.add_node("A")
        graph.add_edge(a, a)

        assert CycleDetector().detect(graph) == [["A"]]

    def test_single_node_without_self_edge_is_not_a_cycle(self):
        """Test that a trivial singleton component is not reported."""
        graph = DependencyGraph()
        graph.add_node("A")

        assert CycleDetector().detect(graph) == []

    def test_disjoint_cycles_reported_separately(self):
        """Test two unrelated cycles are neither merged nor dropped."""
        graph = DependencyGraph.from_dependencies(
            {"A": ["B"], "B": ["A"], "C": ["D"], "D": ["C"]},
        )

        cycles = CycleDetector().detect(graph)

        assert as_sets(cycles) == [{"A", "B"}, {"C", "D"}]

    def test_chained_cycles_reported_separately(self):
        """Test two cycles joined by a one-way edge stay distinct."""
        graph = DependencyGraph.from_dependencies(
            {"A": ["B"], "B": ["A", "C"], "C": ["D"], "D": ["C"]},
        )

        cycles = CycleDetector().detect(graph)

        assert as_sets(cycles) == [{"C", "D"}, {"A", "B"}]

    def test_nodes_hanging_off_a_cycle_excluded(self):
        """Test that nodes depending on (or depended on by) a cycle are not reported."""
        graph = DependencyGraph.from_dependencies(
            {"E": ["A"], "A": ["B"], "B": ["C"], "C": ["A", "F"], "F": [], "G": []},
        )

        cycles = CycleDetector().detect(graph)

        assert as_sets(cycles) == [{"A", "B", "C"}]

    def test_self_edge_inside_larger_cycle(self):
        """Test that a self-edge within a bigger component does not split it."""
        graph = DependencyGraph.from_dependencies({"A": ["A", "B"], "B": ["A"]})

        cycles = CycleDetector().detect(graph)

        assert as_sets(cycles) == [{"A", "B"}]

    def test_cycle_and_self_loop_together(self):
        """Test the mixed report of a loop and a self-dependent node."""
        graph = DependencyGraph.from_dependencies(
            {"A": ["B"], "B": ["C"], "C": ["A"], "D": ["D"]},
        )

        assert CycleDetector().detect(graph) == [["A", "B", "C"], ["D"]]

    def test_duplicate_edges_do_not_change_report(self):
        """Test that parallel edges leave the report unchanged."""
        graph = DependencyGraph()
        a = graph.add_node("A")
        b = graph.add_node("B")
        for _ in range(3):
            graph.add_edge(a, b)
            graph.add_edge(b, a)

        assert as_sets(CycleDetector().detect(graph)) == [{"A", "B"}]

    def test_find_cycles_returns_handles(self):
        """Test the handle-level API."""
        graph = DependencyGraph.from_dependencies({"A": [], "B": ["C"], "C": ["B"]})

        assert CycleDetector().find_cycles(graph) == [[1, 2]]

    def test_detect_does_not_modify_graph(self):
        """Test that detection leaves the graph untouched."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": ["A"]})
        before = graph.get_stats()

        CycleDetector().detect(graph)

        assert graph.get_stats() == before

    def test_deterministic(self):
        """Test that identical graphs yield identical reports."""
        mapping = {
            "p1": ["p2"],
            "p2": ["p3", "p5"],
            "p3": ["p1"],
            "p4": ["p4"],
            "p5": ["p6"],
            "p6": ["p5"],
        }

        first = CycleDetector().detect(DependencyGraph.from_dependencies(mapping))
        second = CycleDetector().detect(DependencyGraph.from_dependencies(mapping))

        assert first == second


class TestBlockedComponents:
    """Test detection of components blocked by cycles."""

    def test_dependent_of_cycle_is_blocked(self):
        """Test X depending on the A <-> B cycle is blocked by A."""
        graph = DependencyGraph.from_dependencies({"X": ["A"], "A": ["B"], "B": ["A"]})

        cycles, blocked = CycleDetector().analyze(graph)

        assert as_sets(cycles) == [{"A", "B"}]
        assert dict(blocked) == {"X": ["A"]}

    def test_blocking_propagates_through_chain(self):
        """Test that dependents of blocked components are blocked in turn."""
        graph = DependencyGraph.from_dependencies(
            {"top": ["mid"], "mid": ["X"], "X": ["A"], "A": ["B"], "B": ["A"]},
        )

        _, blocked = CycleDetector().analyze(graph)

        assert blocked == [("top", ["mid"]), ("mid", ["X"]), ("X", ["A"])]

    def test_dependencies_of_cycle_are_not_blocked(self):
        """Test that what a cycle depends on can still load."""
        graph = DependencyGraph.from_dependencies(
            {"A": ["B", "base"], "B": ["A"], "base": [], "other": ["base"]},
        )

        assert CycleDetector().analyze(graph)[1] == []

    def test_only_failing_dependencies_listed(self):
        """Test that loadable dependencies are left out of the blocking list."""
        graph = DependencyGraph.from_dependencies(
            {"app": ["ok", "loop"], "ok": [], "loop": ["loop"]},
        )

        assert CycleDetector().analyze(graph)[1] == [("app", ["loop"])]

    def test_acyclic_graph_blocks_nothing(self):
        """Test that a DAG has no blocked components."""
        graph = DependencyGraph.from_dependencies({"A": ["B"], "B": []})

        assert CycleDetector().find_blocked(graph) == {}

    def test_find_blocked_returns_handles(self):
        """Test the handle-level API."""
        graph = DependencyGraph.from_dependencies({"X": ["A"], "A": ["A"]})

        assert CycleDetector().find_blocked(graph) == {0: [1]}


class TestLargeGraphs:
    """Test behavior on graphs deeper than the recursion limit."""

    def test_long_ring(self):
        """Test that a ring longer than the recursion limit is one cycle."""
        size = sys.getrecursionlimit() * 3
        graph = DependencyGraph()
        handles = [graph.add_node(i) for i in range(size)]
        for i, handle in enumerate(handles):
            graph.add_edge(handle, handles[(i + 1) % size])

        cycles = CycleDetector().detect(graph)

        assert len(cycles) == 1
        assert cycles[0] == list(range(size))

    def test_long_chain(self):
        """Test that a deep acyclic chain reports no cycles."""
        size = sys.getrecursionlimit() * 3
        graph = DependencyGraph()
        handles = [graph.add_node(i) for i in range(size)]
        for first, second in zip(handles, handles[1:]):
            graph.add_edge(first, second)

        detector = CycleDetector()

        assert detector.detect(graph) == []
        assert len(detector.strongly_connected_components(graph)) == size
