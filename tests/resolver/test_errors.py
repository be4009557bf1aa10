"""Unit tests for resolution errors and cycle report formatting."""

import pytest

from src.resolver.errors import (
    CyclicDependencyError,
    GraphTooLargeError,
    ResolutionError,
    format_cycles,
)


class TestFormatCycles:
    """Test rendering of cycle reports."""

    def test_format_example(self):
        """Test the canonical two-cycle report."""
        report = format_cycles([["A", "B", "C"], ["D"]])

        assert report == "Graph is cyclic! Cycles:\n[A B C ]\n[D ]"

    def test_format_uses_str_of_payloads(self):
        """Test that non-string payloads are rendered with str()."""
        assert format_cycles([[1, 2]]) == "Graph is cyclic! Cycles:\n[1 2 ]"

    def test_format_no_cycles(self):
        """Test that an empty list renders only the header."""
        assert format_cycles([]) == "Graph is cyclic! Cycles:"


class TestCyclicDependencyError:
    """Test the structured cyclic failure."""

    def test_carries_cycles_and_report(self):
        """Test that the error exposes both the cycle list and the rendering."""
        error = CyclicDependencyError([("A", "B"), ("D",)])

        assert error.cycles == [["A", "B"], ["D"]]
        assert error.report == "Graph is cyclic! Cycles:\n[A B ]\n[D ]"
        assert str(error) == error.report
        assert error.message == error.report

    def test_is_resolution_error(self):
        """Test the exception hierarchy."""
        with pytest.raises(ResolutionError):
            raise CyclicDependencyError([["A"]])

    def test_cycles_are_copied(self):
        """Test that later changes to the input do not alter the error."""
        cycles = [["A", "B"]]
        error = CyclicDependencyError(cycles)

        cycles[0].append("C")

        assert error.cycles == [["A", "B"]]


class TestGraphTooLargeError:
    """Test the size bound failure."""

    def test_message(self):
        """Test that the message names both counts."""
        error = GraphTooLargeError(node_count=12, max_nodes=10)

        assert isinstance(error, ResolutionError)
        assert "12 nodes" in str(error)
        assert "limit of 10" in str(error)


class TestBlockedComponents:
    """Test reporting of components blocked by cycles."""

    def test_format_with_blocked(self):
        """Test that blocked components follow the cycle list."""
        report = format_cycles([["A", "B"]], [("X", ["A"]), ("Y", ["X", "A"])])

        assert report == (
            "Graph is cyclic! Cycles:\n"
            "[A B ]\n"
            "Blocked by cycles:\n"
            "X <- [A ]\n"
            "Y <- [X A ]"
        )

    def test_blocked_defaults_to_empty(self):
        """Test that an error built from cycles alone has no blocked entries."""
        error = CyclicDependencyError([["A"]])

        assert error.blocked == []
        assert "Blocked" not in error.report

    def test_blocked_entries_are_copied(self):
        """Test that blocked dependency lists are detached from the input."""
        deps = ("A",)
        error = CyclicDependencyError([["A", "B"]], [("X", deps)])

        assert error.blocked == [("X", ["A"])]
        assert dict(error.blocked) == {"X": ["A"]}
