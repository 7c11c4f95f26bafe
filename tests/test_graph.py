"""Tests for graph data model and cycle detection."""

import pytest

from diagnostics.models import ImportEdge, ImportKind, SourceLocation
from graph.cycles import detect_cycles
from graph.model import DependencyGraph


def make_edge(source, target, name="x", line=1):
    return ImportEdge(
        source=source,
        target=target,
        specifier=f"./{target}" if target else "react",
        import_name=name,
        kind=ImportKind.NAMED,
        location=SourceLocation(source, line),
    )


def make_graph(nodes, pairs):
    graph = DependencyGraph()
    for node in nodes:
        graph.add_node(node)
    for source, target in pairs:
        graph.add_edge(make_edge(source, target))
    return graph


class TestDependencyGraph:
    """Tests for DependencyGraph class."""

    def test_empty_graph(self):
        """Test empty graph initialization."""
        graph = DependencyGraph()
        assert len(graph) == 0
        assert graph.nodes == []
        assert graph.edges == []
        assert graph.complete

    def test_add_edge_adds_source_only(self):
        """Test that adding an edge registers the source but not the target."""
        graph = DependencyGraph()

        graph.add_edge(make_edge("a.ts", "b.ts"))

        assert "a.ts" in graph
        assert "b.ts" not in graph
        assert graph.get_targets("a.ts") == ["b.ts"]

    def test_targets_are_distinct(self):
        """Test that several bindings to one module give one target."""
        graph = DependencyGraph()
        graph.add_edge(make_edge("a.ts", "b.ts", "x"))
        graph.add_edge(make_edge("a.ts", "b.ts", "y"))
        graph.add_edge(make_edge("a.ts", "c.ts", "z"))

        assert graph.get_targets("a.ts") == ["b.ts", "c.ts"]
        assert len(graph.get_edges_from("a.ts")) == 3

    def test_external_edges(self):
        """Test that edges with no target are external."""
        graph = DependencyGraph()
        graph.add_edge(make_edge("a.ts", None))
        graph.add_edge(make_edge("a.ts", "b.ts"))

        assert len(list(graph.iter_external_edges())) == 1
        assert len(list(graph.iter_internal_edges())) == 1
        assert graph.get_targets("a.ts") == ["b.ts"]

    def test_sources_and_roots(self):
        """Test reverse lookups and root detection."""
        graph = make_graph(["a.ts", "b.ts", "c.ts"], [("a.ts", "b.ts"), ("c.ts", "b.ts")])

        assert graph.get_sources("b.ts") == {"a.ts", "c.ts"}
        assert graph.get_roots() == {"a.ts", "c.ts"}


class TestDependencyStats:
    """Tests for graph statistics."""

    def test_stats_example(self):
        """Test the three-file example from the documentation."""
        graph = make_graph(["A", "B", "C"], [("A", "B"), ("A", "C"), ("B", "C")])
        graph.cycles = detect_cycles(graph)

        assert graph.stats() == {
            "totalFiles": 3,
            "totalDependencies": 3,
            "averageDependenciesPerFile": 1,
            "cyclesDetected": 0,
            "mostConnectedFile": "A",
        }

    def test_stats_empty(self):
        """Test that an empty graph has zero averages and no hub."""
        stats = DependencyGraph().stats()

        assert stats["totalFiles"] == 0
        assert stats["averageDependenciesPerFile"] == 0
        assert stats["mostConnectedFile"] == ""

    def test_most_connected_ties_keep_first(self):
        """Test that the first file wins when counts tie."""
        graph = make_graph(["A", "B"], [("B", "A"), ("A", "B")])

        assert graph.stats()["mostConnectedFile"] == "B"


class TestCycleDetection:
    """Tests for cycle detection."""

    def test_two_node_cycle(self):
        """Test a mutual reference between two files."""
        graph = make_graph(["A", "B"], [("A", "B"), ("B", "A")])

        assert detect_cycles(graph) == [["A", "B", "A"]]

    def test_three_node_cycle(self):
        """Test a longer closed path."""
        graph = make_graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])

        assert detect_cycles(graph) == [["A", "B", "C", "A"]]

    def test_independent_cycles_are_separate(self):
        """Test that two disjoint cycles are reported separately."""
        graph = make_graph(
            ["A", "B", "C", "D"],
            [("A", "B"), ("B", "A"), ("C", "D"), ("D", "C")],
        )

        assert detect_cycles(graph) == [["A", "B", "A"], ["C", "D", "C"]]

    def test_self_import(self):
        """Test a file that imports itself."""
        graph = make_graph(["A"], [("A", "A")])

        assert detect_cycles(graph) == [["A", "A"]]

    def test_acyclic(self):
        """Test that a DAG has no cycles."""
        graph = make_graph(["A", "B", "C"], [("A", "B"), ("A", "C"), ("B", "C")])

        assert detect_cycles(graph) == []

    def test_duplicate_edges_do_not_duplicate_cycles(self):
        """Test that several bindings between the same files give one cycle."""
        graph = DependencyGraph()
        graph.add_edge(make_edge("A", "B", "x"))
        graph.add_edge(make_edge("A", "B", "y"))
        graph.add_edge(make_edge("B", "A", "z"))

        assert detect_cycles(graph) == [["A", "B", "A"]]

    def test_external_edges_ignored(self):
        """Test that external imports never form cycles."""
        graph = DependencyGraph()
        graph.add_edge(make_edge("A", None))

        assert detect_cycles(graph) == []

    def test_done_nodes_not_reexplored(self):
        """Test that a cycle reachable from two roots is reported once."""
        graph = make_graph(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "B")])

        assert detect_cycles(graph) == [["B", "C", "B"]]

    @pytest.mark.parametrize("size", [10, 500])
    def test_long_chain_is_iterative(self, size):
        """Test that long import chains do not hit the recursion limit."""
        nodes = [f"n{i}" for i in range(size)]
        pairs = list(zip(nodes, nodes[1:])) + [(nodes[-1], nodes[0])]
        graph = make_graph(nodes, pairs)

        cycles = detect_cycles(graph)

        assert len(cycles) == 1
        assert cycles[0][0] == cycles[0][-1] == "n0"
        assert len(cycles[0]) == size + 1
