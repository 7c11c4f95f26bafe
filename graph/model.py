"""Graph data model for module dependency relationships."""

from typing import Dict, Iterator, List, Optional, Set

from diagnostics.models import ImportEdge


class DependencyGraph:
    """
    A directed graph of source files connected by import edges.

    Nodes are file paths kept in insertion order, so traversals over the
    node set are deterministic. Several edges may connect the same pair of
    files (one per imported binding). Edges with a None target point at
    external modules.
    """

    def __init__(self):
        self._nodes: Dict[str, None] = {}
        self._edges: List[ImportEdge] = []
        self._outgoing: Dict[str, List[ImportEdge]] = {}
        self.cycles: List[List[str]] = []
        # False when the build stopped early (cancelled or timed out)
        self.complete = True

    @property
    def nodes(self) -> List[str]:
        """Return all nodes in insertion order."""
        return list(self._nodes)

    @property
    def edges(self) -> List[ImportEdge]:
        """Return all edges in insertion order."""
        return list(self._edges)

    def add_node(self, node: str) -> None:
        """Add a node to the graph."""
        self._nodes.setdefault(node, None)

    def add_edge(self, edge: ImportEdge) -> None:
        """
        Add an import edge.

        The source file is added as a node; the target is not, since it may
        lie outside the scanned set.
        """
        self.add_node(edge.source)
        self._edges.append(edge)
        self._outgoing.setdefault(edge.source, []).append(edge)

    def get_edges_from(self, source: str) -> List[ImportEdge]:
        """Get all edges leaving a file."""
        return list(self._outgoing.get(source, []))

    def get_targets(self, source: str) -> List[str]:
        """Get the distinct internal files a file imports, in edge order."""
        seen: Dict[str, None] = {}
        for edge in self._outgoing.get(source, []):
            if edge.target is not None:
                seen.setdefault(edge.target, None)
        return list(seen)

    def get_sources(self, target: str) -> Set[str]:
        """Get all files that import the target file."""
        return {edge.source for edge in self._edges if edge.target == target}

    def get_roots(self) -> Set[str]:
        """Get nodes that no other node imports."""
        targets = {edge.target for edge in self._edges if edge.target is not None}
        return set(self._nodes) - targets

    def iter_internal_edges(self) -> Iterator[ImportEdge]:
        """Iterate over edges whose target resolved to a file."""
        for edge in self._edges:
            if edge.target is not None:
                yield edge

    def iter_external_edges(self) -> Iterator[ImportEdge]:
        """Iterate over edges to bare/absolute (external) specifiers."""
        for edge in self._edges:
            if edge.target is None:
                yield edge

    def adjacency(self) -> Dict[str, List[str]]:
        """Adjacency list of distinct internal targets per source."""
        return {source: self.get_targets(source) for source in self._outgoing}

    def stats(self) -> Dict[str, object]:
        """
        Summarize the graph.

        Returns:
            Dict with totalFiles, totalDependencies,
            averageDependenciesPerFile, cyclesDetected and mostConnectedFile
            (the first file with the strictly highest number of outgoing
            edges, or "" for an edgeless graph).
        """
        counts: Dict[str, int] = {}
        for edge in self._edges:
            counts[edge.source] = counts.get(edge.source, 0) + 1

        most_connected: Optional[str] = None
        best = 0
        for source, count in counts.items():
            if count > best:
                best = count
                most_connected = source

        total_files = len(self._nodes)
        total_dependencies = len(self._edges)
        return {
            "totalFiles": total_files,
            "totalDependencies": total_dependencies,
            "averageDependenciesPerFile": total_dependencies / total_files if total_files else 0,
            "cyclesDetected": len(self.cycles),
            "mostConnectedFile": most_connected or "",
        }

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._nodes)

    def __contains__(self, node: str) -> bool:
        """Check if a node is in the graph."""
        return node in self._nodes

    def __repr__(self) -> str:
        external = sum(1 for _ in self.iter_external_edges())
        return (
            f"DependencyGraph(nodes={len(self._nodes)}, edges={len(self._edges)}, "
            f"external={external}, cycles={len(self.cycles)})"
        )
