"""Cross-file checks over the import graph: missing exports and cycles."""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Set

from graph.model import DependencyGraph
from .models import (
    ExportKind,
    ExportRecord,
    ImportEdge,
    ImportKind,
    Issue,
    IssueType,
    Severity,
    SourceLocation,
)
from .exports import group_by_file
from .suggestions import FixSuggester

logger = logging.getLogger(__name__)

ALL_BINDINGS = "*"
DEFAULT_BINDING = "default"


def has_star_reexport(graph: DependencyGraph, file_path: str) -> bool:
    """True if the file forwards everything from another module (``export * from``)."""
    for edge in graph.get_edges_from(file_path):
        if edge.reexport and edge.import_name == ALL_BINDINGS and not edge.local_name:
            return True
    return False


def count_references(graph: DependencyGraph, records: Iterable[ExportRecord]) -> List[ExportRecord]:
    """
    Apply import usage to export records.

    Named imports count against the record of the same name in the target,
    default imports against the target's default records. Namespace,
    dynamic and ``export *`` imports mark every record of the target used,
    once per edge. Side-effect imports use nothing.

    Args:
        graph: The dependency graph.
        records: Export records as extracted (reference counts ignored).

    Returns:
        New records, in input order, carrying their reference counts.
    """
    records = list(records)
    by_file = group_by_file(records)
    counts: Dict[int, int] = {id(record): 0 for record in records}

    for edge in graph.iter_internal_edges():
        targets = by_file.get(edge.target)
        if not targets:
            continue
        if edge.kind is ImportKind.SIDE_EFFECT:
            continue
        if edge.import_name == ALL_BINDINGS:
            for record in targets:
                counts[id(record)] += 1
        elif edge.import_name == DEFAULT_BINDING:
            for record in targets:
                if record.kind is ExportKind.DEFAULT:
                    counts[id(record)] += 1
        else:
            for record in targets:
                if record.kind is not ExportKind.DEFAULT and record.name == edge.import_name:
                    counts[id(record)] += 1

    return [record.with_references(counts[id(record)]) for record in records]


class DependencyAnalyzer:
    """Reports imports of names a module does not export, and import cycles."""

    def __init__(self, suggester: Optional[FixSuggester] = None, clock: Callable[[], float] = time.time):
        self.suggester = suggester if suggester is not None else FixSuggester()
        self._clock = clock

    def analyze_dependencies(self, graph: DependencyGraph, records: Iterable[ExportRecord]) -> List[Issue]:
        """
        Check every internal import against the target's exports and report
        every detected cycle.

        Args:
            graph: Dependency graph with cycles already detected.
            records: Export records of the scanned files.

        Returns:
            Missing-export issues in edge order, then one issue per cycle,
            each with its suggestions attached.
        """
        now = self._clock()
        by_file = group_by_file(records)
        issues: List[Issue] = []

        for edge in graph.iter_internal_edges():
            issue = self._check_edge(graph, edge, by_file, now)
            if issue is not None:
                issues.append(issue)

        for cycle in graph.cycles:
            issues.append(self._cycle_issue(cycle, now))

        return self.suggester.attach_suggestions(issues)

    def _check_edge(
        self,
        graph: DependencyGraph,
        edge: ImportEdge,
        by_file: Dict[str, List[ExportRecord]],
        now: float,
    ) -> Optional[Issue]:
        if edge.import_name == ALL_BINDINGS:
            return None

        target_records = by_file.get(edge.target, [])
        if edge.target not in graph and not target_records:
            return None
        if has_star_reexport(graph, edge.target):
            return None

        if edge.import_name == DEFAULT_BINDING:
            if any(r.kind is ExportKind.DEFAULT for r in target_records):
                return None
            description = f"Module '{edge.specifier}' has no default export"
            title = "Missing default export"
        else:
            names: Set[str] = {r.name for r in target_records if r.kind is not ExportKind.DEFAULT}
            if edge.import_name in names:
                return None
            description = f"Module '{edge.specifier}' has no export named '{edge.import_name}'"
            title = f"Missing export: {edge.import_name}"

        logger.debug("Missing export %s in %s (imported by %s)", edge.import_name, edge.target, edge.source)
        return Issue(
            id=f"missing-export:{edge.source}:{edge.location.line}:{edge.import_name}",
            type=IssueType.MISSING_EXPORT,
            severity=Severity.ERROR,
            title=title,
            description=description,
            location=edge.location,
            detected_at=now,
            related_edge=edge,
            related_files=(edge.source, edge.target),
        )

    def _cycle_issue(self, cycle: List[str], now: float) -> Issue:
        members = tuple(dict.fromkeys(cycle))
        path = " -> ".join(cycle)
        return Issue(
            id=f"circular-dependency:{path}",
            type=IssueType.CIRCULAR_DEPENDENCY,
            severity=Severity.ERROR,
            title="Circular dependency",
            description=f"Circular dependency detected: {path}",
            location=SourceLocation(cycle[0], 1),
            detected_at=now,
            related_files=members,
        )


def analyze_dependencies(graph: DependencyGraph, records: Iterable[ExportRecord]) -> List[Issue]:
    """Convenience wrapper around DependencyAnalyzer.analyze_dependencies."""
    return DependencyAnalyzer().analyze_dependencies(graph, records)
