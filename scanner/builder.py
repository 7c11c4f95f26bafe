"""Graph builder that parses imports and assembles the dependency graph."""

import logging
from typing import Callable, Iterable, List, Optional, Sequence

from diagnostics.errors import ExtractionError, ScanWarning, WarningKind
from diagnostics.models import ExportRecord, ImportEdge, SourceLocation
from graph.cycles import detect_cycles
from graph.model import DependencyGraph
from .batches import run_in_batches
from .fs import FileSystemAccessor, LocalFileSystem
from .parser import parse_imports
from .resolver import resolve_specifier

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Builds a DependencyGraph from a list of source files."""

    def __init__(self, fs: Optional[FileSystemAccessor] = None, concurrency: int = 4):
        self.fs = fs if fs is not None else LocalFileSystem()
        self.concurrency = concurrency

    def file_edges(self, file_path: str) -> List[ImportEdge]:
        """
        Parse one file's imports into edges.

        Raises:
            ExtractionError: If the file cannot be read.
        """
        try:
            content = self.fs.read_file_content(file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ExtractionError(file_path, str(e)) from e

        edges: List[ImportEdge] = []
        for parsed in parse_imports(content):
            edges.append(
                ImportEdge(
                    source=file_path,
                    target=resolve_specifier(file_path, parsed.specifier, self.fs),
                    specifier=parsed.specifier,
                    import_name=parsed.import_name,
                    local_name=parsed.local_name,
                    kind=parsed.kind,
                    location=SourceLocation(file_path, parsed.line, parsed.column, parsed.snippet),
                    reexport=parsed.reexport,
                )
            )
        return edges

    def build(
        self,
        files: Sequence[str],
        exports: Optional[Iterable[ExportRecord]] = None,
        warnings: Optional[List[ScanWarning]] = None,
        should_stop: Optional[Callable[[], Optional[str]]] = None,
    ) -> DependencyGraph:
        """
        Scan files for imports and build the dependency graph.

        Files that cannot be read contribute no edges and a warning. If
        ``should_stop`` interrupts the build, the graph is marked incomplete
        and holds the edges of the batches that finished.

        Args:
            files: Files to scan, in the order nodes should be added.
            exports: Optional export records whose files are added as nodes.
            warnings: If given, per-file failures are appended here.
            should_stop: Optional stop check consulted between batches.

        Returns:
            DependencyGraph with cycles already detected.
        """
        graph = DependencyGraph()
        for file_path in files:
            graph.add_node(file_path)
        for record in exports or ():
            graph.add_node(record.file_path)

        outcome = run_in_batches(
            list(files),
            self.file_edges,
            self.concurrency,
            expected_errors=(ExtractionError,),
            should_stop=should_stop,
        )

        for _, edges in outcome.results:
            for edge in edges:
                graph.add_edge(edge)

        for file_path, error in outcome.errors:
            logger.warning("Could not parse imports of %s: %s", file_path, error)
            if warnings is not None:
                warnings.append(ScanWarning(WarningKind.IO, str(error), file_path))

        graph.complete = outcome.stopped is None
        graph.cycles = detect_cycles(graph)
        return graph
