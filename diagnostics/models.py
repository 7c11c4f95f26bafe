"""Data model shared by the scanner, analyzers and the diagnostic engine."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import ScanWarning


class ExportKind(str, Enum):
    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"


class ImportKind(str, Enum):
    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"
    SIDE_EFFECT = "side-effect"
    DYNAMIC = "dynamic"


class IssueType(str, Enum):
    UNUSED_EXPORT = "unused_export"
    MISSING_EXPORT = "missing_export"
    EXPORT_INCONSISTENCY = "export_inconsistency"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    DEFAULT_EXPORT_CONFLICT = "default_export_conflict"
    TYPE_EXPORT_ISSUE = "type_export_issue"
    EXPORT_NAME_CONFLICT = "export_name_conflict"
    IMPORT_EXPORT_MISMATCH = "import_export_mismatch"
    DYNAMIC_IMPORT_ISSUE = "dynamic_import_issue"
    REEXPORT_ISSUE = "reexport_issue"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"

    @property
    def rank(self) -> int:
        """Numeric weight, higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 4,
    Severity.WARNING: 3,
    Severity.INFO: 2,
    Severity.HINT: 1,
}


class SuggestionCategory(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    MOVE = "move"
    RENAME = "rename"


@dataclass(frozen=True)
class SourceLocation:
    """A 1-based position in a source file plus the raw line."""

    file_path: str
    line: int
    column: int = 1
    snippet: str = ""


@dataclass(frozen=True)
class ExportRecord:
    """One export declaration found in a file."""

    name: str
    kind: ExportKind
    location: SourceLocation
    category: str = ""
    is_used: bool = False
    reference_count: int = 0
    last_modified: float = 0.0

    @property
    def file_path(self) -> str:
        return self.location.file_path

    def with_references(self, count: int) -> "ExportRecord":
        """Return a copy carrying the given usage count."""
        return replace(self, reference_count=count, is_used=count > 0)


@dataclass(frozen=True)
class ImportEdge:
    """
    A directed reference from an importing file to a module.

    ``target`` is None for bare or absolute specifiers, which are treated
    as external and excluded from export-presence checks. ``import_name``
    is the exported name being requested: ``"default"`` for default
    imports and ``"*"`` for namespace, side-effect and dynamic imports.
    """

    source: str
    target: Optional[str]
    specifier: str
    import_name: str
    kind: ImportKind
    location: SourceLocation
    local_name: str = ""
    reexport: bool = False

    @property
    def is_external(self) -> bool:
        return self.target is None


@dataclass(frozen=True)
class FixSuggestion:
    """A ranked, non-binding remediation proposal."""

    id: str
    title: str
    description: str
    category: SuggestionCategory
    confidence: float
    affected_files: Tuple[str, ...] = ()
    is_safe: bool = False
    impact: str = "file"
    code_snippet: str = ""
    issue_id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "confidence": self.confidence,
            "affected_files": list(self.affected_files),
            "is_safe": self.is_safe,
            "impact": self.impact,
            "code_snippet": self.code_snippet,
            "issue_id": self.issue_id,
        }


@dataclass(frozen=True)
class Issue:
    """A defect detected in the analyzed project."""

    id: str
    type: IssueType
    severity: Severity
    title: str
    description: str
    location: SourceLocation
    detected_at: float
    related_export: Optional[ExportRecord] = None
    related_edge: Optional[ImportEdge] = None
    related_files: Tuple[str, ...] = ()
    suggestions: Tuple[FixSuggestion, ...] = ()

    def sort_key(self) -> Tuple[int, str, int]:
        """Severity descending, then file path, then line."""
        return (-self.severity.rank, self.location.file_path, self.location.line)

    def dedupe_key(self) -> Tuple[str, str, int, str]:
        return (self.type.value, self.location.file_path, self.location.line, self.description)

    def with_suggestions(self, suggestions: List[FixSuggestion]) -> "Issue":
        return replace(self, suggestions=tuple(suggestions))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "location": {
                "file_path": self.location.file_path,
                "line": self.location.line,
                "column": self.location.column,
                "snippet": self.location.snippet,
            },
            "related_files": list(self.related_files),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "detected_at": self.detected_at,
        }
        if self.related_export is not None:
            data["related_export"] = self.related_export.name
        if self.related_edge is not None:
            data["related_import"] = {
                "source": self.related_edge.source,
                "target": self.related_edge.target,
                "import_name": self.related_edge.import_name,
                "kind": self.related_edge.kind.value,
            }
        return data


@dataclass(frozen=True)
class ScanProgress:
    """Snapshot passed to progress callbacks."""

    phase: str
    processed_files: int
    total_files: int
    current_file: Optional[str] = None
    elapsed: float = 0.0


@dataclass(frozen=True)
class PerformanceMetrics:
    duration: float = 0.0
    files_per_second: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0
    batches: int = 0


@dataclass(frozen=True)
class DiagnosticStatistics:
    files_scanned: int = 0
    total_exports: int = 0
    used_exports: int = 0
    unused_exports: int = 0
    export_usage_rate: float = 0.0
    total_issues: int = 0
    issues_by_type: Dict[str, int] = field(default_factory=dict)
    issues_by_severity: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class DiagnosticReport:
    """Immutable result of one diagnostic run."""

    id: str
    generated_at: float
    status: str
    complete: bool
    config: Dict[str, object]
    scanned_files: Tuple[str, ...]
    statistics: DiagnosticStatistics
    dependency_stats: Dict[str, object]
    issues: Tuple[Issue, ...]
    suggestions: Tuple[FixSuggestion, ...]
    warnings: Tuple[ScanWarning, ...]
    performance: PerformanceMetrics
