"""Export and dependency diagnostics for JavaScript/TypeScript projects.

The engine lives in ``diagnostics.engine``; it is not imported here because
the scanner and graph packages depend on this package's models.
"""

from .errors import (
    ConfigurationError,
    DiagnosticError,
    DiagnosticRunError,
    ExtractionError,
    RunInProgressError,
    ScanWarning,
    WarningKind,
)
from .models import (
    DiagnosticReport,
    ExportKind,
    ExportRecord,
    FixSuggestion,
    ImportEdge,
    ImportKind,
    Issue,
    IssueType,
    Severity,
    SourceLocation,
)
from .config import DiagnosticConfig, ScanOptions, load_config_file, merge_config
from .cache import ResultCache

__all__ = [
    "ConfigurationError",
    "DiagnosticError",
    "DiagnosticRunError",
    "ExtractionError",
    "RunInProgressError",
    "ScanWarning",
    "WarningKind",
    "DiagnosticReport",
    "ExportKind",
    "ExportRecord",
    "FixSuggestion",
    "ImportEdge",
    "ImportKind",
    "Issue",
    "IssueType",
    "Severity",
    "SourceLocation",
    "DiagnosticConfig",
    "ScanOptions",
    "load_config_file",
    "merge_config",
    "ResultCache",
]
