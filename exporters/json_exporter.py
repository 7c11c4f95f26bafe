"""JSON exporter for diagnostic reports (machine-friendly format)."""

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from diagnostics.models import DiagnosticReport


def report_to_dict(report: DiagnosticReport, root: Optional[str] = None) -> Dict[str, Any]:
    """
    Convert a diagnostic report to plain data.

    Args:
        report: The report to export.
        root: Optional root directory; scanned file paths are shown
            relative to it.

    Returns:
        Dict holding only JSON-serializable values.
    """
    files: List[str] = [_get_path_str(path, root) for path in report.scanned_files]

    return {
        "id": report.id,
        "generated_at": report.generated_at,
        "status": report.status,
        "complete": report.complete,
        "config": report.config,
        "scanned_files": files,
        "statistics": asdict(report.statistics),
        "dependency_stats": dict(report.dependency_stats),
        "issues": [issue.to_dict() for issue in report.issues],
        "suggestions": [suggestion.to_dict() for suggestion in report.suggestions],
        "warnings": [warning.to_dict() for warning in report.warnings],
        "performance": asdict(report.performance),
    }


def to_json(report: DiagnosticReport, root: Optional[str] = None, indent: int = 2) -> str:
    """
    Convert a diagnostic report to JSON format.

    Args:
        report: The report to export.
        root: Optional root directory for relative path display.
        indent: JSON indentation level.

    Returns:
        JSON string representation of the report.
    """
    return json.dumps(report_to_dict(report, root), indent=indent)


def _get_path_str(path: str, root: Optional[str]) -> str:
    """Get the display string of a path, relative to root when possible."""
    if not root:
        return path
    prefix = root.rstrip("/") + "/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return path
