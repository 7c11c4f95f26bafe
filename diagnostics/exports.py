"""Consistency checks over the export declarations of a project."""

import re
import time
from typing import Callable, Dict, Iterable, List, Optional

from .models import ExportKind, ExportRecord, Issue, IssueType, Severity
from .suggestions import FixSuggester

CAMEL_CASE_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
TYPE_CATEGORIES = {"type", "interface"}
ANONYMOUS_DEFAULT = "default"


def group_by_file(records: Iterable[ExportRecord]) -> Dict[str, List[ExportRecord]]:
    """Group records by file, keeping first-seen file order."""
    grouped: Dict[str, List[ExportRecord]] = {}
    for record in records:
        grouped.setdefault(record.file_path, []).append(record)
    return grouped


def _distinct_files(records: Iterable[ExportRecord]) -> List[str]:
    return list(dict.fromkeys(record.file_path for record in records))


class ExportAnalyzer:
    """
    Flags unused exports, default-export conflicts, naming deviations,
    type-export misuse and names declared in more than one file.
    """

    def __init__(
        self,
        check_type_exports: bool = True,
        suggester: Optional[FixSuggester] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.check_type_exports = check_type_exports
        self.suggester = suggester if suggester is not None else FixSuggester()
        self._clock = clock

    def analyze_exports(self, records: Iterable[ExportRecord]) -> List[Issue]:
        """
        Analyze all export records.

        Args:
            records: Export records from any number of files.

        Returns:
            Issues with their suggestions attached, per-file issues first
            (in file order) followed by project-wide duplicates.
        """
        records = list(records)
        if not records:
            return []

        now = self._clock()
        issues: List[Issue] = []
        for file_path, file_records in group_by_file(records).items():
            issues.extend(self._analyze_file(file_path, file_records, now))
        issues.extend(self._check_duplicates(records, now))
        return self.suggester.attach_suggestions(issues)

    def _analyze_file(self, file_path: str, records: List[ExportRecord], now: float) -> List[Issue]:
        issues: List[Issue] = []

        for record in records:
            if record.reference_count == 0:
                issues.append(
                    Issue(
                        id=f"unused-export:{file_path}:{record.name}:{record.location.line}",
                        type=IssueType.UNUSED_EXPORT,
                        severity=Severity.WARNING,
                        title=f"Unused export: {record.name}",
                        description=f"Export '{record.name}' is never imported",
                        location=record.location,
                        detected_at=now,
                        related_export=record,
                    )
                )

        defaults = [r for r in records if r.kind is ExportKind.DEFAULT]
        if len(defaults) > 1:
            issues.append(
                Issue(
                    id=f"default-export-conflict:{file_path}",
                    type=IssueType.DEFAULT_EXPORT_CONFLICT,
                    severity=Severity.ERROR,
                    title="Multiple default exports",
                    description=f"File declares {len(defaults)} default exports",
                    location=defaults[0].location,
                    detected_at=now,
                    related_export=defaults[0],
                )
            )

        for record in records:
            if record.kind is ExportKind.NAMED and not CAMEL_CASE_RE.match(record.name):
                issues.append(
                    Issue(
                        id=f"naming-convention:{file_path}:{record.name}:{record.location.line}",
                        type=IssueType.EXPORT_INCONSISTENCY,
                        severity=Severity.INFO,
                        title=f"Naming convention: {record.name}",
                        description=f"Export name '{record.name}' is not camelCase",
                        location=record.location,
                        detected_at=now,
                        related_export=record,
                    )
                )

        if self.check_type_exports:
            for record in records:
                if record.category in TYPE_CATEGORIES and record.kind is not ExportKind.NAMED:
                    issues.append(
                        Issue(
                            id=f"type-export:{file_path}:{record.name}:{record.location.line}",
                            type=IssueType.TYPE_EXPORT_ISSUE,
                            severity=Severity.WARNING,
                            title=f"Type export: {record.name}",
                            description=f"Type '{record.name}' should be a named export",
                            location=record.location,
                            detected_at=now,
                            related_export=record,
                        )
                    )

        return issues

    def _check_duplicates(self, records: List[ExportRecord], now: float) -> List[Issue]:
        issues: List[Issue] = []
        by_name: Dict[str, List[ExportRecord]] = {}
        for record in records:
            by_name.setdefault(record.name, []).append(record)

        for name, same_name in by_name.items():
            named = [r for r in same_name if r.kind is ExportKind.NAMED]
            named_files = _distinct_files(named)
            if len(named_files) > 1:
                issues.append(
                    Issue(
                        id=f"duplicate-named-export:{name}",
                        type=IssueType.EXPORT_INCONSISTENCY,
                        severity=Severity.WARNING,
                        title=f"Duplicate named export: {name}",
                        description=f"Named export '{name}' is declared in {len(named_files)} files",
                        location=named[0].location,
                        detected_at=now,
                        related_export=named[0],
                        related_files=tuple(named_files),
                    )
                )

            if name == ANONYMOUS_DEFAULT:
                continue
            defaults = [r for r in same_name if r.kind is ExportKind.DEFAULT]
            default_files = _distinct_files(defaults)
            if len(default_files) > 1:
                issues.append(
                    Issue(
                        id=f"duplicate-default-export:{name}",
                        type=IssueType.DEFAULT_EXPORT_CONFLICT,
                        severity=Severity.ERROR,
                        title=f"Duplicate default export: {name}",
                        description=(
                            f"Default export '{name}' is declared in {len(default_files)} files: "
                            + ", ".join(default_files)
                        ),
                        location=defaults[0].location,
                        detected_at=now,
                        related_export=defaults[0],
                        related_files=tuple(default_files),
                    )
                )

        return issues


def analyze_exports(records: Iterable[ExportRecord], check_type_exports: bool = True) -> List[Issue]:
    """Convenience wrapper around ExportAnalyzer.analyze_exports."""
    return ExportAnalyzer(check_type_exports=check_type_exports).analyze_exports(records)
