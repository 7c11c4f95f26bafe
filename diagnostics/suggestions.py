"""Fix suggestions for detected issues."""

import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .models import ExportKind, FixSuggestion, Issue, IssueType, SuggestionCategory


_CIRCULAR_SNIPPET = """\
// Options:
// 1. Move the shared code into a separate module both files import
// 2. Pass the dependency in instead of importing it
// 3. Merge or split the modules so imports flow one way"""


def _quoted_name(text: str, fallback: str) -> str:
    match = re.search(r"'([^']+)'", text)
    return match.group(1) if match else fallback


def _to_camel_case(name: str) -> str:
    parts = [p for p in re.split(r"[_\-\s]+", name) if p]
    if not parts:
        return name
    if len(parts) == 1 and not name.isupper():
        return name[0].lower() + name[1:]
    head = parts[0].lower()
    return head + "".join(p[:1].upper() + p[1:].lower() for p in parts[1:])


class FixSuggester:
    """
    Maps issues to ranked remediation candidates.

    Dispatch is by issue type; each handler returns zero or more
    suggestions. Unknown types get one generic low-confidence suggestion.
    """

    def __init__(self):
        self._handlers: Dict[IssueType, Callable[[Issue], List[FixSuggestion]]] = {
            IssueType.UNUSED_EXPORT: self._for_unused_export,
            IssueType.MISSING_EXPORT: self._for_missing_export,
            IssueType.EXPORT_INCONSISTENCY: self._for_inconsistency,
            IssueType.CIRCULAR_DEPENDENCY: self._for_circular_dependency,
            IssueType.DEFAULT_EXPORT_CONFLICT: self._for_default_conflict,
            IssueType.TYPE_EXPORT_ISSUE: self._for_type_export,
        }

    def suggestions_for(self, issue: Issue) -> List[FixSuggestion]:
        """Generate the suggestions for a single issue."""
        handler = self._handlers.get(issue.type, self._generic)
        return handler(issue)

    def suggest_fixes(self, issues: Iterable[Issue]) -> List[FixSuggestion]:
        """
        Generate suggestions for all issues.

        Suggestions are deduplicated by id (first occurrence wins) and
        sorted by descending confidence; ties keep generation order.
        """
        unique: Dict[str, FixSuggestion] = {}
        for issue in issues:
            for suggestion in self.suggestions_for(issue):
                unique.setdefault(suggestion.id, suggestion)
        return sorted(unique.values(), key=lambda s: -s.confidence)

    def attach_suggestions(self, issues: Iterable[Issue]) -> List[Issue]:
        """Return copies of the issues carrying their own suggestions."""
        return [issue.with_suggestions(self.suggestions_for(issue)) for issue in issues]

    def validate_fixes(
        self, fixes: Iterable[FixSuggestion]
    ) -> Tuple[List[FixSuggestion], List[FixSuggestion], List[str]]:
        """
        Split suggestions into valid and invalid ones.

        A suggestion is valid when it has an id, a title, at least one
        affected file, and a confidence within [0, 1].

        Args:
            fixes: Suggestions to check, e.g. from a report.

        Returns:
            Tuple of (valid, invalid, warnings), with one warning message per
            invalid suggestion. Input order is kept.
        """
        valid: List[FixSuggestion] = []
        invalid: List[FixSuggestion] = []
        warnings: List[str] = []
        for fix in fixes:
            problem = self._validation_problem(fix)
            if problem is None:
                valid.append(fix)
            else:
                invalid.append(fix)
                warnings.append(f"Fix suggestion '{fix.title or fix.id}' may be invalid: {problem}")
        return valid, invalid, warnings

    @staticmethod
    def _validation_problem(fix: FixSuggestion) -> Optional[str]:
        if not fix.id:
            return "missing id"
        if not fix.title:
            return "missing title"
        if not fix.affected_files:
            return "no affected files"
        if not isinstance(fix.confidence, (int, float)) or not 0.0 <= fix.confidence <= 1.0:
            return f"confidence {fix.confidence!r} outside [0, 1]"
        return None

    def _for_unused_export(self, issue: Issue) -> List[FixSuggestion]:
        record = issue.related_export
        name = record.name if record else _quoted_name(issue.description, "export")
        file_path = issue.location.file_path
        suggestions = [
            FixSuggestion(
                id=f"remove-unused-export:{file_path}:{name}",
                title="Remove unused export",
                description=f"Delete the unused export '{name}' or drop its export keyword",
                category=SuggestionCategory.REMOVE,
                confidence=0.9,
                affected_files=(file_path,),
                is_safe=True,
                issue_id=issue.id,
            )
        ]
        if record is not None and record.kind is ExportKind.NAMED:
            suggestions.append(
                FixSuggestion(
                    id=f"convert-to-default:{file_path}:{name}",
                    title="Convert to default export",
                    description=f"Export '{name}' as the default export if it is the module's only export",
                    category=SuggestionCategory.MODIFY,
                    confidence=0.6,
                    affected_files=(file_path,),
                    code_snippet=f"export default {name};",
                    issue_id=issue.id,
                )
            )
        return suggestions

    def _for_missing_export(self, issue: Issue) -> List[FixSuggestion]:
        edge = issue.related_edge
        name = edge.import_name if edge else _quoted_name(issue.description, "missingExport")
        target = edge.target if edge and edge.target else issue.location.file_path
        if edge is not None and name == "default":
            snippet = "export default /* implementation */;"
        else:
            snippet = f"export const {name} = /* implementation */;"
        return [
            FixSuggestion(
                id=f"add-missing-export:{target}:{name}",
                title="Add missing export",
                description=f"Add an export named '{name}' to {target} or fix the import",
                category=SuggestionCategory.ADD,
                confidence=0.8,
                affected_files=(target,),
                code_snippet=snippet,
                issue_id=issue.id,
            )
        ]

    def _for_inconsistency(self, issue: Issue) -> List[FixSuggestion]:
        file_path = issue.location.file_path
        name = _quoted_name(issue.description, "export")
        if len(issue.related_files) > 1:
            return [
                FixSuggestion(
                    id=f"resolve-duplicate-export:{name}",
                    title="Resolve duplicate export",
                    description=f"Rename or consolidate the exports named '{name}'",
                    category=SuggestionCategory.RENAME,
                    confidence=0.6,
                    affected_files=issue.related_files,
                    impact="project",
                    code_snippet="// Consider a single barrel module re-exporting the shared name",
                    issue_id=issue.id,
                )
            ]
        return [
            FixSuggestion(
                id=f"fix-naming-convention:{file_path}:{name}",
                title="Rename to camelCase",
                description=f"Rename '{name}' to follow the camelCase export convention",
                category=SuggestionCategory.RENAME,
                confidence=0.7,
                affected_files=(file_path,),
                is_safe=True,
                code_snippet=f"export {{ {name} as {_to_camel_case(name)} }};",
                issue_id=issue.id,
            )
        ]

    def _for_circular_dependency(self, issue: Issue) -> List[FixSuggestion]:
        files = issue.related_files or (issue.location.file_path,)
        return [
            FixSuggestion(
                id=f"break-circular-dependency:{'->'.join(files)}",
                title="Refactor to break the cycle",
                description="Restructure the modules so they no longer import each other in a loop",
                category=SuggestionCategory.MOVE,
                confidence=0.5,
                affected_files=files,
                impact="module",
                code_snippet=_CIRCULAR_SNIPPET,
                issue_id=issue.id,
            )
        ]

    def _for_default_conflict(self, issue: Issue) -> List[FixSuggestion]:
        files = issue.related_files or (issue.location.file_path,)
        return [
            FixSuggestion(
                id=f"resolve-default-conflict:{issue.id}",
                title="Keep one default export",
                description="Keep a single default export and convert the others to named exports",
                category=SuggestionCategory.MODIFY,
                confidence=0.9,
                affected_files=files,
                impact="project" if len(files) > 1 else "file",
                code_snippet="// export { otherExport1, otherExport2 };",
                issue_id=issue.id,
            )
        ]

    def _for_type_export(self, issue: Issue) -> List[FixSuggestion]:
        name = issue.related_export.name if issue.related_export else _quoted_name(issue.description, "TypeName")
        file_path = issue.location.file_path
        return [
            FixSuggestion(
                id=f"fix-type-export:{file_path}:{name}",
                title="Use a named type export",
                description=f"Export '{name}' as a named type export",
                category=SuggestionCategory.MODIFY,
                confidence=0.8,
                affected_files=(file_path,),
                is_safe=True,
                code_snippet=f"export type {{ {name} }};",
                issue_id=issue.id,
            )
        ]

    def _generic(self, issue: Issue) -> List[FixSuggestion]:
        return [
            FixSuggestion(
                id=f"review-issue:{issue.id}",
                title="Review issue",
                description=f"Check and fix manually: {issue.description}",
                category=SuggestionCategory.MODIFY,
                confidence=0.3,
                affected_files=(issue.location.file_path,),
                code_snippet=f"// {issue.description}",
                issue_id=issue.id,
            )
        ]
