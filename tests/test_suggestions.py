"""Tests for fix suggestion generation."""

from diagnostics.models import (
    ExportKind,
    ExportRecord,
    FixSuggestion,
    ImportEdge,
    ImportKind,
    Issue,
    IssueType,
    Severity,
    SourceLocation,
    SuggestionCategory,
)
from diagnostics.suggestions import FixSuggester, _to_camel_case


def make_issue(issue_type, description="", file_path="a.ts", related_export=None,
               related_edge=None, related_files=(), issue_id=None):
    return Issue(
        id=issue_id or f"{issue_type.value}:{file_path}",
        type=issue_type,
        severity=Severity.WARNING,
        title="t",
        description=description,
        location=SourceLocation(file_path, 1),
        detected_at=0.0,
        related_export=related_export,
        related_edge=related_edge,
        related_files=related_files,
    )


class TestSuggestionsPerType:
    """Tests for the suggestion produced for each issue type."""

    def test_unused_named_export(self):
        """Test remove and convert-to-default candidates for a named export."""
        export = ExportRecord("foo", ExportKind.NAMED, SourceLocation("a.ts", 3))
        suggestions = FixSuggester().suggestions_for(make_issue(IssueType.UNUSED_EXPORT, related_export=export))

        assert [(s.category, s.confidence) for s in suggestions] == [
            (SuggestionCategory.REMOVE, 0.9),
            (SuggestionCategory.MODIFY, 0.6),
        ]
        assert suggestions[0].is_safe
        assert suggestions[0].affected_files == ("a.ts",)

    def test_unused_default_export(self):
        """Test that a default export only gets the remove candidate."""
        export = ExportRecord("App", ExportKind.DEFAULT, SourceLocation("a.ts", 3))
        suggestions = FixSuggester().suggestions_for(make_issue(IssueType.UNUSED_EXPORT, related_export=export))

        assert len(suggestions) == 1

    def test_missing_export(self):
        """Test that the add suggestion targets the imported module."""
        edge = ImportEdge("a.ts", "b.ts", "./b", "helper", ImportKind.NAMED, SourceLocation("a.ts", 1))
        suggestions = FixSuggester().suggestions_for(make_issue(IssueType.MISSING_EXPORT, related_edge=edge))

        assert suggestions[0].category is SuggestionCategory.ADD
        assert suggestions[0].confidence == 0.8
        assert suggestions[0].affected_files == ("b.ts",)
        assert "export const helper" in suggestions[0].code_snippet

    def test_circular_dependency(self):
        """Test the refactor suggestion for a cycle."""
        issue = make_issue(IssueType.CIRCULAR_DEPENDENCY, related_files=("a.ts", "b.ts"))
        suggestions = FixSuggester().suggestions_for(issue)

        assert suggestions[0].category is SuggestionCategory.MOVE
        assert suggestions[0].confidence == 0.5
        assert suggestions[0].affected_files == ("a.ts", "b.ts")

    def test_default_conflict(self):
        """Test the keep-one suggestion for default conflicts."""
        suggestions = FixSuggester().suggestions_for(make_issue(IssueType.DEFAULT_EXPORT_CONFLICT))

        assert suggestions[0].confidence == 0.9
        assert suggestions[0].category is SuggestionCategory.MODIFY

    def test_generic_fallback(self):
        """Test that other issue types get a low-confidence review suggestion."""
        suggestions = FixSuggester().suggestions_for(
            make_issue(IssueType.DYNAMIC_IMPORT_ISSUE, description="odd import")
        )

        assert len(suggestions) == 1
        assert suggestions[0].confidence == 0.3
        assert "odd import" in suggestions[0].description


class TestSuggestFixes:
    """Tests for deduplication and ranking across issues."""

    def test_sorted_by_confidence(self):
        """Test that suggestions come out most confident first."""
        issues = [
            make_issue(IssueType.CIRCULAR_DEPENDENCY, related_files=("a.ts", "b.ts")),
            make_issue(IssueType.DEFAULT_EXPORT_CONFLICT),
            make_issue(IssueType.EXPORT_INCONSISTENCY, description="Export name 'Bad_Name' is not camelCase"),
        ]

        suggestions = FixSuggester().suggest_fixes(issues)

        assert [s.confidence for s in suggestions] == [0.9, 0.7, 0.5]

    def test_deduplicated_by_id(self):
        """Test that identical suggestions from two issues appear once."""
        issues = [
            make_issue(IssueType.CIRCULAR_DEPENDENCY, related_files=("a.ts", "b.ts"), issue_id="one"),
            make_issue(IssueType.CIRCULAR_DEPENDENCY, related_files=("a.ts", "b.ts"), issue_id="two"),
        ]

        suggestions = FixSuggester().suggest_fixes(issues)

        assert len(suggestions) == 1
        assert suggestions[0].issue_id == "one"

    def test_empty(self):
        """Test that no issues give no suggestions."""
        assert FixSuggester().suggest_fixes([]) == []

    def test_attach_suggestions(self):
        """Test that attached suggestions belong to their own issue."""
        issue = make_issue(IssueType.DEFAULT_EXPORT_CONFLICT)

        attached = FixSuggester().attach_suggestions([issue])

        assert len(attached[0].suggestions) == 1
        assert attached[0].suggestions[0].issue_id == issue.id
        assert issue.suggestions == ()


class TestCamelCase:
    """Tests for the camelCase rename helper."""

    def test_conversions(self):
        """Test common naming styles."""
        assert _to_camel_case("MAX_SIZE") == "maxSize"
        assert _to_camel_case("my-thing") == "myThing"
        assert _to_camel_case("MyComponent") == "myComponent"
        assert _to_camel_case("API") == "api"


class TestValidateFixes:
    """Tests for suggestion validation."""

    def _fix(self, **overrides):
        fields = dict(
            id="fix-1",
            title="Fix it",
            description="",
            category=SuggestionCategory.MODIFY,
            confidence=0.5,
            affected_files=("a.ts",),
        )
        fields.update(overrides)
        return FixSuggestion(**fields)

    def test_generated_suggestions_are_valid(self):
        """Test that every generated suggestion passes validation."""
        issues = [make_issue(t, description="'x'") for t in IssueType]
        fixes = FixSuggester().suggest_fixes(issues)

        valid, invalid, warnings = FixSuggester().validate_fixes(fixes)

        assert valid == fixes
        assert invalid == []
        assert warnings == []

    def test_invalid_suggestions(self):
        """Test each reason a suggestion is rejected, keeping input order."""
        good = self._fix()
        bad = [
            self._fix(id=""),
            self._fix(title=""),
            self._fix(affected_files=()),
            self._fix(confidence=1.5),
            self._fix(confidence=-0.1),
        ]

        valid, invalid, warnings = FixSuggester().validate_fixes([bad[0], good] + bad[1:])

        assert valid == [good]
        assert invalid == bad
        assert len(warnings) == 5
        assert "missing id" in warnings[0]
        assert "missing title" in warnings[1]
        assert "no affected files" in warnings[2]
        assert "outside [0, 1]" in warnings[3]

    def test_confidence_bounds_inclusive(self):
        """Test that confidence of exactly 0 and 1 is accepted."""
        fixes = [self._fix(confidence=0.0), self._fix(confidence=1)]

        valid, invalid, _ = FixSuggester().validate_fixes(fixes)

        assert valid == fixes
        assert invalid == []
