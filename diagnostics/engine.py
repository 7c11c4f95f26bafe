"""Diagnostic orchestrator: one run from file discovery to the final report."""

import logging
import threading
import time
import uuid
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from graph.model import DependencyGraph
from scanner.batches import run_in_batches
from scanner.builder import GraphBuilder
from scanner.discovery import iter_files
from scanner.extractor import ExportExtractor
from scanner.fs import FileSystemAccessor, LocalFileSystem
from .cache import ResultCache
from .config import RULE_OFF, DiagnosticConfig, ScanOptions, config_to_dict, merge_config
from .dependencies import DependencyAnalyzer, count_references
from .errors import (
    ConfigurationError,
    DiagnosticRunError,
    ExtractionError,
    RunInProgressError,
    ScanWarning,
    WarningKind,
)
from .exports import ExportAnalyzer
from .models import (
    DiagnosticReport,
    DiagnosticStatistics,
    ExportRecord,
    FixSuggestion,
    Issue,
    PerformanceMetrics,
    ScanProgress,
    Severity,
)
from .suggestions import FixSuggester

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_TIMED_OUT = "timed_out"

ProgressCallback = Callable[[ScanProgress], None]


class EngineState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ANALYZING = "analyzing"
    SUGGESTING_FIXES = "suggesting_fixes"
    COMPLETED = "completed"
    FAILED = "failed"


class DeepAnalyzer(Protocol):
    """Pluggable source of additional per-file issues (type checkers, linters)."""

    def analyze_file(self, path: str) -> List[Issue]: ...


def dedupe_issues(issues: Iterable[Issue]) -> List[Issue]:
    """Drop issues with the same (type, file, line, description), keeping the first."""
    unique: Dict[Tuple[str, str, int, str], Issue] = {}
    for issue in issues:
        unique.setdefault(issue.dedupe_key(), issue)
    return list(unique.values())


def apply_rules(issues: Iterable[Issue], config: DiagnosticConfig) -> List[Issue]:
    """
    Apply custom severity rules, then the severity threshold.

    Args:
        issues: Issues as produced by the analyzers.
        config: Configuration holding ``custom_rules`` and ``severity_threshold``.

    Returns:
        Issues that survive, with overridden severities where a rule applies.
    """
    kept: List[Issue] = []
    threshold = config.severity_threshold.rank
    for issue in issues:
        rule = config.severity_override(issue.type)
        if rule == RULE_OFF:
            continue
        if rule:
            issue = replace(issue, severity=Severity(rule.lower()))
        if issue.severity.rank >= threshold:
            kept.append(issue)
    return kept


def sort_issues(issues: Iterable[Issue]) -> List[Issue]:
    """Order by severity (most severe first), then file path, then line."""
    return sorted(issues, key=lambda issue: issue.sort_key())


def compute_statistics(
    files: List[str],
    records: List[ExportRecord],
    issues: List[Issue],
    usage_counted: bool = True,
) -> DiagnosticStatistics:
    """
    Summarize a run. When reference counting did not run (a partial run),
    the used/unused figures and the usage rate are reported as zero.
    """
    used = sum(1 for record in records if record.is_used)
    by_type: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    for issue in issues:
        by_type[issue.type.value] = by_type.get(issue.type.value, 0) + 1
        by_severity[issue.severity.value] = by_severity.get(issue.severity.value, 0) + 1
    return DiagnosticStatistics(
        files_scanned=len(files),
        total_exports=len(records),
        used_exports=used if usage_counted else 0,
        unused_exports=len(records) - used if usage_counted else 0,
        export_usage_rate=used / len(records) if records and usage_counted else 0.0,
        total_issues=len(issues),
        issues_by_type=by_type,
        issues_by_severity=by_severity,
    )


class DiagnosticEngine:
    """
    Runs the full export/dependency diagnosis over a source tree.

    Collaborators (file system, cache, deep analyzer) are injected. At most
    one run may be in progress per engine; a second concurrent call to
    ``diagnose`` raises RunInProgressError.

    Example:
        engine = DiagnosticEngine(DiagnosticConfig(timeout=10))
        report = engine.diagnose(ScanOptions(root_dir="src"))
    """

    def __init__(
        self,
        config: Union[DiagnosticConfig, Mapping[str, Any], None] = None,
        fs: Optional[FileSystemAccessor] = None,
        cache: Optional[ResultCache] = None,
        deep_analyzer: Optional[DeepAnalyzer] = None,
        clock: Callable[[], float] = time.time,
        timer: Callable[[], float] = time.monotonic,
    ):
        if config is None:
            config = DiagnosticConfig()
        elif isinstance(config, Mapping):
            config = merge_config(DiagnosticConfig(), config)
        elif not isinstance(config, DiagnosticConfig):
            raise ConfigurationError(f"Expected DiagnosticConfig, got {type(config).__name__}")

        self.config = config
        self.fs = fs if fs is not None else LocalFileSystem()
        if cache is None and config.enable_cache:
            cache = ResultCache(
                default_ttl=config.cache_expiry,
                max_entries=config.cache_max_entries,
                memory_limit=config.cache_memory_limit,
            )
        self.cache = cache if config.enable_cache else None
        self.deep_analyzer = deep_analyzer
        self.suggester = FixSuggester()
        self.extractor = ExportExtractor(self.fs, self.cache, ttl=config.cache_expiry)
        self.export_analyzer = ExportAnalyzer(config.check_type_exports, self.suggester, clock)
        self.dependency_analyzer = DependencyAnalyzer(self.suggester, clock)

        self._clock = clock
        self._timer = timer
        self._run_lock = threading.Lock()
        self.state = EngineState.IDLE

    def diagnose(
        self,
        options: Optional[ScanOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> DiagnosticReport:
        """
        Run a diagnosis.

        Args:
            options: Which files to scan; defaults to ScanOptions().
            on_progress: Optional callback receiving ScanProgress snapshots.
            cancel_event: Optional event; once set, the run stops before the
                next batch and returns a partial report.

        Returns:
            DiagnosticReport. ``status`` is "completed", "cancelled" or
            "timed_out"; ``complete`` is False for the latter two.

        Raises:
            RunInProgressError: If another run on this engine is in progress.
            DiagnosticRunError: If the run fails unexpectedly.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("A diagnostic run is already in progress on this engine")
        try:
            return self._run(options or ScanOptions(), on_progress, cancel_event)
        except Exception as e:
            self.state = EngineState.FAILED
            logger.exception("Diagnostic run failed")
            raise DiagnosticRunError(f"Diagnostic run failed: {e}") from e
        finally:
            self._run_lock.release()

    def analyze_file(self, file_path: str) -> List[Issue]:
        """
        Extract and analyze the exports of a single file.

        No import graph is built, so every export counts as unused. Custom
        rules and the severity threshold still apply.

        Raises:
            ExtractionError: If the file cannot be read.
        """
        records = self.extractor.extract(file_path)
        issues = self.export_analyzer.analyze_exports(records)
        return sort_issues(apply_rules(dedupe_issues(issues), self.config))

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()
            logger.info("Result cache cleared")

    def validate_fixes(
        self, fixes: Iterable[FixSuggestion]
    ) -> Tuple[List[FixSuggestion], List[FixSuggestion], List[str]]:
        """Split suggestions into (valid, invalid, warnings); see FixSuggester.validate_fixes."""
        valid, invalid, warnings = self.suggester.validate_fixes(fixes)
        for message in warnings:
            logger.warning(message)
        return valid, invalid, warnings

    def _run(
        self,
        options: ScanOptions,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[threading.Event],
    ) -> DiagnosticReport:
        started = self._timer()
        deadline = started + self.config.timeout if self.config.timeout is not None else None
        cache_before = self.cache.stats() if self.cache is not None else None
        warnings: List[ScanWarning] = []
        batches = 0

        def should_stop() -> Optional[str]:
            if cancel_event is not None and cancel_event.is_set():
                return STATUS_CANCELLED
            if deadline is not None and self._timer() >= deadline:
                return STATUS_TIMED_OUT
            return None

        def report_progress(phase: str, processed: int, total: int, current: Optional[str] = None) -> None:
            if on_progress is not None:
                on_progress(ScanProgress(phase, processed, total, current, self._timer() - started))

        self.state = EngineState.SCANNING
        logger.info("Scanning %s", options.root_dir)
        files = list(iter_files(options, self.fs, warnings))
        report_progress("scanning", 0, len(files))

        outcome = run_in_batches(
            files,
            lambda path: self.extractor.extract(path, warnings),
            options.concurrency,
            expected_errors=(ExtractionError,),
            should_stop=should_stop,
            on_item_done=lambda path, done: report_progress("scanning", done, len(files), path),
        )
        batches += outcome.batches
        done = {path for path, _ in outcome.results} | {path for path, _ in outcome.errors}
        scanned = [path for path in files if path in done]
        records: List[ExportRecord] = [record for _, file_records in outcome.results for record in file_records]
        for path, error in outcome.errors:
            logger.warning("Skipping %s: %s", path, error)
            warnings.append(ScanWarning(WarningKind.IO, str(error), path))

        stopped = outcome.stopped
        graph = DependencyGraph()
        issues: List[Issue] = []
        usage_counted = False

        if stopped is None:
            builder = GraphBuilder(self.fs, options.concurrency)
            graph = builder.build(files, records, warnings, should_stop)
            if not graph.complete:
                stopped = should_stop() or STATUS_CANCELLED

        if stopped is None:
            self.state = EngineState.ANALYZING
            logger.info("Analyzing %d exports across %d files", len(records), len(files))
            records = count_references(graph, records)
            usage_counted = True
            issues.extend(self.export_analyzer.analyze_exports(records))
            issues.extend(self.dependency_analyzer.analyze_dependencies(graph, records))
            if self.deep_analyzer is not None:
                deep_issues, deep_batches, stopped = self._run_deep_analyzer(
                    files, options.concurrency, warnings, should_stop
                )
                batches += deep_batches
                issues.extend(self.suggester.attach_suggestions(deep_issues))

        issues = sort_issues(apply_rules(dedupe_issues(issues), self.config))

        self.state = EngineState.SUGGESTING_FIXES
        suggestions = self.suggester.suggest_fixes(issues)

        if stopped is not None:
            kind = WarningKind.CANCELLED if stopped == STATUS_CANCELLED else WarningKind.TIMEOUT
            message = "Run cancelled" if stopped == STATUS_CANCELLED else "Run timed out"
            logger.warning("%s after %d of %d files", message, len(scanned), len(files))
            warnings.append(ScanWarning(kind, f"{message}; report is partial"))

        duration = self._timer() - started
        report = DiagnosticReport(
            id=uuid.uuid4().hex,
            generated_at=self._clock(),
            status=stopped or STATUS_COMPLETED,
            complete=stopped is None,
            config={**config_to_dict(self.config), "scan": config_to_dict(options)},
            scanned_files=tuple(scanned),
            statistics=compute_statistics(scanned, records, issues, usage_counted),
            dependency_stats=graph.stats(),
            issues=tuple(issues),
            suggestions=tuple(suggestions),
            warnings=tuple(warnings),
            performance=self._performance(duration, len(scanned), batches, cache_before),
        )

        self.state = EngineState.COMPLETED
        logger.info(
            "Diagnosis %s: %d files, %d issues in %.2fs",
            report.status,
            len(scanned),
            len(issues),
            duration,
        )
        return report

    def _run_deep_analyzer(
        self,
        files: List[str],
        concurrency: int,
        warnings: List[ScanWarning],
        should_stop: Callable[[], Optional[str]],
    ) -> Tuple[List[Issue], int, Optional[str]]:
        # Any failure of the plug-in degrades to a warning for that file
        outcome = run_in_batches(
            files,
            self.deep_analyzer.analyze_file,
            concurrency,
            expected_errors=(Exception,),
            should_stop=should_stop,
        )
        issues: List[Issue] = []
        for _, file_issues in outcome.results:
            issues.extend(file_issues or ())
        for path, error in outcome.errors:
            logger.warning("Deep analyzer failed on %s: %s", path, error)
            warnings.append(ScanWarning(WarningKind.ANALYZER, str(error), path))
        return issues, outcome.batches, outcome.stopped

    def _performance(
        self,
        duration: float,
        files: int,
        batches: int,
        cache_before: Optional[Dict[str, float]],
    ) -> PerformanceMetrics:
        hits = misses = 0
        if self.cache is not None and cache_before is not None:
            after = self.cache.stats()
            hits = int(after["hits"] - cache_before["hits"])
            misses = int(after["misses"] - cache_before["misses"])
        return PerformanceMetrics(
            duration=duration,
            files_per_second=files / duration if duration > 0 else 0.0,
            cache_hits=hits,
            cache_misses=misses,
            batches=batches,
        )
