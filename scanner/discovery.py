"""Source tree walking and file filtering."""

import logging
import posixpath
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Pattern, Sequence

from diagnostics.config import ScanOptions
from diagnostics.errors import ScanWarning, WarningKind
from .fs import FileSystemAccessor, LocalFileSystem

logger = logging.getLogger(__name__)


DEFAULT_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"}
VENDOR_DIRS = {"node_modules", "bower_components", "jspm_packages"}
ALWAYS_EXCLUDE_DIRS = {".git", ".hg", ".svn", "__pycache__"}
TEST_DIRS = {"__tests__", "__mocks__", "tests", "test"}
TEST_FILE_MARKERS = (".test.", ".spec.")


def expand_braces(pattern: str) -> List[str]:
    """
    Expand ``{a,b}`` alternations in a glob pattern.

    Example: ``src/*.{ts,js}`` -> ``["src/*.ts", "src/*.js"]``.
    """
    match = re.search(r"\{([^{}]*)\}", pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: List[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> Pattern[str]:
    parts: List[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def match_pattern(rel_path: str, pattern: str) -> bool:
    """Check a root-relative POSIX path against one glob pattern."""
    return any(_compile_glob(p).match(rel_path) for p in expand_braces(pattern))


def match_any(rel_path: str, patterns: Sequence[str]) -> bool:
    return any(match_pattern(rel_path, pattern) for pattern in patterns)


def is_test_path(rel_path: str) -> bool:
    """Check if a relative path looks like a test file or lives in a test dir."""
    parts = rel_path.split("/")
    if any(part in TEST_DIRS for part in parts[:-1]):
        return True
    return any(marker in parts[-1] for marker in TEST_FILE_MARKERS)


def is_hidden_path(rel_path: str) -> bool:
    return any(part.startswith(".") for part in rel_path.split("/"))


def is_vendor_path(rel_path: str) -> bool:
    return any(part in VENDOR_DIRS for part in rel_path.split("/")[:-1])


def iter_files(
    options: ScanOptions,
    fs: Optional[FileSystemAccessor] = None,
    warnings: Optional[List[ScanWarning]] = None,
    include_ext: Optional[set] = None,
) -> Iterator[str]:
    """
    Iterate over candidate source files under ``options.root_dir``.

    Filters are applied in order: extension allow-list, ignore patterns
    (which short-circuit inclusion), include patterns, depth bound, then
    hidden/test/vendor exclusion unless enabled in the options.

    Args:
        options: Scan options with root, patterns, depth and flags.
        fs: File-system accessor; defaults to the local disk.
        warnings: If given, unreadable directories are appended here.
        include_ext: Extensions to consider (default: DEFAULT_EXTENSIONS).

    Yields:
        POSIX path strings of matching files, in sorted walk order.
    """
    if fs is None:
        fs = LocalFileSystem()
    if include_ext is None:
        include_ext = DEFAULT_EXTENSIONS

    root = Path(options.root_dir).as_posix()
    max_depth = options.max_depth

    def _accept(rel_path: str) -> bool:
        if posixpath.splitext(rel_path)[1].lower() not in include_ext:
            return False
        if match_any(rel_path, options.ignore_patterns):
            return False
        if not match_any(rel_path, options.include_patterns):
            return False
        if max_depth is not None and rel_path.count("/") > max_depth:
            return False
        if not options.include_hidden and is_hidden_path(rel_path):
            return False
        if not options.include_tests and is_test_path(rel_path):
            return False
        if not options.include_node_modules and is_vendor_path(rel_path):
            return False
        return True

    def _walk(current: str, depth: int) -> Iterator[str]:
        if max_depth is not None and depth > max_depth:
            return

        try:
            entries = fs.list_dir(current)
        except OSError as e:
            logger.warning("Skipping unreadable directory %s: %s", current, e)
            if warnings is not None:
                warnings.append(
                    ScanWarning(WarningKind.IO, f"Unreadable directory: {e}", current)
                )
            return

        for entry in entries:
            name = posixpath.basename(entry)
            if fs.is_dir(entry):
                if name in ALWAYS_EXCLUDE_DIRS:
                    continue
                if name in VENDOR_DIRS and not options.include_node_modules:
                    continue
                if name.startswith(".") and not options.include_hidden:
                    continue
                yield from _walk(entry, depth + 1)
            else:
                rel_path = posixpath.relpath(entry, root)
                if _accept(rel_path):
                    yield entry

    yield from _walk(root, 0)
