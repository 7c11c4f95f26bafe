"""Per-file export extraction with fingerprint-keyed caching."""

import logging
from typing import List, Optional

from diagnostics.cache import ResultCache, file_fingerprint
from diagnostics.errors import ExtractionError, ScanWarning, WarningKind
from diagnostics.models import ExportRecord, SourceLocation
from .fs import FileSystemAccessor, LocalFileSystem
from .parser import parse_exports

logger = logging.getLogger(__name__)


class ExportExtractor:
    """
    Turns a file's text into ExportRecords.

    When a cache is given, results are keyed by a fingerprint of the file's
    path and modification time, so a modified file is always reparsed.
    """

    def __init__(
        self,
        fs: Optional[FileSystemAccessor] = None,
        cache: Optional[ResultCache] = None,
        ttl: Optional[float] = None,
    ):
        self.fs = fs if fs is not None else LocalFileSystem()
        self.cache = cache
        self.ttl = ttl

    def extract(self, file_path: str, warnings: Optional[List[ScanWarning]] = None) -> List[ExportRecord]:
        """
        Extract the export records of one file.

        Args:
            file_path: POSIX path of the file.
            warnings: If given, cache problems are appended here.

        Returns:
            List of ExportRecord in line order.

        Raises:
            ExtractionError: If the file cannot be stat'ed or read.
        """
        try:
            mtime = self.fs.get_modified_time(file_path)
        except OSError as e:
            raise ExtractionError(file_path, str(e)) from e

        key = file_fingerprint(file_path, mtime)
        if self.cache is not None:
            cached = self._cached_records(key, file_path, warnings)
            if cached is not None:
                return cached

        try:
            content = self.fs.read_file_content(file_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ExtractionError(file_path, str(e)) from e

        records = [
            ExportRecord(
                name=parsed.name,
                kind=parsed.kind,
                category=parsed.category,
                location=SourceLocation(file_path, parsed.line, parsed.column, parsed.snippet),
                last_modified=mtime,
            )
            for parsed in parse_exports(content)
        ]

        if self.cache is not None:
            self.cache.set(key, tuple(records), self.ttl)
        return records

    def _cached_records(
        self,
        key: str,
        file_path: str,
        warnings: Optional[List[ScanWarning]],
    ) -> Optional[List[ExportRecord]]:
        cached = self.cache.get(key)
        if cached is None:
            return None
        if isinstance(cached, tuple) and all(isinstance(r, ExportRecord) for r in cached):
            logger.debug("Cache hit for %s", file_path)
            return list(cached)

        # Unusable payload: drop it and fall back to parsing
        self.cache.delete(key)
        logger.warning("Discarding corrupt cache entry for %s", file_path)
        if warnings is not None:
            warnings.append(ScanWarning(WarningKind.CACHE, "Corrupt cache entry discarded", file_path))
        return None
