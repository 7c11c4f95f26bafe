"""File-system access used by the scanner, behind a small interface."""

import os
from pathlib import Path
from typing import List, Optional, Protocol


class FileSystemAccessor(Protocol):
    """The file-system operations the diagnostic engine depends on."""

    def read_file_content(self, path: str) -> str: ...

    def file_exists(self, path: str) -> bool: ...

    def get_modified_time(self, path: str) -> float: ...

    def list_dir(self, path: str) -> List[str]: ...

    def is_dir(self, path: str) -> bool: ...

    def list_files_recursive(self, root: str, max_depth: Optional[int] = None) -> List[str]: ...


class LocalFileSystem:
    """FileSystemAccessor backed by the local disk. Paths are POSIX strings."""

    def read_file_content(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")

    def file_exists(self, path: str) -> bool:
        return Path(path).is_file()

    def get_modified_time(self, path: str) -> float:
        return os.stat(path).st_mtime

    def list_dir(self, path: str) -> List[str]:
        """
        List the entries of a directory, sorted by name.

        Raises:
            OSError: If the directory cannot be read.
        """
        return [entry.as_posix() for entry in sorted(Path(path).iterdir())]

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def list_files_recursive(self, root: str, max_depth: Optional[int] = None) -> List[str]:
        """List every file under root, descending at most max_depth levels."""
        files: List[str] = []

        def _walk(current: str, depth: int) -> None:
            if max_depth is not None and depth > max_depth:
                return
            try:
                entries = self.list_dir(current)
            except OSError:
                return
            for entry in entries:
                if self.is_dir(entry):
                    _walk(entry, depth + 1)
                elif self.file_exists(entry):
                    files.append(entry)

        _walk(Path(root).as_posix(), 0)
        return files
