"""Shared fixtures for the test suite."""

import posixpath
from typing import Dict, List, Optional

import pytest


class FakeFileSystem:
    """In-memory FileSystemAccessor. Directories exist implicitly."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = {}
        self.mtimes: Dict[str, float] = {}
        self.unreadable: set = set()
        self.reads: List[str] = []
        for path, content in (files or {}).items():
            self.write(path, content)

    def write(self, path: str, content: str, mtime: float = 1.0) -> None:
        self.files[path] = content
        self.mtimes[path] = mtime

    def touch(self, path: str, mtime: float) -> None:
        self.mtimes[path] = mtime

    def read_file_content(self, path: str) -> str:
        self.reads.append(path)
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: {path}")
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def file_exists(self, path: str) -> bool:
        return path in self.files

    def get_modified_time(self, path: str) -> float:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.mtimes[path]

    def is_dir(self, path: str) -> bool:
        prefix = path.rstrip("/") + "/"
        return any(p.startswith(prefix) for p in self.files)

    def list_dir(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        children = set()
        for p in self.files:
            if p.startswith(prefix):
                children.add(prefix + p[len(prefix):].split("/", 1)[0])
        if not children:
            raise FileNotFoundError(path)
        return sorted(children)

    def list_files_recursive(self, root: str, max_depth: Optional[int] = None) -> List[str]:
        prefix = root.rstrip("/") + "/"
        found = []
        for p in sorted(self.files):
            if not p.startswith(prefix):
                continue
            if max_depth is not None and posixpath.relpath(p, root).count("/") > max_depth:
                continue
            found.append(p)
        return found


@pytest.fixture
def fake_fs():
    return FakeFileSystem()


@pytest.fixture
def sample_project():
    """A small project with one unused export, one missing export and one cycle."""
    return FakeFileSystem({
        "/proj/src/index.ts": (
            "import { add, missing } from './math';\n"
            "import App from './app';\n"
            "export const run = () => add(1, 2);\n"
        ),
        "/proj/src/math.ts": (
            "export function add(a: number, b: number) { return a + b; }\n"
            "export function subtract(a: number, b: number) { return a - b; }\n"
        ),
        "/proj/src/app.ts": (
            "import { helper } from './helper';\n"
            "export default class App {}\n"
        ),
        "/proj/src/helper.ts": (
            "import App from './app';\n"
            "export const helper = () => App;\n"
        ),
    })
