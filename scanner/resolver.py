"""Resolution of import specifiers to concrete source files."""

import posixpath
from typing import Optional

from .fs import FileSystemAccessor, LocalFileSystem


# Fixed priority order for extension probing
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".d.ts")
DEFAULT_EXTENSION = ".ts"


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith("./") or specifier.startswith("../") or specifier in {".", ".."}


def resolve_specifier(
    source_file: str,
    specifier: str,
    fs: Optional[FileSystemAccessor] = None,
) -> Optional[str]:
    """
    Resolve an import specifier to a file path.

    Tries multiple resolution strategies for relative specifiers:
    1. The literal path, if it is an existing file.
    2. The path with each extension in RESOLVE_EXTENSIONS appended.
    3. ``<path>/index<ext>`` for each extension.

    If nothing exists, a best-effort ``<path>.ts`` is returned rather than
    failing. Bare package names and absolute specifiers are external.

    Args:
        source_file: POSIX path of the importing file.
        specifier: The module specifier as written in the source.
        fs: File-system accessor; defaults to the local disk.

    Returns:
        Resolved POSIX path, or None for external specifiers.
    """
    if not specifier or not is_relative_specifier(specifier):
        return None
    if fs is None:
        fs = LocalFileSystem()

    source_dir = posixpath.dirname(source_file)
    base = posixpath.normpath(posixpath.join(source_dir, specifier))

    # Strategy 1: literal path
    if fs.file_exists(base):
        return base

    # Strategy 2: extension probing
    for ext in RESOLVE_EXTENSIONS:
        candidate = base + ext
        if fs.file_exists(candidate):
            return candidate

    # Strategy 3: directory index
    for ext in RESOLVE_EXTENSIONS:
        candidate = posixpath.join(base, "index" + ext)
        if fs.file_exists(candidate):
            return candidate

    return base + DEFAULT_EXTENSION
