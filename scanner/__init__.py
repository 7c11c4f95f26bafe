"""Scanner module for file discovery, export extraction and import graphs."""

from .discovery import iter_files
from .extractor import ExportExtractor
from .fs import FileSystemAccessor, LocalFileSystem
from .parser import parse_exports, parse_imports
from .resolver import resolve_specifier
from .builder import GraphBuilder

__all__ = [
    "iter_files",
    "ExportExtractor",
    "FileSystemAccessor",
    "LocalFileSystem",
    "parse_exports",
    "parse_imports",
    "resolve_specifier",
    "GraphBuilder",
]
