"""Dependency graph model and cycle detection."""

from .model import DependencyGraph
from .cycles import detect_cycles

__all__ = ["DependencyGraph", "detect_cycles"]
