"""Exceptions and non-fatal warnings raised or collected during a diagnostic run."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiagnosticError(Exception):
    """Base class for all errors raised by the diagnostic engine."""


class ConfigurationError(DiagnosticError):
    """Raised when scan options or diagnostic configuration are invalid."""


class ExtractionError(DiagnosticError):
    """Raised when a single file cannot be read or parsed."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"Failed to extract exports from {file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


class RunInProgressError(DiagnosticError):
    """Raised when diagnose() is called while another run is still active."""


class DiagnosticRunError(DiagnosticError):
    """Raised when a run aborts on an unexpected error."""


class WarningKind(str, Enum):
    IO = "io"
    PARSE = "parse"
    CACHE = "cache"
    ANALYZER = "analyzer"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ScanWarning:
    """
    A degraded-scan cause recorded alongside the report.

    Warnings describe problems with the analysis process, never defects
    in the analyzed code.
    """

    kind: WarningKind
    message: str
    file_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "file_path": self.file_path,
        }
