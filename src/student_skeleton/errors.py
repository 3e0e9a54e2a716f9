"""Typed failures raised by the conversion pipeline.

Every failure is fatal to the run and surfaces unmodified to the caller;
nothing is retried or rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class ConversionError(RuntimeError):
    """Base class for all conversion failures."""


class ConfigurationError(ConversionError):
    """Raised when the configured source root does not exist."""

    def __init__(self, path: Path, detail: str | None = None) -> None:
        self.path = path
        super().__init__(detail or f"Source directory does not exist: {path}")


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """Location of the first syntax error found in one file."""

    path: Path
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


class ParseError(ConversionError):
    """Raised when one or more source files are syntactically invalid."""

    def __init__(self, failures: list[ParseFailure]) -> None:
        self.failures = list(failures)
        listed = ", ".join(str(f) for f in self.failures)
        super().__init__(
            f"{len(self.failures)} file(s) failed to parse: {listed}"
        )


class EmissionError(ConversionError):
    """Raised when writing or deleting an output file fails.

    Files emitted before the failing one stay modified on disk.
    """

    def __init__(self, path: Path, operation: str) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"Failed to {operation} {path}")
