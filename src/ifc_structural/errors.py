"""Error taxonomy for the import pipeline.

Only FileError aborts a run. Every other error is recovered at the
granularity named in its docstring and reported as a diagnostic.
"""

from __future__ import annotations


class StructuralImportError(Exception):
    """Base class for all import errors."""


class FileError(StructuralImportError):
    """The source file is missing or unreadable. Fatal, raised before any host mutation."""


class StatementParseError(StructuralImportError):
    """One entity statement could not be parsed. The entity is dropped."""

    def __init__(self, statement: str, reason: str):
        self.statement = statement
        self.reason = reason
        preview = statement if len(statement) <= 80 else statement[:77] + "..."
        super().__init__(f"{reason}: {preview}")


class ExtractionError(StructuralImportError):
    """The semantic chain for one element failed. The element is skipped."""


class ResolutionFailure(StructuralImportError):
    """No instantiable host type exists for an element kind. The element is skipped."""


class AdapterError(StructuralImportError):
    """The host failed to create or update an element."""
