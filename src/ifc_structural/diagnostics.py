"""Diagnostics recorded during a run.

Anything the pipeline recovers from (a dropped statement, a skipped
element, a fallback type) leaves one Diagnostic behind, so a run never
loses data silently.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class Diagnostic:
    """A single run note."""

    severity: str  # "info" | "warning" | "error"
    code: str  # e.g. "parse", "extract", "fallback", "resolve", "adapter"
    message: str
    element_id: str = ""

    def __str__(self) -> str:
        prefix = f"[{self.severity.upper()}] {self.code}"
        if self.element_id:
            prefix += f" {self.element_id}"
        return f"{prefix}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def info(code: str, message: str, element_id: str = "") -> Diagnostic:
    return Diagnostic("info", code, message, element_id)


def warning(code: str, message: str, element_id: str = "") -> Diagnostic:
    return Diagnostic("warning", code, message, element_id)


def error(code: str, message: str, element_id: str = "") -> Diagnostic:
    return Diagnostic("error", code, message, element_id)
