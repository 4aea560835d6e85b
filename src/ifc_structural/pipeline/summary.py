"""Run summary: counts per kind, host-side creations and every diagnostic."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ifc_structural.diagnostics import Diagnostic
from ifc_structural.models.elements import ElementKind


class KindCounts(BaseModel):
    """What happened to the elements of one kind."""

    seen: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = Field(default=0, description="Existing elements left alone (update_existing off)")
    skipped: int = 0
    fallbacks: int = 0


class ImportSummary(BaseModel):
    """Result of one import run."""

    file_name: str = ""
    success: bool = True
    cancelled: bool = False
    per_kind: dict[ElementKind, KindCounts] = Field(
        default_factory=lambda: {kind: KindCounts() for kind in ElementKind}
    )
    orphan_count: int = 0
    levels_created: int = 0
    materials_created: int = 0
    types_created: int = 0
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    def counts(self, kind: ElementKind) -> KindCounts:
        return self.per_kind.setdefault(kind, KindCounts())

    @property
    def total_seen(self) -> int:
        return sum(c.seen for c in self.per_kind.values())

    @property
    def total_created(self) -> int:
        return sum(c.created for c in self.per_kind.values())

    @property
    def total_updated(self) -> int:
        return sum(c.updated for c in self.per_kind.values())

    @property
    def total_skipped(self) -> int:
        return sum(c.skipped for c in self.per_kind.values())

    @property
    def total_fallbacks(self) -> int:
        return sum(c.fallbacks for c in self.per_kind.values())

    def messages(self) -> list[str]:
        """Diagnostics as display strings, in the order they were recorded."""
        return [str(d) for d in self.diagnostics]

    def by_code(self, code: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["totals"] = {
            "seen": self.total_seen,
            "created": self.total_created,
            "updated": self.total_updated,
            "skipped": self.total_skipped,
            "fallbacks": self.total_fallbacks,
        }
        return data

    def report(self) -> str:
        """Plain-text import report."""
        status = "completed" if self.success and not self.cancelled else (
            "cancelled" if self.cancelled else "completed with errors"
        )
        lines = [
            f"File: {self.file_name}",
            f"Import {status} in {self.elapsed_seconds:.1f} s",
            "",
            "Elements:",
        ]
        for kind in ElementKind:
            c = self.counts(kind)
            line = (
                f"  {kind.label + 's':<9} {c.seen:>4} "
                f"({c.created} created, {c.updated} updated, {c.skipped} skipped"
            )
            if c.unchanged:
                line += f", {c.unchanged} unchanged"
            if c.fallbacks:
                line += f", {c.fallbacks} fallback"
            lines.append(line + ")")
        lines += [
            "",
            f"Total: {self.total_seen} elements",
            f"  Created:  {self.total_created}",
            f"  Updated:  {self.total_updated}",
            f"  Skipped:  {self.total_skipped}",
            f"  Orphans:  {self.orphan_count}",
            "",
            f"Materials created: {self.materials_created}",
            f"Levels created: {self.levels_created}",
            f"Types created: {self.types_created}",
        ]
        if self.diagnostics:
            lines += ["", f"Diagnostics ({len(self.diagnostics)}):"]
            lines += [f"  {m}" for m in self.messages()]
        return "\n".join(lines)
