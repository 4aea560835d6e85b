"""Structural model: the assembled result of one parse.

Holds the extracted elements plus the distinct levels and materials they
reference, so the host side can create levels and materials before any
element is instantiated.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ifc_structural.models.elements import (
    Beam,
    Column,
    Element,
    ElementKind,
    Footing,
    LevelInfo,
    Slab,
)


class StructuralModel(BaseModel):
    """Elements, levels and materials extracted from one file."""

    model_config = ConfigDict(frozen=True)

    project_name: str = ""
    project_description: str = ""
    elements: tuple[Element, ...] = ()
    required_levels: tuple[LevelInfo, ...] = Field(
        default=(), description="Distinct storeys, sorted by elevation then name"
    )
    required_materials: tuple[str, ...] = Field(
        default=(), description="Distinct material names, sorted"
    )

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> StructuralModel:
        """Load a model from a JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text())

    def save(self, path: str | Path) -> Path:
        """Save the model to a JSON file. Creates parent dirs if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path

    # ── Lookups ───────────────────────────────────────────────────────

    def of_kind(self, kind: ElementKind) -> list[Element]:
        return [e for e in self.elements if e.kind == kind]

    @property
    def beams(self) -> list[Beam]:
        return self.of_kind(ElementKind.BEAM)

    @property
    def columns(self) -> list[Column]:
        return self.of_kind(ElementKind.COLUMN)

    @property
    def slabs(self) -> list[Slab]:
        return self.of_kind(ElementKind.SLAB)

    @property
    def footings(self) -> list[Footing]:
        return self.of_kind(ElementKind.FOOTING)

    def get(self, global_id: str) -> Element | None:
        """Find an element by GlobalId."""
        for element in self.elements:
            if element.global_id == global_id:
                return element
        return None

    def get_level(self, name: str) -> LevelInfo | None:
        """Find a required level by name (case-insensitive)."""
        for level in self.required_levels:
            if level.name.lower() == name.lower():
                return level
        return None

    def counts(self) -> dict[str, int]:
        """Element count per kind, every kind present."""
        return {kind.value: len(self.of_kind(kind)) for kind in ElementKind}

    def elements_on(self, level_name: str) -> list[Element]:
        """Elements whose (base) level has the given name."""
        return [
            e for e in self.elements
            if e.level is not None and e.level.name.lower() == level_name.lower()
        ]
