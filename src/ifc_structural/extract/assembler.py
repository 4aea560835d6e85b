"""Model assembly: run the extractors over a parsed file.

Kinds are processed in a fixed order (beams, columns, slabs, footings)
and entities in file order, so the same file always assembles into the
same model. A failing element is skipped with a diagnostic; the rest of
the file continues.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ifc_structural import diagnostics
from ifc_structural.config import ImportConfig
from ifc_structural.diagnostics import Diagnostic
from ifc_structural.errors import ExtractionError
from ifc_structural.extract.elements import (
    BEAM_TYPES,
    COLUMN_TYPES,
    FOOTING_TYPES,
    SLAB_TYPES,
    extract_beam,
    extract_column,
    extract_footing,
    extract_slab,
)
from ifc_structural.models.elements import Column, ElementKind, LevelInfo, StructuralElement
from ifc_structural.models.model import StructuralModel
from ifc_structural.step.navigator import Navigator
from ifc_structural.step.store import EntityStore, RawEntity

logger = logging.getLogger(__name__)

Extractor = Callable[[Navigator, RawEntity, ImportConfig, list], StructuralElement]

KIND_BATCHES: list[tuple[ElementKind, tuple[str, ...], Extractor]] = [
    (ElementKind.BEAM, BEAM_TYPES, extract_beam),
    (ElementKind.COLUMN, COLUMN_TYPES, extract_column),
    (ElementKind.SLAB, SLAB_TYPES, extract_slab),
    (ElementKind.FOOTING, FOOTING_TYPES, extract_footing),
]


class CancelToken:
    """Cooperative cancellation, checked between element-kind batches."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class Assembly:
    """Assembled model plus everything noted while building it."""

    model: StructuralModel
    diagnostics: list[Diagnostic] = field(default_factory=list)
    seen: dict[ElementKind, int] = field(default_factory=dict)
    skipped: dict[ElementKind, int] = field(default_factory=dict)
    cancelled: bool = False


def parse_diagnostics(store: EntityStore) -> list[Diagnostic]:
    return [diagnostics.warning("parse", str(error)) for error in store.rejected]


def required_levels(elements: list[StructuralElement]) -> tuple[LevelInfo, ...]:
    """Distinct levels referenced by elements, by elevation then name."""
    levels: set[LevelInfo] = set()
    for element in elements:
        if element.level is not None:
            levels.add(element.level)
        if isinstance(element, Column) and element.top_level is not None:
            levels.add(element.top_level)
    return tuple(sorted(levels, key=lambda lv: (lv.elevation, lv.name)))


def required_materials(elements: list[StructuralElement]) -> tuple[str, ...]:
    return tuple(sorted({e.material for e in elements if e.material}))


def assemble(
    store: EntityStore,
    config: ImportConfig | None = None,
    cancel: CancelToken | None = None,
) -> Assembly:
    """Extract every structural element of a store into a model."""
    config = config or ImportConfig()
    nav = Navigator(store)
    notes = parse_diagnostics(store)
    elements: list[StructuralElement] = []
    guids: set[str] = set()
    seen = {kind: 0 for kind in ElementKind}
    skipped = {kind: 0 for kind in ElementKind}
    cancelled = False

    for kind, types, extractor in KIND_BATCHES:
        if cancel is not None and cancel.cancelled:
            cancelled = True
            notes.append(diagnostics.warning("cancel", f"Cancelled before extracting {kind.value}s"))
            break
        for entity in store.by_type(*types):
            seen[kind] += 1
            element_notes: list[Diagnostic] = []
            try:
                element = extractor(nav, entity, config, element_notes)
            except (ExtractionError, ValueError) as e:
                logger.warning("Skipped %s: %s", entity, e)
                notes.append(diagnostics.error("extract", f"Skipped {entity}: {e}", entity.global_id or ""))
                skipped[kind] += 1
                continue
            if element.global_id in guids:
                notes.append(diagnostics.warning(
                    "duplicate",
                    f"Skipped {entity}: GlobalId already used by an earlier element",
                    element.global_id,
                ))
                skipped[kind] += 1
                continue
            logger.debug("Extracted %s from %s", element.describe(), entity)
            guids.add(element.global_id)
            elements.append(element)
            notes.extend(element_notes)

    project = next(iter(store.by_type("IFCPROJECT")), None)
    model = StructuralModel(
        project_name=nav.text(project, 2) or nav.text(project, 5) or "",
        project_description=nav.text(project, 3) or "",
        elements=tuple(elements),
        required_levels=required_levels(elements),
        required_materials=required_materials(elements),
    )
    logger.info(
        "Assembled %d elements (%d levels, %d materials) from %s",
        len(elements), len(model.required_levels), len(model.required_materials),
        store.source or "<text>",
    )
    return Assembly(model, notes, seen, skipped, cancelled)
