"""Import pipeline: file → model → host elements → summary.

One ImportRun carries the per-run state (type cache, level and material
handles, the guid → element map of earlier imports) through the steps:

1. parse and assemble (no host access yet; FileError stops here)
2. ensure levels and materials on the host
3. per kind: resolve a type, then create or update each element and tag it
4. tag vanished elements as orphans

Everything after step 1 is recovered per element and reported as a
diagnostic; the run always ends with a summary.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ifc_structural import diagnostics
from ifc_structural.config import ImportConfig
from ifc_structural.errors import AdapterError, ResolutionFailure
from ifc_structural.extract.assembler import CancelToken, assemble
from ifc_structural.host.adapter import ElementTag, FallbackInfo, HostAdapter, Placement, timestamp
from ifc_structural.models.elements import (
    Beam,
    Column,
    ElementKind,
    Footing,
    FootingType,
    Slab,
    StructuralElement,
)
from ifc_structural.models.model import StructuralModel
from ifc_structural.pipeline.summary import ImportSummary
from ifc_structural.resolve.types import ResolvedType, TypeResolver
from ifc_structural.step.store import EntityStore
from ifc_structural.validators.model import validate_model

logger = logging.getLogger(__name__)


@dataclass
class ImportRun:
    """State of one import run."""

    host: HostAdapter
    config: ImportConfig
    resolver: TypeResolver
    summary: ImportSummary
    cancel: CancelToken | None = None
    levels: dict[str, Any] = field(default_factory=dict)
    materials: dict[str, Any] = field(default_factory=dict)
    existing: dict[str, Any] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.cancelled


class StructuralImporter:
    """Runs imports against one host."""

    def __init__(self, host: HostAdapter, config: ImportConfig | None = None):
        self.host = host
        self.config = config or ImportConfig()

    def run(self, path: str | Path, cancel: CancelToken | None = None) -> ImportSummary:
        """Import a file.

        Raises:
            FileError: if the file can't be read. Nothing is sent to the host.
        """
        started = time.perf_counter()
        store = EntityStore.from_path(path)
        return self.run_store(store, cancel=cancel, started=started)

    def run_text(self, text: str, file_name: str = "<text>", cancel: CancelToken | None = None) -> ImportSummary:
        return self.run_store(EntityStore.from_text(text, source=file_name), cancel=cancel)

    def run_store(
        self,
        store: EntityStore,
        cancel: CancelToken | None = None,
        started: float | None = None,
    ) -> ImportSummary:
        started = started if started is not None else time.perf_counter()
        assembly = assemble(store, self.config, cancel)
        model = assembly.model
        summary = ImportSummary(file_name=store.source or "", cancelled=assembly.cancelled)
        summary.diagnostics.extend(assembly.diagnostics)
        for kind in ElementKind:
            counts = summary.counts(kind)
            counts.seen = assembly.seen.get(kind, 0)
            counts.skipped = assembly.skipped.get(kind, 0)
        for finding in validate_model(model):
            summary.diagnostics.append(diagnostics.Diagnostic(
                finding.severity, "validate", finding.message, finding.element_id
            ))

        run = ImportRun(
            host=self.host,
            config=self.config,
            resolver=TypeResolver(self.host, self.config),
            summary=summary,
            cancel=cancel,
        )
        if not assembly.cancelled:
            run.existing = dict(self.host.tagged_elements())
            self._prepare(run, model)
            self._place_all(run, model)
            if self.config.update_existing and not summary.cancelled:
                self._mark_orphans(run, model)

        summary.types_created = run.resolver.types_created
        summary.success = not summary.cancelled and summary.total_skipped == 0
        summary.elapsed_seconds = time.perf_counter() - started
        logger.info(
            "Imported %s: %d created, %d updated, %d skipped, %d orphans, %d fallbacks",
            summary.file_name or "<text>", summary.total_created, summary.total_updated,
            summary.total_skipped, summary.orphan_count, summary.total_fallbacks,
        )
        return summary

    # ── Levels & materials ────────────────────────────────────────────

    def _prepare(self, run: ImportRun, model: StructuralModel) -> None:
        host, summary = run.host, run.summary
        for level in model.required_levels:
            handle = host.find_level(level.name)
            if handle is None and run.config.create_levels:
                try:
                    handle = host.create_or_get_level(level.name, level.elevation)
                    summary.levels_created += 1
                except AdapterError as e:
                    summary.diagnostics.append(diagnostics.error("adapter", f"Level '{level.name}': {e}"))
            if handle is None:
                summary.diagnostics.append(diagnostics.warning(
                    "level", f"Level '{level.name}' does not exist on the host"
                ))
            run.levels[level.name] = handle

        for name in model.required_materials:
            handle = host.find_material(name)
            if handle is None and run.config.create_materials:
                try:
                    handle = host.create_or_get_material(name)
                    summary.materials_created += 1
                except AdapterError as e:
                    summary.diagnostics.append(diagnostics.error("adapter", f"Material '{name}': {e}"))
            if handle is None:
                summary.diagnostics.append(diagnostics.warning(
                    "material", f"Material '{name}' does not exist on the host"
                ))
            run.materials[name] = handle

    # ── Elements ──────────────────────────────────────────────────────

    def _place_all(self, run: ImportRun, model: StructuralModel) -> None:
        for kind in ElementKind:
            if run.cancelled:
                run.summary.cancelled = True
                run.summary.diagnostics.append(
                    diagnostics.warning("cancel", f"Cancelled before placing {kind.value}s")
                )
                return
            for element in model.of_kind(kind):
                self._place(run, element)

    def _place(self, run: ImportRun, element: StructuralElement) -> None:
        summary, host = run.summary, run.host
        counts = summary.counts(element.kind)
        guid = element.global_id

        try:
            resolved = run.resolver.resolve_element(element)
        except ResolutionFailure as e:
            logger.warning("Skipped %s: %s", element.describe(), e)
            summary.diagnostics.append(diagnostics.error("resolve", f"Skipped {element.describe()}: {e}", guid))
            counts.skipped += 1
            return
        except AdapterError as e:
            logger.warning("Adapter failure resolving a type for %s: %s", element.describe(), e)
            summary.diagnostics.append(diagnostics.error(
                "adapter", f"Skipped {element.describe()}: type creation failed: {e}", guid
            ))
            counts.skipped += 1
            return
        if resolved.is_fallback:
            counts.fallbacks += 1
            summary.diagnostics.append(diagnostics.warning(
                "fallback",
                f"{element.describe()} uses fallback type '{resolved.type_name}' "
                f"(intended '{resolved.intended_label}', used '{resolved.used_label}')",
                guid,
            ))

        placement = self._placement(run, element)
        if placement.level is None:
            summary.diagnostics.append(diagnostics.error(
                "level", f"Skipped {element.describe()}: its level is not on the host", guid
            ))
            counts.skipped += 1
            return

        existing = run.existing.get(guid)
        try:
            if existing is not None:
                if not run.config.update_existing:
                    counts.unchanged += 1
                    return
                if not host.update_element(existing, resolved.handle, placement):
                    raise AdapterError(f"host refused to update {element.describe()}")
                handle = existing
                counts.updated += 1
            else:
                handle = host.instantiate(resolved.kind, resolved.handle, placement)
                if handle is None:
                    raise AdapterError(f"host could not create {element.describe()}")
                counts.created += 1
            host.tag_element(handle, self._tag(element, resolved))
        except AdapterError as e:
            logger.warning("Adapter failure for %s: %s", element.describe(), e)
            summary.diagnostics.append(diagnostics.error("adapter", str(e), guid))
            counts.skipped += 1
            return
        logger.debug("Placed %s as %s", element.describe(), resolved.type_name)

    def _placement(self, run: ImportRun, element: StructuralElement) -> Placement:
        level_name = element.level.name if element.level else run.config.default_level.name
        placement = Placement(
            level=run.levels.get(level_name),
            rotation=element.rotation,
            material=run.materials.get(element.material),
        )
        if isinstance(element, Beam):
            return placement.model_copy(update={"point": element.start, "end": element.end})
        if isinstance(element, Column):
            top = element.top_level.name if element.top_level else level_name
            return placement.model_copy(update={
                "point": element.location,
                "top_level": run.levels.get(top),
                "base_offset": element.base_offset,
                "top_offset": element.top_offset,
            })
        if isinstance(element, Slab):
            return placement.model_copy(update={
                "boundary": list(element.boundary), "base_offset": element.offset,
            })
        if isinstance(element, Footing):
            update: dict[str, Any] = {"point": element.location}
            if element.footing_type == FootingType.STRIP and element.path is not None:
                update.update(point=element.path[0], end=element.path[1])
            elif element.footing_type == FootingType.MAT:
                update["boundary"] = list(element.boundary)
            return placement.model_copy(update=update)
        return placement

    @staticmethod
    def _tag(element: StructuralElement, resolved: ResolvedType) -> ElementTag:
        fallback = None
        if resolved.is_fallback:
            fallback = FallbackInfo(
                intended_label=resolved.intended_label,
                used_label=resolved.used_label,
                type_name=resolved.type_name,
            )
        return ElementTag(
            guid=element.global_id,
            source_class=element.source_class,
            type_name=element.type_name or resolved.type_name,
            material=element.material,
            timestamp=timestamp(),
            is_orphan=False,
            fallback_info=fallback,
        )

    # ── Orphans ───────────────────────────────────────────────────────

    def _mark_orphans(self, run: ImportRun, model: StructuralModel) -> None:
        current = {e.global_id for e in model.elements}
        for guid, handle in run.existing.items():
            if guid in current:
                continue
            tag = run.host.element_tag(handle)
            if tag is not None and tag.is_orphan:
                continue
            try:
                run.host.tag_element(handle, ElementTag(is_orphan=True, timestamp=timestamp()))
            except AdapterError as e:
                run.summary.diagnostics.append(diagnostics.error("adapter", str(e), guid))
                continue
            run.summary.orphan_count += 1
            run.summary.diagnostics.append(diagnostics.info(
                "orphan", "Element no longer in the source file, marked as orphan", guid
            ))
