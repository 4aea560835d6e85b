"""In-memory host: a HostAdapter backed by a JSON project file.

Stands in for a BIM application in the CLI and in tests. A project holds
levels, materials, element types grouped by family, a library of loadable
families and the placed elements with their tags.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from ifc_structural.errors import AdapterError
from ifc_structural.host.adapter import ElementTag, Placement
from ifc_structural.models.elements import ElementKind

logger = logging.getLogger(__name__)

# Dimension parameters a family accepts when none are declared.
DEFAULT_SUPPORTED_KEYS: dict[ElementKind, list[str]] = {
    ElementKind.BEAM: ["b", "h", "tw", "tf", "d"],
    ElementKind.COLUMN: ["b", "h", "d"],
    ElementKind.SLAB: ["Thickness"],
    ElementKind.FOOTING: ["Width", "Length", "Height"],
}


class HostLevel(BaseModel):
    id: str
    name: str
    elevation: float = 0.0


class HostMaterial(BaseModel):
    id: str
    name: str


class HostFamily(BaseModel):
    """A family available in the library, loadable on demand."""

    name: str
    kind: ElementKind
    supported_keys: list[str] = Field(default_factory=list)


class HostType(BaseModel):
    id: str
    kind: ElementKind
    family: str
    name: str
    dimensions: dict[str, float] = Field(default_factory=dict)
    supported_keys: list[str] = Field(default_factory=list)


class HostElement(BaseModel):
    id: str
    kind: ElementKind
    type_id: str
    placement: Placement
    tag: ElementTag = Field(default_factory=ElementTag)


class HostProject(BaseModel):
    """Serializable state of an in-memory host."""

    name: str = "Project"
    levels: list[HostLevel] = Field(default_factory=list)
    materials: list[HostMaterial] = Field(default_factory=list)
    types: list[HostType] = Field(default_factory=list)
    library: list[HostFamily] = Field(default_factory=list)
    elements: list[HostElement] = Field(default_factory=list)
    next_id: int = 1


class InMemoryHost:
    """HostAdapter implementation over a HostProject."""

    def __init__(self, project: HostProject | None = None):
        self.project = project or HostProject()

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> InMemoryHost:
        """Load a host project from a JSON file."""
        path = Path(path)
        return cls(HostProject.model_validate_json(path.read_text()))

    def save(self, path: str | Path) -> Path:
        """Save the host project to a JSON file. Creates parent dirs if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.project.model_dump_json(indent=2))
        return path

    # ── Setup ─────────────────────────────────────────────────────────

    def _new_id(self, prefix: str) -> str:
        new_id = f"{prefix}-{self.project.next_id}"
        self.project.next_id += 1
        return new_id

    def add_type(
        self,
        kind: ElementKind,
        family: str,
        name: str | None = None,
        dimensions: dict[str, float] | None = None,
        supported_keys: list[str] | None = None,
    ) -> str:
        """Add a pre-existing type (as if loaded before the import)."""
        host_type = HostType(
            id=self._new_id("type"),
            kind=kind,
            family=family,
            name=name or family,
            dimensions=dict(dimensions or {}),
            supported_keys=list(
                supported_keys if supported_keys is not None else DEFAULT_SUPPORTED_KEYS[kind]
            ),
        )
        self.project.types.append(host_type)
        return host_type.id

    def add_library_family(
        self, kind: ElementKind, family: str, supported_keys: list[str] | None = None
    ) -> None:
        """Make a family loadable through load_family."""
        self.project.library.append(HostFamily(
            name=family,
            kind=kind,
            supported_keys=list(
                supported_keys if supported_keys is not None else DEFAULT_SUPPORTED_KEYS[kind]
            ),
        ))

    # ── Lookups ───────────────────────────────────────────────────────

    def get_type(self, type_id: str) -> HostType | None:
        for host_type in self.project.types:
            if host_type.id == type_id:
                return host_type
        return None

    def get_element(self, element_id: str) -> HostElement | None:
        for element in self.project.elements:
            if element.id == element_id:
                return element
        return None

    def types_of(self, kind: ElementKind) -> list[HostType]:
        return [t for t in self.project.types if t.kind == kind]

    def elements_of(self, kind: ElementKind) -> list[HostElement]:
        return [e for e in self.project.elements if e.kind == kind]

    # ── Levels & materials ────────────────────────────────────────────

    def find_level(self, name: str) -> str | None:
        for level in self.project.levels:
            if level.name.lower() == name.lower():
                return level.id
        return None

    def create_or_get_level(self, name: str, elevation_mm: float) -> str:
        existing = self.find_level(name)
        if existing is not None:
            return existing
        level = HostLevel(id=self._new_id("level"), name=name, elevation=elevation_mm)
        self.project.levels.append(level)
        logger.debug("Created level %s at %.0f mm", name, elevation_mm)
        return level.id

    def find_material(self, name: str) -> str | None:
        for material in self.project.materials:
            if material.name.lower() == name.lower():
                return material.id
        return None

    def create_or_get_material(self, name: str) -> str:
        existing = self.find_material(name)
        if existing is not None:
            return existing
        material = HostMaterial(id=self._new_id("material"), name=name)
        self.project.materials.append(material)
        logger.debug("Created material %s", name)
        return material.id

    # ── Types ─────────────────────────────────────────────────────────

    def find_type_by_family(
        self, kind: ElementKind, candidate_family_names: Sequence[str]
    ) -> str | None:
        """First type whose family matches a candidate, candidates in order."""
        for family in candidate_family_names:
            for host_type in self.types_of(kind):
                if host_type.family.lower() == family.lower():
                    return host_type.id
        return None

    def find_type_by_name(self, kind: ElementKind, name: str) -> str | None:
        for host_type in self.types_of(kind):
            if host_type.name == name:
                return host_type.id
        return None

    def first_type(self, kind: ElementKind) -> str | None:
        types = self.types_of(kind)
        return types[0].id if types else None

    def load_family(
        self, kind: ElementKind, candidate_family_names: Sequence[str]
    ) -> str | None:
        """Load the first library family matching a candidate.

        Loading adds one type named after the family.
        """
        for family in candidate_family_names:
            for entry in self.project.library:
                if entry.kind == kind and entry.name.lower() == family.lower():
                    logger.debug("Loaded family %s", entry.name)
                    return self.add_type(kind, entry.name, supported_keys=entry.supported_keys)
        return None

    def family_of(self, type_handle: str) -> str | None:
        host_type = self.get_type(type_handle)
        return host_type.family if host_type else None

    def clone_type(self, type_handle: str, new_name: str) -> str:
        source = self.get_type(type_handle)
        if source is None:
            raise AdapterError(f"Unknown type {type_handle}")
        clone = source.model_copy(
            update={"id": self._new_id("type"), "name": new_name, "dimensions": dict(source.dimensions)}
        )
        self.project.types.append(clone)
        return clone.id

    def set_type_dimension(self, type_handle: str, key: str, value_mm: float) -> bool:
        """Set a dimension; False when the family has no such parameter."""
        host_type = self.get_type(type_handle)
        if host_type is None or key not in host_type.supported_keys:
            return False
        host_type.dimensions[key] = value_mm
        return True

    # ── Elements ──────────────────────────────────────────────────────

    def instantiate(
        self, kind: ElementKind, type_handle: str, placement: Placement
    ) -> str | None:
        host_type = self.get_type(type_handle)
        if host_type is None or host_type.kind != kind:
            return None
        element = HostElement(
            id=self._new_id("element"), kind=kind, type_id=type_handle, placement=placement
        )
        self.project.elements.append(element)
        return element.id

    def update_element(self, element_handle: str, type_handle: str, placement: Placement) -> bool:
        element = self.get_element(element_handle)
        host_type = self.get_type(type_handle)
        if element is None or host_type is None:
            return False
        element.kind = host_type.kind
        element.type_id = type_handle
        element.placement = placement
        return True

    def tag_element(self, element_handle: str, tag: ElementTag) -> None:
        element = self.get_element(element_handle)
        if element is None:
            raise AdapterError(f"Unknown element {element_handle}")
        element.tag = element.tag.merged(tag)

    def tagged_elements(self) -> dict[str, str]:
        return {e.tag.guid: e.id for e in self.project.elements if e.tag.guid}

    def element_tag(self, element_handle: str) -> ElementTag | None:
        element = self.get_element(element_handle)
        return element.tag.model_copy() if element is not None else None
