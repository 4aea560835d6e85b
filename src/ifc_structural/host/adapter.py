"""Host adapter contract.

The import core never touches a BIM application directly. It issues
commands through a HostAdapter: create levels and materials, find or
clone element types, instantiate and tag elements. Handles returned by
the host are opaque to the core; it only stores them and passes them back.

Tags are the only link between runs: every created element carries its
source GlobalId, so a later import can update it or mark it orphaned.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from ifc_structural.models.elements import ElementKind
from ifc_structural.models.geometry import Point3D

LevelHandle = Any
MaterialHandle = Any
TypeHandle = Any
ElementHandle = Any

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def timestamp(now: datetime | None = None) -> str:
    """Sync timestamp in the tag format."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


class FallbackInfo(BaseModel):
    """Provenance of a substituted type."""

    intended_label: str = Field(description="Family the element should have used")
    used_label: str = Field(description="Family actually used")
    type_name: str = ""

    def __str__(self) -> str:
        return f"intended '{self.intended_label}', used '{self.used_label}'"


class ElementTag(BaseModel):
    """Traceability data attached to a host element.

    Every field is optional: tagging with a partial tag only overwrites
    the fields that were set.
    """

    guid: str | None = None
    source_class: str | None = None
    type_name: str | None = None
    material: str | None = None
    timestamp: str | None = None
    is_orphan: bool = False
    fallback_info: FallbackInfo | None = None

    def merged(self, update: ElementTag) -> ElementTag:
        """This tag with the explicitly set fields of update applied."""
        return self.model_copy(
            update={name: getattr(update, name) for name in update.model_fields_set}
        )


class Placement(BaseModel):
    """Where and how to place an element (mm, radians)."""

    level: LevelHandle | None = None
    top_level: LevelHandle | None = None
    point: Point3D | None = None
    end: Point3D | None = None
    boundary: list[Point3D] = Field(default_factory=list)
    rotation: float = 0.0
    base_offset: float = 0.0
    top_offset: float = 0.0
    material: MaterialHandle | None = None


@runtime_checkable
class HostAdapter(Protocol):
    """Commands the import core issues to a BIM host."""

    def find_level(self, name: str) -> LevelHandle | None: ...

    def create_or_get_level(self, name: str, elevation_mm: float) -> LevelHandle: ...

    def find_material(self, name: str) -> MaterialHandle | None: ...

    def create_or_get_material(self, name: str) -> MaterialHandle: ...

    def find_type_by_family(
        self, kind: ElementKind, candidate_family_names: Sequence[str]
    ) -> TypeHandle | None: ...

    def find_type_by_name(self, kind: ElementKind, name: str) -> TypeHandle | None: ...

    def first_type(self, kind: ElementKind) -> TypeHandle | None: ...

    def load_family(
        self, kind: ElementKind, candidate_family_names: Sequence[str]
    ) -> TypeHandle | None: ...

    def family_of(self, type_handle: TypeHandle) -> str | None: ...

    def clone_type(self, type_handle: TypeHandle, new_name: str) -> TypeHandle: ...

    def set_type_dimension(self, type_handle: TypeHandle, key: str, value_mm: float) -> bool: ...

    def instantiate(
        self, kind: ElementKind, type_handle: TypeHandle, placement: Placement
    ) -> ElementHandle | None: ...

    def update_element(
        self, element_handle: ElementHandle, type_handle: TypeHandle, placement: Placement
    ) -> bool: ...

    def tag_element(self, element_handle: ElementHandle, tag: ElementTag) -> None: ...

    def tagged_elements(self) -> dict[str, ElementHandle]: ...

    def element_tag(self, element_handle: ElementHandle) -> ElementTag | None: ...
