"""Structural elements: beams, columns, slabs, footings.

Elements are built once by the extractors and never mutated afterwards,
so every model here is frozen. Dimensions are millimetres, angles radians.
Element IDs are the IFC GlobalIds of the source entities so the same ID
appears in the source file, this model and the host tags.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ifc_structural.models.geometry import Point3D, polygon_area


class ElementKind(str, Enum):
    """Element categories the importer handles."""

    BEAM = "beam"
    COLUMN = "column"
    SLAB = "slab"
    FOOTING = "footing"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ShapeKind(str, Enum):
    """Cross-section shape of a beam or column profile."""

    RECTANGULAR = "Rectangular"
    I = "I"  # noqa: E741
    T = "T"
    L = "L"
    CIRCULAR = "Circular"
    CUSTOM = "Custom"

    @classmethod
    def from_label(cls, label: str | None) -> ShapeKind:
        """Map a free-text profile label to a shape.

        Missing labels mean rectangular; unknown labels mean custom.
        """
        if not label or not label.strip():
            return cls.RECTANGULAR
        key = label.strip().upper()
        if key in ("RECTANGULAR", "RETANGULAR", "RECT", "R"):
            return cls.RECTANGULAR
        if key in ("I", "IPE", "HEA", "HEB", "W"):
            return cls.I
        if key == "T":
            return cls.T
        if key == "L":
            return cls.L
        if key in ("CIRCULAR", "CIRCLE", "ROUND", "C"):
            return cls.CIRCULAR
        return cls.CUSTOM


class FootingType(str, Enum):
    """Foundation classification.

    STRIP: continuous footing along a path (sapata corrida)
    ISOLATED: pad footing under a column (sapata isolada)
    MAT: raft foundation, instantiated as a structural slab (radier)
    """

    STRIP = "Strip"
    ISOLATED = "Isolated"
    MAT = "Mat"


class LevelInfo(BaseModel):
    """A building storey referenced by elements (name + elevation in mm)."""

    model_config = ConfigDict(frozen=True)

    name: str
    elevation: float = Field(default=0.0, description="Storey elevation in millimetres")


class Profile(BaseModel):
    """Cross-section of a beam or column."""

    model_config = ConfigDict(frozen=True)

    shape: ShapeKind = ShapeKind.RECTANGULAR
    label: str = Field(default="Rectangular", description="Profile label as written in the source")
    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)
    web_thickness: float = Field(default=0.0, ge=0)
    flange_thickness: float = Field(default=0.0, ge=0)
    diameter: float = Field(default=0.0, ge=0)

    def dimensions(self) -> dict[str, float]:
        """Dimensions that matter for this shape, keyed by name."""
        if self.shape == ShapeKind.CIRCULAR:
            return {"diameter": self.diameter or self.width}
        dims = {"width": self.width, "height": self.height}
        if self.web_thickness > 0:
            dims["web_thickness"] = self.web_thickness
        if self.flange_thickness > 0:
            dims["flange_thickness"] = self.flange_thickness
        return dims


class StructuralElement(BaseModel):
    """Fields shared by all element variants."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ElementKind]

    global_id: str = Field(description="IFC GlobalId of the source entity")
    name: str = ""
    description: str = ""
    type_name: str = Field(default="", description="Name of the IFC type object, if any")
    material: str
    level: LevelInfo | None = None
    rotation: float = Field(default=0.0, description="Rotation about Z in radians")
    source_class: str = Field(default="", description="IFC entity keyword, e.g. IFCBEAM")
    entity_id: int = Field(default=0, description="Source statement #id")

    @property
    def display_name(self) -> str:
        return self.name or self.global_id

    def describe(self) -> str:
        return f"{self.kind.label} '{self.display_name}'"


class Beam(StructuralElement):
    """A beam defined by its axis start/end points."""

    kind: Literal[ElementKind.BEAM] = ElementKind.BEAM
    start: Point3D
    end: Point3D
    profile: Profile

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def elevation(self) -> float:
        return self.level.elevation if self.level else 0.0


class Column(StructuralElement):
    """A column placed at a point, spanning base level to top level.

    When the source declares no top level, the top level equals the base
    level and the top offset is the column's own height
    (top_offset_from_height records that this fallback was applied).
    """

    kind: Literal[ElementKind.COLUMN] = ElementKind.COLUMN
    location: Point3D
    profile: Profile
    base_level: LevelInfo | None = None
    top_level: LevelInfo | None = None
    base_offset: float = 0.0
    top_offset: float = 0.0
    top_offset_from_height: bool = False

    @property
    def span(self) -> float:
        """Vertical extent implied by levels and offsets (mm)."""
        base = (self.base_level.elevation if self.base_level else 0.0) + self.base_offset
        top = (self.top_level.elevation if self.top_level else 0.0) + self.top_offset
        return top - base


class Slab(StructuralElement):
    """A horizontal slab defined by a closed boundary polygon."""

    kind: Literal[ElementKind.SLAB] = ElementKind.SLAB
    boundary: tuple[Point3D, ...]
    thickness: float = Field(gt=0, description="Slab thickness in millimetres")
    offset: float = Field(default=0.0, description="Height offset from level in millimetres")
    boundary_is_default: bool = False

    @field_validator("boundary")
    @classmethod
    def at_least_3_vertices(cls, v: tuple[Point3D, ...]) -> tuple[Point3D, ...]:
        if len(v) < 3:
            raise ValueError("Slab boundary must have at least 3 vertices")
        return v

    @property
    def area(self) -> float:
        """Plan area in mm²."""
        return polygon_area(self.boundary)

    @property
    def elevation(self) -> float:
        return self.level.elevation if self.level else 0.0


class Footing(StructuralElement):
    """A foundation element.

    Isolated footings sit at a point; strip footings follow a path;
    mat footings cover a boundary polygon.
    """

    kind: Literal[ElementKind.FOOTING] = ElementKind.FOOTING
    footing_type: FootingType = FootingType.ISOLATED
    location: Point3D
    width: float = Field(gt=0)
    length: float = Field(gt=0)
    height: float = Field(gt=0)
    path: tuple[Point3D, Point3D] | None = None
    boundary: tuple[Point3D, ...] = ()

    @model_validator(mode="after")
    def mat_has_boundary(self) -> Footing:
        if self.footing_type == FootingType.MAT and len(self.boundary) < 3:
            raise ValueError("Mat footing boundary must have at least 3 vertices")
        return self

    def dimensions(self) -> dict[str, float]:
        if self.footing_type == FootingType.ISOLATED:
            return {"width": self.width, "length": self.length, "height": self.height}
        if self.footing_type == FootingType.STRIP:
            return {"width": self.width, "height": self.height}
        return {"thickness": self.height}


Element = Annotated[Union[Beam, Column, Slab, Footing], Field(discriminator="kind")]


def rotation_degrees(element: StructuralElement) -> float:
    """Element rotation in degrees, normalized to [0, 360)."""
    return math.degrees(element.rotation) % 360.0
