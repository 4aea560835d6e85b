"""Structural data models."""

from ifc_structural.models.ifc_id import is_valid_ifc_id, stable_ifc_id
from ifc_structural.models.geometry import Point3D, polygon_area, rectangle, to_world
from ifc_structural.models.elements import (
    Beam,
    Column,
    Element,
    ElementKind,
    Footing,
    FootingType,
    LevelInfo,
    Profile,
    ShapeKind,
    Slab,
    StructuralElement,
)
from ifc_structural.models.model import StructuralModel

__all__ = [
    "is_valid_ifc_id",
    "stable_ifc_id",
    "Point3D",
    "polygon_area",
    "rectangle",
    "to_world",
    "Beam",
    "Column",
    "Element",
    "ElementKind",
    "Footing",
    "FootingType",
    "LevelInfo",
    "Profile",
    "ShapeKind",
    "Slab",
    "StructuralElement",
    "StructuralModel",
]
