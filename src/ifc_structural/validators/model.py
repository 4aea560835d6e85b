"""Cross-element checks on an assembled model.

Catches what the per-element pydantic validators can't: level
references, identifier shape and degenerate geometry that still passed
field constraints.
"""

from __future__ import annotations

from dataclasses import dataclass

from ifc_structural.models.elements import FootingType
from ifc_structural.models.ifc_id import is_valid_ifc_id
from ifc_structural.models.model import StructuralModel

MIN_LENGTH = 1.0  # mm


@dataclass
class ValidationError:
    """A single validation issue."""

    severity: str  # "error" | "warning"
    element_type: str
    element_id: str
    message: str


def validate_levels(model: StructuralModel) -> list[ValidationError]:
    """Every element level must be one of the model's required levels."""
    errors: list[ValidationError] = []
    known = set(model.required_levels)
    for element in model.elements:
        if element.level is not None and element.level not in known:
            errors.append(ValidationError(
                severity="warning",
                element_type=element.kind.label,
                element_id=element.global_id,
                message=f"Level '{element.level.name}' is missing from the required levels",
            ))
    return errors


def validate_ids(model: StructuralModel) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for element in model.elements:
        if not is_valid_ifc_id(element.global_id):
            errors.append(ValidationError(
                severity="warning",
                element_type=element.kind.label,
                element_id=element.global_id,
                message=f"GlobalId '{element.global_id}' is not a 22-character IFC id",
            ))
    return errors


def validate_geometry(model: StructuralModel) -> list[ValidationError]:
    """Zero-length beams, flat columns, default slabs, degenerate footings."""
    errors: list[ValidationError] = []

    for beam in model.beams:
        if beam.length < MIN_LENGTH:
            errors.append(ValidationError(
                severity="error",
                element_type="Beam",
                element_id=beam.global_id,
                message=f"Beam '{beam.display_name}' has zero length",
            ))

    for column in model.columns:
        if abs(column.span) < MIN_LENGTH:
            errors.append(ValidationError(
                severity="error",
                element_type="Column",
                element_id=column.global_id,
                message=(
                    f"Column '{column.display_name}' spans {column.span:.0f} mm "
                    f"between its base and top levels"
                ),
            ))

    for slab in model.slabs:
        if slab.boundary_is_default:
            errors.append(ValidationError(
                severity="warning",
                element_type="Slab",
                element_id=slab.global_id,
                message=f"Slab '{slab.display_name}' uses the default boundary",
            ))
        elif slab.area < MIN_LENGTH:
            errors.append(ValidationError(
                severity="error",
                element_type="Slab",
                element_id=slab.global_id,
                message=f"Slab '{slab.display_name}' boundary has no area",
            ))

    for footing in model.footings:
        if footing.footing_type == FootingType.STRIP and footing.path is not None:
            start, end = footing.path
            if start.distance_to(end) < MIN_LENGTH:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Footing",
                    element_id=footing.global_id,
                    message=f"Strip footing '{footing.display_name}' has a zero-length path",
                ))
        if footing.height < MIN_LENGTH or footing.width < MIN_LENGTH:
            errors.append(ValidationError(
                severity="error",
                element_type="Footing",
                element_id=footing.global_id,
                message=(
                    f"Footing '{footing.display_name}' is degenerate "
                    f"({footing.width:g} x {footing.length:g} x {footing.height:g} mm)"
                ),
            ))

    return errors


def validate_model(model: StructuralModel) -> list[ValidationError]:
    """Run every model check."""
    return validate_levels(model) + validate_ids(model) + validate_geometry(model)
