"""Shared extraction chains: identity, placement, properties, material, storey, geometry.

Attribute positions follow the IFC2x3 schema:

- IfcProduct: GlobalId 0, Name 2, Description 3, ObjectPlacement 5, Representation 6
- IfcLocalPlacement: RelativePlacement 1
- IfcAxis2Placement3D: Location 0, RefDirection 2 (2D placement: RefDirection 1)
- IfcRel*: RelatedObjects 4, Relating* 5
- IfcBuildingStorey: Name 2, Elevation 9
- IfcPropertySet: HasProperties 4; IfcElementQuantity: Quantities 5
- IfcTypeObject: Name 2, HasPropertySets 5

Every chain here tolerates missing links and returns None, an empty
result or the origin instead of raising.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ifc_structural.models.elements import LevelInfo
from ifc_structural.models.geometry import ORIGIN, Point3D, to_world
from ifc_structural.step.navigator import Navigator
from ifc_structural.step.store import RawEntity
from ifc_structural.step.values import AttributeValue, Number, Text, parse_value

_TYPED_VALUE_RE = re.compile(r"^(IFC[A-Z0-9_]*)\s*\((.*)\)$", re.DOTALL | re.IGNORECASE)

STOREY_RELATION = "IFCRELCONTAINEDINSPATIALSTRUCTURE"
TYPE_RELATION = "IFCRELDEFINESBYTYPE"
PROPERTY_RELATION = "IFCRELDEFINESBYPROPERTIES"
MATERIAL_RELATION = "IFCRELASSOCIATESMATERIAL"


# ── Placement ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Frame:
    """Local placement of an element: origin plus rotation about Z."""

    origin: Point3D = ORIGIN
    rotation: float = 0.0

    def apply(self, points: Iterable[Sequence[float]]) -> list[Point3D]:
        return to_world(points, self.origin, self.rotation)

    def along(self, distance: float) -> Point3D:
        """Point at distance from the origin along the local X axis."""
        return Point3D(
            x=self.origin.x + distance * math.cos(self.rotation),
            y=self.origin.y + distance * math.sin(self.rotation),
            z=self.origin.z,
        )


def point_of(nav: Navigator, point: RawEntity | None) -> Point3D | None:
    """Coordinates of an IfcCartesianPoint (2D points get z=0)."""
    coords = nav.numbers(point, 0)
    if not coords:
        return None
    x, y, z = (coords + [0.0, 0.0, 0.0])[:3]
    return Point3D(x=x, y=y, z=z)


def direction_angle(nav: Navigator, direction: RawEntity | None) -> float:
    """Angle about Z of an IfcDirection, 0 when absent or vertical."""
    ratios = nav.numbers(direction, 0)
    if len(ratios) < 2 or (ratios[0] == 0 and ratios[1] == 0):
        return 0.0
    return math.atan2(ratios[1], ratios[0])


def axis_placement(nav: Navigator, placement: RawEntity | None) -> Frame:
    """Frame of an IfcAxis2Placement2D/3D."""
    if placement is None:
        return Frame()
    origin = point_of(nav, nav.ref(placement, 0)) or ORIGIN
    ref_index = 1 if placement.type == "IFCAXIS2PLACEMENT2D" else 2
    return Frame(origin, direction_angle(nav, nav.ref(placement, ref_index)))


def frame_of(nav: Navigator, entity: RawEntity) -> Frame:
    """ObjectPlacement → IfcLocalPlacement → RelativePlacement frame."""
    local = nav.ref(entity, 5)
    if local is None or local.type != "IFCLOCALPLACEMENT":
        return Frame()
    return axis_placement(nav, nav.ref(local, 1))


# ── Properties ────────────────────────────────────────────────────────


def unwrap_value(value: AttributeValue) -> float | str | None:
    """Plain number or string from a property value.

    Typed values like `IFCLENGTHMEASURE(300.)` or `IFCLABEL('I')` arrive
    as raw Text and are unwrapped one level.
    """
    if isinstance(value, Number):
        return value.value
    if not isinstance(value, Text):
        return None
    m = _TYPED_VALUE_RE.match(value.value)
    if m:
        inner = parse_value(m.group(2))
        if isinstance(inner, Number):
            return inner.value
        if isinstance(inner, Text):
            return inner.value
        return None
    return value.value


@dataclass
class PropertyBag:
    """Merged property and quantity values, looked up case-insensitively."""

    values: dict[str, float | str] = field(default_factory=dict)

    def update(self, name: str, value: float | str | None) -> None:
        if name and value is not None:
            self.values[name.lower()] = value

    def number(self, *names: str) -> float | None:
        """First of names holding a number (numeric text accepted)."""
        for name in names:
            value = self.values.get(name.lower())
            if isinstance(value, float):
                return value
            if isinstance(value, str):
                try:
                    number = float(value.replace(",", "."))
                except ValueError:
                    continue
                if math.isfinite(number):
                    return number
        return None

    def text(self, *names: str) -> str | None:
        for name in names:
            value = self.values.get(name.lower())
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    def merged(self, other: PropertyBag) -> PropertyBag:
        """New bag with other's values taking precedence."""
        return PropertyBag({**self.values, **other.values})

    def __contains__(self, name: str) -> bool:
        return name.lower() in self.values

    def __len__(self) -> int:
        return len(self.values)


def read_definition(nav: Navigator, definition: RawEntity, into: PropertyBag) -> None:
    """Copy one IfcPropertySet or IfcElementQuantity into a bag."""
    if definition.type == "IFCPROPERTYSET":
        for prop in nav.ref_list(definition, 4):
            if prop.type == "IFCPROPERTYSINGLEVALUE":
                into.update(nav.text(prop, 0) or "", unwrap_value(prop.attr(2)))
    elif definition.type == "IFCELEMENTQUANTITY":
        for quantity in nav.ref_list(definition, 5):
            if quantity.type.startswith("IFCQUANTITY"):
                into.update(nav.text(quantity, 0) or "", unwrap_value(quantity.attr(3)))


def type_object(nav: Navigator, entity: RawEntity) -> RawEntity | None:
    return nav.first_related(entity, TYPE_RELATION)


def type_properties(nav: Navigator, type_entity: RawEntity | None) -> PropertyBag:
    """Property sets related to a type object plus its HasPropertySets."""
    bag = PropertyBag()
    if type_entity is not None:
        definitions = nav.related(type_entity, PROPERTY_RELATION) + nav.ref_list(type_entity, 5)
        for definition in definitions:
            read_definition(nav, definition, bag)
    return bag


def occurrence_properties(nav: Navigator, entity: RawEntity) -> PropertyBag:
    bag = PropertyBag()
    for definition in nav.related(entity, PROPERTY_RELATION):
        read_definition(nav, definition, bag)
    return bag


def element_properties(
    nav: Navigator, entity: RawEntity, type_entity: RawEntity | None = None
) -> PropertyBag:
    """Type property sets first, then the occurrence's own on top."""
    return type_properties(nav, type_entity).merged(occurrence_properties(nav, entity))


# ── Material & storey ─────────────────────────────────────────────────


def material_name(nav: Navigator, material: RawEntity | None, depth: int = 0) -> str | None:
    """Name behind any of the IFC material selects."""
    if material is None or depth > 4:
        return None
    kind = material.type
    if kind == "IFCMATERIAL":
        name = nav.text(material, 0)
        return name.strip() if name and name.strip() else None
    if kind in ("IFCMATERIALLAYERSETUSAGE", "IFCMATERIALLAYER"):
        return material_name(nav, nav.ref(material, 0), depth + 1)
    if kind in ("IFCMATERIALLAYERSET", "IFCMATERIALLIST"):
        for item in nav.ref_list(material, 0):
            name = material_name(nav, item, depth + 1)
            if name:
                return name
    return None


def material_of(
    nav: Navigator, entity: RawEntity, type_entity: RawEntity | None = None
) -> str | None:
    """Material name of an element, or of its type object."""
    for subject in (entity, type_entity):
        if subject is None:
            continue
        for relating in nav.related(subject, MATERIAL_RELATION):
            name = material_name(nav, relating)
            if name:
                return name
    return None


def level_info(nav: Navigator, storey: RawEntity) -> LevelInfo:
    name = nav.text(storey, 2) or f"Storey #{storey.id}"
    return LevelInfo(name=name, elevation=nav.number(storey, 9) or 0.0)


def storey_of(nav: Navigator, entity: RawEntity) -> LevelInfo | None:
    """The IfcBuildingStorey containing an element."""
    for container in nav.related(entity, STOREY_RELATION):
        if container.type == "IFCBUILDINGSTOREY":
            return level_info(nav, container)
    return None


def storey_named(nav: Navigator, name: str) -> LevelInfo | None:
    for storey in nav.by_type("IFCBUILDINGSTOREY"):
        if (nav.text(storey, 2) or "").strip().lower() == name.strip().lower():
            return level_info(nav, storey)
    return None


# ── Representation geometry ───────────────────────────────────────────


def representation_items(
    nav: Navigator, entity: RawEntity, identifier: str | None = None
) -> list[RawEntity]:
    """Items of the element's shape representations.

    With an identifier ("Axis", "Body"), only matching representations
    are read.
    """
    shape = nav.ref(entity, 6)
    items: list[RawEntity] = []
    for representation in nav.ref_list(shape, 2):
        rep_id = nav.text(representation, 1) or ""
        if identifier is None or rep_id.lower() == identifier.lower():
            items.extend(nav.ref_list(representation, 3))
    return items


def polyline_points(nav: Navigator, polyline: RawEntity | None) -> list[tuple[float, float, float]]:
    if polyline is None or polyline.type != "IFCPOLYLINE":
        return []
    points = []
    for point in nav.ref_list(polyline, 0):
        p = point_of(nav, point)
        if p is not None:
            points.append(p.as_tuple())
    return points


def axis_points(nav: Navigator, entity: RawEntity) -> list[tuple[float, float, float]]:
    """Local points of the "Axis" polyline."""
    for item in representation_items(nav, entity, "Axis"):
        points = polyline_points(nav, item)
        if len(points) >= 2:
            return points
    return []


def extruded_solid(nav: Navigator, entity: RawEntity) -> RawEntity | None:
    """First IfcExtrudedAreaSolid of the body (any representation if no body)."""
    for identifier in ("Body", None):
        for item in representation_items(nav, entity, identifier):
            if item.type == "IFCEXTRUDEDAREASOLID":
                return item
    return None


def extrusion_depth(nav: Navigator, solid: RawEntity | None) -> float | None:
    depth = nav.number(solid, 3)
    return depth if depth is not None and depth > 0 else None


@dataclass(frozen=True)
class ProfileGeometry:
    """Dimensions read from an IfcProfileDef."""

    label: str | None = None
    width: float | None = None
    height: float | None = None
    web_thickness: float | None = None
    flange_thickness: float | None = None
    diameter: float | None = None


def profile_geometry(nav: Navigator, solid: RawEntity | None) -> ProfileGeometry:
    profile = nav.ref(solid, 0)
    if profile is None:
        return ProfileGeometry()
    if profile.type == "IFCRECTANGLEPROFILEDEF":
        return ProfileGeometry("Rectangular", nav.number(profile, 3), nav.number(profile, 4))
    if profile.type == "IFCCIRCLEPROFILEDEF":
        radius = nav.number(profile, 3)
        return ProfileGeometry("Circular", diameter=2 * radius if radius else None)
    if profile.type == "IFCISHAPEPROFILEDEF":
        return ProfileGeometry(
            "I",
            width=nav.number(profile, 3),
            height=nav.number(profile, 4),
            web_thickness=nav.number(profile, 5),
            flange_thickness=nav.number(profile, 6),
        )
    return ProfileGeometry()


def _drop_closing_vertex(points: list[tuple[float, float, float]]) -> list[tuple[float, float, float]]:
    if len(points) > 1 and all(math.isclose(a, b, abs_tol=1e-6) for a, b in zip(points[0], points[-1])):
        return points[:-1]
    return points


def outline_points(nav: Navigator, entity: RawEntity) -> list[tuple[float, float, float]]:
    """Local plan outline from the body profile or a bare polyline item.

    The closing duplicate vertex, if any, is dropped.
    """
    solid = extruded_solid(nav, entity)
    if solid is not None:
        offset = axis_placement(nav, nav.ref(solid, 1)).origin
        profile = nav.ref(solid, 0)
        points: list[tuple[float, float, float]] = []
        if profile is not None and profile.type == "IFCARBITRARYCLOSEDPROFILEDEF":
            points = polyline_points(nav, nav.ref(profile, 2))
        elif profile is not None and profile.type == "IFCRECTANGLEPROFILEDEF":
            x_dim, y_dim = nav.number(profile, 3), nav.number(profile, 4)
            if x_dim and y_dim:
                center = axis_placement(nav, nav.ref(profile, 2)).origin
                points = [
                    (center.x + dx * x_dim / 2, center.y + dy * y_dim / 2, 0.0)
                    for dx, dy in ((-1, -1), (1, -1), (1, 1), (-1, 1))
                ]
        if points:
            return [
                (x + offset.x, y + offset.y, z + offset.z)
                for x, y, z in _drop_closing_vertex(points)
            ]
    for item in representation_items(nav, entity):
        points = polyline_points(nav, item)
        if len(points) >= 3:
            return _drop_closing_vertex(points)
    return []


def positive(*candidates: float | None) -> float | None:
    """First candidate that is a positive, finite number."""
    for value in candidates:
        if value is not None and math.isfinite(value) and value > 0:
            return value
    return None
