"""Per-kind extractors: one IFC entity in, one structural element out.

Each extractor reads the shared chains from `extract.common`, applies the
configured defaults for anything missing, and appends extraction notes
(synthesized ids, default geometry, missing storey) to `notes`. A chain
that cannot produce a usable element raises ExtractionError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError

from ifc_structural import diagnostics
from ifc_structural.config import ImportConfig
from ifc_structural.diagnostics import Diagnostic
from ifc_structural.errors import ExtractionError
from ifc_structural.extract.common import (
    Frame,
    PropertyBag,
    axis_points,
    extruded_solid,
    extrusion_depth,
    frame_of,
    material_of,
    occurrence_properties,
    outline_points,
    positive,
    profile_geometry,
    storey_named,
    storey_of,
    type_object,
    type_properties,
)
from ifc_structural.models.elements import (
    Beam,
    Column,
    Footing,
    FootingType,
    LevelInfo,
    Profile,
    ShapeKind,
    Slab,
    StructuralElement,
)
from ifc_structural.models.geometry import ORIGIN, Point3D, rectangle
from ifc_structural.models.ifc_id import stable_ifc_id
from ifc_structural.step.navigator import Navigator
from ifc_structural.step.store import RawEntity

logger = logging.getLogger(__name__)

BEAM_TYPES = ("IFCBEAM", "IFCBEAMSTANDARDCASE")
COLUMN_TYPES = ("IFCCOLUMN", "IFCCOLUMNSTANDARDCASE")
SLAB_TYPES = ("IFCSLAB", "IFCSLABSTANDARDCASE", "IFCSLABELEMENTEDCASE")
FOOTING_TYPES = ("IFCFOOTING",)

FOOTING_TYPE_MAP: dict[str, FootingType] = {
    "FOOTING_BEAM": FootingType.STRIP,
    "STRIP_FOOTING": FootingType.STRIP,
    "PAD_FOOTING": FootingType.ISOLATED,
    "PILE_CAP": FootingType.ISOLATED,
    "MAT": FootingType.MAT,
    "RAFT": FootingType.MAT,
}


@dataclass
class Source:
    """Everything the extractors share about one entity."""

    entity: RawEntity
    global_id: str
    name: str
    description: str
    type_name: str
    frame: Frame
    props: PropertyBag
    type_props: PropertyBag
    occurrence_props: PropertyBag
    material: str
    level: LevelInfo
    solid: RawEntity | None


def read_source(
    nav: Navigator, entity: RawEntity, config: ImportConfig, notes: list[Diagnostic]
) -> Source:
    """Resolve identity, placement, properties, material and storey."""
    global_id = entity.global_id
    if global_id is None:
        global_id = stable_ifc_id(entity.type, entity.id)
        notes.append(diagnostics.info(
            "identity", f"{entity} has no valid GlobalId, synthesized {global_id}", global_id
        ))
    type_entity = type_object(nav, entity)
    type_props = type_properties(nav, type_entity)
    occurrence_props = occurrence_properties(nav, entity)
    level = storey_of(nav, entity)
    if level is None:
        level = config.default_level
        notes.append(diagnostics.warning(
            "level", f"{entity} is not contained in a storey, using '{level.name}'", global_id
        ))
    return Source(
        entity=entity,
        global_id=global_id,
        name=nav.text(entity, 2) or "",
        description=nav.text(entity, 3) or "",
        type_name=nav.text(type_entity, 2) or "",
        frame=frame_of(nav, entity),
        props=type_props.merged(occurrence_props),
        type_props=type_props,
        occurrence_props=occurrence_props,
        material=material_of(nav, entity, type_entity) or config.default_material,
        level=level,
        solid=extruded_solid(nav, entity),
    )


def _build(cls: type[StructuralElement], src: Source, **fields) -> StructuralElement:
    try:
        return cls(
            global_id=src.global_id,
            name=src.name,
            description=src.description,
            type_name=src.type_name,
            material=src.material,
            level=src.level,
            rotation=src.frame.rotation,
            source_class=src.entity.type,
            entity_id=src.entity.id,
            **fields,
        )
    except PydanticValidationError as e:
        raise ExtractionError(f"{src.entity}: {e.errors()[0]['msg']}") from e


def read_profile(
    nav: Navigator,
    src: Source,
    default_width: float,
    default_height: float,
    vertical_member: bool = False,
) -> Profile:
    """Section from properties, then body profile, then defaults.

    For vertical members an occurrence "Height" is the member's height,
    not its section, so only the type's "Height" counts for the section.
    """
    props = src.props
    geometry = profile_geometry(nav, src.solid)
    label = props.text("Profile", "ProfileType", "Shape", "SectionType") or geometry.label
    shape = ShapeKind.from_label(label)
    width = positive(props.number("Width", "b"), geometry.width)
    if vertical_member:
        height = positive(props.number("Depth", "h"), src.type_props.number("Height"), geometry.height)
    else:
        height = positive(props.number("Height", "h", "Depth"), geometry.height)
    diameter = positive(props.number("Diameter", "d"), geometry.diameter)
    if shape == ShapeKind.CIRCULAR:
        diameter = positive(diameter, width, default_width)
        width = height = diameter
    return Profile(
        shape=shape,
        label=label or shape.value,
        width=positive(width, default_width),
        height=positive(height, default_height),
        web_thickness=positive(props.number("WebThickness", "Web Thickness", "tw"), geometry.web_thickness) or 0.0,
        flange_thickness=positive(
            props.number("FlangeThickness", "Flange Thickness", "tf"), geometry.flange_thickness
        ) or 0.0,
        diameter=diameter or 0.0,
    )


def _axis(
    nav: Navigator, src: Source, config: ImportConfig, notes: list[Diagnostic]
) -> tuple[Point3D, Point3D]:
    """Start/end from the Axis polyline, else placement plus length."""
    points = axis_points(nav, src.entity)
    if len(points) >= 2:
        start, end = src.frame.apply(points[:2])
        return start, end
    length = positive(src.props.number("Length"), extrusion_depth(nav, src.solid))
    if length is None:
        length = config.defaults.beam_length
        notes.append(diagnostics.warning(
            "geometry",
            f"{src.entity} has no axis polyline, Length property or extrusion depth, "
            f"using default length {length:g} mm along the placement X axis",
            src.global_id,
        ))
    return src.frame.origin, src.frame.along(length)


def _boundary(
    nav: Navigator, src: Source, config: ImportConfig, notes: list[Diagnostic]
) -> tuple[tuple[Point3D, ...], bool]:
    """Plan outline in world coordinates, or the default square."""
    points = outline_points(nav, src.entity)
    if len(points) >= 3:
        return tuple(src.frame.apply(points)), False
    size = config.defaults.default_slab_size
    notes.append(diagnostics.info(
        "geometry",
        f"{src.entity} has no usable boundary, using default {size:g}x{size:g} square",
        src.global_id,
    ))
    return tuple(rectangle(size, size, ORIGIN)), True


# ── Extractors ────────────────────────────────────────────────────────


def extract_beam(
    nav: Navigator, entity: RawEntity, config: ImportConfig, notes: list[Diagnostic] | None = None
) -> Beam:
    notes = notes if notes is not None else []
    src = read_source(nav, entity, config, notes)
    start, end = _axis(nav, src, config, notes)
    profile = read_profile(nav, src, config.defaults.beam_width, config.defaults.beam_height)
    return _build(Beam, src, start=start, end=end, profile=profile)


def extract_column(
    nav: Navigator, entity: RawEntity, config: ImportConfig, notes: list[Diagnostic] | None = None
) -> Column:
    notes = notes if notes is not None else []
    src = read_source(nav, entity, config, notes)
    props = src.props
    profile = read_profile(
        nav, src, config.defaults.column_width, config.defaults.column_depth, vertical_member=True
    )

    base_offset = props.number("BaseOffset") or 0.0
    top_offset = props.number("TopOffset") or 0.0
    top_level = None
    top_name = props.text("TopLevel")
    if top_name:
        top_level = storey_named(nav, top_name)
        if top_level is None:
            notes.append(diagnostics.warning(
                "level", f"{entity} TopLevel '{top_name}' is not a storey in the file", src.global_id
            ))

    from_height = False
    if top_level is None:
        top_level = src.level
        if config.column_top_offset_from_height:
            top_offset = positive(
                src.occurrence_props.number("Height"), extrusion_depth(nav, src.solid)
            ) or config.defaults.column_height
            from_height = True
            notes.append(diagnostics.info(
                "geometry",
                f"{entity} has no top level, top offset set from height ({top_offset:g} mm)",
                src.global_id,
            ))

    return _build(
        Column, src,
        location=src.frame.origin,
        profile=profile,
        base_level=src.level,
        top_level=top_level,
        base_offset=base_offset,
        top_offset=top_offset,
        top_offset_from_height=from_height,
    )


def extract_slab(
    nav: Navigator, entity: RawEntity, config: ImportConfig, notes: list[Diagnostic] | None = None
) -> Slab:
    notes = notes if notes is not None else []
    src = read_source(nav, entity, config, notes)
    boundary, is_default = _boundary(nav, src, config, notes)
    thickness = positive(
        src.props.number("Thickness"), extrusion_depth(nav, src.solid)
    ) or config.defaults.slab_thickness
    return _build(
        Slab, src,
        boundary=boundary,
        thickness=thickness,
        offset=src.props.number("Offset") or 0.0,
        boundary_is_default=is_default,
    )


def footing_type_of(nav: Navigator, entity: RawEntity) -> FootingType:
    """PredefinedType (attr 8) → footing type; unknown means isolated."""
    raw = (nav.text(entity, 8) or "").strip().strip(".").upper()
    return FOOTING_TYPE_MAP.get(raw, FootingType.ISOLATED)


def extract_footing(
    nav: Navigator, entity: RawEntity, config: ImportConfig, notes: list[Diagnostic] | None = None
) -> Footing:
    notes = notes if notes is not None else []
    src = read_source(nav, entity, config, notes)
    props = src.props
    defaults = config.defaults
    geometry = profile_geometry(nav, src.solid)
    footing_type = footing_type_of(nav, entity)

    width = positive(props.number("Width", "b"), geometry.width, geometry.diameter) or defaults.footing_width
    length = positive(props.number("Length"), geometry.height, geometry.diameter) or defaults.footing_length
    height = positive(
        props.number("Height", "Depth", "Thickness", "h"), extrusion_depth(nav, src.solid)
    ) or defaults.footing_height

    path = None
    boundary: tuple[Point3D, ...] = ()
    if footing_type == FootingType.STRIP:
        points = axis_points(nav, entity)
        if len(points) >= 2:
            start, end = src.frame.apply(points[:2])
        else:
            start, end = src.frame.origin, src.frame.along(length)
        path = (start, end)
        length = start.distance_to(end) or length
    elif footing_type == FootingType.MAT:
        boundary, _ = _boundary(nav, src, config, notes)

    return _build(
        Footing, src,
        footing_type=footing_type,
        location=src.frame.origin,
        width=width,
        length=length,
        height=height,
        path=path,
        boundary=boundary,
    )
