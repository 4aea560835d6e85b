"""Type resolution: pick an instantiable host type for every element.

Each element asks for a type by (kind, shape, dimensions, material). The
resolver answers from, in order:

1. this run's cache, or a host type already carrying the synthesized name
2. a type of a preferred family, cloned under the synthesized name
3. any type of the same kind, cloned as a *fallback* type
4. a generic family loaded from the library, also a fallback

Only when all four fail does it raise ResolutionFailure. Fallbacks are
never silent: ResolvedType carries is_fallback and both family labels,
and the clone's name ends in "[FALLBACK: <intended family>]".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ifc_structural.config import ImportConfig
from ifc_structural.errors import ResolutionFailure
from ifc_structural.host.adapter import HostAdapter, TypeHandle
from ifc_structural.models.elements import (
    Beam,
    Column,
    ElementKind,
    Footing,
    FootingType,
    Profile,
    ShapeKind,
    Slab,
    StructuralElement,
)

logger = logging.getLogger(__name__)

# Host parameter names tried per dimension, first accepted wins.
DIMENSION_KEYS: dict[str, tuple[str, ...]] = {
    "width": ("b", "Width"),
    "height": ("h", "Height", "Depth"),
    "web_thickness": ("tw", "Web Thickness"),
    "flange_thickness": ("tf", "Flange Thickness"),
    "diameter": ("d", "Diameter"),
    "thickness": ("Thickness",),
    "length": ("Length",),
}

_SHAPE_LABELS = {
    ShapeKind.RECTANGULAR: "Retangular",
    ShapeKind.I: "I",
    ShapeKind.T: "T",
    ShapeKind.L: "L",
    ShapeKind.CIRCULAR: "Circular",
}

TypeKey = tuple[str, str, tuple[tuple[str, float], ...], str]


def _mm(value: float) -> str:
    """Millimetre value for type names: 300 → "300", 12.5 → "12.5"."""
    rounded = round(value, 1)
    return f"{rounded:.0f}" if rounded == int(rounded) else f"{rounded:.1f}"


@dataclass(frozen=True)
class TypeRequest:
    """What an element needs from the host."""

    kind: ElementKind  # host kind; mat footings are requested as slabs
    family_key: str
    shape: str
    dimensions: tuple[tuple[str, float], ...]
    material: str
    type_name: str

    @property
    def key(self) -> TypeKey:
        return (self.kind.value, self.shape, self.dimensions, self.material)


@dataclass(frozen=True)
class ResolvedType:
    """A host type chosen for an element, with its provenance."""

    key: TypeKey
    handle: TypeHandle
    type_name: str
    is_fallback: bool = False
    intended_label: str = ""
    used_label: str = ""

    @property
    def kind(self) -> ElementKind:
        """Host kind the type belongs to."""
        return ElementKind(self.key[0])


def _rounded(dimensions: Mapping[str, float]) -> tuple[tuple[str, float], ...]:
    return tuple((k, round(float(v), 1)) for k, v in dimensions.items() if v and v > 0)


def _section(profile: Profile) -> str:
    """Section label carrying every dimension of the type key: 150x400 tw8 tf12."""
    if profile.shape == ShapeKind.CIRCULAR:
        return f"D{_mm(profile.diameter or profile.width)}"
    label = f"{_mm(profile.width)}x{_mm(profile.height)}"
    if profile.web_thickness > 0:
        label += f" tw{_mm(profile.web_thickness)}"
    if profile.flange_thickness > 0:
        label += f" tf{_mm(profile.flange_thickness)}"
    return label


def profile_request(kind: ElementKind, profile: Profile, material: str) -> TypeRequest:
    """Request for a beam or column section."""
    shape = profile.shape
    label = _SHAPE_LABELS.get(shape, profile.label)
    if kind == ElementKind.BEAM:
        family_key = "beam.Rectangular" if shape == ShapeKind.CUSTOM else f"beam.{shape.value}"
        prefix = "V"
    else:
        family_key = "column.Circular" if shape == ShapeKind.CIRCULAR else "column.Rectangular"
        prefix = "P"
    name = f"{prefix}-{label} {_section(profile)} - {material}"
    return TypeRequest(
        kind=kind,
        family_key=family_key,
        shape=shape.value,
        dimensions=_rounded(profile.dimensions()),
        material=material,
        type_name=name,
    )


def dimensions_request(
    kind: ElementKind,
    dimensions: Mapping[str, float],
    material: str,
    footing_type: FootingType | None = None,
) -> TypeRequest:
    """Request for a slab or footing from its named dimensions."""
    if kind == ElementKind.SLAB or footing_type == FootingType.MAT:
        thickness = dimensions.get("thickness") or dimensions.get("height", 0.0)
        prefix = "Radier" if footing_type == FootingType.MAT else "Laje"
        return TypeRequest(
            kind=ElementKind.SLAB,
            family_key="slab",
            shape=footing_type.value if footing_type else "Slab",
            dimensions=_rounded({"thickness": thickness}),
            material=material,
            type_name=f"{prefix} {_mm(thickness)}mm - {material}",
        )
    footing_type = footing_type or FootingType.ISOLATED
    w = dimensions.get("width", 0.0)
    h = dimensions.get("height", 0.0)
    if footing_type == FootingType.STRIP:
        dims = {"width": w, "height": h}
        name = f"Sapata Corrida {_mm(w)}x{_mm(h)} - {material}"
    else:
        length = dimensions.get("length", 0.0)
        dims = {"width": w, "length": length, "height": h}
        name = f"Sapata {_mm(w)}x{_mm(length)}x{_mm(h)} - {material}"
    return TypeRequest(
        kind=ElementKind.FOOTING,
        family_key=f"footing.{footing_type.value}",
        shape=footing_type.value,
        dimensions=_rounded(dims),
        material=material,
        type_name=name,
    )


def request_for(element: StructuralElement) -> TypeRequest:
    """Type request for an extracted element."""
    if isinstance(element, (Beam, Column)):
        return profile_request(element.kind, element.profile, element.material)
    if isinstance(element, Slab):
        return dimensions_request(ElementKind.SLAB, {"thickness": element.thickness}, element.material)
    if isinstance(element, Footing):
        return dimensions_request(
            ElementKind.FOOTING, element.dimensions(), element.material, element.footing_type
        )
    raise TypeError(f"No type request for {type(element).__name__}")


class TypeResolver:
    """Resolves type requests against one host for one run."""

    def __init__(self, host: HostAdapter, config: ImportConfig | None = None):
        self.host = host
        self.config = config or ImportConfig()
        self.cache: dict[TypeKey, ResolvedType] = {}
        self.types_created = 0

    def resolve(
        self,
        kind: ElementKind,
        profile_or_dimensions: Profile | Mapping[str, float],
        material: str,
        footing_type: FootingType | None = None,
    ) -> ResolvedType:
        """Resolve a type for a section (beams, columns) or dimensions (slabs, footings).

        Raises:
            ResolutionFailure: if the host has no usable type of the kind.
        """
        if isinstance(profile_or_dimensions, Profile):
            request = profile_request(kind, profile_or_dimensions, material)
        else:
            request = dimensions_request(kind, profile_or_dimensions, material, footing_type)
        return self.resolve_request(request)

    def resolve_element(self, element: StructuralElement) -> ResolvedType:
        return self.resolve_request(request_for(element))

    def resolve_request(self, request: TypeRequest) -> ResolvedType:
        cached = self.cache.get(request.key)
        if cached is not None:
            return cached
        resolved = self._resolve(request)
        self.cache[request.key] = resolved
        return resolved

    def _resolve(self, request: TypeRequest) -> ResolvedType:
        host, kind = self.host, request.kind
        candidates = self.config.candidates_for(request.family_key)
        intended = candidates[0] if candidates else request.family_key
        fallback_name = f"{request.type_name} [FALLBACK: {intended}]"

        existing = host.find_type_by_name(kind, request.type_name)
        if existing is not None:
            return self._resolved(request, existing, request.type_name, intended)

        base = host.find_type_by_family(kind, candidates)
        if base is None and candidates:
            base = host.load_family(kind, candidates)
        if base is not None:
            handle = self._clone(base, request.type_name, request)
            return self._resolved(request, handle, request.type_name, intended, used=host.family_of(base))

        existing = host.find_type_by_name(kind, fallback_name)
        if existing is not None:
            return self._resolved(request, existing, fallback_name, intended, fallback=True)

        base = host.first_type(kind)
        if base is None:
            generic = self.config.generic_for(kind.value)
            if generic:
                base = host.load_family(kind, generic)
        if base is None:
            raise ResolutionFailure(
                f"No {kind.value} type available on the host for '{request.type_name}'"
            )
        handle = self._clone(base, fallback_name, request)
        resolved = self._resolved(
            request, handle, fallback_name, intended, used=host.family_of(base), fallback=True
        )
        logger.warning(
            "Fallback type for %s: intended family '%s', using '%s'",
            request.type_name, intended, resolved.used_label,
        )
        return resolved

    def _clone(self, base: TypeHandle, name: str, request: TypeRequest) -> TypeHandle:
        handle = self.host.clone_type(base, name)
        self.types_created += 1
        for dimension, value in request.dimensions:
            applied = any(
                self.host.set_type_dimension(handle, key, value)
                for key in DIMENSION_KEYS.get(dimension, ())
            )
            if not applied:
                logger.debug("Type %s has no parameter for %s", name, dimension)
        logger.debug("Created type %s", name)
        return handle

    def _resolved(
        self,
        request: TypeRequest,
        handle: Any,
        name: str,
        intended: str,
        used: str | None = None,
        fallback: bool = False,
    ) -> ResolvedType:
        return ResolvedType(
            key=request.key,
            handle=handle,
            type_name=name,
            is_fallback=fallback,
            intended_label=intended,
            used_label=used or self.host.family_of(handle) or intended,
        )
