"""Shared fixtures: a small builder for synthetic IFC2x3 STEP files."""

from __future__ import annotations

from pathlib import Path

import pytest

from ifc_structural.models.ifc_id import stable_ifc_id

HEADER = """ISO-10303-21;
HEADER;
FILE_DESCRIPTION(('ViewDefinition [CoordinationView]'),'2;1');
FILE_NAME('test.ifc','2024-01-01T00:00:00',(''),(''),'builder','builder','');
FILE_SCHEMA(('IFC2X3'));
ENDSEC;
DATA;"""

FOOTER = """ENDSEC;
END-ISO-10303-21;"""


def q(text: str) -> str:
    """Quote a STEP string."""
    return "'" + text.replace("'", "''") + "'"


def refs(ids) -> str:
    return "(" + ",".join(f"#{i}" for i in ids) + ")"


def num(value: float) -> str:
    text = repr(float(value))
    return text[:-1] if text.endswith(".0") else text


class StepBuilder:
    """Builds an IFC2x3 physical file statement by statement."""

    def __init__(self):
        self.lines: list[str] = []
        self.next_id = 1
        self._guid_counter = 0
        self._context: int | None = None

    def add(self, keyword: str, *attrs: str) -> int:
        entity_id = self.next_id
        self.next_id += 1
        self.lines.append(f"#{entity_id}={keyword}({','.join(attrs)});")
        return entity_id

    def guid(self) -> str:
        self._guid_counter += 1
        return stable_ifc_id("test-builder", self._guid_counter)

    # ── Geometry ──────────────────────────────────────────────────────

    def point(self, *coords: float) -> int:
        return self.add("IFCCARTESIANPOINT", "(" + ",".join(num(c) for c in coords) + ")")

    def direction(self, *ratios: float) -> int:
        return self.add("IFCDIRECTION", "(" + ",".join(num(r) for r in ratios) + ")")

    def placement(self, x: float = 0.0, y: float = 0.0, z: float = 0.0, ref_dir=None) -> int:
        location = self.point(x, y, z)
        ref = f"#{self.direction(*ref_dir)}" if ref_dir else "$"
        axis = self.add("IFCAXIS2PLACEMENT3D", f"#{location}", "$", ref)
        return self.add("IFCLOCALPLACEMENT", "$", f"#{axis}")

    def context(self) -> int:
        if self._context is None:
            self._context = self.add(
                "IFCGEOMETRICREPRESENTATIONCONTEXT", "$", q("Model"), "3", "1.E-05", "$", "$"
            )
        return self._context

    def polyline(self, points) -> int:
        return self.add("IFCPOLYLINE", refs(self.point(*p) for p in points))

    def shape(self, *representations: tuple[str, str, list[int]]) -> int:
        reps = [
            self.add("IFCSHAPEREPRESENTATION", f"#{self.context()}", q(ident), q(kind), refs(items))
            for ident, kind, items in representations
        ]
        return self.add("IFCPRODUCTDEFINITIONSHAPE", "$", "$", refs(reps))

    def extrusion(self, profile: int, depth: float) -> int:
        position = self.add("IFCAXIS2PLACEMENT3D", f"#{self.point(0, 0, 0)}", "$", "$")
        direction = self.direction(0, 0, 1)
        return self.add("IFCEXTRUDEDAREASOLID", f"#{profile}", f"#{position}", f"#{direction}", num(depth))

    def rect_profile(self, x_dim: float, y_dim: float) -> int:
        position = self.add("IFCAXIS2PLACEMENT2D", f"#{self.point(0, 0)}", "$")
        return self.add("IFCRECTANGLEPROFILEDEF", ".AREA.", "$", f"#{position}", num(x_dim), num(y_dim))

    def circle_profile(self, radius: float) -> int:
        position = self.add("IFCAXIS2PLACEMENT2D", f"#{self.point(0, 0)}", "$")
        return self.add("IFCCIRCLEPROFILEDEF", ".AREA.", "$", f"#{position}", num(radius))

    def i_profile(self, width: float, depth: float, web: float, flange: float) -> int:
        position = self.add("IFCAXIS2PLACEMENT2D", f"#{self.point(0, 0)}", "$")
        return self.add(
            "IFCISHAPEPROFILEDEF", ".AREA.", "$", f"#{position}",
            num(width), num(depth), num(web), num(flange), "$",
        )

    def axis_shape(self, start, end) -> int:
        return self.shape(("Axis", "Curve2D", [self.polyline([start, end])]))

    def body_shape(self, profile: int, depth: float) -> int:
        return self.shape(("Body", "SweptSolid", [self.extrusion(profile, depth)]))

    def outline_shape(self, points, depth: float) -> int:
        outline = self.polyline(list(points) + [points[0]])
        profile = self.add("IFCARBITRARYCLOSEDPROFILEDEF", ".AREA.", "$", f"#{outline}")
        return self.body_shape(profile, depth)

    # ── Spatial structure ─────────────────────────────────────────────

    def project(self, name: str = "Test Project", description: str = "") -> int:
        return self.add(
            "IFCPROJECT", q(self.guid()), "$", q(name), q(description) if description else "$",
            "$", "$", "$", "$", "$",
        )

    def storey(self, name: str, elevation: float) -> int:
        return self.add(
            "IFCBUILDINGSTOREY", q(self.guid()), "$", q(name), "$", "$",
            f"#{self.placement(0, 0, elevation)}", "$", "$", ".ELEMENT.", num(elevation),
        )

    def contain(self, storey: int, *elements: int) -> int:
        return self.add(
            "IFCRELCONTAINEDINSPATIALSTRUCTURE", q(self.guid()), "$", "$", "$",
            refs(elements), f"#{storey}",
        )

    # ── Elements ──────────────────────────────────────────────────────

    def element(
        self,
        keyword: str,
        name: str = "",
        placement: int | None = None,
        shape: int | None = None,
        predefined: str | None = None,
        guid: str | None = None,
    ) -> int:
        attrs = [
            q(guid if guid is not None else self.guid()),
            "$",
            q(name) if name else "$",
            "$",
            "$",
            f"#{placement}" if placement else "$",
            f"#{shape}" if shape else "$",
            "$",
        ]
        if predefined is not None:
            attrs.append(predefined)
        return self.add(keyword, *attrs)

    def beam(self, name: str, start, end, **kwargs) -> int:
        return self.element(
            "IFCBEAM", name, self.placement(), self.axis_shape(start, end), **kwargs
        )

    def column(self, name: str, x: float, y: float, z: float = 0.0, **kwargs) -> int:
        return self.element("IFCCOLUMN", name, self.placement(x, y, z), **kwargs)

    def slab(self, name: str, points, thickness: float = 200.0, **kwargs) -> int:
        kwargs.setdefault("predefined", ".FLOOR.")
        return self.element(
            "IFCSLAB", name, self.placement(), self.outline_shape(points, thickness), **kwargs
        )

    def footing(self, name: str, x: float, y: float, predefined: str = ".PAD_FOOTING.", **kwargs) -> int:
        return self.element("IFCFOOTING", name, self.placement(x, y), predefined=predefined, **kwargs)

    # ── Properties, types, materials ──────────────────────────────────

    def value(self, value) -> str:
        if isinstance(value, str):
            return f"IFCLABEL({q(value)})"
        return f"IFCLENGTHMEASURE({num(value)})"

    def pset(self, name: str = "Pset_Structural", **props) -> int:
        values = [
            self.add("IFCPROPERTYSINGLEVALUE", q(key), "$", self.value(val), "$")
            for key, val in props.items()
        ]
        return self.add("IFCPROPERTYSET", q(self.guid()), "$", q(name), "$", refs(values))

    def quantities(self, name: str = "BaseQuantities", **quantities) -> int:
        values = [
            self.add("IFCQUANTITYLENGTH", q(key), "$", "$", num(val))
            for key, val in quantities.items()
        ]
        return self.add("IFCELEMENTQUANTITY", q(self.guid()), "$", q(name), "$", "$", refs(values))

    def define(self, definition: int, *elements: int) -> int:
        return self.add(
            "IFCRELDEFINESBYPROPERTIES", q(self.guid()), "$", "$", "$", refs(elements), f"#{definition}"
        )

    def props(self, element: int, **props) -> int:
        return self.define(self.pset(**props), element)

    def type_object(self, keyword: str, name: str, psets=()) -> int:
        return self.add(
            keyword, q(self.guid()), "$", q(name), "$", "$",
            refs(psets) if psets else "$", "$", "$", "$", ".NOTDEFINED.",
        )

    def assign_type(self, type_id: int, *elements: int) -> int:
        return self.add(
            "IFCRELDEFINESBYTYPE", q(self.guid()), "$", "$", "$", refs(elements), f"#{type_id}"
        )

    def material(self, name: str, *elements: int) -> int:
        material = self.add("IFCMATERIAL", q(name))
        self.add("IFCRELASSOCIATESMATERIAL", q(self.guid()), "$", "$", "$", refs(elements), f"#{material}")
        return material

    def layered_material(self, name: str, *elements: int) -> int:
        material = self.add("IFCMATERIAL", q(name))
        layer = self.add("IFCMATERIALLAYER", f"#{material}", "200.", "$")
        layer_set = self.add("IFCMATERIALLAYERSET", refs([layer]), q("Layers"))
        usage = self.add("IFCMATERIALLAYERSETUSAGE", f"#{layer_set}", ".AXIS2.", ".POSITIVE.", "0.")
        self.add("IFCRELASSOCIATESMATERIAL", q(self.guid()), "$", "$", "$", refs(elements), f"#{usage}")
        return material

    # ── Output ────────────────────────────────────────────────────────

    def text(self) -> str:
        return "\n".join([HEADER, *self.lines, FOOTER]) + "\n"

    def write(self, path: str | Path) -> Path:
        path = Path(path)
        path.write_text(self.text(), encoding="utf-8")
        return path


@pytest.fixture
def step() -> StepBuilder:
    return StepBuilder()


@pytest.fixture
def frame_file(tmp_path: Path) -> Path:
    """Two storeys, 16 columns, 4 beams, 1 slab, 2 footings.

    Every element has a storey and a material; columns carry no TopLevel.
    """
    b = StepBuilder()
    b.project("Frame")
    ground = b.storey("Terreo", 0.0)
    first = b.storey("Pavimento 1", 3000.0)

    columns = [b.column(f"P{i + 1}", (i % 4) * 5000.0, (i // 4) * 5000.0) for i in range(16)]
    for c in columns:
        b.props(c, Width=300.0, Height=3000.0)
    beams = [
        b.beam("V1", (0, 0, 0), (5000, 0, 0)),
        b.beam("V2", (5000, 0, 0), (10000, 0, 0)),
        b.beam("V3", (0, 5000, 0), (5000, 5000, 0)),
        b.beam("V4", (0, 0, 0), (0, 5000, 0)),
    ]
    for v in beams:
        b.props(v, Width=200.0, Height=600.0, Profile="Rectangular")
    slab = b.slab("L1", [(0, 0), (15000, 0), (15000, 15000), (0, 15000)], thickness=120.0)
    footings = [b.footing("S1", 0, 0), b.footing("S2", 5000, 0)]

    b.contain(ground, *columns, *footings)
    b.contain(first, *beams, slab)
    b.material("Concreto C30", *columns, *beams, slab, *footings)
    return b.write(tmp_path / "frame.ifc")
