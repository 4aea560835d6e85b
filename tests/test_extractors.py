"""Tests for the per-kind extractors."""

import math

import pytest

from ifc_structural.config import ImportConfig
from ifc_structural.extract.elements import (
    extract_beam,
    extract_column,
    extract_footing,
    extract_slab,
    footing_type_of,
)
from ifc_structural.models.elements import FootingType, ShapeKind
from ifc_structural.models.geometry import Point3D
from ifc_structural.models.ifc_id import is_valid_ifc_id, stable_ifc_id
from ifc_structural.step.navigator import Navigator
from ifc_structural.step.store import EntityStore

SQUARE = [(0, 0), (6000, 0), (6000, 4000), (0, 4000)]


def _extract(builder, entity_id, extractor, config=None):
    store = EntityStore.from_text(builder.text())
    nav = Navigator(store)
    notes = []
    element = extractor(nav, store.get(entity_id), config or ImportConfig(), notes)
    return element, notes


def _codes(notes):
    return [n.code for n in notes]


# ── Beams ─────────────────────────────────────────────────────────────


class TestBeamAxis:
    def test_axis_polyline(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.start == Point3D(x=0, y=0, z=0)
        assert beam.end == Point3D(x=5000, y=0, z=0)
        assert beam.length == pytest.approx(5000)

    def test_axis_follows_placement_rotation(self, step):
        beam_id = step.element(
            "IFCBEAM", "V2",
            step.placement(1000, 0, 0, ref_dir=(0, 1, 0)),
            step.axis_shape((0, 0, 0), (4000, 0, 0)),
        )
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.start == Point3D(x=1000, y=0, z=0)
        assert beam.end == Point3D(x=1000, y=4000, z=0)
        assert beam.rotation == pytest.approx(math.pi / 2)

    def test_length_property(self, step):
        beam_id = step.element("IFCBEAM", "V3", step.placement(2000, 1000, 0))
        step.props(beam_id, Length=3000.0)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.start == Point3D(x=2000, y=1000, z=0)
        assert beam.end == Point3D(x=5000, y=1000, z=0)

    def test_extrusion_depth(self, step):
        beam_id = step.element(
            "IFCBEAM", "V4", step.placement(0, 500, 0), step.body_shape(step.rect_profile(200, 500), 6000)
        )
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.end == Point3D(x=6000, y=500, z=0)
        assert beam.profile.width == 200
        assert beam.profile.height == 500

    def test_missing_axis_uses_default_length(self, step):
        beam_id = step.element("IFCBEAM", "V5", step.placement(1000, 0, 0, ref_dir=(0, 1, 0)))
        beam, notes = _extract(step, beam_id, extract_beam)
        assert beam.start == Point3D(x=1000, y=0, z=0)
        assert beam.end == Point3D(x=1000, y=1000, z=0)
        assert any(n.code == "geometry" and n.severity == "warning" for n in notes)

    def test_configured_default_length(self, step):
        beam_id = step.element("IFCBEAM", "V5", step.placement())
        config = ImportConfig.model_validate({"defaults": {"beam_length": 2500}})
        beam, _ = _extract(step, beam_id, extract_beam, config)
        assert beam.length == pytest.approx(2500)

    def test_overflowing_width_ignored(self, step):
        beam_id = step.beam("V6", (0, 0, 0), (5000, 0, 0))
        width = step.add("IFCPROPERTYSINGLEVALUE", "'Width'", "$", "IFCLENGTHMEASURE(1.E400)", "$")
        pset = step.add("IFCPROPERTYSET", f"'{step.guid()}'", "$", "'Pset_Structural'", "$", f"(#{width})")
        step.define(pset, beam_id)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.profile.width == 300


class TestBeamProperties:
    def test_defaults(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        beam, notes = _extract(step, beam_id, extract_beam)
        assert beam.profile.shape == ShapeKind.RECTANGULAR
        assert beam.profile.width == 300
        assert beam.profile.height == 500
        assert beam.material == "Concreto C25"
        assert beam.level.name == "Level 0"
        assert "level" in _codes(notes)

    def test_configured_defaults(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        config = ImportConfig.model_validate({"defaults": {"beam_width": 150, "beam_height": 350}})
        beam, _ = _extract(step, beam_id, extract_beam, config)
        assert (beam.profile.width, beam.profile.height) == (150, 350)

    def test_occurrence_overrides_type(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        type_id = step.type_object("IFCBEAMTYPE", "VT-20x55", [step.pset(Width=200.0, Height=550.0)])
        step.assign_type(type_id, beam_id)
        step.props(beam_id, Height=700.0)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.type_name == "VT-20x55"
        assert beam.profile.width == 200
        assert beam.profile.height == 700

    def test_type_properties_by_relation(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        type_id = step.type_object("IFCBEAMTYPE", "VT")
        step.assign_type(type_id, beam_id)
        step.define(step.pset(Width=180.0), type_id)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.profile.width == 180

    def test_quantities(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        step.define(step.quantities(Width=220.0, Height=480.0), beam_id)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert (beam.profile.width, beam.profile.height) == (220, 480)

    def test_profile_label_property(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        step.props(beam_id, Profile="T", Width=400.0, Height=600.0)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.profile.shape == ShapeKind.T
        assert beam.profile.label == "T"

    def test_unknown_label_is_custom(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        step.props(beam_id, Profile="Trapezoidal")
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.profile.shape == ShapeKind.CUSTOM

    def test_i_profile_from_geometry(self, step):
        beam_id = step.element(
            "IFCBEAM", "VM1", step.placement(), step.body_shape(step.i_profile(200, 400, 8, 12), 5000)
        )
        beam, _ = _extract(step, beam_id, extract_beam)
        profile = beam.profile
        assert profile.shape == ShapeKind.I
        assert (profile.width, profile.height) == (200, 400)
        assert (profile.web_thickness, profile.flange_thickness) == (8, 12)

    def test_circular_from_diameter(self, step):
        beam_id = step.beam("VC", (0, 0, 0), (3000, 0, 0))
        step.props(beam_id, Profile="Circular", Diameter=400.0)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.profile.shape == ShapeKind.CIRCULAR
        assert beam.profile.diameter == 400
        assert beam.profile.width == beam.profile.height == 400

    def test_storey_and_material(self, step):
        storey = step.storey("Pavimento 1", 3000.0)
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        step.contain(storey, beam_id)
        step.material("Concreto C30", beam_id)
        beam, notes = _extract(step, beam_id, extract_beam)
        assert beam.level.name == "Pavimento 1"
        assert beam.elevation == 3000
        assert beam.material == "Concreto C30"
        assert notes == []

    def test_layered_material(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        step.layered_material("Concreto C40", beam_id)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.material == "Concreto C40"

    def test_material_from_type(self, step):
        beam_id = step.beam("V1", (0, 0, 0), (5000, 0, 0))
        type_id = step.type_object("IFCBEAMTYPE", "VT")
        step.assign_type(type_id, beam_id)
        step.material("Concreto C35", type_id)
        beam, _ = _extract(step, beam_id, extract_beam)
        assert beam.material == "Concreto C35"


class TestIdentity:
    def test_global_id_kept(self, step):
        guid = step.guid()
        beam_id = step.element(
            "IFCBEAM", "V1", step.placement(), step.axis_shape((0, 0, 0), (1000, 0, 0)), guid=guid
        )
        beam, notes = _extract(step, beam_id, extract_beam)
        assert beam.global_id == guid
        assert "identity" not in _codes(notes)
        assert beam.source_class == "IFCBEAM"
        assert beam.entity_id == beam_id

    def test_invalid_global_id_synthesized(self, step):
        beam_id = step.element(
            "IFCBEAM", "V1", step.placement(), step.axis_shape((0, 0, 0), (1000, 0, 0)), guid="bad"
        )
        beam, notes = _extract(step, beam_id, extract_beam)
        assert is_valid_ifc_id(beam.global_id)
        assert beam.global_id == stable_ifc_id("IFCBEAM", beam_id)
        assert "identity" in _codes(notes)

    def test_synthesized_id_is_stable(self, step):
        beam_id = step.element(
            "IFCBEAM", "V1", step.placement(), step.axis_shape((0, 0, 0), (1000, 0, 0)), guid=""
        )
        first, _ = _extract(step, beam_id, extract_beam)
        second, _ = _extract(step, beam_id, extract_beam)
        assert first.global_id == second.global_id


# ── Columns ───────────────────────────────────────────────────────────


class TestColumn:
    def test_top_offset_from_height(self, step):
        storey = step.storey("Terreo", 0.0)
        col = step.column("P1", 5000, 0)
        step.props(col, Width=300.0, Height=3000.0)
        step.contain(storey, col)
        column, notes = _extract(step, col, extract_column)
        assert column.location == Point3D(x=5000, y=0, z=0)
        assert column.base_level.name == "Terreo"
        assert column.top_level == column.base_level
        assert column.top_offset == 3000
        assert column.top_offset_from_height is True
        assert column.span == pytest.approx(3000)
        assert "geometry" in _codes(notes)

    def test_occurrence_height_is_not_section(self, step):
        col = step.column("P1", 0, 0)
        step.props(col, Width=300.0, Height=3000.0)
        column, _ = _extract(step, col, extract_column)
        assert column.profile.width == 300
        assert column.profile.height == 400

    def test_type_height_is_section(self, step):
        col = step.column("P1", 0, 0)
        type_id = step.type_object("IFCCOLUMNTYPE", "PT", [step.pset(Width=250.0, Height=500.0)])
        step.assign_type(type_id, col)
        step.props(col, Height=3200.0)
        column, _ = _extract(step, col, extract_column)
        assert (column.profile.width, column.profile.height) == (250, 500)
        assert column.top_offset == 3200

    def test_depth_property(self, step):
        col = step.column("P1", 0, 0)
        step.props(col, Width=200.0, Depth=600.0)
        column, _ = _extract(step, col, extract_column)
        assert (column.profile.width, column.profile.height) == (200, 600)

    def test_top_level_property(self, step):
        ground = step.storey("Terreo", 0.0)
        step.storey("Pavimento 1", 3000.0)
        col = step.column("P1", 0, 0)
        step.props(col, TopLevel="Pavimento 1", TopOffset=-100.0)
        step.contain(ground, col)
        column, notes = _extract(step, col, extract_column)
        assert column.top_level.name == "Pavimento 1"
        assert column.top_level.elevation == 3000
        assert column.top_offset == -100
        assert column.top_offset_from_height is False
        assert column.span == pytest.approx(2900)
        assert notes == []

    def test_unknown_top_level_falls_back(self, step):
        ground = step.storey("Terreo", 0.0)
        col = step.column("P1", 0, 0)
        step.props(col, TopLevel="Cobertura", Height=2800.0)
        step.contain(ground, col)
        column, notes = _extract(step, col, extract_column)
        assert column.top_level.name == "Terreo"
        assert column.top_offset == 2800
        assert column.top_offset_from_height is True
        assert any(n.code == "level" and n.severity == "warning" for n in notes)

    def test_height_rule_disabled(self, step):
        col = step.column("P1", 0, 0)
        step.props(col, Height=3000.0)
        config = ImportConfig(column_top_offset_from_height=False)
        column, _ = _extract(step, col, extract_column, config)
        assert column.top_offset == 0
        assert column.top_offset_from_height is False
        assert column.top_level == column.base_level

    def test_height_from_extrusion(self, step):
        col = step.element(
            "IFCCOLUMN", "P2", step.placement(0, 0, 0), step.body_shape(step.rect_profile(300, 600), 2800)
        )
        column, _ = _extract(step, col, extract_column)
        assert column.top_offset == 2800
        assert (column.profile.width, column.profile.height) == (300, 600)

    def test_default_height(self, step):
        col = step.column("P1", 0, 0)
        column, _ = _extract(step, col, extract_column)
        assert column.top_offset == 3000
        assert (column.profile.width, column.profile.height) == (400, 400)

    def test_circular_profile(self, step):
        col = step.element(
            "IFCCOLUMN", "PC", step.placement(), step.body_shape(step.circle_profile(250), 3000)
        )
        column, _ = _extract(step, col, extract_column)
        assert column.profile.shape == ShapeKind.CIRCULAR
        assert column.profile.diameter == 500
        assert column.profile.width == 500


# ── Slabs ─────────────────────────────────────────────────────────────


class TestSlab:
    def test_outline_and_thickness(self, step):
        slab_id = step.slab("L1", SQUARE, thickness=250.0)
        slab, notes = _extract(step, slab_id, extract_slab)
        assert len(slab.boundary) == 4
        assert slab.boundary[2] == Point3D(x=6000, y=4000, z=0)
        assert slab.thickness == 250
        assert slab.area == pytest.approx(24_000_000)
        assert slab.boundary_is_default is False
        assert "geometry" not in _codes(notes)

    def test_thickness_property_wins(self, step):
        slab_id = step.slab("L1", SQUARE, thickness=250.0)
        step.props(slab_id, Thickness=180.0)
        slab, _ = _extract(step, slab_id, extract_slab)
        assert slab.thickness == 180

    def test_rectangle_profile_centered_on_placement(self, step):
        slab_id = step.element(
            "IFCSLAB", "L2", step.placement(1000, 1000, 0), step.body_shape(step.rect_profile(4000, 2000), 200)
        )
        slab, _ = _extract(step, slab_id, extract_slab)
        assert slab.boundary[0] == Point3D(x=-1000, y=0, z=0)
        assert slab.boundary[2] == Point3D(x=3000, y=2000, z=0)
        assert slab.area == pytest.approx(8_000_000)

    def test_outline_follows_placement(self, step):
        slab_id = step.element(
            "IFCSLAB", "L3", step.placement(500, 0, 3000), step.outline_shape(SQUARE, 120)
        )
        slab, _ = _extract(step, slab_id, extract_slab)
        assert slab.boundary[1] == Point3D(x=6500, y=0, z=3000)

    def test_default_square(self, step):
        slab_id = step.element("IFCSLAB", "L4", step.placement())
        slab, notes = _extract(step, slab_id, extract_slab)
        assert slab.boundary_is_default is True
        assert slab.area == pytest.approx(25_000_000)
        assert slab.thickness == 150
        assert "geometry" in _codes(notes)


# ── Footings ──────────────────────────────────────────────────────────


class TestFooting:
    @pytest.mark.parametrize(
        "predefined,expected",
        [
            (".PAD_FOOTING.", FootingType.ISOLATED),
            (".PILE_CAP.", FootingType.ISOLATED),
            (".STRIP_FOOTING.", FootingType.STRIP),
            (".FOOTING_BEAM.", FootingType.STRIP),
            (".MAT.", FootingType.MAT),
            (".NOTDEFINED.", FootingType.ISOLATED),
            (".USERDEFINED.", FootingType.ISOLATED),
            ("$", FootingType.ISOLATED),
        ],
    )
    def test_footing_type(self, step, predefined, expected):
        footing_id = step.footing("S1", 0, 0, predefined=predefined)
        store = EntityStore.from_text(step.text())
        assert footing_type_of(Navigator(store), store.get(footing_id)) == expected

    def test_isolated_from_properties(self, step):
        footing_id = step.footing("S1", 2000, 3000)
        step.props(footing_id, Width=1200.0, Length=1500.0, Height=600.0)
        footing, _ = _extract(step, footing_id, extract_footing)
        assert footing.footing_type == FootingType.ISOLATED
        assert footing.location == Point3D(x=2000, y=3000, z=0)
        assert footing.dimensions() == {"width": 1200, "length": 1500, "height": 600}

    def test_isolated_from_geometry(self, step):
        footing_id = step.element(
            "IFCFOOTING", "S2", step.placement(), step.body_shape(step.rect_profile(1400, 1600), 700),
            predefined=".PAD_FOOTING.",
        )
        footing, _ = _extract(step, footing_id, extract_footing)
        assert (footing.width, footing.length, footing.height) == (1400, 1600, 700)

    def test_isolated_defaults(self, step):
        footing_id = step.footing("S3", 0, 0)
        footing, _ = _extract(step, footing_id, extract_footing)
        assert (footing.width, footing.length, footing.height) == (1000, 1000, 500)
        assert footing.path is None

    def test_strip_along_axis(self, step):
        footing_id = step.element(
            "IFCFOOTING", "SC1", step.placement(), step.axis_shape((0, 0, 0), (8000, 0, 0)),
            predefined=".STRIP_FOOTING.",
        )
        step.props(footing_id, Width=600.0, Height=400.0)
        footing, _ = _extract(step, footing_id, extract_footing)
        assert footing.footing_type == FootingType.STRIP
        assert footing.path == (Point3D(x=0, y=0, z=0), Point3D(x=8000, y=0, z=0))
        assert footing.length == pytest.approx(8000)
        assert footing.dimensions() == {"width": 600, "height": 400}

    def test_strip_from_length(self, step):
        footing_id = step.footing("SC2", 1000, 0, predefined=".STRIP_FOOTING.")
        step.props(footing_id, Length=3000.0)
        footing, _ = _extract(step, footing_id, extract_footing)
        assert footing.path == (Point3D(x=1000, y=0, z=0), Point3D(x=4000, y=0, z=0))

    def test_mat_outline(self, step):
        footing_id = step.element(
            "IFCFOOTING", "R1", step.placement(), step.outline_shape([(0, 0), (10000, 0), (10000, 8000), (0, 8000)], 400),
            predefined=".MAT.",
        )
        footing, notes = _extract(step, footing_id, extract_footing)
        assert footing.footing_type == FootingType.MAT
        assert len(footing.boundary) == 4
        assert footing.dimensions() == {"thickness": 400}
        assert "geometry" not in _codes(notes)

    def test_mat_without_outline_uses_default_square(self, step):
        footing_id = step.footing("R2", 0, 0, predefined=".MAT.")
        footing, notes = _extract(step, footing_id, extract_footing)
        assert len(footing.boundary) == 4
        assert "geometry" in _codes(notes)
