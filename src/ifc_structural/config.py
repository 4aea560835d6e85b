"""Import configuration.

All knobs of a run live on ImportConfig: what to create on the host,
default values substituted for missing data, and the family names the
type resolver looks for. Loadable from JSON so the CLI can take a
config file; every field has a default so `{}` is a valid config.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from ifc_structural.models.elements import LevelInfo

# Preferred host family names, most specific first. Keys are
# "<kind>.<shape or footing type>", plus "slab" for slabs and mat footings.
DEFAULT_FAMILY_CANDIDATES: dict[str, list[str]] = {
    "beam.I": ["Viga-I", "I-Wide Flange"],
    "beam.Rectangular": ["Viga-Retangular", "Concrete-Rectangular Beam"],
    "beam.T": ["Viga-T", "T-Beam"],
    "beam.L": ["Viga-L", "L-Beam"],
    "beam.Circular": ["Viga-Circular", "Concrete-Round Beam"],
    "column.Circular": ["Pilar-Circular", "Concrete-Round-Column"],
    "column.Rectangular": ["Pilar-Retangular", "Concrete-Rectangular-Column"],
    "slab": ["Laje", "Concreto", "Concrete"],
    "footing.Isolated": ["Sapata-Isolada", "Footing-Rectangular"],
    "footing.Strip": ["Sapata-Corrida", "Wall Footing"],
}

# Last-resort families tried when the host has no type of a kind at all.
DEFAULT_GENERIC_FAMILIES: dict[str, list[str]] = {
    "beam": [
        "M_Concrete-Rectangular Beam",
        "Concrete-Rectangular Beam",
        "M_Structural Framing",
        "Structural Framing",
    ],
    "column": [
        "M_Concrete-Rectangular-Column",
        "Concrete-Rectangular-Column",
        "M_Structural Column",
        "Structural Column",
    ],
}


class ProfileDefaults(BaseModel):
    """Values substituted when the source file omits a dimension (mm)."""

    beam_width: float = Field(default=300.0, gt=0)
    beam_height: float = Field(default=500.0, gt=0)
    beam_length: float = Field(default=1000.0, gt=0, description="Beam length when the file gives no axis or length")
    column_width: float = Field(default=400.0, gt=0)
    column_depth: float = Field(default=400.0, gt=0, description="Column section height")
    column_height: float = Field(default=3000.0, gt=0, description="Vertical column height")
    slab_thickness: float = Field(default=150.0, gt=0)
    default_slab_size: float = Field(default=5000.0, gt=0, description="Side of the fallback slab square")
    footing_width: float = Field(default=1000.0, gt=0)
    footing_length: float = Field(default=1000.0, gt=0)
    footing_height: float = Field(default=500.0, gt=0)


class ImportConfig(BaseModel):
    """Options for one import run."""

    create_levels: bool = True
    create_materials: bool = True
    update_existing: bool = Field(
        default=True,
        description="Update previously imported elements and mark vanished ones as orphans",
    )
    default_material: str = "Concreto C25"
    default_level: LevelInfo = Field(
        default_factory=lambda: LevelInfo(name="Level 0", elevation=0.0),
        description="Level for elements without a containing storey",
    )
    defaults: ProfileDefaults = Field(default_factory=ProfileDefaults)
    column_top_offset_from_height: bool = Field(
        default=True,
        description="Columns without a TopLevel get top level = base level and top offset = height",
    )
    family_candidates: dict[str, list[str]] = Field(default_factory=dict)
    generic_families: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: str | Path) -> ImportConfig:
        """Load a config from a JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text())

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path

    def candidates_for(self, key: str) -> list[str]:
        """Preferred family names for a family key, overrides first."""
        if key in self.family_candidates:
            return list(self.family_candidates[key])
        return list(DEFAULT_FAMILY_CANDIDATES.get(key, []))

    def generic_for(self, kind: str) -> list[str]:
        if kind in self.generic_families:
            return list(self.generic_families[kind])
        return list(DEFAULT_GENERIC_FAMILIES.get(kind, []))
