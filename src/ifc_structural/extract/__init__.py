"""Semantic extraction: IFC entities → structural elements → model."""

from ifc_structural.extract.assembler import Assembly, CancelToken, assemble
from ifc_structural.extract.elements import (
    extract_beam,
    extract_column,
    extract_footing,
    extract_slab,
)

__all__ = [
    "Assembly",
    "CancelToken",
    "assemble",
    "extract_beam",
    "extract_column",
    "extract_footing",
    "extract_slab",
]
