"""Validation for assembled structural models.

- levels: element levels appear in the model's required levels
- ids: GlobalIds are 22-character IFC ids
- geometry: zero-length beams, flat columns, default slab boundaries,
  degenerate footings
"""

from ifc_structural.validators.model import (
    ValidationError,
    validate_geometry,
    validate_ids,
    validate_levels,
    validate_model,
)

__all__ = [
    "ValidationError",
    "validate_geometry",
    "validate_ids",
    "validate_levels",
    "validate_model",
]
