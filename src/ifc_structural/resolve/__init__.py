"""Host type resolution with traceable fallbacks."""

from ifc_structural.resolve.types import (
    ResolvedType,
    TypeRequest,
    TypeResolver,
    request_for,
)

__all__ = ["ResolvedType", "TypeRequest", "TypeResolver", "request_for"]
