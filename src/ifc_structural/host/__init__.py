"""Host side: adapter contract and the in-memory reference host."""

from ifc_structural.host.adapter import (
    ElementTag,
    FallbackInfo,
    HostAdapter,
    Placement,
    timestamp,
)
from ifc_structural.host.memory import HostProject, InMemoryHost

__all__ = [
    "ElementTag",
    "FallbackInfo",
    "HostAdapter",
    "Placement",
    "timestamp",
    "HostProject",
    "InMemoryHost",
]
