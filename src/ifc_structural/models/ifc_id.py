"""IFC GlobalId generation and handling.

IFC uses 22-character compressed GUIDs (base64-ish encoding of 128-bit UUIDs).
Element GlobalIds read from the source file are the identity carried into
host tags, so re-imports can match elements across runs.
"""

from __future__ import annotations

import uuid

import ifcopenshell.guid

_IFC_GUID_ALPHABET = frozenset(
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_$"
)
_STABLE_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "urn:ifc-structural-import")


def stable_ifc_id(*parts: object) -> str:
    """Derive a GlobalId deterministically from the given parts.

    Used for source entities that lack a GlobalId, so the same file
    always yields the same identifiers.
    """
    name = "/".join(str(p) for p in parts)
    return ifcopenshell.guid.compress(uuid.uuid5(_STABLE_NAMESPACE, name).hex)


def is_valid_ifc_id(value: object) -> bool:
    """Check if a value is shaped like a 22-character IFC GlobalId."""
    return (
        isinstance(value, str)
        and len(value) == 22
        and value[0] in "0123"
        and set(value) <= _IFC_GUID_ALPHABET
    )
