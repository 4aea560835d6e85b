"""STEP physical file parsing: values, entity store, graph navigation."""

from ifc_structural.step.values import (
    NULL,
    AttributeValue,
    Null,
    Number,
    Reference,
    Text,
    ValueList,
    parse_attributes,
    parse_value,
)
from ifc_structural.step.store import EntityStore, RawEntity, parse_statement
from ifc_structural.step.navigator import Navigator

__all__ = [
    "NULL",
    "AttributeValue",
    "Null",
    "Number",
    "Reference",
    "Text",
    "ValueList",
    "parse_attributes",
    "parse_value",
    "EntityStore",
    "RawEntity",
    "parse_statement",
    "Navigator",
]
