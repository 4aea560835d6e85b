"""IFC structural import: STEP parsing, element extraction and host type resolution."""

__version__ = "0.1.0"
