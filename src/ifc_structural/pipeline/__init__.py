"""Import pipeline and run summary."""

from ifc_structural.pipeline.importer import ImportRun, StructuralImporter
from ifc_structural.pipeline.summary import ImportSummary, KindCounts

__all__ = ["ImportRun", "StructuralImporter", "ImportSummary", "KindCounts"]
