"""IFC structural import CLI.

Usage:
    python -m ifc_structural <command> FILE [options]

Read-only commands (parse, check, render) work on the file alone.
The import command runs the full pipeline against a JSON host project.
All commands print JSON to stdout; logs go to stderr.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError

from ifc_structural import __version__
from ifc_structural.config import DEFAULT_FAMILY_CANDIDATES, ImportConfig
from ifc_structural.errors import FileError
from ifc_structural.extract.assembler import Assembly, assemble
from ifc_structural.host.memory import InMemoryHost
from ifc_structural.models.elements import ElementKind
from ifc_structural.pipeline.importer import StructuralImporter
from ifc_structural.step.store import EntityStore
from ifc_structural.validators.model import validate_model

app = typer.Typer(
    name="ifc_structural",
    help="Import structural IFC exports (beams, columns, slabs, footings).",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr")):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(message: str) -> None:
    _output({"ok": False, "error": message})
    raise typer.Exit(1)


def _load_config(config: Optional[str]) -> ImportConfig:
    if not config:
        return ImportConfig()
    path = Path(config)
    if not path.exists():
        _fail(f"Config not found: {path}")
    try:
        return ImportConfig.load(path)
    except PydanticValidationError as e:
        _fail(f"Invalid config {path}: {e.errors()[0]['msg']}")


def _assemble(file: str, config: ImportConfig) -> Assembly:
    try:
        store = EntityStore.from_path(file)
    except FileError as e:
        _fail(str(e))
    return assemble(store, config)


def _seed_types(host: InMemoryHost, config: ImportConfig) -> int:
    """Add one type of the first preferred family for every family key."""
    added = 0
    for key in DEFAULT_FAMILY_CANDIDATES:
        families = config.candidates_for(key)
        if not families:
            continue
        kind = ElementKind(key.split(".")[0])
        if host.find_type_by_family(kind, families) is None:
            host.add_type(kind, families[0])
            added += 1
    return added


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------

@app.command()
def parse(
    file: str = typer.Argument(..., help="IFC (STEP) file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Import config JSON"),
):
    """Parse a file and summarize the extracted model."""
    assembly = _assemble(file, _load_config(config))
    model = assembly.model
    _output({
        "ok": True,
        "project": model.project_name,
        "counts": model.counts(),
        "levels": [{"name": lv.name, "elevation": lv.elevation} for lv in model.required_levels],
        "materials": list(model.required_materials),
        "elements": [
            {
                "global_id": e.global_id,
                "kind": e.kind.value,
                "name": e.name,
                "level": e.level.name if e.level else None,
                "material": e.material,
            }
            for e in model.elements
        ],
        "diagnostics": [d.to_dict() for d in assembly.diagnostics],
    })


@app.command()
def check(
    file: str = typer.Argument(..., help="IFC (STEP) file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Import config JSON"),
):
    """Run model validators on a file."""
    assembly = _assemble(file, _load_config(config))
    findings = validate_model(assembly.model)
    _output({
        "ok": True,
        "validation": {
            "errors": sum(1 for f in findings if f.severity == "error"),
            "warnings": sum(1 for f in findings if f.severity == "warning"),
            "details": [
                {
                    "severity": f.severity,
                    "element_type": f.element_type,
                    "element_id": f.element_id,
                    "message": f.message,
                }
                for f in findings
            ],
        },
    })


@app.command()
def render(
    file: str = typer.Argument(..., help="IFC (STEP) file"),
    output: str = typer.Option(..., "--output", "-o", help="Output PNG path"),
    level: Optional[str] = typer.Option(None, "--level", "-l", help="Render a single level"),
):
    """Render a structural plan to PNG."""
    from ifc_structural.export.plan import render_plan

    assembly = _assemble(file, ImportConfig())
    if level and assembly.model.get_level(level) is None:
        _fail(f"Level not found: {level}")
    path = render_plan(assembly.model, output, level=level)
    _output({"ok": True, "rendered": str(path)})


@app.command()
def version():
    """Print the package version."""
    _output({"ok": True, "version": __version__})


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

@app.command("import")
def import_file(
    file: str = typer.Argument(..., help="IFC (STEP) file"),
    project: str = typer.Option(..., "--project", "-p", help="Host project JSON (created if missing)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Import config JSON"),
    seed_types: bool = typer.Option(False, "--seed-types", help="Seed a new project with the preferred families"),
    report: bool = typer.Option(False, "--report", help="Include the text report"),
):
    """Import a file into a host project."""
    cfg = _load_config(config)
    project_path = Path(project)
    host = InMemoryHost.load(project_path) if project_path.exists() else InMemoryHost()
    seeded = _seed_types(host, cfg) if seed_types else 0

    try:
        summary = StructuralImporter(host, cfg).run(file)
    except FileError as e:
        _fail(str(e))

    host.save(project_path)
    result = {"ok": True, "project": str(project_path), "seeded_types": seeded, "summary": summary.to_dict()}
    if report:
        result["report"] = summary.report()
    _output(result)


if __name__ == "__main__":
    app()
