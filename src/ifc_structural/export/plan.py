"""2D structural plan rendering using matplotlib.

Generates a top-down view of an assembled model:
- Slabs as filled outlines
- Beams as thick lines along their axis
- Columns as section rectangles or circles
- Footings as dashed outlines
- Element names as labels
"""

from __future__ import annotations

import math
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # headless rendering
import matplotlib.pyplot as plt
import matplotlib.patches as patches
import matplotlib.patheffects as pe
import numpy as np

from ifc_structural.models.elements import (
    Beam,
    Column,
    Footing,
    FootingType,
    ShapeKind,
    Slab,
    StructuralElement,
)
from ifc_structural.models.geometry import Point3D
from ifc_structural.models.model import StructuralModel

# Halo effect for text readability on any background
_TEXT_HALO = [pe.withStroke(linewidth=3, foreground="white")]

_SLAB_FILL = "#E3F2FD"
_SLAB_EDGE = "#90CAF9"
_BEAM_COLOR = "#5D4037"
_COLUMN_COLOR = "#424242"
_FOOTING_COLOR = "#2E7D32"


def _on_level(element: StructuralElement, level: str | None) -> bool:
    if level is None:
        return True
    return element.level is not None and element.level.name.lower() == level.lower()


def _rotated_rect(center: Point3D, width: float, depth: float, rotation: float) -> np.ndarray:
    """Corners of a width x depth rectangle centered on a point, rotated about Z."""
    half = np.array([[-1, -1], [1, -1], [1, 1], [-1, 1]], dtype=float) * [width / 2, depth / 2]
    c, s = math.cos(rotation), math.sin(rotation)
    rot = np.array([[c, -s], [s, c]])
    return half @ rot.T + [center.x, center.y]


def render_plan(
    model: StructuralModel,
    output_path: str | Path,
    level: str | None = None,
    dpi: int = 150,
    title: str | None = None,
    show_labels: bool = True,
) -> Path:
    """Render a structural plan of a model (or one level) to PNG.

    Args:
        model: The assembled model.
        output_path: Output image path.
        level: Only draw elements on this level (all levels if None).
        dpi: Image resolution.
        title: Plot title (defaults to project and level name).
        show_labels: Label elements with their names.

    Returns:
        Path to the output image.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(1, 1, figsize=(12, 10))

    ax.set_aspect("equal")
    ax.set_facecolor("#FAFAFA")
    fig.patch.set_facecolor("white")

    elements = [e for e in model.elements if _on_level(e, level)]
    all_x: list[float] = []
    all_y: list[float] = []

    for slab in (e for e in elements if isinstance(e, Slab)):
        xs = [p.x for p in slab.boundary]
        ys = [p.y for p in slab.boundary]
        ax.fill(xs, ys, color=_SLAB_FILL, zorder=1)
        ax.plot(xs + [xs[0]], ys + [ys[0]], color=_SLAB_EDGE, linewidth=1.0, zorder=2)
        all_x += xs
        all_y += ys
        if show_labels:
            _label(ax, sum(xs) / len(xs), sum(ys) / len(ys), slab.display_name)

    for footing in (e for e in elements if isinstance(e, Footing)):
        corners = _footing_outline(footing)
        xs = list(corners[:, 0])
        ys = list(corners[:, 1])
        ax.plot(xs + [xs[0]], ys + [ys[0]], color=_FOOTING_COLOR,
                linewidth=1.2, linestyle="--", zorder=3)
        all_x += xs
        all_y += ys
        if show_labels:
            _label(ax, float(np.mean(xs)), float(np.mean(ys)), footing.display_name)

    for beam in (e for e in elements if isinstance(e, Beam)):
        ax.plot([beam.start.x, beam.end.x], [beam.start.y, beam.end.y],
                color=_BEAM_COLOR, linewidth=3.0, solid_capstyle="butt", zorder=4)
        all_x += [beam.start.x, beam.end.x]
        all_y += [beam.start.y, beam.end.y]
        if show_labels:
            _label(ax, (beam.start.x + beam.end.x) / 2, (beam.start.y + beam.end.y) / 2,
                   beam.display_name)

    for column in (e for e in elements if isinstance(e, Column)):
        _draw_column(ax, column)
        half = max(column.profile.width, column.profile.height) / 2
        all_x += [column.location.x - half, column.location.x + half]
        all_y += [column.location.y - half, column.location.y + half]
        if show_labels:
            _label(ax, column.location.x, column.location.y + half * 1.6, column.display_name)

    if title is None:
        title = model.project_name or "Structural plan"
        if level:
            title = f"{title} - {level}"
    ax.set_title(title, fontsize=16, fontweight="bold", pad=20)

    ax.grid(True, alpha=0.2, linestyle="--")
    ax.set_xlabel("X (mm)", fontsize=10)
    ax.set_ylabel("Y (mm)", fontsize=10)

    if all_x and all_y:
        margin = max(max(all_x) - min(all_x), max(all_y) - min(all_y), 1000.0) * 0.05
        ax.set_xlim(min(all_x) - margin, max(all_x) + margin)
        ax.set_ylim(min(all_y) - margin, max(all_y) + margin)

    counts = {kind: 0 for kind in ("beam", "column", "slab", "footing")}
    for element in elements:
        counts[element.kind.value] += 1
    info_text = "\n".join(f"{kind.capitalize()}s: {n}" for kind, n in counts.items())
    ax.text(
        0.02, 0.98, info_text,
        transform=ax.transAxes,
        fontsize=8,
        verticalalignment="top",
        fontfamily="monospace",
        bbox=dict(boxstyle="round,pad=0.5", facecolor="white", alpha=0.8, edgecolor="#CCCCCC"),
        zorder=100,
    )

    plt.tight_layout()
    fig.savefig(str(output_path), dpi=dpi, bbox_inches="tight")
    plt.close(fig)

    return output_path


def _label(ax, x: float, y: float, text: str) -> None:
    ax.text(x, y, text, fontsize=7, ha="center", va="center",
            color="#212121", path_effects=_TEXT_HALO, zorder=50)


def _draw_column(ax, column: Column) -> None:
    profile = column.profile
    if profile.shape == ShapeKind.CIRCULAR:
        radius = (profile.diameter or profile.width) / 2
        ax.add_patch(patches.Circle(
            (column.location.x, column.location.y), radius,
            facecolor=_COLUMN_COLOR, edgecolor="black", linewidth=0.8, zorder=5,
        ))
        return
    corners = _rotated_rect(column.location, profile.width, profile.height, column.rotation)
    ax.add_patch(patches.Polygon(
        corners, closed=True, facecolor=_COLUMN_COLOR, edgecolor="black", linewidth=0.8, zorder=5,
    ))


def _footing_outline(footing: Footing) -> np.ndarray:
    """Plan outline of a footing as an (n, 2) array."""
    if footing.footing_type == FootingType.MAT and footing.boundary:
        return np.array([[p.x, p.y] for p in footing.boundary])
    if footing.footing_type == FootingType.STRIP and footing.path is not None:
        start, end = footing.path
        angle = math.atan2(end.y - start.y, end.x - start.x)
        center = Point3D(x=(start.x + end.x) / 2, y=(start.y + end.y) / 2)
        return _rotated_rect(center, start.distance_to(end), footing.width, angle)
    return _rotated_rect(footing.location, footing.width, footing.length, footing.rotation)
