"""Geometric primitives for structural elements.

Coordinates are millimetres, as written by the structural export.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict


class Point3D(BaseModel):
    """3D point (millimetres)."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def distance_to(self, other: Point3D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point3D):
            return NotImplemented
        return all(
            math.isclose(a, b, abs_tol=1e-6)
            for a, b in zip(self.as_tuple(), other.as_tuple())
        )

    def __hash__(self) -> int:
        return hash(tuple(round(c, 6) for c in self.as_tuple()))


ORIGIN = Point3D()


def to_world(
    local_points: Iterable[Sequence[float]],
    origin: Point3D,
    rotation: float = 0.0,
) -> list[Point3D]:
    """Map placement-local points to world coordinates.

    Rotation is about the Z axis (radians); 2D points get z=0.
    """
    pts = np.array(
        [(tuple(p) + (0.0, 0.0, 0.0))[:3] for p in local_points], dtype=float
    )
    if pts.size == 0:
        return []
    c, s = math.cos(rotation), math.sin(rotation)
    rot = np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    world = pts @ rot.T + np.array(origin.as_tuple())
    return [Point3D(x=float(x), y=float(y), z=float(z)) for x, y, z in world]


def polygon_area(points: Sequence[Point3D]) -> float:
    """Plan area (XY) of a closed polygon using the shoelace formula."""
    n = len(points)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i].x * points[j].y
        area -= points[j].x * points[i].y
    return abs(area) / 2.0


def rectangle(width: float, length: float, origin: Point3D = ORIGIN) -> list[Point3D]:
    """Axis-aligned rectangle with its first corner at origin."""
    return [
        origin,
        Point3D(x=origin.x + width, y=origin.y, z=origin.z),
        Point3D(x=origin.x + width, y=origin.y + length, z=origin.z),
        Point3D(x=origin.x, y=origin.y + length, z=origin.z),
    ]
