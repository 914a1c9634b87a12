"""Shape geometry for ROIs — containment tests, bounding boxes and pixel masks.

A shape is a closed tagged union: a ``ShapeKind`` plus the payload that kind
needs. Rectangles and ellipses use the box fields; freeform polygons use
``points``. All functions here are pure.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np


class ShapeKind(enum.Enum):
    """The three ROI shape variants. Values are the persisted names."""

    RECTANGLE = "Rectangle"
    ELLIPSE = "Ellipse"
    FREEFORM = "Freeform"

    @classmethod
    def parse(cls, name: str) -> ShapeKind:
        """Look up a kind by name, case-insensitively.

        Raises:
            ValueError: If the name is not a known shape kind.
        """
        for kind in cls:
            if kind.value.lower() == str(name).lower():
                return kind
        raise ValueError(
            f"Unknown shape kind: {name!r}. "
            f"Must be one of {[k.value for k in cls]}"
        )


@dataclass(frozen=True)
class RoiShape:
    """An ROI outline in image coordinates.

    Attributes:
        kind: Which variant this shape is.
        x: Left edge of the bounding box (rectangle/ellipse).
        y: Top edge of the bounding box (rectangle/ellipse).
        width: Bounding box width (rectangle/ellipse).
        height: Bounding box height (rectangle/ellipse).
        points: Polygon vertices (freeform), implicitly closed.
    """

    kind: ShapeKind = ShapeKind.RECTANGLE
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    points: tuple[tuple[float, float], ...] = field(default_factory=tuple)

    @classmethod
    def rectangle(cls, x: float, y: float, width: float, height: float) -> RoiShape:
        return cls(ShapeKind.RECTANGLE, float(x), float(y), float(width), float(height))

    @classmethod
    def ellipse(cls, x: float, y: float, width: float, height: float) -> RoiShape:
        return cls(ShapeKind.ELLIPSE, float(x), float(y), float(width), float(height))

    @classmethod
    def freeform(cls, points: Iterable[Iterable[float]]) -> RoiShape:
        """Build a freeform polygon from an iterable of (x, y) pairs."""
        verts = tuple((float(p[0]), float(p[1])) for p in (tuple(q) for q in points))
        return cls(ShapeKind.FREEFORM, points=verts)


def contains_point(shape: RoiShape, px: float, py: float) -> bool:
    """Test whether an image-space point lies inside ``shape``.

    Rectangle and ellipse boundaries count as inside. Freeform uses the
    even-odd rule and never contains anything with fewer than 3 vertices.
    """
    if shape.kind is ShapeKind.RECTANGLE:
        return (
            shape.x <= px <= shape.x + shape.width
            and shape.y <= py <= shape.y + shape.height
        )
    if shape.kind is ShapeKind.ELLIPSE:
        rx = shape.width / 2.0
        ry = shape.height / 2.0
        if rx <= 0 or ry <= 0:
            return False
        dx = (px - (shape.x + rx)) / rx
        dy = (py - (shape.y + ry)) / ry
        return dx * dx + dy * dy <= 1.0
    return _polygon_contains(shape.points, px, py)


def _polygon_contains(points: tuple[tuple[float, float], ...], px: float, py: float) -> bool:
    n = len(points)
    if n < 3:
        return False
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def bounding_box(shape: RoiShape) -> tuple[float, float, float, float]:
    """Return ``(x, y, width, height)`` of a shape.

    For freeform shapes the box is snapped outward to whole pixels
    (floor of the minimum, ceil of the maximum). It is meant for limiting a
    pixel scan, not for containment.
    """
    if shape.kind is not ShapeKind.FREEFORM:
        return (shape.x, shape.y, shape.width, shape.height)
    if not shape.points:
        return (0, 0, 0, 0)
    xs = [p[0] for p in shape.points]
    ys = [p[1] for p in shape.points]
    x0 = math.floor(min(xs))
    y0 = math.floor(min(ys))
    return (x0, y0, math.ceil(max(xs)) - x0, math.ceil(max(ys)) - y0)


def shape_mask(shape: RoiShape, x0: int, y0: int, width: int, height: int) -> np.ndarray:
    """Evaluate ``contains_point`` over a block of integer pixel coordinates.

    Args:
        shape: The ROI shape.
        x0: Column of the block's first pixel.
        y0: Row of the block's first pixel.
        width: Number of columns.
        height: Number of rows.

    Returns:
        Bool array of shape (height, width) where ``mask[r, c]`` is
        ``contains_point(shape, x0 + c, y0 + r)``.
    """
    if width <= 0 or height <= 0:
        return np.zeros((max(height, 0), max(width, 0)), dtype=bool)

    xs = np.arange(x0, x0 + width, dtype=np.float64)[np.newaxis, :]
    ys = np.arange(y0, y0 + height, dtype=np.float64)[:, np.newaxis]

    if shape.kind is ShapeKind.RECTANGLE:
        in_x = (xs >= shape.x) & (xs <= shape.x + shape.width)
        in_y = (ys >= shape.y) & (ys <= shape.y + shape.height)
        return in_y & in_x

    if shape.kind is ShapeKind.ELLIPSE:
        rx = shape.width / 2.0
        ry = shape.height / 2.0
        if rx <= 0 or ry <= 0:
            return np.zeros((height, width), dtype=bool)
        dx = (xs - (shape.x + rx)) / rx
        dy = (ys - (shape.y + ry)) / ry
        return dx * dx + dy * dy <= 1.0

    mask = np.zeros((height, width), dtype=bool)
    points = shape.points
    n = len(points)
    if n < 3:
        return mask
    j = n - 1
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            xi, yi = points[i]
            xj, yj = points[j]
            j = i
            straddles = (yi > ys) != (yj > ys)
            if not straddles.any():
                continue
            # Horizontal edges never straddle, so the division is never used there.
            crossing_x = (xj - xi) * (ys - yi) / (yj - yi) + xi
            mask ^= straddles & (xs < crossing_x)
    return mask
