"""
Geometry Primitives – Points, Quads and the Fixed Grid
======================================================

The baseplate grid is fixed: downstream consumers (renderer, component
lookup) assume a 16×32 stud layout, so the grid shape lives here as
constants rather than configuration.

Coordinate conventions:
  • Image coordinates, x to the right, y downward (OpenCV convention).
  • A ``Quad`` is always ordered ``[TL, TR, BR, BL]``.
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence

import numpy as np


# ── Grid constants ─────────────────────────────────────────────────────

ROWS: int = 16          # stud rows on the baseplate
COLS: int = 32          # stud columns on the baseplate
CELL_SIZE: int = 20     # pixels per cell in the rectified raster

RECTIFIED_WIDTH: int = COLS * CELL_SIZE    # 640
RECTIFIED_HEIGHT: int = ROWS * CELL_SIZE   # 320


# ── Value types ────────────────────────────────────────────────────────

class Point2D(NamedTuple):
    """Immutable 2-D point.  Tuple ordering sorts by x, then y."""
    x: float
    y: float


Quad = List[Point2D]       # exactly 4 points, [TL, TR, BR, BL]
Polygon = List[Point2D]    # segmentation outline, in order


def to_points(arr: np.ndarray) -> List[Point2D]:
    """Convert an ``(N, 2)`` / ``(N, 1, 2)`` array into a list of points."""
    flat = np.asarray(arr, dtype=np.float64).reshape(-1, 2)
    return [Point2D(float(x), float(y)) for x, y in flat]


def to_array(points: Sequence[Point2D]) -> np.ndarray:
    """Convert points into an ``(N, 2)`` float32 array (OpenCV friendly)."""
    return np.array([[p.x, p.y] for p in points], dtype=np.float32).reshape(-1, 2)


def order_quad(points: Sequence[Point2D]) -> Quad:
    """Order 4 points as: top-left, top-right, bottom-right, bottom-left.

    Sorts by y, splits into the top and bottom pairs, then sorts each
    pair by x.  Python's sort is stable, so nearly collinear corners
    still come out in a deterministic order, and ordering an already
    ordered quad returns it unchanged.
    """
    if len(points) != 4:
        raise ValueError(f"Expected 4 points, got {len(points)}")

    pts = sorted((Point2D(float(p[0]), float(p[1])) for p in points),
                 key=lambda p: p.y)
    top = sorted(pts[:2], key=lambda p: p.x)
    bottom = sorted(pts[2:], key=lambda p: p.x)
    return [top[0], top[1], bottom[1], bottom[0]]


def canonical_rectangle(
    width: int = RECTIFIED_WIDTH,
    height: int = RECTIFIED_HEIGHT,
) -> Quad:
    """Corners of the rectified raster, in ``[TL, TR, BR, BL]`` order."""
    return [
        Point2D(0.0, 0.0),
        Point2D(width - 1.0, 0.0),
        Point2D(width - 1.0, height - 1.0),
        Point2D(0.0, height - 1.0),
    ]
