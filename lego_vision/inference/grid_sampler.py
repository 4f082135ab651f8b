"""
Grid Sampler – Rectified Raster → Per-Cell Colours
==================================================

For every cell of the fixed 16×32 grid:

  1. Take the cell rectangle in the rectified raster, inset by a few
     pixels so grid lines / stud edges are not sampled.
  2. Blur the region (3×3 Gaussian) to suppress sensor noise and average
     it in CIE Lab.
  3. Match the mean against the reference palette (CIEDE2000).
  4. Map the full (un-inset) cell corners back to the source frame through
     the inverse homography.

A cell is never dropped: anything that cannot be matched becomes
``"Unknown"``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from lego_vision.inference.color_match import ColorMatch, match_color
from lego_vision.models.color_map import ColorMap, component_for
from lego_vision.models.geometry import COLS, ROWS, Point2D, Quad
from lego_vision.models.palette import LEGO_COLORS, UNKNOWN_COLOR, ReferenceColor
from lego_vision.models.rectifier import project_points

log = logging.getLogger(__name__)


CELL_INSET: int = 2                       # px trimmed from each side of a cell
BLUR_KERNEL: Tuple[int, int] = (3, 3)     # Gaussian kernel before averaging


@dataclass
class GridCell:
    """Classification of one grid cell."""
    row: int
    col: int
    color_name: str
    component: str
    quad: Quad                   # cell corners in *source* coordinates
    delta_e: float = math.inf    # CIEDE2000 distance to the matched colour


def to_cielab(image: np.ndarray) -> np.ndarray:
    """Convert a BGR ``uint8`` raster to float32 CIE Lab (L 0–100)."""
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return cv2.cvtColor(image.astype(np.float32) / 255.0, cv2.COLOR_BGR2Lab)


def cell_mean_lab(
    lab: np.ndarray,
    rect: Tuple[int, int, int, int],
    blur_kernel: Optional[Tuple[int, int]] = BLUR_KERNEL,
) -> Optional[np.ndarray]:
    """Blurred mean Lab colour of ``rect = (x, y, w, h)``, or None if empty."""
    x, y, w, h = rect
    roi = lab[max(y, 0):y + h, max(x, 0):x + w]
    if roi.size == 0:
        return None

    roi = np.ascontiguousarray(roi)
    if blur_kernel and max(blur_kernel) > 1:
        roi = cv2.GaussianBlur(roi, blur_kernel, 0)
    return roi.reshape(-1, 3).mean(axis=0)


def _corner_lattice(
    inverse: np.ndarray,
    cell_w: float,
    cell_h: float,
    rows: int,
    cols: int,
) -> List[List[Point2D]]:
    """Source-space positions of every grid line intersection.

    Neighbouring cells share corners, so each intersection is projected
    once and cells index into the lattice.
    """
    rect_pts = [
        Point2D(c * cell_w, r * cell_h)
        for r in range(rows + 1)
        for c in range(cols + 1)
    ]
    src_pts = project_points(rect_pts, inverse)
    return [src_pts[r * (cols + 1):(r + 1) * (cols + 1)] for r in range(rows + 1)]


def sample_grid(
    rectified: np.ndarray,
    inverse: np.ndarray,
    palette: Sequence[ReferenceColor] = LEGO_COLORS,
    color_map: Optional[ColorMap] = None,
    rows: int = ROWS,
    cols: int = COLS,
    inset: int = CELL_INSET,
    blur_kernel: Optional[Tuple[int, int]] = BLUR_KERNEL,
) -> List[GridCell]:
    """Classify every cell of the rectified board.

    Parameters
    ----------
    rectified : np.ndarray
        Rectified BGR raster (``cols*cell × rows*cell``).
    inverse : np.ndarray
        3×3 rectified → source homography.
    palette : sequence of ReferenceColor
        Reference colours, in tie-break order.
    color_map : mapping, optional
        Colour → component lookup; cells fall back to their colour name.
    inset : int
        Pixels trimmed from each side of a cell before sampling.
    blur_kernel : (int, int), optional
        Gaussian kernel; ``None`` disables smoothing.

    Returns
    -------
    list[GridCell]
        Exactly ``rows * cols`` cells in row-major order.
    """
    h, w = rectified.shape[:2]
    cell_w = w / cols
    cell_h = h / rows

    lab = to_cielab(rectified)
    lattice = _corner_lattice(inverse, cell_w, cell_h, rows, cols)

    cells: List[GridCell] = []
    for r in range(rows):
        for c in range(cols):
            rect = (
                int(round(c * cell_w + inset)),
                int(round(r * cell_h + inset)),
                int(round(cell_w - inset * 2)),
                int(round(cell_h - inset * 2)),
            )
            mean = cell_mean_lab(lab, rect, blur_kernel)
            if mean is None:
                match = ColorMatch(UNKNOWN_COLOR, math.inf)
            else:
                match = match_color(mean, palette)

            quad = [
                lattice[r][c],
                lattice[r][c + 1],
                lattice[r + 1][c + 1],
                lattice[r + 1][c],
            ]
            cells.append(GridCell(
                row=r,
                col=c,
                color_name=match.name,
                component=component_for(match.name, color_map),
                quad=quad,
                delta_e=match.delta_e,
            ))

    log.debug("Sampled %d cells (%d×%d)", len(cells), rows, cols)
    return cells
