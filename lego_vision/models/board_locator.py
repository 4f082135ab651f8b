"""
Board Locator – Segmentation Polygon → Ordered Quad
===================================================

The segmentation service gives us a loose polygon around the baseplate.
We turn it into the four board corners:

  1. Rasterise the polygon into a binary mask the size of the frame.
  2. Take the largest external contour of the mask.
  3. Simplify it with ``approxPolyDP`` at 2 % of the perimeter.
  4. Accept only a 4-vertex result and order it ``[TL, TR, BR, BL]``.

Design notes:
  • No correction is attempted for occluded or non-rectangular boards –
    anything that does not simplify to 4 corners is rejected with
    ``NotQuadrilateral`` and the frame is skipped.
  • Largest-contour ties keep the first contour found.
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

import cv2
import numpy as np

from lego_vision.errors import NoBoardFound, NotQuadrilateral
from lego_vision.models.geometry import Point2D, Quad, order_quad, to_points

log = logging.getLogger(__name__)


APPROX_EPSILON: float = 0.02  # approxPolyDP tolerance as a fraction of perimeter


# ── Public API ─────────────────────────────────────────────────────────

def locate_board(
    polygon: Sequence[Point2D],
    image_shape: Tuple[int, ...],
    epsilon: float = APPROX_EPSILON,
) -> Quad:
    """Find the board quadrilateral described by a segmentation polygon.

    Parameters
    ----------
    polygon : sequence of Point2D
        Segmentation boundary in source-image pixel coordinates.
    image_shape : tuple
        Shape of the source image (``(h, w)`` or ``(h, w, c)``).
    epsilon : float
        Contour approximation tolerance relative to the perimeter.

    Returns
    -------
    Quad
        Ordered ``[TL, TR, BR, BL]`` corners in source coordinates.

    Raises
    ------
    NoBoardFound
        The polygon rasterises to nothing.
    NotQuadrilateral
        The contour does not simplify to exactly 4 vertices.
    """
    mask = polygon_mask(polygon, image_shape)
    contour = _largest_contour(mask)

    peri = cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, epsilon * peri, True)

    if len(approx) != 4:
        raise NotQuadrilateral(
            f"Board contour simplified to {len(approx)} vertices (expected 4)"
        )

    quad = order_quad(to_points(approx))
    log.debug("Board quad: %s", [(round(p.x, 1), round(p.y, 1)) for p in quad])
    return quad


def polygon_mask(
    polygon: Sequence[Point2D],
    image_shape: Tuple[int, ...],
) -> np.ndarray:
    """Rasterise *polygon* into a ``uint8`` mask (255 = board)."""
    h, w = image_shape[:2]
    mask = np.zeros((h, w), dtype=np.uint8)
    if len(polygon) < 3:
        return mask

    pts = np.array(
        [[round(p[0]), round(p[1])] for p in polygon], dtype=np.int32,
    ).reshape(-1, 1, 2)
    cv2.fillPoly(mask, [pts], 255)
    return mask


# ── Helpers ────────────────────────────────────────────────────────────

def _largest_contour(mask: np.ndarray) -> np.ndarray:
    """Return the external contour with the largest area."""
    contours, _ = cv2.findContours(
        mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE,
    )

    best = None
    best_area = 0.0
    for cnt in contours:
        area = cv2.contourArea(cnt)
        if area > best_area:
            best_area = area
            best = cnt

    if best is None:
        raise NoBoardFound("Segmentation polygon produced no contour")

    return best
