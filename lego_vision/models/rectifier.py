"""
Perspective Rectifier – Quad → Top-Down Grid Raster
===================================================

Warps the board quad onto the canonical ``640×320`` raster (32×16 cells
of 20 px) and keeps both homographies:

  • ``forward``  – source image → rectified raster
  • ``inverse``  – rectified raster → source image

The inverse is the algebraic inverse of the forward matrix, not a second
fit, so ``inverse(forward(p)) == p`` up to floating-point error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import cv2
import numpy as np

from lego_vision.models.geometry import (
    RECTIFIED_HEIGHT,
    RECTIFIED_WIDTH,
    Point2D,
    Quad,
    canonical_rectangle,
    to_array,
    to_points,
)

log = logging.getLogger(__name__)


@dataclass
class Rectification:
    """Rectified board raster plus the homographies that produced it."""
    image: np.ndarray            # (RECTIFIED_HEIGHT, RECTIFIED_WIDTH, 3) BGR
    forward: np.ndarray          # 3×3, source → rectified
    inverse: np.ndarray          # 3×3, rectified → source


def compute_homographies(
    quad: Quad,
    width: int = RECTIFIED_WIDTH,
    height: int = RECTIFIED_HEIGHT,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(forward, inverse)`` for the quad → canonical rectangle map."""
    src = to_array(quad)
    dst = to_array(canonical_rectangle(width, height))

    forward = cv2.getPerspectiveTransform(src, dst).astype(np.float64)
    try:
        inverse = np.linalg.inv(forward)
    except np.linalg.LinAlgError:
        # Degenerate quad: keep going with low-quality output.
        log.debug("Singular homography, using pseudo-inverse")
        inverse = np.linalg.pinv(forward)

    if inverse[2, 2] != 0:
        inverse = inverse / inverse[2, 2]
    return forward, inverse


def rectify(
    image: np.ndarray,
    quad: Quad,
    width: int = RECTIFIED_WIDTH,
    height: int = RECTIFIED_HEIGHT,
) -> Rectification:
    """Warp the board region of *image* to a ``width × height`` raster.

    Parameters
    ----------
    image : np.ndarray
        Source BGR frame.
    quad : Quad
        Ordered board corners in source coordinates.

    Returns
    -------
    Rectification
    """
    forward, inverse = compute_homographies(quad, width, height)
    warped = cv2.warpPerspective(image, forward, (width, height))
    return Rectification(image=warped, forward=forward, inverse=inverse)


def project_points(
    points: Sequence[Point2D],
    homography: np.ndarray,
) -> List[Point2D]:
    """Apply a 3×3 homography to a list of points."""
    if not points:
        return []
    src = np.array([[p.x, p.y] for p in points], dtype=np.float64).reshape(-1, 1, 2)
    dst = cv2.perspectiveTransform(src, homography)
    return to_points(dst)
