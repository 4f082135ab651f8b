"""Shared fixtures: synthetic frames and board polygons."""

import cv2
import numpy as np
import pytest

from lego_vision.inference.grid_sampler import GridCell
from lego_vision.models.geometry import Point2D
from lego_vision.models.palette import COLOR_TO_RGB, rgb_to_bgr


BACKGROUND_BGR = (128, 128, 128)


def bgr(name):
    """BGR tuple of a palette colour."""
    return rgb_to_bgr(COLOR_TO_RGB[name])


def make_cells(names):
    """Build GridCells from a 2-D list of colour names, unit-square quads."""
    cells = []
    for r, row in enumerate(names):
        for c, name in enumerate(row):
            quad = [
                Point2D(float(c), float(r)),
                Point2D(float(c + 1), float(r)),
                Point2D(float(c + 1), float(r + 1)),
                Point2D(float(c), float(r + 1)),
            ]
            cells.append(GridCell(row=r, col=c, color_name=name,
                                  component=name, quad=quad))
    return cells


# ============================================================================
# Axis-aligned board: 640×320 at offset (10, 20), left half Red, right Blue
# ============================================================================

@pytest.fixture
def board_polygon():
    """Polygon of a perfect rectangle exactly matching the rectified size."""
    return [
        Point2D(10, 20),
        Point2D(649, 20),
        Point2D(649, 339),
        Point2D(10, 339),
    ]


@pytest.fixture
def two_block_image():
    """360×680 frame with a two-colour board (Red | Blue) on grey."""
    img = np.full((360, 680, 3), BACKGROUND_BGR, dtype=np.uint8)
    img[20:340, 10:330] = bgr("Red")
    img[20:340, 330:650] = bgr("Blue")
    return img


# ============================================================================
# Perspective board: four colour quadrants viewed at an angle
# ============================================================================

@pytest.fixture
def skewed_quad():
    return [
        Point2D(60, 40),
        Point2D(760, 70),
        Point2D(740, 430),
        Point2D(80, 400),
    ]


@pytest.fixture
def skewed_board_image(skewed_quad):
    """480×820 frame showing a 4-quadrant board through a perspective warp."""
    board = np.zeros((320, 640, 3), dtype=np.uint8)
    board[:160, :320] = bgr("Red")
    board[:160, 320:] = bgr("Blue")
    board[160:, :320] = bgr("Yellow")
    board[160:, 320:] = bgr("Green")

    dst = np.array([[p.x, p.y] for p in skewed_quad], dtype=np.float32)
    src = np.array([[0, 0], [639, 0], [639, 319], [0, 319]], dtype=np.float32)
    m = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(
        board, m, (820, 480),
        borderMode=cv2.BORDER_CONSTANT, borderValue=BACKGROUND_BGR,
    )
