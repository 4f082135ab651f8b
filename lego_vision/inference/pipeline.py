"""
Inference Pipeline – Frame → Coloured Regions
=============================================

This is the single-call entry point for analysing a captured frame.

Pipeline stages:
  1. Board segmentation   – remote service (or a static polygon)
  2. Board location       – polygon mask → largest contour → 4-corner quad
  3. Perspective warp     – normalise to the 640×320 grid raster
  4. Grid sampling        – 16×32 cells, blurred mean Lab, CIEDE2000 match
  5. Region aggregation   – 4-connected same-colour regions + convex hulls

Per-frame failures (no predictions, no contour, not a quadrilateral) are
soft: ``analyze`` returns an empty result with ``failure`` set, so a
capture loop can simply try again on the next frame.

Optional extras:
  • Debug visualisation overlay (region hulls + component labels)
  • JSON-ready result summary
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from lego_vision.errors import BoardAnalysisError, EmptySegmentation
from lego_vision.inference.grid_sampler import (
    BLUR_KERNEL,
    CELL_INSET,
    GridCell,
    sample_grid,
)
from lego_vision.inference.regions import CellGroup, group_cells
from lego_vision.models.board_locator import locate_board
from lego_vision.models.color_map import ColorMap
from lego_vision.models.geometry import CELL_SIZE, COLS, ROWS, Quad
from lego_vision.models.palette import (
    COLOR_TO_RGB,
    LEGO_COLORS,
    ReferenceColor,
    rgb_to_bgr,
)
from lego_vision.models.rectifier import rectify
from lego_vision.models.segmenter import Segmenter

log = logging.getLogger(__name__)


# ── Result dataclass ──────────────────────────────────────────────────

@dataclass
class AnalysisResult:
    """Full output of one ``analyze`` call."""
    cells: List[GridCell] = field(default_factory=list)      # rows*cols, or empty
    groups: List[CellGroup] = field(default_factory=list)    # connected regions
    quad: Optional[Quad] = None                              # board corners (source)
    rectified: Optional[np.ndarray] = None                   # 640×320 board raster
    failure: Optional[str] = None                            # soft-failure reason

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> Dict:
        """JSON-serialisable summary (rasters omitted)."""
        def pts(points) -> List[List[float]]:
            return [[round(p.x, 2), round(p.y, 2)] for p in points]

        return {
            "ok": self.ok,
            "failure": self.failure,
            "quad": pts(self.quad) if self.quad else None,
            "cells": [
                {
                    "row": c.row,
                    "col": c.col,
                    "color": c.color_name,
                    "component": c.component,
                    "quad": pts(c.quad),
                }
                for c in self.cells
            ],
            "groups": [
                {
                    "color": g.color_name,
                    "component": g.component,
                    "cells": [[c.row, c.col] for c in g.cells],
                    "hull": pts(g.hull),
                }
                for g in self.groups
            ],
        }


# ── Pipeline class ─────────────────────────────────────────────────────

class LegoBoardAnalyzer:
    """End-to-end baseplate frame → coloured regions pipeline.

    Parameters
    ----------
    segmenter : Segmenter
        Source of board polygons (``RemoteSegmenter`` / ``StaticSegmenter``).
    color_map : mapping, optional
        Colour → component lookup loaded once at startup.
    palette : sequence of ReferenceColor
        Reference colours to classify against.
    inset : int
        Pixels trimmed from each cell before sampling.
    blur_kernel : (int, int), optional
        Gaussian kernel applied to each cell before averaging.

    Notes
    -----
    Not re-entrant: run one ``analyze`` at a time per instance.
    """

    rows: int = ROWS
    cols: int = COLS
    cell_size: int = CELL_SIZE

    def __init__(
        self,
        segmenter: Segmenter,
        color_map: Optional[ColorMap] = None,
        palette: Sequence[ReferenceColor] = LEGO_COLORS,
        inset: int = CELL_INSET,
        blur_kernel: Optional[Tuple[int, int]] = BLUR_KERNEL,
    ) -> None:
        self.segmenter = segmenter
        self.color_map = dict(color_map or {})
        self.palette = tuple(palette)
        self.inset = inset
        self.blur_kernel = blur_kernel

        log.info(
            "Analyzer ready  segmenter=%s  palette=%d colours  colour-map=%d entries  "
            "inset=%d  blur=%s",
            type(segmenter).__name__,
            len(self.palette),
            len(self.color_map),
            self.inset,
            self.blur_kernel,
        )

    # ── Public API ─────────────────────────────────────────────────────

    def analyze(self, image: np.ndarray) -> AnalysisResult:
        """Run the full pipeline on a BGR frame.

        Parameters
        ----------
        image : np.ndarray
            BGR image (OpenCV convention).

        Returns
        -------
        AnalysisResult
            Empty (with ``failure`` set) when the board cannot be found.
        """
        try:
            return self._analyze(image)
        except BoardAnalysisError as e:
            log.info("No board in frame (%s): %s", e.reason, e)
            return AnalysisResult(failure=e.reason)

    def _analyze(self, image: np.ndarray) -> AnalysisResult:
        # 1. Segmentation
        predictions = self.segmenter.segment(image)
        if not predictions:
            raise EmptySegmentation("Segmentation returned no predictions")

        # 2. Board quad (first prediction only)
        quad = locate_board(predictions[0].points, image.shape)

        # 3. Perspective warp
        rect = rectify(
            image, quad,
            width=self.cols * self.cell_size,
            height=self.rows * self.cell_size,
        )

        # 4. Per-cell colours
        cells = sample_grid(
            rect.image,
            rect.inverse,
            palette=self.palette,
            color_map=self.color_map,
            rows=self.rows,
            cols=self.cols,
            inset=self.inset,
            blur_kernel=self.blur_kernel,
        )

        # 5. Regions
        groups = group_cells(cells, self.color_map)

        log.info(
            "Board analysed: %d cells, %d regions, %d colours",
            len(cells),
            len(groups),
            len({g.color_name for g in groups}),
        )

        return AnalysisResult(
            cells=cells,
            groups=groups,
            quad=quad,
            rectified=rect.image,
        )

    # ── Debug visualisation ────────────────────────────────────────────

    def visualize(
        self,
        image: np.ndarray,
        result: AnalysisResult,
        show: bool = True,
        save_path: Optional[str] = None,
        draw_cells: bool = False,
    ) -> np.ndarray:
        """Draw region outlines and component labels on a copy of *image*.

        Parameters
        ----------
        image : np.ndarray
            The frame that was analysed.
        result : AnalysisResult
            Output of ``analyze()``.
        show : bool
            Display with ``cv2.imshow`` (blocks until key press).
        save_path : str, optional
            Save the annotated image to disk.
        draw_cells : bool
            Also outline every individual cell.

        Returns
        -------
        np.ndarray
            Annotated BGR image.
        """
        vis = draw_regions(image, result, draw_cells=draw_cells)

        if save_path:
            cv2.imwrite(save_path, vis)
            log.info("Saved debug image to %s", save_path)

        if show:
            cv2.imshow("LEGO Board", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

        return vis


# ── Rendering ──────────────────────────────────────────────────────────

def draw_regions(
    image: np.ndarray,
    result: AnalysisResult,
    draw_cells: bool = False,
) -> np.ndarray:
    """Return a copy of *image* with region hulls and labels drawn on it.

    Each hull is stroked in its palette colour; the component label is
    centred on the hull's bounding box.  Regions with a degenerate hull
    are skipped.
    """
    vis = image.copy()

    if draw_cells:
        for cell in result.cells:
            pts = np.array([[p.x, p.y] for p in cell.quad], dtype=np.int32)
            cv2.polylines(vis, [pts], True, (0, 0, 255), 1)

    for group in result.groups:
        if not group.renderable:
            continue

        color = rgb_to_bgr(COLOR_TO_RGB.get(group.color_name, (255, 0, 0)))
        hull = np.array([[p.x, p.y] for p in group.hull], dtype=np.float32)
        cv2.polylines(vis, [np.round(hull).astype(np.int32)], True, color, 2)

        (min_x, min_y), (max_x, max_y) = hull.min(axis=0), hull.max(axis=0)
        cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2

        label = group.component
        (tw, th), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.45, 1)
        org = (int(cx - tw / 2), int(cy + th / 2))
        cv2.putText(vis, label, org, cv2.FONT_HERSHEY_SIMPLEX, 0.45,
                    (0, 0, 0), 3, cv2.LINE_AA)
        cv2.putText(vis, label, org, cv2.FONT_HERSHEY_SIMPLEX, 0.45,
                    (255, 255, 255), 1, cv2.LINE_AA)

    return vis


def draw_grid(rectified: np.ndarray, rows: int = ROWS, cols: int = COLS) -> np.ndarray:
    """Overlay the cell grid on the rectified raster (warp debugging)."""
    vis = rectified.copy()
    h, w = vis.shape[:2]
    cell_h, cell_w = h / rows, w / cols
    for r in range(rows + 1):
        y = min(int(round(r * cell_h)), h - 1)
        cv2.line(vis, (0, y), (w - 1, y), (0, 0, 255), 1)
    for c in range(cols + 1):
        x = min(int(round(c * cell_w)), w - 1)
        cv2.line(vis, (x, 0), (x, h - 1), (0, 0, 255), 1)
    return vis
