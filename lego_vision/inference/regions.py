"""
Region Aggregation – Cells → Connected Colour Regions
=====================================================

Responsibilities:
  1. Merge edge-adjacent cells (4-connectivity) that were matched to the
     *same* palette name into connected regions.  Visually similar but
     distinct names never merge.
  2. Label each region with its functional component (colour map lookup,
     falling back to the colour name).
  3. Compute each region's outline as the convex hull of its cells'
     source-space corners (Andrew's monotone chain).

Cells live in a flat array indexed ``row * cols + col``; the flood fill
walks that array in row-major order, so regions are emitted in the order
of their top-left-most cell.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from lego_vision.inference.grid_sampler import GridCell
from lego_vision.models.color_map import ColorMap, component_for
from lego_vision.models.geometry import Point2D

log = logging.getLogger(__name__)


@dataclass
class CellGroup:
    """A connected run of same-coloured cells."""
    color_name: str
    component: str
    cells: List[GridCell] = field(default_factory=list)
    hull: List[Point2D] = field(default_factory=list)

    @property
    def renderable(self) -> bool:
        """A region can only be outlined if its hull is a real polygon."""
        return len(self.hull) >= 3


# ── Convex hull ────────────────────────────────────────────────────────

def _cross(o: Point2D, a: Point2D, b: Point2D) -> float:
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def convex_hull(points: Iterable[Point2D]) -> List[Point2D]:
    """Convex hull by Andrew's monotone chain.

    Duplicates are removed and collinear points dropped.  The hull is
    returned counter-clockwise in a y-up frame (clockwise on screen),
    starting from the smallest ``(x, y)``.  Fewer than 3 distinct points
    are returned as-is (sorted); collinear inputs collapse to their two
    extremes.
    """
    pts = sorted({Point2D(float(p[0]), float(p[1])) for p in points})
    if len(pts) < 3:
        return pts

    lower: List[Point2D] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: List[Point2D] = []
    for p in reversed(pts):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return lower[:-1] + upper[:-1]


# ── Connected components ───────────────────────────────────────────────

def group_cells(
    cells: Sequence[GridCell],
    color_map: Optional[ColorMap] = None,
) -> List[CellGroup]:
    """Partition cells into 4-connected regions of identical colour name.

    Parameters
    ----------
    cells : sequence of GridCell
        Usually the full ``rows × cols`` grid, but gaps are tolerated.
    color_map : mapping, optional
        Colour → component lookup.

    Returns
    -------
    list[CellGroup]
        One group per connected component, in discovery order.
    """
    if not cells:
        return []

    rows = max(c.row for c in cells) + 1
    cols = max(c.col for c in cells) + 1

    arena: List[Optional[GridCell]] = [None] * (rows * cols)
    for cell in cells:
        arena[cell.row * cols + cell.col] = cell

    visited = [False] * (rows * cols)
    groups: List[CellGroup] = []

    for start, seed in enumerate(arena):
        if seed is None or visited[start]:
            continue

        visited[start] = True
        members: List[GridCell] = []
        stack = [start]
        while stack:
            idx = stack.pop()
            cell = arena[idx]
            members.append(cell)

            r, c = divmod(idx, cols)
            for nr, nc in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
                if not (0 <= nr < rows and 0 <= nc < cols):
                    continue
                n = nr * cols + nc
                neighbour = arena[n]
                if (
                    not visited[n]
                    and neighbour is not None
                    and neighbour.color_name == seed.color_name
                ):
                    visited[n] = True
                    stack.append(n)

        members.sort(key=lambda m: (m.row, m.col))
        corners = [p for m in members for p in m.quad]
        groups.append(CellGroup(
            color_name=seed.color_name,
            component=component_for(seed.color_name, color_map),
            cells=members,
            hull=convex_hull(corners),
        ))

    log.debug("Grouped %d cells into %d regions", len(cells), len(groups))
    return groups
