"""Tests for connected-region grouping and convex hulls."""

import random

from conftest import make_cells
from lego_vision.inference.regions import convex_hull, group_cells
from lego_vision.models.color_map import ColorMapping
from lego_vision.models.geometry import COLS, ROWS, Point2D


def _grid(fill="Blue", rows=ROWS, cols=COLS):
    return [[fill] * cols for _ in range(rows)]


def _partition(groups):
    return sorted(
        (g.color_name, tuple(sorted((c.row, c.col) for c in g.cells)))
        for g in groups
    )


# ============================================================================
# convex_hull
# ============================================================================

class TestConvexHull:
    """Tests for Andrew's monotone chain."""

    def test_square(self):
        square = [Point2D(0, 0), Point2D(1, 0), Point2D(1, 1), Point2D(0, 1)]
        hull = convex_hull(square)
        assert hull == [Point2D(0, 0), Point2D(1, 0), Point2D(1, 1), Point2D(0, 1)]

    def test_square_winding_is_consistent(self):
        square = [Point2D(1, 1), Point2D(0, 0), Point2D(0, 1), Point2D(1, 0)]
        hull = convex_hull(square)
        area2 = sum(
            hull[i].x * hull[(i + 1) % 4].y - hull[(i + 1) % 4].x * hull[i].y
            for i in range(4)
        )
        assert len(hull) == 4
        assert area2 > 0

    def test_interior_and_duplicate_points_removed(self):
        pts = [
            Point2D(0, 0), Point2D(4, 0), Point2D(4, 4), Point2D(0, 4),
            Point2D(2, 2), Point2D(1, 3), Point2D(4, 4), Point2D(2, 0),
        ]
        hull = convex_hull(pts)
        assert set(hull) == {Point2D(0, 0), Point2D(4, 0), Point2D(4, 4), Point2D(0, 4)}

    def test_two_points(self):
        hull = convex_hull([Point2D(3, 3), Point2D(1, 1)])
        assert hull == [Point2D(1, 1), Point2D(3, 3)]

    def test_single_and_empty(self):
        assert convex_hull([Point2D(5, 5)]) == [Point2D(5, 5)]
        assert convex_hull([]) == []

    def test_collinear_collapses_to_extremes(self):
        hull = convex_hull([Point2D(x, 2 * x) for x in range(6)])
        assert len(hull) <= 2
        assert set(hull) <= {Point2D(0, 0), Point2D(5, 10)}


# ============================================================================
# group_cells
# ============================================================================

class TestGroupCells:
    """Tests for 4-connected region grouping."""

    def test_two_by_two_block(self):
        names = _grid()
        for r in (0, 1):
            for c in (0, 1):
                names[r][c] = "Red"

        groups = group_cells(make_cells(names))
        red = [g for g in groups if g.color_name == "Red"]
        assert len(red) == 1
        assert sorted((c.row, c.col) for c in red[0].cells) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_two_by_two_block_hull(self):
        names = _grid()
        for r in (0, 1):
            for c in (0, 1):
                names[r][c] = "Red"

        red = [g for g in group_cells(make_cells(names)) if g.color_name == "Red"][0]
        assert set(red.hull) == {Point2D(0, 0), Point2D(2, 0), Point2D(2, 2), Point2D(0, 2)}
        assert red.renderable

    def test_diagonal_cells_do_not_merge(self):
        names = _grid()
        names[0][0] = "Red"
        names[1][1] = "Red"

        red = [g for g in group_cells(make_cells(names)) if g.color_name == "Red"]
        assert len(red) == 2
        assert all(len(g.cells) == 1 for g in red)

    def test_similar_colours_do_not_merge(self):
        names = [["Red", "Dark Red"]]
        groups = group_cells(make_cells(names))
        assert [g.color_name for g in groups] == ["Red", "Dark Red"]

    def test_uniform_grid_is_one_group(self):
        groups = group_cells(make_cells(_grid("Tan")))
        assert len(groups) == 1
        assert len(groups[0].cells) == ROWS * COLS
        assert set(groups[0].hull) == {
            Point2D(0, 0), Point2D(COLS, 0), Point2D(COLS, ROWS), Point2D(0, ROWS),
        }

    def test_cell_counts_cover_grid(self):
        rng = random.Random(7)
        names = [[rng.choice(["Red", "Blue", "Yellow"]) for _ in range(COLS)]
                 for _ in range(ROWS)]
        groups = group_cells(make_cells(names))
        assert sum(len(g.cells) for g in groups) == ROWS * COLS

    def test_input_order_does_not_change_partition(self):
        rng = random.Random(3)
        names = [[rng.choice(["Red", "Blue"]) for _ in range(8)] for _ in range(4)]
        cells = make_cells(names)
        shuffled = cells[:]
        rng.shuffle(shuffled)
        assert _partition(group_cells(cells)) == _partition(group_cells(shuffled))

    def test_discovery_order_is_row_major(self):
        names = [["Blue", "Red"], ["Yellow", "Red"]]
        groups = group_cells(make_cells(names))
        assert [g.color_name for g in groups] == ["Blue", "Red", "Yellow"]

    def test_snake_region_connects(self):
        names = [
            ["Red", "Blue", "Red"],
            ["Red", "Blue", "Red"],
            ["Red", "Red", "Red"],
        ]
        groups = group_cells(make_cells(names))
        red = [g for g in groups if g.color_name == "Red"]
        assert len(red) == 1
        assert len(red[0].cells) == 7

    def test_component_label_from_colour_map(self):
        names = [["Red", "Blue"]]
        color_map = {"Red": ColorMapping("TCP", "Sender")}
        groups = group_cells(make_cells(names), color_map)
        assert groups[0].component == "Sender"
        assert groups[1].component == "Blue"

    def test_empty_input(self):
        assert group_cells([]) == []

    def test_sparse_cells(self):
        cells = [c for c in make_cells([["Red", "Red", "Red"]]) if c.col != 1]
        groups = group_cells(cells)
        assert len(groups) == 2

    def test_single_cell_region_is_renderable(self):
        groups = group_cells(make_cells([["Red"]]))
        assert groups[0].renderable

    def test_collapsed_cell_is_not_renderable(self):
        cell = make_cells([["Red"]])[0]
        cell.quad = [Point2D(3, 3)] * 4
        groups = group_cells([cell])
        assert groups[0].hull == [Point2D(3, 3)]
        assert not groups[0].renderable
