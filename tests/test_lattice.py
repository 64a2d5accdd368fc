"""
Unit tests for hex lattice geometry.
"""

import math

import numpy as np
import pytest

from hexwave import EdgeSet
from hexwave.lattice import (
    NEIGHBOR_OFFSETS,
    SI60,
    SPACING,
    count_greater,
    lattice_to_coord,
    line_intersect,
    neighbor_offsets,
    neighbor_sum,
    row_coords,
    scanline_intersections,
)


def test_lattice_to_coord_even_and_odd_rows():
    assert lattice_to_coord(5, 0, 2, 0) == pytest.approx((3 * SPACING, 0.0))
    x_odd, y_odd = lattice_to_coord(5, 1, 2, 0)
    assert x_odd == pytest.approx(3.5 * SPACING)
    assert y_odd == pytest.approx(SPACING * SI60)


def test_lattice_to_coord_monotonic_and_half_shift():
    for row in range(4):
        xs = [lattice_to_coord(c, row, 10, 3)[0] for c in range(30)]
        assert np.all(np.diff(xs) > 0)
        assert np.allclose(np.diff(xs), SPACING)

    for col in range(10):
        x_even = lattice_to_coord(col, 4, 0, 0)[0]
        x_odd = lattice_to_coord(col, 5, 0, 0)[0]
        assert x_odd - x_even == pytest.approx(0.5 * SPACING)


def test_row_coords_matches_scalar_mapping():
    xs, y = row_coords(7, 12, 4, 2)
    for col in range(12):
        assert (xs[col], y) == pytest.approx(lattice_to_coord(col, 7, 4, 2))


def test_neighbor_relation_is_symmetric():
    for row in (4, 5):
        for dr, dc in NEIGHBOR_OFFSETS[row % 2]:
            other_row, other_col = row + dr, 10 + dc
            back = {
                (other_row + r, other_col + c) for r, c in neighbor_offsets(other_row)
            }
            assert (row, 10) in back


def test_line_intersect_sloped_and_vertical():
    x, y = line_intersect((0.0, 0.0), (2.0, 2.0), 1.0)
    assert (x, y) == pytest.approx((1.0, 1.0))

    x, y = line_intersect((0.3, -1.0), (0.3, 1.0), 0.25)
    assert (x, y) == pytest.approx((0.3, 0.25))


def test_line_intersect_horizontal_is_undefined():
    x, y = line_intersect((0.0, 0.5), (1.0, 0.5), 0.5)
    assert math.isnan(x)
    assert y == 0.5


def test_scanline_intersections_sorted_and_bounded():
    edges = EdgeSet.from_array(
        [
            [0.4, -1.0, 0.4, 1.0],
            [-0.2, -1.0, -0.2, 1.0],
            [0.0, 2.0, 1.0, 3.0],  # span does not contain y = 0
            [-1.0, 0.0, 1.0, 0.0],  # horizontal, skipped
        ]
    )
    xs = scanline_intersections(0.0, edges)
    assert xs == pytest.approx([-0.2, 0.4])


def test_scanline_inclusive_endpoints():
    edges = EdgeSet.from_array([[0.0, 0.0, 1.0, 1.0]])
    assert scanline_intersections(0.0, edges) == pytest.approx([0.0])
    assert scanline_intersections(1.0, edges) == pytest.approx([1.0])
    assert scanline_intersections(1.5, edges).size == 0


def test_count_greater_is_strict():
    inter = np.array([-1.0, 0.0, 2.0])
    counts = count_greater(np.array([-2.0, -1.0, 0.0, 1.0, 3.0]), inter)
    assert counts.tolist() == [3, 2, 1, 1, 0]


def test_neighbor_sum_uses_parity_offsets():
    field = np.arange(49, dtype=np.float64).reshape(7, 7)
    for r, c in ((2, 3), (3, 3)):
        expected = sum(field[r + dr, c + dc] for dr, dc in neighbor_offsets(r))
        assert neighbor_sum(field, r, c) == pytest.approx(expected)


def test_neighbor_sum_ignores_cells_off_the_array():
    field = np.ones((3, 3))
    # corner (0, 0) on an even row only has (0, 1) and (1, 0) in range
    assert neighbor_sum(field, 0, 0) == pytest.approx(2.0)
