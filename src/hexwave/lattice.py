"""
Hexagonal lattice geometry.

Cells are stored in a rectangular (rows x cols) array. Even rows sit on the
integer grid, odd rows are shifted right by half a cell and every row is
``SPACING * sin(60)`` above the previous one, so neighbouring cells form
equilateral triangles.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from numba import njit

###############################################################################
# Constants
###############################################################################

SPACING: float = 0.01
SI60: float = math.sin(math.pi / 3.0)
CO60: float = 0.5

# Row-parity dependent neighbour offsets, (d_row, d_col), indexed by row % 2.
NEIGHBOR_OFFSETS = np.array(
    [
        [[-1, -1], [0, -1], [-1, 0], [1, 0], [-1, 1], [0, 1]],
        [[0, -1], [1, -1], [-1, 0], [1, 0], [0, 1], [1, 1]],
    ],
    dtype=np.int64,
)


def neighbor_offsets(row: int) -> np.ndarray:
    """Return the six (d_row, d_col) offsets for a cell in ``row``."""
    return NEIGHBOR_OFFSETS[row % 2]


###############################################################################
# Coordinates and scanline intersections
###############################################################################


def lattice_to_coord(
    col: int, row: int, col_offset: int, row_offset: int, spacing: float = SPACING
) -> Tuple[float, float]:
    """
    Map lattice indices to continuous (x, y).

    ``col_offset``/``row_offset`` are the indices that land on x = 0 and
    y = 0 respectively.
    """
    x = (col - col_offset) * spacing
    if row % 2 == 1:
        x += CO60 * spacing
    y = (row - row_offset) * spacing * SI60
    return x, y


def row_coords(
    row: int, cols: int, col_offset: int, row_offset: int, spacing: float = SPACING
) -> Tuple[np.ndarray, float]:
    """x coordinates of every column in ``row`` plus the row's y."""
    x = (np.arange(cols, dtype=np.float64) - col_offset) * spacing
    if row % 2 == 1:
        x += CO60 * spacing
    return x, (row - row_offset) * spacing * SI60


def line_intersect(
    seg_start: Sequence[float], seg_end: Sequence[float], line_y: float
) -> Tuple[float, float]:
    """
    Intersection of the segment's carrier line with the horizontal ``y = line_y``.

    Vertical segments are handled exactly. A horizontal segment has no single
    intersection, so ``x`` is returned as ``nan``.
    """
    x1, y1 = seg_start
    x2, y2 = seg_end
    if y1 == y2:
        return math.nan, line_y
    x = x1 + (line_y - y1) * (x2 - x1) / (y2 - y1)
    return x, line_y


def scanline_intersections(line_y: float, edges) -> np.ndarray:
    """
    Sorted x positions where ``y = line_y`` crosses the polygon edges.

    Only segments whose y span contains ``line_y`` (inclusive) contribute.
    Horizontal segments are skipped; their neighbours carry the crossing.
    """
    x1, y1, x2, y2 = edges.x1, edges.y1, edges.x2, edges.y2
    lo = np.minimum(y1, y2)
    hi = np.maximum(y1, y2)
    hit = (lo <= line_y) & (line_y <= hi) & (y1 != y2)
    if not np.any(hit):
        return np.empty(0, dtype=np.float64)

    x1, y1, x2, y2 = x1[hit], y1[hit], x2[hit], y2[hit]
    xs = x1 + (line_y - y1) * (x2 - x1) / (y2 - y1)
    return np.sort(xs)


def count_greater(values: np.ndarray, intersections: np.ndarray) -> np.ndarray:
    """Per value, how many (sorted) intersections lie strictly to its right."""
    return intersections.size - np.searchsorted(intersections, values, side="right")


###############################################################################
# Neighbour sums (Numba-friendly)
###############################################################################


@njit(cache=True)
def neighbor_sum(field: np.ndarray, r: int, c: int) -> float:
    """
    Sum of the six hexagonal neighbours of (r, c).

    Neighbours that fall outside the array contribute 0.
    """
    rows, cols = field.shape
    parity = r % 2
    total = 0.0
    for k in range(6):
        rr = r + NEIGHBOR_OFFSETS[parity, k, 0]
        cc = c + NEIGHBOR_OFFSETS[parity, k, 1]
        if 0 <= rr < rows and 0 <= cc < cols:
            total += field[rr, cc]
    return total


__all__ = [
    "SPACING",
    "SI60",
    "CO60",
    "NEIGHBOR_OFFSETS",
    "neighbor_offsets",
    "lattice_to_coord",
    "row_coords",
    "line_intersect",
    "scanline_intersections",
    "count_greater",
    "neighbor_sum",
]
