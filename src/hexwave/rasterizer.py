"""
Polygon to hex-lattice classification.

Each lattice cell is tagged OUTSIDE, INTERIOR or BOUNDARY. Interior cells are
found with the even-odd rule along horizontal scanlines; boundary cells are
the outside cells touching the interior.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numba import njit

from .lattice import (
    NEIGHBOR_OFFSETS,
    SI60,
    SPACING,
    count_greater,
    row_coords,
    scanline_intersections,
)

OUTSIDE = 0
INTERIOR = 1
BOUNDARY = 2

DEFAULT_PADDING = 20


@dataclass(frozen=True, eq=False)
class EdgeSet:
    """Polygon edges as four parallel coordinate arrays."""

    x1: np.ndarray
    y1: np.ndarray
    x2: np.ndarray
    y2: np.ndarray

    def __post_init__(self) -> None:
        arrays = []
        for name in ("x1", "y1", "x2", "y2"):
            arr = np.array(getattr(self, name), dtype=np.float64).reshape(-1)
            arr.setflags(write=False)
            arrays.append(arr)
            object.__setattr__(self, name, arr)
        if len({a.size for a in arrays}) != 1:
            raise ValueError("Edge coordinate arrays must have equal length")

    @classmethod
    def from_array(cls, segments) -> "EdgeSet":
        """Build from an (N, 4) array of ``x1 y1 x2 y2`` rows."""
        seg = np.asarray(segments, dtype=np.float64)
        if seg.ndim != 2 or seg.shape[1] != 4:
            raise ValueError(f"Expected an (N, 4) segment array, got {seg.shape}")
        return cls(seg[:, 0], seg[:, 1], seg[:, 2], seg[:, 3])

    def __len__(self) -> int:
        return self.x1.size

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, max_x, min_y, max_y) over every endpoint."""
        if len(self) == 0:
            raise ValueError("Empty edge set has no bounds")
        xs = np.concatenate((self.x1, self.x2))
        ys = np.concatenate((self.y1, self.y2))
        return float(xs.min()), float(xs.max()), float(ys.min()), float(ys.max())


@dataclass(frozen=True, eq=False)
class ClassificationGrid:
    """Read-only cell tags plus the lattice placement they were built with."""

    tags: np.ndarray
    col_offset: int = 0
    row_offset: int = 0
    spacing: float = SPACING

    def __post_init__(self) -> None:
        tags = np.array(self.tags, dtype=np.int8)
        if tags.ndim != 2:
            raise ValueError(f"Classification tags must be 2-D, got shape {tags.shape}")
        if np.any((tags < OUTSIDE) | (tags > BOUNDARY)):
            raise ValueError("Classification tags must be 0, 1 or 2")
        tags.setflags(write=False)
        object.__setattr__(self, "tags", tags)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.tags.shape

    @property
    def interior(self) -> np.ndarray:
        return self.tags == INTERIOR

    def counts(self) -> dict:
        return {
            "outside": int(np.count_nonzero(self.tags == OUTSIDE)),
            "interior": int(np.count_nonzero(self.tags == INTERIOR)),
            "boundary": int(np.count_nonzero(self.tags == BOUNDARY)),
        }


###############################################################################
# Kernels
###############################################################################


@njit(cache=True)
def _mark_boundary(tags: np.ndarray, margin: int) -> np.ndarray:
    """
    Tag every OUTSIDE cell with a non-zero neighbour as BOUNDARY.

    Reads only from ``tags`` and writes into a copy, so the result does not
    depend on visiting order. ``margin`` rings at the array edge are skipped.
    """
    rows, cols = tags.shape
    out = tags.copy()
    for r in range(margin, rows - margin):
        parity = r % 2
        for c in range(margin, cols - margin):
            if tags[r, c] != OUTSIDE:
                continue
            total = 0
            for k in range(6):
                rr = r + NEIGHBOR_OFFSETS[parity, k, 0]
                cc = c + NEIGHBOR_OFFSETS[parity, k, 1]
                if 0 <= rr < rows and 0 <= cc < cols:
                    total += tags[rr, cc]
            if total != 0:
                out[r, c] = BOUNDARY
    return out


###############################################################################
# Public API
###############################################################################


def fill_interior(
    edges: EdgeSet,
    rows: int,
    cols: int,
    col_offset: int,
    row_offset: int,
    spacing: float = SPACING,
) -> np.ndarray:
    """Even-odd fill: INTERIOR where an odd number of crossings lie to the right."""
    tags = np.zeros((rows, cols), dtype=np.int8)
    for r in range(rows):
        xs, y = row_coords(r, cols, col_offset, row_offset, spacing)
        inter = scanline_intersections(y, edges)
        if inter.size == 0:
            continue
        tags[r, count_greater(xs, inter) % 2 == 1] = INTERIOR
    return tags


def classify(
    edges: EdgeSet,
    rows: int,
    cols: int,
    col_offset: int,
    row_offset: int,
    *,
    margin: int = 1,
    spacing: float = SPACING,
) -> ClassificationGrid:
    """
    Build the classification grid for ``edges`` on a (rows x cols) lattice.

    ``margin`` is the number of outermost rings excluded from boundary
    marking.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {rows}x{cols}")
    if margin < 0:
        raise ValueError(f"margin must be >= 0, got {margin}")

    tags = fill_interior(edges, rows, cols, col_offset, row_offset, spacing)
    tags = _mark_boundary(tags, margin)
    return ClassificationGrid(
        tags=tags, col_offset=col_offset, row_offset=row_offset, spacing=spacing
    )


def grid_bounds(
    edges: EdgeSet, padding: int = DEFAULT_PADDING, spacing: float = SPACING
) -> Tuple[int, int, int, int]:
    """
    Lattice size covering the polygon plus ``padding`` cells on every side.

    Returns ``(rows, cols, col_offset, row_offset)``.
    """
    if padding < 3:
        raise ValueError(f"padding must be at least 3 cells, got {padding}")
    min_x, max_x, min_y, max_y = edges.bounds()
    row_step = spacing * SI60

    col_lo = math.floor(min_x / spacing) - padding
    col_hi = math.ceil(max_x / spacing) + padding
    row_lo = math.floor(min_y / row_step) - padding
    row_hi = math.ceil(max_y / row_step) + padding

    return row_hi - row_lo + 1, col_hi - col_lo + 1, -col_lo, -row_lo


def classify_polygon(
    edges: EdgeSet,
    padding: int = DEFAULT_PADDING,
    *,
    margin: int = 1,
    spacing: float = SPACING,
) -> ClassificationGrid:
    """Classify ``edges`` on a lattice sized from their bounding box."""
    rows, cols, col_offset, row_offset = grid_bounds(edges, padding, spacing)
    return classify(
        edges, rows, cols, col_offset, row_offset, margin=margin, spacing=spacing
    )


__all__ = [
    "OUTSIDE",
    "INTERIOR",
    "BOUNDARY",
    "EdgeSet",
    "ClassificationGrid",
    "fill_interior",
    "classify",
    "grid_bounds",
    "classify_polygon",
]
