"""
Explicit finite-difference wave stepper on the hex lattice.

Leap-frog update for every INTERIOR cell:

    next = 2*cur - prev + k^2 * (2/3 * sum6(cur) - 4*cur)

with Courant number ``k = speed * time_step / spacing``. All other cells are
never written and act as a fixed (Dirichlet) edge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numba import njit

from .lattice import NEIGHBOR_OFFSETS, SPACING
from .rasterizer import INTERIOR, ClassificationGrid
from .utils import ConfigError

SPEED = 0.7
TIME_STEP = 0.01

# Leap-frog on the six-point stencil: the neighbour sum bottoms out at -4,
# so k^2 * 20/3 <= 4.
COURANT_LIMIT = math.sqrt(0.6)


@dataclass
class WaveParams:
    """Physical constants of the stepper."""

    speed: float = SPEED
    time_step: float = TIME_STEP
    spacing: float = SPACING

    @property
    def courant(self) -> float:
        return self.speed * self.time_step / self.spacing

    def validate(self) -> "WaveParams":
        for name in ("speed", "time_step", "spacing"):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
                raise ConfigError(f"{name} must be a positive finite number, got {value!r}")
        k = self.courant
        if k > COURANT_LIMIT:
            raise ConfigError(
                f"Unstable parameters: Courant number {k:.4f} exceeds "
                f"{COURANT_LIMIT:.4f} (speed={self.speed}, "
                f"time_step={self.time_step}, spacing={self.spacing})"
            )
        return self


DEFAULT_COURANT = WaveParams().courant


@njit(cache=True, boundscheck=False)
def _step_kernel(
    tags: np.ndarray, prev: np.ndarray, cur: np.ndarray, out: np.ndarray, k2: float
) -> None:
    rows, cols = tags.shape
    for r in range(rows):
        parity = r % 2
        for c in range(cols):
            if tags[r, c] != INTERIOR:
                continue
            total = 0.0
            for k in range(6):
                rr = r + NEIGHBOR_OFFSETS[parity, k, 0]
                cc = c + NEIGHBOR_OFFSETS[parity, k, 1]
                if 0 <= rr < rows and 0 <= cc < cols:
                    total += cur[rr, cc]
            u = cur[r, c]
            out[r, c] = 2.0 * u - prev[r, c] + k2 * (2.0 / 3.0 * total - 4.0 * u)


def step(
    classification,
    prev: np.ndarray,
    cur: np.ndarray,
    out: np.ndarray | None = None,
    courant: float = DEFAULT_COURANT,
) -> np.ndarray:
    """
    Advance the height field one time step and return the new slice.

    ``classification`` is a ClassificationGrid or a raw tag array. Only
    INTERIOR cells of ``out`` are written; when ``out`` is None it starts as
    a copy of ``cur`` so frozen cells carry their current value forward.
    ``out`` must not alias ``prev`` or ``cur``.
    """
    tags = classification.tags if isinstance(classification, ClassificationGrid) else classification
    tags = np.asarray(tags)
    if prev.shape != tags.shape or cur.shape != tags.shape:
        raise ValueError(
            f"Height fields {prev.shape}/{cur.shape} do not match grid {tags.shape}"
        )
    if out is None:
        out = np.array(cur, dtype=np.float64, copy=True)
    elif out.shape != tags.shape:
        raise ValueError(f"Output buffer {out.shape} does not match grid {tags.shape}")
    elif out is prev or out is cur:
        raise ValueError("Output buffer must be distinct from prev and cur")

    _step_kernel(tags, prev, cur, out, courant * courant)
    return out


__all__ = [
    "SPEED",
    "TIME_STEP",
    "SPACING",
    "COURANT_LIMIT",
    "DEFAULT_COURANT",
    "WaveParams",
    "step",
]
