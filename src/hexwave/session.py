"""
Simulation session: owns the classification grid, the three height-field
slices and the step counter, and turns the current slice into pixels.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np

from . import colormap as cm
from . import utils
from .rasterizer import INTERIOR, OUTSIDE, ClassificationGrid, EdgeSet, classify_polygon
from .utils import ConfigError
from .wave import WaveParams, step

N_MAX = 3000


@dataclass
class SessionConfig:
    """Run length, physics and display settings for a session."""

    n_max: int = N_MAX
    wave: WaveParams = field(default_factory=WaveParams)
    padding: int = 20
    boundary_margin: int = 1
    impulses: Sequence[Tuple[float, float]] = ()
    impulse_amplitude: float = 1.0
    headroom: float = 1.0
    background: Tuple[int, int, int] = (0, 0, 0)

    def validate(self) -> "SessionConfig":
        if not isinstance(self.n_max, int) or self.n_max < 0:
            raise ConfigError(f"n_max must be a non-negative integer, got {self.n_max!r}")
        if self.padding < 3:
            raise ConfigError(f"padding must be at least 3 cells, got {self.padding}")
        if self.boundary_margin < 0:
            raise ConfigError(f"boundary_margin must be >= 0, got {self.boundary_margin}")
        if not self.headroom > 0:
            raise ConfigError(f"headroom must be positive, got {self.headroom}")
        if len(self.background) != 3 or any(not 0 <= int(v) <= 255 for v in self.background):
            raise ConfigError(f"background must be an RGB triple in 0..255, got {self.background}")
        for impulse in self.impulses:
            if len(impulse) != 2:
                raise ConfigError(f"impulse must be an (x, y) pair, got {impulse!r}")
        self.wave.validate()
        return self

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "SessionConfig":
        """
        Build from a flat mapping such as ``utils.load_params`` returns.

        ``speed``, ``time_step`` and ``spacing`` go to the wave parameters.
        """
        params = dict(params)
        wave_keys = {f.name for f in fields(WaveParams)}
        own_keys = {f.name for f in fields(cls)} - {"wave"}
        unknown = set(params) - wave_keys - own_keys
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")

        wave = WaveParams(**{k: params.pop(k) for k in wave_keys if k in params})
        if "impulses" in params:
            params["impulses"] = tuple(tuple(p) for p in params["impulses"])
        if "background" in params:
            params["background"] = tuple(params["background"])
        return cls(wave=wave, **params).validate()


class SimulationSession:
    """
    Drives the wave stepper over a fixed classification grid.

    Not reentrant: ``advance`` and ``render_frame`` must be called from one
    driver, one at a time.
    """

    def __init__(
        self,
        grid: ClassificationGrid,
        colormap: np.ndarray,
        config: SessionConfig | None = None,
    ) -> None:
        self.config = (config or SessionConfig()).validate()
        if not isinstance(grid, ClassificationGrid):
            grid = ClassificationGrid(tags=grid)
        colormap = np.asarray(colormap, dtype=np.uint8)
        if colormap.shape != (cm.N_COLORS, 3):
            raise ValueError(f"Colormap must have shape (256, 3), got {colormap.shape}")

        self.grid = grid
        self.colormap = colormap
        self.courant = self.config.wave.courant
        self.n_max = self.config.n_max
        self.n = 0

        shape = grid.shape
        self.prev = np.zeros(shape, dtype=np.float64)
        self.cur = np.zeros(shape, dtype=np.float64)
        self._next = np.zeros(shape, dtype=np.float64)
        self._apply_initial_impulses()

    # ------------------------------------------------------------------ state
    @property
    def shape(self) -> Tuple[int, int]:
        return self.grid.shape

    def is_done(self) -> bool:
        return self.n >= self.n_max

    def advance(self) -> bool:
        """Step once unless the step limit is reached. Returns True if stepped."""
        if self.is_done():
            return False
        step(self.grid, self.prev, self.cur, out=self._next, courant=self.courant)
        self.prev, self.cur, self._next = self.cur, self._next, self.prev
        self.n += 1
        return True

    def reset(self) -> None:
        """Zero every slice, re-apply the configured impulses and restart at n = 0."""
        self.prev.fill(0.0)
        self.cur.fill(0.0)
        self._next.fill(0.0)
        self.n = 0
        self._apply_initial_impulses()

    def _apply_initial_impulses(self) -> None:
        for x_rel, y_rel in self.config.impulses:
            self.inject_impulse(x_rel, y_rel)

    # ---------------------------------------------------------------- impulse
    def cell_at(self, x_rel: float, y_rel: float) -> Optional[Tuple[int, int]]:
        """Lattice (row, col) under a relative position in [0, 1] x [0, 1]."""
        if not (0.0 <= x_rel <= 1.0 and 0.0 <= y_rel <= 1.0):
            return None
        rows, cols = self.shape
        col = min(int(math.floor(x_rel * cols)), cols - 1)
        row = min(int(math.floor(y_rel * rows)), rows - 1)
        return row, col

    def inject_impulse(
        self, x_rel: float, y_rel: float, amplitude: float | None = None
    ) -> bool:
        """
        Set the current amplitude of the interior cell at a relative position.

        Positions outside the grid or off the interior are ignored.
        """
        cell = self.cell_at(x_rel, y_rel)
        if cell is None:
            print(f"Outside: impulse at ({x_rel}, {y_rel}) is off the grid")
            return False
        row, col = cell
        if self.grid.tags[row, col] != INTERIOR:
            print(f"Outside: impulse at cell ({row}, {col}) is not interior")
            return False
        if amplitude is None:
            amplitude = self.config.impulse_amplitude
        self.cur[row, col] = amplitude
        return True

    # ----------------------------------------------------------------- render
    def frame_range(self) -> float:
        return cm.frame_range(self.cur, self.config.headroom)

    def render_frame(self) -> np.ndarray:
        """
        Colour the current slice.

        Returns a (rows, cols, 3) uint8 array in row-major order; OUTSIDE
        cells keep the background colour. ``.tobytes()`` gives the flat
        RGB buffer.
        """
        pixels = np.empty(self.shape + (3,), dtype=np.uint8)
        pixels[...] = np.asarray(self.config.background, dtype=np.uint8)
        visible = self.grid.tags != OUTSIDE
        pixels[visible] = cm.colorize_field(
            self.cur[visible], self.colormap, 0.0, self.frame_range()
        )
        return pixels

    # -------------------------------------------------------------------- run
    def run(self, steps: int | None = None, every: int = 1) -> utils.RunResult:
        """
        Advance up to ``steps`` times (default: until done) and collect a
        snapshot of the current slice every ``every`` steps.
        """
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        remaining = self.n_max - self.n if steps is None else steps
        rows, cols = self.shape
        print(
            f"Running hex wave: grid={rows}x{cols}, steps={remaining}, "
            f"k={self.courant:.3f}, n={self.n}/{self.n_max}"
        )

        frames = [self.cur.copy()]
        taken = [self.n]
        for _ in range(remaining):
            if not self.advance():
                break
            if self.n % every == 0:
                frames.append(self.cur.copy())
                taken.append(self.n)

        meta = {
            "model": "hexwave",
            "n": self.n,
            "n_max": self.n_max,
            "courant": self.courant,
            "col_offset": self.grid.col_offset,
            "row_offset": self.grid.row_offset,
            "spacing": self.grid.spacing,
        }
        return utils.RunResult(
            tags=np.array(self.grid.tags),
            frames=np.stack(frames),
            steps=np.asarray(taken, dtype=np.int64),
            meta=meta,
        )


###############################################################################
# Construction helpers
###############################################################################


def new_session(
    grid: ClassificationGrid, colormap: np.ndarray, n_max: int = N_MAX
) -> SimulationSession:
    return SimulationSession(grid, colormap, SessionConfig(n_max=n_max))


def load_colormap(source: str | os.PathLike[str]) -> np.ndarray:
    """Colormap from a table file, or a matplotlib colormap name."""
    path = Path(source)
    if path.exists():
        return cm.build_colormap(utils.read_colormap_table(path))
    if path.suffix:
        raise FileNotFoundError(f"Missing colormap table: {path}")
    return cm.colormap_from_matplotlib(str(source))


def build_session(
    edges_path: str | os.PathLike[str],
    colormap_source: str | os.PathLike[str],
    config: SessionConfig | None = None,
) -> SimulationSession:
    """Load edges and colormap, classify the polygon and open a session."""
    config = (config or SessionConfig()).validate()
    edges = EdgeSet.from_array(utils.read_edges(edges_path))
    grid = classify_polygon(
        edges,
        config.padding,
        margin=config.boundary_margin,
        spacing=config.wave.spacing,
    )
    return SimulationSession(grid, load_colormap(colormap_source), config)


__all__ = [
    "N_MAX",
    "SessionConfig",
    "SimulationSession",
    "new_session",
    "load_colormap",
    "build_session",
]
