"""
Colormap lookup tables and height-to-colour mapping.
"""

from __future__ import annotations

import numpy as np

import matplotlib

N_COLORS = 256
MID_INDEX = 128


def _round_half_up(x: np.ndarray) -> np.ndarray:
    """Round half away from zero for non-negative input (np.round rounds to even)."""
    return np.floor(x + 0.5)


def build_colormap(table) -> np.ndarray:
    """
    Convert ``(index, r, g, b)`` rows with channels in [0, 1] into a
    (256, 3) uint8 lookup table.

    Rows are taken in order; missing trailing entries stay black.
    """
    table = np.asarray(table, dtype=np.float64)
    if table.ndim != 2 or table.shape[1] != 4:
        raise ValueError(f"Colormap table must have 4 columns, got shape {table.shape}")
    if table.shape[0] > N_COLORS:
        raise ValueError(f"Colormap table has {table.shape[0]} rows, max is {N_COLORS}")

    cmap = np.zeros((N_COLORS, 3), dtype=np.uint8)
    rgb = np.clip(_round_half_up(table[:, 1:4] * 255.0), 0, 255)
    cmap[: table.shape[0]] = rgb.astype(np.uint8)
    cmap.setflags(write=False)
    return cmap


def colormap_from_matplotlib(name: str) -> np.ndarray:
    """Sample a registered matplotlib colormap at 256 points."""
    try:
        mpl_cmap = matplotlib.colormaps[name]
    except KeyError as exc:
        raise ValueError(f"Unknown matplotlib colormap: {name}") from exc
    rgba = mpl_cmap(np.linspace(0.0, 1.0, N_COLORS))
    table = np.column_stack((np.arange(N_COLORS, dtype=np.float64), rgba[:, :3]))
    return build_colormap(table)


def _color_index(values, base_level: float, value_range: float) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    if value_range <= 0:
        # flat frame: everything sits on the midpoint
        normalized = np.full(values.shape, 0.5)
    else:
        normalized = (values - base_level) / value_range + 0.5
    index = _round_half_up(normalized * 255.0)
    # nan amplitudes (or a nan range) land on entry 0
    return np.clip(np.nan_to_num(index, nan=0.0), 0, N_COLORS - 1).astype(np.intp)


def colorize(
    value: float, colormap: np.ndarray, base_level: float, value_range: float
) -> np.ndarray:
    """Colour of a single value, centred on ``base_level``."""
    return colormap[int(_color_index(value, base_level, value_range))]


def colorize_field(
    values: np.ndarray, colormap: np.ndarray, base_level: float, value_range: float
) -> np.ndarray:
    """Vectorised ``colorize``: returns ``values.shape + (3,)`` uint8."""
    return colormap[_color_index(values, base_level, value_range)]


def frame_range(field: np.ndarray, headroom: float = 1.0) -> float:
    """Symmetric normalisation range, twice the peak absolute amplitude."""
    if field.size == 0:
        return 0.0
    return 2.0 * float(np.max(np.abs(field))) * headroom


__all__ = [
    "N_COLORS",
    "MID_INDEX",
    "build_colormap",
    "colormap_from_matplotlib",
    "colorize",
    "colorize_field",
    "frame_range",
]
