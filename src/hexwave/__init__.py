"""
Hex Wave - Polygon Wave Simulation on a Hexagonal Lattice

This package provides:
- classify / classify_polygon: rasterize a closed polygon onto the hex lattice
- step: explicit finite-difference wave stepper over the interior cells
- build_colormap / colorize: false-colour lookup for height fields
- SimulationSession: owns the grid and time slices and renders frames
"""

from .rasterizer import (
    BOUNDARY,
    INTERIOR,
    OUTSIDE,
    ClassificationGrid,
    EdgeSet,
    classify,
    classify_polygon,
    grid_bounds,
)
from .wave import WaveParams, step
from .colormap import build_colormap, colormap_from_matplotlib, colorize
from .session import SessionConfig, SimulationSession, build_session, new_session
from .utils import ConfigError, ParseError
from . import lattice, utils

__all__ = [
    # Geometry and classification
    "OUTSIDE",
    "INTERIOR",
    "BOUNDARY",
    "EdgeSet",
    "ClassificationGrid",
    "classify",
    "classify_polygon",
    "grid_bounds",
    # Wave engine
    "WaveParams",
    "step",
    # Colormaps
    "build_colormap",
    "colormap_from_matplotlib",
    "colorize",
    # Sessions
    "SessionConfig",
    "SimulationSession",
    "new_session",
    "build_session",
    # Errors
    "ParseError",
    "ConfigError",
    # Modules
    "lattice",
    "utils",
]
