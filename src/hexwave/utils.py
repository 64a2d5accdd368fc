# src/hexwave/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

MAX_COLORMAP_ROWS = 256


class ParseError(ValueError):
    """An input table could not be read; nothing from it is used."""

    def __init__(self, path, message: str, line: Optional[int] = None):
        self.path = str(path)
        self.line = line
        where = self.path if line is None else f"{self.path}:{line}"
        super().__init__(f"{where}: {message}")


class ConfigError(ValueError):
    """Invalid simulation configuration."""


@dataclass
class RunResult:
    """Container for the outputs of a simulation run."""

    tags: Optional[np.ndarray] = None
    frames: Optional[np.ndarray] = None
    steps: Optional[np.ndarray] = None
    meta: Dict[str, Any] = field(default_factory=dict)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


###############################################################################
# Input tables
###############################################################################


def _load_table(path, delimiter: Optional[str], columns: int) -> np.ndarray:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing input file: {path}")
    try:
        with warnings.catch_warnings():
            # empty files are reported below, not as a numpy UserWarning
            warnings.simplefilter("ignore", UserWarning)
            data = np.loadtxt(path, delimiter=delimiter, dtype=np.float64, ndmin=2)
    except ValueError as exc:
        raise ParseError(path, str(exc)) from exc
    if data.size == 0:
        raise ParseError(path, "no rows found")
    if data.shape[1] != columns:
        raise ParseError(path, f"expected {columns} fields per row, got {data.shape[1]}")
    if not np.all(np.isfinite(data)):
        bad = int(np.argwhere(~np.isfinite(data))[0, 0])
        raise ParseError(path, f"non-finite value in row {bad + 1}")
    return data


def read_edges(path: str | os.PathLike[str]) -> np.ndarray:
    """
    Read a whitespace separated edge list, one ``x1 y1 x2 y2`` segment per row.

    Returns an (N, 4) float array. Any malformed row aborts the whole load.
    """
    return _load_table(path, None, 4)


def read_colormap_table(
    path: str | os.PathLike[str], delimiter: str = ","
) -> np.ndarray:
    """
    Read a colormap table of ``index, r, g, b`` rows with channels in [0, 1].
    """
    data = _load_table(path, delimiter, 4)
    if data.shape[0] > MAX_COLORMAP_ROWS:
        raise ParseError(
            path, f"expected at most {MAX_COLORMAP_ROWS} rows, got {data.shape[0]}"
        )
    return data


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")


###############################################################################
# Run outputs
###############################################################################


def save_run(
    path: str | os.PathLike[str], result: RunResult, *, overwrite: bool = True
) -> None:
    """Serialize a RunResult to a compressed .npz file."""
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")

    out: Dict[str, Any] = {}
    if result.tags is not None:
        out["tags"] = np.asarray(result.tags, dtype=np.int8)
    if result.frames is not None:
        out["frames"] = np.asarray(result.frames, dtype=np.float64)
    if result.steps is not None:
        out["steps"] = np.asarray(result.steps, dtype=np.int64)
    out["meta"] = json.dumps(result.meta or {})
    np.savez_compressed(path, **out)


def load_run(path: str | os.PathLike[str]) -> RunResult:
    """Load a .npz written by ``save_run``."""
    with np.load(path, allow_pickle=False) as data:
        tags = data["tags"].astype(np.int8) if "tags" in data else None
        frames = data["frames"].astype(np.float64) if "frames" in data else None
        steps = data["steps"].astype(np.int64) if "steps" in data else None
        meta = json.loads(str(data["meta"])) if "meta" in data else {}
    return RunResult(tags=tags, frames=frames, steps=steps, meta=meta)
