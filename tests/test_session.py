"""
Tests for the simulation session: stepping, impulses, reset and rendering.
"""

import numpy as np
import pytest

from hexwave import (
    BOUNDARY,
    INTERIOR,
    OUTSIDE,
    ClassificationGrid,
    ConfigError,
    SessionConfig,
    SimulationSession,
    WaveParams,
    build_colormap,
    new_session,
)
from hexwave.colormap import MID_INDEX
from hexwave.lattice import neighbor_offsets


def ramp_cmap():
    idx = np.arange(256, dtype=np.float64)
    v = idx / 255.0
    return build_colormap(np.column_stack((idx, v, v, 1.0 - v)))


def disc_grid():
    """7x7: interior, boundary ring, outside corners."""
    tags = np.full((7, 7), INTERIOR, dtype=np.int8)
    tags[0, :] = tags[-1, :] = tags[:, 0] = tags[:, -1] = BOUNDARY
    for r, c in ((0, 0), (0, 6), (6, 0), (6, 6)):
        tags[r, c] = OUTSIDE
    return ClassificationGrid(tags=tags)


def test_end_to_end_single_step():
    session = new_session(disc_grid(), ramp_cmap(), n_max=10)
    assert session.inject_impulse(0.5, 0.5)
    assert session.cur[3, 3] == 1.0

    assert session.advance()

    k2 = session.courant**2
    cur = session.cur
    neighbors = [(3 + dr, 3 + dc) for dr, dc in neighbor_offsets(3)]
    for p in neighbors:
        assert cur[p] == pytest.approx(k2 * 2.0 / 3.0)
    assert cur[3, 3] == pytest.approx(2.0 - 4.0 * k2)

    others = np.ones((7, 7), dtype=bool)
    others[3, 3] = False
    for p in neighbors:
        others[p] = False
    assert np.all(cur[others] == 0.0)
    assert session.prev[3, 3] == 1.0
    assert session.n == 1


def test_impulse_outside_interior_is_ignored(capsys):
    session = new_session(disc_grid(), ramp_cmap(), n_max=10)
    before = session.cur.copy()

    assert not session.inject_impulse(0.0, 0.0)  # outside corner
    assert not session.inject_impulse(0.5, 0.0)  # boundary ring
    assert not session.inject_impulse(1.5, 0.5)  # off the grid

    assert np.array_equal(session.cur, before)
    assert "Outside" in capsys.readouterr().out


def test_cell_at_scales_and_floors():
    session = new_session(disc_grid(), ramp_cmap())
    assert session.cell_at(0.5, 0.5) == (3, 3)
    assert session.cell_at(0.99, 0.0) == (0, 6)
    assert session.cell_at(1.0, 1.0) == (6, 6)
    assert session.cell_at(-0.1, 0.5) is None


def test_advance_stops_at_n_max():
    session = new_session(disc_grid(), ramp_cmap(), n_max=5)
    session.inject_impulse(0.5, 0.5)
    for _ in range(5):
        assert not session.is_done()
        assert session.advance()
    assert session.is_done()

    prev, cur = session.prev.copy(), session.cur.copy()
    assert not session.advance()
    assert session.n == 5
    assert np.array_equal(session.prev, prev)
    assert np.array_equal(session.cur, cur)


def test_reset_reproduces_frames():
    session = new_session(disc_grid(), ramp_cmap(), n_max=20)
    session.inject_impulse(0.5, 0.5)
    first = []
    for _ in range(8):
        session.advance()
        first.append(session.render_frame())

    session.reset()
    assert session.n == 0
    assert np.all(session.cur == 0.0) and np.all(session.prev == 0.0)

    session.inject_impulse(0.5, 0.5)
    for expected in first:
        session.advance()
        assert np.array_equal(session.render_frame(), expected)


def test_reset_reapplies_configured_impulses():
    config = SessionConfig(n_max=4, impulses=((0.5, 0.5),), impulse_amplitude=-1.0)
    session = SimulationSession(disc_grid(), ramp_cmap(), config)
    assert session.cur[3, 3] == -1.0
    session.advance()
    session.reset()
    assert session.cur[3, 3] == -1.0
    assert np.count_nonzero(session.cur) == 1


def test_render_frame_layout_and_background():
    config = SessionConfig(background=(1, 2, 3))
    session = SimulationSession(disc_grid(), ramp_cmap(), config)
    pixels = session.render_frame()

    assert pixels.shape == (7, 7, 3)
    assert pixels.dtype == np.uint8
    assert len(pixels.tobytes()) == 7 * 7 * 3
    assert pixels[0, 0].tolist() == [1, 2, 3]
    # flat field: every visible cell on the colormap midpoint
    assert pixels[3, 3].tolist() == session.colormap[MID_INDEX].tolist()
    assert pixels[0, 3].tolist() == session.colormap[MID_INDEX].tolist()


def test_render_frame_normalises_to_peak():
    session = new_session(disc_grid(), ramp_cmap())
    session.inject_impulse(0.5, 0.5)
    pixels = session.render_frame()
    cmap = session.colormap
    assert pixels[3, 3].tolist() == cmap[255].tolist()
    assert pixels[2, 2].tolist() == cmap[MID_INDEX].tolist()


def test_run_collects_snapshots():
    session = new_session(disc_grid(), ramp_cmap(), n_max=12)
    session.inject_impulse(0.5, 0.5)
    result = session.run(every=4)

    assert session.is_done()
    assert result.steps.tolist() == [0, 4, 8, 12]
    assert result.frames.shape == (4, 7, 7)
    assert result.frames[0, 3, 3] == 1.0
    assert np.array_equal(result.frames[-1], session.cur)
    assert result.meta["n"] == 12


def test_session_rejects_bad_colormap_and_config():
    with pytest.raises(ValueError):
        SimulationSession(disc_grid(), np.zeros((10, 3), dtype=np.uint8))
    with pytest.raises(ConfigError):
        SimulationSession(
            disc_grid(), ramp_cmap(), SessionConfig(wave=WaveParams(speed=5.0))
        )
    with pytest.raises(ConfigError):
        SimulationSession(disc_grid(), ramp_cmap(), SessionConfig(n_max=-1))


def test_config_from_dict():
    config = SessionConfig.from_dict(
        {
            "n_max": 50,
            "speed": 0.5,
            "impulses": [[0.25, 0.75]],
            "headroom": 1.2,
            "background": [10, 20, 30],
        }
    )
    assert config.n_max == 50
    assert config.wave.speed == 0.5
    assert config.wave.courant == pytest.approx(0.5)
    assert config.impulses == ((0.25, 0.75),)
    assert config.background == (10, 20, 30)

    with pytest.raises(ConfigError):
        SessionConfig.from_dict({"colour": "red"})
    with pytest.raises(ConfigError):
        SessionConfig.from_dict({"time_step": 1.0})
