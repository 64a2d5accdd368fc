# src/scripts/plot_frames.py
import argparse
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from hexwave import OUTSIDE, utils
from hexwave.colormap import colorize_field, frame_range
from hexwave.session import load_colormap


def render_snapshot(tags, field, cmap, headroom=1.0, background=(255, 255, 255)):
    """Colour one saved height field the same way the session renders frames."""
    pixels = np.empty(tags.shape + (3,), dtype=np.uint8)
    pixels[...] = np.asarray(background, dtype=np.uint8)
    visible = tags != OUTSIDE
    pixels[visible] = colorize_field(field[visible], cmap, 0.0, frame_range(field, headroom))
    return pixels


def format_title(meta, step):
    parts = [f"step={step}"]
    n_max = meta.get("n_max")
    if n_max is not None:
        parts.append(f"n_max={n_max}")
    k = meta.get("courant")
    if k is not None:
        parts.append(f"k={k:.3f}")
    return " | ".join(parts)


def plot(result, cmap, out_dir, frames=None, dpi=150, headroom=1.0):
    """Write one PNG per selected snapshot of a RunResult."""
    if result.frames is None or result.tags is None:
        print("Run file has no frames to render")
        return []

    indices = range(result.frames.shape[0]) if frames is None else frames
    os.makedirs(out_dir, exist_ok=True)
    written = []
    for i in indices:
        step = int(result.steps[i]) if result.steps is not None else i
        pixels = render_snapshot(result.tags, result.frames[i], cmap, headroom)

        fig, ax = plt.subplots(figsize=(6, 6))
        ax.imshow(pixels, interpolation="nearest", origin="lower")
        ax.set_aspect("equal")
        ax.axis("off")
        ax.set_title(format_title(result.meta, step), pad=10)

        output = Path(out_dir) / f"frame_{step:06d}.png"
        plt.savefig(output, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
        plt.close(fig)
        written.append(output)
    print(f"Saved {len(written)} frames to {out_dir}")
    return written


def main():
    parser = argparse.ArgumentParser(
        description="Render saved hex wave snapshots to PNG images"
    )
    parser.add_argument("file", help="Path to .npz run file")
    parser.add_argument(
        "--cmap",
        default="RdBu",
        help="Colormap table or matplotlib colormap name (default: RdBu)",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Output directory (default: <run name>_frames next to the run file)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        nargs="*",
        default=None,
        help="Snapshot indices to render (default: all)",
    )
    parser.add_argument(
        "--headroom",
        type=float,
        default=1.0,
        help="Scale applied to the peak amplitude before normalising (default: 1.0)",
    )
    parser.add_argument("--dpi", type=int, default=150, help="DPI for output files")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Error: file not found: {args.file}")
        return 1

    if args.out is None:
        run_path = Path(args.file)
        args.out = str(run_path.parent / f"{run_path.stem}_frames")

    result = utils.load_run(args.file)
    cmap = load_colormap(args.cmap)
    plot(result, cmap, args.out, frames=args.frames, dpi=args.dpi, headroom=args.headroom)
    return 0


if __name__ == "__main__":
    sys.exit(main())
