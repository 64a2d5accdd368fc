#!/usr/bin/env python3
"""
Single Hex Wave Simulation Runner

Loads a polygon edge list and a colormap, classifies the polygon on the hex
lattice, drops one or more impulses and advances the wave equation.
"""

import argparse
import sys
import time
from pathlib import Path

import matplotlib.pyplot as plt

from hexwave import SessionConfig, build_session, utils


def parse_impulse(text: str) -> tuple:
    try:
        x_str, y_str = text.split(",")
        return float(x_str), float(y_str)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"impulse must look like 'x,y' with values in [0, 1], got {text!r}"
        ) from exc


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Run a hex-lattice wave simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("edges", help="Edge list file (x1 y1 x2 y2 per row)")
    parser.add_argument(
        "--cmap",
        default="RdBu",
        help="Colormap table (index,r,g,b rows) or matplotlib colormap name (default: RdBu)",
    )
    parser.add_argument(
        "--params",
        default=None,
        help="JSON or TOML file with session parameters",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Number of steps to run (default: n_max)",
    )
    parser.add_argument(
        "--impulse",
        type=parse_impulse,
        action="append",
        default=None,
        help="Relative impulse position 'x,y' (repeatable, default: 0.5,0.5)",
    )
    parser.add_argument(
        "--every",
        type=int,
        default=10,
        help="Keep a snapshot every N steps (default: 10)",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Output .npz file path (auto-generated if not provided)",
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Optional PNG of the final frame",
    )
    args = parser.parse_args(argv)

    try:
        params = utils.load_params(args.params) if args.params else {}
        if args.impulse is not None:
            params["impulses"] = args.impulse
        elif "impulses" not in params:
            params["impulses"] = [(0.5, 0.5)]
        config = SessionConfig.from_dict(params)
        session = build_session(args.edges, args.cmap, config)
    except (ValueError, FileNotFoundError) as exc:
        # ParseError, ConfigError and malformed JSON/TOML are ValueErrors
        print(f"Error: {exc}")
        return 1

    counts = session.grid.counts()
    print(
        f"Classified {args.edges}: interior={counts['interior']}, "
        f"boundary={counts['boundary']}, outside={counts['outside']}"
    )

    start_time = time.time()
    result = session.run(steps=args.steps, every=args.every)
    elapsed_time = time.time() - start_time

    result.meta["edges"] = str(args.edges)
    result.meta["cmap"] = str(args.cmap)

    if args.out is None:
        output_dir = Path("results")
        output_dir.mkdir(exist_ok=True)
        args.out = str(output_dir / f"hexwave_n{session.n}_{utils.now_str()}.npz")
    utils.save_run(args.out, result)

    if args.png:
        plt.imsave(args.png, session.render_frame(), origin="lower")
        print(f"Saved final frame to {args.png}")

    print(f"\nSimulation completed in {elapsed_time:.2f} seconds")
    print(f"   Steps: {session.n}/{session.n_max}")
    print(f"   Snapshots: {result.frames.shape[0]}")
    print(f"   Output saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
