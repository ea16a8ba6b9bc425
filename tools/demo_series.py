#!/usr/bin/env python3
"""
demo_series.py

Genera una serie temporale sintetica a passo irregolare (trend lineare +
rumore uniforme), stampa statistiche e regressione e salva un plot PNG.
"""

from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import List, Tuple

import matplotlib

matplotlib.use("Agg")

from tsutil import TimeSeries  # noqa: E402
from tsutil.plot import plot_series  # noqa: E402


logger = logging.getLogger("demo_series")


def make_irregular_trend(
    n: int = 300,
    slope: float = 0.05,
    intercept: float = 0.0,
    noise: float = 0.0,
    max_gap: float = 5.0,
) -> List[Tuple[float, float]]:
    """Trend on timestamps spaced by random gaps in [1, max_gap]."""
    points = []
    t = 0.0
    for _ in range(n):
        v = intercept + slope * t
        if noise > 0.0:
            v += random.uniform(-noise, noise)
        points.append((t, v))
        t += random.uniform(1.0, max_gap)
    return points


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an irregular synthetic series, print its summary and plot it."
    )
    parser.add_argument("-o", "--output", required=True, help="output PNG path")
    parser.add_argument("--n", type=int, default=300, help="number of points")
    parser.add_argument("--slope", type=float, default=0.05, help="trend slope")
    parser.add_argument("--intercept", type=float, default=0.0, help="trend intercept")
    parser.add_argument("--noise", type=float, default=0.5, help="uniform noise amplitude")
    parser.add_argument(
        "--max-gap", type=float, default=5.0, help="max spacing between timestamps"
    )
    parser.add_argument("--window", type=int, default=10, help="SMA window")
    parser.add_argument("--seed", type=int, default=42, help="random seed")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level",
    )
    args = parser.parse_args(argv)

    if args.n < 2:
        parser.error("--n must be >= 2")
    if args.max_gap < 1.0:
        parser.error("--max-gap must be >= 1")
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    random.seed(args.seed)
    ts = TimeSeries(
        make_irregular_trend(
            n=args.n,
            slope=args.slope,
            intercept=args.intercept,
            noise=args.noise,
            max_gap=args.max_gap,
        )
    )
    logger.info("generated %r", ts)

    st = ts.stats()
    reg = ts.regression()

    print(f"points    : {st.num}")
    print(f"min/max   : {st.min:.6g} / {st.max:.6g}")
    print(f"mean      : {st.mean:.6g}")
    print(f"stddev    : {st.stddev:.6g}")
    print(f"slope     : {reg.slope:.6g}")
    print(f"intercept : {reg.y_intercept:.6g}")
    print(f"r2        : {reg.r2:.6f}")

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fig = plot_series(
        ts, sma_window=args.window, show_regression=True, title=out_path.stem
    )
    fig.savefig(out_path)
    print(f"Saved {out_path}")


if __name__ == "__main__":
    main()
