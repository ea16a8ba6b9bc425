from __future__ import annotations

import matplotlib.pyplot as plt

from .core import TimeSeries


def plot_series(
    ts: TimeSeries,
    sma_window: int | None = None,
    show_regression: bool = False,
    title: str | None = None,
):
    """
    Plot semplice: serie grezza, piu' SMA e retta di regressione opzionali.

    Returns the matplotlib Figure, or None for an empty series.
    """
    if ts.size() == 0:
        return None

    times = ts.timestamps()

    fig, ax = plt.subplots()
    ax.plot(times, ts.values(), marker=".", linewidth=1, label="value")

    if sma_window is not None:
        smooth = ts.sma(sma_window)
        ax.plot(times, smooth.values(), linewidth=2, label=f"sma({sma_window})")

    if show_regression:
        reg = ts.regression()
        t_first, t_last = times[0], times[-1]
        ax.plot(
            [t_first, t_last],
            [ts.projected_value(t_first), ts.projected_value(t_last)],
            linestyle="--",
            label=f"fit (r2={reg.r2:.3f})",
        )

    ax.set_xlabel("time")
    ax.set_ylabel("value")
    if title:
        ax.set_title(title)
    ax.legend()
    ax.grid(True, linestyle="--", alpha=0.3)
    plt.tight_layout()
    return fig
