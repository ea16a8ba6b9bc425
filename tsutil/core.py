from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Callable, Deque, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import logging
import math
import threading


logger = logging.getLogger(__name__)

REGRESSION_MODES = ("ols", "legacy")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class TimeSeriesError(Exception):
    """Base error for TimeSeries failures."""


class InvalidArgument(TimeSeriesError, ValueError):
    """Raised on missing or malformed input (None data, bad pairs, bad options)."""


class IndexOutOfRange(TimeSeriesError, IndexError):
    """Raised when a position, or a bound computed by a range operation, escapes the series."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
class Point(NamedTuple):
    time: float
    value: float


@dataclass(frozen=True)
class SummaryStats:
    num: int
    min: float
    max: float
    sum: float
    mean: float
    stddev: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Regression:
    slope: float
    y_intercept: float
    r2: float

    def as_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def stddev(data: Sequence[float]) -> float:
    """
    Population standard deviation, sqrt(E[(x - mean)^2]).

    Exactly 0.0 on constant data. Raises ZeroDivisionError on empty input.
    """
    n = len(data)
    mean = sum(data) / n
    if min(data) == max(data):
        return 0.0
    return _centred_stddev(data, mean)


def _centred_stddev(data: Iterable[float], mean: float) -> float:
    # seconda passata sugli scarti: niente cancellazione E[x^2] - E[x]^2
    n = 0
    acc = 0.0
    for v in data:
        acc += (v - mean) ** 2
        n += 1
    return math.sqrt(acc / n)


def _to_point(item) -> Point:
    if isinstance(item, Point):
        return item
    try:
        time, value = item
    except (TypeError, ValueError):
        raise InvalidArgument(f"Expected a (time, value) pair, got {item!r}")
    return Point(time, value)


# ---------------------------------------------------------------------------
# TimeSeries
# ---------------------------------------------------------------------------
class TimeSeries:
    """
    Immutable collection of (time, value) points sorted ascending by time.

    Periodicity is not required: gaps and irregular spacing are fine. The
    ascending order is a precondition of the caller and is only checked
    when ``validate_order=True``; search and range operations are undefined
    on unsorted data.

    Args:
        points: iterable of (time, value) pairs.
        validate_order: run an O(n) check that times never decrease.
        regression_mode: 'ols' (ordinary least squares) or 'legacy'
            (historical slope denominator, see ``regression``).
    """

    def __init__(
        self,
        points: Optional[Iterable[Tuple[float, float]]],
        validate_order: bool = False,
        regression_mode: str = "ols",
    ) -> None:
        if points is None:
            raise InvalidArgument("Cannot instantiate timeseries without data")
        if regression_mode not in REGRESSION_MODES:
            raise InvalidArgument(
                f"Unknown regression_mode '{regression_mode}', "
                f"expected one of {list(REGRESSION_MODES)}"
            )

        self._points: Tuple[Point, ...] = tuple(_to_point(p) for p in points)
        self._regression_mode = regression_mode
        self._stats: Optional[SummaryStats] = None
        self._regression: Optional[Regression] = None
        self._lock = threading.Lock()

        if validate_order:
            for i in range(1, len(self._points)):
                if self._points[i].time < self._points[i - 1].time:
                    raise InvalidArgument(
                        f"Points not sorted by time at index {i}: "
                        f"{self._points[i - 1].time!r} > {self._points[i].time!r}"
                    )

    @classmethod
    def from_arrays(
        cls,
        times: Optional[Sequence[float]],
        values: Optional[Sequence[float]],
        **kwargs,
    ) -> "TimeSeries":
        """Build a series from two parallel sequences of times and values."""
        if times is None or values is None:
            raise InvalidArgument("Cannot instantiate timeseries without data")
        if len(times) != len(values):
            raise InvalidArgument(
                f"times and values must have same length, got {len(times)} vs {len(values)}"
            )
        return cls(zip(times, values), **kwargs)

    def _derive(self, points: Iterable[Tuple[float, float]]) -> "TimeSeries":
        return TimeSeries(points, regression_mode=self._regression_mode)

    # -- basic access -------------------------------------------------------
    @property
    def data(self) -> Tuple[Point, ...]:
        return self._points

    @property
    def regression_mode(self) -> str:
        return self._regression_mode

    def size(self) -> int:
        """The number of points in the series."""
        return len(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._points == other._points

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if not self._points:
            return "TimeSeries(size=0)"
        return (
            f"TimeSeries(size={len(self._points)}, "
            f"start={self._points[0].time!r}, end={self._points[-1].time!r})"
        )

    def map(self, fn: Callable[[float, float], Tuple[float, float]]) -> "TimeSeries":
        """Map every (time, value) point into another (time, value) point."""
        return self._derive(fn(t, v) for t, v in self._points)

    def _check_index(self, idx: int) -> None:
        if not 0 <= idx < len(self._points):
            raise IndexOutOfRange(
                f"Index {idx} out of range for series of size {len(self._points)}"
            )

    def value_at(self, idx: int) -> float:
        self._check_index(idx)
        return self._points[idx].value

    def time_at(self, idx: int) -> float:
        self._check_index(idx)
        return self._points[idx].time

    def timestamps(self) -> List[float]:
        return [p.time for p in self._points]

    def values(self) -> List[float]:
        return [p.value for p in self._points]

    # -- search -------------------------------------------------------------
    def nearest(self, time: float) -> int:
        """
        Index of the point whose time is closest to ``time``.

        Fuzzy binary search: narrows [lo, hi] until the bounds are adjacent
        (or equal), then picks the closer one, preferring ``lo`` on a tie.
        """
        if not self._points:
            raise IndexOutOfRange("Cannot search an empty series")

        points = self._points
        lo = 0
        hi = len(points) - 1
        while True:
            mid = lo + (hi - lo) // 2
            if lo == mid:
                diff_lo = abs(points[lo].time - time)
                diff_hi = abs(points[hi].time - time)
                return hi if diff_hi < diff_lo else lo
            mid_time = points[mid].time
            if time < mid_time:
                hi = mid
            elif time > mid_time:
                lo = mid
            else:
                return mid

    # -- range operations ---------------------------------------------------
    def _check_bound(self, idx: int, op: str) -> None:
        if not 0 <= idx < len(self._points):
            logger.debug("%s: bound %d escapes series of size %d", op, idx, len(self._points))
            raise IndexOutOfRange(
                f"{op}: computed bound {idx} outside [0, {len(self._points) - 1}]"
            )

    def slice(self, t1: float, t2: float) -> "TimeSeries":
        """
        Slice the series by time.

        Starts at the first point at or after ``t1`` and ends at the first
        point at or after ``t2``: a point exactly at ``t2`` is included, and
        otherwise the end is rounded up to the next point.

        Raises IndexOutOfRange when either bound falls past the last point.
        """
        idx1 = self.nearest(t1)
        idx2 = self.nearest(t2)

        # non includere un valore fuori range
        if self._points[idx1].time < t1:
            idx1 += 1
        # arrotonda la fine al punto successivo
        if self._points[idx2].time < t2:
            idx2 += 1

        self._check_bound(idx1, "slice")
        self._check_bound(idx2, "slice")
        return self._derive(self._points[idx1 : idx2 + 1])

    def after(self, time: float) -> "TimeSeries":
        """The series of points strictly after ``time``."""
        idx = self.nearest(time)
        if self._points[idx].time <= time:
            idx += 1

        self._check_bound(idx, "after")
        return self._derive(self._points[idx:])

    def before(self, time: float) -> "TimeSeries":
        """The series of points strictly before ``time``."""
        idx = self.nearest(time)
        if self._points[idx].time < time:
            idx += 1

        self._check_bound(idx - 1, "before")
        return self._derive(self._points[:idx])

    # -- statistics ---------------------------------------------------------
    def stats(self) -> SummaryStats:
        """
        Summary statistics of the values (memoized).

        Raises ZeroDivisionError on an empty series.
        """
        if self._stats is None:
            with self._lock:
                if self._stats is None:
                    self._stats = self._compute_stats()
        return self._stats

    def _compute_stats(self) -> SummaryStats:
        n = len(self._points)
        lo = math.inf
        hi = -math.inf
        s = 0.0
        for _t, v in self._points:
            if v < lo:
                lo = v
            if v > hi:
                hi = v
            s += v

        mean = s / n
        # dati costanti: la media puo' non essere esatta, la deviazione si'
        if lo == hi:
            sd = 0.0
        else:
            sd = _centred_stddev((p.value for p in self._points), mean)
        logger.debug("computed stats over %d points", n)
        return SummaryStats(
            num=n,
            min=lo,
            max=hi,
            sum=s,
            mean=mean,
            stddev=sd,
        )

    # -- regression ---------------------------------------------------------
    def regression(self) -> Regression:
        """
        Linear regression of value against time (memoized).

        slope = sum((t - t_mean) * (v - v_mean)) / denom, where denom is
        sum((t - t_mean)^2) in 'ols' mode. In 'legacy' mode denom starts
        from the first timestamp and accumulates (t - t_mean)^2 over the
        remaining timestamps, reproducing results computed by earlier
        releases.

        r2 is derived from the slope and the ratio of the standard
        deviations of times and values.
        """
        if self._regression is None:
            with self._lock:
                if self._regression is None:
                    self._regression = self._compute_regression()
        return self._regression

    def _compute_regression(self) -> Regression:
        times = self.timestamps()
        values = self.values()
        n = len(times)

        t_mean = sum(times) / n
        v_mean = sum(values) / n

        num = 0.0
        for t, v in zip(times, values):
            num += (t - t_mean) * (v - v_mean)

        if self._regression_mode == "legacy":
            denom = times[0]
            for t in times[1:]:
                denom += (t - t_mean) ** 2
        else:
            denom = 0.0
            for t in times:
                denom += (t - t_mean) ** 2

        slope = num / denom
        r = slope * (stddev(times) / stddev(values))

        logger.debug(
            "computed %s regression over %d points: slope=%g", self._regression_mode, n, slope
        )
        return Regression(
            slope=slope,
            y_intercept=v_mean - slope * t_mean,
            r2=r * r,
        )

    def projected_value(self, time: float) -> float:
        """Value of the regression line at ``time``."""
        reg = self.regression()
        return reg.slope * time + reg.y_intercept

    def projected_time(self, value: float) -> float:
        """
        Time at which the regression line reaches ``value``.

        Raises ZeroDivisionError when the slope is 0.
        """
        reg = self.regression()
        return (value - reg.y_intercept) / reg.slope

    # -- smoothing ----------------------------------------------------------
    def sma(self, window: int) -> "TimeSeries":
        """
        Simple moving average over a trailing window of ``window`` values.

        The first points average over what is available (min(window, i + 1)
        values). Timestamps are unchanged. O(n) for any window size.
        """
        if isinstance(window, bool) or not isinstance(window, int) or window < 1:
            raise InvalidArgument(f"window must be a positive int, got {window!r}")

        buf: Deque[float] = deque()
        running = 0.0
        out: List[Point] = []
        for t, v in self._points:
            # evict first: with window=1 the running sum restarts from 0.0
            if len(buf) == window:
                running -= buf.popleft()
            buf.append(v)
            running += v
            out.append(Point(t, running / len(buf)))
        return self._derive(out)
