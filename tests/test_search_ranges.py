# tests/test_search_ranges.py
from __future__ import annotations

import random

from tsutil import IndexOutOfRange, TimeSeries


def make_ts(n: int = 1000) -> TimeSeries:
    return TimeSeries([(i * 1000, float(i)) for i in range(1, n + 1)])


def make_irregular(n: int, seed: int) -> TimeSeries:
    """Serie con passo irregolare (gap casuali, tempi strettamente crescenti)."""
    random.seed(seed)
    points = []
    t = random.uniform(-50.0, 50.0)
    for _ in range(n):
        points.append((t, random.gauss(0.0, 1.0)))
        t += random.uniform(0.01, 10.0)
    return TimeSeries(points)


def test_times_non_decreasing_fixture():
    ts = make_irregular(500, seed=7)
    times = ts.timestamps()
    for i in range(1, len(times)):
        assert times[i - 1] <= times[i]


def test_nearest_matches_linear_scan():
    for seed in (1, 2, 3):
        ts = make_irregular(257, seed=seed)
        times = ts.timestamps()
        lo_t, hi_t = times[0], times[-1]
        for _ in range(300):
            q = random.uniform(lo_t - 20.0, hi_t + 20.0)
            idx = ts.nearest(q)
            best = min(abs(t - q) for t in times)
            assert abs(ts.time_at(idx) - q) == best


def test_nearest_exact_hits():
    ts = make_ts()
    for i in (0, 1, 499, 500, 998, 999):
        assert ts.nearest(ts.time_at(i)) == i


def test_nearest_outside_range():
    ts = make_ts()
    assert ts.nearest(-5) == 0
    assert ts.nearest(10**9) == 999


def test_nearest_tie_prefers_lower_index():
    ts = TimeSeries([(0, 1.0), (10, 2.0)])
    assert ts.nearest(5) == 0
    assert ts.nearest(5.0001) == 1


def test_nearest_single_point():
    ts = TimeSeries([(42, 1.0)])
    assert ts.nearest(0) == 0
    assert ts.nearest(42) == 0
    assert ts.nearest(100) == 0


def test_nearest_empty_raises():
    try:
        TimeSeries([]).nearest(1)
        assert False, "nearest on empty series should have raised"
    except IndexOutOfRange:
        pass


def test_slice():
    ts = make_ts()
    assert ts.slice(1000, 3000).size() == 3


def test_slice_rounds_end_up():
    ts = make_ts()
    # 2500 non coincide: la fine sale al punto 3000
    s = ts.slice(1000, 2500)
    assert s.timestamps() == [1000, 2000, 3000]

    # inizio fra due punti: si parte dal successivo
    s = ts.slice(1500, 3000)
    assert s.timestamps() == [2000, 3000]


def test_slice_points_at_or_after_start():
    ts = make_irregular(300, seed=11)
    times = ts.timestamps()
    random.seed(99)
    for _ in range(100):
        t1 = random.uniform(times[0], times[-2])
        t2 = random.uniform(t1, times[-1])
        s = ts.slice(t1, t2)
        assert s.size() <= ts.size()
        assert all(t >= t1 for t in s.timestamps())
        # la fine e' il primo punto >= t2
        assert s.timestamps()[-1] == min(t for t in times if t >= t2)


def test_slice_reversed_bounds_is_empty():
    ts = make_ts()
    assert ts.slice(5000, 2000).size() == 0


def test_slice_escaping_bounds_raise():
    ts = make_ts()
    for t1, t2 in ((2_000_000, 3_000_000), (1000, 1_000_500)):
        try:
            ts.slice(t1, t2)
            assert False, f"slice({t1}, {t2}) should have raised"
        except IndexOutOfRange:
            pass

    # la fine esattamente sull'ultimo punto resta valida
    assert ts.slice(999_000, 1_000_000).size() == 2


def test_after():
    ts = make_ts()
    assert ts.after(1000).size() == 999
    assert ts.after(1500).size() == 999
    assert ts.after(0).size() == 1000


def test_before():
    ts = make_ts()
    assert ts.before(2000).size() == 1
    assert ts.before(2500).size() == 2
    assert ts.before(10**9).size() == 1000


def test_after_later_than_all_raises():
    ts = make_ts()
    for t in (1_000_000, 2_000_000):
        try:
            ts.after(t)
            assert False, f"after({t}) should have raised"
        except IndexOutOfRange:
            pass


def test_before_earlier_than_all_raises():
    ts = make_ts()
    for t in (0, 1000):
        try:
            ts.before(t)
            assert False, f"before({t}) should have raised"
        except IndexOutOfRange as e:
            assert "before" in str(e)


def test_before_after_exclude_exact_match():
    ts = make_irregular(400, seed=5)
    times = ts.timestamps()
    n = ts.size()
    for i in range(1, n - 1, 37):
        t = times[i]
        b = ts.before(t)
        a = ts.after(t)
        # il punto esattamente in t non sta in nessuna delle due
        assert b.size() + a.size() == n - 1
        assert b.timestamps()[-1] < t < a.timestamps()[0]

    random.seed(3)
    for _ in range(50):
        t = random.uniform(times[1], times[-2])
        assert ts.before(t).size() + ts.after(t).size() <= n


def test_range_results_keep_regression_mode():
    ts = TimeSeries([(i, float(i)) for i in range(10)], regression_mode="legacy")
    assert ts.slice(2, 5).regression_mode == "legacy"
    assert ts.after(2).regression_mode == "legacy"
    assert ts.before(5).regression_mode == "legacy"
