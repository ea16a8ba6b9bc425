"""
tsutil – in-memory utility for (timestamp, value) series with irregular spacing.
"""

from .core import (
    IndexOutOfRange,
    InvalidArgument,
    Point,
    Regression,
    SummaryStats,
    TimeSeries,
    TimeSeriesError,
)

__version__ = "1.0.0"

__all__ = [
    "TimeSeries",
    "Point",
    "SummaryStats",
    "Regression",
    "TimeSeriesError",
    "InvalidArgument",
    "IndexOutOfRange",
]
