"""Moving averages and dispersion measures over price series.

All functions take plain float lists ordered oldest-first and never mutate
their input.
"""

import math
from typing import Sequence

from radar.exceptions import InsufficientSeries


def sma(values: Sequence[float], window: int) -> float:
    """Simple moving average of the trailing ``window`` values.

    When fewer than ``window`` values are available the mean of all of them
    is returned, so short histories still yield a usable reference level.

    Args:
        values: Series ordered oldest-first.
        window: Number of trailing values to average.

    Returns:
        Arithmetic mean of the trailing window.

    Raises:
        InsufficientSeries: If ``values`` is empty.
    """
    if not values:
        raise InsufficientSeries("sma requires at least one value")
    tail = values[-window:] if window > 0 else values
    return sum(tail) / len(tail)


def stddev(values: Sequence[float], window: int) -> float:
    """Population standard deviation of the trailing ``window`` values (0 when empty)."""
    tail = values[-window:] if window > 0 else values
    if not tail:
        return 0.0
    mean = sum(tail) / len(tail)
    return math.sqrt(sum((v - mean) ** 2 for v in tail) / len(tail))


def bollinger_width(values: Sequence[float], window: int = 20, mult: float = 2.0) -> float:
    """Relative Bollinger band width: ``(upper - lower) / middle``.

    A middle band of zero is treated as 1 so the width stays finite.

    Args:
        values: Closing prices ordered oldest-first.
        window: Band lookback.
        mult: Standard deviation multiplier for the bands.

    Returns:
        Band width as a fraction of the middle band. 0.0 for an empty series.
    """
    if not values:
        return 0.0
    middle = sma(values, window)
    sd = stddev(values, window)
    return (2 * mult * sd) / (middle or 1.0)


def price_slope(values: Sequence[float], lookback: int = 10) -> float:
    """Fractional change across the trailing ``lookback`` bars, first to last.

    Returns 0.0 when the series is too short or the reference value is zero.
    """
    if lookback <= 1 or len(values) < lookback:
        return 0.0
    ref = values[-lookback]
    if ref == 0:
        return 0.0
    return (values[-1] - ref) / ref
