"""Volume and candle-shape measures."""

from typing import Sequence

from radar.indicators.averages import sma
from radar.models import Candle


def volume_ratio(volumes: Sequence[float], window: int = 20) -> float:
    """Ratio of the latest volume to the trailing average volume.

    The average window includes the latest bar and is floored at 1 so thin
    series never divide by zero. An empty series is neutral (1.0).

    Args:
        volumes: Volumes ordered oldest-first.
        window: Averaging window.

    Returns:
        ``last / max(1, sma(volumes, window))``.
    """
    if not volumes:
        return 1.0
    return volumes[-1] / max(1.0, sma(volumes, window))


def upper_wick_ratio(candle: Candle, price: float) -> float:
    """Upper wick length relative to the body, measured against ``price``.

    The live price stands in for the close of the still-forming bar. Returns
    0.0 when the body is empty.
    """
    body = abs(price - candle.open)
    if body == 0:
        return 0.0
    return (candle.high - price) / body
