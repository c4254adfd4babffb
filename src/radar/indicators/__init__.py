"""Indicator library: pure functions over price and volume series.

No state and no I/O. Every function except ``sma`` degrades to a neutral value
on short input; ``sma`` raises ``InsufficientSeries`` on an empty series.
"""

from radar.indicators.averages import bollinger_width, price_slope, sma, stddev
from radar.indicators.momentum import NEUTRAL_RSI, rsi
from radar.indicators.volume import upper_wick_ratio, volume_ratio

__all__ = [
    "NEUTRAL_RSI",
    "bollinger_width",
    "price_slope",
    "rsi",
    "sma",
    "stddev",
    "upper_wick_ratio",
    "volume_ratio",
]
