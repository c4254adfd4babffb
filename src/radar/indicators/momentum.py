"""Relative Strength Index with Wilder smoothing."""

from typing import Sequence

#: Returned whenever there is not enough movement to say anything.
NEUTRAL_RSI = 50.0


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """Compute Wilder's RSI over a closing price series.

    The first ``period`` price changes seed the average gain and loss with a
    plain mean; every later change is folded in with Wilder smoothing
    ``avg = (avg * (period - 1) + x) / period``.

    Graceful degradation: a series shorter than ``period + 1`` points, or one
    with no movement at all, returns the neutral value 50.

    Args:
        closes: Closing prices ordered oldest-first.
        period: Smoothing period.

    Returns:
        RSI in the range [0, 100].
    """
    if period <= 0 or len(closes) < period + 1:
        return NEUTRAL_RSI

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        delta = closes[i] - closes[i - 1]
        if delta >= 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        delta = closes[i] - closes[i - 1]
        gain = delta if delta > 0 else 0.0
        loss = -delta if delta < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return NEUTRAL_RSI if avg_gain == 0 else 100.0

    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)
