"""Additive pre-breakout scorer for compressed, quietly accumulating markets.

Unlike the priority classifier this mode sums independent sub-scores:
a tight, flat Bollinger band, a mid-range RSI, and a moderate volume uptick.
"""

from dataclasses import dataclass

from radar.config import ClassifierSettings, CompressionSettings
from radar.indicators import bollinger_width, price_slope, rsi, volume_ratio
from radar.models import CandleSeries


@dataclass(frozen=True)
class CompressionScore:
    """Breakdown of the additive score for one series."""

    score: float
    compressed: bool
    bb_width: float
    slope: float
    rsi: float
    volume_ratio: float

    def passes(self, threshold: float) -> bool:
        return self.score >= threshold


def score_compression(
    series: CandleSeries,
    settings: CompressionSettings,
    classifier: ClassifierSettings,
) -> CompressionScore:
    """Score a series for compression ahead of a breakout.

    Components:
    - compressed (band width below max and flat slope): ``weight_compression``
    - RSI strictly inside (rsi_low, rsi_high): ``weight_rsi``
    - volume ratio strictly inside (volume_low, volume_high): ``weight_volume``

    The sum is capped at ``max_score``.

    Args:
        series: Candle series to score (the confirmation resolution).
        settings: Weights, bands, and cap.
        classifier: RSI period and volume window shared with the classifier.

    Returns:
        CompressionScore with every component value.
    """
    closes = series.closes
    width = bollinger_width(closes, settings.bb_window, settings.bb_mult)
    slope = price_slope(closes, settings.slope_lookback)
    rsi_value = rsi(closes, classifier.rsi_period)
    vol_ratio = volume_ratio(series.volumes, classifier.volume_window)

    compressed = len(closes) > 0 and width < settings.max_bb_width and abs(slope) < settings.max_abs_slope

    score = 0.0
    if compressed:
        score += settings.weight_compression
    if settings.rsi_low < rsi_value < settings.rsi_high:
        score += settings.weight_rsi
    if settings.volume_low < vol_ratio < settings.volume_high:
        score += settings.weight_volume

    return CompressionScore(
        score=min(score, settings.max_score),
        compressed=compressed,
        bb_width=width,
        slope=slope,
        rsi=rsi_value,
        volume_ratio=vol_ratio,
    )
