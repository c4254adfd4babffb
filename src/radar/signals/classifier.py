"""Priority classifier and base confidence for multi-timeframe snapshots.

Each timeframe is reduced to a small ``TimeframeReadout`` (RSI, MA, volume
ratio). The classifier walks the categories in fixed priority order and the
first satisfied predicate wins, so a snapshot that is both a sweep and a
breakout is always reported as a sweep.
"""

from dataclasses import dataclass

from radar.config import ClassifierSettings
from radar.indicators import NEUTRAL_RSI, rsi, sma, volume_ratio
from radar.models import CandleSeries
from radar.signals.models import SignalType

#: Slack on the relative MA excess so a price exactly at the margin qualifies
_MARGIN_TOLERANCE = 1e-9


@dataclass(frozen=True)
class TimeframeReadout:
    """Indicator values for a single resolution."""

    rsi: float
    ma: float
    volume_ratio: float


@dataclass(frozen=True)
class Classification:
    """Chosen category with its base confidence and rationale."""

    signal_type: SignalType
    base_confidence: float
    reason: str


def read_timeframe(
    series: CandleSeries | None,
    fallback_price: float,
    settings: ClassifierSettings,
) -> TimeframeReadout:
    """Reduce a candle series to RSI, moving average, and volume ratio.

    A missing or empty series degrades to neutral values: RSI 50, MA equal to
    ``fallback_price``, volume ratio 1.

    Args:
        series: Candle series for the resolution, or None.
        fallback_price: Price used as the MA when there is no history.
        settings: Window sizes.

    Returns:
        TimeframeReadout for the series.
    """
    if series is None or len(series) == 0:
        return TimeframeReadout(rsi=NEUTRAL_RSI, ma=fallback_price, volume_ratio=1.0)

    closes = series.closes
    return TimeframeReadout(
        rsi=rsi(closes[-settings.rsi_lookback:], settings.rsi_period),
        ma=sma(closes, settings.ma_window) or fallback_price,
        volume_ratio=volume_ratio(series.volumes, settings.volume_window),
    )


def is_breakout(
    price: float,
    change_24h: float,
    primary: TimeframeReadout,
    settings: ClassifierSettings,
) -> bool:
    """Price at or above the primary MA plus the margin on a strong day with volume."""
    if primary.ma <= 0:
        return False
    excess = (price - primary.ma) / primary.ma
    return (
        excess >= settings.breakout_ma_margin - _MARGIN_TOLERANCE
        and change_24h >= settings.breakout_min_change
        and primary.volume_ratio > settings.breakout_volume_ratio
    )


def classify(
    price: float,
    change_24h: float,
    funding: float,
    wick_ratio: float,
    primary: TimeframeReadout,
    confirm: TimeframeReadout,
    fast: TimeframeReadout,
    settings: ClassifierSettings,
) -> Classification | None:
    """Pick the highest-priority category whose predicate holds.

    Priority: LIQUIDITY_SWEEP, BREAKOUT, SWING, SCALP.

    Args:
        price: Last traded price.
        change_24h: 24h change in percent.
        funding: Funding rate (0 when unknown).
        wick_ratio: Upper wick to body ratio of the last primary bar.
        primary: Primary resolution readout.
        confirm: Confirmation resolution readout.
        fast: Fast resolution readout.
        settings: Classifier thresholds.

    Returns:
        Classification for the first match, or None when nothing qualifies.
    """
    breakout = is_breakout(price, change_24h, primary, settings)

    if (
        wick_ratio > settings.sweep_wick_ratio
        and primary.volume_ratio > settings.sweep_volume_ratio
        and change_24h > settings.sweep_min_change
    ):
        return Classification(
            SignalType.LIQUIDITY_SWEEP,
            base_confidence(SignalType.LIQUIDITY_SWEEP, primary.volume_ratio),
            "Upper wick sweep + vol spike",
        )

    if breakout:
        return Classification(
            SignalType.BREAKOUT,
            base_confidence(SignalType.BREAKOUT, change_24h),
            "Primary breakout + vol",
        )

    if settings.swing_rsi_low <= primary.rsi <= settings.swing_rsi_high and (
        breakout or primary.volume_ratio > settings.swing_volume_ratio
    ):
        return Classification(
            SignalType.SWING,
            base_confidence(SignalType.SWING, primary.volume_ratio),
            "Primary trend + vol",
        )

    if (
        confirm.rsi > settings.scalp_rsi
        and fast.rsi > settings.scalp_rsi
        and price > confirm.ma
        and abs(funding) < settings.scalp_max_abs_funding
    ):
        return Classification(
            SignalType.SCALP,
            base_confidence(SignalType.SCALP, confirm.rsi),
            "Short-term momentum",
        )

    return None


#: (floor, cap on the scaled term, scale, offset) per category.
#: base = floor + min(cap, max(0, (metric - offset) * scale))
_BASE_CURVES: dict[SignalType, tuple[float, float, float, float]] = {
    SignalType.LIQUIDITY_SWEEP: (60.0, 30.0, 10.0, 1.0),  # metric: primary volume ratio
    SignalType.BREAKOUT: (60.0, 30.0, 2.0, 0.0),  # metric: 24h change %
    SignalType.SWING: (55.0, 25.0, 5.0, 0.0),  # metric: primary volume ratio
    SignalType.SCALP: (50.0, 25.0, 1.0, 50.0),  # metric: confirmation RSI
}


def base_confidence(signal_type: SignalType, metric: float) -> float:
    """Base confidence for a category from its trigger metric.

    Monotone non-decreasing in ``metric`` and bounded between the category
    floor and floor + cap (never above 90).

    Args:
        signal_type: Category from the priority classifier.
        metric: The category's trigger metric.

    Returns:
        Base confidence before any confirmation bonus.

    Raises:
        ValueError: If the category has no base curve.
    """
    curve = _BASE_CURVES.get(signal_type)
    if curve is None:
        raise ValueError(f"no base confidence curve for {signal_type.value}")
    floor, cap, scale, offset = curve
    return floor + min(cap, max(0.0, (metric - offset) * scale))
