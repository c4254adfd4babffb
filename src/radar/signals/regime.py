"""Market regime detection and adaptive scan pacing."""

from radar.config import ClassifierSettings, RegimeSettings, ScanSettings
from radar.indicators import sma
from radar.models import MarketSnapshot
from radar.signals.models import MarketRegime, MarketState


def assess_market(
    reference: MarketSnapshot | None,
    settings: RegimeSettings,
    primary_resolution: str,
    classifier: ClassifierSettings,
) -> MarketState:
    """Derive the cycle's market state from the reference symbol snapshot.

    - TRENDING: the reference moved at least ``trend_change_pct`` in 24h.
    - CHOPPY: otherwise, if price sits within ``choppy_ma_band`` of its primary MA.
    - NORMAL: anything else, including a missing reference snapshot.

    Args:
        reference: Snapshot of the reference symbol, or None if it failed.
        settings: Regime cutoffs and per-regime minimum confidence.
        primary_resolution: Resolution used for the reference MA.
        classifier: Supplies the MA window.

    Returns:
        MarketState carrying the regime and its minimum confidence.
    """
    if reference is None:
        return MarketState(MarketRegime.NORMAL, settings.min_confidence_normal)

    if abs(reference.change_24h_pct) >= settings.trend_change_pct:
        return MarketState(MarketRegime.TRENDING, settings.min_confidence_trending)

    series = reference.get_series(primary_resolution)
    if series is not None:
        ma = sma(series.closes, classifier.ma_window)
        if ma > 0 and abs(reference.last_price - ma) / ma < settings.choppy_ma_band:
            return MarketState(MarketRegime.CHOPPY, settings.min_confidence_choppy)

    return MarketState(MarketRegime.NORMAL, settings.min_confidence_normal)


def adaptive_interval(state: MarketState, settings: ScanSettings) -> int:
    """Seconds to wait before the next cycle: faster when trending, slower when choppy."""
    if state.regime == MarketRegime.TRENDING:
        interval = settings.min_interval
    elif state.regime == MarketRegime.CHOPPY:
        interval = settings.max_interval
    else:
        interval = settings.base_interval
    return max(settings.min_interval, min(settings.max_interval, interval))
