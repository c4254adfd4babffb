"""Multi-timeframe confirmation on the confirmation resolution."""

from radar.config import ClassifierSettings
from radar.signals.classifier import TimeframeReadout
from radar.signals.models import Side


def confirm_direction(
    price: float,
    readout: TimeframeReadout,
    settings: ClassifierSettings,
) -> Side | None:
    """Return the direction the confirmation timeframe agrees with, if any.

    Long: price above the MA by the margin with RSI above the long level.
    Short: price below the MA by the margin with RSI below the short level.
    Both require the volume ratio to reach the confirmation minimum.

    Args:
        price: Last traded price.
        readout: Confirmation resolution readout.
        settings: Confirmation thresholds.

    Returns:
        Side.LONG or Side.SHORT when confirmed, None otherwise.
    """
    if readout.volume_ratio < settings.confirm_volume_ratio:
        return None
    if price > readout.ma * (1 + settings.confirm_ma_margin) and readout.rsi > settings.confirm_rsi_long:
        return Side.LONG
    if price < readout.ma * (1 - settings.confirm_ma_margin) and readout.rsi < settings.confirm_rsi_short:
        return Side.SHORT
    return None


def confirmation_reason(resolution: str, readout: TimeframeReadout) -> str:
    """Rationale entry appended when the confirmation bonus applies."""
    return f"EARLY_CONFIRM({resolution.upper()} volRatio={readout.volume_ratio:.2f})"
