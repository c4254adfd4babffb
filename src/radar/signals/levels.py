"""Side suggestion and stop-loss / take-profit levels."""

from radar.config import ClassifierSettings
from radar.signals.models import Side, SignalType

#: (stop-loss %, take-profit %) as fractions of entry, per category.
SL_TP_TABLE: dict[SignalType, tuple[float, float]] = {
    SignalType.SCALP: (0.006, 0.02),
    SignalType.SWING: (0.02, 0.12),
    SignalType.BREAKOUT: (0.02, 0.10),
    SignalType.REVERSAL: (0.03, 0.08),
    SignalType.LIQUIDITY_SWEEP: (0.02, 0.06),
}

DEFAULT_SL_TP: tuple[float, float] = (0.02, 0.08)


def suggest_side(
    price: float,
    primary_ma: float,
    funding: float,
    settings: ClassifierSettings,
) -> Side:
    """Derive the suggested side from trend, letting extreme funding override it.

    LONG by default, SHORT below the primary MA. Funding beyond the override
    band wins over the trend: deeply negative funding means SHORT, strongly
    positive funding means LONG.
    """
    side = Side.SHORT if price < primary_ma else Side.LONG
    if funding < -settings.funding_side_override:
        side = Side.SHORT
    if funding > settings.funding_side_override:
        side = Side.LONG
    return side


def compute_levels(entry: float, signal_type: SignalType, side: Side) -> tuple[float, float, float, float]:
    """Compute stop-loss and take-profit prices for an entry.

    Args:
        entry: Entry price (the last traded price).
        signal_type: Category; unknown categories use the default pair.
        side: Direction; SHORT mirrors the levels around the entry.

    Returns:
        Tuple of (stop_loss, take_profit, sl_pct, tp_pct).
    """
    sl_pct, tp_pct = SL_TP_TABLE.get(signal_type, DEFAULT_SL_TP)
    if side == Side.SHORT:
        return entry * (1 + sl_pct), entry * (1 - tp_pct), sl_pct, tp_pct
    return entry * (1 - sl_pct), entry * (1 + tp_pct), sl_pct, tp_pct
