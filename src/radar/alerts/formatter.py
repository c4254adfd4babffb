"""Human-readable alert payloads (Telegram HTML)."""

import html

from radar.signals.models import SignalCandidate, SignalType


def _fmt(value: float | None, digits: int = 4) -> str:
    if value is None:
        return "n/a"
    return f"{value:.{digits}f}"


def _price(value: float) -> str:
    # Small-cap contracts trade in fractions of a cent
    if abs(value) < 1:
        return f"{value:.6f}"
    return f"{value:.4f}"


def format_alert(candidate: SignalCandidate, market: str = "FUTURE") -> str:
    """Render a candidate as an HTML message for chat delivery.

    Args:
        candidate: Emitted signal candidate.
        market: Market label for the header line.

    Returns:
        Multi-line HTML string.
    """
    m = candidate.metrics
    lines = [
        f"<b>[{market}] {candidate.signal_type.value} | {candidate.symbol} | {candidate.side.value}</b>",
        f"Type: {candidate.signal_type.value} | Conf: {round(candidate.confidence)}%",
    ]

    if candidate.signal_type == SignalType.PRE_BREAKOUT:
        lines.append(
            f"Price: {_price(candidate.entry)} | BB width: {_fmt(m.get('bb_width'))}"
            f" | slope: {_fmt(m.get('slope'))}"
        )
        lines.append(
            f"rsi: {_fmt(m.get('rsi_confirm'), 1)} | VolRatio: {_fmt(m.get('volume_ratio_confirm'), 2)}x"
        )
    else:
        lines.append(f"Price: {_price(candidate.entry)} | MA20: {_fmt(m.get('ma_primary'))}")
        lines.append(
            "rsi primary: {} | rsi confirm: {} | rsi fast: {}".format(
                _fmt(m.get("rsi_primary"), 0),
                _fmt(m.get("rsi_confirm"), 0),
                _fmt(m.get("rsi_fast"), 0),
            )
        )
        lines.append(
            f"VolRatio: {_fmt(m.get('volume_ratio_primary'), 2)}x | 24h%: {_fmt(m.get('change_24h'), 3)}%"
        )

    reason = html.escape(" | ".join(candidate.reasons))
    lines.append(f"Funding: {_fmt(m.get('funding'), 6)} | Reason: {reason}")
    if candidate.confirmed:
        lines.append(f"Confirmed on higher resolution, volRatio={_fmt(m.get('volume_ratio_confirm'), 2)}")
    lines.append(
        f"Side: {candidate.side.value} | Entry: {_price(candidate.entry)}"
        f" | SL: {_price(candidate.stop_loss)} ({candidate.sl_pct * 100:.1f}%)"
        f" | TP: {_price(candidate.take_profit)} ({candidate.tp_pct * 100:.1f}%)"
    )
    return "\n".join(lines)
