"""Signal data models: categories, candidates, and evaluation outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SignalType(str, Enum):
    """Signal category, listed in classifier priority order."""

    LIQUIDITY_SWEEP = "LIQUIDITY_SWEEP"
    BREAKOUT = "BREAKOUT"
    SWING = "SWING"
    SCALP = "SCALP"
    REVERSAL = "REVERSAL"
    PRE_BREAKOUT = "PRE_BREAKOUT"  # additive compression mode only


class Side(str, Enum):
    """Suggested trade direction."""

    LONG = "LONG"
    SHORT = "SHORT"


class EvaluationOutcome(str, Enum):
    """Result of scoring one snapshot."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    BELOW_THRESHOLD = "below_threshold"


class MarketRegime(str, Enum):
    """Broad market condition taken from the reference symbol."""

    TRENDING = "trending"
    NORMAL = "normal"
    CHOPPY = "choppy"


@dataclass(frozen=True)
class MarketState:
    """Cycle-wide context handed to the scoring engine."""

    regime: MarketRegime = MarketRegime.NORMAL
    min_confidence: float = 56.0


@dataclass(frozen=True)
class SignalCandidate:
    """A classified, scored, and priced signal for one symbol.

    ``confidence`` is an unbounded positive score: the base is capped per
    category but the confirmation bonus is added on top.
    """

    symbol: str
    signal_type: SignalType
    confidence: float
    side: Side
    entry: float
    stop_loss: float
    take_profit: float
    sl_pct: float
    tp_pct: float
    confirmed: bool = False
    reasons: tuple[str, ...] = ()
    metrics: dict[str, float | None] = field(default_factory=dict)
    timestamp: float = 0.0  # snapshot capture time, seconds

    def to_record(self) -> dict[str, Any]:
        """Flatten the candidate into a JSON-serializable dict for storage and the API."""
        return {
            "symbol": self.symbol,
            "type": self.signal_type.value,
            "confidence": round(self.confidence, 2),
            "side": self.side.value,
            "entry": self.entry,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "sl_pct": self.sl_pct,
            "tp_pct": self.tp_pct,
            "confirmed": self.confirmed,
            "reasons": list(self.reasons),
            "metrics": dict(self.metrics),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Evaluation:
    """Outcome of one scoring pass.

    ``candidate`` is set only for MATCHED. For BELOW_THRESHOLD the rejected
    category and its confidence are kept for diagnostics.
    """

    outcome: EvaluationOutcome
    candidate: SignalCandidate | None = None
    signal_type: SignalType | None = None
    confidence: float | None = None
