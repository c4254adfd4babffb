"""Signal detection: priority classifier, confirmation, compression scorer, and engine.

The ScoringEngine combines the indicator readouts of every fetched resolution
into at most one SignalCandidate per snapshot. Regime helpers derive the
cycle-wide MarketState that sets the minimum confidence.
"""

from radar.signals.classifier import TimeframeReadout, base_confidence, classify, read_timeframe
from radar.signals.compression import CompressionScore, score_compression
from radar.signals.confirmation import confirm_direction
from radar.signals.engine import ScoringEngine
from radar.signals.levels import compute_levels, suggest_side
from radar.signals.models import (
    Evaluation,
    EvaluationOutcome,
    MarketRegime,
    MarketState,
    Side,
    SignalCandidate,
    SignalType,
)
from radar.signals.regime import adaptive_interval, assess_market

__all__ = [
    "CompressionScore",
    "Evaluation",
    "EvaluationOutcome",
    "MarketRegime",
    "MarketState",
    "ScoringEngine",
    "Side",
    "SignalCandidate",
    "SignalType",
    "TimeframeReadout",
    "adaptive_interval",
    "assess_market",
    "base_confidence",
    "classify",
    "compute_levels",
    "confirm_direction",
    "read_timeframe",
    "score_compression",
    "suggest_side",
]
