"""Confidence scoring engine turning market snapshots into signal candidates.

The ScoringEngine is a pure, synchronous coordinator that:
1. Reduces each fetched resolution to RSI / MA / volume ratio
2. Runs the priority classifier for a category and base confidence
3. Adds the multi-timeframe confirmation bonus
4. Rejects anything under the market state's minimum confidence
5. Suggests a side and prices stop-loss / take-profit levels

Graceful degradation: missing confirmation or fast series fall back to
neutral readouts. Only a missing primary series yields no signal.

The engine never sends or stores anything; delivery is the caller's job.
"""

from radar.config import ClassifierSettings, CompressionSettings
from radar.indicators import upper_wick_ratio
from radar.logging import get_logger
from radar.models import MarketSnapshot
from radar.signals.classifier import TimeframeReadout, classify, read_timeframe
from radar.signals.compression import score_compression
from radar.signals.confirmation import confirm_direction, confirmation_reason
from radar.signals.levels import compute_levels, suggest_side
from radar.signals.models import (
    Evaluation,
    EvaluationOutcome,
    MarketState,
    SignalCandidate,
    SignalType,
)

logger = get_logger(__name__)


class ScoringEngine:
    """Scores snapshots with the priority classifier or the additive compression mode.

    Args:
        classifier_settings: Thresholds for the priority classifier and confirmation.
        compression_settings: Weights and bands for the additive mode.
        primary_resolution: Resolution driving classification (e.g. "4h").
        confirm_resolution: Resolution used for confirmation and compression (e.g. "1h").
        fast_resolution: Resolution used for short-term momentum (e.g. "15m").
    """

    def __init__(
        self,
        classifier_settings: ClassifierSettings,
        compression_settings: CompressionSettings | None = None,
        primary_resolution: str = "4h",
        confirm_resolution: str = "1h",
        fast_resolution: str = "15m",
    ) -> None:
        self._settings = classifier_settings
        self._compression = compression_settings or CompressionSettings()
        self._primary = primary_resolution
        self._confirm = confirm_resolution
        self._fast = fast_resolution

    @property
    def resolutions(self) -> tuple[str, str, str]:
        return self._primary, self._confirm, self._fast

    # ──────────────────────────────────────────────
    # Priority classifier mode
    # ──────────────────────────────────────────────

    def evaluate(self, snapshot: MarketSnapshot, market_state: MarketState) -> SignalCandidate | None:
        """Return the qualifying candidate for a snapshot, or None."""
        return self.assess(snapshot, market_state).candidate

    def assess(self, snapshot: MarketSnapshot, market_state: MarketState) -> Evaluation:
        """Score a snapshot and report the outcome.

        Args:
            snapshot: Multi-resolution market snapshot for one symbol.
            market_state: Cycle context; supplies the minimum confidence.

        Returns:
            Evaluation with outcome MATCHED (candidate set), NO_MATCH, or
            BELOW_THRESHOLD (rejected type and confidence set).
        """
        primary_series = snapshot.get_series(self._primary)
        if primary_series is None or primary_series.last is None:
            return Evaluation(EvaluationOutcome.NO_MATCH)

        price = snapshot.last_price
        funding = snapshot.funding_rate or 0.0

        primary = read_timeframe(primary_series, price, self._settings)
        confirm = read_timeframe(snapshot.get_series(self._confirm), price, self._settings)
        fast = read_timeframe(snapshot.get_series(self._fast), price, self._settings)
        wick_ratio = upper_wick_ratio(primary_series.last, price)

        classification = classify(
            price,
            snapshot.change_24h_pct,
            funding,
            wick_ratio,
            primary,
            confirm,
            fast,
            self._settings,
        )
        if classification is None:
            logger.debug("signal_no_match", symbol=snapshot.symbol)
            return Evaluation(EvaluationOutcome.NO_MATCH)

        confidence = classification.base_confidence
        reasons = [classification.reason]

        confirmed = False
        if snapshot.get_series(self._confirm) is not None:
            confirmed = confirm_direction(price, confirm, self._settings) is not None
        if confirmed:
            confidence += self._settings.confirm_bonus
            reasons.append(confirmation_reason(self._confirm, confirm))

        if confidence < market_state.min_confidence:
            logger.debug(
                "signal_below_threshold",
                symbol=snapshot.symbol,
                signal_type=classification.signal_type.value,
                confidence=round(confidence, 2),
                min_confidence=market_state.min_confidence,
            )
            return Evaluation(
                EvaluationOutcome.BELOW_THRESHOLD,
                signal_type=classification.signal_type,
                confidence=confidence,
            )

        candidate = self._build_candidate(
            snapshot,
            classification.signal_type,
            confidence,
            confirmed,
            reasons,
            primary,
            self._metrics(snapshot, funding, wick_ratio, primary, confirm, fast),
        )

        logger.info(
            "signal_scored",
            symbol=candidate.symbol,
            signal_type=candidate.signal_type.value,
            confidence=round(candidate.confidence, 2),
            side=candidate.side.value,
            confirmed=candidate.confirmed,
            regime=market_state.regime.value,
        )
        return Evaluation(EvaluationOutcome.MATCHED, candidate=candidate)

    # ──────────────────────────────────────────────
    # Additive compression mode
    # ──────────────────────────────────────────────

    def evaluate_compression(self, snapshot: MarketSnapshot) -> Evaluation:
        """Score a snapshot with the additive pre-breakout scorer.

        Runs on the confirmation resolution. A zero score is NO_MATCH; a
        positive score under the compression threshold is BELOW_THRESHOLD.
        """
        series = snapshot.get_series(self._confirm)
        if not self._compression.enabled or series is None:
            return Evaluation(EvaluationOutcome.NO_MATCH)

        result = score_compression(series, self._compression, self._settings)
        if result.score <= 0:
            return Evaluation(EvaluationOutcome.NO_MATCH)
        if not result.passes(self._compression.threshold):
            return Evaluation(
                EvaluationOutcome.BELOW_THRESHOLD,
                signal_type=SignalType.PRE_BREAKOUT,
                confidence=result.score,
            )

        price = snapshot.last_price
        reference = read_timeframe(
            snapshot.get_series(self._primary) or series, price, self._settings
        )
        reasons = []
        if result.compressed:
            reasons.append(f"Compression (bbWidth={result.bb_width:.4f})")
        reasons.append(f"RSI {result.rsi:.1f} | volRatio {result.volume_ratio:.2f}")

        metrics: dict[str, float | None] = {
            "price": price,
            "change_24h": snapshot.change_24h_pct,
            "funding": snapshot.funding_rate,
            "bb_width": result.bb_width,
            "slope": result.slope,
            "rsi_confirm": result.rsi,
            "volume_ratio_confirm": result.volume_ratio,
            "ma_primary": reference.ma,
        }
        candidate = self._build_candidate(
            snapshot,
            SignalType.PRE_BREAKOUT,
            result.score,
            False,
            reasons,
            reference,
            metrics,
        )
        logger.info(
            "compression_scored",
            symbol=candidate.symbol,
            score=result.score,
            bb_width=round(result.bb_width, 5),
        )
        return Evaluation(EvaluationOutcome.MATCHED, candidate=candidate)

    # ──────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────

    def _build_candidate(
        self,
        snapshot: MarketSnapshot,
        signal_type: SignalType,
        confidence: float,
        confirmed: bool,
        reasons: list[str],
        primary: TimeframeReadout,
        metrics: dict[str, float | None],
    ) -> SignalCandidate:
        price = snapshot.last_price
        side = suggest_side(price, primary.ma, snapshot.funding_rate or 0.0, self._settings)
        stop_loss, take_profit, sl_pct, tp_pct = compute_levels(price, signal_type, side)
        return SignalCandidate(
            symbol=snapshot.symbol,
            signal_type=signal_type,
            confidence=confidence,
            side=side,
            entry=price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            sl_pct=sl_pct,
            tp_pct=tp_pct,
            confirmed=confirmed,
            reasons=tuple(reasons),
            metrics=metrics,
            timestamp=snapshot.captured_at,
        )

    @staticmethod
    def _metrics(
        snapshot: MarketSnapshot,
        funding: float,
        wick_ratio: float,
        primary: TimeframeReadout,
        confirm: TimeframeReadout,
        fast: TimeframeReadout,
    ) -> dict[str, float | None]:
        return {
            "price": snapshot.last_price,
            "change_24h": snapshot.change_24h_pct,
            "funding": funding,
            "ma_primary": primary.ma,
            "ma_confirm": confirm.ma,
            "rsi_primary": primary.rsi,
            "rsi_confirm": confirm.rsi,
            "rsi_fast": fast.rsi,
            "volume_ratio_primary": primary.volume_ratio,
            "volume_ratio_confirm": confirm.volume_ratio,
            "wick_ratio": wick_ratio,
        }
