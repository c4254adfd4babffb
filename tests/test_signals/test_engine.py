"""Tests for the ScoringEngine.

Tests verify:
- End-to-end breakout with confirmation bonus, side, and SL/TP levels
- Priority ordering (sweep beats breakout)
- NO_MATCH and BELOW_THRESHOLD outcomes
- Determinism for identical input
- Graceful degradation when confirmation or fast series are missing
- Additive compression mode
"""

from dataclasses import replace

import pytest

from radar.config import ClassifierSettings, CompressionSettings
from radar.models import MarketSnapshot
from radar.signals.engine import ScoringEngine
from radar.signals.models import EvaluationOutcome, MarketState, Side, SignalType

from conftest import build_series


def _make_engine(**compression_overrides) -> ScoringEngine:
    return ScoringEngine(
        ClassifierSettings(),
        CompressionSettings(**compression_overrides),
        primary_resolution="4h",
        confirm_resolution="1h",
        fast_resolution="15m",
    )


def _sweep_snapshot() -> MarketSnapshot:
    """Breakout conditions plus a long upper wick on the last 4h bar."""
    closes = [100.0] * 59 + [104.0]
    volumes = [100.0] * 59 + [300.0]
    return MarketSnapshot(
        symbol="ARBUSDT",
        last_price=104.0,
        change_24h_pct=8.0,
        quote_volume=20_000_000.0,
        funding_rate=0.0,
        series={
            "4h": build_series("ARBUSDT", "4h", closes, volumes, last_open=103.5, last_high=106.0),
            "1h": build_series("ARBUSDT", "1h", [100.0] * 60),
        },
        captured_at=1_700_000_000.0,
    )


class TestBreakoutEndToEnd:
    """Full pipeline on a confirmed primary-timeframe breakout."""

    def test_breakout_candidate(self, breakout_snapshot):
        engine = _make_engine()
        candidate = engine.evaluate(breakout_snapshot, MarketState(min_confidence=56.0))

        assert candidate is not None
        assert candidate.signal_type == SignalType.BREAKOUT
        assert candidate.confirmed is True
        # 60 + min(30, 8 * 2) + 10
        assert candidate.confidence == pytest.approx(86.0)
        assert candidate.side == Side.LONG

    def test_breakout_levels(self, breakout_snapshot):
        candidate = _make_engine().evaluate(breakout_snapshot, MarketState())

        assert candidate is not None
        assert candidate.entry == 104.0
        assert candidate.sl_pct == 0.02
        assert candidate.tp_pct == 0.10
        assert candidate.stop_loss == pytest.approx(104.0 * 0.98)
        assert candidate.take_profit == pytest.approx(104.0 * 1.10)

    def test_rationale_includes_confirmation(self, breakout_snapshot):
        candidate = _make_engine().evaluate(breakout_snapshot, MarketState())

        assert candidate is not None
        assert len(candidate.reasons) == 2
        assert candidate.reasons[1].startswith("EARLY_CONFIRM(1H volRatio=")

    def test_timestamp_is_capture_time(self, breakout_snapshot):
        candidate = _make_engine().evaluate(breakout_snapshot, MarketState())

        assert candidate is not None
        assert candidate.timestamp == breakout_snapshot.captured_at

    def test_evaluation_is_deterministic(self, breakout_snapshot):
        engine = _make_engine()
        state = MarketState()

        first = engine.evaluate(breakout_snapshot, state)
        second = engine.evaluate(breakout_snapshot, state)

        assert first == second


class TestBreakoutAtMargin:
    """Price exactly 3% over a flat 4h MA20, +8% on the day, volume ratio 2.0."""

    def _snapshot(self) -> MarketSnapshot:
        # 1710 + 190 over 20 bars averages 95, so the last bar is exactly 2x
        primary_volumes = [90.0] * 59 + [190.0]
        return MarketSnapshot(
            symbol="NEARUSDT",
            last_price=103.0,
            change_24h_pct=8.0,
            quote_volume=30_000_000.0,
            funding_rate=0.0001,
            series={
                "4h": build_series("NEARUSDT", "4h", [100.0] * 60, primary_volumes),
                "1h": build_series(
                    "NEARUSDT", "1h", [100.0] * 59 + [103.0], [100.0] * 59 + [300.0]
                ),
                "15m": build_series("NEARUSDT", "15m", [100.0] * 40),
            },
            captured_at=1_700_000_000.0,
        )

    def test_classified_as_confirmed_breakout(self):
        candidate = _make_engine().evaluate(self._snapshot(), MarketState(min_confidence=56.0))

        assert candidate is not None
        assert candidate.signal_type == SignalType.BREAKOUT
        assert candidate.confirmed is True
        assert candidate.confidence >= 70.0
        assert candidate.confidence == pytest.approx(86.0)
        assert candidate.metrics["ma_primary"] == pytest.approx(100.0)
        assert candidate.metrics["volume_ratio_primary"] == pytest.approx(2.0)

    def test_side_and_levels(self):
        candidate = _make_engine().evaluate(self._snapshot(), MarketState())

        assert candidate is not None
        assert candidate.side == Side.LONG
        assert (candidate.sl_pct, candidate.tp_pct) == (0.02, 0.10)
        assert candidate.stop_loss == pytest.approx(103.0 * 0.98)
        assert candidate.take_profit == pytest.approx(103.0 * 1.10)


class TestPriority:
    """The classifier picks the highest-priority match."""

    def test_sweep_wins_over_breakout(self):
        evaluation = _make_engine().assess(_sweep_snapshot(), MarketState())

        assert evaluation.outcome == EvaluationOutcome.MATCHED
        assert evaluation.candidate is not None
        assert evaluation.candidate.signal_type == SignalType.LIQUIDITY_SWEEP
        assert evaluation.candidate.sl_pct == 0.02
        assert evaluation.candidate.tp_pct == 0.06


class TestOutcomes:
    """NO_MATCH and BELOW_THRESHOLD reporting."""

    def test_flat_market_is_no_match(self, flat_snapshot):
        evaluation = _make_engine().assess(flat_snapshot, MarketState())

        assert evaluation.outcome == EvaluationOutcome.NO_MATCH
        assert evaluation.candidate is None

    def test_below_threshold_keeps_diagnostics(self, breakout_snapshot):
        evaluation = _make_engine().assess(breakout_snapshot, MarketState(min_confidence=95.0))

        assert evaluation.outcome == EvaluationOutcome.BELOW_THRESHOLD
        assert evaluation.candidate is None
        assert evaluation.signal_type == SignalType.BREAKOUT
        assert evaluation.confidence == pytest.approx(86.0)

    def test_evaluate_returns_none_below_threshold(self, breakout_snapshot):
        assert _make_engine().evaluate(breakout_snapshot, MarketState(min_confidence=95.0)) is None

    def test_missing_primary_is_no_match(self, breakout_snapshot):
        snapshot = replace(breakout_snapshot, series={"1h": breakout_snapshot.series["1h"]})
        evaluation = _make_engine().assess(snapshot, MarketState())

        assert evaluation.outcome == EvaluationOutcome.NO_MATCH


class TestGracefulDegradation:
    """Missing secondary resolutions fall back to neutral readouts."""

    def test_breakout_without_confirmation_series(self, breakout_snapshot):
        snapshot = replace(breakout_snapshot, series={"4h": breakout_snapshot.series["4h"]})
        candidate = _make_engine().evaluate(snapshot, MarketState())

        assert candidate is not None
        assert candidate.signal_type == SignalType.BREAKOUT
        assert candidate.confirmed is False
        assert candidate.confidence == pytest.approx(76.0)

    def test_missing_funding_scored_as_zero(self, breakout_snapshot):
        snapshot = replace(breakout_snapshot, funding_rate=None)
        candidate = _make_engine().evaluate(snapshot, MarketState())

        assert candidate is not None
        assert candidate.side == Side.LONG
        assert candidate.metrics["funding"] == 0.0

    def test_extreme_negative_funding_forces_short(self, breakout_snapshot):
        snapshot = replace(breakout_snapshot, funding_rate=-0.001)
        candidate = _make_engine().evaluate(snapshot, MarketState())

        assert candidate is not None
        assert candidate.side == Side.SHORT
        assert candidate.stop_loss > candidate.entry
        assert candidate.take_profit < candidate.entry


class TestCompressionMode:
    """Additive pre-breakout scoring on the confirmation resolution."""

    def _compressed_snapshot(self) -> MarketSnapshot:
        closes = [100.0 if i % 2 == 0 else 100.1 for i in range(60)]
        volumes = [100.0] * 59 + [150.0]
        return MarketSnapshot(
            symbol="OPUSDT",
            last_price=100.1,
            change_24h_pct=0.5,
            quote_volume=8_000_000.0,
            funding_rate=0.0,
            series={
                "4h": build_series("OPUSDT", "4h", [100.0] * 60),
                "1h": build_series("OPUSDT", "1h", closes, volumes),
            },
            captured_at=1_700_000_000.0,
        )

    def test_compressed_market_scores_pre_breakout(self):
        evaluation = _make_engine().evaluate_compression(self._compressed_snapshot())

        assert evaluation.outcome == EvaluationOutcome.MATCHED
        assert evaluation.candidate is not None
        assert evaluation.candidate.signal_type == SignalType.PRE_BREAKOUT
        # compressed 40 + RSI band 30 + volume band 20
        assert evaluation.candidate.confidence == pytest.approx(90.0)
        assert evaluation.candidate.sl_pct == 0.02
        assert evaluation.candidate.tp_pct == 0.08

    def test_threshold_respected(self):
        evaluation = _make_engine(threshold=95.0).evaluate_compression(self._compressed_snapshot())

        assert evaluation.outcome == EvaluationOutcome.BELOW_THRESHOLD
        assert evaluation.confidence == pytest.approx(90.0)

    def test_disabled_is_no_match(self):
        evaluation = _make_engine(enabled=False).evaluate_compression(self._compressed_snapshot())

        assert evaluation.outcome == EvaluationOutcome.NO_MATCH

    def test_trending_market_scores_nothing(self):
        closes = [100.0 + i for i in range(60)]
        snapshot = MarketSnapshot(
            symbol="UPUSDT",
            last_price=159.0,
            change_24h_pct=10.0,
            quote_volume=8_000_000.0,
            funding_rate=0.0,
            series={"1h": build_series("UPUSDT", "1h", closes)},
        )
        evaluation = _make_engine().evaluate_compression(snapshot)

        assert evaluation.outcome == EvaluationOutcome.NO_MATCH
