"""Tests for the AlertGate cooldown and active-signal registry.

Tests verify:
- EMIT then SUPPRESSED inside the window, EMIT again once it has elapsed
- Active signals are created exactly once per symbol until released
- Keys are independent per (signal type, symbol)
- TTL expiry, cooldown pruning, and restore without overwrite
- Concurrent decisions for the same key emit exactly once
"""

import asyncio

import pytest

from radar.alerts.gate import AlertGate
from radar.alerts.models import ActiveSignal, GateAction, GateState, SuppressReason
from radar.signals.models import Side, SignalCandidate, SignalType

COOLDOWN = 20 * 60


class _FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_candidate(
    symbol: str = "SOLUSDT",
    signal_type: SignalType = SignalType.BREAKOUT,
    confidence: float = 80.0,
) -> SignalCandidate:
    return SignalCandidate(
        symbol=symbol,
        signal_type=signal_type,
        confidence=confidence,
        side=Side.LONG,
        entry=100.0,
        stop_loss=98.0,
        take_profit=110.0,
        sl_pct=0.02,
        tp_pct=0.10,
        metrics={"ma_primary": 96.0, "rsi_primary": 64.0},
    )


def _make_gate(clock: _FakeClock, ttl: float | None = None) -> tuple[AlertGate, GateState]:
    state = GateState()
    return AlertGate(state, cooldown_seconds=COOLDOWN, active_ttl_seconds=ttl, clock=clock), state


class TestCooldown:
    """Emit/suppress decisions over time."""

    @pytest.mark.asyncio
    async def test_emit_then_suppress_then_emit(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)
        candidate = _make_candidate()

        first = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, candidate)
        clock.advance(60)
        second = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, candidate)
        clock.advance(COOLDOWN)
        third = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, candidate)

        assert first.action == GateAction.EMIT
        assert second.action == GateAction.SUPPRESSED
        assert second.reason == SuppressReason.COOLDOWN
        assert third.emitted is True

    @pytest.mark.asyncio
    async def test_window_boundary_emits(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        clock.advance(COOLDOWN)
        decision = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        assert decision.emitted is True

    @pytest.mark.asyncio
    async def test_emit_stamps_cooldown(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        assert state.cooldowns[(SignalType.BREAKOUT, "SOLUSDT")] == clock.now

    @pytest.mark.asyncio
    async def test_types_are_independent(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)

        a = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        b = await gate.try_emit(
            "SOLUSDT", SignalType.SCALP, _make_candidate(signal_type=SignalType.SCALP)
        )
        c = await gate.try_emit("ETHUSDT", SignalType.BREAKOUT, _make_candidate(symbol="ETHUSDT"))

        assert a.emitted and b.emitted and c.emitted

    @pytest.mark.asyncio
    async def test_set_cooldown_applies_to_next_decision(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        clock.advance(120)
        gate.set_cooldown(60)
        decision = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        assert decision.emitted is True

    @pytest.mark.asyncio
    async def test_concurrent_decisions_emit_once(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)

        decisions = await asyncio.gather(
            *(gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate()) for _ in range(10))
        )

        assert sum(1 for d in decisions if d.emitted) == 1
        assert sum(1 for d in decisions if d.new_active is not None) == 1


class TestActiveRegistry:
    """Active-signal creation, release, and expiry."""

    @pytest.mark.asyncio
    async def test_first_suppression_creates_active(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock)
        candidate = _make_candidate()

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, candidate)
        decision = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, candidate)

        assert decision.new_active is not None
        active = state.active["SOLUSDT"]
        assert active.signal_type == SignalType.BREAKOUT
        assert active.price == 100.0
        assert active.ma_primary == 96.0
        assert active.rsi_primary == 64.0
        assert active.confidence == 80.0
        assert active.side == Side.LONG
        assert active.opened_at == clock.now

    @pytest.mark.asyncio
    async def test_active_created_once(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        created = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        again = await gate.try_emit(
            "SOLUSDT", SignalType.BREAKOUT, _make_candidate(confidence=99.0)
        )

        assert created.new_active is not None
        assert again.new_active is None
        assert state.active["SOLUSDT"].confidence == 80.0

    @pytest.mark.asyncio
    async def test_emit_does_not_create_active(self):
        gate, state = _make_gate(_FakeClock())

        decision = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        assert decision.new_active is None
        assert state.active == {}

    @pytest.mark.asyncio
    async def test_release_allows_new_active(self):
        clock = _FakeClock()
        gate, _ = _make_gate(clock)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        released = await gate.release("SOLUSDT")
        decision = await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        assert released is not None
        assert decision.new_active is not None

    @pytest.mark.asyncio
    async def test_release_unknown_symbol(self):
        gate, _ = _make_gate(_FakeClock())
        assert await gate.release("NOPEUSDT") is None

    @pytest.mark.asyncio
    async def test_expire_active_after_ttl(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock, ttl=3600)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        clock.advance(1800)
        assert await gate.expire_active() == []

        clock.advance(1800)
        expired = await gate.expire_active()
        assert [e.symbol for e in expired] == ["SOLUSDT"]
        assert state.active == {}

    @pytest.mark.asyncio
    async def test_no_ttl_keeps_active(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock, ttl=0)

        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        clock.advance(365 * 86400)

        assert await gate.expire_active() == []
        assert "SOLUSDT" in state.active

    @pytest.mark.asyncio
    async def test_restore_does_not_overwrite(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock)
        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())
        await gate.try_emit("SOLUSDT", SignalType.BREAKOUT, _make_candidate())

        persisted = [
            ActiveSignal("SOLUSDT", SignalType.SWING, 1.0, None, None, 55.0, Side.SHORT, 0.0),
            ActiveSignal("ETHUSDT", SignalType.SCALP, 2.0, None, None, 60.0, Side.LONG, 0.0),
        ]
        added = await gate.restore_active(persisted)

        assert added == 1
        assert state.active["SOLUSDT"].signal_type == SignalType.BREAKOUT
        assert await gate.is_active("ETHUSDT")


class TestPruneCooldowns:
    """Cooldown map housekeeping."""

    @pytest.mark.asyncio
    async def test_prunes_only_elapsed_entries(self):
        clock = _FakeClock()
        gate, state = _make_gate(clock)

        await gate.try_emit("OLDUSDT", SignalType.BREAKOUT, _make_candidate(symbol="OLDUSDT"))
        clock.advance(COOLDOWN - 10)
        await gate.try_emit("NEWUSDT", SignalType.BREAKOUT, _make_candidate(symbol="NEWUSDT"))
        clock.advance(10)

        pruned = await gate.prune_cooldowns()

        assert pruned == 1
        assert list(state.cooldowns) == [(SignalType.BREAKOUT, "NEWUSDT")]
