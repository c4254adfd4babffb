"""Alert gate: cooldown throttling and the active-signal registry.

The gate decides, per (signal type, symbol), whether a qualifying candidate
is emitted or suppressed. A candidate suppressed by cooldown opens an active
signal for its symbol when none exists yet; existing active signals are never
overwritten. Active signals leave the registry through ``release`` (an exit
monitor) or ``expire_active`` (TTL).

All reads and writes of the shared GateState happen under one asyncio.Lock,
so the check-then-stamp in ``try_emit`` is atomic across concurrent symbol
tasks.
"""

import asyncio
import time
from collections.abc import Callable, Iterable

from radar.alerts.models import (
    ActiveSignal,
    GateAction,
    GateDecision,
    GateState,
    SuppressReason,
)
from radar.logging import get_logger
from radar.signals.models import SignalCandidate, SignalType

logger = get_logger(__name__)


class AlertGate:
    """Stateful emit/suppress decision point for signal candidates.

    Args:
        state: Shared cooldown and active maps (mutated only by this gate).
        cooldown_seconds: Minimum time between emissions for the same
            (signal type, symbol) key.
        active_ttl_seconds: Age after which active signals expire. None or 0
            keeps them until released.
        clock: Returns the current Unix time in seconds. Injectable for tests.
    """

    def __init__(
        self,
        state: GateState,
        cooldown_seconds: float,
        active_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = state
        self._cooldown = cooldown_seconds
        self._active_ttl = active_ttl_seconds or None
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    def set_cooldown(self, cooldown_seconds: float) -> None:
        """Change the cooldown window; applies to the next decision."""
        self._cooldown = cooldown_seconds

    async def try_emit(
        self,
        symbol: str,
        signal_type: SignalType,
        candidate: SignalCandidate,
    ) -> GateDecision:
        """Decide whether a candidate is emitted.

        Emits when the key has no cooldown entry or the entry is at least
        ``cooldown_seconds`` old, stamping the key with the current time.
        Otherwise suppresses with COOLDOWN and, if the symbol has no active
        signal, creates one from the candidate.

        Args:
            symbol: Trading symbol.
            signal_type: Category of the candidate.
            candidate: The qualifying candidate.

        Returns:
            GateDecision; ``new_active`` is set when an active signal was created.
        """
        key = (signal_type, symbol)
        async with self._lock:
            now = self._clock()
            last = self._state.cooldowns.get(key)
            if last is None or now - last >= self._cooldown:
                self._state.cooldowns[key] = now
                logger.info(
                    "signal_emit_allowed",
                    symbol=symbol,
                    signal_type=signal_type.value,
                    confidence=round(candidate.confidence, 2),
                )
                return GateDecision(GateAction.EMIT)

            new_active = None
            if symbol not in self._state.active:
                new_active = _active_from_candidate(candidate, signal_type, now)
                self._state.active[symbol] = new_active

        logger.info(
            "signal_suppressed",
            symbol=symbol,
            signal_type=signal_type.value,
            reason=SuppressReason.COOLDOWN.value,
            seconds_since_last=round(now - last, 1),
            active_created=new_active is not None,
        )
        return GateDecision(GateAction.SUPPRESSED, SuppressReason.COOLDOWN, new_active)

    async def release(self, symbol: str) -> ActiveSignal | None:
        """Remove the active signal for a symbol, returning it if one existed."""
        async with self._lock:
            released = self._state.active.pop(symbol, None)
        if released is not None:
            logger.info("active_signal_released", symbol=symbol, signal_type=released.signal_type.value)
        return released

    async def expire_active(self) -> list[ActiveSignal]:
        """Drop active signals older than the TTL and return them."""
        if self._active_ttl is None:
            return []
        async with self._lock:
            cutoff = self._clock() - self._active_ttl
            expired = [a for a in self._state.active.values() if a.opened_at <= cutoff]
            for entry in expired:
                del self._state.active[entry.symbol]
        for entry in expired:
            logger.info("active_signal_expired", symbol=entry.symbol, signal_type=entry.signal_type.value)
        return expired

    async def prune_cooldowns(self) -> int:
        """Drop cooldown entries that can no longer suppress anything. Returns the count."""
        async with self._lock:
            cutoff = self._clock() - self._cooldown
            stale = [k for k, ts in self._state.cooldowns.items() if ts <= cutoff]
            for key in stale:
                del self._state.cooldowns[key]
        return len(stale)

    async def restore_active(self, signals: Iterable[ActiveSignal]) -> int:
        """Load persisted active signals without overwriting current entries.

        Returns:
            Number of entries added.
        """
        added = 0
        async with self._lock:
            for entry in signals:
                if entry.symbol not in self._state.active:
                    self._state.active[entry.symbol] = entry
                    added += 1
        return added

    async def active_signals(self) -> list[ActiveSignal]:
        """Return a copy of the active registry, oldest first."""
        async with self._lock:
            entries = list(self._state.active.values())
        return sorted(entries, key=lambda a: a.opened_at)

    async def is_active(self, symbol: str) -> bool:
        async with self._lock:
            return symbol in self._state.active


def _active_from_candidate(
    candidate: SignalCandidate,
    signal_type: SignalType,
    now: float,
) -> ActiveSignal:
    return ActiveSignal(
        symbol=candidate.symbol,
        signal_type=signal_type,
        price=candidate.entry,
        ma_primary=candidate.metrics.get("ma_primary"),
        rsi_primary=candidate.metrics.get("rsi_primary"),
        confidence=candidate.confidence,
        side=candidate.side,
        opened_at=now,
    )
