"""Scanner orchestrator: wires the pipeline and runs scan cycles.

Each cycle:
  1. HOUSEKEEPING: apply runtime overrides, expire stale active signals, prune cooldowns
  2. REGIME: snapshot the reference symbol and derive the MarketState
  3. UNIVERSE: refresh the symbol list when stale and take the next batch
  4. SCAN: per symbol, under a semaphore: build snapshot, score, gate
  5. DELIVER: emitted candidates go to the notifier and the archive;
     newly created active signals go to the store
  6. REPORT: aggregate per-symbol outcomes into a CycleReport

A per-symbol failure is logged and counted; it never aborts the batch.
Cycles never overlap: a cycle requested while one is running is skipped.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any

import aiosqlite

from radar.alerts.formatter import format_alert
from radar.alerts.gate import AlertGate
from radar.config import AppSettings, RuntimeConfig
from radar.exceptions import DataUnavailable
from radar.logging import get_logger, scan_context
from radar.market_data.snapshot import SnapshotBuilder
from radar.market_data.universe import SymbolUniverse
from radar.signals.engine import ScoringEngine
from radar.signals.models import EvaluationOutcome, MarketState, SignalCandidate
from radar.signals.regime import adaptive_interval, assess_market

if TYPE_CHECKING:
    from radar.data.store import SignalStore
    from radar.notify.telegram import TelegramNotifier

logger = get_logger(__name__)

#: Pause after an unexpected cycle-level failure.
_ERROR_BACKOFF_SECONDS = 10


@dataclass
class CycleReport:
    """Aggregated outcome of one scan cycle."""

    cycle_id: int
    started_at: float
    finished_at: float = 0.0
    skipped: bool = False
    regime: str = "normal"
    min_confidence: float = 0.0
    next_interval: int = 0
    scanned: int = 0
    emitted: int = 0
    suppressed: int = 0
    below_threshold: int = 0
    no_match: int = 0
    data_errors: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Scanner:
    """Runs scan cycles over the symbol universe and delivers emitted signals.

    Args:
        settings: Application-wide settings.
        builder: Snapshot builder bound to a market data client.
        engine: Scoring engine.
        gate: Alert gate holding the shared cooldown and active maps.
        universe: Rotating symbol universe.
        notifier: Alert delivery. None = log only.
        store: Signal archive and active-signal store. None = memory only.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        settings: AppSettings,
        builder: SnapshotBuilder,
        engine: ScoringEngine,
        gate: AlertGate,
        universe: SymbolUniverse,
        notifier: TelegramNotifier | None = None,
        store: SignalStore | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._builder = builder
        self._engine = engine
        self._gate = gate
        self._universe = universe
        self._notifier = notifier
        self._store = store
        self._sleep = sleep
        self._running = False
        self._cycle_lock = asyncio.Lock()
        self._cycle_count = 0
        self._last_report: CycleReport | None = None
        self._market_state = MarketState(min_confidence=settings.regime.min_confidence_normal)
        self._runtime_config: RuntimeConfig | None = None
        self._batch_size = settings.scan.batch_size
        self._recent: deque[dict[str, Any]] = deque(maxlen=200)

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Restore persisted active signals, then run cycles until stopped."""
        logger.info(
            "scanner_starting",
            market=self._settings.fetch.market,
            resolutions=list(self._engine.resolutions),
        )
        await self.restore_active()
        self._running = True
        try:
            await self._run_loop()
        finally:
            self._running = False
            logger.info("scanner_stopped")

    async def stop(self) -> None:
        """Signal the loop to exit after the current cycle."""
        logger.info("scanner_stopping")
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def _run_loop(self) -> None:
        """Run cycles back to back, pacing them by market regime."""
        while self._running:
            try:
                report = await self.run_cycle()
                await self._sleep(report.next_interval or self._settings.scan.base_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("scanner_cycle_error", error=str(e), exc_info=True)
                await self._sleep(_ERROR_BACKOFF_SECONDS)

    async def restore_active(self) -> int:
        """Load persisted active signals into the gate. Returns the number added."""
        if self._store is None:
            return 0
        signals = await self._store.load_active()
        added = await self._gate.restore_active(signals)
        logger.info("active_signals_restored", loaded=len(signals), added=added)
        return added

    # ──────────────────────────────────────────────
    # Scan cycle
    # ──────────────────────────────────────────────

    async def run_cycle(self, symbols: list[str] | None = None) -> CycleReport:
        """Run one scan cycle, or skip it if another cycle holds the lock.

        Args:
            symbols: Explicit symbols to scan. None = next batch from the universe.

        Returns:
            CycleReport for the cycle (``skipped`` set when it did not run).
        """
        if self._cycle_lock.locked():
            logger.warning("scan_cycle_skipped", reason="cycle_in_progress")
            return CycleReport(cycle_id=self._cycle_count, started_at=time.time(), skipped=True)

        async with self._cycle_lock:
            self._cycle_count += 1
            with scan_context(cycle=self._cycle_count):
                report = await self._cycle(self._cycle_count, symbols)
            self._last_report = report
            return report

    async def _cycle(self, cycle_id: int, symbols: list[str] | None) -> CycleReport:
        report = CycleReport(cycle_id=cycle_id, started_at=time.time())

        self._apply_runtime_config()
        await self._housekeeping()

        state = await self._assess_market()
        self._market_state = state
        report.regime = state.regime.value
        report.min_confidence = state.min_confidence
        report.next_interval = adaptive_interval(state, self._settings.scan)

        if symbols is None:
            await self._universe.refresh()
            symbols = self._universe.next_batch(self._batch_size)

        semaphore = asyncio.Semaphore(max(1, self._settings.scan.concurrency))
        outcomes = await asyncio.gather(
            *(self._guarded_scan(symbol, state, semaphore) for symbol in symbols)
        )

        report.scanned = len(symbols)
        for outcome in outcomes:
            if outcome == "emitted":
                report.emitted += 1
            elif outcome == "suppressed":
                report.suppressed += 1
            elif outcome == EvaluationOutcome.BELOW_THRESHOLD.value:
                report.below_threshold += 1
            elif outcome == EvaluationOutcome.NO_MATCH.value:
                report.no_match += 1
            elif outcome == "data_error":
                report.data_errors += 1
            else:
                report.errors += 1
        report.finished_at = time.time()

        logger.info(
            "scan_cycle_complete",
            scanned=report.scanned,
            emitted=report.emitted,
            suppressed=report.suppressed,
            below_threshold=report.below_threshold,
            data_errors=report.data_errors,
            errors=report.errors,
            regime=report.regime,
            next_interval=report.next_interval,
            duration=round(report.finished_at - report.started_at, 2),
        )
        return report

    async def _housekeeping(self) -> None:
        expired = await self._gate.expire_active()
        if self._store is not None:
            for entry in expired:
                await self._store.delete_active(entry.symbol)
        pruned = await self._gate.prune_cooldowns()
        if pruned:
            logger.debug("cooldowns_pruned", count=pruned)

    async def _assess_market(self) -> MarketState:
        reference_symbol = self._settings.regime.reference_symbol
        try:
            reference = await self._builder.build(reference_symbol)
        except DataUnavailable as e:
            logger.warning("regime_reference_unavailable", symbol=reference_symbol, error=str(e))
            reference = None
        state = assess_market(
            reference,
            self._settings.regime,
            self._settings.scan.primary_resolution,
            self._settings.classifier,
        )
        if self._runtime_config is not None and self._runtime_config.min_confidence is not None:
            state = replace(state, min_confidence=self._runtime_config.min_confidence)
        return state

    async def _guarded_scan(
        self,
        symbol: str,
        state: MarketState,
        semaphore: asyncio.Semaphore,
    ) -> str:
        async with semaphore:
            with scan_context(symbol=symbol):
                try:
                    return await self._scan_symbol(symbol, state)
                except DataUnavailable as e:
                    logger.warning("symbol_data_unavailable", error=str(e))
                    return "data_error"
                except Exception as e:
                    logger.error("symbol_scan_error", error=str(e), exc_info=True)
                    return "error"

    async def _scan_symbol(self, symbol: str, state: MarketState) -> str:
        """Build, score, and gate one symbol. Returns the outcome label."""
        snapshot = await self._builder.build(symbol)

        evaluation = self._engine.assess(snapshot, state)
        if evaluation.outcome != EvaluationOutcome.MATCHED and self._settings.compression.enabled:
            compression = self._engine.evaluate_compression(snapshot)
            if compression.outcome == EvaluationOutcome.MATCHED:
                evaluation = compression

        if evaluation.candidate is None:
            return evaluation.outcome.value

        candidate = evaluation.candidate
        decision = await self._gate.try_emit(symbol, candidate.signal_type, candidate)
        if decision.emitted:
            await self._deliver(candidate)
            return "emitted"

        if decision.new_active is not None and self._store is not None:
            try:
                await self._store.save_active(decision.new_active)
            except aiosqlite.Error as e:
                logger.error("active_signal_persist_failed", symbol=symbol, error=str(e))
        return "suppressed"

    async def _deliver(self, candidate: SignalCandidate) -> None:
        """Send and archive an emitted candidate. Failures are logged, not raised."""
        record = candidate.to_record()
        self._recent.appendleft(record)

        market_label = "FUTURE" if self._settings.fetch.market == "futures" else "SPOT"
        sent = False
        if self._notifier is not None:
            sent = await self._notifier.send(format_alert(candidate, market_label))

        if self._store is not None:
            try:
                await self._store.record_emitted(candidate)
            except aiosqlite.Error as e:
                logger.error("signal_archive_failed", symbol=candidate.symbol, error=str(e))

        logger.info(
            "signal_emitted",
            symbol=candidate.symbol,
            signal_type=candidate.signal_type.value,
            confidence=round(candidate.confidence, 2),
            side=candidate.side.value,
            entry=candidate.entry,
            stop_loss=candidate.stop_loss,
            take_profit=candidate.take_profit,
            delivered=sent,
        )

    # ──────────────────────────────────────────────
    # On-demand operations (status API)
    # ──────────────────────────────────────────────

    async def analyze(self, symbol: str) -> dict[str, Any]:
        """Score one symbol now with the current market state, without gating.

        Raises:
            DataUnavailable: If the symbol's primary series cannot be fetched.
        """
        snapshot = await self._builder.build(symbol)
        evaluation = self._engine.assess(snapshot, self._market_state)
        compression = self._engine.evaluate_compression(snapshot)
        return {
            "symbol": symbol,
            "outcome": evaluation.outcome.value,
            "signal_type": evaluation.signal_type.value if evaluation.signal_type else None,
            "confidence": evaluation.confidence,
            "candidate": evaluation.candidate.to_record() if evaluation.candidate else None,
            "compression": {
                "outcome": compression.outcome.value,
                "score": compression.confidence,
                "candidate": compression.candidate.to_record() if compression.candidate else None,
            },
            "price": snapshot.last_price,
            "change_24h": snapshot.change_24h_pct,
            "funding": snapshot.funding_rate,
            "min_confidence": self._market_state.min_confidence,
        }

    async def release(self, symbol: str) -> bool:
        """Close the active signal for a symbol. Returns True if one was open."""
        released = await self._gate.release(symbol)
        if self._store is not None:
            try:
                await self._store.delete_active(symbol)
            except aiosqlite.Error as e:
                logger.error("active_signal_delete_failed", symbol=symbol, error=str(e))
        return released is not None

    async def get_status(self) -> dict[str, Any]:
        """Return scanner status for the API."""
        active = await self._gate.active_signals()
        return {
            "running": self._running,
            "cycles": self._cycle_count,
            "market": self._settings.fetch.market,
            "regime": self._market_state.regime.value,
            "min_confidence": self._market_state.min_confidence,
            "cooldown_minutes": self._gate.cooldown_seconds / 60,
            "batch_size": self._batch_size,
            "universe_size": len(self._universe.symbols),
            "active_signals": len(active),
            "last_cycle": self._last_report.to_dict() if self._last_report else None,
        }

    async def active_signals(self) -> list[dict[str, Any]]:
        return [a.to_record() for a in await self._gate.active_signals()]

    async def recent_signals(self, limit: int = 50) -> list[dict[str, Any]]:
        """Newest emitted records, from the archive when available."""
        if self._store is not None:
            return await self._store.recent_emitted(limit)
        return list(self._recent)[:limit]

    # ──────────────────────────────────────────────
    # Runtime overrides
    # ──────────────────────────────────────────────

    @property
    def runtime_config(self) -> RuntimeConfig | None:
        """Current runtime config overlay, if set."""
        return self._runtime_config

    @runtime_config.setter
    def runtime_config(self, config: RuntimeConfig) -> None:
        self._runtime_config = config
        logger.info("runtime_config_updated", config=str(config))

    def _apply_runtime_config(self) -> None:
        """Apply overrides at the start of a cycle so changes need no restart.

        A field left as None restores the configured value, so posting an
        empty override reverts every earlier change.
        """
        rc = self._runtime_config or RuntimeConfig()
        cooldown_minutes = (
            rc.cooldown_minutes if rc.cooldown_minutes is not None else self._settings.alert.cooldown_minutes
        )
        self._gate.set_cooldown(cooldown_minutes * 60)
        self._batch_size = rc.batch_size if rc.batch_size is not None else self._settings.scan.batch_size
