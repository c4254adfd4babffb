"""Typed read/write abstraction over the signal archive.

Emitted candidates are append-only and trimmed once the table grows past a
row ceiling. Active signals are keyed by symbol so they survive restarts and
can be reloaded into the alert gate.
"""

import json
from typing import Any

from radar.alerts.models import ActiveSignal
from radar.data.database import SignalDatabase
from radar.logging import get_logger
from radar.signals.models import Side, SignalCandidate, SignalType

logger = get_logger(__name__)


class SignalStore:
    """Async SQLite store for emitted and active signals.

    Args:
        database: Connected SignalDatabase.
        max_rows: Archive size that triggers a trim.
        trim_to: Rows kept (newest first) after a trim.
    """

    def __init__(self, database: SignalDatabase, max_rows: int = 40_000, trim_to: int = 30_000) -> None:
        self._database = database
        self._max_rows = max_rows
        self._trim_to = min(trim_to, max_rows)

    # ──────────────────────────────────────────────
    # Emitted signals
    # ──────────────────────────────────────────────

    async def record_emitted(self, candidate: SignalCandidate) -> int:
        """Append an emitted candidate and trim the archive when oversized.

        Returns:
            Row id of the inserted record.
        """
        db = self._database.db
        cursor = await db.execute(
            "INSERT INTO emitted_signals "
            "(symbol, signal_type, side, confidence, entry, stop_loss, take_profit, "
            "confirmed, payload, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                candidate.symbol,
                candidate.signal_type.value,
                candidate.side.value,
                candidate.confidence,
                candidate.entry,
                candidate.stop_loss,
                candidate.take_profit,
                int(candidate.confirmed),
                json.dumps(candidate.to_record()),
                candidate.timestamp,
            ),
        )
        await db.commit()
        row_id = cursor.lastrowid or 0
        await self._trim_if_needed()
        return row_id

    async def _trim_if_needed(self) -> None:
        db = self._database.db
        cursor = await db.execute("SELECT COUNT(*) FROM emitted_signals")
        row = await cursor.fetchone()
        count = row[0] if row else 0
        if count <= self._max_rows:
            return
        await db.execute(
            "DELETE FROM emitted_signals WHERE id NOT IN "
            "(SELECT id FROM emitted_signals ORDER BY id DESC LIMIT ?)",
            (self._trim_to,),
        )
        await db.commit()
        logger.info("emitted_signals_trimmed", before=count, kept=self._trim_to)

    async def recent_emitted(self, limit: int = 50, symbol: str | None = None) -> list[dict[str, Any]]:
        """Return the newest emitted records, newest first."""
        db = self._database.db
        if symbol is None:
            cursor = await db.execute(
                "SELECT payload FROM emitted_signals ORDER BY id DESC LIMIT ?",
                (limit,),
            )
        else:
            cursor = await db.execute(
                "SELECT payload FROM emitted_signals WHERE symbol = ? ORDER BY id DESC LIMIT ?",
                (symbol, limit),
            )
        rows = await cursor.fetchall()
        return [json.loads(r[0]) for r in rows]

    # ──────────────────────────────────────────────
    # Active signals
    # ──────────────────────────────────────────────

    async def save_active(self, signal: ActiveSignal) -> None:
        """Insert an active signal; an existing row for the symbol is kept."""
        db = self._database.db
        await db.execute(
            "INSERT OR IGNORE INTO active_signals "
            "(symbol, signal_type, side, price, ma_primary, rsi_primary, confidence, opened_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                signal.symbol,
                signal.signal_type.value,
                signal.side.value,
                signal.price,
                signal.ma_primary,
                signal.rsi_primary,
                signal.confidence,
                signal.opened_at,
            ),
        )
        await db.commit()

    async def delete_active(self, symbol: str) -> bool:
        """Remove the active signal for a symbol. Returns True if a row was deleted."""
        db = self._database.db
        cursor = await db.execute("DELETE FROM active_signals WHERE symbol = ?", (symbol,))
        await db.commit()
        return cursor.rowcount > 0

    async def load_active(self) -> list[ActiveSignal]:
        """Load every persisted active signal, oldest first."""
        cursor = await self._database.db.execute(
            "SELECT symbol, signal_type, side, price, ma_primary, rsi_primary, confidence, opened_at "
            "FROM active_signals ORDER BY opened_at ASC"
        )
        rows = await cursor.fetchall()
        return [
            ActiveSignal(
                symbol=r[0],
                signal_type=SignalType(r[1]),
                side=Side(r[2]),
                price=r[3],
                ma_primary=r[4],
                rsi_primary=r[5],
                confidence=r[6],
                opened_at=r[7],
            )
            for r in rows
        ]
