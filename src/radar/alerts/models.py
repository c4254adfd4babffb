"""Alert gate state and decision models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from radar.signals.models import Side, SignalType


class GateAction(str, Enum):
    """What the gate decided for a candidate."""

    EMIT = "emit"
    SUPPRESSED = "suppressed"


class SuppressReason(str, Enum):
    """Why a candidate was not emitted."""

    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class ActiveSignal:
    """A signal considered open for a symbol until released or expired."""

    symbol: str
    signal_type: SignalType
    price: float
    ma_primary: float | None
    rsi_primary: float | None
    confidence: float
    side: Side
    opened_at: float  # Unix seconds

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "type": self.signal_type.value,
            "price": self.price,
            "ma_primary": self.ma_primary,
            "rsi_primary": self.rsi_primary,
            "confidence": round(self.confidence, 2),
            "side": self.side.value,
            "opened_at": self.opened_at,
        }


@dataclass
class GateState:
    """Mutable throttling state shared by reference with the AlertGate.

    Only the gate mutates these maps, always under its lock.

    Attributes:
        cooldowns: (signal type, symbol) -> last emission time in Unix seconds.
        active: symbol -> the open ActiveSignal for that symbol.
    """

    cooldowns: dict[tuple[SignalType, str], float] = field(default_factory=dict)
    active: dict[str, ActiveSignal] = field(default_factory=dict)


@dataclass(frozen=True)
class GateDecision:
    """Result of ``AlertGate.try_emit``.

    ``new_active`` is set only when this call created an active signal, so the
    caller knows to persist it.
    """

    action: GateAction
    reason: SuppressReason | None = None
    new_active: ActiveSignal | None = None

    @property
    def emitted(self) -> bool:
        return self.action == GateAction.EMIT
