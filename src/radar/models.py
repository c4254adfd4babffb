"""Shared market data models for the signal radar.

Prices and volumes are plain floats: every value here feeds indicator math,
never an order, so exact decimal arithmetic buys nothing.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Candle:
    """Single OHLCV bar."""

    open_time: int  # Unix milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int  # Unix milliseconds


@dataclass(frozen=True)
class CandleSeries:
    """Ordered candles for one symbol at one resolution.

    Close timestamps are strictly increasing. Use ``from_candles`` to build a
    series from exchange rows that may contain duplicates or out-of-order bars.
    """

    symbol: str
    resolution: str
    candles: tuple[Candle, ...] = ()

    def __post_init__(self) -> None:
        for prev, cur in zip(self.candles, self.candles[1:]):
            if cur.close_time <= prev.close_time:
                raise ValueError(
                    f"{self.symbol} {self.resolution}: close times must be strictly increasing"
                )

    @classmethod
    def from_candles(cls, symbol: str, resolution: str, candles: Iterable[Candle]) -> "CandleSeries":
        """Build a series, dropping any bar that does not advance the close time."""
        kept: list[Candle] = []
        for candle in candles:
            if kept and candle.close_time <= kept[-1].close_time:
                continue
            kept.append(candle)
        return cls(symbol=symbol, resolution=resolution, candles=tuple(kept))

    def __len__(self) -> int:
        return len(self.candles)

    @property
    def closes(self) -> list[float]:
        return [c.close for c in self.candles]

    @property
    def volumes(self) -> list[float]:
        return [c.volume for c in self.candles]

    @property
    def last(self) -> Candle | None:
        return self.candles[-1] if self.candles else None


@dataclass(frozen=True)
class Ticker:
    """24h rolling ticker statistics for a symbol."""

    symbol: str
    last_price: float
    change_24h_pct: float
    quote_volume: float


@dataclass(frozen=True)
class MarketSnapshot:
    """Read-only view of one symbol's market state for a single scan cycle.

    Built fresh per cycle by the snapshot builder and discarded after scoring.
    ``funding_rate`` is None when the funding endpoint was unavailable or the
    market has no funding (spot).
    """

    symbol: str
    last_price: float
    change_24h_pct: float
    quote_volume: float
    funding_rate: float | None
    series: dict[str, CandleSeries] = field(default_factory=dict)
    captured_at: float = field(default_factory=time.time)

    def get_series(self, resolution: str) -> CandleSeries | None:
        """Return the series for a resolution, or None when it was not fetched or is empty."""
        found = self.series.get(resolution)
        if found is None or len(found) == 0:
            return None
        return found
