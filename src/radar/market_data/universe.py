"""Symbol universe selection and rotating scan batches.

Keeps the top USDT-quoted symbols by 24h quote volume, excluding leveraged
tokens, and hands them out in fixed-size batches that wrap around so every
symbol is revisited within a few cycles.
"""

import time
from collections.abc import Callable

from radar.config import ScanSettings
from radar.exceptions import DataUnavailable
from radar.exchange.client import MarketDataClient
from radar.logging import get_logger
from radar.models import Ticker

logger = get_logger(__name__)

#: Leveraged token suffixes (e.g. BTCUPUSDT) are never scanned.
EXCLUDED_MARKERS = ("UP", "DOWN", "BULL", "BEAR")


def is_eligible(symbol: str, quote: str = "USDT") -> bool:
    """True for plain quote-denominated pairs that are not leveraged tokens."""
    if not symbol.endswith(quote):
        return False
    base = symbol[: -len(quote)]
    if not base:
        return False
    return not any(base.endswith(marker) for marker in EXCLUDED_MARKERS)


def select_universe(
    tickers: list[Ticker],
    min_quote_volume: float,
    limit: int,
    quote: str = "USDT",
) -> list[str]:
    """Select eligible symbols by 24h quote volume.

    Args:
        tickers: 24h tickers for the whole market.
        min_quote_volume: Minimum 24h quote volume to qualify.
        limit: Maximum number of symbols to keep.
        quote: Quote asset suffix.

    Returns:
        Symbols sorted by quote volume, highest first.
    """
    eligible = [
        t for t in tickers if is_eligible(t.symbol, quote) and t.quote_volume >= min_quote_volume
    ]
    eligible.sort(key=lambda t: t.quote_volume, reverse=True)
    return [t.symbol for t in eligible[:limit]]


class SymbolUniverse:
    """Periodically refreshed symbol list with a rotating batch cursor.

    Args:
        client: Market data source for the ticker list.
        settings: Volume floor, universe size, and refresh period.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        client: MarketDataClient,
        settings: ScanSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clock = clock
        self._symbols: list[str] = []
        self._refreshed_at: float | None = None
        self._cursor = 0

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at >= self._settings.universe_refresh_hours * 3600

    async def refresh(self, force: bool = False) -> list[str]:
        """Reload the universe when stale (or when forced).

        A failed refresh keeps the previous list. With no previous list the
        failure propagates.

        Raises:
            DataUnavailable: If the ticker list cannot be fetched and no list is cached.
        """
        if not force and not self.is_stale():
            return self.symbols

        try:
            tickers = await self._client.get_tickers()
        except DataUnavailable:
            if not self._symbols:
                raise
            logger.warning("universe_refresh_failed", kept=len(self._symbols))
            return self.symbols

        selected = select_universe(
            tickers,
            self._settings.min_quote_volume,
            self._settings.universe_size,
        )
        if not selected and self._symbols:
            logger.warning("universe_refresh_empty", kept=len(self._symbols))
            return self.symbols

        self._symbols = selected
        self._refreshed_at = self._clock()
        self._cursor = 0
        logger.info(
            "universe_refreshed",
            symbols=len(selected),
            min_quote_volume=self._settings.min_quote_volume,
        )
        return self.symbols

    def next_batch(self, size: int) -> list[str]:
        """Return the next ``size`` symbols, wrapping around the list."""
        if not self._symbols or size <= 0:
            return []
        if size >= len(self._symbols):
            return self.symbols
        n = len(self._symbols)
        batch = [self._symbols[(self._cursor + i) % n] for i in range(size)]
        self._cursor = (self._cursor + size) % n
        return batch
