"""Abstract market data client interface.

The snapshot builder and universe selector depend only on this interface,
keeping exchange-specific paths and payload shapes in the concrete client.
Every method may raise DataUnavailable independently of the others.
"""

from abc import ABC, abstractmethod

from radar.models import CandleSeries, Ticker


class MarketDataClient(ABC):
    """Abstract base class for market data sources."""

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...

    @abstractmethod
    async def get_candles(self, symbol: str, resolution: str, limit: int) -> CandleSeries:
        """Fetch the most recent ``limit`` candles for a symbol at a resolution."""
        ...

    @abstractmethod
    async def get_ticker(self, symbol: str) -> Ticker:
        """Fetch 24h ticker statistics for one symbol."""
        ...

    @abstractmethod
    async def get_funding_rate(self, symbol: str) -> float | None:
        """Fetch the latest funding rate, or None where the market has none."""
        ...

    @abstractmethod
    async def get_tickers(self) -> list[Ticker]:
        """Fetch 24h ticker statistics for every listed symbol."""
        ...
