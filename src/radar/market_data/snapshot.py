"""Per-symbol snapshot assembly from independent market data requests.

All requests for a symbol run concurrently. Each may fail on its own: the
builder proceeds with whatever arrived and only gives up on a symbol when
the primary resolution is missing or empty.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from radar.config import ScanSettings
from radar.exceptions import DataUnavailable
from radar.exchange.client import MarketDataClient
from radar.logging import get_logger
from radar.models import CandleSeries, MarketSnapshot, Ticker

logger = get_logger(__name__)


def _degrade(result: Any, symbol: str, part: str) -> Any:
    """Return the result, or None for a DataUnavailable failure.

    Any other exception is a bug rather than a data gap and is re-raised.
    """
    if isinstance(result, DataUnavailable):
        logger.warning("snapshot_part_missing", symbol=symbol, part=part, error=str(result))
        return None
    if isinstance(result, BaseException):
        raise result
    return result


class SnapshotBuilder:
    """Builds MarketSnapshots for the configured resolutions.

    Args:
        client: Market data source.
        settings: Resolutions and candle limits.
        clock: Returns the capture time in Unix seconds.
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

    def _requests(self) -> list[tuple[str, int]]:
        s = self._settings
        return [
            (s.primary_resolution, s.primary_limit),
            (s.confirm_resolution, s.confirm_limit),
            (s.fast_resolution, s.fast_limit),
        ]

    async def build(self, symbol: str) -> MarketSnapshot:
        """Fetch everything for a symbol and assemble a snapshot.

        Missing ticker: price falls back to the last primary close, 24h change
        to 0. Missing funding: None.

        Raises:
            DataUnavailable: If the primary series could not be fetched or is empty.
        """
        requests = self._requests()
        results = await asyncio.gather(
            *(self._client.get_candles(symbol, res, limit) for res, limit in requests),
            self._client.get_ticker(symbol),
            self._client.get_funding_rate(symbol),
            return_exceptions=True,
        )
        candle_results = results[: len(requests)]
        ticker_result, funding_result = results[len(requests):]

        primary_resolution = self._settings.primary_resolution
        primary = candle_results[0]
        if isinstance(primary, DataUnavailable):
            raise DataUnavailable(
                f"{symbol}: primary {primary_resolution} candles unavailable",
                path=primary.path,
                last_error=primary.last_error,
            )
        primary = _degrade(primary, symbol, primary_resolution)
        if primary is None or len(primary) == 0:
            raise DataUnavailable(f"{symbol}: primary {primary_resolution} series is empty")

        series: dict[str, CandleSeries] = {}
        for (resolution, _), result in zip(requests, candle_results):
            got = _degrade(result, symbol, resolution)
            if got is not None and len(got) > 0:
                series[resolution] = got

        ticker: Ticker | None = _degrade(ticker_result, symbol, "ticker")
        funding: float | None = _degrade(funding_result, symbol, "funding")

        last_close = primary.candles[-1].close
        if ticker is not None and ticker.last_price > 0:
            price = ticker.last_price
            change = ticker.change_24h_pct
            quote_volume = ticker.quote_volume
        else:
            price = last_close
            change = ticker.change_24h_pct if ticker is not None else 0.0
            quote_volume = ticker.quote_volume if ticker is not None else 0.0

        return MarketSnapshot(
            symbol=symbol,
            last_price=price,
            change_24h_pct=change,
            quote_volume=quote_volume,
            funding_rate=funding,
            series=series,
            captured_at=self._clock(),
        )
