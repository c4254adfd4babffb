"""Binance REST market data client (USDT-M futures or spot).

Kline rows are positional arrays:
[open_time, open, high, low, close, volume, close_time, quote_volume, ...].
"""

from typing import Any

from radar.exceptions import DataUnavailable
from radar.exchange.client import MarketDataClient
from radar.exchange.fetcher import ResilientFetcher
from radar.logging import get_logger
from radar.models import Candle, CandleSeries, Ticker

logger = get_logger(__name__)

_PATHS = {
    "futures": {
        "klines": "/fapi/v1/klines",
        "ticker": "/fapi/v1/ticker/24hr",
        "funding": "/fapi/v1/premiumIndex",
    },
    "spot": {
        "klines": "/api/v3/klines",
        "ticker": "/api/v3/ticker/24hr",
    },
}


def parse_kline(row: list[Any]) -> Candle:
    """Convert one positional kline row into a Candle.

    Raises:
        ValueError: If the row is too short or holds non-numeric fields.
    """
    if len(row) < 7:
        raise ValueError(f"kline row has {len(row)} fields, expected at least 7")
    return Candle(
        open_time=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
        close_time=int(row[6]),
    )


def parse_ticker(payload: dict[str, Any]) -> Ticker:
    """Convert a 24hr ticker object into a Ticker."""
    return Ticker(
        symbol=str(payload["symbol"]),
        last_price=float(payload.get("lastPrice") or 0.0),
        change_24h_pct=float(payload.get("priceChangePercent") or 0.0),
        quote_volume=float(payload.get("quoteVolume") or 0.0),
    )


class BinanceClient(MarketDataClient):
    """Market data client for Binance public REST endpoints.

    Args:
        fetcher: Resilient fetcher bound to a Binance mirror pool.
        market: "futures" (USDT-M perpetuals) or "spot".
    """

    def __init__(self, fetcher: ResilientFetcher, market: str = "futures") -> None:
        if market not in _PATHS:
            raise ValueError(f"unsupported market: {market}")
        self._fetcher = fetcher
        self._market = market
        self._paths = _PATHS[market]

    @property
    def market(self) -> str:
        return self._market

    async def close(self) -> None:
        await self._fetcher.close()

    async def get_candles(self, symbol: str, resolution: str, limit: int) -> CandleSeries:
        """Fetch klines and drop malformed, duplicate, or out-of-order rows.

        Raises:
            DataUnavailable: If the transport fails or the body is not a list.
        """
        body = await self._fetcher.fetch_json(
            self._paths["klines"],
            {"symbol": symbol, "interval": resolution, "limit": limit},
        )
        if not isinstance(body, list):
            raise DataUnavailable(f"unexpected klines payload for {symbol}", path=self._paths["klines"])

        candles: list[Candle] = []
        skipped = 0
        for row in body:
            try:
                candles.append(parse_kline(row))
            except (TypeError, ValueError):
                skipped += 1
        if skipped:
            logger.warning("klines_rows_skipped", symbol=symbol, resolution=resolution, skipped=skipped)

        series = CandleSeries.from_candles(symbol, resolution, candles)
        if len(series) < len(candles):
            logger.debug(
                "klines_rows_reordered",
                symbol=symbol,
                resolution=resolution,
                dropped=len(candles) - len(series),
            )
        return series

    async def get_ticker(self, symbol: str) -> Ticker:
        body = await self._fetcher.fetch_json(self._paths["ticker"], {"symbol": symbol})
        if not isinstance(body, dict) or "symbol" not in body:
            raise DataUnavailable(f"unexpected ticker payload for {symbol}", path=self._paths["ticker"])
        try:
            return parse_ticker(body)
        except (TypeError, ValueError) as e:
            raise DataUnavailable(f"bad ticker values for {symbol}", path=self._paths["ticker"]) from e

    async def get_funding_rate(self, symbol: str) -> float | None:
        """Return lastFundingRate from the premium index; None on spot or blank values."""
        path = self._paths.get("funding")
        if path is None:
            return None
        body = await self._fetcher.fetch_json(path, {"symbol": symbol})
        if not isinstance(body, dict):
            raise DataUnavailable(f"unexpected premium index payload for {symbol}", path=path)
        raw = body.get("lastFundingRate")
        if raw in (None, ""):
            return None
        try:
            return float(raw)
        except (TypeError, ValueError) as e:
            raise DataUnavailable(f"bad funding rate for {symbol}: {raw!r}", path=path) from e

    async def get_tickers(self) -> list[Ticker]:
        body = await self._fetcher.fetch_json(self._paths["ticker"])
        if not isinstance(body, list):
            raise DataUnavailable("unexpected ticker list payload", path=self._paths["ticker"])
        tickers: list[Ticker] = []
        for item in body:
            try:
                tickers.append(parse_ticker(item))
            except (KeyError, TypeError, ValueError):
                continue
        return tickers
