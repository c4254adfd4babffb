"""Exchange access: mirror pool, resilient fetcher, and market data clients."""

from radar.exchange.binance import BinanceClient
from radar.exchange.client import MarketDataClient
from radar.exchange.fetcher import ResilientFetcher
from radar.exchange.mirrors import MirrorPool

__all__ = [
    "BinanceClient",
    "MarketDataClient",
    "MirrorPool",
    "ResilientFetcher",
]
