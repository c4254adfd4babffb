"""Shared test fixtures for the signal radar."""

from collections.abc import Callable

import pytest

from radar.config import (
    AlertSettings,
    AppSettings,
    ClassifierSettings,
    CompressionSettings,
    FetchSettings,
    ScanSettings,
    TelegramSettings,
)
from radar.models import Candle, CandleSeries, MarketSnapshot

HOUR_MS = 3_600_000


def build_series(
    symbol: str,
    resolution: str,
    closes: list[float],
    volumes: list[float] | None = None,
    last_open: float | None = None,
    last_high: float | None = None,
) -> CandleSeries:
    """Build a series where each bar opens at the previous close.

    The last bar's open and high can be overridden to shape its wick.
    """
    volumes = volumes if volumes is not None else [100.0] * len(closes)
    candles = []
    prev = closes[0]
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        open_ = prev
        high = max(open_, close)
        if i == len(closes) - 1:
            if last_open is not None:
                open_ = last_open
            high = last_high if last_high is not None else max(open_, close)
        candles.append(
            Candle(
                open_time=i * HOUR_MS,
                open=open_,
                high=high,
                low=min(open_, close),
                close=close,
                volume=volume,
                close_time=(i + 1) * HOUR_MS - 1,
            )
        )
        prev = close
    return CandleSeries(symbol=symbol, resolution=resolution, candles=tuple(candles))


@pytest.fixture
def app_settings() -> AppSettings:
    """Return AppSettings with test defaults (no Telegram, small batches)."""
    return AppSettings(
        log_level="DEBUG",
        fetch=FetchSettings(mirrors=["https://mirror-a.test", "https://mirror-b.test"]),
        scan=ScanSettings(concurrency=4, batch_size=10),
        classifier=ClassifierSettings(),
        compression=CompressionSettings(),
        alert=AlertSettings(cooldown_minutes=20, active_ttl_hours=72),
        telegram=TelegramSettings(enabled=False),
    )


@pytest.fixture
def classifier_settings() -> ClassifierSettings:
    return ClassifierSettings()


@pytest.fixture
def make_series() -> Callable[..., CandleSeries]:
    return build_series


@pytest.fixture
def breakout_snapshot() -> MarketSnapshot:
    """Price ~3.8% above the 4h MA20, +8% on the day, 2.7x volume, 1h confirming.

    Satisfies BREAKOUT but not LIQUIDITY_SWEEP (the last 4h bar has no upper wick).
    """
    closes = [100.0] * 59 + [104.0]
    volumes = [100.0] * 59 + [300.0]
    return MarketSnapshot(
        symbol="SOLUSDT",
        last_price=104.0,
        change_24h_pct=8.0,
        quote_volume=50_000_000.0,
        funding_rate=0.0001,
        series={
            "4h": build_series("SOLUSDT", "4h", closes, volumes, last_open=100.0, last_high=104.0),
            "1h": build_series("SOLUSDT", "1h", closes, volumes),
            "15m": build_series("SOLUSDT", "15m", [100.0] * 40),
        },
        captured_at=1_700_000_000.0,
    )


@pytest.fixture
def flat_snapshot() -> MarketSnapshot:
    """No movement and no volume change on any resolution."""
    return MarketSnapshot(
        symbol="FLATUSDT",
        last_price=100.0,
        change_24h_pct=0.0,
        quote_volume=10_000_000.0,
        funding_rate=0.0,
        series={
            "4h": build_series("FLATUSDT", "4h", [100.0] * 60),
            "1h": build_series("FLATUSDT", "1h", [100.0] * 60),
            "15m": build_series("FLATUSDT", "15m", [100.0] * 40),
        },
        captured_at=1_700_000_000.0,
    )
