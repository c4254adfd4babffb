"""Configuration system using pydantic-settings with environment variable loading."""

from dataclasses import dataclass
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

FUTURES_MIRRORS = ["https://fapi.binance.com"]

SPOT_MIRRORS = [
    "https://api-gcp.binance.com",
    "https://api1.binance.com",
    "https://api3.binance.com",
    "https://api4.binance.com",
    "https://data-api.binance.vision",
]


class FetchSettings(BaseSettings):
    """Market data transport settings.

    Mirrors are tried in order; the fetcher rotates to the next one when a
    mirror answers with a ban or rate-limit status.
    """

    model_config = SettingsConfigDict(env_prefix="FETCH_")

    market: Literal["futures", "spot"] = "futures"
    mirrors: list[str] = FUTURES_MIRRORS
    timeout_seconds: float = 8.0
    max_retries: int = 3
    retry_base_delay: float = 0.4  # linear: base * attempt


class ScanSettings(BaseSettings):
    """Scan cycle configuration: resolutions, universe, and pacing."""

    model_config = SettingsConfigDict(env_prefix="SCAN_")

    primary_resolution: str = "4h"
    confirm_resolution: str = "1h"
    fast_resolution: str = "15m"
    primary_limit: int = 60
    confirm_limit: int = 60
    fast_limit: int = 40

    concurrency: int = 8
    batch_size: int = 40  # symbols per cycle
    universe_size: int = 120
    min_quote_volume: float = 3_000_000.0
    universe_refresh_hours: float = 6.0

    base_interval: int = 90  # seconds
    min_interval: int = 45
    max_interval: int = 150


class ClassifierSettings(BaseSettings):
    """Priority classifier thresholds and confirmation parameters."""

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_")

    ma_window: int = 20
    rsi_period: int = 14
    rsi_lookback: int = 40
    volume_window: int = 20

    # Liquidity sweep
    sweep_wick_ratio: float = 2.0
    sweep_volume_ratio: float = 2.5
    sweep_min_change: float = 3.0

    # Breakout
    breakout_ma_margin: float = 0.03
    breakout_min_change: float = 6.0
    breakout_volume_ratio: float = 1.6

    # Swing
    swing_rsi_low: float = 50.0
    swing_rsi_high: float = 75.0
    swing_volume_ratio: float = 1.8

    # Scalp
    scalp_rsi: float = 60.0
    scalp_max_abs_funding: float = 0.0007

    # Multi-timeframe confirmation
    confirm_ma_margin: float = 0.02
    confirm_rsi_long: float = 55.0
    confirm_rsi_short: float = 45.0
    confirm_volume_ratio: float = 1.3
    confirm_bonus: float = 10.0

    # Funding overrides trend when beyond this magnitude
    funding_side_override: float = 0.0006


class CompressionSettings(BaseSettings):
    """Additive pre-breakout scorer configuration."""

    model_config = SettingsConfigDict(env_prefix="COMPRESSION_")

    enabled: bool = True
    bb_window: int = 20
    bb_mult: float = 2.0
    max_bb_width: float = 0.04
    slope_lookback: int = 10
    max_abs_slope: float = 0.02
    rsi_low: float = 40.0
    rsi_high: float = 60.0
    volume_low: float = 1.2
    volume_high: float = 2.5

    weight_compression: float = 40.0
    weight_rsi: float = 30.0
    weight_volume: float = 20.0
    max_score: float = 100.0
    threshold: float = 65.0


class RegimeSettings(BaseSettings):
    """Market regime detection from the reference symbol."""

    model_config = SettingsConfigDict(env_prefix="REGIME_")

    reference_symbol: str = "BTCUSDT"
    trend_change_pct: float = 2.5  # |24h change| above this = trending
    choppy_ma_band: float = 0.01  # price within 1% of MA20 = choppy
    min_confidence_trending: float = 56.0
    min_confidence_normal: float = 56.0
    min_confidence_choppy: float = 66.0


class AlertSettings(BaseSettings):
    """Alert throttling configuration."""

    model_config = SettingsConfigDict(env_prefix="ALERT_")

    cooldown_minutes: float = 20.0
    active_ttl_hours: float = 72.0  # 0 keeps active signals until released


class TelegramSettings(BaseSettings):
    """Telegram bot delivery settings."""

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_")

    token: SecretStr = SecretStr("")
    chat_id: str = ""
    enabled: bool = True
    timeout_seconds: float = 15.0


class StorageSettings(BaseSettings):
    """Signal archive configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/signals.db"
    max_emitted_rows: int = 40_000
    trim_to_rows: int = 30_000


class DashboardSettings(BaseSettings):
    """Status API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


@dataclass
class RuntimeConfig:
    """Mutable runtime config overlay. Non-None fields override BaseSettings values.

    Updated through the status API; applied at the start of each scan cycle.
    """

    min_confidence: float | None = None
    cooldown_minutes: float | None = None
    batch_size: int | None = None


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    fetch: FetchSettings = FetchSettings()
    scan: ScanSettings = ScanSettings()
    classifier: ClassifierSettings = ClassifierSettings()
    compression: CompressionSettings = CompressionSettings()
    regime: RegimeSettings = RegimeSettings()
    alert: AlertSettings = AlertSettings()
    telegram: TelegramSettings = TelegramSettings()
    storage: StorageSettings = StorageSettings()
    dashboard: DashboardSettings = DashboardSettings()
