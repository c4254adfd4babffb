"""Entry point for the futures signal radar.

Wires all components together, optionally embeds the FastAPI status API,
and starts the scanner. When the API is enabled (default) the scanner and
the API share one asyncio event loop via uvicorn's programmatic server and
FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown (through uvicorn when the API
is enabled, through loop signal handlers when headless).

Component wiring order (in _build_components):
1. MirrorPool + ResilientFetcher (transport)
2. BinanceClient (market data)
3. SnapshotBuilder, SymbolUniverse
4. ScoringEngine
5. GateState + AlertGate
6. TelegramNotifier
7. SignalDatabase + SignalStore
8. Scanner
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from radar.alerts.gate import AlertGate
from radar.alerts.models import GateState
from radar.config import SPOT_MIRRORS, AppSettings
from radar.data.database import SignalDatabase
from radar.data.store import SignalStore
from radar.exchange.binance import BinanceClient
from radar.exchange.fetcher import ResilientFetcher
from radar.exchange.mirrors import MirrorPool
from radar.logging import get_logger, setup_logging
from radar.market_data.snapshot import SnapshotBuilder
from radar.market_data.universe import SymbolUniverse
from radar.notify.telegram import TelegramNotifier
from radar.orchestrator import Scanner
from radar.signals.engine import ScoringEngine


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the component graph from settings.

    Does NOT open the database or any network session; that happens in the
    lifespan (API mode) or run() (headless mode).

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("radar.main")

    mirrors = settings.fetch.mirrors
    if settings.fetch.market == "spot" and "fapi." in mirrors[0]:
        mirrors = SPOT_MIRRORS
    pool = MirrorPool(mirrors)
    fetcher = ResilientFetcher(pool, settings.fetch)
    client = BinanceClient(fetcher, market=settings.fetch.market)

    builder = SnapshotBuilder(client, settings.scan)
    universe = SymbolUniverse(client, settings.scan)

    engine = ScoringEngine(
        settings.classifier,
        settings.compression,
        primary_resolution=settings.scan.primary_resolution,
        confirm_resolution=settings.scan.confirm_resolution,
        fast_resolution=settings.scan.fast_resolution,
    )

    gate_state = GateState()
    gate = AlertGate(
        gate_state,
        cooldown_seconds=settings.alert.cooldown_minutes * 60,
        active_ttl_seconds=settings.alert.active_ttl_hours * 3600,
    )

    notifier = TelegramNotifier(settings.telegram)
    if not notifier.enabled():
        logger.warning("telegram_not_configured", note="Alerts will only be logged.")

    database = SignalDatabase(settings.storage.db_path)
    store = SignalStore(
        database,
        max_rows=settings.storage.max_emitted_rows,
        trim_to=settings.storage.trim_to_rows,
    )

    scanner = Scanner(
        settings=settings,
        builder=builder,
        engine=engine,
        gate=gate,
        universe=universe,
        notifier=notifier,
        store=store,
    )

    return {
        "mirror_pool": pool,
        "client": client,
        "gate_state": gate_state,
        "gate": gate,
        "notifier": notifier,
        "database": database,
        "store": store,
        "scanner": scanner,
    }


def _setup_signal_handlers(scanner: Scanner, scan_task: asyncio.Task | None = None) -> None:
    """Register SIGINT/SIGTERM handlers that stop the scanner.

    The running scan task is cancelled as well so a long inter-cycle sleep
    does not delay shutdown. Must be called after the event loop is running.
    """
    logger = get_logger("radar.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(scanner.stop())
        if scan_task is not None and not scan_task.done():
            scan_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle inside the FastAPI application.

    On startup: opens the database, exposes the scanner on app.state, and
    starts the scan loop as a background task.

    On shutdown: stops the scanner, cancels its task, closes the market data
    client and the database.
    """
    logger = get_logger("radar.main")
    components = app.state.components

    await components["database"].connect()
    scanner: Scanner = components["scanner"]
    app.state.scanner = scanner

    # uvicorn owns SIGINT/SIGTERM here; its shutdown runs the teardown below
    scan_task = asyncio.create_task(scanner.start())

    logger.info("lifespan_started", market=app.state.settings.fetch.market)

    try:
        yield
    finally:
        await scanner.stop()
        scan_task.cancel()
        try:
            await scan_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            # Scan loop died before shutdown
            logger.error("scan_task_failed", error=str(e), exc_info=True)

        await components["client"].close()
        await components["database"].close()
        logger.info("signal_radar_stopped")


async def run() -> None:
    """Run the signal radar, with or without the status API."""
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("radar.main")

    components = _build_components(settings)

    if settings.dashboard.enabled:
        from radar.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            market=settings.fetch.market,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
        return

    logger.info(
        "starting_headless",
        market=settings.fetch.market,
        batch_size=settings.scan.batch_size,
        cooldown_minutes=settings.alert.cooldown_minutes,
    )
    scanner: Scanner = components["scanner"]
    try:
        await components["database"].connect()
        scan_task = asyncio.create_task(scanner.start())
        _setup_signal_handlers(scanner, scan_task)
        try:
            await scan_task
        except asyncio.CancelledError:
            pass
    finally:
        await components["client"].close()
        await components["database"].close()
        logger.info("signal_radar_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
