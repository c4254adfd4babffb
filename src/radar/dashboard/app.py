"""FastAPI status application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from radar.dashboard.routes import actions, api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI status application.

    Route handlers read the scanner from ``app.state.scanner``; main.py sets
    it inside the lifespan, tests set it directly.

    Args:
        lifespan: Optional async context manager for application lifespan events.

    Returns:
        Configured FastAPI application with JSON and action routers.
    """
    app = FastAPI(
        title="Futures Signal Radar",
        lifespan=lifespan,
    )
    app.state.scanner = None

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
