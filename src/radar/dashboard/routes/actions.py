"""POST endpoints for runtime overrides and active-signal release."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from radar.config import RuntimeConfig

log = structlog.get_logger(__name__)

router = APIRouter()


class ConfigUpdate(BaseModel):
    """Runtime overrides; omitted fields keep their configured values."""

    min_confidence: float | None = Field(default=None, gt=0)
    cooldown_minutes: float | None = Field(default=None, ge=0)
    batch_size: int | None = Field(default=None, ge=1)


@router.post("/config")
async def update_config(request: Request, update: ConfigUpdate) -> JSONResponse:
    """Replace the runtime config overlay; applied at the next cycle."""
    scanner = request.app.state.scanner
    if scanner is None:
        return JSONResponse(status_code=503, content={"error": "scanner not ready"})

    rc = RuntimeConfig(
        min_confidence=update.min_confidence,
        cooldown_minutes=update.cooldown_minutes,
        batch_size=update.batch_size,
    )
    scanner.runtime_config = rc
    log.info("config_updated_via_api", config=str(rc))
    return JSONResponse(content=update.model_dump())


@router.post("/signals/{symbol}/release")
async def release_signal(request: Request, symbol: str) -> JSONResponse:
    """Close the active signal for a symbol (exit monitor hook)."""
    scanner = request.app.state.scanner
    if scanner is None:
        return JSONResponse(status_code=503, content={"error": "scanner not ready"})

    symbol = symbol.upper()
    released = await scanner.release(symbol)
    if not released:
        return JSONResponse(status_code=404, content={"symbol": symbol, "released": False})
    log.info("active_signal_released_via_api", symbol=symbol)
    return JSONResponse(content={"symbol": symbol, "released": True})
