"""JSON read endpoints: scanner status, active signals, recent signals, on-demand analysis."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from radar.exceptions import DataUnavailable

log = structlog.get_logger(__name__)

router = APIRouter()


def _scanner_or_503(request: Request):  # type: ignore[no-untyped-def]
    scanner = request.app.state.scanner
    if scanner is None:
        return None, JSONResponse(status_code=503, content={"error": "scanner not ready"})
    return scanner, None


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Scanner status with the last cycle report."""
    scanner, error = _scanner_or_503(request)
    if error is not None:
        return error
    return JSONResponse(content=await scanner.get_status())


@router.get("/signals/active")
async def get_active_signals(request: Request) -> JSONResponse:
    """Open active signals, oldest first."""
    scanner, error = _scanner_or_503(request)
    if error is not None:
        return error
    return JSONResponse(content=await scanner.active_signals())


@router.get("/signals/recent")
async def get_recent_signals(
    request: Request,
    limit: int = Query(50, ge=1, le=500),
) -> JSONResponse:
    """Most recently emitted signals, newest first."""
    scanner, error = _scanner_or_503(request)
    if error is not None:
        return error
    return JSONResponse(content=await scanner.recent_signals(limit))


@router.get("/analyze/{symbol}")
async def analyze_symbol(request: Request, symbol: str) -> JSONResponse:
    """Score one symbol now without touching the alert gate."""
    scanner, error = _scanner_or_503(request)
    if error is not None:
        return error
    symbol = symbol.upper()
    try:
        result = await scanner.analyze(symbol)
    except DataUnavailable as e:
        log.warning("analyze_data_unavailable", symbol=symbol, error=str(e))
        return JSONResponse(status_code=502, content={"symbol": symbol, "error": str(e)})
    return JSONResponse(content=result)
