"""Health check endpoints."""

import time

from fastapi import APIRouter, Request

from solswap import __version__

router = APIRouter()


@router.get("/")
async def index():
    return {
        "service": "solswap",
        "version": __version__,
        "endpoints": {"swap": "POST /swap", "health": "GET /health"},
    }


@router.get("/health")
async def health_check(request: Request):
    """Health check with egress proxy pool status."""
    state = request.app.state
    proxy_pool = state.proxy_pool
    proxies = (
        proxy_pool.health()
        if proxy_pool is not None
        else {"total": 0, "available": 0, "failed": 0, "health_percentage": 100}
    )
    return {
        "status": "healthy",
        "service": "solswap",
        "version": __version__,
        "uptime_seconds": round(time.time() - state.started_at, 1),
        "proxies": proxies,
    }


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Health check with redacted configuration."""
    return {
        "status": "healthy",
        "service": "solswap",
        "version": __version__,
        "config": request.app.state.settings.get_safe_dict(),
    }
