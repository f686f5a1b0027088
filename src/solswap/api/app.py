"""FastAPI application factory."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solswap import __version__
from solswap.cache.selection import create_selection_cache
from solswap.chain.reader import SolanaChainReader
from solswap.config import Settings, get_settings
from solswap.egress.client import EgressClient
from solswap.egress.proxy_pool import ProxyPool
from solswap.orchestrator import SwapOrchestrator

logger = logging.getLogger(__name__)


def create_orchestrator(settings: Settings) -> tuple[SwapOrchestrator, ProxyPool]:
    """Wire the process-lifetime collaborators for the swap builder."""
    proxy_pool = ProxyPool(settings.proxy_list, reset_interval=settings.proxy_reset_seconds)
    egress = EgressClient(
        proxy_pool=proxy_pool,
        proxied_hosts=settings.proxied_host_list,
        retries=settings.http_retries,
        timeout=settings.http_timeout_seconds,
    )
    chain = SolanaChainReader(settings.rpc_url, settings.rpc_commitment, settings.http_timeout_seconds)
    cache = create_selection_cache(settings)
    orchestrator = SwapOrchestrator(chain=chain, egress=egress, cache=cache, settings=settings)
    return orchestrator, proxy_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    owns_resources = app.state.orchestrator is None
    if owns_resources:
        app.state.orchestrator, app.state.proxy_pool = create_orchestrator(app.state.settings)
        logger.info("Swap builder initialized")
    yield
    # Shutdown
    if owns_resources:
        orchestrator = app.state.orchestrator
        await orchestrator.egress.close()
        await orchestrator.chain.close()
        await orchestrator.cache.close()
        logger.info("Swap builder resources closed")


def create_app(
    orchestrator: Optional[SwapOrchestrator] = None,
    proxy_pool: Optional[ProxyPool] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Solswap API",
        description="Builds unsigned Solana swap transactions for client-side signing",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.proxy_pool = proxy_pool
    app.state.started_at = time.time()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from solswap.api.routes import health, swap

    app.include_router(health.router, tags=["Health"])
    app.include_router(swap.router, tags=["Swap"])

    return app
