"""Swap build endpoint.

Returns unsigned transactions only. Clients sign and submit every returned
transaction themselves, in the order given.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from solswap.errors import (
    CompileError,
    SwapBuildError,
    TransientNetworkError,
    UnsupportedVenue,
    ValidationError,
    VenueQuoteError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS: dict[type[SwapBuildError], int] = {
    ValidationError: 400,
    UnsupportedVenue: 400,
    VenueQuoteError: 400,
    CompileError: 422,
    TransientNetworkError: 503,
}


def status_for(error: SwapBuildError) -> int:
    for error_cls, status in ERROR_STATUS.items():
        if isinstance(error, error_cls):
            return status
    return 500


@router.post("/swap")
async def build_swap(request: Request, payload: Any = Body(...)) -> JSONResponse:
    """Build unsigned swap transaction(s).

    Body fields (camelCase, optionally nested under "params"): inputMint,
    outputMint, amount, slippageBps, userWalletAddress, type, and optional
    priorityFee, computeUnitPrice, swapMode.
    """
    orchestrator = request.app.state.orchestrator
    try:
        result = await orchestrator.build(payload)
    except SwapBuildError as e:
        status = status_for(e)
        logger.warning(f"Swap build rejected ({status}): {e}")
        return JSONResponse(status_code=status, content=e.to_dict())

    return JSONResponse(status_code=200, content=result.to_dict())
