"""Swap lifecycle REST API routes.

One endpoint per lifecycle operation, plus reads. The MCP tools in
mcp_server/tools.py call the same service layer.

Routes:
    POST   /api/v1/swaps                      — initialize_swap
    POST   /api/v1/swaps/{address}/delegate   — delegate_swap
    POST   /api/v1/swaps/{address}/execute    — execute_swap
    POST   /api/v1/swaps/{address}/finalize   — finalize_swap
    POST   /api/v1/swaps/{address}/close      — close a finalized swap
    GET    /api/v1/swaps/{address}            — record details
    GET    /api/v1/swaps/{address}/status     — status + allowed events
    GET    /api/v1/swaps/{address}/events     — audit trail
    GET    /api/v1/swaps/derive/{owner}       — pure address derivation
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from confidential_swap.api.deps import get_app_settings, get_clock, get_db_session
from confidential_swap.config import Settings
from confidential_swap.domain.clock import Clock
from confidential_swap.domain.derivation import swap_address
from confidential_swap.domain.keys import key_hex
from confidential_swap.schemas.swap import (
    CloseSwapRequest,
    DelegateSwapRequest,
    DerivedAddressResponse,
    FinalizeSwapRequest,
    InitializeSwapRequest,
    SwapEventResponse,
    SwapResponse,
    SwapStatusResponse,
)
from confidential_swap.services.swap_service import SwapService, SwapSnapshot

router = APIRouter(prefix="/api/v1/swaps", tags=["Swaps"])


def _service(
    session: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings),
) -> SwapService:
    return SwapService(session, clock=clock, settings=settings)


def _response(snapshot: SwapSnapshot) -> SwapResponse:
    return SwapResponse(**snapshot.to_dict())


# ---------------------------------------------------------------------------
# Derivation (declared before /{address} so it is not shadowed)
# ---------------------------------------------------------------------------


@router.get(
    "/derive/{owner}",
    response_model=DerivedAddressResponse,
    summary="Derive the swap address for an owner",
)
async def derive(
    owner: str,
    settings: Settings = Depends(get_app_settings),
) -> DerivedAddressResponse:
    """Compute where the owner's swap record lives, without touching storage."""
    owner = key_hex(owner)
    address, bump = swap_address(owner, settings.program_id_bytes)
    return DerivedAddressResponse(owner=owner, address=address.hex(), bump=bump)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=SwapResponse,
    status_code=201,
    summary="Initialize a swap record",
)
async def initialize_swap(
    request: InitializeSwapRequest,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    """Create the owner's swap record in Pending state."""
    snapshot = await svc.initialize_swap(
        owner=request.owner,
        amount_in=request.amount_in,
        minimum_amount_out=request.minimum_amount_out,
        bump=request.bump,
    )
    return _response(snapshot)


@router.post(
    "/{address}/delegate",
    response_model=SwapResponse,
    summary="Delegate execution custody to a TEE validator",
)
async def delegate_swap(
    address: str,
    request: DelegateSwapRequest,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    snapshot = await svc.delegate_swap(address, request.validator, request.payer)
    return _response(snapshot)


@router.post(
    "/{address}/execute",
    response_model=SwapResponse,
    summary="Record private execution",
)
async def execute_swap(
    address: str,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    """Pending -> Executed."""
    return _response(await svc.execute_swap(address))


@router.post(
    "/{address}/finalize",
    response_model=SwapResponse,
    summary="Commit the swap back to public state",
)
async def finalize_swap(
    address: str,
    request: FinalizeSwapRequest | None = None,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    """Executed -> Finalized."""
    payer = request.payer if request else None
    return _response(await svc.finalize_swap(address, payer=payer))


@router.post(
    "/{address}/close",
    response_model=SwapResponse,
    summary="Close a finalized swap (owner only)",
)
async def close_swap(
    address: str,
    request: CloseSwapRequest,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    return _response(await svc.close_swap(address, request.signer))


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/{address}",
    response_model=SwapResponse,
    summary="Get swap details",
)
async def get_swap(
    address: str,
    svc: SwapService = Depends(_service),
) -> SwapResponse:
    return _response(await svc.get_swap(address))


@router.get(
    "/{address}/status",
    response_model=SwapStatusResponse,
    summary="Get lightweight status check",
)
async def get_status(
    address: str,
    svc: SwapService = Depends(_service),
) -> SwapStatusResponse:
    """Return the current status and allowed next transitions."""
    return SwapStatusResponse(**await svc.get_status(address))


@router.get(
    "/{address}/events",
    response_model=list[SwapEventResponse],
    summary="Get audit trail",
)
async def get_events(
    address: str,
    svc: SwapService = Depends(_service),
) -> list[SwapEventResponse]:
    events = await svc.get_events(address)
    return [SwapEventResponse.model_validate(e) for e in events]
