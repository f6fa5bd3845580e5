"""MCP tool definitions for the confidential swap service.

Exposes the swap lifecycle through the Model Context Protocol so agents can
discover and drive it:

    - initialize_swap: Create a swap record (owner is the signer)
    - delegate_swap: Hand custody to a TEE validator
    - execute_swap: Record private execution (Pending -> Executed)
    - finalize_swap: Commit back to public state (Executed -> Finalized)
    - check_status: Current status and allowed next transitions

Mounted into FastAPI at /mcp in main.py. Each tool runs in its own session
and transaction, since FastAPI's Depends is not available here.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from mcp.server.fastmcp import FastMCP

from confidential_swap.domain.exceptions import SwapError
from confidential_swap.logging_config import get_logger
from confidential_swap.services.swap_service import SwapService

logger = get_logger(__name__)

mcp = FastMCP(
    "Confidential Swap",
    json_response=True,
)


async def _run(tool: str, op: Callable[[SwapService], Awaitable[dict]]) -> dict:
    """Run ``op`` in a fresh committed-or-rolled-back session."""
    from confidential_swap.infrastructure.database.engine import _get_session_factory

    factory = _get_session_factory()
    try:
        async with factory() as session:
            try:
                result = await op(SwapService(session))
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return result
    except SwapError as exc:
        logger.warning(f"mcp.{tool}.rejected", code=exc.code, error=exc.message)
        return {"error": exc.code, "message": exc.message}
    except Exception as exc:
        logger.exception(f"mcp.{tool}.error")
        return {"error": "INTERNAL_ERROR", "message": str(exc)}


@mcp.tool()
async def initialize_swap(owner: str, amount_in: int, minimum_amount_out: int) -> dict:
    """Create a confidential swap record.

    Args:
        owner: Your 32-byte identity as hex. You are the signer.
        amount_in: Quantity you offer (positive u64).
        minimum_amount_out: Slippage floor (stored only).

    Returns:
        The record, including the address needed for every later call.
    """

    async def op(svc: SwapService) -> dict:
        snapshot = await svc.initialize_swap(owner, amount_in, minimum_amount_out)
        return {
            **snapshot.to_dict(),
            "message": "Swap initialized. Next step: delegate it to a TEE validator.",
        }

    return await _run("initialize_swap", op)


@mcp.tool()
async def delegate_swap(address: str, validator: str, payer: str) -> dict:
    """Delegate a swap record to a TEE validator for private execution.

    Args:
        address: Swap record address (hex).
        validator: TEE validator identity (hex).
        payer: Identity paying for the delegation (hex); need not be the owner.
    """

    async def op(svc: SwapService) -> dict:
        snapshot = await svc.delegate_swap(address, validator, payer)
        return {**snapshot.to_dict(), "message": f"Custody held by {snapshot.custodian}."}

    return await _run("delegate_swap", op)


@mcp.tool()
async def execute_swap(address: str) -> dict:
    """Mark a Pending swap as executed by the TEE.

    Args:
        address: Swap record address (hex).
    """

    async def op(svc: SwapService) -> dict:
        snapshot = await svc.execute_swap(address)
        return {**snapshot.to_dict(), "message": "Swap executed. Next step: finalize."}

    return await _run("execute_swap", op)


@mcp.tool()
async def finalize_swap(address: str, payer: str = "") -> dict:
    """Commit an executed swap back to public state.

    Args:
        address: Swap record address (hex).
        payer: Identity paying for the commit (hex, optional).
    """

    async def op(svc: SwapService) -> dict:
        snapshot = await svc.finalize_swap(address, payer=payer or None)
        return {**snapshot.to_dict(), "message": "Swap finalized."}

    return await _run("finalize_swap", op)


@mcp.tool()
async def check_status(address: str) -> dict:
    """Check the current status of a swap record.

    Args:
        address: Swap record address (hex).

    Returns:
        Status, executed_at, custodian and allowed next transitions.
    """

    async def op(svc: SwapService) -> dict:
        return await svc.get_status(address)

    return await _run("check_status", op)
