#!/usr/bin/env python3
"""Confidential Swap — End-to-End Simulation.

Drives the swap lifecycle against an in-memory SQLite record store:

    Scenario 1: Happy Path
        - User initializes a swap (1000 in, 950 minimum out)
        - Payer delegates it to the TEE validator
        - Validator executes it, payer finalizes it
        - A second execute is rejected with INVALID_SWAP_STATUS

    Scenario 2: Execute Without Delegation
        - Delegation is custody metadata, not a gate: execute succeeds directly

    Scenario 3: Out-of-Order Calls
        - finalize before execute -> SWAP_NOT_EXECUTED
        - second initialize for the same owner -> DUPLICATE_RECORD
        - close by a stranger -> UNAUTHORIZED, close by the owner -> record gone

Usage:
    uv run python simulation.py
    uv run python simulation.py --scenario 1
"""

from __future__ import annotations

import argparse
import asyncio
import secrets
from dataclasses import dataclass, field

from confidential_swap.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

_engine = None
_session_factory = None


# ---------------------------------------------------------------------------
# Database lifecycle helpers
# ---------------------------------------------------------------------------
async def init_database() -> None:
    """Create an in-memory SQLite store with all tables."""
    global _engine, _session_factory
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from confidential_swap.infrastructure.database.orm_models import Base

    _engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.sqlite_initialized")


async def shutdown_database() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def call(op_name: str, *args, **kwargs):
    """Run one service operation in its own transaction; log and swallow domain rejections."""
    from confidential_swap.domain.exceptions import SwapError
    from confidential_swap.services.swap_service import SwapService

    async with _session_factory() as session:
        svc = SwapService(session)
        try:
            result = await getattr(svc, op_name)(*args, **kwargs)
            await session.commit()
            return result
        except SwapError as exc:
            await session.rollback()
            logger.warning("simulation.rejected", op=op_name, code=exc.code)
            return exc


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
def _identity() -> str:
    return secrets.token_bytes(32).hex()


@dataclass
class Actors:
    user: str = field(default_factory=_identity)
    payer: str = field(default_factory=_identity)
    validator: str = field(default_factory=_identity)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------
async def scenario_happy_path() -> bool:
    actors = Actors()
    swap = await call("initialize_swap", actors.user, 1000, 950)
    await call("delegate_swap", swap.address, actors.validator, actors.payer)
    executed = await call("execute_swap", swap.address)
    finalized = await call("finalize_swap", swap.address, payer=actors.payer)
    again = await call("execute_swap", swap.address)

    ok = (
        executed.record.executed_at > 0
        and finalized.record.status == "Finalized"
        and finalized.custodian == actors.validator
        and getattr(again, "code", None) == "INVALID_SWAP_STATUS"
    )
    logger.info("scenario.happy_path", passed=ok)
    return ok


async def scenario_execute_without_delegation() -> bool:
    actors = Actors()
    swap = await call("initialize_swap", actors.user, 500, 0)
    executed = await call("execute_swap", swap.address)

    ok = executed.record.status == "Executed" and executed.custodian is None
    logger.info("scenario.execute_without_delegation", passed=ok)
    return ok


async def scenario_out_of_order() -> bool:
    actors = Actors()
    swap = await call("initialize_swap", actors.user, 42, 40)
    early = await call("finalize_swap", swap.address)
    duplicate = await call("initialize_swap", actors.user, 7, 7)
    await call("execute_swap", swap.address)
    await call("finalize_swap", swap.address)
    stranger = await call("close_swap", swap.address, _identity())
    await call("close_swap", swap.address, actors.user)
    status = await call("get_swap", swap.address)

    ok = (
        getattr(early, "code", None) == "SWAP_NOT_EXECUTED"
        and getattr(duplicate, "code", None) == "DUPLICATE_RECORD"
        and getattr(stranger, "code", None) == "UNAUTHORIZED"
        and getattr(status, "code", None) == "SWAP_NOT_FOUND"
    )
    logger.info("scenario.out_of_order", passed=ok)
    return ok


SCENARIOS = {
    1: scenario_happy_path,
    2: scenario_execute_without_delegation,
    3: scenario_out_of_order,
}


async def main(selected: int | None) -> int:
    await init_database()
    try:
        results = {}
        for number, scenario in SCENARIOS.items():
            if selected is None or selected == number:
                results[number] = await scenario()
    finally:
        await shutdown_database()

    for number, passed in results.items():
        logger.info("simulation.result", scenario=number, passed=passed)
    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Confidential swap simulation")
    parser.add_argument("--scenario", type=int, choices=sorted(SCENARIOS), default=None)
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.scenario)))
