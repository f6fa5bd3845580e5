"""Tests for racing lifecycle calls on separate sessions (file-backed SQLite).

Each session gets its own connection, so two services only see each other's
writes after commit, the way concurrent REST or MCP requests do.
"""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from confidential_swap.domain.clock import FixedClock
from confidential_swap.domain.derivation import derive_address, find_address, swap_seeds
from confidential_swap.domain.exceptions import (
    DuplicateRecordError,
    InvalidBumpError,
    InvalidSwapStatusError,
    SwapError,
    SwapNotExecutedError,
)
from confidential_swap.domain.records import SwapRecord
from confidential_swap.infrastructure.database.orm_models import Base, SwapAccount
from confidential_swap.infrastructure.database.repositories import SwapRepository
from confidential_swap.services.swap_service import SwapService

NOW = 1_700_000_000


@pytest_asyncio.fixture
async def file_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'swaps.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


def _next_valid_bump(owner: str, program_id: bytes) -> int:
    seeds = swap_seeds(owner)
    _, canonical = find_address(seeds, program_id)
    for bump in range(canonical - 1, -1, -1):
        try:
            derive_address(seeds, bump, program_id)
            return bump
        except InvalidBumpError:
            continue
    raise AssertionError("no second valid bump")


async def _attempt(factory, clock, settings, op):
    """Run ``op`` in its own committed-or-rolled-back session."""
    async with factory() as session:
        try:
            result = await op(SwapService(session, clock=clock, settings=settings))
            await session.commit()
            return result
        except SwapError as exc:
            await session.rollback()
            return exc


async def _initialized(factory, clock, settings, owner: str) -> str:
    snapshot = await _attempt(
        factory, clock, settings, lambda s: s.initialize_swap(owner, 1000, 950)
    )
    return snapshot.address


async def _owner_rows(factory, owner: str) -> int:
    async with factory() as session:
        result = await session.execute(
            select(func.count()).select_from(SwapAccount).where(SwapAccount.owner == owner)
        )
        return result.scalar_one()


class TestOneRecordPerOwner:
    @pytest.mark.asyncio
    async def test_store_rejects_second_owner_row(
        self, file_factory, clock, settings, owner: str
    ) -> None:
        await _initialized(file_factory, clock, settings, owner)
        bump = _next_valid_bump(owner, settings.program_id_bytes)
        address = derive_address(swap_seeds(owner), bump, settings.program_id_bytes).hex()

        async with file_factory() as session:
            repo = SwapRepository(session)
            record = SwapRecord(
                owner=owner, amount_in=5, minimum_amount_out=5, derivation_bump=bump
            )
            with pytest.raises(DuplicateRecordError):
                await repo.insert(address, record)
            await session.rollback()

        assert await _owner_rows(file_factory, owner) == 1

    @pytest.mark.asyncio
    async def test_racing_initializes_with_different_bumps(
        self, file_factory, clock, settings, owner: str
    ) -> None:
        other_bump = _next_valid_bump(owner, settings.program_id_bytes)
        results = await asyncio.gather(
            _attempt(file_factory, clock, settings, lambda s: s.initialize_swap(owner, 1000, 950)),
            _attempt(
                file_factory,
                clock,
                settings,
                lambda s: s.initialize_swap(owner, 1000, 950, bump=other_bump),
            ),
        )

        errors = [r for r in results if isinstance(r, SwapError)]
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateRecordError)
        assert await _owner_rows(file_factory, owner) == 1


class TestStaleTransitions:
    @pytest.mark.asyncio
    async def test_stale_execute_loses(self, file_factory, clock, settings, owner: str) -> None:
        address = await _initialized(file_factory, clock, settings, owner)

        async with file_factory() as first, file_factory() as second:
            winner = SwapService(first, clock=clock, settings=settings)
            loser = SwapService(second, clock=FixedClock(NOW + 100), settings=settings)
            await winner.get_swap(address)
            await loser.get_swap(address)

            await winner.execute_swap(address)
            await first.commit()

            with pytest.raises(InvalidSwapStatusError) as exc_info:
                await loser.execute_swap(address)
            assert exc_info.value.current_status == "Executed"
            await second.rollback()

        async with file_factory() as session:
            service = SwapService(session, clock=clock, settings=settings)
            assert (await service.get_swap(address)).record.executed_at == NOW
            events = await service.get_events(address)
            assert [e.event_type for e in events].count("SWAP_EXECUTED") == 1

    @pytest.mark.asyncio
    async def test_stale_finalize_loses(self, file_factory, clock, settings, owner: str) -> None:
        address = await _initialized(file_factory, clock, settings, owner)
        await _attempt(file_factory, clock, settings, lambda s: s.execute_swap(address))

        async with file_factory() as first, file_factory() as second:
            winner = SwapService(first, clock=clock, settings=settings)
            loser = SwapService(second, clock=clock, settings=settings)
            await winner.get_swap(address)
            await loser.get_swap(address)

            await winner.finalize_swap(address)
            await first.commit()

            with pytest.raises(SwapNotExecutedError) as exc_info:
                await loser.finalize_swap(address)
            assert exc_info.value.current_status == "Finalized"
            await second.rollback()

    @pytest.mark.asyncio
    async def test_racing_executes(self, file_factory, clock, settings, owner: str) -> None:
        address = await _initialized(file_factory, clock, settings, owner)
        results = await asyncio.gather(
            _attempt(file_factory, clock, settings, lambda s: s.execute_swap(address)),
            _attempt(
                file_factory, FixedClock(NOW + 100), settings, lambda s: s.execute_swap(address)
            ),
        )

        errors = [r for r in results if isinstance(r, SwapError)]
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidSwapStatusError)

        async with file_factory() as session:
            events = await SwapService(session, clock=clock, settings=settings).get_events(address)
            assert [e.event_type for e in events].count("SWAP_EXECUTED") == 1
