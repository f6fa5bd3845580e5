"""Shared test fixtures for the confidential swap test suite.

Provides:
    - Deterministic identities (owner, validator, payer)
    - Settings bound to an in-memory SQLite store
    - An async session per test (aiosqlite, StaticPool)
    - A pinned clock and a SwapService wired to all of the above
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from confidential_swap.config import Settings
from confidential_swap.domain.clock import FixedClock
from confidential_swap.infrastructure.database.orm_models import Base
from confidential_swap.services.swap_service import SwapService

NOW = 1_700_000_000

# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def owner() -> str:
    return "11" * 32


@pytest.fixture
def other_owner() -> str:
    return "22" * 32


@pytest.fixture
def validator() -> str:
    return "a1" * 32


@pytest.fixture
def payer() -> str:
    return "b2" * 32


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="development",
        database_url="sqlite+aiosqlite:///:memory:",
        program_id="00" * 32,
        allowed_validators="",
        allow_redelegation=False,
    )


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def service(session, clock, settings) -> SwapService:
    return SwapService(session, clock=clock, settings=settings)
