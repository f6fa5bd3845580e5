"""FastAPI dependency injection providers.

Used with Depends() in route handlers; tests override them through
app.dependency_overrides to pin the clock or swap the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from confidential_swap.config import Settings, get_settings
from confidential_swap.domain.clock import Clock, SystemClock
from confidential_swap.infrastructure.database.engine import get_async_session

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncSession

_clock = SystemClock()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_clock() -> Clock:
    """Provide the clock oracle."""
    return _clock


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()
