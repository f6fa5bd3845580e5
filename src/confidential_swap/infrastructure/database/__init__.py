"""Swap record store — engine, ORM models, and repositories."""

from confidential_swap.infrastructure.database.engine import (
    close_db,
    get_async_session,
    init_db,
)
from confidential_swap.infrastructure.database.orm_models import (
    Base,
    SwapAccount,
    SwapEvent,
)
from confidential_swap.infrastructure.database.repositories import (
    EventRepository,
    SwapRepository,
)

__all__ = [
    "Base",
    "SwapAccount",
    "SwapEvent",
    "EventRepository",
    "SwapRepository",
    "get_async_session",
    "init_db",
    "close_db",
]
