"""Repository classes for the swap record store.

Repositories encapsulate all SQL and hand domain SwapRecord values to the
service layer. They accept an AsyncSession and never manage their own
transactions (that's the caller's responsibility): an operation's writes
become visible together on commit or disappear together on rollback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from confidential_swap.domain.exceptions import DuplicateRecordError, SwapNotFoundError
from confidential_swap.infrastructure.database.orm_models import SwapAccount, SwapEvent

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from confidential_swap.domain.enums import EventType, SwapStatus
    from confidential_swap.domain.records import SwapRecord


class SwapRepository:
    """Address-keyed access to swap records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_row(self, address: str) -> SwapAccount | None:
        return await self._session.get(SwapAccount, address)

    async def get(self, address: str) -> SwapRecord | None:
        """Fetch the record at ``address``, or None."""
        row = await self._get_row(address)
        return row.to_record() if row is not None else None

    async def get_or_raise(self, address: str) -> SwapRecord:
        record = await self.get(address)
        if record is None:
            raise SwapNotFoundError(address)
        return record

    async def get_by_owner(self, owner: str) -> list[tuple[str, SwapRecord]]:
        """All ``(address, record)`` pairs owned by ``owner``."""
        result = await self._session.execute(
            select(SwapAccount).where(SwapAccount.owner == owner)
        )
        return [(row.address, row.to_record()) for row in result.scalars().all()]

    async def insert(self, address: str, record: SwapRecord) -> SwapRecord:
        """Create a new record.

        An occupied address, or an owner that already has a record (unique
        owner index), raises DuplicateRecordError.
        """
        if await self._get_row(address) is not None:
            raise DuplicateRecordError(address)
        row = SwapAccount(address=address)
        row.apply(record)
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as err:
            raise DuplicateRecordError(address) from err
        return record

    async def put_if_status(
        self, address: str, expected_status: SwapStatus, record: SwapRecord
    ) -> bool:
        """Overwrite the record only while its stored status is ``expected_status``.

        A single conditional UPDATE, so two callers racing on the same
        transition cannot both apply it. Returns False if no row matched.
        """
        stmt = (
            update(SwapAccount)
            .where(
                SwapAccount.address == address,
                SwapAccount.status == expected_status.value,
            )
            .values(
                owner=record.owner,
                amount_in=record.amount_in,
                minimum_amount_out=record.minimum_amount_out,
                status=record.status.value,
                executed_at=record.executed_at,
                derivation_bump=record.derivation_bump,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def current_status(self, address: str) -> str | None:
        """Status as stored right now, bypassing rows already loaded in the session."""
        result = await self._session.execute(
            select(SwapAccount.status).where(SwapAccount.address == address)
        )
        return result.scalar_one_or_none()

    async def get_custody(self, address: str) -> tuple[str | None, str | None]:
        """Return ``(custodian, delegated_by)`` for the record at ``address``."""
        row = await self._get_row(address)
        if row is None:
            raise SwapNotFoundError(address)
        return row.custodian, row.delegated_by

    async def set_custody(self, address: str, custodian: str, delegated_by: str) -> None:
        row = await self._get_row(address)
        if row is None:
            raise SwapNotFoundError(address)
        row.custodian = custodian
        row.delegated_by = delegated_by
        await self._session.flush()

    async def delete(self, address: str) -> None:
        row = await self._get_row(address)
        if row is None:
            raise SwapNotFoundError(address)
        await self._session.delete(row)
        await self._session.flush()


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        address: str,
        event_type: EventType,
        old_status: SwapStatus | None,
        new_status: SwapStatus | None,
        actor: str = "SYSTEM",
        metadata: dict | None = None,
    ) -> SwapEvent:
        """Append a new audit event. This is the ONLY write operation allowed."""
        evt = SwapEvent(
            address=address,
            event_type=event_type.value,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value if new_status else None,
            actor=actor,
            metadata_json=metadata,
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def get_by_address(self, address: str) -> list[SwapEvent]:
        """Fetch all events for an address in chronological order."""
        result = await self._session.execute(
            select(SwapEvent)
            .where(SwapEvent.address == address)
            .order_by(SwapEvent.id.asc())
        )
        return list(result.scalars().all())
