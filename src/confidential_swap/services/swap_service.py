"""Swap Service — the lifecycle controller for confidential swap records.

This is the application layer that coordinates between:
    - Key derivation (where a record lives)
    - Authorization guard (address consistency, owner checks)
    - Domain state machine (transition guard)
    - Delegation broker (custody annotation)
    - Repositories (record store + audit trail)

Every operation validates first and writes last, inside the caller's
session. Nothing is written if any check fails, and the session's
commit/rollback makes the writes that do happen all-or-nothing.

Concurrent callers are settled by the store: a status change is written only
if the stored status still matches the one that was validated, and the owner
column is unique. The loser of a race gets the same error as a late caller.

Both REST routes and MCP tools call into this service.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from statemachine.exceptions import TransitionNotAllowed

from confidential_swap.config import get_settings
from confidential_swap.domain.clock import SystemClock
from confidential_swap.domain.derivation import swap_address
from confidential_swap.domain.enums import EventType, SwapStatus
from confidential_swap.domain.exceptions import (
    DuplicateRecordError,
    InvalidAmountError,
    InvalidSwapStatusError,
    SwapError,
    SwapNotExecutedError,
    SwapNotFoundError,
)
from confidential_swap.domain.guard import require_owner, verify_address
from confidential_swap.domain.keys import key_hex
from confidential_swap.domain.records import U64_MAX, SwapRecord
from confidential_swap.domain.state_machine import SwapStateMachine, validate_transition
from confidential_swap.infrastructure.database.repositories import (
    EventRepository,
    SwapRepository,
)
from confidential_swap.logging_config import bind_swap, get_logger
from confidential_swap.services.delegation import DelegationBroker

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from confidential_swap.config import Settings
    from confidential_swap.domain.clock import Clock
    from confidential_swap.infrastructure.database.orm_models import SwapEvent

logger = get_logger(__name__)

_system_clock = SystemClock()


@dataclasses.dataclass(frozen=True)
class SwapSnapshot:
    """A record together with where it lives and who holds custody."""

    address: str
    record: SwapRecord
    custodian: str | None = None

    def to_dict(self) -> dict:
        return {"address": self.address, "custodian": self.custodian, **self.record.to_dict()}


class SwapService:
    """Manages the swap record lifecycle: initialize -> delegate -> execute -> finalize."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or _system_clock
        self._settings = settings or get_settings()
        self._swap_repo = SwapRepository(session)
        self._event_repo = EventRepository(session)
        self._broker = DelegationBroker(self._swap_repo, self._settings)

    # ------------------------------------------------------------------
    # Initialize
    # ------------------------------------------------------------------

    async def initialize_swap(
        self,
        owner: str,
        amount_in: int,
        minimum_amount_out: int,
        bump: int | None = None,
    ) -> SwapSnapshot:
        """Create the owner's swap record in Pending state.

        ``owner`` is the implicit signer. A supplied ``bump`` is used when it
        yields a valid address, otherwise the canonical bump is searched.
        """
        owner = key_hex(owner)
        if not 0 < amount_in <= U64_MAX:
            raise InvalidAmountError("amount_in", amount_in)
        if not 0 <= minimum_amount_out <= U64_MAX:
            raise InvalidAmountError("minimum_amount_out", minimum_amount_out)

        raw_address, used_bump = swap_address(owner, self._settings.program_id_bytes, bump)
        address = raw_address.hex()

        with bind_swap(address):
            existing = await self._swap_repo.get_by_owner(owner)
            if existing:
                raise DuplicateRecordError(existing[0][0])

            record = SwapRecord(
                owner=owner,
                amount_in=amount_in,
                minimum_amount_out=minimum_amount_out,
                status=SwapStatus.PENDING,
                executed_at=0,
                derivation_bump=used_bump,
            )
            await self._swap_repo.insert(address, record)

            await self._event_repo.record(
                address=address,
                event_type=EventType.SWAP_INITIALIZED,
                old_status=None,
                new_status=SwapStatus.PENDING,
                actor=owner,
                metadata={
                    "amount_in": amount_in,
                    "minimum_amount_out": minimum_amount_out,
                    "bump": used_bump,
                },
            )

            logger.info("swap.initialized", owner=owner, amount_in=amount_in, bump=used_bump)
        return SwapSnapshot(address=address, record=record)

    # ------------------------------------------------------------------
    # Delegate
    # ------------------------------------------------------------------

    async def delegate_swap(self, address: str, validator: str, payer: str) -> SwapSnapshot:
        """Hand execution custody to a TEE validator. Status is unchanged.

        The payer signs but need not be the owner; only the address check applies.
        """
        address = key_hex(address)
        validator = key_hex(validator)
        payer = key_hex(payer)

        with bind_swap(address):
            record = await self._load(address)
            changed = await self._broker.delegate(address, record, validator, payer)

            if changed:
                await self._event_repo.record(
                    address=address,
                    event_type=EventType.SWAP_DELEGATED,
                    old_status=record.status,
                    new_status=record.status,
                    actor=payer,
                    metadata={"validator": validator},
                )
                logger.info("swap.delegated", validator=validator, payer=payer)
            else:
                logger.debug("swap.delegation_unchanged", validator=validator)
        return SwapSnapshot(address=address, record=record, custodian=validator)

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    async def execute_swap(self, address: str) -> SwapSnapshot:
        """Pending -> Executed, stamping executed_at from the clock."""
        address = key_hex(address)

        with bind_swap(address):
            record = await self._load(address)
            new_status = self._fire_transition(record, "execute_swap")
            executed_at = self._now()

            updated = dataclasses.replace(record, status=new_status, executed_at=executed_at)
            await self._store_transition(address, record, updated, "execute_swap")

            await self._event_repo.record(
                address=address,
                event_type=EventType.SWAP_EXECUTED,
                old_status=record.status,
                new_status=updated.status,
                metadata={"executed_at": executed_at},
            )

            logger.info("swap.executed", executed_at=executed_at)
            custodian = await self._broker.custodian(address)
        return SwapSnapshot(address=address, record=updated, custodian=custodian)

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------

    async def finalize_swap(self, address: str, payer: str | None = None) -> SwapSnapshot:
        """Executed -> Finalized. The record is immutable afterwards."""
        address = key_hex(address)
        actor = key_hex(payer) if payer else "SYSTEM"

        with bind_swap(address):
            record = await self._load(address)
            new_status = self._fire_transition(record, "finalize_swap")

            updated = dataclasses.replace(record, status=new_status)
            await self._store_transition(address, record, updated, "finalize_swap")

            await self._event_repo.record(
                address=address,
                event_type=EventType.SWAP_FINALIZED,
                old_status=record.status,
                new_status=updated.status,
                actor=actor,
            )

            logger.info("swap.finalized", payer=actor)
            custodian = await self._broker.custodian(address)
        return SwapSnapshot(address=address, record=updated, custodian=custodian)

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    async def close_swap(self, address: str, signer: str) -> SwapSnapshot:
        """Owner-only: remove a Finalized record so the owner can swap again.

        The audit trail is kept.
        """
        address = key_hex(address)
        signer = key_hex(signer)

        with bind_swap(address):
            record = await self._load(address)
            require_owner(record, signer)
            if record.status is not SwapStatus.FINALIZED:
                raise InvalidSwapStatusError(record.status.value, "close_swap")

            await self._swap_repo.delete(address)
            await self._event_repo.record(
                address=address,
                event_type=EventType.SWAP_CLOSED,
                old_status=record.status,
                new_status=None,
                actor=signer,
            )

            logger.info("swap.closed", signer=signer)
        return SwapSnapshot(address=address, record=record)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_swap(self, address: str) -> SwapSnapshot:
        """Get a record (address-checked) or raise SwapNotFoundError."""
        address = key_hex(address)
        record = await self._load(address)
        custodian = await self._broker.custodian(address)
        return SwapSnapshot(address=address, record=record, custodian=custodian)

    async def get_swap_for_owner(self, owner: str) -> SwapSnapshot | None:
        """Return the owner's live record, or None."""
        matches = await self._swap_repo.get_by_owner(key_hex(owner))
        if not matches:
            return None
        address, _ = matches[0]
        return await self.get_swap(address)

    async def get_status(self, address: str) -> dict:
        """Current status, custody and the transitions allowed next."""
        snapshot = await self.get_swap(address)
        sm = SwapStateMachine(current_status=snapshot.record.status.value)
        return {
            "address": snapshot.address,
            "status": snapshot.record.status.value,
            "executed_at": snapshot.record.executed_at,
            "custodian": snapshot.custodian,
            "allowed_events": sm.get_allowed_events(),
        }

    async def get_events(self, address: str) -> list[SwapEvent]:
        """Audit trail for an address, oldest first. Survives close_swap."""
        return await self._event_repo.get_by_address(key_hex(address))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _load(self, address: str) -> SwapRecord:
        record = await self._swap_repo.get_or_raise(address)
        verify_address(record, address, self._settings.program_id_bytes)
        return record

    def _now(self) -> int:
        timestamp = self._clock.now()
        if timestamp <= 0:
            raise ValueError(f"Clock returned a non-positive timestamp: {timestamp}")
        return timestamp

    async def _store_transition(
        self,
        address: str,
        record: SwapRecord,
        updated: SwapRecord,
        event_name: str,
    ) -> None:
        """Write ``updated`` only if the stored status is still ``record.status``."""
        if await self._swap_repo.put_if_status(address, record.status, updated):
            return
        current = await self._swap_repo.current_status(address)
        if current is None:
            raise SwapNotFoundError(address)
        logger.warning("swap.transition_lost", event=event_name, status=current)
        raise self._transition_error(event_name, current)

    @staticmethod
    def _transition_error(event_name: str, status: str) -> SwapError:
        """execute_swap failures are InvalidSwapStatus, finalize_swap failures SwapNotExecuted."""
        if event_name == "finalize_swap":
            return SwapNotExecutedError(status)
        return InvalidSwapStatusError(status, event_name)

    @classmethod
    def _fire_transition(cls, record: SwapRecord, event_name: str) -> SwapStatus:
        """Validate a transition against the central table; return the new status."""
        try:
            new_status = validate_transition(record.status.value, event_name)
        except TransitionNotAllowed as err:
            raise cls._transition_error(event_name, record.status.value) from err
        return SwapStatus(new_status)
