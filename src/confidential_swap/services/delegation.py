"""Delegation Broker — custody annotation for swap records.

Records which TEE validator currently holds execution custody of a record.
Custody is metadata: it never changes the record's status, and execution
does not require it.

Rules:
    - A configured allowlist restricts which validators may take custody.
    - Delegating again to the current custodian is a no-op.
    - Delegating to a different validator raises AlreadyDelegatedError
      unless allow_redelegation is set.
    - Finalized records are immutable and cannot be delegated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from confidential_swap.domain.enums import SwapStatus
from confidential_swap.domain.exceptions import (
    AlreadyDelegatedError,
    InvalidSwapStatusError,
)
from confidential_swap.domain.guard import require_validator_allowed
from confidential_swap.domain.keys import key_hex

if TYPE_CHECKING:
    from confidential_swap.config import Settings
    from confidential_swap.domain.records import SwapRecord
    from confidential_swap.infrastructure.database.repositories import SwapRepository


class DelegationBroker:
    """Reads and writes the custody annotation of swap records."""

    def __init__(self, repo: SwapRepository, settings: Settings) -> None:
        self._repo = repo
        self._settings = settings

    async def custodian(self, address: str) -> str | None:
        custodian, _ = await self._repo.get_custody(address)
        return custodian

    async def delegate(
        self,
        address: str,
        record: SwapRecord,
        validator: str,
        payer: str,
    ) -> bool:
        """Hand custody of ``record`` to ``validator``.

        Returns True if custody changed, False if ``validator`` already held it.
        """
        validator = key_hex(validator)
        payer = key_hex(payer)

        if record.status is SwapStatus.FINALIZED:
            raise InvalidSwapStatusError(record.status.value, "delegate_swap")
        require_validator_allowed(validator, self._settings.allowed_validator_list)

        current = await self.custodian(address)
        if current == validator:
            return False
        if current is not None and not self._settings.allow_redelegation:
            raise AlreadyDelegatedError(address, current)

        await self._repo.set_custody(address, validator, payer)
        return True
