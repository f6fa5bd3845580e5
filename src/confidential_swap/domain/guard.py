"""Authorization guard for lifecycle operations.

Three checks, each raising a domain error on failure:
    - verify_address: the record really lives where its owner + bump say.
    - require_owner: the signer is the record owner (owner-only calls).
    - require_validator_allowed: the validator is on the allowlist, if any.

Delegation runs only the address check and the allowlist:
the payer signing a delegation does not have to be the owner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from confidential_swap.domain.derivation import derive_address, swap_seeds
from confidential_swap.domain.exceptions import (
    AddressMismatchError,
    InvalidBumpError,
    UnauthorizedError,
    ValidatorNotAllowedError,
)
from confidential_swap.domain.keys import key_hex

if TYPE_CHECKING:
    from collections.abc import Collection

    from confidential_swap.domain.records import SwapRecord


def expected_address(record: SwapRecord, program_id: str | bytes) -> str:
    """Recompute the record's address from its owner and stored bump."""
    return derive_address(swap_seeds(record.owner), record.derivation_bump, program_id).hex()


def verify_address(record: SwapRecord, address: str, program_id: str | bytes) -> None:
    """Raise AddressMismatchError unless ``address`` matches the derivation."""
    actual = key_hex(address)
    try:
        expected = expected_address(record, program_id)
    except InvalidBumpError as err:
        raise AddressMismatchError("<invalid bump>", actual) from err
    if expected != actual:
        raise AddressMismatchError(expected, actual)


def require_owner(record: SwapRecord, signer: str) -> None:
    """Raise UnauthorizedError unless ``signer`` owns the record."""
    signer_hex = key_hex(signer)
    if signer_hex != record.owner:
        raise UnauthorizedError(signer_hex, record.owner)


def require_validator_allowed(validator: str, allowed: Collection[str]) -> None:
    """Raise ValidatorNotAllowedError if an allowlist is set and excludes ``validator``.

    An empty allowlist accepts any validator.
    """
    validator_hex = key_hex(validator)
    if allowed and validator_hex not in {key_hex(v) for v in allowed}:
        raise ValidatorNotAllowedError(validator_hex)
