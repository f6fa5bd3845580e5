"""The swap record and its packed account layout.

SwapRecord is frozen: every lifecycle step builds a new value with
dataclasses.replace and the store writes it whole, so no reader ever sees a
record with some fields updated and others stale.

Layout (little-endian, 58 bytes):

    owner               32 bytes
    amount_in            u64
    minimum_amount_out   u64
    status               u8 tag (Pending=0, Executed=1, Finalized=2)
    executed_at          i64
    derivation_bump      u8

The ledger's account framework prefixes an 8-byte type discriminator
(first 8 bytes of sha256(b"account:Swap")); encode_account/decode_account
handle that header.
"""

from __future__ import annotations

import dataclasses
import hashlib
import struct

from confidential_swap.domain.enums import SwapStatus
from confidential_swap.domain.keys import key_bytes, key_hex

U64_MAX = 2**64 - 1

_LAYOUT = struct.Struct("<32sQQBqB")
RECORD_SIZE = _LAYOUT.size  # 58
ACCOUNT_DISCRIMINATOR = hashlib.sha256(b"account:Swap").digest()[:8]
ACCOUNT_SIZE = len(ACCOUNT_DISCRIMINATOR) + RECORD_SIZE


@dataclasses.dataclass(frozen=True)
class SwapRecord:
    """One confidential swap order.

    Attributes:
        owner: Hex identity of the user that created the record.
        amount_in: Quantity offered, positive u64.
        minimum_amount_out: Slippage floor. Stored, never compared.
        status: Current lifecycle status.
        executed_at: Unix seconds of the Executed transition, 0 before it.
        derivation_bump: Bump that makes the record's address derivable.
    """

    owner: str
    amount_in: int
    minimum_amount_out: int
    status: SwapStatus = SwapStatus.PENDING
    executed_at: int = 0
    derivation_bump: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner", key_hex(self.owner))
        object.__setattr__(self, "status", SwapStatus(self.status))
        if not 0 < self.amount_in <= U64_MAX:
            raise ValueError(f"amount_in out of range: {self.amount_in}")
        if not 0 <= self.minimum_amount_out <= U64_MAX:
            raise ValueError(f"minimum_amount_out out of range: {self.minimum_amount_out}")
        if not 0 <= self.derivation_bump <= 255:
            raise ValueError(f"derivation_bump out of range: {self.derivation_bump}")
        stamped = self.executed_at != 0
        if stamped != (self.status is not SwapStatus.PENDING):
            raise ValueError(
                f"executed_at={self.executed_at} inconsistent with status {self.status}"
            )

    def pack(self) -> bytes:
        """Serialize to the 58-byte layout."""
        return _LAYOUT.pack(
            key_bytes(self.owner),
            self.amount_in,
            self.minimum_amount_out,
            self.status.tag,
            self.executed_at,
            self.derivation_bump,
        )

    @classmethod
    def unpack(cls, data: bytes) -> SwapRecord:
        """Parse the 58-byte layout. Raises ValueError on malformed input."""
        if len(data) != RECORD_SIZE:
            raise ValueError(f"Swap record must be {RECORD_SIZE} bytes, got {len(data)}")
        owner, amount_in, minimum_amount_out, tag, executed_at, bump = _LAYOUT.unpack(data)
        return cls(
            owner=owner.hex(),
            amount_in=amount_in,
            minimum_amount_out=minimum_amount_out,
            status=SwapStatus.from_tag(tag),
            executed_at=executed_at,
            derivation_bump=bump,
        )

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "amount_in": self.amount_in,
            "minimum_amount_out": self.minimum_amount_out,
            "status": self.status.value,
            "executed_at": self.executed_at,
            "derivation_bump": self.derivation_bump,
        }


def encode_account(record: SwapRecord) -> bytes:
    """Serialize with the account discriminator header."""
    return ACCOUNT_DISCRIMINATOR + record.pack()


def decode_account(data: bytes) -> SwapRecord:
    """Parse a discriminator-prefixed account."""
    if data[: len(ACCOUNT_DISCRIMINATOR)] != ACCOUNT_DISCRIMINATOR:
        raise ValueError("Account discriminator mismatch")
    return SwapRecord.unpack(data[len(ACCOUNT_DISCRIMINATOR) :])
