"""SQLAlchemy 2.0 ORM models for the swap record store.

Two tables:
    1. swap_accounts  — One row per live swap record, keyed by derived address.
    2. swap_events    — Append-only audit log of every lifecycle operation.

Design decisions:
    - The derived address is the primary key, so a second record at the
      same address is rejected by the primary-key constraint. The unique
      owner index rejects a second record for the same owner at another
      address (a caller-supplied bump).
    - Status transitions are written with a conditional UPDATE on the
      expected old status (SwapRepository.put_if_status).
    - u64 amounts are stored as the signed BIGINT with the same bit pattern
      (U64 type), which is exact on both PostgreSQL and SQLite.
    - Custody (custodian, delegated_by) sits beside the record fields but is
      not part of the 58-byte packed layout.
    - CHECK constraints mirror the domain invariants at DB level.
    - swap_events has no foreign key: closing a record deletes the account
      row but keeps its history.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from confidential_swap.domain.enums import SwapStatus
from confidential_swap.domain.records import SwapRecord


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class U64(TypeDecorator):
    """Unsigned 64-bit integer stored in a signed BIGINT column."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        return value - 2**64 if value >= 2**63 else value

    def process_result_value(self, value, dialect):  # noqa: ANN001
        if value is None:
            return None
        return value + 2**64 if value < 0 else value


# ---------------------------------------------------------------------------
# 1. swap_accounts
# ---------------------------------------------------------------------------
class SwapAccount(Base):
    """Stored form of a SwapRecord plus its custody annotation."""

    __tablename__ = "swap_accounts"

    address: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Derived storage address (hex)",
    )

    # --- Record fields ---
    owner: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owner identity (hex), immutable",
    )
    amount_in: Mapped[int] = mapped_column(
        U64,
        nullable=False,
    )
    minimum_amount_out: Mapped[int] = mapped_column(
        U64,
        nullable=False,
        comment="Slippage floor, stored but not enforced",
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=SwapStatus.PENDING.value,
        comment="Current lifecycle status (guarded by SwapStateMachine)",
    )
    executed_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
    derivation_bump: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # --- Custody annotation ---
    custodian: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        default=None,
        comment="TEE validator currently holding execution custody",
    )
    delegated_by: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        default=None,
        comment="Payer that signed the delegation",
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Executed', 'Finalized')",
            name="ck_swap_valid_status",
        ),
        CheckConstraint("amount_in != 0", name="ck_swap_nonzero_amount"),
        CheckConstraint(
            "derivation_bump >= 0 AND derivation_bump <= 255",
            name="ck_swap_bump_range",
        ),
        CheckConstraint(
            "(status = 'Pending' AND executed_at = 0) OR "
            "(status != 'Pending' AND executed_at != 0)",
            name="ck_swap_executed_at",
        ),
        Index("idx_swap_owner", "owner", unique=True),
        Index("idx_swap_status", "status"),
    )

    def to_record(self) -> SwapRecord:
        return SwapRecord(
            owner=self.owner,
            amount_in=int(self.amount_in),
            minimum_amount_out=int(self.minimum_amount_out),
            status=SwapStatus(self.status),
            executed_at=self.executed_at,
            derivation_bump=self.derivation_bump,
        )

    def apply(self, record: SwapRecord) -> None:
        """Copy every record field onto the row (whole-record overwrite)."""
        self.owner = record.owner
        self.amount_in = record.amount_in
        self.minimum_amount_out = record.minimum_amount_out
        self.status = record.status.value
        self.executed_at = record.executed_at
        self.derivation_bump = record.derivation_bump

    def __repr__(self) -> str:
        return (
            f"<SwapAccount address={self.address} status={self.status} "
            f"amount_in={self.amount_in}>"
        )


# ---------------------------------------------------------------------------
# 2. swap_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class SwapEvent(Base):
    """Immutable audit record of one lifecycle operation.

    APPEND-ONLY. No UPDATE or DELETE at the application level.
    """

    __tablename__ = "swap_events"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Monotonic sequence; defines event order",
    )
    address: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Swap account address this event belongs to",
    )
    event_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="EventType enum value (e.g., SWAP_INITIALIZED)",
    )
    old_status: Mapped[str | None] = mapped_column(
        String(16),
        nullable=True,
        comment="Status before this event (null for creation)",
    )
    new_status: Mapped[str | None] = mapped_column(
        String(16),
        nullable=True,
        comment="Status after this event (null once closed)",
    )
    actor: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="SYSTEM",
        comment="Who triggered this event (identity hex or SYSTEM)",
    )
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        default=None,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("idx_event_address", "address"),
        Index("idx_event_type", "event_type"),
        Index("idx_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<SwapEvent id={self.id} type={self.event_type} "
            f"{self.old_status}->{self.new_status}>"
        )
