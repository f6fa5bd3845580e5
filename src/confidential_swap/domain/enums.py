"""Domain enumerations for the confidential swap lifecycle.

These enums define the canonical states and event types used throughout the
system. They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class SwapStatus(enum.StrEnum):
    """Lifecycle states of a swap record.

    Transitions are enforced by the SwapStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    PENDING = "Pending"
    EXECUTED = "Executed"
    FINALIZED = "Finalized"

    @property
    def tag(self) -> int:
        """One-byte enum tag used in the packed account layout."""
        return _STATUS_TAGS[self]

    @classmethod
    def from_tag(cls, tag: int) -> "SwapStatus":
        for status, value in _STATUS_TAGS.items():
            if value == tag:
                return status
        raise ValueError(f"Unknown swap status tag: {tag}")


_STATUS_TAGS = {
    SwapStatus.PENDING: 0,
    SwapStatus.EXECUTED: 1,
    SwapStatus.FINALIZED: 2,
}


class EventType(enum.StrEnum):
    """Types of audit events recorded in the swap_events table.

    Every lifecycle operation that changes state or custody appends one event.
    """

    SWAP_INITIALIZED = "SWAP_INITIALIZED"
    SWAP_DELEGATED = "SWAP_DELEGATED"
    SWAP_EXECUTED = "SWAP_EXECUTED"
    SWAP_FINALIZED = "SWAP_FINALIZED"
    SWAP_CLOSED = "SWAP_CLOSED"
