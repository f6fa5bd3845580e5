"""Domain layer — pure swap lifecycle rules with zero framework dependencies."""

from confidential_swap.domain.clock import Clock, FixedClock, SystemClock
from confidential_swap.domain.derivation import (
    derive_address,
    find_address,
    swap_address,
    swap_seeds,
)
from confidential_swap.domain.enums import EventType, SwapStatus
from confidential_swap.domain.exceptions import (
    AddressMismatchError,
    AlreadyDelegatedError,
    DerivationExhaustedError,
    DuplicateRecordError,
    InvalidSwapStatusError,
    SwapError,
    SwapNotExecutedError,
    SwapNotFoundError,
    UnauthorizedError,
)
from confidential_swap.domain.records import SwapRecord
from confidential_swap.domain.state_machine import (
    SwapStateMachine,
    validate_transition,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "derive_address",
    "find_address",
    "swap_address",
    "swap_seeds",
    "EventType",
    "SwapStatus",
    "AddressMismatchError",
    "AlreadyDelegatedError",
    "DerivationExhaustedError",
    "DuplicateRecordError",
    "InvalidSwapStatusError",
    "SwapError",
    "SwapNotExecutedError",
    "SwapNotFoundError",
    "UnauthorizedError",
    "SwapRecord",
    "SwapStateMachine",
    "validate_transition",
]
