"""Domain exceptions for the confidential swap lifecycle.

These exceptions are framework-agnostic and represent rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Every one of them aborts the operation before the record is written.
"""


class SwapError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "SWAP_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- State Machine Errors ---


class InvalidSwapStatusError(SwapError):
    """Raised when the record is in the wrong state for the requested operation.

    Example: execute on a record that is already Executed.
    """

    def __init__(self, current_status: str, attempted: str) -> None:
        super().__init__(
            message=f"Invalid swap status: cannot {attempted} from {current_status}",
            code="INVALID_SWAP_STATUS",
        )
        self.current_status = current_status
        self.attempted = attempted


class SwapNotExecutedError(SwapError):
    """Raised when finalize is attempted before the swap was executed."""

    def __init__(self, current_status: str) -> None:
        super().__init__(
            message=f"Swap not executed yet (status: {current_status})",
            code="SWAP_NOT_EXECUTED",
        )
        self.current_status = current_status


# --- Authorization Errors ---


class AddressMismatchError(SwapError):
    """Raised when a record's address does not match its derivation."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            message=f"Address mismatch: expected {expected}, got {actual}",
            code="ADDRESS_MISMATCH",
        )
        self.expected = expected
        self.actual = actual


class UnauthorizedError(SwapError):
    """Raised when the signer is not the record owner on an owner-only call."""

    def __init__(self, signer: str, owner: str) -> None:
        super().__init__(
            message=f"Signer {signer} is not the owner {owner}",
            code="UNAUTHORIZED",
        )
        self.signer = signer
        self.owner = owner


class ValidatorNotAllowedError(SwapError):
    """Raised when delegating to a validator outside the configured allowlist."""

    def __init__(self, validator: str) -> None:
        super().__init__(
            message=f"Validator not allowed: {validator}",
            code="VALIDATOR_NOT_ALLOWED",
        )
        self.validator = validator


# --- Record Errors ---


class SwapNotFoundError(SwapError):
    """Raised when no record exists at an address."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Swap not found: {address}",
            code="SWAP_NOT_FOUND",
        )
        self.address = address


class DuplicateRecordError(SwapError):
    """Raised when a record already lives at the derived address."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Swap record already exists at {address}",
            code="DUPLICATE_RECORD",
        )
        self.address = address


class InvalidAmountError(SwapError):
    """Raised when an amount is not a representable u64 (or zero for amount_in)."""

    def __init__(self, field: str, value: int) -> None:
        super().__init__(
            message=f"Invalid {field}: {value}",
            code="INVALID_AMOUNT",
        )
        self.field = field
        self.value = value


class AlreadyDelegatedError(SwapError):
    """Raised when a record is delegated to a second, different validator."""

    def __init__(self, address: str, custodian: str) -> None:
        super().__init__(
            message=f"Swap {address} is already delegated to {custodian}",
            code="ALREADY_DELEGATED",
        )
        self.address = address
        self.custodian = custodian


# --- Derivation Errors ---


class InvalidBumpError(SwapError):
    """Raised when a bump yields an address inside the reserved (on-curve) space."""

    def __init__(self, bump: int) -> None:
        super().__init__(
            message=f"Bump {bump} does not yield a valid address",
            code="INVALID_BUMP",
        )
        self.bump = bump


class DerivationExhaustedError(SwapError):
    """Raised when no bump in 0..255 yields a valid address."""

    def __init__(self) -> None:
        super().__init__(
            message="Unable to find a valid address for any bump",
            code="DERIVATION_EXHAUSTED",
        )
