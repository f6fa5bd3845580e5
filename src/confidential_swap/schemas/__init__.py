"""Pydantic API schemas."""

from confidential_swap.schemas.swap import (
    CloseSwapRequest,
    DelegateSwapRequest,
    DerivedAddressResponse,
    FinalizeSwapRequest,
    HealthResponse,
    InitializeSwapRequest,
    SwapEventResponse,
    SwapResponse,
    SwapStatusResponse,
)

__all__ = [
    "CloseSwapRequest",
    "DelegateSwapRequest",
    "DerivedAddressResponse",
    "FinalizeSwapRequest",
    "HealthResponse",
    "InitializeSwapRequest",
    "SwapEventResponse",
    "SwapResponse",
    "SwapStatusResponse",
]
