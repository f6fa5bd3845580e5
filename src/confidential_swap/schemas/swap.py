"""Pydantic schemas for the swap API.

These schemas define the request/response shapes for the REST API. They are
separate from the ORM models and from the domain SwapRecord to keep clean
boundaries between layers. Identities are 64-char hex strings; amounts are
u64.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from confidential_swap.domain.keys import key_hex
from confidential_swap.domain.records import U64_MAX

Identity = Annotated[
    str,
    Field(
        min_length=64,
        max_length=66,
        description="32-byte identity as hex (optionally 0x-prefixed)",
        examples=["5f" * 32],
    ),
    AfterValidator(key_hex),
]
U64 = Annotated[int, Field(ge=0, le=U64_MAX)]

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class InitializeSwapRequest(BaseModel):
    """Request body for creating a swap record. The owner is the signer."""

    owner: Identity
    amount_in: U64 = Field(..., gt=0, description="Quantity offered", examples=[1000])
    minimum_amount_out: U64 = Field(
        ...,
        description="Slippage floor (stored, not enforced)",
        examples=[950],
    )
    bump: int | None = Field(
        default=None,
        ge=0,
        le=255,
        description="Optional derivation bump; searched when omitted or unusable",
    )


class DelegateSwapRequest(BaseModel):
    """Request body for handing custody to a TEE validator."""

    validator: Identity
    payer: Identity


class FinalizeSwapRequest(BaseModel):
    """Request body for committing an executed swap back to public state."""

    payer: Identity | None = None


class CloseSwapRequest(BaseModel):
    """Request body for closing a finalized swap (owner only)."""

    signer: Identity


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class SwapResponse(BaseModel):
    """A swap record with its address and custody annotation."""

    address: str
    owner: str
    amount_in: int
    minimum_amount_out: int
    status: str
    executed_at: int
    derivation_bump: int
    custodian: str | None = None


class SwapStatusResponse(BaseModel):
    """Lightweight status check response."""

    address: str
    status: str
    executed_at: int
    custodian: str | None
    allowed_events: list[str] = Field(
        description="State machine events that can fire from the current status"
    )


class SwapEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    address: str
    event_type: str
    old_status: str | None
    new_status: str | None
    actor: str
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")
    created_at: datetime


class DerivedAddressResponse(BaseModel):
    """Result of a pure address derivation."""

    owner: str
    address: str
    bump: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
