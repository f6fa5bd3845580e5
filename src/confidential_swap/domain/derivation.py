"""Deterministic storage addresses for swap records.

A swap record lives at an address derived from the owner and a fixed domain
tag, so anyone can find it from the owner alone:

    address = sha256(b"swap" || owner || bump || program_id || b"ProgramDerivedAddress")

The address must not be a valid ed25519 public key (no private key can exist
for it). Roughly half of all hashes land on the curve, which is why a bump is
mixed in: find_address walks bumps from 255 downwards and keeps the first
off-curve result. The winning bump is stored in the record so later lookups
never search again.

Everything here is pure; nothing touches storage.
"""

from __future__ import annotations

import hashlib

from confidential_swap.domain.exceptions import (
    DerivationExhaustedError,
    InvalidBumpError,
)
from confidential_swap.domain.keys import KEY_LENGTH, key_bytes

SWAP_SEED = b"swap"
PDA_MARKER = b"ProgramDerivedAddress"
MAX_BUMP = 255
MAX_SEEDS = 16
MAX_SEED_LENGTH = 32

# ed25519: -x^2 + y^2 = 1 + d*x^2*y^2 over GF(2^255 - 19)
_P = 2**255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P


def is_on_curve(point: bytes) -> bool:
    """Return True if the 32 bytes decompress to a point on ed25519."""
    if len(point) != KEY_LENGTH:
        raise ValueError(f"Point must be {KEY_LENGTH} bytes, got {len(point)}")
    y = (int.from_bytes(point, "little") & ((1 << 255) - 1)) % _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    x2 = u * pow(v, _P - 2, _P) % _P
    # x^2 = u/v has a root iff it is zero or a quadratic residue
    return x2 == 0 or pow(x2, (_P - 1) // 2, _P) == 1


def swap_seeds(owner: str | bytes) -> list[bytes]:
    """Seeds for the swap record of ``owner``: the domain tag, then the owner."""
    return [SWAP_SEED, key_bytes(owner)]


def derive_address(seeds: list[bytes], bump: int, program_id: str | bytes) -> bytes:
    """Derive the address for ``seeds`` + ``bump`` under ``program_id``.

    Raises:
        InvalidBumpError: The result is on the curve (reserved space).
        ValueError: Seeds or bump outside the permitted limits.
    """
    if not 0 <= bump <= MAX_BUMP:
        raise ValueError(f"Bump must be in 0..{MAX_BUMP}, got {bump}")
    if len(seeds) + 1 > MAX_SEEDS:
        raise ValueError(f"At most {MAX_SEEDS - 1} seeds allowed")
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"Seed longer than {MAX_SEED_LENGTH} bytes")

    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(bytes([bump]))
    hasher.update(key_bytes(program_id))
    hasher.update(PDA_MARKER)
    address = hasher.digest()

    if is_on_curve(address):
        raise InvalidBumpError(bump)
    return address


def find_address(seeds: list[bytes], program_id: str | bytes) -> tuple[bytes, int]:
    """Search bumps 255..0 and return the first valid ``(address, bump)``."""
    for bump in range(MAX_BUMP, -1, -1):
        try:
            return derive_address(seeds, bump, program_id), bump
        except InvalidBumpError:
            continue
    raise DerivationExhaustedError()


def swap_address(
    owner: str | bytes,
    program_id: str | bytes,
    bump: int | None = None,
) -> tuple[bytes, int]:
    """Address and bump for an owner's swap record.

    A caller-supplied bump is used as-is when it yields a valid address;
    otherwise (or when no bump is given) the canonical bump is searched.
    """
    seeds = swap_seeds(owner)
    if bump is not None:
        try:
            return derive_address(seeds, bump, program_id), bump
        except InvalidBumpError:
            pass
    return find_address(seeds, program_id)
