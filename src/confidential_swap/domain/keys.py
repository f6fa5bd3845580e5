"""32-byte identities (owners, validators, payers, addresses).

Identities travel as 64-char lowercase hex at the edges (API, MCP, logs,
database) and as raw bytes inside derivation and the packed layout.
"""

from __future__ import annotations

KEY_LENGTH = 32


def key_bytes(key: str | bytes) -> bytes:
    """Normalize a hex string or raw bytes into a 32-byte key."""
    if isinstance(key, bytes):
        raw = key
    else:
        try:
            raw = bytes.fromhex(key.removeprefix("0x"))
        except ValueError as err:
            raise ValueError(f"Not a hex key: {key!r}") from err
    if len(raw) != KEY_LENGTH:
        raise ValueError(f"Key must be {KEY_LENGTH} bytes, got {len(raw)}")
    return raw


def key_hex(key: str | bytes) -> str:
    """Canonical lowercase hex form of a key."""
    return key_bytes(key).hex()
