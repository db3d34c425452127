"""CashAddr encoding of 160-bit hashes."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

from coinsign.bech32 import CHARSET, convert_bits

PREFIX = "bitcoincash"
_GENERATORS = (0x98F2BC8E61, 0x79B76D99E2, 0xF33E5FB3C4, 0xAE2EABE2A8, 0x1E4F43E470)
_HASH_LENGTH = 20
_CHECKSUM_LENGTH = 8


class CashAddrType(IntEnum):
    """Kind of payload a CashAddr encodes."""

    P2PKH = 0
    P2SH = 1


class CashAddrError(ValueError):
    """Raised when a CashAddr cannot be produced."""


_VERSION_BYTES = {CashAddrType.P2PKH: 0, CashAddrType.P2SH: 8}


def polymod_step(pre: int) -> int:
    """Advance the CashAddr checksum state by one 5-bit group."""
    top = (pre >> 35) & 0xFF
    chk = (pre & 0x07FFFFFFFF) << 5
    for bit, generator in enumerate(_GENERATORS):
        if (top >> bit) & 1:
            chk ^= generator
    return chk


def polymod(prefix: str, payload: Sequence[int]) -> int:
    """Compute the CashAddr checksum value of ``prefix`` and 5-bit ``payload``."""
    c = 1
    for ch in prefix:
        c = polymod_step(c) ^ (ord(ch) & 0x1F)
    c = polymod_step(c)
    for value in payload:
        c = polymod_step(c) ^ value
    for _ in range(_CHECKSUM_LENGTH):
        c = polymod_step(c)
    return c ^ 1


def create_checksum(payload: Sequence[int]) -> list[int]:
    """Return the eight 5-bit checksum values for a payload."""
    mod = polymod(PREFIX, payload)
    return [(mod >> (5 * (7 - i))) & 0x1F for i in range(_CHECKSUM_LENGTH)]


def cashaddr_encode(
    hash160: bytes, version: int, max_length: int | None = None
) -> str:
    """Encode a 20-byte hash as a CashAddr, without the prefix and colon.

    Raises CashAddrError for a wrong hash size, an unknown version, or an
    address longer than ``max_length``.
    """
    if len(hash160) != _HASH_LENGTH:
        raise CashAddrError(f"hash must be {_HASH_LENGTH} bytes, got {len(hash160)}")
    try:
        kind = CashAddrType(version)
    except ValueError as exc:
        raise CashAddrError(f"unsupported address version {version}") from exc
    payload = convert_bits(bytes([_VERSION_BYTES[kind]]) + bytes(hash160), 8, 5, True)
    checksum = create_checksum(payload)
    address = "".join(CHARSET[value] for value in payload + checksum)
    if max_length is not None and len(address) > max_length:
        raise CashAddrError(
            f"address needs {len(address)} characters, limit is {max_length}"
        )
    return address