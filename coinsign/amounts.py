"""Arithmetic on 8-byte big-endian transaction amounts."""

from __future__ import annotations

AMOUNT_SIZE = 8
_MODULUS = 1 << (8 * AMOUNT_SIZE)


def _to_int(value: bytes) -> int:
    data = bytes(value)
    if len(data) != AMOUNT_SIZE:
        raise ValueError(
            f"amount must be exactly {AMOUNT_SIZE} bytes, got {len(data)}"
        )
    return int.from_bytes(data, "big")


def _to_bytes(value: int) -> bytes:
    return (value % _MODULUS).to_bytes(AMOUNT_SIZE, "big")


def add_be(a: bytes, b: bytes) -> tuple[bytes, bool]:
    """Return ``(a + b, carry)`` for two 8-byte big-endian amounts.

    The sum wraps around modulo 2**64; ``carry`` tells whether it overflowed.
    """
    total = _to_int(a) + _to_int(b)
    return _to_bytes(total), total >= _MODULUS


def sub_be(a: bytes, b: bytes) -> tuple[bytes, bool]:
    """Return ``(a - b, borrow)`` for two 8-byte big-endian amounts.

    The difference wraps around modulo 2**64; ``borrow`` tells whether
    ``b`` was larger than ``a``.
    """
    difference = _to_int(a) - _to_int(b)
    return _to_bytes(difference), difference < 0