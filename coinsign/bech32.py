"""Bech32 strings and SegWit addresses."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_MAX_LENGTH = 90
_CHECKSUM_LENGTH = 6


class Bech32Error(ValueError):
    """Raised when a Bech32 string or SegWit address cannot be encoded or decoded."""


def bech32_polymod_step(pre: int) -> int:
    """Advance the Bech32 checksum state by one 5-bit group."""
    top = pre >> 25
    chk = (pre & 0x1FFFFFF) << 5
    for bit, generator in enumerate(_GENERATORS):
        if (top >> bit) & 1:
            chk ^= generator
    return chk


def convert_bits(
    data: Iterable[int], frombits: int, tobits: int, pad: bool
) -> list[int]:
    """Regroup a sequence of ``frombits``-wide values into ``tobits``-wide values.

    With ``pad`` the last group is zero-filled; without it, leftover bits
    must be zero and fewer than ``frombits``, else Bech32Error is raised.
    """
    acc = 0
    bits = 0
    maxv = (1 << tobits) - 1
    keep = (1 << (frombits + tobits)) - 1
    out: list[int] = []
    for value in data:
        if value < 0 or value >> frombits:
            raise Bech32Error(f"value {value} does not fit in {frombits} bits")
        acc = ((acc << frombits) | value) & keep
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            out.append((acc >> bits) & maxv)
    if pad:
        if bits:
            out.append((acc << (tobits - bits)) & maxv)
    elif ((acc << (tobits - bits)) & maxv) or bits >= frombits:
        raise Bech32Error("invalid padding")
    return out


def bech32_encode(hrp: str, data: Sequence[int]) -> str:
    """Encode a human readable part and 5-bit values into a Bech32 string."""
    chk = 1
    for ch in hrp:
        code = ord(ch)
        if "A" <= ch <= "Z":
            raise Bech32Error("human readable part must be lower case")
        if code >> 5 == 0 or code > 127:
            raise Bech32Error(f"invalid character {ch!r} in human readable part")
        chk = bech32_polymod_step(chk) ^ (code >> 5)
    if len(hrp) + 7 + len(data) > _MAX_LENGTH:
        raise Bech32Error("encoded string would be too long")
    chk = bech32_polymod_step(chk)
    for ch in hrp:
        chk = bech32_polymod_step(chk) ^ (ord(ch) & 0x1F)
    encoded = [hrp, "1"]
    for value in data:
        if value < 0 or value >> 5:
            raise Bech32Error(f"data value {value} is not a 5-bit value")
        chk = bech32_polymod_step(chk) ^ value
        encoded.append(CHARSET[value])
    for _ in range(_CHECKSUM_LENGTH):
        chk = bech32_polymod_step(chk)
    chk ^= 1
    encoded.extend(
        CHARSET[(chk >> ((5 - i) * 5)) & 0x1F] for i in range(_CHECKSUM_LENGTH)
    )
    return "".join(encoded)


def bech32_decode(bech: str) -> tuple[str, list[int]]:
    """Decode a Bech32 string into its lower-case human readable part and data."""
    if not 8 <= len(bech) <= _MAX_LENGTH:
        raise Bech32Error("invalid length")
    separator = bech.rfind("1")
    if separator < 1:
        raise Bech32Error("missing or empty human readable part")
    if len(bech) - separator - 1 < _CHECKSUM_LENGTH:
        raise Bech32Error("data part too short")

    have_lower = False
    have_upper = False
    hrp_chars: list[str] = []
    chk = 1
    for ch in bech[:separator]:
        code = ord(ch)
        if code < 33 or code > 126:
            raise Bech32Error(f"invalid character {ch!r} in human readable part")
        if "a" <= ch <= "z":
            have_lower = True
        elif "A" <= ch <= "Z":
            have_upper = True
            ch = ch.lower()
        hrp_chars.append(ch)
        chk = bech32_polymod_step(chk) ^ (ord(ch) >> 5)
    chk = bech32_polymod_step(chk)
    for ch in bech[:separator]:
        chk = bech32_polymod_step(chk) ^ (ord(ch) & 0x1F)

    values: list[int] = []
    for ch in bech[separator + 1 :]:
        if "a" <= ch <= "z":
            have_lower = True
        elif "A" <= ch <= "Z":
            have_upper = True
        value = CHARSET.find(ch.lower()) if ord(ch) < 128 else -1
        if value < 0:
            raise Bech32Error(f"invalid character {ch!r} in data part")
        chk = bech32_polymod_step(chk) ^ value
        values.append(value)

    if have_lower and have_upper:
        raise Bech32Error("mixed case")
    if chk != 1:
        raise Bech32Error("invalid checksum")
    return "".join(hrp_chars), values[:-_CHECKSUM_LENGTH]


def segwit_addr_encode(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a witness version and program into a SegWit address."""
    if not 0 <= witver <= 16:
        raise Bech32Error(f"invalid witness version {witver}")
    if witver == 0 and len(witprog) not in (20, 32):
        raise Bech32Error("version 0 program must be 20 or 32 bytes")
    if not 2 <= len(witprog) <= 40:
        raise Bech32Error("witness program must be 2 to 40 bytes")
    data = [witver, *convert_bits(witprog, 8, 5, True)]
    return bech32_encode(hrp, data)


def segwit_addr_decode(hrp: str, addr: str) -> tuple[int, bytes]:
    """Decode a SegWit address, returning the witness version and program."""
    hrp_actual, data = bech32_decode(addr)
    if not data or len(data) > 65:
        raise Bech32Error("invalid data length")
    if hrp != hrp_actual:
        raise Bech32Error(
            f"human readable part {hrp_actual!r} does not match {hrp!r}"
        )
    witver = data[0]
    if witver > 16:
        raise Bech32Error(f"invalid witness version {witver}")
    program = bytes(convert_bits(data[1:], 5, 8, False))
    if not 2 <= len(program) <= 40:
        raise Bech32Error("witness program must be 2 to 40 bytes")
    if witver == 0 and len(program) not in (20, 32):
        raise Bech32Error("version 0 program must be 20 or 32 bytes")
    return witver, program