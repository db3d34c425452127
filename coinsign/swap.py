"""Parameters of a transaction requested by an exchange."""

from __future__ import annotations

from dataclasses import dataclass, field

from coinsign.amounts import AMOUNT_SIZE

MAX_DESTINATION_ADDRESS_LENGTH = 64


class SwapError(ValueError):
    """Raised when exchange parameters are rejected."""


@dataclass
class SwapData:
    """Validated data of an exchange-driven transaction and its signing progress."""

    destination_address: str = ""
    amount: bytes = bytes(AMOUNT_SIZE)
    fees: bytes = bytes(AMOUNT_SIZE)
    initialized: bool = False
    was_address_checked: bool = False
    total_number_of_inputs: int = 0
    already_signed_inputs: int = 0
    _extra: dict = field(default_factory=dict, repr=False, compare=False)


def _right_align(value: bytes, what: str) -> bytes:
    data = bytes(value)
    if len(data) > AMOUNT_SIZE:
        raise SwapError(
            f"{what} must fit in {AMOUNT_SIZE} bytes, got {len(data)}"
        )
    return data.rjust(AMOUNT_SIZE, b"\x00")


def copy_transaction_parameters(
    destination_address: str,
    destination_address_extra_id: str | None,
    amount: bytes,
    fee_amount: bytes,
) -> SwapData:
    """Validate exchange parameters and return a fresh, initialized SwapData.

    Amounts are stored as 8-byte big-endian values, right-aligned.
    """
    if destination_address_extra_id is None:
        raise SwapError("destination address extra id expected")
    if destination_address_extra_id != "":
        raise SwapError(
            "destination address extra id expected empty, not "
            f"{destination_address_extra_id!r}"
        )
    if len(destination_address) > MAX_DESTINATION_ADDRESS_LENGTH:
        raise SwapError(
            "destination address longer than "
            f"{MAX_DESTINATION_ADDRESS_LENGTH} characters"
        )
    return SwapData(
        destination_address=destination_address,
        amount=_right_align(amount, "amount"),
        fees=_right_align(fee_amount, "fee amount"),
        initialized=True,
    )