import pytest

from coinsign.swap import SwapData, SwapError, copy_transaction_parameters


def test_amount_is_right_aligned():
    data = copy_transaction_parameters("addr", "", b"\xee\x00\xff", b"\x01")
    assert data.amount == b"\x00\x00\x00\x00\x00\xee\x00\xff"
    assert data.fees == bytes(7) + b"\x01"


def test_full_width_amount_kept():
    amount = bytes(range(1, 9))
    data = copy_transaction_parameters("addr", "", amount, amount)
    assert data.amount == amount
    assert data.fees == amount


def test_result_is_initialized_with_zero_counters():
    data = copy_transaction_parameters("bc1destination", "", b"\x05", b"\x01")
    assert data.initialized is True
    assert data.destination_address == "bc1destination"
    assert data.was_address_checked is False
    assert data.total_number_of_inputs == 0
    assert data.already_signed_inputs == 0


def test_default_swap_data_not_initialized():
    data = SwapData()
    assert data.initialized is False
    assert data.amount == bytes(8)


def test_missing_extra_id_rejected():
    with pytest.raises(SwapError):
        copy_transaction_parameters("addr", None, b"\x01", b"\x01")


def test_non_empty_extra_id_rejected():
    with pytest.raises(SwapError):
        copy_transaction_parameters("addr", "memo", b"\x01", b"\x01")


@pytest.mark.parametrize("field_name", ["amount", "fee_amount"])
def test_oversized_amount_rejected(field_name):
    kwargs = {"amount": b"\x01", "fee_amount": b"\x01"}
    kwargs[field_name] = bytes(9)
    with pytest.raises(SwapError):
        copy_transaction_parameters("addr", "", **kwargs)


def test_address_length_limit():
    ok = copy_transaction_parameters("a" * 64, "", b"\x01", b"\x01")
    assert len(ok.destination_address) == 64
    with pytest.raises(SwapError):
        copy_transaction_parameters("a" * 65, "", b"\x01", b"\x01")