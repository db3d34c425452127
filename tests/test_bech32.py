import pytest

from coinsign.bech32 import (
    CHARSET,
    Bech32Error,
    bech32_decode,
    bech32_encode,
    bech32_polymod_step,
    convert_bits,
    segwit_addr_decode,
    segwit_addr_encode,
)

P2WPKH_PROGRAM = bytes.fromhex("751e76e8199196d454941c45d1b3a323f1433bd6")
P2WPKH_ADDRESS = "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"


def test_polymod_step_of_zero_is_zero():
    assert bech32_polymod_step(0) == 0


def test_segwit_known_vector_encodes():
    assert segwit_addr_encode("bc", 0, P2WPKH_PROGRAM) == P2WPKH_ADDRESS


def test_segwit_known_vector_decodes():
    assert segwit_addr_decode("bc", P2WPKH_ADDRESS) == (0, P2WPKH_PROGRAM)


def test_segwit_decode_accepts_upper_case():
    assert segwit_addr_decode("bc", P2WPKH_ADDRESS.upper()) == (0, P2WPKH_PROGRAM)


def test_corrupted_character_rejected():
    position = 10
    original = P2WPKH_ADDRESS[position]
    replacement = CHARSET[(CHARSET.index(original) + 1) % 32]
    corrupted = P2WPKH_ADDRESS[:position] + replacement + P2WPKH_ADDRESS[position + 1 :]
    with pytest.raises(Bech32Error):
        bech32_decode(corrupted)


def test_wrong_hrp_rejected():
    with pytest.raises(Bech32Error):
        segwit_addr_decode("tb", P2WPKH_ADDRESS)


@pytest.mark.parametrize(
    "hrp, data",
    [
        ("a", []),
        ("bc", [0, 1, 2, 31]),
        ("tb", list(range(32))),
        ("x" * 10, [5] * 20),
    ],
)
def test_bech32_round_trip(hrp, data):
    encoded = bech32_encode(hrp, data)
    assert encoded.startswith(hrp + "1")
    assert len(encoded) == len(hrp) + 1 + len(data) + 6
    assert bech32_decode(encoded) == (hrp, data)


@pytest.mark.parametrize(
    "witver, program",
    [
        (0, bytes(range(20))),
        (0, bytes(range(32))),
        (1, bytes(range(2))),
        (16, bytes(range(40))),
    ],
)
def test_segwit_round_trip(witver, program):
    address = segwit_addr_encode("bc", witver, program)
    assert segwit_addr_decode("bc", address) == (witver, program)


def test_encode_rejects_upper_case_hrp():
    with pytest.raises(Bech32Error):
        bech32_encode("BC", [0])


def test_encode_rejects_too_long():
    with pytest.raises(Bech32Error):
        bech32_encode("bc", [0] * 82)


def test_encode_rejects_wide_value():
    with pytest.raises(Bech32Error):
        bech32_encode("bc", [32])


@pytest.mark.parametrize("bad", ["short1", "1qqqqqqqqq", "bcqqqqqqqqqq", "bc1qqqqq"])
def test_decode_rejects_malformed(bad):
    with pytest.raises(Bech32Error):
        bech32_decode(bad)


def test_decode_rejects_invalid_data_character():
    with pytest.raises(Bech32Error):
        bech32_decode("bc1qqqqqbqqqq")


@pytest.mark.parametrize(
    "witver, program",
    [
        (17, bytes(20)),
        (0, bytes(21)),
        (1, bytes(1)),
        (1, bytes(41)),
    ],
)
def test_segwit_encode_rejects_invalid(witver, program):
    with pytest.raises(Bech32Error):
        segwit_addr_encode("bc", witver, program)


def test_convert_bits_round_trip():
    data = bytes(range(0, 256, 7))
    five = convert_bits(data, 8, 5, True)
    assert all(0 <= v < 32 for v in five)
    assert bytes(convert_bits(five, 5, 8, False)) == data


def test_convert_bits_rejects_bad_padding():
    with pytest.raises(Bech32Error):
        convert_bits([31], 5, 8, False)