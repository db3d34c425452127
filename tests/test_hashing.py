import hashlib

import pytest

from coinsign.hashing import (
    NO_JOINSPLITS,
    TransactionHashes,
    sighash_personalization,
)
from coinsign.txcontext import (
    CoinConfig,
    CoinKind,
    HashOption,
    OverwinterMode,
    SegwitCache,
    TransactionContext,
    TransactionError,
)


def _sha(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _blake(person: bytes, data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32, person=person).digest()


def test_sighash_personalization_sapling_default():
    result = sighash_personalization(CoinKind.ZCASH, OverwinterMode.SAPLING, 0)
    assert result == b"ZcashSigHash" + (0x76B809BB).to_bytes(4, "little")


def test_sighash_personalization_sapling_custom_branch():
    result = sighash_personalization(
        CoinKind.KOMODO, OverwinterMode.SAPLING, 0x12345678
    )
    assert result == b"ZcashSigHash" + (0x12345678).to_bytes(4, "little")


def test_sighash_personalization_overwinter():
    result = sighash_personalization(CoinKind.ZCASH, OverwinterMode.OVERWINTER, 7)
    assert result == b"ZcashSigHash" + (0x5BA81B19).to_bytes(4, "little")


def test_sighash_personalization_zclassic_ignores_mode():
    result = sighash_personalization(CoinKind.ZCLASSIC, OverwinterMode.SAPLING, 7)
    assert result == b"ZcashSigHash" + (0x930B540D).to_bytes(4, "little")
    assert len(result) == 16


def test_add_before_start_raises():
    with pytest.raises(TransactionError):
        TransactionHashes().add(b"abc", HashOption.FULL)


def test_add_prevout_before_start_raises():
    with pytest.raises(TransactionError):
        TransactionHashes().add_prevout(b"abc")


def test_plain_start_and_add_selects_hashes():
    ctx = TransactionContext()
    hashes = TransactionHashes()
    hashes.start(ctx)
    hashes.add(b"ver1", HashOption.BOTH)
    hashes.add(b"script", HashOption.FULL)
    hashes.add(b"auth", HashOption.AUTHORIZATION)
    hashes.add(b"ignored", HashOption.NONE)
    assert hashes.full.digest() == _sha(b"ver1script")
    assert hashes.authorization.digest() == _sha(b"ver1auth")
    assert ctx.hash_option == HashOption.BOTH


def test_segwit_first_pass_flush():
    ctx = TransactionContext(using_segwit=True)
    hashes = TransactionHashes()
    hashes.start(ctx)
    assert ctx.hash_option == HashOption.NONE
    prevout = bytes(range(36))
    sequence = b"\xff\xff\xff\xff"
    hashes.add_prevout(prevout)
    hashes.add(sequence, HashOption.FULL)
    hashes.finish_inputs(ctx)
    assert ctx.segwit.hashed_prevouts == _sha(_sha(prevout))
    assert ctx.segwit.hashed_sequence == _sha(_sha(sequence))
    assert hashes.full.digest() == _sha(b"")


def test_segwit_second_pass_resume():
    cache = SegwitCache(
        hashed_prevouts=b"\x01" * 32,
        hashed_sequence=b"\x02" * 32,
        hashed_outputs=b"\x03" * 32,
    )
    ctx = TransactionContext(
        using_segwit=True,
        segwit_parsed_once=True,
        segwit=cache,
        transaction_version=b"\x02\x00\x00\x00",
    )
    hashes = TransactionHashes()
    hashes.start(ctx)
    prefix = b"\x02\x00\x00\x00" + b"\x01" * 32 + b"\x02" * 32
    assert hashes.full.copy().digest() == _sha(prefix)
    assert hashes.authorization.digest() == _sha(cache.to_bytes())
    hashes.finish_inputs(ctx)
    assert hashes.full.digest() == _sha(prefix + b"\x03" * 32)


def test_overwinter_first_pass_flush():
    config = CoinConfig(kind=CoinKind.ZCASH)
    ctx = TransactionContext(
        config=config, using_segwit=True, using_overwinter=OverwinterMode.SAPLING
    )
    hashes = TransactionHashes()
    hashes.start(ctx)
    prevout = b"\xaa" * 36
    sequence = b"\xfe\xff\xff\xff"
    hashes.add_prevout(prevout)
    hashes.add(sequence, HashOption.FULL)
    hashes.finish_inputs(ctx)
    assert ctx.segwit.hashed_prevouts == _blake(b"ZcashPrevoutHash", prevout)
    assert ctx.segwit.hashed_sequence == _blake(b"ZcashSequencHash", sequence)
    assert hashes.full.digest() == _blake(b"ZcashOutputsHash", b"")


def test_sapling_second_pass_feeds_fields():
    cache = SegwitCache(b"\x01" * 32, b"\x02" * 32, b"\x03" * 32)
    ctx = TransactionContext(
        config=CoinConfig(kind=CoinKind.ZCASH),
        using_segwit=True,
        using_overwinter=OverwinterMode.SAPLING,
        segwit_parsed_once=True,
        segwit=cache,
        transaction_version=b"\x04\x00\x00\x80",
        n_version_group_id=b"\x85\x20\x2f\x89",
        n_lock_time=b"\x10\x00\x00\x00",
        n_expiry_height=b"\x20\x00\x00\x00",
        sig_hash_type=b"\x01\x00\x00\x00",
    )
    hashes = TransactionHashes()
    hashes.start(ctx)
    expected = (
        ctx.transaction_version
        + ctx.n_version_group_id
        + cache.to_bytes()
        + NO_JOINSPLITS * 3
        + ctx.n_lock_time
        + ctx.n_expiry_height
        + bytes(8)
        + ctx.sig_hash_type
    )
    person = sighash_personalization(CoinKind.ZCASH, OverwinterMode.SAPLING)
    assert hashes.full.digest() == _blake(person, expected)
    assert hashes.authorization.digest() == _sha(b"")


def test_overwinter_second_pass_omits_sapling_fields():
    cache = SegwitCache()
    ctx = TransactionContext(
        config=CoinConfig(kind=CoinKind.ZCASH),
        using_segwit=True,
        using_overwinter=OverwinterMode.OVERWINTER,
        segwit_parsed_once=True,
        segwit=cache,
    )
    hashes = TransactionHashes()
    hashes.start(ctx)
    expected = bytes(4) * 2 + cache.to_bytes() + NO_JOINSPLITS + bytes(4) * 3
    person = sighash_personalization(CoinKind.ZCASH, OverwinterMode.OVERWINTER)
    assert hashes.full.digest() == _blake(person, expected)


def test_non_segwit_finish_keeps_full_hash():
    ctx = TransactionContext()
    hashes = TransactionHashes()
    hashes.start(ctx)
    hashes.add(b"inputs", HashOption.FULL)
    hashes.finish_inputs(ctx)
    assert hashes.full.digest() == _sha(b"inputs")
    assert ctx.segwit == SegwitCache()