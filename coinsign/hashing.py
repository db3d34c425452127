"""Running hashes fed while a transaction is parsed."""

from __future__ import annotations

import hashlib
from typing import Any

from coinsign.txcontext import (
    CoinKind,
    HashOption,
    OverwinterMode,
    TransactionContext,
    TransactionError,
)

CONSENSUS_BRANCH_ID_OVERWINTER = 0x5BA81B19
CONSENSUS_BRANCH_ID_SAPLING = 0x76B809BB
CONSENSUS_BRANCH_ID_ZCLASSIC = 0x930B540D

PREVOUTS_PERSONALIZATION = b"ZcashPrevoutHash"
SEQUENCE_PERSONALIZATION = b"ZcashSequencHash"
OUTPUTS_PERSONALIZATION = b"ZcashOutputsHash"
_SIGHASH_PREFIX = b"ZcashSigHash"
NO_JOINSPLITS = bytes(32)
_DIGEST_SIZE = 32


def _blake2b(personalization: bytes) -> Any:
    return hashlib.blake2b(digest_size=_DIGEST_SIZE, person=personalization)


def sighash_personalization(
    coin_kind: CoinKind, overwinter_mode: OverwinterMode, branch_id: int = 0
) -> bytes:
    """Return the 16-byte BLAKE2b personalization of the signature hash.

    ``branch_id`` overrides the Sapling consensus branch id when non-zero.
    """
    if coin_kind is CoinKind.ZCLASSIC:
        branch = CONSENSUS_BRANCH_ID_ZCLASSIC
    elif overwinter_mode == OverwinterMode.SAPLING:
        branch = branch_id if branch_id else CONSENSUS_BRANCH_ID_SAPLING
    else:
        branch = CONSENSUS_BRANCH_ID_OVERWINTER
    return _SIGHASH_PREFIX + branch.to_bytes(4, "little")


class TransactionHashes:
    """The full, authorization and prevouts hashes of a transaction.

    ``full`` is SHA-256 for plain transactions and BLAKE2b for overwintered
    ones; ``authorization`` is always SHA-256. ``prevouts`` is only used on
    the first pass over SegWit inputs.
    """

    def __init__(self) -> None:
        self.full: Any = None
        self.authorization: Any = None
        self.prevouts: Any = None

    def start(self, ctx: TransactionContext) -> None:
        """Initialize the hashes for a new parse of ``ctx``'s transaction.

        On the second pass of a SegWit signature the cached digests are fed
        in first, as the signature hash requires.
        """
        overwinter = ctx.using_overwinter != OverwinterMode.NONE
        sapling = ctx.using_overwinter == OverwinterMode.SAPLING
        if overwinter:
            if ctx.segwit_parsed_once:
                self.full = _blake2b(
                    sighash_personalization(
                        ctx.config.kind,
                        ctx.using_overwinter,
                        ctx.config.consensus_branch_id,
                    )
                )
            elif self.full is None:
                self.full = hashlib.blake2b(digest_size=_DIGEST_SIZE)
        else:
            self.full = hashlib.sha256()
        self.authorization = hashlib.sha256()

        if not ctx.using_segwit:
            return
        ctx.hash_option = HashOption.NONE
        if not ctx.segwit_parsed_once:
            if overwinter:
                self.prevouts = _blake2b(PREVOUTS_PERSONALIZATION)
                self.full = _blake2b(SEQUENCE_PERSONALIZATION)
            else:
                self.prevouts = hashlib.sha256()
            return

        cache = ctx.segwit
        if overwinter:
            parts = [
                ctx.transaction_version,
                ctx.n_version_group_id,
                cache.hashed_prevouts,
                cache.hashed_sequence,
                cache.hashed_outputs,
                NO_JOINSPLITS,
            ]
            if sapling:
                parts += [NO_JOINSPLITS, NO_JOINSPLITS]
            parts += [ctx.n_lock_time, ctx.n_expiry_height]
            if sapling:
                parts.append(bytes(8))
            parts.append(ctx.sig_hash_type)
            for part in parts:
                self.full.update(part)
        else:
            for part in (
                ctx.transaction_version,
                cache.hashed_prevouts,
                cache.hashed_sequence,
            ):
                self.full.update(part)
            self.authorization.update(cache.to_bytes())

    def add(self, data: bytes, option: HashOption) -> None:
        """Feed ``data`` into the hashes selected by ``option``."""
        if option & HashOption.FULL:
            if self.full is None:
                raise TransactionError("full hash not started")
            self.full.update(data)
        if option & HashOption.AUTHORIZATION:
            if self.authorization is None:
                raise TransactionError("authorization hash not started")
            self.authorization.update(data)

    def add_prevout(self, data: bytes) -> None:
        """Feed an outpoint into the SegWit prevouts hash."""
        if self.prevouts is None:
            raise TransactionError("prevouts hash not started")
        self.prevouts.update(data)

    def finish_inputs(self, ctx: TransactionContext) -> None:
        """Complete the input hashing of a signature parse.

        On a first SegWit pass the prevouts and sequence digests are stored
        in ``ctx.segwit``. Afterwards the full hash is either given the
        cached outputs digest (second SegWit pass) or restarted for outputs.
        """
        overwinter = ctx.using_overwinter != OverwinterMode.NONE
        if ctx.using_segwit and not ctx.segwit_parsed_once:
            if self.prevouts is None or self.full is None:
                raise TransactionError("input hashes not started")
            if overwinter:
                hashed_prevouts = self.prevouts.digest()
                hashed_sequence = self.full.digest()
            else:
                hashed_prevouts = hashlib.sha256(self.prevouts.digest()).digest()
                hashed_sequence = hashlib.sha256(self.full.digest()).digest()
            self.prevouts = None
            ctx.segwit.hashed_prevouts = hashed_prevouts
            ctx.segwit.hashed_sequence = hashed_sequence

        if ctx.using_segwit and ctx.segwit_parsed_once:
            if not overwinter:
                if self.full is None:
                    raise TransactionError("full hash not started")
                self.full.update(ctx.segwit.hashed_outputs)
        elif overwinter:
            self.full = _blake2b(OUTPUTS_PERSONALIZATION)
        elif ctx.using_segwit:
            self.full = hashlib.sha256()