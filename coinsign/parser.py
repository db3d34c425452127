"""Streaming parser that walks a transaction and feeds its hashes."""

from __future__ import annotations

import hashlib
import hmac

from coinsign.amounts import AMOUNT_SIZE, add_be
from coinsign.hashing import TransactionHashes
from coinsign.txcontext import (
    TRUSTED_INPUT_SIZE,
    TRUSTED_INPUT_TOTAL_SIZE,
    CoinFamily,
    HashOption,
    OverwinterMode,
    ParseMode,
    TransactionContext,
    TransactionError,
    TransactionState,
)

OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_CHECKMULTISIG = 0xAE

MAGIC_TRUSTED_INPUT = 0x32
_MAC_SIZE = 8
_PREVOUT_SIZE = 36
_TRUSTED_INPUT_HEADER_SIZE = 4

_FLAG_UNTRUSTED = 0
_FLAG_TRUSTED = 1
_FLAG_SEGWIT = 2


class TransactionParser:
    """Incremental transaction parser.

    Each call to :meth:`parse` consumes one chunk of the serialized
    transaction, updating the shared :class:`TransactionContext` and the
    running :class:`TransactionHashes`. Fixed-size fields must not span two
    chunks; scripts may.
    """

    def __init__(
        self,
        ctx: TransactionContext | None = None,
        hashes: TransactionHashes | None = None,
    ) -> None:
        self.ctx = ctx if ctx is not None else TransactionContext()
        self.hashes = hashes if hashes is not None else TransactionHashes()
        self._buf = bytearray()
        self._pos = 0
        self._end = 0
        self._handlers = {
            TransactionState.NONE: self._start,
            TransactionState.DEFINED_WAIT_INPUT: self._wait_input,
            TransactionState.INPUT_HASHING_IN_PROGRESS_INPUT_SCRIPT: self._input_script,
            TransactionState.INPUT_HASHING_DONE: self._inputs_done,
            TransactionState.DEFINED_WAIT_OUTPUT: self._wait_output,
            TransactionState.OUTPUT_HASHING_IN_PROGRESS_OUTPUT_SCRIPT: self._output_script,
            TransactionState.OUTPUT_HASHING_DONE: self._outputs_done,
            TransactionState.PROCESS_EXTRA: self._process_extra,
            TransactionState.PARSED: self._stop,
            TransactionState.PRESIGN_READY: self._stop,
            TransactionState.SIGN_READY: self._stop,
        }

    def parse(self, data: bytes, parse_mode: ParseMode | int) -> bytes:
        """Consume ``data`` and return the bytes left unparsed.

        Raises TransactionError when the data is malformed or a trusted
        input fails verification.
        """
        mode = ParseMode(parse_mode)
        self._buf = bytearray(data)
        self._pos = 0
        self._end = len(self._buf)
        while self._handlers[self.ctx.state](mode):
            pass
        return bytes(self._buf[self._pos : self._end])

    # -- buffer helpers -------------------------------------------------

    @property
    def _remaining(self) -> int:
        return self._end - self._pos

    def _require(self, size: int) -> None:
        if self._remaining < size:
            raise TransactionError(
                f"transaction data too short: {self._remaining} < {size}"
            )

    def _peek(self, size: int) -> bytes:
        return bytes(self._buf[self._pos : self._pos + size])

    def _hash(self, data: bytes) -> None:
        self.hashes.add(data, self.ctx.hash_option)

    def _take(self, size: int) -> bytes:
        chunk = self._peek(size)
        self._hash(chunk)
        self._pos += size
        return chunk

    def _varint(self) -> int:
        self._require(1)
        first = self._buf[self._pos]
        if first < 0xFD:
            self._take(1)
            return first
        if first == 0xFD:
            self._take(1)
            self._require(2)
            return int.from_bytes(self._take(2), "little")
        if first == 0xFE:
            self._take(1)
            self._require(4)
            return int.from_bytes(self._take(4), "little")
        raise TransactionError("varint parsing failed")

    def _add_amount(self, little_endian: bytes) -> None:
        total, carry = add_be(self.ctx.transaction_amount, little_endian[::-1])
        if carry:
            raise TransactionError("amount overflow")
        self.ctx.transaction_amount = total

    # -- states ---------------------------------------------------------

    def _start(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        config = ctx.config
        ctx.reset()
        self.hashes.start(ctx)

        self._require(4)
        ctx.transaction_version = self._take(4)

        if ctx.using_overwinter != OverwinterMode.NONE or ctx.is_trusted_input_overwinter():
            self._require(4)
            ctx.n_version_group_id = self._take(4)

        if config.peercoin_support:
            version_low = ctx.transaction_version[0]
            if (config.family == CoinFamily.PEERCOIN and version_low < 3) or (
                config.family == CoinFamily.STEALTH and version_low < 2
            ):
                self._require(4)
                self._take(4)

        ctx.remaining_inputs_outputs = self._varint()
        if ctx.called_from_swap and mode == ParseMode.SIGNATURE:
            if ctx.swap_data.total_number_of_inputs == 0:
                ctx.swap_data.total_number_of_inputs = ctx.remaining_inputs_outputs
            ctx.swap_data.was_address_checked = False
        ctx.state = TransactionState.DEFINED_WAIT_INPUT
        return True

    def _wait_input(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if ctx.remaining_inputs_outputs == 0:
            ctx.state = TransactionState.INPUT_HASHING_DONE
            return True
        if self._remaining < 1:
            return False
        if mode == ParseMode.TRUSTED_INPUT:
            self._require(_PREVOUT_SIZE)
            self._take(_PREVOUT_SIZE)
        if mode == ParseMode.SIGNATURE:
            self._signature_input()
        ctx.script_remaining = self._varint()
        ctx.state = TransactionState.INPUT_HASHING_IN_PROGRESS_INPUT_SCRIPT
        return True

    def _signature_input(self) -> None:
        ctx = self.ctx
        self._require(2)
        flag = self._buf[self._pos]
        if flag == _FLAG_UNTRUSTED:
            if ctx.using_segwit:
                raise TransactionError("non trusted input used in segwit mode")
            trusted = False
        elif flag == _FLAG_TRUSTED:
            trusted = True
        elif flag == _FLAG_SEGWIT:
            if not ctx.using_segwit:
                raise TransactionError("segwit input not used in segwit mode")
            trusted = False
        else:
            raise TransactionError(f"invalid trusted input flag {flag}")

        length = self._verify_trusted_input() if trusted else 0

        if ctx.using_segwit:
            self._segwit_input()
        elif not trusted:
            self._pos += 1
            self._require(_PREVOUT_SIZE)
            self._take(_PREVOUT_SIZE)
            ctx.relaxed = True
        else:
            self._legacy_trusted_input(length)

        if not ctx.using_segwit:
            ctx.hash_option = HashOption.FULL

    def _verify_trusted_input(self) -> int:
        ctx = self.ctx
        length = self._buf[self._pos + 1]
        if length > TRUSTED_INPUT_TOTAL_SIZE or length < _MAC_SIZE:
            raise TransactionError(f"invalid trusted input size {length}")
        self._require(2 + length)
        start = self._pos + 2
        body = bytes(self._buf[start : start + length - _MAC_SIZE])
        mac = bytes(self._buf[start + length - _MAC_SIZE : start + length])
        computed = hmac.new(
            ctx.config.trusted_input_key, body, hashlib.sha256
        ).digest()[:_MAC_SIZE]
        if not hmac.compare_digest(computed, mac):
            raise TransactionError("invalid trusted input signature")

        if ctx.using_segwit:
            # Move the script length byte over the MAC and skip the header,
            # so the data reads as a plain segwit input.
            source = self._pos + 1 + TRUSTED_INPUT_TOTAL_SIZE + 1
            target = self._pos + 1 + TRUSTED_INPUT_SIZE + 1
            if source >= self._end:
                raise TransactionError("trusted input not followed by a script length")
            self._buf[target] = self._buf[source]
            self._pos += 5
            self._end -= _MAC_SIZE
        return length

    def _segwit_input(self) -> None:
        ctx = self.ctx
        self._take(1)
        self._require(_PREVOUT_SIZE)
        if not ctx.segwit_parsed_once:
            self.hashes.add_prevout(self._peek(_PREVOUT_SIZE))
            self._take(_PREVOUT_SIZE)
            self._require(AMOUNT_SIZE)
            self._add_amount(self._peek(AMOUNT_SIZE))
            self._take(AMOUNT_SIZE)
        else:
            ctx.hash_option = HashOption.FULL
            self._take(_PREVOUT_SIZE)
            ctx.hash_option = HashOption.NONE
            self._require(AMOUNT_SIZE)
            ctx.input_value = self._take(AMOUNT_SIZE)
            ctx.hash_option = HashOption.FULL

    def _legacy_trusted_input(self, length: int) -> None:
        start = self._pos + 2
        body = bytes(self._buf[start : start + length - _MAC_SIZE])
        if len(body) < TRUSTED_INPUT_SIZE:
            raise TransactionError(f"invalid trusted input size {length}")
        if body[0] != MAGIC_TRUSTED_INPUT:
            raise TransactionError("failed to verify trusted input signature")
        prevout_end = _TRUSTED_INPUT_HEADER_SIZE + _PREVOUT_SIZE
        self._hash(body[_TRUSTED_INPUT_HEADER_SIZE:prevout_end])
        self._pos += 2 + length
        self._add_amount(body[prevout_end : prevout_end + AMOUNT_SIZE])

    def _input_script(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if self._remaining < 1:
            return False
        if ctx.script_remaining == 1:
            ctx.consume_p2sh = self._buf[self._pos] == OP_CHECKMULTISIG
            self._take(1)
            ctx.script_remaining -= 1

        if ctx.script_remaining == 0:
            if mode == ParseMode.SIGNATURE:
                if not ctx.using_segwit:
                    ctx.hash_option = HashOption.BOTH
                elif ctx.segwit_parsed_once:
                    self.hashes.add(ctx.input_value, HashOption.FULL)
            self._require(4)
            if ctx.using_segwit and not ctx.segwit_parsed_once:
                self.hashes.add(self._peek(4), HashOption.FULL)
            self._take(4)
            ctx.remaining_inputs_outputs -= 1
            ctx.current_input_output += 1
            ctx.state = TransactionState.DEFINED_WAIT_INPUT
            return True

        # The last script byte is kept back for the P2SH check.
        available = min(self._remaining, ctx.script_remaining - 1)
        if available == 0:
            return False
        self._take(available)
        ctx.script_remaining -= available
        return True

    def _inputs_done(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if mode == ParseMode.SIGNATURE:
            self.hashes.finish_inputs(ctx)
            if ctx.using_segwit and ctx.segwit_parsed_once:
                ctx.state = TransactionState.SIGN_READY
            else:
                ctx.state = TransactionState.PRESIGN_READY
            return True
        if self._remaining < 1:
            return False
        ctx.remaining_inputs_outputs = self._varint()
        ctx.current_input_output = 0
        ctx.state = TransactionState.DEFINED_WAIT_OUTPUT
        return True

    def _wait_output(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if ctx.remaining_inputs_outputs == 0:
            ctx.state = TransactionState.OUTPUT_HASHING_DONE
            return True
        if self._remaining < 1:
            return False
        self._require(AMOUNT_SIZE)
        if (
            mode == ParseMode.TRUSTED_INPUT
            and ctx.current_input_output == ctx.target_input
        ):
            ctx.transaction_amount = self._peek(AMOUNT_SIZE)
            ctx.trusted_input_processed = True
        self._take(AMOUNT_SIZE)
        ctx.script_remaining = self._varint()
        ctx.state = TransactionState.OUTPUT_HASHING_IN_PROGRESS_OUTPUT_SCRIPT
        return True

    def _output_script(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if self._remaining < 1:
            return False
        if ctx.script_remaining == 0:
            ctx.remaining_inputs_outputs -= 1
            ctx.current_input_output += 1
            ctx.state = TransactionState.DEFINED_WAIT_OUTPUT
            return True
        available = min(self._remaining, ctx.script_remaining)
        self._take(available)
        ctx.script_remaining -= available
        return True

    def _outputs_done(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if self._remaining < 1:
            return False
        self._require(4)
        self._take(4)
        if self._remaining == 0:
            ctx.state = TransactionState.PARSED
            return True
        ctx.hash_option = HashOption.NONE
        ctx.script_remaining = self._varint()
        ctx.hash_option = HashOption.FULL
        ctx.state = TransactionState.PROCESS_EXTRA
        return True

    def _process_extra(self, mode: ParseMode) -> bool:
        ctx = self.ctx
        if ctx.script_remaining == 0:
            ctx.state = TransactionState.PARSED
            return True
        if self._remaining < 1:
            return False
        available = min(self._remaining, ctx.script_remaining)
        self._take(available)
        ctx.script_remaining -= available
        return True

    def _stop(self, mode: ParseMode) -> bool:
        return False