# coinsign

Building blocks for signing Bitcoin-family transactions: a streaming
transaction parser that feeds signature and authorization hashes, Bech32 and
SegWit address encoding, Bitcoin Cash CashAddr encoding, 8-byte big-endian
amount arithmetic, and validation of exchange (swap) parameters.

The package has no runtime dependencies.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

### `coinsign.amounts`

`add_be(a, b)` and `sub_be(a, b)` take two 8-byte big-endian amounts and
return `(result, carry)` or `(result, borrow)`. Results wrap modulo 2**64.
Inputs of any other length raise `ValueError`. `AMOUNT_SIZE` is 8.

### `coinsign.bech32`

- `bech32_encode(hrp, data)` encodes a lower-case human readable part and a
  list of 5-bit values; `bech32_decode(bech)` returns `(hrp, data)` with the
  checksum stripped and the human readable part lower-cased.
- `segwit_addr_encode(hrp, witver, witprog)` and
  `segwit_addr_decode(hrp, addr)` handle SegWit addresses (witness version
  0 to 16, program 2 to 40 bytes, 20 or 32 bytes for version 0).
- `convert_bits(data, frombits, tobits, pad)` regroups bit widths.
- `bech32_polymod_step(pre)` advances the checksum state.

Every rejected input raises `Bech32Error`, a `ValueError`.

### `coinsign.cashaddr`

`cashaddr_encode(hash160, version, max_length=None)` encodes a 20-byte hash
as a CashAddr using the `bitcoincash` prefix for the checksum. The returned
string does not include the `bitcoincash:` prefix. `version` is
`CashAddrType.P2PKH` or `CashAddrType.P2SH`. A wrong hash size, an unknown
version or an address longer than `max_length` raises `CashAddrError`.
`polymod`, `polymod_step` and `create_checksum` expose the checksum steps.

### `coinsign.swap`

`copy_transaction_parameters(destination_address, destination_address_extra_id,
amount, fee_amount)` returns an initialized `SwapData` with the amount and
fees right-aligned into 8-byte big-endian values. It raises `SwapError` when
the extra id is `None` or not empty, the address is longer than 64
characters, or an amount is longer than 8 bytes. `SwapData` also carries the
signing progress (`was_address_checked`, `total_number_of_inputs`,
`already_signed_inputs`).

### `coinsign.txcontext`

`TransactionContext` holds the state of one signing session: the coin
settings (`CoinConfig`: `kind`, `family`, `peercoin_support`,
`consensus_branch_id`, `trusted_input_key`), SegWit and Overwinter/Sapling
flags, the cached SegWit digests (`SegwitCache`), the parser state
(`TransactionState`), which hashes are fed (`HashOption`), counters and the
accumulated input amount. `reset()` clears the per-parse counters and the
amount; `is_trusted_input_overwinter()` tells whether the parsed version
announces an overwintered Zcash-style transaction. Enums `ParseMode`,
`CoinKind`, `CoinFamily` and `OverwinterMode` describe the options.
`TransactionError` is raised for malformed or unverifiable transactions.

### `coinsign.hashing`

`TransactionHashes` keeps the full hash (SHA-256, or BLAKE2b with Zcash
personalizations when Overwinter is in use), the SHA-256 authorization hash
and the SegWit prevouts hash. `start(ctx)`, `add(data, option)`,
`add_prevout(data)` and `finish_inputs(ctx)` drive them.
`sighash_personalization(coin_kind, overwinter_mode, branch_id=0)` returns
the 16-byte signature-hash personalization for a consensus branch.

### `coinsign.parser`

`TransactionParser(ctx=None, hashes=None)` walks a serialized transaction.
`parse(data, parse_mode)` consumes one chunk, updates the context and hashes,
and returns the bytes left unparsed. Scripts may span several chunks;
fixed-size fields may not. In `ParseMode.SIGNATURE` each input starts with a
flag byte (0 untrusted, 1 trusted input checked with an HMAC-SHA256 under
`CoinConfig.trusted_input_key`, 2 SegWit), and parsing stops once the inputs
are hashed. In `ParseMode.TRUSTED_INPUT` the whole transaction is parsed and
the amount of output `ctx.target_input` is recorded.

## Example

```python
from coinsign.amounts import add_be, sub_be
from coinsign.bech32 import segwit_addr_decode, segwit_addr_encode

program = bytes(20)
address = segwit_addr_encode("bc", 0, program)
assert segwit_addr_decode("bc", address) == (0, program)

total, carry = add_be((1000).to_bytes(8, "big"), (250).to_bytes(8, "big"))
fees, borrow = sub_be(total, (1200).to_bytes(8, "big"))
assert int.from_bytes(fees, "big") == 50 and not borrow
```

## What this package does not do

It holds no keys and produces no signatures: it does not derive public keys,
compute signatures, or check an address against a derivation path. It has no
confirmation screens or other user interface, no device communication and no
command-line program, and it does not format amounts for display. It only
parses transactions, maintains their hashes and encodes addresses from
hashes you supply.