"""State shared by the transaction parser and hashers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag, auto

from coinsign.amounts import AMOUNT_SIZE
from coinsign.swap import SwapData

MAX_BIP32_PATH = 10
MAX_BIP32_PATH_LENGTH = 4 * MAX_BIP32_PATH + 1
BIP44_PATH_LEN = 5
BIP44_PURPOSE_OFFSET = 0
BIP44_COIN_TYPE_OFFSET = 1
BIP44_ACCOUNT_OFFSET = 2
BIP44_CHANGE_OFFSET = 3
BIP44_ADDRESS_INDEX_OFFSET = 4
MAX_BIP44_ACCOUNT_RECOMMENDED = 100
MAX_BIP44_ADDRESS_INDEX_RECOMMENDED = 50000

TRUSTED_INPUT_SIZE = 48
TRUSTED_INPUT_TOTAL_SIZE = TRUSTED_INPUT_SIZE + 8

_OVERWINTERED_FLAG = 1 << 31


class HashOption(IntFlag):
    """Which running hashes consumed transaction bytes are fed into."""

    NONE = 0x00
    FULL = 0x01
    AUTHORIZATION = 0x02
    BOTH = 0x03


class ParseMode(IntEnum):
    """Why a transaction is being parsed."""

    TRUSTED_INPUT = 0x01
    SIGNATURE = 0x02


class TransactionState(Enum):
    """Position of the streaming parser within a transaction."""

    NONE = auto()
    DEFINED_WAIT_INPUT = auto()
    INPUT_HASHING_IN_PROGRESS_INPUT_SCRIPT = auto()
    INPUT_HASHING_DONE = auto()
    DEFINED_WAIT_OUTPUT = auto()
    OUTPUT_HASHING_IN_PROGRESS_OUTPUT_SCRIPT = auto()
    OUTPUT_HASHING_DONE = auto()
    PROCESS_EXTRA = auto()
    PARSED = auto()
    PRESIGN_READY = auto()
    SIGN_READY = auto()


class CoinKind(Enum):
    """Coin variants whose transaction format differs from plain Bitcoin."""

    UNUSED = auto()
    ZCASH = auto()
    ZCLASSIC = auto()
    KOMODO = auto()


class CoinFamily(IntEnum):
    """Coin family, deciding optional transaction fields."""

    BITCOIN = 0x01
    PEERCOIN = 0x02
    STEALTH = 0x04


class OverwinterMode(IntEnum):
    """Zcash-style transaction format in use, if any."""

    NONE = 0
    OVERWINTER = 1
    SAPLING = 2


_OVERWINTER_KINDS = frozenset({CoinKind.ZCASH, CoinKind.ZCLASSIC, CoinKind.KOMODO})


@dataclass(frozen=True)
class CoinConfig:
    """Per-coin settings fixed when the application is built."""

    kind: CoinKind = CoinKind.UNUSED
    family: CoinFamily = CoinFamily.BITCOIN
    peercoin_support: bool = False
    consensus_branch_id: int = 0
    trusted_input_key: bytes = bytes(32)

    def __post_init__(self) -> None:
        if len(self.trusted_input_key) != 32:
            raise ValueError("trusted input key must be 32 bytes")


@dataclass
class SegwitCache:
    """Digests kept between the two passes of a SegWit signature."""

    hashed_prevouts: bytes = bytes(32)
    hashed_sequence: bytes = bytes(32)
    hashed_outputs: bytes = bytes(32)

    def to_bytes(self) -> bytes:
        """Return the three digests concatenated in their stored order."""
        return self.hashed_prevouts + self.hashed_sequence + self.hashed_outputs


class TransactionError(ValueError):
    """Raised when a transaction is malformed or fails verification."""


@dataclass
class TransactionContext:
    """Mutable state of a transaction being parsed and hashed."""

    config: CoinConfig = field(default_factory=CoinConfig)
    using_segwit: bool = False
    using_overwinter: OverwinterMode = OverwinterMode.NONE
    segwit_parsed_once: bool = False
    segwit: SegwitCache = field(default_factory=SegwitCache)

    transaction_version: bytes = bytes(4)
    n_version_group_id: bytes = bytes(4)
    n_lock_time: bytes = bytes(4)
    n_expiry_height: bytes = bytes(4)
    sig_hash_type: bytes = bytes(4)
    input_value: bytes = bytes(8)

    state: TransactionState = TransactionState.NONE
    hash_option: HashOption = HashOption.BOTH
    remaining_inputs_outputs: int = 0
    current_input_output: int = 0
    script_remaining: int = 0
    transaction_amount: bytes = bytes(AMOUNT_SIZE)
    relaxed: bool = False
    consume_p2sh: bool = False

    target_input: int = 0
    trusted_input_processed: bool = False

    called_from_swap: bool = False
    swap_data: SwapData = field(default_factory=SwapData)

    def reset(self) -> None:
        """Clear the per-parse counters and the accumulated amount."""
        self.remaining_inputs_outputs = 0
        self.current_input_output = 0
        self.script_remaining = 0
        self.transaction_amount = bytes(AMOUNT_SIZE)

    def is_trusted_input_overwinter(self) -> bool:
        """Tell whether the parsed version announces an overwintered transaction."""
        if self.config.kind not in _OVERWINTER_KINDS:
            return False
        version = int.from_bytes(self.transaction_version[:4], "little")
        return bool(version & _OVERWINTERED_FLAG) and (
            version ^ _OVERWINTERED_FLAG
        ) >= 0x03