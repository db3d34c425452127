"""Transaction parsing, hashing, address encoding and amount arithmetic for Bitcoin-family signing."""

__version__ = "0.1.0"

__all__ = ["amounts", "bech32", "cashaddr", "swap", "txcontext", "hashing", "parser"]