"""
Bitcoin Light Mirror - Exceptions

This module defines custom exceptions for light mirror proof decoding and
verification.
"""

from wire.exceptions import DecodeError
from wire.utils import hash_to_hex


class LightMirrorError(Exception):
    """Base exception for light mirror errors."""
    pass


class TransactionCountError(DecodeError, LightMirrorError):
    """Exception raised when a proof claims more transactions than fit in a block."""

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(
            f"BtcLightMirror.deserialize too many transactions to fit into a block "
            f"[count {count}, max {maximum}]"
        )


class VerificationError(LightMirrorError):
    """Exception raised when the recomputed Merkle root does not match the header."""

    def __init__(self, expected: bytes, calculated: bytes):
        self.expected = expected
        self.calculated = calculated
        super().__init__(
            f"block merkle root is invalid - block header indicates "
            f"{hash_to_hex(expected)}, but calculated value is {hash_to_hex(calculated)}"
        )
