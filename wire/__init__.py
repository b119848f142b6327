"""
Bitcoin Light Mirror - Wire Encoding

This module provides the Bitcoin wire primitives the light mirror proof is
built from: compact size integers, block headers and transactions.
"""

from .exceptions import WireError, DecodeError, TruncatedStreamError
from .header import BlockHeader, HeaderCodec, BitcoinHeaderCodec, BLOCK_HEADER_SIZE
from .transaction import TxIn, TxOut, Transaction, TransactionCodec, BitcoinTransactionCodec
from .utils import (
    HASH_SIZE,
    ZERO_HASH,
    double_sha256,
    hash_to_hex,
    hex_to_hash,
    read_compact_size,
    serialize_compact_size
)

__all__ = [
    'WireError',
    'DecodeError',
    'TruncatedStreamError',
    'BlockHeader',
    'HeaderCodec',
    'BitcoinHeaderCodec',
    'BLOCK_HEADER_SIZE',
    'TxIn',
    'TxOut',
    'Transaction',
    'TransactionCodec',
    'BitcoinTransactionCodec',
    'HASH_SIZE',
    'ZERO_HASH',
    'double_sha256',
    'hash_to_hex',
    'hex_to_hash',
    'read_compact_size',
    'serialize_compact_size',
]

__version__ = '1.0.0'
