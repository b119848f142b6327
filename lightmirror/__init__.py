"""
Bitcoin Light Mirror - Coinbase Inclusion Proofs

This module provides compact proofs that a coinbase transaction belongs to a
Bitcoin block, including:
- Authentication path construction from a block's transaction hashes
- A binary wire format with bounded decoding
- Merkle root verification against the block header
- Extraction of the commitment embedded in the coinbase outputs
"""

from .address import Address, ZERO_ADDRESS, bytes_to_address
from .commitment import (
    CommitmentPayload,
    COMMITMENT_MAGIC,
    parse_commitment,
    build_commitment_script,
)
from .exceptions import LightMirrorError, TransactionCountError, VerificationError
from .proof import (
    BtcLightMirror,
    LightMirrorCodec,
    MAX_TX_PER_BLOCK,
    create_light_mirror,
    check_merkle,
)

__all__ = [
    'Address',
    'ZERO_ADDRESS',
    'bytes_to_address',
    'CommitmentPayload',
    'COMMITMENT_MAGIC',
    'parse_commitment',
    'build_commitment_script',
    'LightMirrorError',
    'TransactionCountError',
    'VerificationError',
    'BtcLightMirror',
    'LightMirrorCodec',
    'MAX_TX_PER_BLOCK',
    'create_light_mirror',
    'check_merkle',
]

__version__ = '1.0.0'
