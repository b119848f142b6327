"""
Bitcoin Light Mirror - Block Header Codec

This module provides the 80-byte Bitcoin block header record and the codec
used to read, write and hash it.
"""

import logging
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Any, BinaryIO, Dict

from .utils import HASH_SIZE, INT32_MAX, INT32_MIN, UINT32_MAX, double_sha256, hash_to_hex, read_exact


BLOCK_HEADER_SIZE = 80
HEADER_FORMAT = '<i32s32sIII'


@dataclass(frozen=True)
class BlockHeader:
    """
    Represents a Bitcoin block header.

    Hash fields are kept in internal byte order, the order they are
    serialized and hashed in.
    """
    version: int
    prev_block: bytes
    merkle_root: bytes
    timestamp: int
    bits: int
    nonce: int

    def __post_init__(self):
        """Validate header fields."""
        if len(self.prev_block) != HASH_SIZE:
            raise ValueError("Previous block hash must be 32 bytes")

        if len(self.merkle_root) != HASH_SIZE:
            raise ValueError("Merkle root must be 32 bytes")

        if not INT32_MIN <= self.version <= INT32_MAX:
            raise ValueError("Header version must fit in a signed 32-bit integer")

        for name in ('timestamp', 'bits', 'nonce'):
            value = getattr(self, name)
            if not 0 <= value <= UINT32_MAX:
                raise ValueError(f"Header {name} must fit in 32 bits")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'prev_block': hash_to_hex(self.prev_block),
            'merkle_root': hash_to_hex(self.merkle_root),
            'timestamp': self.timestamp,
            'bits': f"{self.bits:08x}",
            'nonce': self.nonce,
        }


class HeaderCodec(ABC):
    """Encodes, decodes and hashes block headers."""

    @abstractmethod
    def serialize(self, header: BlockHeader, stream: BinaryIO) -> None:
        """Write a header to a stream."""

    @abstractmethod
    def deserialize(self, stream: BinaryIO) -> BlockHeader:
        """Read a header from a stream."""

    @abstractmethod
    def hash(self, header: BlockHeader) -> bytes:
        """Return the block hash in internal byte order."""


class BitcoinHeaderCodec(HeaderCodec):
    """Codec for the fixed 80-byte Bitcoin block header layout."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def serialize(self, header: BlockHeader, stream: BinaryIO) -> None:
        stream.write(self.to_bytes(header))

    def deserialize(self, stream: BinaryIO) -> BlockHeader:
        data = read_exact(stream, BLOCK_HEADER_SIZE)
        version, prev_block, merkle_root, timestamp, bits, nonce = struct.unpack(HEADER_FORMAT, data)
        return BlockHeader(
            version=version,
            prev_block=prev_block,
            merkle_root=merkle_root,
            timestamp=timestamp,
            bits=bits,
            nonce=nonce
        )

    def hash(self, header: BlockHeader) -> bytes:
        return double_sha256(self.to_bytes(header))

    def to_bytes(self, header: BlockHeader) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            header.version,
            header.prev_block,
            header.merkle_root,
            header.timestamp,
            header.bits,
            header.nonce
        )

    def from_bytes(self, data: bytes) -> BlockHeader:
        """
        Decode a header from exactly 80 bytes.

        Args:
            data: Serialized header

        Returns:
            Decoded BlockHeader
        """
        if len(data) != BLOCK_HEADER_SIZE:
            raise ValueError(f"Block header must be {BLOCK_HEADER_SIZE} bytes, got {len(data)}")
        return self.deserialize(BytesIO(data))
