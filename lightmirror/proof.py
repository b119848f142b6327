"""
Bitcoin Light Mirror - Proof Structure and Codec

A light mirror is a compact proof that a coinbase transaction belongs to a
particular Bitcoin block. It carries the block header, the coinbase
transaction, the block's transaction count and the Merkle authentication path
of the coinbase, which is enough to recompute the header's Merkle root without
downloading the block body.

Wire format, in order:
    block header        80 bytes
    coinbase tx         Bitcoin transaction serialization
    transaction count   compact size
    merkle nodes        compute_exponent(count) raw 32-byte hashes
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, BinaryIO, Dict, Optional, Sequence, Tuple

from crypto.merkle import (
    MerkleHasher,
    build_authentication_path,
    calculate_merkle_root,
    compute_exponent
)
from wire.exceptions import DecodeError
from wire.header import BitcoinHeaderCodec, BlockHeader, HeaderCodec
from wire.transaction import BitcoinTransactionCodec, Transaction, TransactionCodec
from wire.transaction import MAX_BLOCK_PAYLOAD
from wire.utils import (
    HASH_SIZE,
    hash_to_hex,
    read_compact_size,
    read_exact,
    serialize_compact_size
)

from .exceptions import TransactionCountError, VerificationError


# Smallest possible transaction payload, used to bound the transaction count
MIN_TX_PAYLOAD = 10
MAX_TX_PER_BLOCK = MAX_BLOCK_PAYLOAD // MIN_TX_PAYLOAD + 1

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BtcLightMirror:
    """
    Represents a light mirror proof for one Bitcoin block.

    merkle_nodes holds the coinbase's sibling hashes in bottom-up order and
    always has exactly compute_exponent(transaction_count) entries.
    """
    header: BlockHeader
    coinbase_tx: Transaction
    transaction_count: int
    merkle_nodes: Tuple[bytes, ...]

    def __post_init__(self):
        """Validate proof structure."""
        if self.transaction_count < 1:
            raise ValueError("Transaction count must be at least 1")

        # Freeze lists handed in by callers
        object.__setattr__(self, 'merkle_nodes', tuple(self.merkle_nodes))

        expected = compute_exponent(self.transaction_count)
        if len(self.merkle_nodes) != expected:
            raise ValueError(
                f"Expected {expected} merkle nodes for {self.transaction_count} "
                f"transactions, got {len(self.merkle_nodes)}"
            )

        if not all(len(node) == HASH_SIZE for node in self.merkle_nodes):
            raise ValueError("All merkle nodes must be 32 bytes")

    def check_merkle(self, tx_codec: Optional[TransactionCodec] = None,
                     hasher: Optional[MerkleHasher] = None) -> None:
        """Verify the proof against the header. See check_merkle()."""
        check_merkle(self, tx_codec, hasher)

    def parse_commitment(self):
        """Extract the embedded commitment. See lightmirror.commitment.parse_commitment()."""
        from .commitment import parse_commitment
        return parse_commitment(self)

    def to_dict(self, tx_codec: Optional[TransactionCodec] = None,
                header_codec: Optional[HeaderCodec] = None) -> Dict[str, Any]:
        tx_codec = tx_codec or BitcoinTransactionCodec()
        header_codec = header_codec or BitcoinHeaderCodec()
        return {
            'block_hash': hash_to_hex(header_codec.hash(self.header)),
            'header': self.header.to_dict(),
            'coinbase_txid': hash_to_hex(tx_codec.hash(self.coinbase_tx)),
            'coinbase_wtxid': hash_to_hex(tx_codec.witness_hash(self.coinbase_tx)),
            'transaction_count': self.transaction_count,
            'path_length': len(self.merkle_nodes),
            'merkle_nodes': [hash_to_hex(node) for node in self.merkle_nodes],
        }


def create_light_mirror(header: BlockHeader, coinbase_tx: Transaction,
                        tx_hashes: Sequence[bytes],
                        hasher: Optional[MerkleHasher] = None) -> BtcLightMirror:
    """
    Build a light mirror proof from live block data.

    Args:
        header: Block header
        coinbase_tx: The block's coinbase transaction
        tx_hashes: All transaction hashes of the block in block order,
            internal byte order, coinbase hash first. Must not be empty.
        hasher: Custom Merkle hasher (optional)

    Returns:
        BtcLightMirror for the block
    """
    merkle_nodes = build_authentication_path(tx_hashes, hasher)

    return BtcLightMirror(
        header=header,
        coinbase_tx=coinbase_tx,
        transaction_count=len(tx_hashes),
        merkle_nodes=merkle_nodes
    )


def check_merkle(mirror: BtcLightMirror, tx_codec: Optional[TransactionCodec] = None,
                 hasher: Optional[MerkleHasher] = None) -> None:
    """
    Recompute the Merkle root from the coinbase and compare it to the header.

    Args:
        mirror: Proof to verify
        tx_codec: Transaction codec used to hash the coinbase (optional)
        hasher: Custom Merkle hasher (optional)

    Raises:
        VerificationError: If the computed root differs from the header's
    """
    tx_codec = tx_codec or BitcoinTransactionCodec()

    coinbase_hash = tx_codec.hash(mirror.coinbase_tx)
    root = calculate_merkle_root(coinbase_hash, mirror.merkle_nodes, hasher)
    if root != mirror.header.merkle_root:
        logger.warning(
            f"Merkle root mismatch for coinbase {hash_to_hex(coinbase_hash)}: "
            f"header {hash_to_hex(mirror.header.merkle_root)}, calculated {hash_to_hex(root)}"
        )
        raise VerificationError(mirror.header.merkle_root, root)


class LightMirrorCodec:
    """
    Encoder and decoder for the light mirror wire format.

    The header and transaction codecs are pluggable so the proof can be
    carried for chains that share Bitcoin's tree layout but not its exact
    record encodings.
    """

    def __init__(self, header_codec: Optional[HeaderCodec] = None,
                 tx_codec: Optional[TransactionCodec] = None,
                 max_tx_per_block: int = MAX_TX_PER_BLOCK):
        """
        Initialize codec.

        Args:
            header_codec: Block header codec (defaults to Bitcoin's)
            tx_codec: Transaction codec (defaults to Bitcoin's)
            max_tx_per_block: Largest transaction count accepted when decoding
        """
        self.header_codec = header_codec or BitcoinHeaderCodec()
        self.tx_codec = tx_codec or BitcoinTransactionCodec()
        self.max_tx_per_block = max_tx_per_block
        self.logger = logging.getLogger(__name__)

    def serialize(self, mirror: BtcLightMirror, stream: BinaryIO) -> None:
        """Write a proof to a stream."""
        self.header_codec.serialize(mirror.header, stream)
        self.tx_codec.serialize(mirror.coinbase_tx, stream)
        stream.write(serialize_compact_size(mirror.transaction_count))
        for node in mirror.merkle_nodes:
            stream.write(node)

    def deserialize(self, stream: BinaryIO) -> BtcLightMirror:
        """
        Read a proof from a stream.

        Args:
            stream: Readable binary stream

        Returns:
            Decoded BtcLightMirror

        Raises:
            TransactionCountError: If the count exceeds max_tx_per_block
            TruncatedStreamError: If the stream ends before the proof does
            DecodeError: For any other malformed input
        """
        header = self.header_codec.deserialize(stream)
        coinbase_tx = self.tx_codec.deserialize(stream)

        tx_count = read_compact_size(stream)

        # Prevent more transactions than could possibly fit into a block.
        # It would be possible to cause memory exhaustion without a sane
        # upper bound on this count.
        if tx_count > self.max_tx_per_block:
            self.logger.warning(f"Rejected proof claiming {tx_count} transactions")
            raise TransactionCountError(tx_count, self.max_tx_per_block)

        if tx_count == 0:
            raise DecodeError("Transaction count must be at least 1")

        node_count = compute_exponent(tx_count)
        merkle_nodes = tuple(read_exact(stream, HASH_SIZE) for _ in range(node_count))

        self.logger.debug(f"Decoded light mirror with {tx_count} transactions and {node_count} merkle nodes")
        return BtcLightMirror(
            header=header,
            coinbase_tx=coinbase_tx,
            transaction_count=tx_count,
            merkle_nodes=merkle_nodes
        )

    def to_bytes(self, mirror: BtcLightMirror) -> bytes:
        stream = BytesIO()
        self.serialize(mirror, stream)
        return stream.getvalue()

    def from_bytes(self, data: bytes) -> BtcLightMirror:
        """
        Decode a proof that spans the whole buffer.

        Args:
            data: Serialized proof

        Returns:
            Decoded BtcLightMirror
        """
        stream = BytesIO(data)
        mirror = self.deserialize(stream)
        remaining = len(data) - stream.tell()
        if remaining:
            raise DecodeError(f"Unexpected {remaining} trailing bytes after light mirror")
        return mirror

    def to_hex(self, mirror: BtcLightMirror) -> str:
        return self.to_bytes(mirror).hex()

    def from_hex(self, hex_str: str) -> BtcLightMirror:
        try:
            data = bytes.fromhex(hex_str.strip())
        except ValueError as e:
            raise DecodeError(f"Invalid hex encoding: {e}")
        return self.from_bytes(data)
