"""
Bitcoin Light Mirror - Merkle Tree Implementation

This module builds Bitcoin transaction Merkle trees and extracts the minimal
authentication path needed to fold the coinbase transaction hash back up to
the block's Merkle root.

Hashes are handled in internal byte order. Parents are double SHA256 of the
concatenated children and an odd node at any level is paired with itself,
matching the rule Bitcoin block headers commit to.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from wire.utils import HASH_SIZE, double_sha256


logger = logging.getLogger(__name__)


class MerkleHasher:
    """
    Handles the pairwise hashing operation for the Merkle tree.

    Bitcoin applies no domain separation between leaves and internal nodes;
    leaves are transaction ids and parents are SHA256d(left || right).
    """

    def hash_internal(self, left_hash: bytes, right_hash: bytes) -> bytes:
        """
        Hash internal node from children.

        Args:
            left_hash: Hash of left child (32 bytes)
            right_hash: Hash of right child (32 bytes)

        Returns:
            32-byte parent hash
        """
        if len(left_hash) != HASH_SIZE or len(right_hash) != HASH_SIZE:
            raise ValueError("Child hashes must be 32 bytes")

        return double_sha256(left_hash + right_hash)


_default_hasher = MerkleHasher()


def hash_merkle_branches(left_hash: bytes, right_hash: bytes) -> bytes:
    """Combine two child hashes into their parent hash."""
    return _default_hasher.hash_internal(left_hash, right_hash)


def compute_exponent(value: int) -> int:
    """
    Return the smallest exponent e such that value <= 2**e.

    This is the number of levels above the leaves in a tree of `value`
    leaves, and therefore the length of an authentication path.

        compute_exponent(1) == 0
        compute_exponent(3) == 2
        compute_exponent(8) == 3
    """
    exponent = 0
    while value > (1 << exponent):
        exponent += 1
    return exponent


def next_power_of_two(value: int) -> int:
    """Return the smallest power of two greater than or equal to value."""
    return 1 << compute_exponent(value)


def build_merkle_tree_store(tx_hashes: Sequence[bytes],
                            hasher: Optional[MerkleHasher] = None) -> List[Optional[bytes]]:
    """
    Build a Merkle tree stored as a flat array.

    The array holds the leaves first, padded with None up to the next power
    of two, followed by each parent level in turn. The root is the last
    element. For 5 leaves the layout is:

        [tx0 tx1 tx2 tx3 tx4 None None None | h01 h23 h44 None | h0123 h4444 | root]

    Args:
        tx_hashes: Transaction hashes in block order, coinbase first
        hasher: Custom hasher instance (optional)

    Returns:
        Flat list of node hashes, None where a node does not exist
    """
    if not tx_hashes:
        raise ValueError("Cannot build tree from empty hash list")

    for i, tx_hash in enumerate(tx_hashes):
        if len(tx_hash) != HASH_SIZE:
            raise ValueError(f"Hash at index {i} is not 32 bytes")

    hasher = hasher or _default_hasher

    width = next_power_of_two(len(tx_hashes))
    array_size = width * 2 - 1
    merkles: List[Optional[bytes]] = [None] * array_size
    merkles[:len(tx_hashes)] = list(tx_hashes)

    offset = width
    for i in range(0, array_size - 1, 2):
        left = merkles[i]
        right = merkles[i + 1]
        if left is None:
            # Padding propagates upward
            merkles[offset] = None
        elif right is None:
            merkles[offset] = hasher.hash_internal(left, left)
        else:
            merkles[offset] = hasher.hash_internal(left, right)
        offset += 1

    return merkles


def build_authentication_path(tx_hashes: Sequence[bytes],
                              hasher: Optional[MerkleHasher] = None) -> Tuple[bytes, ...]:
    """
    Extract the sibling hashes on the path from the coinbase leaf to the root.

    The coinbase is always the left-most leaf, so its sibling at every level
    is the second node of that level. Walking the flat tree store, the first
    sibling sits at index 1 and each following level starts `offset` entries
    later, with `offset` halving as the levels shrink.

    Args:
        tx_hashes: Transaction hashes in block order, coinbase first.
            Must not be empty.
        hasher: Custom hasher instance (optional)

    Returns:
        Sibling hashes in bottom-up order, one per tree level
    """
    merkles = build_merkle_tree_store(tx_hashes, hasher)

    exponent = compute_exponent(len(tx_hashes))
    offset = 1 << exponent
    last_index = 1
    path = []
    for _ in range(exponent):
        path.append(merkles[last_index])
        last_index += offset
        offset >>= 1

    logger.debug(f"Built authentication path of {len(path)} nodes for {len(tx_hashes)} transactions")
    return tuple(path)


def calculate_merkle_root(coinbase_hash: bytes, merkle_nodes: Sequence[bytes],
                          hasher: Optional[MerkleHasher] = None) -> bytes:
    """
    Fold the coinbase hash with each path node to recompute the root.

    The running hash is always the left operand.
    """
    hasher = hasher or _default_hasher

    result = coinbase_hash
    for node in merkle_nodes:
        result = hasher.hash_internal(result, node)
    return result


def compute_merkle_root(tx_hashes: Sequence[bytes],
                        hasher: Optional[MerkleHasher] = None) -> bytes:
    """Compute the Merkle root of a full list of transaction hashes."""
    return build_merkle_tree_store(tx_hashes, hasher)[-1]
