"""
Bitcoin Light Mirror - Cryptographic Operations Module

This module provides the Merkle tree operations used by light mirror proofs:
- Bitcoin Merkle tree construction (flat tree store)
- Coinbase authentication path extraction
- Merkle root folding from an authentication path
"""

from .merkle import (
    MerkleHasher,
    hash_merkle_branches,
    compute_exponent,
    build_merkle_tree_store,
    build_authentication_path,
    calculate_merkle_root,
    compute_merkle_root,
)

__version__ = "1.0.0"
__all__ = [
    "MerkleHasher",
    "hash_merkle_branches",
    "compute_exponent",
    "build_merkle_tree_store",
    "build_authentication_path",
    "calculate_merkle_root",
    "compute_merkle_root",
]
