"""
Bitcoin Light Mirror - Coinbase Commitment Parser

Miners bind a block to a claim on another chain by adding an OP_RETURN
output to the coinbase. The output script layout is:

    OP_RETURN                     1 byte   0x6a
    push opcode                   1 byte   (present, value not checked)
    tag                           4 bytes  "CORE"
    OP_DATA_1                     1 byte   0x01
    candidate address             20 bytes
    reward address                20 bytes
    block hash (optional)         32 bytes

Parsing is best effort: scripts that do not match are skipped and a block
without a commitment yields zero values.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from wire.utils import HASH_SIZE, ZERO_HASH

from .address import ADDRESS_SIZE, ZERO_ADDRESS, Address, bytes_to_address


# Script opcodes
OP_DATA_1 = 0x01
OP_DATA_4 = 0x04
OP_RETURN = 0x6a

COMMITMENT_MAGIC = b'CORE'

# Offsets into the commitment script
MAGIC_OFFSET = 2
MARKER_OFFSET = MAGIC_OFFSET + len(COMMITMENT_MAGIC)
CANDIDATE_OFFSET = MARKER_OFFSET + 1
REWARD_OFFSET = CANDIDATE_OFFSET + ADDRESS_SIZE
BLOCK_HASH_OFFSET = REWARD_OFFSET + ADDRESS_SIZE

MIN_COMMITMENT_SIZE = BLOCK_HASH_OFFSET
FULL_COMMITMENT_SIZE = BLOCK_HASH_OFFSET + HASH_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitmentPayload:
    """Values extracted from a coinbase commitment."""
    candidate_address: Address = ZERO_ADDRESS
    reward_address: Address = ZERO_ADDRESS
    block_hash: bytes = ZERO_HASH
    output_index: Optional[int] = None

    def has_block_hash(self) -> bool:
        return self.block_hash != ZERO_HASH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_address': self.candidate_address.to_checksum(),
            'reward_address': self.reward_address.to_checksum(),
            'block_hash': self.block_hash.hex(),
            'output_index': self.output_index,
        }


def is_commitment_script(script: bytes) -> bool:
    """Check whether an output script carries a commitment."""
    return (
        len(script) >= MIN_COMMITMENT_SIZE
        and script[0] == OP_RETURN
        and script[MAGIC_OFFSET:MARKER_OFFSET] == COMMITMENT_MAGIC
        and script[MARKER_OFFSET] == OP_DATA_1
    )


def parse_commitment(mirror) -> CommitmentPayload:
    """
    Scan the coinbase outputs of a proof for a commitment.

    Output 0 carries the block reward and is never inspected. When several
    outputs match, the later one overwrites the earlier values; the block
    hash is only replaced by a script long enough to carry one.

    Args:
        mirror: BtcLightMirror to inspect

    Returns:
        CommitmentPayload, zero-valued when no output matches
    """
    candidate = ZERO_ADDRESS
    reward = ZERO_ADDRESS
    block_hash = ZERO_HASH
    output_index = None

    for index, txout in enumerate(mirror.coinbase_tx.outputs[1:], start=1):
        script = txout.script_pubkey
        if not is_commitment_script(script):
            continue

        candidate = bytes_to_address(script[CANDIDATE_OFFSET:REWARD_OFFSET])
        reward = bytes_to_address(script[REWARD_OFFSET:BLOCK_HASH_OFFSET])
        if len(script) >= FULL_COMMITMENT_SIZE:
            block_hash = script[BLOCK_HASH_OFFSET:FULL_COMMITMENT_SIZE]

        if output_index is not None:
            logger.debug(f"Commitment in output {index} overrides output {output_index}")
        output_index = index

    return CommitmentPayload(
        candidate_address=candidate,
        reward_address=reward,
        block_hash=block_hash,
        output_index=output_index
    )


def build_commitment_script(candidate: Address, reward: Address,
                            block_hash: Optional[bytes] = None) -> bytes:
    """
    Build a coinbase output script carrying a commitment.

    Args:
        candidate: Candidate address
        reward: Reward address
        block_hash: Optional 32-byte hash appended after the addresses

    Returns:
        Output script bytes
    """
    script = bytes([OP_RETURN, OP_DATA_4]) + COMMITMENT_MAGIC + bytes([OP_DATA_1])
    script += candidate.value + reward.value

    if block_hash is not None:
        if len(block_hash) != HASH_SIZE:
            raise ValueError("Block hash must be 32 bytes")
        script += block_hash

    return script
