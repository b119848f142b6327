"""
Bitcoin Light Mirror - Transaction Codec

This module provides a Bitcoin transaction record and the codec used to read,
write and hash it. Both the legacy layout and the segregated witness layout
(marker 0x00, flag 0x01) are supported; the transaction hash always covers the
witness-stripped serialization.
"""

import logging
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from typing import Any, BinaryIO, Dict, Tuple

from .exceptions import DecodeError
from .utils import (
    HASH_SIZE,
    INT32_MAX,
    INT32_MIN,
    UINT32_MAX,
    UINT64_MAX,
    double_sha256,
    hash_to_hex,
    read_compact_size,
    read_exact,
    read_int32,
    read_uint32,
    read_uint64,
    read_uint8,
    read_var_bytes,
    serialize_compact_size,
    serialize_var_bytes
)


# Bounds applied while decoding untrusted data
MAX_BLOCK_PAYLOAD = 4000000
MAX_SCRIPT_SIZE = MAX_BLOCK_PAYLOAD
MAX_WITNESS_ITEM_SIZE = MAX_BLOCK_PAYLOAD
MIN_TX_IN_PAYLOAD = 9 + HASH_SIZE
MIN_TX_OUT_PAYLOAD = 9
MAX_TX_IN_PER_MESSAGE = MAX_BLOCK_PAYLOAD // MIN_TX_IN_PAYLOAD + 1
MAX_TX_OUT_PER_MESSAGE = MAX_BLOCK_PAYLOAD // MIN_TX_OUT_PAYLOAD + 1
MAX_WITNESS_ITEMS_PER_INPUT = 500000

SEGWIT_MARKER = 0x00
SEGWIT_FLAG = 0x01

COINBASE_PREV_INDEX = 0xffffffff


@dataclass(frozen=True)
class TxIn:
    """Represents a transaction input."""
    prev_txid: bytes
    prev_index: int
    script_sig: bytes = b''
    sequence: int = 0xffffffff
    witness: Tuple[bytes, ...] = ()

    def __post_init__(self):
        if len(self.prev_txid) != HASH_SIZE:
            raise ValueError("Previous txid must be 32 bytes")

        for name in ('prev_index', 'sequence'):
            if not 0 <= getattr(self, name) <= UINT32_MAX:
                raise ValueError(f"Input {name} must fit in 32 bits")

    def is_coinbase(self) -> bool:
        return self.prev_txid == b'\x00' * HASH_SIZE and self.prev_index == COINBASE_PREV_INDEX


@dataclass(frozen=True)
class TxOut:
    """Represents a transaction output."""
    value: int
    script_pubkey: bytes

    def __post_init__(self):
        if self.value < 0:
            raise ValueError("Output value cannot be negative")
        if self.value > UINT64_MAX:
            raise ValueError("Output value must fit in 64 bits")


@dataclass(frozen=True)
class Transaction:
    """Represents a Bitcoin transaction."""
    version: int
    inputs: Tuple[TxIn, ...]
    outputs: Tuple[TxOut, ...]
    locktime: int = 0

    def __post_init__(self):
        if not INT32_MIN <= self.version <= INT32_MAX:
            raise ValueError("Transaction version must fit in a signed 32-bit integer")
        if not 0 <= self.locktime <= UINT32_MAX:
            raise ValueError("Transaction locktime must fit in 32 bits")

    def has_witness(self) -> bool:
        return any(txin.witness for txin in self.inputs)

    def is_coinbase(self) -> bool:
        return len(self.inputs) == 1 and self.inputs[0].is_coinbase()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'inputs': [
                {
                    'prev_txid': hash_to_hex(txin.prev_txid),
                    'prev_index': txin.prev_index,
                    'script_sig': txin.script_sig.hex(),
                    'sequence': txin.sequence,
                    'witness': [item.hex() for item in txin.witness],
                }
                for txin in self.inputs
            ],
            'outputs': [
                {'value': txout.value, 'script_pubkey': txout.script_pubkey.hex()}
                for txout in self.outputs
            ],
            'locktime': self.locktime,
        }


class TransactionCodec(ABC):
    """Encodes, decodes and hashes transactions."""

    @abstractmethod
    def serialize(self, tx: Transaction, stream: BinaryIO) -> None:
        """Write a transaction to a stream."""

    @abstractmethod
    def deserialize(self, stream: BinaryIO) -> Transaction:
        """Read a transaction from a stream."""

    @abstractmethod
    def hash(self, tx: Transaction) -> bytes:
        """Return the transaction id in internal byte order."""

    def witness_hash(self, tx: Transaction) -> bytes:
        """Return the witness transaction id, equal to hash() for formats without witnesses."""
        return self.hash(tx)


class BitcoinTransactionCodec(TransactionCodec):
    """Codec for the Bitcoin transaction serialization."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def serialize(self, tx: Transaction, stream: BinaryIO) -> None:
        stream.write(self.to_bytes(tx, include_witness=True))

    def hash(self, tx: Transaction) -> bytes:
        return double_sha256(self.to_bytes(tx, include_witness=False))

    def witness_hash(self, tx: Transaction) -> bytes:
        """Return the wtxid in internal byte order."""
        return double_sha256(self.to_bytes(tx, include_witness=True))

    def to_bytes(self, tx: Transaction, include_witness: bool = True) -> bytes:
        """
        Serialize a transaction.

        Args:
            tx: Transaction to serialize
            include_witness: Emit the segwit layout when witness data exists

        Returns:
            Serialized transaction bytes
        """
        segwit = include_witness and tx.has_witness()

        data = struct.pack('<i', tx.version)
        if segwit:
            data += bytes([SEGWIT_MARKER, SEGWIT_FLAG])

        data += serialize_compact_size(len(tx.inputs))
        for txin in tx.inputs:
            data += txin.prev_txid
            data += struct.pack('<I', txin.prev_index)
            data += serialize_var_bytes(txin.script_sig)
            data += struct.pack('<I', txin.sequence)

        data += serialize_compact_size(len(tx.outputs))
        for txout in tx.outputs:
            data += struct.pack('<Q', txout.value)
            data += serialize_var_bytes(txout.script_pubkey)

        if segwit:
            for txin in tx.inputs:
                data += serialize_compact_size(len(txin.witness))
                for item in txin.witness:
                    data += serialize_var_bytes(item)

        data += struct.pack('<I', tx.locktime)
        return data

    def from_bytes(self, data: bytes) -> Transaction:
        """
        Decode a transaction that spans the whole buffer.

        Args:
            data: Serialized transaction

        Returns:
            Decoded Transaction
        """
        stream = BytesIO(data)
        tx = self.deserialize(stream)
        remaining = len(data) - stream.tell()
        if remaining:
            raise DecodeError(f"Unexpected {remaining} trailing bytes after transaction")
        return tx

    def deserialize(self, stream: BinaryIO) -> Transaction:
        version = read_int32(stream)

        count = read_compact_size(stream)
        segwit = False
        if count == SEGWIT_MARKER:
            # A zero input count is the segwit marker
            flag = read_uint8(stream)
            if flag != SEGWIT_FLAG:
                raise DecodeError(f"Witness tx but flag byte is {flag:#04x}")
            segwit = True
            count = read_compact_size(stream)

        if count > MAX_TX_IN_PER_MESSAGE:
            raise DecodeError(
                f"Too many input transactions to fit into max message size "
                f"[count {count}, max {MAX_TX_IN_PER_MESSAGE}]"
            )

        raw_inputs = []
        for _ in range(count):
            prev_txid = read_exact(stream, HASH_SIZE)
            prev_index = read_uint32(stream)
            script_sig = read_var_bytes(stream, MAX_SCRIPT_SIZE, "Transaction input signature script")
            sequence = read_uint32(stream)
            raw_inputs.append((prev_txid, prev_index, script_sig, sequence))

        count = read_compact_size(stream)
        if count > MAX_TX_OUT_PER_MESSAGE:
            raise DecodeError(
                f"Too many output transactions to fit into max message size "
                f"[count {count}, max {MAX_TX_OUT_PER_MESSAGE}]"
            )

        outputs = []
        for _ in range(count):
            value = read_uint64(stream)
            script_pubkey = read_var_bytes(stream, MAX_SCRIPT_SIZE, "Transaction output public key script")
            outputs.append(TxOut(value=value, script_pubkey=script_pubkey))

        witnesses = [()] * len(raw_inputs)
        if segwit:
            for i in range(len(raw_inputs)):
                item_count = read_compact_size(stream)
                if item_count > MAX_WITNESS_ITEMS_PER_INPUT:
                    raise DecodeError(
                        f"Too many witness items to fit into max message size "
                        f"[count {item_count}, max {MAX_WITNESS_ITEMS_PER_INPUT}]"
                    )
                witnesses[i] = tuple(
                    read_var_bytes(stream, MAX_WITNESS_ITEM_SIZE, "Script witness item")
                    for _ in range(item_count)
                )

            # The segwit layout is only emitted when some witness is present
            if not any(witnesses):
                raise DecodeError("Superfluous witness record")

        locktime = read_uint32(stream)

        inputs = tuple(
            TxIn(
                prev_txid=prev_txid,
                prev_index=prev_index,
                script_sig=script_sig,
                sequence=sequence,
                witness=witness
            )
            for (prev_txid, prev_index, script_sig, sequence), witness in zip(raw_inputs, witnesses)
        )

        self.logger.debug(f"Decoded transaction with {len(inputs)} inputs and {len(outputs)} outputs")
        return Transaction(version=version, inputs=inputs, outputs=tuple(outputs), locktime=locktime)
