"""
Tests for wire primitives, block headers and transactions
"""

import pytest
from dataclasses import replace
from io import BytesIO

from wire.exceptions import DecodeError, TruncatedStreamError
from wire.header import BLOCK_HEADER_SIZE, BlockHeader
from wire.transaction import Transaction, TransactionCodec, TxIn, TxOut
from wire.utils import (
    double_sha256,
    hash_to_hex,
    hex_to_hash,
    read_compact_size,
    read_exact,
    serialize_compact_size
)


class TestCompactSize:
    """Test compact size integer encoding."""

    @pytest.mark.parametrize("value,encoded", [
        (0, "00"),
        (1, "01"),
        (0xfc, "fc"),
        (0xfd, "fdfd00"),
        (0xffff, "fdffff"),
        (0x10000, "fe00000100"),
        (0xffffffff, "feffffffff"),
        (0x100000000, "ff0000000001000000"),
    ])
    def test_encoding_widths(self, value, encoded):
        """Test that each value uses the smallest encoding."""
        assert serialize_compact_size(value).hex() == encoded
        assert read_compact_size(BytesIO(bytes.fromhex(encoded))) == value

    def test_negative_value(self):
        """Test serializing a negative value."""
        with pytest.raises(ValueError, match="cannot be negative"):
            serialize_compact_size(-1)

    def test_non_canonical_rejected(self):
        """Test that a wide encoding of a small value is rejected."""
        with pytest.raises(DecodeError, match="Non-canonical"):
            read_compact_size(BytesIO(bytes.fromhex("fd0500")))

        with pytest.raises(DecodeError, match="Non-canonical"):
            read_compact_size(BytesIO(bytes.fromhex("fe00010000")))

    def test_truncated(self):
        """Test reading a compact size from a short stream."""
        with pytest.raises(TruncatedStreamError):
            read_compact_size(BytesIO(b''))

        with pytest.raises(TruncatedStreamError):
            read_compact_size(BytesIO(bytes.fromhex("fe0100")))


class TestStreamHelpers:
    """Test stream and hash helpers."""

    def test_read_exact(self):
        stream = BytesIO(b'abcdef')
        assert read_exact(stream, 4) == b'abcd'
        assert read_exact(stream, 2) == b'ef'

    def test_read_exact_short(self):
        """Test that a short read reports both sizes."""
        with pytest.raises(TruncatedStreamError) as exc_info:
            read_exact(BytesIO(b'abc'), 32)

        assert exc_info.value.expected == 32
        assert exc_info.value.received == 3
        assert isinstance(exc_info.value, DecodeError)

    def test_stream_errors_propagate(self):
        """Test that I/O errors from the stream are not wrapped."""
        class BrokenStream:
            def read(self, size):
                raise OSError("connection reset")

        with pytest.raises(OSError, match="connection reset"):
            read_exact(BrokenStream(), 4)

    def test_double_sha256(self):
        """Test double SHA256 against a known vector."""
        assert double_sha256(b'').hex() == (
            "5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456"
        )

    def test_hash_hex_conversion(self):
        """Test display order conversion."""
        internal = bytes(range(32))
        display = hash_to_hex(internal)
        assert display.startswith("1f1e1d")
        assert hex_to_hash(display) == internal

    def test_hex_to_hash_wrong_size(self):
        with pytest.raises(ValueError, match="32 bytes"):
            hex_to_hash("abcd")


class TestBlockHeader:
    """Test block header codec."""

    def test_decode_genesis(self, header_codec, genesis_data):
        """Test decoding the genesis block header."""
        header = header_codec.from_bytes(bytes.fromhex(genesis_data['header_hex']))

        assert header.version == 1
        assert header.prev_block == b'\x00' * 32
        assert hash_to_hex(header.merkle_root) == genesis_data['merkle_root']
        assert header.timestamp == 1231006505
        assert header.bits == 0x1d00ffff
        assert header.nonce == 2083236893

    def test_genesis_hash(self, header_codec, genesis_header, genesis_data):
        """Test block hash of the genesis header."""
        assert hash_to_hex(header_codec.hash(genesis_header)) == genesis_data['block_hash']

    def test_round_trip(self, header_codec, genesis_header, genesis_data):
        """Test re-encoding reproduces the original bytes."""
        data = header_codec.to_bytes(genesis_header)
        assert len(data) == BLOCK_HEADER_SIZE
        assert data.hex() == genesis_data['header_hex']

    def test_truncated_header(self, header_codec, genesis_data):
        """Test decoding a header that is one byte short."""
        data = bytes.fromhex(genesis_data['header_hex'])[:-1]

        with pytest.raises(TruncatedStreamError):
            header_codec.deserialize(BytesIO(data))

    def test_from_bytes_wrong_size(self, header_codec):
        with pytest.raises(ValueError, match="80 bytes"):
            header_codec.from_bytes(b'\x00' * 81)

    def test_invalid_fields(self):
        """Test header field validation."""
        with pytest.raises(ValueError, match="Merkle root must be 32 bytes"):
            BlockHeader(1, b'\x00' * 32, b'\x00' * 31, 0, 0, 0)

        with pytest.raises(ValueError, match="nonce must fit in 32 bits"):
            BlockHeader(1, b'\x00' * 32, b'\x00' * 32, 0, 0, 2 ** 32)

    def test_to_dict(self, genesis_header, genesis_data):
        info = genesis_header.to_dict()
        assert info['merkle_root'] == genesis_data['merkle_root']
        assert info['bits'] == "1d00ffff"


class TestTransaction:
    """Test transaction codec."""

    def test_decode_genesis_coinbase(self, tx_codec, genesis_data):
        """Test decoding the genesis coinbase transaction."""
        tx = tx_codec.from_bytes(bytes.fromhex(genesis_data['coinbase_hex']))

        assert tx.version == 1
        assert tx.is_coinbase()
        assert len(tx.inputs) == 1
        assert b'The Times 03/Jan/2009' in tx.inputs[0].script_sig
        assert len(tx.outputs) == 1
        assert tx.outputs[0].value == 5000000000
        assert tx.outputs[0].script_pubkey[-1] == 0xac
        assert tx.locktime == 0

    def test_genesis_txid(self, tx_codec, genesis_coinbase, genesis_data):
        """Test the txid of the genesis coinbase."""
        assert hash_to_hex(tx_codec.hash(genesis_coinbase)) == genesis_data['merkle_root']

    def test_round_trip(self, tx_codec, genesis_coinbase, genesis_data):
        assert tx_codec.to_bytes(genesis_coinbase).hex() == genesis_data['coinbase_hex']

    def test_segwit_round_trip(self, tx_codec):
        """Test a witness transaction keeps its witness but hashes without it."""
        tx = Transaction(
            version=2,
            inputs=(TxIn(prev_txid=b'\x00' * 32, prev_index=0xffffffff,
                         script_sig=b'\x03\x01\x02\x03', witness=(b'\x00' * 32,)),),
            outputs=(TxOut(value=100, script_pubkey=b'\x51'),),
        )

        data = tx_codec.to_bytes(tx)
        assert data[4:6] == b'\x00\x01'

        decoded = tx_codec.from_bytes(data)
        assert decoded == tx
        assert decoded.inputs[0].witness == (b'\x00' * 32,)

        legacy = tx_codec.to_bytes(tx, include_witness=False)
        assert tx_codec.hash(tx) == double_sha256(legacy)
        assert tx_codec.witness_hash(tx) == double_sha256(data)
        assert tx_codec.hash(tx) != tx_codec.witness_hash(tx)

    def test_single_zero_byte_script(self, tx_codec):
        """Test an OP_0 output script keeps its length prefix."""
        tx = Transaction(
            version=1,
            inputs=(TxIn(prev_txid=b'\x00' * 32, prev_index=0xffffffff),),
            outputs=(TxOut(value=0, script_pubkey=b'\x00'),),
        )

        assert tx_codec.from_bytes(tx_codec.to_bytes(tx)) == tx

    def test_bad_witness_flag(self, tx_codec):
        """Test a segwit marker followed by an unknown flag."""
        data = bytes.fromhex("02000000" "0002")

        with pytest.raises(DecodeError, match="flag byte"):
            tx_codec.from_bytes(data)

    def test_trailing_bytes(self, tx_codec, genesis_data):
        data = bytes.fromhex(genesis_data['coinbase_hex']) + b'\x00'

        with pytest.raises(DecodeError, match="trailing bytes"):
            tx_codec.from_bytes(data)

    def test_truncated(self, tx_codec, genesis_data):
        data = bytes.fromhex(genesis_data['coinbase_hex'])[:-3]

        with pytest.raises(TruncatedStreamError):
            tx_codec.from_bytes(data)

    def test_oversized_input_count(self, tx_codec):
        """Test that a huge input count is rejected before reading inputs."""
        data = bytes.fromhex("01000000" "ff" "ffffffffffffffff")

        with pytest.raises(DecodeError, match="Too many input transactions"):
            tx_codec.from_bytes(data)

    def test_to_dict(self, genesis_coinbase, genesis_data):
        info = genesis_coinbase.to_dict()
        assert info['outputs'][0]['value'] == 5000000000
        assert info['inputs'][0]['prev_index'] == 0xffffffff

    def test_superfluous_witness_rejected(self, tx_codec, genesis_data):
        """Test that the segwit layout with only empty witnesses is refused."""
        legacy = bytes.fromhex(genesis_data['coinbase_hex'])
        data = legacy[:4] + b'\x00\x01' + legacy[4:-4] + b'\x00' + legacy[-4:]

        with pytest.raises(DecodeError, match="Superfluous witness record"):
            tx_codec.from_bytes(data)

    def test_default_witness_hash(self, genesis_coinbase):
        """Test that codecs without witness support report the txid as wtxid."""
        class FixedCodec(TransactionCodec):
            def serialize(self, tx, stream):
                stream.write(b'')

            def deserialize(self, stream):
                raise NotImplementedError

            def hash(self, tx):
                return b'\x07' * 32

        assert FixedCodec().witness_hash(genesis_coinbase) == b'\x07' * 32


class TestFieldRanges:
    """Test that records only hold values the wire format can carry."""

    @pytest.mark.parametrize("field,value", [
        ('version', 2 ** 31),
        ('version', -2 ** 31 - 1),
        ('timestamp', -1),
        ('bits', 2 ** 32),
    ])
    def test_header_out_of_range(self, genesis_header, field, value):
        with pytest.raises(ValueError, match="must fit in"):
            replace(genesis_header, **{field: value})

    def test_header_signed_version(self, header_codec, genesis_header):
        """Test that the full signed version range encodes."""
        header = replace(genesis_header, version=-2 ** 31)
        assert header_codec.from_bytes(header_codec.to_bytes(header)) == header

    @pytest.mark.parametrize("field,value", [
        ('prev_index', -1),
        ('prev_index', 2 ** 32),
        ('sequence', 2 ** 32),
    ])
    def test_input_out_of_range(self, field, value):
        with pytest.raises(ValueError, match=f"Input {field} must fit in 32 bits"):
            TxIn(prev_txid=b'\x00' * 32, **{'prev_index': 0, field: value})

    def test_output_value_too_large(self):
        with pytest.raises(ValueError, match="64 bits"):
            TxOut(value=2 ** 64, script_pubkey=b'\x51')

    @pytest.mark.parametrize("field,value", [
        ('version', 2 ** 31),
        ('locktime', -1),
        ('locktime', 2 ** 32),
    ])
    def test_transaction_out_of_range(self, genesis_coinbase, field, value):
        with pytest.raises(ValueError, match="must fit in"):
            replace(genesis_coinbase, **{field: value})

    def test_maximum_values_encode(self, tx_codec):
        """Test that values at the top of each range round trip."""
        tx = Transaction(
            version=-1,
            inputs=(TxIn(prev_txid=b'\x01' * 32, prev_index=0xffffffff, sequence=0xffffffff),),
            outputs=(TxOut(value=2 ** 64 - 1, script_pubkey=b'\x51'),),
            locktime=0xffffffff
        )

        assert tx_codec.from_bytes(tx_codec.to_bytes(tx)) == tx
