"""
Pytest configuration and fixtures for light mirror tests.
"""

import pytest

from crypto.merkle import compute_merkle_root
from lightmirror.address import Address
from lightmirror.commitment import build_commitment_script
from wire.header import BitcoinHeaderCodec, BlockHeader
from wire.transaction import BitcoinTransactionCodec, Transaction, TxIn, TxOut
from wire.utils import double_sha256


# Bitcoin genesis block
GENESIS_HEADER_HEX = (
    "0100000000000000000000000000000000000000000000000000000000000000"
    "000000003ba3edfd7a7b12b27ac72c3e67768f617fc81bc3888a51323a9fb8aa"
    "4b1e5e4a29ab5f49ffff001d1dac2b7c"
)

GENESIS_COINBASE_HEX = (
    "01000000010000000000000000000000000000000000000000000000000000000000000000"
    "ffffffff4d04ffff001d0104455468652054696d65732030332f4a616e2f32303039204368"
    "616e63656c6c6f72206f6e206272696e6b206f66207365636f6e64206261696c6f75742066"
    "6f722062616e6b73ffffffff0100f2052a01000000434104678afdb0fe5548271967f1a671"
    "30b7105cd6a828e03909a67962e0ea1f61deb649f6bc3f4cef38c4f35504e51ec112de5c38"
    "4df7ba0b8d578a4c702b6bf11d5fac00000000"
)

GENESIS_BLOCK_HASH = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
GENESIS_MERKLE_ROOT = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"

CANDIDATE = Address(bytes(range(1, 21)))
REWARD = Address(bytes(range(101, 121)))
BLOCK_HASH = bytes(range(200, 232))

P2PKH_SCRIPT = bytes.fromhex("76a914") + b'\x42' * 20 + bytes.fromhex("88ac")


def make_coinbase(*output_scripts, height_push=b'\x03\x40\x0d\x03'):
    """Create a coinbase transaction with a reward output followed by the given scripts."""
    outputs = [TxOut(value=625000000, script_pubkey=P2PKH_SCRIPT)]
    outputs.extend(TxOut(value=0, script_pubkey=script) for script in output_scripts)
    return Transaction(
        version=2,
        inputs=(TxIn(prev_txid=b'\x00' * 32, prev_index=0xffffffff, script_sig=height_push),),
        outputs=tuple(outputs),
        locktime=0
    )


def make_block(tx_count, coinbase=None):
    """
    Create a header, coinbase and full txid list for a synthetic block.

    The header commits to the real Merkle root of the txid list.
    """
    coinbase = coinbase or make_coinbase(build_commitment_script(CANDIDATE, REWARD, BLOCK_HASH))
    coinbase_hash = BitcoinTransactionCodec().hash(coinbase)
    tx_hashes = [coinbase_hash] + [double_sha256(i.to_bytes(4, 'little')) for i in range(1, tx_count)]

    header = BlockHeader(
        version=0x20000000,
        prev_block=b'\x11' * 32,
        merkle_root=compute_merkle_root(tx_hashes),
        timestamp=1700000000,
        bits=0x1703a30c,
        nonce=12345
    )
    return header, coinbase, tx_hashes


@pytest.fixture
def header_codec():
    return BitcoinHeaderCodec()


@pytest.fixture
def tx_codec():
    return BitcoinTransactionCodec()


@pytest.fixture
def genesis_header(header_codec):
    return header_codec.from_bytes(bytes.fromhex(GENESIS_HEADER_HEX))


@pytest.fixture
def genesis_coinbase(tx_codec):
    return tx_codec.from_bytes(bytes.fromhex(GENESIS_COINBASE_HEX))


@pytest.fixture
def sample_block():
    """A 7 transaction block whose coinbase carries a full commitment."""
    return make_block(7)


@pytest.fixture
def block_factory():
    return make_block


@pytest.fixture
def coinbase_factory():
    return make_coinbase


@pytest.fixture
def commitment_values():
    return {'candidate': CANDIDATE, 'reward': REWARD, 'block_hash': BLOCK_HASH}


@pytest.fixture
def genesis_data():
    return {
        'header_hex': GENESIS_HEADER_HEX,
        'coinbase_hex': GENESIS_COINBASE_HEX,
        'block_hash': GENESIS_BLOCK_HASH,
        'merkle_root': GENESIS_MERKLE_ROOT,
    }
