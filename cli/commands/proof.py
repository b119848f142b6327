#!/usr/bin/env python3
"""
Proof Commands for the Light Mirror CLI

Commands to build light mirror proofs from block data and to inspect, verify
and read the commitment of existing proofs.
"""

from typing import Optional

import click

from crypto.merkle import compute_merkle_root
from lightmirror.commitment import parse_commitment
from lightmirror.exceptions import VerificationError
from lightmirror.proof import check_merkle, create_light_mirror
from wire.header import BitcoinHeaderCodec
from wire.transaction import BitcoinTransactionCodec
from wire.utils import hash_to_hex, hex_to_hash

from ..context import CLIContext, handle_cli_error, pass_context


ENCODING_OPTION = click.option(
    '--encoding', type=click.Choice(['hex', 'binary']),
    help='Proof file encoding (defaults to proof.encoding)'
)


def _parse_hex(value: str, name: str) -> bytes:
    try:
        return bytes.fromhex(value.strip())
    except ValueError as e:
        raise click.BadParameter(f"{name} is not valid hex: {e}")


@click.command('build')
@click.option('--header', 'header_hex', required=True, help='Serialized block header (hex)')
@click.option('--coinbase', 'coinbase_hex', required=True, help='Serialized coinbase transaction (hex)')
@click.option('--txids', 'txids_file', required=True, type=click.File('r'),
              help='File with one txid per line in block order, display byte order')
@click.option('--output', 'output_path', type=click.Path(dir_okay=False),
              help='Write the proof to a file instead of stdout')
@ENCODING_OPTION
@pass_context
@handle_cli_error
def build_proof(ctx: CLIContext, header_hex: str, coinbase_hex: str, txids_file,
                output_path: Optional[str], encoding: Optional[str]):
    """
    Build a light mirror proof for a block.

    The first txid must be the coinbase transaction's.

    Examples:
        lightmirror build --header 0100... --coinbase 0100... --txids block.txt
        lightmirror build --header 0100... --coinbase 0100... --txids block.txt --output proof.hex
    """
    header = BitcoinHeaderCodec().from_bytes(_parse_hex(header_hex, 'header'))
    tx_codec = BitcoinTransactionCodec()
    coinbase_tx = tx_codec.from_bytes(_parse_hex(coinbase_hex, 'coinbase'))

    tx_hashes = [hex_to_hash(line) for line in txids_file if line.strip()]
    if not tx_hashes:
        raise click.BadParameter("txids file contains no transaction ids", param_hint='--txids')

    # A proof the configured decoder would reject is never written
    max_tx = ctx.get_config('proof.max_tx_per_block')
    if len(tx_hashes) > max_tx:
        raise click.BadParameter(
            f"{len(tx_hashes)} transactions exceed proof.max_tx_per_block ({max_tx})",
            param_hint='--txids'
        )

    coinbase_hash = tx_codec.hash(coinbase_tx)
    if tx_hashes[0] != coinbase_hash:
        raise click.BadParameter(
            f"first txid {hash_to_hex(tx_hashes[0])} is not the coinbase txid {hash_to_hex(coinbase_hash)}",
            param_hint='--txids'
        )

    root = compute_merkle_root(tx_hashes)
    if root != header.merkle_root:
        ctx.logger.warning(
            f"txids produce merkle root {hash_to_hex(root)}, header commits to {hash_to_hex(header.merkle_root)}"
        )

    mirror = create_light_mirror(header, coinbase_tx, tx_hashes)
    ctx.logger.info(f"Built proof with {len(mirror.merkle_nodes)} merkle nodes for {len(tx_hashes)} transactions")
    ctx.write_proof(mirror, output_path, encoding)


@click.command('inspect')
@click.argument('proof_path', type=click.Path(exists=True, dir_okay=False))
@ENCODING_OPTION
@pass_context
@handle_cli_error
def inspect_proof(ctx: CLIContext, proof_path: str, encoding: Optional[str]):
    """
    Show the contents of a proof.

    Examples:
        lightmirror inspect proof.hex
        lightmirror -o json inspect proof.bin --encoding binary
    """
    mirror = ctx.read_proof(proof_path, encoding)
    ctx.output(mirror.to_dict())


@click.command('verify')
@click.argument('proof_path', type=click.Path(exists=True, dir_okay=False))
@ENCODING_OPTION
@pass_context
@handle_cli_error
def verify_proof(ctx: CLIContext, proof_path: str, encoding: Optional[str]):
    """
    Check a proof's authentication path against its block header.

    Exits with status 1 when the recomputed Merkle root does not match.
    """
    mirror = ctx.read_proof(proof_path, encoding)
    block_hash = hash_to_hex(BitcoinHeaderCodec().hash(mirror.header))

    try:
        check_merkle(mirror)
    except VerificationError as e:
        ctx.output({
            'block_hash': block_hash,
            'valid': False,
            'expected_root': hash_to_hex(e.expected),
            'calculated_root': hash_to_hex(e.calculated),
        })
        raise

    ctx.output({
        'block_hash': block_hash,
        'valid': True,
        'merkle_root': hash_to_hex(mirror.header.merkle_root),
    })


@click.command('commitment')
@click.argument('proof_path', type=click.Path(exists=True, dir_okay=False))
@ENCODING_OPTION
@pass_context
@handle_cli_error
def show_commitment(ctx: CLIContext, proof_path: str, encoding: Optional[str]):
    """
    Show the commitment embedded in a proof's coinbase outputs.

    Prints zero addresses when the coinbase carries no commitment.
    """
    mirror = ctx.read_proof(proof_path, encoding)
    payload = parse_commitment(mirror)
    if payload.output_index is None:
        ctx.logger.info("No commitment output found in coinbase")
    ctx.output(payload.to_dict())
