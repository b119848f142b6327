#!/usr/bin/env python3
"""
Bitcoin Light Mirror - Command Line Interface

A CLI for building, inspecting and verifying light mirror proofs of Bitcoin
coinbase transactions.
"""

import sys
from typing import Optional

import click

from .commands.config import config
from .commands.proof import build_proof, inspect_proof, show_commitment, verify_proof
from .config import OUTPUT_FORMATS, PROFILES
from .context import CLIContext, handle_cli_error, pass_context


@click.group(invoke_without_command=True,
             context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(dir_okay=False),
              help='Path to configuration file')
@click.option('--profile', '-p',
              type=click.Choice(sorted(PROFILES)),
              help='Configuration profile applied over the defaults')
@click.option('--output-format', '-o',
              type=click.Choice(OUTPUT_FORMATS),
              help='Output format (defaults to cli.output_format)')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.option('--version',
              is_flag=True,
              help='Show version information')
@pass_context
@handle_cli_error
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], verbose: int, version: bool):
    """
    Bitcoin Light Mirror Command Line Interface

    Build compact proofs that a coinbase transaction belongs to a Bitcoin
    block, verify them against the block header and read the commitment
    embedded in the coinbase.

    Examples:
        lightmirror build --header 0100... --coinbase 0100... --txids block.txt
        lightmirror verify proof.hex
        lightmirror -o json commitment proof.hex
        lightmirror --profile strict verify proof.hex
    """
    if version:
        from cli import __version__
        click.echo(f"Light Mirror CLI v{__version__}")
        sys.exit(0)

    click_ctx = click.get_current_context()
    if click_ctx.invoked_subcommand is None:
        click.echo(click_ctx.get_help())
        return

    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format
    ctx.verbose = verbose

    # The config commands report invalid settings themselves
    ctx.load_config(validate=click_ctx.invoked_subcommand != 'config')

    ctx.setup_logging()
    ctx.logger.debug(f"CLI initialized from {', '.join(ctx.config_manager.get_sources())}")


def register_commands():
    """Register all command modules with the main CLI."""
    cli.add_command(build_proof)
    cli.add_command(inspect_proof)
    cli.add_command(verify_proof)
    cli.add_command(show_commitment)
    cli.add_command(config)


register_commands()


def main():
    cli()


if __name__ == '__main__':
    main()
