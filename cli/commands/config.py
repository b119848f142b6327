#!/usr/bin/env python3
"""
Configuration Management Commands for the Light Mirror CLI

Commands for inspecting and validating CLI configuration.
"""

import sys
from typing import Optional

import click

from ..context import CLIContext, handle_cli_error, pass_context


@click.group('config')
@pass_context
def config(ctx: CLIContext):
    """
    Configuration management commands.

    Inspect and validate the merged configuration.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--key', help='Specific configuration key to show (dot notation)')
@click.option('--sources', is_flag=True, help='Show configuration sources')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, key: Optional[str], sources: bool):
    """
    Display current configuration settings.

    Shows the merged configuration from defaults, files and environment
    variables.

    Examples:
        lightmirror config show
        lightmirror config show --key proof.max_tx_per_block
        lightmirror config show --sources
    """
    manager = ctx.config_manager

    if sources:
        for i, source in enumerate(manager.get_sources(), 1):
            click.echo(f"{i}. {source}")
        return

    if key:
        value = manager.get(key)
        if value is None:
            click.echo(f"Configuration key not found: {key}", err=True)
            sys.exit(1)

        if isinstance(value, dict):
            ctx.output(value)
        else:
            click.echo(f"{key}: {value}")
    else:
        ctx.output(manager.load())


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """
    Validate configuration for errors.

    Checks configuration values for validity.
    """
    errors = ctx.config_manager.validate()

    if errors:
        click.echo("Configuration validation failed:")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)

    click.echo("Configuration is valid")
    click.echo(f"  Max transactions per block: {ctx.get_config('proof.max_tx_per_block')}")
    click.echo(f"  Proof encoding: {ctx.get_config('proof.encoding')}")
    click.echo(f"  Output format: {ctx.get_config('cli.output_format')}")
