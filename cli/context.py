#!/usr/bin/env python3
"""
Shared CLI Context for the Light Mirror CLI

Holds state shared across commands: configuration, logging, output
formatting and proof file I/O.
"""

import functools
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Optional

import click

from lightmirror.exceptions import LightMirrorError
from lightmirror.proof import BtcLightMirror, LightMirrorCodec
from wire.exceptions import WireError

from .config import ConfigurationManager
from .output import OutputFormatter


LOGGER_NAMES = ['lightmirror-cli', 'lightmirror', 'wire', 'crypto']


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('lightmirror-cli')

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }

        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        handler.set_name('lightmirror-cli')

        for name in LOGGER_NAMES:
            logger = logging.getLogger(name)
            # Replace the handler installed by a previous invocation
            for existing in list(logger.handlers):
                if existing.get_name() == 'lightmirror-cli':
                    logger.removeHandler(existing)
            logger.addHandler(handler)
            logger.setLevel(level)

    def load_config(self, validate: bool = True):
        """Load configuration and apply CLI defaults from it."""
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        self.config_manager.load()

        errors = self.config_manager.validate() if validate else []
        if errors:
            raise click.UsageError("Invalid configuration: " + "; ".join(errors))

        if self.output_format is None:
            self.output_format = self.get_config('cli.output_format', 'table')
        self.verbose = max(self.verbose, self.get_config('cli.verbose', 0))

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get configuration value with fallback to default."""
        if self.config_manager is None:
            return default
        return self.config_manager.get(key, default)

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in specified format."""
        formatter = OutputFormatter(format_override or self.output_format or 'table')
        click.echo(formatter.format(data))

    def codec(self) -> LightMirrorCodec:
        return LightMirrorCodec(max_tx_per_block=self.get_config('proof.max_tx_per_block'))

    def read_proof(self, path: str, encoding: Optional[str] = None) -> BtcLightMirror:
        """
        Load a proof file.

        Args:
            path: File path
            encoding: 'hex' or 'binary' (defaults to proof.encoding)

        Returns:
            Decoded BtcLightMirror
        """
        encoding = encoding or self.get_config('proof.encoding', 'hex')
        data = Path(path).read_bytes()
        self.logger.debug(f"Read {len(data)} bytes from {path} ({encoding})")

        if encoding == 'hex':
            return self.codec().from_hex(data.decode('ascii', errors='replace'))
        return self.codec().from_bytes(data)

    def write_proof(self, mirror: BtcLightMirror, path: Optional[str],
                    encoding: Optional[str] = None):
        """Write a proof to a file, or hex to stdout when no path is given."""
        encoding = encoding or self.get_config('proof.encoding', 'hex')
        codec = self.codec()

        if path is None:
            click.echo(codec.to_hex(mirror))
            return

        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if encoding == 'hex':
            output_path.write_text(codec.to_hex(mirror) + '\n')
        else:
            output_path.write_bytes(codec.to_bytes(mirror))
        self.logger.info(f"Wrote proof to {output_path}")


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator to handle CLI errors gracefully."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except (LightMirrorError, WireError, ValueError, OSError) as e:
            ctx = click.get_current_context().find_object(CLIContext)

            click.echo(f"Error: {e}", err=True)
            if ctx and ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)

            sys.exit(1)

    return wrapper
