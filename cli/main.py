#!/usr/bin/env python3
"""
Solana Distributor - Command Line Interface

Builds the Merkle tree for an airdrop recipients file, publishes its root
into the file, and hands out per-recipient claim proofs.
"""

import functools
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional

import click

from cli import __version__
from cli.config import ConfigurationManager
from cli.output import OutputFormatter


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('distributor-cli')

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

        # Library modules log under their package names
        for name in ('distributor-cli', 'merkle', 'recipients'):
            logger = logging.getLogger(name)
            logger.setLevel(level)
            logger.handlers = [handler]
            logger.propagate = False

        self.logger = logging.getLogger('distributor-cli')

    def load_config(self):
        """Load layered configuration."""
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        self.config_manager.load()

    def get_config(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value with fallback to default."""
        if self.config_manager is None:
            self.load_config()
        return self.config_manager.get(key_path, default)

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in the selected format."""
        format_type = (format_override or self.output_format
                       or self.get_config('cli.output_format', 'table'))
        formatter = OutputFormatter(
            format_type=format_type,
            color_output=self.get_config('cli.color_output', True),
        )
        click.echo(formatter.format(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator to report command errors and exit non-zero."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except Exception as e:
            ctx = click.get_current_context(silent=True)
            cli_ctx = ctx.find_object(CLIContext) if ctx else None

            click.echo(f"Error: {e}", err=True)
            if cli_ctx and cli_ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)

            sys.exit(1)

    return wrapper


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(dir_okay=False),
              help='Path to configuration file')
@click.option('--profile', '-p',
              type=click.Choice(['devnet', 'testnet', 'mainnet']),
              help='Configuration profile')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json', 'yaml', 'csv']),
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='distributor')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], verbose: int):
    """
    Solana Distributor Command Line Interface

    Build Merkle airdrop trees, publish their roots and generate claim proofs.

    Examples:
        distributor tree generate
        distributor proof get 7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU
        distributor proof export --output-file proofs.json
        distributor commit args
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format

    try:
        ctx.load_config()
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Failed to load configuration: {e}")

    configured = ctx.get_config('cli.verbose', 0)
    if not isinstance(configured, int) or isinstance(configured, bool) or configured < 0:
        raise click.ClickException(f"cli.verbose must be a non-negative integer: {configured}")

    # -v flags can raise the configured level but never lower it
    ctx.verbose = max(verbose, configured)
    ctx.setup_logging()

    ctx.logger.debug(f"Configuration sources: {ctx.config_manager.get_sources()}")


def load_json_file(file_path: str) -> Any:
    """Load and validate JSON file."""
    path = Path(file_path)
    if not path.exists():
        raise click.FileError(file_path, hint="file not found")

    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.FileError(file_path, hint=f"invalid JSON: {e}")


def save_json_file(data: Dict[str, Any], file_path: str, indent: int = 2):
    """Save data to JSON file."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(data, f, indent=indent, default=str)


def register_commands():
    """Register all command modules with the main CLI."""
    from cli.commands.distribution import tree, proof, commit, recipients
    from cli.commands.config import config

    for command in (tree, proof, commit, recipients, config):
        if command.name not in cli.commands:
            cli.add_command(command)


def main():
    register_commands()
    cli()


if __name__ == '__main__':
    main()
