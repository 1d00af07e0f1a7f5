#!/usr/bin/env python3
"""
Configuration Management Commands for the Distributor CLI

Commands for creating, inspecting and validating CLI configuration.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

from cli.config import CONFIG_SEARCH_PATHS, DEFAULT_CONFIG, ENV_PREFIX, PROFILES
from cli.main import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def config(ctx: CLIContext):
    """
    Configuration management commands.

    Manage CLI configuration, cluster profiles and settings.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('init')
@click.option('--profile', type=click.Choice(sorted(PROFILES)),
              help='Base the file on a cluster profile')
@click.option('--output', type=click.Path(dir_okay=False), help='Output file path')
@click.option('--format', 'file_format', type=click.Choice(['yaml', 'json']),
              default='yaml', help='Configuration file format')
@click.option('--force', is_flag=True, help='Overwrite existing configuration')
@pass_context
@handle_cli_error
def init_config(ctx: CLIContext, profile: Optional[str], output: Optional[str],
                file_format: str, force: bool):
    """
    Generate a default configuration file.

    Examples:
        distributor config init
        distributor config init --profile mainnet --output mainnet.yml
    """
    if not output:
        output = '.distributor.yml' if file_format == 'yaml' else '.distributor.json'

    output_path = Path(output)
    if output_path.exists() and not force:
        raise click.ClickException(f"Configuration file already exists: {output}. Use --force to overwrite.")

    config_data = copy.deepcopy(DEFAULT_CONFIG)
    if profile:
        config_data = _deep_merge(config_data, PROFILES[profile])
        ctx.logger.info(f"Applied profile: {profile}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        if file_format == 'yaml':
            yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(config_data, f, indent=2)

    ctx.output({'config_file': str(output_path), 'profile': profile or 'default'})


@config.command('show')
@click.option('--sources', is_flag=True, help='Show configuration sources')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, sources: bool):
    """Show the effective configuration."""
    if sources:
        ctx.output(ctx.config_manager.get_sources())
        return

    ctx.output(ctx.config_manager.load(),
               format_override='yaml' if ctx.output_format in (None, 'table') else None)


@config.command('get')
@click.argument('key')
@click.option('--default', help='Default value if key not found')
@pass_context
@handle_cli_error
def get_config(ctx: CLIContext, key: str, default: Optional[str]):
    """
    Get a configuration value by dot-notation key.

    Examples:
        distributor config get distribution.recipients_file
    """
    value = ctx.config_manager.get(key, default)
    if value is None:
        raise click.ClickException(f"Configuration key not found: {key}")

    if isinstance(value, dict):
        ctx.output(value)
    else:
        click.echo(value)


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """Validate the effective configuration."""
    errors = ctx.config_manager.validate()

    if errors:
        for error in errors:
            click.echo(f"  - {error}", err=True)
        raise click.ClickException(f"Configuration has {len(errors)} problem(s)")

    ctx.output({'valid': True, 'sources': ctx.config_manager.get_sources()})


@config.command('search-paths')
@pass_context
def search_paths(ctx: CLIContext):
    """Show where configuration files are looked up."""
    rows = [{'path': str(path), 'exists': path.exists()} for path in CONFIG_SEARCH_PATHS]
    ctx.output(rows)
    click.echo(f"\nEnvironment variables with prefix {ENV_PREFIX} override file values.")


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = copy.deepcopy(base)

    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
