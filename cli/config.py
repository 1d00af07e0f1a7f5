#!/usr/bin/env python3
"""
Configuration Management Module for the Distributor CLI

Handles hierarchical configuration loading, environment variable mapping,
validation, and management of settings across clusters.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from recipients.address import is_valid_address

# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.distributor.yml',
    Path.cwd() / '.distributor.json',
    Path.cwd() / 'distributor.config.yml',
    Path.cwd() / 'distributor.config.json',
    Path.home() / '.distributor' / 'config.yml',
    Path.home() / '.distributor' / 'config.json',
]

# Environment variable prefix
ENV_PREFIX = 'DISTRIBUTOR_'

CLUSTERS = ['devnet', 'testnet', 'mainnet']

DEFAULT_CONFIG = {
    'network': {
        'cluster': 'devnet',
    },

    'program': {
        'id': 'ErbDoJTnJyG6EBXHeFochTsHJhB3Jfjc3MF1L9aNip3y',
    },

    'distribution': {
        'recipients_file': 'anchor/recipients.json',
        'default_amount_lamports': 75000000,  # 0.075 SOL
        'build_workers': 0,  # 0 builds every level on the calling thread
        'backup_count': 5,
    },

    'cli': {
        'output_format': 'table',  # table, json, yaml, csv
        'verbose': 0,
        'color_output': True,
    },
}

PROFILES = {
    'devnet': {
        'network': {'cluster': 'devnet'},
        'cli': {'verbose': 1},
    },
    'testnet': {
        'network': {'cluster': 'testnet'},
    },
    'mainnet': {
        'network': {'cluster': 'mainnet'},
        'cli': {'verbose': 0},
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (devnet, testnet, mainnet)
        """
        self.logger = logging.getLogger('distributor-cli.config')
        self.config_file = config_file
        self.profile = profile
        self._config_cache: Optional[Dict[str, Any]] = None
        self._config_sources: List[str] = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        self._config_sources = []
        configs = [copy.deepcopy(DEFAULT_CONFIG)]
        self._config_sources.append("defaults")

        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        if self.config_file:
            config_path = Path(self.config_file)
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
            config_data = self._load_config_file(config_path)
            if config_data:
                configs.append(config_data)
                self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    config_data = self._load_config_file(config_path)
                    if config_data:
                        configs.append(config_data)
                        self._config_sources.append(f"file:{config_path}")
                        self.logger.debug(f"Loaded config from {config_path}")
                    break  # Use first found config file

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        # Later sources override earlier ones
        self._config_cache = self._deep_merge(*configs)
        self._expand_paths(self._config_cache)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        with open(path, 'r') as f:
            if path.suffix in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                self.logger.warning(f"Unknown config file format: {path}")
                return None

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            # DISTRIBUTOR_NETWORK_CLUSTER -> {'network': {'cluster': value}}
            # The first segment names the section; the rest is the key
            config_key = key[len(ENV_PREFIX):].lower()
            section, _, name = config_key.partition('_')
            if not name:
                env_config[section] = self._parse_env_value(value)
                continue

            current = env_config.setdefault(section, {})
            if isinstance(current, dict):
                current[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False

        try:
            parsed = json.loads(value)
            if isinstance(parsed, (int, float, list, dict)):
                return parsed
        except ValueError:
            pass

        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result: Dict[str, Any] = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = copy.deepcopy(value)

        return result

    def _expand_paths(self, config: Dict[str, Any]):
        """Expand ~ and environment variables in path values."""
        for key, value in config.items():
            if isinstance(value, dict):
                self._expand_paths(value)
            elif isinstance(value, str) and ('~' in value or '$' in value):
                config[key] = os.path.expanduser(os.path.expandvars(value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'distribution.recipients_file')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()

        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml') -> Path:
        """
        Save current configuration to file.

        Args:
            path: File path to save to (default: project config file)
            format: Output format ('yaml' or 'json')
        """
        config = self.load()

        if not path:
            path = Path.cwd() / ('.distributor.yml' if format == 'yaml' else '.distributor.json')

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")
        return path

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        cluster = config.get('network', {}).get('cluster')
        if cluster not in CLUSTERS:
            errors.append(f"Invalid network cluster: {cluster}")

        program_id = config.get('program', {}).get('id')
        if program_id and not is_valid_address(program_id):
            errors.append(f"Program id is not a 32-byte public key: {program_id}")

        distribution = config.get('distribution', {})
        if not distribution.get('recipients_file'):
            errors.append("distribution.recipients_file is required")

        amount = distribution.get('default_amount_lamports')
        if not isinstance(amount, int) or isinstance(amount, bool) or not 0 < amount < 2 ** 64:
            errors.append(f"distribution.default_amount_lamports must be a positive u64: {amount}")

        workers = distribution.get('build_workers', 0)
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 0:
            errors.append(f"distribution.build_workers must be a non-negative integer: {workers}")

        output_format = config.get('cli', {}).get('output_format')
        if output_format not in ['table', 'json', 'yaml', 'csv']:
            errors.append(f"Invalid output format: {output_format}")

        verbose = config.get('cli', {}).get('verbose', 0)
        if not isinstance(verbose, int) or isinstance(verbose, bool) or verbose < 0:
            errors.append(f"cli.verbose must be a non-negative integer: {verbose}")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []
