#!/usr/bin/env python3
"""
Configuration Management Module for the Light Mirror CLI

Handles hierarchical configuration loading, environment variable mapping,
validation, and management of settings.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from lightmirror.proof import MAX_TX_PER_BLOCK


# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / '.lightmirror.yml',                # Project-specific YAML
    Path.cwd() / '.lightmirror.json',               # Project-specific JSON
    Path.home() / '.lightmirror' / 'config.yml',    # User global YAML
    Path.home() / '.lightmirror' / 'config.json',   # User global JSON
]

# Environment variable prefix
ENV_PREFIX = 'LIGHTMIRROR_'

OUTPUT_FORMATS = ['table', 'json', 'yaml']
PROOF_ENCODINGS = ['hex', 'binary']

# Default configuration values
DEFAULT_CONFIG = {
    # Proof decoding
    'proof': {
        'max_tx_per_block': MAX_TX_PER_BLOCK,
        'encoding': 'hex',  # hex, binary
    },

    # CLI behavior
    'cli': {
        'output_format': 'table',  # table, json, yaml
        'verbose': 0,
    },
}

# Configuration profiles
PROFILES = {
    'strict': {
        'proof': {'max_tx_per_block': 100000},
    },
    'development': {
        'cli': {'verbose': 2, 'output_format': 'json'},
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (strict, development)
        """
        self.logger = logging.getLogger('lightmirror-cli.config')
        self.config_file = config_file
        self.profile = profile
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        configs = []

        # 1. Start with default configuration
        configs.append(copy.deepcopy(DEFAULT_CONFIG))
        self._config_sources.append("defaults")

        # 2. Apply profile if specified
        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown configuration profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        # 3. Load configuration files
        if self.config_file:
            config_data = self._load_config_file(Path(self.config_file))
            if config_data:
                configs.append(config_data)
                self._config_sources.append(f"file:{self.config_file}")
        else:
            # Search for config files in standard locations
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    config_data = self._load_config_file(config_path)
                    if config_data:
                        configs.append(config_data)
                        self._config_sources.append(f"file:{config_path}")
                        self.logger.debug(f"Loaded config from {config_path}")
                        break  # Use first found config file

        # 4. Apply environment variables
        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        # Merge all configurations (later ones override earlier ones)
        self._config_cache = self._deep_merge(*configs)

        return self._config_cache

    def _load_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                self.logger.warning(f"Unknown config file format: {path}")
                return None

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        The first segment after the prefix names the section and the rest is
        the key, e.g. LIGHTMIRROR_PROOF_MAX_TX_PER_BLOCK -> proof.max_tx_per_block.
        """
        env_config = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            config_key = key[len(ENV_PREFIX):].lower()
            section, _, name = config_key.partition('_')
            if not name:
                continue

            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type."""
        # Boolean values
        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False

        # JSON covers numbers and complex types
        try:
            return json.loads(value)
        except ValueError:
            pass

        # Default to string
        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = copy.deepcopy(value)

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'proof.max_tx_per_block')
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
        """
        Set configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'cli.output_format')
            value: Value to set
        """
        config = self.load()

        keys = key_path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml'):
        """
        Save current configuration to file.

        Args:
            path: File path to save to (default: project config file)
            format: Output format ('yaml' or 'json')
        """
        config = self.load()

        if not path:
            path = Path.cwd() / ('.lightmirror.yml' if format == 'yaml' else '.lightmirror.json')

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        max_tx = config.get('proof', {}).get('max_tx_per_block')
        if isinstance(max_tx, bool) or not isinstance(max_tx, int) or max_tx < 1:
            errors.append(f"proof.max_tx_per_block must be a positive integer, got {max_tx!r}")

        encoding = config.get('proof', {}).get('encoding')
        if encoding not in PROOF_ENCODINGS:
            errors.append(f"Invalid proof encoding: {encoding}")

        output_format = config.get('cli', {}).get('output_format')
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {output_format}")

        verbose = config.get('cli', {}).get('verbose')
        if isinstance(verbose, bool) or not isinstance(verbose, int) or verbose < 0:
            errors.append(f"cli.verbose must be a non-negative integer, got {verbose!r}")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []


def load_config(config_file: Optional[str] = None,
                profile: Optional[str] = None) -> Dict[str, Any]:
    """
    Convenience function to load configuration.

    Args:
        config_file: Optional configuration file path
        profile: Optional configuration profile

    Returns:
        Configuration dictionary
    """
    return ConfigurationManager(config_file, profile).load()
