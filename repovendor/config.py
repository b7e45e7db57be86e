#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("repovendor")


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. REPOVENDOR_CONFIG environment variable
    2. ~/.repovendor/ directory
    """
    # Check for environment variable override
    if 'REPOVENDOR_CONFIG' in os.environ:
        path = Path(os.environ['REPOVENDOR_CONFIG'])
        if path.exists():
            return path

    repovendor_dir = Path.home() / '.repovendor'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = repovendor_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path
    return repovendor_dir / 'config.json'


def read_config_file(config_path):
    """Read one configuration file, choosing the parser from its suffix."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    # Default to JSON format
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path=None):
    """Load configuration from file.

    Args:
        config_path: Explicit file to load; uses get_config_path() if None

    Raises:
        ConfigError: if the file exists but cannot be parsed
    """
    config_path = Path(config_path) if config_path else get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            file_config = read_config_file(config_path)
        except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config {config_path} must contain a mapping")

        # Merge file config with defaults
        config = merge_configs(config, file_config)

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "vendor_directory": "vendor",   # Relative to the project root
            "manifest_file": "manifest",    # Relative to the vendor directory
            "import_path": "",              # Project import path; detected if empty
        },
        "fetch": {
            "insecure": False,
            "include_tests": False,
            "include_all": False,
            "strict_remote_heuristic": False,
        },
        "restore": {
            "connections": 8,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def configure_logging(config, debug=False):
    """Apply the logging section of the config to the repovendor logger."""
    section = config.get("logging", {})
    level = logging.DEBUG if debug else getattr(logging, str(section.get("level", "INFO")).upper(), logging.INFO)
    logger.setLevel(level)
    fmt = section.get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: REPOVENDOR_SECTION_KEY
    For example: REPOVENDOR_RESTORE_CONNECTIONS=16
    """
    env_prefix = "REPOVENDOR_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "REPOVENDOR_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', '1', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', '0', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
