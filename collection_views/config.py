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
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)  # Default to stderr
    ]
)
logger = logging.getLogger("collection_views")

CONFIG_DIR_NAME = '.collection-views'
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']
ENV_PREFIX = "COLLECTION_VIEWS_"


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. COLLECTION_VIEWS_CONFIG environment variable
    2. ~/.collection-views/config.{json,toml,yaml,yml}
    """
    if 'COLLECTION_VIEWS_CONFIG' in os.environ:
        return Path(os.environ['COLLECTION_VIEWS_CONFIG']).expanduser()

    config_dir = Path.home() / CONFIG_DIR_NAME
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "render": {
            "max_width": 0,  # 0 uses the terminal width
            "color": True
        },
        "etapi": {
            "url": "",
            "token": "",
            "timeout_seconds": 30
        },
        "logging": {
            "level": "WARNING"
        }
    }


def load_config():
    """
    Load configuration from file.

    Raises:
        ConfigError: if the configuration file exists but cannot be parsed
    """
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f)
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if file_config is None:
            file_config = {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        # Merge file config with defaults
        config = merge_configs(config, file_config)
    elif 'COLLECTION_VIEWS_CONFIG' in os.environ:
        logger.warning(f"Config file {config_path} not found, using defaults")

    # Apply environment variable overrides
    return apply_env_overrides(config)


def save_config(config, config_path=None):
    """Save configuration to file (JSON, or YAML for .yaml/.yml paths)."""
    config_path = Path(config_path) if config_path else get_config_path()
    if config_path.suffix.lower() == '.toml':
        # tomllib is read-only
        config_path = config_path.with_suffix('.json')

    config_path.parent.mkdir(parents=True, exist_ok=True)
    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


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
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: COLLECTION_VIEWS_SECTION_KEY
    For example: COLLECTION_VIEWS_ETAPI_TIMEOUT_SECONDS=10
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
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
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                # Env var is longer than the config path it matched
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config, verbose=False):
    """Set the package log level from config, or DEBUG when verbose."""
    level_name = "DEBUG" if verbose else str(config.get("logging", {}).get("level", "WARNING"))
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level '{level_name}', using WARNING")
        level = logging.WARNING
    logger.setLevel(level)
    return level
