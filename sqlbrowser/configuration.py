# sqlbrowser/configuration.py

"""
Configuration loader for the SQL Server Browser client.

Handles loading settings from a YAML file and merging them over the
defaults. A missing file simply means the defaults apply.
"""

import codecs
import math
import logging
import os
import yaml
from typing import Dict, Any, Optional

from .errors import ConfigurationError

logger = logging.getLogger("sqlbrowser.configuration")

# This dictionary holds the default structure and values for our config.
DEFAULT_CONFIG: Dict[str, Any] = {
    'port': 1434,
    'receive_timeout_seconds': 3.0,
    'max_broadcast_replies': 255,
    # 'auto' sends to the directed broadcast address of every interface
    'broadcast_address': '255.255.255.255',
    'encoding': 'utf-8',
    'receive_buffer_size': 65535,
    'log_level': 'INFO',
}

CONFIG_ENV_VAR = "SQLBROWSER_CONFIG"


def get_config_path() -> str:
    """Returns the path to the config file."""
    return os.environ.get(CONFIG_ENV_VAR, "sqlbrowser.yaml")


def _require_int(config: Dict[str, Any], key: str, low: int, high: int) -> None:
    value = config[key]
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ConfigurationError(f"'{key}' must be an integer between {low} and {high}, got {value!r}.")


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns a copy of the defaults updated with the recognized keys of `config`.
    Unrecognized keys are logged and dropped.
    """
    merged = DEFAULT_CONFIG.copy()
    for key, value in config.items():
        if key not in DEFAULT_CONFIG:
            logger.warning(f"Ignoring unrecognized configuration option '{key}'.")
            continue
        merged[key] = value

    _require_int(merged, 'port', 1, 0xFFFF)
    _require_int(merged, 'max_broadcast_replies', 1, 0xFFFF)
    _require_int(merged, 'receive_buffer_size', 3, 0xFFFF)

    timeout = merged['receive_timeout_seconds']
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not math.isfinite(timeout) or timeout <= 0:
        raise ConfigurationError(f"'receive_timeout_seconds' must be a positive number, got {timeout!r}.")
    merged['receive_timeout_seconds'] = float(timeout)

    if not isinstance(merged['broadcast_address'], str) or not merged['broadcast_address']:
        raise ConfigurationError("'broadcast_address' must be an address or 'auto'.")

    try:
        codecs.lookup(merged['encoding'])
    except (LookupError, TypeError):
        raise ConfigurationError(f"Unknown encoding {merged['encoding']!r}.")

    level = merged['log_level']
    if not isinstance(level, str) or not isinstance(logging.getLevelName(level.upper()), int):
        raise ConfigurationError(f"Unknown log level {level!r}.")
    return merged


def save_config(config: Dict[str, Any], path: Optional[str] = None) -> None:
    """Saves the provided configuration dictionary as YAML."""
    config_path = path or get_config_path()
    try:
        with open(config_path, 'w') as f:
            f.write("# SQL Server Browser client configuration\n")
            f.write("# Unrecognized keys are ignored.\n\n")
            yaml.dump(config, f, sort_keys=False, default_flow_style=False, indent=2)
    except OSError as e:
        raise ConfigurationError(f"Could not write config file to '{config_path}': {e}")


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads configuration from a YAML file.

    If the file doesn't exist, the defaults are returned.
    If the file is invalid, ConfigurationError is raised.
    """
    config_path = path or get_config_path()
    try:
        with open(config_path, 'r') as f:
            user_config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug(f"Configuration file '{config_path}' not found, using defaults.")
        return DEFAULT_CONFIG.copy()
    except OSError as e:
        raise ConfigurationError(f"Could not read '{config_path}': {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing '{config_path}': {e}")

    if user_config is None:
        return DEFAULT_CONFIG.copy()
    if not isinstance(user_config, dict):
        raise ConfigurationError(f"'{config_path}' must contain a mapping of options.")
    return validate_config(user_config)
