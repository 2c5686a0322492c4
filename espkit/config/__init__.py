"""
Configuration management for espkit.

This package provides YAML configuration loading and command-line overrides.
"""

from espkit.config.parser import (
    DEFAULT_CONFIG_FILE,
    EspkitConfig,
    config_from_dict,
    load_config,
    merge_cli_overrides,
    parse_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "EspkitConfig",
    "config_from_dict",
    "load_config",
    "merge_cli_overrides",
    "parse_config",
]
