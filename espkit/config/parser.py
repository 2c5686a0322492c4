"""YAML configuration parser for espkit.

This module provides parsing and validation for espkit.yaml configuration files.
Every field is optional; command-line values override file values.

Example espkit.yaml:
    tools_path: ~/.espressif
    targets: esp32,esp32c3
    espidf_version: release/v4.4
    llvm_version: "14"
    minified_espidf: true
    export_file: export-esp.sh
    download_timeout: 120
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from espkit.core.download import DEFAULT_TIMEOUT
from espkit.core.exceptions import ConfigError
from espkit.toolchain.gcc import DEFAULT_GCC_RELEASE, DEFAULT_GCC_VERSION
from espkit.toolchain.llvm import DEFAULT_LLVM_VERSION

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "espkit.yaml"
DEFAULT_EXPORT_FILE = "export-esp.sh"


@dataclass
class EspkitConfig:
    """Complete espkit configuration."""

    tools_path: Optional[str] = None  # None: $IDF_TOOLS_PATH or ~/.espressif
    targets: str = "all"
    espidf_version: Optional[str] = None  # None: install GCC toolchains directly
    llvm_version: str = DEFAULT_LLVM_VERSION
    minified_espidf: bool = False
    export_file: str = DEFAULT_EXPORT_FILE
    download_timeout: int = DEFAULT_TIMEOUT
    gcc_release: str = DEFAULT_GCC_RELEASE
    gcc_version: str = DEFAULT_GCC_VERSION


# Accepted YAML types per field
_FIELD_TYPES: Dict[str, tuple] = {
    "tools_path": (str,),
    "targets": (str, list),
    "espidf_version": (str,),
    "llvm_version": (str, int),
    "minified_espidf": (bool,),
    "export_file": (str,),
    "download_timeout": (int,),
    "gcc_release": (str,),
    "gcc_version": (str,),
}


def parse_config(config_path: Path) -> EspkitConfig:
    """
    Parse espkit.yaml configuration file.

    Args:
        config_path: Path to espkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is missing or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    return config_from_dict(data or {})


def config_from_dict(data: Dict[str, Any]) -> EspkitConfig:
    """
    Build a configuration from a parsed mapping.

    Raises:
        ConfigError: On unknown keys or wrongly typed values
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        allowed = _FIELD_TYPES[key]
        # bool is an int subclass; only accept it where bool is allowed
        if not isinstance(value, allowed) or (
            isinstance(value, bool) and bool not in allowed
        ):
            names = " or ".join(t.__name__ for t in allowed)
            raise ConfigError(
                f"Invalid value for '{key}': expected {names}, got {type(value).__name__}"
            )
        values[key] = value

    if isinstance(values.get("targets"), list):
        values["targets"] = ",".join(str(t) for t in values["targets"])
    if "llvm_version" in values:
        values["llvm_version"] = str(values["llvm_version"])
    if values.get("download_timeout", 1) <= 0:
        raise ConfigError("'download_timeout' must be positive")

    return EspkitConfig(**values)


def load_config(config_file: Optional[Path], project_root: Optional[Path] = None) -> EspkitConfig:
    """
    Load configuration from an explicit file or the default espkit.yaml.

    A missing default file yields the default configuration; a missing
    explicit file is an error.

    Raises:
        ConfigError: If the file is missing (explicit only) or invalid
    """
    if config_file is not None:
        return parse_config(config_file)

    default = (project_root or Path.cwd()) / DEFAULT_CONFIG_FILE
    if default.exists():
        return parse_config(default)

    logger.debug(f"Config file not found (optional): {default}")
    return EspkitConfig()


def merge_cli_overrides(config: EspkitConfig, args: Any) -> EspkitConfig:
    """
    Apply command-line values on top of a configuration.

    Attributes of args that are missing or None leave the file value alone.
    """
    overrides = {}
    for f in fields(config):
        value = getattr(args, f.name, None)
        if value is not None:
            overrides[f.name] = value
    return replace(config, **overrides)
