"""
Install command implementation.

Installs the Xtensa LLVM toolchain and either ESP-IDF (which brings its own
GCC toolchains) or the per-chip GCC toolchains, then writes an export file.
"""

import logging
from pathlib import Path
from typing import List, Optional

from espkit.config.parser import EspkitConfig, load_config, merge_cli_overrides
from espkit.core.directory import resolve_tools_root
from espkit.core.exceptions import EspkitError
from espkit.core.exporter import write_export_file
from espkit.core.platform import detect_host_triple
from espkit.toolchain.espidf import EspIdf
from espkit.toolchain.gcc import GccToolchain
from espkit.toolchain.llvm import LlvmToolchain
from espkit.toolchain.targets import parse_targets

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        config = merge_cli_overrides(load_config(getattr(args, "config", None)), args)
        export_file = install(config)
    except EspkitError as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(f"Installation completed. Source {export_file} to set up the environment.")
    return 0


def install(config: EspkitConfig, platform_id: Optional[str] = None) -> Path:
    """
    Install everything a configuration asks for.

    Args:
        config: Effective configuration
        platform_id: Host triple (detected if None)

    Returns:
        Path to the written export file

    Raises:
        EspkitError: If any step fails
    """
    platform_id = platform_id or detect_host_triple()
    tools_root = resolve_tools_root(config.tools_path)
    targets = parse_targets(config.targets)
    logger.debug(
        f"Arguments:\n"
        f"    - Arch: {platform_id}\n"
        f"    - Build targets: {[str(t) for t in targets]}\n"
        f"    - ESP-IDF version: {config.espidf_version}\n"
        f"    - Export file: {config.export_file}\n"
        f"    - LLVM version: {config.llvm_version}\n"
        f"    - Minified ESP-IDF: {config.minified_espidf}\n"
        f"    - Tools path: {tools_root}"
    )

    exports: List[str] = []

    llvm = LlvmToolchain.from_major(
        config.llvm_version, tools_root, platform_id, timeout=config.download_timeout
    )
    llvm.install()
    exports.extend(llvm.exports())

    if config.espidf_version:
        esp_idf = EspIdf(
            config.espidf_version,
            targets,
            tools_root,
            minified=config.minified_espidf,
            platform_id=platform_id,
            timeout=config.download_timeout,
        )
        esp_idf.install()
        exports.extend(esp_idf.exports())
    else:
        for target in targets:
            gcc = GccToolchain(
                target,
                tools_root,
                platform_id,
                release=config.gcc_release,
                version=config.gcc_version,
                timeout=config.download_timeout,
            )
            gcc.install()
            exports.extend(gcc.exports())

    return write_export_file(Path(config.export_file), exports)
