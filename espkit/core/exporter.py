"""
Environment export file generation.

Installers report the environment they need as ready-made assignment lines;
this module formats those lines for the host shell and writes them to a file
that can be sourced.
"""

import logging
from pathlib import Path
from typing import Iterable

from espkit.core.exceptions import ExportError
from espkit.core.platform import is_windows

logger = logging.getLogger(__name__)


def format_export(name: str, value: str, platform_id: str) -> str:
    """
    Format one environment assignment for the host shell.

    Example:
        >>> format_export('LIBCLANG_PATH', '/t/lib', 'x86_64-unknown-linux-gnu')
        'export LIBCLANG_PATH="/t/lib"'
        >>> format_export('LIBCLANG_PATH', 'C:/t/lib', 'x86_64-pc-windows-msvc')
        '$Env:LIBCLANG_PATH="C:/t/lib"'
    """
    if is_windows(platform_id):
        return f'$Env:{name}="{value}"'
    return f'export {name}="{value}"'


def format_path_export(directory: Path, platform_id: str) -> str:
    """Format an assignment that prepends a directory to PATH."""
    if is_windows(platform_id):
        return format_export("PATH", f"{directory};$Env:PATH", platform_id)
    return format_export("PATH", f"{directory}:$PATH", platform_id)


def write_export_file(export_file: Path, exports: Iterable[str]) -> Path:
    """
    Write environment assignments, one per line.

    Args:
        export_file: Destination file (parent directories are created)
        exports: Assignment lines as produced by format_export()

    Returns:
        Path to the written file

    Raises:
        ExportError: If the file cannot be written
    """
    export_file = Path(export_file)
    lines = list(exports)
    logger.info(f"Creating export file {export_file}")
    logger.debug(f"Exports: {lines}")

    try:
        export_file.parent.mkdir(parents=True, exist_ok=True)
        export_file.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write export file {export_file}: {e}") from e

    return export_file
